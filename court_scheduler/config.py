import logging
import os
from typing import Dict, List, Tuple

logger = logging.getLogger(__name__)


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Invalid integer for {name}: '{raw}', using {default}")
        return default


# --- Operating day ---
DAY_START = os.environ.get("DAY_START", "08:30")
DAY_END = os.environ.get("DAY_END", "21:00")

# Utilization reports count one-hour slots.
SLOT_MINUTES = _env_int("SLOT_MINUTES", 60)

# Closures without an explicit end run to the end of the day.
DEFAULT_CLOSURE_START = "00:00"
DEFAULT_CLOSURE_END = DAY_END

# --- Courts ---
TOTAL_COURTS = _env_int("TOTAL_COURTS", 17)
STADIUM_COURT_NUMBER = _env_int("STADIUM_COURT_NUMBER", 17)
COURT_IDS: List[int] = list(range(1, TOTAL_COURTS + 1))
COURT_MAPPING: Dict[int, str] = {STADIUM_COURT_NUMBER: "Stadium"}

# --- Reporting periods ---
# (key, label, start, end); must tile DAY_START..DAY_END exactly.
PERIODS: List[Tuple[str, str, str, str]] = [
    ("MORNING", "Morning (8:30am-12pm)", DAY_START, "12:00"),
    ("AFTERNOON", "Afternoon (12pm-5pm)", "12:00", "17:00"),
    ("PRIME", "Prime (5pm-9pm)", "17:00", DAY_END),
]
PRIME_PERIOD_KEY = "PRIME"
TOTAL_KEY = "TOTAL"

# --- Booking types ---
# team_usta, team_hs, ... are reported together under "team".
TEAM_TYPE_PREFIX = "team_"
BOOKING_TYPE_LABELS: Dict[str, str] = {
    "open": "Open Play",
    "contractor": "Contractors",
    "team": "Teams",
    "tournament": "Tournament",
    "maintenance": "Maintenance",
    "hold": "Hold",
}


def court_label(court: int) -> str:
    """Display name for a court id, e.g. 'Stadium' for the show court."""
    return COURT_MAPPING.get(court, str(court))
