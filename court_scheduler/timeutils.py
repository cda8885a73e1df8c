"""Canonical time handling.

Every time value that enters the scheduler passes through here and comes out as
minutes since midnight. Spreadsheet exports hand us the same wall-clock time in
several shapes: fractions of a day (0.395833 == 09:30), "HH:MM" strings,
"HH:MM:SS", "9:30 AM", or datetime objects. None of the parsers raise; an
unparseable value yields ``None`` from ``to_minutes`` and ``""`` from
``normalize_time``.
"""

import logging
import math
import re
from datetime import date, datetime, time, timedelta
from typing import Any

logger = logging.getLogger(__name__)

MINUTES_PER_DAY = 24 * 60

_HH_MM = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")
_AM_PM = re.compile(r"^(\d{1,2}):(\d{2})\s*([AaPp][Mm])$")
_US_DATE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _from_clock(hours: int, minutes: int) -> int | None:
    if 0 <= hours < 24 and 0 <= minutes < 60:
        return hours * 60 + minutes
    return None


def _from_number(value: float) -> int | None:
    if 0 <= value < 1:
        minutes = _round_half_up(value * MINUTES_PER_DAY)
        # 0.99999 rounds up to midnight of the next day
        return minutes if minutes < MINUTES_PER_DAY else None
    if 0 <= value < MINUTES_PER_DAY:
        minutes = _round_half_up(value)
        return minutes if minutes < MINUTES_PER_DAY else None
    return None


def _from_string(value: str) -> int | None:
    trimmed = value.strip()
    if not trimmed:
        return None

    match = _HH_MM.match(trimmed)
    if match:
        return _from_clock(int(match.group(1)), int(match.group(2)))

    match = _AM_PM.match(trimmed)
    if match:
        hours = int(match.group(1))
        minutes = int(match.group(2))
        meridiem = match.group(3).upper()
        if not 1 <= hours <= 12:
            return None
        if meridiem == "PM" and hours != 12:
            hours += 12
        if meridiem == "AM" and hours == 12:
            hours = 0
        return _from_clock(hours, minutes)

    try:
        decimal = float(trimmed)
    except ValueError:
        decimal = None
    if decimal is not None:
        if 0 <= decimal < 1:
            return _from_number(decimal)
        return None

    # Apps Script serializes sheet times as full timestamps
    try:
        parsed = datetime.fromisoformat(trimmed.replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed.hour * 60 + parsed.minute


def to_minutes(value: Any) -> int | None:
    """Converts any supported time representation to minutes since midnight.

    Returns None when the value cannot be interpreted as a time of day.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value.hour * 60 + value.minute
    if isinstance(value, time):
        return value.hour * 60 + value.minute
    if isinstance(value, timedelta):
        minutes = int(value.total_seconds() // 60)
        return minutes if 0 <= minutes < MINUTES_PER_DAY else None
    if isinstance(value, (int, float)):
        if isinstance(value, float) and math.isnan(value):
            return None
        return _from_number(value)
    if isinstance(value, str):
        return _from_string(value)
    return None


def minutes_to_time(minutes: Any) -> str:
    """Formats minutes since midnight as "HH:MM", clamped to the day."""
    if isinstance(minutes, bool) or not isinstance(minutes, (int, float)) or math.isnan(minutes):
        return "00:00"
    clamped = max(0, min(MINUTES_PER_DAY - 1, _round_half_up(minutes)))
    return f"{clamped // 60:02d}:{clamped % 60:02d}"


def normalize_time(value: Any) -> str:
    """Returns the canonical "HH:MM" string, or "" if the value is not a time."""
    minutes = to_minutes(value)
    if minutes is None:
        return ""
    return minutes_to_time(minutes)


def parse_time_to_minutes(value: Any) -> int:
    """Lenient variant of to_minutes: unparseable values become minute 0."""
    minutes = to_minutes(value)
    if minutes is None:
        if value not in (None, ""):
            logger.debug(f"Unparseable time value {value!r}, treating as 00:00")
        return 0
    return minutes


def parse_hour(value: Any) -> int:
    return parse_time_to_minutes(value) // 60


def parse_minutes(value: Any) -> int:
    return parse_time_to_minutes(value) % 60


def is_valid_time(value: Any) -> bool:
    return to_minutes(value) is not None


def compare_times(first: Any, second: Any) -> int:
    """Negative if first is earlier, positive if later, 0 if equal."""
    return parse_time_to_minutes(first) - parse_time_to_minutes(second)


def _display_parts(value: Any):
    minutes = to_minutes(value)
    if minutes is None:
        return None
    hours, mins = divmod(minutes, 60)
    display_hour = 12 if hours == 0 else hours - 12 if hours > 12 else hours
    return display_hour, mins, hours >= 12


def format_time_short(value: Any) -> str:
    """Compact grid label, e.g. "9:30a" or "2:00p"."""
    parts = _display_parts(value)
    if parts is None:
        return ""
    hour, mins, is_pm = parts
    return f"{hour}:{mins:02d}{'p' if is_pm else 'a'}"


def format_time_display(value: Any) -> str:
    """Full label, e.g. "9:30 AM"."""
    parts = _display_parts(value)
    if parts is None:
        return ""
    hour, mins, is_pm = parts
    return f"{hour}:{mins:02d} {'PM' if is_pm else 'AM'}"


def format_time_label(value: Any) -> str:
    """Report label that drops ":00", e.g. "9am" or "12:30pm"."""
    parts = _display_parts(value)
    if parts is None:
        return ""
    hour, mins, is_pm = parts
    suffix = "pm" if is_pm else "am"
    if mins == 0:
        return f"{hour}{suffix}"
    return f"{hour}:{mins:02d}{suffix}"


def parse_date(value: Any) -> date | None:
    """Parses ISO (YYYY-MM-DD) or US (MM/DD/YYYY) dates; None if invalid."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None

    trimmed = value.strip()
    match = _US_DATE.match(trimmed)
    if match:
        month, day, year = (int(g) for g in match.groups())
        try:
            return date(year, month, day)
        except ValueError:
            return None

    try:
        return date.fromisoformat(trimmed[:10])
    except ValueError:
        return None
