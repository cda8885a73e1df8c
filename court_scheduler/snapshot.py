import csv
import logging
import os
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Dict, List, Tuple

from pydantic import ValidationError

from court_scheduler import config
from court_scheduler.models import Booking, Closure

logger = logging.getLogger(__name__)

CsvRow = Dict[str, str]


@dataclass(frozen=True)
class Snapshot:
    """Immutable view of the bookings and closures a computation runs against.

    A refresh builds a new Snapshot instead of mutating the current one.
    """

    bookings: Tuple[Booking, ...] = ()
    closures: Tuple[Closure, ...] = ()
    loaded_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def replace(self, bookings=None, closures=None) -> "Snapshot":
        return replace(
            self,
            bookings=self.bookings if bookings is None else tuple(bookings),
            closures=self.closures if closures is None else tuple(closures),
            loaded_at=datetime.now(timezone.utc),
        )


def _normalize_header(header: str) -> str:
    return "_".join(header.strip().lower().split())


def read_csv_rows(path: str) -> List[CsvRow]:
    """Reads a CSV export into dicts keyed by snake_case header names."""
    if not os.path.exists(path):
        logger.warning(f"No CSV file found at {path}.")
        return []
    try:
        with open(path, "r", newline="", encoding="utf-8-sig") as f:
            reader = csv.reader(f)
            rows = list(reader)
    except (OSError, csv.Error) as e:
        logger.error(f"Failed to read {path}: {e}")
        return []

    if not rows:
        return []

    headers = [_normalize_header(h) for h in rows[0]]
    parsed = []
    for values in rows[1:]:
        if not any(v.strip() for v in values):
            continue
        parsed.append({h: (values[i].strip() if i < len(values) else "") for i, h in enumerate(headers)})
    logger.debug(f"Read {len(parsed)} rows from {path}")
    return parsed


def parse_booking_row(row: CsvRow) -> Booking | None:
    """Parses a single bookings-sheet row; invalid rows are logged and skipped."""
    booking_id = row.get("booking_id") or row.get("id")
    if not booking_id:
        logger.debug(f"Skipping booking row without id: {row}")
        return None

    try:
        return Booking(
            id=booking_id,
            court=row.get("court", ""),
            date=row.get("date", ""),
            start=row.get("time_start", ""),
            end=row.get("time_end", ""),
            status=row.get("status") or "active",
            booking_type=row.get("booking_type") or None,
            customer_name=row.get("customer_name") or None,
        )
    except ValidationError as e:
        logger.warning(f"Skipping invalid booking {booking_id}: {e.error_count()} error(s): {e.errors()[0]['msg']}")
        return None


def _is_active_flag(value: str) -> bool:
    return value.strip().upper() in ("", "TRUE", "YES", "1")


def parse_closure_row(row: CsvRow) -> Closure | None:
    """Parses a closures-sheet row. Inactive closures are dropped here."""
    if not _is_active_flag(row.get("is_active", "")):
        logger.debug(f"Skipping inactive closure: {row}")
        return None

    try:
        return Closure(
            court=row.get("court", ""),
            date=row.get("date", ""),
            start=row.get("time_start") or config.DEFAULT_CLOSURE_START,
            end=row.get("time_end") or config.DEFAULT_CLOSURE_END,
            reason=row.get("reason", ""),
        )
    except ValidationError as e:
        logger.warning(f"Skipping invalid closure row {row}: {e.errors()[0]['msg']}")
        return None


def load_bookings(path: str) -> List[Booking]:
    bookings = [b for b in (parse_booking_row(row) for row in read_csv_rows(path)) if b]
    logger.info(f"Loaded {len(bookings)} bookings from {path}")
    return bookings


def load_closures(path: str) -> List[Closure]:
    closures = [c for c in (parse_closure_row(row) for row in read_csv_rows(path)) if c]
    logger.info(f"Loaded {len(closures)} active closures from {path}")
    return closures


def load_snapshot(bookings_path: str, closures_path: str | None = None) -> Snapshot:
    """Builds a fresh Snapshot from local CSV exports."""
    bookings = load_bookings(bookings_path)
    closures = load_closures(closures_path) if closures_path else []
    return Snapshot(bookings=tuple(bookings), closures=tuple(closures))
