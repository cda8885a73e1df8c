import logging
from collections import defaultdict
from datetime import date
from typing import Any, Collection, Dict, List, Sequence, Tuple

from court_scheduler.models import Booking, BookingStatus, Closure, ClosureStatus, DataQualityIssue
from court_scheduler.overlap import overlaps
from court_scheduler.timeutils import parse_date, to_minutes

logger = logging.getLogger(__name__)

ACTIVE_ONLY: Tuple[BookingStatus, ...] = (BookingStatus.ACTIVE,)
NOT_CANCELLED: Tuple[BookingStatus, ...] = (
    BookingStatus.ACTIVE,
    BookingStatus.COMPLETED,
    BookingStatus.NO_SHOW,
)

INVALID_REQUEST_REASON = "Invalid date or time"


def _as_date(value: Any) -> date | None:
    parsed = parse_date(value)
    if parsed is None:
        logger.warning(f"Unparseable date {value!r}")
    return parsed


def bookings_for(
    bookings: Sequence[Booking],
    day: Any,
    court: int | None = None,
    statuses: Collection[BookingStatus] = ACTIVE_ONLY,
    exclude_id: str | None = None,
) -> List[Booking]:
    """Bookings on a date (and optionally one court) whose status is in `statuses`."""
    target = _as_date(day)
    if target is None:
        return []
    return [
        b
        for b in bookings
        if b.date == target
        and (court is None or b.court == court)
        and b.status in statuses
        and (exclude_id is None or b.id != exclude_id)
    ]


class InvalidIntervalError(ValueError):
    """A proposed date or interval cannot be checked: unparseable, or start >= end."""


def _proposed_date(day: Any) -> date:
    target = parse_date(day)
    if target is None:
        raise InvalidIntervalError(f"Cannot check unparseable date {day!r}")
    return target


def _proposed_interval(start: Any, end: Any) -> tuple[int, int]:
    start_minutes = to_minutes(start)
    end_minutes = to_minutes(end)
    if start_minutes is None or end_minutes is None:
        raise InvalidIntervalError(f"Cannot check interval with unparseable times: start={start!r}, end={end!r}")
    if start_minutes >= end_minutes:
        raise InvalidIntervalError(f"Cannot check empty interval {start!r}-{end!r}")
    return start_minutes, end_minutes


def get_conflicts(
    bookings: Sequence[Booking],
    day: Any,
    court: int,
    start: Any,
    end: Any,
    exclude_id: str | None = None,
) -> List[Booking]:
    """Active bookings on the same court and date that overlap [start, end).

    `exclude_id` skips the booking being edited so it does not conflict with itself.
    Raises InvalidIntervalError when the date or interval cannot be determined,
    so that bad input is never mistaken for "no conflicts".
    """
    target = _proposed_date(day)
    start_minutes, end_minutes = _proposed_interval(start, end)
    candidates = bookings_for(bookings, target, court, exclude_id=exclude_id)
    conflicts = [b for b in candidates if overlaps(start_minutes, end_minutes, b.start, b.end)]
    conflicts.sort(key=lambda b: (b.start, b.id))
    logger.debug(f"Court {court} on {target} {start}-{end}: {len(conflicts)} conflict(s)")
    return conflicts


def is_slot_available(
    bookings: Sequence[Booking],
    day: Any,
    court: int,
    start: Any,
    end: Any,
    exclude_id: str | None = None,
) -> bool:
    """True iff no active booking on the court/date overlaps [start, end).

    An interval that cannot be determined (unparseable or empty) is reported as
    unavailable so that it is never booked by accident.
    """
    try:
        return not get_conflicts(bookings, day, court, start, end, exclude_id)
    except InvalidIntervalError as e:
        logger.warning(f"{e}; reporting court {court} as unavailable")
        return False


def closures_for_date(closures: Sequence[Closure], day: Any) -> List[Closure]:
    target = _as_date(day)
    if target is None:
        return []
    return [c for c in closures if c.is_active and c.date == target]


def _closures_for(closures: Sequence[Closure], day: Any, court: int) -> List[Closure]:
    return [c for c in closures_for_date(closures, day) if c.applies_to(court)]


def is_slot_closed(closures: Sequence[Closure], day: Any, court: int, time: Any) -> ClosureStatus:
    """Whether `time` falls inside an active closure for the court (or all courts).

    A time or date that cannot be parsed reports the slot as closed.
    """
    minutes = to_minutes(time)
    if minutes is None or parse_date(day) is None:
        logger.warning(f"Cannot check closure for time {time!r} on {day!r}; reporting court {court} as closed")
        return ClosureStatus(is_closed=True, reason=INVALID_REQUEST_REASON)
    for closure in _closures_for(closures, day, court):
        if closure.start <= minutes < closure.end:
            return ClosureStatus(is_closed=True, reason=closure.reason or "Closed")
    return ClosureStatus(is_closed=False)


def get_closure_conflicts(
    closures: Sequence[Closure], day: Any, court: int, start: Any, end: Any
) -> List[Closure]:
    """All active closures for the court that overlap the proposed [start, end).

    Raises InvalidIntervalError when the date or interval cannot be determined.
    """
    target = _proposed_date(day)
    start_minutes, end_minutes = _proposed_interval(start, end)
    return [
        c for c in _closures_for(closures, target, court) if overlaps(start_minutes, end_minutes, c.start, c.end)
    ]


def is_range_closed(closures: Sequence[Closure], day: Any, court: int, start: Any, end: Any) -> ClosureStatus:
    """Like is_slot_closed, but for any overlap with a whole proposed interval."""
    try:
        conflicting = get_closure_conflicts(closures, day, court, start, end)
    except InvalidIntervalError as e:
        logger.warning(f"{e}; reporting court {court} as closed")
        return ClosureStatus(is_closed=True, reason=INVALID_REQUEST_REASON)
    if conflicting:
        return ClosureStatus(is_closed=True, reason=conflicting[0].reason or "Closed")
    return ClosureStatus(is_closed=False)


def find_data_quality_issues(bookings: Sequence[Booking]) -> List[DataQualityIssue]:
    """Finds empty intervals and overlapping active bookings on the same court."""
    issues: List[DataQualityIssue] = []

    for booking in bookings:
        if booking.status != BookingStatus.CANCELLED and booking.is_degenerate:
            issues.append(
                DataQualityIssue(
                    kind="degenerate_interval",
                    booking_ids=[booking.id],
                    message=(
                        f"Booking {booking.id} on court {booking.court} ({booking.date}) "
                        f"has start {booking.time_start} not before end {booking.time_end}"
                    ),
                )
            )

    by_court_day: Dict[Tuple[int, date], List[Booking]] = defaultdict(list)
    for booking in bookings:
        if booking.status == BookingStatus.ACTIVE:
            by_court_day[(booking.court, booking.date)].append(booking)

    for (court, day), day_bookings in sorted(by_court_day.items()):
        day_bookings.sort(key=lambda b: (b.start, b.id))
        for i, first in enumerate(day_bookings):
            for second in day_bookings[i + 1:]:
                if second.start >= first.end:
                    break
                if overlaps(first.start, first.end, second.start, second.end):
                    issues.append(
                        DataQualityIssue(
                            kind="double_booking",
                            booking_ids=[first.id, second.id],
                            message=(
                                f"Court {court} on {day}: {first.id} ({first.time_start}-{first.time_end}) "
                                f"overlaps {second.id} ({second.time_start}-{second.time_end})"
                            ),
                        )
                    )

    return issues
