"""Side-by-side column layout for bookings that share a court and time.

Overlapping bookings on one court are split into overlap groups (connected
components of the "overlaps" relation, so A-B and B-C chain A, B and C into one
group). Each group is as wide as its peak number of simultaneous bookings, and
every booking is placed in the lowest column not taken by an earlier booking it
overlaps. Bookings are ordered by (start, id), which keeps the layout stable
across renders.
"""

import logging
from collections import defaultdict
from datetime import date, timedelta
from typing import Any, Collection, Dict, List, Sequence, Tuple

from court_scheduler.conflicts import ACTIVE_ONLY, bookings_for
from court_scheduler.models import Booking, BookingStatus, ColumnAssignment
from court_scheduler.overlap import intervals_overlap, max_concurrent
from court_scheduler.timeutils import parse_date

logger = logging.getLogger(__name__)


def _layout_order(booking: Booking) -> Tuple[int, str]:
    return booking.start, booking.id


def overlap_groups(bookings: Sequence[Booking]) -> List[List[Booking]]:
    """Connected overlap components, per court and date, each sorted by (start, id)."""
    by_court_day: Dict[Tuple[int, date], List[Booking]] = defaultdict(list)
    for booking in bookings:
        by_court_day[(booking.court, booking.date)].append(booking)

    groups: List[List[Booking]] = []
    for key in sorted(by_court_day):
        current: List[Booking] = []
        current_end = 0
        for booking in sorted(by_court_day[key], key=_layout_order):
            if booking.is_degenerate:
                groups.append([booking])
                continue
            if current and booking.start < current_end:
                current.append(booking)
                current_end = max(current_end, booking.end)
            else:
                if current:
                    groups.append(current)
                current = [booking]
                current_end = booking.end
        if current:
            groups.append(current)
    return groups


def column_count(group: Sequence[Booking]) -> int:
    """Peak number of simultaneously active bookings in the group (at least 1)."""
    return max(1, max_concurrent((b.start, b.end) for b in group))


def _assign_group(group: Sequence[Booking]) -> Dict[str, ColumnAssignment]:
    count = column_count(group)
    columns: Dict[str, int] = {}
    placed: List[Booking] = []
    for booking in group:
        used = {columns[other.id] for other in placed if intervals_overlap(booking, other)}
        column = 0
        while column in used:
            column += 1
        columns[booking.id] = column
        placed.append(booking)
    return {booking_id: ColumnAssignment(column_index=col, column_count=count) for booking_id, col in columns.items()}


def assign_columns(
    bookings: Sequence[Booking], statuses: Collection[BookingStatus] = ACTIVE_ONLY
) -> Dict[str, ColumnAssignment]:
    """Maps booking id to its column placement.

    Bookings are laid out independently per court and date. Cancelled bookings
    never take a column, even if `statuses` lists them. When two bookings share
    an id only the first one is laid out.
    """
    eligible: List[Booking] = []
    seen_ids = set()
    for booking in bookings:
        if booking.status not in statuses or booking.status == BookingStatus.CANCELLED:
            continue
        if booking.id in seen_ids:
            logger.warning(f"Duplicate booking id {booking.id} on court {booking.court} ({booking.date}), skipping")
            continue
        seen_ids.add(booking.id)
        eligible.append(booking)

    assignments: Dict[str, ColumnAssignment] = {}
    for group in overlap_groups(eligible):
        assignments.update(_assign_group(group))
        if len(group) > 1:
            logger.debug(
                f"Overlap group on court {group[0].court} ({group[0].date}): "
                f"{[b.id for b in group]} across {column_count(group)} column(s)"
            )
    return assignments


def column_for(assignments: Dict[str, ColumnAssignment], booking_id: str) -> ColumnAssignment:
    """Placement for a booking, defaulting to a single full-width column."""
    return assignments.get(booking_id, ColumnAssignment())


def day_columns(bookings: Sequence[Booking], day: Any) -> Dict[str, ColumnAssignment]:
    """Column layout for every court on one date (the daily grid)."""
    return assign_columns(bookings_for(bookings, day))


def week_dates(day: Any) -> List[date]:
    """Monday through Sunday of the week containing `day`."""
    target = parse_date(day)
    if target is None:
        return []
    monday = target - timedelta(days=target.weekday())
    return [monday + timedelta(days=i) for i in range(7)]


def week_columns(bookings: Sequence[Booking], court: int, week_start: Any) -> Dict[str, ColumnAssignment]:
    """Column layout for one court across the week containing `week_start`."""
    week = []
    for day in week_dates(week_start):
        week.extend(bookings_for(bookings, day, court))
    return assign_columns(week)
