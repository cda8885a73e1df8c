"""Half-open interval primitives shared by every scheduling computation."""

from typing import Any, Iterable, Tuple

from court_scheduler.timeutils import parse_time_to_minutes


def overlaps(start1: int, end1: int, start2: int, end2: int) -> bool:
    """True if [start1, end1) and [start2, end2) share at least one instant.

    Adjacent intervals (one ends when the other starts) do not overlap, and an
    empty interval (start >= end) overlaps nothing.
    """
    if start1 >= end1 or start2 >= end2:
        return False
    return start1 < end2 and start2 < end1


def intervals_overlap(first: Any, second: Any) -> bool:
    """overlaps() for any two objects with start/end minute attributes."""
    return overlaps(first.start, first.end, second.start, second.end)


def time_ranges_overlap(start1: Any, end1: Any, start2: Any, end2: Any) -> bool:
    """overlaps() for raw time values in any representation the normalizer accepts."""
    return overlaps(
        parse_time_to_minutes(start1),
        parse_time_to_minutes(end1),
        parse_time_to_minutes(start2),
        parse_time_to_minutes(end2),
    )


def clip(start: int, end: int, window_start: int, window_end: int) -> int:
    """Minutes of [start, end) that fall inside [window_start, window_end)."""
    if not overlaps(start, end, window_start, window_end):
        return 0
    return min(end, window_end) - max(start, window_start)


def max_concurrent(intervals: Iterable[Tuple[int, int]]) -> int:
    """Largest number of intervals active at any single instant."""
    events = []
    for start, end in intervals:
        if start >= end:
            continue
        events.append((start, 1))
        events.append((end, -1))

    # At equal instants the -1 sorts first: an interval ending at t frees its
    # place before one starting at t takes it.
    events.sort()
    active = 0
    peak = 0
    for _, delta in events:
        active += delta
        peak = max(peak, active)
    return peak
