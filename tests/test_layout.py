import random
from datetime import date

from court_scheduler import layout
from court_scheduler.models import Booking, ColumnAssignment
from court_scheduler.overlap import intervals_overlap

DAY = date(2026, 1, 15)


def _booking(booking_id, start, end, court=5, day=DAY, status="active"):
    return Booking(id=booking_id, court=court, date=day, start=start, end=end, status=status)


def _chain_merge_groups(bookings):
    """Reference grouping: keep merging buckets with any overlapping pair until stable."""
    buckets = [[b] for b in bookings]
    merged = True
    while merged:
        merged = False
        for i in range(len(buckets)):
            for j in range(i + 1, len(buckets)):
                if any(
                    a.court == b.court and a.date == b.date and intervals_overlap(a, b)
                    for a in buckets[i]
                    for b in buckets[j]
                ):
                    buckets[i].extend(buckets.pop(j))
                    merged = True
                    break
            if merged:
                break
    return {frozenset(b.id for b in bucket) for bucket in buckets}


def _peak(group):
    """Most bookings active at any instant, probing every start point."""
    return max(sum(1 for b in group if b.start <= t < b.end) for t in (g.start for g in group))


def _random_bookings(rng, count):
    bookings = []
    for i in range(count):
        start = rng.randrange(480, 1200, 15)
        duration = rng.choice([15, 30, 60, 90, 120])
        bookings.append(_booking(f"R{i:02d}", start, start + duration, court=rng.choice([1, 2])))
    return bookings


def test_chained_overlaps_share_one_group():
    a = _booking("A", "09:00", "10:00")
    b = _booking("B", "09:30", "10:30")
    c = _booking("C", "10:15", "11:00")

    groups = layout.overlap_groups([c, a, b])
    assert [[x.id for x in g] for g in groups] == [["A", "B", "C"]]

    columns = layout.assign_columns([a, b, c])
    assert columns == {
        "A": ColumnAssignment(column_index=0, column_count=2),
        "B": ColumnAssignment(column_index=1, column_count=2),
        "C": ColumnAssignment(column_index=0, column_count=2),
    }


def test_non_overlapping_bookings_each_take_full_width():
    bookings = [_booking("A", "09:00", "10:00"), _booking("B", "10:00", "11:00"), _booking("C", "13:00", "14:00")]
    columns = layout.assign_columns(bookings)
    assert all(c == ColumnAssignment(column_index=0, column_count=1) for c in columns.values())
    assert len(layout.overlap_groups(bookings)) == 3


def test_long_booking_spanning_short_ones_uses_two_columns():
    # Each short booking overlaps the long one, but never each other
    bookings = [
        _booking("LONG", "09:00", "12:00"),
        _booking("S1", "09:00", "10:00"),
        _booking("S2", "10:00", "11:00"),
        _booking("S3", "11:00", "12:00"),
    ]
    columns = layout.assign_columns(bookings)
    assert {c.column_count for c in columns.values()} == {2}
    assert columns["LONG"].column_index == 0
    assert [columns[k].column_index for k in ("S1", "S2", "S3")] == [1, 1, 1]


def test_ties_break_by_id():
    columns = layout.assign_columns([_booking("b", "09:00", "10:00"), _booking("a", "09:00", "10:00")])
    assert columns["a"].column_index == 0
    assert columns["b"].column_index == 1
    assert columns["a"].column_count == 2


def test_courts_and_dates_are_laid_out_independently():
    bookings = [
        _booking("A", "09:00", "10:00", court=1),
        _booking("B", "09:00", "10:00", court=2),
        _booking("C", "09:00", "10:00", court=1, day=date(2026, 1, 16)),
    ]
    columns = layout.assign_columns(bookings)
    assert all(c == ColumnAssignment() for c in columns.values())


def test_cancelled_and_non_active_bookings_are_skipped():
    bookings = [
        _booking("A", "09:00", "10:00"),
        _booking("X", "09:00", "10:00", status="cancelled"),
        _booking("Y", "09:00", "10:00", status="completed"),
    ]
    columns = layout.assign_columns(bookings)
    assert set(columns) == {"A"}
    assert columns["A"] == ColumnAssignment()


def test_historical_statuses_can_be_included():
    from court_scheduler.conflicts import NOT_CANCELLED

    bookings = [
        _booking("A", "09:00", "10:00", status="completed"),
        _booking("B", "09:30", "10:30", status="no_show"),
        _booking("X", "09:00", "10:00", status="cancelled"),
    ]
    columns = layout.assign_columns(bookings, statuses=NOT_CANCELLED + ("cancelled",))
    assert set(columns) == {"A", "B"}
    assert columns["B"].column_index == 1


def test_degenerate_booking_gets_its_own_column():
    bookings = [_booking("A", "09:00", "11:00"), _booking("Z", "10:00", "10:00")]
    columns = layout.assign_columns(bookings)
    assert columns["A"] == ColumnAssignment()
    assert columns["Z"] == ColumnAssignment()


def test_column_for_defaults_to_single_column():
    assert layout.column_for({}, "missing") == ColumnAssignment(column_index=0, column_count=1)


def test_random_layouts_are_valid_and_minimal():
    rng = random.Random(20260115)
    for _ in range(60):
        bookings = _random_bookings(rng, rng.randint(1, 14))
        columns = layout.assign_columns(bookings)
        groups = layout.overlap_groups(bookings)

        assert {frozenset(b.id for b in g) for g in groups} == _chain_merge_groups(bookings)
        assert set(columns) == {b.id for b in bookings}

        for group in groups:
            count = columns[group[0].id].column_count
            assert count == _peak(group)
            for booking in group:
                assert columns[booking.id].column_count == count
                assert 0 <= columns[booking.id].column_index < count
            for i, first in enumerate(group):
                for second in group[i + 1:]:
                    if intervals_overlap(first, second):
                        assert columns[first.id].column_index != columns[second.id].column_index


def test_layout_is_deterministic_regardless_of_input_order():
    rng = random.Random(7)
    bookings = _random_bookings(rng, 12)
    shuffled = list(bookings)
    rng.shuffle(shuffled)
    assert layout.assign_columns(bookings) == layout.assign_columns(shuffled)


def test_day_columns_filters_by_date():
    bookings = [_booking("A", "09:00", "10:00"), _booking("B", "09:00", "10:00", day=date(2026, 1, 16))]
    assert set(layout.day_columns(bookings, "2026-01-15")) == {"A"}


def test_week_dates_starts_on_monday():
    week = layout.week_dates("2026-01-15")  # a Thursday
    assert week[0] == date(2026, 1, 12)
    assert week[-1] == date(2026, 1, 18)
    assert layout.week_dates("nonsense") == []


def test_week_columns_scopes_overlaps_per_date():
    bookings = [
        _booking("MON", "09:00", "10:00", day=date(2026, 1, 12)),
        _booking("TUE1", "09:00", "10:00", day=date(2026, 1, 13)),
        _booking("TUE2", "09:30", "10:30", day=date(2026, 1, 13)),
        _booking("OTHER", "09:00", "10:00", court=6, day=date(2026, 1, 13)),
        _booking("NEXT", "09:00", "10:00", day=date(2026, 1, 19)),
    ]
    columns = layout.week_columns(bookings, 5, date(2026, 1, 14))
    assert set(columns) == {"MON", "TUE1", "TUE2"}
    assert columns["MON"] == ColumnAssignment()
    assert columns["TUE2"] == ColumnAssignment(column_index=1, column_count=2)


def test_duplicate_ids_are_laid_out_once(caplog):
    bookings = [_booking("A", "09:00", "10:00"), _booking("A", "09:30", "10:30"), _booking("B", "09:30", "10:30")]

    columns = layout.assign_columns(bookings)

    assert set(columns) == {"A", "B"}
    assert columns["A"] == ColumnAssignment(column_index=0, column_count=2)
    assert columns["B"] == ColumnAssignment(column_index=1, column_count=2)
    assert "Duplicate booking id A" in caplog.text
