import pytest

from court_scheduler import slots
from court_scheduler.models import Period
from court_scheduler.slots import PeriodConfigError


def test_default_day_starts_with_partial_slot():
    day = slots.generate_time_slots("08:30", "21:00", 60)
    assert len(day) == 13
    assert (day[0].start, day[0].end) == (510, 540)
    assert (day[1].start, day[1].end) == (540, 600)
    assert (day[-1].start, day[-1].end) == (1200, 1260)
    assert [s.time for s in day[:3]] == ["08:30", "09:00", "10:00"]
    assert day[0].label == "8:30am"


def test_slots_are_strictly_increasing_and_contiguous():
    day = slots.generate_time_slots("08:30", "21:00", 30)
    assert len(day) == 25
    for previous, current in zip(day, day[1:]):
        assert previous.start < current.start
        assert previous.end == current.start


def test_unaligned_day_end_gets_partial_last_slot():
    day = slots.generate_time_slots("08:00", "20:45", 60)
    assert (day[-1].start, day[-1].end) == (1200, 1245)


@pytest.mark.parametrize(
    "start, end, width",
    [("21:00", "08:30", 60), ("09:00", "09:00", 60), ("08:30", "21:00", 0), ("bogus", "21:00", 60)],
)
def test_invalid_day_config_raises(start, end, width):
    with pytest.raises(PeriodConfigError):
        slots.generate_time_slots(start, end, width)


def test_default_periods_partition_the_day():
    day = slots.generate_time_slots()
    periods = slots.default_periods()
    slots.validate_periods(day, periods)

    grouped = slots.slots_by_period(day, periods)
    assert {key: len(group) for key, group in grouped.items()} == {"MORNING": 4, "AFTERNOON": 5, "PRIME": 4}
    assert sum(len(group) for group in grouped.values()) == len(day)


def _periods(*bounds):
    return [Period(key=f"P{i}", label=f"P{i}", start=s, end=e) for i, (s, e) in enumerate(bounds)]


def test_gap_between_periods_is_rejected():
    day = slots.generate_time_slots("08:00", "12:00", 60)
    with pytest.raises(PeriodConfigError):
        slots.validate_periods(day, _periods(("08:00", "10:00"), ("10:30", "12:00")))


def test_periods_must_cover_whole_day():
    day = slots.generate_time_slots("08:00", "12:00", 60)
    with pytest.raises(PeriodConfigError):
        slots.validate_periods(day, _periods(("09:00", "10:00"), ("10:00", "12:00")))
    with pytest.raises(PeriodConfigError):
        slots.validate_periods(day, _periods(("08:00", "10:00"), ("10:00", "11:00")))


def test_period_boundary_inside_slot_is_rejected():
    day = slots.generate_time_slots("08:00", "12:00", 60)
    with pytest.raises(PeriodConfigError):
        slots.validate_periods(day, _periods(("08:00", "09:30"), ("09:30", "12:00")))


def test_period_for_slot():
    day = slots.generate_time_slots()
    periods = slots.default_periods()
    assert slots.period_for_slot(day[0], periods).key == "MORNING"
    assert slots.period_for_slot(day[4], periods).key == "AFTERNOON"
    assert slots.period_for_slot(day[-1], periods).key == "PRIME"

    with pytest.raises(PeriodConfigError):
        slots.period_for_slot(day[0], periods[1:])


def test_end_time_options():
    day = slots.generate_time_slots("08:30", "21:00", 60)
    assert slots.end_time_options("20:00", day) == ["21:00"]
    assert slots.end_time_options("18:00", day) == ["19:00", "20:00", "21:00"]
    assert slots.end_time_options("10:15", day) == []
    assert slots.end_time_options("nope", day) == []
