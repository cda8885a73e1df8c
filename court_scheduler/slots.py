import logging
from typing import Any, Dict, List, Sequence

from court_scheduler import config
from court_scheduler.models import Period, TimeSlot
from court_scheduler.timeutils import minutes_to_time, to_minutes

logger = logging.getLogger(__name__)


class PeriodConfigError(ValueError):
    """Slot or period configuration does not describe a clean partition of the day."""


def _config_minutes(value: Any, name: str) -> int:
    minutes = to_minutes(value)
    if minutes is None:
        raise PeriodConfigError(f"Invalid {name}: {value!r}")
    return minutes


def generate_time_slots(
    day_start: Any = None, day_end: Any = None, slot_minutes: int | None = None
) -> List[TimeSlot]:
    """Generates the ordered slot sequence for the operating day.

    Slot boundaries fall on multiples of `slot_minutes` from midnight, so a day
    that opens at 08:30 with hourly slots starts with a partial 08:30-09:00 slot
    and continues 09:00-10:00, 10:00-11:00, ... until `day_end`.
    """
    start = _config_minutes(config.DAY_START if day_start is None else day_start, "day start")
    end = _config_minutes(config.DAY_END if day_end is None else day_end, "day end")
    width = config.SLOT_MINUTES if slot_minutes is None else slot_minutes

    if width <= 0:
        raise PeriodConfigError(f"Slot width must be positive, got {width}")
    if start >= end:
        raise PeriodConfigError(f"Day start {minutes_to_time(start)} is not before day end {minutes_to_time(end)}")

    slots = []
    current = start
    while current < end:
        boundary = (current // width + 1) * width
        slot_end = min(boundary, end)
        slots.append(TimeSlot(start=current, end=slot_end))
        current = slot_end

    logger.debug(f"Generated {len(slots)} slots: {[s.time for s in slots]}")
    return slots


def default_periods() -> List[Period]:
    """Morning/Afternoon/Prime windows as configured."""
    return [Period(key=key, label=label, start=start, end=end) for key, label, start, end in config.PERIODS]


def period_for_slot(slot: TimeSlot, periods: Sequence[Period]) -> Period:
    for period in periods:
        if period.start <= slot.start < period.end:
            if slot.end > period.end:
                raise PeriodConfigError(
                    f"Slot {slot.time}-{minutes_to_time(slot.end)} straddles the end of {period.key}"
                )
            return period
    raise PeriodConfigError(f"Slot {slot.time} is not covered by any period")


def validate_periods(slots: Sequence[TimeSlot], periods: Sequence[Period]) -> None:
    """Checks that the periods tile the slot sequence exactly.

    Periods must be non-empty, contiguous and ordered, start at the first slot,
    end at the last slot, and every slot must land in exactly one of them.
    Raises PeriodConfigError otherwise.
    """
    if not slots:
        raise PeriodConfigError("No slots configured")
    if not periods:
        raise PeriodConfigError("No periods configured")

    for previous, current in zip(slots, slots[1:]):
        if current.start != previous.end:
            raise PeriodConfigError(f"Slot sequence is not contiguous at {current.time}")

    for period in periods:
        if period.start >= period.end:
            raise PeriodConfigError(f"Period {period.key} is empty")

    for previous, current in zip(periods, periods[1:]):
        if current.start != previous.end:
            raise PeriodConfigError(
                f"Periods {previous.key} and {current.key} leave a gap or overlap at {minutes_to_time(previous.end)}"
            )

    if periods[0].start != slots[0].start or periods[-1].end != slots[-1].end:
        raise PeriodConfigError(
            f"Periods cover {minutes_to_time(periods[0].start)}-{minutes_to_time(periods[-1].end)} "
            f"but the day runs {slots[0].time}-{minutes_to_time(slots[-1].end)}"
        )

    for slot in slots:
        period_for_slot(slot, periods)


def slots_by_period(slots: Sequence[TimeSlot], periods: Sequence[Period]) -> Dict[str, List[TimeSlot]]:
    """Groups the slot sequence by period key, preserving period order."""
    grouped: Dict[str, List[TimeSlot]] = {p.key: [] for p in periods}
    for slot in slots:
        grouped[period_for_slot(slot, periods).key].append(slot)
    return grouped


def end_time_options(start_time: Any, slots: Sequence[TimeSlot]) -> List[str]:
    """Valid end times for a booking starting at `start_time`: later slot starts plus day end."""
    start = to_minutes(start_time)
    if start is None or not any(s.start == start for s in slots):
        return []
    options = [s.time for s in slots if s.start > start]
    day_end = minutes_to_time(slots[-1].end)
    if day_end not in options:
        options.append(day_end)
    return options
