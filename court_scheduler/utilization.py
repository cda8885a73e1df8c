import logging
import math
from datetime import date, timedelta
from typing import Any, Dict, List, Sequence, Tuple

from court_scheduler import config
from court_scheduler.conflicts import NOT_CANCELLED, bookings_for, closures_for_date
from court_scheduler.models import (
    AvailabilityGrid,
    Booking,
    BookingEfficiency,
    BookingStatus,
    BookingTypeBreakdown,
    BookingTypeHours,
    Closure,
    CourtSlotState,
    CustomerHours,
    DailyUtilization,
    GridRow,
    Period,
    PeriodUtilization,
    TimeSlot,
)
from court_scheduler.overlap import clip, overlaps
from court_scheduler.slots import default_periods, generate_time_slots, period_for_slot, validate_periods
from court_scheduler.timeutils import parse_date

logger = logging.getLogger(__name__)


def calculate_utilization(booked: float, total: float) -> int:
    """Percentage of `total` that is booked, rounded half-up; 0 when total is 0."""
    if total <= 0:
        return 0
    return int(math.floor(booked / total * 100 + 0.5))


def _resolve(slots, periods, courts):
    slots = list(slots) if slots is not None else generate_time_slots()
    periods = list(periods) if periods is not None else default_periods()
    courts = list(courts) if courts is not None else list(config.COURT_IDS)
    validate_periods(slots, periods)
    return slots, periods, courts


def _require_date(value: Any) -> date:
    parsed = parse_date(value)
    if parsed is None:
        raise ValueError(f"Invalid date: {value!r}")
    return parsed


def _date_range(start_date: Any, end_date: Any) -> List[date]:
    start = _require_date(start_date)
    end = _require_date(end_date)
    return [start + timedelta(days=i) for i in range((end - start).days + 1)]


def _classify(slot: TimeSlot, court: int, day_bookings: List[Booking], day_closures: List[Closure]) -> str:
    if any(c.applies_to(court) and overlaps(slot.start, slot.end, c.start, c.end) for c in day_closures):
        return "closed"
    if any(b.court == court and overlaps(slot.start, slot.end, b.start, b.end) for b in day_bookings):
        return "booked"
    return "available"


def get_availability_grid(
    bookings: Sequence[Booking],
    closures: Sequence[Closure],
    day: Any,
    slots: Sequence[TimeSlot] | None = None,
    periods: Sequence[Period] | None = None,
    courts: Sequence[int] | None = None,
) -> AvailabilityGrid:
    """Classifies every court/slot on a date as closed, booked or available.

    Closures take precedence over bookings. Every non-cancelled booking counts
    as booked, so completed and no-show reservations still show as used time.
    """
    slots, periods, courts = _resolve(slots, periods, courts)
    target = _require_date(day)
    day_bookings = bookings_for(bookings, target, statuses=NOT_CANCELLED)
    day_closures = closures_for_date(closures, target)

    closed_count = 0
    rows = []
    for slot in slots:
        states = []
        for court in courts:
            state = _classify(slot, court, day_bookings, day_closures)
            if state == "closed":
                closed_count += 1
            states.append(CourtSlotState(court=court, state=state))
        rows.append(
            GridRow(
                time=slot.time,
                label=slot.label,
                period=period_for_slot(slot, periods).key,
                minutes=slot.minutes,
                courts=states,
            )
        )

    logger.debug(f"Availability grid for {target}: {len(rows)} slots x {len(courts)} courts, {closed_count} closed")
    return AvailabilityGrid(date=target, rows=rows, closed_count=closed_count)


def _tally(label: str, cells: List[Tuple[str, int]]) -> PeriodUtilization:
    """Counts (state, slot minutes) pairs; the percentage is weighted by minutes."""
    booked = [minutes for state, minutes in cells if state == "booked"]
    available = [minutes for state, minutes in cells if state == "available"]
    booked_minutes = sum(booked)
    available_minutes = sum(available)
    return PeriodUtilization(
        label=label,
        booked=len(booked),
        available=len(available),
        closed=sum(1 for state, _ in cells if state == "closed"),
        total=len(booked) + len(available),
        booked_minutes=booked_minutes,
        available_minutes=available_minutes,
        utilization=calculate_utilization(booked_minutes, booked_minutes + available_minutes),
    )


def get_daily_utilization(
    bookings: Sequence[Booking],
    closures: Sequence[Closure],
    day: Any,
    slots: Sequence[TimeSlot] | None = None,
    periods: Sequence[Period] | None = None,
    courts: Sequence[int] | None = None,
) -> DailyUtilization:
    """Booked/available/closed court-slot counts per period plus a TOTAL entry.

    Closed court-slots are excluded from the utilization denominator, and each
    court-slot is weighted by its length in minutes.
    """
    slots, periods, courts = _resolve(slots, periods, courts)
    grid = get_availability_grid(bookings, closures, day, slots, periods, courts)

    stats: DailyUtilization = {}
    all_cells: List[Tuple[str, int]] = []
    for period in periods:
        cells = [(cell.state, row.minutes) for row in grid.rows if row.period == period.key for cell in row.courts]
        stats[period.key] = _tally(period.label, cells)
        all_cells.extend(cells)
    stats[config.TOTAL_KEY] = _tally("Total", all_cells)
    return stats


def _combine(label: str, parts: List[PeriodUtilization]) -> PeriodUtilization:
    booked = sum(p.booked for p in parts)
    available = sum(p.available for p in parts)
    booked_minutes = sum(p.booked_minutes for p in parts)
    available_minutes = sum(p.available_minutes for p in parts)
    return PeriodUtilization(
        label=label,
        booked=booked,
        available=available,
        closed=sum(p.closed for p in parts),
        total=booked + available,
        booked_minutes=booked_minutes,
        available_minutes=available_minutes,
        utilization=calculate_utilization(booked_minutes, booked_minutes + available_minutes),
    )


def get_range_utilization(
    bookings: Sequence[Booking],
    closures: Sequence[Closure],
    start_date: Any,
    end_date: Any,
    slots: Sequence[TimeSlot] | None = None,
    periods: Sequence[Period] | None = None,
    courts: Sequence[int] | None = None,
) -> DailyUtilization:
    """Per-slot utilization summed over every date in [start_date, end_date]."""
    slots, periods, courts = _resolve(slots, periods, courts)
    daily = [
        get_daily_utilization(bookings, closures, day, slots, periods, courts)
        for day in _date_range(start_date, end_date)
    ]
    keys = [p.key for p in periods] + [config.TOTAL_KEY]
    labels = {p.key: p.label for p in periods}
    labels[config.TOTAL_KEY] = "Total"
    return {key: _combine(labels[key], [day_stats[key] for day_stats in daily]) for key in keys}


def get_available_courts(
    bookings: Sequence[Booking],
    closures: Sequence[Closure],
    day: Any,
    slots: Sequence[TimeSlot] | None = None,
    periods: Sequence[Period] | None = None,
    courts: Sequence[int] | None = None,
) -> Dict[str, Dict[str, List[str]]]:
    """Free court labels per slot start, grouped by period.

    Slots with no free court are left out.
    """
    slots, periods, courts = _resolve(slots, periods, courts)
    grid = get_availability_grid(bookings, closures, day, slots, periods, courts)

    free: Dict[str, Dict[str, List[str]]] = {p.key: {} for p in periods}
    for row in grid.rows:
        labels = [config.court_label(cell.court) for cell in row.courts if cell.state == "available"]
        if labels:
            free[row.period][row.time] = labels
    return free


def get_booked_hours_by_period(
    bookings: Sequence[Booking],
    start_date: Any,
    end_date: Any,
    periods: Sequence[Period] | None = None,
) -> Dict[str, float]:
    """Booked court-hours per period, clipping each booking to the period windows."""
    periods = list(periods) if periods is not None else default_periods()
    start = _require_date(start_date)
    end = _require_date(end_date)

    hours: Dict[str, float] = {p.key: 0.0 for p in periods}
    for booking in bookings:
        if booking.status == BookingStatus.CANCELLED or not start <= booking.date <= end:
            continue
        for period in periods:
            hours[period.key] += clip(booking.start, booking.end, period.start, period.end) / 60
    hours[config.TOTAL_KEY] = sum(hours[p.key] for p in periods)
    return hours


def _capacity_hours(periods: Sequence[Period], courts: int, days: int) -> Dict[str, float]:
    capacity = {p.key: p.hours * courts * days for p in periods}
    capacity[config.TOTAL_KEY] = sum(capacity[p.key] for p in periods)
    return capacity


def get_duration_utilization(
    bookings: Sequence[Booking],
    start_date: Any,
    end_date: Any,
    periods: Sequence[Period] | None = None,
    courts: Sequence[int] | None = None,
) -> Dict[str, int]:
    """Utilization from booked hours over court-hour capacity, for long ranges.

    Cheaper than per-slot classification across many dates. Closures are not
    subtracted from capacity; without closures it matches the per-slot path for
    bookings on slot boundaries.
    """
    periods = list(periods) if periods is not None else default_periods()
    court_count = len(courts) if courts is not None else config.TOTAL_COURTS
    days = len(_date_range(start_date, end_date))

    booked = get_booked_hours_by_period(bookings, start_date, end_date, periods)
    capacity = _capacity_hours(periods, court_count, days)
    return {key: calculate_utilization(booked[key], capacity[key]) for key in capacity}


def _week_summary(
    bookings: Sequence[Booking], week_start: date, periods: Sequence[Period], court_count: int
) -> Dict[str, int]:
    week_end = week_start + timedelta(days=6)
    hours = get_booked_hours_by_period(bookings, week_start, week_end, periods)
    capacity = _capacity_hours(periods, court_count, 7)

    prime_key = config.PRIME_PERIOD_KEY
    non_prime_keys = [p.key for p in periods if p.key != prime_key]

    weekend_hours = 0.0
    for day in (week_start + timedelta(days=5), week_start + timedelta(days=6)):
        weekend_hours += get_booked_hours_by_period(bookings, day, day, periods)[config.TOTAL_KEY]
    weekend_capacity = capacity[config.TOTAL_KEY] / 7 * 2

    return {
        "overall": calculate_utilization(hours[config.TOTAL_KEY], capacity[config.TOTAL_KEY]),
        "prime": calculate_utilization(hours.get(prime_key, 0.0), capacity.get(prime_key, 0.0)),
        "non_prime": calculate_utilization(
            sum(hours[k] for k in non_prime_keys), sum(capacity[k] for k in non_prime_keys)
        ),
        "weekend": calculate_utilization(weekend_hours, weekend_capacity),
    }


def get_weekly_comparison(
    bookings: Sequence[Booking],
    week_start: Any,
    periods: Sequence[Period] | None = None,
    courts: Sequence[int] | None = None,
) -> Dict[str, Dict[str, int]]:
    """Utilization for the week starting at `week_start` against the week before it."""
    periods = list(periods) if periods is not None else default_periods()
    court_count = len(courts) if courts is not None else config.TOTAL_COURTS
    this_start = _require_date(week_start)
    last_start = this_start - timedelta(days=7)

    this_week = _week_summary(bookings, this_start, periods, court_count)
    last_week = _week_summary(bookings, last_start, periods, court_count)
    return {
        "this_week": this_week,
        "last_week": last_week,
        "change": {key: this_week[key] - last_week[key] for key in this_week},
    }


def count_by_status(bookings: Sequence[Booking], start_date: Any, end_date: Any) -> Dict[str, int]:
    """Number of bookings in the date range per status, cancelled included."""
    start = _require_date(start_date)
    end = _require_date(end_date)
    counts = {status.value: 0 for status in BookingStatus}
    for booking in bookings:
        if start <= booking.date <= end:
            counts[booking.status.value] += 1
    return counts


def _bookings_in_range(bookings: Sequence[Booking], start_date: Any, end_date: Any) -> List[Booking]:
    start = _require_date(start_date)
    end = _require_date(end_date)
    return [b for b in bookings if start <= b.date <= end]


def get_booking_efficiency(
    bookings: Sequence[Booking], start_date: Any, end_date: Any, today: date | None = None
) -> BookingEfficiency:
    """Completed, cancelled and no-show rates over a date range.

    An active booking dated before `today` has been played and counts as completed.
    """
    today = today or date.today()
    in_range = _bookings_in_range(bookings, start_date, end_date)
    total = len(in_range)
    if total == 0:
        return BookingEfficiency()

    completed = sum(
        1
        for b in in_range
        if b.status == BookingStatus.COMPLETED or (b.status == BookingStatus.ACTIVE and b.date < today)
    )
    cancelled = sum(1 for b in in_range if b.status == BookingStatus.CANCELLED)
    no_shows = sum(1 for b in in_range if b.status == BookingStatus.NO_SHOW)
    return BookingEfficiency(
        total=total,
        completed=completed,
        cancelled=cancelled,
        no_shows=no_shows,
        completed_rate=calculate_utilization(completed, total),
        cancelled_rate=calculate_utilization(cancelled, total),
        no_show_rate=calculate_utilization(no_shows, total),
    )


def _type_group(booking_type: str | None) -> str | None:
    if booking_type and booking_type.startswith(config.TEAM_TYPE_PREFIX):
        return "team"
    return booking_type


def get_booking_type_breakdown(bookings: Sequence[Booking], start_date: Any, end_date: Any) -> BookingTypeBreakdown:
    """Booked hours per booking type, team types combined.

    Bookings with an unknown or missing type count toward `total_hours` only.
    """
    breakdown = {key: BookingTypeHours(label=label) for key, label in config.BOOKING_TYPE_LABELS.items()}
    hours = {key: 0.0 for key in breakdown}
    total_hours = 0.0

    for booking in _bookings_in_range(bookings, start_date, end_date):
        if booking.status == BookingStatus.CANCELLED:
            continue
        booked = booking.duration_minutes / 60
        total_hours += booked
        group = _type_group(booking.booking_type)
        if group in hours:
            hours[group] += booked
        elif booked:
            logger.debug(f"Booking {booking.id} has unreported type {booking.booking_type!r}")

    for key, entry in breakdown.items():
        breakdown[key] = entry.model_copy(
            update={"hours": hours[key], "percentage": calculate_utilization(hours[key], total_hours)}
        )
    return BookingTypeBreakdown(breakdown=breakdown, total_hours=total_hours)


def get_hours_by_customer(
    bookings: Sequence[Booking], start_date: Any, end_date: Any, booking_type: str
) -> List[CustomerHours]:
    """Booked hours per customer for one booking type, most hours first.

    `booking_type="team"` matches every team_* type.
    """
    totals: Dict[str, float] = {}
    types: Dict[str, str] = {}
    for booking in _bookings_in_range(bookings, start_date, end_date):
        if booking.status == BookingStatus.CANCELLED or _type_group(booking.booking_type) != booking_type:
            continue
        name = booking.customer_name or "Unknown"
        totals[name] = totals.get(name, 0.0) + booking.duration_minutes / 60
        types.setdefault(name, booking.booking_type)

    return sorted(
        (CustomerHours(name=name, booking_type=types[name], hours=hours) for name, hours in totals.items()),
        key=lambda entry: (-entry.hours, entry.name),
    )
