import json
import logging
import sys
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Dict, List

from court_scheduler import config, snapshot
from court_scheduler.conflicts import find_data_quality_issues
from court_scheduler.models import Booking, BookingEfficiency, BookingTypeBreakdown, DailyUtilization, DataQualityIssue
from court_scheduler.snapshot import Snapshot
from court_scheduler.utilization import (
    get_available_courts,
    get_booking_efficiency,
    get_booking_type_breakdown,
    get_daily_utilization,
    get_range_utilization,
)

logger = logging.getLogger(__name__)


@dataclass
class ReportOutcome:
    daily: Dict[date, DailyUtilization]
    range_totals: DailyUtilization | None
    free_courts: Dict[date, Dict[str, Dict[str, List[str]]]]
    issues: List[DataQualityIssue]
    efficiency: BookingEfficiency
    booking_types: BookingTypeBreakdown


def get_target_dates(start_date_arg: str | None, days: int) -> List[date]:
    """Consecutive report dates starting at start_date_arg (default: today)."""
    if start_date_arg:
        try:
            start = datetime.strptime(start_date_arg, "%Y-%m-%d").date()
        except ValueError:
            logger.error("Error: Start date must be in YYYY-MM-DD format.")
            sys.exit(1)
    else:
        start = date.today()

    if days < 1:
        logger.error(f"Error: --days must be at least 1, got {days}.")
        sys.exit(1)

    return [start + timedelta(days=i) for i in range(days)]


def report_data_quality(bookings: List[Booking]) -> List[DataQualityIssue]:
    """Logs bookings whose timing cannot be trusted and returns them."""
    issues = find_data_quality_issues(bookings)
    for issue in issues:
        logger.warning(f"Data quality [{issue.kind}]: {issue.message}")
    if not issues:
        logger.debug("No data quality issues found.")
    return issues


def build_report(current: Snapshot, dates: List[date]) -> ReportOutcome:
    """Computes per-date utilization and free courts, plus range totals and booking activity."""
    issues = report_data_quality(list(current.bookings))

    daily: Dict[date, DailyUtilization] = {}
    free_courts: Dict[date, Dict[str, Dict[str, List[str]]]] = {}
    for day in dates:
        daily[day] = get_daily_utilization(current.bookings, current.closures, day)
        free_courts[day] = get_available_courts(current.bookings, current.closures, day)

    range_totals = None
    if len(dates) > 1:
        range_totals = get_range_utilization(current.bookings, current.closures, dates[0], dates[-1])

    return ReportOutcome(
        daily=daily,
        range_totals=range_totals,
        free_courts=free_courts,
        issues=issues,
        efficiency=get_booking_efficiency(current.bookings, dates[0], dates[-1]),
        booking_types=get_booking_type_breakdown(current.bookings, dates[0], dates[-1]),
    )


def _print_stats(stats: DailyUtilization):
    for key, entry in stats.items():
        closed = f", {entry.closed} closed" if entry.closed else ""
        marker = "=" if key == config.TOTAL_KEY else " "
        print(f"{marker} {entry.label:<24} {entry.booked:>4}/{entry.total:<4} booked ({entry.utilization:>3}%){closed}")


def print_utilization_report(day: date, stats: DailyUtilization, free: Dict[str, Dict[str, List[str]]]):
    """Prints the formatted utilization report for one date to stdout."""
    print(f"\n--- Court Utilization for {day.isoformat()} ---")
    _print_stats(stats)

    for period_key, times in free.items():
        for time, courts in times.items():
            print(f"[AVAILABLE] {period_key:<9} {time}: {', '.join(courts)}")


def print_activity_report(efficiency: BookingEfficiency, booking_types: BookingTypeBreakdown):
    print("\n--- Booking Activity ---")
    print(
        f"{efficiency.total} bookings: {efficiency.completed} completed ({efficiency.completed_rate}%), "
        f"{efficiency.cancelled} cancelled ({efficiency.cancelled_rate}%), "
        f"{efficiency.no_shows} no-show ({efficiency.no_show_rate}%)"
    )
    for entry in booking_types.breakdown.values():
        if entry.hours:
            print(f"  {entry.label:<12} {entry.hours:>6.1f}h ({entry.percentage}%)")


def _outcome_as_dict(outcome: ReportOutcome) -> Dict:
    return {
        "days": [
            {
                "date": day.isoformat(),
                "utilization": {key: entry.model_dump() for key, entry in stats.items()},
                "available_courts": outcome.free_courts[day],
            }
            for day, stats in outcome.daily.items()
        ],
        "range": (
            {key: entry.model_dump() for key, entry in outcome.range_totals.items()} if outcome.range_totals else None
        ),
        "efficiency": outcome.efficiency.model_dump(),
        "booking_types": outcome.booking_types.model_dump(),
        "issues": [issue.model_dump() for issue in outcome.issues],
    }


def run(
    bookings_path: str,
    closures_path: str | None = None,
    start_date: str | None = None,
    days: int = 1,
    as_json: bool = False,
):
    """Loads a snapshot from CSV exports and reports utilization for the target dates."""
    dates = get_target_dates(start_date, days)
    logger.info(f"Reporting utilization for {len(dates)} day(s): {', '.join(d.isoformat() for d in dates)}")

    current = snapshot.load_snapshot(bookings_path, closures_path)
    outcome = build_report(current, dates)

    if as_json:
        print(json.dumps(_outcome_as_dict(outcome), indent=2))
        return outcome

    for day in dates:
        print_utilization_report(day, outcome.daily[day], outcome.free_courts[day])

    if outcome.range_totals:
        print(f"\n--- Totals {dates[0].isoformat()} to {dates[-1].isoformat()} ---")
        _print_stats(outcome.range_totals)

    print_activity_report(outcome.efficiency, outcome.booking_types)

    if outcome.issues:
        print(f"\n*** {len(outcome.issues)} data quality issue(s) found; see log ***")
    return outcome
