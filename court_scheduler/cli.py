import argparse
import logging
import sys

from court_scheduler import run

# --- Logging Setup ---

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool):
    """Configures logging to stderr with local time."""
    import time

    level = logging.DEBUG if verbose else logging.INFO
    handler = logging.StreamHandler(sys.stderr)
    formatter = logging.Formatter(
        fmt="%(asctime)s [%(levelname)s]: %(name)s:%(lineno)d | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )
    formatter.converter = time.localtime
    handler.setFormatter(formatter)

    logging.basicConfig(
        level=level,
        handlers=[handler],
    )


def parse_arguments(argv=None):
    """Parses command line arguments."""
    parser = argparse.ArgumentParser(description="Report court utilization from booking and closure exports.")
    parser.add_argument("--bookings", type=str, required=True, help="Path to the bookings CSV export.")
    parser.add_argument("--closures", type=str, help="Path to the closures CSV export.")
    parser.add_argument("--start-date", type=str, help="Start date in YYYY-MM-DD format. Defaults to today.")
    parser.add_argument("--days", type=int, default=1, help="Number of days to report. Defaults to 1.")
    parser.add_argument("--json", action="store_true", help="Print the report as JSON.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging.")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_arguments(argv)
    setup_logging(args.verbose)
    run.run(
        bookings_path=args.bookings,
        closures_path=args.closures,
        start_date=args.start_date,
        days=args.days,
        as_json=args.json,
    )


if __name__ == "__main__":
    main()
