import argparse
import json
import sys
from datetime import date
from pathlib import Path

import pandas as pd

from rmforecast.config import ForecastSettings
from rmforecast.forecast_service import AnalysisError, run_forecast, run_suggestions
from rmforecast.load_data import read_reservations
from rmforecast.logging_setup import setup_logging

FORECAST_COLUMNS = [
    "flight",
    "flight_date",
    "weekday_label",
    "days_to_departure",
    "current_bookings",
    "expected_passengers",
    "expected_revenue",
    "load_factor",
    "confidence",
    "warning",
    "upgrade_message",
    "note",
]

SUGGESTION_COLUMNS = [
    "flight",
    "weekday_label",
    "bookings_this_year",
    "bookings_last_year",
    "days_to_departure",
    "recommendation",
]


def parse_date(value):
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Invalid date '{value}', expected YYYY-MM-DD.") from exc


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Booking-curve forecasts and fare suggestions from a reservation export."
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_common(sub):
        sub.add_argument("--data", type=Path, required=True, help="Reservation CSV export.")
        sub.add_argument(
            "--as-of",
            type=parse_date,
            default=None,
            help="Reference date (YYYY-MM-DD); defaults to today."
        )
        sub.add_argument("--json", action="store_true", help="Print JSON instead of a table.")

    forecast = subparsers.add_parser("forecast", help="Forecast upcoming departures.")
    add_common(forecast)

    suggest = subparsers.add_parser("suggest", help="List departures pacing ahead of last year.")
    add_common(suggest)
    suggest.add_argument(
        "--threshold",
        type=float,
        default=None,
        help="Percent ahead of last year required for a suggestion (default 20)."
    )
    return parser.parse_args(argv)


def print_rows(rows, columns, as_json):
    if as_json:
        print(json.dumps(rows, indent=2, default=str))
        return
    if not rows:
        print("No rows.")
        return
    frame = pd.DataFrame(rows)
    available_columns = [col for col in columns if col in frame.columns]
    print(frame[available_columns].to_string(index=False))


def main(argv=None):
    args = parse_args(argv)
    setup_logging()
    settings = ForecastSettings.from_env()
    today = args.as_of or date.today()

    if not args.data.exists():
        raise SystemExit(f"Reservation file not found: {args.data}")
    records = read_reservations(args.data)

    try:
        if args.command == "forecast":
            rows = [record.to_dict() for record in run_forecast(records, today, settings)]
            print_rows(rows, FORECAST_COLUMNS, args.json)
        else:
            rows = [row.to_dict() for row in run_suggestions(records, today, args.threshold, settings)]
            print_rows(rows, SUGGESTION_COLUMNS, args.json)
    except AnalysisError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
