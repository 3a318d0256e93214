#!/usr/bin/env python3
"""
Fetch observations for a single Weather Underground station and print them as JSON.

Usage:
    python scripts/fetch_observation.py KCASANFR1
    python scripts/fetch_observation.py -u e -t 5000 KCASANFR1
    python scripts/fetch_observation.py --history hourly --date 20240115 KCASANFR1

Prints the observation list on stdout, or "no result..." on stderr when the
station has nothing to report. Exits with status 1 on any error.
"""

import argparse
import logging
import os
import sys

# Add project root to path
sys.path.insert(0, str(__file__).rsplit("/", 2)[0])

from src.utils.retry import create_retry_decorator
from src.wunderground import (
    History,
    Precision,
    RequestOptions,
    StationClient,
    Unit,
    WundergroundError,
    parse_date,
)

logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "WARNING").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Fetch observations for a Weather Underground station"
    )
    parser.add_argument(
        "-t", "--timeout", type=int, default=10000,
        help="Timeout in ms (default: 10000)"
    )
    parser.add_argument(
        "-u", "--unit", type=Unit.parse, default=Unit.METRIC,
        help="Unit (m for metric, e for imperial)"
    )
    parser.add_argument(
        "--history", type=History, choices=list(History), default=History.CURRENT,
        help="History mode (default: current)"
    )
    parser.add_argument(
        "--date", type=parse_date,
        help="Date for hourly/daily/all history (YYYYMMDD or YYYY-MM-DD)"
    )
    parser.add_argument(
        "--precision", type=Precision, choices=list(Precision), default=Precision.DECIMAL,
        help="Numeric precision (default: decimal)"
    )
    parser.add_argument(
        "--api-key", type=str, default=os.environ.get("WU_API_KEY"),
        help="API key (default: $WU_API_KEY, else scraped from wunderground.com)"
    )
    parser.add_argument(
        "--retries", type=int, default=1,
        help="Attempts for transient errors (default: 1)"
    )
    parser.add_argument(
        "station_id",
        help="ID of the station you want the observations from"
    )
    return parser


def fetch(client: StationClient, station_id: str, options: RequestOptions) -> str:
    """Return the observations as JSON, or an empty string for no result."""
    if options.history is History.CURRENT:
        response = client.fetch_current(station_id, options)
        if response is None:
            return ""
        return response.to_json()
    response = client.fetch_history(station_id, options)
    if not response.observations:
        return ""
    return response.to_json()


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        options = RequestOptions(
            unit=args.unit,
            precision=args.precision,
            history=args.history,
            day=args.date,
        )
    except ValueError as e:
        parser.error(str(e))

    run = create_retry_decorator(max_attempts=max(1, args.retries))(fetch)

    try:
        with StationClient(timeout=args.timeout / 1000.0, api_key=args.api_key) as client:
            output = run(client, args.station_id, options)
    except WundergroundError as e:
        print(f"couldn't fetch observation: {e}", file=sys.stderr)
        return 1

    if not output:
        print("no result...", file=sys.stderr)
        return 0

    print(output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
