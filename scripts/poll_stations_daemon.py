#!/usr/bin/env python3
"""
Weather Underground to InfluxDB polling daemon.

Polls the current observation of every station in WU_STATIONS every
WU_INTERVAL milliseconds and writes each reading to InfluxDB.

Configuration comes from the environment (or .env), see src/config/settings.py:
    WU_STATIONS=KCASANFR1,KNYNEWYO2   (required)
    WU_INTERVAL=60000  WU_TIMEOUT=10000  WU_UNIT=m
    INFLUX_HOST=http://localhost:8086  INFLUX_DATABASE=default ...

Usage:
    python scripts/poll_stations_daemon.py
    python scripts/poll_stations_daemon.py --once     # Single poll cycle, then exit

Deployment:
    systemctl start wu-influx-bridge
"""

import argparse
import logging
import signal
import sys

from pydantic import ValidationError

# Add project root to path
sys.path.insert(0, str(__file__).rsplit("/", 2)[0])

from src.bridge import InfluxPublisher, StationPoller
from src.config import get_settings
from src.wunderground import StationClient, WundergroundError

logger = logging.getLogger(__name__)

poller = None


def signal_handler(signum, frame):
    """Handle SIGTERM/SIGINT for graceful shutdown."""
    logger.info(f"Received signal {signum}, requesting graceful shutdown...")
    if poller is not None:
        poller.stop()


def main(argv=None) -> int:
    global poller

    parser = argparse.ArgumentParser(
        description="Weather Underground to InfluxDB polling daemon"
    )
    parser.add_argument(
        "--once", action="store_true",
        help="Run single poll cycle then exit"
    )
    args = parser.parse_args(argv)

    try:
        settings = get_settings()
    except ValidationError as e:
        logging.basicConfig(level=logging.INFO)
        logger.error(f"Invalid configuration: {e}")
        return 1

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    signal.signal(signal.SIGTERM, signal_handler)
    signal.signal(signal.SIGINT, signal_handler)

    publisher = InfluxPublisher.from_settings(settings)
    with StationClient(timeout=settings.timeout_seconds, api_key=settings.wu_api_key) as client:
        poller = StationPoller.from_settings(settings, client=client, publish=publisher)
        try:
            if args.once:
                logger.info("Running single poll cycle...")
                report = poller.run_once()
                return 0 if not report.failed else 1
            poller.run_forever()
        except WundergroundError as e:
            logger.error(f"Polling aborted: {e}")
            return 1
        finally:
            publisher.close()

    return 0


if __name__ == "__main__":
    sys.exit(main())
