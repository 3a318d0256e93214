"""
Station polling loop.

Each iteration fetches the current observation of every configured station
and hands successful responses to a publisher. Per station:

- HttpStatus / TransportError: retried with exponential backoff and jitter,
  up to max_attempts
- 204 (no result): done for this iteration, nothing published
- PayloadInvalid: not retried (the same body would come back), station skipped
- CredentialNotFound: not retried, station skipped
- budget exhausted: TooManyRetries; the station is logged and skipped,
  or the whole loop aborts when fail_fast is set

After a full pass the loop sleeps for the configured interval (processing
time is not subtracted) and starts over until stop() is called. stop() also
ends retry backoff early; stations not yet polled are reported as cancelled.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, List, Optional

from tenacity import RetryError

from src.utils.retry import DEFAULT_MAX_ATTEMPTS, create_retrying
from src.wunderground.client import StationClient
from src.wunderground.exceptions import CredentialNotFound, PayloadInvalid, TooManyRetries
from src.wunderground.query import History, RequestOptions
from src.wunderground.schemas import ObservationResponse

logger = logging.getLogger(__name__)

Publisher = Callable[[str, ObservationResponse], Any]


class StationOutcome(str, Enum):
    PUBLISHED = "published"
    NO_RESULT = "no_result"
    INVALID_PAYLOAD = "invalid_payload"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass
class StationResult:
    """Outcome of one station within one iteration."""

    station_id: str
    outcome: StationOutcome
    attempts: int
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.outcome in (StationOutcome.PUBLISHED, StationOutcome.NO_RESULT)


@dataclass
class IterationReport:
    """Per-station results of one pass over all stations."""

    results: List[StationResult] = field(default_factory=list)

    def count(self, outcome: StationOutcome) -> int:
        return sum(1 for r in self.results if r.outcome is outcome)

    @property
    def failed(self) -> List[StationResult]:
        return [
            r for r in self.results
            if r.outcome in (StationOutcome.INVALID_PAYLOAD, StationOutcome.FAILED)
        ]

    def summary(self) -> str:
        return ", ".join(f"{o.value}={self.count(o)}" for o in StationOutcome)


class StationPoller:
    """Polls a fixed list of stations on an interval."""

    def __init__(
        self,
        client: StationClient,
        stations: List[str],
        publish: Publisher,
        options: Optional[RequestOptions] = None,
        interval: float = 60.0,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        backoff_initial: float = 0.5,
        backoff_max: float = 30.0,
        backoff_jitter: float = 1.0,
        max_workers: int = 1,
        fail_fast: bool = False,
        sleep: Optional[Callable[[float], None]] = None,
    ):
        """
        Initialize the poller.

        Args:
            client: Station client (shared across stations)
            stations: Station ids, polled in order; must be non-empty
            publish: Called as publish(station_id, response) for each decoded response
            options: Request options (default: current, metric, decimal)
            interval: Seconds to sleep between iterations
            max_attempts: Attempt budget per station per iteration
            backoff_initial: First retry delay (seconds)
            backoff_max: Upper bound on a retry delay (seconds)
            backoff_jitter: Maximum random jitter added to each delay (seconds)
            max_workers: Stations polled in parallel (1 = sequential)
            fail_fast: Abort the loop with TooManyRetries when a station exhausts its budget
            sleep: Sleep used between retry attempts (default: waits on the stop
                event, so stop() cuts a backoff short)
        """
        if not stations:
            raise ValueError("At least one station is required")
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        options = options or RequestOptions()
        if options.history is not History.CURRENT:
            raise ValueError("The poller only fetches current observations")

        self._stop_event = threading.Event()

        self.client = client
        self.stations = list(stations)
        self.publish = publish
        self.options = options
        self.interval = interval
        self.max_attempts = max_attempts
        self.backoff_initial = backoff_initial
        self.backoff_max = backoff_max
        self.backoff_jitter = backoff_jitter
        self.max_workers = max_workers
        self.fail_fast = fail_fast
        self.sleep = sleep if sleep is not None else self._stop_event.wait

        self.iterations = 0

    @classmethod
    def from_settings(cls, settings, client: StationClient, publish: Publisher) -> "StationPoller":
        return cls(
            client=client,
            stations=settings.stations,
            publish=publish,
            options=RequestOptions.current(unit=settings.unit),
            interval=settings.interval_seconds,
            max_attempts=settings.wu_retries,
            backoff_initial=settings.backoff_initial_seconds,
            backoff_max=settings.backoff_max_seconds,
            max_workers=settings.wu_max_workers,
            fail_fast=settings.wu_fail_fast,
        )

    def process(self, station_id: str) -> StationResult:
        """
        Fetch and publish one station, retrying transient failures.

        Raises:
            TooManyRetries: Budget exhausted and fail_fast is set
            CredentialNotFound: Bootstrap page has no key and fail_fast is set
        """
        if self.stopped:
            return StationResult(station_id, StationOutcome.CANCELLED, 0)

        logger.debug(f"Processing station {station_id}")
        retrying = create_retrying(
            max_attempts=self.max_attempts,
            initial_wait=self.backoff_initial,
            max_wait=self.backoff_max,
            jitter=self.backoff_jitter,
            sleep=self.sleep,
            stop_event=self._stop_event,
        )

        attempts = 0
        response = None
        cancelled = False
        try:
            for attempt in retrying:
                if self.stopped:
                    cancelled = True
                    break
                with attempt:
                    attempts += 1
                    response = self.client.fetch_current(station_id, self.options)
        except RetryError as e:
            last_error = e.last_attempt.exception()
            if self.stopped:
                logger.info(f"Shutdown requested, abandoning station {station_id}: {last_error}")
                return StationResult(station_id, StationOutcome.CANCELLED, attempts, last_error)
            error = TooManyRetries(station_id, attempts, last_error)
            if self.fail_fast:
                raise error from last_error
            logger.warning(f"Skipping station {station_id} this iteration: {error}")
            return StationResult(station_id, StationOutcome.FAILED, attempts, error)
        except PayloadInvalid as e:
            logger.error(f"Unable to parse response for station {station_id}: {e}")
            return StationResult(station_id, StationOutcome.INVALID_PAYLOAD, attempts, e)
        except CredentialNotFound as e:
            if self.fail_fast:
                raise
            logger.error(f"Couldn't get API key while processing station {station_id}: {e}")
            return StationResult(station_id, StationOutcome.FAILED, attempts, e)

        if cancelled:
            logger.info(f"Shutdown requested, abandoning station {station_id}")
            return StationResult(station_id, StationOutcome.CANCELLED, attempts)

        if response is None:
            logger.info(f"No result for station {station_id}")
            return StationResult(station_id, StationOutcome.NO_RESULT, attempts)

        self.publish(station_id, response)
        logger.info(f"Processing station {station_id} success ({attempts} attempt(s))")
        return StationResult(station_id, StationOutcome.PUBLISHED, attempts)

    def iterate(self) -> IterationReport:
        """Run one pass over all stations."""
        logger.debug("Iteration start")
        if self.max_workers > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                futures = [executor.submit(self.process, s) for s in self.stations]
                results = [f.result() for f in futures]
        else:
            results = [self.process(s) for s in self.stations]

        self.iterations += 1
        report = IterationReport(results)
        logger.info(f"Iteration {self.iterations} done: {report.summary()}")
        for result in report.failed:
            logger.warning(f"  {result.station_id}: {result.outcome.value} ({result.error})")
        return report

    def run_once(self) -> IterationReport:
        return self.iterate()

    def stop(self) -> None:
        """Request the loop to exit; interrupts the interval sleep."""
        self._stop_event.set()

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    def run_forever(self) -> int:
        """
        Poll until stop() is called.

        Returns:
            Number of completed iterations

        Raises:
            TooManyRetries: Only when fail_fast is set
        """
        logger.info("=" * 60)
        logger.info("Weather Underground Poller Starting")
        logger.info(f"  Stations: {', '.join(self.stations)}")
        logger.info(f"  Interval: {self.interval}s")
        logger.info(f"  Attempts per station: {self.max_attempts}")
        logger.info(f"  Workers: {self.max_workers}")
        logger.info(f"  Fail fast: {self.fail_fast}")
        logger.info("=" * 60)

        while not self.stopped:
            self.iterate()
            logger.debug(f"Sleeping for {self.interval}s")
            self._stop_event.wait(self.interval)

        logger.info(f"Poller stopped after {self.iterations} iterations")
        return self.iterations
