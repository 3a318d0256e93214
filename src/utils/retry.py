"""
Retry policies with exponential backoff using tenacity.

Only transient failures are retried: upstream HTTP errors and transport
errors. Decode failures and missing credentials are raised immediately.
"""

import logging
import threading
import time
from typing import Callable, Optional, Tuple, Type

from tenacity import (
    Retrying,
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    stop_when_event_set,
    wait_exponential_jitter,
)

from src.wunderground.exceptions import HttpStatus, TransportError

logger = logging.getLogger(__name__)

RETRYABLE_ERRORS: Tuple[Type[Exception], ...] = (HttpStatus, TransportError)

DEFAULT_MAX_ATTEMPTS = 10


def create_retrying(
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    initial_wait: float = 0.5,
    max_wait: float = 30.0,
    jitter: float = 1.0,
    exceptions: Tuple[Type[Exception], ...] = RETRYABLE_ERRORS,
    sleep: Callable[[float], None] = time.sleep,
    stop_event: Optional[threading.Event] = None,
) -> Retrying:
    """
    Create a tenacity Retrying controller.

    Exhausting the budget raises tenacity.RetryError (reraise=False) so the
    caller can tell "out of attempts" apart from a non-retryable error.

    Args:
        max_attempts: Maximum number of attempts (including the first)
        initial_wait: First backoff delay (seconds)
        max_wait: Upper bound on any single delay (seconds)
        jitter: Maximum random jitter added to each delay (seconds)
        exceptions: Exception types that consume an attempt and retry
        sleep: Sleep function (tests pass a no-op)
        stop_event: When set, no further attempts are made

    Returns:
        Retrying instance
    """
    stop = stop_after_attempt(max_attempts)
    if stop_event is not None:
        stop = stop | stop_when_event_set(stop_event)
    return Retrying(
        stop=stop,
        wait=wait_exponential_jitter(multiplier=initial_wait, max=max_wait, jitter=jitter),
        retry=retry_if_exception_type(exceptions),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        sleep=sleep,
        reraise=False,
    )


def create_retry_decorator(
    max_attempts: int = 3,
    initial_wait: float = 0.5,
    max_wait: float = 10.0,
    exceptions: Tuple[Type[Exception], ...] = RETRYABLE_ERRORS,
) -> Callable:
    """
    Decorator form for one-shot calls; the last error is re-raised as-is.

    Usage:
        @create_retry_decorator(max_attempts=3)
        def fetch():
            ...
    """
    return retry(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential_jitter(multiplier=initial_wait, max=max_wait),
        retry=retry_if_exception_type(exceptions),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
