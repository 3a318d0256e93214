"""Utility modules for the Weather Underground bridge."""

from src.utils.retry import (
    DEFAULT_MAX_ATTEMPTS,
    RETRYABLE_ERRORS,
    create_retry_decorator,
    create_retrying,
)

__all__ = [
    "DEFAULT_MAX_ATTEMPTS",
    "RETRYABLE_ERRORS",
    "create_retry_decorator",
    "create_retrying",
]
