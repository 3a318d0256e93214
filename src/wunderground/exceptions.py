"""
Exceptions raised by the Weather Underground station client.

Retry policy is keyed off these types (see src/utils/retry.py):
HttpStatus and TransportError are transient, everything else is not.
"""

from typing import Optional


class WundergroundError(Exception):
    """Base exception for Weather Underground errors."""

    pass


class CredentialNotFound(WundergroundError):
    """The bootstrap page did not contain an apiKey=... token."""

    def __init__(self, url: str = ""):
        self.url = url
        super().__init__(f"API key not found in page {url}".strip())


class HttpStatus(WundergroundError):
    """Upstream answered with a status other than 200/204."""

    AUTH_STATUSES = (401, 403)

    def __init__(self, status_code: int, reason: str = ""):
        self.status_code = status_code
        self.reason = reason
        message = f"HTTP error {status_code}"
        if reason:
            message += f": {reason}"
        super().__init__(message)

    @property
    def is_auth_error(self) -> bool:
        """True when the credential was rejected."""
        return self.status_code in self.AUTH_STATUSES


class TransportError(WundergroundError):
    """Network-level failure (DNS, timeout, connection reset)."""

    def __init__(self, cause: Exception):
        self.cause = cause
        super().__init__(f"Network error: {cause}")


class PayloadInvalid(WundergroundError):
    """Response body could not be decoded into the expected shape."""

    def __init__(self, cause: Exception):
        self.cause = cause
        super().__init__(f"Invalid payload: {cause}")


class TooManyRetries(WundergroundError):
    """Per-station attempt budget exhausted."""

    def __init__(
        self,
        station_id: str,
        attempts: int,
        last_error: Optional[BaseException] = None,
    ):
        self.station_id = station_id
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"Station {station_id} failed after {attempts} attempts: {last_error}"
        )


class InvalidRequestOptions(WundergroundError, ValueError):
    """History mode and date do not agree."""

    pass
