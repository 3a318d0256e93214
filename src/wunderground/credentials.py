"""
API key acquisition for the PWS API.

The key is not issued by an auth endpoint; it is embedded in the
wunderground.com homepage as ``apiKey=<hex>``. It is scraped once and cached
for the life of the store. ``invalidate()`` drops it so the next ``get()``
scrapes again (used when the upstream rotates the key).
"""

import logging
import re
import threading
from typing import Optional

import requests

from src.wunderground.exceptions import CredentialNotFound, HttpStatus, TransportError

logger = logging.getLogger(__name__)

BOOTSTRAP_URL = "https://www.wunderground.com"

API_KEY_PATTERN = re.compile(r"apiKey=([a-z0-9]+)")


def parse_api_key(html: str) -> str:
    """
    Extract the API key from the bootstrap page.

    Raises:
        CredentialNotFound: If the page has no apiKey=... token
    """
    match = API_KEY_PATTERN.search(html)
    if not match:
        raise CredentialNotFound()
    return match.group(1)


class CredentialStore:
    """Caches a single API key, fetching it on first use."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        bootstrap_url: str = BOOTSTRAP_URL,
    ):
        """
        Args:
            api_key: Pre-supplied key. It is pinned: invalidate() keeps it and
                the bootstrap page is never fetched.
            bootstrap_url: Page scraped for the key
        """
        self.bootstrap_url = bootstrap_url
        self._pinned = api_key
        self._api_key = api_key
        self._lock = threading.Lock()
        self.fetch_count = 0

    @property
    def is_populated(self) -> bool:
        return self._api_key is not None

    @property
    def is_pinned(self) -> bool:
        return self._pinned is not None

    def get(self, session: requests.Session, timeout: Optional[float] = None) -> str:
        """
        Return the cached key, scraping the bootstrap page if empty.

        The first fetch is serialized so parallel callers trigger at most one
        bootstrap request. Failures are not cached.
        """
        api_key = self._api_key
        if api_key is not None:
            return api_key

        with self._lock:
            if self._api_key is None:
                self._api_key = self._fetch(session, timeout)
            return self._api_key

    def invalidate(self, stale_key: Optional[str] = None) -> bool:
        """
        Drop the cached key.

        Args:
            stale_key: The key that was rejected. The cache is only cleared if it
                still holds this key, so a key another thread already refreshed
                is kept.

        Returns:
            False if the key is pinned and was kept, True otherwise
        """
        if self.is_pinned:
            logger.warning("API key was rejected but is pinned, not refreshing")
            return False
        with self._lock:
            if stale_key is not None and self._api_key != stale_key:
                logger.debug("API key already refreshed, keeping it")
                return True
            self._api_key = None
        logger.info("API key invalidated, will refetch on next request")
        return True

    def _fetch(self, session: requests.Session, timeout: Optional[float]) -> str:
        logger.debug(f"Fetching API key from {self.bootstrap_url}")
        self.fetch_count += 1

        try:
            response = session.get(self.bootstrap_url, timeout=timeout)
        except requests.exceptions.RequestException as e:
            raise TransportError(e) from e

        if response.status_code != 200:
            raise HttpStatus(response.status_code, getattr(response, "reason", "") or "")

        try:
            api_key = parse_api_key(response.text)
        except CredentialNotFound:
            logger.error(f"No apiKey found in {self.bootstrap_url}; page markup may have changed")
            raise CredentialNotFound(self.bootstrap_url) from None

        logger.info("API key fetched")
        return api_key
