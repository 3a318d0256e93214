"""
Weather Underground PWS API client.

Combines the cached API key, query construction and response decoding:

    with StationClient(timeout=10.0) as client:
        response = client.fetch_current("KCASANFR1")
        if response is not None:
            for obs in response.observations or []:
                print(obs.values())

Status handling:
- 200: body decoded into ObservationResponse / HistoryResponse
- 204: station has nothing to report (None / empty history)
- 401/403: key invalidated, refetched and the request replayed once
- anything else: HttpStatus
"""

import logging
from typing import Any, Dict, Optional

import requests

from src.wunderground.credentials import BOOTSTRAP_URL, CredentialStore
from src.wunderground.exceptions import (
    HttpStatus,
    InvalidRequestOptions,
    PayloadInvalid,
    TransportError,
)
from src.wunderground.query import History, RequestOptions, build_query, redact
from src.wunderground.schemas import (
    HistoryResponse,
    ObservationResponse,
    decode_current,
    decode_history,
)

logger = logging.getLogger(__name__)

BASE_URL = "https://api.weather.com/v2/pws/"

DEFAULT_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0 Safari/537.36"
    ),
    "Accept": "application/json",
    "Accept-Encoding": "gzip",
}


def create_session() -> requests.Session:
    """Shared HTTP session (keeps cookies and gzip headers across requests)."""
    session = requests.Session()
    session.headers.update(DEFAULT_HEADERS)
    return session


class StationClient:
    """Client for current and historical PWS observations."""

    def __init__(
        self,
        timeout: float = 10.0,
        api_key: Optional[str] = None,
        session: Optional[requests.Session] = None,
        credentials: Optional[CredentialStore] = None,
        base_url: str = BASE_URL,
        bootstrap_url: str = BOOTSTRAP_URL,
    ):
        """
        Initialize the client.

        Args:
            timeout: Per-request timeout in seconds
            api_key: Optional pre-supplied key (skips homepage scraping)
            session: Optional requests session (default: create_session())
            credentials: Optional shared CredentialStore; overrides api_key
            base_url: PWS API base URL
            bootstrap_url: Page scraped for the API key
        """
        self.timeout = timeout
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"
        self.session = session if session is not None else create_session()
        self.credentials = credentials or CredentialStore(
            api_key=api_key, bootstrap_url=bootstrap_url
        )

        logger.debug(f"Station client initialized (timeout={timeout}s, base_url={self.base_url})")

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "StationClient":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def _get_once(
        self, station_id: str, options: RequestOptions, api_key: str
    ) -> Optional[requests.Response]:
        path = build_query(api_key, station_id, options)
        logger.debug(f"GET {self.base_url}{redact(path)}")

        try:
            response = self.session.get(
                f"{self.base_url}{path}",
                headers={"Accept-Encoding": "gzip"},
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise TransportError(e) from e

        if response.status_code == 204:
            logger.debug(f"No content for station {station_id}")
            return None
        if response.status_code != 200:
            raise HttpStatus(response.status_code, getattr(response, "reason", "") or "")
        return response

    def _get(self, station_id: str, options: RequestOptions) -> Optional[requests.Response]:
        """GET with one key refresh on an auth-class status."""
        api_key = self.credentials.get(self.session, self.timeout)
        try:
            return self._get_once(station_id, options, api_key)
        except HttpStatus as e:
            if not e.is_auth_error or not self.credentials.invalidate(api_key):
                raise
            logger.warning(
                f"API key rejected ({e.status_code}) for station {station_id}, refreshing"
            )
        api_key = self.credentials.get(self.session, self.timeout)
        return self._get_once(station_id, options, api_key)

    def fetch_raw(
        self, station_id: str, options: Optional[RequestOptions] = None
    ) -> Optional[Dict[str, Any]]:
        """Fetch and JSON-parse a response without schema decoding."""
        options = options or RequestOptions()
        response = self._get(station_id, options)
        if response is None:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise PayloadInvalid(e) from e

    def fetch_current(
        self, station_id: str, options: Optional[RequestOptions] = None
    ) -> Optional[ObservationResponse]:
        """
        Fetch the latest observation for a station.

        Args:
            station_id: PWS station id (e.g. "KCASANFR1")
            options: Request options; history must be CURRENT

        Returns:
            Decoded response, or None if the station had nothing to report (204)

        Raises:
            HttpStatus, TransportError, PayloadInvalid, CredentialNotFound
        """
        options = options or RequestOptions()
        if options.history is not History.CURRENT:
            raise InvalidRequestOptions("fetch_current requires history=current")

        logger.debug(f"Fetching current observation for station {station_id}")
        response = self._get(station_id, options)
        if response is None:
            return None
        return decode_current(response.content)

    def fetch_history(self, station_id: str, options: RequestOptions) -> HistoryResponse:
        """
        Fetch hourly/daily/all observations for a station and date.

        A 204 yields an empty observation list.
        """
        if options.history is History.CURRENT:
            raise InvalidRequestOptions("fetch_history requires an hourly, daily or all history mode")

        logger.debug(
            f"Fetching {options.history.value} history for station {station_id} on {options.day}"
        )
        response = self._get(station_id, options)
        if response is None:
            return HistoryResponse(observations=[])
        return decode_history(response.content)
