"""Weather Underground PWS API client module."""

from src.wunderground.client import BASE_URL, StationClient, create_session
from src.wunderground.credentials import BOOTSTRAP_URL, CredentialStore, parse_api_key
from src.wunderground.exceptions import (
    CredentialNotFound,
    HttpStatus,
    InvalidRequestOptions,
    PayloadInvalid,
    TooManyRetries,
    TransportError,
    WundergroundError,
)
from src.wunderground.query import (
    Format,
    History,
    Precision,
    RequestOptions,
    Unit,
    build_query,
    parse_date,
)
from src.wunderground.schemas import (
    HistoryResponse,
    Observation,
    ObservationError,
    ObservationResponse,
    ObservationValue,
    decode_current,
    decode_history,
)

__all__ = [
    "StationClient",
    "create_session",
    "BASE_URL",
    "BOOTSTRAP_URL",
    "CredentialStore",
    "parse_api_key",
    "WundergroundError",
    "CredentialNotFound",
    "HttpStatus",
    "TransportError",
    "PayloadInvalid",
    "TooManyRetries",
    "InvalidRequestOptions",
    "Format",
    "History",
    "Precision",
    "RequestOptions",
    "Unit",
    "build_query",
    "parse_date",
    "Observation",
    "ObservationValue",
    "ObservationError",
    "ObservationResponse",
    "HistoryResponse",
    "decode_current",
    "decode_history",
]
