"""
Request options and query construction for the PWS API.

URL shapes:
- observations/current?apiKey=..&stationId=..&units=m&format=json
- history/{hourly|daily|all}?...&date=YYYYMMDD

Parameter order is fixed so generated URLs are reproducible in tests and logs.
"""

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import List, Optional, Tuple, Union

from src.wunderground.exceptions import InvalidRequestOptions


class Format(str, Enum):
    JSON = "json"


class Unit(str, Enum):
    """Unit system; the value is the code the API expects."""

    METRIC = "m"
    IMPERIAL = "e"

    @classmethod
    def parse(cls, value: Union[str, "Unit"]) -> "Unit":
        """Accept 'm'/'e' or 'metric'/'imperial' (any case)."""
        if isinstance(value, Unit):
            return value
        text = str(value).strip().lower()
        for unit in cls:
            if text in (unit.value, unit.name.lower()):
                return unit
        raise ValueError(f"Invalid unit value: {value!r} (expected 'm' or 'e')")


class Precision(str, Enum):
    INTEGER = "integer"
    DECIMAL = "decimal"


class History(str, Enum):
    CURRENT = "current"
    HOURLY = "hourly"
    DAILY = "daily"
    ALL = "all"

    @property
    def path(self) -> str:
        if self is History.CURRENT:
            return "observations/current"
        return f"history/{self.value}"


def parse_date(value: Union[str, date, None]) -> Optional[date]:
    """Parse YYYYMMDD or YYYY-MM-DD into a date."""
    if value is None or isinstance(value, date):
        return value
    for fmt in ("%Y%m%d", "%Y-%m-%d"):
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    raise ValueError(f"Invalid date: {value!r} (expected YYYYMMDD or YYYY-MM-DD)")


@dataclass(frozen=True)
class RequestOptions:
    """
    Options for a single PWS request.

    A date is required for every history mode except CURRENT and forbidden
    for CURRENT.
    """

    unit: Unit = Unit.METRIC
    precision: Precision = Precision.DECIMAL
    history: History = History.CURRENT
    day: Optional[date] = None
    format: Format = Format.JSON

    def __post_init__(self):
        if self.history is History.CURRENT and self.day is not None:
            raise InvalidRequestOptions("date must not be set for current observations")
        if self.history is not History.CURRENT and self.day is None:
            raise InvalidRequestOptions(
                f"date is required for history mode '{self.history.value}'"
            )

    @classmethod
    def current(cls, unit: Unit = Unit.METRIC, precision: Precision = Precision.DECIMAL) -> "RequestOptions":
        return cls(unit=unit, precision=precision)

    @classmethod
    def for_history(
        cls,
        history: History,
        on: date,
        unit: Unit = Unit.METRIC,
        precision: Precision = Precision.DECIMAL,
    ) -> "RequestOptions":
        return cls(unit=unit, precision=precision, history=history, day=on)


def build_params(api_key: str, station_id: str, options: RequestOptions) -> List[Tuple[str, str]]:
    """Ordered query parameters for a request."""
    params = [
        ("apiKey", api_key),
        ("stationId", station_id),
        ("units", options.unit.value),
        ("format", options.format.value),
    ]
    if options.precision is Precision.DECIMAL:
        params.append(("numericPrecision", "decimal"))
    if options.day is not None:
        params.append(("date", options.day.strftime("%Y%m%d")))
    return params


def build_query(api_key: str, station_id: str, options: RequestOptions) -> str:
    """
    Build the request path and query string, relative to the PWS base URL.

    Example:
        >>> build_query("abc", "KNYC1", RequestOptions())
        'observations/current?apiKey=abc&stationId=KNYC1&units=m&format=json&numericPrecision=decimal'
    """
    query = "&".join(f"{key}={value}" for key, value in build_params(api_key, station_id, options))
    return f"{options.history.path}?{query}"


def redact(path: str) -> str:
    """Hide the apiKey value in a query string for logging."""
    head, sep, tail = path.partition("apiKey=")
    if not sep:
        return path
    _, amp, rest = tail.partition("&")
    return f"{head}apiKey=***{amp}{rest}"
