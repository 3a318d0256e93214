"""
Pydantic schemas for PWS API responses.

Wire fields are camelCase (obsTimeLocal, heatIndex, ...); models use
snake_case with camelCase aliases and accept either on input.

Required fields are strict (epoch, lat, lon, obsTimeLocal, obsTimeUtc). Every
measurement is optional and stays None when missing; nothing is converted or
derived here.
"""

import json
from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from src.wunderground.exceptions import PayloadInvalid

_WIRE_CONFIG = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    extra="ignore",
)


class ObservationValue(BaseModel):
    """Unit-system specific measurements (the ``metric``/``imperial`` blocks)."""

    model_config = _WIRE_CONFIG

    dewpt: Optional[float] = None
    elev: Optional[float] = None
    heat_index: Optional[float] = None
    precip_rate: Optional[float] = None
    precip_total: Optional[float] = None
    pressure: Optional[float] = None
    temp: Optional[float] = None
    wind_chill: Optional[float] = None
    wind_gust: Optional[float] = None
    wind_speed: Optional[float] = None


class Observation(BaseModel):
    """A single timestamped station reading."""

    model_config = _WIRE_CONFIG

    epoch: int = Field(strict=True)
    lat: float = Field(strict=True)
    lon: float = Field(strict=True)
    obs_time_local: str
    obs_time_utc: str

    station_id: Optional[str] = Field(default=None, alias="stationID")
    country: Optional[str] = None
    neighborhood: Optional[str] = None
    humidity: Optional[float] = None
    solar_radiation: Optional[float] = None
    uv: Optional[float] = None
    winddir: Optional[float] = None

    metric: Optional[ObservationValue] = None
    imperial: Optional[ObservationValue] = None

    def values(self) -> Optional[ObservationValue]:
        """Measurements for whichever unit system is present, metric first."""
        if self.metric is not None:
            return self.metric
        return self.imperial

    def has_values(self) -> bool:
        return self.values() is not None


class ObservationError(BaseModel):
    """Error entry returned by the API alongside (or instead of) data."""

    code: str
    message: str


class ObservationResponse(BaseModel):
    """
    Envelope for current observations.

    Every field is optional: the API returns different shapes on error,
    success and empty result.
    """

    errors: Optional[List[ObservationError]] = None
    observations: Optional[List[Observation]] = None
    metadata: Optional[Any] = None
    success: Optional[bool] = None

    def to_json(self) -> str:
        """Serialize the observation list in wire shape (``null`` if absent)."""
        if self.observations is None:
            return "null"
        return json.dumps([obs.model_dump(mode="json", by_alias=True) for obs in self.observations])


class HistoryResponse(BaseModel):
    """Envelope for hourly/daily/all history requests."""

    observations: List[Observation]

    def to_json(self) -> str:
        return json.dumps([obs.model_dump(mode="json", by_alias=True) for obs in self.observations])


def decode_current(body: Union[bytes, str]) -> ObservationResponse:
    """
    Decode a current-observation response body.

    Raises:
        PayloadInvalid: On malformed JSON or schema mismatch
    """
    try:
        return ObservationResponse.model_validate_json(body)
    except ValidationError as e:
        raise PayloadInvalid(e) from e


def decode_history(body: Union[bytes, str]) -> HistoryResponse:
    """
    Decode a history response body.

    Raises:
        PayloadInvalid: On malformed JSON or schema mismatch
    """
    try:
        return HistoryResponse.model_validate_json(body)
    except ValidationError as e:
        raise PayloadInvalid(e) from e
