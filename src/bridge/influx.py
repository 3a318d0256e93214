"""
InfluxDB (1.x) publisher for decoded observations.

One point per observation:
    measurement: weather-underground_{station_id}
    tags:        unit, country, neighborhood, lat, lng
    fields:      humidity, solar_radiation, uv, wind_dir + the metric/imperial values
    time:        observation epoch (seconds)

Write failures are logged and swallowed; the poller keeps running.
"""

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

import requests
from influxdb import InfluxDBClient
from influxdb.exceptions import InfluxDBClientError, InfluxDBServerError

from src.wunderground.query import Unit
from src.wunderground.schemas import Observation, ObservationResponse

logger = logging.getLogger(__name__)

MEASUREMENT_PREFIX = "weather-underground_"

# Observation attribute -> field name
OBSERVATION_FIELDS = {
    "humidity": "humidity",
    "solar_radiation": "solar_radiation",
    "uv": "uv",
    "winddir": "wind_dir",
}

VALUE_FIELDS = (
    "dewpt",
    "elev",
    "heat_index",
    "precip_rate",
    "precip_total",
    "pressure",
    "temp",
    "wind_chill",
    "wind_gust",
    "wind_speed",
)


def measurement_name(station_id: str) -> str:
    return f"{MEASUREMENT_PREFIX}{station_id}"


def observation_to_point(
    station_id: str,
    obs: Observation,
    unit: Unit,
) -> Optional[Dict[str, Any]]:
    """
    Convert an observation to an InfluxDB point dict.

    Returns:
        Point dict, or None if the observation carries no measurements
    """
    tags = {
        "unit": unit.value,
        "lat": str(obs.lat),
        "lng": str(obs.lon),
    }
    if obs.country is not None:
        tags["country"] = obs.country
    if obs.neighborhood is not None:
        tags["neighborhood"] = obs.neighborhood

    fields: Dict[str, float] = {}
    for attr, name in OBSERVATION_FIELDS.items():
        value = getattr(obs, attr)
        if value is not None:
            fields[name] = float(value)

    values = obs.values()
    if values is not None:
        for name in VALUE_FIELDS:
            value = getattr(values, name)
            if value is not None:
                fields[name] = float(value)

    if not fields:
        return None

    return {
        "measurement": measurement_name(station_id),
        "tags": tags,
        "time": obs.epoch,
        "fields": fields,
    }


class InfluxPublisher:
    """Writes observation responses to an InfluxDB database."""

    def __init__(
        self,
        host_url: str = "http://localhost:8086",
        username: str = "username",
        password: str = "password",
        database: str = "default",
        unit: Unit = Unit.METRIC,
        client: Optional[InfluxDBClient] = None,
    ):
        """
        Initialize the publisher.

        Args:
            host_url: InfluxDB URL (scheme, host and port, e.g. http://localhost:8086)
            username: InfluxDB user
            password: InfluxDB password
            database: Target database
            unit: Unit system the observations were requested in (tag value)
            client: Optional pre-built InfluxDBClient
        """
        self.unit = unit
        self.database = database
        if client is None:
            parsed = urlparse(host_url)
            ssl = parsed.scheme == "https"
            client = InfluxDBClient(
                host=parsed.hostname or "localhost",
                port=parsed.port or (443 if ssl else 8086),
                username=username,
                password=password,
                database=database,
                ssl=ssl,
                verify_ssl=ssl,
                path=parsed.path.strip("/"),
            )
        self.client = client

        logger.info(f"InfluxDB publisher initialized ({host_url}, database={database})")

    @classmethod
    def from_settings(cls, settings) -> "InfluxPublisher":
        return cls(
            host_url=settings.influx_host,
            username=settings.influx_username,
            password=settings.influx_password,
            database=settings.influx_database,
            unit=settings.unit,
        )

    def build_points(self, station_id: str, response: ObservationResponse) -> List[Dict[str, Any]]:
        points = []
        for obs in response.observations or []:
            point = observation_to_point(station_id, obs, self.unit)
            if point is None:
                logger.debug(f"Observation at {obs.epoch} for {station_id} has no fields, skipping")
                continue
            points.append(point)
        return points

    def publish(self, station_id: str, response: ObservationResponse) -> int:
        """
        Write every observation of a response.

        Returns:
            Number of points written
        """
        logger.debug(f"Publishing for station {station_id}")
        written = 0
        for point in self.build_points(station_id, response):
            try:
                self.client.write_points([point], time_precision="s")
            except (InfluxDBClientError, InfluxDBServerError, requests.exceptions.RequestException) as e:
                logger.error(f"Error writing point for {station_id}: {e}")
                continue
            written += 1
            logger.info(f"Published for {station_id}")
        return written

    def __call__(self, station_id: str, response: ObservationResponse) -> int:
        return self.publish(station_id, response)

    def close(self) -> None:
        self.client.close()
