"""Polling service that republishes station observations to InfluxDB."""

from src.bridge.influx import InfluxPublisher, observation_to_point
from src.bridge.poller import (
    IterationReport,
    StationOutcome,
    StationPoller,
    StationResult,
)

__all__ = [
    "InfluxPublisher",
    "observation_to_point",
    "IterationReport",
    "StationOutcome",
    "StationPoller",
    "StationResult",
]
