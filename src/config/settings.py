"""
Application settings loaded from environment variables.
Uses pydantic-settings for validation and type coercion.

Durations (WU_INTERVAL, WU_TIMEOUT, WU_BACKOFF_*) are milliseconds.
"""

from functools import lru_cache
from typing import Annotated, List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from src.wunderground.query import Unit


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Weather Underground
    wu_stations: Annotated[List[str], NoDecode]
    wu_interval: int = Field(default=60_000, gt=0)
    wu_timeout: int = Field(default=10_000, gt=0)
    wu_unit: str = "m"
    wu_api_key: Optional[str] = None

    # Polling policy
    wu_retries: int = Field(default=10, ge=1)
    wu_backoff_initial_ms: int = Field(default=500, ge=0)
    wu_backoff_max_ms: int = Field(default=30_000, ge=0)
    wu_max_workers: int = Field(default=1, ge=1)
    wu_fail_fast: bool = False

    # InfluxDB
    influx_host: str = "http://localhost:8086"
    influx_username: str = "username"
    influx_password: str = "password"
    influx_database: str = "default"

    # Application
    log_level: str = "INFO"

    @field_validator("wu_stations", mode="before")
    @classmethod
    def split_stations(cls, v):
        """Accept a comma-separated string (WU_STATIONS=A,B,C) or a list."""
        if isinstance(v, str):
            v = v.split(",")
        stations = [s.strip() for s in v if s and s.strip()]
        if not stations:
            raise ValueError("WU_STATIONS shouldn't be empty")
        return stations

    @field_validator("wu_unit")
    @classmethod
    def check_unit(cls, v: str) -> str:
        return Unit.parse(v).value

    @property
    def stations(self) -> List[str]:
        return self.wu_stations

    @property
    def unit(self) -> Unit:
        return Unit.parse(self.wu_unit)

    @property
    def interval_seconds(self) -> float:
        return self.wu_interval / 1000.0

    @property
    def timeout_seconds(self) -> float:
        return self.wu_timeout / 1000.0

    @property
    def backoff_initial_seconds(self) -> float:
        return self.wu_backoff_initial_ms / 1000.0

    @property
    def backoff_max_seconds(self) -> float:
        return self.wu_backoff_max_ms / 1000.0


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
