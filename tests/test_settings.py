"""
Tests for environment-driven settings.
"""

import pytest
from pydantic import ValidationError

from src.config.settings import Settings, get_settings
from src.wunderground.query import Unit


@pytest.fixture
def env(monkeypatch):
    for name in (
        "WU_STATIONS", "WU_INTERVAL", "WU_TIMEOUT", "WU_UNIT", "WU_API_KEY",
        "WU_RETRIES", "WU_MAX_WORKERS", "WU_FAIL_FAST", "INFLUX_HOST",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestSettings:
    """Test settings parsing and validation."""

    def test_defaults(self, env):
        env.setenv("WU_STATIONS", "KCASANFR1")
        settings = Settings(_env_file=None)

        assert settings.stations == ["KCASANFR1"]
        assert settings.interval_seconds == 60.0
        assert settings.timeout_seconds == 10.0
        assert settings.unit is Unit.METRIC
        assert settings.wu_api_key is None
        assert settings.wu_retries == 10
        assert settings.influx_host == "http://localhost:8086"
        assert settings.influx_database == "default"

    def test_station_list(self, env):
        env.setenv("WU_STATIONS", " A, B ,,C ")
        assert Settings(_env_file=None).stations == ["A", "B", "C"]

    def test_stations_required(self, env):
        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    def test_stations_not_empty(self, env):
        env.setenv("WU_STATIONS", " , ")
        with pytest.raises(ValidationError, match="WU_STATIONS shouldn't be empty"):
            Settings(_env_file=None)

    def test_durations_in_milliseconds(self, env):
        env.setenv("WU_STATIONS", "A")
        env.setenv("WU_INTERVAL", "1500")
        env.setenv("WU_TIMEOUT", "250")
        settings = Settings(_env_file=None)

        assert settings.interval_seconds == 1.5
        assert settings.timeout_seconds == 0.25

    @pytest.mark.parametrize("name,value", [
        ("WU_INTERVAL", "soon"),
        ("WU_INTERVAL", "0"),
        ("WU_TIMEOUT", "-5"),
        ("WU_UNIT", "kelvin"),
        ("WU_RETRIES", "0"),
    ])
    def test_invalid_values(self, env, name, value):
        env.setenv("WU_STATIONS", "A")
        env.setenv(name, value)
        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    def test_imperial_unit(self, env):
        env.setenv("WU_STATIONS", "A")
        env.setenv("WU_UNIT", "imperial")
        settings = Settings(_env_file=None)

        assert settings.wu_unit == "e"
        assert settings.unit is Unit.IMPERIAL

    def test_get_settings_cached(self, env):
        env.setenv("WU_STATIONS", "A")
        assert get_settings() is get_settings()
