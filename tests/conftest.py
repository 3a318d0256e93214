"""Pytest fixtures and configuration."""

import os
import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest
import requests

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def load_fixture(name: str) -> bytes:
    return (FIXTURES_DIR / name).read_bytes()


def make_response(status_code: int = 200, content: bytes = b"", text: str = None) -> MagicMock:
    """Build a stand-in for requests.Response."""
    response = MagicMock(spec=requests.Response)
    response.status_code = status_code
    response.reason = "OK" if status_code == 200 else ""
    response.content = content
    response.text = text if text is not None else content.decode("utf-8", errors="replace")
    return response


@pytest.fixture
def fixtures_dir():
    return FIXTURES_DIR


@pytest.fixture
def home_html():
    return load_fixture("home.html").decode("utf-8")


@pytest.fixture
def current_body():
    return load_fixture("current_metric.json")


@pytest.fixture
def history_body():
    return load_fixture("history_hourly.json")


@pytest.fixture
def session():
    """Mock requests.Session; set session.get.side_effect per test."""
    mock = MagicMock(spec=requests.Session)
    mock.headers = {}
    return mock


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Settings are cached process-wide; reset between tests."""
    from src.config.settings import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
