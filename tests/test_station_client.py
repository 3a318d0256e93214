"""
Tests for the PWS station client.

The HTTP session is a MagicMock; no network access.
"""

import threading
from datetime import date

import pytest
import requests

from conftest import make_response
from src.wunderground.client import BASE_URL, StationClient, create_session
from src.wunderground.credentials import CredentialStore
from src.wunderground.exceptions import (
    CredentialNotFound,
    HttpStatus,
    InvalidRequestOptions,
    PayloadInvalid,
    TransportError,
)
from src.wunderground.query import History, RequestOptions, Unit
from src.wunderground.schemas import HistoryResponse


@pytest.fixture
def client(session):
    return StationClient(timeout=2.0, api_key="testkey", session=session)


class TestCreateSession:
    """Test transport setup."""

    def test_headers(self):
        session = create_session()
        try:
            assert session.headers["Accept-Encoding"] == "gzip"
            assert session.headers["Accept"] == "application/json"
            assert "User-Agent" in session.headers
        finally:
            session.close()


class TestFetchCurrent:
    """Test current-observation requests."""

    def test_success(self, client, session, current_body):
        session.get.return_value = make_response(200, current_body)

        response = client.fetch_current("KCASANFR1")

        assert response is not None
        assert response.observations[0].values().temp == 9.4
        url = session.get.call_args.args[0]
        assert url == (
            f"{BASE_URL}observations/current?apiKey=testkey&stationId=KCASANFR1"
            "&units=m&format=json&numericPrecision=decimal"
        )
        assert session.get.call_args.kwargs["timeout"] == 2.0
        assert session.get.call_args.kwargs["headers"] == {"Accept-Encoding": "gzip"}

    def test_imperial_units(self, client, session, current_body):
        session.get.return_value = make_response(200, current_body)

        client.fetch_current("KCASANFR1", RequestOptions(unit=Unit.IMPERIAL))

        assert "&units=e&" in session.get.call_args.args[0]

    def test_no_content_returns_none(self, client, session):
        session.get.return_value = make_response(204)
        assert client.fetch_current("KCASANFR1") is None

    @pytest.mark.parametrize("status", [400, 404, 429, 500, 503])
    def test_error_status(self, client, session, status):
        session.get.return_value = make_response(status)

        with pytest.raises(HttpStatus) as exc_info:
            client.fetch_current("KCASANFR1")
        assert exc_info.value.status_code == status
        assert not exc_info.value.is_auth_error

    def test_transport_error(self, client, session):
        session.get.side_effect = requests.exceptions.Timeout("read timed out")

        with pytest.raises(TransportError) as exc_info:
            client.fetch_current("KCASANFR1")
        assert isinstance(exc_info.value.__cause__, requests.exceptions.Timeout)

    def test_invalid_payload(self, client, session):
        session.get.return_value = make_response(200, b'{"observations": [{"epoch": "soon"}]}')

        with pytest.raises(PayloadInvalid):
            client.fetch_current("KCASANFR1")

    def test_rejects_history_options(self, client, session):
        options = RequestOptions.for_history(History.DAILY, date(2024, 1, 15))
        with pytest.raises(InvalidRequestOptions):
            client.fetch_current("KCASANFR1", options)
        session.get.assert_not_called()


class TestCredentialHandling:
    """Test key bootstrap and rotation through the client."""

    def test_bootstrap_on_first_request_only(self, session, home_html, current_body):
        session.get.side_effect = [
            make_response(200, text=home_html),
            make_response(200, current_body),
            make_response(200, current_body),
        ]
        client = StationClient(session=session)

        client.fetch_current("A")
        client.fetch_current("B")

        urls = [call.args[0] for call in session.get.call_args_list]
        assert urls[0] == "https://www.wunderground.com"
        assert all("apiKey=6532d6454b8aa370768e63d6ba5a832e" in u for u in urls[1:])
        assert client.credentials.fetch_count == 1

    def test_missing_key_propagates(self, session):
        session.get.return_value = make_response(200, text="<html></html>")
        client = StationClient(session=session)

        with pytest.raises(CredentialNotFound):
            client.fetch_current("A")

    def test_auth_failure_refreshes_key_once(self, session, current_body):
        session.get.side_effect = [
            make_response(200, text="apiKey=stale1"),
            make_response(401),
            make_response(200, text="apiKey=fresh2"),
            make_response(200, current_body),
        ]
        client = StationClient(session=session)

        response = client.fetch_current("A")

        assert response is not None
        urls = [call.args[0] for call in session.get.call_args_list]
        assert "apiKey=stale1" in urls[1]
        assert "apiKey=fresh2" in urls[3]
        assert client.credentials.fetch_count == 2

    def test_repeated_auth_failure_raises(self, session):
        session.get.side_effect = [
            make_response(200, text="apiKey=stale1"),
            make_response(403),
            make_response(200, text="apiKey=stale1"),
            make_response(403),
        ]
        client = StationClient(session=session)

        with pytest.raises(HttpStatus) as exc_info:
            client.fetch_current("A")
        assert exc_info.value.is_auth_error
        assert session.get.call_count == 4

    def test_pinned_key_auth_failure_not_refreshed(self, client, session):
        session.get.return_value = make_response(401)

        with pytest.raises(HttpStatus):
            client.fetch_current("A")
        assert session.get.call_count == 1

    def test_shared_credential_store(self, session, home_html, current_body):
        session.get.side_effect = [
            make_response(200, text=home_html),
            make_response(200, current_body),
            make_response(200, current_body),
        ]
        store = CredentialStore()
        first = StationClient(session=session, credentials=store)
        second = StationClient(session=session, credentials=store)

        first.fetch_current("A")
        second.fetch_current("B")

        assert store.fetch_count == 1

    def test_concurrent_auth_failures_refresh_once(self, session, current_body):
        """Two requests rejected with the same stale key trigger one refetch."""
        bootstrap_keys = iter(["stale1", "fresh2", "extra3"])
        rejected = threading.Barrier(2, timeout=5)

        def get(url, **kwargs):
            if url == "https://www.wunderground.com":
                return make_response(200, text=f"apiKey={next(bootstrap_keys)}")
            if "apiKey=stale1" in url:
                rejected.wait()
                return make_response(401)
            return make_response(200, current_body)

        session.get.side_effect = get
        store = CredentialStore()
        client = StationClient(session=session, credentials=store)
        assert store.get(session) == "stale1"

        results = {}
        errors = []

        def worker(station_id):
            try:
                results[station_id] = client.fetch_current(station_id)
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=worker, args=(s,)) for s in ("A", "B")]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=10)

        assert errors == []
        assert set(results) == {"A", "B"}
        assert store.fetch_count == 2
        assert store.get(session) == "fresh2"


class TestFetchHistory:
    """Test history requests."""

    def test_hourly(self, client, session, history_body):
        session.get.return_value = make_response(200, history_body)
        options = RequestOptions.for_history(History.HOURLY, date(2024, 1, 15), unit=Unit.IMPERIAL)

        response = client.fetch_history("KCASANFR1", options)

        assert len(response.observations) == 2
        url = session.get.call_args.args[0]
        assert url.startswith(f"{BASE_URL}history/hourly?")
        assert url.endswith("&date=20240115")

    def test_no_content_is_empty(self, client, session):
        session.get.return_value = make_response(204)
        options = RequestOptions.for_history(History.DAILY, date(2024, 1, 15))

        assert client.fetch_history("KCASANFR1", options) == HistoryResponse(observations=[])

    def test_rejects_current_options(self, client):
        with pytest.raises(InvalidRequestOptions):
            client.fetch_history("KCASANFR1", RequestOptions())


class TestFetchRaw:
    """Test undecoded access."""

    def test_returns_json(self, client, session):
        response = make_response(200, b'{"observations": []}')
        response.json.return_value = {"observations": []}
        session.get.return_value = response

        assert client.fetch_raw("A") == {"observations": []}

    def test_no_content(self, client, session):
        session.get.return_value = make_response(204)
        assert client.fetch_raw("A") is None

    def test_bad_json(self, client, session):
        response = make_response(200, b"oops")
        response.json.side_effect = ValueError("Expecting value")
        session.get.return_value = response

        with pytest.raises(PayloadInvalid):
            client.fetch_raw("A")


class TestContextManager:
    def test_closes_session(self, session):
        with StationClient(session=session, api_key="k"):
            pass
        session.close.assert_called_once()
