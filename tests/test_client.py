from __future__ import annotations

import threading
from unittest.mock import Mock

import pytest
import requests

from stats_dashboard.api.client import StatsApiClient, api_url
from stats_dashboard.api.errors import ApiStatusError, ApiTransportError, PayloadError
from stats_dashboard.config.settings import ApiConfig


def _response(payload: object = None, status: int = 200) -> Mock:
    response = Mock(spec=requests.Response)
    response.ok = status < 400
    response.status_code = status
    response.json.return_value = payload
    response.text = ""
    return response


def _client(response: Mock | None = None, error: Exception | None = None) -> tuple[StatsApiClient, Mock]:
    session = Mock(spec=requests.Session)
    if error is not None:
        session.get.side_effect = error
    else:
        session.get.return_value = response
    return StatsApiClient("https://stats.example.org/", timeout_seconds=5, session=session), session


def test_api_url_joins_without_double_slashes() -> None:
    assert api_url("https://stats.example.org/", "/summary") == "https://stats.example.org/summary"
    assert api_url("https://stats.example.org", "bins") == "https://stats.example.org/bins"


def test_get_json_passes_params_and_timeout() -> None:
    client, session = _client(_response([{"variable": "Age"}]))

    payload = client.get_json("/summary", {"vars": ["Age", "Sex"]})

    assert payload == [{"variable": "Age"}]
    session.get.assert_called_once_with(
        "https://stats.example.org/summary", params={"vars": ["Age", "Sex"]}, timeout=5
    )


def test_non_success_status_raises_status_error() -> None:
    client, _ = _client(_response({"detail": "upstream down"}, status=503))

    with pytest.raises(ApiStatusError) as exc_info:
        client.get_json("/lm")

    assert exc_info.value.status_code == 503
    assert "upstream down" in str(exc_info.value)


def test_transport_failure_raises_transport_error() -> None:
    client, _ = _client(error=requests.ConnectionError("connection refused"))

    with pytest.raises(ApiTransportError, match="connection refused"):
        client.get_json("/summary")


def test_undecodable_body_raises_payload_error() -> None:
    response = _response()
    response.json.side_effect = ValueError("Expecting value")
    client, _ = _client(response)

    with pytest.raises(PayloadError, match="not JSON"):
        client.get_json("/data")


def test_fetch_variables_parses_catalog() -> None:
    client, session = _client(_response({"continuous": ["Age"], "categorical": ["Sex"]}))

    catalog = client.fetch_variables()

    assert catalog.continuous == ("Age",)
    assert session.get.call_args.args[0].endswith("/variables")


def test_fetch_raw_data_returns_rows() -> None:
    client, _ = _client(_response([{"id": 1}, {"id": 2}]))

    assert client.fetch_raw_data() == [{"id": 1}, {"id": 2}]


def test_from_config_uses_base_url_and_timeout() -> None:
    client = StatsApiClient.from_config(ApiConfig(base_url="https://api.test", timeout_seconds=12))

    assert client.base_url == "https://api.test"
    assert client.timeout_seconds == 12
    assert isinstance(client.session, requests.Session)


def test_repeated_query_params_are_encoded_per_value() -> None:
    request = requests.Request(
        "GET", api_url("https://api.test", "/summary"), params={"vars": ["Age", "Sex"]}
    ).prepare()

    assert request.url == "https://api.test/summary?vars=Age&vars=Sex"


def test_each_thread_gets_its_own_session() -> None:
    client = StatsApiClient("https://api.test")
    seen: list[requests.Session] = []

    def grab() -> None:
        seen.append(client.session)
        seen.append(client.session)

    for _ in range(2):
        worker = threading.Thread(target=grab)
        worker.start()
        worker.join()

    assert seen[0] is seen[1]
    assert seen[2] is seen[3]
    assert seen[0] is not seen[2]
    assert client.session is not seen[0]


def test_injected_session_is_shared_across_threads() -> None:
    client, session = _client(_response({}))
    seen: list[requests.Session] = []

    worker = threading.Thread(target=lambda: seen.append(client.session))
    worker.start()
    worker.join()

    assert seen == [session]
    assert client.session is session
