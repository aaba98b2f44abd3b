from __future__ import annotations

import pytest
import requests
import responses

from alpaca_finance.config import Credentials
from alpaca_finance.errors import ApiError, AuthError, NetworkError
from alpaca_finance.http import AlpacaHttpClient


def make_client() -> AlpacaHttpClient:
    return AlpacaHttpClient(base_url="https://example.com", credentials=Credentials("someKey", "someSecret"))


@responses.activate
def test_http_client_request_injects_key_headers() -> None:
    client = make_client()
    responses.add(responses.GET, "https://example.com/v2/clock", json={"is_open": True}, status=200)
    payload = client.request("GET", "/v2/clock")
    assert payload == {"is_open": True}
    headers = responses.calls[0].request.headers
    assert headers["APCA-API-KEY-ID"] == "someKey"
    assert headers["APCA-API-SECRET-KEY"] == "someSecret"


@responses.activate
def test_http_client_maps_forbidden_to_auth_error() -> None:
    responses.add(responses.GET, "https://example.com/v2/account", json={"message": "forbidden"}, status=403)
    with pytest.raises(AuthError):
        make_client().request("GET", "/v2/account")


@responses.activate
def test_http_client_maps_other_failures_to_api_error() -> None:
    responses.add(responses.GET, "https://example.com/v2/account", body="oops", status=500)
    with pytest.raises(ApiError) as info:
        make_client().request("GET", "/v2/account")
    assert info.value.status == 500
    assert info.value.body == "oops"


@responses.activate
def test_http_client_maps_connection_failures_to_network_error() -> None:
    responses.add(
        responses.GET,
        "https://example.com/v2/account",
        body=requests.ConnectionError("refused"),
    )
    with pytest.raises(NetworkError):
        make_client().request("GET", "/v2/account")
