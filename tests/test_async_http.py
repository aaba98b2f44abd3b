import pytest

from alpaca_finance.async_http import AlpacaAsyncHttpClient
from alpaca_finance.config import Credentials
from alpaca_finance.errors import ApiError, AuthError


class DummyResponse:
    def __init__(self, payload, status=200):
        self._payload = payload
        self.status = status

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return None

    async def json(self, content_type="application/json"):
        return self._payload

    async def text(self):
        return str(self._payload)


class DummySession:
    def __init__(self, payload=None, status=200):
        self.payload = payload if payload is not None else {"ok": True}
        self.status = status
        self.last_headers = None
        self.last_url = None
        self.last_method = None

    def request(self, *, method, url, params=None, json=None, headers=None):
        self.last_headers = headers
        self.last_url = url
        self.last_method = method
        return DummyResponse(self.payload, self.status)

    async def close(self):
        return None


def make_client(session: DummySession) -> AlpacaAsyncHttpClient:
    client = AlpacaAsyncHttpClient(
        base_url="https://example.com", credentials=Credentials("someKey", "someSecret")
    )
    client._session = session
    return client


@pytest.mark.asyncio
async def test_async_http_client_sets_headers():
    dummy = DummySession()
    payload = await make_client(dummy).request("GET", "/v2/account")
    assert payload["ok"] is True
    assert dummy.last_url == "https://example.com/v2/account"
    assert dummy.last_headers["APCA-API-KEY-ID"] == "someKey"


@pytest.mark.asyncio
async def test_async_http_client_maps_status_errors():
    with pytest.raises(AuthError):
        await make_client(DummySession({"message": "unauthorized"}, status=401)).request("GET", "/v2/account")
    with pytest.raises(ApiError) as info:
        await make_client(DummySession({"message": "rate limited"}, status=429)).request("GET", "/v2/account")
    assert info.value.status == 429
    assert info.value.body == {"message": "rate limited"}
