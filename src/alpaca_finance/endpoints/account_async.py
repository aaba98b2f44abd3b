"""
Async account endpoints (Alpaca trading API v2).

Included routes:
- GET /v2/account
- GET /v2/clock
"""

from __future__ import annotations

from typing import Any

from ..async_http import AlpacaAsyncHttpClient
from ..models import Account


class AccountAsyncAPI:
    """
    Async endpoint grouping for account-related routes.
    """

    def __init__(self, client: AlpacaAsyncHttpClient) -> None:
        self._client = client

    async def get_account(self) -> Account:
        payload = await self._client.request("GET", "/v2/account")
        return Account.from_api(payload)

    async def get_clock(self) -> dict[str, Any]:
        return await self._client.request("GET", "/v2/clock")
