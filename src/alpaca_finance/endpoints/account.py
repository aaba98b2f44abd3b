"""
Account endpoints (Alpaca trading API v2).

Included routes:
- GET /v2/account
- GET /v2/clock

Logic flow (per method):
1) Pass path to AlpacaHttpClient (which adds the key headers).
2) Map the account payload onto the Account model; return the clock raw.

Tracing notes:
- Rejected keys surface as AuthError from http.py.
- Fields Alpaca sends in an unexpected shape raise DecodeError.
"""

from __future__ import annotations

from typing import Any

from ..http import AlpacaHttpClient
from ..models import Account


class AccountAPI:
    """
    Endpoint grouping for account-related routes.
    """

    def __init__(self, client: AlpacaHttpClient) -> None:
        self._client = client

    def get_account(self) -> Account:
        """
        GET /v2/account

        Outputs: Account snapshot (cash, equity, buying power, flags).
        """

        return Account.from_api(self._client.request("GET", "/v2/account"))

    def get_clock(self) -> dict[str, Any]:
        """
        GET /v2/clock

        Cheap authenticated call, used to check credentials.
        """

        return self._client.request("GET", "/v2/clock")
