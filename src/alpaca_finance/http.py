"""
HTTP client wrapper for Alpaca trading REST endpoints.

Purpose:
- Provide a single place to manage auth headers and base URL handling.
- Map transport and status failures onto the package error taxonomy.
- Keep endpoint modules focused on URL paths and parameters.

Sources:
- base_url: resolved in config.py (defaults to the live/paper API URLs).
- credentials: resolved in config.py from environment variables.

Logic flow:
1) The caller instantiates AlpacaHttpClient with base_url + credentials.
2) Endpoint methods call request(method, path, ...).
3) request() builds the full URL, injects headers, and delegates to requests.
4) JSON response is returned; failures raise NetworkError/AuthError/ApiError.

Requests are sent once; there is no retry policy here.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any
import logging

import requests

from .config import Credentials
from .errors import ApiError, AuthError, AuthErrorKind, NetworkError
from .rate_limit import RateLimiter

logger = logging.getLogger(__name__)


def raise_for_status(status: int, url: str, body: Any) -> None:
    """
    Shared status -> exception mapping for the sync and async clients.
    """

    if status in (401, 403):
        raise AuthError(
            "The key ID or secret key were not accepted",
            kind=AuthErrorKind.INVALID_CREDENTIALS,
            details={"status": status, "url": url},
        )
    if status >= 400:
        raise ApiError(f"'{url}' returned a {status} result", status=status, body=body)


@dataclass
class AlpacaHttpClient:
    """
    Minimal HTTP client that handles auth + base URL.
    """

    base_url: str
    credentials: Credentials
    timeout_seconds: int = 30
    requests_per_minute: int | None = None
    debug_logging: bool = False

    def __post_init__(self) -> None:
        self._session = requests.Session()
        self._rate_limiter = (
            RateLimiter(self.requests_per_minute, 60.0)
            if self.requests_per_minute is not None
            else None
        )

    def close(self) -> None:
        self._session.close()

    def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json_body: dict[str, Any] | None = None,
    ) -> Any:
        """
        Send a single HTTP request and return JSON payload.

        Inputs:
        - method: HTTP method (GET, POST, etc.).
        - path: endpoint path (e.g., /v2/account).
        - params/json_body: query/body payloads as needed.

        Outputs:
        - Parsed JSON response.

        Errors:
        - NetworkError when no response arrives.
        - AuthError for 401/403, ApiError for any other non-2xx status.
        """

        url = f"{self.base_url.rstrip('/')}{path}"
        headers = self.credentials.auth_headers()

        if self._rate_limiter:
            self._rate_limiter.wait()
        if self.debug_logging:
            logger.info("HTTP %s %s", method.upper(), url)
        try:
            response = self._session.request(
                method=method.upper(),
                url=url,
                params=params,
                json=json_body,
                headers=headers,
                timeout=self.timeout_seconds,
            )
        except requests.RequestException as exc:
            raise NetworkError(f"{method.upper()} {url} failed: {exc}") from exc

        if response.status_code >= 400:
            try:
                body: Any = response.json()
            except ValueError:
                body = response.text
            raise_for_status(response.status_code, url, body)
        if not response.content:
            return None
        return response.json()
