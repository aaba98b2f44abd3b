"""
Async HTTP client wrapper for Alpaca trading REST endpoints.

Purpose:
- Provide async I/O alongside the update stream.
- Keep endpoint modules focused on URL paths and parameters.

Logic flow:
1) The caller instantiates AlpacaAsyncHttpClient with base_url + credentials.
2) Endpoint methods call request(method, path, ...).
3) request() builds the full URL, injects headers, and delegates to aiohttp.
4) JSON response is returned; failures raise NetworkError/AuthError/ApiError.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any
import asyncio
import logging

import aiohttp

from .config import Credentials
from .errors import NetworkError
from .http import raise_for_status
from .rate_limit import AsyncRateLimiter

logger = logging.getLogger(__name__)


@dataclass
class AlpacaAsyncHttpClient:
    """
    Minimal async HTTP client that handles auth + base URL.
    """

    base_url: str
    credentials: Credentials
    timeout_seconds: int = 30
    requests_per_minute: int | None = None
    debug_logging: bool = False
    _session: aiohttp.ClientSession | None = None
    _rate_limiter: AsyncRateLimiter | None = None

    async def __aenter__(self) -> "AlpacaAsyncHttpClient":
        self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._session is not None:
            await self._session.close()
            self._session = None

    def _ensure_session(self) -> None:
        if self._session is None:
            timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)
            self._session = aiohttp.ClientSession(timeout=timeout)
        if self._rate_limiter is None and self.requests_per_minute is not None:
            self._rate_limiter = AsyncRateLimiter(self.requests_per_minute, 60.0)

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json_body: dict[str, Any] | None = None,
    ) -> Any:
        """
        Send a single HTTP request and return JSON payload.
        """

        self._ensure_session()
        url = f"{self.base_url.rstrip('/')}{path}"
        headers = self.credentials.auth_headers()

        if self._rate_limiter:
            await self._rate_limiter.wait()
        if self.debug_logging:
            logger.info("HTTP %s %s", method.upper(), url)
        try:
            async with self._session.request(
                method=method.upper(),
                url=url,
                params=params,
                json=json_body,
                headers=headers,
            ) as response:
                if response.status >= 400:
                    try:
                        body: Any = await response.json(content_type=None)
                    except ValueError:
                        body = await response.text()
                    raise_for_status(response.status, url, body)
                return await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise NetworkError(f"{method.upper()} {url} failed: {exc}") from exc
