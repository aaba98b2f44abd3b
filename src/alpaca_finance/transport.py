"""
WebSocket transport for the Alpaca trading update stream.

Notes:
- Alpaca pushes account/trade updates over one WebSocket per account.
- The stream may send text or binary frames; both carry UTF-8 JSON.
- This module owns exactly one connection and knows nothing about retries;
  reconnect policy lives in streaming.py.

Sources:
- stream_url from config.py (defaults to the paper/live stream endpoints).

Logic flow:
1) open(): create an aiohttp session and connect within the connect timeout.
2) authenticate(): send the key pair and wait for the authorization reply.
3) send(): write control frames (listen requests).
4) receive(): yield decoded JSON frames until the connection ends.
5) close(): release the websocket and session once.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, AsyncIterator, Protocol
import asyncio
import json
import logging

import aiohttp

from .config import Credentials
from .errors import (
    AuthError,
    AuthErrorKind,
    ConnectError,
    ConnectErrorKind,
    TransportError,
    TransportErrorKind,
)
from .models import frame_kind

logger = logging.getLogger(__name__)


class Transport(Protocol):
    """
    One persistent connection to the update stream.
    """

    close_reason: str | None

    async def open(self) -> None: ...

    async def authenticate(self, credentials: Credentials) -> None: ...

    async def send(self, frame: dict[str, Any]) -> None: ...

    def receive(self) -> AsyncIterator[Any]: ...

    async def close(self) -> None: ...


def decode_frame(data: str | bytes) -> Any:
    """
    Decode one websocket payload into JSON.

    Raises TransportError(MALFORMED) when the payload is not UTF-8 JSON or
    cannot be decoded (oversized integers, nesting too deep).
    """

    try:
        text = data.decode("utf-8") if isinstance(data, (bytes, bytearray)) else data
        return json.loads(text)
    except (ValueError, RecursionError) as exc:
        raise TransportError(
            f"frame is not valid JSON: {exc}", kind=TransportErrorKind.MALFORMED
        ) from exc


@dataclass
class WebSocketTransport:
    """
    aiohttp-backed Transport implementation.
    """

    url: str
    connect_timeout_seconds: float = 10.0
    heartbeat_timeout_seconds: float = 60.0  # 0 disables the idle check.
    ping_interval_seconds: float = 20.0
    close_reason: str | None = None
    _session: aiohttp.ClientSession | None = None
    _ws: aiohttp.ClientWebSocketResponse | None = None
    _closed: bool = False

    async def __aenter__(self) -> "WebSocketTransport":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    @property
    def is_open(self) -> bool:
        return self._ws is not None and not self._ws.closed

    async def open(self) -> None:
        if self._closed:
            raise TransportError("transport already closed", kind=TransportErrorKind.CLOSED)
        if self._ws is not None:
            return

        self._session = aiohttp.ClientSession()
        logger.debug("Connecting to %s", self.url)
        try:
            self._ws = await asyncio.wait_for(
                self._session.ws_connect(
                    self.url,
                    heartbeat=self.ping_interval_seconds or None,
                    autoping=True,
                ),
                timeout=self.connect_timeout_seconds,
            )
        except asyncio.TimeoutError as exc:
            await self.close()
            raise ConnectError(
                f"connect timed out after {self.connect_timeout_seconds}s",
                kind=ConnectErrorKind.TIMEOUT,
                url=self.url,
            ) from exc
        except (aiohttp.ClientError, OSError) as exc:
            await self.close()
            raise ConnectError(
                f"connect failed: {exc}", kind=ConnectErrorKind.NETWORK, url=self.url
            ) from exc

    async def authenticate(self, credentials: Credentials) -> None:
        """
        Exchange the authentication frame before any data frames are accepted.
        """

        await self.send(credentials.auth_frame())
        try:
            reply = await asyncio.wait_for(
                self._await_authorization(), timeout=self.connect_timeout_seconds
            )
        except asyncio.TimeoutError as exc:
            raise ConnectError(
                "authorization reply not received in time",
                kind=ConnectErrorKind.TIMEOUT,
                url=self.url,
            ) from exc

        status = str(reply.get("status", "")).lower()
        if status == "authorized":
            return
        if status == "expired":
            raise AuthError("The credentials have expired", kind=AuthErrorKind.EXPIRED)
        raise AuthError(
            "The key ID or secret key were not accepted",
            kind=AuthErrorKind.INVALID_CREDENTIALS,
            details={"status": status or None},
        )

    async def _await_authorization(self) -> dict[str, Any]:
        while True:
            frame = await self._next_frame(None)
            kind, payload = frame_kind(frame)
            if kind != "authorization":
                logger.debug("Ignoring %s frame before authorization", kind)
                continue
            return payload if isinstance(payload, dict) else {}

    async def send(self, frame: dict[str, Any]) -> None:
        if not self.is_open:
            raise TransportError("connection is not open", kind=TransportErrorKind.CLOSED)
        try:
            await self._ws.send_str(json.dumps(frame))
        except (ConnectionResetError, aiohttp.ClientError) as exc:
            raise TransportError(f"send failed: {exc}", kind=TransportErrorKind.CLOSED) from exc

    async def _next_frame(self, timeout: float | None) -> Any:
        if self._ws is None:
            raise TransportError("connection is not open", kind=TransportErrorKind.CLOSED)
        ws = self._ws
        while True:
            try:
                msg = await ws.receive(timeout=timeout)
            except asyncio.TimeoutError as exc:
                raise TransportError(
                    f"no frame received within {timeout}s", kind=TransportErrorKind.CLOSED
                ) from exc
            except aiohttp.ClientError as exc:
                raise TransportError(
                    f"receive failed: {exc}", kind=TransportErrorKind.CLOSED
                ) from exc

            if msg.type in (aiohttp.WSMsgType.TEXT, aiohttp.WSMsgType.BINARY):
                try:
                    return decode_frame(msg.data)
                except TransportError as exc:
                    # Skip malformed frames to keep the stream alive.
                    logger.warning("Dropping malformed frame: %s", exc)
                    continue
            if msg.type == aiohttp.WSMsgType.ERROR:
                raise TransportError(
                    f"websocket error: {ws.exception()}", kind=TransportErrorKind.CLOSED
                )
            if msg.type in (
                aiohttp.WSMsgType.CLOSE,
                aiohttp.WSMsgType.CLOSING,
                aiohttp.WSMsgType.CLOSED,
            ):
                raise TransportError(
                    f"remote closed the connection (code={ws.close_code})",
                    kind=TransportErrorKind.CLOSED,
                )

    async def receive(self) -> AsyncIterator[Any]:
        """
        Yield decoded frames; ends when the connection closes or goes idle.
        """

        timeout = self.heartbeat_timeout_seconds or None
        while True:
            try:
                frame = await self._next_frame(timeout)
            except TransportError as exc:
                self.close_reason = str(exc)
                logger.info("Stream connection ended: %s", exc)
                return
            yield frame

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        ws, session = self._ws, self._session
        self._ws = None
        self._session = None
        try:
            if ws is not None and not ws.closed:
                await ws.close()
        finally:
            if session is not None:
                await session.close()
