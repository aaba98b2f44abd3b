"""
Reconnecting update stream for Alpaca account and order (trade) updates.

Notes:
- One Streamer owns at most one live transport at a time.
- The connection loop runs as a background task that feeds a bounded queue;
  the consumer pulls typed messages from start().
- Transient failures (connect errors, drops, idle timeouts) are retried with
  capped exponential backoff and never reach the consumer.
- Invalid credentials end the stream with AuthError.

Logic flow:
1) start() hands out a single-use async iterator.
2) The first pull spawns _run(): connect -> authenticate -> listen.
3) Frames are classified (models.classify) and queued in arrival order.
4) On disconnect, wait min(initial * 2**(attempt-1), max) and reconnect.
5) stop() (or leaving the iterator) cancels the loop and closes the transport.

Example:
    async with Streamer(config) as streamer:
        async for msg in streamer.start():
            if isinstance(msg, OrderUpdate):
                print(msg.event, msg.status)
"""

from __future__ import annotations

from enum import Enum
from typing import Any, AsyncIterator, Callable
import asyncio
import logging
import time

from .config import ConnectionConfig, Credentials
from .errors import AuthError, ConnectError, TransportError, TransportErrorKind
from .models import StreamMessage, Unknown, classify, is_control_frame, listen_frame
from .transport import Transport, WebSocketTransport

logger = logging.getLogger(__name__)

TransportFactory = Callable[[ConnectionConfig], Transport]
EventHook = Callable[[dict[str, Any]], None]
CredentialsRefresher = Callable[[], Credentials]


class ConnectionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    AUTHENTICATING = "authenticating"
    SUBSCRIBED = "subscribed"
    RECONNECTING = "reconnecting"
    CLOSED = "closed"


def default_transport_factory(config: ConnectionConfig) -> Transport:
    settings = config.settings
    return WebSocketTransport(
        url=config.stream_url,
        connect_timeout_seconds=settings.connect_timeout_seconds,
        heartbeat_timeout_seconds=settings.heartbeat_timeout_seconds,
        ping_interval_seconds=settings.ping_interval_seconds,
    )


def backoff_delay(attempt: int, initial_seconds: float, max_seconds: float) -> float:
    """
    Delay before reconnect attempt `attempt` (1-based). Non-decreasing, capped.
    """

    if attempt < 1:
        return 0.0
    # Cap the exponent so large attempt counts cannot overflow.
    exponent = min(attempt - 1, 62)
    return min(initial_seconds * (2 ** exponent), max_seconds)


class Streamer:
    """
    Realtime event streamer for order and account updates.

    A Streamer streams once: start() may be called a single time, and a stopped
    Streamer cannot be restarted. Build a new instance to stream again.
    """

    def __init__(
        self,
        config: ConnectionConfig,
        *,
        transport_factory: TransportFactory | None = None,
        credentials_refresher: CredentialsRefresher | None = None,
        on_event: EventHook | None = None,
    ) -> None:
        self._config = config
        self._settings = config.settings
        self._credentials = config.credentials
        self._transport_factory = transport_factory or default_transport_factory
        self._credentials_refresher = credentials_refresher
        self._on_event = on_event

        self._state = ConnectionState.DISCONNECTED
        self._transport: Transport | None = None
        self._queue: asyncio.Queue[StreamMessage] = asyncio.Queue(
            maxsize=self._settings.buffer_capacity
        )
        self._stop_event = asyncio.Event()
        self._done_event = asyncio.Event()
        self._task: asyncio.Task[None] | None = None
        self._started = False
        self._error: BaseException | None = None

        self.connect_attempts = 0
        self.dropped = 0

    async def __aenter__(self) -> "Streamer":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def closed(self) -> bool:
        return self._state == ConnectionState.CLOSED

    def start(self) -> AsyncIterator[StreamMessage]:
        """
        Start streaming. Returns a lazy, single-consumer async iterator.
        """

        if self._started or self.closed:
            raise RuntimeError(
                "Streamer cannot be restarted; create a new Streamer to stream again."
            )
        self._started = True
        return self._consume()

    async def stop(self) -> None:
        """
        Request cancellation, close the transport and end the iterator.
        """

        self._stop_event.set()
        task = self._task
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        await self._release_transport()
        self._set_state(ConnectionState.CLOSED)
        self._done_event.set()

    async def _consume(self) -> AsyncIterator[StreamMessage]:
        self._task = asyncio.create_task(self._run(), name="alpaca-update-stream")
        try:
            while True:
                item = await self._next_message()
                if item is None:
                    break
                yield item
            if self._error is not None and not self._stop_event.is_set():
                raise self._error
        finally:
            await self.stop()

    async def _next_message(self) -> StreamMessage | None:
        while True:
            if self._stop_event.is_set():
                return None
            if not self._queue.empty():
                return self._queue.get_nowait()
            if self._done_event.is_set():
                return None

            getter = asyncio.ensure_future(self._queue.get())
            waiters = {
                getter,
                asyncio.ensure_future(self._stop_event.wait()),
                asyncio.ensure_future(self._done_event.wait()),
            }
            try:
                await asyncio.wait(waiters, return_when=asyncio.FIRST_COMPLETED)
            finally:
                for waiter in waiters:
                    if not waiter.done():
                        waiter.cancel()
            if getter.done() and not getter.cancelled():
                message = getter.result()
                # Nothing is emitted once cancellation has been observed.
                if self._stop_event.is_set():
                    return None
                return message

    async def _run(self) -> None:
        attempt = 0
        try:
            while not self._stop_event.is_set():
                last_error: Exception | None = None
                transport = self._acquire_transport()
                try:
                    self._set_state(ConnectionState.CONNECTING)
                    self.connect_attempts += 1
                    await transport.open()
                    self._set_state(ConnectionState.AUTHENTICATING)
                    await transport.authenticate(self._credentials)
                    await transport.send(listen_frame(self._settings.streams))
                    self._set_state(ConnectionState.SUBSCRIBED)
                    attempt = 0
                    async for frame in transport.receive():
                        if self._stop_event.is_set():
                            break
                        await self._dispatch(frame)
                    reason = transport.close_reason or "stream ended"
                except AuthError as exc:
                    if not self._refresh_credentials(exc):
                        logger.error("Stream authentication failed: %s", exc)
                        self._emit({"event": "stream_error", "error": str(exc), "fatal": True})
                        self._error = exc
                        return
                    reason = str(exc)
                    last_error = exc
                except (ConnectError, TransportError) as exc:
                    reason = str(exc)
                    last_error = exc
                finally:
                    await self._release_transport()

                if self._stop_event.is_set():
                    return

                self._emit({"event": "stream_error", "error": reason, "received_ts": time.time()})
                attempt += 1
                max_retries = self._settings.max_retries
                if max_retries is not None and attempt > max_retries:
                    logger.error("Stream giving up after %d reconnect attempts: %s", max_retries, reason)
                    self._error = last_error or TransportError(
                        reason, kind=TransportErrorKind.CLOSED
                    )
                    return

                delay = backoff_delay(
                    attempt,
                    self._settings.initial_backoff_seconds,
                    self._settings.max_backoff_seconds,
                )
                self._set_state(ConnectionState.RECONNECTING)
                logger.warning(
                    "Stream disconnected (%s); reconnecting in %.2fs (attempt %d)",
                    reason,
                    delay,
                    attempt,
                )
                self._emit(
                    {
                        "event": "stream_reconnect_wait",
                        "delay_seconds": delay,
                        "attempt": attempt,
                        "received_ts": time.time(),
                    }
                )
                if await self._wait_for_stop(delay):
                    return
        except Exception as exc:
            logger.exception("Stream loop failed")
            self._error = exc
        finally:
            await self._release_transport()
            self._set_state(ConnectionState.CLOSED)
            self._done_event.set()

    def _acquire_transport(self) -> Transport:
        if self._transport is not None:
            raise RuntimeError("Streamer already holds a live transport")
        self._transport = self._transport_factory(self._config)
        return self._transport

    async def _release_transport(self) -> None:
        transport, self._transport = self._transport, None
        if transport is not None:
            await transport.close()

    def _refresh_credentials(self, exc: AuthError) -> bool:
        if exc.fatal or self._credentials_refresher is None:
            return False
        logger.info("Stream credentials expired; refreshing")
        self._credentials = self._credentials_refresher()
        return True

    async def _dispatch(self, frame: Any) -> None:
        if is_control_frame(frame):
            logger.debug("Control frame: %s", frame)
            return
        message = classify(frame)
        if isinstance(message, Unknown) and message.reason:
            logger.warning("Could not decode %s frame: %s", message.kind, message.reason)
        self._emit({"event": "stream_message", "kind": message.kind, "received_ts": time.time()})
        await self._publish(message)

    async def _publish(self, message: StreamMessage) -> None:
        if self._settings.overflow_policy == "block":
            await self._queue.put(message)
            return
        if self._queue.full():
            dropped = self._queue.get_nowait()
            self.dropped += 1
            logger.warning("Stream buffer full; dropped oldest %s message", dropped.kind)
            self._emit({"event": "stream_dropped", "kind": dropped.kind})
        self._queue.put_nowait(message)

    async def _wait_for_stop(self, timeout: float) -> bool:
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=timeout)
            return True
        except asyncio.TimeoutError:
            return False

    def _set_state(self, state: ConnectionState) -> None:
        previous = self._state
        if previous == state or previous == ConnectionState.CLOSED:
            return
        self._state = state
        logger.info("Stream state: %s -> %s", previous.value, state.value)
        self._emit({"event": "stream_state", "state": state.value, "previous": previous.value})

    def _emit(self, event: dict[str, Any]) -> None:
        if self._on_event is None:
            return
        try:
            self._on_event(event)
        except Exception as exc:
            logger.warning("Stream event hook failed: %s", exc)
