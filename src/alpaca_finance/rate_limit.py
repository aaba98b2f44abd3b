"""
Sliding-window rate limiters for REST request throughput control.

Purpose:
- Keep request rate under Alpaca's documented limit (200 requests / minute).
- Provide lightweight control without external dependencies.
"""

from __future__ import annotations

from collections import deque
import asyncio
import time


class _Window:
    def __init__(self, max_requests: int, window_seconds: float) -> None:
        if max_requests <= 0:
            raise ValueError("max_requests must be > 0")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be > 0")
        self._max = max_requests
        self._window = window_seconds
        self._timestamps: deque[float] = deque()

    def delay(self, now: float) -> float:
        """
        Seconds to wait before another request fits in the window.
        """

        window_start = now - self._window
        while self._timestamps and self._timestamps[0] <= window_start:
            self._timestamps.popleft()
        if len(self._timestamps) < self._max:
            return 0.0
        return max(0.0, self._window - (now - self._timestamps[0]))

    def record(self, now: float) -> None:
        self._timestamps.append(now)


class RateLimiter:
    """
    Synchronous limiter: at most `max_requests` per `window_seconds`.
    """

    def __init__(self, max_requests: int, window_seconds: float = 60.0) -> None:
        self._window = _Window(max_requests, window_seconds)

    def wait(self) -> None:
        sleep_for = self._window.delay(time.monotonic())
        if sleep_for > 0:
            time.sleep(sleep_for)
        self._window.record(time.monotonic())


class AsyncRateLimiter:
    """
    Async limiter: at most `max_requests` per `window_seconds`.
    """

    def __init__(self, max_requests: int, window_seconds: float = 60.0) -> None:
        self._window = _Window(max_requests, window_seconds)
        self._lock = asyncio.Lock()

    async def wait(self) -> None:
        async with self._lock:
            sleep_for = self._window.delay(time.monotonic())
            if sleep_for > 0:
                await asyncio.sleep(sleep_for)
            self._window.record(time.monotonic())
