"""
Streaming metrics aggregator.

Purpose:
- Track stream health (state, reconnects, errors, drops) and throughput.
- Provide a quick snapshot for monitoring or logging.

Usage:
    metrics = StreamMetrics()
    streamer = Streamer(config, on_event=metrics.on_event)
"""

from __future__ import annotations

from collections import Counter, deque
from dataclasses import dataclass, field
import time


@dataclass
class StreamMetricsSnapshot:
    messages_total: int
    messages_per_sec: float
    messages_by_kind: dict[str, int]
    reconnect_waits: int
    errors: int
    dropped: int
    state: str | None
    last_error: str | None
    last_message_ts: float | None
    last_error_ts: float | None
    last_reconnect_ts: float | None
    last_reconnect_delay: float | None
    fatal: bool = False
    state_history: list[str] = field(default_factory=list)


class StreamMetrics:
    """
    In-memory metrics for a single Streamer, fed by its on_event hook.
    """

    def __init__(self, *, window_seconds: int = 10, history_size: int = 50) -> None:
        self._window_seconds = window_seconds
        self._message_ts: deque[float] = deque()
        self._states: deque[str] = deque(maxlen=history_size)
        self._kinds: Counter[str] = Counter()
        self.messages_total = 0
        self.reconnect_waits = 0
        self.errors = 0
        self.dropped = 0
        self.fatal = False
        self.state: str | None = None
        self.last_error: str | None = None
        self.last_message_ts: float | None = None
        self.last_error_ts: float | None = None
        self.last_reconnect_ts: float | None = None
        self.last_reconnect_delay: float | None = None

    def on_event(self, event: dict) -> None:
        event_type = event.get("event")
        if event_type == "stream_message":
            ts = event.get("received_ts", time.time())
            self.messages_total += 1
            self._kinds[str(event.get("kind", "unknown"))] += 1
            self.last_message_ts = ts
            self._message_ts.append(ts)
            self._trim(ts)
            return
        if event_type == "stream_state":
            self.state = event.get("state")
            if self.state:
                self._states.append(self.state)
            return
        if event_type == "stream_reconnect_wait":
            self.reconnect_waits += 1
            self.last_reconnect_ts = event.get("received_ts", time.time())
            self.last_reconnect_delay = event.get("delay_seconds")
            return
        if event_type == "stream_dropped":
            self.dropped += 1
            return
        if event_type == "stream_error":
            self.errors += 1
            self.last_error = event.get("error")
            self.last_error_ts = event.get("received_ts", time.time())
            if event.get("fatal"):
                self.fatal = True

    def _trim(self, now: float) -> None:
        window_start = now - self._window_seconds
        while self._message_ts and self._message_ts[0] < window_start:
            self._message_ts.popleft()

    def messages_per_second(self, now: float | None = None) -> float:
        now = time.time() if now is None else now
        self._trim(now)
        return len(self._message_ts) / max(self._window_seconds, 1)

    def snapshot(self, now: float | None = None) -> StreamMetricsSnapshot:
        return StreamMetricsSnapshot(
            messages_total=self.messages_total,
            messages_per_sec=self.messages_per_second(now),
            messages_by_kind=dict(self._kinds),
            reconnect_waits=self.reconnect_waits,
            errors=self.errors,
            dropped=self.dropped,
            state=self.state,
            last_error=self.last_error,
            last_message_ts=self.last_message_ts,
            last_error_ts=self.last_error_ts,
            last_reconnect_ts=self.last_reconnect_ts,
            last_reconnect_delay=self.last_reconnect_delay,
            fatal=self.fatal,
            state_history=list(self._states),
        )
