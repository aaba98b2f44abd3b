"""
Typed models for update-stream messages and account snapshots.

Purpose:
- Provide typed views of stream payloads for easy pattern matching.
- Keep classification pure and non-raising so one bad frame never ends the stream.

Notes:
- Every message keeps its raw payload for forward compatibility.
- Frames arrive either in Alpaca's envelope ({"stream": kind, "data": {...}})
  or flat ({"type": kind, ...}); both are classified the same way.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping

from .errors import DecodeError

ACCOUNT_KINDS = frozenset({"account_updates", "account_update"})
ORDER_KINDS = frozenset({"trade_updates", "order_update"})
CONTROL_KINDS = frozenset({"authorization", "listening"})


@dataclass(frozen=True)
class StreamMessage:
    """
    Base stream message with raw payload.
    """

    kind: str
    raw: Any


@dataclass(frozen=True)
class AccountUpdate(StreamMessage):
    id: str | None = None
    status: str | None = None
    cash: float | None = None
    cash_withdrawable: float | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    deleted_at: datetime | None = None


@dataclass(frozen=True)
class OrderUpdate(StreamMessage):
    event: str | None = None
    status: str | None = None
    order_id: str | None = None
    symbol: str | None = None
    side: str | None = None
    qty: float | None = None
    filled_qty: float | None = None
    price: float | None = None
    position_qty: float | None = None
    timestamp: datetime | None = None
    order: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Unknown(StreamMessage):
    reason: str | None = None


@dataclass(frozen=True)
class Account:
    """
    Snapshot from GET /v2/account.
    """

    id: str
    account_number: str | None
    status: str | None
    cash: float | None
    equity: float | None
    long_market_value: float | None
    short_market_value: float | None
    buying_power: float | None
    account_blocked: bool
    pattern_day_trader: bool
    trade_suspended_by_user: bool
    trading_blocked: bool
    transfers_blocked: bool
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_api(cls, payload: Mapping[str, Any]) -> "Account":
        if "id" not in payload:
            raise DecodeError("account payload has no id", field="id")
        return cls(
            id=str(payload["id"]),
            account_number=_optional_str(payload.get("account_number")),
            status=_optional_str(payload.get("status")),
            cash=to_float(payload.get("cash"), "cash"),
            equity=to_float(payload.get("equity"), "equity"),
            long_market_value=to_float(payload.get("long_market_value"), "long_market_value"),
            short_market_value=to_float(payload.get("short_market_value"), "short_market_value"),
            buying_power=to_float(payload.get("buying_power"), "buying_power"),
            account_blocked=bool(payload.get("account_blocked", False)),
            pattern_day_trader=bool(payload.get("pattern_day_trader", False)),
            trade_suspended_by_user=bool(payload.get("trade_suspended_by_user", False)),
            trading_blocked=bool(payload.get("trading_blocked", False)),
            transfers_blocked=bool(payload.get("transfers_blocked", False)),
            raw=dict(payload),
        )


def to_float(value: Any, name: str | None = None) -> float | None:
    """
    Decode a number that Alpaca may send as a JSON number or a numeric string.
    """

    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise DecodeError(f"expected a number, got {value!r}", field=name)
    if isinstance(value, (int, float, str)):
        try:
            return float(value)
        except (ValueError, OverflowError) as exc:
            raise DecodeError(f"expected a number, got {value!r}", field=name) from exc
    raise DecodeError(f"expected a number, got {type(value).__name__}", field=name)


def to_datetime(value: Any, name: str | None = None) -> datetime | None:
    """
    Decode an RFC 3339 timestamp. Sub-microsecond digits are truncated.
    """

    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise DecodeError(f"expected a timestamp, got {type(value).__name__}", field=name)
    raw = value.strip()
    if raw.endswith("Z") or raw.endswith("z"):
        raw = raw[:-1] + "+00:00"
    if "." in raw:
        head, rest = raw.split(".", 1)
        digits = ""
        for ch in rest:
            if not ch.isdigit():
                break
            digits += ch
        raw = f"{head}.{digits[:6].ljust(6, '0')}{rest[len(digits):]}"
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError as exc:
        raise DecodeError(f"expected a timestamp, got {value!r}", field=name) from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _optional_str(value: Any) -> str | None:
    return None if value is None else str(value)


def frame_kind(frame: Any) -> tuple[str | None, Any]:
    """
    Return (discriminant, payload) for a frame, or (None, frame) when absent.
    """

    if not isinstance(frame, Mapping):
        return None, frame
    if "stream" in frame:
        return str(frame["stream"]), frame.get("data")
    if "type" in frame:
        return str(frame["type"]), frame
    return None, frame


def is_control_frame(frame: Any) -> bool:
    kind, _ = frame_kind(frame)
    return kind in CONTROL_KINDS


def listen_frame(streams: tuple[str, ...] | list[str]) -> dict[str, Any]:
    return {"action": "listen", "data": {"streams": list(streams)}}


def _decode_account(kind: str, frame: Any, payload: Mapping[str, Any]) -> AccountUpdate:
    return AccountUpdate(
        kind=kind,
        raw=frame,
        id=_optional_str(payload.get("id")),
        status=_optional_str(payload.get("status")),
        cash=to_float(payload.get("cash"), "cash"),
        cash_withdrawable=to_float(payload.get("cash_withdrawable"), "cash_withdrawable"),
        created_at=to_datetime(payload.get("created_at"), "created_at"),
        updated_at=to_datetime(payload.get("updated_at"), "updated_at"),
        deleted_at=to_datetime(payload.get("deleted_at"), "deleted_at"),
    )


def _decode_order(kind: str, frame: Any, payload: Mapping[str, Any]) -> OrderUpdate:
    order = payload.get("order") or {}
    if not isinstance(order, Mapping):
        raise DecodeError("order must be an object", field="order")
    status = payload.get("status") or order.get("status")
    return OrderUpdate(
        kind=kind,
        raw=frame,
        event=_optional_str(payload.get("event")),
        status=_optional_str(status),
        order_id=_optional_str(payload.get("order_id") or order.get("id")),
        symbol=_optional_str(payload.get("symbol") or order.get("symbol")),
        side=_optional_str(payload.get("side") or order.get("side")),
        qty=to_float(payload.get("qty", order.get("qty")), "qty"),
        filled_qty=to_float(payload.get("filled_qty", order.get("filled_qty")), "filled_qty"),
        price=to_float(payload.get("price"), "price"),
        position_qty=to_float(payload.get("position_qty"), "position_qty"),
        timestamp=to_datetime(payload.get("timestamp"), "timestamp"),
        order=dict(order),
    )


def classify(frame: Any) -> StreamMessage:
    """
    Classify one decoded frame into a typed StreamMessage. Never raises.
    """

    kind, payload = frame_kind(frame)
    if kind is None:
        reason = None if isinstance(frame, Mapping) else "frame is not an object"
        return Unknown(kind="unknown", raw=frame, reason=reason)
    if kind not in ACCOUNT_KINDS and kind not in ORDER_KINDS:
        return Unknown(kind=kind, raw=frame)

    if not isinstance(payload, Mapping):
        return Unknown(kind=kind, raw=frame, reason=f"{kind} payload is not an object")
    try:
        if kind in ACCOUNT_KINDS:
            return _decode_account(kind, frame, payload)
        return _decode_order(kind, frame, payload)
    except DecodeError as exc:
        return Unknown(kind=kind, raw=frame, reason=str(exc))
