from __future__ import annotations

from datetime import datetime, timezone

import pytest

from alpaca_finance.errors import DecodeError
from alpaca_finance.models import (
    Account,
    AccountUpdate,
    OrderUpdate,
    Unknown,
    classify,
    is_control_frame,
    listen_frame,
    to_datetime,
    to_float,
)


def test_classify_flat_account_update() -> None:
    msg = classify({"type": "account_update", "cash": "1234.56"})
    assert isinstance(msg, AccountUpdate)
    assert msg.cash == 1234.56


def test_classify_flat_order_update() -> None:
    msg = classify({"type": "order_update", "status": "filled"})
    assert isinstance(msg, OrderUpdate)
    assert msg.status == "filled"


def test_classify_unrecognized_kind_keeps_raw_frame() -> None:
    frame = {"type": "widget_ping"}
    msg = classify(frame)
    assert isinstance(msg, Unknown)
    assert msg.raw == frame
    assert msg.kind == "widget_ping"
    assert msg.reason is None


def test_classify_account_envelope() -> None:
    frame = {
        "stream": "account_updates",
        "data": {
            "id": "ef505a9a-2f3c-4b8a-be95-6b6f185f8a03",
            "created_at": "2018-02-26T19:22:31Z",
            "updated_at": "2018-02-27T18:16:24.123456789Z",
            "deleted_at": None,
            "status": "ACTIVE",
            "cash": "1241.54",
            "cash_withdrawable": 523.71,
        },
    }
    msg = classify(frame)
    assert isinstance(msg, AccountUpdate)
    assert msg.kind == "account_updates"
    assert msg.status == "ACTIVE"
    assert msg.cash_withdrawable == 523.71
    assert msg.created_at == datetime(2018, 2, 26, 19, 22, 31, tzinfo=timezone.utc)
    assert msg.updated_at.microsecond == 123456
    assert msg.deleted_at is None


def test_classify_fill_event_reads_order() -> None:
    frame = {
        "stream": "trade_updates",
        "data": {
            "event": "fill",
            "price": "179.08",
            "position_qty": "100",
            "timestamp": "2018-02-27T18:16:24.123Z",
            "order": {
                "id": "61e69015",
                "symbol": "AAPL",
                "side": "buy",
                "qty": "15",
                "filled_qty": "15",
                "status": "filled",
            },
        },
    }
    msg = classify(frame)
    assert isinstance(msg, OrderUpdate)
    assert msg.event == "fill"
    assert msg.status == "filled"
    assert msg.symbol == "AAPL"
    assert msg.qty == 15.0
    assert msg.price == 179.08
    assert msg.position_qty == 100.0
    assert msg.order["id"] == "61e69015"


def test_decode_failure_degrades_to_unknown_with_reason() -> None:
    frame = {"stream": "account_updates", "data": {"cash": "not-a-number"}}
    msg = classify(frame)
    assert isinstance(msg, Unknown)
    assert msg.kind == "account_updates"
    assert msg.raw == frame
    assert "cash" in msg.reason


def test_non_object_payload_degrades_to_unknown() -> None:
    msg = classify({"stream": "trade_updates", "data": ["nope"]})
    assert isinstance(msg, Unknown)
    assert msg.reason


@pytest.mark.parametrize(
    "frame",
    [
        None,
        42,
        "text",
        [1, 2, 3],
        {},
        {"stream": None},
        {"type": "order_update", "order": "oops"},
        {"type": "order_update", "timestamp": 12},
        {"type": "account_update", "cash": True},
        {"type": "account_update", "cash": 10 ** 400},
        {"type": "account_update", "created_at": "yesterday"},
    ],
)
def test_classify_never_raises(frame) -> None:
    msg = classify(frame)
    assert msg.raw == frame


def test_control_frames_detected() -> None:
    assert is_control_frame({"stream": "authorization", "data": {"status": "authorized"}})
    assert is_control_frame({"stream": "listening", "data": {"streams": ["trade_updates"]}})
    assert not is_control_frame({"stream": "trade_updates", "data": {}})
    assert not is_control_frame("authorization")


def test_listen_frame_shape() -> None:
    assert listen_frame(("trade_updates",)) == {
        "action": "listen",
        "data": {"streams": ["trade_updates"]},
    }


def test_to_float_and_to_datetime_errors() -> None:
    assert to_float(None) is None
    assert to_float(3) == 3.0
    with pytest.raises(DecodeError):
        to_float({"x": 1}, "cash")
    with pytest.raises(DecodeError):
        to_datetime("2020-13-45T00:00:00Z", "created_at")


def test_account_from_api() -> None:
    payload = {
        "id": "e6fe16f3-64a4-4921-8928-cadf02f92f98",
        "account_number": "010203ABCD",
        "status": "ACTIVE",
        "cash": "-23140.2",
        "equity": "103820.56",
        "long_market_value": "126960.76",
        "short_market_value": "0",
        "buying_power": "262113.632",
        "pattern_day_trader": False,
        "trading_blocked": False,
        "transfers_blocked": False,
        "account_blocked": False,
        "trade_suspended_by_user": False,
    }
    account = Account.from_api(payload)
    assert account.account_number == "010203ABCD"
    assert account.cash == -23140.2
    assert account.buying_power == 262113.632
    assert account.trading_blocked is False


def test_account_without_id_is_rejected() -> None:
    with pytest.raises(DecodeError):
        Account.from_api({"cash": "1"})
