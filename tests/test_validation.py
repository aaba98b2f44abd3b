from __future__ import annotations

import responses

from alpaca_finance.config import Credentials, EndpointMode, Profile
from alpaca_finance.http import AlpacaHttpClient
from alpaca_finance.validation import validate_connectivity, validate_profiles


def test_validate_profiles_detects_duplicate_streams() -> None:
    profiles = {
        "paper": Profile(name="paper", mode=EndpointMode.PAPER, streams=("trade_updates", "trade_updates")),
    }
    warnings = validate_profiles(profiles)
    assert any("more than once" in warning for warning in warnings)


def test_validate_profiles_unknown_stream() -> None:
    profiles = {"paper": Profile(name="paper", mode=EndpointMode.PAPER, streams=("quotes",))}
    warnings = validate_profiles(profiles)
    assert any("unknown streams" in warning for warning in warnings)


def test_validate_profiles_multiple_live() -> None:
    profiles = {
        "a": Profile(name="a", mode=EndpointMode.LIVE),
        "b": Profile(name="b", mode=EndpointMode.LIVE),
    }
    warnings = validate_profiles(profiles)
    assert any("Multiple live profiles" in warning for warning in warnings)


def test_validate_profiles_clean() -> None:
    profiles = {"paper": Profile(name="paper", mode=EndpointMode.PAPER)}
    assert validate_profiles(profiles) == []


@responses.activate
def test_validate_connectivity_reports_auth_failure() -> None:
    responses.add(responses.GET, "https://example.com/v2/clock", json={"message": "forbidden"}, status=403)
    client = AlpacaHttpClient(base_url="https://example.com", credentials=Credentials("k", "s"))
    result = validate_connectivity(client)
    assert result["ok"] is False
    assert result["status"] == 403


@responses.activate
def test_validate_connectivity_ok() -> None:
    responses.add(responses.GET, "https://example.com/v2/clock", json={"is_open": True}, status=200)
    client = AlpacaHttpClient(base_url="https://example.com", credentials=Credentials("k", "s"))
    result = validate_connectivity(client)
    assert result["ok"] is True
    assert result["payload"] == {"is_open": True}
