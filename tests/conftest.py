import os

import pytest

from alpaca_finance import config
from alpaca_finance.config import ConnectionConfig, Credentials, StreamSettings


ENV_KEYS = [
    "ALPACA_PAPER_KEY_ID",
    "ALPACA_PAPER_SECRET_KEY",
    "ALPACA_LIVE_KEY_ID",
    "ALPACA_LIVE_SECRET_KEY",
    "APCA_API_KEY_ID",
    "APCA_API_SECRET_KEY",
    "ALPACA_API_BASE_PAPER",
    "ALPACA_API_BASE_LIVE",
    "ALPACA_STREAM_BASE_PAPER",
    "ALPACA_STREAM_BASE_LIVE",
    "ALPACA_STREAM_CONNECT_TIMEOUT_SECONDS",
    "ALPACA_STREAM_BACKOFF_INITIAL_SECONDS",
    "ALPACA_STREAM_BACKOFF_MAX_SECONDS",
    "ALPACA_STREAM_MAX_RETRIES",
    "ALPACA_STREAM_HEARTBEAT_TIMEOUT_SECONDS",
    "ALPACA_STREAM_PING_INTERVAL_SECONDS",
    "ALPACA_STREAM_BUFFER_CAPACITY",
    "ALPACA_STREAM_OVERFLOW_POLICY",
    "ALPACA_REQUEST_TIMEOUT_SECONDS",
    "ALPACA_REQUESTS_PER_MINUTE",
    "ALPACA_DEBUG_LOGGING",
]


@pytest.fixture(autouse=True)
def clear_env(monkeypatch: pytest.MonkeyPatch):
    # Never pick up a developer's .env or exported keys during tests.
    monkeypatch.setattr(config, "_ENV_LOADED", True)
    original = {key: os.getenv(key) for key in ENV_KEYS}
    for key in ENV_KEYS:
        if key in os.environ:
            del os.environ[key]
    yield
    for key, value in original.items():
        if value is None:
            os.environ.pop(key, None)
        else:
            os.environ[key] = value


@pytest.fixture
def credentials() -> Credentials:
    return Credentials(key_id="someKey", secret_key="someSecret")


@pytest.fixture
def make_config(credentials: Credentials):
    def _make(**settings) -> ConnectionConfig:
        defaults = {
            "connect_timeout_seconds": 1.0,
            "initial_backoff_seconds": 0.01,
            "max_backoff_seconds": 0.05,
        }
        defaults.update(settings)
        return ConnectionConfig.for_mode(
            "paper", credentials, settings=StreamSettings(**defaults)
        )

    return _make
