"""
Alpaca trading API client.

ALWAYS VERIFY WITH THE PAPER API BEFORE USING THE LIVE API.

The centerpiece is Streamer: a reconnecting realtime stream of account and
order (trade) updates. The REST side is a thin authenticated executor with
account lookups. Import paths are exported here to keep the public surface
obvious.

    config = ConnectionConfig.for_mode("paper", Credentials("KEY_ID", "SECRET"))
    async with Streamer(config) as streamer:
        async for msg in streamer.start():
            if isinstance(msg, AccountUpdate):
                print("Got an account update!", msg.cash)
            elif isinstance(msg, OrderUpdate):
                print("Got an order update!", msg.event)
"""

from .config import (
    ConnectionConfig,
    Credentials,
    EndpointMode,
    Profile,
    StreamSettings,
    load_credentials,
    load_profiles,
    resolve_connection_config,
    resolve_profile,
    select_profile,
)
from .errors import (
    AlpacaError,
    ApiError,
    AuthError,
    AuthErrorKind,
    ConnectError,
    ConnectErrorKind,
    DecodeError,
    NetworkError,
    TransportError,
    TransportErrorKind,
)
from .models import (
    Account,
    AccountUpdate,
    OrderUpdate,
    StreamMessage,
    Unknown,
    classify,
)
from .transport import Transport, WebSocketTransport
from .streaming import ConnectionState, Streamer
from .stream_metrics import StreamMetrics, StreamMetricsSnapshot
from .http import AlpacaHttpClient
from .async_http import AlpacaAsyncHttpClient
from .endpoints.account import AccountAPI
from .endpoints.account_async import AccountAsyncAPI
from .validation import validate_connectivity, validate_profiles
from .app import (
    build_account_client,
    build_account_client_async,
    build_streamer,
    load_config,
    load_streamer,
    verify_credentials,
)
from .logging_config import setup_logging

__all__ = [
    "ConnectionConfig",
    "Credentials",
    "EndpointMode",
    "Profile",
    "StreamSettings",
    "load_credentials",
    "load_profiles",
    "resolve_connection_config",
    "resolve_profile",
    "select_profile",
    "AlpacaError",
    "ApiError",
    "AuthError",
    "AuthErrorKind",
    "ConnectError",
    "ConnectErrorKind",
    "DecodeError",
    "NetworkError",
    "TransportError",
    "TransportErrorKind",
    "Account",
    "AccountUpdate",
    "OrderUpdate",
    "StreamMessage",
    "Unknown",
    "classify",
    "Transport",
    "WebSocketTransport",
    "ConnectionState",
    "Streamer",
    "StreamMetrics",
    "StreamMetricsSnapshot",
    "AlpacaHttpClient",
    "AlpacaAsyncHttpClient",
    "AccountAPI",
    "AccountAsyncAPI",
    "validate_connectivity",
    "validate_profiles",
    "build_account_client",
    "build_account_client_async",
    "build_streamer",
    "load_config",
    "load_streamer",
    "verify_credentials",
    "setup_logging",
]
