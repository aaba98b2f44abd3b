"""
Error taxonomy for the REST executor and the update stream.

Exception hierarchy:
- AlpacaError (base)
  - ConnectError: establishing the websocket failed (network, timeout)
  - AuthError: the handshake or a REST call rejected the credentials
  - TransportError: the open connection closed or sent an unreadable frame
  - DecodeError: one frame field could not be decoded
  - NetworkError: REST request never produced a response
  - ApiError: REST request produced a non-2xx response

Propagation:
- ConnectError / TransportError(CLOSED) are absorbed by the streamer's
  reconnect loop.
- TransportError(MALFORMED) and DecodeError never leave the stream; the frame
  is dropped or degraded to an Unknown message.
- AuthError(INVALID_CREDENTIALS) ends the stream.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ConnectErrorKind(str, Enum):
    NETWORK = "network"
    TIMEOUT = "timeout"


class AuthErrorKind(str, Enum):
    INVALID_CREDENTIALS = "invalid_credentials"
    EXPIRED = "expired"


class TransportErrorKind(str, Enum):
    CLOSED = "closed"
    MALFORMED = "malformed"


class AlpacaError(Exception):
    """Base exception for all client errors."""

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        text = super().__str__()
        if self.details:
            return f"{text} [details={self.details}]"
        return text


class ConnectError(AlpacaError):
    """Raised when the stream connection cannot be established."""

    def __init__(
        self,
        message: str,
        *,
        kind: ConnectErrorKind = ConnectErrorKind.NETWORK,
        url: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.kind = kind
        self.url = url
        details = dict(details or {})
        details["kind"] = kind.value
        if url:
            details["url"] = url
        super().__init__(message, details=details)


class AuthError(AlpacaError):
    """Raised when credentials are rejected."""

    def __init__(
        self,
        message: str,
        *,
        kind: AuthErrorKind = AuthErrorKind.INVALID_CREDENTIALS,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.kind = kind
        details = dict(details or {})
        details["kind"] = kind.value
        super().__init__(message, details=details)

    @property
    def fatal(self) -> bool:
        # Expired credentials can be retried once they have been refreshed.
        return self.kind == AuthErrorKind.INVALID_CREDENTIALS


class TransportError(AlpacaError):
    """Raised by an open transport (closed connection or unreadable frame)."""

    def __init__(
        self,
        message: str,
        *,
        kind: TransportErrorKind = TransportErrorKind.CLOSED,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.kind = kind
        details = dict(details or {})
        details["kind"] = kind.value
        super().__init__(message, details=details)


class DecodeError(AlpacaError):
    """Raised when a field in a recognized frame has the wrong shape."""

    def __init__(self, message: str, *, field: str | None = None) -> None:
        self.field = field
        super().__init__(message, details={"field": field} if field else None)


class NetworkError(AlpacaError):
    """Raised when a REST request fails before a response arrives."""


class ApiError(AlpacaError):
    """Raised when a REST request returns a non-success status."""

    def __init__(self, message: str, *, status: int, body: Any = None) -> None:
        self.status = status
        self.body = body
        super().__init__(message, details={"status": status})
