"""
Runtime assembly helpers.

Purpose:
- Keep wiring logic (config -> client -> endpoints / streamer) in one place.
- Make it easy to trace how a profile becomes an authenticated connection.

Logic flow:
1) load_streamer() reads profiles.yaml and finds the profile by name.
2) resolve_profile() expands it using env vars into a ConnectionConfig.
3) build_streamer() / build_account_client() create the runtime objects.
4) The caller iterates streamer.start() or invokes endpoint methods.
"""

from __future__ import annotations

from .async_http import AlpacaAsyncHttpClient
from .config import (
    ConnectionConfig,
    load_profiles,
    resolve_profile,
    select_profile,
)
from .endpoints.account import AccountAPI
from .endpoints.account_async import AccountAsyncAPI
from .http import AlpacaHttpClient
from .streaming import CredentialsRefresher, EventHook, Streamer, TransportFactory
from .validation import validate_profiles


def build_http_client(config: ConnectionConfig) -> AlpacaHttpClient:
    return AlpacaHttpClient(
        base_url=config.base_url,
        credentials=config.credentials,
        timeout_seconds=config.request_timeout_seconds,
        requests_per_minute=config.requests_per_minute,
        debug_logging=config.debug_logging,
    )


def build_account_client(config: ConnectionConfig) -> AccountAPI:
    """
    Create an AccountAPI client for a resolved configuration.
    """

    return AccountAPI(build_http_client(config))


def build_account_client_async(config: ConnectionConfig) -> AccountAsyncAPI:
    """
    Create an async AccountAPI client for a resolved configuration.
    """

    http_client = AlpacaAsyncHttpClient(
        base_url=config.base_url,
        credentials=config.credentials,
        timeout_seconds=config.request_timeout_seconds,
        requests_per_minute=config.requests_per_minute,
        debug_logging=config.debug_logging,
    )
    return AccountAsyncAPI(http_client)


def verify_credentials(config: ConnectionConfig) -> dict[str, object]:
    """
    Confirm the key pair against GET /v2/clock.

    Raises AuthError when the keys are rejected; returns the clock payload.
    """

    return build_account_client(config).get_clock()


def build_streamer(
    config: ConnectionConfig,
    *,
    on_event: EventHook | None = None,
    credentials_refresher: CredentialsRefresher | None = None,
    transport_factory: TransportFactory | None = None,
) -> Streamer:
    """
    Create an update streamer with the config's reconnect/backoff settings.
    """

    return Streamer(
        config,
        transport_factory=transport_factory,
        credentials_refresher=credentials_refresher,
        on_event=on_event,
    )


def load_config(profiles_path: str, profile_name: str) -> ConnectionConfig:
    """
    Find a profile by name and resolve it into a ConnectionConfig.
    """

    profiles = load_profiles(profiles_path)
    warnings = validate_profiles(profiles)
    if warnings:
        # Fail fast so config mistakes are fixed before opening connections.
        raise ValueError("profiles.yaml validation warnings: " + "; ".join(warnings))
    return resolve_profile(select_profile(profiles, profile_name))


def load_streamer(
    profiles_path: str, profile_name: str, *, on_event: EventHook | None = None
) -> Streamer:
    return build_streamer(load_config(profiles_path, profile_name), on_event=on_event)

