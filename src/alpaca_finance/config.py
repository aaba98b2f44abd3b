"""
Configuration loader and credential resolver.

Purpose:
- Centralize how endpoint selection, credentials and stream tuning are assembled.
- Keep tracing simple: YAML -> dataclasses -> ConnectionConfig -> clients.

Sources:
- profiles.yaml (local file, gitignored): named profiles and their mode.
- environment variables (.env is recommended, gitignored): secrets and overrides.

Logic flow (high level):
1) load_profiles() reads profiles.yaml and builds Profile entries.
2) select_profile() picks a profile by name.
3) resolve_connection_config() converts that profile into ConnectionConfig by:
   - mapping "paper"/"sandbox"/"live"/... to EndpointMode
   - pulling keys/base URLs from environment variables
   - reading stream tuning knobs into StreamSettings
4) ConnectionConfig is consumed by app.py -> streaming.py / http.py.

Tracing notes:
- If a value is missing, errors are raised where it is first required so the
  caller knows which source (YAML vs env) is incomplete.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any
import os

import yaml

DEFAULT_LIVE_URL = "https://api.alpaca.markets"
DEFAULT_PAPER_URL = "https://paper-api.alpaca.markets"
DEFAULT_LIVE_STREAM_URL = "wss://api.alpaca.markets/stream"
DEFAULT_PAPER_STREAM_URL = "wss://paper-api.alpaca.markets/stream"
DEFAULT_STREAMS = ("trade_updates", "account_updates")
OVERFLOW_POLICIES = ("drop_oldest", "block")
_ENV_LOADED = False


class EndpointMode(str, Enum):
    """
    Which Alpaca environment to talk to. Fixed once a config is built.
    """

    LIVE = "live"
    PAPER = "paper"

    @classmethod
    def parse(cls, value: str | "EndpointMode") -> "EndpointMode":
        if isinstance(value, EndpointMode):
            return value
        mode = str(value).strip().lower()
        if mode in {"paper", "sandbox", "practice"}:
            return cls.PAPER
        if mode in {"live", "prod", "production"}:
            return cls.LIVE
        raise ValueError(f"Unsupported mode '{value}'. Use 'paper' or 'live'.")


@dataclass(frozen=True)
class Credentials:
    """
    API key pair. The secret never appears in repr() or logs.
    """

    key_id: str
    secret_key: str = field(repr=False)

    def __post_init__(self) -> None:
        if not self.key_id or not self.secret_key:
            raise ValueError("Credentials require both key_id and secret_key.")

    def __repr__(self) -> str:
        return f"Credentials(key_id={self.key_id!r}, secret_key='***')"

    def auth_headers(self) -> dict[str, str]:
        return {
            "APCA-API-KEY-ID": self.key_id,
            "APCA-API-SECRET-KEY": self.secret_key,
        }

    def auth_frame(self) -> dict[str, Any]:
        return {
            "action": "authenticate",
            "data": {"key_id": self.key_id, "secret_key": self.secret_key},
        }


@dataclass(frozen=True)
class StreamSettings:
    """
    Runtime tuning knobs for the update stream.
    """

    connect_timeout_seconds: float = 10.0
    initial_backoff_seconds: float = 0.5
    max_backoff_seconds: float = 30.0
    max_retries: int | None = None  # None retries forever with a capped delay.
    heartbeat_timeout_seconds: float = 60.0  # 0 disables the idle check.
    ping_interval_seconds: float = 20.0
    buffer_capacity: int = 1024
    overflow_policy: str = "drop_oldest"
    streams: tuple[str, ...] = DEFAULT_STREAMS

    def __post_init__(self) -> None:
        if self.connect_timeout_seconds <= 0:
            raise ValueError("connect_timeout_seconds must be > 0")
        if self.initial_backoff_seconds <= 0:
            raise ValueError("initial_backoff_seconds must be > 0")
        if self.max_backoff_seconds < self.initial_backoff_seconds:
            raise ValueError("max_backoff_seconds must be >= initial_backoff_seconds")
        if self.max_retries is not None and self.max_retries < 0:
            raise ValueError("max_retries must be >= 0 or None")
        if self.heartbeat_timeout_seconds < 0:
            raise ValueError("heartbeat_timeout_seconds must be >= 0")
        if self.buffer_capacity <= 0:
            raise ValueError("buffer_capacity must be > 0")
        if self.overflow_policy not in OVERFLOW_POLICIES:
            raise ValueError(
                f"overflow_policy must be one of {', '.join(OVERFLOW_POLICIES)}"
            )
        if not self.streams:
            raise ValueError("streams must name at least one stream")


@dataclass(frozen=True)
class Profile:
    """
    One named entry in profiles.yaml. Fields map 1:1 to YAML keys.
    """

    name: str
    mode: EndpointMode
    streams: tuple[str, ...] = DEFAULT_STREAMS


@dataclass(frozen=True)
class ConnectionConfig:
    """
    Resolved endpoint + credentials for one streamer or REST client.
    """

    mode: EndpointMode
    credentials: Credentials
    base_url: str
    stream_url: str
    settings: StreamSettings = field(default_factory=StreamSettings)
    request_timeout_seconds: int = 30
    requests_per_minute: int | None = 200
    debug_logging: bool = False

    @classmethod
    def for_mode(
        cls,
        mode: EndpointMode | str,
        credentials: Credentials,
        *,
        settings: StreamSettings | None = None,
        **overrides: Any,
    ) -> "ConnectionConfig":
        """
        Build a config pointing at Alpaca's official endpoints for the given mode.
        """

        resolved = EndpointMode.parse(mode)
        return cls(
            mode=resolved,
            credentials=credentials,
            base_url=overrides.pop("base_url", None) or _default_base_url(resolved),
            stream_url=overrides.pop("stream_url", None) or _default_stream_url(resolved),
            settings=settings or StreamSettings(),
            **overrides,
        )

    def with_credentials(self, credentials: Credentials) -> "ConnectionConfig":
        return replace(self, credentials=credentials)


def _default_base_url(mode: EndpointMode) -> str:
    return DEFAULT_PAPER_URL if mode == EndpointMode.PAPER else DEFAULT_LIVE_URL


def _default_stream_url(mode: EndpointMode) -> str:
    return DEFAULT_PAPER_STREAM_URL if mode == EndpointMode.PAPER else DEFAULT_LIVE_STREAM_URL


def _mode_suffix(mode: EndpointMode) -> str:
    return "PAPER" if mode == EndpointMode.PAPER else "LIVE"


def _read_env(var_name: str, *, required: bool) -> str | None:
    # Single place to enforce "required" vs "optional" env behavior.
    value = os.getenv(var_name)
    if required and not value:
        raise ValueError(f"Missing required environment variable '{var_name}'.")
    return value


def _read_int(var_name: str, default: int) -> int:
    value = os.getenv(var_name)
    if value is None or value == "":
        return default
    return int(value)


def _read_float(var_name: str, default: float) -> float:
    value = os.getenv(var_name)
    if value is None or value == "":
        return default
    return float(value)


def _read_bool(var_name: str, default: bool) -> bool:
    value = os.getenv(var_name)
    if value is None or value == "":
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _read_optional_int(var_name: str, default: int | None = None) -> int | None:
    value = os.getenv(var_name)
    if value is None or value == "":
        return default
    if value.strip().lower() in {"none", "unlimited"}:
        return None
    return int(value)


def _load_env_file(path: str = ".env") -> None:
    # Minimal .env loader to avoid external dependencies.
    global _ENV_LOADED
    if _ENV_LOADED:
        return
    if not os.path.exists(path):
        _ENV_LOADED = True
        return

    with open(path, "r", encoding="utf-8") as handle:
        for raw_line in handle:
            line = raw_line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            key, value = line.split("=", 1)
            key = key.strip()
            value = value.strip().strip("'\"")
            if key and value and key not in os.environ:
                os.environ[key] = value

    _ENV_LOADED = True


def _parse_streams(value: Any, *, where: str) -> tuple[str, ...]:
    if value is None:
        return DEFAULT_STREAMS
    if not isinstance(value, list) or not value:
        raise ValueError(f"{where} streams must be a non-empty list.")
    return tuple(str(item) for item in value)


def _parse_profiles(raw: Any) -> dict[str, Profile]:
    if not isinstance(raw, dict) or "profiles" not in raw:
        raise ValueError("profiles.yaml must contain a top-level 'profiles' mapping.")

    entries = raw["profiles"]
    if not isinstance(entries, dict):
        raise ValueError("'profiles' must be a mapping of profile names to definitions.")

    parsed: dict[str, Profile] = {}
    for name, entry in entries.items():
        if not isinstance(entry, dict):
            raise ValueError(f"Profile '{name}' must be a mapping.")
        try:
            mode = EndpointMode.parse(str(entry["mode"]))
        except KeyError as exc:
            raise ValueError(f"Profile '{name}' missing required key: {exc}") from exc
        streams = _parse_streams(entry.get("streams"), where=f"Profile '{name}'")
        parsed[str(name)] = Profile(name=str(name), mode=mode, streams=streams)

    return parsed


def load_profiles(path: str) -> dict[str, Profile]:
    """
    Load named profiles from profiles.yaml.

    Inputs:
    - path: path to profiles.yaml (typically project root).

    Outputs:
    - Dict mapping profile name -> Profile.
    """

    with open(path, "r", encoding="utf-8") as handle:
        raw = yaml.safe_load(handle) or {}
    return _parse_profiles(raw)


def select_profile(profiles: dict[str, Profile], name: str) -> Profile:
    profile = profiles.get(name)
    if not profile:
        available = ", ".join(sorted(profiles.keys()))
        raise ValueError(f"Profile '{name}' not found. Available: {available}")
    return profile


def load_credentials(mode: EndpointMode) -> Credentials:
    """
    Read the key pair for a mode from the environment.

    ALPACA_<MODE>_KEY_ID / ALPACA_<MODE>_SECRET_KEY win; the standard
    APCA_API_KEY_ID / APCA_API_SECRET_KEY pair is the fallback.
    """

    _load_env_file()
    suffix = _mode_suffix(mode)
    key_var = f"ALPACA_{suffix}_KEY_ID"
    secret_var = f"ALPACA_{suffix}_SECRET_KEY"
    key_id = _read_env(key_var, required=False) or _read_env("APCA_API_KEY_ID", required=False)
    secret = _read_env(secret_var, required=False) or _read_env(
        "APCA_API_SECRET_KEY", required=False
    )
    if not key_id:
        raise ValueError(f"Missing required environment variable '{key_var}'.")
    if not secret:
        raise ValueError(f"Missing required environment variable '{secret_var}'.")
    return Credentials(key_id=key_id, secret_key=secret)


def load_stream_settings(streams: tuple[str, ...] = DEFAULT_STREAMS) -> StreamSettings:
    return StreamSettings(
        connect_timeout_seconds=_read_float("ALPACA_STREAM_CONNECT_TIMEOUT_SECONDS", 10.0),
        initial_backoff_seconds=_read_float("ALPACA_STREAM_BACKOFF_INITIAL_SECONDS", 0.5),
        max_backoff_seconds=_read_float("ALPACA_STREAM_BACKOFF_MAX_SECONDS", 30.0),
        max_retries=_read_optional_int("ALPACA_STREAM_MAX_RETRIES"),
        heartbeat_timeout_seconds=_read_float("ALPACA_STREAM_HEARTBEAT_TIMEOUT_SECONDS", 60.0),
        ping_interval_seconds=_read_float("ALPACA_STREAM_PING_INTERVAL_SECONDS", 20.0),
        buffer_capacity=_read_int("ALPACA_STREAM_BUFFER_CAPACITY", 1024),
        overflow_policy=os.getenv("ALPACA_STREAM_OVERFLOW_POLICY") or "drop_oldest",
        streams=streams,
    )


def resolve_connection_config(
    mode: EndpointMode | str, *, streams: tuple[str, ...] = DEFAULT_STREAMS
) -> ConnectionConfig:
    """
    Resolve a mode into concrete credentials, URLs and settings.

    Outputs:
    - ConnectionConfig ready for Streamer or AlpacaHttpClient usage.
    """

    resolved = EndpointMode.parse(mode)
    credentials = load_credentials(resolved)
    suffix = _mode_suffix(resolved)

    # URL overrides are optional; defaults to official endpoints.
    base_url = _read_env(f"ALPACA_API_BASE_{suffix}", required=False)
    stream_url = _read_env(f"ALPACA_STREAM_BASE_{suffix}", required=False)

    return ConnectionConfig(
        mode=resolved,
        credentials=credentials,
        base_url=base_url or _default_base_url(resolved),
        stream_url=stream_url or _default_stream_url(resolved),
        settings=load_stream_settings(streams),
        request_timeout_seconds=_read_int("ALPACA_REQUEST_TIMEOUT_SECONDS", 30),
        requests_per_minute=_read_optional_int("ALPACA_REQUESTS_PER_MINUTE", 200),
        debug_logging=_read_bool("ALPACA_DEBUG_LOGGING", False),
    )


def resolve_profile(profile: Profile) -> ConnectionConfig:
    return resolve_connection_config(profile.mode, streams=profile.streams)
