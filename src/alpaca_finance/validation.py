"""
Validation helpers for profiles.yaml and API connectivity.

Purpose:
- Validate local config structure early, before opening connections.
- Provide a single place for connectivity checks with clear tracing.

Logic flow:
1) validate_profiles() inspects Profile entries for common issues.
2) validate_connectivity() hits /v2/clock to confirm keys/base URL.
3) Callers can combine both in sequence to fail fast and trace problems.
"""

from __future__ import annotations

from typing import Any

from .config import EndpointMode, Profile
from .errors import ApiError, AuthError, NetworkError
from .http import AlpacaHttpClient

KNOWN_STREAMS = frozenset({"trade_updates", "account_updates"})


def validate_profiles(profiles: dict[str, Profile]) -> list[str]:
    """
    Validate profiles.yaml content and return warnings.

    Outputs:
    - List of warning strings (empty list means no issues detected).
    """

    warnings: list[str] = []

    for name, profile in profiles.items():
        duplicates = {s for s in profile.streams if profile.streams.count(s) > 1}
        if duplicates:
            warnings.append(
                f"Profile '{name}' lists streams more than once: {sorted(duplicates)}."
            )

        unknown = sorted(set(profile.streams) - KNOWN_STREAMS)
        if unknown:
            warnings.append(f"Profile '{name}' has unknown streams: {unknown}.")

    live = [name for name, p in profiles.items() if p.mode == EndpointMode.LIVE]
    if len(live) > 1:
        # Several live profiles usually means one was meant to be paper.
        warnings.append(f"Multiple live profiles defined: {sorted(live)}.")

    return warnings


def validate_connectivity(client: AlpacaHttpClient) -> dict[str, Any]:
    """
    Validate API connectivity using GET /v2/clock.

    Outputs:
    - Dict with ok/status/message/payload for easy logging and tracing.
    """

    try:
        payload = client.request("GET", "/v2/clock")
        return {"ok": True, "status": 200, "message": "OK", "payload": payload}
    except AuthError as exc:
        return {
            "ok": False,
            "status": exc.details.get("status"),
            "message": f"Auth error: {exc}",
            "payload": None,
        }
    except ApiError as exc:
        return {
            "ok": False,
            "status": exc.status,
            "message": f"HTTP error: {exc}",
            "payload": exc.body,
        }
    except NetworkError as exc:
        return {"ok": False, "status": None, "message": f"Request error: {exc}", "payload": None}
