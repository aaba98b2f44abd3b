"""
Capture account/order updates from the Alpaca stream into a JSONL file.

Environment:
- ALPACA_PROFILES_PATH (default profiles.yaml), ALPACA_PROFILE (default paper)
- STREAM_OUT_DIR (default data/stream), STREAM_ROTATE_MINUTES (default 60)
"""

from __future__ import annotations

import asyncio
import json
import os
import time
from dataclasses import asdict

from alpaca_finance.app import build_streamer, load_config
from alpaca_finance.config import ConnectionConfig
from alpaca_finance.logging_config import setup_logging
from alpaca_finance.stream_metrics import StreamMetrics


def _env(name: str, default: str) -> str:
    value = os.getenv(name)
    return value if value else default


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value else default


def _now_bucket(minutes: int) -> str:
    return time.strftime("%Y%m%d_%H%M", time.gmtime(time.time() // (minutes * 60) * (minutes * 60)))


def _open_rotating_file(base_dir: str, prefix: str, minutes: int):
    os.makedirs(base_dir, exist_ok=True)
    bucket = _now_bucket(minutes)
    path = os.path.join(base_dir, f"{prefix}_{bucket}.jsonl")
    return bucket, open(path, "a", encoding="utf-8")


async def capture(config: ConnectionConfig, *, out_dir: str, rotate_minutes: int) -> None:
    metrics = StreamMetrics()
    bucket = None
    handle = None
    streamer = build_streamer(config, on_event=metrics.on_event)
    try:
        async with streamer:
            async for msg in streamer.start():
                new_bucket = _now_bucket(rotate_minutes)
                if bucket != new_bucket:
                    if handle:
                        handle.close()
                    bucket, handle = _open_rotating_file(out_dir, "updates", rotate_minutes)
                record = {"kind": msg.kind, "class": type(msg).__name__, "raw": msg.raw}
                record["received_ts"] = time.time()
                handle.write(json.dumps(record) + "\n")
                handle.flush()
    finally:
        if handle:
            handle.close()
        print(json.dumps(asdict(metrics.snapshot())))


def main() -> None:
    config = load_config(
        _env("ALPACA_PROFILES_PATH", "profiles.yaml"), _env("ALPACA_PROFILE", "paper")
    )
    setup_logging(
        _env("LOG_LEVEL", "INFO"),
        json_output=True,
        secrets=[config.credentials.secret_key],
    )
    try:
        asyncio.run(
            capture(
                config,
                out_dir=_env("STREAM_OUT_DIR", "data/stream"),
                rotate_minutes=_env_int("STREAM_ROTATE_MINUTES", 60),
            )
        )
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
