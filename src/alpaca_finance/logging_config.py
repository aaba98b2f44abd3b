"""
Structured logging helpers.

Purpose:
- Provide a consistent log format for troubleshooting.
- Support JSONL output for easy ingestion by downstream tools.
- Keep API secrets out of log output.
"""

from __future__ import annotations

from typing import Iterable
import json
import logging
import time


class JsonFormatter(logging.Formatter):
    """
    JSONL formatter for structured logs.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime(record.created)),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload)


class SecretMaskFilter(logging.Filter):
    """
    Replace known secret values with '***' in the rendered message.
    """

    def __init__(self, secrets: Iterable[str]) -> None:
        super().__init__()
        self._secrets = [s for s in secrets if s]

    def filter(self, record: logging.LogRecord) -> bool:
        if not self._secrets:
            return True
        message = record.getMessage()
        masked = message
        for secret in self._secrets:
            masked = masked.replace(secret, "***")
        if masked != message:
            record.msg = masked
            record.args = None
        return True


def setup_logging(
    level: str = "INFO",
    *,
    json_output: bool = False,
    secrets: Iterable[str] = (),
) -> None:
    """
    Configure root logging with optional JSONL output and secret masking.
    """

    handler = logging.StreamHandler()
    handler.setFormatter(
        JsonFormatter() if json_output else logging.Formatter("%(levelname)s %(name)s: %(message)s")
    )
    handler.addFilter(SecretMaskFilter(secrets))
    logging.basicConfig(level=level.upper(), handlers=[handler])
