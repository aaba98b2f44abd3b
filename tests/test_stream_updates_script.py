from __future__ import annotations

import importlib.util
from pathlib import Path

import pytest

from alpaca_finance.config import ConnectionConfig, Credentials


SCRIPT_PATH = Path(__file__).resolve().parents[1] / "scripts" / "stream_updates.py"


def load_script():
    spec = importlib.util.spec_from_file_location("stream_updates", SCRIPT_PATH)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_main_masks_the_profile_secret(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("STREAM_OUT_DIR", raising=False)
    monkeypatch.delenv("STREAM_ROTATE_MINUTES", raising=False)
    script = load_script()
    config = ConnectionConfig.for_mode("paper", Credentials("someKey", "someSecret"))
    logging_calls = []
    captured = []

    async def fake_capture(cfg, *, out_dir, rotate_minutes):
        captured.append((cfg, out_dir, rotate_minutes))

    monkeypatch.setattr(script, "load_config", lambda path, name: config)
    monkeypatch.setattr(script, "setup_logging", lambda *a, **kw: logging_calls.append(kw))
    monkeypatch.setattr(script, "capture", fake_capture)

    script.main()

    assert logging_calls[0]["secrets"] == ["someSecret"]
    assert captured == [(config, "data/stream", 60)]
