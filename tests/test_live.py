import asyncio
import os

import pytest

from alpaca_finance.app import build_account_client
from alpaca_finance.config import resolve_connection_config
from alpaca_finance.streaming import ConnectionState, Streamer


pytestmark = pytest.mark.live


def require_live() -> None:
    if os.getenv("RUN_LIVE_TESTS") != "1":
        pytest.skip("RUN_LIVE_TESTS=1 required for live integration tests")


def test_paper_account_lookup() -> None:
    require_live()
    account = build_account_client(resolve_connection_config("paper")).get_account()
    assert account.id


@pytest.mark.asyncio
async def test_paper_stream_subscribes() -> None:
    require_live()
    streamer = Streamer(resolve_connection_config("paper"))
    stream = streamer.start()
    pull = asyncio.ensure_future(stream.__anext__())
    try:
        for _ in range(100):
            if streamer.state == ConnectionState.SUBSCRIBED:
                break
            await asyncio.sleep(0.1)
        assert streamer.state == ConnectionState.SUBSCRIBED
    finally:
        await streamer.stop()
        await asyncio.gather(pull, return_exceptions=True)
