import pytest

from linkme.infra.rate_limit import allow


@pytest.mark.asyncio
async def test_rate_limit_allows_within_budget():
    assert await allow("nearby", "u5", limit=2, window_seconds=60)
    assert await allow("nearby", "u5", limit=2, window_seconds=60)


@pytest.mark.asyncio
async def test_rate_limit_blocks_when_budget_exhausted():
    await allow("connection_send", "u6", limit=1, window_seconds=60)
    assert not await allow("connection_send", "u6", limit=1, window_seconds=60)


@pytest.mark.asyncio
async def test_rate_limit_windows_are_independent():
    await allow("nearby", "u7", limit=1, window_seconds=60, now=120.0)
    assert await allow("nearby", "u7", limit=1, window_seconds=60, now=180.0)


@pytest.mark.asyncio
async def test_zero_limit_always_blocks():
    assert not await allow("nearby", "u8", limit=0)
