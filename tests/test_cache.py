import pytest

from opsdash.core.cache import ResponseCache


class Clock:
    def __init__(self, now: float = 1_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class CountingFetch:
    def __init__(self):
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        return {"value": self.calls}


@pytest.mark.asyncio
async def test_calls_within_ttl_fetch_once_and_return_same_payload():
    clock, fetch = Clock(), CountingFetch()
    cache = ResponseCache(clock=clock)

    first = await cache.get_or_refresh("cost", 300, fetch)
    clock.now += 299
    second = await cache.get_or_refresh("cost", 300, fetch)

    assert fetch.calls == 1
    assert first is second
    assert cache.stats["cost"] == {"hits": 1, "misses": 1, "errors": 0}


@pytest.mark.asyncio
async def test_expired_entry_triggers_exactly_one_more_fetch():
    clock, fetch = Clock(), CountingFetch()
    cache = ResponseCache(clock=clock)

    await cache.get_or_refresh("cost", 300, fetch)
    clock.now += 300
    refreshed = await cache.get_or_refresh("cost", 300, fetch)
    again = await cache.get_or_refresh("cost", 300, fetch)

    assert fetch.calls == 2
    assert refreshed == again == {"value": 2}


@pytest.mark.asyncio
async def test_failed_refresh_keeps_previous_entry_and_raises():
    clock = Clock()
    cache = ResponseCache(clock=clock)
    await cache.get_or_refresh("scan", 60, CountingFetch())
    clock.now += 120

    async def failing():
        raise RuntimeError("upstream down")

    with pytest.raises(RuntimeError, match="upstream down"):
        await cache.get_or_refresh("scan", 60, failing)

    assert cache.get_entry("scan").payload == {"value": 1}
    assert cache.stats["scan"]["errors"] == 1


@pytest.mark.asyncio
async def test_cold_failure_stores_nothing():
    cache = ResponseCache(clock=Clock())

    async def failing():
        raise RuntimeError("no data")

    with pytest.raises(RuntimeError):
        await cache.get_or_refresh("cost", 60, failing)
    assert cache.get_entry("cost") is None


@pytest.mark.asyncio
async def test_keys_are_independent_and_invalidate():
    cache = ResponseCache(clock=Clock())
    fetch = CountingFetch()
    await cache.get_or_refresh("a", 60, fetch)
    await cache.get_or_refresh("b", 60, fetch)
    assert fetch.calls == 2

    cache.invalidate("a")
    assert not cache.is_fresh("a", 60)
    assert cache.is_fresh("b", 60)

    cache.invalidate()
    assert cache.get_entry("b") is None
