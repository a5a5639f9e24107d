from __future__ import annotations

import asyncio

from core.services.query_cache import QueryCache, freeze_params


def test_freeze_params_sorts_and_drops_none():
    assert freeze_params({"page": 1, "module": None, "status": "pending"}) == (
        ("page", 1),
        ("status", "pending"),
    )
    assert freeze_params(None) == ()


def test_concurrent_reads_share_one_fetch():
    cache = QueryCache()
    calls = 0

    async def fetcher():
        nonlocal calls
        calls += 1
        await asyncio.sleep(0.01)
        return {"ok": True}

    async def scenario():
        key = ("import-export", "stats")
        return await asyncio.gather(cache.fetch(key, fetcher), cache.fetch(key, fetcher))

    first, second = asyncio.run(scenario())
    assert first == second == {"ok": True}
    assert calls == 1


def test_cached_value_is_reused_until_invalidated():
    cache = QueryCache()
    values = iter([1, 2])

    async def fetcher():
        return next(values)

    async def scenario():
        key = ("import-export", "config")
        a = await cache.fetch(key, fetcher)
        b = await cache.fetch(key, fetcher)
        cache.invalidate(key)
        c = await cache.fetch(key, fetcher)
        return a, b, c

    assert asyncio.run(scenario()) == (1, 1, 2)


def test_invalidate_by_prefix():
    cache = QueryCache()
    cache.set(("import-export", "import-jobs", ()), "list")
    cache.set(("import-export", "import-jobs", "detail", "j1"), "detail")
    cache.set(("import-export", "export-jobs", ()), "exports")

    assert cache.invalidate(("import-export", "import-jobs")) == 2
    assert cache.keys() == [("import-export", "export-jobs", ())]


def test_failed_fetch_is_not_cached():
    cache = QueryCache()
    attempts = 0

    async def flaky():
        nonlocal attempts
        attempts += 1
        if attempts == 1:
            raise RuntimeError("boom")
        return "ok"

    async def scenario():
        key = ("k",)
        try:
            await cache.fetch(key, flaky)
        except RuntimeError:
            pass
        return await cache.fetch(key, flaky)

    assert asyncio.run(scenario()) == "ok"
    assert attempts == 2


def test_invalidation_during_inflight_read_is_not_lost():
    cache = QueryCache()
    release = None
    values = iter(["antes", "después"])

    async def slow_fetcher():
        await release.wait()
        return next(values)

    async def scenario():
        nonlocal release
        release = asyncio.Event()
        key = ("import-export", "import-jobs", "detail", "j1")
        pending = asyncio.ensure_future(cache.fetch(key, slow_fetcher))
        await asyncio.sleep(0)
        cache.invalidate(("import-export", "import-jobs"))
        release.set()
        first = await pending
        cached = key in cache
        second = await cache.fetch(key, slow_fetcher)
        return first, cached, second

    first, cached, second = asyncio.run(scenario())
    assert first == "antes"
    assert cached is False
    assert second == "después"
