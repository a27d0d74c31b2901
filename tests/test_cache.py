"""Tests for src/docindex/cache.py: byte-budgeted LRU resource cache.

Covers hit/miss accounting, failed fetches not being cached, deferred
eviction, LRU ordering, the all-evicted case, byte accounting and stats.
"""

import asyncio

from conftest import FakeLoader, make_resource

from docindex.cache import ResourceCache


async def _settle():
    """Let queued eviction checks run."""
    await asyncio.sleep(0)


# -----------------------------------------------------------------------
# Get / load basics
# -----------------------------------------------------------------------


class TestGetOrLoad:
    async def test_miss_calls_loader(self, resource_cache, fake_loader):
        fake_loader.resources["https://a.test/mod.ts"] = make_resource(
            "https://a.test/mod.ts", "abc"
        )
        result = await resource_cache.get_or_load("https://a.test/mod.ts")
        assert result is not None
        assert result.content == "abc"
        assert fake_loader.calls == ["https://a.test/mod.ts"]

    async def test_hit_returns_identical_object(self, resource_cache, fake_loader):
        url = "https://a.test/mod.ts"
        fake_loader.resources[url] = make_resource(url, "abc")
        first = await resource_cache.get_or_load(url)
        second = await resource_cache.get_or_load(url)
        third = await resource_cache.get_or_load(url)
        assert first is second is third
        assert fake_loader.calls == [url]

    async def test_failed_fetch_not_cached(self, resource_cache, fake_loader):
        url = "https://a.test/missing.ts"
        assert await resource_cache.get_or_load(url) is None
        assert await resource_cache.get_or_load(url) is None
        assert fake_loader.calls == [url, url]
        assert url not in resource_cache
        assert resource_cache.total_bytes == 0

    async def test_failure_then_success(self, resource_cache, fake_loader):
        url = "https://a.test/flaky.ts"
        assert await resource_cache.get_or_load(url) is None
        fake_loader.resources[url] = make_resource(url, "ok")
        result = await resource_cache.get_or_load(url)
        assert result is not None
        assert url in resource_cache

    async def test_redirected_resource_keyed_by_request(
        self, resource_cache, fake_loader
    ):
        fake_loader.resources["https://a.test/mod.ts"] = make_resource(
            "https://a.test/v2/mod.ts", "abc"
        )
        await resource_cache.get_or_load("https://a.test/mod.ts")
        await resource_cache.get_or_load("https://a.test/mod.ts")
        assert len(fake_loader.calls) == 1
        cached = resource_cache.peek("https://a.test/mod.ts")
        assert cached is not None
        assert cached.locator == "https://a.test/v2/mod.ts"

    async def test_loader_callback_is_get_or_load(self, resource_cache, fake_loader):
        url = "https://a.test/mod.ts"
        fake_loader.resources[url] = make_resource(url, "abc")
        await resource_cache.loader_callback(url)
        await resource_cache.loader_callback(url)
        assert fake_loader.calls == [url]


# -----------------------------------------------------------------------
# Byte accounting
# -----------------------------------------------------------------------


class TestByteAccounting:
    async def test_total_bytes_sums_entries(self, resource_cache, fake_loader):
        for name, content in (("a", "12345"), ("b", "1234567890")):
            url = f"https://a.test/{name}.ts"
            fake_loader.resources[url] = make_resource(url, content)
            await resource_cache.get_or_load(url)
        assert resource_cache.total_bytes == 15

    async def test_size_is_utf8_bytes(self, resource_cache, fake_loader):
        url = "https://a.test/u.ts"
        fake_loader.resources[url] = make_resource(url, "é")
        await resource_cache.get_or_load(url)
        assert resource_cache.total_bytes == 2

    async def test_store_replaces_existing_entry(self, fake_loader):
        cache = ResourceCache(fake_loader, budget_bytes=1000)
        cache._store("k", make_resource("k", "a" * 10))
        cache._store("k", make_resource("k", "a" * 4))
        assert len(cache) == 1
        assert cache.total_bytes == 4


# -----------------------------------------------------------------------
# Eviction
# -----------------------------------------------------------------------


class TestEviction:
    async def test_eviction_is_deferred(self, fake_loader):
        cache = ResourceCache(fake_loader, budget_bytes=10)
        url = "https://a.test/big.ts"
        fake_loader.resources[url] = make_resource(url, "x" * 50)
        result = await cache.get_or_load(url)
        # The inserting call still sees its resource and the budget is exceeded
        assert result is not None
        assert url in cache
        assert cache.total_bytes == 50

        await _settle()
        assert url not in cache
        assert cache.total_bytes == 0

    async def test_evicts_until_under_budget(self, fake_loader):
        cache = ResourceCache(fake_loader, budget_bytes=25)
        for name in "abc":
            url = f"https://a.test/{name}.ts"
            fake_loader.resources[url] = make_resource(url, "x" * 10)
            await cache.get_or_load(url)
            await _settle()
        # 30 bytes > 25: only the oldest goes
        assert "https://a.test/a.ts" not in cache
        assert "https://a.test/b.ts" in cache
        assert "https://a.test/c.ts" in cache
        assert cache.total_bytes == 20

    async def test_lru_order_respects_access(self, fake_loader):
        cache = ResourceCache(fake_loader, budget_bytes=35)
        for name in "abc":
            url = f"https://a.test/{name}.ts"
            fake_loader.resources[url] = make_resource(url, "x" * 10)
            await cache.get_or_load(url)
        await _settle()

        # Touch A so B becomes least recently used
        await cache.get_or_load("https://a.test/a.ts")

        fake_loader.resources["https://a.test/d.ts"] = make_resource(
            "https://a.test/d.ts", "x" * 10
        )
        await cache.get_or_load("https://a.test/d.ts")
        await _settle()

        assert "https://a.test/b.ts" not in cache
        assert "https://a.test/a.ts" in cache
        assert "https://a.test/c.ts" in cache
        assert "https://a.test/d.ts" in cache

    async def test_oversized_insert_evicts_everything(self, fake_loader):
        cache = ResourceCache(fake_loader, budget_bytes=30)
        for name in "ab":
            url = f"https://a.test/{name}.ts"
            fake_loader.resources[url] = make_resource(url, "x" * 10)
            await cache.get_or_load(url)
        fake_loader.resources["https://a.test/huge.ts"] = make_resource(
            "https://a.test/huge.ts", "x" * 100
        )
        await cache.get_or_load("https://a.test/huge.ts")
        await _settle()

        assert len(cache) == 0
        assert cache.total_bytes == 0
        assert cache.stats()["evictions"] == 3

    async def test_single_check_queued_per_turn(self, fake_loader):
        cache = ResourceCache(fake_loader, budget_bytes=15)
        urls = [f"https://a.test/{n}.ts" for n in "abc"]
        for url in urls:
            fake_loader.resources[url] = make_resource(url, "x" * 10)

        await asyncio.gather(*(cache.get_or_load(u) for u in urls))
        await _settle()
        await _settle()

        assert cache.total_bytes <= cache.budget_bytes
        assert cache.total_bytes == sum(
            cache.peek(u).size_bytes for u in urls if u in cache
        )

    def test_evict_under_budget_is_noop(self, fake_loader):
        cache = ResourceCache(fake_loader, budget_bytes=100)
        cache._resources["k"] = make_resource("k", "abc")
        cache.total_bytes = 3
        assert cache.evict() == 0
        assert "k" in cache

    async def test_store_never_evicts_inline(self, fake_loader):
        cache = ResourceCache(fake_loader, budget_bytes=5)
        cache._store("k", make_resource("k", "x" * 10))
        assert "k" in cache
        assert cache.total_bytes == 10

        await _settle()
        assert "k" not in cache
        assert cache.total_bytes == 0

    async def test_reload_after_eviction(self, fake_loader):
        cache = ResourceCache(fake_loader, budget_bytes=5)
        url = "https://a.test/big.ts"
        fake_loader.resources[url] = make_resource(url, "x" * 10)
        await cache.get_or_load(url)
        await _settle()
        await cache.get_or_load(url)
        assert fake_loader.calls == [url, url]


# -----------------------------------------------------------------------
# Stats / clear
# -----------------------------------------------------------------------


class TestStats:
    async def test_stats_counts(self, resource_cache, fake_loader):
        url = "https://a.test/mod.ts"
        fake_loader.resources[url] = make_resource(url, "abc")
        await resource_cache.get_or_load(url)
        await resource_cache.get_or_load(url)
        await resource_cache.get_or_load("https://a.test/none.ts")

        stats = resource_cache.stats()
        assert stats["entries"] == 1
        assert stats["total_bytes"] == 3
        assert stats["budget_bytes"] == 100
        assert stats["hits"] == 1
        assert stats["misses"] == 2
        assert stats["evictions"] == 0

    async def test_clear(self, resource_cache, fake_loader):
        url = "https://a.test/mod.ts"
        fake_loader.resources[url] = make_resource(url, "abc")
        await resource_cache.get_or_load(url)
        resource_cache.clear()
        assert len(resource_cache) == 0
        assert resource_cache.total_bytes == 0

    def test_peek_does_not_load(self):
        loader = FakeLoader()
        cache = ResourceCache(loader)
        assert cache.peek("https://a.test/mod.ts") is None
        assert loader.calls == []
