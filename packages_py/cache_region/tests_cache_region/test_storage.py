"""
Tests for cache_region storage.

Test coverage includes:
- Identity construction and keys
- Region put/match and the newer-entry rule
- Region provisioning, deletion and delete_except
- Cross-region matching
- Memory store LRU eviction and size limits
"""

import pytest

from cache_region import (
    CacheRegionConfig,
    CacheStorage,
    MemoryRegionStore,
    RequestIdentity,
    create_cache_storage,
    create_memory_region_store,
    merge_cache_region_config,
    region_name,
)
from cache_region.types import CachedEntry


URL = "https://app.local/emergency.html"


class TestRequestIdentity:
    """Tests for RequestIdentity."""

    def test_upper_cases_method(self):
        identity = RequestIdentity.create("get", URL)
        assert identity.method == "GET"
        assert identity.key() == f"GET:{URL}"

    def test_keeps_only_relevant_headers(self):
        identity = RequestIdentity.create(
            "GET",
            URL,
            {"Accept-Language": "en", "User-Agent": "x"},
            relevant_headers=["accept-language"],
        )
        assert identity.headers == (("accept-language", "en"),)
        assert identity.key() == f"GET:{URL}|accept-language=en"

    def test_is_hashable_and_equal_by_value(self):
        a = RequestIdentity.create("GET", URL)
        b = RequestIdentity.create("GET", URL)
        assert a == b
        assert len({a, b}) == 1


class TestRegionName:
    """Tests for region_name."""

    def test_formats_purpose_and_version(self):
        assert region_name("emergency-cache", "1.2.0") == "emergency-cache-v1.2.0"


class TestMergeConfig:
    """Tests for merge_cache_region_config."""

    def test_defaults(self):
        config = merge_cache_region_config()
        assert config.max_entries == 1000
        assert config.relevant_headers == []

    def test_overrides(self):
        config = merge_cache_region_config(CacheRegionConfig(max_entries=5))
        assert config.max_entries == 5


class TestCacheRegion:
    """Tests for CacheRegion."""

    @pytest.mark.asyncio
    async def test_put_and_match(self):
        """Should return the stored response unchanged."""
        storage = CacheStorage()
        region = await storage.open("kids-safety-v1")
        identity = storage.identity_for("GET", URL)

        stored = await region.put(identity, 200, {"content-type": "text/html"}, b"<h1>help</h1>")
        entry = await region.match(identity)

        assert stored is True
        assert entry.status_code == 200
        assert entry.headers == {"content-type": "text/html"}
        assert entry.body == b"<h1>help</h1>"
        assert entry.region == "kids-safety-v1"

    @pytest.mark.asyncio
    async def test_overwrites_with_newer_entry(self):
        storage = CacheStorage()
        region = await storage.open("kids-safety-v1")
        identity = storage.identity_for("GET", URL)

        await region.put(identity, 200, {}, b"old", stored_at=100.0)
        await region.put(identity, 200, {}, b"new", stored_at=200.0)

        assert (await region.match(identity)).body == b"new"

    @pytest.mark.asyncio
    async def test_ignores_older_entry(self):
        """Should never replace an entry with an older observation."""
        storage = CacheStorage()
        region = await storage.open("kids-safety-v1")
        identity = storage.identity_for("GET", URL)

        await region.put(identity, 200, {}, b"new", stored_at=200.0)
        stored = await region.put(identity, 200, {}, b"old", stored_at=100.0)

        assert stored is False
        assert (await region.match(identity)).body == b"new"

    @pytest.mark.asyncio
    async def test_delete(self):
        storage = CacheStorage()
        region = await storage.open("r")
        identity = storage.identity_for("GET", URL)
        await region.put(identity, 200, {}, b"x")

        assert await region.delete(identity) is True
        assert await region.match(identity) is None
        assert await region.size() == 0


class TestCacheStorage:
    """Tests for CacheStorage."""

    @pytest.mark.asyncio
    async def test_open_is_idempotent(self):
        storage = create_cache_storage()
        first = await storage.open("r")
        second = await storage.open("r")
        assert first is second
        assert storage.names() == ["r"]

    @pytest.mark.asyncio
    async def test_delete_drops_entries(self):
        storage = CacheStorage()
        region = await storage.open("old-v1")
        identity = storage.identity_for("GET", URL)
        await region.put(identity, 200, {}, b"x")

        assert await storage.delete("old-v1") is True
        assert await storage.delete("old-v1") is False
        assert await storage.match(identity) is None

    @pytest.mark.asyncio
    async def test_delete_except_keeps_named_regions(self):
        storage = CacheStorage()
        for name in ("kids-safety-v1", "emergency-cache-v1", "kids-safety-v2", "emergency-cache-v2"):
            await storage.open(name)

        deleted = await storage.delete_except(["kids-safety-v2", "emergency-cache-v2"])

        assert sorted(deleted) == ["emergency-cache-v1", "kids-safety-v1"]
        assert storage.names() == ["kids-safety-v2", "emergency-cache-v2"]

    @pytest.mark.asyncio
    async def test_match_across_regions_in_order(self):
        storage = CacheStorage()
        identity = storage.identity_for("GET", URL)
        standard = await storage.open("standard")
        critical = await storage.open("critical")
        await standard.put(identity, 200, {}, b"standard")
        await critical.put(identity, 200, {}, b"critical")

        entry = await storage.match(identity, ["critical", "standard"])
        assert entry.body == b"critical"

        entry = await storage.match(identity, ["missing", "standard"])
        assert entry.body == b"standard"

    @pytest.mark.asyncio
    async def test_relevant_headers_split_entries(self):
        storage = CacheStorage(CacheRegionConfig(relevant_headers=["accept-language"]))
        region = await storage.open("r")
        en = storage.identity_for("GET", URL, {"Accept-Language": "en"})
        fr = storage.identity_for("GET", URL, {"Accept-Language": "fr"})
        await region.put(en, 200, {}, b"en")

        assert await storage.match(fr) is None
        assert (await storage.match(en)).body == b"en"

    @pytest.mark.asyncio
    async def test_close_clears_regions(self):
        storage = CacheStorage()
        await storage.open("r")
        await storage.close()
        assert storage.names() == []


class TestMemoryRegionStore:
    """Tests for MemoryRegionStore."""

    def _entry(self, url: str, body: bytes = b"x") -> CachedEntry:
        return CachedEntry(
            identity=RequestIdentity.create("GET", url),
            status_code=200,
            headers={},
            body=body,
        )

    @pytest.mark.asyncio
    async def test_evicts_least_recently_used(self):
        store = create_memory_region_store(max_entries=2)
        await store.set("a", self._entry("https://a"))
        await store.set("b", self._entry("https://b"))
        await store.get("a")
        await store.set("c", self._entry("https://c"))

        assert await store.has("a") is True
        assert await store.has("b") is False
        assert await store.has("c") is True

    @pytest.mark.asyncio
    async def test_skips_oversized_entries(self):
        store = MemoryRegionStore(max_entry_size=10)
        await store.set("big", self._entry("https://big", b"x" * 100))
        assert await store.size() == 0

    @pytest.mark.asyncio
    async def test_stats(self):
        store = MemoryRegionStore()
        await store.set("a", self._entry("https://a"))
        stats = store.get_stats()
        assert stats.entries == 1
        assert stats.size_bytes > 0
        assert stats.evictions == 0
