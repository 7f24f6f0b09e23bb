"""
Unit tests for cache keys, cache-item helpers and the response cache.

Tests cover:
- Key naming scheme
- Degradation of backend and decode failures
- CachedResponse encoding
"""

import pytest

from backend.editor_server.cache.items import evict, load_item, store_item
from backend.editor_server.cache.keys import LIST_ALL_PATH, CacheKeys, level_path
from backend.editor_server.cache.memory import InMemoryByteCache
from backend.editor_server.errors import MalformedPayloadError
from backend.editor_server.levels.model import Level, Setting
from backend.editor_server.levels.responses import CachedResponse, ResponseCache


@pytest.fixture
async def cache():
    cache = InMemoryByteCache()
    await cache.connect()
    return cache


class TestCacheKeys:
    """Tests for the key naming scheme."""

    def test_level_key(self):
        assert CacheKeys.level("forest_1") == "level:forest_1"

    def test_level_response_key(self):
        assert level_path("forest_1") == "/levels/forest_1"
        assert CacheKeys.level_response("forest_1") == "response:/levels/forest_1"

    def test_list_all_key(self):
        assert CacheKeys.list_all_response() == "response:query:all@levels"
        assert CacheKeys.response(LIST_ALL_PATH) == CacheKeys.list_all_response()


class TestItemHelpers:
    """Tests for load_item/store_item/evict."""

    @pytest.mark.asyncio
    async def test_store_then_load(self, cache):
        level = Level("a", rows=Setting.of(2))

        assert await store_item(cache, level)
        loaded = await load_item(cache, "level:a", Level.from_bytes)

        assert loaded == level

    @pytest.mark.asyncio
    async def test_load_miss(self, cache):
        assert await load_item(cache, "level:a", Level.from_bytes) is None

    @pytest.mark.asyncio
    async def test_load_failure_is_miss(self, cache):
        await store_item(cache, Level("a"))
        cache.inject_failure(TimeoutError("slow"))

        assert await load_item(cache, "level:a", Level.from_bytes) is None

    @pytest.mark.asyncio
    async def test_load_malformed_is_miss(self, cache):
        cache.put_raw("level:a", b"{")

        assert await load_item(cache, "level:a", Level.from_bytes) is None

    @pytest.mark.asyncio
    async def test_decode_errors_other_than_malformed_propagate(self, cache):
        cache.put_raw("k", b"x")

        def decode(data):
            raise KeyError("bug")

        with pytest.raises(KeyError):
            await load_item(cache, "k", decode)

    @pytest.mark.asyncio
    async def test_store_failure_returns_false(self, cache):
        cache.inject_failure(ConnectionError("down"), operations=("set",))

        assert await store_item(cache, Level("a")) is False
        assert "level:a" not in cache

    @pytest.mark.asyncio
    async def test_evict(self, cache):
        await store_item(cache, Level("a"))

        assert await evict(cache, "level:a")
        assert await evict(cache, "level:missing")
        assert "level:a" not in cache

    @pytest.mark.asyncio
    async def test_evict_failure_returns_false(self, cache):
        cache.inject_failure(ConnectionError("down"), operations=("delete",))

        assert await evict(cache, "level:a") is False


class TestResponseCache:
    """Tests for CachedResponse and ResponseCache."""

    def test_ok(self):
        assert CachedResponse("/levels/a", 200).ok
        assert not CachedResponse("/levels/a", 404, "missing").ok

    def test_bytes_round_trip(self):
        response = CachedResponse("/levels/a", 200, {"key": "a", "rows": 1})

        assert CachedResponse.from_bytes(response.to_bytes()) == response

    @pytest.mark.parametrize("data", [b"nope", b"{}", b'{"path": "/levels/a", "code": "200"}'])
    def test_from_bytes_rejects_malformed(self, data):
        with pytest.raises(MalformedPayloadError):
            CachedResponse.from_bytes(data)

    @pytest.mark.asyncio
    async def test_put_get_evict(self, cache):
        responses = ResponseCache(cache)
        response = CachedResponse("/levels/a", 404, "Level does not exist")

        await responses.put(response)
        assert await responses.get("/levels/a") == response
        assert "response:/levels/a" in cache

        await responses.evict("/levels/a")
        assert await responses.get("/levels/a") is None

    @pytest.mark.asyncio
    async def test_path_mismatch_is_miss(self, cache):
        responses = ResponseCache(cache)
        cache.put_raw(
            CacheKeys.response("/levels/a"),
            CachedResponse("/levels/b", 200, {"key": "b"}).to_bytes(),
        )

        assert await responses.get("/levels/a") is None
