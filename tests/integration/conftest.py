"""
Shared fixtures for Level integration tests.

Components run against a real SQLite store in a temporary directory and
the in-memory byte cache.
"""

import asyncio
import tempfile
from typing import Optional

import pytest

from backend.editor_server.cache.memory import InMemoryByteCache
from backend.editor_server.errors import StoreError
from backend.editor_server.levels.collection import CollectionResolver
from backend.editor_server.levels.invalidation import InvalidationCoordinator
from backend.editor_server.levels.model import Level
from backend.editor_server.levels.resolver import LevelResolver
from backend.editor_server.levels.responses import ResponseCache
from backend.editor_server.levels.service import LevelService
from backend.editor_server.store.sqlite import SqliteEntityStore


class FaultyStore(SqliteEntityStore):
    """SQLite store whose operations can be made to fail by name.

    Setting hold_after_put parks every put() after its row is committed
    until the event is set; put_written is set once a put is parked.
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.failing: set[str] = set()
        self.calls: list[tuple[str, str]] = []
        self.hold_after_put: Optional[asyncio.Event] = None
        self.put_written = asyncio.Event()

    def _maybe_fail(self, operation: str, arg: str = "") -> None:
        self.calls.append((operation, arg))
        if operation in self.failing or f"{operation}:{arg}" in self.failing:
            raise StoreError(f"Injected {operation} failure")

    async def get(self, entity_id):
        self._maybe_fail("get", entity_id)
        return await super().get(entity_id)

    async def put(self, entity_id, record, parent_id=None, updated_at=None):
        self._maybe_fail("put", entity_id)
        stored = await super().put(entity_id, record, parent_id, updated_at)
        if self.hold_after_put is not None:
            self.put_written.set()
            await self.hold_after_put.wait()
        return stored

    async def delete(self, entity_id):
        self._maybe_fail("delete", entity_id)
        return await super().delete(entity_id)

    async def query_children(self, parent_id):
        self._maybe_fail("query_children", parent_id)
        return await super().query_children(parent_id)

    async def query_all(self, limit=100):
        self._maybe_fail("query_all")
        return await super().query_all(limit)


class RecordingCache(InMemoryByteCache):
    """In-memory cache that records every deleted key in order."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.deleted: list[str] = []

    async def delete(self, key):
        self.deleted.append(key)
        await super().delete(key)


@pytest.fixture
def data_dir():
    """Create temporary data directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir


@pytest.fixture
async def store(data_dir):
    """Create and initialize the level store."""
    store = FaultyStore(f"{data_dir}/levels.db", root_key="LevelRoot", wal_mode=False)
    await store.initialize()
    return store


@pytest.fixture
async def cache():
    """Create a connected in-memory byte cache."""
    cache = RecordingCache()
    await cache.connect()
    yield cache
    await cache.close()


@pytest.fixture
def resolver(store, cache):
    return LevelResolver(store, cache)


@pytest.fixture
def coordinator(store, cache):
    return InvalidationCoordinator(store, cache)


@pytest.fixture
def collection(store, resolver):
    return CollectionResolver(store, resolver, page_limit=100)


@pytest.fixture
def service(store, resolver, coordinator, collection, cache):
    return LevelService(
        store=store,
        resolver=resolver,
        coordinator=coordinator,
        collection=collection,
        responses=ResponseCache(cache),
    )


@pytest.fixture
def save(store):
    """Write a raw Level straight to the store, bypassing invalidation."""

    async def _save(level: Level) -> None:
        await store.put(level.key, level.to_record(), parent_id=level.parent_id)

    return _save
