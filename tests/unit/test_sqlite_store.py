"""
Unit tests for the SQLite entity store.

Tests cover:
- Record CRUD
- Parent-scoped and bounded queries
- Ancestor root isolation
- Error surfacing
"""

import sqlite3
import tempfile

import pytest

from backend.editor_server.errors import StoreError
from backend.editor_server.store.base import EntityStore
from backend.editor_server.store.sqlite import SqliteEntityStore


class TestSqliteEntityStore:
    """Tests for SqliteEntityStore."""

    @pytest.fixture
    def data_dir(self):
        """Create temporary data directory."""
        with tempfile.TemporaryDirectory() as tmpdir:
            yield tmpdir

    @pytest.fixture
    async def store(self, data_dir):
        """Create and initialize a store."""
        store = SqliteEntityStore(f"{data_dir}/levels.db", wal_mode=False)
        await store.initialize()
        return store

    def test_satisfies_protocol(self, data_dir):
        assert isinstance(SqliteEntityStore(f"{data_dir}/x.db"), EntityStore)

    @pytest.mark.asyncio
    async def test_put_and_get(self, store):
        """Put stores the record and parent."""
        await store.put("forest_2", {"rows": 5}, parent_id="forest_1")

        fetched = await store.get("forest_2")

        assert fetched is not None
        assert fetched.entity_id == "forest_2"
        assert fetched.parent_id == "forest_1"
        assert fetched.record == {"rows": 5}
        assert fetched.updated_at > 0

    @pytest.mark.asyncio
    async def test_get_missing(self, store):
        assert await store.get("nope") is None

    @pytest.mark.asyncio
    async def test_put_replaces_record(self, store):
        await store.put("a", {"rows": 1, "columns": 2}, parent_id="p")
        await store.put("a", {"name": "x"})

        fetched = await store.get("a")

        assert fetched.record == {"name": "x"}
        assert fetched.parent_id is None

    @pytest.mark.asyncio
    async def test_delete(self, store):
        await store.put("a", {})

        assert await store.delete("a") is True
        assert await store.delete("a") is False
        assert await store.get("a") is None

    @pytest.mark.asyncio
    async def test_delete_keeps_children(self, store):
        await store.put("p", {})
        await store.put("c", {}, parent_id="p")

        await store.delete("p")

        assert (await store.get("c")).parent_id == "p"
        assert await store.query_children("p") == ["c"]

    @pytest.mark.asyncio
    async def test_query_children_is_flat(self, store):
        await store.put("root", {})
        await store.put("b", {}, parent_id="root")
        await store.put("a", {}, parent_id="root")
        await store.put("grandchild", {}, parent_id="a")

        assert await store.query_children("root") == ["a", "b"]
        assert await store.query_children("grandchild") == []

    @pytest.mark.asyncio
    async def test_query_all_limit_and_order(self, store):
        for level_id in ("c", "a", "d", "b"):
            await store.put(level_id, {})

        assert await store.query_all(limit=3) == ["a", "b", "c"]
        assert len(await store.query_all(limit=10)) == 4

    @pytest.mark.asyncio
    async def test_root_key_isolation(self, store, data_dir):
        other = SqliteEntityStore(f"{data_dir}/levels.db", root_key="OtherRoot", wal_mode=False)
        await store.put("a", {"rows": 1})

        assert await other.get("a") is None
        assert await other.query_all(limit=10) == []

    @pytest.mark.asyncio
    async def test_uninitialized_store_raises(self, data_dir):
        store = SqliteEntityStore(f"{data_dir}/missing.db")

        with pytest.raises(StoreError):
            await store.get("a")

    @pytest.mark.asyncio
    async def test_corrupt_record_raises(self, store):
        await store.put("a", {})
        conn = sqlite3.connect(str(store.db_path))
        conn.execute("UPDATE entities SET record_json = '{bad' WHERE entity_id = 'a'")
        conn.commit()
        conn.close()

        with pytest.raises(StoreError):
            await store.get("a")

    @pytest.mark.asyncio
    async def test_sqlite_errors_become_store_errors(self, store):
        conn = sqlite3.connect(str(store.db_path))
        conn.execute("DROP TABLE entities")
        conn.commit()
        conn.close()

        with pytest.raises(StoreError):
            await store.query_all(limit=10)

    @pytest.mark.asyncio
    async def test_initialize_is_idempotent(self, store):
        await store.put("a", {"rows": 1})

        await store.initialize()

        assert (await store.get("a")).record == {"rows": 1}
