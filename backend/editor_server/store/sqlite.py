"""
SQLite durable store for the Editor Server.

This module manages the SQLite database that holds entity records. All
entities of one kind share a single ancestor root key, mirroring an
entity-group datastore: queries scoped to the root are strongly
consistent with prior writes.

Invariants:
    - One row per (root_key, entity_id)
    - The parent relation is stored as a plain column; it is never
      validated, so dangling and circular references can exist
    - Every sqlite3 failure surfaces as StoreError

How to change safely:
    - Schema migrations must be backward compatible
    - Keep query_children() index-backed; the invalidation cascade
      runs it once per descendant

Table schema:
    entities:
        - root_key TEXT
        - entity_id TEXT
        - parent_id TEXT (nullable)
        - record_json TEXT
        - updated_at INTEGER (Unix ms)
        - PRIMARY KEY (root_key, entity_id)
        - INDEX on (root_key, parent_id)
"""

from __future__ import annotations

import json
import logging
import sqlite3
import time
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from ..errors import StoreError
from .base import StoredEntity

logger = logging.getLogger(__name__)


class SqliteEntityStore:
    """Ancestor-scoped SQLite store for one entity kind.

    Thread safety:
        Each operation opens its own connection.
        SQLite handles concurrent access via WAL mode.

    Example:
        >>> store = SqliteEntityStore("/var/lib/editor/levels.db", root_key="LevelRoot")
        >>> await store.initialize()
        >>> await store.put("forest_1", {"rows": 5})
        >>> await store.put("forest_2", {"name": "Forest 2"}, parent_id="forest_1")
        >>> await store.query_children("forest_1")
        ['forest_2']
    """

    SCHEMA_VERSION = 1

    def __init__(
        self,
        db_path: str,
        root_key: str = "LevelRoot",
        wal_mode: bool = True,
        busy_timeout_ms: int = 5000,
    ) -> None:
        """Initialize the store.

        Args:
            db_path: SQLite database file
            root_key: Ancestor root every entity in this store belongs to
            wal_mode: Enable SQLite WAL mode
            busy_timeout_ms: SQLite busy timeout
        """
        self.db_path = Path(db_path)
        self.root_key = root_key
        self.wal_mode = wal_mode
        self.busy_timeout_ms = busy_timeout_ms

    @contextmanager
    def _get_connection(self, create: bool = False) -> Iterator[sqlite3.Connection]:
        """Open a configured connection.

        Args:
            create: Whether to create the database if it does not exist

        Yields:
            SQLite connection

        Raises:
            StoreError: If the database is missing or cannot be opened
        """
        if not create and not self.db_path.exists():
            raise StoreError(f"Store not initialized: {self.db_path}")

        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(
                str(self.db_path),
                timeout=self.busy_timeout_ms / 1000.0,
                isolation_level=None,  # Autocommit by default, explicit transactions
            )
        except (OSError, sqlite3.Error) as e:
            raise StoreError(f"Failed to open store {self.db_path}: {e}") from e

        conn.row_factory = sqlite3.Row

        try:
            conn.execute(f"PRAGMA busy_timeout = {self.busy_timeout_ms}")
            if self.wal_mode:
                conn.execute("PRAGMA journal_mode = WAL")
            conn.execute("PRAGMA synchronous = NORMAL")

            yield conn
        except sqlite3.Error as e:
            raise StoreError(f"Store operation failed: {e}") from e
        finally:
            conn.close()

    def _create_schema(self, conn: sqlite3.Connection) -> None:
        """Create database schema."""
        conn.executescript("""
            CREATE TABLE IF NOT EXISTS schema_version (
                version INTEGER PRIMARY KEY,
                applied_at INTEGER NOT NULL
            );

            CREATE TABLE IF NOT EXISTS entities (
                root_key TEXT NOT NULL,
                entity_id TEXT NOT NULL,
                parent_id TEXT,
                record_json TEXT NOT NULL DEFAULT '{}',
                updated_at INTEGER NOT NULL,
                PRIMARY KEY (root_key, entity_id)
            );

            CREATE INDEX IF NOT EXISTS idx_entities_parent
                ON entities(root_key, parent_id);

            INSERT OR IGNORE INTO schema_version (version, applied_at)
            VALUES (1, strftime('%s', 'now') * 1000);
        """)

    async def initialize(self) -> None:
        """Create the database file and schema if they don't exist."""
        with self._get_connection(create=True) as conn:
            self._create_schema(conn)
        logger.info(
            "Initialized entity store",
            extra={"db_path": str(self.db_path), "root_key": self.root_key},
        )

    async def get(self, entity_id: str) -> StoredEntity | None:
        """Get an entity by id.

        Returns:
            StoredEntity or None if not found

        Raises:
            StoreError: If the read fails or the stored record is corrupt
        """
        with self._get_connection() as conn:
            cursor = conn.execute(
                "SELECT * FROM entities WHERE root_key = ? AND entity_id = ?",
                (self.root_key, entity_id),
            )
            row = cursor.fetchone()

        if not row:
            return None

        try:
            record = json.loads(row["record_json"])
        except json.JSONDecodeError as e:
            raise StoreError(f"Corrupt record for {entity_id}: {e}") from e

        return StoredEntity(
            entity_id=row["entity_id"],
            parent_id=row["parent_id"],
            record=record,
            updated_at=row["updated_at"],
        )

    async def put(
        self,
        entity_id: str,
        record: dict[str, Any],
        parent_id: str | None = None,
        updated_at: int | None = None,
    ) -> StoredEntity:
        """Create or replace an entity.

        Args:
            entity_id: Entity identifier
            record: Field values; replaces any existing record entirely
            parent_id: Parent entity id, if any
            updated_at: Optional write timestamp

        Returns:
            The stored entity
        """
        now = updated_at or int(time.time() * 1000)

        with self._get_connection() as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO entities
                (root_key, entity_id, parent_id, record_json, updated_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (self.root_key, entity_id, parent_id, json.dumps(record), now),
            )

        logger.debug(
            "Stored entity",
            extra={"root_key": self.root_key, "entity_id": entity_id, "parent_id": parent_id},
        )

        return StoredEntity(
            entity_id=entity_id,
            parent_id=parent_id,
            record=record,
            updated_at=now,
        )

    async def delete(self, entity_id: str) -> bool:
        """Delete an entity. Its children are left in place.

        Returns:
            True if deleted, False if not found
        """
        with self._get_connection() as conn:
            cursor = conn.execute(
                "DELETE FROM entities WHERE root_key = ? AND entity_id = ?",
                (self.root_key, entity_id),
            )
            return cursor.rowcount > 0

    async def query_children(self, parent_id: str) -> list[str]:
        """Get ids of the direct children of an entity."""
        with self._get_connection() as conn:
            cursor = conn.execute(
                """
                SELECT entity_id FROM entities
                WHERE root_key = ? AND parent_id = ?
                ORDER BY entity_id
                """,
                (self.root_key, parent_id),
            )
            return [row["entity_id"] for row in cursor.fetchall()]

    async def query_all(self, limit: int = 100) -> list[str]:
        """Get up to limit entity ids, ordered by id."""
        with self._get_connection() as conn:
            cursor = conn.execute(
                """
                SELECT entity_id FROM entities
                WHERE root_key = ?
                ORDER BY entity_id
                LIMIT ?
                """,
                (self.root_key, limit),
            )
            return [row["entity_id"] for row in cursor.fetchall()]
