"""
Durable store for the Editor Server.

The store holds raw (unmerged) entity records and is the single source of
truth. Cached merged views are derived from it and can be rebuilt at any
time.

Invariants:
    - Every entity of a kind lives under one ancestor root
    - Parent-scoped queries are strongly consistent with prior writes
    - Failures surface as StoreError
"""

from .base import EntityStore, StoredEntity
from .sqlite import SqliteEntityStore

__all__ = [
    "EntityStore",
    "StoredEntity",
    "SqliteEntityStore",
]
