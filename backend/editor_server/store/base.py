"""
Base protocol and types for the durable store.

The durable store is the single source of truth. Every entity of a kind
lives under one ancestor root, which gives strongly consistent
parent-scoped queries.

Invariants:
    - get() of a missing id returns None; not-found is decided by callers
    - put() replaces the whole record (upsert)
    - delete() of a missing id succeeds
    - query_children() is flat: direct children only

How to change safely:
    - Protocol changes require updating all implementations
"""

from __future__ import annotations

from abc import abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable


@dataclass
class StoredEntity:
    """A raw record as held by the durable store.

    Attributes:
        entity_id: Entity identifier (unique under the ancestor root)
        parent_id: Parent entity id, if any
        record: Stored field values (set fields only)
        updated_at: Last write timestamp (Unix ms)
    """

    entity_id: str
    parent_id: Optional[str]
    record: Dict[str, Any] = field(default_factory=dict)
    updated_at: int = 0


@runtime_checkable
class EntityStore(Protocol):
    """Protocol for durable store backends.

    Consistency contract:
        - Reads and parent-scoped queries observe every prior successful
          write under the same ancestor root

    Errors:
        - Every backend failure is raised as StoreError
    """

    @abstractmethod
    async def initialize(self) -> None:
        """Create backing storage if needed."""
        ...

    @abstractmethod
    async def get(self, entity_id: str) -> Optional[StoredEntity]:
        ...

    @abstractmethod
    async def put(
        self,
        entity_id: str,
        record: Dict[str, Any],
        parent_id: Optional[str] = None,
    ) -> StoredEntity:
        ...

    @abstractmethod
    async def delete(self, entity_id: str) -> bool:
        """Delete an entity.

        Returns:
            True if an entity was removed, False if it did not exist
        """
        ...

    @abstractmethod
    async def query_children(self, parent_id: str) -> List[str]:
        """Ids of the direct children of parent_id, ordered by id."""
        ...

    @abstractmethod
    async def query_all(self, limit: int) -> List[str]:
        """Up to limit ids under the ancestor root, ordered by id."""
        ...
