"""
Entity resolver for hierarchical Levels.

resolve(level_id) returns the fully merged view of a level: every field
the level leaves unset is taken from the nearest ancestor that sets it.

Algorithm:
    1. Return the cached finalized view if the entity cache has one
    2. Load the raw record from the durable store (absent -> not found)
    3. If the level has a parent and at least one unset field, resolve the
       parent with the same algorithm and merge
    4. Cache the finalized view under the level's own key

Invariants:
    - Exactly one entity-cache write per resolved id, intermediate
      ancestors included
    - Not-found is never cached here; negative caching belongs to the
      response cache
    - A dangling parent makes the child unresolvable (LevelNotFoundError
      naming the missing ancestor)
    - A circular parent chain raises CycleDetectedError and caches nothing

How to change safely:
    - Any new cached read path must be added to the invalidation cascade
"""

from __future__ import annotations

import logging
from typing import Tuple

from ..cache.base import ByteCache
from ..cache.items import load_item, store_item
from ..cache.keys import CacheKeys
from ..errors import CycleDetectedError, LevelNotFoundError, MalformedPayloadError, StoreError
from ..store.base import EntityStore
from .model import Level

logger = logging.getLogger(__name__)


class LevelResolver:
    """Resolves levels against their ancestor chain, caching merged views.

    Example:
        >>> resolver = LevelResolver(store, cache)
        >>> level = await resolver.resolve("forest_2")
        >>> level.rows.value  # inherited from forest_1 if unset on forest_2
        5
    """

    def __init__(self, store: EntityStore, cache: ByteCache) -> None:
        self.store = store
        self.cache = cache

    async def resolve(self, level_id: str) -> Level:
        """Get the merged view of a level.

        Raises:
            LevelNotFoundError: If the level or a required ancestor is missing
            CycleDetectedError: If the parent chain loops
            StoreError: If the durable store fails
        """
        return await self._resolve(level_id, ())

    async def _resolve(self, level_id: str, chain: Tuple[str, ...]) -> Level:
        if level_id in chain:
            raise CycleDetectedError(chain + (level_id,))

        cached = await load_item(self.cache, CacheKeys.level(level_id), Level.from_bytes)
        if cached is not None:
            return cached

        level = await self.load_raw(level_id)

        if level.has_parent and level.unset_fields():
            parent = await self._resolve(level.parent.value, chain + (level_id,))
            level = level.merged_with(parent)

        await store_item(self.cache, level)

        logger.debug(
            "Resolved level from store",
            extra={"level_id": level_id, "parent_id": level.parent_id, "depth": len(chain)},
        )
        return level

    async def load_raw(self, level_id: str) -> Level:
        """Load a level exactly as stored, without inheritance.

        Raises:
            LevelNotFoundError: If the level does not exist
            StoreError: If the store fails or holds an undecodable record
        """
        stored = await self.store.get(level_id)
        if stored is None:
            raise LevelNotFoundError(level_id)

        try:
            return Level.from_record(stored.entity_id, stored.record, stored.parent_id)
        except MalformedPayloadError as e:
            raise StoreError(f"Stored level {level_id} is malformed: {e}") from e
