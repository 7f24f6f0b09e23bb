"""
Collection resolver: the merged list behind the "list all" endpoint.

Ids come from a keys-only query limited to the page size; each id is then
resolved through LevelResolver so every listed level carries its inherited
fields. Levels that cannot be resolved (dangling parent, cycle) are left
out of the page rather than failing it. Store failures still propagate.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from ..errors import CycleDetectedError, LevelNotFoundError
from ..store.base import EntityStore
from .model import Level
from .resolver import LevelResolver

logger = logging.getLogger(__name__)

DEFAULT_LIST_LIMIT = 100


class CollectionResolver:
    """Lists merged levels in store order."""

    def __init__(
        self,
        store: EntityStore,
        resolver: LevelResolver,
        page_limit: int = DEFAULT_LIST_LIMIT,
    ) -> None:
        self.store = store
        self.resolver = resolver
        self.page_limit = page_limit

    async def list_all(self, limit: Optional[int] = None) -> List[Level]:
        """Resolve up to limit levels (capped at the configured page limit).

        A limit below 1 yields an empty page without querying the store.

        Raises:
            StoreError: If the id query or a level load fails
        """
        if limit is None or limit > self.page_limit:
            limit = self.page_limit
        if limit < 1:
            return []

        level_ids = await self.store.query_all(limit)

        levels = []
        for level_id in level_ids:
            try:
                levels.append(await self.resolver.resolve(level_id))
            except (LevelNotFoundError, CycleDetectedError) as e:
                logger.debug(
                    f"Skipping unresolvable level in listing: {e}",
                    extra={"level_id": level_id},
                )
        return levels
