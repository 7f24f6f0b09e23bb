"""
Invalidation coordinator for the Level caches.

invalidate(level_id) evicts every cache entry whose value may have changed
after a write to or delete of level_id:
    1. the level's finalized-view entry          level:<id>
    2. the level's read response                 response:/levels/<id>
    3. the same two entries for every descendant (direct children are
       queried from the store, then each child is invalidated in turn)
    4. the aggregate listing response            response:query:all@levels
       (once per top-level call, not once per cascade level)

Invariants:
    - Called after every successful write or delete, before the mutating
      call returns
    - Best effort: a failing child query is logged and recorded on the
      report, never raised; the mutation has already succeeded
    - Each id is visited at most once, so circular chains terminate

Consistency:
    There is no transaction between the store write and the cascade. A read
    interleaved between the two may re-cache the old merged value, and a
    process crash between them leaves stale entries with no TTL to expire
    them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Set

from ..cache.base import ByteCache
from ..cache.items import evict
from ..cache.keys import CacheKeys
from ..errors import StoreError
from ..store.base import EntityStore

logger = logging.getLogger(__name__)


@dataclass
class InvalidationReport:
    """Outcome of one top-level invalidate() call.

    Attributes:
        root_id: The mutated level id
        invalidated: Ids whose entries were evicted, in cascade order
        failed_queries: Ids whose children could not be queried
    """

    root_id: str
    invalidated: List[str] = field(default_factory=list)
    failed_queries: List[str] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        """Whether every descendant was reached."""
        return not self.failed_queries


class InvalidationCoordinator:
    """Cascades cache eviction from a mutated level to all its descendants."""

    def __init__(self, store: EntityStore, cache: ByteCache) -> None:
        self.store = store
        self.cache = cache

    async def invalidate(self, level_id: str) -> InvalidationReport:
        """Evict all entries that may be stale after a mutation of level_id."""
        report = InvalidationReport(root_id=level_id)
        await self._invalidate_tree(level_id, report, set())
        await evict(self.cache, CacheKeys.list_all_response())

        if report.complete:
            logger.debug(
                "Invalidated level caches",
                extra={"level_id": level_id, "count": len(report.invalidated)},
            )
        else:
            logger.warning(
                "Invalidation incomplete; descendants may be served stale",
                extra={"level_id": level_id, "failed_queries": report.failed_queries},
            )
        return report

    async def _invalidate_tree(
        self,
        level_id: str,
        report: InvalidationReport,
        visited: Set[str],
    ) -> None:
        if level_id in visited:
            return
        visited.add(level_id)

        await evict(self.cache, CacheKeys.level(level_id))
        await evict(self.cache, CacheKeys.level_response(level_id))
        report.invalidated.append(level_id)

        try:
            children = await self.store.query_children(level_id)
        except StoreError as e:
            logger.warning(
                f"Child query failed during invalidation: {e}",
                extra={"level_id": level_id},
            )
            report.failed_queries.append(level_id)
            return

        for child_id in children:
            await self._invalidate_tree(child_id, report, visited)
