"""
Hierarchical Level resource.

This module handles:
- The Level model with explicit per-field presence
- Resolution of a level against its ancestor chain (merged views)
- Cascade invalidation of merged views and cached responses
- The merged "list all" collection
- Transport-free handler logic for the HTTP layer

Invariants:
    - Any field a level leaves unset is inherited from the nearest ancestor
      that sets it; key and parent are never inherited
    - Merged views are cached and must be evicted whenever any member of
      their ancestor chain changes
    - No snapshot isolation across an ancestor chain: concurrent writes and
      reads may observe either the old or the new merged value

How to change safely:
    - Every new cached read path needs a matching eviction in invalidation.py
    - Test cascades with deep chains and failing child queries
"""

from .collection import DEFAULT_LIST_LIMIT, CollectionResolver
from .invalidation import InvalidationCoordinator, InvalidationReport
from .model import LEVEL_FIELDS, UNSET, Level, LevelField, Setting
from .resolver import LevelResolver
from .responses import CachedResponse, ResponseCache
from .service import LevelService

__all__ = [
    "Level",
    "LevelField",
    "LEVEL_FIELDS",
    "Setting",
    "UNSET",
    "LevelResolver",
    "InvalidationCoordinator",
    "InvalidationReport",
    "CollectionResolver",
    "DEFAULT_LIST_LIMIT",
    "CachedResponse",
    "ResponseCache",
    "LevelService",
]
