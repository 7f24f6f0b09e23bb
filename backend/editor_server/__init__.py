"""
Editor Server - backing service for the level/territory editor.

This package stores Level resources durably and serves them through two
cache tiers:
- Entity cache: finalized (merged) Level views keyed by level id
- Response cache: full handler responses keyed by canonical read path,
  including the aggregate "list all" entry

Architecture:
    ┌─────────────┐     ┌──────────────┐     ┌──────────────────┐
    │ HTTP layer  │────▶│ LevelService │────▶│  LevelResolver   │
    │ (external)  │     │  (handlers)  │     │ CollectionResolver│
    └─────────────┘     └──────┬───────┘     └────────┬─────────┘
                               │                      │
                               ▼                      ▼
                   ┌────────────────────────┐   ┌───────────┐
                   │ InvalidationCoordinator│──▶│ ByteCache │
                   └───────────┬────────────┘   │(mem/redis)│
                               │                └───────────┘
                               ▼
                        ┌─────────────┐
                        │ EntityStore │
                        │  (SQLite)   │
                        └─────────────┘

Invariants:
    - The durable store is the source of truth
    - Cache entries are derived and can always be rebuilt from the store
    - Every successful write or delete is followed by invalidate() before
      the caller sees success
    - Cache-tier failures never fail a request

How to change safely:
    - New inheritable Level fields go into LEVEL_FIELDS in levels/model.py
    - Changing the cache key scheme requires flushing the byte cache
    - Keep the invalidation cascade in sync with every cached read path
"""

from ._version import __version__

__all__ = ["__version__"]
