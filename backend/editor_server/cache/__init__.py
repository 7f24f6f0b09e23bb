"""
Byte cache abstraction for the Editor Server.

This module provides a pluggable cache backend interface supporting:
- Redis (production)
- In-memory (testing, local development)

Both the entity cache and the response cache live in the same byte cache,
separated by key namespace (see keys.py).

Invariants:
    - The cache is never authoritative; everything in it is rebuildable
    - Cache failures degrade to misses (see items.py)
    - Entries carry no TTL; they live until invalidated or evicted

How to change safely:
    - New backends must implement the ByteCache protocol
    - Key scheme changes must be mirrored in the invalidation cascade
"""

from .base import ByteCache, create_byte_cache
from .items import CacheItem, evict, load_item, store_item
from .keys import LIST_ALL_PATH, CacheKeys, level_path
from .memory import InMemoryByteCache
from .redis import RedisByteCache

__all__ = [
    # Protocol and factory
    "ByteCache",
    "create_byte_cache",
    # Item plumbing
    "CacheItem",
    "load_item",
    "store_item",
    "evict",
    # Keys
    "CacheKeys",
    "LIST_ALL_PATH",
    "level_path",
    # Implementations
    "InMemoryByteCache",
    "RedisByteCache",
]
