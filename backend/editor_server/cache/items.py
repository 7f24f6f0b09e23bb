"""
Cache-item plumbing shared by every cache tier.

Any value that can report a cache key and serialize itself to bytes is a
CacheItem. These helpers move CacheItems in and out of a ByteCache while
enforcing the cache-tier error policy: a failing backend or an undecodable
entry degrades to a miss (or a no-op for writes) and is never propagated.

Invariants:
    - load_item() returns None on miss, backend failure or decode failure
    - store_item() and evict() return False on backend failure, never raise
"""

from __future__ import annotations

import logging
from typing import Callable, Optional, Protocol, TypeVar

from ..errors import CacheError, MalformedPayloadError
from .base import ByteCache

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CacheItem(Protocol):
    """Anything that can be written to a ByteCache."""

    @property
    def cache_key(self) -> str: ...

    def to_bytes(self) -> bytes: ...


async def load_item(
    cache: ByteCache,
    key: str,
    decode: Callable[[bytes], T],
) -> Optional[T]:
    """Load and decode a cached item.

    Args:
        cache: Byte cache to read from
        key: Cache key
        decode: Turns stored bytes back into an item; raises
            MalformedPayloadError on bad data

    Returns:
        The decoded item, or None if it is absent or unusable
    """
    try:
        data = await cache.get(key)
    except CacheError as e:
        logger.warning(f"Cache get failed, treating as miss: {e}", extra={"key": key})
        return None

    if data is None:
        logger.debug("Cache miss", extra={"key": key})
        return None

    try:
        item = decode(data)
    except MalformedPayloadError as e:
        logger.warning(f"Discarding malformed cache entry: {e}", extra={"key": key})
        return None

    logger.debug("Cache hit", extra={"key": key})
    return item


async def store_item(cache: ByteCache, item: CacheItem) -> bool:
    """Write an item under its own cache key.

    Returns:
        True if the backend accepted the write
    """
    key = item.cache_key
    try:
        await cache.set(key, item.to_bytes())
    except CacheError as e:
        logger.warning(f"Cache set failed, continuing uncached: {e}", extra={"key": key})
        return False
    return True


async def evict(cache: ByteCache, key: str) -> bool:
    """Delete a cache entry.

    Returns:
        True if the backend accepted the delete (missing keys count as success)
    """
    try:
        await cache.delete(key)
    except CacheError as e:
        logger.warning(f"Cache delete failed, entry may be stale: {e}", extra={"key": key})
        return False
    return True
