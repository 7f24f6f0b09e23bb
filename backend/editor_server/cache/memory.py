"""
In-memory byte cache implementation.

This module provides a process-local ByteCache for:
- Unit and integration tests
- Local development without Redis

Invariants:
    - All data is lost on process exit
    - With max_entries > 0, the least recently used entry is evicted first,
      standing in for memory-pressure eviction in a real cache
    - Injected failures surface as CacheError, exactly like a real backend

How to change safely:
    - Keep interface compatible with the ByteCache protocol
    - Add features to help with testing scenarios
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from dataclasses import dataclass
from typing import Iterable, List, Optional

from ..errors import CacheError

logger = logging.getLogger(__name__)

ALL_OPERATIONS = ("get", "set", "delete")


@dataclass
class CacheStats:
    """Operation counters (testing helper)."""

    gets: int = 0
    hits: int = 0
    sets: int = 0
    deletes: int = 0


class InMemoryByteCache:
    """In-memory implementation of ByteCache.

    Thread safety:
        Every operation completes without awaiting, so it is atomic with
        respect to other coroutines on the same event loop.

    Example:
        >>> cache = InMemoryByteCache(max_entries=1000)
        >>> await cache.connect()
        >>> await cache.set("k", b"v")
        >>> await cache.get("k")
        b'v'
    """

    def __init__(self, max_entries: int = 0) -> None:
        """Initialize the cache.

        Args:
            max_entries: Maximum entries before LRU eviction (0 = unbounded)
        """
        self.max_entries = max_entries
        self._data: OrderedDict[str, bytes] = OrderedDict()
        self._connected = False
        self._failure: Optional[Exception] = None
        self._failing_operations: frozenset[str] = frozenset()
        self.stats = CacheStats()

    @property
    def is_connected(self) -> bool:
        """Whether connected (always true after connect())."""
        return self._connected

    async def connect(self) -> None:
        """Connect (no-op for in-memory)."""
        self._connected = True
        logger.debug("InMemoryByteCache connected")

    async def close(self) -> None:
        """Close and clear all data."""
        self._connected = False
        self._data.clear()
        logger.debug("InMemoryByteCache closed")

    async def get(self, key: str) -> Optional[bytes]:
        self._check("get")
        self.stats.gets += 1
        value = self._data.get(key)
        if value is not None:
            self.stats.hits += 1
            self._data.move_to_end(key)
        return value

    async def set(self, key: str, value: bytes) -> None:
        self._check("set")
        self.stats.sets += 1
        self._data[key] = bytes(value)
        self._data.move_to_end(key)
        if self.max_entries and len(self._data) > self.max_entries:
            evicted, _ = self._data.popitem(last=False)
            logger.debug("Evicted cache entry", extra={"key": evicted})

    async def delete(self, key: str) -> None:
        self._check("delete")
        self.stats.deletes += 1
        self._data.pop(key, None)

    def _check(self, operation: str) -> None:
        if not self._connected:
            raise CacheError("Not connected")
        if self._failure is not None and operation in self._failing_operations:
            raise CacheError(f"Injected {operation} failure: {self._failure}") from self._failure

    # Testing helpers

    def inject_failure(
        self,
        exception: Exception,
        operations: Iterable[str] = ALL_OPERATIONS,
    ) -> None:
        """Make the given operations fail until clear_failure() is called."""
        self._failure = exception
        self._failing_operations = frozenset(operations)

    def clear_failure(self) -> None:
        """Stop injecting failures."""
        self._failure = None
        self._failing_operations = frozenset()

    def keys(self) -> List[str]:
        """All keys currently held, least recently used first."""
        return list(self._data.keys())

    def peek(self, key: str) -> Optional[bytes]:
        """Read a value without touching stats, LRU order or injected failures."""
        return self._data.get(key)

    def put_raw(self, key: str, value: bytes) -> None:
        """Store a value bypassing stats and failures (e.g. to plant corrupt data)."""
        self._data[key] = value

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)
