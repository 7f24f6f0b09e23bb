"""
Base protocol for the byte cache abstraction.

The byte cache is an opaque key -> bytes store used for both the entity
cache and the response cache. It gives no ordering or durability
guarantees: a get() may miss even immediately after a set().

Invariants:
    - Backends raise CacheError (never backend-specific exceptions)
    - delete() of a missing key is not an error
    - Nothing stored in the cache is authoritative

How to change safely:
    - New backends must implement the ByteCache protocol
    - Callers go through cache/items.py, which degrades errors to misses
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Optional, Protocol, runtime_checkable

if TYPE_CHECKING:
    from ..config import CacheConfig


@runtime_checkable
class ByteCache(Protocol):
    """Protocol for byte cache backends.

    Example:
        >>> cache = InMemoryByteCache()
        >>> await cache.connect()
        >>> await cache.set("level:a", b"{}")
        >>> await cache.get("level:a")
        b'{}'
    """

    @abstractmethod
    async def connect(self) -> None:
        """Connect to the cache backend.

        Raises:
            CacheError: If the backend is unreachable
        """
        ...

    @abstractmethod
    async def close(self) -> None:
        """Release backend resources."""
        ...

    @abstractmethod
    async def get(self, key: str) -> Optional[bytes]:
        """Get a value.

        Returns:
            The stored bytes, or None on a miss

        Raises:
            CacheError: If the backend fails
        """
        ...

    @abstractmethod
    async def set(self, key: str, value: bytes) -> None:
        """Store a value with no expiry.

        Raises:
            CacheError: If the backend fails
        """
        ...

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Delete a value. Missing keys are ignored.

        Raises:
            CacheError: If the backend fails
        """
        ...

    @property
    @abstractmethod
    def is_connected(self) -> bool:
        """Whether currently connected to the backend."""
        ...


def create_byte_cache(config: "CacheConfig") -> ByteCache:
    """Factory function to create a byte cache from configuration.

    Args:
        config: Cache configuration

    Returns:
        Appropriate ByteCache implementation

    Raises:
        ValueError: If backend is not supported
    """
    from ..config import CacheBackend
    from .memory import InMemoryByteCache
    from .redis import RedisByteCache

    if config.backend == CacheBackend.MEMORY:
        return InMemoryByteCache(max_entries=config.memory_max_entries)
    elif config.backend == CacheBackend.REDIS:
        return RedisByteCache(
            url=config.redis_url,
            key_prefix=config.key_prefix,
            socket_timeout_s=config.socket_timeout_s,
        )
    else:
        raise ValueError(f"Unsupported cache backend: {config.backend}")
