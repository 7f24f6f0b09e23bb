"""
Redis byte cache implementation.

This module provides the production ByteCache backend. It works with:
- Redis / Redis Cluster proxies
- Valkey
- Any RESP-compatible memory cache

Invariants:
    - Entries are written without expiry; eviction is left to the server's
      maxmemory policy
    - Every key is namespaced with key_prefix
    - All redis-py errors are re-raised as CacheError

How to change safely:
    - Test against a real Redis before deploying
    - Changing key_prefix orphans existing entries (harmless, they are derived)
"""

from __future__ import annotations

import logging
from typing import Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from ..errors import CacheError

logger = logging.getLogger(__name__)


class RedisByteCache:
    """Redis implementation of the ByteCache protocol.

    Example:
        >>> cache = RedisByteCache("redis://localhost:6379/0", key_prefix="editor:")
        >>> await cache.connect()
        >>> await cache.set("level:a", b"{}")
    """

    def __init__(
        self,
        url: str,
        key_prefix: str = "",
        socket_timeout_s: float = 2.0,
        client: Optional[aioredis.Redis] = None,
    ) -> None:
        """Initialize the Redis cache.

        Args:
            url: Redis connection URL
            key_prefix: Namespace prepended to every key
            socket_timeout_s: Socket connect/read timeout in seconds
            client: Pre-built client (used by tests); created in connect() otherwise
        """
        self.url = url
        self.key_prefix = key_prefix
        self.socket_timeout_s = socket_timeout_s
        self._client = client
        self._connected = False

    @property
    def is_connected(self) -> bool:
        """Whether connected to Redis."""
        return self._connected and self._client is not None

    async def connect(self) -> None:
        """Connect to Redis and verify with PING.

        Raises:
            CacheError: If connection fails
        """
        if self._connected:
            return

        if self._client is None:
            self._client = aioredis.Redis.from_url(
                self.url,
                socket_timeout=self.socket_timeout_s,
                socket_connect_timeout=self.socket_timeout_s,
            )

        try:
            await self._client.ping()
        except RedisError as e:
            raise CacheError(f"Failed to connect to Redis: {e}") from e

        self._connected = True
        logger.info("Connected to Redis", extra={"key_prefix": self.key_prefix})

    async def close(self) -> None:
        """Close the Redis connection pool."""
        if self._client is not None:
            try:
                await self._client.aclose()
            except RedisError as e:
                logger.warning(f"Error closing Redis client: {e}")
            self._client = None

        self._connected = False
        logger.info("Redis connection closed")

    async def get(self, key: str) -> Optional[bytes]:
        client = self._require_client()
        try:
            return await client.get(self._namespaced(key))
        except RedisError as e:
            raise CacheError(f"Redis GET failed for {key}: {e}") from e

    async def set(self, key: str, value: bytes) -> None:
        client = self._require_client()
        try:
            await client.set(self._namespaced(key), value)
        except RedisError as e:
            raise CacheError(f"Redis SET failed for {key}: {e}") from e

    async def delete(self, key: str) -> None:
        client = self._require_client()
        try:
            await client.delete(self._namespaced(key))
        except RedisError as e:
            raise CacheError(f"Redis DEL failed for {key}: {e}") from e

    def _require_client(self) -> aioredis.Redis:
        if not self._connected or self._client is None:
            raise CacheError("Not connected")
        return self._client

    def _namespaced(self, key: str) -> str:
        return f"{self.key_prefix}{key}"
