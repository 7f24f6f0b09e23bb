"""
Configuration management for the Editor Server.

All configuration is done via environment variables - no config files.
This module provides typed configuration classes with validation.

Invariants:
    - All settings have sensible defaults for local development
    - Configuration is passed explicitly into components at construction;
      no component reads module-level mutable state
    - Secrets (Redis credentials) are never logged

How to change safely:
    - Add new settings with defaults that maintain backward compatibility
    - Changing LEVEL_ROOT_KEY orphans existing rows; migrate first
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from urllib.parse import urlsplit, urlunsplit

logger = logging.getLogger(__name__)

MAX_LIST_LIMIT = 1000


class CacheBackend(Enum):
    """Supported byte cache backends."""

    MEMORY = "memory"
    REDIS = "redis"


@dataclass(frozen=True)
class CacheConfig:
    """Byte cache configuration.

    Attributes:
        backend: Which byte cache backend to use
        redis_url: Redis connection URL (redis backend only)
        key_prefix: Namespace prepended to every key by the redis backend
        socket_timeout_s: Redis socket timeout in seconds
        memory_max_entries: LRU bound for the memory backend (0 = unbounded)
    """

    backend: CacheBackend = CacheBackend.MEMORY
    redis_url: str = "redis://localhost:6379/0"
    key_prefix: str = "editor:"
    socket_timeout_s: float = 2.0
    memory_max_entries: int = 0

    @classmethod
    def from_env(cls) -> CacheConfig:
        """Load configuration from environment variables."""
        backend_str = os.getenv("CACHE_BACKEND", "memory").lower()
        try:
            backend = CacheBackend(backend_str)
        except ValueError:
            raise ValueError(
                f"Invalid CACHE_BACKEND '{backend_str}'. Must be one of: memory, redis"
            )

        return cls(
            backend=backend,
            redis_url=os.getenv("REDIS_URL", "redis://localhost:6379/0"),
            key_prefix=os.getenv("CACHE_KEY_PREFIX", "editor:"),
            socket_timeout_s=float(os.getenv("REDIS_SOCKET_TIMEOUT_S", "2.0")),
            memory_max_entries=int(os.getenv("CACHE_MEMORY_MAX_ENTRIES", "0")),
        )

    @property
    def redacted_redis_url(self) -> str:
        """Redis URL with any password removed."""
        parts = urlsplit(self.redis_url)
        if parts.password is None:
            return self.redis_url
        netloc = parts.hostname or ""
        if parts.username:
            netloc = f"{parts.username}:***@{netloc}"
        else:
            netloc = f":***@{netloc}"
        if parts.port:
            netloc += f":{parts.port}"
        return urlunsplit((parts.scheme, netloc, parts.path, parts.query, parts.fragment))


@dataclass(frozen=True)
class StorageConfig:
    """Durable store configuration.

    Attributes:
        data_dir: Directory for the SQLite database
        db_filename: Database file name inside data_dir
        level_root_key: Ancestor root shared by every Level row
        wal_mode: SQLite WAL mode enabled
        busy_timeout_ms: SQLite busy timeout in milliseconds
    """

    data_dir: str = "/var/lib/editor"
    db_filename: str = "levels.db"
    level_root_key: str = "LevelRoot"
    wal_mode: bool = True
    busy_timeout_ms: int = 5000

    @classmethod
    def from_env(cls) -> StorageConfig:
        """Load configuration from environment variables."""
        return cls(
            data_dir=os.getenv("DATA_DIR", "/var/lib/editor"),
            db_filename=os.getenv("LEVELS_DB_FILE", "levels.db"),
            level_root_key=os.getenv("LEVEL_ROOT_KEY", "LevelRoot"),
            wal_mode=os.getenv("SQLITE_WAL_MODE", "true").lower() == "true",
            busy_timeout_ms=int(os.getenv("SQLITE_BUSY_TIMEOUT_MS", "5000")),
        )


@dataclass(frozen=True)
class ResolverConfig:
    """Resolver configuration.

    Attributes:
        list_limit: Page size of the "list all" query
    """

    list_limit: int = 100

    @classmethod
    def from_env(cls) -> ResolverConfig:
        """Load configuration from environment variables."""
        return cls(list_limit=int(os.getenv("LEVEL_LIST_LIMIT", "100")))


@dataclass(frozen=True)
class ObservabilityConfig:
    """Logging configuration.

    Attributes:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_format: Log format (json, text)
    """

    log_level: str = "INFO"
    log_format: str = "json"

    @classmethod
    def from_env(cls) -> ObservabilityConfig:
        """Load configuration from environment variables."""
        return cls(
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv("LOG_FORMAT", "json"),
        )


@dataclass
class ServerConfig:
    """Complete server configuration.

    Attributes:
        cache: Byte cache configuration
        storage: Durable store configuration
        resolver: Resolver configuration
        observability: Logging configuration
    """

    cache: CacheConfig = field(default_factory=CacheConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    resolver: ResolverConfig = field(default_factory=ResolverConfig)
    observability: ObservabilityConfig = field(default_factory=ObservabilityConfig)

    @classmethod
    def from_env(cls) -> ServerConfig:
        """Load complete configuration from environment variables.

        Raises:
            ValueError: If configuration is missing or invalid.
        """
        config = cls(
            cache=CacheConfig.from_env(),
            storage=StorageConfig.from_env(),
            resolver=ResolverConfig.from_env(),
            observability=ObservabilityConfig.from_env(),
        )

        config.validate()
        return config

    def validate(self) -> None:
        """Validate configuration consistency.

        Raises:
            ValueError: If configuration is invalid.
        """
        if self.cache.backend == CacheBackend.REDIS and not self.cache.redis_url:
            raise ValueError("REDIS_URL is required when CACHE_BACKEND=redis")
        if self.cache.memory_max_entries < 0:
            raise ValueError("CACHE_MEMORY_MAX_ENTRIES must be >= 0")

        if not self.storage.level_root_key:
            raise ValueError("LEVEL_ROOT_KEY must not be empty")

        if not 1 <= self.resolver.list_limit <= MAX_LIST_LIMIT:
            raise ValueError(f"LEVEL_LIST_LIMIT must be between 1 and {MAX_LIST_LIMIT}")

        if self.observability.log_format not in ("json", "text"):
            raise ValueError("LOG_FORMAT must be one of: json, text")

        if not os.path.exists(self.storage.data_dir):
            logger.warning(
                f"Data directory does not exist: {self.storage.data_dir}. "
                "It will be created on startup."
            )

    def log_config(self) -> None:
        """Log configuration (redacting secrets)."""
        logger.info(
            "Server configuration loaded",
            extra={
                "cache_backend": self.cache.backend.value,
                "redis_url": self.cache.redacted_redis_url
                if self.cache.backend == CacheBackend.REDIS
                else None,
                "cache_key_prefix": self.cache.key_prefix,
                "data_dir": self.storage.data_dir,
                "level_root_key": self.storage.level_root_key,
                "list_limit": self.resolver.list_limit,
                "log_level": self.observability.log_level,
            },
        )
