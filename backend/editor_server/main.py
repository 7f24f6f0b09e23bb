"""
Editor Server - component wiring and lifecycle.

This module assembles the server from configuration:
- Durable store (SQLite)
- Byte cache (memory or Redis)
- Level resolver, invalidation coordinator, collection resolver
- LevelService, the handler surface mounted by the HTTP layer

The HTTP transport is a separate collaborator: it creates an EditorServer,
awaits start(), and routes /levels requests to server.levels.

Usage:
    >>> async with EditorServer(ServerConfig.from_env()) as server:
    ...     response = await server.levels.get_level("forest_1")

Configuration is entirely via environment variables.
See config.py for all available settings.

Invariants:
    - The store is initialized and the cache connected before start() returns
    - All components share one store and one byte cache

How to change safely:
    - Add new components with enable/disable flags
    - Keep stop() safe to call on a partially started server
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import json_log_formatter

from .cache import ByteCache, create_byte_cache
from .config import ServerConfig
from .levels import (
    CollectionResolver,
    InvalidationCoordinator,
    LevelResolver,
    LevelService,
    ResponseCache,
)
from .store import SqliteEntityStore

logger = logging.getLogger(__name__)


def setup_logging(config: ServerConfig) -> None:
    """Configure logging based on configuration.

    Args:
        config: Server configuration
    """
    level = getattr(logging, config.observability.log_level.upper(), logging.INFO)

    if config.observability.log_format == "json":
        formatter: logging.Formatter = json_log_formatter.JSONFormatter()
    else:
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [handler]

    # Reduce noise from libraries
    logging.getLogger("redis").setLevel(logging.WARNING)


class EditorServer:
    """Editor Server orchestrator.

    Attributes:
        config: Server configuration
        store: Durable level store
        cache: Byte cache shared by the entity and response caches
        resolver: Level resolver
        coordinator: Invalidation coordinator
        collection: Collection resolver
        levels: Handler surface for the /levels resource
    """

    def __init__(
        self,
        config: Optional[ServerConfig] = None,
        cache: Optional[ByteCache] = None,
    ) -> None:
        """Initialize the server.

        Args:
            config: Optional server configuration (loaded from env if not provided)
            cache: Optional pre-built byte cache (created from config if not provided)
        """
        self.config = config or ServerConfig.from_env()
        self._running = False

        self.cache: Optional[ByteCache] = cache
        self.store: Optional[SqliteEntityStore] = None
        self.resolver: Optional[LevelResolver] = None
        self.coordinator: Optional[InvalidationCoordinator] = None
        self.collection: Optional[CollectionResolver] = None
        self.levels: Optional[LevelService] = None

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Initialize storage, connect the cache and wire components."""
        if self._running:
            logger.warning("Server already running")
            return

        logger.info("Starting Editor Server")
        self.config.log_config()

        try:
            data_dir = Path(self.config.storage.data_dir)
            data_dir.mkdir(parents=True, exist_ok=True)

            self.store = SqliteEntityStore(
                db_path=str(data_dir / self.config.storage.db_filename),
                root_key=self.config.storage.level_root_key,
                wal_mode=self.config.storage.wal_mode,
                busy_timeout_ms=self.config.storage.busy_timeout_ms,
            )
            await self.store.initialize()

            if self.cache is None:
                self.cache = create_byte_cache(self.config.cache)
            await self.cache.connect()
            logger.info("Byte cache connected")

            self.resolver = LevelResolver(self.store, self.cache)
            self.coordinator = InvalidationCoordinator(self.store, self.cache)
            self.collection = CollectionResolver(
                self.store,
                self.resolver,
                page_limit=self.config.resolver.list_limit,
            )
            self.levels = LevelService(
                store=self.store,
                resolver=self.resolver,
                coordinator=self.coordinator,
                collection=self.collection,
                responses=ResponseCache(self.cache),
            )

            self._running = True
            logger.info("Editor Server started successfully")

        except Exception as e:
            logger.error(f"Server startup failed: {e}", exc_info=True)
            await self.stop()
            raise

    async def stop(self) -> None:
        """Release the byte cache connection."""
        if self.cache is not None and self.cache.is_connected:
            await self.cache.close()

        if self._running:
            self._running = False
            logger.info("Editor Server stopped")

    async def __aenter__(self) -> EditorServer:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()
