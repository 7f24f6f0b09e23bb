"""
Level handler surface.

LevelService holds the handler logic for the /levels resource without any
transport: each method returns a CachedResponse (status code + body) that
the HTTP layer writes to the wire as-is.

    GET    /levels/{id}  -> get_level()
    POST   /levels/{id}  -> put_level()
    PUT    /levels/{id}  -> put_level()
    DELETE /levels/{id}  -> delete_level()
    GET    /levels       -> list_levels()

Invariants:
    - Writes return only after the store write and invalidate() complete
    - Not-found read responses are cached like successful ones
    - Server errors (500) are never cached
"""

from __future__ import annotations

import logging
from typing import Any

from ..cache.keys import LIST_ALL_PATH, level_path
from ..errors import CycleDetectedError, LevelNotFoundError, MalformedPayloadError, StoreError
from ..store.base import EntityStore
from .collection import CollectionResolver
from .invalidation import InvalidationCoordinator
from .model import Level
from .resolver import LevelResolver
from .responses import CachedResponse, ResponseCache

logger = logging.getLogger(__name__)

NOT_FOUND_MESSAGE = "Level does not exist"


class LevelService:
    """Handler logic for the Level resource.

    Example:
        >>> service = LevelService(store, resolver, coordinator, collection, responses)
        >>> await service.put_level("forest_1", {"rows": 5})
        >>> (await service.get_level("forest_1")).body
        {'key': 'forest_1', 'rows': 5}
    """

    def __init__(
        self,
        store: EntityStore,
        resolver: LevelResolver,
        coordinator: InvalidationCoordinator,
        collection: CollectionResolver,
        responses: ResponseCache,
    ) -> None:
        self.store = store
        self.resolver = resolver
        self.coordinator = coordinator
        self.collection = collection
        self.responses = responses

    async def get_level(self, level_id: str) -> CachedResponse:
        path = level_path(level_id)

        cached = await self.responses.get(path)
        if cached is not None:
            return cached

        try:
            level = await self.resolver.resolve(level_id)
        except LevelNotFoundError:
            response = CachedResponse(path=path, code=404, body=NOT_FOUND_MESSAGE)
            await self.responses.put(response)
            return response
        except (StoreError, CycleDetectedError) as e:
            logger.error(f"Could not retrieve level {level_id}: {e}")
            return CachedResponse(path=path, code=500, body=f"Could not retrieve the level: {e}")

        response = CachedResponse(path=path, code=200, body=level.to_json())
        await self.responses.put(response)
        return response

    async def put_level(self, level_id: str, payload: Any) -> CachedResponse:
        """Create or overwrite a level; the id always comes from the path."""
        path = level_path(level_id)

        try:
            level = Level.from_json(payload, key=level_id)
        except MalformedPayloadError as e:
            return CachedResponse(path=path, code=400, body=f"Invalid level payload: {e}")

        try:
            await self.store.put(level_id, level.to_record(), parent_id=level.parent_id)
        except StoreError as e:
            logger.error(f"Failed to store level {level_id}: {e}")
            return CachedResponse(path=path, code=500, body=f"Failed to store the level: {e}")

        await self.coordinator.invalidate(level_id)

        logger.info("Stored level", extra={"level_id": level_id, "parent_id": level.parent_id})
        return CachedResponse(path=path, code=200, body=None)

    async def delete_level(self, level_id: str) -> CachedResponse:
        """Delete a level. Deleting a missing level succeeds; children are kept."""
        path = level_path(level_id)

        try:
            deleted = await self.store.delete(level_id)
        except StoreError as e:
            logger.error(f"Failed to delete level {level_id}: {e}")
            return CachedResponse(path=path, code=500, body=f"Failed to delete the level: {e}")

        await self.coordinator.invalidate(level_id)

        logger.info("Deleted level", extra={"level_id": level_id, "existed": deleted})
        return CachedResponse(path=path, code=200, body=None)

    async def list_levels(self) -> CachedResponse:
        cached = await self.responses.get(LIST_ALL_PATH)
        if cached is not None:
            return cached

        try:
            levels = await self.collection.list_all()
        except StoreError as e:
            logger.error(f"Could not list levels: {e}")
            return CachedResponse(
                path=LIST_ALL_PATH, code=500, body=f"Could not list the levels: {e}"
            )

        response = CachedResponse(
            path=LIST_ALL_PATH,
            code=200,
            body=[level.to_json() for level in levels],
        )
        await self.responses.put(response)
        return response
