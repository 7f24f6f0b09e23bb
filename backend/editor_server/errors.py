"""
Error types for the Editor Server.

Taxonomy:
- LevelNotFoundError: Level (or a required ancestor) does not exist
- StoreError: Durable store failure, surfaced to callers as a server error
- CacheError: Byte cache failure, always degraded to a miss or no-op
- MalformedPayloadError: A cached, stored or wire payload could not be decoded
- CycleDetectedError: A parent chain loops back on itself

Invariants:
    - All errors inherit from EditorServerError
    - CacheError never escapes the cache-item helpers
    - Not-found is distinct from store failures
"""

from __future__ import annotations

from typing import Sequence


class EditorServerError(Exception):
    """Base exception for all Editor Server errors."""

    pass


class LevelNotFoundError(EditorServerError):
    """Level does not exist in the durable store.

    Attributes:
        level_id: The id that could not be found. When raised while resolving
            a child, this is the missing ancestor's id.
    """

    def __init__(self, level_id: str) -> None:
        super().__init__(f"Level not found: {level_id}")
        self.level_id = level_id


class StoreError(EditorServerError):
    """Durable store operation failed."""

    pass


class CacheError(EditorServerError):
    """Byte cache operation failed."""

    pass


class MalformedPayloadError(EditorServerError):
    """Payload could not be decoded into a Level."""

    pass


class CycleDetectedError(EditorServerError):
    """Parent chain contains a cycle.

    Attributes:
        chain: Ids visited in resolution order, ending with the repeated id
    """

    def __init__(self, chain: Sequence[str]) -> None:
        self.chain = tuple(chain)
        super().__init__(f"Cycle in parent chain: {' -> '.join(self.chain)}")
