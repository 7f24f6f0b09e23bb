"""
Response cache.

Maps a canonical read path to the full response (status code + body) a
handler produced for it. Populated by the read handlers in service.py and
evicted by the invalidation cascade, which must know the addressing scheme:
one key per level path plus one fixed key for the listing.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Optional

from ..cache.base import ByteCache
from ..cache.items import evict, load_item, store_item
from ..cache.keys import CacheKeys
from ..errors import MalformedPayloadError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CachedResponse:
    """A handler response.

    Attributes:
        path: Canonical read path the response answers
        code: HTTP status code
        body: JSON-serializable body (dict, list, string or None)
    """

    path: str
    code: int
    body: Any = None

    @property
    def ok(self) -> bool:
        return 200 <= self.code < 300

    @property
    def cache_key(self) -> str:
        return CacheKeys.response(self.path)

    def to_bytes(self) -> bytes:
        return json.dumps({"path": self.path, "code": self.code, "body": self.body}).encode(
            "utf-8"
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> CachedResponse:
        try:
            decoded = json.loads(data.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise MalformedPayloadError(f"Cached response is not valid JSON: {e}") from e

        if (
            not isinstance(decoded, dict)
            or not isinstance(decoded.get("path"), str)
            or not isinstance(decoded.get("code"), int)
        ):
            raise MalformedPayloadError("Cached response is missing path or code")

        return cls(path=decoded["path"], code=decoded["code"], body=decoded.get("body"))


class ResponseCache:
    """Keyed cache of handler responses, backed by the byte cache."""

    def __init__(self, cache: ByteCache) -> None:
        self.cache = cache

    async def get(self, path: str) -> Optional[CachedResponse]:
        response = await load_item(self.cache, CacheKeys.response(path), CachedResponse.from_bytes)
        if response is not None and response.path != path:
            logger.warning(
                "Cached response path mismatch, ignoring",
                extra={"path": path, "cached_path": response.path},
            )
            return None
        return response

    async def put(self, response: CachedResponse) -> bool:
        return await store_item(self.cache, response)

    async def evict(self, path: str) -> bool:
        return await evict(self.cache, CacheKeys.response(path))
