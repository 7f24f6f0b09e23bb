"""Cache key naming scheme.

Keys combine a tier tag with the resource's own id or read path:

    level:<level_id>              finalized (merged) Level view
    response:/levels/<level_id>   single-level read response
    response:query:all@levels     aggregate listing response
"""

from __future__ import annotations

LEVELS_PATH = "/levels"
LIST_ALL_PATH = "query:all@levels"


def level_path(level_id: str) -> str:
    """Canonical read path of a single level."""
    return f"{LEVELS_PATH}/{level_id}"


class CacheKeys:
    """Builds byte cache keys for every cache tier."""

    LEVEL = "level:"
    RESPONSE = "response:"

    @staticmethod
    def level(level_id: str) -> str:
        return f"{CacheKeys.LEVEL}{level_id}"

    @staticmethod
    def response(path: str) -> str:
        return f"{CacheKeys.RESPONSE}{path}"

    @staticmethod
    def level_response(level_id: str) -> str:
        return CacheKeys.response(level_path(level_id))

    @staticmethod
    def list_all_response() -> str:
        return CacheKeys.response(LIST_ALL_PATH)
