"""
Level data model.

A Level has an id (key), an optional parent, and a set of independently
optional fields. Each field is wrapped in a Setting that records presence
explicitly, so a field set to 0 is distinguishable from an unset field
that inherits from the parent chain.

Three representations are supported:
- JSON wire form (to_json / from_json): the shape the HTTP layer serves
- Store record (to_record / from_record): attribute names, set fields only
- Cache bytes (to_bytes / from_bytes): the finalized merged view

Invariants:
    - key and parent are never inherited
    - Unset fields are omitted from every serialized form
    - merged_with() never mutates either input

How to change safely:
    - Add new inheritable fields to LEVEL_FIELDS and the Level dataclass
    - Never rename an attribute without migrating stored records
    - JSON names are part of the wire contract
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, Generic, Optional, Tuple, TypeVar

from ..cache.keys import CacheKeys
from ..errors import MalformedPayloadError

T = TypeVar("T")


@dataclass(frozen=True)
class Setting(Generic[T]):
    """A field value paired with an explicit presence flag.

    Example:
        >>> Setting.of(0).is_set
        True
        >>> UNSET.is_set
        False
        >>> UNSET.or_else(Setting.of(5)).value
        5
    """

    value: Optional[T] = None
    is_set: bool = False

    @classmethod
    def of(cls, value: T) -> Setting[T]:
        return cls(value=value, is_set=True)

    def or_else(self, other: Setting[T]) -> Setting[T]:
        """This setting if set, otherwise other."""
        return self if self.is_set else other

    def __repr__(self) -> str:
        return f"Setting({self.value!r})" if self.is_set else "UNSET"


UNSET: Setting[Any] = Setting()


class FieldKind(Enum):
    """Value types of inheritable Level fields."""

    STRING = "str"
    INTEGER = "int32"
    FLOAT = "float32"
    FLOAT_MAP = "map<str,float32>"


@dataclass(frozen=True)
class LevelField:
    """Definition of one inheritable Level field.

    Attributes:
        attr: Attribute name on Level (also the store record key)
        json_name: Name on the JSON wire
        kind: Value type, used for validation
    """

    attr: str
    json_name: str
    kind: FieldKind


LEVEL_FIELDS: Tuple[LevelField, ...] = (
    LevelField("name", "name", FieldKind.STRING),
    LevelField("rows", "rows", FieldKind.INTEGER),
    LevelField("columns", "columns", FieldKind.INTEGER),
    LevelField("health", "health_bar", FieldKind.INTEGER),
    LevelField("duration", "duration", FieldKind.INTEGER),
    LevelField("combo_timer", "combo_timer", FieldKind.FLOAT),
    LevelField("unit_delay_multiplier", "unit_delay_multiplier", FieldKind.FLOAT),
    LevelField("max_active_units", "max_active_units", FieldKind.INTEGER),
    LevelField("spawns_per_second", "spawns_per_second", FieldKind.FLOAT),
    LevelField("spawn_frequency", "spawn_frequency", FieldKind.FLOAT_MAP),
)

KEY_JSON_NAME = "key"
PARENT_JSON_NAME = "parent_key"

INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1
FLOAT32_MAX = 3.4028234663852886e38


def _number(kind: FieldKind, value: Any, name: str) -> Any:
    """Range-check a numeric value against its 32-bit wire type."""
    if kind == FieldKind.INTEGER:
        if INT32_MIN <= value <= INT32_MAX:
            return value
        raise MalformedPayloadError(f"Field '{name}' is out of int32 range")

    try:
        result = float(value)
    except OverflowError as e:
        raise MalformedPayloadError(f"Field '{name}' is out of float32 range") from e
    if not math.isfinite(result) or abs(result) > FLOAT32_MAX:
        raise MalformedPayloadError(f"Field '{name}' is out of float32 range")
    return result


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _coerce(kind: FieldKind, value: Any, name: str) -> Any:
    """Validate a raw value against a field kind.

    Raises:
        MalformedPayloadError: If the value has the wrong type or does not
            fit the field's 32-bit wire type
    """
    if kind == FieldKind.STRING:
        if isinstance(value, str):
            return value
    elif kind == FieldKind.INTEGER:
        if isinstance(value, int) and not isinstance(value, bool):
            return _number(kind, value, name)
    elif kind == FieldKind.FLOAT:
        if _is_number(value):
            return _number(kind, value, name)
    elif kind == FieldKind.FLOAT_MAP:
        if isinstance(value, dict) and all(
            isinstance(k, str) and _is_number(v) for k, v in value.items()
        ):
            return {k: _number(FieldKind.FLOAT, v, f"{name}.{k}") for k, v in value.items()}

    raise MalformedPayloadError(
        f"Field '{name}' expects {kind.value}, got {type(value).__name__}"
    )


def _copy_value(value: Any) -> Any:
    return dict(value) if isinstance(value, dict) else value


@dataclass(frozen=True)
class Level:
    """A Level, either as stored (raw) or resolved (merged view).

    Example:
        >>> parent = Level("a", rows=Setting.of(1), columns=Setting.of(2))
        >>> child = Level("b", parent=Setting.of("a"), name=Setting.of("child"))
        >>> merged = child.merged_with(parent)
        >>> merged.to_json()
        {'key': 'b', 'parent_key': 'a', 'name': 'child', 'rows': 1, 'columns': 2}
    """

    key: str
    parent: Setting[str] = UNSET
    name: Setting[str] = UNSET
    rows: Setting[int] = UNSET
    columns: Setting[int] = UNSET
    health: Setting[int] = UNSET
    duration: Setting[int] = UNSET
    combo_timer: Setting[float] = UNSET
    unit_delay_multiplier: Setting[float] = UNSET
    max_active_units: Setting[int] = UNSET
    spawns_per_second: Setting[float] = UNSET
    spawn_frequency: Setting[Dict[str, float]] = UNSET

    # --- Inheritance

    @property
    def has_parent(self) -> bool:
        """Whether this level declares a (non-empty) parent."""
        return self.parent.is_set and bool(self.parent.value)

    @property
    def parent_id(self) -> Optional[str]:
        return self.parent.value if self.has_parent else None

    def unset_fields(self) -> Tuple[str, ...]:
        """Attribute names of inheritable fields this level leaves unset."""
        return tuple(f.attr for f in LEVEL_FIELDS if not getattr(self, f.attr).is_set)

    def merged_with(self, parent: Level) -> Level:
        """Fill every unset field from the parent's (merged) view."""
        changes = {}
        for f in LEVEL_FIELDS:
            own = getattr(self, f.attr)
            merged = own.or_else(getattr(parent, f.attr))
            if merged is not own and merged.is_set:
                changes[f.attr] = Setting.of(_copy_value(merged.value))
        return replace(self, **changes)

    # --- JSON wire form

    @classmethod
    def from_json(cls, payload: Any, key: str) -> Level:
        """Parse a wire payload.

        Args:
            payload: Decoded JSON object
            key: Level id; always taken from the caller, never the payload

        Raises:
            MalformedPayloadError: If the payload is not an object or a field
                has the wrong type
        """
        if not isinstance(payload, dict):
            raise MalformedPayloadError("Level payload must be a JSON object")

        values: Dict[str, Setting[Any]] = {}

        parent = payload.get(PARENT_JSON_NAME)
        if parent is not None:
            parent = _coerce(FieldKind.STRING, parent, PARENT_JSON_NAME)
            if parent:
                values["parent"] = Setting.of(parent)

        for f in LEVEL_FIELDS:
            raw = payload.get(f.json_name)
            if raw is not None:
                values[f.attr] = Setting.of(_coerce(f.kind, raw, f.json_name))

        return cls(key=key, **values)

    def to_json(self) -> Dict[str, Any]:
        """Wire form with unset fields omitted."""
        result: Dict[str, Any] = {KEY_JSON_NAME: self.key}
        if self.has_parent:
            result[PARENT_JSON_NAME] = self.parent.value
        for f in LEVEL_FIELDS:
            setting = getattr(self, f.attr)
            if setting.is_set:
                result[f.json_name] = _copy_value(setting.value)
        return result

    # --- Store record form

    @classmethod
    def from_record(
        cls,
        key: str,
        record: Dict[str, Any],
        parent_id: Optional[str] = None,
    ) -> Level:
        """Build a raw Level from a stored record.

        Raises:
            MalformedPayloadError: If a stored value has the wrong type
        """
        values: Dict[str, Setting[Any]] = {}
        if parent_id:
            values["parent"] = Setting.of(parent_id)
        for f in LEVEL_FIELDS:
            if f.attr in record:
                values[f.attr] = Setting.of(_coerce(f.kind, record[f.attr], f.attr))
        return cls(key=key, **values)

    def to_record(self) -> Dict[str, Any]:
        """Set inheritable fields keyed by attribute name."""
        return {
            f.attr: _copy_value(getattr(self, f.attr).value)
            for f in LEVEL_FIELDS
            if getattr(self, f.attr).is_set
        }

    # --- Cache form

    @property
    def cache_key(self) -> str:
        return CacheKeys.level(self.key)

    def to_bytes(self) -> bytes:
        return json.dumps(
            {"key": self.key, "parent": self.parent_id, "fields": self.to_record()},
            sort_keys=True,
        ).encode("utf-8")

    @classmethod
    def from_bytes(cls, data: bytes) -> Level:
        """Decode a cached merged view.

        Raises:
            MalformedPayloadError: If data is not a valid cached Level
        """
        try:
            decoded = json.loads(data.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise MalformedPayloadError(f"Cached level is not valid JSON: {e}") from e

        if (
            not isinstance(decoded, dict)
            or not isinstance(decoded.get("key"), str)
            or not isinstance(decoded.get("fields"), dict)
        ):
            raise MalformedPayloadError("Cached level is missing key or fields")

        parent = decoded.get("parent")
        if parent is not None and not isinstance(parent, str):
            raise MalformedPayloadError("Cached level parent must be a string")

        return cls.from_record(decoded["key"], decoded["fields"], parent)
