"""Flags, segments, tombstones and their serialized forms."""

from __future__ import annotations

import copy
import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Union

TOMBSTONE_KEY = "$deleted"


class SerializationError(ValueError):
    """Raised when an item cannot be converted to or from its serialized form."""


class DataKind(Enum):
    """The kinds of data held by a data store."""

    FLAG = "flag"
    SEGMENT = "segment"


def _is_version(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def _is_str(value: Any) -> bool:
    return isinstance(value, str)


def _is_bool(value: Any) -> bool:
    return isinstance(value, bool)


def _is_list(value: Any) -> bool:
    return isinstance(value, list)


def _is_object(value: Any) -> bool:
    return isinstance(value, Mapping)


_Check = tuple[str, Callable[[Any], bool], str]

_FLAG_REQUIRED: tuple[_Check, ...] = (
    ("on", _is_bool, "a boolean"),
    ("fallthrough", _is_object, "an object"),
    ("variations", _is_list, "an array"),
)
_FLAG_OPTIONAL: tuple[_Check, ...] = (
    ("targets", _is_list, "an array"),
    ("rules", _is_list, "an array"),
    ("prerequisites", _is_list, "an array"),
    ("salt", _is_str, "a string"),
)
_SEGMENT_REQUIRED: tuple[_Check, ...] = ()
_SEGMENT_OPTIONAL: tuple[_Check, ...] = (
    ("included", _is_list, "an array"),
    ("excluded", _is_list, "an array"),
    ("rules", _is_list, "an array"),
    ("salt", _is_str, "a string"),
)


def _load(data: Any) -> Any:
    if isinstance(data, (str, bytes, bytearray)):
        try:
            return json.loads(data)
        except json.JSONDecodeError as exc:
            raise SerializationError(f"invalid JSON: {exc}") from exc
    return data


def _validate(
    obj: Any,
    what: str,
    required: tuple[_Check, ...],
    optional: tuple[_Check, ...],
) -> tuple[str, int, dict[str, Any]]:
    if not isinstance(obj, Mapping):
        raise SerializationError(f"a {what} must be a JSON object")
    checks = (
        ("key", _is_str, "a string"),
        ("version", _is_version, "a non-negative integer"),
        *required,
    )
    for name, check, description in checks:
        if name not in obj:
            raise SerializationError(f"{what} is missing field `{name}`")
        if not check(obj[name]):
            raise SerializationError(f"{what} field `{name}` must be {description}")
    for name, check, description in optional:
        if name in obj and not check(obj[name]):
            raise SerializationError(f"{what} field `{name}` must be {description}")
    attributes = {k: copy.deepcopy(v) for k, v in obj.items() if k not in ("key", "version")}
    return obj["key"], obj["version"], attributes


@dataclass
class Flag:
    """A feature flag: its key, its version and the rest of its definition."""

    key: str
    version: int
    attributes: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Return the flag as a JSON-compatible dictionary."""
        return {"key": self.key, "version": self.version, **copy.deepcopy(self.attributes)}


@dataclass
class Segment:
    """A user segment: its key, its version and the rest of its definition."""

    key: str
    version: int
    attributes: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Return the segment as a JSON-compatible dictionary."""
        return {"key": self.key, "version": self.version, **copy.deepcopy(self.attributes)}


@dataclass(frozen=True)
class Tombstone:
    """Marks an item deleted at the given version."""

    version: int


StorageItem = Union[Flag, Segment, Tombstone]


@dataclass
class AllData:
    """Flags and segments, each indexed by key."""

    flags: dict[str, Any] = field(default_factory=dict)
    segments: dict[str, Any] = field(default_factory=dict)


@dataclass
class SerializedItem:
    """A flag or segment, or a tombstone for one, in serialized form."""

    version: int
    deleted: bool
    serialized_item: str


@dataclass(frozen=True, eq=True)
class PatchTarget:
    """The target of a patch: a flag, a segment, or some other JSON value."""

    kind: DataKind | None
    item: StorageItem | None = None
    raw: Any = None

    def __post_init__(self) -> None:
        if self.kind is DataKind.FLAG and not isinstance(self.item, (Flag, Tombstone)):
            raise TypeError("a flag patch target needs a Flag or a Tombstone")
        if self.kind is DataKind.SEGMENT and not isinstance(self.item, (Segment, Tombstone)):
            raise TypeError("a segment patch target needs a Segment or a Tombstone")
        if self.kind is None and self.item is not None:
            raise TypeError("a patch target without a kind cannot hold an item")

    @classmethod
    def other(cls, value: Any) -> PatchTarget:
        """A target that is neither a flag nor a segment."""
        return cls(None, None, value)

    @property
    def is_other(self) -> bool:
        return self.kind is None


def _flag_from_object(obj: Any) -> Flag:
    return Flag(*_validate(obj, "flag", _FLAG_REQUIRED, _FLAG_OPTIONAL))


def _segment_from_object(obj: Any) -> Segment:
    return Segment(*_validate(obj, "segment", _SEGMENT_REQUIRED, _SEGMENT_OPTIONAL))


def parse_flag(data: Any) -> Flag:
    """Build a Flag from a mapping or a JSON document."""
    return _flag_from_object(_load(data))


def parse_segment(data: Any) -> Segment:
    """Build a Segment from a mapping or a JSON document."""
    return _segment_from_object(_load(data))


def parse_patch_target(value: Any) -> PatchTarget:
    """Classify a decoded JSON value as a flag, a segment or something else.

    A bare non-negative integer is taken as a flag tombstone.
    """
    try:
        return PatchTarget(DataKind.FLAG, _flag_from_object(value))
    except SerializationError:
        pass
    if _is_version(value):
        return PatchTarget(DataKind.FLAG, Tombstone(value))
    try:
        return PatchTarget(DataKind.SEGMENT, _segment_from_object(value))
    except SerializationError:
        pass
    return PatchTarget.other(value)


def _tombstone_json(version: int) -> str:
    return json.dumps(
        {"version": version, "key": TOMBSTONE_KEY, "deleted": True},
        separators=(",", ":"),
    )


def to_serialized_item(item: StorageItem) -> SerializedItem:
    """Serialize a flag, a segment or a tombstone."""
    if isinstance(item, Tombstone):
        return SerializedItem(item.version, True, _tombstone_json(item.version))
    if isinstance(item, (Flag, Segment)):
        try:
            text = json.dumps(item.to_dict(), separators=(",", ":"))
        except (TypeError, ValueError) as exc:
            raise SerializationError(f"cannot serialize {item.key!r}: {exc}") from exc
        return SerializedItem(item.version, False, text)
    raise SerializationError(f"cannot serialize object of type {type(item).__name__}")


def _as_tombstone(obj: Any) -> Tombstone | None:
    if (
        isinstance(obj, Mapping)
        and obj.get("key") == TOMBSTONE_KEY
        and obj.get("deleted") is True
        and _is_version(obj.get("version"))
    ):
        return Tombstone(obj["version"])
    return None


def from_serialized_item(kind: DataKind, serialized: SerializedItem) -> StorageItem:
    """Turn a serialized item back into a flag or segment of the given kind, or a tombstone."""
    if serialized.deleted:
        return Tombstone(serialized.version)
    obj = _load(serialized.serialized_item)
    tombstone = _as_tombstone(obj)
    if tombstone is not None:
        return tombstone
    if kind is DataKind.FLAG:
        return _flag_from_object(obj)
    return _segment_from_object(obj)


def serialize_all_data(all_data: AllData) -> AllData:
    """Serialize every flag and segment of a data set."""
    return AllData(
        flags={key: to_serialized_item(flag) for key, flag in all_data.flags.items()},
        segments={key: to_serialized_item(seg) for key, seg in all_data.segments.items()},
    )