"""Data stores that hold flags and segments received by the SDK."""

from __future__ import annotations

import copy
import logging
from abc import ABC, abstractmethod
from typing import Any

from flagstore.persistent_store import PersistentStoreError
from flagstore.store_types import (
    AllData,
    DataKind,
    Flag,
    PatchTarget,
    Segment,
    StorageItem,
)

_log = logging.getLogger(__name__)


class UpdateError(Exception):
    """Raised when a data store cannot apply an update."""


class InvalidPathError(UpdateError):
    """The path of a patch does not name a flag or a segment."""

    def __init__(self, path: str) -> None:
        super().__init__(f"invalid path: {path}")
        self.path = path


class InvalidTargetError(UpdateError):
    """The target of a patch is not of the expected kind."""

    def __init__(self, expected: str, got: str) -> None:
        super().__init__(f"expected a {expected}, got a {got}")
        self.expected = expected
        self.got = got


class ParseError(UpdateError):
    """A JSON payload could not be read as a flag or a segment."""

    def __init__(self, cause: Exception) -> None:
        super().__init__(f"couldn't parse json as a flag or segment: {cause}")
        self.cause = cause


class PersistentStoreUpdateError(UpdateError):
    """The underlying persistent store failed during an update."""

    def __init__(self, cause: PersistentStoreError) -> None:
        super().__init__(f"underlying persistent store returned an error: {cause}")
        self.cause = cause


class DataStore(ABC):
    """Holds and updates the flags and segments received by the SDK."""

    @abstractmethod
    def flag(self, key: str) -> Flag | None:
        """Return the flag with the given key, or None if absent or deleted."""

    @abstractmethod
    def segment(self, key: str) -> Segment | None:
        """Return the segment with the given key, or None if absent or deleted."""

    @abstractmethod
    def init(self, new_data: AllData) -> None:
        """Replace the store's contents with the given flags and segments."""

    @abstractmethod
    def all_flags(self) -> dict[str, Flag]:
        """Return every flag that has not been deleted, indexed by key."""

    @abstractmethod
    def upsert(self, key: str, data: PatchTarget) -> None:
        """Insert or update a flag or segment; raise UpdateError on a bad target."""


def _live(item: Any, cls: type) -> Any:
    return copy.deepcopy(item) if isinstance(item, cls) else None


def _upsert_versioned(collection: dict[str, StorageItem], key: str, item: StorageItem) -> None:
    existing = collection.get(key)
    if existing is not None and existing.version >= item.version:
        return
    collection[key] = copy.deepcopy(item)


class InMemoryDataStore(DataStore):
    """A data store that keeps everything in memory."""

    def __init__(self) -> None:
        self.data = AllData()

    def flag(self, key: str) -> Flag | None:
        return _live(self.data.flags.get(key), Flag)

    def segment(self, key: str) -> Segment | None:
        return _live(self.data.segments.get(key), Segment)

    def init(self, new_data: AllData) -> None:
        self.data = AllData(
            flags=copy.deepcopy(dict(new_data.flags)),
            segments=copy.deepcopy(dict(new_data.segments)),
        )
        _log.debug("data store has been updated with new flag data")

    def all_flags(self) -> dict[str, Flag]:
        return {
            key: copy.deepcopy(item)
            for key, item in self.data.flags.items()
            if isinstance(item, Flag)
        }

    def upsert(self, key: str, data: PatchTarget) -> None:
        if data.kind is DataKind.FLAG:
            _upsert_versioned(self.data.flags, key, data.item)
        elif data.kind is DataKind.SEGMENT:
            _upsert_versioned(self.data.segments, key, data.item)
        else:
            raise InvalidTargetError("flag or segment", repr(data.raw))