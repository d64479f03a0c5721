"""A data store that adds an expiring cache on top of a persistent data store."""

from __future__ import annotations

import logging
import time
from datetime import timedelta
from typing import Any, Callable

from flagstore.persistent_store import PersistentDataStore, PersistentStoreError
from flagstore.persistent_store_cache import CachePair
from flagstore.store import (
    DataStore,
    InvalidTargetError,
    ParseError,
    PersistentStoreUpdateError,
)
from flagstore.store_types import (
    AllData,
    DataKind,
    Flag,
    PatchTarget,
    Segment,
    SerializationError,
    StorageItem,
    Tombstone,
    from_serialized_item,
    serialize_all_data,
    to_serialized_item,
)

_log = logging.getLogger(__name__)


def _live(item: Any, cls: type) -> Any:
    return item if isinstance(item, cls) else None


def _check_item(item: Any, cls: type, name: str) -> None:
    if not isinstance(item, (cls, Tombstone)):
        raise InvalidTargetError(name, type(item).__name__)


class PersistentDataStoreWrapper(DataStore):
    """Serves flags and segments from a persistent store through a cache.

    A cache TTL of None never expires; a TTL of zero disables caching.
    """

    def __init__(
        self,
        store: PersistentDataStore,
        cache_ttl: timedelta | float | None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._store = store
        self._flags: CachePair[StorageItem] = CachePair("flags", cache_ttl, clock=clock)
        self._segments: CachePair[StorageItem] = CachePair("segments", cache_ttl, clock=clock)

    def flag(self, key: str) -> Flag | None:
        return _live(self._get(DataKind.FLAG, key), Flag)

    def segment(self, key: str) -> Segment | None:
        return _live(self._get(DataKind.SEGMENT, key), Segment)

    def init(self, new_data: AllData) -> None:
        self._flags.invalidate_everything()
        self._segments.invalidate_everything()

        try:
            serialized = serialize_all_data(new_data)
        except SerializationError as exc:
            _log.warning("failed to serialize payload; cannot initialize store %s", exc)
            return

        try:
            self._store.init(serialized)
        except PersistentStoreError as exc:
            if self._flags.cache_is_infinite():
                _log.warning("failed to init store. Updating non-expiring cache: %s", exc)
                self._cache_items(new_data)
            return
        _log.debug("data store has been updated with new flag data")
        self._cache_items(new_data)

    def all_flags(self) -> dict[str, Flag]:
        cached = self._flags.get_all()
        if cached is not None:
            return {key: item for key, item in cached.items() if isinstance(item, Flag)}

        try:
            serialized_flags = self._store.all_flags()
        except PersistentStoreError as exc:
            _log.warning("persistent store failed to retrieve all flags: %s", exc)
            return {}

        try:
            items = {
                key: from_serialized_item(DataKind.FLAG, serialized)
                for key, serialized in serialized_flags.items()
            }
        except SerializationError as exc:
            _log.warning("failed to convert serialized items into flags: %s", exc)
            return {}

        self._cache_collection(self._flags, items)
        return {key: item for key, item in items.items() if isinstance(item, Flag)}

    def upsert(self, key: str, data: PatchTarget) -> None:
        if data.kind is DataKind.FLAG:
            self.upsert_flag(key, data.item)
        elif data.kind is DataKind.SEGMENT:
            self.upsert_segment(key, data.item)
        else:
            raise InvalidTargetError("flag or segment", repr(data.raw))

    def upsert_flag(self, key: str, item: Flag | Tombstone) -> None:
        """Write a flag or a flag tombstone through to the store and the cache."""
        _check_item(item, Flag, "flag")
        self._upsert(DataKind.FLAG, self._flags, key, item)

    def upsert_segment(self, key: str, item: Segment | Tombstone) -> None:
        """Write a segment or a segment tombstone through to the store and the cache."""
        _check_item(item, Segment, "segment")
        self._upsert(DataKind.SEGMENT, self._segments, key, item)

    def _cache_for(self, kind: DataKind) -> CachePair[StorageItem]:
        return self._flags if kind is DataKind.FLAG else self._segments

    def _get(self, kind: DataKind, key: str) -> StorageItem | None:
        cache = self._cache_for(kind)
        cached = cache.get_one(key)
        if cached is not None:
            return cached

        fetch = self._store.flag if kind is DataKind.FLAG else self._store.segment
        try:
            serialized = fetch(key)
        except PersistentStoreError as exc:
            _log.warning("persistent store failed to retrieve %s: %s", kind.value, exc)
            return None
        if serialized is None:
            return None

        try:
            item = from_serialized_item(kind, serialized)
        except SerializationError as exc:
            _log.warning("failed to convert serialized item into %s: %s", kind.value, exc)
            return None

        cache.insert_single(item, key)
        return item

    def _upsert(
        self,
        kind: DataKind,
        cache: CachePair[StorageItem],
        key: str,
        item: StorageItem,
    ) -> None:
        try:
            serialized = to_serialized_item(item)
        except SerializationError as exc:
            raise ParseError(exc) from exc
        try:
            was_updated = self._store.upsert(kind, key, serialized)
        except PersistentStoreError as exc:
            raise PersistentStoreUpdateError(exc) from exc

        if was_updated:
            cache.insert_single(item, key)
            # An infinite cache is never repopulated, so the collection must be kept current.
            if cache.cache_is_infinite():
                collection = cache.get_all()
                if collection is not None:
                    collection[key] = item
                    cache.insert_all(collection)
            else:
                cache.invalidate_all()
        else:
            cache.invalidate_all()
            cache.invalidate_single(key)
            self._get(kind, key)

    @staticmethod
    def _cache_collection(cache: CachePair[StorageItem], items: dict[str, StorageItem]) -> None:
        cache.insert_all(items)
        for key, item in items.items():
            cache.insert_single(item, key)

    def _cache_items(self, all_data: AllData) -> None:
        self._cache_collection(self._flags, dict(all_data.flags))
        self._cache_collection(self._segments, dict(all_data.segments))
        _log.debug("flag and segment caches have been updated")