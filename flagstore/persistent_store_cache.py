"""A pair of expiring caches: one for whole collections, one for single items."""

from __future__ import annotations

import copy
import threading
import time
from datetime import timedelta
from typing import Any, Callable, Generic, TypeVar

T = TypeVar("T")

_Entry = tuple[Any, "float | None"]


def _to_seconds(ttl: timedelta | float | None) -> float | None:
    if ttl is None:
        return None
    seconds = ttl.total_seconds() if isinstance(ttl, timedelta) else float(ttl)
    if seconds < 0:
        raise ValueError("cache TTL must not be negative")
    return seconds


class CachePair(Generic[T]):
    """Caches items of one collection, singly and all together.

    A TTL of None never expires; a TTL of zero caches nothing.
    """

    def __init__(
        self,
        cache_name: str,
        cache_ttl: timedelta | float | None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.cache_name = cache_name
        self._ttl = _to_seconds(cache_ttl)
        self._clock = clock
        self._lock = threading.Lock()
        self._all: dict[str, _Entry] = {}
        self._single: dict[str, _Entry] = {}

    def cache_is_infinite(self) -> bool:
        """Return True if cached entries never expire."""
        return self._ttl is None

    def get_all(self) -> dict[str, T] | None:
        """Return the cached collection, or None if absent or expired."""
        return self._get(self._all, self._all_key())

    def get_one(self, key: str) -> T | None:
        """Return the cached item, or None if absent or expired."""
        return self._get(self._single, self._single_key(key))

    def insert_single(self, item: T, key: str) -> None:
        """Cache a single item under its key."""
        self._insert(self._single, self._single_key(key), item)

    def insert_all(self, data: dict[str, T]) -> None:
        """Cache the whole collection."""
        self._insert(self._all, self._all_key(), data)

    def invalidate_all(self) -> None:
        """Drop the cached collection."""
        with self._lock:
            self._all.clear()

    def invalidate_single(self, key: str) -> None:
        """Drop one cached item."""
        with self._lock:
            self._single.pop(self._single_key(key), None)

    def invalidate_everything(self) -> None:
        """Drop the cached collection and every cached item."""
        with self._lock:
            self._all.clear()
            self._single.clear()

    def _all_key(self) -> str:
        return f"all:{self.cache_name}"

    def _single_key(self, key: str) -> str:
        return f"{self.cache_name}:{key}"

    def _get(self, cache: dict[str, _Entry], key: str) -> Any:
        with self._lock:
            entry = cache.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if expires_at is not None and self._clock() >= expires_at:
                del cache[key]
                return None
            return copy.deepcopy(value)

    def _insert(self, cache: dict[str, _Entry], key: str, value: Any) -> None:
        if self._ttl == 0:
            return
        expires_at = None if self._ttl is None else self._clock() + self._ttl
        with self._lock:
            cache[key] = (copy.deepcopy(value), expires_at)