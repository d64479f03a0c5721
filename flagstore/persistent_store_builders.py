"""Builder that wraps a persistent data store with a cache."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import timedelta

from flagstore.persistent_store import PersistentDataStore
from flagstore.persistent_store_wrapper import PersistentDataStoreWrapper
from flagstore.store import DataStore
from flagstore.store_builders import BuildError, DataStoreFactory

DEFAULT_CACHE_TIME = timedelta(seconds=15)


class PersistentDataStoreFactory(ABC):
    """Creates a persistent data store; implemented by database integrations."""

    @abstractmethod
    def create_persistent_data_store(self) -> PersistentDataStore:
        """Create the store, raising OSError on failure."""


class PersistentDataStoreBuilder(DataStoreFactory):
    """Configures the cache placed in front of a persistent data store."""

    def __init__(self, factory: PersistentDataStoreFactory) -> None:
        self._factory = factory
        self._cache_ttl: timedelta | None = DEFAULT_CACHE_TIME

    @property
    def cache_ttl(self) -> timedelta | None:
        """The cache lifetime; None means the cache never expires."""
        return self._cache_ttl

    def cache_time(self, cache_ttl: timedelta) -> PersistentDataStoreBuilder:
        """Evict cached items this long after caching them; zero disables caching."""
        if cache_ttl < timedelta(0):
            raise ValueError("cache TTL must not be negative")
        self._cache_ttl = cache_ttl
        return self

    def cache_seconds(self, seconds: int) -> PersistentDataStoreBuilder:
        """Set the cache lifetime in seconds."""
        if seconds < 0:
            raise ValueError("cache TTL must not be negative")
        self._cache_ttl = timedelta(seconds=seconds)
        return self

    def cache_forever(self) -> PersistentDataStoreBuilder:
        """Never expire cached items."""
        self._cache_ttl = None
        return self

    def no_caching(self) -> PersistentDataStoreBuilder:
        """Query the persistent store on every read."""
        self._cache_ttl = timedelta(0)
        return self

    def build(self) -> DataStore:
        try:
            store = self._factory.create_persistent_data_store()
        except OSError as exc:
            raise BuildError(str(exc)) from exc
        return PersistentDataStoreWrapper(store, self._cache_ttl)