"""Factories that create data stores."""

from __future__ import annotations

import abc

from flagstore.store import DataStore, InMemoryDataStore


class BuildError(Exception):
    """A factory could not produce its data store."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__("data store factory failed to build: " + message)


class DataStoreFactory(abc.ABC):
    """Something that knows how to produce a data store."""

    @abc.abstractmethod
    def build(self) -> DataStore:
        """Return a fresh data store; BuildError signals failure."""


class InMemoryDataStoreBuilder(DataStoreFactory):
    """Produces the default store, which keeps everything in memory."""

    def build(self) -> DataStore:
        return InMemoryDataStore()