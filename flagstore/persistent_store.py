"""Interface for data stores that keep serialized items in an external service."""

from __future__ import annotations

from abc import ABC, abstractmethod

from flagstore.store_types import AllData, DataKind, SerializedItem


class PersistentStoreError(Exception):
    """Raised when an underlying persistent store fails."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class PersistentDataStore(ABC):
    """A data store that holds flags and segments in serialized form.

    Implementations should not cache; a caching layer is provided on top of them.
    """

    @abstractmethod
    def init(self, all_data: AllData) -> None:
        """Replace the whole contents of the store with the given serialized items."""

    @abstractmethod
    def flag(self, key: str) -> SerializedItem | None:
        """Return the serialized flag, including tombstones, or None if absent."""

    @abstractmethod
    def segment(self, key: str) -> SerializedItem | None:
        """Return the serialized segment, including tombstones, or None if absent."""

    @abstractmethod
    def all_flags(self) -> dict[str, SerializedItem]:
        """Return every serialized flag, tombstones included."""

    @abstractmethod
    def upsert(self, kind: DataKind, key: str, serialized_item: SerializedItem) -> bool:
        """Insert or update an item if its version is newer; return whether it was stored."""

    @abstractmethod
    def is_initialized(self) -> bool:
        """Return True once the store holds a data set."""