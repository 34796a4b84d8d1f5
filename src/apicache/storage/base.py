"""Abstract storage interface consumed by :class:`~apicache.cache.CacheEngine`.

Every operation is scoped by a *namespace* so that several engines can
share one backend without seeing each other's keys. Backends store plain
records (``dict`` objects) and must provide atomic single-key reads and
writes; no cross-key transaction is expected.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class StorageAdapter(ABC):
    """Base class for namespaced key/value stores.

    Subclasses implement the seven primitive operations below. Records are
    opaque to the backend.
    """

    @abstractmethod
    def item_exists(self, namespace: str, key: str) -> bool:
        """Return ``True`` if *key* is stored under *namespace*."""

    @abstractmethod
    def get_item(self, namespace: str, key: str) -> dict[str, Any]:
        """Return the record stored under (*namespace*, *key*).

        Raises:
            KeyError: If the key is not stored.
        """

    @abstractmethod
    def set_item(self, namespace: str, key: str, record: dict[str, Any]) -> None:
        """Store *record*, replacing any existing record for the key."""

    @abstractmethod
    def remove_item(self, namespace: str, key: str) -> bool:
        """Delete one record. Return ``True`` if something was deleted."""

    @abstractmethod
    def clear_namespace(self, namespace: str) -> None:
        """Delete every record under *namespace*. A no-op when it is empty."""

    @abstractmethod
    def get_items(self, namespace: str) -> dict[str, dict[str, Any]]:
        """Return a snapshot of every ``key -> record`` pair under *namespace*."""

    @abstractmethod
    def count_items(self, namespace: str) -> int:
        """Return the number of records stored under *namespace*."""

    def close(self) -> None:
        """Release backend resources. The default implementation does nothing."""

    def __enter__(self) -> StorageAdapter:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
