"""Persistent storage backend built on :mod:`diskcache`.

All namespaces share one :class:`diskcache.Cache` directory. Keys are stored
as ``(namespace, key)`` tuples and tagged with the namespace, so clearing a
namespace is a single :meth:`diskcache.Cache.evict` call backed by the tag
index. Expiry is handled by :class:`~apicache.cache.CacheEngine`, not by
diskcache: records are written without a diskcache ``expire`` so that
stale entries stay visible to ``clean()``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

import diskcache

from apicache.exceptions import CacheError
from apicache.storage.base import StorageAdapter


class DiskStorage(StorageAdapter):
    """Disk-backed :class:`~apicache.storage.base.StorageAdapter`.

    Args:
        directory: Directory holding the diskcache database. Created when
            missing.

    Example::

        with DiskStorage("/tmp/apicache") as storage:
            storage.set_item("users", "GET_list_", record)
    """

    def __init__(self, directory: str | Path) -> None:
        self._directory = Path(directory)
        self._cache: Optional[diskcache.Cache] = diskcache.Cache(str(self._directory))
        self._cache.create_tag_index()

    @property
    def directory(self) -> Path:
        """Directory of the underlying diskcache database."""
        return self._directory

    def item_exists(self, namespace: str, key: str) -> bool:
        return (namespace, key) in self._store

    def get_item(self, namespace: str, key: str) -> dict[str, Any]:
        return self._store[(namespace, key)]

    def set_item(self, namespace: str, key: str, record: dict[str, Any]) -> None:
        self._store.set((namespace, key), record, tag=namespace)

    def remove_item(self, namespace: str, key: str) -> bool:
        return bool(self._store.delete((namespace, key)))

    def clear_namespace(self, namespace: str) -> None:
        self._store.evict(namespace)

    def get_items(self, namespace: str) -> dict[str, dict[str, Any]]:
        items: dict[str, dict[str, Any]] = {}
        for stored_key in self._namespace_keys(namespace):
            record = self._store.get(stored_key)
            # Deleted between the key scan and the read.
            if record is not None:
                items[stored_key[1]] = record
        return items

    def count_items(self, namespace: str) -> int:
        return sum(1 for _ in self._namespace_keys(namespace))

    def close(self) -> None:
        """Close the underlying :class:`diskcache.Cache`. Safe to call twice."""
        if self._cache is not None:
            self._cache.close()
            self._cache = None

    @property
    def _store(self) -> diskcache.Cache:
        if self._cache is None:
            raise CacheError(f"DiskStorage at {self._directory} is closed.")
        return self._cache

    def _namespace_keys(self, namespace: str) -> list[tuple[str, str]]:
        return [
            key
            for key in self._store.iterkeys()
            if isinstance(key, tuple) and len(key) == 2 and key[0] == namespace
        ]
