"""In-process storage backend.

Records live in a nested ``dict`` and disappear with the process, which
makes this backend the session-scoped counterpart of
:class:`~apicache.storage.disk.DiskStorage`. Records are deep-copied on the
way in and out so callers cannot mutate stored state by accident.
"""

from __future__ import annotations

import copy
from typing import Any

from apicache.storage.base import StorageAdapter


class MemoryStorage(StorageAdapter):
    """Dictionary-backed :class:`~apicache.storage.base.StorageAdapter`.

    Example::

        storage = MemoryStorage()
        storage.set_item("users", "GET_list_", {"value": 1, "expires_at": "..."})
        storage.count_items("users")  # 1
    """

    def __init__(self) -> None:
        self._data: dict[str, dict[str, dict[str, Any]]] = {}

    def item_exists(self, namespace: str, key: str) -> bool:
        return key in self._data.get(namespace, {})

    def get_item(self, namespace: str, key: str) -> dict[str, Any]:
        return copy.deepcopy(self._data.get(namespace, {})[key])

    def set_item(self, namespace: str, key: str, record: dict[str, Any]) -> None:
        self._data.setdefault(namespace, {})[key] = copy.deepcopy(record)

    def remove_item(self, namespace: str, key: str) -> bool:
        bucket = self._data.get(namespace)
        if bucket is None or key not in bucket:
            return False
        del bucket[key]
        return True

    def clear_namespace(self, namespace: str) -> None:
        self._data.pop(namespace, None)

    def get_items(self, namespace: str) -> dict[str, dict[str, Any]]:
        return copy.deepcopy(self._data.get(namespace, {}))

    def count_items(self, namespace: str) -> int:
        return len(self._data.get(namespace, {}))
