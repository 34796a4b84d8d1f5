"""Namespaced key/value storage backends for the cache engine.

The engine only talks to the :class:`StorageAdapter` interface. Two
implementations ship with the package:

- :class:`MemoryStorage` -- entries live as long as the process (session
  scope).
- :class:`DiskStorage` -- entries persist on disk via :mod:`diskcache`.
"""

from apicache.storage.base import StorageAdapter
from apicache.storage.disk import DiskStorage
from apicache.storage.memory import MemoryStorage

__all__ = ["DiskStorage", "MemoryStorage", "StorageAdapter"]
