"""Namespaced TTL cache over a :class:`~apicache.storage.StorageAdapter`.

Each stored value is wrapped in a :class:`~apicache.models.CacheEntry`
holding an absolute expiration time. All expiry checks compare against the
engine clock at call time, so :meth:`CacheEngine.is_expired` and
:meth:`CacheEngine.get` can change their answer between two calls without
any write.

Reading never deletes: stale entries stay in storage until
:meth:`CacheEngine.clean`, :meth:`CacheEngine.remove` or
:meth:`CacheEngine.remove_all` removes them, or a new ``put`` replaces them.

See Also:
    :mod:`apicache.orchestrator` -- the request models that consult this
    engine before calling the transport.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from apicache.exceptions import (
    CleanFailureError,
    ConfigurationError,
    ExpiredError,
    NotCachedError,
)
from apicache.models import CacheEntry
from apicache.storage.base import StorageAdapter

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Default engine clock: the current aware UTC time."""
    return datetime.now(timezone.utc)


class CacheEngine:
    """TTL cache scoped to one namespace of a storage backend.

    Args:
        storage: Backend holding the records. Shared backends are fine:
            the engine only touches keys under its own namespace.
        namespace: Non-empty partition name, fixed for the engine's life.
        clock: Callable returning the current aware ``datetime``. Defaults
            to :func:`utc_now`.

    Raises:
        ConfigurationError: If *storage* is not a
            :class:`~apicache.storage.StorageAdapter` or *namespace* is
            empty.

    Example::

        from apicache.cache import CacheEngine
        from apicache.storage import MemoryStorage

        cache = CacheEngine(MemoryStorage(), "users")
        cache.put("GET_list_page=1", {"data": [], "status": 200}, 60)
        if not cache.is_expired("GET_list_page=1"):
            payload = cache.get("GET_list_page=1")
    """

    def __init__(
        self,
        storage: StorageAdapter,
        namespace: str,
        clock: Optional[Clock] = None,
    ) -> None:
        if not isinstance(storage, StorageAdapter):
            raise ConfigurationError(
                f"The storage must be a StorageAdapter instance, got {type(storage).__name__}."
            )
        if not isinstance(namespace, str) or not namespace:
            raise ConfigurationError("The cache needs a non-empty storage namespace.")
        self._storage = storage
        self._namespace = namespace
        self._clock: Clock = clock or utc_now

    @property
    def storage(self) -> StorageAdapter:
        """The backing storage adapter."""
        return self._storage

    @property
    def namespace(self) -> str:
        """The namespace holding this engine's keys."""
        return self._namespace

    def now(self) -> datetime:
        """Return the current time according to the engine clock."""
        return self._clock()

    def put(self, key: str, value: Any, ttl_seconds: float) -> None:
        """Store *value* under *key* for *ttl_seconds*.

        Replaces any existing entry. A TTL of zero or less stores an entry
        that is already expired.
        """
        entry = CacheEntry.create(value, ttl_seconds, self.now())
        self._storage.set_item(self._namespace, key, entry.to_record())
        logger.debug("Cached %s/%s until %s", self._namespace, key, entry.expires_at.isoformat())

    def is_cached(self, key: str) -> bool:
        """Return ``True`` if an entry exists for *key*, expired or not."""
        return self._storage.item_exists(self._namespace, key)

    def is_expired(self, key: str) -> bool:
        """Return ``True`` if *key* is not cached or its entry is stale."""
        if not self.is_cached(key):
            return True
        return self._load(key).is_expired(self.now())

    def get_entry(self, key: str) -> CacheEntry:
        """Return the raw entry for *key* without checking its expiry.

        Raises:
            NotCachedError: If *key* is not cached.
        """
        if not self.is_cached(key):
            raise NotCachedError(key)
        return self._load(key)

    def get(self, key: str) -> Any:
        """Return the value cached under *key*.

        Raises:
            NotCachedError: If *key* is not cached.
            ExpiredError: If the entry exists but is stale. The stale entry
                is left in place.
        """
        entry = self.get_entry(key)
        if entry.is_expired(self.now()):
            raise ExpiredError(key)
        return entry.value

    def remove(self, key: str) -> bool:
        """Delete the entry for *key*. Return ``True`` if it was deleted."""
        removed = self._storage.remove_item(self._namespace, key)
        logger.debug("Removed %s/%s: %s", self._namespace, key, removed)
        return removed

    def remove_all(self) -> None:
        """Delete every entry in the namespace."""
        self._storage.clear_namespace(self._namespace)
        logger.debug("Cleared namespace %s", self._namespace)

    def clean(self) -> int:
        """Delete every expired entry and return how many were deleted.

        The namespace is scanned from a snapshot taken at the start of the
        call; writes racing with the scan are not isolated.

        Raises:
            CleanFailureError: On the first entry the backend fails to
                delete. Entries removed before it stay removed.
        """
        now = self.now()
        deleted = 0
        for key, record in self._storage.get_items(self._namespace).items():
            if not CacheEntry.from_record(record).is_expired(now):
                continue
            if not self.remove(key):
                raise CleanFailureError(key)
            deleted += 1
        if deleted:
            logger.info("Cleaned %d expired entries from namespace %s", deleted, self._namespace)
        return deleted

    def count_values_cached(self) -> int:
        """Return the number of entries in the namespace, expired or not."""
        return self._storage.count_items(self._namespace)

    def stats(self) -> dict[str, Any]:
        """Return namespace statistics.

        Returns:
            A ``dict`` with ``namespace``, ``size`` (all entries), and
            ``expired`` (entries a :meth:`clean` would delete now).
        """
        now = self.now()
        records = self._storage.get_items(self._namespace)
        expired = sum(1 for record in records.values() if CacheEntry.from_record(record).is_expired(now))
        return {
            "namespace": self._namespace,
            "size": len(records),
            "expired": expired,
        }

    def _load(self, key: str) -> CacheEntry:
        return CacheEntry.from_record(self._storage.get_item(self._namespace, key))
