"""TTL response caching for apicache.

This package provides :class:`CacheEngine`, a namespaced cache that wraps
every value with an absolute expiration time, plus the
:func:`session_cache` and :func:`persistent_cache` factories for the
in-memory and disk-backed storage scopes.
"""

from apicache.cache.engine import CacheEngine, utc_now
from apicache.cache.factory import (
    DEFAULT_NAMESPACE,
    engine_from_config,
    persistent_cache,
    session_cache,
)

__all__ = [
    "DEFAULT_NAMESPACE",
    "CacheEngine",
    "engine_from_config",
    "persistent_cache",
    "session_cache",
    "utc_now",
]
