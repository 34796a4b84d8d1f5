"""Ready-made engines for the two built-in storage scopes.

``session_cache`` keeps entries in memory for the life of the process;
``persistent_cache`` keeps them on disk under the apicache cache directory.
``engine_from_config`` picks one of the two from the configuration.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from apicache.cache.engine import CacheEngine, Clock
from apicache.models import CacheBackend, CacheConfig
from apicache.storage import DiskStorage, MemoryStorage

DEFAULT_NAMESPACE = "Cache"


def session_cache(namespace: str = DEFAULT_NAMESPACE, clock: Optional[Clock] = None) -> CacheEngine:
    """Return an engine over a fresh :class:`~apicache.storage.MemoryStorage`."""
    return CacheEngine(MemoryStorage(), namespace, clock=clock)


def persistent_cache(
    namespace: str = DEFAULT_NAMESPACE,
    directory: Optional[str | Path] = None,
    clock: Optional[Clock] = None,
) -> CacheEngine:
    """Return an engine over a :class:`~apicache.storage.DiskStorage`.

    Args:
        namespace: Storage namespace for the engine.
        directory: Root directory for the disk cache. Defaults to
            :func:`~apicache.config.get_cache_dir`. Entries go into a
            ``responses/`` subdirectory.
        clock: Optional engine clock.
    """
    if directory is None:
        from apicache.config import get_cache_dir

        directory = get_cache_dir()
    return CacheEngine(DiskStorage(Path(directory) / "responses"), namespace, clock=clock)


def engine_from_config(config: CacheConfig, clock: Optional[Clock] = None) -> CacheEngine:
    """Return the engine described by a :class:`~apicache.models.CacheConfig`."""
    if config.backend == CacheBackend.MEMORY:
        return session_cache(config.namespace, clock=clock)
    return persistent_cache(config.namespace, clock=clock)
