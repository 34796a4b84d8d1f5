"""Exception hierarchy for apicache.

All exceptions inherit from :class:`ApicacheError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`apicache.exit_codes`.
The CLI entry point :func:`apicache.app.main` catches ``ApicacheError`` and
exits with the appropriate code.

Subclass hierarchy::

    ApicacheError           (exit 1)
    +-- CacheError          (exit 4)
    |   +-- NotCachedError  (exit 3)
    |   +-- ExpiredError    (exit 3)
    |   +-- CleanFailureError (exit 4)
    +-- ConfigurationError  (exit 2)
    +-- ModelError          (exit 5)
    +-- TransportError      (exit 6)
"""

from __future__ import annotations

from typing import Any

from apicache.exit_codes import (
    EXIT_CACHE_FAILURE,
    EXIT_CACHE_MISS,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_MODEL_ERROR,
    EXIT_TRANSPORT_ERROR,
)


class ApicacheError(Exception):
    """Base exception for all apicache errors.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class CacheError(ApicacheError):
    """Base class for errors raised by :class:`~apicache.cache.CacheEngine`."""

    exit_code = EXIT_CACHE_FAILURE


class NotCachedError(CacheError):
    """Raised by ``get`` when no entry exists for the key."""

    exit_code = EXIT_CACHE_MISS

    def __init__(self, key: str):
        super().__init__(f"Key '{key}' is not cached.")
        self.key = key


class ExpiredError(CacheError):
    """Raised by ``get`` when the entry exists but its TTL has passed."""

    exit_code = EXIT_CACHE_MISS

    def __init__(self, key: str):
        super().__init__(f"Value referenced by '{key}' key is expired.")
        self.key = key


class CleanFailureError(CacheError):
    """Raised by ``clean`` when the backend refuses to delete an expired entry.

    The scan stops at the offending key, so entries visited before it have
    already been removed.
    """

    def __init__(self, key: str):
        super().__init__(f"Failed to clean the cache: could not delete '{key}' key.")
        self.key = key


class ConfigurationError(ApicacheError):
    """Raised for invalid descriptors, namespaces, collaborators, or config files."""

    exit_code = EXIT_INVALID_USAGE


class ModelError(ApicacheError):
    """Raised when a model cannot be registered or is not registered."""

    exit_code = EXIT_MODEL_ERROR


class TransportError(ApicacheError):
    """Raised by a transport when the remote call fails.

    Carries the response payload and status so that failure callbacks
    receive the same ``(data, status)`` pair as success callbacks. A status
    of ``0`` means no HTTP response was received.
    """

    exit_code = EXIT_TRANSPORT_ERROR

    def __init__(self, message: str, data: Any = None, status: int = 0):
        super().__init__(message)
        self.data = data
        self.status = status
