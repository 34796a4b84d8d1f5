"""Numeric process exit codes returned by the ``apicache`` CLI.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~apicache.exceptions.ApicacheError` subclass.
Shell wrappers can inspect the exit code to tell a cache miss from a
transport failure without parsing stderr.
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or an invalid configuration."""

EXIT_CACHE_MISS = 3
"""A cached value was requested but is absent or expired."""

EXIT_CACHE_FAILURE = 4
"""The cache backend failed to apply a change (e.g. a failed deletion during clean)."""

EXIT_MODEL_ERROR = 5
"""A model could not be registered or was not found."""

EXIT_TRANSPORT_ERROR = 6
"""The remote API call failed (HTTP error status or network failure)."""
