"""apicache -- TTL response caching in front of remote API calls.

This package stores API responses keyed by a request signature, serves them
until their time-to-live expires, and falls back to a live fetch on expiry
or when a refresh is forced.

Typical usage::

    from apicache import ApiModel, ModelContext, RequestDescriptor, session_cache
    from apicache.client import HttpxTransport

    class Users(ApiModel):
        type_api = "users"

    context = ModelContext(
        base_url="https://api.example.com",
        cache=session_cache("users"),
        transport=HttpxTransport(),
    )
    descriptor = RequestDescriptor.build("GET", "list", {"page": 1}, ttl_seconds=60)
    await Users(context).execute(descriptor, on_success=print)

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic models shared across the package.
    config: XDG-aware configuration loading and precedence resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes for the CLI.
    output: stdout/stderr formatting system with Rich support.
    orchestrator: Cache-aware request models and the model registry.
"""

__version__ = "0.1.0"

from apicache.cache import CacheEngine, persistent_cache, session_cache
from apicache.models import CacheEntry, HTTPMethod, RequestDescriptor, TransportResponse
from apicache.orchestrator import ApiModel, ModelContext, ModelManager

__all__ = [
    "ApiModel",
    "CacheEngine",
    "CacheEntry",
    "HTTPMethod",
    "ModelContext",
    "ModelManager",
    "RequestDescriptor",
    "TransportResponse",
    "__version__",
    "persistent_cache",
    "session_cache",
]
