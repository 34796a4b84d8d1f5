"""Canonical Pydantic models shared across all apicache modules.

This is the single source of truth for data shapes in the project. The models
fall into two groups:

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`CacheConfig`, :class:`RequestConfig`, :class:`OutputConfig`, and
    :class:`GlobalConfig`.

**Runtime models** -- produced and consumed by the cache engine and the
request models:
    :class:`HTTPMethod`, :class:`CacheEntry`, :class:`RequestDescriptor`, and
    :class:`TransportResponse`.

All models use Pydantic v2. Runtime models are frozen: a cache entry or a
request descriptor is replaced, never mutated.
"""

from __future__ import annotations

import enum
from collections.abc import Mapping
from datetime import datetime, timedelta
from typing import Any, Optional
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from apicache.exceptions import ConfigurationError


# --- Configuration models ---


class CacheBackend(str, enum.Enum):
    """Storage backends selectable from the configuration file."""

    DISK = "disk"
    MEMORY = "memory"


class CacheConfig(BaseModel):
    """Cache settings stored in :class:`GlobalConfig`."""

    namespace: str = Field(default="Cache", min_length=1, description="Storage namespace")
    backend: CacheBackend = Field(
        default=CacheBackend.DISK, description="Storage backend: disk or memory"
    )
    default_ttl_seconds: int = Field(
        default=300, ge=0, description="TTL used by the CLI when --ttl is not given"
    )


class RequestConfig(BaseModel):
    """Settings for the HTTP transport."""

    base_url: Optional[str] = Field(default=None, description="Base URL of the remote API")
    timeout: int = Field(default=30, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")


class OutputConfig(BaseModel):
    """Default output format preferences stored in :class:`GlobalConfig`."""

    format: str = Field(
        default="auto", description="Output format: auto, json, plain, rich"
    )


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/apicache/config.json``.

    Loaded and saved by :func:`~apicache.config.load_global_config` and
    :func:`~apicache.config.save_global_config`. See
    :func:`~apicache.config.resolve_config` for the precedence chain.
    """

    cache: CacheConfig = Field(default_factory=CacheConfig)
    request: RequestConfig = Field(default_factory=RequestConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)


# --- Runtime models ---


class HTTPMethod(str, enum.Enum):
    """HTTP verbs a :class:`RequestDescriptor` can use."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"


class CacheEntry(BaseModel):
    """A cached value together with its absolute expiration time.

    The storage backend never sees this class directly: the engine writes
    :meth:`to_record` and reads back with :meth:`from_record`, so any
    backend able to hold plain dicts can store entries.

    Attributes:
        value: The cached payload.
        expires_at: Aware UTC datetime after which the value is stale.
    """

    model_config = ConfigDict(frozen=True)

    value: Any = None
    expires_at: datetime

    @classmethod
    def create(cls, value: Any, ttl_seconds: float, now: datetime) -> CacheEntry:
        """Build an entry expiring ``ttl_seconds`` after *now*."""
        return cls(value=value, expires_at=now + timedelta(seconds=ttl_seconds))

    def is_expired(self, now: datetime) -> bool:
        """Return ``True`` when the entry is stale at *now*.

        An entry expiring exactly at *now* is stale, so a zero TTL never
        produces a servable value.
        """
        return self.expires_at <= now

    def to_record(self) -> dict[str, Any]:
        """Return the plain record handed to the storage backend."""
        return {"value": self.value, "expires_at": self.expires_at.isoformat()}

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> CacheEntry:
        """Rebuild an entry from a record produced by :meth:`to_record`."""
        return cls(value=record.get("value"), expires_at=record["expires_at"])


class TransportResponse(BaseModel):
    """Payload and HTTP status returned by a transport call."""

    data: Any = None
    status: int = 200


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class RequestDescriptor(BaseModel):
    """Everything needed to issue (or look up) one API request.

    Args:
        method: HTTP verb. Lower-case input is accepted.
        action_path: Action segment appended to the model's URL.
        params: Request parameters. Query string for GET, body otherwise.
            Insertion order is significant for the cache key.
        ttl_seconds: Time-to-live for the cached response. ``None``
            disables caching for this request.

    Example::

        descriptor = RequestDescriptor.build("GET", "search", {"q": "smith"}, ttl_seconds=60)
        descriptor.build_cache_key()  # 'GET_search_q=smith'
    """

    model_config = ConfigDict(frozen=True)

    method: HTTPMethod
    action_path: str = Field(min_length=1)
    params: dict[str, Any] = Field(default_factory=dict)
    ttl_seconds: Optional[int] = Field(default=None, ge=0)

    @field_validator("method", mode="before")
    @classmethod
    def _upper_method(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.upper()
        return value

    @classmethod
    def build(
        cls,
        method: str | HTTPMethod,
        action_path: str,
        params: Optional[Mapping[str, Any]] = None,
        ttl_seconds: Optional[int] = None,
    ) -> RequestDescriptor:
        """Validate the arguments and return a descriptor.

        Raises:
            ConfigurationError: If the method is unknown, the action path
                is empty, or the TTL is negative.
        """
        try:
            return cls(
                method=method,
                action_path=action_path,
                params=dict(params or {}),
                ttl_seconds=ttl_seconds,
            )
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid request descriptor: {exc}") from exc

    @property
    def uses_cache(self) -> bool:
        """Whether responses to this request are cached."""
        return self.ttl_seconds is not None

    def build_params(self, glue: str, url_encode: bool = False) -> str:
        """Join the parameters into ``name=value`` pairs separated by *glue*.

        Lists become repeated ``name[]=element`` pairs and mappings become
        ``name[subkey]=value`` pairs. ``None`` values are skipped.

        Args:
            glue: Separator placed between pairs.
            url_encode: Percent-encode names, sub-keys and values for use
                in a query string. The brackets stay literal.
        """
        def fmt(value: Any) -> str:
            text = _stringify(value)
            return quote(text, safe="") if url_encode else text

        pairs: list[str] = []
        for name, value in self.params.items():
            if value is None:
                continue
            if isinstance(value, (list, tuple)):
                pairs.extend(f"{fmt(name)}[]={fmt(item)}" for item in value)
            elif isinstance(value, Mapping):
                pairs.extend(f"{fmt(name)}[{fmt(sub)}]={fmt(item)}" for sub, item in value.items())
            else:
                pairs.append(f"{fmt(name)}={fmt(value)}")
        return glue.join(pairs)

    def build_cache_key(self) -> str:
        """Return the cache key for this request: ``METHOD_action_params``."""
        return f"{self.method.value}_{self.action_path}_{self.build_params('_')}"
