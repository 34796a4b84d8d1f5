"""Cache-aware request models and the model registry.

An :class:`ApiModel` subclass represents one remote resource type. It
declares the URL segment of that resource in ``type_api`` and receives an
immutable :class:`ModelContext` (base URL, cache engine, transport) at
construction time.

:meth:`ApiModel.execute` decides between the cache and a live call:

1. Without a TTL the request always goes to the transport and the cache is
   never touched.
2. With a TTL, a valid cached response is served unless a refresh is
   forced. Otherwise the transport is called and a successful response is
   written back under the request's cache key.

Concurrent executions for the same key are not deduplicated: each one
checks the cache on its own, and when several miss, each issues a live call
and the last response to arrive overwrites the others.

:class:`ModelManager` keeps a registry of model classes and builds
instances bound to one shared context.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Awaitable, Callable, ClassVar, Optional, Union

from pydantic import ValidationError

from apicache.cache import CacheEngine
from apicache.client import Transport
from apicache.exceptions import ConfigurationError, ModelError, NotCachedError, TransportError
from apicache.models import HTTPMethod, RequestDescriptor, TransportResponse

logger = logging.getLogger(__name__)

Callback = Callable[[Any, int], Union[None, Awaitable[None]]]


@dataclass(frozen=True)
class ModelContext:
    """Collaborators shared by every model built from one configuration.

    Attributes:
        base_url: Root URL of the remote API, without a trailing slash.
        cache: Engine holding cached responses.
        transport: Live-call collaborator.
    """

    base_url: str
    cache: CacheEngine
    transport: Transport

    def __post_init__(self) -> None:
        if not isinstance(self.cache, CacheEngine):
            raise ConfigurationError(
                f"Need a CacheEngine object to use cache, got {type(self.cache).__name__}."
            )
        if not isinstance(self.transport, Transport):
            raise ConfigurationError(
                f"Need a Transport object to request the API, got {type(self.transport).__name__}."
            )
        object.__setattr__(self, "base_url", self.base_url.rstrip("/"))


class ApiModel:
    """Base class for resource models.

    Subclasses must set ``type_api`` to the first URL segment of the
    resource.

    Example::

        class Users(ApiModel):
            type_api = "users"

            async def search(self, name, on_success, on_failure=None):
                descriptor = RequestDescriptor.build(
                    "GET", "search", {"name": name}, ttl_seconds=300
                )
                await self.execute(descriptor, on_success, on_failure)
    """

    type_api: ClassVar[Optional[str]] = None

    def __init__(self, context: ModelContext) -> None:
        if not isinstance(context, ModelContext):
            raise ConfigurationError(
                f"{type(self).__name__} needs a ModelContext, got {type(context).__name__}."
            )
        self._context = context

    @property
    def context(self) -> ModelContext:
        return self._context

    @property
    def cache(self) -> CacheEngine:
        return self._context.cache

    @property
    def transport(self) -> Transport:
        return self._context.transport

    def build_url(self, descriptor: RequestDescriptor) -> str:
        """Return the absolute URL for *descriptor*.

        GET requests carry their parameters in the query string.
        """
        url = f"{self._context.base_url}/{self.type_api}/{descriptor.action_path}"
        if descriptor.method == HTTPMethod.GET:
            query = descriptor.build_params("&", url_encode=True)
            if query:
                url = f"{url}?{query}"
        return url

    async def http(self, descriptor: RequestDescriptor) -> TransportResponse:
        """Issue one live call for *descriptor*, bypassing the cache.

        Raises:
            ConfigurationError: If *descriptor* is not a RequestDescriptor.
            TransportError: If the call fails.
        """
        self._check_descriptor(descriptor)
        body = None if descriptor.method == HTTPMethod.GET else descriptor.params
        return await self.transport.call(descriptor.method, self.build_url(descriptor), body)

    async def execute(
        self,
        descriptor: RequestDescriptor,
        on_success: Optional[Callback] = None,
        on_failure: Optional[Callback] = None,
        force_refresh: bool = False,
    ) -> None:
        """Serve *descriptor* from the cache or from a live call.

        Callbacks receive ``(data, status)``; either may be a coroutine
        function. A failed live call invokes *on_failure* and caches
        nothing.

        Args:
            descriptor: The request to serve.
            on_success: Called with the cached or live payload.
            on_failure: Called with the failure payload of a live call.
            force_refresh: Skip the cache lookup even when a valid entry
                exists. The fresh response still replaces the cached one.

        Raises:
            ConfigurationError: If *descriptor* is not a RequestDescriptor.
                Raised before the cache or the transport is touched.
        """
        self._check_descriptor(descriptor)

        if not descriptor.uses_cache:
            await self._fetch(descriptor, on_success, on_failure, cache_key=None)
            return

        cache_key = descriptor.build_cache_key()
        cached = None if force_refresh else self._lookup(cache_key)
        if cached is not None:
            logger.debug("Cache hit for %s", cache_key)
            await _invoke(on_success, cached.data, cached.status)
            return

        logger.debug("Cache %s for %s", "refresh" if force_refresh else "miss", cache_key)
        await self._fetch(descriptor, on_success, on_failure, cache_key=cache_key)

    def _lookup(self, cache_key: str) -> Optional[TransportResponse]:
        """Return the servable cached response for *cache_key*, or ``None``.

        The entry is read once and checked against a single clock reading.
        A value that is not a ``{data, status}`` record counts as a miss.
        """
        try:
            entry = self.cache.get_entry(cache_key)
        except NotCachedError:
            return None
        if entry.is_expired(self.cache.now()):
            return None
        try:
            return TransportResponse.model_validate(entry.value)
        except ValidationError:
            logger.debug("Ignoring malformed cached value for %s", cache_key)
            return None

    async def _fetch(
        self,
        descriptor: RequestDescriptor,
        on_success: Optional[Callback],
        on_failure: Optional[Callback],
        cache_key: Optional[str],
    ) -> None:
        try:
            response = await self.http(descriptor)
        except TransportError as exc:
            logger.debug("Live call failed with status %s: %s", exc.status, exc)
            await _invoke(on_failure, exc.data, exc.status)
            return

        if cache_key is not None and descriptor.ttl_seconds is not None:
            self.cache.put(cache_key, response.model_dump(), descriptor.ttl_seconds)
        await _invoke(on_success, response.data, response.status)

    def _check_descriptor(self, descriptor: Any) -> None:
        if not isinstance(descriptor, RequestDescriptor):
            raise ConfigurationError(
                "The request must be described by a RequestDescriptor, "
                f"got {type(descriptor).__name__}."
            )


async def _invoke(callback: Optional[Callback], data: Any, status: int) -> None:
    if callback is None:
        return
    result = callback(data, status)
    if inspect.isawaitable(result):
        await result


class ModelManager:
    """Registry of :class:`ApiModel` subclasses sharing one context.

    Args:
        context: Collaborators handed to every model built by :meth:`create`.

    Raises:
        ConfigurationError: If *context* is not a :class:`ModelContext`.

    Example::

        manager = ModelManager(context)
        manager.register_model(Users)
        users = manager.create("Users")
    """

    def __init__(self, context: ModelContext) -> None:
        if not isinstance(context, ModelContext):
            raise ConfigurationError(
                f"ModelManager needs a ModelContext, got {type(context).__name__}."
            )
        self._context = context
        self._models: dict[str, type[ApiModel]] = {}

    @property
    def context(self) -> ModelContext:
        return self._context

    @property
    def models(self) -> Mapping[str, type[ApiModel]]:
        """Read-only view of the registered model classes by name."""
        return MappingProxyType(self._models)

    def register_model(self, model: Any) -> type[ApiModel]:
        """Register *model* under its class name and return it.

        Usable as a class decorator.

        Raises:
            ModelError: If *model* is not an ApiModel subclass or does not
                define ``type_api``.
        """
        if not (isinstance(model, type) and issubclass(model, ApiModel)):
            name = getattr(model, "__name__", type(model).__name__)
            raise ModelError(f"register_model expects an ApiModel subclass, got {name}.")
        if not model.type_api:
            raise ModelError(f"The model {model.__name__} must define the class attribute 'type_api'.")

        self._models[model.__name__] = model
        logger.debug("Registered model %s (%s)", model.__name__, model.type_api)
        return model

    def get_model(self, name: str) -> type[ApiModel]:
        """Return the model class registered under *name*.

        Raises:
            ModelError: If no model is registered under *name*.
        """
        try:
            return self._models[name]
        except KeyError:
            raise ModelError(f"The model '{name}' is not registered.") from None

    def create(self, name: str) -> ApiModel:
        """Instantiate the model registered under *name* with the shared context."""
        return self.get_model(name)(self._context)
