"""Cache commands -- statistics, cleanup, and fetching through the cache.

All commands operate on the engine described by the effective
configuration (namespace and backend), which the root callback stores in
``ctx.obj["config"]``.
"""

from __future__ import annotations

import asyncio
from typing import Any, Optional

import typer

from apicache.exceptions import ApicacheError, ConfigurationError
from apicache.models import GlobalConfig
from apicache.output import error, info, print_payload, print_records, success


def _open_engine(config: GlobalConfig):
    from apicache.cache import engine_from_config

    return engine_from_config(config.cache)


def stats_command(ctx: typer.Context) -> None:
    """Show the number of cached and expired entries in the namespace.

    Example::

        apicache stats
        apicache --namespace users stats --json
    """
    engine = _open_engine(ctx.obj["config"])
    try:
        stats = engine.stats()
    finally:
        engine.storage.close()
    print_records([stats], title="Cache")


def clean_command(ctx: typer.Context) -> None:
    """Delete expired entries from the namespace.

    Exits with the cache-failure code when an entry cannot be deleted.
    """
    engine = _open_engine(ctx.obj["config"])
    try:
        deleted = engine.clean()
    except ApicacheError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    finally:
        engine.storage.close()
    success(f"Removed {deleted} expired entr{'y' if deleted == 1 else 'ies'}.")


def clear_command(ctx: typer.Context) -> None:
    """Delete every entry in the namespace."""
    engine = _open_engine(ctx.obj["config"])
    try:
        engine.remove_all()
    finally:
        engine.storage.close()
    success(f"Cleared namespace '{engine.namespace}'.")


def _parse_params(pairs: Optional[list[str]]) -> dict[str, Any]:
    """Turn ``key=value`` pairs into a params dict; repeated keys become lists."""
    params: dict[str, Any] = {}
    for pair in pairs or []:
        name, sep, value = pair.partition("=")
        if not sep or not name:
            raise ConfigurationError(f"Invalid parameter '{pair}', expected key=value")
        if name in params:
            existing = params[name]
            params[name] = existing + [value] if isinstance(existing, list) else [existing, value]
        else:
            params[name] = value
    return params


def fetch_command(
    ctx: typer.Context,
    path: str = typer.Argument(help="Resource and action, e.g. 'users/search'."),
    method: str = typer.Option("GET", "--method", "-X", help="HTTP method."),
    param: Optional[list[str]] = typer.Option(
        None, "--param", "-P", help="Request parameter as key=value (repeatable)."
    ),
    ttl: Optional[int] = typer.Option(
        None, "--ttl", help="Cache TTL in seconds (default from config)."
    ),
    no_cache: bool = typer.Option(False, "--no-cache", help="Bypass the cache entirely."),
    refresh: bool = typer.Option(False, "--refresh", "-r", help="Force a live call and update the cache."),
) -> None:
    """Request PATH from the configured API, serving from the cache when valid.

    Example::

        apicache fetch users/search -P name=smith --ttl 60
        apicache fetch users/search -P name=smith --refresh
    """
    config: GlobalConfig = ctx.obj["config"]
    try:
        asyncio.run(_fetch(config, path, method, param, ttl, no_cache, refresh))
    except ApicacheError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None


async def _fetch(
    config: GlobalConfig,
    path: str,
    method: str,
    param: Optional[list[str]],
    ttl: Optional[int],
    no_cache: bool,
    refresh: bool,
) -> None:
    from apicache.client import HttpxTransport
    from apicache.exceptions import TransportError
    from apicache.models import RequestDescriptor
    from apicache.orchestrator import ApiModel, ModelContext, ModelManager

    if not config.request.base_url:
        raise ConfigurationError(
            "No base URL configured. Use --base-url, APICACHE_BASE_URL or "
            "'apicache config set request.base_url URL'."
        )
    resource, _, action = path.strip("/").partition("/")
    if not resource or not action:
        raise ConfigurationError(f"Invalid path '{path}', expected RESOURCE/ACTION")

    descriptor = RequestDescriptor.build(
        method,
        action,
        _parse_params(param),
        ttl_seconds=None if no_cache else (ttl if ttl is not None else config.cache.default_ttl_seconds),
    )

    engine = _open_engine(config)
    failure: list[TransportError] = []

    def on_success(data: Any, status: int) -> None:
        info(f"HTTP {status}")
        print_payload(data)

    def on_failure(data: Any, status: int) -> None:
        failure.append(TransportError(f"Request failed with status {status}: {data}", data, status))

    try:
        async with HttpxTransport(
            timeout=config.request.timeout,
            verify_ssl=config.request.verify_ssl,
        ) as transport:
            manager = ModelManager(ModelContext(config.request.base_url, engine, transport))
            model_cls = type(f"{resource.title().replace('-', '')}Model", (ApiModel,), {"type_api": resource})
            manager.register_model(model_cls)
            model = manager.create(model_cls.__name__)

            key = descriptor.build_cache_key()
            if descriptor.uses_cache and not refresh and not engine.is_expired(key):
                info(f"Served from cache ({engine.namespace}/{key})")
            await model.execute(descriptor, on_success, on_failure, force_refresh=refresh)
    finally:
        engine.storage.close()

    if failure:
        raise failure[0]
