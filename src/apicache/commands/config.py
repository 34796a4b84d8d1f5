"""``apicache config`` -- inspect and edit the user configuration file."""

from __future__ import annotations

import typer

from apicache.exit_codes import EXIT_INVALID_USAGE
from apicache.output import error, info, print_payload, success


config_app = typer.Typer(no_args_is_help=True)


@config_app.command("show")
def config_show(ctx: typer.Context) -> None:
    """Print the effective configuration after every override is applied.

    Example::

        apicache --namespace users config show --json
    """
    from apicache.config import get_config_dir

    info(f"Config directory: {get_config_dir()}")
    print_payload(ctx.obj["config"].model_dump(mode="json"))


@config_app.command("set")
def config_set(
    key: str = typer.Argument(help="Dotted key, e.g. 'cache.default_ttl_seconds'."),
    value: str = typer.Argument(help="New value."),
) -> None:
    """Store VALUE under KEY in the user configuration file.

    The raw string is validated against the configuration model, so
    ``600`` becomes an integer TTL and ``memory`` a backend name.

    Example::

        apicache config set cache.namespace my-app
        apicache config set request.base_url https://api.example.com
    """
    from pydantic import ValidationError

    from apicache.config import load_global_config, save_global_config
    from apicache.models import GlobalConfig

    data = load_global_config().model_dump(mode="json")

    *parents, leaf = key.split(".")
    section = data
    for name in parents:
        section = section.get(name)
        if not isinstance(section, dict):
            error(f"Invalid config key: {key}")
            raise typer.Exit(code=EXIT_INVALID_USAGE)
    if leaf not in section or isinstance(section[leaf], dict):
        error(f"Unknown config key: {key}")
        raise typer.Exit(code=EXIT_INVALID_USAGE)

    section[leaf] = value
    try:
        config = GlobalConfig.model_validate(data)
    except ValidationError as exc:
        error(f"Validation error for {key}: {exc.errors()[0]['msg']}")
        raise typer.Exit(code=EXIT_INVALID_USAGE) from None

    save_global_config(config)
    success(f"Set {key} = {value}")
