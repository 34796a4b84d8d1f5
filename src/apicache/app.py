"""The ``apicache`` command line.

The root callback turns the global flags into a resolved
:class:`~apicache.models.GlobalConfig` (stored in ``ctx.obj["config"]``)
and installs the :class:`~apicache.output.OutputManager` that every
sub-command writes through. :func:`main` is the console-script entry point;
an :class:`~apicache.exceptions.ApicacheError` escaping a command exits
with that error's ``exit_code``.
"""

from __future__ import annotations

import logging
import signal
import sys
from typing import Optional

import typer

from apicache import __version__
from apicache.commands.cache import clean_command, clear_command, fetch_command, stats_command
from apicache.commands.config import config_app
from apicache.exceptions import ApicacheError
from apicache.exit_codes import EXIT_GENERIC_FAILURE
from apicache.output import OutputFormat, OutputManager, error, set_output, warning

EXIT_INTERRUPTED = 130

app = typer.Typer(
    name="apicache",
    help="Inspect and use a TTL cache of API responses.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)
app.command("stats")(stats_command)
app.command("clean")(clean_command)
app.command("clear")(clear_command)
app.command("fetch")(fetch_command)
app.add_typer(config_app, name="config", help="Show or edit the configuration.")


def _print_version(value: bool) -> None:
    if value:
        typer.echo(f"apicache {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False, "--version", callback=_print_version, is_eager=True, help="Print the version."
    ),
    namespace: Optional[str] = typer.Option(None, "--namespace", "-N", help="Cache namespace."),
    base_url: Optional[str] = typer.Option(None, "--base-url", help="Root URL of the API."),
    memory: bool = typer.Option(False, "--memory", help="Keep the cache in memory only."),
    json_output: bool = typer.Option(False, "--json", help="Write JSON to stdout."),
    plain_output: bool = typer.Option(False, "--plain", help="Write plain text to stdout."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable colours."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only print data and errors."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Print debug traces."),
) -> None:
    """Resolve configuration and install the output manager."""
    from apicache.config import resolve_config

    requested = OutputFormat.JSON if json_output else OutputFormat.PLAIN if plain_output else None
    try:
        config = resolve_config(
            cli_namespace=namespace,
            cli_base_url=base_url,
            cli_format=requested.value if requested else None,
            cli_memory=memory,
        )
    except ApicacheError as exc:
        set_output(OutputManager(no_color=no_color))
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    try:
        fmt = OutputFormat(config.output.format)
    except ValueError:
        fmt = OutputFormat.AUTO
    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))
    if json_output and plain_output:
        warning("--json and --plain both given, using JSON.")
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    ctx.ensure_object(dict)
    ctx.obj["config"] = config


def _interrupted(*_: object) -> None:
    sys.stderr.write("\nInterrupted.\n")
    sys.exit(EXIT_INTERRUPTED)


def main() -> None:
    """Run the CLI and translate uncaught errors into exit codes."""
    signal.signal(signal.SIGINT, _interrupted)
    try:
        app()
    except ApicacheError as exc:
        error(str(exc))
        sys.exit(exc.exit_code)
    except KeyboardInterrupt:
        _interrupted()
    except Exception as exc:
        logging.getLogger(__name__).debug("Unhandled error", exc_info=True)
        error(f"Unexpected error: {exc}")
        sys.exit(EXIT_GENERIC_FAILURE)
