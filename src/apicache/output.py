"""Terminal output for the apicache CLI.

Payloads (API responses, cache statistics, configuration) go to stdout and
everything else -- status lines, warnings, errors, debug traces -- goes to
stderr, so ``apicache fetch ... --json | jq`` always sees clean JSON.

The stdout format is ``rich`` on a colour terminal and ``plain`` when
piped, unless ``--json`` or ``--plain`` is given. Colour is disabled by
``--no-color``, ``NO_COLOR`` (any value) and ``TERM=dumb``.

Library code reports through :mod:`logging`; only the CLI and the
transport's request trace use the process-wide :class:`OutputManager`
installed by :func:`set_output`.
"""

from __future__ import annotations

import json
import os
import sys
from enum import Enum
from typing import Any, Optional

from rich.console import Console
from rich.table import Table


class OutputFormat(str, Enum):
    """Supported stdout formats. ``AUTO`` picks ``RICH`` on a colour TTY."""

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


# level -> (plain prefix, rich style, suppressed by --quiet)
_LEVELS: dict[str, tuple[str, str, bool]] = {
    "info": ("", "", True),
    "success": ("", "green", True),
    "warning": ("Warning: ", "yellow", False),
    "error": ("Error: ", "bold red", False),
    "debug": ("[debug] ", "dim", False),
}


class OutputManager:
    """Writes payloads to stdout and diagnostics to stderr.

    Args:
        format: Requested stdout format.
        no_color: Disable colour and Rich markup on both streams.
        quiet: Drop ``info`` and ``success`` diagnostics.
        verbose: Emit ``debug`` diagnostics.
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
    ) -> None:
        self._no_color = no_color or _color_disabled_by_env()
        self._quiet = quiet
        self._verbose = verbose
        if format == OutputFormat.AUTO:
            format = OutputFormat.RICH if _is_tty() and not self._no_color else OutputFormat.PLAIN
        self._format = format
        self._console = Console(
            file=sys.stdout,
            no_color=self._no_color,
            force_terminal=format == OutputFormat.RICH,
        )
        self._err_console = Console(file=sys.stderr, no_color=self._no_color, stderr=True)

    @property
    def format(self) -> OutputFormat:
        return self._format

    # --- stdout ---

    def write(self, text: str) -> None:
        """Write one line of raw text to stdout."""
        sys.stdout.write(text + "\n")
        sys.stdout.flush()

    def print_payload(self, data: Any) -> None:
        """Render an API payload or a config dump.

        JSON mode always emits valid JSON; plain mode prints mappings as
        ``key<TAB>value`` lines and sequences one item per line.
        """
        if self._format == OutputFormat.JSON:
            self.write(json.dumps(data, indent=2, ensure_ascii=False, default=str))
        elif self._format == OutputFormat.RICH and isinstance(data, (dict, list)):
            self._console.print_json(data=data, default=str)
        elif isinstance(data, dict):
            for key, value in data.items():
                self.write(f"{key}\t{_plain(value)}")
        elif isinstance(data, list):
            for item in data:
                self.write(_plain(item))
        else:
            self.write("" if data is None else str(data))

    def print_records(self, records: list[dict[str, Any]], title: Optional[str] = None) -> None:
        """Render homogeneous records as a table, a JSON array or TSV lines."""
        if self._format == OutputFormat.JSON:
            self.write(json.dumps(records, indent=2, ensure_ascii=False, default=str))
            return
        columns = list(records[0]) if records else []
        if self._format == OutputFormat.PLAIN:
            self.write("\t".join(columns))
            for record in records:
                self.write("\t".join(str(record[c]) for c in columns))
            return
        table = Table(title=title, header_style="bold cyan")
        for column in columns:
            table.add_column(column)
        for record in records:
            table.add_row(*(str(record[c]) for c in columns))
        self._console.print(table)

    # --- stderr ---

    def notify(self, level: str, message: str) -> None:
        """Write a diagnostic at *level* (``info``, ``success``, ``warning``,
        ``error`` or ``debug``) to stderr, honouring quiet and verbose."""
        prefix, style, quietable = _LEVELS[level]
        if quietable and self._quiet:
            return
        if level == "debug" and not self._verbose:
            return
        if self._no_color:
            sys.stderr.write(f"{prefix}{message}\n")
            sys.stderr.flush()
        else:
            self._err_console.print(f"{prefix}{message}", style=style or None, markup=False)


def _plain(value: Any) -> str:
    if isinstance(value, dict):
        return "\t".join(str(v) for v in value.values())
    if isinstance(value, list):
        return json.dumps(value, ensure_ascii=False, default=str)
    return str(value)


def _is_tty() -> bool:
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _color_disabled_by_env() -> bool:
    return "NO_COLOR" in os.environ or os.environ.get("TERM") == "dumb"


# --- process-wide instance, installed by the root CLI callback ---

_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the installed :class:`OutputManager`, creating a default one."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    global _output
    _output = output


def reset_output() -> None:
    """Forget the installed manager so the next call builds a fresh one."""
    global _output
    _output = None


def print_payload(data: Any) -> None:
    get_output().print_payload(data)


def print_records(records: list[dict[str, Any]], title: Optional[str] = None) -> None:
    get_output().print_records(records, title)


def info(message: str) -> None:
    get_output().notify("info", message)


def success(message: str) -> None:
    get_output().notify("success", message)


def warning(message: str) -> None:
    get_output().notify("warning", message)


def error(message: str) -> None:
    get_output().notify("error", message)


def debug(message: str) -> None:
    get_output().notify("debug", message)
