"""Where apicache keeps its files, and how the effective configuration is built.

Directories follow the XDG Base Directory layout on Linux and the BSDs
(``$XDG_CONFIG_HOME/apicache``, ``$XDG_CACHE_HOME/apicache``) and fall back
to ``~/.apicache`` elsewhere. Persistent caches live under the cache
directory; the user's :class:`~apicache.models.GlobalConfig` is a JSON file
in the config directory, always rewritten atomically.

:func:`resolve_config` layers, lowest first: model defaults, the user file,
``./apicache.json`` in the working directory, ``APICACHE_*`` environment
variables, and finally CLI flags.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Optional

from apicache.exceptions import ConfigurationError
from apicache.models import CacheBackend, GlobalConfig

_APP_NAME = "apicache"
_CONFIG_FILENAME = "config.json"
_PROJECT_CONFIG_FILENAME = "apicache.json"

ENV_NAMESPACE = "APICACHE_NAMESPACE"
ENV_BASE_URL = "APICACHE_BASE_URL"

# environment variable -> dotted config path
_ENV_OVERRIDES = {
    ENV_NAMESPACE: "cache.namespace",
    ENV_BASE_URL: "request.base_url",
}

# kind -> (XDG variable, default under $HOME, sub-directory of the fallback)
_DIR_KINDS = {
    "config": ("XDG_CONFIG_HOME", ".config", ""),
    "cache": ("XDG_CACHE_HOME", ".cache", "cache"),
}


def _is_xdg_platform() -> bool:
    system = platform.system()
    return system == "Linux" or system.endswith("BSD")


def _app_dir(kind: str) -> Path:
    xdg_var, xdg_default, fallback_sub = _DIR_KINDS[kind]
    if _is_xdg_platform():
        root = os.environ.get(xdg_var) or str(Path.home() / xdg_default)
        path = Path(root) / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}"
        if fallback_sub:
            path = path / fallback_sub
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_config_dir() -> Path:
    """Return (and create) the directory holding ``config.json``."""
    return _app_dir("config")


def get_cache_dir() -> Path:
    """Return (and create) the root directory of persistent caches."""
    return _app_dir("cache")


def _atomic_write(path: Path, data: str) -> None:
    """Replace *path* with *data* so readers never observe a partial file.

    The content is written and fsynced to a temporary sibling which is then
    renamed over *path*. The temporary file is removed on any failure.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def _read_json(path: Path, label: str) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise ConfigurationError(f"Invalid {label} at {path}: {exc}") from exc


def load_global_config() -> GlobalConfig:
    """Load the user configuration, or defaults when no file exists yet.

    Raises:
        ConfigurationError: If the file is not valid JSON or does not
            validate as a :class:`~apicache.models.GlobalConfig`.
    """
    path = get_config_dir() / _CONFIG_FILENAME
    if not path.is_file():
        return GlobalConfig()
    data = _read_json(path, "global config")
    try:
        return GlobalConfig.model_validate(data)
    except ValueError as exc:
        raise ConfigurationError(f"Invalid global config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig) -> None:
    payload = json.dumps(config.model_dump(mode="json"), indent=2)
    _atomic_write(get_config_dir() / _CONFIG_FILENAME, payload + "\n")


def load_project_config() -> Optional[dict[str, Any]]:
    """Return the partial configuration in ``./apicache.json``, if present.

    Only the keys it names are overridden, e.g.
    ``{"cache": {"namespace": "my-app"}}``.

    Raises:
        ConfigurationError: If the file is not a JSON object.
    """
    path = Path.cwd() / _PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return None
    data = _read_json(path, "project config")
    if not isinstance(data, dict):
        raise ConfigurationError(f"Invalid project config at {path}: expected a JSON object")
    return data


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return *base* updated recursively with *override*; inputs are untouched."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(value, dict) and isinstance(current, dict):
            value = _deep_merge(current, value)
        merged[key] = value
    return merged


def _set_path(data: dict[str, Any], dotted: str, value: Any) -> None:
    *parents, leaf = dotted.split(".")
    for name in parents:
        data = data.setdefault(name, {})
    data[leaf] = value


def resolve_config(
    cli_namespace: Optional[str] = None,
    cli_base_url: Optional[str] = None,
    cli_format: Optional[str] = None,
    cli_memory: bool = False,
) -> GlobalConfig:
    """Build the effective configuration for one CLI invocation.

    Args:
        cli_namespace: ``--namespace`` value.
        cli_base_url: ``--base-url`` value.
        cli_format: Output format selected by ``--json`` or ``--plain``.
        cli_memory: ``--memory``; selects the in-memory backend.

    Raises:
        ConfigurationError: If any layer is invalid.
    """
    data = load_global_config().model_dump(mode="json")
    data = _deep_merge(data, load_project_config() or {})

    for env_var, dotted in _ENV_OVERRIDES.items():
        env_value = os.environ.get(env_var)
        if env_value:
            _set_path(data, dotted, env_value)

    cli_overrides = {
        "cache.namespace": cli_namespace,
        "request.base_url": cli_base_url,
        "output.format": cli_format,
        "cache.backend": CacheBackend.MEMORY.value if cli_memory else None,
    }
    for dotted, value in cli_overrides.items():
        if value is not None:
            _set_path(data, dotted, value)

    try:
        return GlobalConfig.model_validate(data)
    except ValueError as exc:
        raise ConfigurationError(f"Invalid configuration: {exc}") from exc
