"""Shared test fixtures for apicache.

Provides a controllable clock, in-memory engines, a scripted transport, and
an isolated configuration environment. Fixtures are discovered by pytest
and available to every test module.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Optional

import pytest

from apicache.cache import CacheEngine
from apicache.client import Transport
from apicache.exceptions import TransportError
from apicache.models import HTTPMethod, TransportResponse
from apicache.output import OutputManager, reset_output, set_output
from apicache.storage import MemoryStorage


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The manager keeps references to sys.stdout/sys.stderr; CliRunner swaps
    those streams, so a stale manager would write to closed files.
    """
    yield
    reset_output()


@pytest.fixture
def quiet_output() -> OutputManager:
    output = OutputManager(no_color=True, quiet=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# Clock and engines
# ---------------------------------------------------------------------------


class FakeClock:
    """Frozen clock advanced explicitly by tests."""

    def __init__(self, start: Optional[datetime] = None) -> None:
        self.now = start or datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def engine(storage: MemoryStorage, clock: FakeClock) -> CacheEngine:
    """An engine over a fresh MemoryStorage driven by the fake clock."""
    return CacheEngine(storage, "test", clock=clock)


# ---------------------------------------------------------------------------
# Transport
# ---------------------------------------------------------------------------


class ScriptedTransport(Transport):
    """Transport returning queued results and recording every call.

    Queue :class:`TransportResponse` objects for successes and
    :class:`TransportError` objects for failures. When the queue is empty
    the transport answers ``{"call": n}`` with status 200.
    """

    def __init__(self, *results: TransportResponse | TransportError) -> None:
        self.results = list(results)
        self.calls: list[tuple[HTTPMethod, str, Any]] = []

    async def call(
        self,
        method: HTTPMethod,
        url: str,
        body: Optional[Any] = None,
    ) -> TransportResponse:
        self.calls.append((method, url, body))
        if self.results:
            result = self.results.pop(0)
            if isinstance(result, TransportError):
                raise result
            return result
        return TransportResponse(data={"call": len(self.calls)}, status=200)


@pytest.fixture
def transport() -> ScriptedTransport:
    return ScriptedTransport()


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point XDG directories at tmp_path, clear APICACHE_* env vars, and chdir.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setattr("apicache.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    for var in ["APICACHE_NAMESPACE", "APICACHE_BASE_URL"]:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner capturing stdout and stderr."""
    from typer.testing import CliRunner

    return CliRunner()
