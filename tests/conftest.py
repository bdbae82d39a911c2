"""Shared test fixtures and utilities for agentic-guard tests.

Provides:
- GuardContext for isolating tests from global settings and environment
- Temporary workspace fixtures
- Event capture for security event assertions
"""

import os
import tempfile
from pathlib import Path
from typing import Generator

import pytest

from agentic_guard.audit import SecurityEvent, SecurityEventEmitter
from agentic_guard.config import (
    GuardSettings,
    reload_settings,
    set_context_settings,
    set_settings,
)


class GuardContext:
    """Context manager for isolating tests from global state.

    Handles:
    - Resetting the global settings singleton
    - Clearing AGENTIC_GUARD_* environment variables
    - Providing a temporary workspace directory

    Usage:
        with GuardContext(strict_mode=True) as ctx:
            settings = ctx.settings
            workspace = ctx.workspace_dir
    """

    def __init__(self, **settings_kwargs):
        self._settings_kwargs = settings_kwargs
        self._temp_dir: tempfile.TemporaryDirectory | None = None
        self._settings: GuardSettings | None = None
        self._original_env: dict[str, str] = {}

    def __enter__(self) -> "GuardContext":
        self._temp_dir = tempfile.TemporaryDirectory()
        workspace_dir = Path(self._temp_dir.name)

        for var in list(os.environ):
            if var.startswith("AGENTIC_GUARD_"):
                self._original_env[var] = os.environ.pop(var)

        self._settings = GuardSettings(
            workspace_root=workspace_dir,
            **self._settings_kwargs,
        )
        set_settings(self._settings)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        set_context_settings(None)
        os.environ.update(self._original_env)
        reload_settings()
        if self._temp_dir:
            self._temp_dir.cleanup()

    @property
    def settings(self) -> GuardSettings:
        if self._settings is None:
            raise RuntimeError("GuardContext not entered")
        return self._settings

    @property
    def workspace_dir(self) -> Path:
        if self._temp_dir is None:
            raise RuntimeError("GuardContext not entered")
        return Path(self._temp_dir.name)


@pytest.fixture
def guard_context() -> Generator[GuardContext, None, None]:
    """Fixture providing an isolated settings context."""
    with GuardContext() as ctx:
        yield ctx


@pytest.fixture
def temp_workspace(tmp_path: Path) -> Path:
    """Fixture providing a temporary workspace directory."""
    workspace = tmp_path / "workspace"
    workspace.mkdir(parents=True)
    return workspace


@pytest.fixture
def workspace_root(temp_workspace: Path) -> str:
    """Canonical form of the temporary workspace (tmp dirs may be symlinked)."""
    return os.path.realpath(temp_workspace)


@pytest.fixture
def events() -> list[SecurityEvent]:
    """List that collects every event sent to the ``emitter`` fixture."""
    return []


@pytest.fixture
def emitter(events: list[SecurityEvent]) -> SecurityEventEmitter:
    """Emitter with a fixed session id that records events."""
    return SecurityEventEmitter(session_id="test-session", sinks=[events.append])


@pytest.fixture
def isolated_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run in an empty directory with no AGENTIC_GUARD_* variables set.

    Keeps project JSON and .env files from the real working directory out
    of settings tests.
    """
    cwd = tmp_path / "cwd"
    cwd.mkdir()
    monkeypatch.chdir(cwd)
    for var in list(os.environ):
        if var.startswith("AGENTIC_GUARD_"):
            monkeypatch.delenv(var)
    return cwd
