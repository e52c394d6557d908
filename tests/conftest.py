"""Shared test fixtures for claude-sandbox."""

from __future__ import annotations

import subprocess
from pathlib import Path

import pytest

# ---------------------------------------------------------------------------
# Shared helpers (plain functions, not fixtures, importable by test files)
# ---------------------------------------------------------------------------

# Cached property names that must be set via __dict__ (not model_construct).
_CACHED_PROPERTY_NAMES = frozenset({"sandbox_dir", "home_dir", "build_dir"})


def make_settings(**overrides):
    """Create a Settings object with sensible defaults for testing.

    Accepts both model fields (container, provider, etc.) and cached property
    overrides (home_dir, sandbox_dir, build_dir).

    Usage::

        s = make_settings(home_dir=tmp_path)
        s = make_settings(mounts=MountsConfig(forward_ssh_agent=False))
    """
    from claude_sandbox.config import (
        ContainerConfig,
        LoggingConfig,
        MountsConfig,
        PathsConfig,
        ProviderConfig,
        Settings,
    )

    cached = {k: overrides.pop(k) for k in list(overrides) if k in _CACHED_PROPERTY_NAMES}

    defaults = {
        "container": ContainerConfig(),
        "provider": ProviderConfig(),
        "paths": PathsConfig(),
        "mounts": MountsConfig(),
        "logging": LoggingConfig(),
    }
    defaults.update(overrides)
    s = Settings.model_construct(**defaults)

    for key, value in cached.items():
        s.__dict__[key] = value

    return s


def _ok(stdout: str = "") -> subprocess.CompletedProcess[str]:
    return subprocess.CompletedProcess([], 0, stdout=stdout, stderr="")


def _fail(stderr: str = "error") -> subprocess.CompletedProcess[str]:
    return subprocess.CompletedProcess([], 1, stdout="", stderr=stderr)


class FakeGh:
    """Stand-in for :class:`claude_sandbox.credentials.GhCli`."""

    cli = "gh"

    def __init__(
        self,
        *,
        installed: bool = True,
        authenticated: bool = True,
        token: str | None = "gho_provider_token",
    ) -> None:
        self.installed = installed
        self.authenticated = authenticated
        self._token = token
        self.calls: list[str] = []

    def available(self) -> bool:
        self.calls.append("available")
        return self.installed

    def status(self) -> bool:
        self.calls.append("status")
        return self.authenticated

    def token(self) -> str | None:
        self.calls.append("token")
        return self._token


class RecordingRuntime:
    """No-op container runtime that records every plan it receives."""

    def __init__(self, returncode: int = 0) -> None:
        self.returncode = returncode
        self.plans: list = []

    def run(self, plan) -> int:
        self.plans.append(plan)
        return self.returncode


# ---------------------------------------------------------------------------
# Autouse fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def reset_settings(monkeypatch, tmp_path):
    """Ensure each test starts with a clean Settings singleton.

    Uses ``make_settings()`` to build from pure defaults — no config.toml,
    no .env, no file I/O. Tests are fully isolated from the user's config.
    """
    monkeypatch.setenv("CLAUDE_SANDBOX_DIR", str(tmp_path / "sandbox-dir"))
    safe = make_settings(home_dir=tmp_path / "home", sandbox_dir=tmp_path / "sandbox-dir")
    monkeypatch.setattr("claude_sandbox.config._settings", safe)


# ---------------------------------------------------------------------------
# Reusable fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def home(tmp_path) -> Path:
    """Empty fake home directory."""
    path = tmp_path / "home"
    path.mkdir()
    return path


@pytest.fixture
def project(tmp_path) -> Path:
    path = tmp_path / "project"
    path.mkdir()
    return path
