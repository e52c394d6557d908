"""Centralized configuration — Pydantic BaseSettings with TOML + dotenv sources.

Settings live in ``$CLAUDE_SANDBOX_DIR/config.toml`` (default
``~/.claude-sandbox/config.toml``). Environment variables override it using the
``CLAUDE_SANDBOX_`` prefix and ``__`` as the nested delimiter (e.g.
``CLAUDE_SANDBOX_CONTAINER__IMAGE``).

Priority (highest wins): init args > env vars > .env > config.toml

GitHub tokens are deliberately *not* settings: they are re-read from the
environment or the ``gh`` CLI on every launch and never persisted.

Usage::

    from claude_sandbox.config import get_settings

    s = get_settings()
    print(s.container.image)
"""

from __future__ import annotations

import logging
import os
from functools import cached_property
from pathlib import Path

from pydantic import BaseModel, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)

# ---------------------------------------------------------------------------
# Sub-models (each maps to a [section] in config.toml)
# ---------------------------------------------------------------------------


class _StrictModel(BaseModel):
    """Base for all config sub-models — reject unknown keys so typos fail loudly."""

    model_config = {"extra": "forbid"}


class ContainerConfig(_StrictModel):
    image: str = "claude-sandbox"
    cli: str = "docker"
    base_image: str = "node:22-bookworm"
    user: str = "claude"
    workdir: str = "/workspace"
    # Command used when arguments are passed after "--"
    tool_command: list[str] = ["claude", "--dangerously-skip-permissions"]
    interactive: bool = True  # adds -it when stdin is a TTY

    @field_validator("tool_command")
    @classmethod
    def require_tool_command(cls, v: list[str]) -> list[str]:
        if not v:
            raise ValueError("tool_command must name at least the program to run")
        return v

    @property
    def home(self) -> str:
        return f"/home/{self.user}"


class ProviderConfig(_StrictModel):
    """The credential provider CLI consulted when no token is exported."""

    cli: str = "gh"
    host: str = "github.com"
    # Checked in order; first non-empty wins
    token_env_vars: list[str] = ["GH_TOKEN", "GITHUB_TOKEN"]
    timeout_seconds: float = 10.0

    @field_validator("timeout_seconds")
    @classmethod
    def positive_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("timeout_seconds must be positive")
        return v


class PathsConfig(_StrictModel):
    converter: str = "cygpath"
    converter_timeout_seconds: float = 5.0


class MountsConfig(_StrictModel):
    # ~/.claude is read-only unless opted in; Claude then cannot persist history
    session_readonly: bool = True
    forward_ssh_agent: bool = True
    # Host env vars copied into the container when set
    forward_env: list[str] = ["ANTHROPIC_API_KEY"]


class LoggingConfig(_StrictModel):
    level: str = "INFO"

    @field_validator("level")
    @classmethod
    def normalize_level(cls, v: str) -> str:
        level = v.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown log level: {v!r}")
        return level


# ---------------------------------------------------------------------------
# Root Settings
# ---------------------------------------------------------------------------


def resolve_sandbox_dir() -> Path:
    """Directory holding config.toml and the image build context."""
    raw = os.environ.get("CLAUDE_SANDBOX_DIR")
    if raw:
        return Path(raw).expanduser()
    return Path.home() / ".claude-sandbox"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="CLAUDE_SANDBOX_",
        env_file=".env",
        env_nested_delimiter="__",
        extra="ignore",
    )

    container: ContainerConfig = ContainerConfig()
    provider: ProviderConfig = ProviderConfig()
    paths: PathsConfig = PathsConfig()
    mounts: MountsConfig = MountsConfig()
    logging: LoggingConfig = LoggingConfig()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Priority: init > env vars > .env > config.toml > file secrets."""
        toml_file = resolve_sandbox_dir() / "config.toml"
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
            file_secret_settings,
        )

    # --- Computed properties ---

    @cached_property
    def sandbox_dir(self) -> Path:
        return resolve_sandbox_dir()

    @cached_property
    def home_dir(self) -> Path:
        return Path.home()

    @cached_property
    def build_dir(self) -> Path:
        return self.sandbox_dir / "build"


# ---------------------------------------------------------------------------
# Singleton
# ---------------------------------------------------------------------------

_settings: Settings | None = None


def get_settings() -> Settings:
    """Lazy cached singleton."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Clear the cached singleton (for tests)."""
    global _settings
    _settings = None
