"""Data models for claude-sandbox.

Every object here is built fresh for a single launch and discarded when it
ends. Nothing is cached between invocations, so an expired token is never
forwarded twice.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Literal

# "mounted-config" on the host means the token came from gh's stored session;
# inside the container it means the mounted gh config is used directly.
# "ssh-agent" only occurs on the container side.
CredentialSource = Literal["env", "mounted-config", "ssh-agent", "none"]


@dataclass(frozen=True)
class Credential:
    token: str | None
    source: CredentialSource

    @classmethod
    def none(cls) -> Credential:
        return cls(token=None, source="none")

    def __bool__(self) -> bool:
        return bool(self.token)

    def __repr__(self) -> str:
        masked = f"{self.token[:4]}..." if self.token else None
        return f"Credential(token={masked!r}, source={self.source!r})"


@dataclass(frozen=True)
class VolumeMount:
    host_path: str
    container_path: str
    readonly: bool = True

    def volume_arg(self) -> str:
        """Render as the value of ``docker run -v``."""
        spec = f"{self.host_path}:{self.container_path}"
        return f"{spec}:ro" if self.readonly else spec


PlatformKind = Literal["posix", "windows-shell-emulated"]


def _identity(path: str) -> str:
    return path


@dataclass(frozen=True)
class PlatformProfile:
    """Host classification plus its host-path rewrite function."""

    kind: PlatformKind
    rewrite: Callable[[str], str] = field(default=_identity, repr=False, compare=False)

    @property
    def emulated(self) -> bool:
        return self.kind == "windows-shell-emulated"

    def normalize(self, path: str) -> str:
        return self.rewrite(path)


@dataclass(frozen=True)
class ExecutionContext:
    """Extra environment for the container-launch child process.

    Carries the shell path-mangling suppression variables instead of
    mutating the launcher's own ``os.environ``.
    """

    env_overrides: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class LaunchPlan:
    """Everything the container runtime needs for one launch."""

    credential: Credential
    mounts: tuple[VolumeMount, ...]
    workdir: str
    image: str
    env: dict[str, str] = field(default_factory=dict)
    command: tuple[str, ...] | None = None  # None = image default
    context: ExecutionContext = field(default_factory=ExecutionContext)
    warnings: tuple[str, ...] = ()
    interactive: bool = True

    @property
    def project_dir(self) -> str:
        return self.mounts[0].host_path
