"""Error taxonomy for the sandbox launcher.

Only fatal conditions are exceptions. Degraded conditions (no GitHub token,
missing ``cygpath``, no agent socket) are logged and recorded as warnings on
the launch plan instead.
"""

from __future__ import annotations


class SandboxError(Exception):
    """Base class for launcher errors."""

    exit_code: int = 1


class UsageError(SandboxError):
    """Bad invocation. Aborts before any container is started."""

    exit_code = 2


class ProjectDirError(UsageError):
    """The target directory does not exist or is not a directory."""

    def __init__(self, path: str, reason: str = "does not exist") -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Project directory {reason}: {path}")


class ImageBuildError(SandboxError):
    """The sandbox image could not be built."""
