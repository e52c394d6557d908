"""Container runtime — the docker CLI.

The launcher only parameterizes the runtime: it hands over a finished
:class:`~claude_sandbox.types.LaunchPlan` and gets an exit code back.
"""

from __future__ import annotations

import shutil
import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, runtime_checkable

from claude_sandbox.credentials import GhCli
from claude_sandbox.logger import logger
from claude_sandbox.mounts import _build_child_env, _build_container_args
from claude_sandbox.types import LaunchPlan


@runtime_checkable
class ContainerRuntime(Protocol):
    def run(self, plan: LaunchPlan) -> int: ...


@dataclass(frozen=True)
class DockerRuntime:
    """Docker (or a CLI-compatible replacement such as podman)."""

    cli: str = "docker"

    def available(self) -> bool:
        return shutil.which(self.cli) is not None

    def ensure_running(self) -> None:
        """Verify the daemon answers; raise with a fix hint otherwise."""
        if not self.available():
            raise RuntimeError(
                f"{self.cli} is not installed. Install from https://docs.docker.com/get-docker/"
            )
        try:
            subprocess.run(
                [self.cli, "info"],
                capture_output=True,
                check=True,
                timeout=30,
            )
            logger.debug("Docker daemon is running")
        except (subprocess.CalledProcessError, subprocess.TimeoutExpired) as exc:
            if sys.platform == "darwin" or sys.platform == "win32":
                hint = "Start Docker Desktop"
            else:
                hint = "Start with: sudo systemctl start docker"
            raise RuntimeError(f"Docker daemon is not running. {hint}") from exc

    def image_exists(self, image: str) -> bool:
        result = subprocess.run(
            [self.cli, "image", "inspect", image],
            capture_output=True,
            text=True,
        )
        return result.returncode == 0

    def build(self, tag: str, context_dir: Path) -> int:
        logger.info("Building sandbox image (this may take a minute)", image=tag)
        result = subprocess.run([self.cli, "build", "-t", tag, str(context_dir)])
        return result.returncode

    def run(self, plan: LaunchPlan) -> int:
        args = [self.cli, *_build_container_args(plan)]
        # stdio inherited: the sandbox is interactive
        result = subprocess.run(args, env=_build_child_env(plan))
        return result.returncode


def check_prerequisites(runtime: DockerRuntime, provider: GhCli) -> list[str]:
    """Check the host tools the sandbox relies on.

    Docker problems are fatal (``RuntimeError``). A missing ``gh`` only
    degrades auth to exported tokens, so it is returned as a warning.
    """
    runtime.ensure_running()
    logger.info("Docker is available", cli=runtime.cli)

    warnings: list[str] = []
    if provider.available():
        logger.info("GitHub CLI is available", cli=provider.cli)
    else:
        msg = "GitHub CLI (gh) is not installed. Install from https://cli.github.com/"
        logger.warning(msg)
        warnings.append(msg)
    return warnings
