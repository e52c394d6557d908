"""Launch orchestration: target dir + credential + mounts -> LaunchPlan -> runtime.

Either the whole plan is built or a :class:`~claude_sandbox.errors.UsageError`
aborts before the runtime is touched; there is no partial launch.
"""

from __future__ import annotations

import os
from collections.abc import Mapping, Sequence
from pathlib import Path

from claude_sandbox.config import Settings, get_settings
from claude_sandbox.credentials import NO_CREDENTIAL_HINT, GhCli, resolve_credential
from claude_sandbox.errors import ProjectDirError
from claude_sandbox.host_platform import converter_available, detect_platform, suppression_env
from claude_sandbox.logger import logger
from claude_sandbox.mounts import (
    SSH_AGENT_CONTAINER_PATH,
    _build_container_env,
    _build_volume_mounts,
)
from claude_sandbox.runtime import ContainerRuntime
from claude_sandbox.types import ExecutionContext, LaunchPlan, PlatformProfile

PASSTHROUGH_DELIMITER = "--"


def split_passthrough(argv: Sequence[str]) -> tuple[list[str], list[str]]:
    """Split at the first ``--``; everything after it is forwarded verbatim."""
    argv = list(argv)
    if PASSTHROUGH_DELIMITER in argv:
        idx = argv.index(PASSTHROUGH_DELIMITER)
        return argv[:idx], argv[idx + 1 :]
    return argv, []


def resolve_project_dir(raw: str | None, cwd: Path | None = None) -> Path:
    """Resolve the target directory (default: cwd).

    Raises:
        ProjectDirError: the path does not exist or is not a directory.
    """
    base = cwd or Path.cwd()
    if not raw:
        return base.resolve()
    path = Path(raw).expanduser()
    if not path.is_absolute():
        path = base / path
    if not path.exists():
        raise ProjectDirError(raw)
    if not path.is_dir():
        raise ProjectDirError(raw, reason="is not a directory")
    return path.resolve()


def build_launch_plan(
    project_dir: Path,
    passthrough: Sequence[str] = (),
    *,
    environ: Mapping[str, str] | None = None,
    provider: GhCli | None = None,
    profile: PlatformProfile | None = None,
    home: Path | None = None,
    settings: Settings | None = None,
) -> LaunchPlan:
    """Resolve everything one launch needs, in order: credential, platform, mounts."""
    s = settings or get_settings()
    environ = os.environ if environ is None else environ
    warnings: list[str] = []

    credential = resolve_credential(environ=environ, provider=provider, settings=s)
    if not credential:
        warnings.append(f"No GitHub token found. {NO_CREDENTIAL_HINT}")

    profile = profile or detect_platform(environ, settings=s)
    if profile.emulated and not converter_available(s):
        msg = f"{s.paths.converter} not found; host paths are passed to docker unconverted"
        logger.warning(msg)
        warnings.append(msg)

    mounts = _build_volume_mounts(project_dir, profile, home=home, environ=environ, settings=s)
    ssh_agent = any(m.container_path == SSH_AGENT_CONTAINER_PATH for m in mounts)
    env = _build_container_env(credential, environ=environ, ssh_agent=ssh_agent, settings=s)

    command = (*s.container.tool_command, *passthrough) if passthrough else None

    return LaunchPlan(
        credential=credential,
        mounts=tuple(mounts),
        workdir=s.container.workdir,
        image=s.container.image,
        env=env,
        command=command,
        context=ExecutionContext(env_overrides=suppression_env(profile)),
        warnings=tuple(warnings),
        interactive=s.container.interactive,
    )


def launch(plan: LaunchPlan, runtime: ContainerRuntime) -> int:
    """Hand the plan to the runtime and return its exit code."""
    logger.info(
        "Launching Claude Code sandbox",
        project=plan.project_dir,
        image=plan.image,
        auth=plan.credential.source,
        mounts=len(plan.mounts),
    )
    return runtime.run(plan)
