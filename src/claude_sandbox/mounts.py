"""Volume mount list construction and container CLI arg building."""

from __future__ import annotations

import os
import sys
from collections.abc import Mapping
from pathlib import Path

from claude_sandbox.config import Settings, get_settings
from claude_sandbox.errors import ProjectDirError
from claude_sandbox.logger import logger
from claude_sandbox.types import Credential, LaunchPlan, PlatformProfile, VolumeMount

SSH_AGENT_CONTAINER_PATH = "/ssh-agent"
GITCONFIG_STAGING_NAME = ".gitconfig-host"

# The host's own SSH_AUTH_SOCK must stay intact for the docker client
_PASSED_BY_VALUE = frozenset({"SSH_AUTH_SOCK"})


def _optional_mount(
    host: Path,
    container_path: str,
    profile: PlatformProfile,
    *,
    readonly: bool,
) -> VolumeMount | None:
    if not host.exists():
        logger.debug("Skipping mount, host path absent", host_path=str(host))
        return None
    return VolumeMount(profile.normalize(str(host)), container_path, readonly=readonly)


def _ssh_agent_mount(environ: Mapping[str, str]) -> VolumeMount | None:
    sock = environ.get("SSH_AUTH_SOCK", "")
    if not sock:
        return None
    if not os.path.exists(sock):
        logger.debug("SSH_AUTH_SOCK set but socket missing", path=sock)
        return None
    # A socket is an endpoint, not data: rw, and never run through cygpath
    return VolumeMount(sock, SSH_AGENT_CONTAINER_PATH, readonly=False)


def _build_volume_mounts(
    project_dir: Path,
    profile: PlatformProfile,
    *,
    home: Path | None = None,
    environ: Mapping[str, str] | None = None,
    settings: Settings | None = None,
) -> list[VolumeMount]:
    """Build the mount list for one launch.

    The project directory comes first and is the only required entry. Every
    other resource is mounted only if it exists on the host right now.

    Raises:
        ProjectDirError: *project_dir* is missing or not a directory.
    """
    s = settings or get_settings()
    home = home or s.home_dir
    environ = os.environ if environ is None else environ
    container_home = s.container.home

    if not project_dir.exists():
        raise ProjectDirError(str(project_dir))
    if not project_dir.is_dir():
        raise ProjectDirError(str(project_dir), reason="is not a directory")

    mounts = [
        VolumeMount(profile.normalize(str(project_dir)), s.container.workdir, readonly=False)
    ]

    optional = [
        # Claude session state (history, settings) persists across launches
        _optional_mount(
            home / ".claude",
            f"{container_home}/.claude",
            profile,
            readonly=s.mounts.session_readonly,
        ),
        # Staged copy; the entrypoint copies it to ~/.gitconfig
        _optional_mount(
            home / ".gitconfig",
            f"{container_home}/{GITCONFIG_STAGING_NAME}",
            profile,
            readonly=True,
        ),
        # gh's own session, used by gh inside the container
        _optional_mount(
            home / ".config" / "gh",
            f"{container_home}/.config/gh",
            profile,
            readonly=True,
        ),
    ]
    if s.mounts.forward_ssh_agent:
        optional.append(_ssh_agent_mount(environ))

    mounts.extend(m for m in optional if m is not None)
    return mounts


def _build_container_env(
    credential: Credential,
    *,
    environ: Mapping[str, str] | None = None,
    ssh_agent: bool = False,
    settings: Settings | None = None,
) -> dict[str, str]:
    """Environment for the process inside the container.

    The token goes out under both ``GH_TOKEN`` and ``GITHUB_TOKEN``; tools
    read one or the other. Without a token neither is set.
    """
    s = settings or get_settings()
    environ = os.environ if environ is None else environ
    env: dict[str, str] = {}

    if credential.token:
        env["GH_TOKEN"] = credential.token
        env["GITHUB_TOKEN"] = credential.token

    for name in s.mounts.forward_env:
        if value := environ.get(name):
            env[name] = value

    if ssh_agent:
        env["SSH_AUTH_SOCK"] = SSH_AGENT_CONTAINER_PATH
    return env


def _build_child_env(plan: LaunchPlan, base: Mapping[str, str] | None = None) -> dict[str, str]:
    """Environment for the ``docker`` client process itself.

    Includes the shell-mangling suppression variables and the values of the
    env vars that :func:`_build_container_args` passes by name.
    """
    env = dict(os.environ if base is None else base)
    env.update({k: v for k, v in plan.env.items() if k not in _PASSED_BY_VALUE})
    env.update(plan.context.env_overrides)
    return env


def _build_container_args(plan: LaunchPlan, *, tty: bool | None = None) -> list[str]:
    """Build CLI args for ``docker run``.

    Env vars are passed by name (``-e GH_TOKEN``) so docker reads the value
    from its own environment and tokens never show up in the process list.
    """
    if tty is None:
        tty = sys.stdin.isatty()

    args = ["run", "--rm"]
    if plan.interactive and tty:
        args.append("-it")
    for m in plan.mounts:
        args.extend(["-v", m.volume_arg()])
    args.extend(["-w", plan.workdir])
    for key, value in plan.env.items():
        args.extend(["-e", f"{key}={value}" if key in _PASSED_BY_VALUE else key])
    args.append(plan.image)
    if plan.command:
        args.extend(plan.command)
    return args
