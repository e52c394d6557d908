"""In-container startup routine (the image's ENTRYPOINT).

Runs as ``python3 -m claude_sandbox.entrypoint [CMD...]`` inside the sandbox
and wires up GitHub auth with the same priority the launcher uses on the host:

1. ``GH_TOKEN`` / ``GITHUB_TOKEN`` non-empty: git answers every HTTPS
   credential query for github.com with that token.
2. mounted ``~/.config/gh/hosts.yml``: gh's own stored session is used.
3. forwarded SSH agent socket: git over SSH only.
4. nothing: warn and carry on.

A token always wins over the mounted config, even when both are present.
"""

from __future__ import annotations

import os
import shutil
import subprocess
import sys
from collections.abc import Mapping, MutableMapping, Sequence
from pathlib import Path

from claude_sandbox.config import get_settings
from claude_sandbox.logger import configure_level, logger
from claude_sandbox.mounts import GITCONFIG_STAGING_NAME
from claude_sandbox.types import Credential

DEFAULT_GIT_EMAIL = "claude-sandbox@local"
DEFAULT_GIT_NAME = "Claude (sandbox)"

# Reads the token from the environment at query time so it is never written
# into ~/.gitconfig.
_CREDENTIAL_HELPER = (
    '!f() {{ echo "protocol=https"; echo "host={host}"; '
    'echo "username=x-access-token"; echo "password=${{GH_TOKEN}}"; }}; f'
)


def run_git(*args: str, timeout: int = 30) -> subprocess.CompletedProcess[str]:
    return subprocess.run(
        ["git", *args],
        capture_output=True,
        text=True,
        timeout=timeout,
    )


def import_host_gitconfig(home: Path) -> bool:
    """Copy the staged host .gitconfig into place, if one was mounted."""
    staged = home / GITCONFIG_STAGING_NAME
    if not staged.is_file():
        return False
    shutil.copyfile(staged, home / ".gitconfig")
    logger.info("Imported host .gitconfig")
    return True


def resolve_container_auth(environ: Mapping[str, str], home: Path) -> Credential:
    """Pick the in-container auth channel. Pure apart from filesystem checks."""
    for name in ("GH_TOKEN", "GITHUB_TOKEN"):
        token = environ.get(name, "").strip()
        if token:
            return Credential(token=token, source="env")
    if (home / ".config" / "gh" / "hosts.yml").is_file():
        return Credential(token=None, source="mounted-config")
    sock = environ.get("SSH_AUTH_SOCK", "")
    if sock and os.path.exists(sock):
        return Credential(token=None, source="ssh-agent")
    return Credential.none()


def configure_git_credentials(host: str = "github.com") -> None:
    """Route git's HTTPS credential queries for *host* to ``$GH_TOKEN``.

    Helpers inherited from the host .gitconfig (osxkeychain, manager-core)
    are useless in the container, so the host-scoped list is reset first.
    """
    key = f"credential.https://{host}.helper"
    run_git("config", "--global", "--unset-all", key)  # absent is fine
    for value in ("", _CREDENTIAL_HELPER.format(host=host)):
        result = run_git("config", "--global", "--add", key, value)
        if result.returncode != 0:
            raise RuntimeError(f"git config failed: {result.stderr.strip()}")


def ensure_git_identity() -> None:
    result = run_git("config", "--global", "user.email")
    if result.returncode == 0 and result.stdout.strip():
        return
    run_git("config", "--global", "user.email", DEFAULT_GIT_EMAIL)
    run_git("config", "--global", "user.name", DEFAULT_GIT_NAME)
    logger.info("Set default git identity", email=DEFAULT_GIT_EMAIL)


def setup(environ: MutableMapping[str, str], home: Path, host: str = "github.com") -> Credential:
    """Run every startup step except the final exec. Mutates *environ*."""
    import_host_gitconfig(home)

    credential = resolve_container_auth(environ, home)
    match credential.source:
        case "env":
            configure_git_credentials(host)
            # gh inside the container only looks at GH_TOKEN
            environ["GH_TOKEN"] = credential.token or ""
            logger.info("GitHub auth: token from environment variable")
        case "mounted-config":
            logger.info("GitHub auth: mounted gh CLI config")
        case "ssh-agent":
            logger.info("GitHub auth: forwarded SSH agent (git over SSH only)")
        case _:
            logger.warning(
                "No GitHub credentials found",
                hint="Pass -e GH_TOKEN=$(gh auth token) when starting the container",
            )

    ensure_git_identity()
    return credential


def main(argv: Sequence[str] | None = None) -> None:
    argv = list(sys.argv[1:] if argv is None else argv)
    s = get_settings()
    configure_level(s)

    setup(os.environ, Path.home(), host=s.provider.host)

    command = argv or list(s.container.tool_command)
    logger.debug("Exec", command=command[0])
    os.execvp(command[0], command)


if __name__ == "__main__":
    main()
