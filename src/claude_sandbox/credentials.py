"""GitHub credential discovery (host side).

Resolution order (first match wins):

1. ``GH_TOKEN`` / ``GITHUB_TOKEN`` in the launcher's environment
2. ``gh auth token``, if ``gh`` is installed and ``gh auth status`` succeeds
3. no credential: the sandbox still launches, git push/pull just won't work

The result is re-derived on every launch and never written to disk. The
mounted ``~/.config/gh`` directory is a separate channel handled by
:mod:`claude_sandbox.mounts`.
"""

from __future__ import annotations

import os
import shutil
import subprocess
from collections.abc import Callable, Mapping, Sequence
from functools import partial

from claude_sandbox.config import Settings, get_settings
from claude_sandbox.logger import logger
from claude_sandbox.types import Credential

CredentialStrategy = Callable[[], Credential | None]

NO_CREDENTIAL_HINT = "Run 'gh auth login' or export GH_TOKEN."


class GhCli:
    """Thin wrapper around the ``gh`` CLI.

    Every call is bounded by *timeout*; a timeout, a non-zero exit or
    undecodable output counts as failure.
    """

    def __init__(self, cli: str = "gh", timeout: float = 10.0) -> None:
        self.cli = cli
        self.timeout = timeout

    def available(self) -> bool:
        return shutil.which(self.cli) is not None

    def _run(self, *args: str) -> subprocess.CompletedProcess[str] | None:
        try:
            return subprocess.run(
                [self.cli, *args],
                capture_output=True,
                encoding="utf-8",
                timeout=self.timeout,
            )
        except (FileNotFoundError, subprocess.TimeoutExpired, UnicodeDecodeError, OSError) as exc:
            logger.debug("gh command failed", args=list(args), err=str(exc))
            return None

    def status(self) -> bool:
        """True when gh reports an authenticated session."""
        result = self._run("auth", "status")
        return result is not None and result.returncode == 0

    def token(self) -> str | None:
        result = self._run("auth", "token")
        if result is None or result.returncode != 0:
            return None
        return result.stdout.strip() or None


def provider_from_settings(settings: Settings | None = None) -> GhCli:
    s = settings or get_settings()
    return GhCli(cli=s.provider.cli, timeout=s.provider.timeout_seconds)


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------


def from_environment(environ: Mapping[str, str], names: Sequence[str]) -> Credential | None:
    for name in names:
        value = environ.get(name, "").strip()
        if value:
            return Credential(token=value, source="env")
    return None


def from_provider(provider: GhCli) -> Credential | None:
    if not provider.available():
        logger.debug("gh CLI not installed", cli=provider.cli)
        return None
    if not provider.status():
        logger.debug("gh CLI is not authenticated")
        return None
    # A session that expired between the two calls just falls through
    token = provider.token()
    if not token:
        logger.debug("gh auth token returned nothing")
        return None
    return Credential(token=token, source="mounted-config")


def resolve_credential(
    environ: Mapping[str, str] | None = None,
    provider: GhCli | None = None,
    settings: Settings | None = None,
) -> Credential:
    """Return the first credential found, or ``Credential.none()``. Never raises."""
    s = settings or get_settings()
    environ = os.environ if environ is None else environ
    provider = provider or provider_from_settings(s)

    strategies: list[CredentialStrategy] = [
        partial(from_environment, environ, s.provider.token_env_vars),
        partial(from_provider, provider),
    ]
    for strategy in strategies:
        credential = strategy()
        if credential is not None:
            logger.debug("GitHub credential resolved", source=credential.source)
            return credential

    logger.warning(
        "No GitHub token found; git push/pull to GitHub will not work",
        hint=NO_CREDENTIAL_HINT,
    )
    return Credential.none()
