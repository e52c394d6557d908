"""Host platform detection and host-path normalization.

Two profiles exist:

``posix``
    Linux and macOS. Paths go to docker unchanged.

``windows-shell-emulated``
    Git Bash / MSYS2 / Cygwin on Windows. The shell layer rewrites anything
    that looks like a POSIX path before a native program sees it, so
    ``-w /workspace`` would reach docker as ``C:/Program Files/Git/workspace``.
    Two mitigations apply:

    * the child ``docker`` process gets ``MSYS_NO_PATHCONV=1`` and
      ``MSYS2_ARG_CONV_EXCL=*`` (see :func:`suppression_env`), and
    * host paths destined for ``-v`` are converted from ``/c/dev/foo`` to
      ``C:/dev/foo`` with ``cygpath -m`` (see :func:`to_windows_path`).
"""

from __future__ import annotations

import os
import platform as _platform
import re
import shutil
import subprocess
from collections.abc import Mapping
from functools import partial

from claude_sandbox.config import Settings, get_settings
from claude_sandbox.logger import logger
from claude_sandbox.types import PlatformProfile

_EMULATED_KERNEL_PREFIXES = ("MINGW", "MSYS", "CYGWIN")

# C:/foo or C:\foo: already in the form docker's -v expects
_DRIVE_LETTER_RE = re.compile(r"^[A-Za-z]:[\\/]")

SUPPRESSION_ENV: dict[str, str] = {
    "MSYS_NO_PATHCONV": "1",
    "MSYS2_ARG_CONV_EXCL": "*",
}


def is_shell_emulated(environ: Mapping[str, str], system: str) -> bool:
    if system.upper().startswith(_EMULATED_KERNEL_PREFIXES):
        return True
    return bool(environ.get("MSYSTEM"))


def to_windows_path(path: str, converter: str = "cygpath", timeout: float = 5.0) -> str:
    """Convert an MSYS-style path to drive-letter form, best-effort.

    Returns *path* unchanged if it already has a drive letter or if the
    converter is missing, fails, or prints nothing.
    """
    if _DRIVE_LETTER_RE.match(path):
        return path
    try:
        result = subprocess.run(
            [converter, "-m", path],
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except (FileNotFoundError, subprocess.TimeoutExpired, UnicodeDecodeError, OSError) as exc:
        logger.debug("Path conversion failed, using original", path=path, err=str(exc))
        return path
    converted = result.stdout.strip()
    if result.returncode != 0 or not converted:
        logger.debug(
            "Path conversion failed, using original",
            path=path,
            returncode=result.returncode,
        )
        return path
    return converted


def detect_platform(
    environ: Mapping[str, str] | None = None,
    system: str | None = None,
    settings: Settings | None = None,
) -> PlatformProfile:
    """Classify the host once per launch.

    *system* defaults to the kernel name (``uname -s``), e.g. ``Linux``,
    ``Darwin`` or ``MINGW64_NT-10.0-19045``.
    """
    environ = os.environ if environ is None else environ
    system = _platform.system() if system is None else system

    if not is_shell_emulated(environ, system):
        return PlatformProfile(kind="posix")

    s = settings or get_settings()
    logger.debug("Detected shell-emulated Windows host", system=system)
    return PlatformProfile(
        kind="windows-shell-emulated",
        rewrite=partial(
            to_windows_path,
            converter=s.paths.converter,
            timeout=s.paths.converter_timeout_seconds,
        ),
    )


def suppression_env(profile: PlatformProfile) -> dict[str, str]:
    """Env vars that stop the shell layer from rewriting docker's arguments."""
    if profile.emulated:
        return dict(SUPPRESSION_ENV)
    return {}


def converter_available(settings: Settings | None = None) -> bool:
    s = settings or get_settings()
    return shutil.which(s.paths.converter) is not None
