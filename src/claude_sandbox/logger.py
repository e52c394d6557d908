"""Logging for the host launcher and the in-container entrypoint.

Both sides are short-lived processes that talk to a terminal, so output is a
single structlog console line per event on stderr, without timestamps.

The level is taken from ``LOG_LEVEL`` at import time, before any settings
are loaded, so a broken config.toml can still be reported. Once settings
load, :func:`configure_level` applies ``[logging] level``; an explicit
``LOG_LEVEL`` in the environment keeps priority over it.
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Mapping
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from claude_sandbox.config import Settings

LOGGER_NAME = "claude_sandbox"
LEVEL_ENV_VAR = "LOG_LEVEL"

# Exit status of a process stopped by Ctrl-C (128 + SIGINT)
_INTERRUPTED_EXIT = 130

_stdlib_logger = logging.getLogger(LOGGER_NAME)


def parse_level(name: str | None, default: int = logging.INFO) -> int:
    """Map a level name like ``"debug"`` to its number; unknown names give *default*."""
    if not name:
        return default
    level = logging.getLevelName(name.strip().upper())
    return level if isinstance(level, int) else default


def _setup_logging() -> structlog.stdlib.BoundLogger:
    # Handler on the package logger only; the root logger is left alone
    if not _stdlib_logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter("%(message)s"))
        _stdlib_logger.addHandler(handler)
    _stdlib_logger.setLevel(parse_level(os.environ.get(LEVEL_ENV_VAR)))

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.dev.set_exc_info,
            structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    return structlog.get_logger(LOGGER_NAME)


logger = _setup_logging()


def configure_level(settings: Settings, environ: Mapping[str, str] | None = None) -> int:
    """Apply the configured log level and return it.

    ``LOG_LEVEL`` wins when set; otherwise ``settings.logging.level`` is used.
    ``filter_by_level`` reads the stdlib level on every call, so cached
    loggers pick the change up immediately.
    """
    environ = os.environ if environ is None else environ
    override = environ.get(LEVEL_ENV_VAR)
    if override:
        level = parse_level(override)
    else:
        level = parse_level(settings.logging.level)
    _stdlib_logger.setLevel(level)
    return level


def _uncaught_exception_handler(
    exc_type: type[BaseException],
    exc_value: BaseException,
    exc_tb: object,
) -> None:
    if issubclass(exc_type, KeyboardInterrupt):
        sys.exit(_INTERRUPTED_EXIT)
    logger.critical("Unexpected error", exc_info=(exc_type, exc_value, exc_tb))
    sys.exit(1)


sys.excepthook = _uncaught_exception_handler
