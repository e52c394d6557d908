"""Entry point for `python -m claude_sandbox` / `claude-sandbox`.

Subcommands:
    claude-sandbox                        Launch for the current directory
    claude-sandbox ~/my-project           Launch for a specific project
    claude-sandbox . -- -p "fix bugs"     Forward arguments to claude
    claude-sandbox build                  Build the sandbox image

A project directory literally named "build" can be launched as ./build.
"""

from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence

from pydantic import ValidationError

from claude_sandbox.config import get_settings
from claude_sandbox.errors import SandboxError, UsageError
from claude_sandbox.logger import configure_level, logger


def _launch(project: str | None, passthrough: list[str]) -> int:
    from claude_sandbox.launcher import build_launch_plan, launch, resolve_project_dir
    from claude_sandbox.runtime import DockerRuntime

    s = get_settings()
    project_dir = resolve_project_dir(project)
    plan = build_launch_plan(project_dir, passthrough, settings=s)
    runtime = DockerRuntime(cli=s.container.cli)
    runtime.ensure_running()
    if not runtime.image_exists(plan.image):
        raise UsageError(f"Image '{plan.image}' not found. Run: claude-sandbox build")
    return launch(plan, runtime)


def _build() -> int:
    from claude_sandbox.image import build_image

    return build_image(get_settings())


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="claude-sandbox",
        description="Run Claude Code in a Docker sandbox with your GitHub auth forwarded",
        epilog="Arguments after '--' are passed to claude inside the container.",
    )
    parser.add_argument(
        "project_dir",
        nargs="?",
        help="Project directory to mount at /workspace (default: current directory)",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    from claude_sandbox.launcher import split_passthrough

    argv = list(sys.argv[1:] if argv is None else argv)
    own_args, passthrough = split_passthrough(argv)

    try:
        configure_level(get_settings())
        if own_args == ["build"] and not passthrough:
            return _build()
        args = _parser().parse_args(own_args)
        return _launch(args.project_dir, passthrough)
    except ValidationError as exc:
        first = exc.errors()[0]
        logger.error(
            "Invalid configuration",
            field=".".join(str(part) for part in first["loc"]),
            error=first["msg"],
            count=exc.error_count(),
        )
        return UsageError.exit_code
    except SandboxError as exc:
        logger.error(str(exc))
        return exc.exit_code
    except RuntimeError as exc:
        logger.error(str(exc))
        return 1


if __name__ == "__main__":
    sys.exit(main())
