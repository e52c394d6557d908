"""claude-sandbox — run Claude Code in a Docker container with GitHub auth forwarded.

Submodules, in launch order:
  credentials    — GitHub token resolution (env vars, then gh CLI)
  host_platform  — posix vs Git Bash/MSYS2 detection and host-path conversion
  mounts         — Volume mount list, container env and ``docker run`` args
  launcher       — LaunchPlan assembly and hand-off to the runtime
  runtime        — docker CLI wrapper and prerequisite checks
  image          — Dockerfile build context and ``docker build``
  entrypoint     — In-container startup routine (container side of the auth protocol)
"""

__version__ = "0.1.0"
