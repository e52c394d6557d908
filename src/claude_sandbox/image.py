"""Sandbox image build context and ``docker build``.

The build context lives in ``$CLAUDE_SANDBOX_DIR/build`` and holds the
generated Dockerfile plus a copy of this package, which provides the image's
entrypoint (:mod:`claude_sandbox.entrypoint`).
"""

from __future__ import annotations

import shutil
from pathlib import Path

from claude_sandbox.config import Settings, get_settings
from claude_sandbox.credentials import provider_from_settings
from claude_sandbox.errors import ImageBuildError
from claude_sandbox.logger import logger
from claude_sandbox.runtime import DockerRuntime, check_prerequisites

# Runtime deps of the entrypoint inside the image
_ENTRYPOINT_REQUIREMENTS = ("structlog", "pydantic", "pydantic-settings")

_DOCKERFILE = """\
FROM {base_image}

RUN apt-get update && apt-get install -y --no-install-recommends \\
    git curl ca-certificates openssh-client jq python3 python3-pip \\
    && rm -rf /var/lib/apt/lists/*

# GitHub CLI (latest release, multi-arch)
RUN GH_VERSION=$(curl -fsSL https://api.github.com/repos/cli/cli/releases/latest \\
        | grep '"tag_name"' | sed 's/.*"v\\(.*\\)".*/\\1/') \\
    && ARCH=$(dpkg --print-architecture) \\
    && curl -fsSL "https://github.com/cli/cli/releases/download/v${{GH_VERSION}}/gh_${{GH_VERSION}}_linux_${{ARCH}}.deb" -o /tmp/gh.deb \\
    && dpkg -i /tmp/gh.deb && rm /tmp/gh.deb

RUN npm install -g @anthropic-ai/claude-code

RUN pip3 install --no-cache-dir --break-system-packages {requirements}
COPY claude_sandbox /opt/claude-sandbox/claude_sandbox
ENV PYTHONPATH=/opt/claude-sandbox

RUN useradd -m -s /bin/bash {user}
USER {user}
WORKDIR /home/{user}

# Defaults; a mounted host .gitconfig replaces them at startup
RUN git config --global init.defaultBranch main \\
    && git config --global pull.rebase false

ENTRYPOINT ["python3", "-m", "claude_sandbox.entrypoint"]
"""


def render_dockerfile(settings: Settings | None = None) -> str:
    s = settings or get_settings()
    return _DOCKERFILE.format(
        base_image=s.container.base_image,
        user=s.container.user,
        requirements=" ".join(_ENTRYPOINT_REQUIREMENTS),
    )


def write_build_context(context_dir: Path, settings: Settings | None = None) -> Path:
    """Write the Dockerfile and package copy into *context_dir*; return it."""
    context_dir.mkdir(parents=True, exist_ok=True)
    (context_dir / "Dockerfile").write_text(render_dockerfile(settings))

    package_src = Path(__file__).resolve().parent
    package_dst = context_dir / "claude_sandbox"
    if package_dst.exists():
        shutil.rmtree(package_dst)
    shutil.copytree(package_src, package_dst, ignore=shutil.ignore_patterns("__pycache__"))
    logger.debug("Wrote build context", path=str(context_dir))
    return context_dir


def build_image(
    settings: Settings | None = None,
    runtime: DockerRuntime | None = None,
) -> int:
    """Check prerequisites, write the build context and run ``docker build``."""
    s = settings or get_settings()
    runtime = runtime or DockerRuntime(cli=s.container.cli)

    try:
        check_prerequisites(runtime, provider_from_settings(s))
    except RuntimeError as exc:
        raise ImageBuildError(str(exc)) from exc

    context = write_build_context(s.build_dir, s)
    returncode = runtime.build(s.container.image, context)
    if returncode == 0:
        logger.info("Sandbox image built", image=s.container.image)
    else:
        logger.error("docker build failed", image=s.container.image, returncode=returncode)
    return returncode
