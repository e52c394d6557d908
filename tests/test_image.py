"""Tests for the sandbox image build context."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
from conftest import make_settings

from claude_sandbox.config import ContainerConfig
from claude_sandbox.errors import ImageBuildError
from claude_sandbox.image import build_image, render_dockerfile, write_build_context


class TestRenderDockerfile:
    def test_defaults(self):
        text = render_dockerfile()
        assert text.startswith("FROM node:22-bookworm\n")
        assert "npm install -g @anthropic-ai/claude-code" in text
        assert "useradd -m -s /bin/bash claude" in text
        assert 'ENTRYPOINT ["python3", "-m", "claude_sandbox.entrypoint"]' in text

    def test_shell_variables_survive_formatting(self):
        text = render_dockerfile()
        assert "gh_${GH_VERSION}_linux_${ARCH}.deb" in text
        assert "{" not in text.replace("${", "")

    def test_custom_user_and_base(self):
        s = make_settings(container=ContainerConfig(base_image="node:20", user="dev"))
        text = render_dockerfile(s)
        assert text.startswith("FROM node:20\n")
        assert "USER dev" in text
        assert "WORKDIR /home/dev" in text


class TestWriteBuildContext:
    def test_writes_dockerfile_and_package(self, tmp_path):
        ctx = write_build_context(tmp_path / "build")
        assert (ctx / "Dockerfile").is_file()
        assert (ctx / "claude_sandbox" / "entrypoint.py").is_file()
        assert not list(ctx.rglob("__pycache__"))

    def test_rewrite_replaces_stale_copy(self, tmp_path):
        ctx = tmp_path / "build"
        (ctx / "claude_sandbox").mkdir(parents=True)
        (ctx / "claude_sandbox" / "stale.py").write_text("")
        write_build_context(ctx)
        assert not (ctx / "claude_sandbox" / "stale.py").exists()


class TestBuildImage:
    def test_builds_with_configured_tag(self, tmp_path):
        s = make_settings(build_dir=tmp_path / "ctx")
        runtime = MagicMock()
        runtime.build.return_value = 0
        with patch("claude_sandbox.image.check_prerequisites", return_value=[]):
            assert build_image(s, runtime) == 0
        runtime.build.assert_called_once_with("claude-sandbox", tmp_path / "ctx")
        assert (tmp_path / "ctx" / "Dockerfile").exists()

    def test_build_failure_returns_code(self, tmp_path):
        s = make_settings(build_dir=tmp_path / "ctx")
        runtime = MagicMock()
        runtime.build.return_value = 1
        with patch("claude_sandbox.image.check_prerequisites", return_value=[]):
            assert build_image(s, runtime) == 1

    def test_missing_docker_raises(self, tmp_path):
        s = make_settings(build_dir=tmp_path / "ctx")
        runtime = MagicMock()
        with patch(
            "claude_sandbox.image.check_prerequisites",
            side_effect=RuntimeError("docker is not installed"),
        ):
            with pytest.raises(ImageBuildError, match="not installed"):
                build_image(s, runtime)
        runtime.build.assert_not_called()
