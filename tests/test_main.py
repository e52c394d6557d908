"""Tests for the claude-sandbox CLI entry point."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

from claude_sandbox.__main__ import main


def _runtime_mock(*, image_exists: bool = True, returncode: int = 0) -> MagicMock:
    runtime = MagicMock()
    runtime.image_exists.return_value = image_exists
    runtime.run.return_value = returncode
    return runtime


class TestLaunchCommand:
    def test_missing_target_is_fatal_and_runtime_untouched(self, tmp_path):
        runtime = _runtime_mock()
        with patch("claude_sandbox.runtime.DockerRuntime", return_value=runtime) as mock_cls:
            code = main([str(tmp_path / "does-not-exist")])
        assert code == 2
        mock_cls.assert_not_called()
        runtime.run.assert_not_called()

    def test_launches_with_passthrough(self, project, monkeypatch):
        monkeypatch.setenv("GH_TOKEN", "ghp_cli_token")
        runtime = _runtime_mock(returncode=0)
        with patch("claude_sandbox.runtime.DockerRuntime", return_value=runtime):
            code = main([str(project), "--", "-p", "fix all bugs"])

        assert code == 0
        runtime.ensure_running.assert_called_once()
        plan = runtime.run.call_args.args[0]
        assert plan.command == ("claude", "--dangerously-skip-permissions", "-p", "fix all bugs")
        assert plan.env["GH_TOKEN"] == "ghp_cli_token"
        assert plan.mounts[0].host_path == str(project.resolve())

    def test_returns_container_exit_code(self, project, monkeypatch):
        monkeypatch.setenv("GH_TOKEN", "ghp_cli_token")
        runtime = _runtime_mock(returncode=7)
        with patch("claude_sandbox.runtime.DockerRuntime", return_value=runtime):
            assert main([str(project)]) == 7

    def test_missing_image_is_usage_error(self, project, monkeypatch):
        monkeypatch.setenv("GH_TOKEN", "ghp_cli_token")
        runtime = _runtime_mock(image_exists=False)
        with patch("claude_sandbox.runtime.DockerRuntime", return_value=runtime):
            assert main([str(project)]) == 2
        runtime.run.assert_not_called()

    def test_docker_not_running_exits_1(self, project, monkeypatch):
        monkeypatch.setenv("GH_TOKEN", "ghp_cli_token")
        runtime = _runtime_mock()
        runtime.ensure_running.side_effect = RuntimeError("Docker daemon is not running.")
        with patch("claude_sandbox.runtime.DockerRuntime", return_value=runtime):
            assert main([str(project)]) == 1
        runtime.run.assert_not_called()


class TestBuildCommand:
    def test_build_dispatches(self):
        with patch("claude_sandbox.image.build_image", return_value=0) as mock_build:
            assert main(["build"]) == 0
        mock_build.assert_called_once()

    def test_dot_slash_build_is_a_directory(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "build").mkdir()
        monkeypatch.setenv("GH_TOKEN", "ghp_cli_token")
        runtime = _runtime_mock()
        with (
            patch("claude_sandbox.image.build_image") as mock_build,
            patch("claude_sandbox.runtime.DockerRuntime", return_value=runtime),
        ):
            main(["./build"])
        mock_build.assert_not_called()
        runtime.run.assert_called_once()


class TestConfiguration:
    def test_malformed_config_is_reported_not_raised(self, tmp_path, monkeypatch, project):
        sandbox = tmp_path / "broken-config"
        sandbox.mkdir()
        (sandbox / "config.toml").write_text('[container]\nimag = "typo"\n')
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("CLAUDE_SANDBOX_DIR", str(sandbox))
        monkeypatch.setattr("claude_sandbox.config._settings", None)

        with (
            patch("claude_sandbox.runtime.DockerRuntime") as mock_cls,
            patch("claude_sandbox.__main__.logger") as mock_logger,
        ):
            code = main([str(project)])

        assert code == 2
        mock_cls.assert_not_called()
        mock_logger.error.assert_called_once()
        assert mock_logger.error.call_args.kwargs["field"] == "container.imag"

    def test_configured_level_applied(self, project, monkeypatch):
        monkeypatch.setenv("GH_TOKEN", "ghp_cli_token")
        with (
            patch("claude_sandbox.__main__.configure_level") as mock_level,
            patch("claude_sandbox.runtime.DockerRuntime", return_value=_runtime_mock()),
        ):
            main([str(project)])
        mock_level.assert_called_once()
