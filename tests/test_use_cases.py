"""
Tests for the check / install / launch use cases and their exit codes.
"""

import pytest

from hostprep.core.environment.installer import EnvironmentInstaller
from hostprep.core.environment.system import OSVersionChecker, OSVersionInfo
from hostprep.core.models.component import (
    ComponentResult,
    EnvironmentComponent,
    FailureCode,
    InstallStatus,
)
from hostprep.core.models.environment import EnvironmentResult
from hostprep.core.use_cases.check import CheckResult, run_check
from hostprep.core.use_cases.install import InstallResult, run_install
from hostprep.core.use_cases.launch import LaunchResult, distro_installed, run_runtime

C = EnvironmentComponent


def _env(*results):
    env = EnvironmentResult()
    for r in results:
        env.add(r)
    return env


@pytest.fixture
def broken_config(tmp_path):
    path = tmp_path / "broken.yml"
    path.write_text("proxy_url: [unclosed\n", encoding="utf-8")
    return path


# ── check ────────────────────────────────────────────────────────────


class TestCheckResult:
    def test_ready(self):
        assert CheckResult(environment=_env(ComponentResult.success(C.OS_VERSION))).exit_code == 0

    def test_warning_is_ready(self):
        env = _env(ComponentResult.warning(C.NVIDIA_DRIVER, "toolkit 12.7"))
        assert CheckResult(environment=env).exit_code == 0

    def test_not_ready(self):
        env = _env(ComponentResult.failure(C.NVIDIA_GPU, "none", FailureCode.GPU_NOT_FOUND))
        assert CheckResult(environment=env).exit_code == 2

    def test_reboot_pending_is_not_ready(self):
        env = _env(ComponentResult.reboot(C.SUBSYSTEM, "restart"))
        assert CheckResult(environment=env).exit_code == 2

    def test_error(self):
        r = CheckResult(error="bad config")
        assert r.exit_code == 1
        assert r.to_dict() == {"error": "bad config"}


class TestRunCheck:
    def test_uses_given_installer(self, context, executor, relay):
        installer = EnvironmentInstaller(
            context, executor, relay,
            components=[OSVersionChecker(context, version_reader=lambda: OSVersionInfo(10, 0, 22631, True))],
        )
        seen = []
        result = run_check(installer=installer, on_result=seen.append)
        assert result.exit_code == 0
        assert len(seen) == 1
        assert result.to_dict()["verdict"] == "success"

    def test_config_error(self, broken_config):
        result = run_check(config_path=broken_config)
        assert result.exit_code == 1
        assert "Invalid YAML" in result.error


# ── install ──────────────────────────────────────────────────────────


class TestInstallResult:
    def test_success(self):
        assert InstallResult(environment=_env(ComponentResult.skipped(C.OS_VERSION))).exit_code == 0

    def test_reboot_is_expected_stop(self):
        env = _env(ComponentResult.reboot(C.SUBSYSTEM, "features enabled", status=InstallStatus.SUCCESS))
        r = InstallResult(environment=env)
        assert r.reboot_required
        assert r.exit_code == 0

    def test_failure(self):
        env = _env(ComponentResult.failure(C.PIP_UPGRADE, "network", FailureCode.PIP_UNAVAILABLE))
        assert InstallResult(environment=env).exit_code == 3

    def test_config_error(self, broken_config):
        result = run_install(config_path=broken_config)
        assert result.exit_code == 1
        assert not result.reboot_required


class TestRunInstall:
    def test_passes_progress_through(self, context, executor, relay):
        installer = EnvironmentInstaller(
            context, executor, relay,
            components=[OSVersionChecker(context, version_reader=lambda: OSVersionInfo(11, 0, 26100, True))],
        )
        events = []
        result = run_install(installer=installer, on_progress=lambda *e: events.append(e))
        assert result.exit_code == 0
        assert events[-1][2] == 100


# ── launch ───────────────────────────────────────────────────────────


class TestRunRuntime:
    def test_runs_in_project_venv(self, executor, relay):
        executor.on("wsl --list --quiet", stdout="Ubuntu-24.04\ndocker-desktop\n")
        result = run_runtime(
            "run", ("--model", "Qwen/Qwen3-0.6B", "--prompt", "hello world"),
            executor=executor, relay=relay,
        )
        assert result.exit_code == 0
        assert result.child_exit_code == 0
        command = relay.commands[0]
        assert command.startswith("cd ~/prakasa && export PATH=/usr/local/cuda-12.8/bin:")
        assert "source ./venv/bin/activate" in command
        assert command.endswith("prakasa run --model Qwen/Qwen3-0.6B --prompt 'hello world'")

    def test_proxy_from_config(self, executor, relay, isolated_config):
        isolated_config.parent.mkdir(parents=True, exist_ok=True)
        isolated_config.write_text("proxy_url: http://proxy:8080\n", encoding="utf-8")
        executor.on("wsl --list --quiet", stdout="Ubuntu-24.04\n")
        run_runtime("chat", executor=executor, relay=relay)
        assert "HTTP_PROXY=http://proxy:8080 HTTPS_PROXY=http://proxy:8080 prakasa chat" in relay.commands[0]

    def test_missing_distro(self, executor, relay):
        executor.on("wsl --list --quiet", stdout="docker-desktop\n")
        result = run_runtime("join", executor=executor, relay=relay)
        assert result.exit_code == 3
        assert "hostprep install" in result.error
        assert relay.call_count == 0

    def test_child_failure(self, executor, relay):
        executor.on("wsl --list --quiet", stdout="Ubuntu-24.04\n")
        relay.on("prakasa join", 2)
        result = run_runtime("join", executor=executor, relay=relay)
        assert result.child_exit_code == 2
        assert result.exit_code == 3
        assert result.to_dict()["child_exit_code"] == 2

    def test_unknown_verb(self, executor, relay):
        with pytest.raises(ValueError, match="Unknown runtime verb"):
            run_runtime("serve", executor=executor, relay=relay)

    def test_config_error(self, broken_config, executor, relay):
        result = run_runtime("run", config_path=broken_config, executor=executor, relay=relay)
        assert result.exit_code == 1
        assert executor.call_count == 0


class TestLaunchHelpers:
    def test_distro_installed(self, executor):
        executor.on("wsl --list --quiet", stdout="  Ubuntu-24.04  \n")
        assert distro_installed(executor, "Ubuntu-24.04")
        assert not distro_installed(executor, "Ubuntu-22.04")

    def test_listing_failure(self, executor):
        assert not distro_installed(executor, "Ubuntu-24.04")

    def test_launch_result_without_child(self):
        assert LaunchResult(verb="run", error="x").exit_code == 3
