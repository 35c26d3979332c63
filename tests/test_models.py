"""
Tests for component results, the execution context and the aggregated result.
"""

import pytest
from pydantic import ValidationError

from hostprep.core.config.store import ConfigStore
from hostprep.core.models.component import (
    ComponentResult,
    EnvironmentComponent,
    FailureCode,
    InstallStatus,
    component_display_name,
)
from hostprep.core.models.environment import (
    EnvironmentResult,
    ExecutionContext,
    Verdict,
)

C = EnvironmentComponent


# ── ComponentResult ──────────────────────────────────────────────────


class TestComponentResult:
    def test_success_has_no_failure_code(self):
        r = ComponentResult.success(C.OS_VERSION, "Windows 10.0.22631 (supported)")
        assert r.status == InstallStatus.SUCCESS
        assert r.failure_code == FailureCode.NONE
        assert r.ok
        assert not r.failed

    def test_failure_carries_code(self):
        r = ComponentResult.failure(C.NVIDIA_GPU, "No NVIDIA GPU detected", FailureCode.GPU_NOT_FOUND)
        assert r.failed
        assert not r.ok
        assert int(r.failure_code) == 7

    def test_warning_and_skipped_are_ok(self):
        assert ComponentResult.warning(C.NVIDIA_DRIVER, "old toolkit").ok
        assert ComponentResult.skipped(C.PIP_UPGRADE, "pip is available").ok

    def test_failed_reboot_uses_reboot_code(self):
        r = ComponentResult.reboot(C.SUBSYSTEM, "restart pending")
        assert r.failed
        assert r.reboot_required
        assert r.failure_code == FailureCode.REBOOT_REQUIRED

    def test_successful_reboot_has_no_failure_code(self):
        r = ComponentResult.reboot(C.SUBSYSTEM, "features enabled", status=InstallStatus.SUCCESS)
        assert r.ok
        assert r.reboot_required
        assert r.failure_code == FailureCode.NONE

    def test_blocked(self):
        r = ComponentResult.blocked(C.DEV_TOOLS, C.SUBSYSTEM)
        assert r.status == InstallStatus.SKIPPED
        assert r.blocked_by == C.SUBSYSTEM
        assert "WSL Kernel & Distro" in r.message

    def test_frozen(self):
        r = ComponentResult.success(C.OS_VERSION)
        with pytest.raises(ValidationError):
            r.message = "changed"

    def test_to_dict(self):
        d = ComponentResult.failure(C.PIP_UPGRADE, "pip is not installed", FailureCode.PIP_UNAVAILABLE).to_dict()
        assert d["component"] == "pip_upgrade"
        assert d["status"] == "failed"
        assert d["failure_code"] == 24
        assert d["name"] == "pip Upgrade"

    def test_every_component_has_display_name(self):
        for component in EnvironmentComponent:
            assert component_display_name(component)


# ── EnvironmentResult ────────────────────────────────────────────────


class TestEnvironmentResult:
    def test_empty_is_success(self):
        assert EnvironmentResult().verdict == Verdict.SUCCESS

    def test_warning(self):
        env = EnvironmentResult()
        env.add(ComponentResult.success(C.OS_VERSION))
        env.add(ComponentResult.warning(C.NVIDIA_DRIVER, "toolkit 12.7"))
        assert env.verdict == Verdict.WARNING
        assert len(env.warnings) == 1

    def test_failure_beats_warning(self):
        env = EnvironmentResult()
        env.add(ComponentResult.warning(C.NVIDIA_DRIVER, "toolkit 12.7"))
        env.add(ComponentResult.failure(C.NVIDIA_GPU, "below minimum", FailureCode.GPU_BELOW_MINIMUM))
        assert env.verdict == Verdict.FAILED

    def test_reboot_beats_failure(self):
        env = EnvironmentResult()
        env.add(ComponentResult.failure(C.NVIDIA_GPU, "below minimum", FailureCode.GPU_BELOW_MINIMUM))
        env.add(ComponentResult.reboot(C.SUBSYSTEM, "restart", status=InstallStatus.SUCCESS))
        assert env.verdict == Verdict.REBOOT_REQUIRED

    def test_reboot_flag_is_monotonic(self):
        env = EnvironmentResult()
        env.add(ComponentResult.reboot(C.SUBSYSTEM, "restart", status=InstallStatus.SUCCESS))
        env.add(ComponentResult.success(C.DEV_TOOLS))
        assert env.reboot_required

    def test_insertion_order_and_get(self):
        env = EnvironmentResult()
        env.add(ComponentResult.success(C.OS_VERSION))
        env.add(ComponentResult.success(C.NVIDIA_GPU))
        assert [r.component for r in env.component_results] == [C.OS_VERSION, C.NVIDIA_GPU]
        assert env.get(C.NVIDIA_GPU).component == C.NVIDIA_GPU
        assert env.get(C.PIP_UPGRADE) is None

    def test_to_dict(self):
        env = EnvironmentResult(overall_message="Environment is ready")
        env.add(ComponentResult.success(C.OS_VERSION, "ok"))
        d = env.to_dict()
        assert d["verdict"] == "success"
        assert d["reboot_required"] is False
        assert d["components"][0]["name"] == "OS Version"


# ── ExecutionContext ─────────────────────────────────────────────────


class TestExecutionContext:
    def test_defaults(self):
        ctx = ExecutionContext()
        assert ctx.subsystem_distro_id == "Ubuntu-24.04"
        assert ctx.proxy_url is None
        assert ctx.project_branch == "main"

    def test_from_config(self, tmp_path):
        store = ConfigStore(tmp_path / "config.yml")
        store.set_value("proxy_url", "http://proxy:8080")
        store.set_value("wsl_linux_distro", "Ubuntu-22.04")
        ctx = ExecutionContext.from_config(store)
        assert ctx.proxy_url == "http://proxy:8080"
        assert ctx.subsystem_distro_id == "Ubuntu-22.04"
        assert ctx.project_repo_url == "https://github.com/hetu-project/prakasa.git"

    def test_empty_proxy_becomes_none(self, tmp_path):
        store = ConfigStore(tmp_path / "config.yml")
        store.set_value("proxy_url", "")
        assert ExecutionContext.from_config(store).proxy_url is None

    def test_frozen(self):
        with pytest.raises(ValidationError):
            ExecutionContext().proxy_url = "http://x"
