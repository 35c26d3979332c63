"""
Tests for the WSL kernel and distro component.
"""

from hostprep.adapters.base import Target
from hostprep.core.environment.subsystem import (
    SubsystemInstaller,
    launcher_executable,
    parse_wsl_list_verbose,
    reports_pending_restart,
)
from hostprep.core.models.component import FailureCode, InstallStatus

LISTING = (
    "  NAME            STATE           VERSION\n"
    "* Ubuntu-24.04    Running         2\n"
    "  docker-desktop  Stopped         2\n"
)
LISTING_WSL1 = (
    "  NAME            STATE           VERSION\n"
    "* Ubuntu-24.04    Stopped         1\n"
)
EMPTY_LISTING = "  NAME            STATE           VERSION\n"


def _healthy(executor):
    executor.on("wsl --status", stdout="Default Version: 2\n")
    executor.on("wsl --list --verbose", stdout=LISTING)


# ── Parsing helpers ──────────────────────────────────────────────────


class TestParsing:
    def test_parse_listing(self):
        assert parse_wsl_list_verbose(LISTING) == {"Ubuntu-24.04": 2, "docker-desktop": 2}

    def test_parse_ignores_garbage(self):
        assert parse_wsl_list_verbose("Windows Subsystem for Linux has no installed distributions.") == {}

    def test_pending_restart(self):
        assert reports_pending_restart("A restart is required to complete the operation.")
        assert not reports_pending_restart("Default Version: 2")

    def test_launcher_executable(self):
        assert launcher_executable("Ubuntu-24.04") == "ubuntu2404.exe"
        assert launcher_executable("Ubuntu-22.04") == "ubuntu2204.exe"


# ── Check ────────────────────────────────────────────────────────────


class TestSubsystemCheck:
    def test_satisfied(self, context, executor):
        _healthy(executor)
        r = SubsystemInstaller(context, executor).check()
        assert r.status == InstallStatus.SUCCESS
        assert "Ubuntu-24.04" in r.message

    def test_wsl_not_responding(self, context, executor):
        r = SubsystemInstaller(context, executor).check()
        assert r.failed
        assert r.failure_code == FailureCode.SUBSYSTEM_UNAVAILABLE

    def test_distro_missing(self, context, executor):
        executor.on("wsl --status", stdout="Default Version: 2\n")
        executor.on("wsl --list --verbose", stdout=EMPTY_LISTING)
        r = SubsystemInstaller(context, executor).check()
        assert r.failure_code == FailureCode.SUBSYSTEM_UNAVAILABLE
        assert "not installed" in r.message

    def test_wsl1_distro(self, context, executor):
        executor.on("wsl --status", stdout="Default Version: 2\n")
        executor.on("wsl --list --verbose", stdout=LISTING_WSL1)
        r = SubsystemInstaller(context, executor).check()
        assert r.failure_code == FailureCode.SUBSYSTEM_UNAVAILABLE
        assert "WSL 2 is required" in r.message

    def test_pending_restart(self, context, executor):
        executor.on("wsl --status", exit_code=1, stdout="A restart is required for the change to take effect.")
        r = SubsystemInstaller(context, executor).check()
        assert r.failed
        assert r.reboot_required
        assert r.failure_code == FailureCode.REBOOT_REQUIRED


# ── Install ──────────────────────────────────────────────────────────


class TestSubsystemInstall:
    def test_satisfied_is_skipped_without_mutation(self, context, executor, relay):
        _healthy(executor)
        r = SubsystemInstaller(context, executor, relay).install()
        assert r.status == InstallStatus.SKIPPED
        assert not executor.ran("dism")
        assert relay.call_count == 0

    def test_pending_restart_stops_before_installing(self, context, executor, relay):
        executor.on("wsl --status", stdout="Changes will not be effective until a restart is required.")
        r = SubsystemInstaller(context, executor, relay).install()
        assert r.reboot_required
        assert not executor.ran("dism")

    def test_fresh_install(self, context, executor, relay):
        executor.on("wsl --status", exit_code=1)
        executor.on("wsl --status", stdout="Default Version: 2\n")
        executor.on("dism.exe")
        executor.on("wsl --update")
        executor.on("wsl --set-default-version")
        executor.on("wsl --list --verbose", stdout=EMPTY_LISTING)
        executor.on("wsl --list --verbose", stdout=LISTING)

        r = SubsystemInstaller(context, executor, relay).install()

        assert r.status == InstallStatus.SUCCESS
        assert r.message == "WSL 2 and Ubuntu-24.04 installed successfully"
        assert relay.commands == [
            "wsl --install -d Ubuntu-24.04 --no-launch",
            "ubuntu2404.exe install --root",
        ]
        assert executor.ran("/featurename:Microsoft-Windows-Subsystem-Linux")
        assert executor.ran("/featurename:VirtualMachinePlatform")

    def test_existing_wsl1_distro_is_converted(self, context, executor, relay):
        executor.on("wsl --status", stdout="Default Version: 2\n")
        executor.on("wsl --list --verbose", stdout=LISTING_WSL1)
        executor.on("wsl --list --verbose", stdout=LISTING_WSL1)
        executor.on("wsl --list --verbose", stdout=LISTING)
        executor.on("dism.exe")
        executor.on("wsl --update")
        executor.on("wsl --set-default-version")

        r = SubsystemInstaller(context, executor, relay).install()

        assert r.status == InstallStatus.SUCCESS
        assert relay.commands == ["wsl --set-version Ubuntu-24.04 2"]

    def test_feature_enable_needs_restart(self, context, executor, relay):
        executor.on("wsl --status", exit_code=1)
        executor.on("dism.exe", exit_code=3010)
        r = SubsystemInstaller(context, executor, relay).install()
        assert r.status == InstallStatus.SUCCESS
        assert r.reboot_required
        assert not executor.ran("wsl --update")
        assert relay.call_count == 0

    def test_feature_enable_failure(self, context, executor, relay):
        executor.on("wsl --status", exit_code=1)
        executor.on("dism.exe", exit_code=5)
        r = SubsystemInstaller(context, executor, relay).install()
        assert r.failed
        assert r.message.startswith("Failed at step 'enable_Microsoft-Windows-Subsystem-Linux'")

    def test_kernel_update_falls_back_to_msi(self, context, executor, relay):
        executor.on("wsl --status", exit_code=1)
        executor.on("wsl --status", stdout="Default Version: 2\n")
        executor.on("dism.exe")
        executor.on("wsl --update", exit_code=1)
        executor.on("msiexec.exe")
        executor.on("wsl --set-default-version")
        executor.on("wsl --list --verbose", stdout=EMPTY_LISTING)
        executor.on("wsl --list --verbose", stdout=LISTING)

        r = SubsystemInstaller(context, executor, relay).install()

        assert r.ok
        assert executor.ran(context.wsl_installer_url)
        assert not executor.ran(context.wsl_kernel_url)

    def test_kernel_msi_needs_restart(self, context, executor, relay):
        executor.on("wsl --status", exit_code=1)
        executor.on("dism.exe")
        executor.on("wsl --update", exit_code=1)
        executor.on("msiexec.exe", exit_code=3010)
        r = SubsystemInstaller(context, executor, relay).install()
        assert r.reboot_required
        assert r.status == InstallStatus.SUCCESS

    def test_kernel_update_failure(self, context, executor, relay):
        executor.on("wsl --status", exit_code=1)
        executor.on("dism.exe")
        executor.on("wsl --update", exit_code=1)
        executor.on("msiexec.exe", exit_code=1603)
        r = SubsystemInstaller(context, executor, relay).install()
        assert r.failed
        assert r.message == "Failed at step 'update_kernel': wsl --update"
        assert executor.ran(context.wsl_kernel_url)

    def test_distro_install_failure(self, context, executor, relay):
        executor.on("wsl --status", exit_code=1)
        executor.on("dism.exe")
        executor.on("wsl --update")
        executor.on("wsl --set-default-version")
        executor.on("wsl --list --verbose", stdout=EMPTY_LISTING)
        relay.on("wsl --install", 1)

        r = SubsystemInstaller(context, executor, relay).install()

        assert r.failed
        assert "'install_distro'" in r.message
        assert relay.commands == ["wsl --install -d Ubuntu-24.04 --no-launch"]

    def test_verification_failure(self, context, executor, relay):
        executor.on("wsl --status", exit_code=1)
        executor.on("dism.exe")
        executor.on("wsl --update")
        executor.on("wsl --set-default-version")
        executor.on("wsl --list --verbose", stdout=EMPTY_LISTING)

        r = SubsystemInstaller(context, executor, relay).install()

        assert r.failed
        assert "verification failed" in r.message

    def test_default_version_runs_on_host(self, context, executor, relay):
        executor.on("wsl --status", exit_code=1)
        executor.on("wsl --status", stdout="Default Version: 2\n")
        executor.on("dism.exe")
        executor.on("wsl --update")
        executor.on("wsl --set-default-version")
        executor.on("wsl --list --verbose", stdout=EMPTY_LISTING)
        executor.on("wsl --list --verbose", stdout=LISTING)

        SubsystemInstaller(context, executor, relay).install()

        step = next(c for c in executor.calls if "set-default-version" in c.command)
        assert step.target == Target.HOST
