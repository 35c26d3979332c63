"""
WSL kernel and Linux distribution.

Check is read-only: ``wsl --status`` must respond without a pending
restart, and ``wsl --list --verbose`` must show the configured distro
running under WSL 2.

Install enables the Windows features, updates the kernel, and registers
the distro. Enabling features can demand a restart (dism exit 3010);
the component then stops and reports it, since nothing further works
until the host has rebooted.
"""

from __future__ import annotations

import logging
import re

from hostprep.adapters.base import Target
from hostprep.core.environment.base import EnvironmentComponentBase
from hostprep.core.environment.sequence import CommandStep, run_command_sequence
from hostprep.core.models.component import (
    ComponentResult,
    EnvironmentComponent,
    FailureCode,
    InstallStatus,
)

logger = logging.getLogger(__name__)

WINDOWS_FEATURES = ("Microsoft-Windows-Subsystem-Linux", "VirtualMachinePlatform")
EXIT_REBOOT_REQUIRED = 3010

_RESTART_PHRASES = (
    "restart is required",
    "requires a restart",
    "reboot is required",
    "requires a reboot",
    "pending restart",
    "pending reboot",
    "restart your computer",
    "restart your machine",
)


def parse_wsl_list_verbose(text: str) -> dict[str, int]:
    """Map distro name → WSL version from ``wsl --list --verbose``.

    ``*  Ubuntu-24.04    Running    2`` → ``{"Ubuntu-24.04": 2}``.
    The header row and malformed lines are ignored.
    """
    distros: dict[str, int] = {}
    for line in text.splitlines():
        fields = line.replace("*", " ").split()
        if len(fields) < 3 or fields[0].upper() == "NAME":
            continue
        if not fields[-1].isdigit():
            continue
        distros[fields[0]] = int(fields[-1])
    return distros


def reports_pending_restart(text: str) -> bool:
    lowered = text.lower()
    return any(phrase in lowered for phrase in _RESTART_PHRASES)


def launcher_executable(distro: str) -> str:
    """Store launcher for a distro: ``Ubuntu-24.04`` → ``ubuntu2404.exe``."""
    return re.sub(r"[^a-z0-9]", "", distro.lower()) + ".exe"


class SubsystemInstaller(EnvironmentComponentBase):
    component_type = EnvironmentComponent.SUBSYSTEM

    @property
    def distro(self) -> str:
        return self.context.subsystem_distro_id

    def installed_distros(self) -> dict[str, int] | None:
        """Registered distros, or None when the listing fails."""
        listing = self.executor.host("wsl --list --verbose")
        if not listing.ok:
            return None
        return parse_wsl_list_verbose(listing.stdout)

    # ── Check ───────────────────────────────────────────────────

    def check(self) -> ComponentResult:
        self._log_start("Checking")
        result = self._probe()
        self._log_result("Checking", result)
        return result

    def _probe(self) -> ComponentResult:
        status = self.executor.host("wsl --status")
        if reports_pending_restart(status.output):
            return self._reboot(
                "WSL reports a pending restart. Restart Windows and run install again."
            )
        if not status.ok:
            return self._failure(
                "WSL is not installed or not responding",
                FailureCode.SUBSYSTEM_UNAVAILABLE,
            )

        distros = self.installed_distros()
        if distros is None or self.distro not in distros:
            return self._failure(
                f"Linux distribution {self.distro} is not installed",
                FailureCode.SUBSYSTEM_UNAVAILABLE,
            )
        if distros[self.distro] != 2:
            return self._failure(
                f"{self.distro} runs under WSL {distros[self.distro]}, WSL 2 is required",
                FailureCode.SUBSYSTEM_UNAVAILABLE,
            )
        return self._success(f"WSL 2 with {self.distro} is available")

    # ── Install ─────────────────────────────────────────────────

    def install(self) -> ComponentResult:
        self._log_start("Installing")
        current = self._probe()
        if current.ok:
            result = self._skipped(current.message)
        elif current.reboot_required:
            result = current
        else:
            result = self._install()
        self._log_result("Installing", result)
        return result

    def _install(self) -> ComponentResult:
        needs_restart = False
        for feature in WINDOWS_FEATURES:
            command = (
                f"dism.exe /online /enable-feature /featurename:{feature} "
                "/all /norestart"
            )
            enabled = self.executor.host(command, timeout=600)
            if enabled.exit_code == EXIT_REBOOT_REQUIRED:
                needs_restart = True
            elif not enabled.ok:
                return self._failure(
                    f"Failed at step 'enable_{feature}': {command}",
                    FailureCode.SUBSYSTEM_UNAVAILABLE,
                )

        if needs_restart:
            return self._reboot(
                "Windows features for WSL were enabled. Restart Windows and "
                "run install again to finish the setup.",
                status=InstallStatus.SUCCESS,
            )

        kernel = self._update_kernel()
        if kernel is not None:
            return kernel

        sequence = run_command_sequence(
            self._distro_steps(),
            self.executor,
            self._relay,
            self.component_type,
            FailureCode.SUBSYSTEM_UNAVAILABLE,
            "WSL distribution setup",
        )
        if sequence.failed:
            return sequence

        verified = self._probe()
        if verified.ok:
            return self._success(f"WSL 2 and {self.distro} installed successfully")
        if verified.reboot_required:
            return verified
        return self._failure(
            f"WSL setup completed but verification failed: {verified.message}",
            FailureCode.SUBSYSTEM_UNAVAILABLE,
        )

    def _update_kernel(self) -> ComponentResult | None:
        """Update the WSL kernel; None on success, a result to stop with otherwise."""
        if self.executor.host("wsl --update", timeout=600).ok:
            return None

        logger.warning("[ENV] wsl --update failed, falling back to MSI packages")
        for url in (self.context.wsl_installer_url, self.context.wsl_kernel_url):
            command = (
                "$p = Start-Process msiexec.exe -Wait -PassThru "
                f"-ArgumentList '/i \"{url}\" /quiet /norestart'; exit $p.ExitCode"
            )
            installed = self.executor.host(command, timeout=900)
            if installed.exit_code == EXIT_REBOOT_REQUIRED:
                return self._reboot(
                    "The WSL kernel was updated. Restart Windows and run install again.",
                    status=InstallStatus.SUCCESS,
                )
            if installed.ok:
                return None

        return self._failure(
            "Failed at step 'update_kernel': wsl --update",
            FailureCode.SUBSYSTEM_UNAVAILABLE,
        )

    def _distro_steps(self) -> list[CommandStep]:
        steps = [
            CommandStep(
                "set_default_version", "wsl --set-default-version 2",
                timeout=120, target=Target.HOST,
            ),
        ]
        distros = self.installed_distros() or {}
        if self.distro in distros:
            steps.append(CommandStep(
                "convert_distro", f"wsl --set-version {self.distro} 2",
                timeout=1800, realtime=True, target=Target.HOST,
            ))
            return steps

        steps.append(CommandStep(
            "install_distro", f"wsl --install -d {self.distro} --no-launch",
            timeout=1800, realtime=True, target=Target.HOST,
        ))
        steps.append(CommandStep(
            "register_distro", f"{launcher_executable(self.distro)} install --root",
            timeout=1800, realtime=True, target=Target.HOST,
        ))
        return steps
