"""
Build toolchain inside the subsystem: compilers, ninja, Rust, pip.
"""

from __future__ import annotations

import logging

from hostprep.core.environment import shell_text
from hostprep.core.environment.base import EnvironmentComponentBase
from hostprep.core.environment.sequence import CommandStep, run_command_sequence
from hostprep.core.models.component import (
    ComponentResult,
    EnvironmentComponent,
    FailureCode,
)

logger = logging.getLogger(__name__)

DEV_PACKAGES = ("build-essential", "ninja-build", "curl")
RUSTUP_URL = "https://sh.rustup.rs"

# rustup installs into ~/.cargo and only patches login shells.
_CARGO_ENV = '[ -f "$HOME/.cargo/env" ] && . "$HOME/.cargo/env"; '


class DevToolsInstaller(EnvironmentComponentBase):
    """C/C++ build tools, ninja and the Rust toolchain."""

    component_type = EnvironmentComponent.DEV_TOOLS

    def missing_tools(self) -> list[str]:
        missing = []
        for tool in ("cargo", "ninja"):
            probe = self.executor.subsystem(f"{_CARGO_ENV}{tool} --version")
            if not probe.ok or not probe.stdout.strip():
                missing.append(tool)
        return missing

    def check(self) -> ComponentResult:
        self._log_start("Checking")
        missing = self.missing_tools()
        if missing:
            result = self._failure(
                f"Development tools missing: {', '.join(missing)}",
                FailureCode.DEV_TOOLS_MISSING,
            )
        else:
            result = self._skipped("Development tools are available")
        self._log_result("Checking", result)
        return result

    def install(self) -> ComponentResult:
        self._log_start("Installing")
        if not self.missing_tools():
            result = self._skipped("Development tools are available")
            self._log_result("Installing", result)
            return result

        proxy = self.context.proxy_url
        steps = [
            CommandStep(
                "install_build_packages",
                shell_text.apt_install(DEV_PACKAGES, proxy),
                timeout=900,
            ),
            CommandStep(
                "install_rust",
                f"{shell_text.http_proxy_env(proxy)}"
                f"curl --proto '=https' --tlsv1.2 -sSf {RUSTUP_URL} | sh -s -- -y",
                timeout=900,
                realtime=True,
            ),
        ]
        result = run_command_sequence(
            steps, self.executor, self._relay,
            self.component_type, FailureCode.DEV_TOOLS_MISSING,
            "Development tools installation",
        )
        if result.ok:
            missing = self.missing_tools()
            if missing:
                result = self._failure(
                    "Development tools installed but still missing: "
                    + ", ".join(missing),
                    FailureCode.DEV_TOOLS_MISSING,
                )
            else:
                result = self._success("Development tools installed successfully")
        self._log_result("Installing", result)
        return result


class PipUpgradeManager(EnvironmentComponentBase):
    component_type = EnvironmentComponent.PIP_UPGRADE

    def pip_available(self) -> bool:
        probe = self.executor.subsystem("pip --version")
        return probe.ok and bool(probe.stdout.strip())

    def check(self) -> ComponentResult:
        self._log_start("Checking")
        if self.pip_available():
            result = self._skipped("pip is available")
        else:
            result = self._failure("pip is not installed", FailureCode.PIP_UNAVAILABLE)
        self._log_result("Checking", result)
        return result

    def install(self) -> ComponentResult:
        self._log_start("Upgrading")
        result = self._upgrade()
        self._log_result("Upgrading", result)
        return result

    def _upgrade(self) -> ComponentResult:
        proxy = self.context.proxy_url

        if not self.pip_available():
            logger.info("[ENV] Installing python3-pip in the subsystem...")
            options = shell_text.apt_proxy_options(proxy)
            command = (
                f"apt-get {options} install -y python3-pip" if options
                else "apt-get install -y python3-pip"
            )
            installed = self.executor.subsystem(command, timeout=300)
            if not installed.ok:
                return self._failure(
                    f"Failed to install python3-pip: {installed.output.strip()}",
                    FailureCode.PIP_UNAVAILABLE,
                )

        logger.info("[ENV] Upgrading pip in the subsystem...")
        proxy_option = f"--proxy {shell_text.quote_args([proxy])} " if proxy else ""
        command = (
            f"pip install {proxy_option}--upgrade pip "
            "--break-system-packages --ignore-installed"
        )
        upgraded = self.executor.subsystem(command, timeout=300)
        if not upgraded.ok:
            return self._failure(
                f"Failed to upgrade pip: {upgraded.output.strip()}",
                FailureCode.PIP_UNAVAILABLE,
            )
        return self._success("pip installed and upgraded successfully")
