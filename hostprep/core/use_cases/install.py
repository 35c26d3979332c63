"""
Install use case — bring every component to a satisfied state.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from hostprep.core.config.store import ConfigError, ConfigStore
from hostprep.core.environment.installer import EnvironmentInstaller, ProgressCallback
from hostprep.core.models.environment import EnvironmentResult, ExecutionContext, Verdict

EXIT_OK = 0
EXIT_CONFIG_ERROR = 1
EXIT_INSTALL_FAILED = 3


@dataclass
class InstallResult:
    """Outcome of ``hostprep install``."""

    environment: EnvironmentResult | None = None
    error: str | None = None

    @property
    def reboot_required(self) -> bool:
        return self.environment is not None and self.environment.reboot_required

    @property
    def exit_code(self) -> int:
        if self.error or self.environment is None:
            return EXIT_CONFIG_ERROR
        # A pending restart is an expected stop, not a failure.
        if self.environment.verdict in (
            Verdict.SUCCESS, Verdict.WARNING, Verdict.REBOOT_REQUIRED,
        ):
            return EXIT_OK
        return EXIT_INSTALL_FAILED

    def to_dict(self) -> dict:
        if self.error:
            return {"error": self.error}
        assert self.environment is not None
        return self.environment.to_dict()


def run_install(
    config_path: Path | None = None,
    installer: EnvironmentInstaller | None = None,
    on_progress: ProgressCallback | None = None,
) -> InstallResult:
    """Install the host environment.

    Args:
        config_path: Optional explicit config file.
        installer: Pre-built installer (tests); otherwise one is built
            from the configuration.
        on_progress: ``(step_label, message, percent)`` callback.
    """
    if installer is None:
        try:
            context = ExecutionContext.from_config(ConfigStore(config_path))
        except ConfigError as e:
            return InstallResult(error=str(e))
        installer = EnvironmentInstaller(context)

    return InstallResult(environment=installer.install_environment(on_progress=on_progress))
