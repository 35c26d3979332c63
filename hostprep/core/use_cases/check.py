"""
Check use case — probe every environment component without changing anything.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from hostprep.core.config.store import ConfigError, ConfigStore
from hostprep.core.environment.installer import EnvironmentInstaller
from hostprep.core.models.component import ComponentResult
from hostprep.core.models.environment import EnvironmentResult, ExecutionContext, Verdict

EXIT_OK = 0
EXIT_CONFIG_ERROR = 1
EXIT_NOT_READY = 2


@dataclass
class CheckResult:
    """Outcome of ``hostprep check``."""

    environment: EnvironmentResult | None = None
    error: str | None = None

    @property
    def exit_code(self) -> int:
        if self.error or self.environment is None:
            return EXIT_CONFIG_ERROR
        if self.environment.verdict in (Verdict.SUCCESS, Verdict.WARNING):
            return EXIT_OK
        return EXIT_NOT_READY

    def to_dict(self) -> dict:
        if self.error:
            return {"error": self.error}
        assert self.environment is not None
        return self.environment.to_dict()


def run_check(
    config_path: Path | None = None,
    installer: EnvironmentInstaller | None = None,
    on_result: Callable[[ComponentResult], None] | None = None,
) -> CheckResult:
    """Check the host environment.

    Args:
        config_path: Optional explicit config file.
        installer: Pre-built installer (tests); otherwise one is built
            from the configuration.
        on_result: Called with each component result as it arrives.
    """
    if installer is None:
        try:
            context = ExecutionContext.from_config(ConfigStore(config_path))
        except ConfigError as e:
            return CheckResult(error=str(e))
        installer = EnvironmentInstaller(context)

    return CheckResult(environment=installer.check_environment(on_result=on_result))
