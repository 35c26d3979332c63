"""
Run-scoped state: the shared execution context and the aggregated result.

Both are created at the start of a check or install call and discarded
at its end. Nothing here is persisted.
"""

from __future__ import annotations

import enum
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field

from hostprep.core.models.component import ComponentResult, InstallStatus

if TYPE_CHECKING:
    from hostprep.core.config.store import ConfigStore


class Verdict(str, enum.Enum):
    SUCCESS = "success"
    WARNING = "warning"
    FAILED = "failed"
    REBOOT_REQUIRED = "reboot_required"


class ExecutionContext(BaseModel):
    """Read-only values every component needs during one run."""

    model_config = ConfigDict(frozen=True)

    subsystem_distro_id: str = "Ubuntu-24.04"
    proxy_url: str | None = None
    project_repo_url: str = "https://github.com/hetu-project/prakasa.git"
    project_branch: str = "main"
    project_dir: str = "~/prakasa"
    project_package: str = "prakasa"
    wsl_installer_url: str = (
        "https://github.com/microsoft/WSL/releases/download/2.4.13/"
        "wsl.2.4.13.0.x64.msi"
    )
    wsl_kernel_url: str = (
        "https://wslstorestorage.blob.core.windows.net/wslblob/wsl_update_x64.msi"
    )

    @classmethod
    def from_config(cls, store: ConfigStore) -> ExecutionContext:
        from hostprep.core.config import store as keys

        defaults = cls()
        return cls(
            subsystem_distro_id=store.get_value(
                keys.KEY_WSL_LINUX_DISTRO, defaults.subsystem_distro_id,
            ),
            proxy_url=store.get_value(keys.KEY_PROXY_URL, "") or None,
            project_repo_url=store.get_value(
                keys.KEY_PROJECT_REPO_URL, defaults.project_repo_url,
            ),
            project_branch=store.get_value(
                keys.KEY_PROJECT_BRANCH, defaults.project_branch,
            ),
            project_dir=store.get_value(keys.KEY_PROJECT_DIR, defaults.project_dir),
            project_package=store.get_value(
                keys.KEY_PROJECT_PACKAGE, defaults.project_package,
            ),
            wsl_installer_url=store.get_value(
                keys.KEY_WSL_INSTALLER_URL, defaults.wsl_installer_url,
            ),
            wsl_kernel_url=store.get_value(
                keys.KEY_WSL_KERNEL_URL, defaults.wsl_kernel_url,
            ),
        )


class EnvironmentResult(BaseModel):
    """Ordered component results for one orchestrator call."""

    component_results: list[ComponentResult] = Field(default_factory=list)
    reboot_required: bool = False
    overall_message: str = ""

    def add(self, result: ComponentResult) -> None:
        self.component_results.append(result)
        # Monotonic: once set, stays set for the rest of the run.
        if result.reboot_required:
            self.reboot_required = True

    def get(self, component) -> ComponentResult | None:
        for result in self.component_results:
            if result.component == component:
                return result
        return None

    @property
    def failed(self) -> list[ComponentResult]:
        return [r for r in self.component_results if r.status == InstallStatus.FAILED]

    @property
    def warnings(self) -> list[ComponentResult]:
        return [r for r in self.component_results if r.status == InstallStatus.WARNING]

    @property
    def verdict(self) -> Verdict:
        if self.reboot_required:
            return Verdict.REBOOT_REQUIRED
        if self.failed:
            return Verdict.FAILED
        if self.warnings:
            return Verdict.WARNING
        return Verdict.SUCCESS

    def to_dict(self) -> dict[str, Any]:
        return {
            "verdict": self.verdict.value,
            "reboot_required": self.reboot_required,
            "overall_message": self.overall_message,
            "components": [r.to_dict() for r in self.component_results],
        }
