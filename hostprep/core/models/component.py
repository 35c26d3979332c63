"""
Component identity and per-component results.

A ComponentResult is created once per component per run and never
modified afterwards. Components return results, never exceptions.
"""

from __future__ import annotations

import enum
from typing import Any

from pydantic import BaseModel, ConfigDict


class EnvironmentComponent(str, enum.Enum):
    """The fixed set of environment components, in install order."""

    OS_VERSION = "os_version"
    NVIDIA_GPU = "nvidia_gpu"
    NVIDIA_DRIVER = "nvidia_driver"
    BIOS_VIRTUALIZATION = "bios_virtualization"
    SUBSYSTEM = "subsystem"
    DEV_TOOLS = "dev_tools"
    PIP_UPGRADE = "pip_upgrade"
    PROJECT_DEPLOYMENT = "project_deployment"


_DISPLAY_NAMES = {
    EnvironmentComponent.OS_VERSION: "OS Version",
    EnvironmentComponent.NVIDIA_GPU: "NVIDIA GPU Hardware",
    EnvironmentComponent.NVIDIA_DRIVER: "NVIDIA Driver",
    EnvironmentComponent.BIOS_VIRTUALIZATION: "BIOS Virtualization",
    EnvironmentComponent.SUBSYSTEM: "WSL Kernel & Distro",
    EnvironmentComponent.DEV_TOOLS: "Development Tools",
    EnvironmentComponent.PIP_UPGRADE: "pip Upgrade",
    EnvironmentComponent.PROJECT_DEPLOYMENT: "Project Deployment",
}


def component_display_name(component: EnvironmentComponent) -> str:
    return _DISPLAY_NAMES[component]


class InstallStatus(str, enum.Enum):
    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILED = "failed"
    WARNING = "warning"
    IN_PROGRESS = "in_progress"


class FailureCode(enum.IntEnum):
    """Stable diagnostic codes. These are not process exit codes."""

    NONE = 0
    GPU_NOT_FOUND = 7
    GPU_BELOW_MINIMUM = 8
    OS_UNSUPPORTED = 10
    DRIVER_NOT_FOUND = 20
    VIRTUALIZATION_DISABLED = 21
    SUBSYSTEM_UNAVAILABLE = 22
    DEV_TOOLS_MISSING = 23
    PIP_UNAVAILABLE = 24
    PROJECT_NOT_INSTALLED = 25
    REBOOT_REQUIRED = 30


class ComponentResult(BaseModel):
    """Outcome of one check or install for one component.

    ``failure_code`` is only meaningful when ``status`` is failed; the
    factories force ``FailureCode.NONE`` for every other status.
    """

    model_config = ConfigDict(frozen=True)

    component: EnvironmentComponent
    status: InstallStatus
    message: str = ""
    failure_code: FailureCode = FailureCode.NONE
    reboot_required: bool = False
    blocked_by: EnvironmentComponent | None = None

    @property
    def ok(self) -> bool:
        """Satisfied: success, skipped or warning."""
        return self.status in (
            InstallStatus.SUCCESS, InstallStatus.SKIPPED, InstallStatus.WARNING,
        )

    @property
    def failed(self) -> bool:
        return self.status == InstallStatus.FAILED

    @property
    def component_name(self) -> str:
        return component_display_name(self.component)

    # ── Factories ───────────────────────────────────────────────

    @classmethod
    def success(cls, component: EnvironmentComponent, message: str = "") -> ComponentResult:
        return cls(component=component, status=InstallStatus.SUCCESS, message=message)

    @classmethod
    def skipped(cls, component: EnvironmentComponent, message: str = "") -> ComponentResult:
        return cls(component=component, status=InstallStatus.SKIPPED, message=message)

    @classmethod
    def warning(cls, component: EnvironmentComponent, message: str = "") -> ComponentResult:
        return cls(component=component, status=InstallStatus.WARNING, message=message)

    @classmethod
    def failure(
        cls,
        component: EnvironmentComponent,
        message: str,
        failure_code: FailureCode,
    ) -> ComponentResult:
        return cls(
            component=component,
            status=InstallStatus.FAILED,
            message=message,
            failure_code=failure_code,
        )

    @classmethod
    def reboot(
        cls,
        component: EnvironmentComponent,
        message: str,
        status: InstallStatus = InstallStatus.FAILED,
    ) -> ComponentResult:
        """A result that requires a host restart before anything else."""
        return cls(
            component=component,
            status=status,
            message=message,
            failure_code=(
                FailureCode.REBOOT_REQUIRED
                if status == InstallStatus.FAILED else FailureCode.NONE
            ),
            reboot_required=True,
        )

    @classmethod
    def blocked(
        cls,
        component: EnvironmentComponent,
        prerequisite: EnvironmentComponent,
    ) -> ComponentResult:
        """Skipped because a hard prerequisite did not complete."""
        return cls(
            component=component,
            status=InstallStatus.SKIPPED,
            message=(
                f"Skipped: requires {component_display_name(prerequisite)}, "
                "which did not complete"
            ),
            blocked_by=prerequisite,
        )

    def to_dict(self) -> dict[str, Any]:
        data = self.model_dump(mode="json")
        data["name"] = self.component_name
        return data
