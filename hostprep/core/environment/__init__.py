"""
Environment components and the installer that orchestrates them.
"""

from hostprep.core.environment.base import EnvironmentComponentBase
from hostprep.core.environment.installer import PREREQUISITES, EnvironmentInstaller
from hostprep.core.environment.project import ProjectDeployer
from hostprep.core.environment.subsystem import SubsystemInstaller
from hostprep.core.environment.system import (
    BIOSVirtualizationChecker,
    NvidiaDriverChecker,
    NvidiaGPUChecker,
    OSVersionChecker,
)
from hostprep.core.environment.toolchain import DevToolsInstaller, PipUpgradeManager

__all__ = [
    "BIOSVirtualizationChecker",
    "DevToolsInstaller",
    "EnvironmentComponentBase",
    "EnvironmentInstaller",
    "NvidiaDriverChecker",
    "NvidiaGPUChecker",
    "OSVersionChecker",
    "PREREQUISITES",
    "PipUpgradeManager",
    "ProjectDeployer",
    "SubsystemInstaller",
]
