"""
Host system checkers — OS, GPU hardware, GPU driver, firmware virtualization.

These components are probe-only: nothing here can be installed, so
``install()`` is the base-class default (re-check, satisfied → skipped).
"""

from __future__ import annotations

import logging
import platform
import re
import sys
from collections.abc import Callable
from typing import NamedTuple

from hostprep.core.environment import gpu
from hostprep.core.environment.base import EnvironmentComponentBase
from hostprep.core.models.component import (
    ComponentResult,
    EnvironmentComponent,
    FailureCode,
)

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════
#  OS version
# ═══════════════════════════════════════════════════════════════════


class OSVersionInfo(NamedTuple):
    major: int
    minor: int
    build: int
    is_64bit: bool


def read_windows_version() -> OSVersionInfo | None:
    """True OS version, unaffected by application compatibility shims.

    Returns ``None`` when not running on Windows.
    """
    getwindowsversion = getattr(sys, "getwindowsversion", None)
    if getwindowsversion is None:
        return None
    info = getwindowsversion()
    major, minor, build = info.platform_version
    is_64bit = platform.machine().upper() in ("AMD64", "X86_64", "ARM64")
    return OSVersionInfo(major, minor, build, is_64bit)


def os_version_supported(info: OSVersionInfo) -> bool:
    """Windows 11+, Windows 10 build 19041+, or build 18362+ on 64-bit."""
    if info.major >= 11:
        return True
    if info.major == 10:
        if info.build >= 19041:
            return True
        if info.build >= 18362:
            return info.is_64bit
    return False


class OSVersionChecker(EnvironmentComponentBase):
    component_type = EnvironmentComponent.OS_VERSION

    def __init__(
        self,
        context,
        executor=None,
        relay=None,
        version_reader: Callable[[], OSVersionInfo | None] = read_windows_version,
    ):
        super().__init__(context, executor, relay)
        self._read_version = version_reader

    def check(self) -> ComponentResult:
        self._log_start("Checking")
        info = self._read_version()
        if info is None:
            result = self._failure(
                "Unable to read the Windows version", FailureCode.OS_UNSUPPORTED,
            )
        else:
            version = f"Windows {info.major}.{info.minor}.{info.build}"
            if os_version_supported(info):
                result = self._success(f"{version} (supported)")
            else:
                result = self._failure(
                    f"{version} (unsupported - requires Windows 10 build 18362+ "
                    "on 64-bit, build 19041+, or Windows 11)",
                    FailureCode.OS_UNSUPPORTED,
                )
        self._log_result("Checking", result)
        return result


# ═══════════════════════════════════════════════════════════════════
#  GPU hardware
# ═══════════════════════════════════════════════════════════════════


_GPU_NAME_QUERY = (
    "Get-CimInstance Win32_VideoController | Select-Object -ExpandProperty Name"
)
_SMI_NAME_QUERY = "nvidia-smi --query-gpu=name --format=csv,noheader"


class NvidiaGPUChecker(EnvironmentComponentBase):
    component_type = EnvironmentComponent.NVIDIA_GPU

    def detect_gpu_name(self) -> str | None:
        """First NVIDIA adapter name, from Windows then nvidia-smi."""
        for query in (_GPU_NAME_QUERY, _SMI_NAME_QUERY):
            result = self.executor.host(query)
            if result.spawn_failed:
                logger.error("[ENV] GPU query could not be started: %s", result.spawn_error)
            elif result.ok:
                name = gpu.select_nvidia_gpu(result.stdout.splitlines())
                if name:
                    return name
        return None

    def check(self) -> ComponentResult:
        self._log_start("Checking")
        name = self.detect_gpu_name()

        if name is None:
            result = self._failure("No NVIDIA GPU detected", FailureCode.GPU_NOT_FOUND)
        elif not gpu.meets_minimum_requirement(name):
            result = self._failure(
                f"GPU below minimum requirement: {name}",
                FailureCode.GPU_BELOW_MINIMUM,
            )
        elif gpu.is_blackwell_series(name):
            result = self._success(
                f"Compatible NVIDIA GPU detected: {name} "
                "(Blackwell series - will use blackwell image)"
            )
        else:
            result = self._success(
                f"Compatible NVIDIA GPU detected: {name} (will use hopper image)"
            )

        self._log_result("Checking", result)
        return result


# ═══════════════════════════════════════════════════════════════════
#  GPU driver and CUDA toolkit
# ═══════════════════════════════════════════════════════════════════


_DRIVER_QUERY = "nvidia-smi --query-gpu=driver_version --format=csv,noheader,nounits"
_TOOLKIT_QUERY = "nvcc --version"
_REGISTRY_QUERY = (
    'reg query "HKLM\\SOFTWARE\\NVIDIA Corporation\\Global\\Display Driver" /v Version'
)
_REGISTRY_VALUE = re.compile(r"Version\s+REG_\w+\s+(\S+)")

CUDA_NOT_DETECTED = "Not detected"


class NvidiaDriverChecker(EnvironmentComponentBase):
    component_type = EnvironmentComponent.NVIDIA_DRIVER

    def detect_cuda_version(self) -> str:
        result = self.executor.host(_TOOLKIT_QUERY)
        if result.ok:
            version = gpu.parse_cuda_version(result.output)
            if version:
                return version
        return CUDA_NOT_DETECTED

    def check(self) -> ComponentResult:
        self._log_start("Checking")
        result = self._check_driver()
        self._log_result("Checking", result)
        return result

    def _check_driver(self) -> ComponentResult:
        smi = self.executor.host(_DRIVER_QUERY)
        driver_version = "".join(smi.stdout.split()) if smi.ok else ""

        if driver_version:
            cuda_version = self.detect_cuda_version()
            message = f"NVIDIA driver: {driver_version}, CUDA toolkit: {cuda_version}"
            if (
                cuda_version != CUDA_NOT_DETECTED
                and not gpu.is_supported_cuda_version(cuda_version)
            ):
                return self._warning(
                    f"{message} (WARNING: CUDA version should be 12.8.x or 12.9.x)"
                )
            return self._success(message)

        reg = self.executor.host(_REGISTRY_QUERY)
        if reg.ok:
            match = _REGISTRY_VALUE.search(reg.stdout)
            if match:
                return self._success(
                    f"NVIDIA driver installed (registry version: {match.group(1)})"
                )

        return self._failure(
            "NVIDIA driver not found. Please install NVIDIA graphics driver first.",
            FailureCode.DRIVER_NOT_FOUND,
        )


# ═══════════════════════════════════════════════════════════════════
#  Firmware virtualization
# ═══════════════════════════════════════════════════════════════════


_FIRMWARE_ENABLED = "Virtualization Enabled In Firmware: Yes"
_FIRMWARE_DISABLED = "Virtualization Enabled In Firmware: No"
_WSL_DISABLED_PHRASES = (
    "ensure virtualization is enabled in the BIOS",
    "WSL2 is not supported with your current machine configuration",
    "virtualization is not enabled",
)
_DISABLED_MESSAGE = (
    "BIOS virtualization is not enabled. Please restart your computer "
    "and enable virtualization in BIOS settings."
)


class BIOSVirtualizationChecker(EnvironmentComponentBase):
    component_type = EnvironmentComponent.BIOS_VIRTUALIZATION

    def check(self) -> ComponentResult:
        self._log_start("Checking")
        result = self._check_firmware()
        self._log_result("Checking", result)
        return result

    def _check_firmware(self) -> ComponentResult:
        info = self.executor.host("systeminfo", timeout=60)
        if info.ok:
            if _FIRMWARE_ENABLED in info.stdout:
                return self._success("BIOS virtualization is enabled")
            if _FIRMWARE_DISABLED in info.stdout:
                return self._failure(
                    _DISABLED_MESSAGE, FailureCode.VIRTUALIZATION_DISABLED,
                )

        status = self.executor.host("wsl --status")
        if status.ok:
            if any(phrase in status.output for phrase in _WSL_DISABLED_PHRASES):
                return self._failure(
                    _DISABLED_MESSAGE, FailureCode.VIRTUALIZATION_DISABLED,
                )
            return self._success("BIOS virtualization is enabled")

        logger.warning("[ENV] Firmware virtualization state could not be determined")
        return self._success(
            "BIOS virtualization status check completed (unable to verify definitively)"
        )
