"""
Environment installer — runs every component in order and aggregates.

Two entry points:
    check_environment()   — read-only probe of every component
    install_environment() — install every component, in dependency order

The installer itself never touches the host; all external effects
happen inside components. It always returns an EnvironmentResult:
an exception escaping a component is recorded as that component's
failure.

Install honours hard prerequisites. When a prerequisite did not
complete (failed, blocked, or waiting for a restart) the dependent
component is recorded as blocked and never attempted. Blocking is
transitive because a blocked component does not count as complete.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from hostprep.adapters.base import Executor, Relay
from hostprep.core.environment.base import EnvironmentComponentBase
from hostprep.core.environment.project import ProjectDeployer
from hostprep.core.environment.subsystem import SubsystemInstaller
from hostprep.core.environment.system import (
    BIOSVirtualizationChecker,
    NvidiaDriverChecker,
    NvidiaGPUChecker,
    OSVersionChecker,
)
from hostprep.core.environment.toolchain import DevToolsInstaller, PipUpgradeManager
from hostprep.core.models.component import (
    ComponentResult,
    EnvironmentComponent,
    FailureCode,
)
from hostprep.core.models.environment import (
    EnvironmentResult,
    ExecutionContext,
    Verdict,
)

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, str, int], None]
ResultCallback = Callable[[ComponentResult], None]

C = EnvironmentComponent

PREREQUISITES: dict[EnvironmentComponent, tuple[EnvironmentComponent, ...]] = {
    C.SUBSYSTEM: (C.OS_VERSION, C.BIOS_VIRTUALIZATION),
    C.DEV_TOOLS: (C.SUBSYSTEM,),
    C.PIP_UPGRADE: (C.SUBSYSTEM,),
    C.PROJECT_DEPLOYMENT: (C.SUBSYSTEM, C.PIP_UPGRADE),
}

# Recorded when a component raises instead of returning a result.
_CRASH_CODES: dict[EnvironmentComponent, FailureCode] = {
    C.OS_VERSION: FailureCode.OS_UNSUPPORTED,
    C.NVIDIA_GPU: FailureCode.GPU_NOT_FOUND,
    C.NVIDIA_DRIVER: FailureCode.DRIVER_NOT_FOUND,
    C.BIOS_VIRTUALIZATION: FailureCode.VIRTUALIZATION_DISABLED,
    C.SUBSYSTEM: FailureCode.SUBSYSTEM_UNAVAILABLE,
    C.DEV_TOOLS: FailureCode.DEV_TOOLS_MISSING,
    C.PIP_UPGRADE: FailureCode.PIP_UNAVAILABLE,
    C.PROJECT_DEPLOYMENT: FailureCode.PROJECT_NOT_INSTALLED,
}

_COMPONENT_CLASSES: tuple[type[EnvironmentComponentBase], ...] = (
    OSVersionChecker,
    NvidiaGPUChecker,
    NvidiaDriverChecker,
    BIOSVirtualizationChecker,
    SubsystemInstaller,
    DevToolsInstaller,
    PipUpgradeManager,
    ProjectDeployer,
)


def _completed(result: ComponentResult) -> bool:
    return result.ok and result.blocked_by is None and not result.reboot_required


def overall_message(result: EnvironmentResult) -> str:
    verdict = result.verdict
    if verdict == Verdict.REBOOT_REQUIRED:
        return "Restart Windows, then run install again to continue"
    if verdict == Verdict.FAILED:
        names = ", ".join(r.component_name for r in result.failed)
        return f"{len(result.failed)} component(s) failed: {names}"
    if verdict == Verdict.WARNING:
        return "Environment is ready, with warnings"
    return "Environment is ready"


class EnvironmentInstaller:
    """Orchestrates environment components for one host.

    Args:
        context: Shared run settings.
        executor: Runs captured commands. Defaults to a CommandExecutor.
        relay: Streams long commands. Defaults to a ProcessRelay.
        components: Explicit component list (tests); otherwise
            :meth:`build_components` creates the standard set.
    """

    def __init__(
        self,
        context: ExecutionContext,
        executor: Executor | None = None,
        relay: Relay | None = None,
        components: list[EnvironmentComponentBase] | None = None,
    ):
        if executor is None:
            from hostprep.adapters.shell.command import CommandExecutor
            executor = CommandExecutor(context.subsystem_distro_id)
        if relay is None:
            from hostprep.adapters.shell.relay import ProcessRelay
            relay = ProcessRelay(context.subsystem_distro_id)
        self._context = context
        self._executor = executor
        self._relay = relay
        self._components = components

    @property
    def context(self) -> ExecutionContext:
        return self._context

    def build_components(self) -> list[EnvironmentComponentBase]:
        """The ordered component list for one call."""
        if self._components is not None:
            return list(self._components)
        return [
            cls(self._context, self._executor, self._relay)
            for cls in _COMPONENT_CLASSES
        ]

    # ── Check ───────────────────────────────────────────────────

    def check_environment(
        self,
        on_result: ResultCallback | None = None,
    ) -> EnvironmentResult:
        """Probe every component in order. Nothing is skipped."""
        logger.info("[ENV] Checking environment")
        env = EnvironmentResult()
        for component in self.build_components():
            result = self._guarded(component, "check")
            env.add(result)
            if on_result is not None:
                on_result(result)
        env.overall_message = overall_message(env)
        logger.info("[ENV] Check finished: %s", env.verdict.value)
        return env

    # ── Install ─────────────────────────────────────────────────

    def install_environment(
        self,
        on_progress: ProgressCallback | None = None,
    ) -> EnvironmentResult:
        """Install every component in order.

        ``on_progress(step_label, message, percent)`` is called before
        and after each component. ``percent`` never decreases and is
        100 only in the final call.
        """
        logger.info("[ENV] Installing environment")
        components = self.build_components()
        total = len(components) or 1
        present = {c.component_type for c in components}
        completed: set[EnvironmentComponent] = set()
        env = EnvironmentResult()

        def report(label: str, message: str, percent: int) -> None:
            if on_progress is not None:
                on_progress(label, message, percent)

        for index, component in enumerate(components):
            label = component.component_name
            kind = component.component_type

            blocker = next(
                (
                    p for p in PREREQUISITES.get(kind, ())
                    if p in present and p not in completed
                ),
                None,
            )
            if blocker is not None:
                result = ComponentResult.blocked(kind, blocker)
                logger.warning("[ENV] %s: %s", label, result.message)
            else:
                report(label, f"Installing {label}...", min(index * 100 // total, 99))
                result = self._guarded(component, "install")

            env.add(result)
            if _completed(result):
                completed.add(kind)
            report(label, result.message, min((index + 1) * 100 // total, 99))

        env.overall_message = overall_message(env)
        report("Complete", env.overall_message, 100)
        logger.info("[ENV] Install finished: %s", env.verdict.value)
        return env

    # ── Internals ───────────────────────────────────────────────

    def _guarded(self, component: EnvironmentComponentBase, operation: str) -> ComponentResult:
        try:
            return getattr(component, operation)()
        except Exception as e:
            logger.exception(
                "[ENV] %s %s raised", component.component_name, operation,
            )
            return ComponentResult.failure(
                component.component_type,
                f"{component.component_name} {operation} crashed: {e}",
                _CRASH_CODES[component.component_type],
            )
