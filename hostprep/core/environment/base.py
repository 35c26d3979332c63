"""
Environment component base — the contract every component implements.

The orchestrator only talks to components through this interface:
``component_type``, ``component_name``, ``check()`` and ``install()``.

Components are stateless. They hold the shared ExecutionContext and,
when they shell out, an Executor (and optionally a Relay). They NEVER
raise for an unsatisfied environment; everything becomes a
ComponentResult.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from hostprep.adapters.base import Executor, Relay
from hostprep.core.models.component import (
    ComponentResult,
    EnvironmentComponent,
    FailureCode,
    InstallStatus,
    component_display_name,
)
from hostprep.core.models.environment import ExecutionContext

logger = logging.getLogger(__name__)


class EnvironmentComponentBase(ABC):
    """Abstract base class for all environment components.

    To add a component:
        1. Subclass and set ``component_type``
        2. Implement ``check()``
        3. Override ``install()`` if the component can be installed
        4. Add it to ``EnvironmentInstaller.build_components``
    """

    component_type: EnvironmentComponent

    def __init__(
        self,
        context: ExecutionContext,
        executor: Executor | None = None,
        relay: Relay | None = None,
    ):
        self._context = context
        self._executor = executor
        self._relay = relay

    @property
    def context(self) -> ExecutionContext:
        return self._context

    @property
    def executor(self) -> Executor:
        if self._executor is None:
            raise RuntimeError(f"{self.__class__.__name__} requires an executor")
        return self._executor

    @property
    def relay(self) -> Relay:
        if self._relay is None:
            raise RuntimeError(f"{self.__class__.__name__} requires a relay")
        return self._relay

    @property
    def component_name(self) -> str:
        return component_display_name(self.component_type)

    @abstractmethod
    def check(self) -> ComponentResult:
        """Read-only probe. Safe to call repeatedly; never mutates the host."""

    def install(self) -> ComponentResult:
        """Bring the component to a satisfied state.

        The default is for probe-only components (hardware, firmware,
        OS): nothing can be installed, so a satisfied check becomes
        ``skipped`` and an unsatisfied one is returned as-is.
        """
        self._log_start("Installing")
        result = self.check()
        if result.ok and not result.reboot_required:
            result = self._skipped(result.message)
        self._log_result("Installing", result)
        return result

    # ── Result helpers ──────────────────────────────────────────

    def _success(self, message: str) -> ComponentResult:
        return ComponentResult.success(self.component_type, message)

    def _skipped(self, message: str) -> ComponentResult:
        return ComponentResult.skipped(self.component_type, message)

    def _warning(self, message: str) -> ComponentResult:
        return ComponentResult.warning(self.component_type, message)

    def _failure(self, message: str, code: FailureCode) -> ComponentResult:
        return ComponentResult.failure(self.component_type, message, code)

    def _reboot(
        self,
        message: str,
        status: InstallStatus = InstallStatus.FAILED,
    ) -> ComponentResult:
        return ComponentResult.reboot(self.component_type, message, status)

    # ── Logging helpers ─────────────────────────────────────────

    def _log_start(self, operation: str) -> None:
        logger.info("[ENV] %s %s...", operation, self.component_name)

    def _log_result(self, operation: str, result: ComponentResult) -> None:
        if result.failed:
            logger.error(
                "[ENV] %s %s failed (code %d): %s",
                operation, self.component_name,
                int(result.failure_code), result.message,
            )
        else:
            logger.info(
                "[ENV] %s %s: %s — %s",
                operation, self.component_name, result.status.value, result.message,
            )

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} component={self.component_type.value!r}>"
