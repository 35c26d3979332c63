"""
Executor base — the contract between components and external processes.

Components never call ``subprocess`` directly. They hand command text
to an :class:`Executor` and get an :class:`ExecResult` back. Ordinary
command failure is data, not an exception.
"""

from __future__ import annotations

import enum
from abc import ABC, abstractmethod

from pydantic import BaseModel

# Sentinel exit codes. Real exit codes are >= 0 on Windows and POSIX
# signal deaths are small negatives, so these never collide.
EXIT_TIMEOUT = -1001
EXIT_SPAWN_FAILED = -1002


class Target(str, enum.Enum):
    """Where a command runs."""

    HOST = "host"
    SUBSYSTEM = "subsystem"


class ExecResult(BaseModel):
    """Outcome of a single external command."""

    command: str
    target: Target = Target.HOST
    exit_code: int = 0
    stdout: str = ""
    stderr: str = ""
    duration_ms: int = 0
    spawn_error: str | None = None

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    @property
    def timed_out(self) -> bool:
        return self.exit_code == EXIT_TIMEOUT

    @property
    def spawn_failed(self) -> bool:
        return self.exit_code == EXIT_SPAWN_FAILED

    @property
    def output(self) -> str:
        """stdout and stderr together, for keyword searches."""
        if self.stdout and self.stderr:
            return f"{self.stdout}\n{self.stderr}"
        return self.stdout or self.stderr


class Executor(ABC):
    """Runs one command to completion and captures its text output.

    Implementations MUST NOT raise for a non-zero exit, a timeout or a
    spawn failure. Those are reported through ``ExecResult.exit_code``.
    """

    @abstractmethod
    def execute(
        self,
        command: str,
        timeout: float = 30,
        target: Target = Target.HOST,
    ) -> ExecResult:
        """Run ``command`` and wait for it, at most ``timeout`` seconds."""

    def host(self, command: str, timeout: float = 30) -> ExecResult:
        return self.execute(command, timeout=timeout, target=Target.HOST)

    def subsystem(self, command: str, timeout: float = 30) -> ExecResult:
        return self.execute(command, timeout=timeout, target=Target.SUBSYSTEM)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}>"


class Relay(ABC):
    """Runs a long command with its output streamed live to the operator."""

    @abstractmethod
    def run_command(
        self,
        command: str,
        target: Target = Target.SUBSYSTEM,
        timeout: float | None = None,
    ) -> int:
        """Run ``command`` and return its exit code (or a sentinel)."""
