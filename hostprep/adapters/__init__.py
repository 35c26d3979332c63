"""Adapters — bindings to external processes.

Public re-exports for convenient access.
"""

from hostprep.adapters.base import (
    EXIT_SPAWN_FAILED,
    EXIT_TIMEOUT,
    ExecResult,
    Executor,
    Target,
)
from hostprep.adapters.mock import ScriptedExecutor, ScriptedRelay
from hostprep.adapters.shell.command import CommandExecutor
from hostprep.adapters.shell.relay import ProcessRelay

__all__ = [
    "EXIT_SPAWN_FAILED",
    "EXIT_TIMEOUT",
    "CommandExecutor",
    "ExecResult",
    "Executor",
    "ProcessRelay",
    "ScriptedExecutor",
    "ScriptedRelay",
    "Target",
]
