"""
Command-sequence runner — ordered install steps with fail-fast.

Runs each step in order and stops at the first non-zero exit. The
failed step is named in the result so the operator knows exactly
which command to retry by hand. Long steps set ``realtime`` and are
streamed through the relay instead of captured.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from hostprep.adapters.base import Executor, Relay, Target
from hostprep.core.models.component import (
    ComponentResult,
    EnvironmentComponent,
    FailureCode,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandStep:
    """One named step of an install sequence."""

    name: str
    command: str
    timeout: float = 300
    realtime: bool = False
    target: Target = Target.SUBSYSTEM


def run_command_sequence(
    steps: list[CommandStep],
    executor: Executor,
    relay: Relay | None,
    component: EnvironmentComponent,
    failure_code: FailureCode,
    operation: str,
) -> ComponentResult:
    """Execute ``steps`` in order; first non-zero exit wins.

    Returns:
        ``success`` naming ``operation`` when every step exits 0,
        otherwise ``failed`` with ``"Failed at step '<name>': <command>"``.
        Steps after the failing one are never run.
    """
    total = len(steps)
    for i, step in enumerate(steps, start=1):
        logger.info("[ENV] %s: step %d/%d %s", operation, i, total, step.name)

        if step.realtime and relay is not None:
            exit_code = relay.run_command(step.command, target=step.target, timeout=step.timeout)
            detail = ""
        else:
            result = executor.execute(step.command, timeout=step.timeout, target=step.target)
            exit_code = result.exit_code
            detail = result.output.strip()
            if result.spawn_failed:
                logger.error(
                    "[ENV] %s: step '%s' could not be started: %s",
                    operation, step.name, result.spawn_error or "unknown error",
                )

        if exit_code != 0:
            logger.error(
                "[ENV] %s: step '%s' exited %d%s",
                operation, step.name, exit_code,
                f"\n{detail}" if detail else "",
            )
            return ComponentResult.failure(
                component,
                f"Failed at step '{step.name}': {step.command}",
                failure_code,
            )

    return ComponentResult.success(component, f"{operation} completed")
