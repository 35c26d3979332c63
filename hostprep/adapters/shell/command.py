"""
Command executor — run one external command and capture its output.

This is the SINGLE PLACE where captured commands are spawned for
check and install operations. Timeout enforcement, output decoding and
error capture are centralised here. A timed-out command is stopped
with its whole process tree, not just the shell wrapper.
"""

from __future__ import annotations

import logging
import os
import subprocess
import time

from hostprep.adapters.base import (
    EXIT_SPAWN_FAILED,
    EXIT_TIMEOUT,
    ExecResult,
    Executor,
    Target,
)
from hostprep.adapters.shell.encoding import decode_output
from hostprep.adapters.shell.process import kill_tree, new_group_kwargs

logger = logging.getLogger(__name__)

_TAIL = 8000
_DRAIN_TIMEOUT = 5


def host_argv(command: str) -> list[str]:
    """Wrap command text for the host shell."""
    if os.name == "nt":
        return [
            "powershell.exe", "-NoProfile", "-NonInteractive",
            "-Command", command,
        ]
    return ["/bin/sh", "-c", command]


def subsystem_argv(distro: str, command: str) -> list[str]:
    """Wrap command text for bash inside the WSL distribution, as root."""
    return ["wsl.exe", "-d", distro, "-u", "root", "--", "bash", "-c", command]


class CommandExecutor(Executor):
    """Execute commands on the host or inside the subsystem.

    Args:
        distro: WSL distribution used for ``Target.SUBSYSTEM``.
        env_overrides: Extra environment variables for every child.
    """

    def __init__(
        self,
        distro: str,
        env_overrides: dict[str, str] | None = None,
    ):
        self._distro = distro
        self._env_overrides = env_overrides or {}

    @property
    def distro(self) -> str:
        return self._distro

    def argv_for(self, command: str, target: Target) -> list[str]:
        if target == Target.SUBSYSTEM:
            return subsystem_argv(self._distro, command)
        return host_argv(command)

    def execute(
        self,
        command: str,
        timeout: float = 30,
        target: Target = Target.HOST,
    ) -> ExecResult:
        argv = self.argv_for(command, target)
        env = None
        if self._env_overrides:
            env = os.environ.copy()
            env.update(self._env_overrides)

        logger.debug("Executing [%s]: %s (timeout=%ss)", target.value, command, timeout)
        start = time.monotonic()

        try:
            proc = subprocess.Popen(
                argv,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                env=env,
                **new_group_kwargs(),
            )
        except OSError as e:
            logger.error("Cannot start %s: %s", argv[0], e)
            return ExecResult(
                command=command,
                target=target,
                exit_code=EXIT_SPAWN_FAILED,
                spawn_error=str(e),
            )

        try:
            stdout, stderr = proc.communicate(timeout=timeout)
        except subprocess.TimeoutExpired:
            kill_tree(proc)
            stdout, stderr = self._drain(proc)
            elapsed_ms = int((time.monotonic() - start) * 1000)
            logger.warning("Command timed out after %ss: %s", timeout, command)
            return ExecResult(
                command=command,
                target=target,
                exit_code=EXIT_TIMEOUT,
                stdout=decode_output(stdout)[-_TAIL:],
                stderr=decode_output(stderr)[-_TAIL:],
                duration_ms=elapsed_ms,
            )

        elapsed_ms = int((time.monotonic() - start) * 1000)
        result = ExecResult(
            command=command,
            target=target,
            exit_code=proc.returncode,
            stdout=decode_output(stdout)[-_TAIL:],
            stderr=decode_output(stderr)[-_TAIL:],
            duration_ms=elapsed_ms,
        )
        logger.debug(
            "Exit %d after %dms: %s", result.exit_code, elapsed_ms, command,
        )
        return result

    @staticmethod
    def _drain(proc: subprocess.Popen) -> tuple[bytes, bytes]:
        """Collect what a killed child wrote, without waiting on stray pipe holders."""
        try:
            return proc.communicate(timeout=_DRAIN_TIMEOUT)
        except subprocess.TimeoutExpired:
            logger.warning("Output of killed pid %d not drained; closing pipes", proc.pid)
            for pipe in (proc.stdout, proc.stderr):
                if pipe is not None:
                    pipe.close()
            proc.wait()
            return b"", b""

    def __repr__(self) -> str:
        return f"<CommandExecutor distro={self._distro!r}>"
