"""
Process-group helpers shared by the executor and the relay.

Every child is started as the leader of its own group so that a
timeout or an abandoned interrupt can stop the whole tree: the shell
wrapper and whatever it started (apt-get, pip, msiexec, wsl.exe).
"""

from __future__ import annotations

import logging
import os
import signal
import subprocess

logger = logging.getLogger(__name__)

_TASKKILL_TIMEOUT = 10


def new_group_kwargs() -> dict:
    """``Popen`` keyword arguments that start the child in a new group."""
    if os.name == "nt":
        return {"creationflags": subprocess.CREATE_NEW_PROCESS_GROUP}
    return {"start_new_session": True}


def signal_group(proc: subprocess.Popen, sig: int) -> None:
    """Send ``sig`` to the child's whole process group (POSIX only)."""
    os.killpg(proc.pid, sig)


def kill_tree(proc: subprocess.Popen) -> None:
    """Forcibly stop ``proc`` and every process it started.

    POSIX kills the process group. Windows has no groups to signal, so
    ``taskkill /T`` walks the tree from the child's pid. Falls back to
    killing the direct child when the tree cannot be reached.
    """
    if proc.poll() is not None and os.name == "nt":
        return
    logger.warning("Killing process tree of pid %d", proc.pid)
    try:
        if os.name == "nt":
            subprocess.run(
                ["taskkill", "/T", "/F", "/PID", str(proc.pid)],
                capture_output=True,
                stdin=subprocess.DEVNULL,
                timeout=_TASKKILL_TIMEOUT,
                check=False,
            )
        else:
            signal_group(proc, signal.SIGKILL)
    except ProcessLookupError:
        # Group already gone.
        return
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.warning("Tree kill of pid %d failed (%s); killing the child only", proc.pid, e)
        proc.kill()
