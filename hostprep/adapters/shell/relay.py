"""
Interactive process relay — run a long command with live output.

Used for the steps that take minutes (distro install, ``pip install``)
and for the ``run`` / ``join`` / ``chat`` pass-through commands. Output
is forwarded line by line as it is produced, and Ctrl+C is forwarded to
the relayed child's own process group so it can shut down instead of
being orphaned. Nothing else started by this process is signalled.
"""

from __future__ import annotations

import logging
import os
import queue
import signal
import subprocess
import sys
import threading
import time
from collections.abc import Callable

from hostprep.adapters.base import EXIT_SPAWN_FAILED, EXIT_TIMEOUT, Relay, Target
from hostprep.adapters.shell.command import host_argv, subsystem_argv
from hostprep.adapters.shell.encoding import decode_output
from hostprep.adapters.shell.process import kill_tree, new_group_kwargs, signal_group

logger = logging.getLogger(__name__)

_POLL_INTERVAL = 0.1
_DRAIN_AFTER_EXIT = 1.0
_NOT_INSTALLED = object()


def _stdout_sink(line: str) -> None:
    sys.stdout.write(line + "\n")
    sys.stdout.flush()


class ProcessRelay(Relay):
    """Stream a child's merged stdout/stderr to ``sink`` while it runs.

    Args:
        distro: WSL distribution for ``Target.SUBSYSTEM`` commands.
        sink: Called with each output line (without newline), on the
            thread that called :meth:`run`.
        grace_period: Seconds to wait after an interrupt (or timeout)
            before the child is terminated, then killed.
    """

    def __init__(
        self,
        distro: str = "",
        sink: Callable[[str], None] | None = None,
        grace_period: float = 5.0,
    ):
        self._distro = distro
        self._sink = sink or _stdout_sink
        self._grace_period = grace_period
        self._proc: subprocess.Popen | None = None
        self._interrupted_at: float | None = None

    @property
    def interrupted(self) -> bool:
        return self._interrupted_at is not None

    def run_command(
        self,
        command: str,
        target: Target = Target.SUBSYSTEM,
        timeout: float | None = None,
    ) -> int:
        if target == Target.SUBSYSTEM:
            argv = subsystem_argv(self._distro, command)
        else:
            argv = host_argv(command)
        return self.run(argv, timeout=timeout)

    def run(self, argv: list[str], timeout: float | None = None) -> int:
        """Run ``argv`` to completion, relaying output and interrupts.

        Returns:
            The child's exit code, ``EXIT_TIMEOUT`` if ``timeout`` elapsed,
            or ``EXIT_SPAWN_FAILED`` if the child could not be started.
        """
        logger.info("Relaying: %s", " ".join(argv))
        self._interrupted_at = None
        try:
            proc = subprocess.Popen(
                argv,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                **new_group_kwargs(),
            )
        except OSError as e:
            logger.error("Cannot start %s: %s", argv[0], e)
            return EXIT_SPAWN_FAILED

        self._proc = proc
        previous_handler = self._install_interrupt_handler()
        try:
            timed_out = self._pump(proc, timeout)
        finally:
            self._restore_interrupt_handler(previous_handler)
            self._proc = None
            if proc.stdout is not None:
                proc.stdout.close()

        if timed_out:
            logger.warning("Relayed command timed out after %ss", timeout)
            return EXIT_TIMEOUT

        logger.info("Relayed command exited with %s", proc.returncode)
        return proc.returncode

    def interrupt(self) -> None:
        """Forward an interrupt to the relayed child, if one is running."""
        proc = self._proc
        if proc is None or proc.poll() is not None:
            return
        if self._interrupted_at is None:
            self._interrupted_at = time.monotonic()
        logger.info("Forwarding interrupt to pid %d", proc.pid)
        try:
            if os.name == "nt":
                proc.send_signal(signal.CTRL_BREAK_EVENT)
            else:
                signal_group(proc, signal.SIGINT)
        except (ProcessLookupError, OSError) as e:
            logger.debug("Interrupt not delivered: %s", e)

    # ── Internals ───────────────────────────────────────────────

    def _pump(self, proc: subprocess.Popen, timeout: float | None) -> bool:
        """Forward output until the child exits. Returns True on timeout."""
        lines: queue.Queue[bytes | None] = queue.Queue()

        def _reader() -> None:
            assert proc.stdout is not None
            for raw in iter(proc.stdout.readline, b""):
                lines.put(raw)
            lines.put(None)

        reader = threading.Thread(target=_reader, name="relay-reader", daemon=True)
        reader.start()

        deadline = time.monotonic() + timeout if timeout else None
        exited_at: float | None = None
        eof = False

        while True:
            try:
                item = lines.get(timeout=_POLL_INTERVAL)
            except queue.Empty:
                item = b""
            if item is None:
                eof = True
            elif item:
                self._sink(decode_output(item).rstrip("\n"))

            now = time.monotonic()
            if proc.poll() is not None:
                if eof:
                    break
                # A grandchild may hold the pipe open after the child exits.
                if exited_at is None:
                    exited_at = now
                elif now - exited_at > _DRAIN_AFTER_EXIT:
                    break

            if deadline is not None and now > deadline:
                self._terminate(proc)
                return True

            if (
                self._interrupted_at is not None
                and now - self._interrupted_at > self._grace_period
                and proc.poll() is None
            ):
                self._terminate(proc)

        proc.wait()
        return False

    def _terminate(self, proc: subprocess.Popen) -> None:
        """Stop the relayed child and everything it started.

        POSIX gets a group-wide SIGTERM and the grace period first.
        Whatever is left of the tree is then killed.
        """
        logger.warning("Terminating relayed pid %d", proc.pid)
        if os.name != "nt":
            try:
                signal_group(proc, signal.SIGTERM)
                proc.wait(timeout=self._grace_period)
            except ProcessLookupError:
                proc.wait()
                return
            except subprocess.TimeoutExpired:
                logger.warning("Relayed pid %d ignored SIGTERM", proc.pid)
        kill_tree(proc)
        proc.wait()

    def _install_interrupt_handler(self):
        # signal.signal only works on the main thread.
        if threading.current_thread() is not threading.main_thread():
            return _NOT_INSTALLED
        return signal.signal(signal.SIGINT, self._on_sigint)

    def _restore_interrupt_handler(self, previous) -> None:
        if previous is _NOT_INSTALLED:
            return
        # None means the previous handler was not set from Python.
        signal.signal(signal.SIGINT, previous if previous is not None else signal.SIG_DFL)

    def _on_sigint(self, signum, frame) -> None:
        self.interrupt()
