"""
Scripted executor and relay — test doubles for external commands.

Used by the test suite (and by ``--mock`` style dry experiments) to
simulate tool output without touching the host. Responses are matched
by command-text fragment; every call is logged.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from hostprep.adapters.base import EXIT_SPAWN_FAILED, ExecResult, Executor, Relay, Target


@dataclass
class _Rule:
    fragment: str
    target: Target | None
    responses: list[tuple[int, str, str, str | None]] = field(default_factory=list)
    hits: int = 0

    def matches(self, command: str, target: Target) -> bool:
        if self.target is not None and self.target != target:
            return False
        return self.fragment in command

    def next_response(self) -> tuple[int, str, str, str | None]:
        # Responses are consumed in order; the last one repeats.
        index = min(self.hits, len(self.responses) - 1)
        self.hits += 1
        return self.responses[index]


class ScriptedExecutor(Executor):
    """Executor that answers from a script instead of spawning processes.

    The first registered rule whose fragment occurs in the command text
    (and whose target matches, if given) answers. Registering the same
    fragment again queues a further response for later calls.
    Unmatched commands exit with ``default_exit_code``. A rule given
    ``spawn_error`` answers as a program that could not be started.
    """

    def __init__(self, default_exit_code: int = 127, default_stdout: str = ""):
        self._default = (default_exit_code, default_stdout, "", None)
        self._rules: list[_Rule] = []
        self._calls: list[ExecResult] = []

    def on(
        self,
        fragment: str,
        *,
        exit_code: int = 0,
        stdout: str = "",
        stderr: str = "",
        target: Target | None = None,
        spawn_error: str | None = None,
    ) -> ScriptedExecutor:
        if spawn_error is not None:
            exit_code = EXIT_SPAWN_FAILED
        response = (exit_code, stdout, stderr, spawn_error)
        for rule in self._rules:
            if rule.fragment == fragment and rule.target == target:
                rule.responses.append(response)
                return self
        self._rules.append(
            _Rule(fragment=fragment, target=target,
                  responses=[response])
        )
        return self

    def execute(
        self,
        command: str,
        timeout: float = 30,
        target: Target = Target.HOST,
    ) -> ExecResult:
        exit_code, stdout, stderr, spawn_error = self._default
        for rule in self._rules:
            if rule.matches(command, target):
                exit_code, stdout, stderr, spawn_error = rule.next_response()
                break
        result = ExecResult(
            command=command,
            target=target,
            exit_code=exit_code,
            stdout=stdout,
            stderr=stderr,
            spawn_error=spawn_error,
        )
        self._calls.append(result)
        return result

    @property
    def calls(self) -> list[ExecResult]:
        return self._calls

    @property
    def commands(self) -> list[str]:
        return [c.command for c in self._calls]

    @property
    def call_count(self) -> int:
        return len(self._calls)

    def ran(self, fragment: str) -> bool:
        """Whether any executed command contained ``fragment``."""
        return any(fragment in c for c in self.commands)

    def reset(self) -> None:
        self._calls.clear()
        for rule in self._rules:
            rule.hits = 0


class ScriptedRelay(Relay):
    """Relay double: records commands and returns scripted exit codes."""

    def __init__(self, default_exit_code: int = 0):
        self._default_exit_code = default_exit_code
        self._exit_codes: dict[str, int] = {}
        self._calls: list[tuple[str, Target]] = []

    def on(self, fragment: str, exit_code: int) -> ScriptedRelay:
        self._exit_codes[fragment] = exit_code
        return self

    def run_command(
        self,
        command: str,
        target: Target = Target.SUBSYSTEM,
        timeout: float | None = None,
    ) -> int:
        self._calls.append((command, target))
        for fragment, exit_code in self._exit_codes.items():
            if fragment in command:
                return exit_code
        return self._default_exit_code

    @property
    def commands(self) -> list[str]:
        return [command for command, _ in self._calls]

    @property
    def call_count(self) -> int:
        return len(self._calls)
