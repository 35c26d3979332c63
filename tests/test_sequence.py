"""
Tests for the fail-fast command-sequence runner.
"""

import logging

from hostprep.adapters.base import Target
from hostprep.core.environment.sequence import CommandStep, run_command_sequence
from hostprep.core.models.component import (
    EnvironmentComponent,
    FailureCode,
    InstallStatus,
)

C = EnvironmentComponent.DEV_TOOLS
CODE = FailureCode.DEV_TOOLS_MISSING


def _run(steps, executor, relay=None):
    return run_command_sequence(steps, executor, relay, C, CODE, "Dev tools installation")


class TestRunCommandSequence:
    def test_all_steps_succeed(self, executor):
        executor.on("step", stdout="ok")
        steps = [CommandStep("one", "step one"), CommandStep("two", "step two")]
        r = _run(steps, executor)
        assert r.status == InstallStatus.SUCCESS
        assert r.message == "Dev tools installation completed"
        assert executor.commands == ["step one", "step two"]

    def test_first_failure_stops_the_sequence(self, executor):
        executor.on("step one")
        executor.on("step two", exit_code=100, stderr="E: Unable to locate package")
        steps = [
            CommandStep("one", "step one"),
            CommandStep("two", "step two"),
            CommandStep("three", "step three"),
        ]
        r = _run(steps, executor)
        assert r.failed
        assert r.failure_code == CODE
        assert r.message == "Failed at step 'two': step two"
        assert not executor.ran("step three")

    def test_realtime_steps_go_through_the_relay(self, executor, relay):
        executor.on("apt-get")
        steps = [
            CommandStep("packages", "apt-get install -y ninja-build"),
            CommandStep("rust", "curl https://sh.rustup.rs | sh", realtime=True),
        ]
        r = _run(steps, executor, relay)
        assert r.ok
        assert relay.commands == ["curl https://sh.rustup.rs | sh"]
        assert executor.commands == ["apt-get install -y ninja-build"]

    def test_relay_failure_stops_the_sequence(self, executor, relay):
        relay.on("rustup", 1)
        steps = [
            CommandStep("rust", "curl https://sh.rustup.rs | sh", realtime=True),
            CommandStep("after", "echo after"),
        ]
        r = _run(steps, executor, relay)
        assert r.failed
        assert "'rust'" in r.message
        assert executor.call_count == 0

    def test_realtime_without_relay_uses_executor(self, executor):
        executor.on("wsl --install")
        step = CommandStep("install", "wsl --install -d Ubuntu-24.04", realtime=True, target=Target.HOST)
        r = _run([step], executor)
        assert r.ok
        assert executor.calls[0].target == Target.HOST

    def test_empty_sequence_succeeds(self, executor):
        assert _run([], executor).ok

    def test_spawn_failure_is_logged_and_stops(self, executor, caplog):
        executor.on("wsl --update", spawn_error="[WinError 2] The system cannot find the file specified")
        steps = [
            CommandStep("kernel", "wsl --update", target=Target.HOST),
            CommandStep("distro", "wsl --install -d Ubuntu-24.04", target=Target.HOST),
        ]
        with caplog.at_level(logging.ERROR, logger="hostprep.core.environment.sequence"):
            r = _run(steps, executor)
        assert r.failed
        assert r.message == "Failed at step 'kernel': wsl --update"
        assert "could not be started: [WinError 2]" in caplog.text
        assert not executor.ran("wsl --install")
