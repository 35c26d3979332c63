"""
Launch use case — run the inference runtime inside the subsystem.

``hostprep run|join|chat [ARGS...]`` become
``<package> run|join|chat [ARGS...]`` inside the project's virtualenv,
streamed through the relay so the operator sees live output and can
stop it with Ctrl+C.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from hostprep.adapters.base import Executor, Relay, Target
from hostprep.core.config.store import ConfigError, ConfigStore
from hostprep.core.environment.shell_text import build_runtime_command
from hostprep.core.models.environment import ExecutionContext

logger = logging.getLogger(__name__)

RUNTIME_VERBS = ("run", "join", "chat")

EXIT_OK = 0
EXIT_CONFIG_ERROR = 1
EXIT_RUNTIME_FAILED = 3


@dataclass
class LaunchResult:
    verb: str
    command: str = ""
    child_exit_code: int | None = None
    error: str | None = None
    config_invalid: bool = False

    @property
    def exit_code(self) -> int:
        if self.config_invalid:
            return EXIT_CONFIG_ERROR
        if self.child_exit_code is None:
            return EXIT_RUNTIME_FAILED
        return EXIT_OK if self.child_exit_code == 0 else EXIT_RUNTIME_FAILED

    def to_dict(self) -> dict:
        data: dict = {"verb": self.verb, "command": self.command}
        if self.child_exit_code is not None:
            data["child_exit_code"] = self.child_exit_code
        if self.error:
            data["error"] = self.error
        return data


def distro_installed(executor: Executor, distro: str) -> bool:
    """Whether ``wsl --list --quiet`` lists ``distro``."""
    listing = executor.execute("wsl --list --quiet", target=Target.HOST)
    if not listing.ok:
        return False
    return distro in (line.strip() for line in listing.stdout.splitlines())


def run_runtime(
    verb: str,
    args: tuple[str, ...] | list[str] = (),
    config_path: Path | None = None,
    executor: Executor | None = None,
    relay: Relay | None = None,
) -> LaunchResult:
    """Run ``<package> <verb> <args>`` in the subsystem and wait for it.

    Raises:
        ValueError: If ``verb`` is not one of :data:`RUNTIME_VERBS`.
    """
    if verb not in RUNTIME_VERBS:
        raise ValueError(f"Unknown runtime verb '{verb}'")

    try:
        context = ExecutionContext.from_config(ConfigStore(config_path))
    except ConfigError as e:
        return LaunchResult(verb=verb, error=str(e), config_invalid=True)

    distro = context.subsystem_distro_id
    if executor is None:
        from hostprep.adapters.shell.command import CommandExecutor
        executor = CommandExecutor(distro)
    if relay is None:
        from hostprep.adapters.shell.relay import ProcessRelay
        relay = ProcessRelay(distro)

    if not distro_installed(executor, distro):
        return LaunchResult(
            verb=verb,
            error=(
                f"Linux distribution {distro} is not installed. "
                "Run 'hostprep install' first."
            ),
        )

    command = build_runtime_command(
        context.project_dir,
        context.project_package,
        verb,
        args,
        proxy_url=context.proxy_url,
    )
    logger.info("Launching runtime: %s", command)
    exit_code = relay.run_command(command, target=Target.SUBSYSTEM)
    if exit_code != 0:
        logger.error("Runtime '%s' exited with %d", verb, exit_code)
    return LaunchResult(verb=verb, command=command, child_exit_code=exit_code)
