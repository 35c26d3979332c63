"""
hostprep — CLI entrypoint.

Usage:
    hostprep --help
    hostprep check
    hostprep install
    hostprep run -m Qwen/Qwen3-0.6B
    hostprep config set proxy_url http://127.0.0.1:7890
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from hostprep import __version__
from hostprep.core.models.component import ComponentResult, InstallStatus
from hostprep.core.observability.logging_config import log_invocation, setup_logging

_MARKERS = {
    InstallStatus.SUCCESS: ("[OK]", "green"),
    InstallStatus.SKIPPED: ("[OK]", "green"),
    InstallStatus.WARNING: ("[WARN]", "yellow"),
    InstallStatus.FAILED: ("[FAIL]", "red"),
    InstallStatus.IN_PROGRESS: ("[..]", "white"),
}


@click.group()
@click.version_option(version=__version__, prog_name="hostprep")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to config.yml (default: ~/.hostprep/config.yml).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """hostprep — prepare this Windows host for the GPU inference runtime."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    # ── Logging setup (once, at process start) ──────────────────
    if debug:
        level = "DEBUG"
    elif verbose:
        level = "INFO"
    elif quiet:
        level = "ERROR"
    else:
        level = os.environ.get("HOSTPREP_LOG_LEVEL", "WARNING")

    setup_logging(
        level=level,
        log_file=os.environ.get("HOSTPREP_LOG_FILE"),
        log_file_level=os.environ.get("HOSTPREP_LOG_FILE_LEVEL"),
    )
    log_invocation(sys.argv)


def _echo_component(result: ComponentResult) -> None:
    marker, color = _MARKERS[result.status]
    click.secho(f"  {marker:<6} ", fg=color, nl=False)
    click.echo(f"{result.component_name}: {result.message}")


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def check(ctx: click.Context, as_json: bool) -> None:
    """Check whether this host is ready. Changes nothing."""
    from hostprep.core.use_cases.check import run_check

    quiet = ctx.obj.get("quiet", False)
    if not as_json and not quiet:
        click.secho("\n🔍 Checking environment...\n", fg="cyan", bold=True)

    result = run_check(
        config_path=ctx.obj.get("config_path"),
        on_result=None if as_json else _echo_component,
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(result.exit_code)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(result.exit_code)

    env = result.environment
    assert env is not None  # guaranteed after error check above
    click.echo()
    if result.exit_code == 0:
        click.secho(f"✅ {env.overall_message}", fg="green", bold=True)
        if not quiet:
            click.echo("   Next: hostprep run")
    elif env.reboot_required:
        click.secho(f"🔄 {env.overall_message}", fg="yellow", bold=True)
    else:
        click.secho(f"❌ {env.overall_message}", fg="red", bold=True)
        if not quiet:
            click.echo("   Next: hostprep install")
    click.echo()
    sys.exit(result.exit_code)


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def install(ctx: click.Context, as_json: bool) -> None:
    """Install everything this host needs. Safe to re-run."""
    from hostprep.core.use_cases.install import run_install

    quiet = ctx.obj.get("quiet", False)

    def _progress(label: str, message: str, percent: int) -> None:
        if not quiet:
            click.echo(f"[{percent:3d}%] {label}: {message}")

    if not as_json:
        click.secho("\n🔧 Installing environment...", fg="cyan", bold=True)
        click.secho(
            "   A restart may be required along the way; re-run install afterwards.\n",
            fg="yellow",
        )

    result = run_install(
        config_path=ctx.obj.get("config_path"),
        on_progress=None if as_json else _progress,
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(result.exit_code)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(result.exit_code)

    env = result.environment
    assert env is not None
    click.echo()
    for component_result in env.component_results:
        _echo_component(component_result)
    click.echo()

    if env.reboot_required:
        click.secho("🔄 Restart required", fg="yellow", bold=True)
        click.echo(f"   {env.overall_message}")
    elif result.exit_code == 0:
        click.secho(f"✅ {env.overall_message}", fg="green", bold=True)
        if not quiet:
            click.echo("   Next: hostprep check, then hostprep run")
    else:
        click.secho(f"❌ {env.overall_message}", fg="red", bold=True)
    click.echo()
    sys.exit(result.exit_code)


# ── Sub-command groups ──────────────────────────────────────────

from hostprep.ui.cli.config import config  # noqa: E402
from hostprep.ui.cli.runtime import chat, join, run  # noqa: E402

cli.add_command(config)
cli.add_command(run)
cli.add_command(join)
cli.add_command(chat)


if __name__ == "__main__":
    cli()
