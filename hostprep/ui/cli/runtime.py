"""
CLI pass-through commands for the inference runtime: run, join, chat.

Every argument after the verb is handed to the runtime unchanged.
"""

from __future__ import annotations

import sys

import click

_PASSTHROUGH = {"ignore_unknown_options": True, "allow_interspersed_args": False}


def _launch(ctx: click.Context, verb: str, args: tuple[str, ...], banner: str) -> None:
    from hostprep.core.use_cases.launch import run_runtime

    quiet = ctx.obj.get("quiet", False)
    if not quiet:
        click.secho(f"[INFO] {banner}", fg="cyan")
        click.secho("[INFO] Press Ctrl+C to stop\n", fg="cyan")

    result = run_runtime(verb, args, config_path=ctx.obj.get("config_path"))

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
    elif result.exit_code != 0:
        click.secho(
            f"❌ '{verb}' exited with code {result.child_exit_code}", fg="red",
        )
    elif not quiet:
        click.secho(f"\n[INFO] '{verb}' finished", fg="cyan")
    sys.exit(result.exit_code)


@click.command(context_settings=_PASSTHROUGH)
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def run(ctx: click.Context, args: tuple[str, ...]) -> None:
    """Start the inference scheduler (http://localhost:3000)."""
    _launch(ctx, "run", args, "Starting inference server...")


@click.command(context_settings=_PASSTHROUGH)
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def join(ctx: click.Context, args: tuple[str, ...]) -> None:
    """Join this machine to an inference cluster as a node."""
    _launch(ctx, "join", args, "Joining inference cluster...")


@click.command(context_settings=_PASSTHROUGH)
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def chat(ctx: click.Context, args: tuple[str, ...]) -> None:
    """Open the chat interface against a running scheduler."""
    _launch(ctx, "chat", args, "Starting chat interface...")
