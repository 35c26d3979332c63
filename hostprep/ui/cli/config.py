"""
CLI commands for the persisted configuration.

Thin wrappers over ``hostprep.core.config.store.ConfigStore``.
"""

from __future__ import annotations

import json
import sys

import click

from hostprep.core.config.store import VALID_KEYS, ConfigError, ConfigStore


def _open_store(ctx: click.Context) -> ConfigStore:
    try:
        return ConfigStore(ctx.obj.get("config_path"))
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)


@click.group()
def config() -> None:
    """View and change hostprep settings (proxy, distro, project repo)."""


@config.command("list")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def config_list(ctx: click.Context, as_json: bool) -> None:
    """Show every setting."""
    store = _open_store(ctx)
    values = store.all_values()

    if as_json:
        click.echo(json.dumps(values, indent=2, sort_keys=True))
        return

    click.secho(f"\n⚙️  {store.path}", fg="cyan", bold=True)
    width = max((len(k) for k in values), default=0)
    for key in sorted(values):
        value = values[key]
        click.echo(f"   {key:<{width}}  ", nl=False)
        if value:
            click.echo(value)
        else:
            click.secho("(not set)", fg="bright_black")
    click.echo()


@config.command("get")
@click.argument("key")
@click.pass_context
def config_get(ctx: click.Context, key: str) -> None:
    """Print the value of KEY."""
    store = _open_store(ctx)
    if not store.is_valid_key(key):
        click.secho(f"❌ Unknown config key '{key}'", fg="red")
        click.echo(f"   Valid keys: {', '.join(sorted(VALID_KEYS))}")
        sys.exit(1)
    click.echo(store.get_value(key))


@config.command("set")
@click.argument("key")
@click.argument("value")
@click.pass_context
def config_set(ctx: click.Context, key: str, value: str) -> None:
    """Set KEY to VALUE and save."""
    store = _open_store(ctx)
    try:
        store.set_value(key, value)
        store.save()
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)
    except OSError as e:
        click.secho(f"❌ Cannot save {store.path}: {e}", fg="red")
        sys.exit(1)
    click.secho(f"✅ {key} = {value}", fg="green")


@config.command("reset")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation.")
@click.pass_context
def config_reset(ctx: click.Context, yes: bool) -> None:
    """Restore every setting to its default."""
    store = _open_store(ctx)
    if not yes:
        click.confirm("Reset all settings to their defaults?", abort=True)
    store.reset_to_defaults()
    try:
        store.save()
    except OSError as e:
        click.secho(f"❌ Cannot save {store.path}: {e}", fg="red")
        sys.exit(1)
    click.secho("✅ Configuration reset to defaults", fg="green")
