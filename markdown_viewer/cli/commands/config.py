"""Configuration commands."""

import json

import click
from rich.console import Console
from rich.table import Table

from ...config import ConfigStore, ConfigStoreError, ViewerConfig

console = Console()

KNOWN_KEYS = tuple(ViewerConfig().to_dict())


@click.group()
def config() -> None:
    """Show and edit viewer settings (config.json).

    Examples:

        mdview config show

        mdview config set zoomPercent 120

        mdview config reset
    """


def _store(ctx: click.Context) -> ConfigStore:
    return ConfigStore(ctx.obj.get("config_dir"))


@config.command("show")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def config_show(ctx: click.Context, as_json: bool) -> None:
    """Show the effective (sanitized) configuration."""
    cfg, warning = _store(ctx).load()

    if as_json:
        click.echo(json.dumps(cfg.to_dict(), indent=2))
        return

    table = Table(title="Settings")
    table.add_column("Key", style="cyan")
    table.add_column("Value")
    for key, value in cfg.to_dict().items():
        table.add_row(key, json.dumps(value))
    console.print(table)
    if warning:
        console.print(f"[yellow]{warning}[/yellow]")


@config.command("set")
@click.argument("key")
@click.argument("value")
@click.pass_context
def config_set(ctx: click.Context, key: str, value: str) -> None:
    """Set one key. VALUE is parsed as JSON, else taken as a string."""
    if key not in KNOWN_KEYS:
        console.print(f"[red]Unknown key: {key}[/red] (known: {', '.join(KNOWN_KEYS)})")
        raise SystemExit(1)

    try:
        parsed = json.loads(value)
    except ValueError:
        parsed = value

    store = _store(ctx)
    cfg, _warning = store.load()
    data = cfg.to_dict()
    data[key] = parsed

    try:
        saved = store.save(data)
    except ConfigStoreError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise SystemExit(1)

    stored = saved.to_dict()[key]
    if stored != parsed:
        console.print(f"[yellow]{key}: {json.dumps(parsed)} is invalid, stored {json.dumps(stored)}[/yellow]")
    else:
        console.print(f"[green]{key} = {json.dumps(stored)}[/green]")


@config.command("reset")
@click.pass_context
def config_reset(ctx: click.Context) -> None:
    """Restore default settings."""
    try:
        _store(ctx).save(ViewerConfig())
    except ConfigStoreError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise SystemExit(1)
    console.print("[green]Settings reset to defaults[/green]")


@config.command("path")
@click.pass_context
def config_path(ctx: click.Context) -> None:
    """Print the configuration file path."""
    click.echo(str(_store(ctx).path))
