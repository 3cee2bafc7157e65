"""Recent files commands."""

import os

import click
from rich.console import Console
from rich.table import Table

from ...state import AppStateStore, StateStoreError

console = Console()


@click.group()
def recent() -> None:
    """Inspect or clear the recent-files list."""


@recent.command("list")
@click.option("--all", "show_all", is_flag=True, help="Include files that no longer exist")
@click.pass_context
def recent_list(ctx: click.Context, show_all: bool) -> None:
    """List recent files, most recent first."""
    state = AppStateStore(ctx.obj.get("config_dir")).load()
    rows = [(p, os.path.exists(p)) for p in state.recent_files]
    if not show_all:
        rows = [(p, exists) for p, exists in rows if exists]

    if not rows:
        console.print("[dim]No recent files[/dim]")
        return

    table = Table(title="Recent Files")
    table.add_column("#", style="dim", justify="right")
    table.add_column("Path", style="cyan")
    if show_all:
        table.add_column("Exists")
    for index, (path, exists) in enumerate(rows, start=1):
        cells = [str(index), path]
        if show_all:
            cells.append("[green]✓[/green]" if exists else "[red]✗[/red]")
        table.add_row(*cells)
    console.print(table)


@recent.command("clear")
@click.pass_context
def recent_clear(ctx: click.Context) -> None:
    """Forget all recent files."""
    store = AppStateStore(ctx.obj.get("config_dir"))
    store.load()
    try:
        store.clear_recent_files()
    except StateStoreError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise SystemExit(1)
    console.print("[green]Recent files cleared[/green]")
