"""Version command."""

import click
import watchfiles
from rich.console import Console

from ... import __version__

console = Console()


@click.command()
def version() -> None:
    """Show Markdown Viewer version."""
    console.print(f"[bold]Markdown Viewer[/bold] v{__version__}")
    console.print(f"[dim]watchfiles {watchfiles.__version__}[/dim]")
