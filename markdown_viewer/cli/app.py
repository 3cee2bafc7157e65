"""Markdown Viewer CLI application."""

from pathlib import Path
from typing import Optional

import click
from rich.console import Console

from .. import __version__
from ..config import default_config_dir
from ..utils.logging import setup_logging

console = Console()


def resolve_config_dir(config_dir: Optional[str]) -> Path:
    """
    Pick the configuration directory:

    1. --config-dir PATH (explicit)
    2. MDVIEW_CONFIG_DIR environment variable
    3. ~/.config/markdown-viewer
    """
    if config_dir:
        return Path(config_dir).expanduser()
    return default_config_dir()


@click.group()
@click.version_option(version=__version__, prog_name="mdview")
@click.option("--config-dir", "-c", type=click.Path(file_okay=False), help="Configuration directory")
@click.option("--log-file", type=click.Path(dir_okay=False), help="Also log to this file (rotated)")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.option("--debug", is_flag=True, help="Debug mode")
@click.pass_context
def cli(ctx: click.Context, config_dir: str, log_file: str, verbose: bool, debug: bool) -> None:
    """Markdown Viewer: live-updating markdown preview sessions.

    Watches documents on disk and keeps every open viewer in sync.
    Settings and recent files live in the configuration directory.

    Examples:

        mdview watch README.md docs/guide.md

        mdview config set refreshDebounceMs 500

        mdview recent list
    """
    ctx.ensure_object(dict)

    level = "DEBUG" if debug else "INFO" if verbose else "WARNING"
    setup_logging(level, log_file=log_file)

    ctx.obj["config_dir"] = resolve_config_dir(config_dir)
    ctx.obj["verbose"] = verbose
    ctx.obj["debug"] = debug
    if verbose:
        console.print(f"[dim]Using config dir: {ctx.obj['config_dir']}[/dim]")


# Import and register commands
from .commands import config, recent, version, watch

cli.add_command(watch.watch)
cli.add_command(config.config)
cli.add_command(recent.recent)
cli.add_command(version.version)
