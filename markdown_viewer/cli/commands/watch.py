"""Watch command: run the viewer core headless in the terminal."""

import asyncio
from pathlib import Path
from typing import List, Sequence

import click
from rich.console import Console

from ...engine import ViewerEngine
from ...events import QuitIntent
from ..display import EventDisplay

console = Console()


@click.command()
@click.argument("targets", nargs=-1)
@click.option("--render", "-r", is_flag=True, help="Print rendered markdown on every update")
@click.option(
    "--retry-missing", is_flag=True,
    help="Retry once an open-URL target that does not exist yet at startup",
)
@click.pass_context
def watch(ctx: click.Context, targets: Sequence[str], render: bool, retry_missing: bool) -> None:
    """Open documents and print live updates until interrupted.

    TARGETS may be paths, file:// URIs or markdownviewer://?path= URIs.

    Examples:

        mdview watch README.md

        mdview watch -r notes.md "file:///tmp/todo.md"
    """
    config_dir = ctx.obj.get("config_dir")
    try:
        asyncio.run(_watch_async(config_dir, list(targets), render, retry_missing))
    except KeyboardInterrupt:
        console.print("[dim]Stopped[/dim]")


async def _watch_async(
    config_dir: Path,
    targets: List[str],
    render: bool,
    retry_missing: bool,
) -> None:
    engine = ViewerEngine(config_dir=config_dir, retry_missing_startup_target=retry_missing)
    display = EventDisplay(console, render=render)
    display.attach(engine)

    if engine.config_warning:
        console.print(f"[yellow]{engine.config_warning}[/yellow]")

    quit_requested = asyncio.Event()
    engine.add_handler(QuitIntent, lambda _event: quit_requested.set())

    urls = [t for t in targets if "://" in t]
    paths = [t for t in targets if "://" not in t]

    await engine.start(paths)
    for url in urls:
        engine.handle_open_url(url)
    for path in paths:
        if engine.registry.find_by_canonical_path(path) is None:
            engine.open_path(path)

    try:
        await quit_requested.wait()
    finally:
        await engine.stop()
        display.detach()
