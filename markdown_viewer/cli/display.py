"""Console front end: prints engine events with rich."""

import time
from typing import Dict, Optional

from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.text import Text

from ..events import (
    ConfigUpdatedEvent,
    EventEmitter,
    FileUpdatedEvent,
    FocusWindowIntent,
    ManualRefreshStartedEvent,
    OpenWindowIntent,
    QuitIntent,
    SetTitleIntent,
    WarningEvent,
)


class EventDisplay:
    """
    Stands in for the window system in headless runs.

    Each session is shown as a tag ``[n]``; updates print a one-line
    summary, or the rendered document with ``render=True``.
    """

    def __init__(self, console: Optional[Console] = None, render: bool = False) -> None:
        self.console = console or Console()
        self.render = render
        self._titles: Dict[int, str] = {}
        self._emitter: Optional[EventEmitter] = None

    def attach(self, emitter: EventEmitter) -> None:
        self._emitter = emitter
        emitter.add_handler(OpenWindowIntent, self.on_open)
        emitter.add_handler(SetTitleIntent, self.on_title)
        emitter.add_handler(FocusWindowIntent, self.on_focus)
        emitter.add_handler(FileUpdatedEvent, self.on_update)
        emitter.add_handler(WarningEvent, self.on_warning)
        emitter.add_handler(ConfigUpdatedEvent, self.on_config)
        emitter.add_handler(ManualRefreshStartedEvent, self.on_refresh)
        emitter.add_handler(QuitIntent, self.on_quit)

    def detach(self) -> None:
        if self._emitter is None:
            return
        for event_type, handler in (
            (OpenWindowIntent, self.on_open),
            (SetTitleIntent, self.on_title),
            (FocusWindowIntent, self.on_focus),
            (FileUpdatedEvent, self.on_update),
            (WarningEvent, self.on_warning),
            (ConfigUpdatedEvent, self.on_config),
            (ManualRefreshStartedEvent, self.on_refresh),
            (QuitIntent, self.on_quit),
        ):
            self._emitter.remove_handler(event_type, handler)
        self._emitter = None

    def _tag(self, session_id: Optional[int]) -> Text:
        return Text(f"[{session_id}] " if session_id is not None else "[*] ", style="bold cyan")

    def on_open(self, event: OpenWindowIntent) -> None:
        self._titles[event.session_id] = event.title
        line = self._tag(event.session_id)
        line.append(f"opened {event.title}")
        if event.frame:
            f = event.frame
            line.append(f"  ({f.x:.0f},{f.y:.0f} {f.width:.0f}x{f.height:.0f})", style="dim")
        self.console.print(line)

    def on_title(self, event: SetTitleIntent) -> None:
        if self._titles.get(event.session_id) == event.title:
            return
        self._titles[event.session_id] = event.title
        self.console.print(self._tag(event.session_id) + Text(f"title: {event.title}", style="dim"))

    def on_focus(self, event: FocusWindowIntent) -> None:
        self.console.print(self._tag(event.session_id) + Text("focused", style="dim"))

    def on_update(self, event: FileUpdatedEvent) -> None:
        stamp = time.strftime("%H:%M:%S", time.localtime(event.updated_at / 1000))
        line = self._tag(event.session_id)
        line.append(f"{event.file_path} ", style="green")
        line.append(f"{len(event.content)} chars @ {stamp}", style="dim")
        self.console.print(line)
        if self.render:
            title = self._titles.get(event.session_id, event.file_path)
            self.console.print(Panel(Markdown(event.content), title=title, expand=True))

    def on_warning(self, event: WarningEvent) -> None:
        self.console.print(self._tag(event.session_id) + Text(event.message, style="yellow"))

    def on_config(self, event: ConfigUpdatedEvent) -> None:
        if event.session_id is None:
            self.console.print("[dim]Settings updated[/dim]")

    def on_refresh(self, event: ManualRefreshStartedEvent) -> None:
        self.console.print(self._tag(event.session_id) + Text("refreshing...", style="dim"))

    def on_quit(self, event: QuitIntent) -> None:
        self.console.print("[dim]All windows closed[/dim]")
