"""
Markdown Viewer: session orchestration and live file-watch core.

Tracks any number of viewer sessions (one per window), keeps each one in
sync with its file on disk, persists recent files and window geometry, and
routes navigation so a document is never open twice. Rendering and the GUI
toolkit stay outside; they subscribe to the engine's events.

Basic Usage:
    import asyncio
    from markdown_viewer import ViewerEngine, FileUpdatedEvent

    async def main():
        engine = ViewerEngine()

        @engine.on(FileUpdatedEvent)
        def on_update(event):
            print(event.file_path, len(event.content))

        await engine.start(["README.md"])
        await asyncio.sleep(60)
        await engine.stop()

    asyncio.run(main())
"""

__version__ = "0.3.0"

from .config import ConfigStore, ConfigStoreError, ViewerConfig, sanitize_config
from .engine import ViewerEngine
from .events import (
    ConfigUpdatedEvent,
    EventEmitter,
    FileUpdatedEvent,
    FocusAuxWindowIntent,
    FocusWindowIntent,
    ManualRefreshStartedEvent,
    MenuChangedEvent,
    OpenSettingsWindowIntent,
    OpenSourceWindowIntent,
    OpenWindowIntent,
    QuitIntent,
    SetTitleIntent,
    SettingsStatusEvent,
    ViewerEvent,
    ViewState,
    WarningEvent,
)
from .menu import MenuDescriptor, MenuItem, build_menu
from .navigation import NavigationRouter
from .session import Session, SessionRegistry
from .state import AppState, AppStateStore, StateStoreError
from .types import DocumentRead, FileUpdate, WindowFrame
from .watcher import WatchEngine, WatchfilesWatcher

__all__ = [
    # Version
    "__version__",
    # Main class
    "ViewerEngine",
    # Configuration and state
    "ConfigStore",
    "ConfigStoreError",
    "ViewerConfig",
    "sanitize_config",
    "AppState",
    "AppStateStore",
    "StateStoreError",
    # Sessions and navigation
    "Session",
    "SessionRegistry",
    "NavigationRouter",
    "WatchEngine",
    "WatchfilesWatcher",
    "MenuDescriptor",
    "MenuItem",
    "build_menu",
    # Types
    "DocumentRead",
    "FileUpdate",
    "WindowFrame",
    # Events
    "ConfigUpdatedEvent",
    "EventEmitter",
    "FileUpdatedEvent",
    "FocusAuxWindowIntent",
    "FocusWindowIntent",
    "ManualRefreshStartedEvent",
    "MenuChangedEvent",
    "OpenSettingsWindowIntent",
    "OpenSourceWindowIntent",
    "OpenWindowIntent",
    "QuitIntent",
    "SetTitleIntent",
    "SettingsStatusEvent",
    "ViewerEvent",
    "ViewState",
    "WarningEvent",
]
