"""
Markdown Viewer engine: the orchestration context.

Owns the configuration and state stores, the watch engine, the session
registry and the navigation router, and exposes the operations a front end
calls:
- Startup and OS open-document requests
- Requests from a session's content view (open file, reload, links, ...)
- Window-system input (focus, move, resize, close)
- Menu clicks and settings

Everything runs on one asyncio loop; there is no module-level state.
"""

import asyncio
import logging
import os
import time
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Set

from .config import ConfigStore, ViewerConfig
from .documents import WELCOME_CONTENT, read_document, window_title
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
    QuitIntent,
    SetTitleIntent,
    SettingsStatusEvent,
    ViewState,
    WarningEvent,
)
from .handoff import SystemLauncher
from .menu import MenuDescriptor, build_menu
from .navigation import NavigationRouter
from .paths import canonicalize, path_from_open_url
from .session import Session, SessionRegistry
from .state import AppStateStore, StateStoreError
from .types import (
    AUX_WINDOW_OFFSET,
    DEFAULT_FRAME,
    SETTINGS_FRAME_SIZE,
    SOURCE_FRAME_SIZE,
    FileUpdate,
    WindowFrame,
)
from .watcher import WatchEngine, WatcherFactory

logger = logging.getLogger(__name__)

FilePicker = Callable[[], Awaitable[List[str]]]

STARTUP_GRACE_MS = 320
REFRESH_VISUAL_DELAY_MS = 140
SETTINGS_WINDOW_ID = "settings"


def _now_ms() -> float:
    return time.time() * 1000


def pick_initial_file_path(argv: Iterable[str]) -> Optional[str]:
    """First command-line argument that names an existing file."""
    for arg in argv:
        candidate = canonicalize(arg)
        if os.path.isfile(candidate):
            return candidate
    return None


class ViewerEngine(EventEmitter):
    """
    Orchestration core for viewer sessions.

    Usage:
        engine = ViewerEngine(file_picker=dialogs.pick_markdown)

        @engine.on(OpenWindowIntent)
        def on_open(event):
            windows.create(event.session_id, event.frame, event.title)

        await engine.start(sys.argv[1:])
        ...
        await engine.stop()

    Args:
        config_dir: Directory for config.json/state.json (default per-user)
        watcher_factory: Watch implementation (default: watchfiles)
        launcher: OS hand-off implementation
        file_picker: Async callable returning chosen paths
        startup_grace_ms: Wait for an OS open-document event before
            opening a blank session
        retry_missing_startup_target: Retry once an open-URL target that
            does not exist yet during startup, instead of dropping it
        startup_retry_delay_ms: Delay before that retry
    """

    def __init__(
        self,
        config_dir: Optional[Path] = None,
        watcher_factory: Optional[WatcherFactory] = None,
        launcher: Optional[SystemLauncher] = None,
        file_picker: Optional[FilePicker] = None,
        startup_grace_ms: int = STARTUP_GRACE_MS,
        retry_missing_startup_target: bool = False,
        startup_retry_delay_ms: int = 1000,
    ) -> None:
        super().__init__()

        self.config_store = ConfigStore(config_dir)
        self.state_store = AppStateStore(config_dir, on_change=self.rebuild_menu)
        self._config, self._config_warning = self.config_store.load()
        self.state_store.load()

        self._launcher = launcher or SystemLauncher()
        self._file_picker = file_picker
        self._startup_grace_ms = startup_grace_ms
        self._retry_missing_startup_target = retry_missing_startup_target
        self._startup_retry_delay_ms = startup_retry_delay_ms

        self.watch = WatchEngine(
            on_update=self._deliver_update,
            on_warning=self._warn_session,
            watcher_factory=watcher_factory,
        )
        self.registry = SessionRegistry(self.watch, self.state_store, on_change=self.rebuild_menu)
        self.router = NavigationRouter(
            self.registry,
            self.state_store,
            self.watch,
            emitter=self,
            config_provider=lambda: self._config,
            launcher=self._launcher,
        )

        self.menu: Optional[MenuDescriptor] = None
        self._aux_windows: Set[str] = set()
        self._source_ids = 0
        self._startup_timer: Optional[asyncio.TimerHandle] = None
        self._startup_complete = False
        self._handled_startup_open = False
        self._retry_tasks: Set[asyncio.Task] = set()

    # === Properties ===

    @property
    def config(self) -> ViewerConfig:
        return self._config

    @property
    def config_warning(self) -> Optional[str]:
        return self._config_warning

    @property
    def aux_windows(self) -> Set[str]:
        return set(self._aux_windows)

    # === Lifecycle ===

    async def start(self, argv: Iterable[str] = ()) -> None:
        """
        Open the initial session.

        A file argument opens immediately. Otherwise a blank session is
        opened after the startup grace window unless an OS open-document
        request arrives first.
        """
        self.rebuild_menu()
        initial = pick_initial_file_path(argv)
        if initial:
            self._handled_startup_open = True
            self._startup_complete = True
            self.router.navigate(initial)
            return

        loop = asyncio.get_running_loop()
        self._startup_timer = loop.call_later(self._startup_grace_ms / 1000, self._startup_fallback)

    async def stop(self) -> None:
        """Close every session's watcher and timer without quitting."""
        self._cancel_startup_timer()
        for task in list(self._retry_tasks):
            task.cancel()
        self._retry_tasks.clear()
        for session in self.registry:
            self.registry.remove(session)
        logger.info("Viewer engine stopped")

    def _startup_fallback(self) -> None:
        self._startup_timer = None
        self._startup_complete = True
        if not self._handled_startup_open and len(self.registry) == 0:
            self.router.open_new()

    def _cancel_startup_timer(self) -> None:
        if self._startup_timer is not None:
            self._startup_timer.cancel()
            self._startup_timer = None

    def handle_open_url(self, url: str) -> Optional[Session]:
        """
        Route an OS "open URL" / "open document" request.

        During startup a target that does not exist is dropped (and the
        blank-session fallback stays armed), or retried once when
        ``retry_missing_startup_target`` is set.
        """
        path = path_from_open_url(url)
        if path is None:
            logger.debug(f"Ignoring unsupported URL: {url}")
            return None

        in_startup = not self._startup_complete
        if in_startup and not os.path.exists(canonicalize(path)):
            if not self._retry_missing_startup_target:
                logger.warning(f"Dropping startup open request, target missing: {path}")
                return None
            self._handled_startup_open = True
            self._cancel_startup_timer()
            logger.info(f"Startup target missing, retrying in {self._startup_retry_delay_ms} ms: {path}")
            task = asyncio.get_running_loop().create_task(self._retry_startup_open(path))
            self._retry_tasks.add(task)
            task.add_done_callback(self._retry_tasks.discard)
            return None

        if in_startup:
            self._handled_startup_open = True
            self._cancel_startup_timer()
            self._startup_complete = True
        return self.router.navigate(path, self.registry.menu_target())

    async def _retry_startup_open(self, path: str) -> None:
        await asyncio.sleep(self._startup_retry_delay_ms / 1000)
        self._startup_complete = True
        if self.router.navigate(path, self.registry.menu_target()) is None and len(self.registry) == 0:
            self.router.open_new()

    def open_path(self, path: str) -> Optional[Session]:
        """Navigate to a path on behalf of the menu target (CLI, drag and drop)."""
        return self.router.navigate(path, self.registry.menu_target())

    # === Content-view requests ===

    def _session(self, session_id: int) -> Session:
        session = self.registry.get(session_id)
        if session is None:
            raise KeyError(f"Unknown session: {session_id}")
        return session

    async def get_initial_state(self, session_id: int) -> ViewState:
        session = self._session(session_id)
        if not session.file_path:
            return ViewState(
                file_path=None,
                content=WELCOME_CONTENT,
                warning=self._config_warning,
                config=session.config.copy(),
                updated_at=_now_ms(),
            )
        read = await asyncio.to_thread(read_document, session.file_path)
        self._set_title(session, read.content)
        return ViewState(
            file_path=session.file_path,
            content=read.content,
            warning=self._config_warning or read.warning,
            config=session.config.copy(),
            updated_at=_now_ms(),
        )

    async def pick_and_open_file(self, session_id: int) -> Optional[Session]:
        """Ask the file picker for a document and navigate to it."""
        session = self._session(session_id)
        if self._file_picker is None:
            self._warn_session(session, "No file picker is available.")
            return None
        picked = await self._file_picker()
        if not picked:
            return None
        # The session may have closed while the dialog was open.
        return self.router.navigate(picked[0], session if session in self.registry else None)

    def reload_current_file(self, session_id: int) -> None:
        session = self._session(session_id)
        self.emit(ManualRefreshStartedEvent(session_id=session.session_id))
        self.watch.refresh(session, REFRESH_VISUAL_DELAY_MS)

    async def open_source_view(self, session_id: int) -> str:
        """Open a source window with a snapshot of the session's document."""
        session = self._session(session_id)
        content = ""
        if session.file_path:
            content = (await asyncio.to_thread(read_document, session.file_path)).content
        self._source_ids += 1
        window_id = f"source-{self._source_ids}"
        width, height = SOURCE_FRAME_SIZE
        frame = session.frame.offset(AUX_WINDOW_OFFSET)
        self._aux_windows.add(window_id)
        self.emit(OpenSourceWindowIntent(
            session_id=session.session_id,
            window_id=window_id,
            frame=WindowFrame(frame.x, frame.y, width, height),
            title=f"Source: {session.file_path}" if session.file_path else "Source",
            file_path=session.file_path,
            content=content,
        ))
        return window_id

    def open_in_external_editor(self, session_id: int) -> bool:
        session = self._session(session_id)
        if not session.file_path:
            self._warn_session(session, "No file is open.")
            return False
        editor = session.config.external_editor_path
        if not self._launcher.open_in_editor(editor, session.file_path):
            self._warn_session(session, f"Failed to open file in editor: {session.file_path}")
            return False
        return True

    def open_local_link(self, session_id: int, href: str, from_file_path: Optional[str]) -> Optional[Session]:
        session = self._session(session_id)
        return self.router.open_local_link(href, from_file_path, session)

    def open_external_link(self, session_id: int, href: str) -> bool:
        session = self._session(session_id)
        return self.router.open_external_link(href, session)

    # === Window-system input ===

    def window_focused(self, session_id: int) -> None:
        session = self.registry.get(session_id)
        if session is not None:
            self.registry.set_active(session)

    def window_moved(self, session_id: int, x: Optional[float] = None, y: Optional[float] = None) -> None:
        self.window_resized(session_id, x=x, y=y)

    def window_resized(
        self,
        session_id: int,
        x: Optional[float] = None,
        y: Optional[float] = None,
        width: Optional[float] = None,
        height: Optional[float] = None,
    ) -> None:
        """Mirror live geometry into the session and persist it as the last frame."""
        session = self.registry.get(session_id)
        if session is None:
            return
        for name, value in (("x", x), ("y", y), ("width", width), ("height", height)):
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                setattr(session.frame, name, value)
        self._persist_frame(session)

    def window_closed(self, session_id: int) -> None:
        session = self.registry.get(session_id)
        if session is None:
            return
        self._persist_frame(session)
        self.registry.remove(session)
        self._maybe_quit()

    def aux_window_closed(self, window_id: str) -> None:
        self._aux_windows.discard(window_id)
        self._maybe_quit()

    def _persist_frame(self, session: Session) -> None:
        try:
            self.state_store.set_last_window_frame(session.frame)
        except StateStoreError as e:
            logger.warning(f"Could not save window frame: {e}")

    def _maybe_quit(self) -> None:
        if len(self.registry) == 0 and not self._aux_windows:
            logger.info("Last window closed, quitting")
            self.emit(QuitIntent())

    # === Settings ===

    def open_settings(self) -> None:
        if SETTINGS_WINDOW_ID in self._aux_windows:
            self.emit(FocusAuxWindowIntent(window_id=SETTINGS_WINDOW_ID))
            return
        target = self.registry.active
        origin = target.frame if target else DEFAULT_FRAME
        width, height = SETTINGS_FRAME_SIZE
        self._aux_windows.add(SETTINGS_WINDOW_ID)
        self.emit(OpenSettingsWindowIntent(
            window_id=SETTINGS_WINDOW_ID,
            frame=WindowFrame(origin.x + 30, origin.y + 30, width, height),
            config=self._config.copy(),
        ))

    def get_settings_state(self) -> ViewerConfig:
        return self._config.copy()

    def save_settings(self, raw: Any) -> ViewerConfig:
        """
        Persist new settings and broadcast them to every session.

        Raises:
            ConfigStoreError: If the config cannot be written; the in-memory
                configuration is left unchanged.
        """
        config = self.config_store.save(raw)
        self._config = config
        self._config_warning = None
        for session in self.registry:
            session.config = config.copy()
            self.emit(ConfigUpdatedEvent(session_id=session.session_id, config=config.copy()))
        self.emit(ConfigUpdatedEvent(config=config.copy()))
        self.emit(SettingsStatusEvent(message="Saved"))
        logger.info("Settings saved and applied to all sessions")
        return config.copy()

    # === Menu ===

    def rebuild_menu(self) -> MenuDescriptor:
        self.menu = build_menu(
            self.registry.snapshot(),
            self.registry.active_id,
            self.state_store.state,
        )
        self.emit(MenuChangedEvent(menu=self.menu))
        return self.menu

    async def handle_menu_action(self, action: str, data: Optional[Dict[str, Any]] = None) -> None:
        """Dispatch an application-menu click."""
        data = data or {}

        if action == "settings":
            self.open_settings()
            return

        if action == "open-recent":
            path = data.get("path")
            if isinstance(path, str) and path:
                self.router.navigate(path, self.registry.menu_target())
            return

        if action == "focus-window":
            session = self.registry.get(data.get("sessionId", -1))
            if session is not None:
                self.registry.set_active(session)
                self.emit(FocusWindowIntent(session_id=session.session_id))
            return

        target = self.registry.menu_target()
        if target is None:
            logger.debug(f"Menu action {action!r} with no session")
            return

        if action == "open-file":
            await self.pick_and_open_file(target.session_id)
        elif action == "refresh":
            self.reload_current_file(target.session_id)
        elif action == "view-source":
            await self.open_source_view(target.session_id)
        elif action == "open-in-editor":
            self.open_in_external_editor(target.session_id)
        else:
            logger.debug(f"Unknown menu action: {action!r}")

    # === Delivery ===

    def _deliver_update(self, session: Session, update: FileUpdate) -> None:
        self._set_title(session, update.content)
        self.emit(FileUpdatedEvent(
            session_id=session.session_id,
            content=update.content,
            file_path=update.file_path,
            updated_at=update.updated_at,
        ))
        if update.warning:
            self.emit(WarningEvent(session_id=session.session_id, message=update.warning))

    def _warn_session(self, session: Session, message: str) -> None:
        self.router.warn(session, message)

    def _set_title(self, session: Session, content: Optional[str] = None) -> None:
        title = window_title(session.file_path, content)
        if title != session.title:
            session.title = title
            self.emit(SetTitleIntent(session_id=session.session_id, title=title))
