"""
Markdown Viewer event system.

The orchestration core never paints anything. It talks to the window
system and to each window's content view by emitting events:
- Content updates (file changed, warning, config changed)
- Window intents (open, retitle, focus, quit)
- Menu descriptor changes

A front end subscribes with ``on()`` / ``on_any()`` and turns intents into
real windows, menus and webview messages.
"""

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Type, TypeVar

from .config import ViewerConfig
from .types import WindowFrame

logger = logging.getLogger(__name__)


@dataclass
class ViewerEvent:
    """Base event class. ``session_id`` is None for application-wide events."""
    timestamp: float = field(default_factory=time.time)
    session_id: Optional[int] = None


@dataclass
class ViewState:
    """Initial state handed to a session's content view."""
    file_path: Optional[str]
    content: str
    warning: Optional[str]
    config: ViewerConfig
    updated_at: float


# === Core -> content view ===


@dataclass
class FileUpdatedEvent(ViewerEvent):
    """New document content for a session."""
    content: str = ""
    file_path: str = ""
    updated_at: float = 0.0


@dataclass
class WarningEvent(ViewerEvent):
    """Non-fatal, user-visible problem (missing file, watcher failure, ...)."""
    message: str = ""


@dataclass
class ConfigUpdatedEvent(ViewerEvent):
    """Settings changed. session_id None addresses the settings window."""
    config: Optional[ViewerConfig] = None


@dataclass
class ManualRefreshStartedEvent(ViewerEvent):
    """Spinner cue shown while a manual refresh is pending."""


@dataclass
class SettingsStatusEvent(ViewerEvent):
    """Status line for the settings window."""
    message: str = ""


# === Core -> window system (intents) ===


@dataclass
class OpenWindowIntent(ViewerEvent):
    """Open a viewer window for a freshly created session."""
    frame: Optional[WindowFrame] = None
    title: str = ""


@dataclass
class SetTitleIntent(ViewerEvent):
    title: str = ""


@dataclass
class FocusWindowIntent(ViewerEvent):
    """Bring the session's window forward."""


@dataclass
class OpenSettingsWindowIntent(ViewerEvent):
    window_id: str = ""
    frame: Optional[WindowFrame] = None
    config: Optional[ViewerConfig] = None


@dataclass
class OpenSourceWindowIntent(ViewerEvent):
    """Open a read-only source view of a session's document snapshot."""
    window_id: str = ""
    frame: Optional[WindowFrame] = None
    title: str = ""
    file_path: Optional[str] = None
    content: str = ""


@dataclass
class FocusAuxWindowIntent(ViewerEvent):
    window_id: str = ""


@dataclass
class MenuChangedEvent(ViewerEvent):
    """Full replacement of the application menu."""
    menu: Any = None


@dataclass
class QuitIntent(ViewerEvent):
    """No windows remain; the application should exit."""


E = TypeVar("E", bound=ViewerEvent)


class EventEmitter:
    """
    Simple pub/sub used between the core and its front end.

    Usage:
        emitter = EventEmitter()

        @emitter.on(FileUpdatedEvent)
        def on_update(event: FileUpdatedEvent):
            webview(event.session_id).send("fileUpdated", event.content)

        emitter.emit(FileUpdatedEvent(session_id=1, content="# Hi"))
    """

    def __init__(self) -> None:
        self._handlers: Dict[Type[ViewerEvent], List[Callable[..., None]]] = {}
        self._global_handlers: List[Callable[[ViewerEvent], None]] = []
        self._lock = threading.Lock()

    def on(self, event_type: Type[E]) -> Callable[[Callable[[E], None]], Callable[[E], None]]:
        """
        Decorator to register an event handler.

        Args:
            event_type: The event class to handle

        Returns:
            Decorator function
        """
        def decorator(func: Callable[[E], None]) -> Callable[[E], None]:
            self.add_handler(event_type, func)
            return func
        return decorator

    def on_any(self, func: Callable[[ViewerEvent], None]) -> Callable[[ViewerEvent], None]:
        """Register a handler for all events."""
        with self._lock:
            self._global_handlers.append(func)
        return func

    def add_handler(self, event_type: Type[E], handler: Callable[[E], None]) -> None:
        with self._lock:
            self._handlers.setdefault(event_type, []).append(handler)

    def emit(self, event: ViewerEvent) -> None:
        """
        Emit an event to all registered handlers.

        Handler lists are snapshotted under the lock and called without it,
        so handlers may register or remove handlers. A failing handler is
        logged and does not stop delivery to the others.
        """
        with self._lock:
            global_snapshot = list(self._global_handlers)
            specific_snapshot = list(self._handlers.get(type(event), []))

        for handler in global_snapshot + specific_snapshot:
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Event handler error ({type(event).__name__}): {e}")

    def remove_handler(self, event_type: Type[E], handler: Callable[[E], None]) -> None:
        with self._lock:
            if event_type in self._handlers:
                self._handlers[event_type] = [
                    h for h in self._handlers[event_type] if h != handler
                ]

    def clear_handlers(self, event_type: Optional[Type[E]] = None) -> None:
        """
        Clear handlers.

        Args:
            event_type: If provided, clear only handlers for this type.
                       If None, clear all handlers.
        """
        with self._lock:
            if event_type is not None:
                self._handlers[event_type] = []
            else:
                self._handlers.clear()
                self._global_handlers.clear()

    def handler_count(self, event_type: Optional[Type[E]] = None) -> int:
        with self._lock:
            if event_type is not None:
                return len(self._handlers.get(event_type, []))
            return sum(len(h) for h in self._handlers.values()) + len(self._global_handlers)
