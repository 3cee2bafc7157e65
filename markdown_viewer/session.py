"""
Viewer sessions and the registry that owns them.

A session is one viewer window bound to zero or one file. The registry
keeps the live set plus the active-session id; the active session is
looked up by id on every access, never held as a reference.
"""

import asyncio
import itertools
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Dict, Iterator, List, Optional

from .config import ViewerConfig
from .paths import canonicalize
from .types import DEFAULT_FRAME, WINDOW_OFFSET, WindowFrame

if TYPE_CHECKING:
    from .state import AppStateStore
    from .watcher import WatchEngine, WatchHandle

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class Session:
    """
    One open viewer window.

    ``watch_handle`` and ``pending_refresh`` belong to the session and are
    only touched by the WatchEngine.
    """
    session_id: int
    file_path: Optional[str] = None
    frame: WindowFrame = field(default_factory=DEFAULT_FRAME.copy)
    config: ViewerConfig = field(default_factory=ViewerConfig)
    title: str = ""
    watch_handle: Optional["WatchHandle"] = field(default=None, repr=False)
    pending_refresh: Optional[asyncio.Task] = field(default=None, repr=False)
    closed: bool = False

    @property
    def is_blank(self) -> bool:
        return self.file_path is None


class SessionRegistry:
    """
    Owns the set of live sessions and tracks which one is active.

    Args:
        watch: Engine that attaches and detaches per-session watchers
        app_state_store: Source of the persisted last window frame
        on_change: Called when the session set or active session changes
    """

    def __init__(
        self,
        watch: "WatchEngine",
        app_state_store: "AppStateStore",
        on_change: Optional[Callable[[], None]] = None,
    ) -> None:
        self._watch = watch
        self._app_state_store = app_state_store
        self._on_change = on_change
        self._sessions: Dict[int, Session] = {}
        self._active_id: Optional[int] = None
        self._ids = itertools.count(1)

    def __iter__(self) -> Iterator[Session]:
        return iter(list(self._sessions.values()))

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session: object) -> bool:
        return isinstance(session, Session) and self._sessions.get(session.session_id) is session

    @property
    def active(self) -> Optional[Session]:
        if self._active_id is None:
            return None
        return self._sessions.get(self._active_id)

    @property
    def active_id(self) -> Optional[int]:
        return self.active.session_id if self.active else None

    def snapshot(self) -> List[Session]:
        return list(self._sessions.values())

    def get(self, session_id: int) -> Optional[Session]:
        return self._sessions.get(session_id)

    def menu_target(self) -> Optional[Session]:
        """Session targeted by menu actions: the active one, else any."""
        return self.active or next(iter(self._sessions.values()), None)

    def next_frame(self) -> WindowFrame:
        """
        Frame for the next session.

        Offsets from the active (or newest) session; with no sessions, uses
        the persisted last frame or the default.
        """
        if not self._sessions:
            last = self._app_state_store.state.last_window_frame
            return last.copy() if last else DEFAULT_FRAME.copy()
        source = self.active or list(self._sessions.values())[-1]
        return source.frame.offset(WINDOW_OFFSET)

    def create(
        self,
        initial_path: Optional[str] = None,
        config: Optional[ViewerConfig] = None,
    ) -> Session:
        """
        Allocate, register, activate and watch a new session.

        Args:
            initial_path: Document to bind, or None for a welcome session
            config: Global configuration; the session keeps its own copy
        """
        session = Session(
            session_id=next(self._ids),
            file_path=canonicalize(initial_path) if initial_path else None,
            frame=self.next_frame(),
            config=config.copy() if config else ViewerConfig(),
        )
        self._sessions[session.session_id] = session
        self._active_id = session.session_id
        self._watch.attach(session)
        logger.info(f"Session {session.session_id} created: {session.file_path or '<welcome>'}")
        self._changed()
        return session

    def find_by_canonical_path(self, path: str) -> Optional[Session]:
        target = canonicalize(path)
        for session in self._sessions.values():
            if session.file_path and canonicalize(session.file_path) == target:
                return session
        return None

    def find_blank(self, prefer: Optional[Session] = None) -> Optional[Session]:
        """A session showing welcome content, preferring ``prefer`` if it is one."""
        if prefer is not None and prefer in self and prefer.is_blank:
            return prefer
        return next((s for s in self._sessions.values() if s.is_blank), None)

    def remove(self, session: Session) -> None:
        """Detach the session's watcher and timer and drop it from the set."""
        if self._sessions.get(session.session_id) is not session:
            return
        self._watch.detach(session)
        session.closed = True
        del self._sessions[session.session_id]
        if self._active_id == session.session_id:
            fallback = next(iter(self._sessions.values()), None)
            self._active_id = fallback.session_id if fallback else None
        logger.info(f"Session {session.session_id} removed ({len(self._sessions)} left)")
        self._changed()

    def set_active(self, session: Session) -> None:
        if session not in self:
            return
        self._active_id = session.session_id
        self._changed()

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change()
