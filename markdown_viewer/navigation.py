"""
Navigation router.

Single entry point for every "show this document" request: startup
argument, open-file dialog, local links, recent files and OS open-document
events. Guarantees one canonical path maps to at most one session and
never opens more windows than necessary.
"""

import logging
import os
from typing import TYPE_CHECKING, Callable, Optional

from .documents import window_title
from .events import EventEmitter, FocusWindowIntent, OpenWindowIntent, WarningEvent
from .handoff import SystemLauncher
from .paths import canonicalize, is_document_path, resolve_relative_link
from .session import Session, SessionRegistry
from .state import AppStateStore, StateStoreError

if TYPE_CHECKING:
    from .config import ViewerConfig
    from .watcher import WatchEngine

logger = logging.getLogger(__name__)


class NavigationRouter:
    """
    Decides between reusing a session, opening a new one, or handing off.

    Args:
        registry: Live sessions
        state_store: Recent-file bookkeeping
        watch: Watch engine (rebinding and refreshing sessions)
        emitter: Where intents and warnings go
        config_provider: Returns the current global configuration
        launcher: OS hand-off for non-document targets and web links
    """

    def __init__(
        self,
        registry: SessionRegistry,
        state_store: AppStateStore,
        watch: "WatchEngine",
        emitter: EventEmitter,
        config_provider: Callable[[], "ViewerConfig"],
        launcher: Optional[SystemLauncher] = None,
    ) -> None:
        self._registry = registry
        self._state_store = state_store
        self._watch = watch
        self._emitter = emitter
        self._config = config_provider
        self._launcher = launcher or SystemLauncher()

    def warn(self, session: Optional[Session], message: str) -> None:
        """Warn the given session, or the active one; log if there is none."""
        target = session if session is not None and session in self._registry else self._registry.active
        logger.warning(message)
        if target is not None:
            self._emitter.emit(WarningEvent(session_id=target.session_id, message=message))

    def open_new(self, path: Optional[str] = None) -> Session:
        """Create a session and ask the window system for its window."""
        session = self._registry.create(path, self._config())
        session.title = window_title(session.file_path)
        self._emitter.emit(OpenWindowIntent(
            session_id=session.session_id,
            frame=session.frame.copy(),
            title=session.title,
        ))
        return session

    def navigate(self, target: str, requester: Optional[Session] = None) -> Optional[Session]:
        """
        Show ``target`` in exactly one session.

        1. An existing session on the same canonical path is focused.
        2. Otherwise a blank (welcome) session is reused.
        3. Otherwise a new session is created.

        Returns:
            The session now showing the document, or None if the target
            does not exist (the requester is warned, nothing changes).
        """
        canonical = canonicalize(target)
        if not os.path.exists(canonical):
            self.warn(requester, f"File not found: {canonical}")
            return None

        session = self._registry.find_by_canonical_path(canonical)
        if session is not None:
            logger.debug(f"Session {session.session_id} already shows {canonical}")
            self._registry.set_active(session)
            self._emitter.emit(FocusWindowIntent(session_id=session.session_id))
        else:
            session = self._registry.find_blank(prefer=requester)
            if session is not None:
                logger.debug(f"Reusing blank session {session.session_id} for {canonical}")
                self.rebind(session, canonical)
                self._registry.set_active(session)
                self._emitter.emit(FocusWindowIntent(session_id=session.session_id))
            else:
                session = self.open_new(canonical)

        self._register_recent(session, canonical)
        self._watch.refresh(session)
        return session

    def rebind(self, session: Session, path: str) -> None:
        """Point a session at another file: detach, reassign, reattach."""
        self._watch.detach(session)
        session.file_path = canonicalize(path)
        self._watch.attach(session)

    def open_local_link(
        self,
        href: str,
        from_path: Optional[str],
        requester: Optional[Session] = None,
    ) -> Optional[Session]:
        """
        Follow a link to a local file.

        Markdown targets open in the viewer (when enabled); anything else is
        handed to the system default application.
        """
        file_path = resolve_relative_link(href, from_path)
        if not os.path.exists(file_path):
            self.warn(requester, f"Local link target does not exist: {file_path}")
            return None

        config = requester.config if requester is not None else self._config()
        if is_document_path(file_path) and config.open_local_links_in_app:
            return self.navigate(file_path, requester)

        if not self._launcher.open_path(file_path):
            self.warn(requester, f"Could not open file with system default app: {file_path}")
        return None

    def open_external_link(self, href: str, requester: Optional[Session] = None) -> bool:
        config = requester.config if requester is not None else self._config()
        if not config.open_external_links_in_browser:
            logger.debug(f"External links disabled, ignoring {href}")
            return False
        if not self._launcher.open_external(href):
            self.warn(requester, f"Failed to open link: {href}")
            return False
        return True

    def _register_recent(self, session: Session, path: str) -> None:
        try:
            self._state_store.register_recent_file(path)
        except StateStoreError as e:
            self.warn(session, f"Could not save recent files: {e}")
