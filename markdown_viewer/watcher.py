"""
Per-session file watching with debounced update delivery.

State machine per session:

    Idle (no file) / Unwatched -> Watching -> PendingDebounce -> Watching

A raw change notification cancels any pending refresh and schedules a new
one, so bursts of filesystem events coalesce into a single delivery
(last write wins). Each session owns at most one watcher handle and at most
one pending refresh task.
"""

import asyncio
import errno
import logging
import os
from typing import Callable, Dict, Optional, Protocol

import watchfiles

from .documents import read_document
from .types import DocumentRead, FileUpdate

logger = logging.getLogger(__name__)


class WatchHandle(Protocol):
    """A live filesystem watch. ``close()`` must be idempotent."""

    def close(self) -> None:
        ...


WatcherFactory = Callable[
    [str, Callable[[], None], Callable[[Exception], None]],
    WatchHandle,
]


class WatchfilesWatcher:
    """
    Watches a single file with ``watchfiles.awatch`` in a background task.

    The parent directory is watched and changes are filtered down to the
    target path, so editors that save by renaming a temp file over the
    document keep being followed.

    Must be created from inside a running event loop. The target is checked
    up front so a missing or unreadable file fails at open time instead of
    silently inside the task. A failure after that is passed to ``on_error``.
    """

    def __init__(
        self,
        path: str,
        on_change: Callable[[], None],
        on_error: Optional[Callable[[Exception], None]] = None,
        debounce_ms: int = 50,
        step_ms: int = 25,
        force_polling: Optional[bool] = None,
    ) -> None:
        if not os.path.exists(path):
            raise FileNotFoundError(errno.ENOENT, "No such file or directory", path)
        if not os.access(path, os.R_OK):
            raise PermissionError(errno.EACCES, "Permission denied", path)

        self.path = os.path.abspath(path)
        self.directory = os.path.dirname(self.path)
        self._on_change = on_change
        self._on_error = on_error
        self._debounce_ms = debounce_ms
        self._step_ms = step_ms
        self._force_polling = force_polling
        self._stop_event = asyncio.Event()
        self._closed = False
        self._task = asyncio.get_running_loop().create_task(self._run())

    @property
    def closed(self) -> bool:
        return self._closed

    def _is_target(self, _change: watchfiles.Change, changed_path: str) -> bool:
        return os.path.abspath(changed_path) == self.path

    async def _run(self) -> None:
        try:
            async for changes in watchfiles.awatch(
                self.directory,
                watch_filter=self._is_target,
                debounce=self._debounce_ms,
                step=self._step_ms,
                stop_event=self._stop_event,
                force_polling=self._force_polling,
                recursive=False,
            ):
                if self._closed:
                    break
                logger.debug(f"{len(changes)} change(s) on {self.path}")
                self._on_change()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"Watcher for {self.path} stopped: {e}")
            if not self._closed and self._on_error is not None:
                self._on_error(e)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._stop_event.set()
        self._task.cancel()


class WatchEngine:
    """
    Attaches watchers to sessions and delivers coalesced file updates.

    Args:
        on_update: Called with (session, FileUpdate) when a refresh lands
        on_warning: Called with (session, message) for non-fatal problems
        watcher_factory: Creates a WatchHandle for (path, on_change, on_error)
        reader: Reads a document; runs in a worker thread
    """

    def __init__(
        self,
        on_update: Callable[..., None],
        on_warning: Optional[Callable[..., None]] = None,
        watcher_factory: Optional[WatcherFactory] = None,
        reader: Callable[[str], DocumentRead] = read_document,
    ) -> None:
        self._on_update = on_update
        self._on_warning = on_warning
        self._factory: WatcherFactory = watcher_factory or WatchfilesWatcher
        self._reader = reader
        self._handles: Dict[int, WatchHandle] = {}

    @property
    def live_watchers(self) -> int:
        return len(self._handles)

    def attach(self, session) -> None:
        """
        (Re)watch the session's current file.

        Any previous watcher and pending refresh are discarded first. A
        failure to open the watcher is reported to the session as a warning;
        the session stays usable.
        """
        self.detach(session)
        if session.file_path is None or session.closed:
            return

        path = session.file_path
        try:
            handle = self._factory(
                path,
                lambda: self.notify_change(session),
                lambda error: self._watch_failed(session, path, error),
            )
        except (OSError, RuntimeError) as e:
            logger.warning(f"Session {session.session_id}: watcher failed for {session.file_path}: {e}")
            self._warn(session, f"File watcher failed: {e}")
            return

        session.watch_handle = handle
        self._handles[session.session_id] = handle
        logger.debug(f"Session {session.session_id}: watching {session.file_path}")

    def _watch_failed(self, session, path: str, error: Exception) -> None:
        """A running watcher died: drop its handle and tell the session."""
        if session.closed or session.file_path != path:
            return
        handle, session.watch_handle = session.watch_handle, None
        self._handles.pop(session.session_id, None)
        if handle is not None:
            handle.close()
        logger.warning(f"Session {session.session_id}: watcher for {path} stopped: {error}")
        self._warn(session, f"File watcher failed: {error}")

    def detach(self, session) -> None:
        """Close the watcher and cancel the pending refresh. Safe to repeat."""
        handle, session.watch_handle = session.watch_handle, None
        self._handles.pop(session.session_id, None)
        if handle is not None:
            handle.close()
        self.cancel_pending(session)

    def cancel_pending(self, session) -> None:
        task, session.pending_refresh = session.pending_refresh, None
        if task is not None and not task.done():
            task.cancel()

    def notify_change(self, session) -> None:
        """Raw change notification: restart the session's debounce window."""
        if session.closed or session.file_path is None:
            return
        self._schedule(session, session.config.refresh_debounce_ms)

    def refresh(self, session, delay_ms: int = 0) -> None:
        """Re-read the session's file after ``delay_ms``, superseding any pending refresh."""
        if session.closed or session.file_path is None:
            return
        self._schedule(session, delay_ms)

    def _schedule(self, session, delay_ms: int) -> None:
        self.cancel_pending(session)
        loop = asyncio.get_running_loop()
        session.pending_refresh = loop.create_task(
            self._deliver_after(session, session.file_path, delay_ms / 1000)
        )

    async def _deliver_after(self, session, path: str, delay: float) -> None:
        if delay > 0:
            await asyncio.sleep(delay)
        read = await asyncio.to_thread(self._reader, path)

        # Cancellation can race with firing; only the live, current refresh delivers.
        if (
            session.closed
            or session.file_path != path
            or session.pending_refresh is not asyncio.current_task()
        ):
            logger.debug(f"Session {session.session_id}: dropped superseded refresh of {path}")
            return

        session.pending_refresh = None
        update = FileUpdate(file_path=path, content=read.content, warning=read.warning)
        try:
            self._on_update(session, update)
        except Exception:
            logger.exception(f"Session {session.session_id}: update delivery failed")

    def _warn(self, session, message: str) -> None:
        if self._on_warning is not None:
            self._on_warning(session, message)
