"""
Persisted application state: recent files and last window geometry.

Unlike the configuration, unreadable state is silently replaced by an
empty state; there is nothing unsafe about starting with no recents.
Every mutation is written immediately.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from .config import default_config_dir
from .paths import canonicalize, is_document_path
from .types import RECENTS_LIMIT, WindowFrame

logger = logging.getLogger(__name__)

STATE_FILENAME = "state.json"


class StateStoreError(Exception):
    """Raised when the state document cannot be persisted."""


@dataclass
class AppState:
    """Cross-session state that survives restarts."""
    recent_files: List[str] = field(default_factory=list)
    last_window_frame: Optional[WindowFrame] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "recentFiles": list(self.recent_files),
            "lastWindowFrame": self.last_window_frame.to_dict() if self.last_window_frame else None,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "AppState":
        """Build state from a decoded document, dropping anything malformed."""
        if not isinstance(data, dict):
            return cls()
        recents = data.get("recentFiles")
        return cls(
            recent_files=[p for p in recents if isinstance(p, str)] if isinstance(recents, list) else [],
            last_window_frame=WindowFrame.from_dict(data.get("lastWindowFrame")),
        )


class AppStateStore:
    """
    Owns the single in-memory AppState and its persisted copy.

    Args:
        config_dir: Directory holding state.json
        on_change: Called after the recent-file list changes (menu rebuild)
    """

    def __init__(
        self,
        config_dir: Optional[Path] = None,
        on_change: Optional[Callable[[], None]] = None,
    ) -> None:
        self.config_dir = Path(config_dir) if config_dir else default_config_dir()
        self.path = self.config_dir / STATE_FILENAME
        self.on_change = on_change
        self.state = AppState()

    def load(self) -> AppState:
        """Load state from disk, falling back to an empty state."""
        try:
            self.config_dir.mkdir(parents=True, exist_ok=True)
            if not self.path.exists():
                self.state = AppState()
                self.save()
                return self.state
            with open(self.path, encoding="utf-8") as f:
                self.state = AppState.from_dict(json.load(f))
        except (OSError, ValueError, StateStoreError) as e:
            logger.debug(f"State load failed ({self.path}), starting empty: {e}")
            self.state = AppState()
        return self.state

    def save(self, state: Optional[AppState] = None) -> None:
        """
        Overwrite the state document synchronously.

        The in-memory state is replaced first, so a failed write never loses
        what the user is currently seeing.

        Raises:
            StateStoreError: If the document cannot be written
        """
        if state is not None:
            self.state = state
        try:
            self.config_dir.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(self.state.to_dict(), f, indent=2)
        except OSError as e:
            raise StateStoreError(f"Cannot write {self.path}: {e}") from e

    def register_recent_file(self, path: str) -> bool:
        """
        Move a document to the front of the recent-file list and persist.

        Non-document paths are ignored.

        Returns:
            True if the list was updated
        """
        canonical = canonicalize(path)
        if not is_document_path(canonical):
            return False

        deduped = [p for p in self.state.recent_files if p != canonical]
        self.state.recent_files = [canonical, *deduped][:RECENTS_LIMIT]
        try:
            self.save()
        finally:
            self._changed()
        return True

    def clear_recent_files(self) -> None:
        self.state.recent_files = []
        try:
            self.save()
        finally:
            self._changed()

    def set_last_window_frame(self, frame: WindowFrame) -> None:
        self.state.last_window_frame = frame.copy()
        self.save()

    def _changed(self) -> None:
        if self.on_change is not None:
            self.on_change()
