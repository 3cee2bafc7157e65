"""
Markdown Viewer type definitions.

This module contains the plain data types shared by the stores, the watch
engine and the orchestration core.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

APP_NAME = "Markdown Viewer"

DOCUMENT_EXTENSIONS = frozenset({".md", ".markdown", ".mdown", ".mkd"})
RECENTS_LIMIT = 15
LARGE_FILE_BYTES = 10 * 1024 * 1024

WINDOW_OFFSET = 28
AUX_WINDOW_OFFSET = 24


@dataclass
class WindowFrame:
    """Window rectangle in screen coordinates."""
    x: float
    y: float
    width: float
    height: float

    def offset(self, dx: float, dy: Optional[float] = None) -> "WindowFrame":
        """Return a copy shifted by (dx, dy); size is preserved."""
        return WindowFrame(
            x=self.x + dx,
            y=self.y + (dx if dy is None else dy),
            width=self.width,
            height=self.height,
        )

    def copy(self) -> "WindowFrame":
        return WindowFrame(self.x, self.y, self.width, self.height)

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}

    @classmethod
    def from_dict(cls, data: Any) -> Optional["WindowFrame"]:
        """Build a frame from a mapping, or None if any coordinate is not a number."""
        if not isinstance(data, dict):
            return None
        values = []
        for key in ("x", "y", "width", "height"):
            value = data.get(key)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                return None
            values.append(value)
        return cls(*values)


DEFAULT_FRAME = WindowFrame(x=120, y=80, width=1360, height=900)
SETTINGS_FRAME_SIZE = (760, 520)
SOURCE_FRAME_SIZE = (980, 760)


@dataclass
class DocumentRead:
    """Result of reading a document from disk.

    ``warning`` is a human-readable caveat; ``content`` is always best-effort.
    """
    content: str
    warning: Optional[str] = None


@dataclass
class FileUpdate:
    """Payload delivered to a session when its file changed on disk."""
    file_path: str
    content: str
    updated_at: float = field(default_factory=lambda: time.time() * 1000)
    warning: Optional[str] = None
