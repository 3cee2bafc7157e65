"""Document reading and window-title helpers."""

import os
import re
from typing import Optional

from .paths import canonicalize, is_document_path
from .types import APP_NAME, LARGE_FILE_BYTES, DocumentRead

WELCOME_CONTENT = (
    "# Welcome\n\n"
    "Open a markdown document from the File menu (`Cmd+O`).\n\n"
    "Everything else auto-refreshes in the background."
)

_HEADING_RE = re.compile(r"^#{1,6}\s+(.+?)\s*#*$")


def read_document(path: str) -> DocumentRead:
    """
    Read a document for display.

    Never raises: missing or unreadable files produce empty content with a
    warning, large or oddly-named files are read fully with a caveat.
    """
    resolved = canonicalize(path)
    try:
        if not os.path.exists(resolved):
            return DocumentRead("", f"File not found: {resolved}")

        with open(resolved, encoding="utf-8", errors="replace") as f:
            content = f.read()

        if not is_document_path(resolved):
            ext = os.path.splitext(resolved)[1] or "none"
            return DocumentRead(
                content,
                f"Opened non-standard extension ({ext}). Rendering as markdown.",
            )

        size = os.stat(resolved).st_size
        if size > LARGE_FILE_BYTES:
            size_mb = size / (1024 * 1024)
            return DocumentRead(content, f"Large file ({size_mb:.1f} MB). Rendering may be slower.")

        return DocumentRead(content)
    except OSError as e:
        return DocumentRead("", f"Failed to read file: {e}")


def strip_front_matter(content: str) -> str:
    """Drop a leading YAML (---) or TOML (+++) front-matter block."""
    normalized = content.replace("\r\n", "\n")
    for delimiter in ("---", "+++"):
        if normalized.startswith(delimiter + "\n"):
            end_token = f"\n{delimiter}\n"
            end = normalized.find(end_token, len(delimiter))
            if end == -1:
                return normalized
            return normalized[end + len(end_token):]
    return normalized


def extract_document_heading(content: str) -> Optional[str]:
    for raw_line in strip_front_matter(content).split("\n"):
        match = _HEADING_RE.match(raw_line.strip())
        if match and match.group(1).strip():
            return match.group(1).strip()
    return None


def window_title(file_path: Optional[str], content: Optional[str] = None) -> str:
    """
    Title for a viewer window.

    Uses the document's first heading, else the file name (``.md`` is
    appended to extensionless names), else the application name.
    """
    if not file_path:
        return APP_NAME
    heading = extract_document_heading(content) if content else None
    if heading:
        return heading
    base = os.path.basename(file_path)
    return base if "." in base else f"{base}.md"
