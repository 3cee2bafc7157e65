"""
Path resolution for documents and links.

Every session-identity comparison goes through canonicalize(); two spellings
of the same real file (symlinks, relative segments) compare equal.
"""

import os
from typing import Optional
from urllib.parse import parse_qs, unquote, urlparse

from .types import DOCUMENT_EXTENSIONS

FILE_SCHEME = "file://"
APP_URI_SCHEME = "markdownviewer"


def _decode_file_uri(uri: str) -> str:
    return unquote(urlparse(uri).path)


def normalize(input_path: str) -> str:
    """
    Turn user or OS input into an absolute filesystem path.

    file:// URIs are decoded, relative paths are resolved against the
    current working directory, absolute paths pass through unchanged.
    """
    if input_path.startswith(FILE_SCHEME):
        return _decode_file_uri(input_path)
    if os.path.isabs(input_path):
        return input_path
    return os.path.normpath(os.path.join(os.getcwd(), input_path))


def canonicalize(input_path: str) -> str:
    """
    Normalize and resolve symbolic links.

    A target that does not exist keeps its normalized form so that a later
    "file not found" report shows a stable path.
    """
    normalized = normalize(input_path)
    if not os.path.exists(normalized):
        return normalized
    try:
        return os.path.realpath(normalized)
    except OSError:
        return normalized


def same_file(a: str, b: str) -> bool:
    return canonicalize(a) == canonicalize(b)


def is_document_path(path: str) -> bool:
    """True if the extension (case-insensitive) is a markdown suffix."""
    return os.path.splitext(path)[1].lower() in DOCUMENT_EXTENSIONS


def resolve_relative_link(href: str, from_path: Optional[str]) -> str:
    """
    Resolve a link found inside a document.

    Args:
        href: Link target as written in the document
        from_path: Path of the document containing the link, if any

    Returns:
        Canonical path of the link target
    """
    if href.startswith(FILE_SCHEME) or os.path.isabs(href):
        return canonicalize(href)
    base = os.path.dirname(from_path) if from_path else os.getcwd()
    return canonicalize(os.path.normpath(os.path.join(base, href)))


def path_from_open_url(url: str) -> Optional[str]:
    """
    Extract a filesystem path from an OS "open URL" request.

    Supports ``file:///path`` and ``markdownviewer://?path=/path``.
    Returns None for other schemes or malformed input.
    """
    try:
        parsed = urlparse(url)
    except ValueError:
        return None
    if parsed.scheme == "file":
        path = unquote(parsed.path)
        return path or None
    if parsed.scheme == APP_URI_SCHEME:
        values = parse_qs(parsed.query).get("path")
        if values and values[0]:
            return values[0]
    return None
