"""Markdown Viewer utilities."""

from .logging import get_logger, setup_logging, setup_logging_from_dict

__all__ = [
    "get_logger",
    "setup_logging",
    "setup_logging_from_dict",
]
