"""
Markdown Viewer configuration handling.

Provides JSON configuration loading, per-field sanitation and persistence.
Invalid or missing fields fall back to their defaults individually; the
whole document is never rejected.
"""

import json
import logging
import math
import os
import sys
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

CONFIG_DIR_ENV = "MDVIEW_CONFIG_DIR"
CONFIG_FILENAME = "config.json"

DEBOUNCE_RANGE = (50, 5000)
ZOOM_RANGE = (50, 200)


def _default_editor_path() -> str:
    if sys.platform == "darwin":
        return "/Applications/TextEdit.app"
    if sys.platform.startswith("win"):
        return "notepad.exe"
    return "xdg-open"


DEFAULT_EDITOR_PATH = _default_editor_path()


def default_config_dir() -> Path:
    """
    Get the per-user configuration directory.

    Priority:
        1. MDVIEW_CONFIG_DIR environment variable
        2. ~/.config/markdown-viewer
    """
    env_dir = os.environ.get(CONFIG_DIR_ENV)
    if env_dir:
        return Path(env_dir).expanduser()
    return Path.home() / ".config" / "markdown-viewer"


class ConfigStoreError(Exception):
    """Raised when the configuration document cannot be persisted."""


@dataclass
class ViewerConfig:
    """
    User configuration shared by every viewer session.

    Sessions hold a copy, so changes must be broadcast explicitly.
    """
    refresh_debounce_ms: int = 220
    open_external_links_in_browser: bool = True
    open_local_links_in_app: bool = True
    zoom_percent: int = 100
    external_editor_path: str = DEFAULT_EDITOR_PATH
    show_outline_by_default: bool = True

    def copy(self) -> "ViewerConfig":
        return ViewerConfig(**asdict(self))

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert configuration to its persisted (camelCase) form.

        Returns:
            Configuration as dictionary
        """
        return {
            "refreshDebounceMs": self.refresh_debounce_ms,
            "openExternalLinksInBrowser": self.open_external_links_in_browser,
            "openLocalLinksInApp": self.open_local_links_in_app,
            "zoomPercent": self.zoom_percent,
            "externalEditorPath": self.external_editor_path,
            "showOutlineByDefault": self.show_outline_by_default,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "ViewerConfig":
        """Create a sanitized configuration, discarding the warning."""
        config, _warning = sanitize_config(data)
        return config


def _clamp_number(
    data: Dict[str, Any],
    key: str,
    bounds: Tuple[int, int],
    fallback: int,
    invalid: List[str],
) -> int:
    if key not in data:
        return fallback
    value = data[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)) or math.isnan(value):
        invalid.append(key)
        return fallback
    low, high = bounds
    if math.isinf(value):
        invalid.append(key)
        return high if value > 0 else low
    rounded = int(round(value))
    clamped = min(high, max(low, rounded))
    if clamped != rounded:
        invalid.append(key)
    return clamped


def _boolean(data: Dict[str, Any], key: str, fallback: bool, invalid: List[str]) -> bool:
    if key not in data:
        return fallback
    value = data[key]
    if not isinstance(value, bool):
        invalid.append(key)
        return fallback
    return value


def _editor_path(data: Dict[str, Any], invalid: List[str]) -> str:
    key = "externalEditorPath" if "externalEditorPath" in data else "editorAppPath"
    if key not in data:
        return DEFAULT_EDITOR_PATH
    value = data[key]
    if isinstance(value, str) and value.strip():
        return value.strip()
    invalid.append(key)
    return DEFAULT_EDITOR_PATH


def sanitize_config(raw: Any) -> Tuple[ViewerConfig, Optional[str]]:
    """
    Validate a raw configuration mapping field by field.

    Args:
        raw: Decoded JSON document (anything; non-mappings count as empty)

    Returns:
        (config, warning) where warning names every key that was reset,
        or None if all present keys were valid.
    """
    data = raw if isinstance(raw, dict) else {}
    defaults = ViewerConfig()
    invalid: List[str] = []

    config = ViewerConfig(
        refresh_debounce_ms=_clamp_number(
            data, "refreshDebounceMs", DEBOUNCE_RANGE, defaults.refresh_debounce_ms, invalid
        ),
        open_external_links_in_browser=_boolean(
            data, "openExternalLinksInBrowser", defaults.open_external_links_in_browser, invalid
        ),
        open_local_links_in_app=_boolean(
            data, "openLocalLinksInApp", defaults.open_local_links_in_app, invalid
        ),
        zoom_percent=_clamp_number(
            data, "zoomPercent", ZOOM_RANGE, defaults.zoom_percent, invalid
        ),
        external_editor_path=_editor_path(data, invalid),
        show_outline_by_default=_boolean(
            data, "showOutlineByDefault", defaults.show_outline_by_default, invalid
        ),
    )

    warning = None
    if invalid:
        warning = f"Invalid config keys reset to defaults: {', '.join(invalid)}"
    return config, warning


class ConfigStore:
    """
    Loads and persists the configuration document.

    Usage:
        store = ConfigStore()
        config, warning = store.load()
        store.save(config)
    """

    def __init__(self, config_dir: Optional[Path] = None) -> None:
        self.config_dir = Path(config_dir) if config_dir else default_config_dir()
        self.path = self.config_dir / CONFIG_FILENAME

    def _ensure_dir(self) -> None:
        self.config_dir.mkdir(parents=True, exist_ok=True)

    def load(self) -> Tuple[ViewerConfig, Optional[str]]:
        """
        Load configuration from disk.

        A missing document is created with defaults. An unreadable or
        malformed document yields defaults plus a warning describing why.

        Returns:
            (config, warning)
        """
        try:
            self._ensure_dir()
            if not self.path.exists():
                defaults = ViewerConfig()
                self._write(defaults)
                return defaults, None

            with open(self.path, encoding="utf-8") as f:
                raw = json.load(f)
        except (OSError, ValueError, ConfigStoreError) as e:
            logger.warning(f"Config load failed ({self.path}): {e}")
            return ViewerConfig(), f"Config load failed, using defaults: {e}"

        if not isinstance(raw, dict):
            logger.warning(f"Config at {self.path} is not a JSON object")
            return ViewerConfig(), "Config load failed, using defaults: expected a JSON object"

        config, warning = sanitize_config(raw)
        if warning:
            logger.info(warning)
        return config, warning

    def save(self, config: Any) -> ViewerConfig:
        """
        Sanitize and persist configuration.

        Args:
            config: ViewerConfig or raw camelCase mapping

        Returns:
            The sanitized configuration that was written

        Raises:
            ConfigStoreError: If the document cannot be written
        """
        raw = config.to_dict() if isinstance(config, ViewerConfig) else config
        sanitized, warning = sanitize_config(raw)
        if warning:
            logger.info(f"Saving sanitized config: {warning}")
        try:
            self._ensure_dir()
        except OSError as e:
            raise ConfigStoreError(f"Cannot create {self.config_dir}: {e}") from e
        self._write(sanitized)
        return sanitized

    def _write(self, config: ViewerConfig) -> None:
        try:
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(config.to_dict(), f, indent=2)
        except OSError as e:
            raise ConfigStoreError(f"Cannot write {self.path}: {e}") from e
        logger.debug(f"Config written to {self.path}")
