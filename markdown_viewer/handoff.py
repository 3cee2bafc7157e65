"""
Hand-off of paths and URLs to the operating system.

Used for non-markdown link targets, the external editor and web links.
Every method reports success as a bool; callers turn False into a
user-visible warning.
"""

import logging
import os
import shutil
import subprocess
import sys
import webbrowser

logger = logging.getLogger(__name__)


class SystemLauncher:
    """Opens files, editors and URLs with platform tools."""

    def open_path(self, path: str) -> bool:
        """Open a file with the system default application."""
        if sys.platform.startswith("win"):
            try:
                os.startfile(path)  # type: ignore[attr-defined]
                return True
            except OSError as e:
                logger.warning(f"startfile failed for {path}: {e}")
                return False
        opener = "open" if sys.platform == "darwin" else "xdg-open"
        return self._run([opener, path])

    def open_in_editor(self, editor: str, path: str) -> bool:
        """
        Open a file in the configured editor.

        On macOS the editor is an application bundle passed to ``open -a``.
        Elsewhere it is an executable. Falls back to the default application.
        """
        if sys.platform == "darwin":
            if self._run(["open", "-a", editor, path]):
                return True
        elif shutil.which(editor) or os.path.isfile(editor):
            if self._spawn([editor, path]):
                return True
        return self.open_path(path)

    def open_external(self, url: str) -> bool:
        try:
            return webbrowser.open(url)
        except webbrowser.Error as e:
            logger.warning(f"Browser hand-off failed for {url}: {e}")
            return False

    def _run(self, cmd: list) -> bool:
        try:
            proc = subprocess.run(
                cmd,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                timeout=10,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.warning(f"{cmd[0]} failed: {e}")
            return False
        return proc.returncode == 0

    def _spawn(self, cmd: list) -> bool:
        try:
            subprocess.Popen(
                cmd,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                start_new_session=True,
            )
        except OSError as e:
            logger.warning(f"Could not start {cmd[0]}: {e}")
            return False
        return True
