"""
Application menu descriptor.

The menu is rebuilt from scratch from the session set and the app state on
every relevant change rather than patched in place, so it can never drift
from the state it describes.
"""

import os
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional

from .session import Session
from .state import AppState
from .types import APP_NAME, RECENTS_LIMIT


@dataclass
class MenuItem:
    """A menu entry. Exactly one of role/action/submenu/separator is usually set."""
    label: str = ""
    action: Optional[str] = None
    role: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)
    accelerator: Optional[str] = None
    checked: bool = False
    enabled: bool = True
    separator: bool = False
    submenu: Optional[List["MenuItem"]] = None


SEPARATOR = MenuItem(separator=True)


@dataclass
class MenuDescriptor:
    """Top-level menus in display order."""
    menus: List[MenuItem] = field(default_factory=list)

    def find(self, label: str) -> Optional[MenuItem]:
        return next((m for m in self.menus if m.label == label), None)


def session_label(session: Session) -> str:
    if not session.file_path:
        return "Untitled"
    return f"{os.path.basename(session.file_path)} - {session.file_path}"


def recent_items(app_state: AppState, exists: Callable[[str], bool] = os.path.exists) -> List[MenuItem]:
    """Recent files that still exist. Stale entries are hidden, not deleted."""
    recent = [p for p in app_state.recent_files if exists(p)][:RECENTS_LIMIT]
    if not recent:
        return [MenuItem(label="No Recent Files", enabled=False)]
    return [MenuItem(label=p, action="open-recent", data={"path": p}) for p in recent]


def window_items(sessions: Iterable[Session], active_id: Optional[int]) -> List[MenuItem]:
    items = [
        MenuItem(role="minimize"),
        MenuItem(role="zoom"),
        MenuItem(role="close"),
        SEPARATOR,
        MenuItem(role="toggleFullScreen"),
        SEPARATOR,
        MenuItem(role="bringAllToFront"),
    ]
    sessions = list(sessions)
    if sessions:
        items.append(SEPARATOR)
    for session in sessions:
        items.append(MenuItem(
            label=session_label(session),
            action="focus-window",
            data={"sessionId": session.session_id},
            checked=session.session_id == active_id,
        ))
    return items


def build_menu(
    sessions: Iterable[Session],
    active_id: Optional[int],
    app_state: AppState,
    exists: Callable[[str], bool] = os.path.exists,
) -> MenuDescriptor:
    """
    Derive the full application menu.

    Args:
        sessions: Registry snapshot, in creation order
        active_id: Id of the active session (gets the checkmark)
        app_state: Source of recent files
        exists: Existence check used to hide stale recents

    Returns:
        MenuDescriptor
    """
    return MenuDescriptor(menus=[
        MenuItem(label=APP_NAME, submenu=[
            MenuItem(role="about"),
            SEPARATOR,
            MenuItem(label="Settings…", action="settings", accelerator="CommandOrControl+,"),
            SEPARATOR,
            MenuItem(role="quit", accelerator="CommandOrControl+Q"),
        ]),
        MenuItem(label="File", submenu=[
            MenuItem(label="Open…", action="open-file", accelerator="CommandOrControl+O"),
            MenuItem(label="Open Recent", submenu=recent_items(app_state, exists)),
            SEPARATOR,
            MenuItem(label="Refresh", action="refresh", accelerator="CommandOrControl+R"),
            MenuItem(label="View Source", action="view-source", accelerator="CommandOrControl+U"),
            MenuItem(label="Open in Editor", action="open-in-editor", accelerator="CommandOrControl+E"),
        ]),
        MenuItem(label="Window", submenu=window_items(sessions, active_id)),
    ])
