"""
Event and request serialization for the content-view boundary.

Core -> view messages are JSON-safe dicts:
    {"type": "<camelCaseType>", "data": {camelCaseField: value, ...}}

View -> core requests use the same envelope and are dispatched to the
engine by ``dispatch_request``.
"""

import dataclasses
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Optional, Type

from .config import ViewerConfig
from .events import (
    ConfigUpdatedEvent,
    FileUpdatedEvent,
    FocusAuxWindowIntent,
    FocusWindowIntent,
    ManualRefreshStartedEvent,
    MenuChangedEvent,
    OpenSettingsWindowIntent,
    OpenSourceWindowIntent,
    OpenWindowIntent,
    QuitIntent,
    SetTitleIntent,
    SettingsStatusEvent,
    ViewerEvent,
    ViewState,
    WarningEvent,
)
from .types import WindowFrame

if TYPE_CHECKING:
    from .engine import ViewerEngine

EVENT_TYPE_MAP: Dict[Type[ViewerEvent], str] = {
    FileUpdatedEvent: "fileUpdated",
    WarningEvent: "warning",
    ConfigUpdatedEvent: "configUpdated",
    ManualRefreshStartedEvent: "manualRefreshStarted",
    SettingsStatusEvent: "status",
    OpenWindowIntent: "openWindow",
    SetTitleIntent: "setTitle",
    FocusWindowIntent: "focusWindow",
    OpenSettingsWindowIntent: "openSettingsWindow",
    OpenSourceWindowIntent: "openSourceWindow",
    FocusAuxWindowIntent: "focusAuxWindow",
    MenuChangedEvent: "menuChanged",
    QuitIntent: "quit",
}

REQUEST_TYPES = frozenset({
    "getInitialState",
    "pickAndOpenFile",
    "reloadCurrentFile",
    "openSourceView",
    "openInExternalEditor",
    "openLocalLink",
    "openExternalLink",
})


def camel_case(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def _serialize_value(val: Any) -> Any:
    """Recursively convert configs, frames, dataclasses and enums to JSON-safe values."""
    if isinstance(val, (ViewerConfig, WindowFrame)):
        return val.to_dict()
    if isinstance(val, Enum):
        return val.value
    if dataclasses.is_dataclass(val) and not isinstance(val, type):
        return {
            camel_case(f.name): _serialize_value(getattr(val, f.name))
            for f in dataclasses.fields(val)
        }
    if isinstance(val, dict):
        return {k: _serialize_value(v) for k, v in val.items()}
    if isinstance(val, (list, tuple)):
        return [_serialize_value(item) for item in val]
    return val


def event_to_dict(event: ViewerEvent) -> Optional[Dict[str, Any]]:
    """Convert an event to a message dict, or None if the type is unknown."""
    event_type = EVENT_TYPE_MAP.get(type(event))
    if event_type is None:
        return None
    return {"type": event_type, "data": _serialize_value(event)}


def view_state_to_dict(state: ViewState) -> Dict[str, Any]:
    return _serialize_value(state)


def parse_ui_request(raw: Any) -> Optional[Dict[str, Any]]:
    """
    Validate a view -> core request.

    Returns:
        {"type": ..., "data": {...}} or None if invalid.
    """
    if not isinstance(raw, dict):
        return None
    msg_type = raw.get("type")
    if msg_type not in REQUEST_TYPES:
        return None
    data = raw.get("data")
    if data is None:
        data = {}
    if not isinstance(data, dict):
        return None
    if msg_type in ("openLocalLink", "openExternalLink") and not isinstance(data.get("href"), str):
        return None
    return {"type": msg_type, "data": data}


async def dispatch_request(engine: "ViewerEngine", session_id: int, raw: Any) -> Any:
    """
    Route a content-view request to the engine.

    Returns:
        JSON-safe response (None for void requests)

    Raises:
        ValueError: If the request is malformed
        KeyError: If the session is unknown
    """
    request = parse_ui_request(raw)
    if request is None:
        raise ValueError(f"Invalid request: {raw!r}")

    msg_type, data = request["type"], request["data"]
    if msg_type == "getInitialState":
        return view_state_to_dict(await engine.get_initial_state(session_id))
    if msg_type == "pickAndOpenFile":
        await engine.pick_and_open_file(session_id)
    elif msg_type == "reloadCurrentFile":
        engine.reload_current_file(session_id)
    elif msg_type == "openSourceView":
        await engine.open_source_view(session_id)
    elif msg_type == "openInExternalEditor":
        engine.open_in_external_editor(session_id)
    elif msg_type == "openLocalLink":
        from_path = data.get("fromFilePath")
        engine.open_local_link(session_id, data["href"], from_path if isinstance(from_path, str) else None)
    elif msg_type == "openExternalLink":
        engine.open_external_link(session_id, data["href"])
    return None
