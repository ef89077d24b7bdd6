# status: complete

"""GUI action taxonomy.

Typed payloads for every desktop action the agent can request, the result
types some of them produce, and the decoder that turns an untyped
parameter dict (as emitted by the model) into one of them.

Decoding never touches the OS.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union


class ActionError(Exception):
    """Base class for action decoding and execution precondition errors."""


class ActionDecodeError(ActionError):
    """A payload field is missing or malformed."""

    def __init__(self, action: str, field_name: str, reason: str):
        super().__init__(f"invalid '{field_name}' for {action}: {reason}")
        self.action = action
        self.field_name = field_name
        self.reason = reason


class UnsupportedActionError(ActionError):
    def __init__(self, action: str):
        super().__init__(f"unsupported action: {action}")
        self.action = action


class EmptyPathError(ActionError):
    def __init__(self, action: str):
        super().__init__(f"path is empty for {action}")
        self.action = action


class UnsupportedApplicationError(ActionError):
    def __init__(self, application: str):
        super().__init__(f"unsupported application: {application}")
        self.application = application


class UnsupportedPlatformError(ActionError):
    def __init__(self, platform_name: str):
        super().__init__(f"unsupported platform: {platform_name}")
        self.platform_name = platform_name


class ActionType(str, Enum):
    MOVE_MOUSE = "move_mouse"
    TRACE_MOUSE = "trace_mouse"
    CLICK_MOUSE = "click_mouse"
    PRESS_MOUSE = "press_mouse"
    DRAG_MOUSE = "drag_mouse"
    SCROLL = "scroll"
    TYPE_KEYS = "type_keys"
    PRESS_KEYS = "press_keys"
    TYPE_TEXT = "type_text"
    PASTE_TEXT = "paste_text"
    WAIT = "wait"
    SCREENSHOT = "screenshot"
    CURSOR_POSITION = "cursor_position"
    APPLICATION = "application"
    WRITE_FILE = "write_file"
    READ_FILE = "read_file"


class MouseButton(str, Enum):
    LEFT = "left"
    RIGHT = "right"
    MIDDLE = "middle"


class PressState(str, Enum):
    DOWN = "down"
    UP = "up"


class ScrollDirection(str, Enum):
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"


class ApplicationName(str, Enum):
    BROWSER = "browser"
    EDITOR = "editor"
    TERMINAL = "terminal"
    FILE_MANAGER = "fileManager"


# Names the model (and older clients) use for the same applications
APPLICATION_ALIASES = {
    "firefox": ApplicationName.BROWSER,
    "vscode": ApplicationName.EDITOR,
    "code": ApplicationName.EDITOR,
    "directory": ApplicationName.FILE_MANAGER,
    "finder": ApplicationName.FILE_MANAGER,
    "file_manager": ApplicationName.FILE_MANAGER,
    "filemanager": ApplicationName.FILE_MANAGER,
}


@dataclass(frozen=True)
class Coordinates:
    x: int
    y: int

    def to_dict(self) -> Dict[str, int]:
        return {"x": self.x, "y": self.y}


@dataclass(frozen=True)
class MoveMouse:
    coordinates: Coordinates


@dataclass(frozen=True)
class TraceMouse:
    path: Tuple[Coordinates, ...]
    hold_keys: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ClickMouse:
    coordinates: Optional[Coordinates] = None
    button: MouseButton = MouseButton.LEFT
    click_count: int = 1
    hold_keys: Tuple[str, ...] = ()


@dataclass(frozen=True)
class PressMouse:
    press: PressState
    coordinates: Optional[Coordinates] = None
    button: MouseButton = MouseButton.LEFT


@dataclass(frozen=True)
class DragMouse:
    path: Tuple[Coordinates, ...]
    button: MouseButton = MouseButton.LEFT
    hold_keys: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Scroll:
    direction: ScrollDirection
    coordinates: Optional[Coordinates] = None
    scroll_count: int = 1
    hold_keys: Tuple[str, ...] = ()


@dataclass(frozen=True)
class TypeKeys:
    keys: Tuple[str, ...]
    delay_ms: Optional[int] = None


@dataclass(frozen=True)
class PressKeys:
    keys: Tuple[str, ...]
    press: PressState


@dataclass(frozen=True)
class TypeText:
    text: str
    delay_ms: Optional[int] = None


@dataclass(frozen=True)
class PasteText:
    text: str


@dataclass(frozen=True)
class Wait:
    duration_ms: int


@dataclass(frozen=True)
class Screenshot:
    pass


@dataclass(frozen=True)
class CursorPosition:
    pass


@dataclass(frozen=True)
class Application:
    application: ApplicationName


@dataclass(frozen=True)
class WriteFile:
    path: str
    base64_data: str


@dataclass(frozen=True)
class ReadFile:
    path: str


Action = Union[
    MoveMouse, TraceMouse, ClickMouse, PressMouse, DragMouse, Scroll,
    TypeKeys, PressKeys, TypeText, PasteText, Wait, Screenshot,
    CursorPosition, Application, WriteFile, ReadFile,
]

ACTION_TYPES = {
    MoveMouse: ActionType.MOVE_MOUSE,
    TraceMouse: ActionType.TRACE_MOUSE,
    ClickMouse: ActionType.CLICK_MOUSE,
    PressMouse: ActionType.PRESS_MOUSE,
    DragMouse: ActionType.DRAG_MOUSE,
    Scroll: ActionType.SCROLL,
    TypeKeys: ActionType.TYPE_KEYS,
    PressKeys: ActionType.PRESS_KEYS,
    TypeText: ActionType.TYPE_TEXT,
    PasteText: ActionType.PASTE_TEXT,
    Wait: ActionType.WAIT,
    Screenshot: ActionType.SCREENSHOT,
    CursorPosition: ActionType.CURSOR_POSITION,
    Application: ActionType.APPLICATION,
    WriteFile: ActionType.WRITE_FILE,
    ReadFile: ActionType.READ_FILE,
}


def action_type_of(action: Action) -> ActionType:
    try:
        return ACTION_TYPES[type(action)]
    except KeyError:
        raise UnsupportedActionError(type(action).__name__)


@dataclass
class ScreenshotResult:
    """Base64-encoded PNG of the whole screen."""

    image: str

    def to_dict(self) -> Dict[str, Any]:
        return {"image": self.image}


@dataclass
class CursorPositionResult:
    x: int
    y: int

    def to_dict(self) -> Dict[str, Any]:
        return {"x": self.x, "y": self.y}


@dataclass
class FileOperationResult:
    """Outcome of write_file/read_file. Failures are results, not exceptions."""

    success: bool
    message: str = ""
    data: Optional[str] = None
    name: Optional[str] = None
    size: Optional[int] = None
    media_type: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"success": self.success}
        if self.message:
            payload["message"] = self.message
        if self.data is not None:
            payload["data"] = self.data
        if self.name is not None:
            payload["name"] = self.name
        if self.size is not None:
            payload["size"] = self.size
        if self.media_type is not None:
            payload["mediaType"] = self.media_type
        return payload


ActionResult = Union[ScreenshotResult, CursorPositionResult, FileOperationResult, None]


_MISSING = object()


def _first(params: Dict[str, Any], *names: str) -> Any:
    """Value of the first present key; wire names before their aliases."""
    for name in names:
        if name in params and params[name] is not None:
            return params[name]
    return _MISSING


def _as_int(action: str, field_name: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ActionDecodeError(action, field_name, "expected an integer, got a boolean")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
    raise ActionDecodeError(action, field_name, f"expected an integer, got {value!r}")


def _decode_point(action: str, field_name: str, value: Any) -> Coordinates:
    if isinstance(value, dict):
        if "x" not in value or "y" not in value:
            raise ActionDecodeError(action, field_name, "expected an object with 'x' and 'y'")
        return Coordinates(_as_int(action, f"{field_name}.x", value["x"]),
                           _as_int(action, f"{field_name}.y", value["y"]))
    if isinstance(value, (list, tuple)) and len(value) == 2:
        return Coordinates(_as_int(action, f"{field_name}[0]", value[0]),
                           _as_int(action, f"{field_name}[1]", value[1]))
    raise ActionDecodeError(action, field_name, f"expected coordinates, got {value!r}")


def _decode_coordinates(action: str, params: Dict[str, Any], required: bool) -> Optional[Coordinates]:
    coordinates = _first(params, "coordinates")
    if coordinates is not _MISSING:
        return _decode_point(action, "coordinates", coordinates)
    # Flat x/y, as the single-purpose tools accept them
    if params.get("x") is not None and params.get("y") is not None:
        return Coordinates(_as_int(action, "x", params["x"]), _as_int(action, "y", params["y"]))
    if required:
        raise ActionDecodeError(action, "coordinates", "required")
    return None


def _decode_path(action: str, params: Dict[str, Any]) -> Tuple[Coordinates, ...]:
    path = _first(params, "path")
    if path is _MISSING:
        raise ActionDecodeError(action, "path", "required")
    if not isinstance(path, (list, tuple)):
        raise ActionDecodeError(action, "path", "expected a list of coordinates")
    return tuple(_decode_point(action, f"path[{i}]", point) for i, point in enumerate(path))


def _decode_keys(action: str, params: Dict[str, Any], names: Tuple[str, ...], required: bool) -> Tuple[str, ...]:
    value = _first(params, *names)
    if value is _MISSING:
        if required:
            raise ActionDecodeError(action, names[0], "required")
        return ()
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)):
        raise ActionDecodeError(action, names[0], "expected a list of key names")
    keys = []
    for key in value:
        if not isinstance(key, str) or not key.strip():
            raise ActionDecodeError(action, names[0], f"invalid key name {key!r}")
        keys.append(key.strip())
    if required and not keys:
        raise ActionDecodeError(action, names[0], "must not be empty")
    return tuple(keys)


def _decode_enum(action: str, params: Dict[str, Any], field_name: str, enum_cls, default=_MISSING):
    value = _first(params, field_name)
    if value is _MISSING:
        if default is _MISSING:
            raise ActionDecodeError(action, field_name, "required")
        return default
    if isinstance(value, str):
        try:
            return enum_cls(value.strip().lower())
        except ValueError:
            pass
    allowed = ", ".join(member.value for member in enum_cls)
    raise ActionDecodeError(action, field_name, f"expected one of {allowed}, got {value!r}")


def _decode_count(action: str, params: Dict[str, Any], field_name: str) -> int:
    # 0 behaves like an omitted count
    value = _first(params, field_name)
    if value is _MISSING:
        return 1
    count = _as_int(action, field_name, value)
    if count == 0:
        return 1
    if count < 0:
        raise ActionDecodeError(action, field_name, "must be >= 1")
    return count


def _decode_optional_delay(action: str, params: Dict[str, Any]) -> Optional[int]:
    value = _first(params, "delay", "delayMs")
    if value is _MISSING:
        return None
    return _as_int(action, "delay", value)


def _decode_text(action: str, params: Dict[str, Any], field_name: str) -> str:
    value = _first(params, field_name)
    if value is _MISSING:
        raise ActionDecodeError(action, field_name, "required")
    if not isinstance(value, str):
        raise ActionDecodeError(action, field_name, f"expected a string, got {type(value).__name__}")
    return value


def _decode_file_path(action: str, params: Dict[str, Any]) -> str:
    path = _decode_text(action, params, "path")
    if not path.strip():
        raise ActionDecodeError(action, "path", "must not be empty")
    return path


def decode_application_name(value: Any) -> ApplicationName:
    if not isinstance(value, str) or not value.strip():
        raise ActionDecodeError(ActionType.APPLICATION.value, "application", "required")
    name = value.strip()
    for member in ApplicationName:
        if member.value.lower() == name.lower():
            return member
    alias = APPLICATION_ALIASES.get(name.lower())
    if alias is None:
        raise UnsupportedApplicationError(name)
    return alias


def decode_action(tag: str, params: Optional[Dict[str, Any]]) -> Action:
    """Build a typed action from its tag and raw parameter dict."""
    if not isinstance(tag, str):
        raise UnsupportedActionError(repr(tag))
    try:
        action_type = ActionType(tag.strip())
    except ValueError:
        raise UnsupportedActionError(tag)

    if params is None:
        params = {}
    if not isinstance(params, dict):
        raise ActionDecodeError(action_type.value, "params", "expected an object")

    name = action_type.value

    if action_type is ActionType.MOVE_MOUSE:
        return MoveMouse(coordinates=_decode_coordinates(name, params, required=True))

    if action_type is ActionType.TRACE_MOUSE:
        return TraceMouse(
            path=_decode_path(name, params),
            hold_keys=_decode_keys(name, params, ("holdKeys", "hold_keys"), required=False),
        )

    if action_type is ActionType.CLICK_MOUSE:
        return ClickMouse(
            coordinates=_decode_coordinates(name, params, required=False),
            button=_decode_enum(name, params, "button", MouseButton, MouseButton.LEFT),
            click_count=_decode_count(name, params, "clickCount"),
            hold_keys=_decode_keys(name, params, ("holdKeys", "hold_keys"), required=False),
        )

    if action_type is ActionType.PRESS_MOUSE:
        return PressMouse(
            press=_decode_enum(name, params, "press", PressState),
            coordinates=_decode_coordinates(name, params, required=False),
            button=_decode_enum(name, params, "button", MouseButton, MouseButton.LEFT),
        )

    if action_type is ActionType.DRAG_MOUSE:
        return DragMouse(
            path=_decode_path(name, params),
            button=_decode_enum(name, params, "button", MouseButton, MouseButton.LEFT),
            hold_keys=_decode_keys(name, params, ("holdKeys", "hold_keys"), required=False),
        )

    if action_type is ActionType.SCROLL:
        return Scroll(
            direction=_decode_enum(name, params, "direction", ScrollDirection),
            coordinates=_decode_coordinates(name, params, required=False),
            scroll_count=_decode_count(name, params, "scrollCount"),
            hold_keys=_decode_keys(name, params, ("holdKeys", "hold_keys"), required=False),
        )

    if action_type is ActionType.TYPE_KEYS:
        return TypeKeys(
            keys=_decode_keys(name, params, ("keys",), required=True),
            delay_ms=_decode_optional_delay(name, params),
        )

    if action_type is ActionType.PRESS_KEYS:
        return PressKeys(
            keys=_decode_keys(name, params, ("keys",), required=True),
            press=_decode_enum(name, params, "press", PressState),
        )

    if action_type is ActionType.TYPE_TEXT:
        return TypeText(text=_decode_text(name, params, "text"), delay_ms=_decode_optional_delay(name, params))

    if action_type is ActionType.PASTE_TEXT:
        return PasteText(text=_decode_text(name, params, "text"))

    if action_type is ActionType.WAIT:
        value = _first(params, "duration", "durationMs")
        if value is _MISSING:
            raise ActionDecodeError(name, "duration", "required")
        duration = _as_int(name, "duration", value)
        if duration < 0:
            raise ActionDecodeError(name, "duration", "must be >= 0")
        return Wait(duration_ms=duration)

    if action_type is ActionType.SCREENSHOT:
        return Screenshot()

    if action_type is ActionType.CURSOR_POSITION:
        return CursorPosition()

    if action_type is ActionType.APPLICATION:
        value = _first(params, "application", "applicationName")
        if value is _MISSING:
            raise ActionDecodeError(name, "application", "required")
        return Application(application=decode_application_name(value))

    if action_type is ActionType.WRITE_FILE:
        data = _first(params, "data", "base64Data")
        if data is _MISSING:
            raise ActionDecodeError(name, "data", "required")
        if not isinstance(data, str):
            raise ActionDecodeError(name, "data", "expected a base64 string")
        return WriteFile(path=_decode_file_path(name, params), base64_data=data)

    if action_type is ActionType.READ_FILE:
        return ReadFile(path=_decode_file_path(name, params))

    raise UnsupportedActionError(tag)


def decode_action_request(body: Any) -> Action:
    """Decode a {"action": <tag>, ...payload} request body."""
    if not isinstance(body, dict):
        raise ActionDecodeError("request", "body", "expected a JSON object")
    tag = body.get("action")
    if not isinstance(tag, str) or not tag.strip():
        raise ActionDecodeError("request", "action", "missing or invalid 'action' field")
    payload = {key: value for key, value in body.items() if key != "action"}
    return decode_action(tag, payload)
