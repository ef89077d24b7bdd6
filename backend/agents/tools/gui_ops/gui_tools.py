from __future__ import annotations

from typing import Any, Callable, Dict, Optional

from agents.models.gui_actions import (
    Action,
    ActionResult,
    ActionType,
    CursorPositionResult,
    FileOperationResult,
    ScreenshotResult,
    action_type_of,
    decode_action,
    decode_action_request,
)
from agents.tools.gui_ops.action_executor import ActionExecutor
from agents.tools.tool_registry import ToolExecutionContext, ToolRegistry, ToolResult, ToolSpec
from utils.logger import get_logger

_logger = get_logger(__name__)

MOUSE_CONTROL = "Mouse Control"
KEYBOARD_CONTROL = "Keyboard Control"
SCREEN_OPERATIONS = "Screen Operations"
APPLICATION_CONTROL = "Application Control"
FILE_OPERATIONS = "File Operations"


_POINT_SCHEMA = {
    "type": "object",
    "properties": {
        "x": {"type": "integer"},
        "y": {"type": "integer"},
    },
    "required": ["x", "y"],
}

_PATH_SCHEMA = {
    "type": "array",
    "items": _POINT_SCHEMA,
    "description": "Points to move through, in order; must not be empty",
}

_HOLD_KEYS_SCHEMA = {
    "type": "array",
    "items": {"type": "string"},
    "description": "Keys held down for the duration of the action, e.g. [\"shift\"]",
}

_BUTTON_SCHEMA = {
    "type": "string",
    "enum": ["left", "right", "middle"],
    "default": "left",
    "description": "Mouse button",
}

_PRESS_SCHEMA = {
    "type": "string",
    "enum": ["down", "up"],
    "description": "Press or release",
}


def format_action_result(tag: str, result: ActionResult) -> str:
    """Text the model sees for a completed action."""
    if isinstance(result, ScreenshotResult):
        return f"Screenshot captured successfully (base64 length: {len(result.image)})"

    if isinstance(result, CursorPositionResult):
        return f"Cursor position: ({result.x}, {result.y})"

    if isinstance(result, FileOperationResult):
        if not result.success:
            return result.message or f"Action '{tag}' failed"
        if tag == ActionType.READ_FILE.value:
            return f"File read successfully: {result.name} ({result.size} bytes, {result.media_type})"
        return result.message or "File written successfully"

    return f"Action '{tag}' executed successfully"


def _result_metadata(action: Action, result: ActionResult) -> Dict[str, Any]:
    metadata: Dict[str, Any] = {"action": action_type_of(action).value}
    if result is not None:
        metadata["result"] = result.to_dict()
    return metadata


def run_action(executor: ActionExecutor, action: Action, ctx: ToolExecutionContext) -> ToolResult:
    tag = action_type_of(action).value
    result = executor.execute(action, ctx.cancellation)
    output = format_action_result(tag, result)
    _logger.debug(f"[TOOL-RESULT] {tag}: {output}")
    return ToolResult(output=output, metadata=_result_metadata(action, result))


def _gui_control_fn(executor: ActionExecutor) -> Callable[[Dict[str, Any], ToolExecutionContext], ToolResult]:
    def _tool_gui_control(params: Dict[str, Any], ctx: ToolExecutionContext) -> ToolResult:
        """
        Execute any GUI action described by {"action": <tag>, ...payload}.

        Decode errors propagate so the agent loop can report them back to the model.
        """
        action = decode_action_request(params)
        return run_action(executor, action, ctx)

    return _tool_gui_control


def _single_action_fn(
    executor: ActionExecutor, action_type: ActionType
) -> Callable[[Dict[str, Any], ToolExecutionContext], ToolResult]:
    def _tool_single_action(params: Dict[str, Any], ctx: ToolExecutionContext) -> ToolResult:
        action = decode_action(action_type.value, params)
        return run_action(executor, action, ctx)

    _tool_single_action.__name__ = f"_tool_{action_type.value}"
    return _tool_single_action


GUI_CONTROL_DESCRIPTION = """Control the computer GUI (mouse, keyboard, screen, files). Input is an object with an "action" field plus that action's parameters.

Available actions:
- move_mouse: {"coordinates": {"x": 100, "y": 200}}
- trace_mouse: {"path": [{"x": 100, "y": 100}, {"x": 200, "y": 200}], "holdKeys": []}
- click_mouse: {"button": "left", "coordinates": {"x": 100, "y": 200}, "clickCount": 1}
- press_mouse: {"button": "left", "press": "down"}
- drag_mouse: {"path": [{"x": 100, "y": 100}, {"x": 200, "y": 200}], "button": "left"}
- scroll: {"direction": "down", "scrollCount": 3}
- type_text: {"text": "Hello World", "delay": 0}
- type_keys: {"keys": ["ctrl", "c"]}
- press_keys: {"keys": ["shift"], "press": "down"}
- paste_text: {"text": "Hello World"}
- wait: {"duration": 1000} (milliseconds)
- screenshot: capture the screen
- cursor_position: current cursor position
- application: {"application": "browser"} (browser|editor|terminal|fileManager)
- write_file: {"path": "notes.txt", "data": "<base64>"}
- read_file: {"path": "notes.txt"}

Example input: {"action": "type_text", "text": "Hello World"}"""


# (tool name, action, category, description, input schema)
_SINGLE_ACTION_TOOLS = [
    (
        "move_mouse", ActionType.MOVE_MOUSE, MOUSE_CONTROL,
        "Move the mouse cursor to specific screen coordinates.",
        {
            "type": "object",
            "properties": {
                "x": {"type": "integer", "description": "Horizontal position in pixels"},
                "y": {"type": "integer", "description": "Vertical position in pixels"},
            },
            "required": ["x", "y"],
        },
    ),
    (
        "trace_mouse", ActionType.TRACE_MOUSE, MOUSE_CONTROL,
        "Move the mouse along a path of points without pressing a button.",
        {
            "type": "object",
            "properties": {"path": _PATH_SCHEMA, "holdKeys": _HOLD_KEYS_SCHEMA},
            "required": ["path"],
        },
    ),
    (
        "click_mouse", ActionType.CLICK_MOUSE, MOUSE_CONTROL,
        "Click the mouse at the current position or at the given coordinates.",
        {
            "type": "object",
            "properties": {
                "x": {"type": "integer", "description": "Optional horizontal position"},
                "y": {"type": "integer", "description": "Optional vertical position"},
                "button": _BUTTON_SCHEMA,
                "clickCount": {"type": "integer", "default": 1, "description": "2 for a double click"},
                "holdKeys": _HOLD_KEYS_SCHEMA,
            },
        },
    ),
    (
        "press_mouse", ActionType.PRESS_MOUSE, MOUSE_CONTROL,
        "Press or release a mouse button, optionally after moving to coordinates.",
        {
            "type": "object",
            "properties": {
                "press": _PRESS_SCHEMA,
                "button": _BUTTON_SCHEMA,
                "x": {"type": "integer"},
                "y": {"type": "integer"},
            },
            "required": ["press"],
        },
    ),
    (
        "drag_mouse", ActionType.DRAG_MOUSE, MOUSE_CONTROL,
        "Drag with a mouse button held along a path of points.",
        {
            "type": "object",
            "properties": {"path": _PATH_SCHEMA, "button": _BUTTON_SCHEMA, "holdKeys": _HOLD_KEYS_SCHEMA},
            "required": ["path"],
        },
    ),
    (
        "scroll", ActionType.SCROLL, MOUSE_CONTROL,
        "Scroll up, down, left or right, optionally after moving to coordinates.",
        {
            "type": "object",
            "properties": {
                "direction": {"type": "string", "enum": ["up", "down", "left", "right"]},
                "scrollCount": {"type": "integer", "default": 1},
                "x": {"type": "integer"},
                "y": {"type": "integer"},
                "holdKeys": _HOLD_KEYS_SCHEMA,
            },
            "required": ["direction"],
        },
    ),
    (
        "type_text", ActionType.TYPE_TEXT, KEYBOARD_CONTROL,
        "Type text on the keyboard.",
        {
            "type": "object",
            "properties": {
                "text": {"type": "string", "description": "Text to type"},
                "delay": {"type": "integer", "default": 0, "description": "Milliseconds between characters"},
            },
            "required": ["text"],
        },
    ),
    (
        "type_keys", ActionType.TYPE_KEYS, KEYBOARD_CONTROL,
        "Press a key combination (all keys down, then released in reverse order).",
        {
            "type": "object",
            "properties": {
                "keys": {"type": "array", "items": {"type": "string"}, "description": "e.g. [\"ctrl\", \"c\"]"},
                "delay": {"type": "integer", "description": "Milliseconds to hold the keys"},
            },
            "required": ["keys"],
        },
    ),
    (
        "press_keys", ActionType.PRESS_KEYS, KEYBOARD_CONTROL,
        "Press or release keys without pairing the opposite event.",
        {
            "type": "object",
            "properties": {
                "keys": {"type": "array", "items": {"type": "string"}},
                "press": _PRESS_SCHEMA,
            },
            "required": ["keys", "press"],
        },
    ),
    (
        "paste_text", ActionType.PASTE_TEXT, KEYBOARD_CONTROL,
        "Paste text through the clipboard. Faster than typing for long text.",
        {
            "type": "object",
            "properties": {"text": {"type": "string"}},
            "required": ["text"],
        },
    ),
    (
        "wait", ActionType.WAIT, SCREEN_OPERATIONS,
        "Pause before the next action, e.g. while an application opens.",
        {
            "type": "object",
            "properties": {"duration": {"type": "integer", "description": "Milliseconds to wait"}},
            "required": ["duration"],
        },
    ),
    (
        "take_screenshot", ActionType.SCREENSHOT, SCREEN_OPERATIONS,
        "Capture a screenshot of the current screen (base64 PNG). No input required.",
        {"type": "object", "properties": {}},
    ),
    (
        "cursor_position", ActionType.CURSOR_POSITION, SCREEN_OPERATIONS,
        "Get the current mouse cursor position. No input required.",
        {"type": "object", "properties": {}},
    ),
    (
        "launch_application", ActionType.APPLICATION, APPLICATION_CONTROL,
        "Open an application.",
        {
            "type": "object",
            "properties": {
                "application": {
                    "type": "string",
                    "enum": ["browser", "editor", "terminal", "fileManager"],
                },
            },
            "required": ["application"],
        },
    ),
    (
        "write_file", ActionType.WRITE_FILE, FILE_OPERATIONS,
        "Write a file. Relative paths are saved on the Desktop.",
        {
            "type": "object",
            "properties": {
                "path": {"type": "string"},
                "data": {"type": "string", "description": "Base64-encoded file contents"},
            },
            "required": ["path", "data"],
        },
    ),
    (
        "read_file", ActionType.READ_FILE, FILE_OPERATIONS,
        "Read a file. Relative paths are looked up on the Desktop.",
        {
            "type": "object",
            "properties": {"path": {"type": "string"}},
            "required": ["path"],
        },
    ),
]


def register_gui_tools(registry: ToolRegistry, executor: ActionExecutor) -> None:
    registry.register(ToolSpec(
        name="gui_control",
        description=GUI_CONTROL_DESCRIPTION,
        fn=_gui_control_fn(executor),
        in_schema={
            "type": "object",
            "properties": {
                "action": {"type": "string", "enum": [member.value for member in ActionType]},
            },
            "required": ["action"],
        },
        category=SCREEN_OPERATIONS,
    ))

    for name, action_type, category, description, schema in _SINGLE_ACTION_TOOLS:
        registry.register(ToolSpec(
            name=name,
            description=description,
            fn=_single_action_fn(executor, action_type),
            in_schema=schema,
            category=category,
        ))
    _logger.info(f"[TOOLS-REGISTER] Registered {len(_SINGLE_ACTION_TOOLS) + 1} GUI tools")


def build_gui_registry(executor: ActionExecutor, vision_client: Optional[Any] = None) -> ToolRegistry:
    """Registry with every GUI tool, plus the vision tools when a client is given. Returned frozen."""
    registry = ToolRegistry()
    register_gui_tools(registry, executor)
    if vision_client is not None:
        from agents.tools.vision_ops.visual_analyser import register_vision_tools

        register_vision_tools(registry, vision_client, executor)
    return registry.freeze()
