# status: complete

"""Performs decoded GUI actions against a desktop capability.

Compound actions are expanded into a fixed sequence of primitive calls.
Every primitive step is preceded by a cancellation check, and every
execute() call holds a process-wide lock so two requests never drive the
mouse and keyboard at the same time.
"""

from __future__ import annotations

import base64
import binascii
import mimetypes
import os
import platform
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Optional, Sequence, Tuple

from agents.models.gui_actions import (
    Action,
    ActionResult,
    Application,
    ApplicationName,
    ClickMouse,
    Coordinates,
    CursorPosition,
    CursorPositionResult,
    DragMouse,
    EmptyPathError,
    FileOperationResult,
    MoveMouse,
    PasteText,
    PressKeys,
    PressMouse,
    PressState,
    ReadFile,
    Screenshot,
    ScreenshotResult,
    Scroll,
    TraceMouse,
    TypeKeys,
    TypeText,
    UnsupportedActionError,
    UnsupportedApplicationError,
    UnsupportedPlatformError,
    Wait,
    WriteFile,
    action_type_of,
)
from agents.tools.gui_ops.desktop import DesktopCapability
from utils.cancellation_manager import RequestCancellation
from utils.logger import get_logger

_logger = get_logger(__name__)

CLICK_INTERVAL = 0.15
SCROLL_INTERVAL = 0.15
DEFAULT_KEY_HOLD = 0.1

# Shared by every executor in the process: there is only one mouse
_DEVICE_LOCK = threading.Lock()

APPLICATION_COMMANDS: Dict[str, Dict[ApplicationName, Tuple[str, ...]]] = {
    "Darwin": {
        ApplicationName.BROWSER: ("open", "-a", "Firefox"),
        ApplicationName.EDITOR: ("open", "-a", "Visual Studio Code"),
        ApplicationName.TERMINAL: ("open", "-a", "Terminal"),
        ApplicationName.FILE_MANAGER: ("open", "-a", "Finder"),
    },
    "Linux": {
        ApplicationName.BROWSER: ("firefox",),
        ApplicationName.EDITOR: ("code",),
        ApplicationName.TERMINAL: ("xterm",),
        ApplicationName.FILE_MANAGER: ("nautilus",),
    },
    "Windows": {
        ApplicationName.BROWSER: ("firefox.exe",),
        ApplicationName.EDITOR: ("code.cmd",),
        ApplicationName.TERMINAL: ("cmd.exe",),
        ApplicationName.FILE_MANAGER: ("explorer.exe",),
    },
}


class ActionExecutor:
    """Executes one action at a time against an injected DesktopCapability."""

    def __init__(
        self,
        desktop: DesktopCapability,
        sandbox_root: Optional[Path] = None,
        platform_name: Optional[str] = None,
        device_lock: Optional[threading.Lock] = None,
    ):
        self._desktop = desktop
        self.sandbox_root = Path(sandbox_root) if sandbox_root is not None else Path.home() / "Desktop"
        self.platform_name = platform_name or platform.system()
        self._device_lock = device_lock if device_lock is not None else _DEVICE_LOCK

    def execute(self, action: Action, cancellation: Optional[RequestCancellation] = None) -> ActionResult:
        action_type = action_type_of(action)
        _logger.debug(f"[EXECUTOR-START] {action_type.value}")
        with self._device_lock:
            step = _StepRunner(cancellation)
            result = self._dispatch(action, step)
        _logger.debug(f"[EXECUTOR-DONE] {action_type.value}")
        return result

    def _dispatch(self, action: Action, step: "_StepRunner") -> ActionResult:
        desktop = self._desktop

        if isinstance(action, MoveMouse):
            step(desktop.move_cursor, action.coordinates.x, action.coordinates.y)
            return None

        if isinstance(action, TraceMouse):
            self._trace(action.path, action.hold_keys, None, step)
            return None

        if isinstance(action, DragMouse):
            self._trace(action.path, action.hold_keys, action.button.value, step)
            return None

        if isinstance(action, ClickMouse):
            self._move_if_given(action.coordinates, step)
            with self._held_keys(action.hold_keys, step):
                for index in range(action.click_count):
                    if index > 0:
                        step(desktop.sleep, CLICK_INTERVAL)
                    step(desktop.click, action.button.value)
            return None

        if isinstance(action, PressMouse):
            self._move_if_given(action.coordinates, step)
            step(desktop.toggle_button, action.button.value, action.press is PressState.DOWN)
            return None

        if isinstance(action, Scroll):
            self._move_if_given(action.coordinates, step)
            with self._held_keys(action.hold_keys, step):
                for _ in range(action.scroll_count):
                    step(desktop.scroll, action.direction.value, 1)
                    step(desktop.sleep, SCROLL_INTERVAL)
            return None

        if isinstance(action, TypeKeys):
            with self._held_keys(action.keys, step):
                if action.delay_ms is not None and action.delay_ms > 0:
                    step(desktop.sleep, action.delay_ms / 1000)
                else:
                    step(desktop.sleep, DEFAULT_KEY_HOLD)
            return None

        if isinstance(action, PressKeys):
            down = action.press is PressState.DOWN
            for key in action.keys:
                step(desktop.toggle_key, key, down)
            return None

        if isinstance(action, TypeText):
            delay_ms = action.delay_ms if action.delay_ms and action.delay_ms > 0 else 0
            step(desktop.type_text, action.text, delay_ms / 1000)
            return None

        if isinstance(action, PasteText):
            step(desktop.paste_text, action.text)
            return None

        if isinstance(action, Wait):
            step(desktop.sleep, action.duration_ms / 1000)
            return None

        if isinstance(action, Screenshot):
            png = step(desktop.capture_png)
            return ScreenshotResult(image=base64.b64encode(png).decode("ascii"))

        if isinstance(action, CursorPosition):
            x, y = step(desktop.cursor_position)
            return CursorPositionResult(x=x, y=y)

        if isinstance(action, Application):
            command = self.application_command(action.application)
            _logger.info(f"[EXECUTOR-APP] Launching {action.application.value}: {' '.join(command)}")
            step(desktop.run_command, command[0], *command[1:])
            return None

        if isinstance(action, WriteFile):
            step.check()
            return self._write_file(action)

        if isinstance(action, ReadFile):
            step.check()
            return self._read_file(action)

        raise UnsupportedActionError(type(action).__name__)

    def application_command(self, application: ApplicationName) -> Tuple[str, ...]:
        table = APPLICATION_COMMANDS.get(self.platform_name)
        if table is None:
            raise UnsupportedPlatformError(self.platform_name)
        command = table.get(application)
        if command is None:
            raise UnsupportedApplicationError(getattr(application, "value", str(application)))
        return command

    def resolve_path(self, path: str) -> Path:
        """Absolute paths are used as-is; relative ones land under the sandbox root."""
        candidate = Path(os.path.expanduser(path))
        if candidate.is_absolute():
            return candidate
        return self.sandbox_root / candidate

    def _move_if_given(self, coordinates: Optional[Coordinates], step: "_StepRunner"):
        if coordinates is not None:
            step(self._desktop.move_cursor, coordinates.x, coordinates.y)

    def _trace(self, path: Sequence[Coordinates], hold_keys: Sequence[str],
               button: Optional[str], step: "_StepRunner"):
        if not path:
            raise EmptyPathError("drag_mouse" if button else "trace_mouse")

        desktop = self._desktop
        step(desktop.move_cursor, path[0].x, path[0].y)
        with self._held_keys(hold_keys, step):
            with self._held_button(button, step):
                for point in path:
                    step(desktop.move_cursor, point.x, point.y)

    @contextmanager
    def _held_keys(self, keys: Sequence[str], step: "_StepRunner") -> Iterator[None]:
        """Press keys in order for the duration of the block, release in reverse.

        On failure the keys already down are released best-effort and the
        original error propagates.
        """
        pressed: List[str] = []
        try:
            for key in keys:
                step(self._desktop.toggle_key, key, True)
                pressed.append(key)
            yield
        except BaseException:
            self._release_quietly(
                [(self._desktop.toggle_key, key) for key in reversed(pressed)]
            )
            raise
        self._release_all([(self._desktop.toggle_key, key) for key in reversed(pressed)])

    @contextmanager
    def _held_button(self, button: Optional[str], step: "_StepRunner") -> Iterator[None]:
        if button is None:
            yield
            return
        step(self._desktop.toggle_button, button, True)
        try:
            yield
        except BaseException:
            self._release_quietly([(self._desktop.toggle_button, button)])
            raise
        self._release_all([(self._desktop.toggle_button, button)])

    def _release_all(self, releases: List[Tuple[Callable[[str, bool], None], str]]):
        """Attempt every release; the first failure is raised after the rest ran."""
        first_error = None
        for release, name in releases:
            try:
                release(name, False)
            except Exception as e:
                _logger.warning(f"[EXECUTOR-RELEASE] Failed to release {name}: {e}")
                if first_error is None:
                    first_error = e
        if first_error is not None:
            raise first_error

    def _release_quietly(self, releases: List[Tuple[Callable[[str, bool], None], str]]):
        for release, name in releases:
            try:
                release(name, False)
            except Exception as e:
                _logger.warning(f"[EXECUTOR-ROLLBACK] Failed to release {name}: {e}")

    def _write_file(self, action: WriteFile) -> FileOperationResult:
        target = self.resolve_path(action.path)
        _logger.info(f"[EXECUTOR-FILE] Writing {target}")
        try:
            payload = base64.b64decode(action.base64_data, validate=True)
        except (binascii.Error, ValueError) as e:
            return FileOperationResult(success=False, message=f"Failed to decode base64 data: {e}")

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            return FileOperationResult(success=False, message=f"Failed to create directory: {e}")

        try:
            target.write_bytes(payload)
        except OSError as e:
            return FileOperationResult(success=False, message=f"Failed to write file: {e}")

        return FileOperationResult(success=True, message=f"File written successfully to: {target}")

    def _read_file(self, action: ReadFile) -> FileOperationResult:
        target = self.resolve_path(action.path)
        _logger.info(f"[EXECUTOR-FILE] Reading {target}")
        try:
            payload = target.read_bytes()
        except OSError as e:
            return FileOperationResult(success=False, message=f"Failed to read file: {e}")

        media_type, _ = mimetypes.guess_type(target.name)
        return FileOperationResult(
            success=True,
            data=base64.b64encode(payload).decode("ascii"),
            name=target.name,
            size=len(payload),
            media_type=media_type or "application/octet-stream",
        )


class _StepRunner:
    """Calls one primitive after checking the request's cancellation token."""

    def __init__(self, cancellation: Optional[RequestCancellation]):
        self._cancellation = cancellation

    def check(self):
        if self._cancellation is not None:
            self._cancellation.check()

    def __call__(self, primitive, *args):
        self.check()
        return primitive(*args)
