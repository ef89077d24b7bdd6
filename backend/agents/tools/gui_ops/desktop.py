from __future__ import annotations

import io
import platform
import subprocess
import time
from typing import Protocol, Tuple

from utils.logger import get_logger

_logger = get_logger(__name__)


class DesktopCapability(Protocol):
    """Primitive input/output operations the action executor composes.

    Buttons are "left", "right" or "middle"; scroll directions are "up",
    "down", "left" or "right"; key names are pyautogui-style ("ctrl",
    "shift", "enter", "a"...).
    """

    def move_cursor(self, x: int, y: int) -> None: ...

    def click(self, button: str) -> None: ...

    def toggle_button(self, button: str, down: bool) -> None: ...

    def toggle_key(self, key: str, down: bool) -> None: ...

    def type_text(self, text: str, interval: float) -> None: ...

    def paste_text(self, text: str) -> None: ...

    def scroll(self, direction: str, amount: int) -> None: ...

    def capture_png(self) -> bytes: ...

    def cursor_position(self) -> Tuple[int, int]: ...

    def run_command(self, name: str, *args: str) -> None: ...

    def sleep(self, seconds: float) -> None: ...


# Common names the model uses that pyautogui spells differently
KEY_ALIASES = {
    "control": "ctrl",
    "cmd": "command",
    "meta": "win",
    "super": "win",
    "option": "alt",
    "return": "enter",
    "escape": "esc",
    "del": "delete",
    "arrowup": "up",
    "arrowdown": "down",
    "arrowleft": "left",
    "arrowright": "right",
    "pageup": "pageup",
    "pagedown": "pagedown",
    "spacebar": "space",
}


def normalize_key(key: str) -> str:
    """Map a key name onto pyautogui's names. Letters are sent lower-case; use shift for capitals."""
    lowered = key.strip().lower()
    if len(key) == 1:
        return key.lower() if key.isalpha() else key
    return KEY_ALIASES.get(lowered, lowered)


class PyAutoGuiDesktop:
    """DesktopCapability backed by pyautogui, Pillow and pyperclip.

    pyautogui is imported on construction: it needs a display and fails at
    import time on headless hosts.
    """

    def __init__(self, fail_safe: bool = True):
        import pyautogui

        self._gui = pyautogui
        self._gui.FAILSAFE = fail_safe
        # The executor owns all inter-step delays
        self._gui.PAUSE = 0
        self._system = platform.system()
        _logger.info(f"[DESKTOP-INIT] pyautogui desktop ready (system={self._system}, failsafe={fail_safe})")

    def move_cursor(self, x: int, y: int) -> None:
        self._gui.moveTo(x, y)

    def click(self, button: str) -> None:
        self._gui.click(button=button)

    def toggle_button(self, button: str, down: bool) -> None:
        if down:
            self._gui.mouseDown(button=button)
        else:
            self._gui.mouseUp(button=button)

    def toggle_key(self, key: str, down: bool) -> None:
        key = normalize_key(key)
        if down:
            self._gui.keyDown(key)
        else:
            self._gui.keyUp(key)

    def type_text(self, text: str, interval: float) -> None:
        self._gui.write(text, interval=max(0.0, interval))

    def paste_text(self, text: str) -> None:
        import pyperclip

        pyperclip.copy(text)
        time.sleep(0.1)
        modifier = "command" if self._system == "Darwin" else "ctrl"
        self._gui.hotkey(modifier, "v")

    def scroll(self, direction: str, amount: int) -> None:
        if direction == "up":
            self._gui.scroll(amount)
        elif direction == "down":
            self._gui.scroll(-amount)
        elif direction == "left":
            self._gui.hscroll(-amount)
        elif direction == "right":
            self._gui.hscroll(amount)
        else:
            raise ValueError(f"Unknown scroll direction: {direction}")

    def capture_png(self) -> bytes:
        image = self._gui.screenshot()
        buffer = io.BytesIO()
        image.save(buffer, format="PNG")
        return buffer.getvalue()

    def cursor_position(self) -> Tuple[int, int]:
        position = self._gui.position()
        return int(position[0]), int(position[1])

    def run_command(self, name: str, *args: str) -> None:
        _logger.info(f"[DESKTOP-LAUNCH] {name} {' '.join(args)}".rstrip())
        # Detached: the application keeps running after the request ends
        subprocess.Popen(
            [name, *args],
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )

    def sleep(self, seconds: float) -> None:
        if seconds > 0:
            time.sleep(seconds)
