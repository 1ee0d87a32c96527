"""
Cursor Operator - Cursor control and screen capture

- pyautogui drives the real mouse (move, click, double-click, drag)
- PIL.ImageGrab captures the screen as base64 PNG for the agent
- One process-wide lock serializes instruction sequences so two requests
  never interleave on the physical cursor
"""

import base64
import io
import logging
import os
import threading
import time
from collections.abc import Mapping
from typing import NamedTuple, Optional

from PIL import Image, ImageGrab

from cursor_agent import CursorInstruction

logger = logging.getLogger(__name__)

# Shared by every controller in the process: there is only one cursor.
_CURSOR_LOCK = threading.Lock()


class ScreenSize(NamedTuple):
    width: int
    height: int


class CursorPosition(NamedTuple):
    x: int
    y: int


class UnknownActionError(ValueError):
    """Raised for an instruction type the controller cannot perform."""


# ============================================================================
# Cursor Controller  (pyautogui backend)
# ============================================================================

class CursorController:
    """Execute cursor instructions using pyautogui.

    Build it on the main thread before the HTTP server starts: pyautogui's
    display initialisation must not happen inside a worker thread.
    """

    def __init__(self, backend=None, action_delay: float = 0.3):
        if backend is None:
            import pyautogui
            pyautogui.FAILSAFE = True       # Move mouse to corner to abort
            pyautogui.PAUSE = 0.05
            backend = pyautogui
        self.gui = backend
        self.action_delay = action_delay
        logger.info(f"CursorController ready. Action delay: {action_delay}s")

    # ------------------------------------------------------------------ #
    #  Primitives                                                          #
    # ------------------------------------------------------------------ #

    def move_to(self, x: int, y: int) -> None:
        logger.debug(f"Moving cursor to ({x}, {y})")
        self.gui.moveTo(x, y)
        logger.info(f"MOVE   ({x}, {y})")

    def click(self, button: Optional[str] = None) -> None:
        button = button or "left"
        self.gui.click(button=button)
        logger.info(f"CLICK  {button}")

    def double_click(self, button: Optional[str] = None) -> None:
        button = button or "left"
        self.gui.doubleClick(button=button)
        logger.info(f"DCLICK {button}")

    def drag_to(self, x: int, y: int) -> None:
        start = self.get_position()
        self.gui.mouseDown(button="left")
        self.gui.moveTo(x, y)
        self.gui.mouseUp(button="left")
        logger.info(f"DRAG   ({start.x},{start.y}) → ({x},{y})")

    def get_position(self) -> CursorPosition:
        x, y = self.gui.position()
        return CursorPosition(int(x), int(y))

    def get_screen_size(self) -> ScreenSize:
        w, h = self.gui.size()
        return ScreenSize(int(w), int(h))

    # ------------------------------------------------------------------ #
    #  Instruction dispatch                                                #
    # ------------------------------------------------------------------ #

    def execute(self, instruction) -> None:
        """Perform one instruction (CursorInstruction or mapping)."""
        item = instruction.to_dict() if isinstance(instruction, CursorInstruction) else instruction
        if not isinstance(item, Mapping):
            raise UnknownActionError(f"Unsupported instruction: {instruction!r}")

        kind = item.get("type")
        if kind == "move":
            self.move_to(item["x"], item["y"])
        elif kind == "click":
            self.click(item.get("button"))
        elif kind == "double-click":
            self.double_click(item.get("button"))
        elif kind == "drag":
            self.drag_to(item["x"], item["y"])
        else:
            raise UnknownActionError(f"Unknown action: {kind}")

    def execute_all(self, instructions) -> int:
        """Run a whole sequence without interleaving with other callers.

        Returns the number of actions performed.
        """
        performed = 0
        with _CURSOR_LOCK:
            for instruction in instructions:
                self.execute(instruction)
                performed += 1
                delay_ms = _field_delay(instruction)
                time.sleep(self.action_delay + (delay_ms or 0) / 1000.0)
        return performed


def _field_delay(instruction) -> Optional[float]:
    if isinstance(instruction, CursorInstruction):
        return instruction.delay
    return instruction.get("delay")


# ============================================================================
# Screen Capture
# ============================================================================

class ScreenCapture:

    def capture_screen(self, region: Optional[tuple[int, int, int, int]] = None) -> Image.Image:
        """Grab the whole screen, or only (x, y, width, height) when region is given."""
        if region is None:
            return ImageGrab.grab()
        x, y, width, height = region
        if width <= 0 or height <= 0:
            raise ValueError(f"Capture region must have a positive size, got {width}x{height}")
        return ImageGrab.grab(bbox=(x, y, x + width, y + height))

    def image_to_base64(self, image: Image.Image) -> str:
        buf = io.BytesIO()
        image.save(buf, format="PNG")
        return base64.b64encode(buf.getvalue()).decode("utf-8")

    def capture_base64(self, region: Optional[tuple[int, int, int, int]] = None) -> str:
        """Screen capture as a bare base64 PNG (no data-URI prefix)."""
        b64 = self.image_to_base64(self.capture_screen(region))
        logger.debug(f"Screen captured ({len(b64)} base64 chars)")
        return b64

    def save_capture(self, output_dir: str = "captures") -> str:
        os.makedirs(output_dir, exist_ok=True)
        filename = f"screen_{time.strftime('%Y%m%d_%H%M%S')}.png"
        return save_base64_image(self.capture_base64(), os.path.join(output_dir, filename))


def save_base64_image(image_b64: str, file_path: str) -> str:
    with open(file_path, "wb") as f:
        f.write(base64.b64decode(image_b64))
    return file_path
