"""Tests for the cursor controller and screen capture."""
import base64
import threading
import time
from unittest.mock import call, patch

import pytest
from PIL import Image

import controller as controller_module
from controller import CursorController, ScreenCapture, UnknownActionError, save_base64_image
from cursor_agent import CursorInstruction


@pytest.fixture
def cursor(gui_backend):
    return CursorController(backend=gui_backend, action_delay=0)


class TestPrimitives:

    def test_move_to(self, cursor, gui_backend):
        cursor.move_to(200, 300)
        gui_backend.moveTo.assert_called_once_with(200, 300)

    def test_click_defaults_to_left(self, cursor, gui_backend):
        cursor.click()
        gui_backend.click.assert_called_once_with(button="left")

    def test_click_with_button(self, cursor, gui_backend):
        cursor.click("right")
        gui_backend.click.assert_called_once_with(button="right")

    def test_double_click(self, cursor, gui_backend):
        cursor.double_click()
        gui_backend.doubleClick.assert_called_once_with(button="left")

    def test_drag_presses_moves_and_releases(self, cursor, gui_backend):
        cursor.drag_to(500, 600)
        assert gui_backend.method_calls[-3:] == [
            call.mouseDown(button="left"),
            call.moveTo(500, 600),
            call.mouseUp(button="left"),
        ]

    def test_position_and_size(self, cursor):
        assert cursor.get_position() == (100, 100)
        assert cursor.get_position().x == 100
        assert cursor.get_screen_size() == (1920, 1080)
        assert cursor.get_screen_size().width == 1920


class TestExecute:

    def test_dispatches_instruction_objects_and_dicts(self, cursor, gui_backend):
        performed = cursor.execute_all([
            CursorInstruction(type="move", x=10, y=20),
            {"type": "click", "button": "right"},
            CursorInstruction(type="double-click", button="left"),
            {"type": "drag", "x": 30, "y": 40},
        ])

        assert performed == 4
        gui_backend.click.assert_called_once_with(button="right")
        gui_backend.doubleClick.assert_called_once_with(button="left")
        gui_backend.moveTo.assert_any_call(10, 20)
        gui_backend.moveTo.assert_any_call(30, 40)

    def test_unknown_type_raises(self, cursor):
        with pytest.raises(UnknownActionError):
            cursor.execute({"type": "hover", "x": 1, "y": 1})

    def test_sleeps_action_delay_plus_instruction_delay(self, gui_backend):
        cursor = CursorController(backend=gui_backend, action_delay=0.3)
        with patch.object(controller_module.time, "sleep") as sleep:
            cursor.execute_all([CursorInstruction(type="click"), {"type": "click", "delay": 200}])
        assert sleep.call_args_list == [call(0.3), call(pytest.approx(0.5))]

    def test_sequences_do_not_interleave(self, gui_backend):
        cursor = CursorController(backend=gui_backend, action_delay=0.01)
        order = []
        gui_backend.moveTo.side_effect = lambda x, y: order.append(x)

        first = [{"type": "move", "x": 1, "y": 0}] * 5
        second = [{"type": "move", "x": 2, "y": 0}] * 5
        threads = [threading.Thread(target=cursor.execute_all, args=(seq,)) for seq in (first, second)]
        for t in threads:
            t.start()
            time.sleep(0.005)
        for t in threads:
            t.join()

        assert order in ([1] * 5 + [2] * 5, [2] * 5 + [1] * 5)


class TestScreenCapture:

    def test_capture_base64_is_png(self):
        image = Image.new("RGB", (8, 4), "red")
        with patch.object(controller_module.ImageGrab, "grab", return_value=image):
            encoded = ScreenCapture().capture_base64()

        raw = base64.b64decode(encoded)
        assert raw.startswith(b"\x89PNG")

    def test_full_screen_grab_has_no_bbox(self):
        with patch.object(controller_module.ImageGrab, "grab", return_value=Image.new("RGB", (8, 4))) as grab:
            ScreenCapture().capture_screen()
        grab.assert_called_once_with()

    def test_region_capture_passes_bbox(self):
        image = Image.new("RGB", (30, 20), "green")
        with patch.object(controller_module.ImageGrab, "grab", return_value=image) as grab:
            encoded = ScreenCapture().capture_base64(region=(10, 5, 30, 20))

        grab.assert_called_once_with(bbox=(10, 5, 40, 25))
        assert base64.b64decode(encoded).startswith(b"\x89PNG")

    def test_region_capture_rejects_empty_region(self):
        with patch.object(controller_module.ImageGrab, "grab") as grab:
            with pytest.raises(ValueError):
                ScreenCapture().capture_screen(region=(0, 0, 0, 10))
        grab.assert_not_called()

    def test_save_capture_writes_png(self, tmp_path):
        image = Image.new("RGB", (8, 4), "blue")
        with patch.object(controller_module.ImageGrab, "grab", return_value=image):
            path = ScreenCapture().save_capture(str(tmp_path / "captures"))

        assert path.endswith(".png")
        with Image.open(path) as saved:
            assert saved.size == (8, 4)

    def test_save_base64_image(self, tmp_path):
        target = tmp_path / "out.bin"
        save_base64_image(base64.b64encode(b"payload").decode(), str(target))
        assert target.read_bytes() == b"payload"
