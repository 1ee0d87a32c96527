"""Tests for the HTTP client used by the interactive terminal."""
from unittest.mock import MagicMock

import pytest
import requests

from cli import ClientError, Command, CursorOperatorClient


def _response(status: int, payload=None, text: str = ""):
    resp = MagicMock()
    resp.ok = status < 400
    resp.status_code = status
    resp.text = text
    resp.reason = "Error"
    resp.json.return_value = payload
    return resp


@pytest.fixture
def session():
    return MagicMock(spec=requests.Session)


@pytest.fixture
def client(session):
    return CursorOperatorClient("http://localhost:3000/", timeout=5, session=session)


class TestRequests:

    def test_get_screen_info(self, client, session):
        session.request.return_value = _response(200, {"screen": {"width": 1, "height": 2}})

        assert client.get_screen_info() == {"screen": {"width": 1, "height": 2}}
        session.request.assert_called_once_with("GET", "http://localhost:3000/screen-info", timeout=5)

    def test_capture_screen(self, client, session):
        session.request.return_value = _response(200, {"screenCapture": "abc"})
        assert client.capture_screen() == "abc"

    def test_pair_program_body(self, client, session):
        session.request.return_value = _response(200, {"actionsPerformed": 1})

        client.pair_program("abc", {"workType": "cli"}, "Click run")

        session.request.assert_called_once_with(
            "POST", "http://localhost:3000/pair-program", timeout=5,
            json={"screenCapture": "abc", "context": {"workType": "cli"}, "goal": "Click run"},
        )

    def test_cursor_action_body(self, client, session):
        session.request.return_value = _response(200, {"success": True})

        client.execute_cursor_action("move", {"x": 1, "y": 2})

        assert session.request.call_args.kwargs["json"] == {"action": "move", "params": {"x": 1, "y": 2}}


class TestErrors:

    def test_server_error_message_is_surfaced(self, client, session):
        session.request.return_value = _response(502, {"error": "Connection error."})

        with pytest.raises(ClientError) as exc_info:
            client.pair_program("abc", {}, "goal")
        assert exc_info.value.status_code == 502
        assert exc_info.value.message == "Connection error."

    def test_unreachable_server(self, client, session):
        session.request.side_effect = requests.ConnectionError("refused")

        with pytest.raises(ClientError):
            client.get_screen_info()
        assert client.is_ready() is False

    def test_wait_until_ready(self, client, session):
        session.request.side_effect = [requests.ConnectionError("refused"), _response(200, {"status": "ok"})]
        assert client.wait_until_ready(timeout=1.0, interval=0.01) is True


class TestCommand:

    @pytest.mark.parametrize("text,expected", [
        ("quit", "quit"), ("EXIT", "quit"), (" h ", "help"), ("cfg", "config"),
        ("cls", "clear"), ("click the run button", None),
    ])
    def test_command_type(self, text, expected):
        assert Command.get_command_type(text) == expected
        assert Command.is_command(text) is (expected is not None)
