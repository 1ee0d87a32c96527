"""Builders for scripted remote-engine responses."""
from types import SimpleNamespace

SCREENSHOT = "base64-encoded-image"


def mouse_tool_use(tool_id: str, action: dict, name: str = "computer") -> dict:
    return {"type": "tool_use", "id": tool_id, "name": name, "input": {"action": action}}


def text_block(text: str = "I have completed the task.") -> dict:
    return {"type": "text", "text": text}


def response(*blocks) -> SimpleNamespace:
    return SimpleNamespace(content=list(blocks))


MOVE = {"type": "mouse", "action": "move", "coordinates": {"x": 100, "y": 200}}
CLICK = {"type": "mouse", "action": "click", "button": "left", "clicks": 1}
