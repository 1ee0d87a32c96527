"""Pytest configuration and fixtures."""
from unittest.mock import MagicMock

import pytest

from cursor_agent import AgentSettings, CursorAgent


class FakeScreen:
    def __init__(self, width: int = 1920, height: int = 1080):
        self.calls = 0
        self.size = (width, height)

    def get_screen_size(self):
        self.calls += 1
        return self.size


@pytest.fixture
def fake_screen():
    return FakeScreen()


@pytest.fixture
def scripted_client():
    """Anthropic client double whose beta.messages.create is scripted per test."""
    client = MagicMock()
    client.beta.messages.create = MagicMock()
    return client


@pytest.fixture
def make_agent(fake_screen, scripted_client):
    def factory(*responses, **settings):
        scripted_client.beta.messages.create.side_effect = list(responses)
        return CursorAgent(AgentSettings(api_key="test-api-key", **settings),
                           screen=fake_screen, client=scripted_client)
    return factory


@pytest.fixture
def gui_backend():
    """pyautogui stand-in."""
    backend = MagicMock()
    backend.position.return_value = (100, 100)
    backend.size.return_value = (1920, 1080)
    return backend
