"""
Pytest configuration and fixtures shared by the mbox_builder tests.
"""
import pytest
from unittest.mock import AsyncMock, MagicMock

from mbox_builder import prompt
from mbox_builder.app import App
from mbox_builder.config import MemoryCredentialStore
from mbox_builder.model import Port


@pytest.fixture
def ports():
    return [
        Port(path="/dev/ttyUSB0", manufacturer="Silicon Labs"),
        Port(path="/dev/ttyACM0", manufacturer="Espressif"),
    ]


@pytest.fixture
def fake_helper(ports):
    """Helper double: every operation succeeds unless a test says otherwise."""
    helper = MagicMock()
    helper.get_ports = AsyncMock(return_value=ports)
    helper.get_chip_id = AsyncMock(return_value="ABC123")
    helper.erase_flash = AsyncMock(return_value=None)
    helper.build_and_upload = AsyncMock(return_value=None)
    helper.upload_webui = AsyncMock(return_value=None)
    return helper


@pytest.fixture
def store():
    return MemoryCredentialStore(username="octocat", password="s3cret")


@pytest.fixture
def app(fake_helper, store, tmp_path):
    return App(fake_helper, store, cwd=str(tmp_path))


@pytest.fixture
def answers(monkeypatch):
    """Feed scripted answers to every rich prompt; returns the list of questions asked."""
    asked = []

    def _script(*replies):
        queue = list(replies)

        def fake_ask(message, *args, **kwargs):
            asked.append(message)
            return queue.pop(0)

        monkeypatch.setattr(prompt.Prompt, "ask", fake_ask)
        monkeypatch.setattr(prompt.Confirm, "ask", fake_ask)
        return asked

    return _script
