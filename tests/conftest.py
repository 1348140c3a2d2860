"""Pytest configuration and fixtures for cmdlayers tests."""

import json
import logging

import pytest

from cmdlayers.menus import build_session
from cmdlayers.models import Profile
from cmdlayers.transport import ScriptTransport


@pytest.fixture(autouse=True)
def restore_logging():
    """Undo setup_logging() side effects between tests."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    logging.disable(logging.NOTSET)
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def transport():
    """Create an empty script transport that records output."""
    return ScriptTransport()


@pytest.fixture
def session(transport):
    """Create a session with default values and the prompt disabled."""
    return build_session(transport, Profile(prompt=False))


@pytest.fixture
def prompt_session(transport):
    """Create a session with the master prompt enabled."""
    return build_session(transport, Profile(prompt=True))


@pytest.fixture
def sample_profile(tmp_path):
    """Create sample profile JSON for testing."""
    profile = {
        "transport": "console",
        "baud_rate": 9600,
        "report_period_seconds": 3,
        "reporting": True,
        "prompt": False,
        "echo": True,
        "log_file": "logs/cmdlayers.log",
    }

    profile_path = tmp_path / "test-profile.json"
    with open(profile_path, "w", encoding="utf-8") as f:
        json.dump(profile, f, indent=2)

    return profile_path
