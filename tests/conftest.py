"""Shared fixtures for the engine, settings and widget tests."""

import pytest

from easytyping.engine import EditingSession, TextBuffer
from easytyping.settings_models import default_easy_typing_settings


@pytest.fixture
def settings():
    return dict(default_easy_typing_settings())


@pytest.fixture
def make_buffer():
    """Build a TextBuffer wired to a fresh session; keyword args override settings."""

    def _make(text="", identity="untitled.md", **overrides):
        values = dict(default_easy_typing_settings())
        values.update(overrides)
        return TextBuffer(text, EditingSession(values), identity=identity)

    return _make
