"""Shared fixtures for the record-updater test suite."""

from __future__ import annotations

import pytest

from record_updater import SchemaRegistry, Settings
from record_updater.core.enums import CollisionPolicy


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

@pytest.fixture
def settings() -> Settings:
    """Default settings, isolated from RECORD_UPDATER_* env vars."""
    return Settings()


@pytest.fixture
def last_wins_settings() -> Settings:
    return Settings(collision_policy=CollisionPolicy.LAST_WINS)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Keep host environment overrides out of Settings()."""
    import os

    for key in list(os.environ):
        if key.startswith("RECORD_UPDATER_"):
            monkeypatch.delenv(key, raising=False)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

@pytest.fixture
def registry(settings) -> SchemaRegistry:
    reg = SchemaRegistry(settings)
    yield reg
    reg.clear()


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _reset_logging():
    """Undo setup_logging() calls made by a test (including CLI runs)."""
    import logging

    import structlog

    from record_updater.observability.logger import _HANDLER_NAME

    root = logging.getLogger()
    level = root.level
    yield
    for handler in list(root.handlers):
        if handler.get_name() == _HANDLER_NAME:
            root.removeHandler(handler)
    root.setLevel(level)
    structlog.reset_defaults()
