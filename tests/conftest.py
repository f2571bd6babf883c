"""Shared test fixtures."""

from __future__ import annotations

import logging
import os

import pytest
from starlette.datastructures import MutableHeaders


@pytest.fixture(autouse=True)
def _mock_settings(monkeypatch):
    """Start every test from default settings."""
    for key in list(os.environ):
        if key.startswith("ARMOR_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("ARMOR_LOG_JSON", "false")

    # Reset cached settings
    import armor.config.loader as loader
    loader._settings = None
    yield
    loader._settings = None

    # setup_logging binds a handler to the (captured) stderr of the test that called it
    armor_logger = logging.getLogger("armor")
    armor_logger.handlers.clear()
    armor_logger.propagate = True
    armor_logger.setLevel(logging.NOTSET)


@pytest.fixture
def headers() -> MutableHeaders:
    """Empty header collection."""
    return MutableHeaders()


@pytest.fixture
def policy_file(tmp_path):
    """Write a YAML policy document and return its path."""
    def _write(content: str):
        path = tmp_path / "csp.yaml"
        path.write_text(content)
        return path
    return _write
