"""Shared fixtures for the playlist localizer tests."""

import pytest
from loguru import logger

# Env vars that pydantic-settings reads -- must be cleaned for default tests
CONFIG_ENV_VARS = [
    "OUTPUT_DIR", "LOG_DIR", "INPUT_EXTENSION", "OUTPUT_FORMAT",
    "OUTPUT_EXTENSION", "PATH_MODE", "KEEP_UNRESOLVED", "FOLLOW_SYMLINKS",
    "AUDIO_EXTENSIONS", "WORKERS", "DRY_RUN", "VERBOSE", "LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Remove localizer env vars so tests see actual defaults."""
    for var in CONFIG_ENV_VARS:
        monkeypatch.delenv(var, raising=False)


@pytest.fixture(autouse=True)
def _reset_logger():
    """Drop sinks added by setup_logging so they don't outlive a test."""
    yield
    logger.remove()
