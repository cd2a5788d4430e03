"""Shared fixtures for integration tests."""

from __future__ import annotations

import pytest

from nodeflow.settings import get_settings


@pytest.fixture(autouse=True)
def default_settings():
    """Integration runs use settings from a clean cache."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
