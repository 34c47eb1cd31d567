"""
Pytest configuration and fixtures for the test suite.

This module contains shared fixtures used across all tests.
"""

from __future__ import annotations

import os

import pytest

from gamefinder.aggregation.pool import WorkerPool
from gamefinder.core.config import Settings, get_settings
from gamefinder.listings.models import Listing, Platform


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep GAMEFINDER_* variables from the developer's shell out of tests."""
    for key in list(os.environ):
        if key.startswith("GAMEFINDER_"):
            monkeypatch.delenv(key, raising=False)
    get_settings.cache_clear()


@pytest.fixture()
def settings() -> Settings:
    """Return settings with every platform enabled."""
    return Settings(_env_file=None)


@pytest.fixture()
def pool() -> WorkerPool:
    """Return a worker pool."""
    return WorkerPool(max_concurrency=4)


@pytest.fixture()
def listing() -> Listing:
    """Return a listing without expiration."""
    return Listing(
        title="Hollow Depths",
        platform=Platform.STEAM,
        url="https://store.steampowered.com/app/10/",
        original_price="$19.99",
    )
