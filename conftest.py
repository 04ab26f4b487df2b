"""Shared pytest fixtures."""

import pytest

from nines_settings import get_settings


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch):
    """Start every test from default settings, re-read from a clean environment."""
    monkeypatch.delenv("NINES_DEBUG", raising=False)
    monkeypatch.delenv("NINES_UNSIGNED_SCALAR", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def debug_mode(monkeypatch):
    """Enable the extra internal asserts."""
    monkeypatch.setenv("NINES_DEBUG", "1")
    get_settings.cache_clear()


@pytest.fixture
def unsigned_scalars(monkeypatch):
    """Opt in to unsigned scalars."""
    monkeypatch.setenv("NINES_UNSIGNED_SCALAR", "1")
    get_settings.cache_clear()
