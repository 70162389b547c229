"""Shared fixtures for Couple Ledger tests."""

import pytest

from src.config.settings import get_engine_settings, get_settings


@pytest.fixture(autouse=True)
def fresh_settings():
    """Every test reads settings from the current environment."""
    get_settings.cache_clear()
    get_engine_settings.cache_clear()
    yield
    get_settings.cache_clear()
    get_engine_settings.cache_clear()


@pytest.fixture
def couple_info():
    """André earns twice as much as Luciana."""
    return {
        "person1Name": "André",
        "person2Name": "Luciana",
        "salary1": 8000,
        "salary2": 4000,
    }

