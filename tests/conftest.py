"""
Test Configuration and Fixtures

Provides engine config, reporting window and settings isolation.
"""

from datetime import date

import pytest

from engines.config import get_settings
from engines.schemas.overtime import DateRange, OvertimeConfig
from tests.factories import make_config


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Each test sees settings built from its own environment."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def daily_config() -> OvertimeConfig:
    return make_config()


@pytest.fixture
def week_range() -> DateRange:
    """Monday 2025-01-20 through Sunday 2025-01-26."""
    return DateRange(start=date(2025, 1, 20), end=date(2025, 1, 26))
