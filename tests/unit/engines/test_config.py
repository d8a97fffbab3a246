"""
Engine Configuration Unit Tests
"""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from engines.config import Settings, default_overtime_config, get_settings
from engines.schemas.overtime import OvertimeBasis, OvertimeConfig


class TestSettings:
    """Test environment-based settings."""

    def test_defaults(self):
        settings = Settings()

        assert settings.daily_threshold_hours == Decimal("8")
        assert settings.weekly_threshold_hours == Decimal("40")
        assert settings.overtime_multiplier == Decimal("1.5")
        assert settings.default_time_zone == "UTC"

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("OT_WEEKLY_THRESHOLD_HOURS", "37.5")
        monkeypatch.setenv("OT_DEFAULT_OVERTIME_BASIS", "both")

        settings = get_settings()

        assert settings.weekly_threshold_hours == Decimal("37.5")
        assert settings.default_overtime_basis == "both"

    def test_settings_are_cached(self):
        assert get_settings() is get_settings()

    def test_invalid_env_rejected(self, monkeypatch):
        monkeypatch.setenv("OT_OVERTIME_MULTIPLIER", "0.9")

        with pytest.raises(ValidationError):
            Settings()


class TestDefaultOvertimeConfig:
    """Test OvertimeConfig construction from settings."""

    def test_from_settings(self):
        config = default_overtime_config(Settings(tier2_threshold_hours=2))

        assert config.overtime_basis == OvertimeBasis.DAILY
        assert config.tier2_threshold_hours == Decimal("2")
        assert config.apply_holidays is True

    def test_keyword_overrides(self):
        config = default_overtime_config(Settings(), overtime_basis="weekly", apply_time_off=False)

        assert config.overtime_basis == OvertimeBasis.WEEKLY
        assert config.apply_time_off is False

    @pytest.mark.parametrize(
        "field,value",
        [
            ("daily_threshold_hours", -1),
            ("weekly_threshold_hours", -0.5),
            ("overtime_multiplier", 0.5),
            ("tier2_multiplier", 0),
            ("overtime_basis", "monthly"),
        ],
    )
    def test_invalid_config_rejected(self, field, value):
        with pytest.raises(ValidationError):
            OvertimeConfig(**{field: value})

    def test_camel_case_accepted(self):
        config = OvertimeConfig.model_validate({"overtimeBasis": "both", "dailyThresholdHours": "7.5"})

        assert config.overtime_basis == OvertimeBasis.BOTH
        assert config.daily_threshold_hours == Decimal("7.5")
