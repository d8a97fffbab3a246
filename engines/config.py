"""
Overtime Engine Configuration

Environment-based defaults for the overtime attribution engine.
The engine functions never read these; only the tool layer does.
"""

from decimal import Decimal
from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from engines.schemas.overtime import OvertimeConfig


class Settings(BaseSettings):
    """Engine settings loaded from environment variables (``OT_`` prefix)."""

    model_config = SettingsConfigDict(
        env_prefix="OT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Overtime Attribution Engine"
    app_version: str = "0.1.0"
    log_level: str = "INFO"

    # Canonical timezone used when neither the viewer nor the workspace has one
    default_time_zone: str = "UTC"

    # Calculation defaults
    default_overtime_basis: Literal["daily", "weekly", "both"] = "daily"
    daily_threshold_hours: Decimal = Field(default=Decimal("8"), ge=0)
    weekly_threshold_hours: Decimal = Field(default=Decimal("40"), ge=0)
    overtime_multiplier: Decimal = Field(default=Decimal("1.5"), ge=1)
    tier2_threshold_hours: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        description="Overtime hours per day before tier 2 applies (0 disables tier 2)",
    )
    tier2_multiplier: Decimal = Field(default=Decimal("2.0"), ge=1)

    # Feature flags
    use_profile_capacity: bool = True
    use_profile_working_days: bool = True
    apply_holidays: bool = True
    apply_time_off: bool = True


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def default_overtime_config(settings: Settings | None = None, **overrides) -> OvertimeConfig:
    """Build an OvertimeConfig from settings, with keyword overrides on top."""
    settings = settings or get_settings()
    values = {
        "overtime_basis": settings.default_overtime_basis,
        "daily_threshold_hours": settings.daily_threshold_hours,
        "weekly_threshold_hours": settings.weekly_threshold_hours,
        "overtime_multiplier": settings.overtime_multiplier,
        "tier2_threshold_hours": settings.tier2_threshold_hours,
        "tier2_multiplier": settings.tier2_multiplier,
        "use_profile_capacity": settings.use_profile_capacity,
        "use_profile_working_days": settings.use_profile_working_days,
        "apply_holidays": settings.apply_holidays,
        "apply_time_off": settings.apply_time_off,
    }
    values.update(overrides)
    return OvertimeConfig(**values)
