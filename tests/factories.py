"""
Test Factories

Helper functions for creating engine inputs in tests.
"""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from itertools import count

from engines.schemas.analysis import DayContext
from engines.schemas.overtime import OvertimeConfig, TimeEntry

# 2025-01-20 is a Monday
MONDAY = date(2025, 1, 20)

_entry_ids = count(1)


def at(day: date, hour: int = 9, minute: int = 0) -> datetime:
    """UTC instant on ``day``."""
    return datetime(day.year, day.month, day.day, hour, minute, tzinfo=timezone.utc)


def make_entry(**overrides) -> TimeEntry:
    """
    Create a TimeEntry with sensible defaults.

    ``start`` (datetime) and ``hours`` build the interval unless an explicit
    ``time_interval`` is given.
    """
    start = overrides.pop("start", at(MONDAY))
    hours = Decimal(str(overrides.pop("hours", 8)))
    end = start + timedelta(hours=float(hours))
    defaults = {
        "id": f"entry-{next(_entry_ids):05d}",
        "user_id": "user-1",
        "user_name": "Alice Example",
        "type": "REGULAR",
        "billable": True,
        "hourly_rate": Decimal("50"),
        "time_interval": {
            "start": start.isoformat(),
            "end": end.isoformat(),
            "duration": f"PT{hours}H",
        },
    }
    defaults.update(overrides)
    return TimeEntry.model_validate(defaults)


def make_config(**overrides) -> OvertimeConfig:
    """Create an OvertimeConfig (daily basis, 8h / 40h, 1.5x) with overrides."""
    defaults = {
        "overtime_basis": "daily",
        "daily_threshold_hours": Decimal("8"),
        "weekly_threshold_hours": Decimal("40"),
        "overtime_multiplier": Decimal("1.5"),
        "tier2_threshold_hours": Decimal("0"),
        "tier2_multiplier": Decimal("2.0"),
    }
    defaults.update(overrides)
    return OvertimeConfig(**defaults)


def make_context(**overrides) -> DayContext:
    """Create a plain working-day DayContext with an 8h capacity."""
    defaults = {
        "day": MONDAY,
        "effective_capacity_hours": Decimal("8"),
        "base_capacity_hours": Decimal("8"),
        "capacity_source": "default",
        "effective_multiplier": Decimal("1.5"),
        "tier2_threshold_hours": Decimal("0"),
        "tier2_multiplier": Decimal("2.0"),
    }
    defaults.update(overrides)
    return DayContext(**defaults)


def workweek(hours_per_day, first_day: date = MONDAY, **overrides) -> list[TimeEntry]:
    """One entry per day starting 09:00, e.g. ``workweek([9] * 5)`` for Mon-Fri."""
    return [
        make_entry(start=at(first_day + timedelta(days=offset)), hours=hours, **overrides)
        for offset, hours in enumerate(hours_per_day)
    ]
