"""
Day-Context Resolver

Determines, for one user on one day, the effective capacity, premium
multipliers and holiday / non-working / time-off flags.

Capacity and each premium parameter resolve independently through the
same ordered cascade (first level returning a value wins):

1. Per-day override   (only when the user's override mode is perDay)
2. Weekly override    (only when the mode is weekly)
3. Global override    (any mode)
4. Profile capacity   (capacity only, when use_profile_capacity is on)
5. Config default

Holidays, non-working days and time off are then applied on top and take
precedence over every cascade level.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Callable, Iterable, Mapping, NamedTuple

from engines.schemas.analysis import DayContext
from engines.schemas.overtime import (
    HolidayInfo,
    OverrideMode,
    OvertimeConfig,
    TimeOffInfo,
    UserOverride,
    UserProfile,
    Weekday,
)
from engines.services.time_utils import weekday_name

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

# Override attribute -> config default attribute
CONFIG_DEFAULTS = {
    "capacity": "daily_threshold_hours",
    "multiplier": "overtime_multiplier",
    "tier2_threshold": "tier2_threshold_hours",
    "tier2_multiplier": "tier2_multiplier",
}


class Lookup(NamedTuple):
    """Everything a cascade level may consult for one user-day."""

    day: date
    weekday: Weekday
    override: UserOverride | None
    profile: UserProfile | None
    config: OvertimeConfig


Resolver = Callable[[Lookup, str], Decimal | None]


def from_per_day(lookup: Lookup, field: str) -> Decimal | None:
    override = lookup.override
    if override is None or override.mode != OverrideMode.PER_DAY:
        return None
    scoped = override.per_day_overrides.get(lookup.day)
    return getattr(scoped, field) if scoped else None


def from_weekly(lookup: Lookup, field: str) -> Decimal | None:
    override = lookup.override
    if override is None or override.mode != OverrideMode.WEEKLY:
        return None
    scoped = override.weekly_overrides.get(lookup.weekday)
    return getattr(scoped, field) if scoped else None


def from_global(lookup: Lookup, field: str) -> Decimal | None:
    if lookup.override is None:
        return None
    return getattr(lookup.override, field)


def from_profile(lookup: Lookup, field: str) -> Decimal | None:
    if field != "capacity" or not lookup.config.use_profile_capacity or lookup.profile is None:
        return None
    return lookup.profile.work_capacity_hours


def from_config(lookup: Lookup, field: str) -> Decimal | None:
    return getattr(lookup.config, CONFIG_DEFAULTS[field])


CASCADE: tuple[tuple[str, Resolver], ...] = (
    ("perDay", from_per_day),
    ("weekly", from_weekly),
    ("global", from_global),
    ("profile", from_profile),
    ("default", from_config),
)


def resolve_value(lookup: Lookup, field: str) -> tuple[Decimal, str]:
    """Walk the cascade for one field. Returns the value and the level that supplied it."""
    for source, resolver in CASCADE:
        value = resolver(lookup, field)
        if value is not None:
            return value, source
    # from_config always answers; kept for type completeness
    return ZERO, "default"


def is_working_day(profile: UserProfile | None, weekday: Weekday) -> bool:
    """A missing profile or an empty working-day set means every day is worked."""
    if profile is None or not profile.working_days:
        return True
    return weekday in profile.working_days


def resolve_day_context(
    user_id: str,
    day: date,
    config: OvertimeConfig,
    overrides: Mapping[str, UserOverride] | None = None,
    profiles: Mapping[str, UserProfile] | None = None,
    holidays: Mapping[str, Mapping[date, HolidayInfo]] | None = None,
    time_off: Mapping[str, Mapping[date, TimeOffInfo]] | None = None,
) -> DayContext:
    """
    Resolve the context for one user-day.

    Flags come only from the authoritative holiday / time-off maps and the
    profile's working days. Entry types never influence the result.
    """
    profile = (profiles or {}).get(user_id)
    lookup = Lookup(
        day=day,
        weekday=Weekday(weekday_name(day)),
        override=(overrides or {}).get(user_id),
        profile=profile,
        config=config,
    )

    base_capacity, capacity_source = resolve_value(lookup, "capacity")
    multiplier, _ = resolve_value(lookup, "multiplier")
    tier2_threshold, _ = resolve_value(lookup, "tier2_threshold")
    tier2_multiplier, _ = resolve_value(lookup, "tier2_multiplier")

    holiday = None
    if config.apply_holidays:
        holiday = (holidays or {}).get(user_id, {}).get(day)
    is_holiday = holiday is not None

    is_non_working = (
        config.use_profile_working_days
        and not is_holiday
        and not is_working_day(profile, lookup.weekday)
    )

    time_off_info = None
    if config.apply_time_off and not is_holiday:
        time_off_info = (time_off or {}).get(user_id, {}).get(day)
    is_time_off = time_off_info is not None

    capacity = base_capacity
    time_off_hours = ZERO
    if is_holiday or is_non_working:
        capacity = ZERO
    if is_time_off:
        if time_off_info.is_full_day:
            time_off_hours = max(time_off_info.hours, base_capacity)
            capacity = ZERO
        else:
            time_off_hours = time_off_info.hours
            capacity = max(ZERO, capacity - time_off_info.hours)

    return DayContext(
        day=day,
        effective_capacity_hours=capacity,
        base_capacity_hours=base_capacity,
        capacity_source=capacity_source,
        effective_multiplier=multiplier,
        tier2_threshold_hours=tier2_threshold,
        tier2_multiplier=tier2_multiplier,
        is_holiday=is_holiday,
        holiday_name=holiday.name if holiday else None,
        is_non_working_day=is_non_working,
        is_time_off_day=is_time_off,
        time_off_hours=time_off_hours,
    )


def resolve_day_contexts(
    user_id: str,
    days: Iterable[date],
    config: OvertimeConfig,
    overrides: Mapping[str, UserOverride] | None = None,
    profiles: Mapping[str, UserProfile] | None = None,
    holidays: Mapping[str, Mapping[date, HolidayInfo]] | None = None,
    time_off: Mapping[str, Mapping[date, TimeOffInfo]] | None = None,
) -> dict[date, DayContext]:
    """Resolve contexts for every given day of one user, in order."""
    contexts = {
        day: resolve_day_context(user_id, day, config, overrides, profiles, holidays, time_off)
        for day in days
    }
    logger.debug(f"Resolved {len(contexts)} day contexts for user {user_id}")
    return contexts
