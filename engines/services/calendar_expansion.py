"""
Calendar Expansion

Flattens holiday periods and approved time-off requests into the per-day
maps the Day-Context Resolver consumes.
"""

import logging
import math
from datetime import date
from decimal import Decimal
from typing import Iterable, Mapping

from engines.schemas.calendar import HolidayPeriod, TimeOffRequest
from engines.schemas.overtime import HolidayInfo, TimeOffInfo
from engines.services.time_utils import SECONDS_PER_HOUR, date_range, parse_instant

logger = logging.getLogger(__name__)

DAY_UNITS = frozenset({"DAY", "DAYS"})
HOUR_UNITS = frozenset({"HOUR", "HOURS"})


def expand_holidays(
    holidays_by_user: Mapping[str, Iterable[HolidayPeriod]],
) -> dict[str, dict[date, HolidayInfo]]:
    """One HolidayInfo per user per calendar day. The first holiday seen for a day wins."""
    expanded: dict[str, dict[date, HolidayInfo]] = {}
    for user_id, periods in holidays_by_user.items():
        days = expanded.setdefault(user_id, {})
        for period in periods:
            if period.start is None:
                logger.debug(f"Skipping holiday {period.name!r} for user {user_id}: no start date")
                continue
            end = period.end or period.start
            for day in date_range(period.start, end):
                days.setdefault(day, HolidayInfo(name=period.name))
    return expanded


def _is_full_day(request: TimeOffRequest) -> bool:
    if request.time_unit in DAY_UNITS:
        return not request.half_day
    if request.time_unit in HOUR_UNITS:
        return False
    return not request.half_day and not request.half_day_hours


def _partial_hours(request: TimeOffRequest) -> Decimal:
    """
    Hours off per day for a partial request.

    An explicit half-day length wins. Otherwise the period length is spread
    evenly over the calendar days it touches, so a 48h request spanning two
    days counts as 24h per day rather than 48h on each.
    """
    if request.half_day_hours is not None and request.half_day_hours > 0:
        return request.half_day_hours

    start = parse_instant(request.period_start)
    end = parse_instant(request.period_end)
    if start is None or end is None:
        return Decimal("0")
    seconds = Decimal(str((end - start).total_seconds()))
    if seconds <= 0:
        return Decimal("0")
    days = max(1, math.ceil(seconds / (SECONDS_PER_HOUR * 24)))
    return seconds / SECONDS_PER_HOUR / days


def expand_time_off(requests: Iterable[TimeOffRequest]) -> dict[str, dict[date, TimeOffInfo]]:
    """
    Per-day time-off records for approved requests.

    Non-approved requests and requests without a user or start are skipped.
    The start day of a request is always written; the following days of a
    multi-day request never overwrite a record already present.
    """
    expanded: dict[str, dict[date, TimeOffInfo]] = {}
    skipped = 0
    for request in requests:
        if not request.is_approved or not request.user_id:
            skipped += 1
            continue
        start = request.start_day
        if start is None:
            skipped += 1
            continue

        full_day = _is_full_day(request)
        info = TimeOffInfo(
            hours=Decimal("0") if full_day else _partial_hours(request),
            is_full_day=full_day,
        )

        days = expanded.setdefault(request.user_id, {})
        days[start] = info
        end = request.end_day
        if end is not None and end > start:
            for day in date_range(start, end):
                days.setdefault(day, info)

    if skipped:
        logger.debug(f"Skipped {skipped} time-off requests (not approved or incomplete)")
    return expanded
