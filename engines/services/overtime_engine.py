"""
Overtime Attribution Engine

Single entry point tying the four stages together:

1. Grouper: entries bucketed by user, canonical calendar day and ISO week
2. Day-Context Resolver: capacity, multipliers and calendar flags per user-day
3. Hour Attributor: regular / overtime split with tail attribution
4. Premium & Money Calculator: tiered premiums, earned, cost and profit

The computation is pure: no I/O, no clock, no shared state. Identical
inputs always produce identical results.
"""

import logging
from datetime import date, tzinfo
from decimal import Decimal
from typing import Iterable, Mapping, Sequence

from engines.schemas.analysis import (
    AttributedEntry,
    DayContext,
    DayResult,
    EntryAnalysis,
    HourTotals,
    UserAnalysis,
    UserTotals,
    WeekSummary,
)
from engines.schemas.overtime import (
    DateRange,
    HolidayInfo,
    OvertimeBasis,
    OvertimeConfig,
    TimeEntry,
    TimeOffInfo,
    UserOverride,
    UserProfile,
    UserRef,
)
from engines.services.day_context import resolve_day_contexts
from engines.services.entry_grouper import group_entries
from engines.services.hour_attributor import attribute_day, attribute_week, combine_overtime
from engines.services.premium_calculator import price_hours, resolve_rates, tail_tiers
from engines.services.time_utils import iso_week_key, resolve_time_zone, week_start

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

# HourTotals fields that are plain sums at every level
SUMMED_FIELDS = (
    "total",
    "regular",
    "overtime",
    "daily_overtime",
    "weekly_overtime",
    "tier1_overtime",
    "tier2_overtime",
    "breaks",
    "vacation_entry_hours",
    "billable_worked",
    "billable_ot",
    "non_billable_worked",
    "non_billable_ot",
    "earned",
    "cost",
    "profit",
    "overtime_premium",
)


def _weekly_overtime(
    user_days: Mapping[date, list[TimeEntry]],
    week_index: Mapping[date, list[date]],
    contexts: Mapping[date, DayContext],
    weekly_threshold: Decimal,
) -> dict[int, Decimal]:
    """Weekly-basis overtime per entry object, for one user, week by week."""
    overtime_by_entry: dict[int, Decimal] = {}
    for week_days in week_index.values():
        days = {day: user_days[day] for day in week_days}
        forced = {day for day in days if contexts[day].removes_capacity}
        for entry, overtime in attribute_week(days, weekly_threshold, forced):
            overtime_by_entry[id(entry)] = overtime
    return overtime_by_entry


def analyze_day(
    entries: Iterable[TimeEntry],
    context: DayContext,
    basis: OvertimeBasis,
    weekly_overtime: Mapping[int, Decimal] | None = None,
) -> DayResult:
    """
    Attribute and price one user-day.

    ``weekly_overtime`` maps entry objects (by ``id()``) to their weekly-basis
    overtime and is only consulted for the weekly and both bases.
    """
    weekly_overtime = weekly_overtime or {}
    use_daily = basis in (OvertimeBasis.DAILY, OvertimeBasis.BOTH)
    use_weekly = basis in (OvertimeBasis.WEEKLY, OvertimeBasis.BOTH)

    splits = attribute_day(entries, context)

    combined = []
    for split in splits:
        daily = split.overtime if use_daily else ZERO
        weekly = weekly_overtime.get(id(split.entry), ZERO) if use_weekly and split.entry.is_work else ZERO
        combined.append((daily, weekly, combine_overtime(daily, weekly, basis)))

    tiers = tail_tiers((result.overtime for _, _, result in combined), context.tier2_threshold_hours)

    attributed = []
    for split, (daily, weekly, result), (tier1, tier2) in zip(splits, combined, tiers):
        entry = split.entry
        regular = split.hours - result.overtime
        earned_rate, cost_rate = resolve_rates(entry, split.hours)
        if not entry.billable:
            earned_rate = ZERO

        money = price_hours(
            regular,
            result.overtime,
            context,
            earned_rate,
            entry.billable,
            cost_rate=cost_rate,
            tier2_hours=tier2,
        )
        analysis = EntryAnalysis(
            hours=split.hours,
            regular=regular,
            overtime=result.overtime,
            daily_overtime=daily,
            weekly_overtime=weekly,
            overlap_overtime=result.overlap,
            combined_overtime=result.combined,
            tier1_overtime=tier1,
            tier2_overtime=tier2,
            is_billable=entry.billable,
            is_break=entry.is_break,
            is_pto=entry.is_pto,
            earned_rate=earned_rate,
            cost_rate=cost_rate,
            money=money,
        )
        attributed.append(AttributedEntry(entry=entry, analysis=analysis))

    return DayResult(
        day=context.day,
        context=context,
        entries=attributed,
        totals=sum_entries(attributed),
    )


def sum_entries(entries: Iterable[AttributedEntry]) -> HourTotals:
    """Day totals: plain sums over the day's entries."""
    totals = {field: ZERO for field in SUMMED_FIELDS}
    totals["overlap_overtime"] = ZERO
    totals["combined_overtime"] = ZERO

    for item in entries:
        analysis = item.analysis
        totals["total"] += analysis.hours
        totals["regular"] += analysis.regular
        totals["overtime"] += analysis.overtime
        totals["daily_overtime"] += analysis.daily_overtime
        totals["weekly_overtime"] += analysis.weekly_overtime
        totals["overlap_overtime"] += analysis.overlap_overtime
        totals["combined_overtime"] += analysis.combined_overtime
        totals["tier1_overtime"] += analysis.tier1_overtime
        totals["tier2_overtime"] += analysis.tier2_overtime

        if analysis.is_break:
            totals["breaks"] += analysis.hours
        if analysis.is_pto:
            totals["vacation_entry_hours"] += analysis.hours

        if analysis.is_billable:
            totals["billable_worked"] += analysis.regular
            totals["billable_ot"] += analysis.overtime
        else:
            totals["non_billable_worked"] += analysis.regular
            totals["non_billable_ot"] += analysis.overtime

        totals["earned"] += analysis.money.earned
        totals["cost"] += analysis.money.cost
        totals["profit"] += analysis.money.profit
        totals["overtime_premium"] += analysis.money.overtime_premium

    return HourTotals(**totals)


def aggregate_totals(parts: Iterable[HourTotals]) -> dict[str, Decimal]:
    """
    Roll day totals up to a week or a whole range.

    Everything sums, except that the aggregate combined overtime is the
    larger of the summed daily and weekly overtime and the overlap is the
    smaller, so hours over both thresholds are counted once.
    """
    totals = {field: ZERO for field in SUMMED_FIELDS}
    for part in parts:
        for field in SUMMED_FIELDS:
            totals[field] += getattr(part, field)
    totals["combined_overtime"] = max(totals["daily_overtime"], totals["weekly_overtime"])
    totals["overlap_overtime"] = min(totals["daily_overtime"], totals["weekly_overtime"])
    return totals


def summarize_weeks(days: Mapping[date, DayResult]) -> list[WeekSummary]:
    """ISO week summaries (Monday start) in date order."""
    buckets: dict[date, list[DayResult]] = {}
    for day in sorted(days):
        buckets.setdefault(week_start(day), []).append(days[day])

    return [
        WeekSummary(
            week_start=monday,
            week_key=iso_week_key(monday),
            days=[result.day for result in results],
            totals=HourTotals(**aggregate_totals(result.totals for result in results)),
        )
        for monday, results in buckets.items()
    ]


def summarize_user(days: Mapping[date, DayResult]) -> UserTotals:
    """Range totals plus calendar counts for one user."""
    results = [days[day] for day in sorted(days)]
    contexts = [result.context for result in results]
    return UserTotals(
        **aggregate_totals(result.totals for result in results),
        entry_count=sum(len(result.entries) for result in results),
        expected_capacity_hours=sum((c.effective_capacity_hours for c in contexts), ZERO),
        holiday_count=sum(1 for c in contexts if c.is_holiday),
        non_working_day_count=sum(1 for c in contexts if c.is_non_working_day),
        time_off_count=sum(1 for c in contexts if c.is_time_off_day),
        time_off_hours=sum((c.time_off_hours for c in contexts), ZERO),
    )


def compute_analysis(
    entries: Iterable[TimeEntry],
    config: OvertimeConfig,
    date_range: DateRange,
    *,
    overrides: Mapping[str, UserOverride] | None = None,
    profiles: Mapping[str, UserProfile] | None = None,
    holidays: Mapping[str, Mapping[date, HolidayInfo]] | None = None,
    time_off: Mapping[str, Mapping[date, TimeOffInfo]] | None = None,
    users: Sequence[UserRef] | None = None,
    time_zone: str | tzinfo | None = "UTC",
) -> list[UserAnalysis]:
    """
    Run the full overtime analysis over a reporting window.

    Every user in ``users`` (in order), then every other user first seen in
    ``entries``, gets one UserAnalysis with a DayResult for every date in
    ``date_range``. Entries dated outside the range are ignored, including
    for weekly accounting.

    The config is assumed valid (pydantic enforces its constraints when it
    is built); malformed entry data never raises.
    """
    tz = resolve_time_zone(time_zone)
    grouped = group_entries(entries, tz, date_range)
    days = list(date_range.days())

    roster: dict[str, str] = {}
    for user in users or ():
        roster.setdefault(user.id, user.name)
    for user_id in grouped.user_order:
        if user_id not in roster:
            roster[user_id] = grouped.user_names.get(user_id, "")

    results = []
    for user_id, user_name in roster.items():
        contexts = resolve_day_contexts(
            user_id, days, config, overrides, profiles, holidays, time_off
        )
        user_days = grouped.days_for(user_id)

        weekly = {}
        if config.overtime_basis in (OvertimeBasis.WEEKLY, OvertimeBasis.BOTH):
            weekly = _weekly_overtime(
                user_days, grouped.weeks_for(user_id), contexts, config.weekly_threshold_hours
            )

        day_results = {
            day: analyze_day(user_days.get(day, []), contexts[day], config.overtime_basis, weekly)
            for day in days
        }
        results.append(
            UserAnalysis(
                user_id=user_id,
                user_name=user_name or grouped.user_names.get(user_id, "") or user_id,
                days=day_results,
                weeks=summarize_weeks(day_results),
                totals=summarize_user(day_results),
            )
        )

    total_hours = sum((result.totals.total for result in results), ZERO)
    total_overtime = sum((result.totals.overtime for result in results), ZERO)
    logger.info(
        f"Overtime analysis {date_range.start}..{date_range.end}: "
        f"{len(results)} users, {total_hours} hours, {total_overtime} overtime "
        f"(basis={config.overtime_basis.value}, dropped={grouped.dropped}, "
        f"out_of_range={grouped.out_of_range})"
    )
    return results
