"""
Overtime Engine Output Schemas

Per-day context, per-entry hour attribution, money breakdowns and the
per-user, per-week and per-range aggregates.
"""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, Field

from engines.schemas.overtime import TimeEntry

ZERO = Decimal("0")


class DayContext(BaseModel):
    """
    Resolved, authoritative facts for one user on one day.

    Derived only from config, overrides, profiles, holidays and time off;
    never from the entries that were logged.
    """

    day: date
    effective_capacity_hours: Decimal = Field(..., description="Hours that count as regular")
    base_capacity_hours: Decimal = Field(
        ...,
        description="Capacity from the override cascade before holiday/time-off adjustments",
    )
    capacity_source: str = Field(
        ...,
        description="Cascade level that supplied the capacity (perDay, weekly, global, profile, default)",
    )
    effective_multiplier: Decimal
    tier2_threshold_hours: Decimal
    tier2_multiplier: Decimal

    is_holiday: bool = False
    holiday_name: str | None = None
    is_non_working_day: bool = False
    is_time_off_day: bool = False
    time_off_hours: Decimal = ZERO

    @property
    def removes_capacity(self) -> bool:
        """True when a holiday, non-working day or full time off removed the day's capacity."""
        if self.is_holiday or self.is_non_working_day:
            return True
        return self.is_time_off_day and self.effective_capacity_hours == 0


class MoneyBreakdown(BaseModel):
    """Earned, cost and profit for one slice of hours, quantized to cents."""

    regular_pay: Decimal = ZERO
    overtime_pay: Decimal = ZERO
    overtime_premium: Decimal = Field(
        default=ZERO,
        description="Part of overtime pay above the base rate",
    )
    earned: Decimal = ZERO
    regular_cost: Decimal = ZERO
    overtime_cost: Decimal = ZERO
    cost: Decimal = ZERO
    profit: Decimal = ZERO


class EntryAnalysis(BaseModel):
    """Hour attribution and pricing of a single entry."""

    hours: Decimal
    regular: Decimal
    overtime: Decimal
    daily_overtime: Decimal = ZERO
    weekly_overtime: Decimal = ZERO
    overlap_overtime: Decimal = ZERO
    combined_overtime: Decimal = ZERO
    tier1_overtime: Decimal = ZERO
    tier2_overtime: Decimal = ZERO

    is_billable: bool = False
    is_break: bool = False
    is_pto: bool = False

    earned_rate: Decimal = ZERO
    cost_rate: Decimal = ZERO
    money: MoneyBreakdown = Field(default_factory=MoneyBreakdown)


class AttributedEntry(BaseModel):
    """An input entry paired with its analysis."""

    entry: TimeEntry
    analysis: EntryAnalysis

    @property
    def id(self) -> str:
        return self.entry.id


class HourTotals(BaseModel):
    """Hour and money sums over a day, a week or the whole range."""

    total: Decimal = ZERO
    regular: Decimal = ZERO
    overtime: Decimal = ZERO
    daily_overtime: Decimal = ZERO
    weekly_overtime: Decimal = ZERO
    overlap_overtime: Decimal = ZERO
    combined_overtime: Decimal = ZERO
    tier1_overtime: Decimal = ZERO
    tier2_overtime: Decimal = ZERO

    breaks: Decimal = ZERO
    vacation_entry_hours: Decimal = Field(
        default=ZERO,
        description="Hours logged on HOLIDAY/TIME_OFF tagged entries",
    )

    billable_worked: Decimal = ZERO
    billable_ot: Decimal = ZERO
    non_billable_worked: Decimal = ZERO
    non_billable_ot: Decimal = ZERO

    earned: Decimal = ZERO
    cost: Decimal = ZERO
    profit: Decimal = ZERO
    overtime_premium: Decimal = ZERO


class DayResult(BaseModel):
    """One user-day. Exists for every date in range, with or without entries."""

    day: date
    context: DayContext
    entries: list[AttributedEntry] = Field(default_factory=list)
    totals: HourTotals = Field(default_factory=HourTotals)


class WeekSummary(BaseModel):
    """ISO week (Monday start) aggregate for one user."""

    week_start: date
    week_key: str
    days: list[date] = Field(default_factory=list)
    totals: HourTotals = Field(default_factory=HourTotals)


class UserTotals(HourTotals):
    """
    Range aggregate for one user, with calendar counts.

    ``overtime`` and ``regular`` are sums of the per-entry split that was
    priced. On the "both" basis that split takes the larger of daily and
    weekly overtime entry by entry, so ``overtime`` can exceed
    ``combined_overtime`` (max of summed daily and summed weekly). Report
    ``combined_overtime`` as the user's overtime hours; money fields always
    follow ``overtime``.
    """

    entry_count: int = 0
    expected_capacity_hours: Decimal = ZERO
    holiday_count: int = 0
    non_working_day_count: int = 0
    time_off_count: int = 0
    time_off_hours: Decimal = ZERO


class UserAnalysis(BaseModel):
    """Output unit: one user over the reporting window."""

    user_id: str
    user_name: str
    days: dict[date, DayResult] = Field(default_factory=dict)
    weeks: list[WeekSummary] = Field(default_factory=list)
    totals: UserTotals = Field(default_factory=UserTotals)
