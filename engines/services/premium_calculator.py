"""
Premium & Money Calculator

Prices attributed hours with the two-tier overtime schedule and derives
earned / cost / profit per entry.

Pricing rules:
- Tier 1 overtime = min(OT, tier2 threshold); tier 2 = the remainder.
  A zero threshold disables tier 2.
- Earned pay only accrues on billable time.
- Cost accrues whether or not the time is billable.
- Profit is earned minus cost for billable time and zero otherwise, so
  non-billable work never reports a loss.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Iterator

from engines.schemas.analysis import DayContext, MoneyBreakdown
from engines.schemas.overtime import TimeEntry

ZERO = Decimal("0")
CENTS = Decimal("0.01")


def to_cents(amount: Decimal) -> Decimal:
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def split_tiers(overtime_hours: Decimal, tier2_threshold_hours: Decimal) -> tuple[Decimal, Decimal]:
    """Split overtime into (tier1, tier2) hours."""
    if tier2_threshold_hours <= 0:
        return overtime_hours, ZERO
    tier1 = min(overtime_hours, tier2_threshold_hours)
    return tier1, max(ZERO, overtime_hours - tier2_threshold_hours)


def tail_tiers(overtime_hours: Iterable[Decimal], tier2_threshold_hours: Decimal) -> Iterator[tuple[Decimal, Decimal]]:
    """
    Split a day's per-entry overtime into tiers, in chronological order.

    The day's cumulative overtime is walked so that only the part beyond
    the threshold lands in tier 2, on the latest entries.
    """
    running = ZERO
    for overtime in overtime_hours:
        if tier2_threshold_hours <= 0:
            yield overtime, ZERO
            continue
        tier1 = max(ZERO, min(overtime, tier2_threshold_hours - running))
        yield tier1, overtime - tier1
        running += overtime


def resolve_rates(entry: TimeEntry, hours: Decimal) -> tuple[Decimal, Decimal]:
    """
    Effective (earned_rate, cost_rate) for an entry.

    Earned falls back from earned_rate to hourly_rate, then to the EARNED
    amount spread over the entry's hours. Cost falls back from cost_rate to
    the COST amount spread the same way.
    """
    earned_rate = entry.earned_rate if entry.earned_rate > 0 else entry.hourly_rate
    if earned_rate <= 0 and hours > 0:
        earned_rate = entry.amount_of("EARNED") / hours

    cost_rate = entry.cost_rate
    if cost_rate <= 0 and hours > 0:
        cost_rate = entry.amount_of("COST") / hours

    return max(ZERO, earned_rate), max(ZERO, cost_rate)


def price_hours(
    regular_hours: Decimal,
    overtime_hours: Decimal,
    context: DayContext,
    earned_rate: Decimal,
    billable: bool,
    cost_rate: Decimal = ZERO,
    tier2_hours: Decimal | None = None,
) -> MoneyBreakdown:
    """
    Price one slice of hours.

    ``tier2_hours`` is the precomputed tier-2 share when the caller has
    already attributed tiers across the day; otherwise the overtime is split
    against the context's tier-2 threshold on its own.
    """
    if tier2_hours is None:
        tier1_hours, tier2_hours = split_tiers(overtime_hours, context.tier2_threshold_hours)
    else:
        tier1_hours = overtime_hours - tier2_hours

    def overtime_amount(rate: Decimal) -> Decimal:
        return (
            tier1_hours * rate * context.effective_multiplier
            + tier2_hours * rate * context.tier2_multiplier
        )

    if billable:
        regular_pay = to_cents(regular_hours * earned_rate)
        overtime_pay = to_cents(overtime_amount(earned_rate))
        overtime_premium = to_cents(overtime_amount(earned_rate) - overtime_hours * earned_rate)
    else:
        regular_pay = overtime_pay = overtime_premium = ZERO

    regular_cost = to_cents(regular_hours * cost_rate)
    overtime_cost = to_cents(overtime_amount(cost_rate))

    earned = regular_pay + overtime_pay
    cost = regular_cost + overtime_cost
    return MoneyBreakdown(
        regular_pay=regular_pay,
        overtime_pay=overtime_pay,
        overtime_premium=overtime_premium,
        earned=earned,
        regular_cost=regular_cost,
        overtime_cost=overtime_cost,
        cost=cost,
        profit=earned - cost if billable else ZERO,
    )
