"""
Hour Attributor

Splits logged hours into regular and overtime with tail attribution:
entries are walked in chronological order against a capacity, and the
hours past the capacity (the latest-starting work) become overtime. An
entry straddling the threshold is split within itself.

Breaks and PTO-tagged entries are always regular and never consume
capacity, so they cannot push later work into overtime.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Iterable, Iterator, Mapping, NamedTuple

from engines.schemas.analysis import DayContext
from engines.schemas.overtime import OvertimeBasis, TimeEntry
from engines.services.entry_grouper import entry_hours, entry_start

ZERO = Decimal("0")

# Sorts entries without a parsable start after everything else
_NO_START = datetime.max.replace(tzinfo=timezone.utc)


class DailySplit(NamedTuple):
    """Daily-basis attribution of one entry."""

    entry: TimeEntry
    hours: Decimal
    regular: Decimal
    overtime: Decimal


class CombinedSplit(NamedTuple):
    """Final overtime of one entry after applying the basis."""

    overtime: Decimal
    overlap: Decimal
    combined: Decimal


def chronological_key(entry: TimeEntry, position: int) -> tuple:
    """Start instant, then id, then input position."""
    return entry_start(entry) or _NO_START, entry.id, position


def sort_chronologically(entries: Iterable[TimeEntry]) -> list[TimeEntry]:
    """Ascending by start instant; ties keep id order, then input order."""
    indexed = sorted(enumerate(entries), key=lambda pair: chronological_key(pair[1], pair[0]))
    return [entry for _, entry in indexed]


def tail_attribute(durations: Iterable[Decimal], capacity: Decimal) -> Iterator[tuple[Decimal, Decimal]]:
    """
    Fold over durations in order, yielding (regular, overtime) per item.

    The running total is local to the fold; for a duration ``d``:
    ``regular = max(0, min(d, capacity - running))``, ``overtime = d - regular``.
    """
    running = ZERO
    for duration in durations:
        regular = max(ZERO, min(duration, capacity - running))
        yield regular, duration - regular
        running += duration


def attribute_day(entries: Iterable[TimeEntry], context: DayContext) -> list[DailySplit]:
    """Daily-basis split of one user-day against the context's capacity."""
    ordered = sort_chronologically(entries)
    hours = [entry_hours(entry) for entry in ordered]

    work = [h for entry, h in zip(ordered, hours) if entry.is_work]
    work_splits = iter(tail_attribute(work, context.effective_capacity_hours))

    splits = []
    for entry, duration in zip(ordered, hours):
        if entry.is_work:
            regular, overtime = next(work_splits)
        else:
            regular, overtime = duration, ZERO
        splits.append(DailySplit(entry=entry, hours=duration, regular=regular, overtime=overtime))
    return splits


def attribute_week(
    entries_by_day: Mapping[date, Iterable[TimeEntry]],
    weekly_threshold: Decimal,
    forced_days: frozenset[date] | set[date] = frozenset(),
) -> list[tuple[TimeEntry, Decimal]]:
    """
    Weekly-basis overtime for one user-week.

    All REGULAR entries of the week are ordered chronologically across days
    and folded against ``weekly_threshold``. Entries on ``forced_days``
    (days whose capacity was removed by a holiday, non-working day or full
    time off) are overtime in full and do not advance the running total.
    Breaks and PTO entries are not part of the weekly fold.
    """
    placed = [
        (day, entry)
        for day in sorted(entries_by_day)
        for entry in entries_by_day[day]
        if entry.is_work
    ]
    ordered = [
        pair
        for _, pair in sorted(
            enumerate(placed),
            key=lambda item: chronological_key(item[1][1], item[0]),
        )
    ]

    counted = [entry_hours(entry) for day, entry in ordered if day not in forced_days]
    counted_splits = iter(tail_attribute(counted, weekly_threshold))

    result = []
    for day, entry in ordered:
        if day in forced_days:
            overtime = entry_hours(entry)
        else:
            _, overtime = next(counted_splits)
        result.append((entry, overtime))
    return result


def combine_overtime(daily: Decimal, weekly: Decimal, basis: OvertimeBasis) -> CombinedSplit:
    """
    Reconcile the daily and weekly overtime of one entry.

    With basis ``both`` the reported overtime is the larger of the two, so
    hours overtime under both thresholds are counted once.
    """
    if basis == OvertimeBasis.DAILY:
        return CombinedSplit(overtime=daily, overlap=ZERO, combined=daily)
    if basis == OvertimeBasis.WEEKLY:
        return CombinedSplit(overtime=weekly, overlap=ZERO, combined=weekly)
    combined = max(daily, weekly)
    return CombinedSplit(overtime=combined, overlap=min(daily, weekly), combined=combined)
