"""
Entry Grouper

Buckets time entries by user and by canonical calendar day, and indexes
the days of each ISO week (Monday start) for weekly-basis accounting.
"""

import logging
from collections import defaultdict
from datetime import date, datetime, tzinfo
from decimal import Decimal
from typing import Iterable

from pydantic import BaseModel, Field

from engines.schemas.overtime import DateRange, TimeEntry
from engines.services.time_utils import date_key, interval_hours, parse_instant, week_start

logger = logging.getLogger(__name__)


class GroupedEntries(BaseModel):
    """Result of grouping. Entry lists are in input order."""

    by_user: dict[str, dict[date, list[TimeEntry]]] = Field(default_factory=dict)
    week_index: dict[str, dict[date, list[date]]] = Field(
        default_factory=dict,
        description="user -> Monday of ISO week -> days with entries, ascending",
    )
    user_names: dict[str, str] = Field(default_factory=dict)
    user_order: list[str] = Field(default_factory=list)
    dropped: int = 0
    out_of_range: int = 0

    def days_for(self, user_id: str) -> dict[date, list[TimeEntry]]:
        return self.by_user.get(user_id, {})

    def weeks_for(self, user_id: str) -> dict[date, list[date]]:
        return self.week_index.get(user_id, {})


def entry_start(entry: TimeEntry) -> datetime | None:
    interval = entry.time_interval
    return parse_instant(interval.start) if interval else None


def entry_hours(entry: TimeEntry) -> Decimal:
    """Duration of an entry in hours; malformed intervals count as zero."""
    interval = entry.time_interval
    if interval is None:
        return Decimal("0")
    return interval_hours(interval.start, interval.end, interval.duration)


def group_entries(
    entries: Iterable[TimeEntry],
    time_zone: tzinfo,
    date_range: DateRange | None = None,
) -> GroupedEntries:
    """
    Group entries by user and by the calendar day their start falls on.

    An entry belongs to the day it started in ``time_zone``, even when it
    runs past midnight. Entries without a user or without a parsable start
    are dropped; entries outside ``date_range`` (when given) are skipped.
    Never raises on malformed entries.
    """
    by_user: dict[str, dict[date, list[TimeEntry]]] = defaultdict(lambda: defaultdict(list))
    user_names: dict[str, str] = {}
    user_order: list[str] = []
    dropped = 0
    out_of_range = 0

    for entry in entries:
        if not entry.user_id:
            dropped += 1
            logger.debug(f"Dropping entry {entry.id!r}: no user id")
            continue

        started = entry_start(entry)
        if started is None:
            dropped += 1
            logger.debug(f"Dropping entry {entry.id!r}: no parsable start")
            continue

        day = date_key(started, time_zone)
        if date_range is not None and day not in date_range:
            out_of_range += 1
            continue

        if entry.user_id not in user_names:
            user_order.append(entry.user_id)
            user_names[entry.user_id] = entry.user_name
        elif not user_names[entry.user_id] and entry.user_name:
            user_names[entry.user_id] = entry.user_name

        by_user[entry.user_id][day].append(entry)

    week_index: dict[str, dict[date, list[date]]] = {}
    for user_id, days in by_user.items():
        weeks: dict[date, list[date]] = defaultdict(list)
        for day in sorted(days):
            weeks[week_start(day)].append(day)
        week_index[user_id] = dict(weeks)

    if dropped or out_of_range:
        logger.debug(f"Grouping skipped {dropped} malformed and {out_of_range} out-of-range entries")

    return GroupedEntries(
        by_user={user_id: dict(days) for user_id, days in by_user.items()},
        week_index=week_index,
        user_names=user_names,
        user_order=user_order,
        dropped=dropped,
        out_of_range=out_of_range,
    )
