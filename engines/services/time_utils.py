"""
Time Utilities

ISO-8601 duration and instant parsing, canonical timezone resolution,
calendar-day keys and ISO week helpers. Nothing here reads the clock.
"""

import logging
import re
from datetime import date, datetime, timedelta, timezone, tzinfo
from decimal import Decimal, InvalidOperation
from functools import lru_cache
from typing import Iterator
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)

SECONDS_PER_HOUR = Decimal("3600")

WEEKDAY_NAMES = (
    "MONDAY",
    "TUESDAY",
    "WEDNESDAY",
    "THURSDAY",
    "FRIDAY",
    "SATURDAY",
    "SUNDAY",
)

_NUMBER = r"\d+(?:[.,]\d+)?"
ISO_DURATION_RE = re.compile(
    rf"^P(?:(?P<weeks>{_NUMBER})W)?(?:(?P<days>{_NUMBER})D)?"
    rf"(?:T(?:(?P<hours>{_NUMBER})H)?(?:(?P<minutes>{_NUMBER})M)?(?:(?P<seconds>{_NUMBER})S)?)?$"
)

_HOURS_PER_UNIT = {
    "weeks": Decimal("168"),
    "days": Decimal("24"),
    "hours": Decimal("1"),
}
_UNITS_PER_HOUR = {
    "minutes": Decimal("60"),
    "seconds": SECONDS_PER_HOUR,
}


def parse_iso_duration(value: str | None) -> Decimal | None:
    """
    Parse an ISO-8601 duration into hours.

    Returns None when the value is missing or not a duration, so callers
    can fall back to another source. ``PT0S`` is a valid zero duration.
    """
    if not value or not isinstance(value, str):
        return None
    text = value.strip().upper()
    if text.endswith("T"):
        return None
    match = ISO_DURATION_RE.match(text)
    if not match or not any(match.groupdict().values()):
        return None

    hours = Decimal("0")
    for unit, raw in match.groupdict().items():
        if raw is None:
            continue
        try:
            amount = Decimal(raw.replace(",", "."))
        except InvalidOperation:
            return None
        if unit in _UNITS_PER_HOUR:
            hours += amount / _UNITS_PER_HOUR[unit]
        else:
            hours += amount * _HOURS_PER_UNIT[unit]
    return hours


def parse_instant(value: str | datetime | None) -> datetime | None:
    """Parse an ISO-8601 timestamp into an aware datetime (naive means UTC)."""
    if value is None:
        return None
    if isinstance(value, datetime):
        instant = value
    else:
        text = str(value).strip()
        if not text:
            return None
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            instant = datetime.fromisoformat(text)
        except ValueError:
            return None
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    return instant


def interval_hours(start: str | None, end: str | None, duration: str | None) -> Decimal:
    """
    Resolve the length of an interval in hours.

    The ISO duration wins when it parses; otherwise the start/end delta is
    used; otherwise the interval counts as zero. Never negative.
    """
    hours = parse_iso_duration(duration)
    if hours is not None:
        return hours

    start_at = parse_instant(start)
    end_at = parse_instant(end)
    if start_at is None or end_at is None:
        if duration or end:
            logger.debug(f"Unresolvable interval start={start!r} end={end!r} duration={duration!r}")
        return Decimal("0")

    seconds = Decimal(str((end_at - start_at).total_seconds()))
    if seconds <= 0:
        return Decimal("0")
    return seconds / SECONDS_PER_HOUR


@lru_cache(maxsize=64)
def _zone(name: str) -> ZoneInfo | None:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return None


def resolve_time_zone(*candidates: str | tzinfo | None, default: str = "UTC") -> tzinfo:
    """
    Pick the canonical timezone for date bucketing.

    Candidates are tried in order (viewer profile, then workspace); the
    first valid one wins. ``default`` is the last resort and UTC backs it.
    """
    for candidate in (*candidates, default):
        if candidate is None or candidate == "":
            continue
        if isinstance(candidate, tzinfo):
            return candidate
        zone = _zone(str(candidate))
        if zone is not None:
            return zone
        logger.debug(f"Ignoring unknown timezone {candidate!r}")
    return timezone.utc


def date_key(instant: datetime, tz: tzinfo) -> date:
    """Calendar day of an instant in the canonical timezone."""
    return instant.astimezone(tz).date()


def weekday_name(day: date) -> str:
    return WEEKDAY_NAMES[day.weekday()]


def week_start(day: date) -> date:
    """Monday of the ISO week containing ``day``."""
    return day - timedelta(days=day.weekday())


def iso_week_key(day: date) -> str:
    """ISO week label, e.g. ``2025-W03``."""
    year, week, _ = day.isocalendar()
    return f"{year}-W{week:02d}"


def date_range(start: date, end: date) -> Iterator[date]:
    """Every calendar day from ``start`` to ``end`` inclusive."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)
