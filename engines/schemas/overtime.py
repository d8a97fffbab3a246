"""
Overtime Engine Input Schemas

Time entries, calculation config, user profiles, authoritative holiday and
time-off records, and per-user schedule overrides.

Models accept snake_case or camelCase keys so that payloads from the
time-tracking API validate unchanged. Data fields that come from users or
upstream systems are parsed leniently: an unusable value becomes ``None``
(or zero) instead of failing the whole report.
"""

from datetime import date
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Iterator

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from engines.services.time_utils import date_range, parse_iso_duration


class EntryType(str, Enum):
    """Time entry types. HOLIDAY and TIME_OFF are informational PTO tags."""

    REGULAR = "REGULAR"
    BREAK = "BREAK"
    HOLIDAY = "HOLIDAY"
    TIME_OFF = "TIME_OFF"


class Weekday(str, Enum):
    """Weekday names as used by workspace profiles and weekly overrides."""

    MONDAY = "MONDAY"
    TUESDAY = "TUESDAY"
    WEDNESDAY = "WEDNESDAY"
    THURSDAY = "THURSDAY"
    FRIDAY = "FRIDAY"
    SATURDAY = "SATURDAY"
    SUNDAY = "SUNDAY"


class OvertimeBasis(str, Enum):
    """Which threshold overtime is measured against."""

    DAILY = "daily"
    WEEKLY = "weekly"
    BOTH = "both"


class OverrideMode(str, Enum):
    """Which override map is active for a user."""

    GLOBAL = "global"
    WEEKLY = "weekly"
    PER_DAY = "perDay"


PTO_ENTRY_TYPES = frozenset({EntryType.HOLIDAY, EntryType.TIME_OFF})


def to_decimal(value: Any) -> Decimal | None:
    """Best-effort numeric coercion. Returns None for anything unusable."""
    if isinstance(value, dict):
        value = value.get("amount", value.get("value"))
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float)):
        result = Decimal(str(value))
    elif isinstance(value, str):
        try:
            result = Decimal(value.strip())
        except InvalidOperation:
            return None
    else:
        return None
    if not result.is_finite():
        return None
    return result


def parse_weekday(value: Any) -> Weekday | None:
    if isinstance(value, Weekday):
        return value
    if not isinstance(value, str):
        return None
    try:
        return Weekday(value.strip().upper())
    except ValueError:
        return None


def parse_date_key(value: Any) -> date | None:
    """Parse ``YYYY-MM-DD`` (or the date part of an ISO timestamp)."""
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or len(value) < 10:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


class CamelModel(BaseModel):
    """Base model accepting camelCase aliases alongside field names."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


# ---------------------------------------------------------------------------
# Time entries
# ---------------------------------------------------------------------------


class TimeInterval(CamelModel):
    """Raw interval as reported by the time tracker. Any field may be bad."""

    start: str | None = None
    end: str | None = None
    duration: str | None = Field(
        default=None,
        description="ISO-8601 duration (PTnHnMnS); numbers are taken as seconds",
    )

    @field_validator("start", "end", mode="before")
    @classmethod
    def _stringify_instant(cls, value: Any) -> str | None:
        if value is None:
            return None
        if hasattr(value, "isoformat"):
            return value.isoformat()
        return str(value)

    @field_validator("duration", mode="before")
    @classmethod
    def _seconds_to_iso(cls, value: Any) -> str | None:
        if value is None or isinstance(value, bool):
            return None
        if isinstance(value, (int, float, Decimal)):
            return f"PT{value}S"
        return str(value)


class EntryAmount(BaseModel):
    """One monetary amount attached to an entry (EARNED, COST or PROFIT)."""

    type: str = Field(default="", validation_alias=AliasChoices("type", "amountType", "amount_type"))
    value: Decimal = Field(default=Decimal("0"), validation_alias=AliasChoices("value", "amount"))

    @field_validator("type", mode="before")
    @classmethod
    def _upper_type(cls, value: Any) -> str:
        return str(value or "").upper()

    @field_validator("value", mode="before")
    @classmethod
    def _lenient_value(cls, value: Any) -> Decimal:
        return to_decimal(value) or Decimal("0")


class TimeEntry(CamelModel):
    """
    One logged interval.

    The engine never mutates entries; the model is frozen so shared
    instances are safe across concurrent calls.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default="", validation_alias=AliasChoices("id", "_id"))
    user_id: str = ""
    user_name: str = ""
    description: str | None = None
    type: EntryType = EntryType.REGULAR
    time_interval: TimeInterval | None = None
    billable: bool = False

    # Rates in the caller's unit and currency (absent means 0)
    hourly_rate: Decimal = Decimal("0")
    earned_rate: Decimal = Decimal("0")
    cost_rate: Decimal = Decimal("0")
    amounts: list[EntryAmount] = Field(default_factory=list)

    # Carried through for reporting only
    project_name: str | None = None
    client_name: str | None = None
    task_name: str | None = None

    @field_validator("id", "user_id", "user_name", mode="before")
    @classmethod
    def _blank_if_missing(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("type", mode="before")
    @classmethod
    def _default_regular(cls, value: Any) -> EntryType:
        if isinstance(value, EntryType):
            return value
        try:
            return EntryType(str(value or "").upper())
        except ValueError:
            return EntryType.REGULAR

    @field_validator("billable", mode="before")
    @classmethod
    def _strict_billable(cls, value: Any) -> bool:
        return value is True

    @field_validator("hourly_rate", "earned_rate", "cost_rate", mode="before")
    @classmethod
    def _lenient_rate(cls, value: Any) -> Decimal:
        rate = to_decimal(value)
        if rate is None or rate < 0:
            return Decimal("0")
        return rate

    @field_validator("amounts", mode="before")
    @classmethod
    def _normalize_amounts(cls, value: Any) -> list:
        if value is None:
            return []
        if isinstance(value, dict):
            if {"type", "amountType", "value", "amount"} & value.keys():
                return [value]
            # {"EARNED": 100, "COST": 60} shape
            return [{"type": key, "value": amount} for key, amount in value.items()]
        if isinstance(value, list):
            return [item for item in value if isinstance(item, (dict, EntryAmount))]
        return []

    @property
    def is_pto(self) -> bool:
        return self.type in PTO_ENTRY_TYPES

    @property
    def is_break(self) -> bool:
        return self.type == EntryType.BREAK

    @property
    def is_work(self) -> bool:
        return self.type == EntryType.REGULAR

    def amount_of(self, amount_type: str) -> Decimal:
        """Sum of attached amounts of the given type."""
        wanted = amount_type.upper()
        return sum((a.value for a in self.amounts if a.type == wanted), Decimal("0"))


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class OvertimeConfig(CamelModel):
    """
    Calculation parameters and feature flags.

    Constraints are enforced here, at construction time. The engine assumes
    a validated config and performs no checks of its own.
    """

    overtime_basis: OvertimeBasis = OvertimeBasis.DAILY
    daily_threshold_hours: Decimal = Field(default=Decimal("8"), ge=0)
    weekly_threshold_hours: Decimal = Field(default=Decimal("40"), ge=0)
    overtime_multiplier: Decimal = Field(default=Decimal("1.5"), ge=1)
    tier2_threshold_hours: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        description="Daily overtime hours before tier 2 starts; 0 disables tier 2",
    )
    tier2_multiplier: Decimal = Field(default=Decimal("2.0"), ge=1)

    use_profile_capacity: bool = True
    use_profile_working_days: bool = True
    apply_holidays: bool = True
    apply_time_off: bool = True


class DateRange(CamelModel):
    """Inclusive reporting window."""

    start: date
    end: date

    @model_validator(mode="after")
    def _ordered(self) -> "DateRange":
        if self.end < self.start:
            raise ValueError(f"Date range end ({self.end}) precedes start ({self.start})")
        return self

    def days(self) -> Iterator[date]:
        return date_range(self.start, self.end)

    def __contains__(self, day: date) -> bool:
        return self.start <= day <= self.end


class UserRef(CamelModel):
    """A user known to the workspace, whether or not they logged time."""

    id: str
    name: str = ""


# ---------------------------------------------------------------------------
# Authoritative per-user data
# ---------------------------------------------------------------------------


class UserProfile(CamelModel):
    """Workspace member profile: daily capacity and working days."""

    work_capacity_hours: Decimal | None = Field(
        default=None,
        validation_alias=AliasChoices("work_capacity_hours", "workCapacityHours", "workCapacity"),
    )
    working_days: frozenset[Weekday] = Field(default_factory=frozenset)

    @field_validator("work_capacity_hours", mode="before")
    @classmethod
    def _lenient_capacity(cls, value: Any) -> Decimal | None:
        if isinstance(value, str) and value.strip().upper().startswith("P"):
            capacity = parse_iso_duration(value)
        else:
            capacity = to_decimal(value)
        if capacity is None or capacity < 0:
            return None
        return capacity

    @field_validator("working_days", mode="before")
    @classmethod
    def _known_weekdays(cls, value: Any) -> frozenset[Weekday]:
        if not value:
            return frozenset()
        if isinstance(value, str):
            value = [value]
        days = (parse_weekday(item) for item in value)
        return frozenset(day for day in days if day is not None)


class HolidayInfo(CamelModel):
    """One holiday on one calendar day (multi-day holidays are pre-expanded)."""

    name: str = "Holiday"


class TimeOffInfo(CamelModel):
    """Approved time off on one calendar day."""

    hours: Decimal = Decimal("0")
    is_full_day: bool = False

    @field_validator("hours", mode="before")
    @classmethod
    def _lenient_hours(cls, value: Any) -> Decimal:
        hours = to_decimal(value)
        if hours is None or hours < 0:
            return Decimal("0")
        return hours


# ---------------------------------------------------------------------------
# Overrides
# ---------------------------------------------------------------------------


class DayOverride(CamelModel):
    """
    Override values for one scope. Each field resolves independently.

    Values outside their valid range are dropped so resolution falls
    through to the next level of the cascade.
    """

    capacity: Decimal | None = None
    multiplier: Decimal | None = None
    tier2_threshold: Decimal | None = None
    tier2_multiplier: Decimal | None = None

    @field_validator("capacity", "tier2_threshold", mode="before")
    @classmethod
    def _non_negative(cls, value: Any) -> Decimal | None:
        number = to_decimal(value)
        if number is None or number < 0:
            return None
        return number

    @field_validator("multiplier", "tier2_multiplier", mode="before")
    @classmethod
    def _at_least_one(cls, value: Any) -> Decimal | None:
        number = to_decimal(value)
        if number is None or number < 1:
            return None
        return number


class UserOverride(DayOverride):
    """
    Per-user overrides.

    Top-level values are the global override. Only the scoped map matching
    ``mode`` is consulted; the other map is kept but inert.
    """

    mode: OverrideMode = OverrideMode.GLOBAL
    weekly_overrides: dict[Weekday, DayOverride] = Field(default_factory=dict)
    per_day_overrides: dict[date, DayOverride] = Field(default_factory=dict)

    @field_validator("mode", mode="before")
    @classmethod
    def _parse_mode(cls, value: Any) -> OverrideMode:
        normalized = str(value or "").replace("_", "").replace("-", "").lower()
        if normalized == "weekly":
            return OverrideMode.WEEKLY
        if normalized == "perday":
            return OverrideMode.PER_DAY
        return OverrideMode.GLOBAL

    @field_validator("weekly_overrides", mode="before")
    @classmethod
    def _weekday_keys(cls, value: Any) -> dict:
        if not isinstance(value, dict):
            return {}
        parsed = {}
        for key, override in value.items():
            weekday = parse_weekday(key)
            if weekday is not None and override is not None:
                parsed[weekday] = override
        return parsed

    @field_validator("per_day_overrides", mode="before")
    @classmethod
    def _date_keys(cls, value: Any) -> dict:
        if not isinstance(value, dict):
            return {}
        parsed = {}
        for key, override in value.items():
            day = parse_date_key(key)
            if day is not None and override is not None:
                parsed[day] = override
        return parsed
