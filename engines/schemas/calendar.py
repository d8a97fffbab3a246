"""
Calendar Source Schemas

Holiday periods and time-off requests as returned by the time-tracking
API, before they are flattened into per-day records.
"""

from datetime import date
from decimal import Decimal
from typing import Any

from pydantic import AliasChoices, Field, field_validator, model_validator

from engines.schemas.overtime import CamelModel, parse_date_key, to_decimal


def as_mapping(value: Any) -> dict:
    """Nested period objects; anything that is not a dict reads as empty."""
    return value if isinstance(value, dict) else {}


class HolidayPeriod(CamelModel):
    """
    One assigned holiday, possibly spanning several days.

    Accepts both the flat shape and the API's nested ``datePeriod``.
    A missing end means a single-day holiday.
    """

    name: str = "Holiday"
    start: date | None = None
    end: date | None = None

    @model_validator(mode="before")
    @classmethod
    def _flatten_date_period(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        period = as_mapping(data.get("datePeriod") or data.get("date_period"))
        flattened = dict(data)
        flattened.setdefault("start", period.get("startDate") or period.get("start"))
        flattened.setdefault("end", period.get("endDate") or period.get("end"))
        return flattened

    @field_validator("name", mode="before")
    @classmethod
    def _default_name(cls, value: Any) -> str:
        return str(value) if value else "Holiday"

    @field_validator("start", "end", mode="before")
    @classmethod
    def _lenient_date(cls, value: Any) -> date | None:
        return parse_date_key(value)


class TimeOffRequest(CamelModel):
    """
    A time-off request.

    ``period_start`` / ``period_end`` keep the raw timestamps so partial
    days can be derived from the period length. The API nests them under
    ``timeOffPeriod.period``; older payloads put them on ``timeOffPeriod``.
    """

    user_id: str = Field(default="", validation_alias=AliasChoices("user_id", "userId", "requesterUserId"))
    status: str = ""
    time_unit: str = ""
    period_start: str | None = None
    period_end: str | None = None
    half_day: bool = False
    half_day_hours: Decimal | None = None

    @model_validator(mode="before")
    @classmethod
    def _flatten_period(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        outer = as_mapping(data.get("timeOffPeriod") or data.get("time_off_period"))
        inner = as_mapping(outer.get("period"))
        flattened = dict(data)
        flattened.setdefault("period_start", inner.get("start") or outer.get("start") or outer.get("startDate"))
        flattened.setdefault("period_end", inner.get("end") or outer.get("end") or outer.get("endDate"))
        flattened.setdefault("half_day", outer.get("halfDay", False))
        flattened.setdefault("half_day_hours", outer.get("halfDayHours"))
        return flattened

    @field_validator("status", mode="before")
    @classmethod
    def _status_type(cls, value: Any) -> str:
        if isinstance(value, dict):
            value = value.get("statusType")
        return str(value or "").upper()

    @field_validator("time_unit", mode="before")
    @classmethod
    def _upper_unit(cls, value: Any) -> str:
        return str(value or "").upper()

    @field_validator("user_id", mode="before")
    @classmethod
    def _blank_if_missing(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("period_start", "period_end", mode="before")
    @classmethod
    def _stringify_instant(cls, value: Any) -> str | None:
        if value is None:
            return None
        if hasattr(value, "isoformat"):
            return value.isoformat()
        return str(value)

    @field_validator("half_day", mode="before")
    @classmethod
    def _truthy(cls, value: Any) -> bool:
        return bool(value)

    @field_validator("half_day_hours", mode="before")
    @classmethod
    def _lenient_hours(cls, value: Any) -> Decimal | None:
        return to_decimal(value)

    @property
    def is_approved(self) -> bool:
        return self.status == "APPROVED"

    @property
    def start_day(self) -> date | None:
        return parse_date_key(self.period_start)

    @property
    def end_day(self) -> date | None:
        return parse_date_key(self.period_end)
