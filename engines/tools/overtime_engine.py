"""
Overtime Engine MCP Tool

Overtime attribution exposed as an MCP tool. Payloads use the
time-tracking API's JSON shapes; decimals come back as floats.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Any

from fastmcp import FastMCP
from pydantic.alias_generators import to_camel

from engines.config import default_overtime_config, get_settings
from engines.schemas.analysis import UserAnalysis
from engines.schemas.calendar import HolidayPeriod, TimeOffRequest
from engines.schemas.overtime import (
    DateRange,
    OvertimeConfig,
    TimeEntry,
    UserOverride,
    UserProfile,
    UserRef,
)
from engines.services.calendar_expansion import expand_holidays, expand_time_off
from engines.services.fingerprint import analysis_fingerprint
from engines.services.overtime_engine import compute_analysis
from engines.services.time_utils import resolve_time_zone

logger = logging.getLogger(__name__)

# Initialize MCP server (will be started from server.py)
mcp = FastMCP("Overtime Attribution Engine")

# camelCase payload key -> OvertimeConfig field name
CONFIG_FIELDS = {to_camel(name): name for name in OvertimeConfig.model_fields}


def to_json_value(value: Any) -> Any:
    """Decimals to floats and dates to ISO strings, recursively."""
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, dict):
        return {to_json_value(key): to_json_value(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_json_value(item) for item in value]
    return value


def serialize_user(result: UserAnalysis) -> dict:
    """Flatten one user's analysis into a JSON-friendly dict."""
    days = {}
    for day, day_result in result.days.items():
        days[day.isoformat()] = {
            "context": to_json_value(day_result.context.model_dump()),
            "totals": to_json_value(day_result.totals.model_dump()),
            "entries": [
                {
                    "id": item.entry.id,
                    "type": item.entry.type.value,
                    "description": item.entry.description,
                    "project_name": item.entry.project_name,
                    "client_name": item.entry.client_name,
                    "task_name": item.entry.task_name,
                    **to_json_value(item.analysis.model_dump()),
                }
                for item in day_result.entries
            ],
        }

    return {
        "user_id": result.user_id,
        "user_name": result.user_name,
        "totals": to_json_value(result.totals.model_dump()),
        "weeks": [to_json_value(week.model_dump()) for week in result.weeks],
        "days": days,
    }


def config_overrides(config: dict | None) -> dict[str, Any]:
    """
    Payload config keyed by OvertimeConfig field name.

    Keys may be camelCase aliases or field names. Unknown keys pass through
    and are ignored by OvertimeConfig.
    """
    return {CONFIG_FIELDS.get(key, key): value for key, value in (config or {}).items()}


def analyze_payload(
    entries: list[dict],
    start_date: str,
    end_date: str,
    config: dict | None = None,
    overrides: dict[str, dict] | None = None,
    profiles: dict[str, dict] | None = None,
    holidays: dict[str, list[dict]] | None = None,
    time_off: list[dict] | None = None,
    users: list[dict] | None = None,
    time_zone: str | None = None,
    workspace_time_zone: str | None = None,
) -> dict:
    """
    Validate raw payloads, run the analysis and serialize the result.

    Config values not given fall back to the environment settings.
    Raises pydantic ValidationError for a bad config or date range.
    """
    settings = get_settings()
    overtime_config = default_overtime_config(
        settings, **config_overrides(config)
    )
    date_range = DateRange(start=start_date, end=end_date)
    tz = resolve_time_zone(time_zone, workspace_time_zone, default=settings.default_time_zone)

    results = compute_analysis(
        [TimeEntry.model_validate(entry) for entry in entries],
        overtime_config,
        date_range,
        overrides={
            user_id: UserOverride.model_validate(value)
            for user_id, value in (overrides or {}).items()
        },
        profiles={
            user_id: UserProfile.model_validate(value)
            for user_id, value in (profiles or {}).items()
        },
        holidays=expand_holidays(
            {
                user_id: [HolidayPeriod.model_validate(period) for period in periods]
                for user_id, periods in (holidays or {}).items()
            }
        ),
        time_off=expand_time_off(TimeOffRequest.model_validate(request) for request in time_off or []),
        users=[UserRef.model_validate(user) for user in users or []],
        time_zone=tz,
    )

    return {
        "start_date": date_range.start.isoformat(),
        "end_date": date_range.end.isoformat(),
        "overtime_basis": overtime_config.overtime_basis.value,
        "time_zone": str(tz),
        "fingerprint": analysis_fingerprint(results),
        "users": [serialize_user(result) for result in results],
    }


@mcp.tool()
async def calculate_overtime_analysis(
    entries: list[dict],
    start_date: str,
    end_date: str,
    config: dict | None = None,
    overrides: dict[str, dict] | None = None,
    profiles: dict[str, dict] | None = None,
    holidays: dict[str, list[dict]] | None = None,
    time_off: list[dict] | None = None,
    users: list[dict] | None = None,
    time_zone: str | None = None,
    workspace_time_zone: str | None = None,
) -> dict:
    """
    Split logged time into regular and overtime hours and price it.

    Overtime is tail-attributed: once a daily (or weekly) capacity is
    reached, the chronologically latest work becomes overtime. Holidays,
    non-working days and full-day time off remove the day's capacity, so
    any work logged on them is overtime.

    Args:
        entries: Time entries (id, userId, userName, type, timeInterval,
            billable, hourlyRate, earnedRate, costRate, amounts)
        start_date: Report start date (YYYY-MM-DD), inclusive
        end_date: Report end date (YYYY-MM-DD), inclusive
        config: Calculation overrides on top of the server defaults
            (overtimeBasis, dailyThresholdHours, weeklyThresholdHours,
            overtimeMultiplier, tier2ThresholdHours, tier2Multiplier and
            the useProfileCapacity / useProfileWorkingDays / applyHolidays /
            applyTimeOff flags)
        overrides: Per-user capacity and multiplier overrides
            (mode global, weekly or perDay)
        profiles: Per-user profile (workCapacity, workingDays)
        holidays: Per-user holiday periods (name, datePeriod)
        time_off: Time-off requests; only APPROVED ones count
        users: Workspace users to report even without entries (id, name)
        time_zone: Viewer timezone used for day bucketing
        workspace_time_zone: Fallback timezone when the viewer has none

    Returns:
        Dictionary with per-user days, ISO weeks, totals and a SHA-256
        fingerprint of the analysis

    Example:
        8h daily threshold, one 10h billable entry at $50/hr:
        - Regular: 8h, $400
        - Overtime: 2h x $50 x 1.5 = $150
    """
    logger.info(f"Overtime analysis requested for {len(entries)} entries, {start_date}..{end_date}")
    return analyze_payload(
        entries,
        start_date,
        end_date,
        config=config,
        overrides=overrides,
        profiles=profiles,
        holidays=holidays,
        time_off=time_off,
        users=users,
        time_zone=time_zone,
        workspace_time_zone=workspace_time_zone,
    )
