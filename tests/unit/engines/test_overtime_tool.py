"""
Overtime Engine Tool Unit Tests

Raw JSON payloads through the tool's synchronous helper.
"""

from datetime import date
from decimal import Decimal

import pytest
from pydantic import ValidationError

from engines.tools.overtime_engine import analyze_payload, to_json_value

ENTRY = {
    "_id": "e1",
    "userId": "u1",
    "userName": "Alice",
    "type": "REGULAR",
    "billable": True,
    "hourlyRate": {"amount": 50},
    "projectName": "Website",
    "timeInterval": {
        "start": "2025-01-20T09:00:00Z",
        "end": "2025-01-20T19:00:00Z",
        "duration": "PT10H",
    },
}


def monday(result):
    return result["users"][0]["days"]["2025-01-20"]


class TestAnalyzePayload:
    """Test payload validation, defaults and serialization."""

    def test_defaults_from_settings(self):
        result = analyze_payload([ENTRY], "2025-01-20", "2025-01-26")

        day = monday(result)
        assert day["totals"]["regular"] == 8.0
        assert day["totals"]["overtime"] == 2.0
        entry = day["entries"][0]
        assert entry["id"] == "e1"
        assert entry["project_name"] == "Website"
        assert entry["money"]["overtime_pay"] == 150.0
        assert result["overtime_basis"] == "daily"
        assert result["time_zone"] == "UTC"
        assert len(result["fingerprint"]) == 64

    def test_camel_case_config_overrides(self):
        result = analyze_payload(
            [ENTRY],
            "2025-01-20",
            "2025-01-26",
            config={"dailyThresholdHours": 6, "overtimeMultiplier": 2},
        )

        entry = monday(result)["entries"][0]
        assert entry["overtime"] == 4.0
        # 4h x $50 x 2.0
        assert entry["money"]["overtime_pay"] == 400.0

    def test_tier2_config_keys(self):
        long_day = {
            **ENTRY,
            "timeInterval": {
                "start": "2025-01-20T09:00:00Z",
                "end": "2025-01-20T21:00:00Z",
                "duration": "PT12H",
            },
        }

        result = analyze_payload(
            [long_day],
            "2025-01-20",
            "2025-01-26",
            config={"tier2ThresholdHours": 2, "tier2Multiplier": 3},
        )

        entry = monday(result)["entries"][0]
        assert entry["tier1_overtime"] == 2.0
        assert entry["tier2_overtime"] == 2.0
        # 2h x $50 x 1.5 + 2h x $50 x 3.0
        assert entry["money"]["overtime_pay"] == 450.0

        snake = analyze_payload(
            [long_day], "2025-01-20", "2025-01-26", config={"tier2_threshold_hours": 1}
        )
        assert monday(snake)["entries"][0]["tier2_overtime"] == 3.0

    def test_malformed_holiday_period_is_skipped(self):
        result = analyze_payload(
            [ENTRY],
            "2025-01-20",
            "2025-01-26",
            holidays={"u1": [{"name": "X", "datePeriod": "2025-01-20"}]},
        )

        assert monday(result)["context"]["is_holiday"] is False
        assert monday(result)["totals"]["overtime"] == 2.0

    def test_settings_come_from_environment(self, monkeypatch):
        monkeypatch.setenv("OT_DAILY_THRESHOLD_HOURS", "9")
        monkeypatch.setenv("OT_DEFAULT_TIME_ZONE", "America/New_York")

        result = analyze_payload([ENTRY], "2025-01-20", "2025-01-26")

        assert monday(result)["totals"]["overtime"] == 1.0
        assert result["time_zone"] == "America/New_York"

    def test_viewer_zone_beats_workspace_zone(self):
        result = analyze_payload(
            [ENTRY],
            "2025-01-20",
            "2025-01-26",
            time_zone="Invalid/Zone",
            workspace_time_zone="Europe/Berlin",
        )

        assert result["time_zone"] == "Europe/Berlin"

    def test_raw_calendar_payloads(self):
        result = analyze_payload(
            [ENTRY],
            "2025-01-20",
            "2025-01-26",
            holidays={"u1": [{"name": "MLK Day", "datePeriod": {"startDate": "2025-01-20"}}]},
            time_off=[
                {
                    "userId": "u1",
                    "status": {"statusType": "APPROVED"},
                    "timeUnit": "DAYS",
                    "timeOffPeriod": {"period": {"start": "2025-01-21", "end": "2025-01-21"}},
                }
            ],
        )

        user = result["users"][0]
        assert monday(result)["context"]["is_holiday"] is True
        assert monday(result)["totals"]["overtime"] == 10.0
        assert user["days"]["2025-01-21"]["context"]["is_time_off_day"] is True
        assert user["totals"]["holiday_count"] == 1

    def test_profiles_overrides_and_users(self):
        result = analyze_payload(
            [ENTRY],
            "2025-01-20",
            "2025-01-26",
            profiles={"u1": {"workCapacity": "PT7H", "workingDays": ["MONDAY"]}},
            overrides={"u2": {"capacity": 4}},
            users=[{"id": "u2", "name": "Bob"}],
        )

        assert [u["user_id"] for u in result["users"]] == ["u2", "u1"]
        alice = result["users"][1]
        assert alice["days"]["2025-01-20"]["totals"]["overtime"] == 3.0
        assert alice["totals"]["non_working_day_count"] == 6
        assert result["users"][0]["days"]["2025-01-20"]["context"]["effective_capacity_hours"] == 4.0

    def test_weeks_are_serialized(self):
        result = analyze_payload([ENTRY], "2025-01-20", "2025-01-26", config={"overtime_basis": "both"})

        [week] = result["users"][0]["weeks"]
        assert week["week_key"] == "2025-W04"
        assert week["week_start"] == "2025-01-20"
        assert week["totals"]["combined_overtime"] == 2.0

    def test_inverted_range_rejected(self):
        with pytest.raises(ValidationError):
            analyze_payload([ENTRY], "2025-01-26", "2025-01-20")

    def test_invalid_config_rejected(self):
        with pytest.raises(ValidationError):
            analyze_payload([ENTRY], "2025-01-20", "2025-01-26", config={"overtimeMultiplier": 0.5})


class TestToJsonValue:
    """Test JSON conversion of engine values."""

    def test_nested_conversion(self):
        value = {date(2025, 1, 20): [Decimal("1.50"), {"x": Decimal("2")}], "flag": True}

        assert to_json_value(value) == {"2025-01-20": [1.5, {"x": 2.0}], "flag": True}
