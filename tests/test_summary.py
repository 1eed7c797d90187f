"""Tests for offline summaries over JSON exports."""

import json
from datetime import datetime, timezone

import pytest

from gymtrack_reporting.config import Config
from gymtrack_reporting.summary import load_export, summarize_export

UTC = timezone.utc
NOW = datetime(2026, 2, 8, 15, 0, tzinfo=UTC)

EXPORT = {
    "gym": {"created_at": "2025-04-01T00:00:00Z", "max_capacity": 25, "session_time_hours": 1.5},
    "check_ins": [
        {
            "member_table_id": "m-1",
            "check_in_time": "2026-02-08T14:00:00Z",
            "check_out_time": "2026-02-08T16:00:00Z",
        },
        {"member_id": "m-2", "check_in_time": "2026-02-06T09:00:00Z"},
        {"member_id": "m-2", "check_in_time": "not a time"},
    ],
    "workouts": [
        {
            "member_id": "m-1",
            "date": "2026-02-01",
            "exercises": [{"name": "Squat", "sets": 5, "reps": 5, "weight": 100}],
        },
    ],
    "body_weight_logs": [{"member_id": "m-3", "date": "2026-02-01", "weight": 70}],
    "members": [
        {"id": "1", "member_id": "GYM-1", "name": "A", "membership_type": "Basic", "join_date": "2025-05-01"},
        {"id": "2", "member_id": "GYM-2", "name": "B", "membership_status": "expired"},
    ],
}


class TestSummarizeExport:
    def test_gym_section(self):
        summary = summarize_export(EXPORT, NOW, Config())
        gym = summary["gym"]

        assert summary["as_of"] == NOW.isoformat()
        assert sum(b["count"] for b in gym["checkin_trends"]) == 2
        assert gym["occupancy"] == {"current": 1, "capacity": 25, "available": 24}
        assert gym["membership_distribution"] == [{"label": "Basic", "count": 1}]
        assert gym["membership_status"] == [
            {"label": "active", "count": 1},
            {"label": "expiring soon", "count": 0},
            {"label": "expired", "count": 1},
        ]
        assert [(b["bucket"], b["count"]) for b in gym["new_members_yearly"]] == [
            ("2025", 1), ("2026", 0),
        ]

    def test_member_sections(self):
        members = summarize_export(EXPORT, NOW, Config())["members"]

        assert sorted(members) == ["m-1", "m-2", "m-3"]
        assert members["m-1"]["attendance"]["total_check_ins"] == 1
        assert members["m-1"]["personal_records"][0]["exercise"] == "Squat"
        assert members["m-1"]["workout_overview"]["top_lift"] == "Squat"
        assert len(members["m-2"]["checkin_history"]) == 12
        assert members["m-2"]["checkin_frequency"] == [
            {"bucket": "Feb 2026", "count": 1, "period_start": "2026-02-01"},
        ]
        assert members["m-3"]["workout_overview"]["latest_weight"] == 70.0
        assert members["m-1"]["session_status"]["active"] is True
        assert members["m-2"]["session_status"] == {
            "active": False,
            "last_check_in": "2026-02-06T09:00:00+00:00",
            "expected_check_out": "2026-02-06T10:30:00+00:00",
        }

    def test_empty_export(self):
        summary = summarize_export({}, NOW, Config(default_capacity=10))
        assert summary["members"] == {}
        assert summary["gym"]["occupancy"] == {"current": 0, "capacity": 10, "available": 10}
        assert summary["gym"]["new_members_yearly"] == []
        assert len(summary["gym"]["checkin_trends"]) == 7

    def test_non_list_table_rejected(self):
        with pytest.raises(ValueError, match="'members' must be a list"):
            summarize_export({"members": {"id": "1"}}, NOW, Config())

    def test_numeric_strings_in_gym_settings(self):
        export = {**EXPORT, "gym": {"max_capacity": "25", "session_time_hours": "1.5"}}
        summary = summarize_export(export, NOW, Config())
        assert summary["gym"]["occupancy"]["capacity"] == 25
        assert summary["members"]["m-2"]["session_status"]["expected_check_out"] == "2026-02-06T10:30:00+00:00"

    @pytest.mark.parametrize("value", ["lots", [2], "inf"])
    def test_bad_session_length_rejected(self, value):
        export = {"gym": {"session_time_hours": value}}
        with pytest.raises(ValueError, match="gym.session_time_hours must be a number"):
            summarize_export(export, NOW, Config())


class TestLoadExport:
    def test_reads_object(self, tmp_path):
        path = tmp_path / "export.json"
        path.write_text(json.dumps(EXPORT))
        assert load_export(path) == EXPORT

    def test_rejects_array(self, tmp_path):
        path = tmp_path / "export.json"
        path.write_text("[]")
        with pytest.raises(ValueError, match="Export must be a JSON object"):
            load_export(path)
