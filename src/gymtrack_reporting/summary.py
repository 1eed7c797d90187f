"""Offline summaries over a JSON export of GymTrack tables.

Export format:
    {"gym": {"created_at", "max_capacity", ...},
     "check_ins": [...], "workouts": [...],
     "body_weight_logs": [...], "members": [...]}

Every key is optional. Rows are validated one by one; invalid rows are
skipped with a warning.
"""

import json
import math
from datetime import datetime
from pathlib import Path
from typing import Any

from .attendance import (
    attendance_summary,
    checkin_trends,
    member_checkin_frequency,
    member_checkin_history,
)
from .body_weight import workout_overview
from .config import Config
from .membership import membership_distribution, membership_status_breakdown, new_members_yearly
from .models import (
    BodyWeightLogEntry,
    CheckInRecord,
    MemberRecord,
    WorkoutRecord,
    parse_records,
)
from .occupancy import occupancy_snapshot, session_status
from .personal_records import calculate_personal_records


def load_export(path: str | Path) -> dict[str, Any]:
    """Read an export file. Raises ValueError for non-object JSON."""
    with Path(path).open() as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Export must be a JSON object, got {type(data).__name__}")
    return data


def _rows(export: dict[str, Any], key: str) -> list[dict[str, Any]]:
    rows = export.get(key) or []
    if not isinstance(rows, list):
        raise ValueError(f"'{key}' must be a list, got {type(rows).__name__}")
    return [r for r in rows if isinstance(r, dict)]


def _gym_number(gym: dict[str, Any], key: str, default: float) -> float:
    value = gym.get(key) or default
    try:
        number = float(value)
    except (TypeError, ValueError):
        number = math.nan
    if not math.isfinite(number):
        raise ValueError(f"gym.{key} must be a number, got {value!r}")
    return number


def _checkin_rows(rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
    # Exports straight from the check_ins table name the member column member_table_id
    return [
        {**r, "member_id": r.get("member_id", r.get("member_table_id"))}
        for r in rows
    ]


def summarize_export(export: dict[str, Any], now: datetime, config: Config) -> dict[str, Any]:
    gym = export.get("gym") or {}
    checkins = parse_records(CheckInRecord, _checkin_rows(_rows(export, "check_ins")))
    workouts = parse_records(WorkoutRecord, _rows(export, "workouts"))
    logs = parse_records(BodyWeightLogEntry, _rows(export, "body_weight_logs"))
    members = parse_records(MemberRecord, _rows(export, "members"))

    capacity = int(_gym_number(gym, "max_capacity", config.default_capacity))
    session_hours = _gym_number(gym, "session_time_hours", config.default_session_hours)
    gym_summary: dict[str, Any] = {
        "checkin_trends": [b.to_dict() for b in checkin_trends(checkins, now, days=config.trends_days)],
        "occupancy": occupancy_snapshot(checkins, now, capacity).to_dict(),
        "membership_distribution": [s.to_dict() for s in membership_distribution(members)],
        "membership_status": [
            s.to_dict()
            for s in membership_status_breakdown(members, now, expiring_soon_days=config.expiring_soon_days)
        ],
        "new_members_yearly": [
            b.to_dict() for b in new_members_yearly(members, gym.get("created_at"), now)
        ] if gym.get("created_at") else [],
    }

    member_ids = sorted(
        {r.member_id for r in checkins}
        | {w.member_id for w in workouts}
        | {entry.member_id for entry in logs}
    )
    member_summaries: dict[str, Any] = {}
    for member_id in member_ids:
        own_checkins = [r for r in checkins if r.member_id == member_id]
        own_workouts = [w for w in workouts if w.member_id == member_id]
        own_logs = [entry for entry in logs if entry.member_id == member_id]
        member_summaries[member_id] = {
            "checkin_history": [
                b.to_dict() for b in member_checkin_history(own_checkins, now, months=config.history_months)
            ],
            "checkin_frequency": [
                b.to_dict() for b in member_checkin_frequency(own_checkins, months=config.history_months)
            ],
            "attendance": attendance_summary(own_checkins, recent_limit=config.recent_checkins).to_dict(),
            "personal_records": [r.to_dict() for r in calculate_personal_records(own_workouts)],
            "workout_overview": workout_overview(own_workouts, own_logs).to_dict(),
            "session_status": session_status(own_checkins, member_id, now, session_hours).to_dict(),
        }

    return {
        "as_of": now.isoformat(),
        "gym": gym_summary,
        "members": member_summaries,
    }
