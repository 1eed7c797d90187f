"""Member-scoped reports for the member hub and the admin member pages."""

from datetime import datetime, timezone
from typing import Any

import psycopg

from .. import repository
from ..attendance import attendance_summary, member_checkin_frequency, member_checkin_history
from ..body_weight import weight_series, workout_overview
from ..config import Config
from ..occupancy import open_session_lookback, session_status
from ..personal_records import calculate_personal_records
from ..registry import report
from ..timebuckets import parse_timestamp, shift_period
from .common import envelope

def _history_start(now: datetime, months: int) -> datetime:
    first = shift_period(parse_timestamp(now).date().replace(day=1), "month", -(months - 1))
    return datetime(first.year, first.month, 1, tzinfo=timezone.utc)


@report("member_checkin_history", scope="member", description="Monthly check-ins, zero-filled")
async def member_checkin_history_report(
    conn: psycopg.AsyncConnection[Any],
    member_id: str | None,
    now: datetime,
    config: Config,
) -> dict[str, Any]:
    since = _history_start(now, config.history_months)
    records = await repository.fetch_member_checkins(conn, member_id, since=since)
    buckets = member_checkin_history(records, now, months=config.history_months)
    return envelope("member_checkin_history", member_id, now, [b.to_dict() for b in buckets])


@report("member_checkin_frequency", scope="member", description="Visits per month, most recent months")
async def member_checkin_frequency_report(
    conn: psycopg.AsyncConnection[Any],
    member_id: str | None,
    now: datetime,
    config: Config,
) -> dict[str, Any]:
    records = await repository.fetch_member_checkins(conn, member_id)
    buckets = member_checkin_frequency(records, months=config.history_months)
    return envelope("member_checkin_frequency", member_id, now, [b.to_dict() for b in buckets])


@report("attendance_summary", scope="member", description="Total, last and recent check-ins")
async def attendance_summary_report(
    conn: psycopg.AsyncConnection[Any],
    member_id: str | None,
    now: datetime,
    config: Config,
) -> dict[str, Any]:
    records = await repository.fetch_member_checkins(conn, member_id)
    summary = attendance_summary(records, recent_limit=config.recent_checkins)
    return envelope("attendance_summary", member_id, now, summary.to_dict())


@report("personal_records", scope="member", description="Best estimated 1RM per exercise")
async def personal_records_report(
    conn: psycopg.AsyncConnection[Any],
    member_id: str | None,
    now: datetime,
    config: Config,
) -> dict[str, Any]:
    workouts = await repository.fetch_workouts(conn, member_id)
    records = calculate_personal_records(workouts)
    return envelope("personal_records", member_id, now, [r.to_dict() for r in records])


@report("workout_overview", scope="member", description="Workout count, latest weight, top lift")
async def workout_overview_report(
    conn: psycopg.AsyncConnection[Any],
    member_id: str | None,
    now: datetime,
    config: Config,
) -> dict[str, Any]:
    workouts = await repository.fetch_workouts(conn, member_id)
    logs = await repository.fetch_body_weight_logs(conn, member_id)
    overview = workout_overview(workouts, logs)
    data = {
        **overview.to_dict(),
        "weight_series": [
            {"date": entry.date.isoformat(), "weight": entry.weight}
            for entry in weight_series(logs)
        ],
    }
    return envelope("workout_overview", member_id, now, data)


@report("session_status", scope="member", description="Whether the member is checked in right now")
async def session_status_report(
    conn: psycopg.AsyncConnection[Any],
    member_id: str | None,
    now: datetime,
    config: Config,
) -> dict[str, Any]:
    since = now - open_session_lookback(config.default_session_hours)
    records = await repository.fetch_member_checkins(conn, member_id, since=since)
    status = session_status(records, member_id, now, session_hours=config.default_session_hours)
    return envelope("session_status", member_id, now, status.to_dict())
