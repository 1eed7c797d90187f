"""Read-only data access against the GymTrack PostgreSQL database.

Every fetch takes its identifier explicitly. A missing identifier yields no
records without touching the connection, so reports degrade to zero-filled
or empty results instead of failing.
"""

import logging
from datetime import datetime
from typing import Any

import psycopg
from psycopg.rows import dict_row

from .models import (
    BodyWeightLogEntry,
    CheckInRecord,
    MemberRecord,
    WorkoutRecord,
    parse_records,
)

logger = logging.getLogger(__name__)


def _missing(identifier: Any) -> bool:
    return identifier is None or not str(identifier).strip()


async def _fetch_rows(
    conn: psycopg.AsyncConnection[Any],
    query: str,
    params: tuple[Any, ...],
) -> list[dict[str, Any]]:
    async with conn.cursor(row_factory=dict_row) as cur:
        await cur.execute(query, params)
        return await cur.fetchall()


def _checkin_rows(rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return [
        {
            "member_id": r["member_table_id"],
            "check_in_time": r["check_in_time"],
            "check_out_time": r["check_out_time"],
        }
        for r in rows
    ]


async def fetch_gym_checkins(
    conn: psycopg.AsyncConnection[Any],
    gym_id: str | None,
    since: datetime | None = None,
) -> list[CheckInRecord]:
    """All check-ins of a gym, optionally only those at or after ``since``."""
    if _missing(gym_id):
        logger.info("No gym id supplied; returning no check-ins")
        return []

    rows = await _fetch_rows(
        conn,
        """
        SELECT member_table_id, check_in_time, check_out_time
        FROM check_ins
        WHERE gym_id = %s
          AND (%s::timestamptz IS NULL OR check_in_time >= %s::timestamptz)
        ORDER BY check_in_time ASC
        """,
        (gym_id, since, since),
    )
    return parse_records(CheckInRecord, _checkin_rows(rows))


async def fetch_member_checkins(
    conn: psycopg.AsyncConnection[Any],
    member_table_id: str | None,
    since: datetime | None = None,
) -> list[CheckInRecord]:
    """Check-ins of one member (``members.id``), oldest first."""
    if _missing(member_table_id):
        logger.info("No member id supplied; returning no check-ins")
        return []

    rows = await _fetch_rows(
        conn,
        """
        SELECT member_table_id, check_in_time, check_out_time
        FROM check_ins
        WHERE member_table_id = %s
          AND (%s::timestamptz IS NULL OR check_in_time >= %s::timestamptz)
        ORDER BY check_in_time ASC
        """,
        (member_table_id, since, since),
    )
    return parse_records(CheckInRecord, _checkin_rows(rows))


async def fetch_workouts(
    conn: psycopg.AsyncConnection[Any],
    member_id: str | None,
) -> list[WorkoutRecord]:
    if _missing(member_id):
        return []

    rows = await _fetch_rows(
        conn,
        """
        SELECT member_id, date, notes, exercises
        FROM workouts
        WHERE member_id = %s
        ORDER BY date ASC
        """,
        (member_id,),
    )
    # exercises is jsonb; psycopg hands it back already decoded
    return parse_records(WorkoutRecord, [
        {**r, "exercises": r["exercises"] or []} for r in rows
    ])


async def fetch_body_weight_logs(
    conn: psycopg.AsyncConnection[Any],
    member_id: str | None,
) -> list[BodyWeightLogEntry]:
    if _missing(member_id):
        return []

    rows = await _fetch_rows(
        conn,
        """
        SELECT member_id, date, weight
        FROM body_weight_logs
        WHERE member_id = %s
        ORDER BY date ASC
        """,
        (member_id,),
    )
    return parse_records(BodyWeightLogEntry, rows)


async def fetch_members(
    conn: psycopg.AsyncConnection[Any],
    gym_id: str | None,
) -> list[MemberRecord]:
    if _missing(gym_id):
        return []

    rows = await _fetch_rows(
        conn,
        """
        SELECT id, member_id, name, membership_type, membership_status,
               join_date, expiry_date
        FROM members
        WHERE gym_id = %s
        ORDER BY join_date ASC NULLS LAST
        """,
        (gym_id,),
    )
    return parse_records(MemberRecord, [{**r, "id": str(r["id"])} for r in rows])


async def fetch_gym_settings(
    conn: psycopg.AsyncConnection[Any],
    gym_id: str | None,
) -> dict[str, Any] | None:
    """``created_at``, ``session_time_hours`` and ``max_capacity`` of a gym."""
    if _missing(gym_id):
        return None

    rows = await _fetch_rows(
        conn,
        """
        SELECT created_at, session_time_hours, max_capacity
        FROM gyms
        WHERE id = %s
        """,
        (gym_id,),
    )
    return rows[0] if rows else None


async def fetch_check_in_details(
    conn: psycopg.AsyncConnection[Any],
    gym_id: str | None,
    start: datetime,
    end: datetime,
) -> list[dict[str, Any]]:
    """Check-ins of a gym in ``[start, end]`` with the member's name and code, newest first."""
    if _missing(gym_id):
        return []

    return await _fetch_rows(
        conn,
        """
        SELECT m.name AS member_name, m.member_id AS member_code,
               c.check_in_time, c.check_out_time
        FROM check_ins c
        LEFT JOIN members m ON m.id = c.member_table_id
        WHERE c.gym_id = %s
          AND c.check_in_time >= %s AND c.check_in_time <= %s
        ORDER BY c.check_in_time DESC
        """,
        (gym_id, start, end),
    )


async def fetch_members_joined(
    conn: psycopg.AsyncConnection[Any],
    gym_id: str | None,
    start: datetime,
    end: datetime,
) -> list[dict[str, Any]]:
    """Members of a gym who joined in ``[start, end]`` with their plan price, newest first."""
    if _missing(gym_id):
        return []

    return await _fetch_rows(
        conn,
        """
        SELECT m.name AS member_name, m.member_id AS member_code, m.join_date,
               m.membership_type AS plan_name, p.price AS plan_price
        FROM members m
        LEFT JOIN plans p ON p.id = m.plan_id
        WHERE m.gym_id = %s
          AND m.join_date >= %s AND m.join_date <= %s
        ORDER BY m.join_date DESC
        """,
        (gym_id, start, end),
    )
