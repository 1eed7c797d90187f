"""Gym-scoped reports for the admin dashboard and analytics pages.

Each report fetches only the rows its window needs and recomputes the
summary from scratch; nothing is cached between calls.
"""

import logging
from datetime import datetime, timedelta
from typing import Any

import psycopg

from .. import repository
from ..attendance import checkin_trends
from ..config import Config
from ..membership import membership_distribution, membership_status_breakdown, new_members_yearly
from ..occupancy import occupancy_snapshot, open_session_lookback
from ..registry import report
from ..timebuckets import parse_timestamp
from .common import envelope

logger = logging.getLogger(__name__)


def _start_of_utc_day(ts: datetime) -> datetime:
    ts = parse_timestamp(ts)
    return ts.replace(hour=0, minute=0, second=0, microsecond=0)


@report("checkin_trends", scope="gym", description="Check-ins per UTC day over the last week")
async def checkin_trends_report(
    conn: psycopg.AsyncConnection[Any],
    gym_id: str | None,
    now: datetime,
    config: Config,
) -> dict[str, Any]:
    since = _start_of_utc_day(now) - timedelta(days=config.trends_days - 1)
    records = await repository.fetch_gym_checkins(conn, gym_id, since=since)
    buckets = checkin_trends(records, now, days=config.trends_days)
    return envelope("checkin_trends", gym_id, now, [b.to_dict() for b in buckets])


@report("occupancy", scope="gym", description="Members currently inside vs. capacity")
async def occupancy_report(
    conn: psycopg.AsyncConnection[Any],
    gym_id: str | None,
    now: datetime,
    config: Config,
) -> dict[str, Any]:
    settings = await repository.fetch_gym_settings(conn, gym_id) or {}
    capacity = settings.get("max_capacity") or config.default_capacity
    session_hours = float(settings.get("session_time_hours") or config.default_session_hours)
    since = now - open_session_lookback(session_hours)
    records = await repository.fetch_gym_checkins(conn, gym_id, since=since)
    snapshot = occupancy_snapshot(records, now, capacity)
    return envelope("occupancy", gym_id, now, snapshot.to_dict())


@report("new_members_yearly", scope="gym", description="Members joined per year since gym creation")
async def new_members_yearly_report(
    conn: psycopg.AsyncConnection[Any],
    gym_id: str | None,
    now: datetime,
    config: Config,
) -> dict[str, Any]:
    settings = await repository.fetch_gym_settings(conn, gym_id)
    if not settings or settings.get("created_at") is None:
        logger.info("Gym creation date unknown for %s; no yearly data", gym_id)
        return envelope("new_members_yearly", gym_id, now, [])

    members = await repository.fetch_members(conn, gym_id)
    buckets = new_members_yearly(members, parse_timestamp(settings["created_at"]), now)
    return envelope("new_members_yearly", gym_id, now, [b.to_dict() for b in buckets])


@report("membership_distribution", scope="gym", description="Active members per plan")
async def membership_distribution_report(
    conn: psycopg.AsyncConnection[Any],
    gym_id: str | None,
    now: datetime,
    config: Config,
) -> dict[str, Any]:
    members = await repository.fetch_members(conn, gym_id)
    slices = membership_distribution(members)
    return envelope("membership_distribution", gym_id, now, [s.to_dict() for s in slices])


@report("membership_status", scope="gym", description="Members per effective status (active, expiring soon, expired)")
async def membership_status_report(
    conn: psycopg.AsyncConnection[Any],
    gym_id: str | None,
    now: datetime,
    config: Config,
) -> dict[str, Any]:
    members = await repository.fetch_members(conn, gym_id)
    slices = membership_status_breakdown(members, now, expiring_soon_days=config.expiring_soon_days)
    return envelope("membership_status", gym_id, now, [s.to_dict() for s in slices])
