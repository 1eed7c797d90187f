"""Live gym occupancy from check-in/check-out intervals.

A member is inside when ``check_in_time <= now < check_out_time``. Check-ins
without a check-out boundary are not counted: the kiosk always projects one
from the gym's session length, so a missing value means "unknown".
"""

from collections.abc import Iterable
from datetime import datetime, timedelta
from typing import Any

from .models import CheckInRecord, OccupancySnapshot, SessionStatus
from .timebuckets import parse_timestamp

DEFAULT_SESSION_HOURS = 2.0


def _is_inside(record: CheckInRecord, now: datetime) -> bool:
    if record.check_out_time is None:
        return False
    return record.check_in_time <= now < record.check_out_time


def current_occupancy(records: Iterable[CheckInRecord], now: Any) -> int:
    """Number of check-ins whose interval contains ``now``."""
    instant = parse_timestamp(now)
    return sum(1 for r in records if _is_inside(r, instant))


def occupancy_snapshot(
    records: Iterable[CheckInRecord],
    now: Any,
    capacity: int,
) -> OccupancySnapshot:
    current = current_occupancy(records, now)
    capacity = max(int(capacity), 0)
    return OccupancySnapshot(
        current=current,
        capacity=capacity,
        available=max(capacity - current, 0),
    )


def projected_check_out(check_in_time: Any, session_hours: float | None = None) -> datetime:
    """Check-out time the kiosk stores for a new check-in.

    Missing or non-positive session lengths fall back to two hours.
    """
    hours = session_hours if session_hours and session_hours > 0 else DEFAULT_SESSION_HOURS
    return parse_timestamp(check_in_time) + timedelta(hours=hours)


def open_session_lookback(session_hours: float | None = None) -> timedelta:
    """How far back a check-in can start and still be open at ``now``.

    Never shorter than a day, so late check-outs recorded by staff still count.
    """
    hours = session_hours if session_hours and session_hours > 0 else DEFAULT_SESSION_HOURS
    return max(timedelta(days=1), timedelta(hours=hours))


def has_active_session(
    records: Iterable[CheckInRecord],
    member_id: str | None,
    now: Any,
) -> bool:
    """Whether ``member_id`` has a check-in whose check-out is still ahead."""
    if not member_id:
        return False
    instant = parse_timestamp(now)
    return any(
        r.member_id == member_id
        and r.check_out_time is not None
        and r.check_out_time > instant
        for r in records
    )


def session_status(
    records: Iterable[CheckInRecord],
    member_id: str | None,
    now: Any,
    session_hours: float | None = None,
) -> SessionStatus:
    """Latest check-in of ``member_id`` and when that session ends.

    A recorded check-out wins; otherwise the kiosk projection is used.
    """
    own = [r for r in records if member_id and r.member_id == member_id]
    if not own:
        return SessionStatus(active=False, last_check_in=None, expected_check_out=None)

    latest = max(own, key=lambda r: r.check_in_time)
    return SessionStatus(
        active=has_active_session(own, member_id, now),
        last_check_in=latest.check_in_time,
        expected_check_out=latest.check_out_time or projected_check_out(latest.check_in_time, session_hours),
    )
