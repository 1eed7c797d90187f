"""Check-in attendance aggregations for the admin dashboard and member pages."""

from collections.abc import Sequence
from typing import Any

from .frequency import BucketWindow, count_by_bucket, tally_recent_buckets
from .models import AttendanceSummary, BucketCount, CheckInRecord


def attendance_summary(
    records: Sequence[CheckInRecord],
    recent_limit: int = 5,
) -> AttendanceSummary:
    """Total check-ins, the latest one, and the ``recent_limit`` newest times."""
    times = sorted((r.check_in_time for r in records), reverse=True)
    return AttendanceSummary(
        total_check_ins=len(times),
        last_check_in=times[0] if times else None,
        recent_check_ins=tuple(times[:max(recent_limit, 0)]),
    )


def checkin_trends(
    records: Sequence[CheckInRecord],
    now: Any,
    days: int = 7,
) -> list[BucketCount]:
    """Gym check-ins per UTC day over the last ``days`` days (weekday labels)."""
    return count_by_bucket(
        (r.check_in_time for r in records),
        BucketWindow(unit="day", length=days),
        now,
    )


def member_checkin_history(
    records: Sequence[CheckInRecord],
    now: Any,
    months: int = 12,
) -> list[BucketCount]:
    """One member's check-ins per month, zero-filled over the last ``months``."""
    return count_by_bucket(
        (r.check_in_time for r in records),
        BucketWindow(unit="month", length=months),
        now,
    )


def member_checkin_frequency(
    records: Sequence[CheckInRecord],
    months: int = 12,
) -> list[BucketCount]:
    """Monthly visit counts for the member hub, most recent ``months`` observed."""
    return tally_recent_buckets(
        (r.check_in_time for r in records),
        granularity="month-year",
        limit=months,
    )
