"""Membership analytics: effective status, plan distribution, yearly joins."""

from collections.abc import Sequence
from typing import Any, Literal

from .frequency import count_by_year_since
from .models import BucketCount, DistributionSlice, MemberRecord
from .timebuckets import parse_timestamp

EffectiveStatus = Literal["active", "expiring soon", "expired"]

OTHER_MEMBERSHIP_TYPE = "Other"


def effective_membership_status(
    member: MemberRecord,
    now: Any,
    expiring_soon_days: int = 14,
) -> EffectiveStatus:
    """Status as shown to staff, taking the expiry date into account.

    An expiry in the past means expired. Otherwise whole days remaining are
    compared against ``expiring_soon_days``.
    """
    if member.membership_status == "expired":
        return "expired"
    if member.expiry_date is None:
        return "active"

    remaining_seconds = (member.expiry_date - parse_timestamp(now)).total_seconds()
    if remaining_seconds < 0:
        return "expired"
    if remaining_seconds // 86400 <= expiring_soon_days:
        return "expiring soon"
    return "active"


_STATUS_ORDER: tuple[EffectiveStatus, ...] = ("active", "expiring soon", "expired")


def membership_status_breakdown(
    members: Sequence[MemberRecord],
    now: Any,
    expiring_soon_days: int = 14,
) -> list[DistributionSlice]:
    """Members per effective status, always in active/expiring/expired order."""
    counts = dict.fromkeys(_STATUS_ORDER, 0)
    for member in members:
        counts[effective_membership_status(member, now, expiring_soon_days)] += 1
    return [DistributionSlice(label=status, count=counts[status]) for status in _STATUS_ORDER]


def membership_distribution(members: Sequence[MemberRecord]) -> list[DistributionSlice]:
    """Active members per plan name, in order of first appearance."""
    counts: dict[str, int] = {}
    for member in members:
        if member.membership_status != "active":
            continue
        label = (member.membership_type or "").strip() or OTHER_MEMBERSHIP_TYPE
        counts[label] = counts.get(label, 0) + 1
    return [DistributionSlice(label=label, count=count) for label, count in counts.items()]


def new_members_yearly(
    members: Sequence[MemberRecord],
    since: Any,
    now: Any,
) -> list[BucketCount]:
    """Members joined per year since the gym was created, zero-filled."""
    return count_by_year_since(
        (m.join_date for m in members if m.join_date is not None),
        since,
        now,
    )
