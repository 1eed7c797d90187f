"""Frequency counting of timestamped records into calendar buckets.

Windowed counts are zero-filled: the full list of buckets ending at ``now``
is built before any record is scanned, so chart axes stay complete even
without data. Unparseable timestamps and records outside the window are
skipped silently.
"""

import logging
from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from typing import Any

from .models import BucketCount
from .timebuckets import (
    GRANULARITY_FOR_UNIT,
    Granularity,
    InvalidTimestamp,
    PeriodUnit,
    label_for_period,
    period_start,
    shift_period,
)

logger = logging.getLogger(__name__)

_UNIT_FOR_GRANULARITY: dict[str, PeriodUnit] = {
    granularity: unit for unit, granularity in GRANULARITY_FOR_UNIT.items()
}


@dataclass(frozen=True)
class BucketWindow:
    """The last ``length`` periods of ``unit`` ending at the current one."""

    unit: PeriodUnit
    length: int

    def __post_init__(self) -> None:
        if self.unit not in GRANULARITY_FOR_UNIT:
            raise ValueError(f"Unknown window unit: {self.unit!r}")
        if self.length < 1:
            raise ValueError(f"Window length must be positive, got {self.length}")

    @property
    def granularity(self) -> Granularity:
        return GRANULARITY_FOR_UNIT[self.unit]


def window_buckets(window: BucketWindow, now: Any) -> list[BucketCount]:
    """Zero-filled buckets for ``window``, oldest first, ending at ``now``."""
    current = period_start(now, window.unit)
    buckets = []
    for offset in range(window.length - 1, -1, -1):
        start = shift_period(current, window.unit, -offset)
        buckets.append(BucketCount(
            bucket=label_for_period(start, window.unit),
            count=0,
            period_start=start,
        ))
    return buckets


def _tally_into(
    buckets: list[BucketCount],
    timestamps: Iterable[Any],
    unit: PeriodUnit,
) -> list[BucketCount]:
    counts: dict[date, int] = {b.period_start: 0 for b in buckets}
    skipped = 0
    for raw in timestamps:
        try:
            start = period_start(raw, unit)
        except InvalidTimestamp:
            skipped += 1
            continue
        # Matched by calendar period, so repeating weekday labels never collide
        if start in counts:
            counts[start] += 1

    if skipped:
        logger.debug("Skipped %d records with invalid timestamps", skipped)

    return [
        BucketCount(bucket=b.bucket, count=counts[b.period_start], period_start=b.period_start)
        for b in buckets
    ]


def count_by_bucket(
    timestamps: Iterable[Any],
    window: BucketWindow,
    now: Any,
) -> list[BucketCount]:
    """Count timestamps per bucket over ``window`` ending at ``now``.

    Output order is chronological (construction order of the window), every
    bucket of the window is present, and the counts sum to the number of
    valid in-window timestamps.
    """
    return _tally_into(window_buckets(window, now), timestamps, window.unit)


def tally_recent_buckets(
    timestamps: Iterable[Any],
    granularity: Granularity = "month-year",
    limit: int = 12,
) -> list[BucketCount]:
    """Tally every valid timestamp and keep the ``limit`` most recent buckets.

    Unlike count_by_bucket there is no pre-built window: only buckets that
    were actually observed appear, and once more than ``limit`` distinct
    buckets exist the oldest are dropped.
    """
    unit = _UNIT_FOR_GRANULARITY.get(granularity)
    if unit is None:
        raise ValueError(f"Unknown granularity: {granularity!r}")

    tally: Counter[date] = Counter()
    for raw in timestamps:
        try:
            tally[period_start(raw, unit)] += 1
        except InvalidTimestamp:
            logger.debug("Skipping record with invalid timestamp %r", raw)

    recent = sorted(tally)[-limit:] if limit > 0 else []
    return [
        BucketCount(bucket=label_for_period(start, unit), count=tally[start], period_start=start)
        for start in recent
    ]


def count_by_year_since(
    timestamps: Iterable[Any],
    since: Any,
    now: Any,
) -> list[BucketCount]:
    """Zero-filled yearly counts from the year of ``since`` to the year of ``now``.

    Returns an empty list when ``since`` is missing, unparseable, or lies in
    a later year than ``now``.
    """
    try:
        first = period_start(since, "year")
    except InvalidTimestamp:
        return []
    last = period_start(now, "year")
    if first > last:
        return []
    window = BucketWindow(unit="year", length=last.year - first.year + 1)
    return count_by_bucket(timestamps, window, now)
