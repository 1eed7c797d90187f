"""Calendar bucketing for chart aggregation.

All bucket keys are derived from UTC calendar fields. Labels come from fixed
English tables so they never depend on the process locale; converting to a
display timezone is the view layer's job.
"""

from datetime import date, datetime, timedelta, timezone
from typing import Any, Literal

Granularity = Literal["day-of-week-short", "month-year", "year"]
PeriodUnit = Literal["day", "month", "year"]

GRANULARITY_FOR_UNIT: dict[str, Granularity] = {
    "day": "day-of-week-short",
    "month": "month-year",
    "year": "year",
}

_WEEKDAYS: tuple[str, ...] = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
_MONTHS: tuple[str, ...] = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)


# Nine digits reach back to 1973; shorter digit strings are calendar fragments
_MIN_EPOCH_DIGITS = 9


class InvalidTimestamp(ValueError):
    """A record timestamp could not be parsed into a valid instant."""

    def __init__(self, value: Any, reason: str = "unparseable timestamp") -> None:
        self.value = value
        super().__init__(f"{reason}: {value!r}")


def _as_utc(ts: datetime) -> datetime:
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def _from_epoch(value: Any, raw: Any) -> datetime:
    epoch = float(value)
    # Millisecond epochs (JS Date.getTime()) are far beyond any seconds value we expect
    if abs(epoch) > 1_000_000_000_000:
        epoch /= 1000.0
    try:
        return datetime.fromtimestamp(epoch, tz=timezone.utc)
    except (OverflowError, OSError, ValueError) as exc:
        raise InvalidTimestamp(raw, "epoch out of range") from exc


def parse_timestamp(value: Any) -> datetime:
    """Parse a record timestamp into an aware UTC datetime.

    Accepts datetimes, dates (midnight UTC), ISO 8601 strings with ``Z`` or an
    offset, and epoch seconds or milliseconds. Naive values are taken as UTC.
    Raises InvalidTimestamp for anything else.
    """
    if isinstance(value, datetime):
        return _as_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, bool):
        raise InvalidTimestamp(value)
    if isinstance(value, (int, float)):
        if value != value:  # NaN
            raise InvalidTimestamp(value)
        return _from_epoch(value, value)
    if not isinstance(value, str):
        raise InvalidTimestamp(value)

    raw = value.strip()
    if not raw:
        raise InvalidTimestamp(value, "empty timestamp")

    numeric = raw.replace(".", "", 1)
    if numeric.isdigit():
        # Bare years and compact dates ("2025", "20250101") are not epochs
        if len(raw.partition(".")[0]) < _MIN_EPOCH_DIGITS:
            raise InvalidTimestamp(value, "ambiguous numeric timestamp")
        return _from_epoch(raw, value)

    try:
        parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError as exc:
        raise InvalidTimestamp(value) from exc
    return _as_utc(parsed)


def bucket_key(timestamp: Any, granularity: Granularity) -> str:
    """Return the bucket label for ``timestamp``.

    day-of-week-short -> "Mon", month-year -> "Jan 2025", year -> "2025".
    """
    if granularity not in ("day-of-week-short", "month-year", "year"):
        raise ValueError(f"Unknown granularity: {granularity!r}")
    ts = parse_timestamp(timestamp)
    if granularity == "day-of-week-short":
        return _WEEKDAYS[ts.weekday()]
    if granularity == "month-year":
        return f"{_MONTHS[ts.month - 1]} {ts.year}"
    return f"{ts.year:04d}"


def label_for_period(day: date, unit: PeriodUnit) -> str:
    """Bucket label for a period start date."""
    return bucket_key(day, GRANULARITY_FOR_UNIT[unit])


def period_start(timestamp: Any, unit: PeriodUnit) -> date:
    """First UTC calendar day of the period containing ``timestamp``."""
    d = parse_timestamp(timestamp).date()
    if unit == "day":
        return d
    if unit == "month":
        return d.replace(day=1)
    if unit == "year":
        return d.replace(month=1, day=1)
    raise ValueError(f"Unknown period unit: {unit!r}")


def shift_period(start: date, unit: PeriodUnit, n: int) -> date:
    """Move a period start ``n`` periods forward (negative: backward)."""
    if unit == "day":
        return start + timedelta(days=n)
    if unit == "month":
        months = start.year * 12 + (start.month - 1) + n
        return date(months // 12, months % 12 + 1, 1)
    if unit == "year":
        return date(start.year + n, 1, 1)
    raise ValueError(f"Unknown period unit: {unit!r}")
