"""Record and view models for GymTrack reporting.

Input records (check-ins, workouts, body-weight logs, members) are validated
with Pydantic at the data-access boundary. Derived view models are frozen
dataclasses, recomputed on every call and never persisted.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Literal, TypeVar

from pydantic import BaseModel, ValidationError, field_validator, model_validator

from .timebuckets import InvalidTimestamp, parse_timestamp

logger = logging.getLogger(__name__)


def _coerce_timestamp(value: Any) -> datetime:
    try:
        return parse_timestamp(value)
    except InvalidTimestamp as exc:
        # ValueError subclass, so pydantic reports it as a validation error
        raise ValueError(str(exc)) from exc


def _require_identifier(value: Any) -> str:
    if value is None:
        raise ValueError("identifier must not be empty")
    value = str(value).strip()
    if not value:
        raise ValueError("identifier must not be empty")
    return value


# ---------------------------------------------------------------------------
# Input records
# ---------------------------------------------------------------------------


class CheckInRecord(BaseModel):
    """One kiosk check-in. ``check_out_time`` may be projected or absent."""

    member_id: str
    check_in_time: datetime
    check_out_time: datetime | None = None

    @field_validator("member_id", mode="before")
    @classmethod
    def member_id_not_empty(cls, v: Any) -> str:
        return _require_identifier(v)

    @field_validator("check_in_time", mode="before")
    @classmethod
    def parse_check_in(cls, v: Any) -> datetime:
        return _coerce_timestamp(v)

    @field_validator("check_out_time", mode="before")
    @classmethod
    def parse_check_out(cls, v: Any) -> datetime | None:
        if v is None or v == "":
            return None
        return _coerce_timestamp(v)

    @model_validator(mode="after")
    def check_out_after_check_in(self) -> "CheckInRecord":
        if self.check_out_time is not None and self.check_out_time <= self.check_in_time:
            raise ValueError("check_out_time must be after check_in_time")
        return self


class ExerciseEntry(BaseModel):
    """One exercise line of a logged workout (weight in kg)."""

    name: str
    sets: int
    reps: int
    weight: float

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("name must not be empty")
        # Case is significant for grouping, so only surrounding whitespace goes
        return v.strip()

    @field_validator("sets", "reps")
    @classmethod
    def positive_count(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("sets and reps must be positive")
        return v

    @field_validator("weight")
    @classmethod
    def weight_not_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError("weight cannot be negative")
        return v


class WorkoutRecord(BaseModel):
    member_id: str
    date: datetime
    notes: str | None = None
    exercises: list[ExerciseEntry]

    @field_validator("member_id", mode="before")
    @classmethod
    def member_id_not_empty(cls, v: Any) -> str:
        return _require_identifier(v)

    @field_validator("date", mode="before")
    @classmethod
    def parse_date(cls, v: Any) -> datetime:
        return _coerce_timestamp(v)

    @field_validator("exercises")
    @classmethod
    def exercises_not_empty(cls, v: list[ExerciseEntry]) -> list[ExerciseEntry]:
        if not v:
            raise ValueError("at least one exercise is required")
        return v


class BodyWeightLogEntry(BaseModel):
    member_id: str
    date: datetime
    weight: float

    @field_validator("member_id", mode="before")
    @classmethod
    def member_id_not_empty(cls, v: Any) -> str:
        return _require_identifier(v)

    @field_validator("date", mode="before")
    @classmethod
    def parse_date(cls, v: Any) -> datetime:
        return _coerce_timestamp(v)

    @field_validator("weight")
    @classmethod
    def weight_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("weight must be a positive number")
        return v


class MemberRecord(BaseModel):
    """Gym member as stored in the ``members`` table."""

    id: str
    member_id: str
    name: str
    membership_type: str | None = None
    membership_status: Literal["active", "expired"] = "active"
    join_date: datetime | None = None
    expiry_date: datetime | None = None

    @field_validator("id", "member_id", mode="before")
    @classmethod
    def identifier_not_empty(cls, v: Any) -> str:
        return _require_identifier(v)

    @field_validator("join_date", "expiry_date", mode="before")
    @classmethod
    def parse_optional_date(cls, v: Any) -> datetime | None:
        if v is None or v == "":
            return None
        return _coerce_timestamp(v)


RecordT = TypeVar("RecordT", bound=BaseModel)


def parse_records(model: type[RecordT], rows: list[dict[str, Any]]) -> list[RecordT]:
    """Validate raw rows into ``model`` instances.

    Rows that fail validation (bad timestamps, missing identifiers, ...) are
    logged and skipped so one broken row never aborts a report.
    """
    records: list[RecordT] = []
    skipped = 0
    for idx, row in enumerate(rows):
        try:
            records.append(model.model_validate(row))
        except ValidationError as exc:
            skipped += 1
            logger.warning(
                "Skipping invalid %s row %d: %s",
                model.__name__,
                idx,
                exc.errors(include_url=False)[0]["msg"],
            )
    if skipped:
        logger.info("Parsed %d %s rows, skipped %d", len(records), model.__name__, skipped)
    return records


# ---------------------------------------------------------------------------
# Derived view models
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BucketCount:
    """Count of records in one calendar bucket."""

    bucket: str
    count: int
    period_start: date

    def to_dict(self) -> dict[str, Any]:
        return {
            "bucket": self.bucket,
            "count": self.count,
            "period_start": self.period_start.isoformat(),
        }


@dataclass(frozen=True)
class PersonalRecord:
    """Best estimated one-rep max for one exercise name."""

    exercise: str
    date: datetime
    max_weight: float
    estimated_one_rep_max: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "exercise": self.exercise,
            "date": self.date.isoformat(),
            "max_weight": self.max_weight,
            "estimated_one_rep_max": round(self.estimated_one_rep_max, 2),
        }


@dataclass(frozen=True)
class OccupancySnapshot:
    current: int
    capacity: int
    available: int

    def to_dict(self) -> dict[str, Any]:
        return {"current": self.current, "capacity": self.capacity, "available": self.available}


@dataclass(frozen=True)
class AttendanceSummary:
    total_check_ins: int
    last_check_in: datetime | None
    recent_check_ins: tuple[datetime, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_check_ins": self.total_check_ins,
            "last_check_in": self.last_check_in.isoformat() if self.last_check_in else None,
            "recent_check_ins": [ts.isoformat() for ts in self.recent_check_ins],
        }


@dataclass(frozen=True)
class WorkoutOverview:
    total_workouts: int
    latest_weight: float | None
    top_lift: str | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_workouts": self.total_workouts,
            "latest_weight": round(self.latest_weight, 2) if self.latest_weight is not None else None,
            "top_lift": self.top_lift,
        }


@dataclass(frozen=True)
class DistributionSlice:
    label: str
    count: int

    def to_dict(self) -> dict[str, Any]:
        return {"label": self.label, "count": self.count}


@dataclass(frozen=True)
class SessionStatus:
    """A member's current kiosk session, if any."""

    active: bool
    last_check_in: datetime | None
    expected_check_out: datetime | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "active": self.active,
            "last_check_in": self.last_check_in.isoformat() if self.last_check_in else None,
            "expected_check_out": (
                self.expected_check_out.isoformat() if self.expected_check_out else None
            ),
        }
