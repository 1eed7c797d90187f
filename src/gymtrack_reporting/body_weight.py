"""Body-weight log helpers and the workout overview cards."""

from collections.abc import Sequence

from .models import BodyWeightLogEntry, WorkoutOverview, WorkoutRecord
from .personal_records import calculate_personal_records, top_lift


def weight_series(logs: Sequence[BodyWeightLogEntry]) -> list[BodyWeightLogEntry]:
    """Logs in chronological order (stable for equal dates)."""
    return sorted(logs, key=lambda entry: entry.date)


def latest_body_weight(logs: Sequence[BodyWeightLogEntry]) -> BodyWeightLogEntry | None:
    """Most recent log by date; on equal dates the later entry in input wins."""
    series = weight_series(logs)
    return series[-1] if series else None


def workout_overview(
    workouts: Sequence[WorkoutRecord],
    logs: Sequence[BodyWeightLogEntry],
) -> WorkoutOverview:
    latest = latest_body_weight(logs)
    best = top_lift(calculate_personal_records(workouts))
    return WorkoutOverview(
        total_workouts=len(workouts),
        latest_weight=latest.weight if latest else None,
        top_lift=best.exercise if best else None,
    )
