"""Personal records per exercise, ranked by estimated one-rep max (Epley)."""

from collections.abc import Iterable
from datetime import datetime

from .models import PersonalRecord, WorkoutRecord


def epley_1rm(weight_kg: float, reps: int) -> float:
    """Estimate 1RM using the Epley formula. Returns 0 for invalid inputs."""
    if reps <= 0 or weight_kg <= 0:
        return 0.0
    if reps == 1:
        return weight_kg
    return weight_kg * (1 + reps / 30)


def _beats(candidate: tuple[float, datetime], best: tuple[float, datetime]) -> bool:
    """Higher 1RM wins; on equal 1RM the later workout date wins."""
    return candidate[0] > best[0] or (candidate[0] == best[0] and candidate[1] > best[1])


def calculate_personal_records(workouts: Iterable[WorkoutRecord]) -> list[PersonalRecord]:
    """Best entry per exercise name across all workouts.

    Exercise names group case-sensitively. ``max_weight`` is the weight of the
    winning entry, which is not necessarily the heaviest raw weight when a
    lighter, higher-rep set estimates a bigger max. Ordered by exercise name.
    """
    best: dict[str, PersonalRecord] = {}
    for workout in workouts:
        for entry in workout.exercises:
            one_rm = epley_1rm(entry.weight, entry.reps)
            current = best.get(entry.name)
            if current is not None and not _beats(
                (one_rm, workout.date),
                (current.estimated_one_rep_max, current.date),
            ):
                continue
            best[entry.name] = PersonalRecord(
                exercise=entry.name,
                date=workout.date,
                max_weight=entry.weight,
                estimated_one_rep_max=one_rm,
            )
    return [best[name] for name in sorted(best)]


def top_lift(records: Iterable[PersonalRecord]) -> PersonalRecord | None:
    """Record with the highest estimated 1RM (first one wins ties)."""
    top: PersonalRecord | None = None
    for record in records:
        if top is None or record.estimated_one_rep_max > top.estimated_one_rep_max:
            top = record
    return top
