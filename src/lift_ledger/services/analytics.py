"""Progress, volume, balance, frequency and personal-record analytics.

The ``calculate_*`` functions are pure: they take prepared workouts and never
touch the database. ``AnalyticsService`` fetches a user's logs and runs them
all.
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from pathlib import Path

from ..config import get_settings
from ..db.engine import get_db_path
from ..db.repositories import WorkoutRepository
from ..models.exercises import Exercise
from ..models.schedule import DAY_NAMES
from ..models.workout import ExerciseSet, WorkoutLog
from .snapshot import resolve_exercise

logger = logging.getLogger(__name__)


def js_round(value: float, ndigits: int = 0) -> float:
    """Round half up, the way chart consumers expect (2.5 -> 3, -2.5 -> -2)."""
    factor = 10 ** ndigits
    rounded = math.floor(value * factor + 0.5) / factor
    return int(rounded) if ndigits == 0 else rounded


def brzycki_one_rep_max(weight: float, reps: int) -> float:
    """Estimated 1RM by Brzycki: weight / (1.0278 - 0.0278 * reps).

    The formula breaks down past 36 reps (denominator <= 0); the lifted
    weight is returned there.
    """
    if reps == 1:
        return weight
    denominator = 1.0278 - 0.0278 * reps
    if denominator <= 0:
        return weight
    return weight / denominator


def week_start(day: date) -> date:
    """The Sunday on or before ``day``."""
    return day - timedelta(days=(day.weekday() + 1) % 7)


def day_of_week(day: date) -> int:
    """0 = Sunday .. 6 = Saturday."""
    return (day.weekday() + 1) % 7


@dataclass
class PerformedExercise:
    """One exercise of a workout, resolved through its snapshot."""

    exercise: Exercise
    sets: list[ExerciseSet]


@dataclass
class PerformedWorkout:
    """A workout log reduced to what analytics reads."""

    date: datetime
    exercises: list[PerformedExercise] = field(default_factory=list)


def prepare_logs(
    logs: list[WorkoutLog],
    exercise_id: int | None = None,
    exercise_name: str | None = None,
    muscle_group: str | None = None,
) -> list[PerformedWorkout]:
    """Resolve exercises, drop zero-rep sets and apply filters.

    Exercises that cannot be resolved are skipped. When a filter is given,
    workouts left with no exercises are dropped. Input order is preserved.
    """
    filtering = exercise_id is not None or exercise_name is not None or muscle_group is not None
    prepared = []
    for log in logs:
        workout = PerformedWorkout(date=log.date)
        for we in log.exercises:
            exercise = resolve_exercise(we)
            if exercise is None:
                continue
            if exercise_id is not None and exercise_id not in (
                exercise.id,
                we.original_exercise_id,
                we.replacement_exercise_id,
            ):
                continue
            if exercise_name is not None and exercise.name != exercise_name:
                continue
            if muscle_group is not None and exercise.muscle_group != muscle_group:
                continue
            workout.exercises.append(
                PerformedExercise(exercise=exercise, sets=[s for s in we.sets if s.reps > 0])
            )

        if filtering and not workout.exercises:
            continue
        prepared.append(workout)
    return prepared


def calculate_weight_progress(workouts: list[PerformedWorkout]) -> dict[str, list[dict]]:
    """Per exercise name, the heaviest weight of each session, oldest first."""
    progress: dict[str, list[dict]] = {}
    for workout in sorted(workouts, key=lambda w: w.date):
        session: dict[str, dict] = {}
        for performed in workout.exercises:
            if not performed.sets:
                continue
            max_weight = max(s.weight_kg for s in performed.sets)
            point = session.get(performed.exercise.name)
            if point is None or max_weight > point["weight"]:
                session[performed.exercise.name] = {
                    "date": workout.date.date().isoformat(),
                    "weight": max_weight,
                    "exercise_id": performed.exercise.id,
                }

        for name, point in session.items():
            if point["weight"] > 0:
                progress.setdefault(name, []).append(point)
    return progress


def calculate_volume_trends(workouts: list[PerformedWorkout]) -> list[dict]:
    """Total reps x weight per week (weeks start Sunday); empty weeks omitted."""
    weekly: dict[date, float] = {}
    for workout in workouts:
        week = week_start(workout.date.date())
        for performed in workout.exercises:
            for s in performed.sets:
                weekly[week] = weekly.get(week, 0) + s.reps * s.weight_kg

    return [
        {"week": week.isoformat(), "volume": js_round(volume)}
        for week, volume in sorted(weekly.items())
        if volume > 0
    ]


def calculate_muscle_group_distribution(workouts: list[PerformedWorkout]) -> list[dict]:
    """Set counts per muscle group with rounded percentages of all sets."""
    counts: dict[str, int] = {}
    for workout in workouts:
        for performed in workout.exercises:
            if performed.sets:
                group = performed.exercise.muscle_group
                counts[group] = counts.get(group, 0) + len(performed.sets)

    total = sum(counts.values())
    distribution = [
        {"name": name, "value": value, "percentage": js_round(value / total * 100)}
        for name, value in counts.items()
    ]
    distribution.sort(key=lambda entry: entry["value"], reverse=True)
    return distribution


def calculate_frequency_trends(workouts: list[PerformedWorkout]) -> list[dict]:
    """Distinct workout days per weekday, Sunday through Saturday."""
    days = {workout.date.date() for workout in workouts}
    counts = [0] * 7
    for day in days:
        counts[day_of_week(day)] += 1
    return [{"day": name, "count": counts[index]} for index, name in enumerate(DAY_NAMES)]


def calculate_personal_records(workouts: list[PerformedWorkout]) -> list[dict]:
    """Best Brzycki 1RM set per exercise name, highest first.

    Ties keep the first set seen, so pass workouts newest first. Weightless
    sets are not records.
    """
    best: dict[str, tuple[float, dict]] = {}
    for workout in workouts:
        for performed in workout.exercises:
            name = performed.exercise.name
            for s in performed.sets:
                if s.weight_kg <= 0:
                    continue
                one_rep_max = brzycki_one_rep_max(s.weight_kg, s.reps)
                if name not in best or one_rep_max > best[name][0]:
                    best[name] = (
                        one_rep_max,
                        {
                            "exercise_name": name,
                            "weight": s.weight_kg,
                            "reps": s.reps,
                            "one_rep_max": js_round(one_rep_max),
                            "date": workout.date.date().isoformat(),
                            "exercise_id": performed.exercise.id,
                        },
                    )

    ranked = sorted(best.values(), key=lambda item: item[0], reverse=True)
    return [record for _, record in ranked]


def calculate_summary(workouts: list[PerformedWorkout]) -> dict:
    """Totals plus average workouts per week across the covered span."""
    total_workouts = len(workouts)
    total_sets = 0
    total_volume = 0.0
    names = set()
    for workout in workouts:
        for performed in workout.exercises:
            names.add(performed.exercise.name)
            total_sets += len(performed.sets)
            total_volume += sum(s.reps * s.weight_kg for s in performed.sets)

    average = 0
    if total_workouts >= 2:
        dates = [workout.date for workout in workouts]
        span_days = (max(dates) - min(dates)).total_seconds() / 86400
        if span_days > 0:
            average = js_round(total_workouts / math.ceil(span_days / 7), 1)

    return {
        "total_workouts": total_workouts,
        "total_sets": total_sets,
        "total_volume": js_round(total_volume),
        "unique_exercises": len(names),
        "average_workouts_per_week": average,
    }


def calculate_analytics(workouts: list[PerformedWorkout]) -> dict:
    """Every analytics view over the same prepared workouts."""
    return {
        "weight_progress": calculate_weight_progress(workouts),
        "volume_trends": calculate_volume_trends(workouts),
        "muscle_group_distribution": calculate_muscle_group_distribution(workouts),
        "frequency_trends": calculate_frequency_trends(workouts),
        "personal_records": calculate_personal_records(workouts),
        "summary": calculate_summary(workouts),
    }


class AnalyticsService:
    """Loads a user's workouts for a window and aggregates them."""

    def __init__(self, db_path: Path | None = None):
        self.db_path = db_path or get_db_path()
        self.workouts = WorkoutRepository(self.db_path)

    async def get_analytics(
        self,
        user_id: str,
        start_date: date | None = None,
        end_date: date | None = None,
        exercise_id: int | None = None,
        exercise_name: str | None = None,
        muscle_group: str | None = None,
    ) -> dict:
        """Analytics for a date range, by default the configured trailing window."""
        end = datetime.combine(end_date, time.max) if end_date else datetime.now()
        if start_date:
            start = datetime.combine(start_date, time.min)
        else:
            start = end - timedelta(days=get_settings().analytics_days)

        logs = await self.workouts.list_logs(user_id=user_id, start=start, end=end)
        workouts = prepare_logs(
            logs,
            exercise_id=exercise_id,
            exercise_name=exercise_name,
            muscle_group=muscle_group,
        )
        logger.debug("Aggregating %d workouts for user %s", len(workouts), user_id)
        return calculate_analytics(workouts)
