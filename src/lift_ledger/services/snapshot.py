"""Exercise snapshots: frozen copies of catalog entries inside workout history.

History, analytics and leaderboards read the snapshot stored on each workout
exercise, so editing or deleting a catalog exercise never changes what a past
workout says was performed. Today's schedule is the one view that reads the
live catalog.
"""

import logging
from datetime import datetime
from pathlib import Path

import aiosqlite

from ..db.engine import get_db_path
from ..db.repositories import ExerciseRepository, ScheduleRepository, WorkoutRepository
from ..models.exercises import Exercise, ExerciseSnapshot, SNAPSHOT_VERSION, UsageStats
from ..models.schedule import WeeklySchedule
from ..models.workout import WorkoutExercise, WorkoutLog

logger = logging.getLogger(__name__)


def create_snapshot(exercise: Exercise, captured_at: datetime | None = None) -> ExerciseSnapshot:
    """Capture the exercise's current fields."""
    if exercise.id is None:
        raise ValueError("Cannot snapshot an exercise without an ID")

    return ExerciseSnapshot(
        id=exercise.id,
        name=exercise.name,
        description=exercise.description,
        muscle_group=exercise.muscle_group,
        equipment=exercise.equipment,
        video_url=exercise.video_url,
        user_id=exercise.user_id,
        captured_at=captured_at or datetime.now(),
        version=SNAPSHOT_VERSION,
    )


def get_exercise_from_snapshot(workout_exercise: WorkoutExercise) -> Exercise | None:
    """Rebuild the exercise as it was when logged, from the snapshot alone."""
    snapshot = workout_exercise.snapshot
    if snapshot is None:
        return None

    return Exercise(
        id=snapshot.id,
        name=snapshot.name,
        description=snapshot.description,
        muscle_group=snapshot.muscle_group,
        equipment=snapshot.equipment,
        video_url=snapshot.video_url,
        user_id=snapshot.user_id,
    )


def resolve_exercise(workout_exercise: WorkoutExercise) -> Exercise | None:
    """The exercise to show for a workout exercise.

    Prefers the snapshot. Rows logged before snapshots existed fall back to
    the live replacement or original exercise; when neither survives, the
    row is unresolvable and None is returned.
    """
    exercise = get_exercise_from_snapshot(workout_exercise)
    if exercise is not None:
        return exercise

    exercise = workout_exercise.replacement_exercise or workout_exercise.original_exercise
    if exercise is None:
        logger.warning(
            "Workout exercise %s has no snapshot and no live exercise; skipping",
            workout_exercise.id,
        )
    return exercise


def workout_log_to_dict(log: WorkoutLog) -> dict:
    """Serialize a log for history views, exercises resolved through snapshots."""
    exercises = []
    for we in log.exercises:
        exercise = resolve_exercise(we)
        if exercise is None:
            continue
        exercises.append(we.to_dict(exercise=exercise))

    return {
        "id": log.id,
        "user_id": log.user_id,
        "date": log.date.isoformat(),
        "day_of_week": log.day_of_week,
        "exercises": exercises,
    }


class SnapshotService:
    """Reads and writes workout exercises through the snapshot pattern."""

    def __init__(self, db_path: Path | None = None):
        self.db_path = db_path or get_db_path()
        self.exercises = ExerciseRepository(self.db_path)
        self.schedules = ScheduleRepository(self.db_path)
        self.workouts = WorkoutRepository(self.db_path)

    async def save_workout_exercise(
        self,
        workout_log_id: int,
        exercise: Exercise,
        order: int,
        is_replaced: bool = False,
        original_exercise_id: int | None = None,
        db: aiosqlite.Connection | None = None,
    ) -> WorkoutExercise:
        """Persist a workout exercise carrying a snapshot of ``exercise``.

        When replaced, ``exercise`` is the substitute: it becomes the
        replacement and the scheduled exercise stays the original.
        """
        now = datetime.now()
        workout_exercise = WorkoutExercise(
            workout_log_id=workout_log_id,
            order=order,
            snapshot=create_snapshot(exercise, captured_at=now),
            original_exercise_id=(
                original_exercise_id if is_replaced and original_exercise_id else exercise.id
            ),
            replacement_exercise_id=exercise.id if is_replaced else None,
            is_custom=exercise.user_id is not None,
            is_replaced=is_replaced,
            replaced_at=now if is_replaced else None,
        )
        workout_exercise.id = await self.workouts.add_workout_exercise(workout_exercise, db=db)
        return workout_exercise

    async def get_workout_history(self, user_id: str) -> list[dict]:
        """All of a user's workouts, newest first, as recorded at the time."""
        logs = await self.workouts.list_logs(user_id=user_id)
        return [workout_log_to_dict(log) for log in logs]

    async def get_todays_schedule(self, day_of_week: int) -> WeeklySchedule | None:
        """The live plan for a day, without soft-deleted exercises."""
        schedule = await self.schedules.get_by_day(day_of_week)
        if schedule is None:
            return None
        return schedule.without_deleted()

    async def get_exercise_usage_stats(
        self, exercise_id: int, db: aiosqlite.Connection | None = None
    ) -> UsageStats:
        """Workout references to an exercise, as original and as replacement."""
        return await self.exercises.usage_stats(exercise_id, db=db)

    async def is_exercise_used_in_workouts(
        self, exercise_id: int, db: aiosqlite.Connection | None = None
    ) -> bool:
        """Whether any workout exercise references this exercise."""
        stats = await self.get_exercise_usage_stats(exercise_id, db=db)
        return stats.is_used
