"""Saving workouts and editing saved ones."""

import logging
from datetime import datetime
from pathlib import Path

import aiosqlite

from ..db.engine import get_db_path, transaction
from ..db.repositories import ExerciseRepository, WorkoutRepository
from ..errors import NotFoundError, ValidationError
from ..models.schedule import is_valid_day
from ..models.workout import (
    AddExercise,
    DeleteWorkout,
    EditSets,
    ExerciseInput,
    RemoveExercise,
    SetInput,
    WorkoutEdit,
    WorkoutLog,
)
from .snapshot import SnapshotService

logger = logging.getLogger(__name__)
audit_logger = logging.getLogger("lift_ledger.audit")

# Bounds for reps and weight on edited sets
MAX_EDIT_VALUE = 1000


def completed_sets(sets: list[SetInput]) -> list[SetInput]:
    """Sets that count as performed: at least one rep, non-negative weight."""
    return [s for s in sets if s.reps > 0 and s.weight_kg >= 0]


def _check_bounds(reps: int, weight_kg: float) -> None:
    if not 0 <= reps <= MAX_EDIT_VALUE:
        raise ValidationError(f"reps must be between 0 and {MAX_EDIT_VALUE}")
    if not 0 <= weight_kg <= MAX_EDIT_VALUE:
        raise ValidationError(f"weight_kg must be between 0 and {MAX_EDIT_VALUE}")


class WorkoutService:
    """Creates workout logs and applies edits to them."""

    def __init__(self, db_path: Path | None = None):
        self.db_path = db_path or get_db_path()
        self.exercises = ExerciseRepository(self.db_path)
        self.workouts = WorkoutRepository(self.db_path)
        self.snapshots = SnapshotService(self.db_path)

    async def save_workout(
        self,
        user_id: str,
        day_of_week: int,
        exercises: list[ExerciseInput],
        performed_at: datetime | None = None,
    ) -> int:
        """Record a session and return the new workout log ID.

        Exercises without a completed set are left out, as are exercises that
        no longer exist or are soft-deleted. Kept sets are renumbered from 1.
        """
        if not is_valid_day(day_of_week):
            raise ValidationError("day_of_week must be between 0 and 6")

        performed_at = performed_at or datetime.now()

        async with transaction(self.db_path) as db:
            log_id = await self.workouts.create_log(user_id, performed_at, day_of_week, db=db)

            saved = 0
            for item in exercises:
                sets = completed_sets(item.sets)
                if not sets:
                    continue

                exercise = await self.exercises.get(item.exercise_id, db=db)
                if exercise is None:
                    logger.warning("Exercise %s not found, skipping", item.exercise_id)
                    continue
                if exercise.is_deleted:
                    logger.warning("Exercise %s is deleted, skipping", item.exercise_id)
                    continue

                workout_exercise = await self.snapshots.save_workout_exercise(
                    log_id,
                    exercise,
                    item.order,
                    is_replaced=item.original_exercise_id is not None,
                    original_exercise_id=item.original_exercise_id,
                    db=db,
                )
                for number, s in enumerate(sets, start=1):
                    await self.workouts.add_set(
                        workout_exercise.id, number, s.reps, s.weight_kg, db=db
                    )
                saved += 1

        logger.info(
            "Saved workout %s for user %s (%d exercises)", log_id, user_id, saved
        )
        return log_id

    async def apply_edit(self, user_id: str, edit: WorkoutEdit) -> dict:
        """Apply one edit action to a workout the user owns, atomically."""
        async with transaction(self.db_path) as db:
            log = await self.workouts.get_log(edit.workout_log_id, user_id=user_id, db=db)
            if log is None:
                raise NotFoundError("Workout not found")

            if isinstance(edit, EditSets):
                result = await self._edit_sets(log, edit, db)
            elif isinstance(edit, AddExercise):
                result = await self._add_exercise(log, edit, db)
            elif isinstance(edit, RemoveExercise):
                result = await self._remove_exercise(log, edit, db)
            elif isinstance(edit, DeleteWorkout):
                result = await self._delete_workout(log, db)
            else:
                raise ValidationError("Invalid action")

        audit_logger.info(
            "Audit: user %s performed %s on workout %s",
            user_id,
            edit.action,
            edit.workout_log_id,
        )
        return result

    async def _edit_sets(
        self, log: WorkoutLog, edit: EditSets, db: aiosqlite.Connection
    ) -> dict:
        if not any(we.id == edit.workout_exercise_id for we in log.exercises):
            raise NotFoundError("Workout exercise not found")

        for update in edit.sets:
            _check_bounds(update.reps, update.weight_kg)
            found = await self.workouts.update_set(
                update.id, edit.workout_exercise_id, update.reps, update.weight_kg, db=db
            )
            if not found:
                raise NotFoundError(f"Set {update.id} not found")

        return {"updated_sets": len(edit.sets)}

    async def _add_exercise(
        self, log: WorkoutLog, edit: AddExercise, db: aiosqlite.Connection
    ) -> dict:
        for s in edit.sets:
            _check_bounds(s.reps, s.weight_kg)

        exercise = await self.exercises.get(edit.exercise_id, db=db)
        if exercise is None:
            raise NotFoundError("Exercise not found")
        if exercise.is_deleted:
            raise ValidationError("Cannot add a deleted exercise")

        # Adding an exercise the workout already has replaces its sets
        workout_exercise_id = await self.workouts.find_active_exercise(log.id, exercise.id, db=db)
        if workout_exercise_id is not None:
            await self.workouts.clear_sets(workout_exercise_id, db=db)
        else:
            order = await self.workouts.max_order(log.id, db=db) + 1
            workout_exercise = await self.snapshots.save_workout_exercise(
                log.id, exercise, order, db=db
            )
            workout_exercise_id = workout_exercise.id

        ordered = sorted(edit.sets, key=lambda s: s.set_number)
        for number, s in enumerate(ordered, start=1):
            await self.workouts.add_set(workout_exercise_id, number, s.reps, s.weight_kg, db=db)

        return {"workout_exercise_id": workout_exercise_id, "sets": len(ordered)}

    async def _remove_exercise(
        self, log: WorkoutLog, edit: RemoveExercise, db: aiosqlite.Connection
    ) -> dict:
        if not any(we.id == edit.workout_exercise_id for we in log.exercises):
            raise NotFoundError("Workout exercise not found")

        await self.workouts.delete_workout_exercise(edit.workout_exercise_id, db=db)
        await self.workouts.renumber_exercises(log.id, db=db)
        return {"deleted": True}

    async def _delete_workout(self, log: WorkoutLog, db: aiosqlite.Connection) -> dict:
        await self.workouts.delete_log(log.id, db=db)
        return {"deleted": True}
