"""Tests for saving and editing workouts."""

import logging
from datetime import datetime

import pytest

from lift_ledger.db import ExerciseRepository, WorkoutRepository
from lift_ledger.errors import NotFoundError, ValidationError
from lift_ledger.models.workout import (
    AddExercise,
    DeleteWorkout,
    EditSets,
    ExerciseInput,
    RemoveExercise,
    SetInput,
    SetUpdate,
)
from lift_ledger.services.workout_logging import WorkoutService, completed_sets


class TestCompletedSets:
    """Tests for the completed-set filter."""

    def test_filters_zero_reps(self):
        """Test zero-rep sets are dropped and bodyweight sets kept."""
        sets = [
            SetInput(1, 0, 100),
            SetInput(2, 8, 0),
            SetInput(3, 5, 100),
        ]
        assert [s.set_number for s in completed_sets(sets)] == [2, 3]


class TestSaveWorkout:
    """Tests for WorkoutService.save_workout."""

    async def test_saves_completed_sets_only(self, db_path, make_exercise):
        """Test incomplete sets are dropped and the rest renumbered."""
        bench = await make_exercise("Bench Press")
        curl = await make_exercise("Curl", muscle_group="Biceps", equipment="Dumbbells")
        service = WorkoutService(db_path)

        log_id = await service.save_workout(
            "user-1",
            1,
            [
                ExerciseInput(
                    exercise_id=bench.id,
                    order=1,
                    sets=[SetInput(1, 0, 100), SetInput(2, 5, 100), SetInput(3, 3, 105)],
                ),
                ExerciseInput(exercise_id=curl.id, order=2, sets=[SetInput(1, 0, 12)]),
            ],
        )

        log = await WorkoutRepository(db_path).get_log(log_id)
        assert len(log.exercises) == 1
        assert log.exercises[0].snapshot.name == "Bench Press"
        assert [(s.set_number, s.reps) for s in log.exercises[0].sets] == [(1, 5), (2, 3)]

    async def test_skips_deleted_and_missing(self, db_path, make_exercise, caplog):
        """Test deleted or unknown exercises are skipped with a warning."""
        gone = await make_exercise("Old Press")
        await ExerciseRepository(db_path).soft_delete(gone.id, "admin-1")

        with caplog.at_level(logging.WARNING):
            log_id = await WorkoutService(db_path).save_workout(
                "user-1",
                2,
                [
                    ExerciseInput(exercise_id=gone.id, order=1, sets=[SetInput(1, 5, 50)]),
                    ExerciseInput(exercise_id=9999, order=2, sets=[SetInput(1, 5, 50)]),
                ],
            )

        log = await WorkoutRepository(db_path).get_log(log_id)
        assert log.exercises == []
        assert "not found" in caplog.text
        assert "deleted" in caplog.text

    async def test_replacement(self, db_path, make_exercise):
        """Test a substitute records the scheduled exercise as original."""
        scheduled = await make_exercise("Bench Press")
        substitute = await make_exercise("Push-ups", equipment="Bodyweight")

        log_id = await WorkoutService(db_path).save_workout(
            "user-1",
            1,
            [
                ExerciseInput(
                    exercise_id=substitute.id,
                    order=1,
                    sets=[SetInput(1, 20, 0)],
                    original_exercise_id=scheduled.id,
                    original_exercise_name="Bench Press",
                ),
            ],
        )

        we = (await WorkoutRepository(db_path).get_log(log_id)).exercises[0]
        assert we.is_replaced
        assert we.original_exercise_id == scheduled.id
        assert we.replacement_exercise_id == substitute.id
        assert we.snapshot.id == substitute.id

    async def test_invalid_day(self, db_path):
        with pytest.raises(ValidationError):
            await WorkoutService(db_path).save_workout("user-1", 7, [])

    async def test_custom_flag(self, db_path, make_exercise):
        """Test custom exercises are flagged as such."""
        mine = await make_exercise("My Press", user_id="user-1")
        log_id = await WorkoutService(db_path).save_workout(
            "user-1",
            0,
            [ExerciseInput(exercise_id=mine.id, order=1, sets=[SetInput(1, 5, 40)])],
        )
        we = (await WorkoutRepository(db_path).get_log(log_id)).exercises[0]
        assert we.is_custom


@pytest.fixture
async def saved_workout(db_path, make_exercise):
    """A saved workout for user-1 with two exercises."""
    bench = await make_exercise("Bench Press")
    row = await make_exercise("Barbell Row", muscle_group="Back")
    log_id = await WorkoutService(db_path).save_workout(
        "user-1",
        1,
        [
            ExerciseInput(exercise_id=bench.id, order=1, sets=[SetInput(1, 5, 100), SetInput(2, 5, 100)]),
            ExerciseInput(exercise_id=row.id, order=2, sets=[SetInput(1, 8, 60)]),
        ],
        performed_at=datetime(2024, 3, 4, 18, 0),
    )
    log = await WorkoutRepository(db_path).get_log(log_id)
    return log, bench, row


class TestApplyEdit:
    """Tests for WorkoutService.apply_edit."""

    async def test_edit_sets(self, db_path, saved_workout):
        log, _, _ = saved_workout
        we = log.exercises[0]
        result = await WorkoutService(db_path).apply_edit(
            "user-1",
            EditSets(log.id, we.id, [SetUpdate(id=we.sets[0].id, reps=6, weight_kg=102.5)]),
        )

        assert result == {"updated_sets": 1}
        updated = await WorkoutRepository(db_path).get_log(log.id)
        assert (updated.exercises[0].sets[0].reps, updated.exercises[0].sets[0].weight_kg) == (6, 102.5)

    async def test_edit_bounds(self, db_path, saved_workout):
        """Test values above the limit are rejected."""
        log, _, _ = saved_workout
        we = log.exercises[0]
        with pytest.raises(ValidationError):
            await WorkoutService(db_path).apply_edit(
                "user-1",
                EditSets(log.id, we.id, [SetUpdate(id=we.sets[0].id, reps=5, weight_kg=1001)]),
            )

    async def test_edit_foreign_set(self, db_path, saved_workout):
        """Test a set from another exercise cannot be edited."""
        log, _, _ = saved_workout
        first, second = log.exercises
        with pytest.raises(NotFoundError):
            await WorkoutService(db_path).apply_edit(
                "user-1",
                EditSets(log.id, first.id, [SetUpdate(id=second.sets[0].id, reps=1, weight_kg=1)]),
            )

    async def test_other_users_workout(self, db_path, saved_workout):
        """Test edits to someone else's workout read as not found."""
        log, _, _ = saved_workout
        with pytest.raises(NotFoundError):
            await WorkoutService(db_path).apply_edit("user-2", DeleteWorkout(log.id))

    async def test_add_new_exercise(self, db_path, saved_workout, make_exercise):
        """Test a new exercise is appended after the last one."""
        log, _, _ = saved_workout
        curl = await make_exercise("Curl", muscle_group="Biceps", equipment="Dumbbells")

        result = await WorkoutService(db_path).apply_edit(
            "user-1",
            AddExercise(log.id, curl.id, [SetInput(2, 10, 15), SetInput(1, 12, 12)]),
        )

        assert result["sets"] == 2
        updated = await WorkoutRepository(db_path).get_log(log.id)
        added = updated.exercises[-1]
        assert added.order == 3
        assert added.snapshot.name == "Curl"
        assert [(s.set_number, s.reps) for s in added.sets] == [(1, 12), (2, 10)]

    async def test_add_existing_replaces_sets(self, db_path, saved_workout):
        """Test re-adding an exercise replaces its sets in place."""
        log, bench, _ = saved_workout
        result = await WorkoutService(db_path).apply_edit(
            "user-1", AddExercise(log.id, bench.id, [SetInput(1, 3, 110)])
        )

        updated = await WorkoutRepository(db_path).get_log(log.id)
        assert result["workout_exercise_id"] == log.exercises[0].id
        assert len(updated.exercises) == 2
        assert [(s.reps, s.weight_kg) for s in updated.exercises[0].sets] == [(3, 110)]

    async def test_add_deleted_exercise(self, db_path, saved_workout, make_exercise):
        log, _, _ = saved_workout
        gone = await make_exercise("Old Press")
        await ExerciseRepository(db_path).soft_delete(gone.id, "admin-1")
        with pytest.raises(ValidationError):
            await WorkoutService(db_path).apply_edit(
                "user-1", AddExercise(log.id, gone.id, [SetInput(1, 5, 50)])
            )

    async def test_remove_exercise_renumbers(self, db_path, saved_workout):
        """Test removal closes the gap in exercise order."""
        log, _, _ = saved_workout
        result = await WorkoutService(db_path).apply_edit(
            "user-1", RemoveExercise(log.id, log.exercises[0].id)
        )

        assert result == {"deleted": True}
        updated = await WorkoutRepository(db_path).get_log(log.id)
        assert [(we.snapshot.name, we.order) for we in updated.exercises] == [("Barbell Row", 1)]

    async def test_delete_workout(self, db_path, saved_workout, caplog):
        """Test the whole log goes and the edit is audited."""
        log, _, _ = saved_workout
        with caplog.at_level(logging.INFO, logger="lift_ledger.audit"):
            await WorkoutService(db_path).apply_edit("user-1", DeleteWorkout(log.id))

        assert await WorkoutRepository(db_path).get_log(log.id) is None
        assert f"performed delete_workout on workout {log.id}" in caplog.text
