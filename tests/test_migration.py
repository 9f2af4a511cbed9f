"""Tests for the snapshot backfill tool."""

from datetime import datetime

import aiosqlite

from lift_ledger.db import WorkoutRepository
from lift_ledger.models.workout import WorkoutExercise
from lift_ledger.services.migration import SnapshotMigration
from lift_ledger.services.snapshot import SnapshotService


async def _legacy_row(db_path, original_id, replacement_id=None) -> int:
    """Insert a workout exercise the way it was stored before snapshots."""
    workouts = WorkoutRepository(db_path)
    log_id = await workouts.create_log("user-1", datetime(2023, 6, 1), 4)
    return await workouts.add_workout_exercise(
        WorkoutExercise(
            workout_log_id=log_id,
            order=1,
            original_exercise_id=original_id,
            replacement_exercise_id=replacement_id,
            is_replaced=replacement_id is not None,
        )
    )


class TestMigrate:
    """Tests for backfilling snapshots."""

    async def test_backfills_active_exercise(self, db_path, make_exercise):
        """Test the replacement is snapshotted when present, else the original."""
        bench = await make_exercise("Bench Press")
        press = await make_exercise("Dumbbell Press", equipment="Dumbbells")
        await _legacy_row(db_path, bench.id)
        await _legacy_row(db_path, bench.id, replacement_id=press.id)

        result = await SnapshotMigration(db_path, batch_size=1).migrate()

        assert result.to_dict() == {"migrated": 2, "skipped": 0}
        logs = await WorkoutRepository(db_path).list_logs(user_id="user-1")
        names = sorted(log.exercises[0].snapshot.name for log in logs)
        assert names == ["Bench Press", "Dumbbell Press"]

    async def test_skips_missing_exercise(self, db_path):
        await _legacy_row(db_path, None)
        result = await SnapshotMigration(db_path).migrate()
        assert result.to_dict() == {"migrated": 0, "skipped": 1}

    async def test_nothing_to_do(self, db_path):
        result = await SnapshotMigration(db_path).migrate()
        assert result.migrated == 0


class TestValidateAndReport:
    """Tests for completeness checks, repair and rollback."""

    async def test_validate(self, db_path, make_exercise):
        bench = await make_exercise("Bench Press")
        await _legacy_row(db_path, bench.id)
        migration = SnapshotMigration(db_path)

        status = await migration.validate()
        assert status == {"total": 1, "with_snapshots": 0, "without_snapshots": 1, "is_complete": False}

        await migration.migrate()
        assert (await migration.validate())["is_complete"] is True

    async def test_report(self, db_path, make_exercise):
        bench = await make_exercise("Bench Press")
        press = await make_exercise("Dumbbell Press", equipment="Dumbbells")
        await _legacy_row(db_path, bench.id)
        await _legacy_row(db_path, bench.id, replacement_id=press.id)

        report = await SnapshotMigration(db_path).report()

        assert report["total_workouts"] == 2
        assert report["total_workout_exercises"] == 2
        assert report["replaced_exercises"] == 1
        assert report["unique_exercises"] == 1
        assert report["migration_complete"] is False

    async def test_fix_inconsistent(self, db_path, make_exercise):
        """Test snapshot-only rows regain their exercise reference."""
        bench = await make_exercise("Bench Press")
        log_id = await WorkoutRepository(db_path).create_log("user-1", datetime.now(), 1)
        we = await SnapshotService(db_path).save_workout_exercise(log_id, bench, 1)
        async with aiosqlite.connect(db_path) as db:
            await db.execute(
                "UPDATE workout_exercises SET original_exercise_id = NULL WHERE id = ?", (we.id,)
            )
            await db.commit()

        result = await SnapshotMigration(db_path).fix_inconsistent()

        assert result == {"found": 1, "fixed": 1}
        log = await WorkoutRepository(db_path).get_log(log_id)
        assert log.exercises[0].original_exercise_id == bench.id

    async def test_rollback(self, db_path, make_exercise):
        bench = await make_exercise("Bench Press")
        log_id = await WorkoutRepository(db_path).create_log("user-1", datetime.now(), 1)
        await SnapshotService(db_path).save_workout_exercise(log_id, bench, 1)

        assert await SnapshotMigration(db_path).rollback() == 1
        async with aiosqlite.connect(db_path) as db:
            cursor = await db.execute("SELECT exercise_snapshot FROM workout_exercises")
            row = await cursor.fetchone()
        assert row[0] is None

    async def test_malformed_snapshot_counts_as_missing(self, db_path, make_exercise):
        """Test a snapshot without its required fields is re-captured."""
        bench = await make_exercise("Bench Press")
        row_id = await _legacy_row(db_path, bench.id)
        async with aiosqlite.connect(db_path) as db:
            await db.execute(
                "UPDATE workout_exercises SET exercise_snapshot = ? WHERE id = ?",
                ('{"name": "Bench Press"}', row_id),
            )
            await db.commit()
        migration = SnapshotMigration(db_path)

        assert (await migration.validate())["is_complete"] is False
        assert (await migration.migrate()).migrated == 1
        assert (await migration.validate())["is_complete"] is True
