"""Backfill snapshots onto workout exercises logged before snapshots existed."""

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from ..db.engine import get_db_path, transaction
from ..db.repositories import ExerciseRepository, SnapshotMigrationRepository
from .snapshot import create_snapshot

logger = logging.getLogger(__name__)

BATCH_SIZE = 100


@dataclass
class MigrationResult:
    migrated: int = 0
    skipped: int = 0

    def to_dict(self) -> dict:
        return {"migrated": self.migrated, "skipped": self.skipped}


class SnapshotMigration:
    """Operational tool: backfill, repair, validate, report and roll back."""

    def __init__(self, db_path: Path | None = None, batch_size: int = BATCH_SIZE):
        self.db_path = db_path or get_db_path()
        self.batch_size = batch_size
        self.exercises = ExerciseRepository(self.db_path)
        self.migrations = SnapshotMigrationRepository(self.db_path)

    async def migrate(self) -> MigrationResult:
        """Snapshot the replacement (if replaced) or original exercise of each row.

        Each batch commits on its own. Rows whose exercise no longer exists
        are skipped.
        """
        pending = await self.migrations.list_missing_snapshots()
        result = MigrationResult()
        if not pending:
            logger.info("No migration needed; all workout exercises have snapshots")
            return result

        batches = (len(pending) + self.batch_size - 1) // self.batch_size
        for index in range(batches):
            batch = pending[index * self.batch_size:(index + 1) * self.batch_size]
            async with transaction(self.db_path) as db:
                for row in batch:
                    exercise_id = (
                        row["replacement_exercise_id"]
                        if row["is_replaced"] and row["replacement_exercise_id"]
                        else row["original_exercise_id"]
                    )
                    exercise = (
                        await self.exercises.get(exercise_id, db=db)
                        if exercise_id is not None
                        else None
                    )
                    if exercise is None:
                        logger.warning(
                            "Skipping workout exercise %s: exercise %s not found",
                            row["id"],
                            exercise_id,
                        )
                        result.skipped += 1
                        continue

                    await self.migrations.set_snapshot(row["id"], create_snapshot(exercise), db=db)
                    result.migrated += 1

            logger.info(
                "Batch %d/%d complete: %d migrated, %d skipped",
                index + 1,
                batches,
                result.migrated,
                result.skipped,
            )

        return result

    async def fix_inconsistent(self) -> dict:
        """Point snapshot-only rows back at their exercise when it still exists."""
        rows = await self.migrations.list_unreferenced()
        existing = await self.exercises.get_many([row["snapshot_exercise_id"] for row in rows])

        fixed = 0
        async with transaction(self.db_path) as db:
            for row in rows:
                if row["snapshot_exercise_id"] not in existing:
                    continue
                await self.migrations.set_original(row["id"], row["snapshot_exercise_id"], db=db)
                fixed += 1

        logger.info("Fixed %d of %d inconsistent workout exercises", fixed, len(rows))
        return {"found": len(rows), "fixed": fixed}

    async def validate(self) -> dict:
        """How many workout exercises still lack a snapshot."""
        counts = await self.migrations.counts()
        total = counts["total_workout_exercises"]
        with_snapshots = counts["with_snapshots"]
        return {
            "total": total,
            "with_snapshots": with_snapshots,
            "without_snapshots": total - with_snapshots,
            "is_complete": with_snapshots == total,
        }

    async def report(self) -> dict:
        """Totals describing migration progress."""
        counts = await self.migrations.counts()
        without = counts["total_workout_exercises"] - counts["with_snapshots"]
        return {
            **counts,
            "without_snapshots": without,
            "migration_complete": without == 0,
            "timestamp": datetime.now().isoformat(),
        }

    async def rollback(self) -> int:
        """Clear every snapshot. For testing the backfill only."""
        cleared = await self.migrations.clear_snapshots()
        logger.warning("Rolled back migration: cleared %d snapshots", cleared)
        return cleared
