"""Catalog mutations, each paired with one change-log row in the same transaction."""

import logging
from dataclasses import replace
from datetime import datetime
from pathlib import Path

import aiosqlite

from ..db.engine import get_db_path, transaction
from ..db.repositories import ChangeLogRepository, ExerciseRepository, ScheduleRepository
from ..errors import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from ..models.exercises import (
    ChangeType,
    DeleteOutcome,
    Exercise,
    ExerciseChangeLog,
    HardDeleted,
    SoftDeleted,
)
from ..models.schedule import DAY_NAMES, is_valid_day
from ..models.user import User
from .search import SearchCache
from .snapshot import SnapshotService

logger = logging.getLogger(__name__)

# Fields an update may change
UPDATABLE_FIELDS = ("name", "description", "muscle_group", "equipment", "video_url", "reference_links")

RECENT_CHANGES_LIMIT = 10


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


class ExerciseAdminService:
    """Create, update, delete and restore catalog exercises with an audit trail.

    Admins may mutate any exercise; other users only their own custom ones.
    Every mutation clears the search cache.
    """

    def __init__(self, db_path: Path | None = None, cache: SearchCache | None = None):
        self.db_path = db_path or get_db_path()
        self.exercises = ExerciseRepository(self.db_path)
        self.change_logs = ChangeLogRepository(self.db_path)
        self.schedules = ScheduleRepository(self.db_path)
        self.snapshots = SnapshotService(self.db_path)
        self.cache = cache

    def _check_can_mutate(self, actor: User, exercise: Exercise) -> None:
        if actor.is_admin:
            return
        if exercise.is_global:
            raise PermissionDeniedError("Admin privileges required")
        if exercise.user_id != actor.id:
            raise PermissionDeniedError("You can only modify your own exercises")

    async def _get_for_mutation(
        self, actor: User, exercise_id: int, db: aiosqlite.Connection
    ) -> Exercise:
        exercise = await self.exercises.get(exercise_id, db=db)
        if exercise is None:
            raise NotFoundError("Exercise not found")
        self._check_can_mutate(actor, exercise)
        return exercise

    async def _log_change(
        self,
        db: aiosqlite.Connection,
        exercise_id: int,
        actor: User,
        change_type: ChangeType,
        old_data: dict | None,
        new_data: dict | None,
    ) -> None:
        await self.change_logs.append(
            ExerciseChangeLog(
                exercise_id=exercise_id,
                changed_by=actor.id,
                change_type=change_type,
                old_data=old_data,
                new_data=new_data,
                changed_at=datetime.now(),
            ),
            db=db,
        )

    def _invalidate_search(self) -> None:
        if self.cache is not None:
            self.cache.clear()

    async def create_exercise(
        self,
        actor: User,
        exercise: Exercise,
        assign_to_days: list[int] | None = None,
    ) -> tuple[Exercise, list[int]]:
        """Create an exercise; global ones may be appended to schedule days.

        ``exercise.user_id`` decides the scope. Returns the stored exercise
        and the days it was newly assigned to.
        """
        if exercise.is_global and not actor.is_admin:
            raise PermissionDeniedError("Admin privileges required")
        if exercise.user_id is not None and exercise.user_id != actor.id and not actor.is_admin:
            raise PermissionDeniedError("You can only create exercises for yourself")

        days = list(dict.fromkeys(assign_to_days or []))
        for day in days:
            if not is_valid_day(day):
                raise ValidationError(f"Invalid day of week: {day}")
        if days and not exercise.is_global:
            raise ValidationError("Only global exercises can be assigned to schedule days")

        assigned: list[int] = []
        async with transaction(self.db_path) as db:
            conflict = await self.exercises.find_name_conflict(exercise.name, exercise.user_id, db=db)
            if conflict is not None:
                raise ConflictError("An exercise with this name already exists")

            exercise_id = await self.exercises.create(exercise, db=db)
            created = await self.exercises.get(exercise_id, db=db)
            await self._log_change(
                db,
                exercise_id,
                actor,
                ChangeType.CREATE,
                None,
                {**created.audit_data(), "created_at": _iso(created.created_at)},
            )

            for day in days:
                schedule = await self.schedules.get_by_day(day, db=db)
                if schedule is None:
                    schedule_id = await self.schedules.create_day(day, DAY_NAMES[day], db=db)
                else:
                    schedule_id = schedule.id
                if await self.schedules.find_assignment(schedule_id, exercise_id, db=db):
                    continue
                order = await self.schedules.max_order(schedule_id, db=db) + 1
                await self.schedules.add_assignment(schedule_id, exercise_id, order, db=db)
                assigned.append(day)

        self._invalidate_search()
        logger.info(
            "User %s created %s exercise %s (%s)",
            actor.id,
            "global" if created.is_global else "custom",
            exercise_id,
            created.name,
        )
        return created, assigned

    async def update_exercise(self, actor: User, exercise_id: int, updates: dict) -> Exercise:
        """Apply field updates; empty strings and None are ignored."""
        changes = {
            key: value
            for key, value in updates.items()
            if key in UPDATABLE_FIELDS and value is not None and value != ""
        }
        if not changes:
            raise ValidationError("No valid updates provided")

        async with transaction(self.db_path) as db:
            current = await self._get_for_mutation(actor, exercise_id, db)
            if current.is_deleted:
                raise ConflictError("Cannot update deleted exercise")

            if "name" in changes and changes["name"].lower() != current.name.lower():
                conflict = await self.exercises.find_name_conflict(
                    changes["name"], current.user_id, exclude_id=exercise_id, db=db
                )
                if conflict is not None:
                    raise ConflictError("An exercise with this name already exists")

            await self.exercises.update(replace(current, **changes), db=db)
            updated = await self.exercises.get(exercise_id, db=db)
            await self._log_change(
                db,
                exercise_id,
                actor,
                ChangeType.UPDATE,
                {**current.audit_data(), "updated_at": _iso(current.updated_at)},
                {**updated.audit_data(), "updated_at": _iso(updated.updated_at)},
            )

        self._invalidate_search()
        logger.info("User %s updated exercise %s: %s", actor.id, exercise_id, sorted(changes))
        return updated

    async def delete_exercise(self, actor: User, exercise_id: int) -> DeleteOutcome:
        """Soft-delete when any workout references the exercise, else hard-delete."""
        async with transaction(self.db_path) as db:
            current = await self._get_for_mutation(actor, exercise_id, db)
            if current.is_deleted:
                raise ConflictError("Exercise is already deleted")

            usage = await self.snapshots.get_exercise_usage_stats(exercise_id, db=db)
            old_data = {**current.audit_data(), "is_deleted": False}

            if usage.is_used:
                await self.exercises.soft_delete(exercise_id, actor.id, db=db)
                deleted = await self.exercises.get(exercise_id, db=db)
                await self._log_change(
                    db,
                    exercise_id,
                    actor,
                    ChangeType.DELETE,
                    old_data,
                    {
                        **deleted.audit_data(),
                        "is_deleted": True,
                        "deleted_at": _iso(deleted.deleted_at),
                    },
                )
                outcome: DeleteOutcome = SoftDeleted(
                    exercise=deleted,
                    reason=(
                        f"Exercise is used in {usage.total_usage} workout(s). "
                        "Soft deleted to preserve data integrity."
                    ),
                )
            else:
                affected_days = await self.schedules.schedule_ids_for_exercise(exercise_id, db=db)
                # Assignments cascade with the row; close the gaps they leave
                await self.exercises.delete(exercise_id, db=db)
                for schedule_id in affected_days:
                    await self.schedules.renumber(schedule_id, db=db)
                await self._log_change(db, exercise_id, actor, ChangeType.DELETE, old_data, None)
                outcome = HardDeleted(exercise_id=exercise_id)

        self._invalidate_search()
        logger.info(
            "User %s deleted exercise %s (%s)",
            actor.id,
            exercise_id,
            "soft" if isinstance(outcome, SoftDeleted) else "hard",
        )
        return outcome

    async def restore_exercise(self, actor: User, exercise_id: int) -> Exercise:
        """Undo a soft delete."""
        async with transaction(self.db_path) as db:
            current = await self._get_for_mutation(actor, exercise_id, db)
            if not current.is_deleted:
                raise ConflictError("Exercise is not deleted")

            conflict = await self.exercises.find_name_conflict(
                current.name, current.user_id, exclude_id=exercise_id, db=db
            )
            if conflict is not None:
                raise ConflictError("An active exercise with this name already exists")

            await self.exercises.restore(exercise_id, db=db)
            restored = await self.exercises.get(exercise_id, db=db)
            await self._log_change(
                db,
                exercise_id,
                actor,
                ChangeType.RESTORE,
                {
                    "id": current.id,
                    "name": current.name,
                    "is_deleted": True,
                    "deleted_at": _iso(current.deleted_at),
                },
                {
                    "id": restored.id,
                    "name": restored.name,
                    "is_deleted": False,
                    "restored_at": _iso(restored.updated_at),
                },
            )

        self._invalidate_search()
        logger.info("User %s restored exercise %s", actor.id, exercise_id)
        return restored

    async def get_exercise_details(self, exercise_id: int) -> dict:
        """Exercise with usage stats and its most recent changes."""
        exercise = await self.exercises.get(exercise_id)
        if exercise is None:
            raise NotFoundError("Exercise not found")

        usage = await self.snapshots.get_exercise_usage_stats(exercise_id)
        changes = await self.change_logs.list_for_exercise(exercise_id, limit=RECENT_CHANGES_LIMIT)
        return {
            "exercise": exercise.to_dict(),
            "usage_stats": usage.to_dict(),
            "recent_changes": [change.to_dict() for change in changes],
        }
