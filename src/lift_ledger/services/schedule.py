"""Weekly schedule views, administration and the day swap."""

import logging
from pathlib import Path

from ..db.engine import get_db_path, transaction
from ..db.repositories import ExerciseRepository, ScheduleRepository
from ..errors import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from ..models.schedule import DEFAULT_DAY_NAMES, ScheduleExercise, WeeklySchedule, is_valid_day
from ..models.user import User

logger = logging.getLogger(__name__)


def _check_day(day_of_week: int) -> None:
    if not is_valid_day(day_of_week):
        raise ValidationError("Invalid day of week. Must be 0-6.")


class ScheduleService:
    """Reads and mutates the shared seven-day schedule."""

    def __init__(self, db_path: Path | None = None):
        self.db_path = db_path or get_db_path()
        self.schedules = ScheduleRepository(self.db_path)
        self.exercises = ExerciseRepository(self.db_path)

    async def get_day(self, day_of_week: int) -> WeeklySchedule | None:
        """Live plan for one day, soft-deleted exercises left out."""
        _check_day(day_of_week)
        schedule = await self.schedules.get_by_day(day_of_week)
        return schedule.without_deleted() if schedule else None

    async def get_weekly_schedule(self) -> list[WeeklySchedule]:
        """Every existing day, soft-deleted exercises left out."""
        return [schedule.without_deleted() for schedule in await self.schedules.list_all()]

    async def get_admin_schedule(self) -> list[WeeklySchedule]:
        """Every existing day with every assignment, deleted exercises included."""
        return await self.schedules.list_all()

    async def get_status(self) -> dict:
        """Whether all seven days exist, with per-day exercise counts."""
        schedules = await self.schedules.list_all()
        present = {schedule.day_of_week for schedule in schedules}
        return {
            "initialized": len(schedules) == 7,
            "schedule_count": len(schedules),
            "schedules": [
                {
                    "id": schedule.id,
                    "day_of_week": schedule.day_of_week,
                    "name": schedule.name,
                    "exercise_count": len(schedule.exercises),
                }
                for schedule in schedules
            ],
            "missing_days": [day for day in range(7) if day not in present],
        }

    async def initialize(self) -> list[int]:
        """Create any missing days with the default split; returns the created days."""
        created = []
        async with transaction(self.db_path) as db:
            for day, name in enumerate(DEFAULT_DAY_NAMES):
                if await self.schedules.get_by_day(day, db=db) is None:
                    await self.schedules.create_day(day, name, db=db)
                    created.append(day)

        if created:
            logger.info("Initialized schedule days %s", created)
        return created

    async def add_exercise(
        self, day_of_week: int, exercise_id: int, name: str | None = None
    ) -> ScheduleExercise:
        """Append an exercise to a day, creating or renaming the day as needed."""
        _check_day(day_of_week)

        async with transaction(self.db_path) as db:
            exercise = await self.exercises.get(exercise_id, db=db)
            if exercise is None:
                raise NotFoundError("Exercise not found")
            if exercise.is_deleted:
                raise ValidationError("Cannot schedule a deleted exercise")

            schedule = await self.schedules.get_by_day(day_of_week, db=db)
            if schedule is None:
                schedule_id = await self.schedules.create_day(
                    day_of_week, name or f"Day {day_of_week + 1}", db=db
                )
            else:
                schedule_id = schedule.id
                if name:
                    await self.schedules.rename_day(schedule_id, name, db=db)

            if await self.schedules.find_assignment(schedule_id, exercise_id, db=db):
                raise ConflictError("This exercise is already scheduled for this day")

            order = await self.schedules.max_order(schedule_id, db=db) + 1
            assignment_id = await self.schedules.add_assignment(
                schedule_id, exercise_id, order, db=db
            )

        logger.info("Scheduled exercise %s on day %s at %s", exercise_id, day_of_week, order)
        return ScheduleExercise(
            id=assignment_id,
            schedule_id=schedule_id,
            exercise_id=exercise_id,
            order=order,
            exercise=exercise,
        )

    async def remove_exercise(self, assignment_id: int) -> None:
        """Remove an assignment and close the gap it leaves in the order."""
        async with transaction(self.db_path) as db:
            assignment = await self.schedules.get_assignment(assignment_id, db=db)
            if assignment is None:
                raise NotFoundError("Schedule exercise not found")
            await self.schedules.remove_assignment(assignment_id, db=db)
            await self.schedules.renumber(assignment.schedule_id, db=db)

        logger.info("Removed schedule exercise %s", assignment_id)

    async def reorder(self, day_of_week: int, orders: list[tuple[int, int]]) -> WeeklySchedule:
        """Apply (assignment id, order) pairs, then renumber the day densely."""
        _check_day(day_of_week)

        async with transaction(self.db_path) as db:
            schedule = await self.schedules.get_by_day(day_of_week, db=db)
            if schedule is None:
                raise NotFoundError("Day schedule not found")

            owned = {assignment.id for assignment in schedule.exercises}
            for assignment_id, order in orders:
                if assignment_id not in owned:
                    raise NotFoundError(f"Schedule exercise {assignment_id} not found on this day")
                await self.schedules.set_order(assignment_id, order, db=db)

            await self.schedules.renumber(schedule.id, db=db)
            return await self.schedules.get_by_day(day_of_week, db=db)

    async def rename_day(self, actor: User, day_of_week: int, new_name: str) -> dict:
        """Change a day's display name."""
        _check_day(day_of_week)
        new_name = new_name.strip()
        if not 1 <= len(new_name) <= 100:
            raise ValidationError("Day name must be between 1 and 100 characters")

        async with transaction(self.db_path) as db:
            schedule = await self.schedules.get_by_day(day_of_week, db=db)
            if schedule is None:
                raise NotFoundError("Day schedule not found")
            await self.schedules.rename_day(schedule.id, new_name, db=db)
            updated = await self.schedules.get_by_day(day_of_week, db=db)

        logger.info(
            'Day type updated: day %s changed from "%s" to "%s" by admin %s',
            day_of_week,
            schedule.name,
            new_name,
            actor.id,
        )
        return {
            "schedule": updated,
            "previous_name": schedule.name,
            "new_name": new_name,
            "exercise_count": len(schedule.exercises),
        }

    async def swap_days(self, actor: User, from_day: int, to_day: int, user_id: str) -> dict:
        """Exchange two days' names and exercise lists in one transaction.

        Schedule row IDs stay put; only names and assignments move, each
        assignment keeping its order. Nothing changes unless both days exist.
        """
        if user_id != actor.id and not actor.is_admin:
            raise PermissionDeniedError("Forbidden")
        _check_day(from_day)
        _check_day(to_day)
        if from_day == to_day:
            raise ValidationError("Cannot swap a day with itself")

        async with transaction(self.db_path) as db:
            source = await self.schedules.get_by_day(from_day, db=db)
            target = await self.schedules.get_by_day(to_day, db=db)
            if source is None or target is None:
                raise NotFoundError("Day schedule not found")

            await self.schedules.clear_assignments(source.id, db=db)
            await self.schedules.clear_assignments(target.id, db=db)

            await self.schedules.rename_day(source.id, target.name, db=db)
            await self.schedules.rename_day(target.id, source.name, db=db)

            for assignment in source.exercises:
                await self.schedules.add_assignment(
                    target.id, assignment.exercise_id, assignment.order, db=db
                )
            for assignment in target.exercises:
                await self.schedules.add_assignment(
                    source.id, assignment.exercise_id, assignment.order, db=db
                )

        logger.info("User %s swapped days %s and %s", actor.id, from_day, to_day)
        return {
            "from_day": from_day,
            "to_day": to_day,
            "from_day_name": target.name,
            "to_day_name": source.name,
        }
