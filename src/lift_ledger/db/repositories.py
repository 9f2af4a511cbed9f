"""Data access layer for lift-ledger.

Every method takes an optional ``db`` connection. Pass the connection from
``transaction()`` to run several repository calls atomically; leave it out
and the call opens, commits and closes its own connection.
"""

import json
import logging
from datetime import datetime
from pathlib import Path

import aiosqlite

from ..models.exercises import (
    ChangeType,
    Exercise,
    ExerciseChangeLog,
    ExerciseSnapshot,
    UsageStats,
    validate_snapshot,
)
from ..models.schedule import ScheduleExercise, WeeklySchedule
from ..models.user import Role, User
from ..models.workout import ExerciseSet, WorkoutExercise, WorkoutLog
from .engine import connect, get_db_path

logger = logging.getLogger(__name__)

# Keeps IN (...) lists well under SQLite's bound-parameter limit
_CHUNK_SIZE = 500


def _now() -> str:
    return datetime.now().isoformat()


def _parse_dt(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def _chunks(values: list, size: int = _CHUNK_SIZE):
    for start in range(0, len(values), size):
        yield values[start:start + size]


def _placeholders(values: list) -> str:
    return ", ".join("?" for _ in values)


def _row_to_exercise(row: aiosqlite.Row) -> Exercise:
    """Convert a database row to an Exercise."""
    return Exercise(
        id=row["id"],
        name=row["name"],
        description=row["description"],
        muscle_group=row["muscle_group"],
        equipment=row["equipment"],
        video_url=row["video_url"],
        user_id=row["user_id"],
        reference_links=json.loads(row["reference_links"] or "[]"),
        is_deleted=bool(row["is_deleted"]),
        deleted_at=_parse_dt(row["deleted_at"]),
        deleted_by=row["deleted_by"],
        created_at=_parse_dt(row["created_at"]),
        updated_at=_parse_dt(row["updated_at"]),
    )


def _decode_snapshot(raw: str | None) -> dict | None:
    """Stored snapshot JSON as a dict, or None when absent or malformed."""
    if raw is None:
        return None
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        return None
    return data if validate_snapshot(data) else None


def _parse_snapshot(raw: str | None, workout_exercise_id: int) -> ExerciseSnapshot | None:
    """Decode and shape-check a stored snapshot; malformed ones read as missing."""
    if raw is None:
        return None
    data = _decode_snapshot(raw)
    if data is None:
        logger.warning(
            "Ignoring malformed exercise snapshot on workout exercise %s",
            workout_exercise_id,
        )
        return None
    return ExerciseSnapshot.from_dict(data)


class UserRepository:
    """Repository for users known from the upstream identity headers."""

    def __init__(self, db_path: Path | None = None):
        self.db_path = db_path or get_db_path()

    async def upsert(
        self,
        user_id: str,
        name: str | None = None,
        email: str | None = None,
        db: aiosqlite.Connection | None = None,
    ) -> User:
        """Record a user on first sight and refresh their name/email after."""
        async with connect(self.db_path, db) as conn:
            await conn.execute(
                """
                INSERT INTO users (id, name, email, role, created_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    name = COALESCE(excluded.name, users.name),
                    email = COALESCE(excluded.email, users.email)
                """,
                (user_id, name, email, Role.USER.value, _now()),
            )
            cursor = await conn.execute("SELECT * FROM users WHERE id = ?", (user_id,))
            row = await cursor.fetchone()
            return self._row_to_user(row)

    async def get(self, user_id: str, db: aiosqlite.Connection | None = None) -> User | None:
        """Get a user by ID."""
        async with connect(self.db_path, db) as conn:
            cursor = await conn.execute("SELECT * FROM users WHERE id = ?", (user_id,))
            row = await cursor.fetchone()
            if row is None:
                return None
            return self._row_to_user(row)

    async def find(self, id_or_email: str) -> User | None:
        """Find a user by ID, falling back to email."""
        async with connect(self.db_path) as conn:
            cursor = await conn.execute(
                "SELECT * FROM users WHERE id = ? OR email = ? ORDER BY id = ? DESC LIMIT 1",
                (id_or_email, id_or_email, id_or_email),
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            return self._row_to_user(row)

    async def list_all(self) -> list[User]:
        """List all users."""
        async with connect(self.db_path) as conn:
            cursor = await conn.execute("SELECT * FROM users ORDER BY created_at")
            rows = await cursor.fetchall()
            return [self._row_to_user(row) for row in rows]

    async def set_role(self, user_id: str, role: Role) -> None:
        """Change a user's role."""
        async with connect(self.db_path) as conn:
            await conn.execute("UPDATE users SET role = ? WHERE id = ?", (role.value, user_id))

    def _row_to_user(self, row: aiosqlite.Row) -> User:
        """Convert a database row to a User."""
        return User(
            id=row["id"],
            name=row["name"],
            email=row["email"],
            role=Role(row["role"]),
            created_at=_parse_dt(row["created_at"]),
        )


class ExerciseRepository:
    """Repository for the exercise catalog."""

    def __init__(self, db_path: Path | None = None):
        self.db_path = db_path or get_db_path()

    async def create(self, exercise: Exercise, db: aiosqlite.Connection | None = None) -> int:
        """Create a new exercise."""
        now = _now()
        async with connect(self.db_path, db) as conn:
            cursor = await conn.execute(
                """
                INSERT INTO exercises
                (name, description, muscle_group, equipment, video_url, user_id,
                 reference_links, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    exercise.name,
                    exercise.description,
                    exercise.muscle_group,
                    exercise.equipment,
                    exercise.video_url,
                    exercise.user_id,
                    json.dumps(exercise.reference_links),
                    now,
                    now,
                ),
            )
            return cursor.lastrowid

    async def get(self, exercise_id: int, db: aiosqlite.Connection | None = None) -> Exercise | None:
        """Get an exercise by ID, deleted or not."""
        async with connect(self.db_path, db) as conn:
            cursor = await conn.execute("SELECT * FROM exercises WHERE id = ?", (exercise_id,))
            row = await cursor.fetchone()
            if row is None:
                return None
            return _row_to_exercise(row)

    async def get_many(
        self, exercise_ids: list[int], db: aiosqlite.Connection | None = None
    ) -> dict[int, Exercise]:
        """Get exercises by ID, keyed by ID."""
        ids = sorted(set(exercise_ids))
        found = {}
        async with connect(self.db_path, db) as conn:
            for chunk in _chunks(ids):
                cursor = await conn.execute(
                    f"SELECT * FROM exercises WHERE id IN ({_placeholders(chunk)})", chunk
                )
                for row in await cursor.fetchall():
                    found[row["id"]] = _row_to_exercise(row)
        return found

    async def list_visible(self, user_id: str) -> list[Exercise]:
        """Non-deleted global exercises plus the user's own, globals first."""
        async with connect(self.db_path) as conn:
            cursor = await conn.execute(
                """
                SELECT * FROM exercises
                WHERE is_deleted = 0 AND (user_id IS NULL OR user_id = ?)
                ORDER BY user_id IS NOT NULL, name
                """,
                (user_id,),
            )
            rows = await cursor.fetchall()
            return [_row_to_exercise(row) for row in rows]

    async def list_global(self, include_deleted: bool = True) -> list[Exercise]:
        """List global exercises by muscle group then name."""
        query = "SELECT * FROM exercises WHERE user_id IS NULL"
        if not include_deleted:
            query += " AND is_deleted = 0"
        query += " ORDER BY muscle_group, name"
        async with connect(self.db_path) as conn:
            cursor = await conn.execute(query)
            rows = await cursor.fetchall()
            return [_row_to_exercise(row) for row in rows]

    async def list_custom(self, user_id: str) -> list[Exercise]:
        """List a user's non-deleted custom exercises."""
        async with connect(self.db_path) as conn:
            cursor = await conn.execute(
                "SELECT * FROM exercises WHERE user_id = ? AND is_deleted = 0 ORDER BY name",
                (user_id,),
            )
            rows = await cursor.fetchall()
            return [_row_to_exercise(row) for row in rows]

    async def find_name_conflict(
        self,
        name: str,
        user_id: str | None,
        exclude_id: int | None = None,
        db: aiosqlite.Connection | None = None,
    ) -> Exercise | None:
        """Find a non-deleted exercise whose name clashes, ignoring case.

        Global names clash with any exercise; custom names clash with globals
        and the owner's other custom exercises.
        """
        query = "SELECT * FROM exercises WHERE is_deleted = 0 AND name = ? COLLATE NOCASE"
        params: list = [name]
        if user_id is not None:
            query += " AND (user_id IS NULL OR user_id = ?)"
            params.append(user_id)
        if exclude_id is not None:
            query += " AND id != ?"
            params.append(exclude_id)
        query += " LIMIT 1"

        async with connect(self.db_path, db) as conn:
            cursor = await conn.execute(query, params)
            row = await cursor.fetchone()
            if row is None:
                return None
            return _row_to_exercise(row)

    async def update(self, exercise: Exercise, db: aiosqlite.Connection | None = None) -> None:
        """Update the mutable fields of an exercise."""
        if exercise.id is None:
            raise ValueError("Exercise must have an ID to update")

        async with connect(self.db_path, db) as conn:
            await conn.execute(
                """
                UPDATE exercises SET
                    name = ?, description = ?, muscle_group = ?, equipment = ?,
                    video_url = ?, reference_links = ?, updated_at = ?
                WHERE id = ?
                """,
                (
                    exercise.name,
                    exercise.description,
                    exercise.muscle_group,
                    exercise.equipment,
                    exercise.video_url,
                    json.dumps(exercise.reference_links),
                    _now(),
                    exercise.id,
                ),
            )

    async def soft_delete(
        self, exercise_id: int, deleted_by: str, db: aiosqlite.Connection | None = None
    ) -> None:
        """Flag an exercise as deleted, keeping its row."""
        now = _now()
        async with connect(self.db_path, db) as conn:
            await conn.execute(
                """
                UPDATE exercises SET
                    is_deleted = 1, deleted_at = ?, deleted_by = ?, updated_at = ?
                WHERE id = ?
                """,
                (now, deleted_by, now, exercise_id),
            )

    async def restore(self, exercise_id: int, db: aiosqlite.Connection | None = None) -> None:
        """Clear the soft-delete flag, timestamp and actor."""
        async with connect(self.db_path, db) as conn:
            await conn.execute(
                """
                UPDATE exercises SET
                    is_deleted = 0, deleted_at = NULL, deleted_by = NULL, updated_at = ?
                WHERE id = ?
                """,
                (_now(), exercise_id),
            )

    async def delete(self, exercise_id: int, db: aiosqlite.Connection | None = None) -> None:
        """Remove an exercise row."""
        async with connect(self.db_path, db) as conn:
            await conn.execute("DELETE FROM exercises WHERE id = ?", (exercise_id,))

    async def usage_stats(
        self, exercise_id: int, db: aiosqlite.Connection | None = None
    ) -> UsageStats:
        """Count workout exercises referencing this exercise, by role."""
        async with connect(self.db_path, db) as conn:
            cursor = await conn.execute(
                """
                SELECT
                    SUM(CASE WHEN original_exercise_id = ? THEN 1 ELSE 0 END) AS as_original,
                    SUM(CASE WHEN replacement_exercise_id = ? THEN 1 ELSE 0 END) AS as_replacement
                FROM workout_exercises
                WHERE original_exercise_id = ? OR replacement_exercise_id = ?
                """,
                (exercise_id, exercise_id, exercise_id, exercise_id),
            )
            row = await cursor.fetchone()
            return UsageStats(
                used_as_original=row["as_original"] or 0,
                used_as_replacement=row["as_replacement"] or 0,
            )


class ChangeLogRepository:
    """Repository for the append-only exercise audit trail."""

    def __init__(self, db_path: Path | None = None):
        self.db_path = db_path or get_db_path()

    async def append(
        self, entry: ExerciseChangeLog, db: aiosqlite.Connection | None = None
    ) -> int:
        """Append an audit row."""
        async with connect(self.db_path, db) as conn:
            cursor = await conn.execute(
                """
                INSERT INTO exercise_change_logs
                (exercise_id, changed_by, change_type, old_data, new_data, changed_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    entry.exercise_id,
                    entry.changed_by,
                    entry.change_type.value,
                    json.dumps(entry.old_data) if entry.old_data is not None else None,
                    json.dumps(entry.new_data) if entry.new_data is not None else None,
                    (entry.changed_at or datetime.now()).isoformat(),
                ),
            )
            return cursor.lastrowid

    async def list_for_exercise(self, exercise_id: int, limit: int = 10) -> list[ExerciseChangeLog]:
        """Most recent audit rows for an exercise, newest first."""
        async with connect(self.db_path) as conn:
            cursor = await conn.execute(
                """
                SELECT * FROM exercise_change_logs
                WHERE exercise_id = ?
                ORDER BY changed_at DESC, id DESC
                LIMIT ?
                """,
                (exercise_id, limit),
            )
            rows = await cursor.fetchall()
            return [self._row_to_entry(row) for row in rows]

    def _row_to_entry(self, row: aiosqlite.Row) -> ExerciseChangeLog:
        """Convert a database row to an ExerciseChangeLog."""
        return ExerciseChangeLog(
            id=row["id"],
            exercise_id=row["exercise_id"],
            changed_by=row["changed_by"],
            change_type=ChangeType(row["change_type"]),
            old_data=json.loads(row["old_data"]) if row["old_data"] else None,
            new_data=json.loads(row["new_data"]) if row["new_data"] else None,
            changed_at=_parse_dt(row["changed_at"]),
        )


class ScheduleRepository:
    """Repository for the weekly schedule and its exercise assignments."""

    def __init__(self, db_path: Path | None = None):
        self.db_path = db_path or get_db_path()

    async def get_by_day(
        self, day_of_week: int, db: aiosqlite.Connection | None = None
    ) -> WeeklySchedule | None:
        """Get one day with its assignments in order."""
        async with connect(self.db_path, db) as conn:
            cursor = await conn.execute(
                "SELECT * FROM weekly_schedules WHERE day_of_week = ?", (day_of_week,)
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            schedule = self._row_to_schedule(row)
            schedule.exercises = await self._load_assignments(conn, [schedule.id])
            return schedule

    async def list_all(self, db: aiosqlite.Connection | None = None) -> list[WeeklySchedule]:
        """List every existing day, Sunday first, with assignments."""
        async with connect(self.db_path, db) as conn:
            cursor = await conn.execute("SELECT * FROM weekly_schedules ORDER BY day_of_week")
            schedules = [self._row_to_schedule(row) for row in await cursor.fetchall()]
            assignments = await self._load_assignments(conn, [s.id for s in schedules])
            for schedule in schedules:
                schedule.exercises = [a for a in assignments if a.schedule_id == schedule.id]
            return schedules

    async def create_day(
        self, day_of_week: int, name: str, db: aiosqlite.Connection | None = None
    ) -> int:
        """Create the row for a day of the week."""
        now = _now()
        async with connect(self.db_path, db) as conn:
            cursor = await conn.execute(
                """
                INSERT INTO weekly_schedules (day_of_week, name, created_at, updated_at)
                VALUES (?, ?, ?, ?)
                """,
                (day_of_week, name, now, now),
            )
            return cursor.lastrowid

    async def rename_day(
        self, schedule_id: int, name: str, db: aiosqlite.Connection | None = None
    ) -> None:
        """Change a day's display name."""
        async with connect(self.db_path, db) as conn:
            await conn.execute(
                "UPDATE weekly_schedules SET name = ?, updated_at = ? WHERE id = ?",
                (name, _now(), schedule_id),
            )

    async def get_assignment(
        self, assignment_id: int, db: aiosqlite.Connection | None = None
    ) -> ScheduleExercise | None:
        """Get one assignment by ID."""
        async with connect(self.db_path, db) as conn:
            cursor = await conn.execute(
                "SELECT * FROM schedule_exercises WHERE id = ?", (assignment_id,)
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            return ScheduleExercise(
                id=row["id"],
                schedule_id=row["schedule_id"],
                exercise_id=row["exercise_id"],
                order=row["sort_order"],
            )

    async def find_assignment(
        self, schedule_id: int, exercise_id: int, db: aiosqlite.Connection | None = None
    ) -> int | None:
        """ID of the assignment of an exercise to a day, if any."""
        async with connect(self.db_path, db) as conn:
            cursor = await conn.execute(
                "SELECT id FROM schedule_exercises WHERE schedule_id = ? AND exercise_id = ?",
                (schedule_id, exercise_id),
            )
            row = await cursor.fetchone()
            return row["id"] if row else None

    async def schedule_ids_for_exercise(
        self, exercise_id: int, db: aiosqlite.Connection | None = None
    ) -> list[int]:
        """Days that hold an assignment of the exercise."""
        async with connect(self.db_path, db) as conn:
            cursor = await conn.execute(
                "SELECT DISTINCT schedule_id FROM schedule_exercises WHERE exercise_id = ? "
                "ORDER BY schedule_id",
                (exercise_id,),
            )
            rows = await cursor.fetchall()
            return [row["schedule_id"] for row in rows]

    async def max_order(self, schedule_id: int, db: aiosqlite.Connection | None = None) -> int:
        """Highest order on a day, 0 when it has none."""
        async with connect(self.db_path, db) as conn:
            cursor = await conn.execute(
                "SELECT COALESCE(MAX(sort_order), 0) AS max_order FROM schedule_exercises "
                "WHERE schedule_id = ?",
                (schedule_id,),
            )
            row = await cursor.fetchone()
            return row["max_order"]

    async def add_assignment(
        self,
        schedule_id: int,
        exercise_id: int,
        order: int,
        db: aiosqlite.Connection | None = None,
    ) -> int:
        """Assign an exercise to a day at a position."""
        async with connect(self.db_path, db) as conn:
            cursor = await conn.execute(
                """
                INSERT INTO schedule_exercises (schedule_id, exercise_id, sort_order)
                VALUES (?, ?, ?)
                """,
                (schedule_id, exercise_id, order),
            )
            return cursor.lastrowid

    async def set_order(
        self, assignment_id: int, order: int, db: aiosqlite.Connection | None = None
    ) -> bool:
        """Move an assignment; False if it does not exist."""
        async with connect(self.db_path, db) as conn:
            cursor = await conn.execute(
                "UPDATE schedule_exercises SET sort_order = ? WHERE id = ?",
                (order, assignment_id),
            )
            return cursor.rowcount > 0

    async def renumber(self, schedule_id: int, db: aiosqlite.Connection | None = None) -> None:
        """Rewrite a day's orders as 1..N, keeping their relative sequence."""
        async with connect(self.db_path, db) as conn:
            cursor = await conn.execute(
                "SELECT id FROM schedule_exercises WHERE schedule_id = ? ORDER BY sort_order, id",
                (schedule_id,),
            )
            rows = await cursor.fetchall()
            for position, row in enumerate(rows, start=1):
                await conn.execute(
                    "UPDATE schedule_exercises SET sort_order = ? WHERE id = ?",
                    (position, row["id"]),
                )

    async def remove_assignment(
        self, assignment_id: int, db: aiosqlite.Connection | None = None
    ) -> None:
        """Remove an assignment."""
        async with connect(self.db_path, db) as conn:
            await conn.execute("DELETE FROM schedule_exercises WHERE id = ?", (assignment_id,))

    async def clear_assignments(
        self, schedule_id: int, db: aiosqlite.Connection | None = None
    ) -> None:
        """Remove every assignment of a day."""
        async with connect(self.db_path, db) as conn:
            await conn.execute(
                "DELETE FROM schedule_exercises WHERE schedule_id = ?", (schedule_id,)
            )

    async def count_days(self, db: aiosqlite.Connection | None = None) -> int:
        """Number of schedule rows."""
        async with connect(self.db_path, db) as conn:
            cursor = await conn.execute("SELECT COUNT(*) AS total FROM weekly_schedules")
            row = await cursor.fetchone()
            return row["total"]

    async def _load_assignments(
        self, conn: aiosqlite.Connection, schedule_ids: list[int]
    ) -> list[ScheduleExercise]:
        """Assignments for the given days joined with their live exercises."""
        assignments = []
        for chunk in _chunks(schedule_ids):
            cursor = await conn.execute(
                f"""
                SELECT se.id AS assignment_id, se.schedule_id, se.sort_order, e.*
                FROM schedule_exercises se
                JOIN exercises e ON e.id = se.exercise_id
                WHERE se.schedule_id IN ({_placeholders(chunk)})
                ORDER BY se.schedule_id, se.sort_order, se.id
                """,
                chunk,
            )
            for row in await cursor.fetchall():
                assignments.append(
                    ScheduleExercise(
                        id=row["assignment_id"],
                        schedule_id=row["schedule_id"],
                        exercise_id=row["id"],
                        order=row["sort_order"],
                        exercise=_row_to_exercise(row),
                    )
                )
        return assignments

    def _row_to_schedule(self, row: aiosqlite.Row) -> WeeklySchedule:
        """Convert a database row to a WeeklySchedule (without assignments)."""
        return WeeklySchedule(
            id=row["id"],
            day_of_week=row["day_of_week"],
            name=row["name"],
        )


class WorkoutRepository:
    """Repository for workout logs, their exercises and sets."""

    def __init__(self, db_path: Path | None = None):
        self.db_path = db_path or get_db_path()

    async def create_log(
        self,
        user_id: str,
        performed_at: datetime,
        day_of_week: int,
        db: aiosqlite.Connection | None = None,
    ) -> int:
        """Create an empty workout log."""
        async with connect(self.db_path, db) as conn:
            cursor = await conn.execute(
                """
                INSERT INTO workout_logs (user_id, date, day_of_week, created_at)
                VALUES (?, ?, ?, ?)
                """,
                (user_id, performed_at.isoformat(), day_of_week, _now()),
            )
            return cursor.lastrowid

    async def add_workout_exercise(
        self, workout_exercise: WorkoutExercise, db: aiosqlite.Connection | None = None
    ) -> int:
        """Insert a workout exercise with its embedded snapshot (sets excluded)."""
        we = workout_exercise
        async with connect(self.db_path, db) as conn:
            cursor = await conn.execute(
                """
                INSERT INTO workout_exercises
                (workout_log_id, original_exercise_id, replacement_exercise_id, sort_order,
                 is_custom, is_replaced, replaced_at, exercise_snapshot)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    we.workout_log_id,
                    we.original_exercise_id,
                    we.replacement_exercise_id,
                    we.order,
                    int(we.is_custom),
                    int(we.is_replaced),
                    we.replaced_at.isoformat() if we.replaced_at else None,
                    json.dumps(we.snapshot.to_dict()) if we.snapshot else None,
                ),
            )
            return cursor.lastrowid

    async def add_set(
        self,
        workout_exercise_id: int,
        set_number: int,
        reps: int,
        weight_kg: float,
        db: aiosqlite.Connection | None = None,
    ) -> int:
        """Insert one set."""
        async with connect(self.db_path, db) as conn:
            cursor = await conn.execute(
                """
                INSERT INTO exercise_sets (workout_exercise_id, set_number, reps, weight_kg)
                VALUES (?, ?, ?, ?)
                """,
                (workout_exercise_id, set_number, reps, weight_kg),
            )
            return cursor.lastrowid

    async def update_set(
        self,
        set_id: int,
        workout_exercise_id: int,
        reps: int,
        weight_kg: float,
        db: aiosqlite.Connection | None = None,
    ) -> bool:
        """Change a set's reps and weight; False if it is not in that exercise."""
        async with connect(self.db_path, db) as conn:
            cursor = await conn.execute(
                """
                UPDATE exercise_sets SET reps = ?, weight_kg = ?
                WHERE id = ? AND workout_exercise_id = ?
                """,
                (reps, weight_kg, set_id, workout_exercise_id),
            )
            return cursor.rowcount > 0

    async def clear_sets(
        self, workout_exercise_id: int, db: aiosqlite.Connection | None = None
    ) -> None:
        """Remove every set of a workout exercise."""
        async with connect(self.db_path, db) as conn:
            await conn.execute(
                "DELETE FROM exercise_sets WHERE workout_exercise_id = ?",
                (workout_exercise_id,),
            )

    async def get_log(
        self,
        log_id: int,
        user_id: str | None = None,
        db: aiosqlite.Connection | None = None,
    ) -> WorkoutLog | None:
        """Get a workout log with exercises and sets, optionally scoped to an owner."""
        query = "SELECT * FROM workout_logs WHERE id = ?"
        params: list = [log_id]
        if user_id is not None:
            query += " AND user_id = ?"
            params.append(user_id)

        async with connect(self.db_path, db) as conn:
            cursor = await conn.execute(query, params)
            row = await cursor.fetchone()
            if row is None:
                return None
            logs = [self._row_to_log(row)]
            await self._attach_exercises(conn, logs)
            return logs[0]

    async def list_logs(
        self,
        user_id: str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        db: aiosqlite.Connection | None = None,
    ) -> list[WorkoutLog]:
        """List workout logs newest first, fully loaded."""
        clauses, params = [], []
        if user_id is not None:
            clauses.append("user_id = ?")
            params.append(user_id)
        if start is not None:
            clauses.append("date >= ?")
            params.append(start.isoformat())
        if end is not None:
            clauses.append("date <= ?")
            params.append(end.isoformat())

        query = "SELECT * FROM workout_logs"
        if clauses:
            query += " WHERE " + " AND ".join(clauses)
        query += " ORDER BY date DESC, id DESC"

        async with connect(self.db_path, db) as conn:
            cursor = await conn.execute(query, params)
            logs = [self._row_to_log(row) for row in await cursor.fetchall()]
            await self._attach_exercises(conn, logs)
            return logs

    async def find_active_exercise(
        self, log_id: int, exercise_id: int, db: aiosqlite.Connection | None = None
    ) -> int | None:
        """ID of the non-replaced workout exercise for ``exercise_id`` in a log."""
        async with connect(self.db_path, db) as conn:
            cursor = await conn.execute(
                """
                SELECT id FROM workout_exercises
                WHERE workout_log_id = ? AND original_exercise_id = ? AND is_replaced = 0
                ORDER BY id LIMIT 1
                """,
                (log_id, exercise_id),
            )
            row = await cursor.fetchone()
            return row["id"] if row else None

    async def max_order(self, log_id: int, db: aiosqlite.Connection | None = None) -> int:
        """Highest exercise order in a log, 0 when empty."""
        async with connect(self.db_path, db) as conn:
            cursor = await conn.execute(
                "SELECT COALESCE(MAX(sort_order), 0) AS max_order FROM workout_exercises "
                "WHERE workout_log_id = ?",
                (log_id,),
            )
            row = await cursor.fetchone()
            return row["max_order"]

    async def delete_workout_exercise(
        self, workout_exercise_id: int, db: aiosqlite.Connection | None = None
    ) -> None:
        """Remove a workout exercise and (by cascade) its sets."""
        async with connect(self.db_path, db) as conn:
            await conn.execute(
                "DELETE FROM workout_exercises WHERE id = ?", (workout_exercise_id,)
            )

    async def renumber_exercises(self, log_id: int, db: aiosqlite.Connection | None = None) -> None:
        """Rewrite a log's exercise orders as 1..N."""
        async with connect(self.db_path, db) as conn:
            cursor = await conn.execute(
                "SELECT id FROM workout_exercises WHERE workout_log_id = ? ORDER BY sort_order, id",
                (log_id,),
            )
            rows = await cursor.fetchall()
            for position, row in enumerate(rows, start=1):
                await conn.execute(
                    "UPDATE workout_exercises SET sort_order = ? WHERE id = ?",
                    (position, row["id"]),
                )

    async def delete_log(self, log_id: int, db: aiosqlite.Connection | None = None) -> None:
        """Delete a workout log; exercises and sets go with it."""
        async with connect(self.db_path, db) as conn:
            await conn.execute("DELETE FROM workout_logs WHERE id = ?", (log_id,))

    async def sets_for_snapshot_name(self, exercise_name: str) -> list[dict]:
        """Every set logged under a snapshot name, heaviest first, with its lifter."""
        async with connect(self.db_path) as conn:
            cursor = await conn.execute(
                """
                SELECT wl.user_id, u.name AS user_name, u.email AS user_email,
                       es.reps, es.weight_kg, we.exercise_snapshot
                FROM exercise_sets es
                JOIN workout_exercises we ON we.id = es.workout_exercise_id
                JOIN workout_logs wl ON wl.id = we.workout_log_id
                LEFT JOIN users u ON u.id = wl.user_id
                WHERE json_valid(we.exercise_snapshot)
                  AND json_extract(we.exercise_snapshot, '$.name') = ?
                ORDER BY es.weight_kg DESC, es.id
                """,
                (exercise_name,),
            )
            rows = await cursor.fetchall()
            return [
                {key: row[key] for key in ("user_id", "user_name", "user_email", "reps", "weight_kg")}
                for row in rows
                if _decode_snapshot(row["exercise_snapshot"]) is not None
            ]

    async def snapshot_exercise_totals(self) -> list[dict]:
        """Per workout exercise with sets: snapshot name, lifter, set count, heaviest set."""
        async with connect(self.db_path) as conn:
            cursor = await conn.execute(
                """
                SELECT we.exercise_snapshot,
                       wl.user_id,
                       COUNT(es.id) AS set_count,
                       MAX(es.weight_kg) AS max_weight
                FROM workout_exercises we
                JOIN workout_logs wl ON wl.id = we.workout_log_id
                JOIN exercise_sets es ON es.workout_exercise_id = we.id
                WHERE json_valid(we.exercise_snapshot)
                GROUP BY we.id
                ORDER BY we.id
                """
            )
            rows = await cursor.fetchall()

        totals = []
        for row in rows:
            snapshot = _decode_snapshot(row["exercise_snapshot"])
            if snapshot is None or not snapshot["name"]:
                continue
            totals.append(
                {
                    "exercise_name": snapshot["name"],
                    "user_id": row["user_id"],
                    "set_count": row["set_count"],
                    "max_weight": row["max_weight"],
                }
            )
        return totals

    async def _attach_exercises(self, conn: aiosqlite.Connection, logs: list[WorkoutLog]) -> None:
        """Load exercises and sets for logs, plus live rows where no snapshot is usable."""
        if not logs:
            return

        by_log = {log.id: log for log in logs}
        workout_exercises: dict[int, WorkoutExercise] = {}
        for chunk in _chunks(list(by_log)):
            cursor = await conn.execute(
                f"""
                SELECT * FROM workout_exercises
                WHERE workout_log_id IN ({_placeholders(chunk)})
                ORDER BY workout_log_id, sort_order, id
                """,
                chunk,
            )
            for row in await cursor.fetchall():
                we = self._row_to_workout_exercise(row)
                workout_exercises[we.id] = we
                by_log[we.workout_log_id].exercises.append(we)

        for chunk in _chunks(list(workout_exercises)):
            cursor = await conn.execute(
                f"""
                SELECT * FROM exercise_sets
                WHERE workout_exercise_id IN ({_placeholders(chunk)})
                ORDER BY workout_exercise_id, set_number, id
                """,
                chunk,
            )
            for row in await cursor.fetchall():
                workout_exercises[row["workout_exercise_id"]].sets.append(
                    ExerciseSet(
                        id=row["id"],
                        workout_exercise_id=row["workout_exercise_id"],
                        set_number=row["set_number"],
                        reps=row["reps"],
                        weight_kg=row["weight_kg"],
                    )
                )

        # Live catalog rows are only a fallback for rows without a snapshot
        legacy = [we for we in workout_exercises.values() if we.snapshot is None]
        live_ids = sorted(
            {
                exercise_id
                for we in legacy
                for exercise_id in (we.original_exercise_id, we.replacement_exercise_id)
                if exercise_id is not None
            }
        )
        live: dict[int, Exercise] = {}
        for chunk in _chunks(live_ids):
            cursor = await conn.execute(
                f"SELECT * FROM exercises WHERE id IN ({_placeholders(chunk)})", chunk
            )
            for row in await cursor.fetchall():
                live[row["id"]] = _row_to_exercise(row)
        for we in legacy:
            we.original_exercise = live.get(we.original_exercise_id)
            we.replacement_exercise = live.get(we.replacement_exercise_id)

    def _row_to_log(self, row: aiosqlite.Row) -> WorkoutLog:
        """Convert a database row to a WorkoutLog (without exercises)."""
        return WorkoutLog(
            id=row["id"],
            user_id=row["user_id"],
            date=datetime.fromisoformat(row["date"]),
            day_of_week=row["day_of_week"],
        )

    def _row_to_workout_exercise(self, row: aiosqlite.Row) -> WorkoutExercise:
        """Convert a database row to a WorkoutExercise (without sets)."""
        return WorkoutExercise(
            id=row["id"],
            workout_log_id=row["workout_log_id"],
            order=row["sort_order"],
            original_exercise_id=row["original_exercise_id"],
            replacement_exercise_id=row["replacement_exercise_id"],
            is_custom=bool(row["is_custom"]),
            is_replaced=bool(row["is_replaced"]),
            replaced_at=_parse_dt(row["replaced_at"]),
            snapshot=_parse_snapshot(row["exercise_snapshot"], row["id"]),
        )


class SnapshotMigrationRepository:
    """Queries used by the snapshot backfill tool."""

    def __init__(self, db_path: Path | None = None):
        self.db_path = db_path or get_db_path()

    async def list_missing_snapshots(self) -> list[dict]:
        """Workout exercises stored without a usable snapshot."""
        async with connect(self.db_path) as conn:
            cursor = await conn.execute(
                """
                SELECT id, original_exercise_id, replacement_exercise_id, is_replaced,
                       exercise_snapshot
                FROM workout_exercises
                ORDER BY id
                """
            )
            rows = await cursor.fetchall()
            return [
                {
                    "id": row["id"],
                    "original_exercise_id": row["original_exercise_id"],
                    "replacement_exercise_id": row["replacement_exercise_id"],
                    "is_replaced": row["is_replaced"],
                }
                for row in rows
                if _decode_snapshot(row["exercise_snapshot"]) is None
            ]

    async def set_snapshot(
        self,
        workout_exercise_id: int,
        snapshot: ExerciseSnapshot,
        db: aiosqlite.Connection | None = None,
    ) -> None:
        async with connect(self.db_path, db) as conn:
            await conn.execute(
                "UPDATE workout_exercises SET exercise_snapshot = ? WHERE id = ?",
                (json.dumps(snapshot.to_dict()), workout_exercise_id),
            )

    async def list_unreferenced(self) -> list[dict]:
        """Rows with a snapshot but neither an original nor a replacement ID."""
        async with connect(self.db_path) as conn:
            cursor = await conn.execute(
                """
                SELECT id, json_extract(exercise_snapshot, '$.id') AS snapshot_exercise_id
                FROM workout_exercises
                WHERE json_valid(exercise_snapshot)
                  AND json_extract(exercise_snapshot, '$.id') IS NOT NULL
                  AND original_exercise_id IS NULL
                  AND replacement_exercise_id IS NULL
                ORDER BY id
                """
            )
            rows = await cursor.fetchall()
            return [dict(row) for row in rows]

    async def set_original(
        self,
        workout_exercise_id: int,
        exercise_id: int,
        db: aiosqlite.Connection | None = None,
    ) -> None:
        async with connect(self.db_path, db) as conn:
            await conn.execute(
                """
                UPDATE workout_exercises SET original_exercise_id = ?, is_replaced = 0
                WHERE id = ?
                """,
                (exercise_id, workout_exercise_id),
            )

    async def clear_snapshots(self) -> int:
        """Drop every stored snapshot; returns the number of rows touched."""
        async with connect(self.db_path) as conn:
            cursor = await conn.execute(
                "UPDATE workout_exercises SET exercise_snapshot = NULL "
                "WHERE exercise_snapshot IS NOT NULL"
            )
            return cursor.rowcount

    async def counts(self) -> dict:
        """Totals for validation and reporting."""
        async with connect(self.db_path) as conn:
            cursor = await conn.execute("SELECT COUNT(*) AS total FROM workout_logs")
            total_workouts = (await cursor.fetchone())["total"]

            cursor = await conn.execute(
                """
                SELECT
                    COUNT(*) AS total,
                    SUM(is_replaced) AS replaced,
                    SUM(is_custom) AS custom,
                    COUNT(DISTINCT original_exercise_id) AS unique_originals
                FROM workout_exercises
                """
            )
            row = await cursor.fetchone()

            cursor = await conn.execute(
                "SELECT exercise_snapshot FROM workout_exercises WHERE exercise_snapshot IS NOT NULL"
            )
            with_snapshots = sum(
                1
                for snapshot_row in await cursor.fetchall()
                if _decode_snapshot(snapshot_row["exercise_snapshot"]) is not None
            )
            return {
                "total_workouts": total_workouts,
                "total_workout_exercises": row["total"],
                "with_snapshots": with_snapshots,
                "replaced_exercises": row["replaced"] or 0,
                "custom_exercises": row["custom"] or 0,
                "unique_exercises": row["unique_originals"],
            }
