"""Database engine setup and initialization."""

import json
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path

import aiosqlite

from ..config import get_settings


def get_db_path(data_dir: Path | None = None) -> Path:
    """Get the database file path."""
    settings = get_settings()
    if data_dir is None:
        data_dir = settings.data_dir
    data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir / settings.db_name


@asynccontextmanager
async def transaction(db_path: Path | None = None) -> AsyncIterator[aiosqlite.Connection]:
    """Open a connection and run everything inside one transaction.

    Commits when the block exits normally; rolls back and re-raises otherwise.
    """
    if db_path is None:
        db_path = get_db_path()

    async with aiosqlite.connect(db_path) as db:
        db.row_factory = aiosqlite.Row
        await db.execute("PRAGMA foreign_keys = ON")
        try:
            yield db
        except BaseException:
            await db.rollback()
            raise
        else:
            await db.commit()


@asynccontextmanager
async def connect(
    db_path: Path, db: aiosqlite.Connection | None = None
) -> AsyncIterator[aiosqlite.Connection]:
    """Reuse ``db`` when the caller already holds a transaction, else open one."""
    if db is not None:
        yield db
        return

    async with transaction(db_path) as conn:
        yield conn


async def _run_migrations(db: aiosqlite.Connection) -> None:
    """Run database migrations for schema updates."""
    # Databases created before reference links were tracked
    cursor = await db.execute("PRAGMA table_info(exercises)")
    columns = await cursor.fetchall()
    exercise_columns = {col[1] for col in columns}

    if "reference_links" not in exercise_columns:
        await db.execute("ALTER TABLE exercises ADD COLUMN reference_links TEXT DEFAULT '[]'")
    if "video_url" not in exercise_columns:
        await db.execute("ALTER TABLE exercises ADD COLUMN video_url TEXT")

    await db.commit()

    # Databases created before snapshots were embedded in workout exercises
    cursor = await db.execute("PRAGMA table_info(workout_exercises)")
    columns = await cursor.fetchall()
    workout_exercise_columns = {col[1] for col in columns}

    if "exercise_snapshot" not in workout_exercise_columns:
        await db.execute("ALTER TABLE workout_exercises ADD COLUMN exercise_snapshot TEXT")

    await db.commit()


async def init_db(db_path: Path | None = None) -> None:
    """Initialize the database schema."""
    if db_path is None:
        db_path = get_db_path()

    async with aiosqlite.connect(db_path) as db:
        await db.execute("""
            CREATE TABLE IF NOT EXISTS users (
                id TEXT PRIMARY KEY,
                name TEXT,
                email TEXT,
                role TEXT NOT NULL DEFAULT 'USER',
                created_at TEXT NOT NULL
            )
        """)

        # Exercise catalog: user_id NULL means global
        await db.execute("""
            CREATE TABLE IF NOT EXISTS exercises (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                description TEXT,
                muscle_group TEXT NOT NULL,
                equipment TEXT NOT NULL,
                video_url TEXT,
                user_id TEXT,
                reference_links TEXT DEFAULT '[]',
                is_deleted INTEGER NOT NULL DEFAULT 0,
                deleted_at TEXT,
                deleted_by TEXT,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
        """)

        # Append-only audit trail; outlives hard-deleted exercises
        await db.execute("""
            CREATE TABLE IF NOT EXISTS exercise_change_logs (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                exercise_id INTEGER NOT NULL,
                changed_by TEXT NOT NULL,
                change_type TEXT NOT NULL,
                old_data TEXT,
                new_data TEXT,
                changed_at TEXT NOT NULL
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS weekly_schedules (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                day_of_week INTEGER NOT NULL UNIQUE CHECK (day_of_week BETWEEN 0 AND 6),
                name TEXT NOT NULL,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS schedule_exercises (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                schedule_id INTEGER NOT NULL,
                exercise_id INTEGER NOT NULL,
                sort_order INTEGER NOT NULL,
                UNIQUE (schedule_id, exercise_id),
                FOREIGN KEY (schedule_id) REFERENCES weekly_schedules(id) ON DELETE CASCADE,
                FOREIGN KEY (exercise_id) REFERENCES exercises(id) ON DELETE CASCADE
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS workout_logs (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id TEXT NOT NULL,
                date TEXT NOT NULL,
                day_of_week INTEGER NOT NULL,
                created_at TEXT NOT NULL
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS workout_exercises (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                workout_log_id INTEGER NOT NULL,
                original_exercise_id INTEGER,
                replacement_exercise_id INTEGER,
                sort_order INTEGER NOT NULL,
                is_custom INTEGER NOT NULL DEFAULT 0,
                is_replaced INTEGER NOT NULL DEFAULT 0,
                replaced_at TEXT,
                exercise_snapshot TEXT,
                FOREIGN KEY (workout_log_id) REFERENCES workout_logs(id) ON DELETE CASCADE,
                FOREIGN KEY (original_exercise_id) REFERENCES exercises(id) ON DELETE SET NULL,
                FOREIGN KEY (replacement_exercise_id) REFERENCES exercises(id) ON DELETE SET NULL
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS exercise_sets (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                workout_exercise_id INTEGER NOT NULL,
                set_number INTEGER NOT NULL,
                reps INTEGER NOT NULL,
                weight_kg REAL NOT NULL,
                FOREIGN KEY (workout_exercise_id) REFERENCES workout_exercises(id) ON DELETE CASCADE
            )
        """)

        # Create indexes for common queries
        await db.execute("""
            CREATE UNIQUE INDEX IF NOT EXISTS idx_exercises_global_name
            ON exercises(name COLLATE NOCASE)
            WHERE user_id IS NULL AND is_deleted = 0
        """)
        await db.execute("""
            CREATE INDEX IF NOT EXISTS idx_exercises_user
            ON exercises(user_id)
        """)
        await db.execute("""
            CREATE INDEX IF NOT EXISTS idx_change_logs_exercise
            ON exercise_change_logs(exercise_id, changed_at)
        """)
        await db.execute("""
            CREATE INDEX IF NOT EXISTS idx_schedule_exercises_schedule
            ON schedule_exercises(schedule_id, sort_order)
        """)
        await db.execute("""
            CREATE INDEX IF NOT EXISTS idx_workout_logs_user_date
            ON workout_logs(user_id, date)
        """)
        await db.execute("""
            CREATE INDEX IF NOT EXISTS idx_workout_exercises_log
            ON workout_exercises(workout_log_id)
        """)
        await db.execute("""
            CREATE INDEX IF NOT EXISTS idx_workout_exercises_original
            ON workout_exercises(original_exercise_id)
        """)
        await db.execute("""
            CREATE INDEX IF NOT EXISTS idx_workout_exercises_replacement
            ON workout_exercises(replacement_exercise_id)
        """)
        await db.execute("""
            CREATE INDEX IF NOT EXISTS idx_exercise_sets_workout_exercise
            ON exercise_sets(workout_exercise_id)
        """)

        await db.commit()

        # Run migrations for existing databases
        await _run_migrations(db)


async def seed_exercises(db_path: Path | None = None) -> int:
    """Seed the database with the built-in global catalog.

    Returns the number of exercises inserted.
    """
    from ..models.exercises import DEFAULT_EXERCISES

    if db_path is None:
        db_path = get_db_path()

    inserted = 0
    now = datetime.now().isoformat()
    async with transaction(db_path) as db:
        for exercise in DEFAULT_EXERCISES:
            cursor = await db.execute(
                """
                INSERT OR IGNORE INTO exercises
                (name, description, muscle_group, equipment, reference_links,
                 created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    exercise.name,
                    exercise.description,
                    exercise.muscle_group,
                    exercise.equipment,
                    json.dumps(exercise.reference_links),
                    now,
                    now,
                ),
            )
            inserted += cursor.rowcount

    return inserted
