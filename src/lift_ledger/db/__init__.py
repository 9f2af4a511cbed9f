"""Database layer for lift-ledger."""

from .engine import connect, get_db_path, init_db, seed_exercises, transaction
from .repositories import (
    ChangeLogRepository,
    ExerciseRepository,
    ScheduleRepository,
    SnapshotMigrationRepository,
    UserRepository,
    WorkoutRepository,
)

__all__ = [
    "ChangeLogRepository",
    "connect",
    "ExerciseRepository",
    "get_db_path",
    "init_db",
    "ScheduleRepository",
    "seed_exercises",
    "SnapshotMigrationRepository",
    "transaction",
    "UserRepository",
    "WorkoutRepository",
]
