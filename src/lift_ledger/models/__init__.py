"""Data models for lift-ledger."""

from .exercises import (
    ChangeType,
    DeleteOutcome,
    Exercise,
    ExerciseChangeLog,
    ExerciseSnapshot,
    HardDeleted,
    SoftDeleted,
    UsageStats,
)
from .schedule import ScheduleExercise, WeeklySchedule
from .user import Role, User
from .workout import ExerciseSet, WorkoutEdit, WorkoutExercise, WorkoutLog

__all__ = [
    "ChangeType",
    "DeleteOutcome",
    "Exercise",
    "ExerciseChangeLog",
    "ExerciseSet",
    "ExerciseSnapshot",
    "HardDeleted",
    "Role",
    "ScheduleExercise",
    "SoftDeleted",
    "UsageStats",
    "User",
    "WeeklySchedule",
    "WorkoutEdit",
    "WorkoutExercise",
    "WorkoutLog",
]
