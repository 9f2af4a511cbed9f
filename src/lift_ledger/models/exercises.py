"""Exercise catalog entries, snapshots and audit records."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

# Bump when the snapshot layout changes; readers check it.
SNAPSHOT_VERSION = 1


@dataclass
class Exercise:
    """A catalog entry. Global when ``user_id`` is None, custom otherwise."""

    name: str
    muscle_group: str
    equipment: str
    description: str | None = None
    video_url: str | None = None
    user_id: str | None = None
    reference_links: list[str] = field(default_factory=list)
    is_deleted: bool = False
    deleted_at: datetime | None = None
    deleted_by: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    id: int | None = None

    @property
    def is_global(self) -> bool:
        return self.user_id is None

    def audit_data(self) -> dict:
        """The mutable fields, as recorded in change-log rows."""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "muscle_group": self.muscle_group,
            "equipment": self.equipment,
            "video_url": self.video_url,
            "user_id": self.user_id,
            "reference_links": list(self.reference_links),
        }

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            **self.audit_data(),
            "is_global": self.is_global,
            "is_deleted": self.is_deleted,
            "deleted_at": self.deleted_at.isoformat() if self.deleted_at else None,
            "deleted_by": self.deleted_by,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


@dataclass(frozen=True)
class ExerciseSnapshot:
    """Immutable copy of an exercise taken when a workout is logged.

    Historical views read these instead of the live catalog so that later
    edits or deletions of the exercise do not rewrite past records.
    """

    id: int
    name: str
    muscle_group: str
    equipment: str
    captured_at: datetime
    description: str | None = None
    video_url: str | None = None
    user_id: str | None = None
    version: int = SNAPSHOT_VERSION

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "muscle_group": self.muscle_group,
            "equipment": self.equipment,
            "video_url": self.video_url,
            "user_id": self.user_id,
            "captured_at": self.captured_at.isoformat(),
            "version": self.version,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ExerciseSnapshot":
        """Create from a stored dictionary. Call ``validate_snapshot`` first."""
        return cls(
            id=data["id"],
            name=data["name"],
            description=data.get("description"),
            muscle_group=data["muscle_group"],
            equipment=data["equipment"],
            video_url=data.get("video_url"),
            user_id=data.get("user_id"),
            captured_at=datetime.fromisoformat(data["captured_at"]),
            version=data["version"],
        )


def validate_snapshot(data: object) -> bool:
    """Check that stored snapshot JSON has the required fields and types."""
    if not isinstance(data, dict):
        return False

    snapshot_id = data.get("id")
    if not isinstance(snapshot_id, int) or isinstance(snapshot_id, bool):
        return False

    for key in ("name", "muscle_group", "equipment", "captured_at"):
        if not isinstance(data.get(key), str):
            return False

    version = data.get("version")
    if not isinstance(version, int) or isinstance(version, bool):
        return False

    try:
        datetime.fromisoformat(data["captured_at"])
    except ValueError:
        return False

    for key in ("description", "video_url", "user_id"):
        if data.get(key) is not None and not isinstance(data[key], str):
            return False

    return True


class ChangeType(str, Enum):
    """Kinds of catalog mutation recorded in the change log."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    RESTORE = "RESTORE"


@dataclass
class ExerciseChangeLog:
    """Append-only audit row for a catalog mutation."""

    exercise_id: int
    changed_by: str
    change_type: ChangeType
    old_data: dict | None
    new_data: dict | None
    changed_at: datetime | None = None
    id: int | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "exercise_id": self.exercise_id,
            "changed_by": self.changed_by,
            "change_type": self.change_type.value,
            "old_data": self.old_data,
            "new_data": self.new_data,
            "changed_at": self.changed_at.isoformat() if self.changed_at else None,
        }


@dataclass
class UsageStats:
    """How many workout exercises reference a catalog entry."""

    used_as_original: int
    used_as_replacement: int

    @property
    def total_usage(self) -> int:
        return self.used_as_original + self.used_as_replacement

    @property
    def is_used(self) -> bool:
        return self.total_usage > 0

    def to_dict(self) -> dict:
        return {
            "used_as_original": self.used_as_original,
            "used_as_replacement": self.used_as_replacement,
            "total_usage": self.total_usage,
            "is_used": self.is_used,
        }


@dataclass
class HardDeleted:
    """The exercise was never referenced and its row is gone."""

    exercise_id: int
    reason: str = "Exercise was never used in workouts. Permanently deleted."

    def to_dict(self) -> dict:
        return {
            "deletion_type": "hard",
            "reason": self.reason,
            "exercise": None,
        }


@dataclass
class SoftDeleted:
    """The exercise is referenced by workouts; its row was only flagged."""

    exercise: Exercise
    reason: str

    def to_dict(self) -> dict:
        return {
            "deletion_type": "soft",
            "reason": self.reason,
            "exercise": self.exercise.to_dict(),
        }


DeleteOutcome = HardDeleted | SoftDeleted


# Global catalog seeded by ``lift-ledger init``
DEFAULT_EXERCISES: list[Exercise] = [
    # Chest
    Exercise("Bench Press", "Chest", "Barbell", "Classic chest exercise with barbell"),
    Exercise("Incline Bench Press", "Chest", "Barbell", "Upper chest focused bench press"),
    Exercise("Dumbbell Bench Press", "Chest", "Dumbbells", "Chest exercise with dumbbells"),
    Exercise("Push-ups", "Chest", "Bodyweight", "Bodyweight chest exercise"),
    Exercise("Chest Dips", "Chest", "Bodyweight", "Bodyweight chest and tricep exercise"),
    Exercise("Chest Fly", "Chest", "Dumbbells", "Isolation exercise for chest"),
    # Back
    Exercise("Deadlift", "Back", "Barbell", "Full body compound movement"),
    Exercise("Pull-ups", "Back", "Bodyweight", "Bodyweight back exercise"),
    Exercise("Bent-over Row", "Back", "Barbell", "Back exercise with barbell"),
    Exercise("Lat Pulldown", "Back", "Cable Machine", "Cable back exercise"),
    Exercise("T-Bar Row", "Back", "T-Bar", "Back exercise with T-bar"),
    Exercise("Seated Cable Row", "Back", "Cable Machine", "Seated rowing exercise"),
    # Legs
    Exercise("Squat", "Legs", "Barbell", "King of leg exercises"),
    Exercise("Front Squat", "Legs", "Barbell", "Quad-focused squat variation"),
    Exercise("Leg Press", "Legs", "Machine", "Machine-based leg exercise"),
    Exercise("Lunges", "Legs", "Bodyweight", "Single-leg exercise"),
    Exercise("Bulgarian Split Squat", "Legs", "Bodyweight", "Single-leg squat variation"),
    Exercise("Leg Curl", "Legs", "Machine", "Hamstring isolation exercise"),
    Exercise("Leg Extension", "Legs", "Machine", "Quadriceps isolation exercise"),
    Exercise("Calf Raises", "Legs", "Bodyweight", "Calf muscle exercise"),
    # Shoulders
    Exercise("Overhead Press", "Shoulders", "Barbell", "Standing shoulder press"),
    Exercise("Dumbbell Shoulder Press", "Shoulders", "Dumbbells", "Seated shoulder press with dumbbells"),
    Exercise("Lateral Raises", "Shoulders", "Dumbbells", "Side deltoid isolation"),
    Exercise("Front Raises", "Shoulders", "Dumbbells", "Front deltoid isolation"),
    Exercise("Rear Delt Fly", "Shoulders", "Dumbbells", "Rear deltoid isolation"),
    Exercise("Upright Row", "Shoulders", "Barbell", "Shoulder and trap exercise"),
    # Arms
    Exercise("Bicep Curls", "Arms", "Dumbbells", "Basic bicep exercise"),
    Exercise("Hammer Curls", "Arms", "Dumbbells", "Neutral grip bicep exercise"),
    Exercise("Tricep Dips", "Arms", "Bodyweight", "Bodyweight tricep exercise"),
    Exercise("Close-Grip Bench Press", "Arms", "Barbell", "Tricep-focused bench press"),
    Exercise("Tricep Pushdown", "Arms", "Cable Machine", "Cable tricep exercise"),
    Exercise("Preacher Curls", "Arms", "Barbell", "Isolated bicep exercise"),
    # Core
    Exercise("Plank", "Core", "Bodyweight", "Core stability exercise"),
    Exercise("Crunches", "Core", "Bodyweight", "Basic abdominal exercise"),
    Exercise("Russian Twists", "Core", "Bodyweight", "Oblique exercise"),
    Exercise("Mountain Climbers", "Core", "Bodyweight", "Dynamic core exercise"),
    Exercise("Dead Bug", "Core", "Bodyweight", "Core stability exercise"),
    Exercise("Hanging Leg Raises", "Core", "Pull-up Bar", "Advanced core exercise"),
    # Cardio
    Exercise("Burpees", "Cardio", "Bodyweight", "Full body cardio exercise"),
    Exercise("Jumping Jacks", "Cardio", "Bodyweight", "Basic cardio exercise"),
    Exercise("High Knees", "Cardio", "Bodyweight", "Cardio warm-up exercise"),
    Exercise("Treadmill Running", "Cardio", "Treadmill", "Machine-based cardio"),
]
