"""Weekly schedule model."""

from dataclasses import dataclass, field

from .exercises import Exercise

# Index matches day_of_week (0 = Sunday)
DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]

# Bro split used by ``initialize``
DEFAULT_DAY_NAMES = [
    "Active Recovery (Cardio & Core)",
    "Push Day (Chest, Shoulders, Triceps)",
    "Pull Day (Back, Biceps)",
    "Leg Day",
    "Push Day (Chest, Shoulders, Triceps)",
    "Pull Day (Back, Biceps)",
    "Leg Day",
]


def is_valid_day(day_of_week: int) -> bool:
    return 0 <= day_of_week <= 6


@dataclass
class ScheduleExercise:
    """An exercise assigned to a schedule day at a 1-based position."""

    schedule_id: int
    exercise_id: int
    order: int
    exercise: Exercise | None = None
    id: int | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "schedule_id": self.schedule_id,
            "exercise_id": self.exercise_id,
            "order": self.order,
            "exercise": self.exercise.to_dict() if self.exercise else None,
        }


@dataclass
class WeeklySchedule:
    """One day of the shared weekly plan."""

    day_of_week: int
    name: str
    exercises: list[ScheduleExercise] = field(default_factory=list)
    id: int | None = None

    @property
    def day_name(self) -> str:
        return DAY_NAMES[self.day_of_week]

    def without_deleted(self) -> "WeeklySchedule":
        """Copy with assignments to missing or soft-deleted exercises dropped."""
        return WeeklySchedule(
            id=self.id,
            day_of_week=self.day_of_week,
            name=self.name,
            exercises=[
                se for se in self.exercises
                if se.exercise is not None and not se.exercise.is_deleted
            ],
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "day_of_week": self.day_of_week,
            "day_name": self.day_name,
            "name": self.name,
            "exercises": [se.to_dict() for se in self.exercises],
        }
