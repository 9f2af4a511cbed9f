"""Workout log models and the edit actions that apply to them."""

from dataclasses import dataclass, field
from datetime import date, datetime

from .exercises import Exercise, ExerciseSnapshot


@dataclass
class ExerciseSet:
    """One set: reps at a weight in kilograms."""

    set_number: int
    reps: int
    weight_kg: float
    workout_exercise_id: int | None = None
    id: int | None = None

    @property
    def volume(self) -> float:
        return self.reps * self.weight_kg

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "set_number": self.set_number,
            "reps": self.reps,
            "weight_kg": self.weight_kg,
        }


@dataclass
class WorkoutExercise:
    """An exercise performed within a workout log.

    ``snapshot`` is the frozen copy of the active exercise (the replacement
    when ``is_replaced``). Rows written before snapshots existed have none;
    for those ``original_exercise``/``replacement_exercise`` hold the live
    catalog rows, loaded only as a fallback.
    """

    workout_log_id: int
    order: int
    snapshot: ExerciseSnapshot | None = None
    original_exercise_id: int | None = None
    replacement_exercise_id: int | None = None
    is_custom: bool = False
    is_replaced: bool = False
    replaced_at: datetime | None = None
    sets: list[ExerciseSet] = field(default_factory=list)
    original_exercise: Exercise | None = None
    replacement_exercise: Exercise | None = None
    id: int | None = None

    def to_dict(self, exercise: Exercise | None = None) -> dict:
        return {
            "id": self.id,
            "workout_log_id": self.workout_log_id,
            "order": self.order,
            "is_custom": self.is_custom,
            "is_replaced": self.is_replaced,
            "replaced_at": self.replaced_at.isoformat() if self.replaced_at else None,
            "original_exercise_id": self.original_exercise_id,
            "replacement_exercise_id": self.replacement_exercise_id,
            "exercise_snapshot": self.snapshot.to_dict() if self.snapshot else None,
            "exercise": exercise.to_dict() if exercise else None,
            "sets": [s.to_dict() for s in self.sets],
        }


@dataclass
class WorkoutLog:
    """One logged session."""

    user_id: str
    date: datetime
    day_of_week: int
    exercises: list[WorkoutExercise] = field(default_factory=list)
    id: int | None = None

    @property
    def calendar_date(self) -> date:
        return self.date.date()


# Inputs to ``save_workout``


@dataclass
class SetInput:
    set_number: int
    reps: int
    weight_kg: float


@dataclass
class ExerciseInput:
    exercise_id: int
    order: int
    sets: list[SetInput]
    is_custom: bool = False
    # Set when the user swapped in ``exercise_id`` for a scheduled exercise
    original_exercise_id: int | None = None
    original_exercise_name: str | None = None


# Edits to saved workouts, one shape per action


@dataclass
class SetUpdate:
    id: int
    reps: int
    weight_kg: float


@dataclass
class EditSets:
    workout_log_id: int
    workout_exercise_id: int
    sets: list[SetUpdate]
    action: str = field(default="edit_sets", init=False)


@dataclass
class AddExercise:
    workout_log_id: int
    exercise_id: int
    sets: list[SetInput]
    action: str = field(default="add_exercise", init=False)


@dataclass
class RemoveExercise:
    workout_log_id: int
    workout_exercise_id: int
    action: str = field(default="remove_exercise", init=False)


@dataclass
class DeleteWorkout:
    workout_log_id: int
    action: str = field(default="delete_workout", init=False)


WorkoutEdit = EditSets | AddExercise | RemoveExercise | DeleteWorkout
