"""Request bodies accepted by the JSON API."""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, RootModel

from ..models.exercises import Exercise
from ..models.workout import (
    AddExercise,
    DeleteWorkout,
    EditSets,
    ExerciseInput,
    RemoveExercise,
    SetInput,
    SetUpdate,
    WorkoutEdit,
)

DayOfWeek = Annotated[int, Field(ge=0, le=6)]
EditValue = Annotated[float, Field(ge=0, le=1000)]
EditReps = Annotated[int, Field(ge=0, le=1000)]


# Catalog


class CreateExerciseRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = None
    muscle_group: str = Field(..., min_length=1)
    equipment: str = Field(..., min_length=1)
    video_url: str | None = None
    reference_links: list[str] = Field(default_factory=list)

    def to_exercise(self, user_id: str | None) -> Exercise:
        return Exercise(
            name=self.name.strip(),
            description=self.description or None,
            muscle_group=self.muscle_group,
            equipment=self.equipment,
            video_url=self.video_url or None,
            reference_links=list(self.reference_links),
            user_id=user_id,
        )


class AdminCreateExerciseRequest(CreateExerciseRequest):
    assign_to_days: list[DayOfWeek] = Field(default_factory=list)


class UpdateExerciseRequest(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    description: str | None = None
    muscle_group: str | None = Field(None, min_length=1)
    equipment: str | None = Field(None, min_length=1)
    video_url: str | None = None
    reference_links: list[str] | None = None


# Schedule


class AddScheduleExerciseRequest(BaseModel):
    day_of_week: DayOfWeek
    exercise_id: int
    name: str | None = Field(None, max_length=100)


class ReorderItem(BaseModel):
    id: int
    order: int


class ReorderRequest(BaseModel):
    day_of_week: DayOfWeek
    exercises: list[ReorderItem]


class UpdateDayTypeRequest(BaseModel):
    day_of_week: DayOfWeek
    new_day_name: str = Field(..., min_length=1, max_length=100)


class SwapDaysRequest(BaseModel):
    from_day: DayOfWeek
    to_day: DayOfWeek
    user_id: str = Field(..., min_length=1)


# Workouts


class SetRequest(BaseModel):
    set_number: int
    reps: int = Field(..., ge=0)
    weight_kg: float = Field(..., ge=0)

    def to_input(self) -> SetInput:
        return SetInput(set_number=self.set_number, reps=self.reps, weight_kg=self.weight_kg)


class WorkoutExerciseRequest(BaseModel):
    exercise_id: int
    order: int
    sets: list[SetRequest]
    is_custom: bool = False
    original_exercise_id: int | None = None
    original_exercise_name: str | None = None

    def to_input(self) -> ExerciseInput:
        return ExerciseInput(
            exercise_id=self.exercise_id,
            order=self.order,
            sets=[s.to_input() for s in self.sets],
            is_custom=self.is_custom,
            original_exercise_id=self.original_exercise_id,
            original_exercise_name=self.original_exercise_name,
        )


class SaveWorkoutRequest(BaseModel):
    day_of_week: DayOfWeek
    exercises: list[WorkoutExerciseRequest]


class EditSetRequest(BaseModel):
    id: int
    reps: EditReps
    weight_kg: EditValue


class NewSetRequest(BaseModel):
    set_number: int
    reps: EditReps
    weight_kg: EditValue


class EditSetsRequest(BaseModel):
    action: Literal["edit_sets"]
    workout_log_id: int
    workout_exercise_id: int
    sets: list[EditSetRequest]

    def to_edit(self) -> WorkoutEdit:
        return EditSets(
            workout_log_id=self.workout_log_id,
            workout_exercise_id=self.workout_exercise_id,
            sets=[SetUpdate(id=s.id, reps=s.reps, weight_kg=s.weight_kg) for s in self.sets],
        )


class AddExerciseRequest(BaseModel):
    action: Literal["add_exercise"]
    workout_log_id: int
    exercise_id: int
    sets: list[NewSetRequest]

    def to_edit(self) -> WorkoutEdit:
        return AddExercise(
            workout_log_id=self.workout_log_id,
            exercise_id=self.exercise_id,
            sets=[
                SetInput(set_number=s.set_number, reps=s.reps, weight_kg=s.weight_kg)
                for s in self.sets
            ],
        )


class RemoveExerciseRequest(BaseModel):
    action: Literal["remove_exercise"]
    workout_log_id: int
    workout_exercise_id: int

    def to_edit(self) -> WorkoutEdit:
        return RemoveExercise(
            workout_log_id=self.workout_log_id,
            workout_exercise_id=self.workout_exercise_id,
        )


class DeleteWorkoutRequest(BaseModel):
    action: Literal["delete_workout"]
    workout_log_id: int

    def to_edit(self) -> WorkoutEdit:
        return DeleteWorkout(workout_log_id=self.workout_log_id)


class WorkoutEditRequest(
    RootModel[
        Annotated[
            Union[EditSetsRequest, AddExerciseRequest, RemoveExerciseRequest, DeleteWorkoutRequest],
            Field(discriminator="action"),
        ]
    ]
):
    """One edit, shaped by its ``action``."""

    def to_edit(self) -> WorkoutEdit:
        return self.root.to_edit()
