"""Workout logging, history, edits and streaks."""

from pathlib import Path

from fastapi import APIRouter, Depends

from ...models.user import User
from ...services.snapshot import SnapshotService
from ...services.streak import StreakService
from ...services.workout_logging import WorkoutService
from ..deps import get_current_user, get_db_path
from ..schemas import SaveWorkoutRequest, WorkoutEditRequest

router = APIRouter(prefix="/workout", tags=["workout"])


@router.post("/save", status_code=201)
async def save_workout(
    payload: SaveWorkoutRequest,
    user: User = Depends(get_current_user),
    db_path: Path = Depends(get_db_path),
):
    """Record a completed session."""
    log_id = await WorkoutService(db_path).save_workout(
        user.id,
        payload.day_of_week,
        [exercise.to_input() for exercise in payload.exercises],
    )
    return {"message": "Workout saved successfully", "workout_log_id": log_id}


@router.get("/history")
async def get_history(
    user: User = Depends(get_current_user),
    db_path: Path = Depends(get_db_path),
):
    """The caller's workouts, newest first, as they were recorded."""
    workouts = await SnapshotService(db_path).get_workout_history(user.id)
    return {"workouts": workouts}


@router.put("/history/edit")
async def edit_history(
    payload: WorkoutEditRequest,
    user: User = Depends(get_current_user),
    db_path: Path = Depends(get_db_path),
):
    """Apply one edit to a past workout."""
    result = await WorkoutService(db_path).apply_edit(user.id, payload.to_edit())
    return {"success": True, **result}


@router.get("/streak")
async def get_streak(
    user: User = Depends(get_current_user),
    db_path: Path = Depends(get_db_path),
):
    """Current and longest streak with a year-long activity heatmap."""
    return await StreakService(db_path).get_streak(user.id)
