"""Admin routes for the exercise catalog and the weekly schedule."""

from pathlib import Path

from fastapi import APIRouter, Depends

from ...models.exercises import SoftDeleted
from ...models.user import User
from ...services.exercise_admin import ExerciseAdminService
from ...services.schedule import ScheduleService
from ...services.search import SearchCache
from ..deps import get_current_user, get_db_path, get_search_cache, require_admin
from ..schemas import (
    AddScheduleExerciseRequest,
    AdminCreateExerciseRequest,
    ReorderRequest,
    UpdateDayTypeRequest,
    UpdateExerciseRequest,
)

router = APIRouter(prefix="/admin", tags=["admin"])


def get_exercise_service(
    db_path: Path = Depends(get_db_path),
    cache: SearchCache = Depends(get_search_cache),
) -> ExerciseAdminService:
    return ExerciseAdminService(db_path, cache=cache)


def get_schedule_service(db_path: Path = Depends(get_db_path)) -> ScheduleService:
    return ScheduleService(db_path)


# Exercises


@router.post("/exercises/create", status_code=201)
async def create_global_exercise(
    payload: AdminCreateExerciseRequest,
    admin: User = Depends(require_admin),
    service: ExerciseAdminService = Depends(get_exercise_service),
):
    """Create a global exercise, optionally adding it to schedule days."""
    exercise, assigned_days = await service.create_exercise(
        admin,
        payload.to_exercise(user_id=None),
        assign_to_days=payload.assign_to_days,
    )
    if assigned_days:
        plural = "s" if len(assigned_days) != 1 else ""
        message = f"Global exercise created and assigned to {len(assigned_days)} day{plural}"
    else:
        message = "Global exercise created successfully"
    return {
        "message": message,
        "exercise": {**exercise.to_dict(), "assigned_days": assigned_days},
    }


@router.get("/exercises/{exercise_id}")
async def get_exercise_details(
    exercise_id: int,
    admin: User = Depends(require_admin),
    service: ExerciseAdminService = Depends(get_exercise_service),
):
    """Exercise with usage stats and recent change history."""
    return await service.get_exercise_details(exercise_id)


@router.put("/exercises/{exercise_id}")
async def update_exercise(
    exercise_id: int,
    payload: UpdateExerciseRequest,
    user: User = Depends(get_current_user),
    service: ExerciseAdminService = Depends(get_exercise_service),
):
    """Update an exercise (admins: any; others: their own custom ones)."""
    exercise = await service.update_exercise(user, exercise_id, payload.model_dump())
    return {"message": "Exercise updated successfully", "exercise": exercise.to_dict()}


@router.delete("/exercises/{exercise_id}")
async def delete_exercise(
    exercise_id: int,
    user: User = Depends(get_current_user),
    service: ExerciseAdminService = Depends(get_exercise_service),
):
    """Delete an exercise; referenced ones are only soft-deleted."""
    outcome = await service.delete_exercise(user, exercise_id)
    kind = "soft" if isinstance(outcome, SoftDeleted) else "hard"
    return {"message": f"Exercise {kind} deleted successfully", **outcome.to_dict()}


@router.post("/exercises/{exercise_id}/restore")
async def restore_exercise(
    exercise_id: int,
    user: User = Depends(get_current_user),
    service: ExerciseAdminService = Depends(get_exercise_service),
):
    """Undo a soft delete."""
    exercise = await service.restore_exercise(user, exercise_id)
    return {"message": "Exercise restored successfully", "exercise": exercise.to_dict()}


# Schedule


@router.get("/schedule")
async def get_schedule(
    admin: User = Depends(require_admin),
    service: ScheduleService = Depends(get_schedule_service),
):
    """Every day with every assignment."""
    schedules = await service.get_admin_schedule()
    return {"schedule": [s.to_dict() for s in schedules]}


@router.post("/schedule", status_code=201)
async def add_schedule_exercise(
    payload: AddScheduleExerciseRequest,
    admin: User = Depends(require_admin),
    service: ScheduleService = Depends(get_schedule_service),
):
    """Append an exercise to a day."""
    assignment = await service.add_exercise(
        payload.day_of_week, payload.exercise_id, name=payload.name
    )
    return {"message": "Exercise added to schedule", "schedule_exercise": assignment.to_dict()}


@router.post("/schedule/initialize")
async def initialize_schedule(
    admin: User = Depends(require_admin),
    service: ScheduleService = Depends(get_schedule_service),
):
    """Create any missing days of the default week."""
    created = await service.initialize()
    schedules = await service.get_admin_schedule()
    return {
        "message": "Weekly schedule initialized",
        "created_days": created,
        "schedule": [s.to_dict() for s in schedules],
    }


@router.api_route("/schedule/reorder", methods=["PUT", "POST"])
async def reorder_schedule(
    payload: ReorderRequest,
    admin: User = Depends(require_admin),
    service: ScheduleService = Depends(get_schedule_service),
):
    """Reorder a day's exercises."""
    schedule = await service.reorder(
        payload.day_of_week, [(item.id, item.order) for item in payload.exercises]
    )
    return {"message": "Exercises reordered successfully", "schedule": schedule.to_dict()}


@router.api_route("/schedule/update-day-type", methods=["PUT", "POST"])
async def update_day_type(
    payload: UpdateDayTypeRequest,
    admin: User = Depends(require_admin),
    service: ScheduleService = Depends(get_schedule_service),
):
    """Rename a day."""
    result = await service.rename_day(admin, payload.day_of_week, payload.new_day_name)
    return {
        "message": "Day type updated successfully",
        "schedule": result["schedule"].to_dict(),
        "previous_name": result["previous_name"],
        "new_name": result["new_name"],
        "exercise_count": result["exercise_count"],
    }


@router.delete("/schedule/{assignment_id}")
async def remove_schedule_exercise(
    assignment_id: int,
    admin: User = Depends(require_admin),
    service: ScheduleService = Depends(get_schedule_service),
):
    """Remove an exercise from its day."""
    await service.remove_exercise(assignment_id)
    return {"message": "Exercise removed from schedule"}
