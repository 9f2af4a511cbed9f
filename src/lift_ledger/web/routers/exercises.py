"""Exercise catalog routes."""

from pathlib import Path

from fastapi import APIRouter, Depends, Query

from ...db.repositories import ExerciseRepository
from ...models.user import User
from ...services.exercise_admin import ExerciseAdminService
from ...services.search import MIN_QUERY_LENGTH, SearchCache, SearchService
from ..deps import get_current_user, get_db_path, get_search_cache
from ..schemas import CreateExerciseRequest

router = APIRouter(prefix="/exercises", tags=["exercises"])


@router.get("")
async def list_exercises(
    user: User = Depends(get_current_user),
    db_path: Path = Depends(get_db_path),
):
    """Global exercises plus the caller's own."""
    exercises = await ExerciseRepository(db_path).list_visible(user.id)
    return {"exercises": [e.to_dict() for e in exercises]}


@router.post("", status_code=201)
async def create_custom_exercise(
    payload: CreateExerciseRequest,
    user: User = Depends(get_current_user),
    db_path: Path = Depends(get_db_path),
    cache: SearchCache = Depends(get_search_cache),
):
    """Create a custom exercise owned by the caller."""
    service = ExerciseAdminService(db_path, cache=cache)
    exercise, _ = await service.create_exercise(user, payload.to_exercise(user_id=user.id))
    return {"message": "Exercise created successfully", "exercise": exercise.to_dict()}


@router.get("/global")
async def list_global_exercises(
    user: User = Depends(get_current_user),
    db_path: Path = Depends(get_db_path),
):
    """All global exercises, soft-deleted ones included."""
    exercises = await ExerciseRepository(db_path).list_global(include_deleted=True)
    return {"exercises": [e.to_dict() for e in exercises]}


@router.get("/my")
async def list_my_exercises(
    user: User = Depends(get_current_user),
    db_path: Path = Depends(get_db_path),
):
    """The caller's custom exercises."""
    exercises = await ExerciseRepository(db_path).list_custom(user.id)
    return {"exercises": [e.to_dict() for e in exercises]}


@router.get("/search")
async def search_exercises(
    q: str = "",
    limit: int = Query(10, ge=1, le=100),
    user: User = Depends(get_current_user),
    db_path: Path = Depends(get_db_path),
    cache: SearchCache = Depends(get_search_cache),
):
    """Search visible exercises, best match first."""
    if len(q.strip()) < MIN_QUERY_LENGTH:
        return {"exercises": [], "query": q, "total": 0, "message": "Query too short"}

    results = await SearchService(db_path, cache=cache).search(user.id, q, limit=limit)
    return {
        "exercises": [e.to_dict() for e in results],
        "query": q,
        "total": len(results),
    }
