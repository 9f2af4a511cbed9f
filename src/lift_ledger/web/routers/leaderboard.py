"""Cross-user leaderboards built from snapshotted workout sets."""

from pathlib import Path

from fastapi import APIRouter, Depends, Query

from ...config import get_settings
from ...models.user import User
from ...services.leaderboard import LeaderboardService
from ..deps import get_current_user, get_db_path

router = APIRouter(prefix="/leaderboard", tags=["leaderboard"])


@router.get("/exercise-weights")
async def exercise_weights(
    exercise: str | None = None,
    limit: int | None = Query(None, ge=1, le=100),
    user: User = Depends(get_current_user),
    db_path: Path = Depends(get_db_path),
):
    """Rank lifters on one exercise, or list the most-logged exercises."""
    service = LeaderboardService(db_path)
    limit = limit or get_settings().leaderboard_limit
    if exercise:
        return await service.exercise_leaderboard(exercise, limit=limit)
    return await service.top_exercises(limit=limit)
