"""Per-user training analytics."""

from datetime import date
from pathlib import Path

from fastapi import APIRouter, Depends

from ...errors import ValidationError
from ...models.user import User
from ...services.analytics import AnalyticsService
from ..deps import get_current_user, get_db_path

router = APIRouter(prefix="/analytics", tags=["analytics"])


@router.get("")
async def get_analytics(
    start_date: date | None = None,
    end_date: date | None = None,
    exercise_id: int | None = None,
    exercise_name: str | None = None,
    muscle_group: str | None = None,
    user: User = Depends(get_current_user),
    db_path: Path = Depends(get_db_path),
):
    """Progress, volume, distribution, frequency and records for a date range."""
    if start_date and end_date and start_date > end_date:
        raise ValidationError("start_date must not be after end_date")

    return await AnalyticsService(db_path).get_analytics(
        user.id,
        start_date=start_date,
        end_date=end_date,
        exercise_id=exercise_id,
        exercise_name=exercise_name,
        muscle_group=muscle_group,
    )
