"""Live weekly schedule views and the day swap."""

from datetime import datetime
from pathlib import Path

from fastapi import APIRouter, Depends

from ...models.schedule import DAY_NAMES
from ...models.user import User
from ...services.schedule import ScheduleService
from ..deps import get_current_user, get_db_path
from ..schemas import SwapDaysRequest

router = APIRouter(prefix="/schedule", tags=["schedule"])


def get_schedule_service(db_path: Path = Depends(get_db_path)) -> ScheduleService:
    return ScheduleService(db_path)


def _day_response(day_of_week: int, schedule) -> dict:
    return {
        "day_of_week": day_of_week,
        "day_name": DAY_NAMES[day_of_week],
        "schedule": schedule.to_dict() if schedule else None,
    }


@router.get("/today")
async def get_today(
    user: User = Depends(get_current_user),
    service: ScheduleService = Depends(get_schedule_service),
):
    """Today's plan (0 = Sunday)."""
    today = (datetime.now().weekday() + 1) % 7
    return _day_response(today, await service.get_day(today))


@router.get("/day/{day_of_week}")
async def get_day(
    day_of_week: int,
    user: User = Depends(get_current_user),
    service: ScheduleService = Depends(get_schedule_service),
):
    """Plan for a single day."""
    schedule = await service.get_day(day_of_week)
    return _day_response(day_of_week, schedule)


@router.get("/weekly")
async def get_weekly(
    user: User = Depends(get_current_user),
    service: ScheduleService = Depends(get_schedule_service),
):
    """Every day of the week that exists."""
    schedules = await service.get_weekly_schedule()
    return {"schedule": [s.to_dict() for s in schedules]}


@router.get("/status")
async def get_status(
    user: User = Depends(get_current_user),
    service: ScheduleService = Depends(get_schedule_service),
):
    """Whether all seven days have been set up."""
    return await service.get_status()


@router.post("/swap-days")
async def swap_days(
    payload: SwapDaysRequest,
    user: User = Depends(get_current_user),
    service: ScheduleService = Depends(get_schedule_service),
):
    """Exchange two days' names and exercises."""
    result = await service.swap_days(user, payload.from_day, payload.to_day, payload.user_id)
    return {"success": True, "message": "Days swapped successfully", **result}
