"""Workout streaks and the yearly activity heatmap."""

from datetime import date, datetime, timedelta
from pathlib import Path

from ..db.engine import get_db_path
from ..db.repositories import WorkoutRepository
from ..models.workout import WorkoutLog
from .analytics import week_start

HEATMAP_DAYS = 365

# (minimum sets, intensity), checked in order
INTENSITY_THRESHOLDS = [(20, 4), (15, 3), (10, 2), (1, 1)]


def is_qualifying(log: WorkoutLog) -> bool:
    """A workout counts once it has a set with reps and weight."""
    return any(
        s.reps > 0 and s.weight_kg > 0
        for we in log.exercises
        for s in we.sets
    )


def current_streak(workout_days: set[date], today: date) -> int:
    """Consecutive workout days ending today, or yesterday if today is empty."""
    day = today
    if day not in workout_days:
        day = today - timedelta(days=1)
        if day not in workout_days:
            return 0

    streak = 0
    while day in workout_days:
        streak += 1
        day -= timedelta(days=1)
    return streak


def longest_streak(workout_days: set[date]) -> int:
    if not workout_days:
        return 0

    days = sorted(workout_days)
    longest = run = 1
    for previous, current in zip(days, days[1:]):
        if (current - previous).days == 1:
            run += 1
        else:
            run = 1
        longest = max(longest, run)
    return longest


def intensity_for(total_sets: int) -> int:
    for minimum, intensity in INTENSITY_THRESHOLDS:
        if total_sets >= minimum:
            return intensity
    return 0


def heatmap(logs: list[WorkoutLog], today: date, days: int = HEATMAP_DAYS) -> list[dict]:
    """One cell per day for the trailing ``days`` days, oldest first."""
    by_day: dict[date, dict] = {}
    for log in logs:
        cell = by_day.setdefault(log.date.date(), {"count": 0, "total_sets": 0})
        cell["count"] += 1
        cell["total_sets"] += sum(
            1
            for we in log.exercises
            for s in we.sets
            if s.reps > 0 and s.weight_kg >= 0
        )

    cells = []
    for offset in range(days - 1, -1, -1):
        day = today - timedelta(days=offset)
        cell = by_day.get(day, {"count": 0, "total_sets": 0})
        cells.append(
            {
                "date": day.isoformat(),
                "count": cell["count"],
                "total_sets": cell["total_sets"],
                "intensity": intensity_for(cell["total_sets"]),
            }
        )
    return cells


def calculate_streak(logs: list[WorkoutLog], today: date) -> dict:
    """Streak summary and heatmap over a user's qualifying workouts."""
    qualifying = [log for log in logs if is_qualifying(log)]
    workout_days = {log.date.date() for log in qualifying}
    this_week_start = week_start(today)

    return {
        "current_streak": current_streak(workout_days, today),
        "longest_streak": longest_streak(workout_days),
        "total_workouts": len(qualifying),
        "this_week_workouts": sum(1 for log in qualifying if log.date.date() >= this_week_start),
        "heatmap_data": heatmap(qualifying, today),
    }


class StreakService:
    def __init__(self, db_path: Path | None = None):
        self.db_path = db_path or get_db_path()
        self.workouts = WorkoutRepository(self.db_path)

    async def get_streak(self, user_id: str, today: date | None = None) -> dict:
        logs = await self.workouts.list_logs(user_id=user_id)
        return calculate_streak(logs, today or datetime.now().date())
