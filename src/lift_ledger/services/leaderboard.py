"""Cross-user leaderboards built from snapshot exercise names."""

from dataclasses import dataclass
from pathlib import Path

from ..db.engine import get_db_path
from ..db.repositories import WorkoutRepository
from .analytics import js_round


def epley_one_rep_max(weight: float, reps: int) -> float:
    """Estimated 1RM by Epley: weight * (1 + reps / 30)."""
    if reps == 1:
        return weight
    return weight * (1 + reps / 30)


@dataclass
class LiftedSet:
    """One set with the lifter who performed it."""

    user_id: str
    user_name: str
    reps: int
    weight_kg: float


@dataclass
class LifterStats:
    user_id: str
    user_name: str
    max_weight: float
    max_weight_reps: int
    estimated_one_rep_max: float
    best_one_rep_max_weight: float
    best_one_rep_max_reps: int
    total_sets: int = 0

    def to_dict(self, rank: int) -> dict:
        return {
            "rank": rank,
            "user_id": self.user_id,
            "user_name": self.user_name,
            "max_weight": self.max_weight,
            "max_weight_reps": self.max_weight_reps,
            "estimated_one_rep_max": js_round(self.estimated_one_rep_max, 1),
            "best_one_rep_max_weight": self.best_one_rep_max_weight,
            "best_one_rep_max_reps": self.best_one_rep_max_reps,
            "total_sets": self.total_sets,
        }


def rank_lifters(exercise_name: str, sets: list[LiftedSet], limit: int) -> dict:
    """Rank lifters of one exercise by best estimated 1RM.

    Heaviest weight and best 1RM are tracked separately per lifter and may
    come from different sets. Zero-rep sets are ignored.
    """
    stats: dict[str, LifterStats] = {}
    for s in sorted(sets, key=lambda s: s.weight_kg, reverse=True):
        if s.reps <= 0:
            continue
        one_rep_max = epley_one_rep_max(s.weight_kg, s.reps)

        current = stats.get(s.user_id)
        if current is None:
            current = stats[s.user_id] = LifterStats(
                user_id=s.user_id,
                user_name=s.user_name,
                max_weight=s.weight_kg,
                max_weight_reps=s.reps,
                estimated_one_rep_max=one_rep_max,
                best_one_rep_max_weight=s.weight_kg,
                best_one_rep_max_reps=s.reps,
            )
        current.total_sets += 1

        if s.weight_kg > current.max_weight:
            current.max_weight = s.weight_kg
            current.max_weight_reps = s.reps
        if one_rep_max > current.estimated_one_rep_max:
            current.estimated_one_rep_max = one_rep_max
            current.best_one_rep_max_weight = s.weight_kg
            current.best_one_rep_max_reps = s.reps

    ranked = sorted(stats.values(), key=lambda entry: entry.estimated_one_rep_max, reverse=True)
    return {
        "exercise_name": exercise_name,
        "leaderboard": [entry.to_dict(rank) for rank, entry in enumerate(ranked[:limit], start=1)],
        "total_participants": len(stats),
    }


def rank_top_exercises(rows: list[dict], limit: int) -> dict:
    """Most-trained exercises by total sets, from per-workout-exercise totals.

    Each row carries ``exercise_name``, ``user_id``, ``set_count`` and
    ``max_weight``.
    """
    totals: dict[str, dict] = {}
    for row in rows:
        entry = totals.setdefault(
            row["exercise_name"],
            {"users": set(), "total_sets": 0, "max_weight_recorded": 0},
        )
        entry["users"].add(row["user_id"])
        entry["total_sets"] += row["set_count"]
        if row["max_weight"] > entry["max_weight_recorded"]:
            entry["max_weight_recorded"] = row["max_weight"]

    top = [
        {
            "exercise_name": name,
            "participant_count": len(entry["users"]),
            "total_sets": entry["total_sets"],
            "max_weight_recorded": entry["max_weight_recorded"],
        }
        for name, entry in totals.items()
        if entry["users"]
    ]
    top.sort(key=lambda item: item["total_sets"], reverse=True)
    return {"top_exercises": top[:limit]}


class LeaderboardService:
    """Reads snapshot-keyed sets across all users and ranks them."""

    def __init__(self, db_path: Path | None = None):
        self.db_path = db_path or get_db_path()
        self.workouts = WorkoutRepository(self.db_path)

    async def exercise_leaderboard(self, exercise_name: str, limit: int = 10) -> dict:
        """Leaderboard for one exercise name (exact, case-sensitive)."""
        rows = await self.workouts.sets_for_snapshot_name(exercise_name)
        sets = [
            LiftedSet(
                user_id=row["user_id"],
                user_name=row["user_name"] or row["user_email"] or row["user_id"],
                reps=row["reps"],
                weight_kg=row["weight_kg"],
            )
            for row in rows
        ]
        return rank_lifters(exercise_name, sets, limit)

    async def top_exercises(self, limit: int = 10) -> dict:
        """Overview of the exercises with the most logged sets."""
        rows = await self.workouts.snapshot_exercise_totals()
        return rank_top_exercises(rows, limit)
