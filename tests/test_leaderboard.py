"""Tests for leaderboard aggregation."""

import aiosqlite
import pytest

from lift_ledger.db import UserRepository
from lift_ledger.models.workout import ExerciseInput, SetInput
from lift_ledger.services.exercise_admin import ExerciseAdminService
from lift_ledger.services.leaderboard import (
    LeaderboardService,
    LiftedSet,
    epley_one_rep_max,
    rank_lifters,
    rank_top_exercises,
)
from lift_ledger.services.workout_logging import WorkoutService


class TestEpley:
    """Tests for the Epley estimate."""

    def test_single_rep(self):
        assert epley_one_rep_max(100, 1) == 100

    def test_multiple_reps(self):
        assert epley_one_rep_max(100, 5) == pytest.approx(116.6667, rel=1e-4)


class TestRankLifters:
    """Tests for the pure single-exercise ranking."""

    def test_heaviest_and_best_estimate_tracked_separately(self):
        """Test heaviest set and best 1RM can come from different sets."""
        sets = [
            LiftedSet("u1", "Ann", reps=1, weight_kg=120),
            LiftedSet("u1", "Ann", reps=10, weight_kg=100),
        ]
        result = rank_lifters("Bench Press", sets, limit=10)
        entry = result["leaderboard"][0]

        assert entry["max_weight"] == 120
        assert entry["max_weight_reps"] == 1
        assert entry["estimated_one_rep_max"] == 133.3
        assert (entry["best_one_rep_max_weight"], entry["best_one_rep_max_reps"]) == (100, 10)
        assert entry["total_sets"] == 2

    def test_ranked_and_truncated(self):
        """Test ranking by estimate and the limit."""
        sets = [
            LiftedSet("u1", "Ann", reps=5, weight_kg=100),
            LiftedSet("u2", "Bo", reps=5, weight_kg=110),
            LiftedSet("u3", "Cy", reps=5, weight_kg=90),
        ]
        result = rank_lifters("Squat", sets, limit=2)

        assert [(e["rank"], e["user_id"]) for e in result["leaderboard"]] == [(1, "u2"), (2, "u1")]
        assert result["total_participants"] == 3
        assert result["leaderboard"][1]["estimated_one_rep_max"] == 116.7

    def test_zero_rep_sets_ignored(self):
        result = rank_lifters("Squat", [LiftedSet("u1", "Ann", reps=0, weight_kg=200)], limit=10)
        assert result["leaderboard"] == []
        assert result["total_participants"] == 0


class TestRankTopExercises:
    """Tests for the top-exercises overview."""

    def test_groups_and_sorts(self):
        rows = [
            {"exercise_name": "Squat", "user_id": "u1", "set_count": 3, "max_weight": 100},
            {"exercise_name": "Squat", "user_id": "u2", "set_count": 2, "max_weight": 140},
            {"exercise_name": "Curl", "user_id": "u1", "set_count": 6, "max_weight": 20},
        ]
        top = rank_top_exercises(rows, limit=10)["top_exercises"]

        assert top[0] == {
            "exercise_name": "Curl",
            "participant_count": 1,
            "total_sets": 6,
            "max_weight_recorded": 20,
        }
        assert top[1]["participant_count"] == 2
        assert top[1]["max_weight_recorded"] == 140

    def test_limit(self):
        rows = [
            {"exercise_name": f"Ex {i}", "user_id": "u1", "set_count": i, "max_weight": 10}
            for i in range(1, 6)
        ]
        top = rank_top_exercises(rows, limit=2)["top_exercises"]
        assert [t["exercise_name"] for t in top] == ["Ex 5", "Ex 4"]


class TestLeaderboardService:
    """Tests for LeaderboardService against a database."""

    async def test_matches_snapshot_name_not_live_name(self, db_path, make_exercise, admin):
        """Test renamed exercises keep their history under the old name."""
        users = UserRepository(db_path)
        await users.upsert("user-1", name="Lee")
        await users.upsert("user-2", email="sam@example.com")
        bench = await make_exercise("Bench Press")

        service = WorkoutService(db_path)
        for user_id, weight in (("user-1", 100), ("user-2", 110)):
            await service.save_workout(
                user_id,
                1,
                [ExerciseInput(exercise_id=bench.id, order=1, sets=[SetInput(1, 5, weight)])],
            )
        await ExerciseAdminService(db_path).update_exercise(admin, bench.id, {"name": "Flat Bench"})

        leaderboard = LeaderboardService(db_path)
        old = await leaderboard.exercise_leaderboard("Bench Press")
        new = await leaderboard.exercise_leaderboard("Flat Bench")

        assert [e["user_name"] for e in old["leaderboard"]] == ["sam@example.com", "Lee"]
        assert new["leaderboard"] == []

    async def test_name_match_is_case_sensitive(self, db_path, make_exercise):
        bench = await make_exercise("Bench Press")
        await WorkoutService(db_path).save_workout(
            "user-1",
            1,
            [ExerciseInput(exercise_id=bench.id, order=1, sets=[SetInput(1, 5, 100)])],
        )
        result = await LeaderboardService(db_path).exercise_leaderboard("bench press")
        assert result["total_participants"] == 0

    async def test_top_exercises(self, db_path, make_exercise):
        squat = await make_exercise("Squat", muscle_group="Legs")
        curl = await make_exercise("Curl", muscle_group="Biceps", equipment="Dumbbells")
        await WorkoutService(db_path).save_workout(
            "user-1",
            3,
            [
                ExerciseInput(exercise_id=squat.id, order=1, sets=[SetInput(1, 5, 100), SetInput(2, 5, 120)]),
                ExerciseInput(exercise_id=curl.id, order=2, sets=[SetInput(1, 10, 15)]),
            ],
        )

        top = (await LeaderboardService(db_path).top_exercises())["top_exercises"]
        assert [(t["exercise_name"], t["total_sets"], t["max_weight_recorded"]) for t in top] == [
            ("Squat", 2, 120),
            ("Curl", 1, 15),
        ]

    async def test_malformed_snapshots_ignored(self, db_path, make_exercise):
        """Test rows whose snapshot fails the shape check are left off both boards."""
        bench = await make_exercise("Bench Press")
        await WorkoutService(db_path).save_workout(
            "user-1",
            1,
            [ExerciseInput(exercise_id=bench.id, order=1, sets=[SetInput(1, 5, 100)])],
        )
        async with aiosqlite.connect(db_path) as db:
            await db.execute(
                "UPDATE workout_exercises SET exercise_snapshot = ?",
                ('{"name": "Bench Press", "version": "one"}',),
            )
            await db.commit()

        leaderboard = LeaderboardService(db_path)
        assert (await leaderboard.exercise_leaderboard("Bench Press"))["total_participants"] == 0
        assert (await leaderboard.top_exercises())["top_exercises"] == []
