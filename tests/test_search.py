"""Tests for exercise search and its cache."""

import pytest

from lift_ledger.db import ExerciseRepository
from lift_ledger.models.exercises import Exercise
from lift_ledger.services.exercise_admin import ExerciseAdminService
from lift_ledger.services.search import (
    SearchCache,
    SearchService,
    matches_all_words,
    relevance_score,
)


class TestSearchCache:
    """Tests for the bounded FIFO cache."""

    def test_evicts_oldest(self):
        cache = SearchCache(max_size=2)
        cache.put(("u", "a", 10), [])
        cache.put(("u", "b", 10), [])
        cache.put(("u", "c", 10), [])

        assert len(cache) == 2
        assert ("u", "a", 10) not in cache
        assert ("u", "c", 10) in cache

    def test_overwrite_does_not_evict(self):
        cache = SearchCache(max_size=2)
        cache.put(("u", "a", 10), [])
        cache.put(("u", "b", 10), [])
        cache.put(("u", "a", 10), [])
        assert len(cache) == 2
        assert ("u", "b", 10) in cache

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            SearchCache(max_size=0)


class TestScoring:
    """Tests for matching and relevance."""

    def test_every_word_must_match(self):
        exercise = Exercise("Incline Bench Press", "Chest", "Barbell")
        assert matches_all_words(exercise, ["incline", "barbell"])
        assert not matches_all_words(exercise, ["incline", "cable"])

    def test_exact_name_beats_prefix(self):
        """Test exact name, prefix and contains are ranked in that order."""
        exact = Exercise("Squat", "Legs", "Barbell")
        prefix = Exercise("Squat Jumps", "Legs", "Bodyweight")
        contains = Exercise("Front Squat", "Legs", "Barbell")
        scores = [relevance_score(e, "squat", ["squat"]) for e in (exact, prefix, contains)]
        assert scores == sorted(scores, reverse=True)
        assert scores[0] == 100 + 5 + 1

    def test_global_bonus(self):
        mine = Exercise("Squat", "Legs", "Barbell", user_id="u1")
        shared = Exercise("Squat", "Legs", "Barbell")
        assert relevance_score(shared, "squat", ["squat"]) - relevance_score(mine, "squat", ["squat"]) == 1


class TestSearchService:
    """Tests for SearchService against a database."""

    async def test_short_query(self, seeded_db_path):
        assert await SearchService(seeded_db_path).search("user-1", " a ") == []

    async def test_ranked_results(self, seeded_db_path):
        """Test best match first."""
        results = await SearchService(seeded_db_path).search("user-1", "squat")
        assert results[0].name == "Squat"

    async def test_visibility(self, db_path, make_exercise):
        """Test other users' and deleted exercises are hidden."""
        await make_exercise("My Press", user_id="user-1")
        await make_exercise("Their Press", user_id="user-2")
        old = await make_exercise("Old Press")
        await ExerciseRepository(db_path).soft_delete(old.id, "admin-1")

        names = [e.name for e in await SearchService(db_path).search("user-1", "press")]
        assert names == ["My Press"]

    async def test_cache_cleared_on_mutation(self, db_path, make_exercise, admin):
        """Test catalog changes invalidate cached results."""
        cache = SearchCache()
        await make_exercise("Bench Press")
        service = SearchService(db_path, cache=cache)

        assert len(await service.search("user-1", "bench")) == 1
        assert ("user-1", "bench", 10) in cache

        await ExerciseAdminService(db_path, cache=cache).create_exercise(
            admin, Exercise("Bench Dips", "Triceps", "Bench")
        )
        assert len(cache) == 0
        assert len(await service.search("user-1", "bench")) == 2
