"""Catalog search with relevance ranking and a small result cache."""

import logging
from pathlib import Path

from ..db.engine import get_db_path
from ..db.repositories import ExerciseRepository
from ..models.exercises import Exercise

logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 2


class SearchCache:
    """Bounded cache of search results; evicts the oldest entry first."""

    def __init__(self, max_size: int = 50):
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self.max_size = max_size
        self._entries: dict[tuple, list[Exercise]] = {}

    def get(self, key: tuple) -> list[Exercise] | None:
        return self._entries.get(key)

    def put(self, key: tuple, value: list[Exercise]) -> None:
        if key not in self._entries and len(self._entries) >= self.max_size:
            oldest = next(iter(self._entries))
            del self._entries[oldest]
        self._entries[key] = value

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: tuple) -> bool:
        return key in self._entries


def matches_all_words(exercise: Exercise, words: list[str]) -> bool:
    """Every word appears in the name, description, muscle group or equipment."""
    fields = [
        exercise.name.lower(),
        (exercise.description or "").lower(),
        exercise.muscle_group.lower(),
        exercise.equipment.lower(),
    ]
    return all(any(word in value for value in fields) for word in words)


def relevance_score(exercise: Exercise, term: str, words: list[str]) -> int:
    """Score an exercise against the lower-cased query and its words."""
    name = exercise.name.lower()
    description = (exercise.description or "").lower()
    muscle = exercise.muscle_group.lower()
    equipment = exercise.equipment.lower()

    score = 0
    if name == term:
        score += 100
    elif name.startswith(term):
        score += 80
    elif term in name:
        score += 60

    if muscle == term:
        score += 40
    elif term in muscle:
        score += 20

    if equipment == term:
        score += 30
    elif term in equipment:
        score += 15

    if term in description:
        score += 10

    for word in words:
        if word in name:
            score += 5
        if word in muscle:
            score += 3
        if word in equipment:
            score += 2
        if word in description:
            score += 1

    if exercise.is_global:
        score += 1

    return score


class SearchService:
    """Searches the exercises visible to a user."""

    def __init__(self, db_path: Path | None = None, cache: SearchCache | None = None):
        self.db_path = db_path or get_db_path()
        self.exercises = ExerciseRepository(self.db_path)
        self.cache = cache if cache is not None else SearchCache()

    async def search(self, user_id: str, query: str, limit: int = 10) -> list[Exercise]:
        """Matching exercises, best first. Short queries match nothing."""
        term = query.strip().lower()
        if len(term) < MIN_QUERY_LENGTH:
            return []

        key = (user_id, term, limit)
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("Search cache hit for %r", term)
            return cached

        words = term.split()
        candidates = sorted(await self.exercises.list_visible(user_id), key=lambda e: e.name)
        matched = [e for e in candidates if matches_all_words(e, words)][:limit]
        results = sorted(matched, key=lambda e: relevance_score(e, term, words), reverse=True)

        self.cache.put(key, results)
        return results
