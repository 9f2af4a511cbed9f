"""Pytest configuration and fixtures."""

import tempfile
from pathlib import Path

import pytest

from lift_ledger.db import ExerciseRepository, UserRepository, init_db, seed_exercises
from lift_ledger.models.exercises import Exercise
from lift_ledger.models.user import Role, User


@pytest.fixture
def temp_db_path():
    """Create a temporary database path."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir) / "test.db"


@pytest.fixture
async def db_path(temp_db_path):
    """An initialized, empty database."""
    await init_db(temp_db_path)
    return temp_db_path


@pytest.fixture
async def seeded_db_path(db_path):
    """An initialized database with the default exercise catalog."""
    await seed_exercises(db_path)
    return db_path


@pytest.fixture
async def admin(db_path):
    """An admin user stored in the database."""
    users = UserRepository(db_path)
    user = await users.upsert("admin-1", name="Ada Admin", email="ada@example.com")
    await users.set_role(user.id, Role.ADMIN)
    return User(id=user.id, name=user.name, email=user.email, role=Role.ADMIN)


@pytest.fixture
async def lifter(db_path):
    """A regular user stored in the database."""
    return await UserRepository(db_path).upsert("user-1", name="Lee Lifter")


@pytest.fixture
async def other_lifter(db_path):
    """A second regular user."""
    return await UserRepository(db_path).upsert("user-2", email="sam@example.com")


@pytest.fixture
def make_exercise(db_path):
    """Factory storing an exercise and returning it with its ID."""
    repo = ExerciseRepository(db_path)

    async def _make(name: str, muscle_group: str = "Chest", equipment: str = "Barbell", **kwargs):
        exercise = Exercise(name=name, muscle_group=muscle_group, equipment=equipment, **kwargs)
        exercise.id = await repo.create(exercise)
        return await repo.get(exercise.id)

    return _make
