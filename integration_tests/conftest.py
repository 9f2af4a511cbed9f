"""Pytest configuration for integration tests."""

import asyncio
import tempfile
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from lift_ledger.db import UserRepository, init_db
from lift_ledger.models.user import Role
from lift_ledger.web import create_app

ADMIN_ID = "admin-1"


# Mark all tests in this directory as integration tests
def pytest_collection_modifyitems(items):
    """Add integration marker to all tests in this directory."""
    for item in items:
        if "integration_tests" in str(item.fspath):
            item.add_marker(pytest.mark.integration)


async def _prepare(db_path: Path) -> None:
    await init_db(db_path)
    users = UserRepository(db_path)
    await users.upsert(ADMIN_ID, name="Ada Admin")
    await users.set_role(ADMIN_ID, Role.ADMIN)


@pytest.fixture
def client():
    """API client over a fresh database with one admin user."""
    with tempfile.TemporaryDirectory() as tmpdir:
        db_path = Path(tmpdir) / "api.db"
        asyncio.run(_prepare(db_path))
        with TestClient(create_app(db_path)) as test_client:
            yield test_client
