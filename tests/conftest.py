"""
Shared pytest fixtures for the RPG server test suite.

This module provides fixtures that are automatically available to all test files:
- Temporary test databases
- Seeded accounts of every role
- In-memory ``AuthenticatedUser`` callers for pure policy tests
- FastAPI TestClient instances and bearer-header helpers

Every fixture is function-scoped so tests never share database state.
"""

import shutil
import tempfile
from collections.abc import Callable, Generator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from rpg_server.api.permissions import AuthenticatedUser
from rpg_server.config import use_test_database
from rpg_server.db import characters_repo, items_repo, users_repo
from rpg_server.db.schema import init_database
from tests.constants import TEST_EMAILS, TEST_PASSWORD

# ============================================================================
# DATABASE FIXTURES
# ============================================================================


@pytest.fixture(scope="function")
def temp_db_path() -> Generator[Path, None, None]:
    """
    Create a temporary database file for testing.

    Uses the config system's ``use_test_database`` context manager so every
    repository call inside the test hits this file.

    Yields:
        Path to temporary database file
    """
    temp_dir = tempfile.mkdtemp()
    temp_db = Path(temp_dir) / "test_rpg.db"

    with use_test_database(temp_db):
        yield temp_db

    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture(scope="function")
def test_db(temp_db_path: Path) -> Generator[None, None, None]:
    """Initialize a test database with schema but no data."""
    init_database(skip_admin=True)
    yield


@pytest.fixture(scope="function")
def db_with_users(test_db) -> dict[str, dict]:
    """
    Create one account per role plus a second regular user.

    Keys: ``ADMIN``, ``MODERATOR``, ``USER`` and ``OTHER`` (a second USER).
    All accounts use ``TEST_PASSWORD``.

    Returns:
        Dict mapping the key to the created user row
    """
    users = {}
    for key, email in TEST_EMAILS.items():
        role = "USER" if key == "OTHER" else key
        users[key] = users_repo.create_user(email, key.title(), TEST_PASSWORD, role=role)
    return users


# ============================================================================
# CALLER FIXTURES (no database)
# ============================================================================


@pytest.fixture
def admin_user() -> AuthenticatedUser:
    return AuthenticatedUser(id="admin-1", email="admin@example.com", role="ADMIN")


@pytest.fixture
def moderator_user() -> AuthenticatedUser:
    return AuthenticatedUser(id="mod-1", email="mod@example.com", role="MODERATOR")


@pytest.fixture
def owner_user() -> AuthenticatedUser:
    return AuthenticatedUser(id="owner-1", email="owner@example.com", role="USER")


@pytest.fixture
def other_user() -> AuthenticatedUser:
    return AuthenticatedUser(id="other-1", email="other@example.com", role="USER")


# ============================================================================
# DOMAIN DATA FIXTURES
# ============================================================================


@pytest.fixture
def make_item(test_db) -> Callable[..., dict]:
    """
    Factory creating items in the test database.

    Example:
        helm = make_item("Helm", slot="HEAD")
        greatsword = make_item("Greatsword", slot="TWO_HANDS")
    """
    counter = {"n": 0}

    def _make(name: str | None = None, *, owner_id: str | None = None, **fields) -> dict:
        counter["n"] += 1
        data = {"name": name or f"Item {counter['n']}", **fields}
        item = items_repo.create_item(data, owner_id=owner_id)
        assert item is not None
        return item

    return _make


@pytest.fixture
def make_character(test_db) -> Callable[..., dict]:
    """Factory creating characters in the test database."""
    counter = {"n": 0}

    def _make(name: str | None = None, *, owner_id: str | None = None, **fields) -> dict:
        counter["n"] += 1
        data = {"name": name or f"Hero {counter['n']}", **fields}
        character = characters_repo.create_character(data, owner_id=owner_id)
        assert character is not None
        return character

    return _make


# ============================================================================
# FASTAPI TEST CLIENT FIXTURES
# ============================================================================


@pytest.fixture(scope="function")
def test_client(test_db) -> TestClient:
    """
    Create a FastAPI TestClient for API endpoint testing.

    The app is built with ``create_app`` so error handlers and every router
    are registered exactly as in production.

    Example:
        def test_health(test_client):
            response = test_client.get("/health")
            assert response.status_code == 200
    """
    from rpg_server.api.server import create_app

    return TestClient(create_app())


@pytest.fixture
def auth_headers(test_client: TestClient, db_with_users) -> Callable[[str], dict[str, str]]:
    """
    Log in as one of the seeded accounts and return its bearer header.

    Example:
        headers = auth_headers("USER")
        test_client.get("/auth/me", headers=headers)
    """

    def _login(key: str) -> dict[str, str]:
        response = test_client.post(
            "/auth/login", json={"email": TEST_EMAILS[key], "password": TEST_PASSWORD}
        )
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['data']['sessionId']}"}

    return _login
