"""
API tests for authentication endpoints (rpg_server/api/routes/auth.py).

Tests cover:
- Registration and duplicate emails
- Login, case-insensitive email, generic credential errors
- Session resolution: missing, unknown and banned sessions
- Logout invalidating the session
"""

import pytest

from rpg_server.db import users_repo
from tests.constants import TEST_EMAILS, TEST_PASSWORD

# ============================================================================
# REGISTER
# ============================================================================


@pytest.mark.api
@pytest.mark.auth
class TestRegister:
    def test_register_creates_user(self, test_client):
        response = test_client.post(
            "/auth/register",
            json={"email": "New@Example.com", "name": "Newbie", "password": TEST_PASSWORD},
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["email"] == "new@example.com"
        assert data["role"] == "USER"
        assert data["isBanned"] is False
        assert "passwordHash" not in data
        assert "password" not in data

    def test_duplicate_email_conflicts(self, test_client, db_with_users):
        response = test_client.post(
            "/auth/register",
            json={"email": TEST_EMAILS["USER"].upper(), "name": "Copy", "password": TEST_PASSWORD},
        )

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "RESOURCE_CONFLICT"

    def test_short_password_rejected(self, test_client):
        response = test_client.post(
            "/auth/register",
            json={"email": "short@example.com", "name": "Short", "password": "abc"},
        )
        assert response.status_code == 400


# ============================================================================
# LOGIN / SESSION
# ============================================================================


@pytest.mark.api
@pytest.mark.auth
class TestLogin:
    def test_login_returns_session_and_user(self, test_client, db_with_users):
        response = test_client.post(
            "/auth/login",
            json={"email": "Player@Example.COM", "password": TEST_PASSWORD},
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["sessionId"]
        assert data["user"]["email"] == TEST_EMAILS["USER"]
        assert data["user"]["lastLogin"] is not None

    @pytest.mark.parametrize(
        ("email", "password"),
        [(TEST_EMAILS["USER"], "wrong-password"), ("ghost@example.com", TEST_PASSWORD)],
    )
    def test_bad_credentials_share_one_error(self, test_client, db_with_users, email, password):
        response = test_client.post("/auth/login", json={"email": email, "password": password})

        assert response.status_code == 401
        error = response.json()["error"]
        assert error["code"] == "INVALID_CREDENTIALS"
        assert error["message"] == "Invalid email or password"

    def test_banned_user_cannot_login(self, test_client, db_with_users):
        users_repo.set_user_banned(db_with_users["USER"]["id"], True)

        response = test_client.post(
            "/auth/login", json={"email": TEST_EMAILS["USER"], "password": TEST_PASSWORD}
        )

        assert response.status_code == 403
        assert response.json()["error"]["message"] == "Account is banned"

    def test_me_returns_current_user(self, test_client, auth_headers):
        response = test_client.get("/auth/me", headers=auth_headers("MODERATOR"))

        assert response.status_code == 200
        assert response.json()["data"]["role"] == "MODERATOR"

    def test_me_requires_login(self, test_client):
        response = test_client.get("/auth/me")

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "UNAUTHORIZED"

    def test_unknown_session_is_token_invalid(self, test_client):
        response = test_client.get("/auth/me", headers={"Authorization": "Bearer not-a-session"})

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "TOKEN_INVALID"

    def test_unknown_session_is_rejected_on_public_routes(self, test_client):
        response = test_client.get("/characters", headers={"Authorization": "Bearer stale"})
        assert response.status_code == 401

    def test_banned_mid_session_is_logged_out(self, test_client, auth_headers, db_with_users):
        headers = auth_headers("USER")
        users_repo.set_user_banned(db_with_users["USER"]["id"], True)

        first = test_client.get("/auth/me", headers=headers)
        second = test_client.get("/auth/me", headers=headers)

        assert first.status_code == 403
        assert second.status_code == 401
        assert second.json()["error"]["code"] == "TOKEN_INVALID"


@pytest.mark.api
@pytest.mark.auth
def test_logout_invalidates_session(test_client, auth_headers):
    headers = auth_headers("USER")

    response = test_client.post("/auth/logout", headers=headers)

    assert response.status_code == 200
    assert response.json()["data"] == {"message": "Logged out"}
    assert test_client.get("/auth/me", headers=headers).status_code == 401


@pytest.mark.api
@pytest.mark.auth
def test_logout_requires_login(test_client):
    assert test_client.post("/auth/logout").status_code == 401
