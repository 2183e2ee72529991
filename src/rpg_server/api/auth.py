"""Session management and authentication dependencies.

Clients authenticate with ``Authorization: Bearer <session_id>``. Route
handlers depend on one of:

    get_current_user   AuthenticatedUser | None (anonymous allowed)
    require_user       AuthenticatedUser (401 UNAUTHORIZED when anonymous)

A header carrying an unknown or expired session is rejected with
``TOKEN_INVALID`` rather than silently downgraded to anonymous.
"""

from __future__ import annotations

import logging

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from rpg_server.api.errors import err
from rpg_server.api.permissions import AuthenticatedUser, Role, ensure_role
from rpg_server.config import config
from rpg_server.db import sessions_repo

logger = logging.getLogger(__name__)

# auto_error=False so anonymous requests reach the handler and we render our own errors.
bearer = HTTPBearer(auto_error=False)


def resolve_session(session_id: str) -> AuthenticatedUser:
    """
    Resolve a session id to its user and record activity.

    Raises:
        AppError(TOKEN_INVALID): Unknown or expired session.
        AppError(FORBIDDEN): The account is banned.
    """
    row = sessions_repo.get_session_user(session_id)
    if row is None:
        logger.info("Rejected unknown or expired session")
        raise err("TOKEN_INVALID", "Invalid or expired session")
    if row["is_banned"]:
        logger.warning("Banned user %s attempted to use a session", row["id"])
        sessions_repo.remove_session(session_id)
        raise err("FORBIDDEN", "Account is banned")

    ttl = config.session.ttl_minutes if config.session.sliding_expiration else 0
    sessions_repo.touch_session(session_id, ttl_minutes=ttl)
    return AuthenticatedUser(id=row["id"], email=row["email"], role=row["role"], name=row["name"])


def get_session_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer),
) -> str | None:
    """Return the bearer session id, or None when no credentials were sent."""
    if credentials is None or (credentials.scheme or "").lower() != "bearer":
        return None
    return credentials.credentials


def get_current_user(session_id: str | None = Depends(get_session_id)) -> AuthenticatedUser | None:
    """FastAPI dependency: the caller, or None for anonymous requests."""
    if session_id is None:
        return None
    return resolve_session(session_id)


def require_user(user: AuthenticatedUser | None = Depends(get_current_user)) -> AuthenticatedUser:
    """FastAPI dependency: the caller; anonymous requests get 401."""
    if user is None:
        raise err("UNAUTHORIZED", "Login required")
    return user


def require_role(*roles: Role, message: str = "Insufficient permissions"):
    """
    Build a dependency that admits only callers holding one of ``roles``.

    Example:
        @router.get("/admin-only")
        async def admin_only(user=Depends(require_role(Role.ADMIN))): ...
    """

    def dependency(
        user: AuthenticatedUser | None = Depends(get_current_user),
    ) -> AuthenticatedUser:
        ensure_role(user, set(roles), message)
        return user  # type: ignore[return-value]

    return dependency
