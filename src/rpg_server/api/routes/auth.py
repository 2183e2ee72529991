"""Authentication and account endpoints."""

import asyncio
import logging

from fastapi import APIRouter, Depends, Request

from rpg_server.api.auth import get_session_id, require_user
from rpg_server.api.errors import err
from rpg_server.api.models import (
    Envelope,
    LoginRequest,
    LoginResponse,
    MessageOut,
    RegisterRequest,
    UserOut,
    envelope,
)
from rpg_server.api.permissions import AuthenticatedUser
from rpg_server.config import config
from rpg_server.db import sessions_repo, users_repo

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=Envelope[UserOut], status_code=201)
async def register(request: RegisterRequest, http_request: Request):
    """
    Register a new USER account.

    Emails are stored lower-cased so login is case-insensitive.
    """
    email = request.email.strip().lower()
    created = await asyncio.to_thread(
        users_repo.create_user, email, request.name.strip(), request.password
    )
    if created is None:
        raise err("RESOURCE_CONFLICT", "Email is already registered")
    logger.info("Registered user %s", created["id"])
    return envelope(http_request, created)


@router.post("/login", response_model=Envelope[LoginResponse])
async def login(request: LoginRequest, http_request: Request):
    """
    Exchange email and password for a session id.

    Unknown email and wrong password share one error so accounts cannot be
    enumerated.
    """
    email = request.email.strip().lower()
    account = await asyncio.to_thread(users_repo.verify_credentials, email, request.password)
    if account is None:
        logger.info("Failed login for %s", email)
        raise err("INVALID_CREDENTIALS", "Invalid email or password")
    if account["is_banned"]:
        raise err("FORBIDDEN", "Account is banned")

    session_id = await asyncio.to_thread(
        sessions_repo.create_session, account["id"], ttl_minutes=config.session.ttl_minutes
    )
    await asyncio.to_thread(users_repo.update_last_login, account["id"])
    user = await asyncio.to_thread(users_repo.get_user_by_id, account["id"])
    logger.info("User %s logged in", account["id"])
    return envelope(http_request, {"session_id": session_id, "user": user})


@router.post("/logout", response_model=Envelope[MessageOut])
async def logout(
    http_request: Request,
    user: AuthenticatedUser = Depends(require_user),
    session_id: str | None = Depends(get_session_id),
):
    """End the session that authenticated this request."""
    if session_id is not None:
        await asyncio.to_thread(sessions_repo.remove_session, session_id)
    logger.info("User %s logged out", user.id)
    return envelope(http_request, {"message": "Logged out"})


@router.get("/me", response_model=Envelope[UserOut])
async def me(http_request: Request, user: AuthenticatedUser = Depends(require_user)):
    """Return the account behind the current session."""
    account = await asyncio.to_thread(users_repo.get_user_by_id, user.id)
    if account is None:
        raise err("RESOURCE_NOT_FOUND", "User not found")
    return envelope(http_request, account)
