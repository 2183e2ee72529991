"""User moderation: listing accounts, banning and role changes.

Route dependencies decide who may call these at all; the checks here decide
which accounts a given moderator may act on (``can_manage_user``).
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from rpg_server.api.errors import err
from rpg_server.api.permissions import AuthenticatedUser, can_manage_user
from rpg_server.db import sessions_repo, users_repo

logger = logging.getLogger(__name__)


async def list_users(*, limit: int = 20, offset: int = 0) -> list[dict[str, Any]]:
    return await asyncio.to_thread(users_repo.list_users, limit=limit, offset=offset)


async def _load_manageable(user_id: str, user: AuthenticatedUser) -> dict[str, Any]:
    target = await asyncio.to_thread(users_repo.get_user_by_id, user_id)
    if target is None:
        raise err("RESOURCE_NOT_FOUND", "User not found")
    if not can_manage_user(user, target):
        raise err("FORBIDDEN", "You do not have permission to manage this user")
    return target


async def set_banned(user_id: str, banned: bool, user: AuthenticatedUser) -> dict[str, Any]:
    """
    Ban or unban an account.

    Banning also ends every session of the account.

    Raises:
        AppError(RESOURCE_NOT_FOUND): No such user.
        AppError(FORBIDDEN): ``user`` may not manage the target.
        AppError(RESOURCE_CONFLICT): The account is already in that state.
    """
    target = await _load_manageable(user_id, user)
    if target["is_banned"] == banned:
        message = "User is already banned" if banned else "User is not banned"
        raise err("RESOURCE_CONFLICT", message)

    await asyncio.to_thread(users_repo.set_user_banned, user_id, banned)
    if banned:
        removed = await asyncio.to_thread(sessions_repo.remove_sessions_for_user, user_id)
        logger.warning("User %s banned %s (%d sessions ended)", user.id, user_id, removed)
    else:
        logger.info("User %s unbanned %s", user.id, user_id)
    return await asyncio.to_thread(users_repo.get_user_by_id, user_id)


async def change_role(user_id: str, role: str, user: AuthenticatedUser) -> dict[str, Any]:
    """Assign ``role`` to an account ``user`` is allowed to manage."""
    target = await _load_manageable(user_id, user)
    if target["role"] != role:
        await asyncio.to_thread(users_repo.set_user_role, user_id, role)
        logger.warning(
            "User %s changed role of %s: %s -> %s", user.id, user_id, target["role"], role
        )
    return await asyncio.to_thread(users_repo.get_user_by_id, user_id)
