"""Item service: create, read and list items with visibility rules applied."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from rpg_server.api.errors import err
from rpg_server.api.permissions import (
    AuthenticatedUser,
    can_create_resource,
    enforce_view_permission,
    visibility_scope,
)
from rpg_server.db import items_repo
from rpg_server.services.masking import mask_entities, mask_entity

logger = logging.getLogger(__name__)


async def create_item(data: dict[str, Any], user: AuthenticatedUser | None) -> dict[str, Any]:
    """Create an item owned by ``user``; names are unique."""
    if not can_create_resource(user):
        raise err("UNAUTHORIZED", "Login required")
    created = await asyncio.to_thread(items_repo.create_item, data, owner_id=user.id)
    if created is None:
        raise err("RESOURCE_CONFLICT", "Item with this name already exists")
    logger.info("User %s created item %s (%s)", user.id, created["id"], created["slot"])
    return created


async def get_item(item_id: str, user: AuthenticatedUser | None) -> dict[str, Any]:
    item = await asyncio.to_thread(items_repo.find_by_id, item_id)
    if item is None:
        raise err("RESOURCE_NOT_FOUND", "Item not found")
    enforce_view_permission(user, item, "Item not found")
    return mask_entity(item, user)


async def list_items(
    user: AuthenticatedUser | None,
    *,
    slot: str | None = None,
    limit: int = 20,
    offset: int = 0,
) -> list[dict[str, Any]]:
    """List items in the caller's visibility scope, optionally by slot."""
    scope = visibility_scope(user)
    rows = await asyncio.to_thread(
        items_repo.find_many,
        visibilities=scope.visibilities,
        owner_id=scope.owner_id,
        slot=slot,
        limit=limit,
        offset=offset,
    )
    return mask_entities(rows, user)
