"""Character service: create, read, list and delete with visibility rules applied."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from rpg_server.api.errors import err
from rpg_server.api.permissions import (
    AuthenticatedUser,
    can_create_resource,
    can_view_resource,
    enforce_modify_permission,
    enforce_view_permission,
    visibility_scope,
)
from rpg_server.db import characters_repo, equipment_repo, items_repo
from rpg_server.services.masking import (
    EQUIPMENT_SLOT_NAMES,
    mask_entities,
    mask_entity,
    mask_equipment_slots,
)

logger = logging.getLogger(__name__)


async def create_character(data: dict[str, Any], user: AuthenticatedUser | None) -> dict[str, Any]:
    """Create a character owned by ``user``; names are unique."""
    if not can_create_resource(user):
        raise err("UNAUTHORIZED", "Login required")
    created = await asyncio.to_thread(characters_repo.create_character, data, owner_id=user.id)
    if created is None:
        raise err("RESOURCE_CONFLICT", "Character with this name already exists")
    logger.info("User %s created character %s (%s)", user.id, created["id"], created["name"])
    return created


async def _expand_equipment(character_id: str, user: AuthenticatedUser | None) -> dict[str, Any]:
    """Resolve equipped item ids into nested items the viewer is allowed to see."""
    record = await asyncio.to_thread(equipment_repo.find_by_character_id, character_id)
    bundle: dict[str, Any] = dict.fromkeys(EQUIPMENT_SLOT_NAMES)
    if record is None:
        return bundle

    ids = [record[column] for column in EQUIPMENT_SLOT_NAMES.values() if record[column]]
    items = await asyncio.to_thread(items_repo.find_by_ids, ids)
    for slot, column in EQUIPMENT_SLOT_NAMES.items():
        item = items.get(record[column]) if record[column] else None
        if item is not None and not can_view_resource(user, item):
            item = None
        bundle[slot] = item
    return mask_equipment_slots(bundle, user, null_if_not_viewable=True)


async def get_character(
    character_id: str,
    user: AuthenticatedUser | None,
    *,
    expanded: bool = False,
) -> dict[str, Any]:
    """
    Return a character the caller may view.

    Args:
        character_id: Character id.
        user: Caller, or None.
        expanded: Embed equipped items under ``equipment``.

    Raises:
        AppError(RESOURCE_NOT_FOUND): Missing or not viewable.
    """
    character = await asyncio.to_thread(characters_repo.find_by_id, character_id)
    if character is None:
        raise err("RESOURCE_NOT_FOUND", "Character not found")
    enforce_view_permission(user, character, "Character not found")

    result = mask_entity(character, user)
    if expanded:
        result = {**result, "equipment": await _expand_equipment(character_id, user)}
    return result


async def list_characters(
    user: AuthenticatedUser | None,
    *,
    limit: int = 20,
    offset: int = 0,
) -> list[dict[str, Any]]:
    """List characters in the caller's visibility scope, HIDDEN ones masked."""
    scope = visibility_scope(user)
    rows = await asyncio.to_thread(
        characters_repo.find_many,
        visibilities=scope.visibilities,
        owner_id=scope.owner_id,
        limit=limit,
        offset=offset,
    )
    return mask_entities(rows, user)


async def delete_character(character_id: str, user: AuthenticatedUser | None) -> None:
    """Delete a character and, through the foreign key, its equipment."""
    found = await asyncio.to_thread(characters_repo.find_by_id_with_owner_role, character_id)
    if found is None:
        raise err("RESOURCE_NOT_FOUND", "Character not found")
    character = {**found["character"], "owner_role": found["owner_role"]}
    enforce_modify_permission(
        user,
        character,
        "Character not found",
        "You do not have permission to delete this character",
    )
    await asyncio.to_thread(characters_repo.delete_character, character_id)
    logger.info("User %s deleted character %s", user.id if user else None, character_id)
