"""
Equipment service: slot validation and the ownership gate around it.

A character wears at most one item per slot. ``validate_slots`` checks a
partial update before it is written:

    1. ``hands_id`` may not be combined with ``right_hand_id``/``left_hand_id``.
    2. The same item may not be placed in both hands.
    3. Every referenced item must exist (looked up concurrently).
    4. Per slot, in canonical order: the item's slot type must match the
       slot, then two-handed items must go in ``hands_id`` and nowhere else
       among the hand slots.

All rule failures are ``VALIDATION_ERROR`` (400), including a missing item:
that is a bad reference inside the request body. A missing or unviewable
character is ``RESOURCE_NOT_FOUND`` (404).
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

from rpg_server.api.errors import err
from rpg_server.api.permissions import (
    AuthenticatedUser,
    Role,
    enforce_modify_permission,
    enforce_view_permission,
    ensure_role,
)
from rpg_server.db import characters_repo, equipment_repo, items_repo
from rpg_server.db.constants import EQUIPMENT_SLOT_COLUMNS

logger = logging.getLogger(__name__)

# ============================================================================
# SLOT TABLES
# ============================================================================

EXPECTED_ITEM_SLOTS: Mapping[str, frozenset[str]] = MappingProxyType(
    {
        "head_id": frozenset({"HEAD"}),
        "face_id": frozenset({"FACE"}),
        "chest_id": frozenset({"CHEST"}),
        "legs_id": frozenset({"LEGS"}),
        "feet_id": frozenset({"FEET"}),
        "hands_id": frozenset({"TWO_HANDS"}),
        "right_hand_id": frozenset({"ONE_HAND"}),
        "left_hand_id": frozenset({"ONE_HAND"}),
        "right_ring_id": frozenset({"RING"}),
        "left_ring_id": frozenset({"RING"}),
        "amulet_id": frozenset({"AMULET"}),
        "belt_id": frozenset({"BELT"}),
        "backpack_id": frozenset({"BACKPACK"}),
        "cloak_id": frozenset({"CLOAK"}),
    }
)

# Wire names used in client-facing messages.
SLOT_JSON_KEYS: Mapping[str, str] = MappingProxyType(
    {
        "head_id": "headId",
        "face_id": "faceId",
        "chest_id": "chestId",
        "legs_id": "legsId",
        "feet_id": "feetId",
        "hands_id": "handsId",
        "right_hand_id": "rightHandId",
        "left_hand_id": "leftHandId",
        "right_ring_id": "rightRingId",
        "left_ring_id": "leftRingId",
        "amulet_id": "amuletId",
        "belt_id": "beltId",
        "backpack_id": "backpackId",
        "cloak_id": "cloakId",
    }
)

SINGLE_HAND_SLOTS = frozenset({"right_hand_id", "left_hand_id"})


def empty_equipment(character_id: str) -> dict[str, Any]:
    """Default equipment for a character that has never equipped anything."""
    record: dict[str, Any] = {"character_id": character_id}
    record.update(dict.fromkeys(EQUIPMENT_SLOT_COLUMNS))
    return record


def _is_two_handed(item: Mapping[str, Any]) -> bool:
    return item["slot"] == "TWO_HANDS" or bool(item.get("is_2_handed"))


def _check_two_hand_misuse(item: Mapping[str, Any], slot: str) -> None:
    two_handed = _is_two_handed(item)
    if two_handed and slot in SINGLE_HAND_SLOTS:
        raise err("VALIDATION_ERROR", "Two-handed item cannot be equipped in a single hand slot")
    if slot == "hands_id" and not two_handed:
        raise err("VALIDATION_ERROR", "handsId requires a two-handed item")


# ============================================================================
# VALIDATION
# ============================================================================


def check_hand_rules(slots: Mapping[str, str | None]) -> None:
    """Reject a two-handed slot combined with a single hand, or one item in both hands."""
    if slots.get("hands_id") and (slots.get("right_hand_id") or slots.get("left_hand_id")):
        raise err("VALIDATION_ERROR", "Cannot combine handsId with individual hand slots")

    right, left = slots.get("right_hand_id"), slots.get("left_hand_id")
    if right and left and right == left:
        raise err("VALIDATION_ERROR", "Cannot equip the same item in both hands")


async def validate_slots(payload: Mapping[str, str | None]) -> Mapping[str, str | None]:
    """
    Validate a partial equipment update.

    Args:
        payload: Slot column -> item id. Absent keys are left unchanged and
            ``None`` clears a slot; neither is looked up.

    Returns:
        ``payload`` unchanged.

    Raises:
        AppError(VALIDATION_ERROR): On the first rule violation.
    """
    check_hand_rules(payload)

    assignments = [
        (slot, payload[slot])
        for slot in EQUIPMENT_SLOT_COLUMNS
        if isinstance(payload.get(slot), str)
    ]
    if not assignments:
        return payload

    unique_ids = list(dict.fromkeys(item_id for _, item_id in assignments))
    fetched = await asyncio.gather(
        *(asyncio.to_thread(items_repo.find_by_id, item_id) for item_id in unique_ids)
    )
    items: dict[str, dict[str, Any]] = {}
    for item_id, item in zip(unique_ids, fetched, strict=True):
        if item is None:
            raise err("VALIDATION_ERROR", f"Item not found: {item_id}")
        items[item_id] = item

    for slot, item_id in assignments:
        item = items[item_id]
        if item["slot"] not in EXPECTED_ITEM_SLOTS[slot]:
            raise err(
                "VALIDATION_ERROR",
                f"Item {item_id} with slot {item['slot']} "
                f"cannot be equipped in {SLOT_JSON_KEYS[slot]}",
            )
        _check_two_hand_misuse(item, slot)

    return payload


# ============================================================================
# SERVICE OPERATIONS
# ============================================================================


async def _load_character(character_id: str) -> dict[str, Any]:
    found = await asyncio.to_thread(characters_repo.find_by_id_with_owner_role, character_id)
    if found is None:
        raise err("RESOURCE_NOT_FOUND", "Character not found")
    return {**found["character"], "owner_role": found["owner_role"]}


async def get_equipment(character_id: str, user: AuthenticatedUser | None) -> dict[str, Any]:
    """Return the character's equipment, or an all-empty default."""
    character = await _load_character(character_id)
    enforce_view_permission(user, character, "Character not found")
    record = await asyncio.to_thread(equipment_repo.find_by_character_id, character_id)
    return record or empty_equipment(character_id)


async def update_equipment(
    character_id: str,
    payload: Mapping[str, str | None],
    user: AuthenticatedUser | None,
) -> dict[str, Any]:
    """
    Validate and persist a partial equipment update.

    The hand rules are checked twice: on the payload alone, then on the
    stored slots with the payload applied. Moving to a two-handed item
    therefore requires clearing both single hands in the same request.

    Raises:
        AppError(RESOURCE_NOT_FOUND): Character missing or not viewable.
        AppError(UNAUTHORIZED): Anonymous caller.
        AppError(FORBIDDEN): Caller may not modify the character.
        AppError(VALIDATION_ERROR): Slot rules violated.
    """
    character = await _load_character(character_id)
    enforce_modify_permission(
        user,
        character,
        "Character not found",
        "You do not have permission to modify this equipment",
    )
    validated = await validate_slots(payload)
    current = await asyncio.to_thread(equipment_repo.find_by_character_id, character_id)
    check_hand_rules({**(current or {}), **validated})
    record = await asyncio.to_thread(equipment_repo.upsert, character_id, validated)
    logger.info(
        "User %s updated equipment of character %s: %s",
        user.id if user else None,
        character_id,
        sorted(validated),
    )
    return record


async def get_stats(user: AuthenticatedUser | None) -> dict[str, int]:
    """
    Equipment usage statistics (ADMIN/MODERATOR only).

    Returns:
        ``total_equipped_characters`` plus one ``<slot>_slot_usage`` count per
        slot, e.g. ``right_hand_slot_usage``.
    """
    ensure_role(
        user,
        {Role.ADMIN, Role.MODERATOR},
        "You do not have permission to view equipment statistics",
    )
    counts = await asyncio.to_thread(equipment_repo.get_stats)
    stats = {"total_equipped_characters": counts["total"]}
    for column in EQUIPMENT_SLOT_COLUMNS:
        stats[f"{column.removesuffix('_id')}_slot_usage"] = counts[column]
    return stats
