"""
Visibility masking for read paths.

HIDDEN entities stay listed but reveal only their non-descriptive fields to
viewers who are neither the owner nor ADMIN/MODERATOR. Descriptive fields are
replaced with ``HIDDEN_SENTINEL``; ids, stats, timestamps, ``visibility`` and
``owner_id`` pass through untouched.

All helpers are copy-on-write: when nothing needs masking they return the
object they were given, so callers can use ``is`` to tell whether masking
happened. They perform no I/O and never raise.
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

from rpg_server.api.permissions import AuthenticatedUser, Visibility, is_privileged

HIDDEN_SENTINEL = "[HIDDEN]"

DESCRIPTIVE_FIELDS: tuple[str, ...] = ("name", "description", "bio", "title")

# Keys of an expanded equipment bundle, in canonical slot order, mapped to the
# item-id column each one is resolved from.
EQUIPMENT_SLOT_NAMES: Mapping[str, str] = MappingProxyType(
    {
        "head": "head_id",
        "face": "face_id",
        "chest": "chest_id",
        "legs": "legs_id",
        "feet": "feet_id",
        "hands": "hands_id",
        "right_hand": "right_hand_id",
        "left_hand": "left_hand_id",
        "right_ring": "right_ring_id",
        "left_ring": "left_ring_id",
        "amulet": "amulet_id",
        "belt": "belt_id",
        "backpack": "backpack_id",
        "cloak": "cloak_id",
    }
)


def _needs_masking(entity: Any, user: AuthenticatedUser | None) -> bool:
    if not isinstance(entity, Mapping) or entity.get("visibility") != Visibility.HIDDEN.value:
        return False
    return not is_privileged(user, entity.get("owner_id"))


def mask_entity(entity, user: AuthenticatedUser | None):
    """
    Redact the descriptive fields of a HIDDEN entity for a non-privileged viewer.

    Args:
        entity: Mapping with ``visibility`` and optional ``owner_id``, or None.
        user: Viewer, or None for anonymous requests.

    Returns:
        ``entity`` itself when no masking applies, otherwise a shallow copy
        with every present descriptive field holding a string or None
        replaced by ``HIDDEN_SENTINEL``.

    Example:
        >>> mask_entity({"visibility": "HIDDEN", "name": "Relic"}, None)
        {'visibility': 'HIDDEN', 'name': '[HIDDEN]'}
    """
    if not _needs_masking(entity, user):
        return entity

    masked = None
    for field in DESCRIPTIVE_FIELDS:
        if field not in entity:
            continue
        value = entity[field]
        if value is None or isinstance(value, str):
            if masked is None:
                masked = dict(entity)
            masked[field] = HIDDEN_SENTINEL
    return entity if masked is None else masked


def mask_entities(entities: list, user: AuthenticatedUser | None) -> list:
    """Apply ``mask_entity`` element-wise; the input list is returned if unchanged."""
    if not isinstance(entities, list):
        return entities
    result = None
    for index, entity in enumerate(entities):
        masked = mask_entity(entity, user)
        if masked is not entity and result is None:
            result = list(entities[:index])
        if result is not None:
            result.append(masked)
    return entities if result is None else result


def mask_equipment_slots(
    equipment,
    user: AuthenticatedUser | None,
    *,
    null_if_not_viewable: bool = False,
):
    """
    Mask the nested items of an expanded equipment bundle.

    Only slots holding a mapping (a resolved item) are inspected; bare ids and
    empty slots pass through. With ``null_if_not_viewable`` a HIDDEN item the
    viewer is not privileged for is replaced by None instead of a masked stub.

    Returns:
        ``equipment`` itself when no slot changed, otherwise a shallow copy.
    """
    if not isinstance(equipment, Mapping):
        return equipment

    updated = None
    for slot in EQUIPMENT_SLOT_NAMES:
        nested = equipment.get(slot)
        if not isinstance(nested, Mapping):
            continue
        masked = mask_entity(nested, user)
        if masked is nested:
            continue
        if updated is None:
            updated = dict(equipment)
        updated[slot] = None if null_if_not_viewable else masked
    return equipment if updated is None else updated
