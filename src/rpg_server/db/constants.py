"""Shared database constants for the DB package.

Centralizes values consumed by the schema, the repositories, and the
equipment rules so they cannot drift apart.
"""

from __future__ import annotations

# Equipment slot columns in canonical order. Schema creation, repository
# reads/writes, and slot validation all iterate this tuple.
EQUIPMENT_SLOT_COLUMNS: tuple[str, ...] = (
    "head_id",
    "face_id",
    "chest_id",
    "legs_id",
    "feet_id",
    "hands_id",
    "right_hand_id",
    "left_hand_id",
    "right_ring_id",
    "left_ring_id",
    "amulet_id",
    "belt_id",
    "backpack_id",
    "cloak_id",
)

ITEM_SLOTS: tuple[str, ...] = (
    "NONE",
    "HEAD",
    "FACE",
    "CHEST",
    "LEGS",
    "FEET",
    "HANDS",
    "ONE_HAND",
    "TWO_HANDS",
    "RING",
    "AMULET",
    "BELT",
    "BACKPACK",
    "CLOAK",
)

ITEM_RARITIES: tuple[str, ...] = ("COMMON", "UNCOMMON", "RARE", "EPIC", "LEGENDARY")

VISIBILITIES: tuple[str, ...] = ("PUBLIC", "PRIVATE", "HIDDEN")

ROLES: tuple[str, ...] = ("ADMIN", "MODERATOR", "USER")
