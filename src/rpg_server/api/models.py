"""
Pydantic models for API requests and responses.

Payload keys on the wire are camelCase (``headId``, ``ownerId``,
``is2Handed``); request bodies also accept the snake_case field names.
Every successful response is wrapped in ``Envelope``:

    {"data": <payload>, "request_id": "...", "timestamp": "..."}

Models are organized into two categories:
1. Request models: Data sent FROM the client TO the server
2. Response models: Data sent FROM the server TO the client
"""

from typing import Any, Generic, Literal, TypeVar

from fastapi import Request
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from rpg_server.api.errors import request_id_for, utc_timestamp

VisibilityName = Literal["PUBLIC", "PRIVATE", "HIDDEN"]
RoleName = Literal["ADMIN", "MODERATOR", "USER"]
RarityName = Literal["COMMON", "UNCOMMON", "RARE", "EPIC", "LEGENDARY"]
ItemSlotName = Literal[
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
]


class ApiModel(BaseModel):
    """Base model: camelCase aliases, snake_case names accepted on input."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============================================================================
# REQUEST MODELS (Client → Server)
# ============================================================================


class RegisterRequest(ApiModel):
    """
    Registration request for a new USER account.

    Attributes:
        email: Login email (unique, case-insensitive)
        name: Display name
        password: Plain text password (minimum 8 characters, stored as bcrypt hash)
    """

    email: str = Field(min_length=3, max_length=254, pattern=r"^[^@\s]+@[^@\s]+$")
    name: str = Field(min_length=1, max_length=50)
    password: str = Field(min_length=8, max_length=128)


class LoginRequest(ApiModel):
    email: str
    password: str


class RoleUpdateRequest(ApiModel):
    model_config = ConfigDict(extra="forbid")

    role: RoleName


class CharacterCreateRequest(ApiModel):
    """
    Character creation request. Omitted stats take the database defaults.

    Attributes:
        name: Unique character name
        description: Free text, masked when the character is HIDDEN
        visibility: PUBLIC (default), PRIVATE or HIDDEN
    """

    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1, max_length=50)
    description: str | None = Field(default=None, max_length=1000)
    visibility: VisibilityName = "PUBLIC"
    level: int | None = Field(default=None, ge=1)
    experience: int | None = Field(default=None, ge=0)
    health: int | None = Field(default=None, ge=0)
    mana: int | None = Field(default=None, ge=0)
    stamina: int | None = Field(default=None, ge=0)
    strength: int | None = Field(default=None, ge=1)
    constitution: int | None = Field(default=None, ge=1)
    dexterity: int | None = Field(default=None, ge=1)
    intelligence: int | None = Field(default=None, ge=1)
    wisdom: int | None = Field(default=None, ge=1)
    charisma: int | None = Field(default=None, ge=1)
    age: int | None = Field(default=None, ge=0)


class ItemCreateRequest(ApiModel):
    """
    Item creation request.

    ``is_2_handed`` is independent of ``slot``: a ONE_HAND item flagged as
    two-handed still may not go in a single hand slot.
    """

    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1, max_length=50)
    description: str | None = Field(default=None, max_length=1000)
    rarity: RarityName = "COMMON"
    slot: ItemSlotName = "NONE"
    is_2_handed: bool = Field(default=False, alias="is2Handed")
    required_level: int = Field(default=1, ge=1)
    weight: float = Field(default=1.0, ge=0)
    value: int = Field(default=0, ge=0)
    visibility: VisibilityName = "PUBLIC"


class EquipmentUpdateRequest(ApiModel):
    """
    Partial equipment update.

    Only the slots present in the body are written. ``null`` clears a slot;
    an omitted slot keeps its current item. Use ``model_dump(exclude_unset=True)``
    to obtain the partial payload.
    """

    model_config = ConfigDict(extra="forbid")

    head_id: str | None = Field(default=None, min_length=1)
    face_id: str | None = Field(default=None, min_length=1)
    chest_id: str | None = Field(default=None, min_length=1)
    legs_id: str | None = Field(default=None, min_length=1)
    feet_id: str | None = Field(default=None, min_length=1)
    hands_id: str | None = Field(default=None, min_length=1)
    right_hand_id: str | None = Field(default=None, min_length=1)
    left_hand_id: str | None = Field(default=None, min_length=1)
    right_ring_id: str | None = Field(default=None, min_length=1)
    left_ring_id: str | None = Field(default=None, min_length=1)
    amulet_id: str | None = Field(default=None, min_length=1)
    belt_id: str | None = Field(default=None, min_length=1)
    backpack_id: str | None = Field(default=None, min_length=1)
    cloak_id: str | None = Field(default=None, min_length=1)


# ============================================================================
# RESPONSE MODELS (Server → Client)
# ============================================================================


class UserOut(ApiModel):
    id: str
    email: str
    name: str
    role: RoleName
    is_banned: bool = False
    created_at: str | None = None
    last_login: str | None = None


class LoginResponse(ApiModel):
    session_id: str
    user: UserOut


class ItemOut(ApiModel):
    id: str
    name: str
    description: str | None = None
    rarity: str
    slot: str
    is_2_handed: bool = Field(alias="is2Handed")
    required_level: int
    weight: float
    value: int
    visibility: VisibilityName
    owner_id: str | None = None
    created_at: str | None = None
    updated_at: str | None = None


class ExpandedEquipment(ApiModel):
    """Equipped items resolved to objects; unviewable items are ``null``."""

    head: ItemOut | None = None
    face: ItemOut | None = None
    chest: ItemOut | None = None
    legs: ItemOut | None = None
    feet: ItemOut | None = None
    hands: ItemOut | None = None
    right_hand: ItemOut | None = None
    left_hand: ItemOut | None = None
    right_ring: ItemOut | None = None
    left_ring: ItemOut | None = None
    amulet: ItemOut | None = None
    belt: ItemOut | None = None
    backpack: ItemOut | None = None
    cloak: ItemOut | None = None


class CharacterOut(ApiModel):
    id: str
    name: str
    description: str | None = None
    visibility: VisibilityName
    owner_id: str | None = None
    level: int
    experience: int
    health: int
    mana: int
    stamina: int
    strength: int
    constitution: int
    dexterity: int
    intelligence: int
    wisdom: int
    charisma: int
    age: int
    created_at: str | None = None
    updated_at: str | None = None
    equipment: ExpandedEquipment | None = None


class EquipmentOut(ApiModel):
    """Equipment record. ``id`` and timestamps are null for the empty default."""

    id: str | None = None
    character_id: str
    head_id: str | None = None
    face_id: str | None = None
    chest_id: str | None = None
    legs_id: str | None = None
    feet_id: str | None = None
    hands_id: str | None = None
    right_hand_id: str | None = None
    left_hand_id: str | None = None
    right_ring_id: str | None = None
    left_ring_id: str | None = None
    amulet_id: str | None = None
    belt_id: str | None = None
    backpack_id: str | None = None
    cloak_id: str | None = None
    created_at: str | None = None
    updated_at: str | None = None


class EquipmentStats(ApiModel):
    total_equipped_characters: int
    head_slot_usage: int
    face_slot_usage: int
    chest_slot_usage: int
    legs_slot_usage: int
    feet_slot_usage: int
    hands_slot_usage: int
    right_hand_slot_usage: int
    left_hand_slot_usage: int
    right_ring_slot_usage: int
    left_ring_slot_usage: int
    amulet_slot_usage: int
    belt_slot_usage: int
    backpack_slot_usage: int
    cloak_slot_usage: int


class MessageOut(ApiModel):
    message: str


T = TypeVar("T")


class Envelope(BaseModel, Generic[T]):
    """Success envelope shared by every endpoint."""

    data: T
    request_id: str
    timestamp: str


def envelope(request: Request, data: Any) -> dict[str, Any]:
    """Wrap ``data`` in the success envelope for ``request``."""
    return {"data": data, "request_id": request_id_for(request), "timestamp": utc_timestamp()}
