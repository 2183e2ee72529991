"""Equipment endpoints: read and partially update a character's slots."""

from fastapi import APIRouter, Depends, Request

from rpg_server.api.auth import get_current_user, require_role
from rpg_server.api.models import (
    Envelope,
    EquipmentOut,
    EquipmentStats,
    EquipmentUpdateRequest,
    envelope,
)
from rpg_server.api.permissions import AuthenticatedUser, Role
from rpg_server.services import equipment as equipment_service

router = APIRouter(tags=["equipment"])

require_stats_viewer = require_role(
    Role.ADMIN,
    Role.MODERATOR,
    message="You do not have permission to view equipment statistics",
)


@router.get("/characters/{character_id}/equipment", response_model=Envelope[EquipmentOut])
async def get_equipment(
    character_id: str,
    http_request: Request,
    user: AuthenticatedUser | None = Depends(get_current_user),
):
    """Return the character's equipment, all slots ``null`` if never equipped."""
    record = await equipment_service.get_equipment(character_id, user)
    return envelope(http_request, record)


@router.put("/characters/{character_id}/equipment", response_model=Envelope[EquipmentOut])
async def update_equipment(
    character_id: str,
    request: EquipmentUpdateRequest,
    http_request: Request,
    user: AuthenticatedUser | None = Depends(get_current_user),
):
    """
    Partially update equipment.

    Slots omitted from the body keep their item; ``null`` unequips. Anonymous
    callers reach the service so that an unviewable character still yields
    404 before the 401.
    """
    payload = request.model_dump(exclude_unset=True)
    record = await equipment_service.update_equipment(character_id, payload, user)
    return envelope(http_request, record)


@router.get("/equipment/stats", response_model=Envelope[EquipmentStats])
async def get_stats(
    http_request: Request,
    user: AuthenticatedUser = Depends(require_stats_viewer),
):
    stats = await equipment_service.get_stats(user)
    return envelope(http_request, stats)
