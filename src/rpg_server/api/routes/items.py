"""Item endpoints."""

from fastapi import APIRouter, Depends, Query, Request

from rpg_server.api.auth import get_current_user, require_user
from rpg_server.api.models import Envelope, ItemCreateRequest, ItemOut, ItemSlotName, envelope
from rpg_server.api.permissions import AuthenticatedUser
from rpg_server.services import items as item_service

router = APIRouter(prefix="/items", tags=["items"])


@router.post("", response_model=Envelope[ItemOut], status_code=201)
async def create_item(
    request: ItemCreateRequest,
    http_request: Request,
    user: AuthenticatedUser = Depends(require_user),
):
    created = await item_service.create_item(request.model_dump(mode="json"), user)
    return envelope(http_request, created)


@router.get("", response_model=Envelope[list[ItemOut]])
async def list_items(
    http_request: Request,
    slot: ItemSlotName | None = Query(default=None),
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    user: AuthenticatedUser | None = Depends(get_current_user),
):
    """List items visible to the caller, optionally filtered by slot type."""
    rows = await item_service.list_items(user, slot=slot, limit=limit, offset=offset)
    return envelope(http_request, rows)


@router.get("/{item_id}", response_model=Envelope[ItemOut])
async def get_item(
    item_id: str,
    http_request: Request,
    user: AuthenticatedUser | None = Depends(get_current_user),
):
    item = await item_service.get_item(item_id, user)
    return envelope(http_request, item)
