"""Character endpoints."""

from fastapi import APIRouter, Depends, Query, Request

from rpg_server.api.auth import get_current_user, require_user
from rpg_server.api.models import CharacterCreateRequest, CharacterOut, Envelope, envelope
from rpg_server.api.permissions import AuthenticatedUser
from rpg_server.services import characters as character_service

router = APIRouter(prefix="/characters", tags=["characters"])


@router.post("", response_model=Envelope[CharacterOut], status_code=201)
async def create_character(
    request: CharacterCreateRequest,
    http_request: Request,
    user: AuthenticatedUser = Depends(require_user),
):
    created = await character_service.create_character(request.model_dump(mode="json"), user)
    return envelope(http_request, created)


@router.get("", response_model=Envelope[list[CharacterOut]])
async def list_characters(
    http_request: Request,
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    user: AuthenticatedUser | None = Depends(get_current_user),
):
    """List characters visible to the caller; HIDDEN ones are masked."""
    rows = await character_service.list_characters(user, limit=limit, offset=offset)
    return envelope(http_request, rows)


@router.get("/{character_id}", response_model=Envelope[CharacterOut])
async def get_character(
    character_id: str,
    http_request: Request,
    expanded: bool = Query(default=False),
    user: AuthenticatedUser | None = Depends(get_current_user),
):
    """
    Fetch one character.

    With ``?expanded=true`` the response embeds the equipped items under
    ``equipment``; items the caller may not see come back as ``null``.
    """
    character = await character_service.get_character(character_id, user, expanded=expanded)
    return envelope(http_request, character)


@router.delete("/{character_id}", status_code=204)
async def delete_character(
    character_id: str,
    user: AuthenticatedUser | None = Depends(get_current_user),
):
    await character_service.delete_character(character_id, user)
