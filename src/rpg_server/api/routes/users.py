"""User moderation endpoints (ADMIN/MODERATOR)."""

from fastapi import APIRouter, Depends, Query, Request

from rpg_server.api.auth import require_role
from rpg_server.api.models import Envelope, RoleUpdateRequest, UserOut, envelope
from rpg_server.api.permissions import AuthenticatedUser, Role
from rpg_server.services import users as user_service

router = APIRouter(prefix="/users", tags=["users"])

require_staff = require_role(
    Role.ADMIN, Role.MODERATOR, message="You do not have permission to manage users"
)
require_admin = require_role(Role.ADMIN, message="Only admins can change roles")


@router.get("", response_model=Envelope[list[UserOut]])
async def list_users(
    http_request: Request,
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    user: AuthenticatedUser = Depends(require_staff),
):
    rows = await user_service.list_users(limit=limit, offset=offset)
    return envelope(http_request, rows)


@router.post("/{user_id}/ban", response_model=Envelope[UserOut])
async def ban_user(
    user_id: str,
    http_request: Request,
    user: AuthenticatedUser = Depends(require_staff),
):
    """Ban an account and end its sessions."""
    updated = await user_service.set_banned(user_id, True, user)
    return envelope(http_request, updated)


@router.post("/{user_id}/unban", response_model=Envelope[UserOut])
async def unban_user(
    user_id: str,
    http_request: Request,
    user: AuthenticatedUser = Depends(require_staff),
):
    updated = await user_service.set_banned(user_id, False, user)
    return envelope(http_request, updated)


@router.put("/{user_id}/role", response_model=Envelope[UserOut])
async def change_role(
    user_id: str,
    request: RoleUpdateRequest,
    http_request: Request,
    user: AuthenticatedUser = Depends(require_admin),
):
    updated = await user_service.change_role(user_id, request.role, user)
    return envelope(http_request, updated)
