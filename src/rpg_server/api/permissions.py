"""
Role-based access control and visibility policy.

This module is the single source of truth for "who may see or change what".
Services, the masking helpers, and the equipment rules all call into it
instead of re-deriving role/ownership checks locally.

Roles:
    USER       Regular account. Privileged only for content it owns.
    MODERATOR  Reads everything, may edit USER-owned or orphaned content.
    ADMIN      Reads and edits everything except other admins' content.

Visibility:
    PUBLIC   Readable by anyone, including anonymous callers.
    PRIVATE  Readable by the owner, moderators and admins only.
    HIDDEN   Same audience as PRIVATE for direct reads. When a HIDDEN entity
             is embedded in something the caller may read, its descriptive
             fields are masked (see ``rpg_server.services.masking``).

Error priority for guarded operations:
    1. RESOURCE_NOT_FOUND  the caller may not view the resource (no existence leak)
    2. UNAUTHORIZED        anonymous caller attempting a mutation
    3. FORBIDDEN           authenticated caller lacking modify permission
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from rpg_server.api.errors import err

# ============================================================================
# ROLE AND VISIBILITY DEFINITIONS
# ============================================================================


class Role(str, Enum):
    """User roles, stored as upper-case strings in the database."""

    ADMIN = "ADMIN"
    MODERATOR = "MODERATOR"
    USER = "USER"


class Visibility(str, Enum):
    """Visibility tri-state carried by every owned entity."""

    PUBLIC = "PUBLIC"
    PRIVATE = "PRIVATE"
    HIDDEN = "HIDDEN"


# Roles privileged for every entity regardless of ownership.
PRIVILEGED_ROLES: frozenset[str] = frozenset({Role.ADMIN.value, Role.MODERATOR.value})


@dataclass(frozen=True, slots=True)
class AuthenticatedUser:
    """
    The caller resolved from a session.

    Attributes:
        id: User id (UUID string).
        email: Login email.
        role: One of ``Role`` values.
        name: Display name, when known.
    """

    id: str
    email: str
    role: str
    name: str | None = None


@dataclass(frozen=True, slots=True)
class VisibilityScope:
    """
    Row filter for list queries.

    Attributes:
        visibilities: Visibilities readable by everyone in scope, or ``None``
            for no restriction.
        owner_id: Additionally include rows owned by this user.
    """

    visibilities: tuple[str, ...] | None
    owner_id: str | None = None


# ============================================================================
# PRIVILEGE AND VIEW/MODIFY PREDICATES
# ============================================================================


def is_privileged(user: AuthenticatedUser | None, owner_id: str | None) -> bool:
    """
    Return True when ``user`` may see unmasked descriptive fields.

    ADMIN and MODERATOR are privileged for every entity; anyone else only for
    entities they own. Anonymous callers are never privileged.
    """
    if user is None:
        return False
    if user.role in PRIVILEGED_ROLES:
        return True
    return bool(owner_id) and owner_id == user.id


def can_view_resource(user: AuthenticatedUser | None, resource: Mapping[str, Any]) -> bool:
    """
    Check whether ``user`` may read ``resource`` directly.

    Args:
        user: Caller, or None for anonymous requests.
        resource: Mapping with ``visibility`` and optional ``owner_id``.

    Returns:
        True when the resource is visible to the caller.

    Example:
        >>> can_view_resource(None, {"visibility": "PUBLIC"})
        True
        >>> can_view_resource(None, {"visibility": "HIDDEN"})
        False
    """
    visibility = resource.get("visibility")
    if user is None:
        return visibility == Visibility.PUBLIC.value

    if user.role == Role.ADMIN.value:
        return True

    if resource.get("owner_id") == user.id:
        return True

    if user.role == Role.MODERATOR.value:
        return visibility in (
            Visibility.PUBLIC.value,
            Visibility.HIDDEN.value,
            Visibility.PRIVATE.value,
        )

    return visibility == Visibility.PUBLIC.value


def can_modify_resource(user: AuthenticatedUser | None, resource: Mapping[str, Any]) -> bool:
    """
    Check whether ``user`` may update or delete ``resource``.

    Rules:
        - Anonymous callers may never modify.
        - Owners may always modify their own content.
        - ADMIN may modify anything not owned by another ADMIN.
        - MODERATOR may modify orphaned or USER-owned content, except other
          people's PRIVATE/HIDDEN content.
        - USER may only modify what they own.

    Args:
        user: Caller, or None.
        resource: Mapping with ``owner_id``, ``owner_role`` and ``visibility``.
    """
    if user is None:
        return False

    owner_id = resource.get("owner_id")
    if owner_id and owner_id == user.id:
        return True

    if user.role == Role.ADMIN.value:
        return resource.get("owner_role") != Role.ADMIN.value

    if user.role == Role.MODERATOR.value:
        restricted = resource.get("visibility") in (
            Visibility.PRIVATE.value,
            Visibility.HIDDEN.value,
        )
        if owner_id and restricted:
            return False
        return not owner_id or resource.get("owner_role") == Role.USER.value

    return False


def can_create_resource(user: AuthenticatedUser | None, target_owner_id: str | None = None) -> bool:
    """Return True when ``user`` may create content owned by ``target_owner_id``."""
    if user is None:
        return False
    if user.role == Role.ADMIN.value:
        return True
    return not target_owner_id or target_owner_id == user.id


def can_manage_user(user: AuthenticatedUser | None, target: Mapping[str, Any]) -> bool:
    """
    Check whether ``user`` may ban/unban or re-role ``target``.

    Nobody manages themselves; admins manage non-admins; moderators manage
    regular users only.
    """
    if user is None or user.id == target.get("id"):
        return False
    if user.role == Role.ADMIN.value:
        return target.get("role") != Role.ADMIN.value
    if user.role == Role.MODERATOR.value:
        return target.get("role") == Role.USER.value
    return False


def visibility_scope(user: AuthenticatedUser | None) -> VisibilityScope:
    """
    Build the list-query scope matching ``can_view_resource``.

        anonymous -> PUBLIC
        USER      -> PUBLIC + own
        MODERATOR -> everything
        ADMIN     -> everything
    """
    if user is None:
        return VisibilityScope(visibilities=(Visibility.PUBLIC.value,))
    if user.role in PRIVILEGED_ROLES:
        return VisibilityScope(visibilities=None)
    return VisibilityScope(visibilities=(Visibility.PUBLIC.value,), owner_id=user.id)


# ============================================================================
# ENFORCEMENT HELPERS
# ============================================================================


def enforce_view_permission(
    user: AuthenticatedUser | None,
    resource: Mapping[str, Any],
    not_found_message: str,
) -> None:
    """Raise ``RESOURCE_NOT_FOUND`` when ``user`` may not view ``resource``."""
    if not can_view_resource(user, resource):
        raise err("RESOURCE_NOT_FOUND", not_found_message)


def enforce_modify_permission(
    user: AuthenticatedUser | None,
    resource: Mapping[str, Any],
    not_found_message: str,
    forbidden_message: str,
) -> None:
    """
    Raise the first applicable error for a mutation of ``resource``.

    Order: RESOURCE_NOT_FOUND (not viewable), UNAUTHORIZED (anonymous),
    FORBIDDEN (cannot modify).
    """
    enforce_view_permission(user, resource, not_found_message)
    if user is None:
        raise err("UNAUTHORIZED", "Login required")
    if not can_modify_resource(user, resource):
        raise err("FORBIDDEN", forbidden_message)


def ensure_role(user: AuthenticatedUser | None, roles: set[Role], message: str) -> None:
    """Raise ``FORBIDDEN`` unless ``user`` holds one of ``roles``."""
    if user is None or user.role not in {role.value for role in roles}:
        raise err("FORBIDDEN", message)
