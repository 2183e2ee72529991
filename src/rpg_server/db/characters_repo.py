"""Character repository operations for the SQLite backend."""

from __future__ import annotations

import sqlite3
import uuid
from typing import Any

from rpg_server.db.connection import connection_scope, row_to_dict
from rpg_server.db.errors import raise_read_error, raise_write_error

CHARACTER_COLUMNS: tuple[str, ...] = (
    "id",
    "name",
    "description",
    "visibility",
    "owner_id",
    "level",
    "experience",
    "health",
    "mana",
    "stamina",
    "strength",
    "constitution",
    "dexterity",
    "intelligence",
    "wisdom",
    "charisma",
    "age",
    "created_at",
    "updated_at",
)

# Columns a caller may set on insert; everything else is defaulted by SQLite.
WRITABLE_COLUMNS: tuple[str, ...] = tuple(
    name for name in CHARACTER_COLUMNS if name not in ("id", "owner_id", "created_at", "updated_at")
)

_SELECT = ", ".join(f"c.{name}" for name in CHARACTER_COLUMNS)


def build_scope_clause(
    *,
    alias: str,
    visibilities: tuple[str, ...] | None,
    owner_id: str | None,
) -> tuple[str, list[Any]]:
    """Translate a visibility scope into a SQL predicate and parameters.

    ``visibilities=None`` means unrestricted. Otherwise rows match when their
    visibility is listed or, when ``owner_id`` is given, when they are owned
    by that user.
    """
    if visibilities is None:
        return "1 = 1", []
    placeholders = ", ".join("?" for _ in visibilities)
    clause = f"{alias}.visibility IN ({placeholders})"
    params: list[Any] = list(visibilities)
    if owner_id is not None:
        clause = f"({clause} OR {alias}.owner_id = ?)"
        params.append(owner_id)
    return clause, params


def create_character(data: dict[str, Any], *, owner_id: str | None) -> dict[str, Any] | None:
    """Insert a character and return it.

    Args:
        data: Column values; keys outside ``WRITABLE_COLUMNS`` are ignored.
        owner_id: Owning user id (``None`` for orphaned content).

    Returns:
        The created row, or ``None`` when the name is already taken.
    """
    character_id = str(uuid.uuid4())
    values = {key: data[key] for key in WRITABLE_COLUMNS if data.get(key) is not None}
    columns = ["id", "owner_id", *values.keys()]
    placeholders = ", ".join("?" for _ in columns)
    try:
        with connection_scope(write=True) as conn:
            conn.execute(
                f"INSERT INTO characters ({', '.join(columns)}) VALUES ({placeholders})",  # nosec B608
                (character_id, owner_id, *values.values()),
            )
    except sqlite3.IntegrityError:
        return None
    except Exception as exc:
        raise_write_error("characters.create_character", exc, details=f"name={data.get('name')!r}")
    return find_by_id(character_id)


def find_by_id(character_id: str) -> dict[str, Any] | None:
    """Return the character row for ``character_id`` or ``None``."""
    try:
        with connection_scope() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"SELECT {_SELECT} FROM characters c WHERE c.id = ?",  # nosec B608
                (character_id,),
            )
            return row_to_dict(cursor, cursor.fetchone())
    except Exception as exc:
        raise_read_error("characters.find_by_id", exc, details=f"id={character_id!r}")


def find_by_id_with_owner_role(character_id: str) -> dict[str, Any] | None:
    """Return ``{"character": row, "owner_role": role | None}`` or ``None``.

    The owner role feeds modify checks (admins may not edit other admins'
    content, moderators only edit USER-owned content).
    """
    try:
        with connection_scope() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"""
                SELECT {_SELECT}, u.role AS owner_role
                FROM characters c
                LEFT JOIN users u ON u.id = c.owner_id
                WHERE c.id = ?
                """,  # nosec B608
                (character_id,),
            )
            row = row_to_dict(cursor, cursor.fetchone())
    except Exception as exc:
        raise_read_error(
            "characters.find_by_id_with_owner_role", exc, details=f"id={character_id!r}"
        )
    if row is None:
        return None
    owner_role = row.pop("owner_role")
    return {"character": row, "owner_role": owner_role}


def find_many(
    *,
    visibilities: tuple[str, ...] | None = None,
    owner_id: str | None = None,
    limit: int = 20,
    offset: int = 0,
) -> list[dict[str, Any]]:
    """List characters inside a visibility scope, newest first."""
    clause, params = build_scope_clause(alias="c", visibilities=visibilities, owner_id=owner_id)
    try:
        with connection_scope() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"""
                SELECT {_SELECT} FROM characters c
                WHERE {clause}
                ORDER BY c.created_at DESC, c.id DESC
                LIMIT ? OFFSET ?
                """,  # nosec B608
                (*params, limit, offset),
            )
            rows = cursor.fetchall()
            return [row_to_dict(cursor, row) for row in rows]  # type: ignore[misc]
    except Exception as exc:
        raise_read_error("characters.find_many", exc)


def delete_character(character_id: str) -> bool:
    """Delete a character (equipment cascades). Returns ``False`` if missing."""
    try:
        with connection_scope(write=True) as conn:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM characters WHERE id = ?", (character_id,))
            return cursor.rowcount > 0
    except Exception as exc:
        raise_write_error("characters.delete_character", exc, details=f"id={character_id!r}")
