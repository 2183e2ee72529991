"""Item repository operations for the SQLite backend."""

from __future__ import annotations

import sqlite3
import uuid
from collections.abc import Iterable
from typing import Any

from rpg_server.db.characters_repo import build_scope_clause
from rpg_server.db.connection import connection_scope, row_to_dict
from rpg_server.db.errors import raise_read_error, raise_write_error

ITEM_COLUMNS: tuple[str, ...] = (
    "id",
    "name",
    "description",
    "rarity",
    "slot",
    "is_2_handed",
    "required_level",
    "weight",
    "value",
    "visibility",
    "owner_id",
    "created_at",
    "updated_at",
)

WRITABLE_COLUMNS: tuple[str, ...] = tuple(
    name for name in ITEM_COLUMNS if name not in ("id", "owner_id", "created_at", "updated_at")
)

_SELECT = ", ".join(f"i.{name}" for name in ITEM_COLUMNS)


def _transform(row: dict[str, Any] | None) -> dict[str, Any] | None:
    if row is None:
        return None
    row["is_2_handed"] = bool(row["is_2_handed"])
    return row


def create_item(data: dict[str, Any], *, owner_id: str | None) -> dict[str, Any] | None:
    """Insert an item and return it, or ``None`` when the name is taken."""
    item_id = str(uuid.uuid4())
    values = {key: data[key] for key in WRITABLE_COLUMNS if data.get(key) is not None}
    if "is_2_handed" in values:
        values["is_2_handed"] = int(bool(values["is_2_handed"]))
    columns = ["id", "owner_id", *values.keys()]
    placeholders = ", ".join("?" for _ in columns)
    try:
        with connection_scope(write=True) as conn:
            conn.execute(
                f"INSERT INTO items ({', '.join(columns)}) VALUES ({placeholders})",  # nosec B608
                (item_id, owner_id, *values.values()),
            )
    except sqlite3.IntegrityError:
        return None
    except Exception as exc:
        raise_write_error("items.create_item", exc, details=f"name={data.get('name')!r}")
    return find_by_id(item_id)


def find_by_id(item_id: str) -> dict[str, Any] | None:
    """Return the item row for ``item_id`` or ``None``."""
    try:
        with connection_scope() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"SELECT {_SELECT} FROM items i WHERE i.id = ?",  # nosec B608
                (item_id,),
            )
            return _transform(row_to_dict(cursor, cursor.fetchone()))
    except Exception as exc:
        raise_read_error("items.find_by_id", exc, details=f"id={item_id!r}")


def find_by_name(name: str) -> dict[str, Any] | None:
    """Return the item row named ``name`` or ``None``."""
    try:
        with connection_scope() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"SELECT {_SELECT} FROM items i WHERE i.name = ?",  # nosec B608
                (name,),
            )
            return _transform(row_to_dict(cursor, cursor.fetchone()))
    except Exception as exc:
        raise_read_error("items.find_by_name", exc, details=f"name={name!r}")


def find_by_ids(item_ids: Iterable[str]) -> dict[str, dict[str, Any]]:
    """Return ``{id: row}`` for every id that exists; unknown ids are skipped."""
    ids = list(dict.fromkeys(item_ids))
    if not ids:
        return {}
    placeholders = ", ".join("?" for _ in ids)
    try:
        with connection_scope() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"SELECT {_SELECT} FROM items i WHERE i.id IN ({placeholders})",  # nosec B608
                ids,
            )
            rows = [_transform(row_to_dict(cursor, row)) for row in cursor.fetchall()]
    except Exception as exc:
        raise_read_error("items.find_by_ids", exc, details=f"count={len(ids)}")
    return {row["id"]: row for row in rows if row is not None}


def find_many(
    *,
    visibilities: tuple[str, ...] | None = None,
    owner_id: str | None = None,
    slot: str | None = None,
    limit: int = 20,
    offset: int = 0,
) -> list[dict[str, Any]]:
    """List items inside a visibility scope, optionally filtered by slot."""
    clause, params = build_scope_clause(alias="i", visibilities=visibilities, owner_id=owner_id)
    if slot is not None:
        clause = f"{clause} AND i.slot = ?"
        params.append(slot)
    try:
        with connection_scope() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"""
                SELECT {_SELECT} FROM items i
                WHERE {clause}
                ORDER BY i.created_at DESC, i.id DESC
                LIMIT ? OFFSET ?
                """,  # nosec B608
                (*params, limit, offset),
            )
            return [_transform(row_to_dict(cursor, row)) for row in cursor.fetchall()]  # type: ignore[misc]
    except Exception as exc:
        raise_read_error("items.find_many", exc)
