"""Equipment repository operations for the SQLite backend.

One equipment row per character, fourteen nullable slot columns holding item
ids. Slot rules are enforced by ``rpg_server.services.equipment`` before any
write reaches this module.
"""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from typing import Any

from rpg_server.db.connection import connection_scope, row_to_dict
from rpg_server.db.constants import EQUIPMENT_SLOT_COLUMNS
from rpg_server.db.errors import raise_read_error, raise_write_error

_COLUMNS = ("id", "character_id", *EQUIPMENT_SLOT_COLUMNS, "created_at", "updated_at")
_SELECT = ", ".join(_COLUMNS)


def find_by_character_id(character_id: str) -> dict[str, Any] | None:
    """Return the equipment row for ``character_id`` or ``None``."""
    try:
        with connection_scope() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"SELECT {_SELECT} FROM equipment WHERE character_id = ?",  # nosec B608
                (character_id,),
            )
            return row_to_dict(cursor, cursor.fetchone())
    except Exception as exc:
        raise_read_error(
            "equipment.find_by_character_id", exc, details=f"character_id={character_id!r}"
        )


def upsert(character_id: str, slots: Mapping[str, str | None]) -> dict[str, Any]:
    """Create or partially update the equipment row of a character.

    Only keys present in ``slots`` are written; a ``None`` value clears the
    slot. Unknown keys are ignored.
    """
    values = {key: slots[key] for key in EQUIPMENT_SLOT_COLUMNS if key in slots}
    insert_columns = ["id", "character_id", *values.keys()]
    placeholders = ", ".join("?" for _ in insert_columns)
    if values:
        assignments = ", ".join(f"{key} = excluded.{key}" for key in values)
        conflict = f"DO UPDATE SET {assignments}, updated_at = CURRENT_TIMESTAMP"
    else:
        conflict = "DO NOTHING"
    try:
        with connection_scope(write=True) as conn:
            conn.execute(
                f"""
                INSERT INTO equipment ({', '.join(insert_columns)})
                VALUES ({placeholders})
                ON CONFLICT(character_id) {conflict}
                """,  # nosec B608
                (str(uuid.uuid4()), character_id, *values.values()),
            )
    except Exception as exc:
        raise_write_error("equipment.upsert", exc, details=f"character_id={character_id!r}")
    record = find_by_character_id(character_id)
    if record is None:
        raise_read_error(
            "equipment.upsert",
            LookupError("row missing after upsert"),
            details=f"character_id={character_id!r}",
        )
    return record


def get_stats() -> dict[str, int]:
    """Count equipment rows and per-slot usage.

    Returns:
        ``{"total": n, "head_id": n, ..., "cloak_id": n}``.
    """
    usage = ", ".join(f"COUNT({name})" for name in EQUIPMENT_SLOT_COLUMNS)
    try:
        with connection_scope() as conn:
            cursor = conn.cursor()
            cursor.execute(f"SELECT COUNT(*), {usage} FROM equipment")  # nosec B608
            row = cursor.fetchone()
    except Exception as exc:
        raise_read_error("equipment.get_stats", exc)
    counts = [int(value or 0) for value in row]
    stats = {"total": counts[0]}
    stats.update(zip(EQUIPMENT_SLOT_COLUMNS, counts[1:], strict=True))
    return stats
