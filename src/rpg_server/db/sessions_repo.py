"""Session repository operations for the SQLite backend.

Sessions are opaque UUID4 tokens bound to a user. A session may carry an
absolute ``expires_at``; expired rows are treated as missing and removed
lazily on lookup.
"""

from __future__ import annotations

import uuid
from typing import Any

from rpg_server.db.connection import connection_scope, row_to_dict
from rpg_server.db.errors import raise_read_error, raise_write_error


def create_session(user_id: str, *, ttl_minutes: int = 0) -> str:
    """Create a session for ``user_id`` and return its id.

    Args:
        user_id: Owning account id.
        ttl_minutes: Lifetime in minutes; ``0`` means no expiry.
    """
    session_id = str(uuid.uuid4())
    expires_clause = "NULL"
    params: tuple[Any, ...] = (session_id, user_id)
    if ttl_minutes > 0:
        expires_clause = "datetime('now', ?)"
        params = (session_id, user_id, f"+{int(ttl_minutes)} minutes")
    try:
        with connection_scope(write=True) as conn:
            conn.execute(
                f"INSERT INTO sessions (id, user_id, expires_at) VALUES (?, ?, {expires_clause})",  # nosec B608
                params,
            )
    except Exception as exc:
        raise_write_error("sessions.create_session", exc, details=f"user_id={user_id!r}")
    return session_id


def get_session_user(session_id: str) -> dict[str, Any] | None:
    """Resolve a live session to its user row.

    Returns:
        ``{"id", "email", "name", "role", "is_banned"}`` or ``None`` when the
        session is unknown or expired.
    """
    try:
        with connection_scope(write=True) as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                DELETE FROM sessions
                WHERE id = ? AND expires_at IS NOT NULL AND expires_at <= datetime('now')
                """,
                (session_id,),
            )
            cursor.execute(
                """
                SELECT u.id, u.email, u.name, u.role, u.is_banned
                FROM sessions s
                JOIN users u ON u.id = s.user_id
                WHERE s.id = ?
                """,
                (session_id,),
            )
            row = row_to_dict(cursor, cursor.fetchone())
    except Exception as exc:
        raise_read_error("sessions.get_session_user", exc)
    if row is None:
        return None
    row["is_banned"] = bool(row["is_banned"])
    return row


def touch_session(session_id: str, *, ttl_minutes: int = 0) -> bool:
    """Record activity; with a TTL the expiry slides forward."""
    try:
        with connection_scope(write=True) as conn:
            cursor = conn.cursor()
            if ttl_minutes > 0:
                cursor.execute(
                    """
                    UPDATE sessions
                    SET last_activity = CURRENT_TIMESTAMP, expires_at = datetime('now', ?)
                    WHERE id = ?
                    """,
                    (f"+{int(ttl_minutes)} minutes", session_id),
                )
            else:
                cursor.execute(
                    "UPDATE sessions SET last_activity = CURRENT_TIMESTAMP WHERE id = ?",
                    (session_id,),
                )
            return cursor.rowcount > 0
    except Exception as exc:
        raise_write_error("sessions.touch_session", exc)


def remove_session(session_id: str) -> bool:
    """Delete one session. Returns ``True`` when a row was removed."""
    try:
        with connection_scope(write=True) as conn:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM sessions WHERE id = ?", (session_id,))
            return cursor.rowcount > 0
    except Exception as exc:
        raise_write_error("sessions.remove_session", exc)


def remove_sessions_for_user(user_id: str) -> int:
    """Delete every session of ``user_id`` and return the number removed."""
    try:
        with connection_scope(write=True) as conn:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM sessions WHERE user_id = ?", (user_id,))
            return cursor.rowcount
    except Exception as exc:
        raise_write_error("sessions.remove_sessions_for_user", exc, details=f"user_id={user_id!r}")


def get_active_session_count() -> int:
    """Count sessions that have not expired."""
    try:
        with connection_scope() as conn:
            cursor = conn.cursor()
            cursor.execute("""
                SELECT COUNT(*) FROM sessions
                WHERE expires_at IS NULL OR expires_at > datetime('now')
            """)
            row = cursor.fetchone()
            return int(row[0]) if row else 0
    except Exception as exc:
        raise_read_error("sessions.get_active_session_count", exc)
