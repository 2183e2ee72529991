"""User account repository operations for the SQLite backend."""

from __future__ import annotations

import sqlite3
import uuid
from typing import Any

from rpg_server.db.connection import connection_scope, row_to_dict
from rpg_server.db.errors import raise_read_error, raise_write_error

_PUBLIC_COLUMNS = "id, email, name, role, is_banned, created_at, last_login"


def _transform(row: dict[str, Any] | None) -> dict[str, Any] | None:
    if row is None:
        return None
    row["is_banned"] = bool(row["is_banned"])
    return row


def create_user(
    email: str,
    name: str,
    password: str,
    *,
    role: str = "USER",
) -> dict[str, Any] | None:
    """Create an account row.

    Args:
        email: Unique login email.
        name: Display name.
        password: Plain text password (hashed before persistence).
        role: Role label for authorization policy.

    Returns:
        The created user (without password hash), or ``None`` when the email
        is already registered.
    """
    from rpg_server.api.password import hash_password

    user_id = str(uuid.uuid4())
    try:
        with connection_scope(write=True) as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO users (id, email, name, password_hash, role)
                VALUES (?, ?, ?, ?, ?)
                """,
                (user_id, email, name, hash_password(password), role),
            )
    except sqlite3.IntegrityError:
        return None
    except Exception as exc:
        raise_write_error("users.create_user", exc, details=f"email={email!r}")
    return get_user_by_id(user_id)


def get_user_by_id(user_id: str) -> dict[str, Any] | None:
    """Return the public user row for ``user_id`` or ``None``."""
    try:
        with connection_scope() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"SELECT {_PUBLIC_COLUMNS} FROM users WHERE id = ?",  # nosec B608
                (user_id,),
            )
            return _transform(row_to_dict(cursor, cursor.fetchone()))
    except Exception as exc:
        raise_read_error("users.get_user_by_id", exc, details=f"user_id={user_id!r}")


def list_users(*, limit: int = 20, offset: int = 0) -> list[dict[str, Any]]:
    """List public user rows, oldest account first."""
    try:
        with connection_scope() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"""
                SELECT {_PUBLIC_COLUMNS} FROM users
                ORDER BY created_at, id
                LIMIT ? OFFSET ?
                """,  # nosec B608
                (limit, offset),
            )
            rows = cursor.fetchall()
            return [_transform(row_to_dict(cursor, row)) for row in rows]  # type: ignore[misc]
    except Exception as exc:
        raise_read_error("users.list_users", exc)


def get_user_credentials(email: str) -> dict[str, Any] | None:
    """Return the user row including ``password_hash`` for login checks."""
    try:
        with connection_scope() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"SELECT {_PUBLIC_COLUMNS}, password_hash FROM users WHERE email = ?",  # nosec B608
                (email,),
            )
            return _transform(row_to_dict(cursor, cursor.fetchone()))
    except Exception as exc:
        raise_read_error("users.get_user_credentials", exc, details=f"email={email!r}")


def verify_credentials(email: str, password: str) -> dict[str, Any] | None:
    """Return the account for a correct email/password pair, else ``None``.

    Unknown emails are checked against a dummy hash so both failure paths
    spend the same bcrypt time.
    """
    from rpg_server.api.password import dummy_password_hash, verify_password

    account = get_user_credentials(email)
    if account is None:
        verify_password(password, dummy_password_hash())
        return None
    if not verify_password(password, account["password_hash"]):
        return None
    return account


def user_exists(email: str) -> bool:
    """Return ``True`` when an account with ``email`` exists."""
    try:
        with connection_scope() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT 1 FROM users WHERE email = ?", (email,))
            return cursor.fetchone() is not None
    except Exception as exc:
        raise_read_error("users.user_exists", exc, details=f"email={email!r}")


def update_last_login(user_id: str) -> None:
    """Stamp ``last_login`` for a successful login."""
    try:
        with connection_scope(write=True) as conn:
            conn.execute(
                "UPDATE users SET last_login = CURRENT_TIMESTAMP WHERE id = ?",
                (user_id,),
            )
    except Exception as exc:
        raise_write_error("users.update_last_login", exc, details=f"user_id={user_id!r}")


def set_user_role(user_id: str, role: str) -> bool:
    """Change a user's role. Returns ``False`` when the user does not exist."""
    try:
        with connection_scope(write=True) as conn:
            cursor = conn.cursor()
            cursor.execute("UPDATE users SET role = ? WHERE id = ?", (role, user_id))
            return cursor.rowcount > 0
    except Exception as exc:
        raise_write_error("users.set_user_role", exc, details=f"user_id={user_id!r}")


def set_user_banned(user_id: str, banned: bool) -> bool:
    """Ban or unban a user. Returns ``False`` when the user does not exist."""
    try:
        with connection_scope(write=True) as conn:
            cursor = conn.cursor()
            cursor.execute(
                "UPDATE users SET is_banned = ? WHERE id = ?",
                (int(banned), user_id),
            )
            return cursor.rowcount > 0
    except Exception as exc:
        raise_write_error("users.set_user_banned", exc, details=f"user_id={user_id!r}")
