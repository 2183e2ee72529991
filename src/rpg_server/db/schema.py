"""Schema creation for the SQLite backend.

The schema layer is isolated from query code so schema changes are
reviewable without wading through unrelated repository logic.
"""

from __future__ import annotations

import os
import uuid

from rpg_server.api.password import hash_password
from rpg_server.db.connection import get_connection
from rpg_server.db.constants import EQUIPMENT_SLOT_COLUMNS

# Hot-path index rationale:
# 1. list endpoints filter by owner and visibility for every non-admin caller.
# 2. session lookups resolve by user for logout/ban cleanup.
HOT_PATH_INDEX_STATEMENTS = (
    "CREATE INDEX IF NOT EXISTS idx_characters_owner ON characters(owner_id)",
    "CREATE INDEX IF NOT EXISTS idx_characters_visibility ON characters(visibility)",
    "CREATE INDEX IF NOT EXISTS idx_items_owner ON items(owner_id)",
    "CREATE INDEX IF NOT EXISTS idx_items_visibility ON items(visibility)",
    "CREATE INDEX IF NOT EXISTS idx_sessions_user_id ON sessions(user_id)",
)


def _equipment_slot_column_sql() -> str:
    """Render the 14 nullable slot columns with item foreign keys."""
    columns = [f"{name} TEXT" for name in EQUIPMENT_SLOT_COLUMNS]
    foreign_keys = [
        f"FOREIGN KEY({name}) REFERENCES items(id) ON DELETE SET NULL"
        for name in EQUIPMENT_SLOT_COLUMNS
    ]
    return ",\n            ".join(columns + foreign_keys)


def init_database(*, skip_admin: bool = False) -> None:
    """Initialize the SQLite database schema.

    Behavior:
    - Creates required tables and indexes if missing.
    - Optionally creates a bootstrap admin from environment variables.

    Args:
        skip_admin: When True, skip bootstrap admin creation.
    """
    conn = get_connection()
    cursor = conn.cursor()

    cursor.execute("""
        CREATE TABLE IF NOT EXISTS users (
            id TEXT PRIMARY KEY,
            email TEXT UNIQUE NOT NULL,
            name TEXT NOT NULL,
            password_hash TEXT NOT NULL,
            role TEXT NOT NULL DEFAULT 'USER'
                CHECK (role IN ('ADMIN', 'MODERATOR', 'USER')),
            is_banned INTEGER NOT NULL DEFAULT 0 CHECK (is_banned IN (0, 1)),
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            last_login TIMESTAMP
        )
    """)

    cursor.execute("""
        CREATE TABLE IF NOT EXISTS sessions (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            last_activity TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            expires_at TIMESTAMP,
            FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE
        )
    """)

    cursor.execute("""
        CREATE TABLE IF NOT EXISTS characters (
            id TEXT PRIMARY KEY,
            name TEXT UNIQUE NOT NULL,
            description TEXT,
            visibility TEXT NOT NULL DEFAULT 'PUBLIC'
                CHECK (visibility IN ('PUBLIC', 'PRIVATE', 'HIDDEN')),
            owner_id TEXT,
            level INTEGER NOT NULL DEFAULT 1 CHECK (level >= 1),
            experience INTEGER NOT NULL DEFAULT 0 CHECK (experience >= 0),
            health INTEGER NOT NULL DEFAULT 100,
            mana INTEGER NOT NULL DEFAULT 100,
            stamina INTEGER NOT NULL DEFAULT 100,
            strength INTEGER NOT NULL DEFAULT 10,
            constitution INTEGER NOT NULL DEFAULT 10,
            dexterity INTEGER NOT NULL DEFAULT 10,
            intelligence INTEGER NOT NULL DEFAULT 10,
            wisdom INTEGER NOT NULL DEFAULT 10,
            charisma INTEGER NOT NULL DEFAULT 10,
            age INTEGER NOT NULL DEFAULT 18,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            FOREIGN KEY(owner_id) REFERENCES users(id) ON DELETE SET NULL
        )
    """)

    cursor.execute("""
        CREATE TABLE IF NOT EXISTS items (
            id TEXT PRIMARY KEY,
            name TEXT UNIQUE NOT NULL,
            description TEXT,
            rarity TEXT NOT NULL DEFAULT 'COMMON',
            slot TEXT NOT NULL DEFAULT 'NONE',
            is_2_handed INTEGER NOT NULL DEFAULT 0 CHECK (is_2_handed IN (0, 1)),
            required_level INTEGER NOT NULL DEFAULT 1 CHECK (required_level >= 1),
            weight REAL NOT NULL DEFAULT 1.0 CHECK (weight >= 0),
            value INTEGER NOT NULL DEFAULT 0 CHECK (value >= 0),
            visibility TEXT NOT NULL DEFAULT 'PUBLIC'
                CHECK (visibility IN ('PUBLIC', 'PRIVATE', 'HIDDEN')),
            owner_id TEXT,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            FOREIGN KEY(owner_id) REFERENCES users(id) ON DELETE SET NULL
        )
    """)

    cursor.execute(f"""
        CREATE TABLE IF NOT EXISTS equipment (
            id TEXT PRIMARY KEY,
            character_id TEXT UNIQUE NOT NULL,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            {_equipment_slot_column_sql()},
            FOREIGN KEY(character_id) REFERENCES characters(id) ON DELETE CASCADE
        )
    """)  # nosec B608 - column names come from a module constant

    for statement in HOT_PATH_INDEX_STATEMENTS:
        cursor.execute(statement)

    conn.commit()

    if skip_admin:
        conn.close()
        return

    cursor.execute("SELECT COUNT(*) FROM users")
    user_count = int(cursor.fetchone()[0])

    if user_count == 0:
        admin_email = os.environ.get("RPG_ADMIN_EMAIL", "").strip().lower()
        admin_password = os.environ.get("RPG_ADMIN_PASSWORD")

        if admin_email and admin_password:
            if len(admin_password) < 8:
                print("Warning: RPG_ADMIN_PASSWORD must be at least 8 characters. Skipping.")
            else:
                cursor.execute(
                    """
                    INSERT INTO users (id, email, name, password_hash, role)
                    VALUES (?, ?, ?, ?, 'ADMIN')
                    """,
                    (
                        str(uuid.uuid4()),
                        admin_email,
                        "Administrator",
                        hash_password(admin_password),
                    ),
                )
                conn.commit()

                print("\n" + "=" * 60)
                print("ADMIN CREATED FROM ENVIRONMENT VARIABLES")
                print("=" * 60)
                print(f"Email: {admin_email}")
                print("=" * 60 + "\n")
        else:
            print("\n" + "=" * 60)
            print("DATABASE INITIALIZED (no admin created)")
            print("=" * 60)
            print("To create an admin, either:")
            print("  1. Set RPG_ADMIN_EMAIL and RPG_ADMIN_PASSWORD environment variables")
            print("     and run: rpg-server init-db")
            print("  2. Run interactively: rpg-server create-admin")
            print("=" * 60 + "\n")

    conn.close()
