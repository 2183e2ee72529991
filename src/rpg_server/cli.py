"""
Command-line interface for the RPG character server.

Provides CLI commands for server management:
- init-db: Initialize the database schema
- create-admin: Create an ADMIN account interactively or via environment variables
- run: Start the API server

Usage:
    rpg-server init-db
    rpg-server create-admin
    rpg-server run [--port PORT] [--host HOST]

Environment Variables:
    RPG_ADMIN_EMAIL: Email for the admin account (used by init-db if set)
    RPG_ADMIN_PASSWORD: Password for the admin account (used by init-db if set)
    RPG_HOST: Host to bind the API server (default: 0.0.0.0)
    RPG_PORT: Port for the API server (default: 8000)
"""

import argparse
import getpass
import os
import sqlite3
import sys

MIN_PASSWORD_LENGTH = 8


def get_admin_credentials_from_env() -> tuple[str, str] | None:
    """
    Get admin credentials from environment variables.

    Returns:
        Tuple of (email, password) if both RPG_ADMIN_EMAIL and RPG_ADMIN_PASSWORD are set.
        None if either is missing.
    """
    email = os.environ.get("RPG_ADMIN_EMAIL")
    password = os.environ.get("RPG_ADMIN_PASSWORD")

    if email and password:
        return email.strip().lower(), password
    return None


def prompt_for_credentials() -> tuple[str, str]:
    """
    Interactively prompt for admin credentials.

    Re-prompts until the email looks like an address and the password is at
    least ``MIN_PASSWORD_LENGTH`` characters and confirmed.

    Raises:
        SystemExit: If the user cancels (Ctrl+C) during input.
    """
    print("\n" + "=" * 60)
    print("CREATE ADMIN")
    print("=" * 60)

    try:
        while True:
            email = input("Email: ").strip().lower()
            if "@" in email:
                break
            print("Please enter a valid email address.")

        while True:
            password = getpass.getpass("Password: ")
            if len(password) < MIN_PASSWORD_LENGTH:
                print(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")
                continue
            if getpass.getpass("Confirm password: ") != password:
                print("Passwords do not match.")
                continue
            return email, password
    except KeyboardInterrupt:
        print("\nCancelled.")
        sys.exit(1)


def cmd_init_db(args: argparse.Namespace) -> int:
    """
    Initialize the database schema.

    If RPG_ADMIN_EMAIL and RPG_ADMIN_PASSWORD are set and no user exists yet,
    an admin account is created with those credentials.

    Returns:
        0 on success, 1 on error
    """
    from rpg_server.db.schema import init_database

    try:
        init_database()
        print("Database initialized successfully.")
        return 0
    except (sqlite3.Error, OSError) as e:
        print(f"Error initializing database: {e}", file=sys.stderr)
        return 1


def cmd_create_admin(args: argparse.Namespace) -> int:
    """
    Create an ADMIN account.

    Checks RPG_ADMIN_EMAIL and RPG_ADMIN_PASSWORD first; if not set, prompts
    interactively.

    Returns:
        0 on success, 1 on error
    """
    from rpg_server.db import users_repo
    from rpg_server.db.errors import DatabaseError
    from rpg_server.db.schema import init_database

    # Ensure the schema exists; the admin is created below.
    init_database(skip_admin=True)

    env_creds = get_admin_credentials_from_env()
    if env_creds:
        email, password = env_creds
        print(f"Using credentials from environment variables for '{email}'")
    else:
        if not sys.stdin.isatty():
            print(
                "Error: No credentials provided.\n"
                "Set RPG_ADMIN_EMAIL and RPG_ADMIN_PASSWORD environment variables,\n"
                "or run interactively to be prompted for credentials.",
                file=sys.stderr,
            )
            return 1
        email, password = prompt_for_credentials()

    if len(password) < MIN_PASSWORD_LENGTH:
        print(
            f"Error: Password must be at least {MIN_PASSWORD_LENGTH} characters.",
            file=sys.stderr,
        )
        return 1

    if users_repo.user_exists(email):
        print(f"Error: User '{email}' already exists.", file=sys.stderr)
        return 1

    try:
        created = users_repo.create_user(email, "Administrator", password, role="ADMIN")
    except DatabaseError as e:
        print(f"Error creating admin: {e}", file=sys.stderr)
        return 1
    if created is None:
        print(f"Error: Failed to create user '{email}'.", file=sys.stderr)
        return 1

    print(f"\nAdmin '{email}' created successfully.")
    return 0


def cmd_run(args: argparse.Namespace) -> int:
    """
    Start the API server.

    Initializes the schema first so a fresh checkout can be started directly.

    Returns:
        0 on clean shutdown
    """
    from rpg_server.api.server import start_server
    from rpg_server.config import print_config_summary
    from rpg_server.db.schema import init_database

    init_database(skip_admin=True)
    print_config_summary()
    start_server(host=args.host, port=args.port)
    return 0


def main() -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        prog="rpg-server",
        description="RPG Character Server - characters, items and equipment over HTTP",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    init_parser = subparsers.add_parser(
        "init-db",
        help="Initialize the database schema",
        description=(
            "Initialize the database with required tables. "
            "If RPG_ADMIN_EMAIL and RPG_ADMIN_PASSWORD are set, creates an admin."
        ),
    )
    init_parser.set_defaults(func=cmd_init_db)

    admin_parser = subparsers.add_parser(
        "create-admin",
        help="Create an admin account",
        description=(
            "Create an ADMIN account. Uses RPG_ADMIN_EMAIL and RPG_ADMIN_PASSWORD "
            "environment variables if set, otherwise prompts interactively."
        ),
    )
    admin_parser.set_defaults(func=cmd_create_admin)

    run_parser = subparsers.add_parser(
        "run",
        help="Run the API server",
        description="Start the API server with uvicorn.",
    )
    run_parser.add_argument(
        "--port",
        "-p",
        type=int,
        help="API server port (default: 8000, or RPG_PORT env var)",
    )
    run_parser.add_argument(
        "--host",
        type=str,
        help="Host to bind to (default: 0.0.0.0, or RPG_HOST env var)",
    )
    run_parser.set_defaults(func=cmd_run)

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        return 0

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
