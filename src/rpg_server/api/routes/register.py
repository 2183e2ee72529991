"""
Route registration entry point for the FastAPI application.

Each feature lives in its own router module; ``register_routes`` is the only
place that knows the full list.
"""

from fastapi import FastAPI

from rpg_server.api.routes import auth, characters, equipment, health, items, users


def register_routes(app: FastAPI) -> None:
    """Register all API routes with the FastAPI app."""
    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(characters.router)
    app.include_router(items.router)
    app.include_router(equipment.router)
    app.include_router(users.router)
