"""API route modules. ``register_routes`` attaches every router to the app."""

from rpg_server.api.routes.register import register_routes

__all__ = ["register_routes"]
