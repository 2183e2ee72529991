"""Health and root endpoints.

Provides the root ``/`` endpoint (API identity and version) and the
``/health`` endpoint (liveness check with active session count).

The version string is read from ``rpg_server.__version__``, resolved at
import time via ``importlib.metadata`` from the installed distribution.
"""

import asyncio

from fastapi import APIRouter

from rpg_server import __version__
from rpg_server.db import sessions_repo

router = APIRouter(tags=["health"])


@router.get("/")
async def root():
    """Root endpoint showing API identity and current version."""
    return {"message": "RPG Character Server API", "version": __version__}


@router.get("/health")
async def health_check():
    """Health check endpoint."""
    active = await asyncio.to_thread(sessions_repo.get_active_session_count)
    return {"status": "ok", "active_sessions": active}
