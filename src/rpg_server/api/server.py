"""
FastAPI application for the RPG character server.

``create_app`` builds the application from ``rpg_server.config``:
- logging level and format
- CORS middleware restricted to the configured origins
- interactive docs toggled by ``security.docs_enabled``
- error handlers producing the shared error envelope
- all feature routers

The module-level ``app`` is what uvicorn serves.
"""

import logging

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from rpg_server import __version__
from rpg_server.api.errors import register_error_handlers
from rpg_server.api.routes import register_routes
from rpg_server.config import config

logger = logging.getLogger(__name__)

LOG_FORMATS = {
    "simple": "%(levelname)s %(name)s: %(message)s",
    "detailed": "%(asctime)s %(levelname)s [%(name)s] %(message)s",
}


def configure_logging() -> None:
    """Apply ``config.logging`` to the root logger."""
    logging.basicConfig(
        level=config.logging.level.upper(),
        format=LOG_FORMATS.get(config.logging.format, LOG_FORMATS["detailed"]),
    )


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    configure_logging()

    docs_enabled = config.docs_should_be_enabled
    app = FastAPI(
        title="RPG Character Server",
        version=__version__,
        docs_url="/docs" if docs_enabled else None,
        redoc_url="/redoc" if docs_enabled else None,
        openapi_url="/openapi.json" if docs_enabled else None,
    )

    # ========================================================================
    # MIDDLEWARE CONFIGURATION
    # ========================================================================

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.security.cors_origins,
        allow_credentials=config.security.cors_allow_credentials,
        allow_methods=config.security.cors_allow_methods,
        allow_headers=config.security.cors_allow_headers,
    )

    register_error_handlers(app)
    register_routes(app)

    logger.info(
        "App created (production=%s, docs=%s, db=%s)",
        config.is_production,
        docs_enabled,
        config.database.absolute_path,
    )
    return app


app = create_app()


def start_server(host: str | None = None, port: int | None = None) -> None:
    """Serve ``app`` with uvicorn on the configured (or given) address."""
    uvicorn.run(
        app,
        host=host or config.server.host,
        port=port or config.server.port,
        log_level=config.logging.level.lower(),
    )
