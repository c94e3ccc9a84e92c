"""FastAPI application factory.

This module provides the create_app() function that creates and configures
the FastAPI application instance. The app.py file uses this to expose the
app instance for ASGI servers.
"""
from __future__ import annotations

from typing import Optional

from fastapi import FastAPI
from sqlalchemy.engine import Engine

from .core.config import Settings, get_settings


def create_app(settings: Optional[Settings] = None, engine: Optional[Engine] = None) -> FastAPI:
    """Create and configure the FastAPI application.

    1. Logging configuration
    2. FastAPI app instantiation and its database engine (``app.state.engine``)
    3. Middleware and exception handlers
    4. Routes and health checks
    """
    from .config.middleware import configure_middleware
    from .config.routes import attach_routes
    from .core.database import build_engine, create_db_and_tables
    from .core.logging import configure_logging, get_logger

    settings = settings or get_settings()
    configure_logging(settings.LOG_LEVEL)
    log = get_logger("podsite.main")

    app = FastAPI(title="Hearing Decoded API", debug=settings.is_dev_mode)
    if engine is None:
        engine = build_engine(settings.DATABASE_URL)
        create_db_and_tables(engine)
    app.state.engine = engine
    configure_middleware(app, settings)
    attach_routes(app)

    if not settings.ADMIN_PASSWORD:
        log.warning("[startup] ADMIN_PASSWORD is unset; admin endpoints will answer 500")
    if not settings.transcription_enabled:
        log.warning("[startup] OPENAI_API_KEY is unset; transcription is disabled")
    log.info("[startup] Application configured successfully")
    return app


__all__ = ["create_app"]
