"""Routes and health check configuration for the FastAPI application."""
from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import Depends
from fastapi.responses import JSONResponse
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from ..core.database import get_engine

if TYPE_CHECKING:
    from fastapi import FastAPI


def attach_routes(app: FastAPI) -> None:
    """Attach all routers and configure health check endpoints.

    Args:
        app: FastAPI application instance
    """
    from ..core.logging import get_logger
    from ..routing import attach_routers

    log = get_logger("podsite.config.routes")
    attached = attach_routers(app)
    log.info("[startup] Attached routers: %s", ", ".join(attached))

    # --- Health Check Endpoints ---
    @app.get("/api/health")
    def api_health_alias():
        return {"status": "ok"}

    @app.get("/healthz")
    def healthz():
        return {"ok": True}

    @app.get("/readyz")
    def readyz(engine: Engine = Depends(get_engine)):
        try:
            with engine.connect() as conn:
                conn.exec_driver_sql("SELECT 1")
            return {"ok": True}
        except SQLAlchemyError as e:
            return JSONResponse(status_code=500, content={"ok": False, "error": str(e)})
