from __future__ import annotations

import logging
from typing import List

from fastapi import FastAPI

from .routers.admin import router as admin_router
from .routers.comments import router as comments_router
from .routers.episodes import router as episodes_router
from .routers.slugs import router as slugs_router
from .routers.transcribe import router as transcribe_router

log = logging.getLogger(__name__)

_ROUTERS = (
    ("episodes", episodes_router),
    ("comments", comments_router),
    ("slugs", slugs_router),
    ("transcribe", transcribe_router),
    ("admin", admin_router),
)


def attach_routers(app: FastAPI) -> List[str]:
    """Include every API router under ``/api``; returns the names attached."""
    names: List[str] = []
    for name, router in _ROUTERS:
        app.include_router(router, prefix="/api")
        names.append(name)
    return names
