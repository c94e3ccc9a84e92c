from __future__ import annotations

from fastapi import APIRouter

from .read import router as read_router
from .write import router as write_router

# Aggregator router: sub-routers carry the '/episodes' prefix
router = APIRouter()
router.include_router(read_router)
router.include_router(write_router)

__all__ = ["router"]
