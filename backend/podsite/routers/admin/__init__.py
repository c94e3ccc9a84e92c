from __future__ import annotations

from fastapi import APIRouter

from .auth import router as auth_router
from .peaks import router as peaks_router

router = APIRouter(prefix="/admin")
router.include_router(auth_router)
router.include_router(peaks_router)

__all__ = ["router"]
