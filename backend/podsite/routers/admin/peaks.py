from __future__ import annotations

from dataclasses import asdict
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends
from pydantic import BaseModel
from sqlmodel import Session

from infrastructure.storage import StorageClient

from ...core.auth import require_admin
from ...core.config import Settings, get_settings
from ...core.database import get_session
from ...core.deps import get_storage
from ...services.audio.backfill import backfill_peaks

router = APIRouter(prefix="/peaks", tags=["admin"], dependencies=[Depends(require_admin)])


class BackfillRequest(BaseModel):
    episode_ids: Optional[List[UUID]] = None
    force: bool = False


class BackfillItem(BaseModel):
    episode_id: UUID
    status: str
    peak_count: int = 0
    duration: Optional[float] = None
    error: Optional[str] = None


class BackfillResponse(BaseModel):
    processed: int
    updated: int
    failed: int
    results: List[BackfillItem]


@router.post("/backfill", response_model=BackfillResponse)
def run_backfill(
    payload: Optional[BackfillRequest] = Body(None),
    session: Session = Depends(get_session),
    storage: StorageClient = Depends(get_storage),
    settings: Settings = Depends(get_settings),
):
    req = payload or BackfillRequest()
    results = backfill_peaks(
        session,
        storage,
        episode_ids=req.episode_ids,
        force=req.force,
        target=settings.PEAKS_TARGET_COUNT,
        timeout=settings.AUDIO_FETCH_TIMEOUT_SECONDS,
    )
    items = [BackfillItem(**asdict(r)) for r in results]
    updated = sum(1 for r in results if r.status == "updated")
    return BackfillResponse(
        processed=len(items),
        updated=updated,
        failed=len(items) - updated,
        results=items,
    )
