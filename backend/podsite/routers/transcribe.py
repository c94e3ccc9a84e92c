from __future__ import annotations

import logging
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends
from pydantic import BaseModel
from sqlalchemy.engine import Engine
from sqlmodel import Session

from infrastructure.storage import StorageClient

from ..core.auth import require_admin
from ..core.database import get_engine, get_session
from ..core.deps import get_storage, get_transcriber
from ..services.transcription import Transcriber, run_transcription_job
from .episodes.common import load_episode_or_404

log = logging.getLogger("podsite.transcribe")

router = APIRouter(prefix="/transcribe", tags=["transcription"], dependencies=[Depends(require_admin)])


class TranscribeRequest(BaseModel):
    episode_id: UUID


@router.post("", status_code=202)
def start_transcription(
    payload: TranscribeRequest,
    background_tasks: BackgroundTasks,
    transcriber: Transcriber = Depends(get_transcriber),
    session: Session = Depends(get_session),
    engine: Engine = Depends(get_engine),
    storage: StorageClient = Depends(get_storage),
):
    load_episode_or_404(session, payload.episode_id)
    background_tasks.add_task(run_transcription_job, engine, payload.episode_id, transcriber, storage)
    log.info("[transcribe] scheduled episode=%s", payload.episode_id)
    return {"success": True, "episode_id": str(payload.episode_id), "status": "scheduled"}
