from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile
from sqlmodel import Session
from starlette.concurrency import run_in_threadpool

from infrastructure.storage import StorageClient, StorageError, timestamped_key

from ...core.auth import require_admin
from ...core.config import Settings, get_settings
from ...core.database import get_session
from ...core.deps import get_storage
from ...services.audio import DecodeError, format_hint, peaks_from_bytes
from ...services.episodes import repo
from .common import episode_out, load_episode_or_404
from .schemas import EpisodeOut

log = logging.getLogger("podsite.episodes.write")

router = APIRouter(prefix="/episodes", tags=["episodes"], dependencies=[Depends(require_admin)])


def _parse_episode_number(raw: Optional[str]) -> Optional[int]:
    if raw is None or not str(raw).strip():
        return None
    try:
        return int(str(raw).strip())
    except ValueError:
        raise HTTPException(status_code=400, detail="episode_number must be an integer")


def _require_text(value: Optional[str], field: str) -> str:
    cleaned = (value or "").strip()
    if not cleaned:
        raise HTTPException(status_code=400, detail=f"{field} is required")
    return cleaned


def _extract_peaks(data: bytes, filename: str, target: int) -> Tuple[Optional[List[float]], float]:
    """Peaks for freshly uploaded audio; (None, 0.0) leaves the episode for the backfill."""
    try:
        return peaks_from_bytes(data, target, fmt=format_hint(filename))
    except DecodeError as exc:
        log.warning("[peaks] upload-time extraction failed for %s: %s", filename, exc)
        return None, 0.0


async def _upload(storage: StorageClient, prefix: str, upload: UploadFile, default_type: str) -> Tuple[str, bytes]:
    data = await upload.read()
    key = timestamped_key(prefix, upload.filename or "upload")
    url = await run_in_threadpool(storage.upload_bytes, key, data, upload.content_type or default_type)
    return url, data


@router.post("", response_model=EpisodeOut, status_code=201)
async def create_episode(
    title: str = Form(...),
    host: str = Form(...),
    description: str = Form(""),
    category: str = Form(""),
    episode_number: Optional[str] = Form(None),
    references: Optional[str] = Form(None),
    audio: UploadFile = File(...),
    image: Optional[UploadFile] = File(None),
    session: Session = Depends(get_session),
    storage: StorageClient = Depends(get_storage),
    settings: Settings = Depends(get_settings),
):
    title = _require_text(title, "title")
    host = _require_text(host, "host")
    number = _parse_episode_number(episode_number)

    try:
        audio_url, audio_bytes = await _upload(storage, "audio", audio, "audio/mpeg")
    except StorageError as exc:
        raise HTTPException(status_code=500, detail="Failed to upload audio file") from exc

    image_url: Optional[str] = None
    if image is not None and image.filename:
        try:
            image_url, _ = await _upload(storage, "images", image, "image/jpeg")
        except StorageError as exc:
            log.warning("[episodes] cover upload failed, continuing without image: %s", exc)

    # Decoding is CPU-bound; keep it off the event loop
    peaks, duration = await run_in_threadpool(
        _extract_peaks, audio_bytes, audio.filename or "", settings.PEAKS_TARGET_COUNT,
    )

    ep = repo.create_episode(session, {
        "title": title,
        "description": description or "",
        "host": host,
        "category": category or "",
        "audio_url": audio_url,
        "image_url": image_url,
        "duration": duration,
        "episode_number": number,
        "references": references,
        "peaks": peaks,
    })
    log.info("[episodes] created episode=%s peaks=%s", ep.id, len(peaks) if peaks else 0)
    return episode_out(ep)


@router.put("/{episode_id}", response_model=EpisodeOut)
async def update_episode(
    episode_id: UUID,
    request: Request,
    title: str = Form(...),
    host: str = Form(...),
    description: str = Form(""),
    category: str = Form(""),
    image: Optional[UploadFile] = File(None),
    session: Session = Depends(get_session),
    storage: StorageClient = Depends(get_storage),
):
    ep = load_episode_or_404(session, episode_id)
    fields: Dict[str, Any] = {
        "title": _require_text(title, "title"),
        "host": _require_text(host, "host"),
        "description": description or "",
        "category": category or "",
    }

    # Presence matters here: an empty value clears, an absent key leaves the column alone.
    form = await request.form()
    if "references" in form:
        fields["references"] = form.get("references") or None
    if "episode_number" in form:
        fields["episode_number"] = _parse_episode_number(form.get("episode_number"))  # type: ignore[arg-type]

    old_image_url = ep.image_url
    replaced_image = False
    if image is not None and image.filename:
        try:
            fields["image_url"], _ = await _upload(storage, "images", image, "image/jpeg")
            replaced_image = True
        except StorageError as exc:
            log.warning("[episodes] cover upload failed for episode=%s: %s", episode_id, exc)
    elif form.get("image_url"):
        fields["image_url"] = str(form.get("image_url"))

    ep = repo.update_episode(session, ep, fields)
    if replaced_image and old_image_url:
        storage.delete_url(old_image_url)
    return episode_out(ep)


@router.delete("/{episode_id}")
def delete_episode(
    episode_id: UUID,
    session: Session = Depends(get_session),
    storage: StorageClient = Depends(get_storage),
):
    ep = load_episode_or_404(session, episode_id)
    urls = [ep.audio_url, ep.image_url]
    repo.delete_episode(session, ep)
    removed = [url for url in urls if url and storage.delete_url(url)]
    log.info("[episodes] deleted episode=%s removed_objects=%d", episode_id, len(removed))
    return {"success": True, "removed_objects": len(removed)}
