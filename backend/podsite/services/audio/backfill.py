"""Peak backfill for episodes created before (or without) upload-time extraction.

Each invocation touches every selected episode at most once. A failure on one
episode is recorded in its result and the batch continues; re-running simply
picks up whatever still lacks peaks.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Iterable, List, Optional
from uuid import UUID

from sqlmodel import Session, select

from infrastructure.storage import StorageClient, StorageError

from ...models.episode import Episode
from .fetch import AudioFetchError, fetch_audio_bytes
from .peaks import DEFAULT_PEAK_COUNT, DecodeError, format_hint, peaks_from_bytes

log = logging.getLogger("podsite.audio.backfill")

AudioFetcher = Callable[[str], bytes]


@dataclass
class BackfillResult:
    episode_id: UUID
    status: str  # "updated" | "failed"
    peak_count: int = 0
    duration: Optional[float] = None
    error: Optional[str] = None


def episodes_needing_peaks(
    session: Session,
    episode_ids: Optional[Iterable[UUID]] = None,
    force: bool = False,
) -> List[Episode]:
    q = select(Episode).order_by(Episode.created_at)
    if episode_ids:
        q = q.where(Episode.id.in_(list(dict.fromkeys(episode_ids))))  # type: ignore[attr-defined]
    rows = session.exec(q).all()
    return [ep for ep in rows if force or not ep.peaks]


def backfill_peaks(
    session: Session,
    storage: Optional[StorageClient],
    *,
    episode_ids: Optional[Iterable[UUID]] = None,
    force: bool = False,
    target: int = DEFAULT_PEAK_COUNT,
    fetch: Optional[AudioFetcher] = None,
    timeout: float = 120.0,
) -> List[BackfillResult]:
    fetcher = fetch or (lambda url: fetch_audio_bytes(url, storage, timeout=timeout))
    results: List[BackfillResult] = []
    for episode in episodes_needing_peaks(session, episode_ids, force):
        try:
            data = fetcher(episode.audio_url)
            peaks, duration = peaks_from_bytes(data, target, fmt=format_hint(episode.audio_url))
        except (AudioFetchError, StorageError, DecodeError) as exc:
            log.warning("[peaks] backfill failed for episode=%s: %s", episode.id, exc)
            results.append(BackfillResult(episode_id=episode.id, status="failed", error=str(exc)))
            continue

        episode.peaks = peaks
        if duration > 0:
            episode.duration = duration
        episode.updated_at = datetime.now(timezone.utc)
        session.add(episode)
        session.commit()
        log.info("[peaks] backfilled episode=%s peaks=%d duration=%.2fs", episode.id, len(peaks), duration)
        results.append(BackfillResult(
            episode_id=episode.id, status="updated", peak_count=len(peaks), duration=duration,
        ))
    return results
