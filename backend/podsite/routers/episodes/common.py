from __future__ import annotations

import time
from typing import Optional, Sequence
from uuid import UUID

from fastapi import HTTPException
from sqlmodel import Session

from ...models.episode import Episode
from ...models.transcript import TranscriptSegment
from ...services.episodes import repo
from ...services.episodes.references import parse_references
from ...services.player.listeners import listener_count_at
from ...services.player.timefmt import format_clock, format_duration_words, format_remaining, format_timestamp
from .schemas import EpisodeDetail, EpisodeOut, TranscriptLine


def load_episode_or_404(session: Session, episode_id: UUID) -> Episode:
    ep = repo.get_episode_by_id(session, episode_id)
    if ep is None:
        raise HTTPException(status_code=404, detail="Episode not found")
    return ep


def transcript_line(seg: TranscriptSegment) -> TranscriptLine:
    return TranscriptLine(
        id=seg.id,
        start_time=seg.start_time,
        end_time=seg.end_time,
        text=seg.text,
        timestamp=format_timestamp(seg.start_time),
    )


def episode_out(ep: Episode, now: Optional[float] = None) -> EpisodeOut:
    data = ep.model_dump()
    return EpisodeOut(
        **data,
        reference_items=parse_references(ep.references),
        duration_label=format_clock(ep.duration),
        duration_words=format_duration_words(ep.duration),
        remaining_label=format_remaining(0.0, ep.duration),
        listening=listener_count_at(str(ep.id), time.time() if now is None else now),
    )


def episode_detail(ep: Episode, segments: Sequence[TranscriptSegment], now: Optional[float] = None) -> EpisodeDetail:
    base = episode_out(ep, now)
    return EpisodeDetail(**base.model_dump(), transcript=[transcript_line(s) for s in segments])
