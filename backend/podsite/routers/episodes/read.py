from __future__ import annotations

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlmodel import Session

from ...core.database import get_session
from ...services.episodes import repo
from ...services.player.timefmt import format_remaining
from ...services.player.transcript_sync import SegmentIndex
from ...services.player.waveform import render_svg
from .common import episode_detail, episode_out, load_episode_or_404, transcript_line
from .schemas import ActiveSegmentOut, EpisodeDetail, EpisodeOut

router = APIRouter(prefix="/episodes", tags=["episodes"])


@router.get("", response_model=List[EpisodeOut])
def list_episodes(session: Session = Depends(get_session)):
    return [episode_out(ep) for ep in repo.list_episodes(session)]


@router.get("/{episode_id}", response_model=EpisodeDetail)
def get_episode(episode_id: UUID, session: Session = Depends(get_session)):
    ep = load_episode_or_404(session, episode_id)
    return episode_detail(ep, repo.list_segments(session, episode_id))


@router.get("/{episode_id}/waveform.svg")
def get_waveform_svg(
    episode_id: UUID,
    progress: float = Query(0.0, ge=0.0, le=1.0),
    width: int = Query(600, ge=1, le=4000),
    height: int = Query(64, ge=1, le=1000),
    session: Session = Depends(get_session),
):
    ep = load_episode_or_404(session, episode_id)
    svg = render_svg(ep.peaks or [], progress, width, height)
    return Response(content=svg, media_type="image/svg+xml")


@router.get("/{episode_id}/transcript/at", response_model=ActiveSegmentOut)
def get_active_segment(
    episode_id: UUID,
    t: float = Query(..., ge=0.0),
    session: Session = Depends(get_session),
):
    ep = load_episode_or_404(session, episode_id)
    index = SegmentIndex(repo.list_segments(session, episode_id))
    seg = index.lookup(t)
    return ActiveSegmentOut(
        episode_id=episode_id,
        time=t,
        segment=transcript_line(seg) if seg is not None else None,
        remaining=format_remaining(t, ep.duration),
    )
