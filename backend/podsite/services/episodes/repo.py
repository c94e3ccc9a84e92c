from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlmodel import Session, delete, select

from ...models.comment import Comment
from ...models.episode import Episode
from ...models.slug import EpisodeSlug
from ...models.transcript import TranscriptSegment


def get_episode_by_id(session: Session, episode_id: UUID) -> Optional[Episode]:
    return session.get(Episode, episode_id)


def list_episodes(session: Session) -> List[Episode]:
    return list(session.exec(select(Episode).order_by(Episode.created_at.desc())).all())  # type: ignore[attr-defined]


def list_segments(session: Session, episode_id: UUID) -> List[TranscriptSegment]:
    q = (
        select(TranscriptSegment)
        .where(TranscriptSegment.episode_id == episode_id)
        .order_by(TranscriptSegment.start_time)
    )
    return list(session.exec(q).all())


def create_episode(session: Session, data: Dict[str, Any]) -> Episode:
    ep = Episode(**data)
    session.add(ep)
    session.commit()
    session.refresh(ep)
    return ep


def update_episode(session: Session, ep: Episode, fields: Dict[str, Any]) -> Episode:
    for k, v in fields.items():
        setattr(ep, k, v)
    ep.updated_at = datetime.now(timezone.utc)
    session.add(ep)
    session.commit()
    session.refresh(ep)
    return ep


def delete_episode(session: Session, ep: Episode) -> None:
    """Delete episode and all related child records.

    Child rows are removed first so foreign keys hold on databases that enforce them.
    """
    episode_id = ep.id
    for model in (TranscriptSegment, Comment, EpisodeSlug):
        session.exec(delete(model).where(model.episode_id == episode_id))  # type: ignore[attr-defined]
    session.delete(ep)
    session.commit()
