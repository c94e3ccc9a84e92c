"""Human-readable episode aliases."""
from __future__ import annotations

import logging
import re
from typing import List, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from ..models.slug import EpisodeSlug

log = logging.getLogger("podsite.slugs")

_SEPARATORS_RE = re.compile(r"[\s_]+")
_DISALLOWED_RE = re.compile(r"[^a-z0-9-]")
_DASHES_RE = re.compile(r"-+")


class SlugConflictError(Exception):
    """The slug is already taken by some episode."""


def slugify(value: str) -> str:
    """Lowercase, dash-separated, ``[a-z0-9-]`` only. May return an empty string."""
    text = (value or "").lower().strip()
    text = _SEPARATORS_RE.sub("-", text)
    text = _DISALLOWED_RE.sub("", text)
    text = _DASHES_RE.sub("-", text)
    return text.strip("-")


def list_slugs(session: Session, episode_id: UUID) -> List[EpisodeSlug]:
    q = (
        select(EpisodeSlug)
        .where(EpisodeSlug.episode_id == episode_id)
        .order_by(EpisodeSlug.created_at.desc())  # type: ignore[attr-defined]
    )
    return list(session.exec(q).all())


def resolve_slug(session: Session, slug: str) -> Optional[UUID]:
    row = session.exec(select(EpisodeSlug).where(EpisodeSlug.slug == slug)).first()
    return row.episode_id if row else None


def add_slug(session: Session, episode_id: UUID, slug: str) -> EpisodeSlug:
    """Insert an already-normalized slug; raises SlugConflictError if it exists."""
    if session.exec(select(EpisodeSlug).where(EpisodeSlug.slug == slug)).first() is not None:
        raise SlugConflictError(slug)
    row = EpisodeSlug(episode_id=episode_id, slug=slug)
    session.add(row)
    try:
        session.commit()
    except IntegrityError as exc:
        # Lost a race against a concurrent insert of the same slug
        session.rollback()
        raise SlugConflictError(slug) from exc
    session.refresh(row)
    log.info("[slugs] added slug=%s episode=%s", slug, episode_id)
    return row


def delete_slug_by_id(session: Session, slug_id: UUID) -> int:
    row = session.get(EpisodeSlug, slug_id)
    if row is None:
        return 0
    session.delete(row)
    session.commit()
    return 1


def delete_slug_by_pair(session: Session, episode_id: UUID, slug: str) -> int:
    rows = session.exec(
        select(EpisodeSlug).where(EpisodeSlug.episode_id == episode_id, EpisodeSlug.slug == slug)
    ).all()
    for row in rows:
        session.delete(row)
    session.commit()
    return len(rows)
