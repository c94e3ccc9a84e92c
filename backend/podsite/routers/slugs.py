from __future__ import annotations

from typing import Annotated, Any, List, Union
from uuid import UUID

from fastapi import APIRouter, Body, Depends, HTTPException, Query
from pydantic import BaseModel, Discriminator, Field, Tag
from sqlmodel import Session

from ..core.auth import require_admin
from ..core.database import get_session
from ..models.slug import EpisodeSlug
from ..services import slugs as slugs_svc
from ..services.episodes import repo

router = APIRouter(prefix="/slugs", tags=["slugs"])


class SlugCreate(BaseModel):
    episode_id: UUID
    slug: str = Field(..., min_length=1)


class SlugDeleteById(BaseModel):
    id: UUID


class SlugDeleteByPair(BaseModel):
    episode_id: UUID
    slug: str


def _delete_kind(value: Any) -> str:
    if isinstance(value, dict):
        return "by_id" if value.get("id") else "by_pair"
    return "by_id" if isinstance(value, SlugDeleteById) else "by_pair"


# Body is either {"id": ...} or {"episode_id": ..., "slug": ...}
SlugDelete = Annotated[
    Union[Annotated[SlugDeleteById, Tag("by_id")], Annotated[SlugDeleteByPair, Tag("by_pair")]],
    Discriminator(_delete_kind),
]


class SlugResolution(BaseModel):
    slug: str
    episode_id: UUID


@router.get("", response_model=List[EpisodeSlug])
def list_slugs(episode_id: UUID = Query(...), session: Session = Depends(get_session)):
    return slugs_svc.list_slugs(session, episode_id)


@router.get("/resolve/{slug}", response_model=SlugResolution)
def resolve_slug(slug: str, session: Session = Depends(get_session)):
    normalized = slugs_svc.slugify(slug)
    episode_id = slugs_svc.resolve_slug(session, normalized) if normalized else None
    if episode_id is None:
        raise HTTPException(status_code=404, detail="Slug not found")
    return SlugResolution(slug=normalized, episode_id=episode_id)


@router.post("", response_model=EpisodeSlug, status_code=201, dependencies=[Depends(require_admin)])
def add_slug(payload: SlugCreate, session: Session = Depends(get_session)):
    slug = slugs_svc.slugify(payload.slug)
    if not slug:
        raise HTTPException(status_code=400, detail="Slug is empty after normalization")
    if repo.get_episode_by_id(session, payload.episode_id) is None:
        raise HTTPException(status_code=404, detail="Episode not found")
    try:
        return slugs_svc.add_slug(session, payload.episode_id, slug)
    except slugs_svc.SlugConflictError:
        raise HTTPException(status_code=409, detail="Slug already exists")


@router.delete("", dependencies=[Depends(require_admin)])
def delete_slug(payload: SlugDelete = Body(...), session: Session = Depends(get_session)):
    if isinstance(payload, SlugDeleteById):
        deleted = slugs_svc.delete_slug_by_id(session, payload.id)
    else:
        deleted = slugs_svc.delete_slug_by_pair(session, payload.episode_id, slugs_svc.slugify(payload.slug))
    return {"success": True, "deleted": deleted}
