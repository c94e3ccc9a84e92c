from __future__ import annotations

from datetime import datetime, timezone
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel


class EpisodeSlug(SQLModel, table=True):
    """Human-readable alias resolving to an episode (e.g. ``hidden-dangers``)."""
    __tablename__ = "episode_slug"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    episode_id: UUID = Field(foreign_key="episode.id", index=True)
    slug: str = Field(unique=True, index=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), index=True)
