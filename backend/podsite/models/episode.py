"""Episode model: audio asset record plus its pre-computed waveform peaks."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID, uuid4

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel


class EpisodeBase(SQLModel):
    title: str
    description: str = Field(default="")
    host: str
    category: str = Field(default="")
    audio_url: str
    image_url: Optional[str] = Field(default=None)
    duration: float = Field(default=0.0, description="Duration in seconds, measured when peaks are generated")
    episode_number: Optional[int] = Field(default=None)
    references: Optional[str] = Field(default=None, description="Newline-separated reference lines")


class Episode(EpisodeBase, table=True):
    """Published episode. ``peaks`` stays empty until upload-time extraction or a backfill fills it."""
    id: UUID = Field(default_factory=uuid4, primary_key=True, index=True)
    peaks: Optional[List[float]] = Field(default=None, sa_column=Column(JSON))
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), index=True)
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class EpisodePublic(EpisodeBase):
    id: UUID
    peaks: Optional[List[float]] = None
    created_at: datetime
    updated_at: datetime
