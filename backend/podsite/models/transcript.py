from __future__ import annotations

from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel


class TranscriptSegment(SQLModel, table=True):
    """One timed line of an episode transcript (seconds from the start of the audio)."""
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    episode_id: UUID = Field(foreign_key="episode.id", index=True)
    start_time: float = Field(ge=0)
    end_time: float = Field(ge=0)
    text: str = Field(default="")


class TranscriptSegmentPublic(SQLModel):
    id: UUID
    start_time: float
    end_time: float
    text: str
