from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel

from ...models.episode import EpisodePublic
from ...models.transcript import TranscriptSegmentPublic


class EpisodeOut(EpisodePublic):
    reference_items: List[str] = []
    duration_label: str = "0:00"
    duration_words: str = "0 minutes"
    remaining_label: str = "Loading..."
    listening: int = 0


class TranscriptLine(TranscriptSegmentPublic):
    timestamp: str


class EpisodeDetail(EpisodeOut):
    transcript: List[TranscriptLine] = []


class ActiveSegmentOut(BaseModel):
    episode_id: UUID
    time: float
    segment: Optional[TranscriptLine] = None
    remaining: str = "Loading..."
