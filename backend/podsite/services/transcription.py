"""Episode transcription via OpenAI Whisper (segment-level timestamps)."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, List, Optional, Protocol
from urllib.parse import urlparse
from uuid import UUID

from openai import OpenAI, OpenAIError
from sqlalchemy.engine import Engine
from sqlmodel import delete

from infrastructure.storage import StorageClient, StorageError

from ..core.database import session_scope
from ..models.episode import Episode
from ..models.transcript import TranscriptSegment
from .audio.fetch import AudioFetchError, fetch_audio_bytes

log = logging.getLogger("podsite.transcription")


class TranscriptionError(Exception):
    """Custom exception for transcription failures."""


@dataclass(frozen=True)
class SegmentData:
    start: float
    end: float
    text: str


class Transcriber(Protocol):
    def transcribe(self, audio: bytes, filename: str = "audio.mp3") -> List[SegmentData]:
        ...


def _field(obj: Any, name: str, default: Any = None) -> Any:
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


class WhisperTranscriber:
    def __init__(self, api_key: str, model: str = "whisper-1", client: Optional[OpenAI] = None) -> None:
        if client is None and not (api_key or "").strip():
            raise TranscriptionError("OPENAI_API_KEY is not configured")
        self.model = model
        self._client = client or OpenAI(api_key=api_key.strip())

    def transcribe(self, audio: bytes, filename: str = "audio.mp3") -> List[SegmentData]:
        try:
            result = self._client.audio.transcriptions.create(
                file=(filename, audio, "audio/mpeg"),
                model=self.model,
                response_format="verbose_json",
                timestamp_granularities=["segment"],
            )
        except OpenAIError as exc:
            raise TranscriptionError(f"Whisper request failed: {exc}") from exc

        segments: List[SegmentData] = []
        for raw in _field(result, "segments", None) or []:
            text = str(_field(raw, "text", "") or "").strip()
            start = float(_field(raw, "start", 0.0) or 0.0)
            end = float(_field(raw, "end", start) or start)
            segments.append(SegmentData(start=start, end=max(start, end), text=text))
        return segments


def replace_transcript(session, episode_id: UUID, segments: List[SegmentData]) -> int:
    session.exec(delete(TranscriptSegment).where(TranscriptSegment.episode_id == episode_id))
    for seg in segments:
        session.add(TranscriptSegment(
            episode_id=episode_id, start_time=seg.start, end_time=seg.end, text=seg.text,
        ))
    session.commit()
    return len(segments)


def run_transcription_job(
    engine: Engine,
    episode_id: UUID,
    transcriber: Transcriber,
    storage: Optional[StorageClient] = None,
) -> int:
    """Background job: download the episode audio, transcribe it and store the segments.

    Returns the number of stored segments, or -1 when the job failed (already logged).
    """
    with session_scope(engine) as session:
        episode = session.get(Episode, episode_id)
        if episode is None:
            log.warning("[transcribe] episode=%s disappeared before transcription", episode_id)
            return -1
        try:
            audio = fetch_audio_bytes(episode.audio_url, storage)
            filename = os.path.basename(urlparse(episode.audio_url).path) or "audio.mp3"
            segments = transcriber.transcribe(audio, filename)
        except (AudioFetchError, StorageError, TranscriptionError) as exc:
            log.error("[transcribe] episode=%s failed: %s", episode_id, exc)
            return -1
        count = replace_transcript(session, episode_id, segments)
    log.info("[transcribe] episode=%s stored %d segments", episode_id, count)
    return count
