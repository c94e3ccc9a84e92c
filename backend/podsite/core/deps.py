"""Injected service clients (storage, transcription).

Built per request from Settings rather than held as module globals; tests swap
them through ``app.dependency_overrides``.
"""
from __future__ import annotations

from fastapi import Depends, HTTPException, status

from infrastructure.storage import StorageClient

from ..services.transcription import Transcriber, WhisperTranscriber
from .config import Settings, get_settings


def get_storage(settings: Settings = Depends(get_settings)) -> StorageClient:
    return StorageClient.from_settings(settings)


def get_transcriber(settings: Settings = Depends(get_settings)) -> Transcriber:
    if not settings.transcription_enabled:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Transcription is not configured (missing OPENAI_API_KEY)",
        )
    return WhisperTranscriber(settings.OPENAI_API_KEY, settings.TRANSCRIPTION_MODEL)
