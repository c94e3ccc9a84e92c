from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

log = logging.getLogger("podsite.core.config")

# Load .env.local then .env into os.environ before Settings reads it.
# Existing environment variables take precedence (CI/CD, containers).
try:
    from dotenv import load_dotenv

    _PROJECT_ROOT = Path(__file__).parent.parent.parent
    _ENV_LOCAL = _PROJECT_ROOT / ".env.local"
    _ENV_FILE = _PROJECT_ROOT / ".env"

    if _ENV_LOCAL.exists():
        load_dotenv(_ENV_LOCAL, override=False)
        log.info("[config] Loaded .env.local from %s", _ENV_LOCAL)
    if _ENV_FILE.exists():
        load_dotenv(_ENV_FILE, override=False)
        log.info("[config] Loaded .env from %s", _ENV_FILE)
except ImportError:
    log.debug("[config] python-dotenv not installed, skipping explicit .env loading")

_DEV_ENVS = {"dev", "development", "local", "test", "testing"}


class Settings(BaseSettings):
    model_config = SettingsConfigDict(extra="ignore", case_sensitive=True)

    # --- Core Infrastructure ---
    APP_ENV: str = Field(
        default="dev",
        validation_alias=AliasChoices("APP_ENV", "ENV", "PYTHON_ENV"),
    )
    DATABASE_URL: str = "sqlite:///./local_podsite.db"

    # --- Admin session ---
    ADMIN_PASSWORD: Optional[str] = Field(default=None, description="Shared admin password; also signs session tokens")
    SESSION_MAX_AGE_SECONDS: int = 60 * 60 * 24 * 30  # 30 days
    SESSION_COOKIE_NAME: str = "admin_session"
    ALGORITHM: str = "HS256"

    # --- Object storage (S3-compatible API) ---
    STORAGE_BUCKET: str = "episodes"
    STORAGE_ENDPOINT_URL: Optional[str] = None
    STORAGE_ACCESS_KEY_ID: Optional[str] = None
    STORAGE_SECRET_ACCESS_KEY: Optional[str] = None
    STORAGE_REGION: str = "auto"
    STORAGE_PUBLIC_BASE_URL: Optional[str] = Field(
        default=None,
        description="Public URL prefix for stored objects, e.g. https://cdn.example.com/episodes",
    )

    # --- Transcription ---
    OPENAI_API_KEY: str = ""
    TRANSCRIPTION_MODEL: str = "whisper-1"

    # --- Waveform ---
    PEAKS_TARGET_COUNT: int = Field(default=1200, ge=1)
    AUDIO_FETCH_TIMEOUT_SECONDS: float = 120.0

    # --- Application Behavior ---
    CORS_ALLOWED_ORIGINS: str = "http://127.0.0.1:3000,http://localhost:3000"
    LOG_LEVEL: str = "INFO"

    @property
    def is_dev_mode(self) -> bool:
        """Check if running in development mode"""
        env = (self.APP_ENV or "dev").strip().lower()
        return env in _DEV_ENVS

    @property
    def cors_allowed_origin_list(self) -> list[str]:
        raw = (self.CORS_ALLOWED_ORIGINS or "").replace(";", ",")
        seen: set[str] = set()
        merged: list[str] = []
        for origin in raw.split(","):
            value = origin.strip().rstrip("/")
            if value and value not in seen:
                seen.add(value)
                merged.append(value)
        return merged

    @property
    def transcription_enabled(self) -> bool:
        return bool((self.OPENAI_API_KEY or "").strip())


@lru_cache
def get_settings() -> Settings:
    """Settings dependency; tests override it via app.dependency_overrides."""
    return Settings()
