from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, field_validator
from pydantic import Field as PydanticField
from sqlmodel import Field, SQLModel


class Comment(SQLModel, table=True):
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    episode_id: UUID = Field(foreign_key="episode.id", index=True)
    name: str = Field(default="Anonymous")
    content: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), index=True)


class CommentCreate(BaseModel):
    episode_id: UUID
    name: Optional[str] = PydanticField(default=None, validate_default=True)
    content: str

    @field_validator("name")
    @classmethod
    def _default_name(cls, value: Optional[str]) -> str:
        cleaned = (value or "").strip()
        return cleaned or "Anonymous"

    @field_validator("content")
    @classmethod
    def _require_content(cls, value: str) -> str:
        cleaned = (value or "").strip()
        if not cleaned:
            raise ValueError("Comment content cannot be empty")
        return cleaned
