from __future__ import annotations

from typing import List
from uuid import UUID

from sqlmodel import Session, select

from ..models.comment import Comment, CommentCreate


def list_comments(session: Session, episode_id: UUID) -> List[Comment]:
    q = (
        select(Comment)
        .where(Comment.episode_id == episode_id)
        .order_by(Comment.created_at.desc())  # type: ignore[attr-defined]
    )
    return list(session.exec(q).all())


def add_comment(session: Session, payload: CommentCreate) -> Comment:
    row = Comment(episode_id=payload.episode_id, name=payload.name, content=payload.content)
    session.add(row)
    session.commit()
    session.refresh(row)
    return row


def delete_comment(session: Session, comment_id: UUID) -> bool:
    row = session.get(Comment, comment_id)
    if row is None:
        return False
    session.delete(row)
    session.commit()
    return True
