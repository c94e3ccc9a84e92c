from __future__ import annotations

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session

from ..core.auth import require_admin
from ..core.database import get_session
from ..models.comment import Comment, CommentCreate
from ..services import comments as comments_svc
from ..services.episodes import repo

router = APIRouter(prefix="/comments", tags=["comments"])


@router.get("", response_model=List[Comment])
def list_comments(episode_id: UUID = Query(...), session: Session = Depends(get_session)):
    return comments_svc.list_comments(session, episode_id)


@router.post("", response_model=Comment, status_code=201)
def add_comment(payload: CommentCreate, session: Session = Depends(get_session)):
    if repo.get_episode_by_id(session, payload.episode_id) is None:
        raise HTTPException(status_code=404, detail="Episode not found")
    return comments_svc.add_comment(session, payload)


@router.delete("/{comment_id}", dependencies=[Depends(require_admin)])
def delete_comment(comment_id: UUID, session: Session = Depends(get_session)):
    if not comments_svc.delete_comment(session, comment_id):
        raise HTTPException(status_code=404, detail="Comment not found")
    return {"success": True}
