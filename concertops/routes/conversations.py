from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from concertops.db.base import db_session
from concertops.db.models import ConversationLog
from concertops.db.persistence import is_db_enabled
from concertops.models.types import AuthUser, ConversationOut, ConversationUpdate
from concertops.services.auth import get_current_user

router = APIRouter()


def conversation_out(r: ConversationLog) -> ConversationOut:
    return ConversationOut(
        id=r.id,
        tour_id=r.tour_id,
        role=r.role,
        tour_scale=r.tour_scale,
        mode=r.mode,
        user_message=r.user_message,
        assistant_message=r.assistant_message,
        is_starred=bool(r.is_starred),
        user_feedback=r.user_feedback,
        tags=list(r.tags or []),
        created_at=r.created_at.isoformat() if r.created_at else None,
    )


@router.get("/conversations", response_model=List[ConversationOut])
def list_conversations(
    tour_id: Optional[str] = Query(default=None),
    starred: Optional[bool] = Query(default=None),
    limit: int = Query(default=50, ge=1, le=200),
    user: AuthUser = Depends(get_current_user),
) -> List[ConversationOut]:
    if not is_db_enabled():
        return []
    with db_session() as s:
        q = s.query(ConversationLog).filter(ConversationLog.user_id == user.id)
        if tour_id:
            q = q.filter(ConversationLog.tour_id == tour_id)
        if starred is not None:
            q = q.filter(ConversationLog.is_starred == starred)
        rows = q.order_by(ConversationLog.created_at.desc(), ConversationLog.id.asc()).limit(limit).all()
        return [conversation_out(r) for r in rows]


@router.patch("/conversations/{log_id}", response_model=ConversationOut)
def update_conversation(log_id: str, req: ConversationUpdate, user: AuthUser = Depends(get_current_user)) -> ConversationOut:
    if not is_db_enabled():
        raise HTTPException(status_code=400, detail="DB not enabled")
    with db_session() as s:
        row = (
            s.query(ConversationLog)
            .filter(ConversationLog.id == log_id, ConversationLog.user_id == user.id)
            .first()
        )
        if row is None:
            raise HTTPException(status_code=404, detail="Unknown conversation")
        changes = req.model_dump(exclude_unset=True)
        # user_feedback may be cleared with null; the flags and tags may not
        for key in ("is_starred", "tags"):
            if key in changes and changes[key] is None:
                changes.pop(key)
        for field, value in changes.items():
            setattr(row, field, value)
        s.flush()
        return conversation_out(row)
