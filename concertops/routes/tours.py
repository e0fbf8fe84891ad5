from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException

from concertops.db.base import db_session
from concertops.db.models import ConversationLog, Tour
from concertops.models.types import AuthUser, TourIn, TourOut, TourUpdate
from concertops.routes.conversations import conversation_out
from concertops.services.auth import require_pro

router = APIRouter()
logger = logging.getLogger(__name__)


def tour_out(t: Tour) -> TourOut:
    return TourOut(
        id=t.id,
        name=t.name,
        artist_name=t.artist_name,
        tour_scale=t.tour_scale,
        tour_type=t.tour_type,
        start_date=t.start_date,
        end_date=t.end_date,
        regions=list(t.regions or []),
        currency=t.currency,
        num_shows=t.num_shows,
        avg_capacity=t.avg_capacity,
        avg_guarantee=t.avg_guarantee,
        notes=t.notes,
        is_archived=bool(t.is_archived),
    )


def _owned_tour(s, tour_id: str, user_id: str) -> Tour:
    t = s.query(Tour).filter(Tour.id == tour_id, Tour.user_id == user_id).first()
    if t is None:
        raise HTTPException(status_code=404, detail="Unknown tour")
    return t


@router.get("/tours")
def list_tours(user: AuthUser = Depends(require_pro)) -> Dict[str, Any]:
    try:
        with db_session() as s:
            rows = (
                s.query(Tour)
                .filter(Tour.user_id == user.id, Tour.is_archived.is_(False))
                .order_by(Tour.updated_at.desc(), Tour.created_at.desc())
                .all()
            )
            return {"tours": [tour_out(t) for t in rows]}
    except Exception:
        logger.exception("tours: list failed user=%s", user.id)
        raise HTTPException(status_code=500, detail="Failed to fetch tours")


@router.post("/tours", status_code=201)
def create_tour(req: TourIn, user: AuthUser = Depends(require_pro)) -> Dict[str, Any]:
    if not req.name.strip() or not req.artist_name.strip():
        raise HTTPException(status_code=400, detail="Tour name and artist name are required")
    try:
        with db_session() as s:
            t = Tour(
                user_id=user.id,
                name=req.name.strip(),
                artist_name=req.artist_name.strip(),
                tour_scale=req.tour_scale or "theater",
                tour_type=req.tour_type or "headline",
                start_date=req.start_date,
                end_date=req.end_date,
                regions=req.regions or ["US"],
                currency=req.currency or "USD",
                num_shows=req.num_shows or None,
                avg_capacity=req.avg_capacity or None,
                avg_guarantee=req.avg_guarantee or None,
                notes=req.notes or None,
            )
            s.add(t)
            s.flush()
            logger.info("tours: created tour_id=%s user=%s", t.id, user.id)
            return {"tour": tour_out(t)}
    except Exception:
        logger.exception("tours: create failed user=%s", user.id)
        raise HTTPException(status_code=500, detail="Failed to create tour")


@router.get("/tours/{tour_id}")
def get_tour(tour_id: str, user: AuthUser = Depends(require_pro)) -> Dict[str, Any]:
    with db_session() as s:
        t = _owned_tour(s, tour_id, user.id)
        logs = (
            s.query(ConversationLog)
            .filter(ConversationLog.tour_id == t.id, ConversationLog.user_id == user.id)
            .order_by(ConversationLog.created_at.desc())
            .limit(20)
            .all()
        )
        return {"tour": tour_out(t), "conversations": [conversation_out(r) for r in logs]}


# Columns that cannot be cleared; a null in the request leaves them unchanged
NON_NULL_FIELDS = ("name", "artist_name", "tour_scale", "tour_type", "currency", "is_archived")


@router.patch("/tours/{tour_id}")
def update_tour(tour_id: str, req: TourUpdate, user: AuthUser = Depends(require_pro)) -> Dict[str, Any]:
    changes = req.model_dump(exclude_unset=True)
    for key in NON_NULL_FIELDS:
        if key in changes and changes[key] is None:
            changes.pop(key)
    for key in ("name", "artist_name"):
        if key in changes and not changes[key].strip():
            raise HTTPException(status_code=400, detail="Tour name and artist name are required")
    with db_session() as s:
        t = _owned_tour(s, tour_id, user.id)
        for field, value in changes.items():
            setattr(t, field, value)
        s.flush()
        return {"tour": tour_out(t)}
