from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException

from concertops.db.base import db_session
from concertops.db.models import BudgetTemplate, Settlement
from concertops.db.persistence import get_owned_tour_scale
from concertops.models.types import (
    AuthUser,
    BudgetData,
    BudgetIn,
    BudgetOut,
    SettlementData,
    SettlementIn,
    SettlementOut,
)
from concertops.services.assistant import ask
from concertops.services.auth import require_pro
from concertops.services.budget import build_budget_prompt, calculate_budget
from concertops.services.settlement import build_settlement_prompt, calculate_settlement, settlement_watchouts
from concertops.services.usage import enforce_usage

router = APIRouter()
logger = logging.getLogger(__name__)


def _tour_scale(user_id: str, tour_id: Optional[str], default: str) -> str:
    if not tour_id:
        return default
    scale = get_owned_tour_scale(user_id, tour_id)
    if scale is None:
        raise HTTPException(status_code=404, detail="Unknown tour")
    return scale


def _ask_ai(user_id: str, prompt: str, *, tour_scale: str, mode: str, tour_id: Optional[str]) -> tuple[str, Optional[int]]:
    usage = enforce_usage(user_id)
    try:
        reply = ask(user_id, prompt, role="tm", tour_scale=tour_scale, mode=mode, tour_id=tour_id)
    except Exception:
        logger.exception("%s: ai walkthrough failed user=%s", mode, user_id)
        raise HTTPException(status_code=500, detail=f"{mode.title()} calculation failed")
    return reply.text, usage.remaining


@router.post("/settlements", response_model=SettlementOut)
def create_settlement(req: SettlementIn, user: AuthUser = Depends(require_pro)) -> SettlementOut:
    tour_scale = _tour_scale(user.id, req.tour_id, "theater")
    data = calculate_settlement(req)
    watchouts = settlement_watchouts(req, data)
    ai_text, remaining = None, None
    if req.include_ai:
        ai_text, remaining = _ask_ai(
            user.id, build_settlement_prompt(req, data), tour_scale=tour_scale, mode="settlement", tour_id=req.tour_id
        )
    with db_session() as s:
        row = Settlement(
            user_id=user.id,
            tour_id=req.tour_id,
            show_name=req.show_name or "Single Show",
            show_date=req.show_date,
            venue_name=req.venue_name,
            venue_city=req.venue_city,
            gross_tickets=req.gross_tickets,
            total_taxes=req.total_taxes,
            total_fees=req.total_fees,
            venue_rent=req.venue_rent,
            marketing_costs=req.marketing_costs,
            production_reimbursements=req.production_reimbursements,
            artist_guarantee=req.artist_guarantee,
            overage_percentage=req.overage_percentage,
            settlement_data=data.model_dump(),
            ai_breakdown=ai_text,
            ai_watchouts="\n".join(watchouts) or None,
            currency=req.currency,
        )
        s.add(row)
        s.flush()
        settlement_id = row.id
    logger.info("settlements: saved id=%s user=%s ai=%s", settlement_id, user.id, bool(ai_text))
    return SettlementOut(
        id=settlement_id,
        show_name=req.show_name or "Single Show",
        currency=req.currency,
        settlement_data=data,
        watchouts=watchouts,
        ai_breakdown=ai_text,
        remaining_queries=remaining,
    )


@router.get("/settlements", response_model=List[SettlementOut])
def list_settlements(user: AuthUser = Depends(require_pro)) -> List[SettlementOut]:
    with db_session() as s:
        rows = (
            s.query(Settlement)
            .filter(Settlement.user_id == user.id)
            .order_by(Settlement.created_at.desc())
            .limit(100)
            .all()
        )
        return [
            SettlementOut(
                id=r.id,
                show_name=r.show_name,
                currency=r.currency,
                settlement_data=SettlementData(**(r.settlement_data or {})),
                watchouts=[w for w in (r.ai_watchouts or "").split("\n") if w],
                ai_breakdown=r.ai_breakdown,
            )
            for r in rows
        ]


@router.post("/budgets", response_model=BudgetOut)
def create_budget(req: BudgetIn, user: AuthUser = Depends(require_pro)) -> BudgetOut:
    tour_scale = _tour_scale(user.id, req.tour_id, req.tour_scale)
    summary = calculate_budget(req)
    ai_text, remaining = None, None
    if req.include_ai:
        ai_text, remaining = _ask_ai(
            user.id, build_budget_prompt(req, summary), tour_scale=tour_scale, mode="budget", tour_id=req.tour_id
        )
    with db_session() as s:
        row = BudgetTemplate(
            user_id=user.id,
            tour_id=req.tour_id,
            name=req.name,
            budget_data={
                **req.budget_data.model_dump(),
                # Gross inputs ride along so listings can rebuild the full summary
                "num_shows": req.num_shows,
                "avg_guarantee": req.avg_guarantee,
            },
            ai_summary=ai_text,
            estimated_margin_low=summary.estimated_margin_low,
            estimated_margin_high=summary.estimated_margin_high,
            currency=req.currency,
        )
        s.add(row)
        s.flush()
        budget_id = row.id
    return BudgetOut(
        id=budget_id,
        name=req.name,
        currency=req.currency,
        budget_data=req.budget_data,
        summary=summary,
        ai_summary=ai_text,
        remaining_queries=remaining,
    )


@router.get("/budgets", response_model=List[BudgetOut])
def list_budgets(user: AuthUser = Depends(require_pro)) -> List[BudgetOut]:
    out: List[BudgetOut] = []
    with db_session() as s:
        rows = (
            s.query(BudgetTemplate)
            .filter(BudgetTemplate.user_id == user.id)
            .order_by(BudgetTemplate.created_at.desc())
            .limit(100)
            .all()
        )
        for r in rows:
            stored = dict(r.budget_data or {})
            data = BudgetData(**stored)
            summary = calculate_budget(
                BudgetIn(
                    name=r.name,
                    budget_data=data,
                    num_shows=stored.get("num_shows"),
                    avg_guarantee=stored.get("avg_guarantee"),
                    include_ai=False,
                )
            )
            if r.estimated_margin_low is not None:
                summary.estimated_margin_low = r.estimated_margin_low
                summary.estimated_margin_high = r.estimated_margin_high
            out.append(
                BudgetOut(
                    id=r.id,
                    name=r.name,
                    currency=r.currency,
                    budget_data=data,
                    summary=summary,
                    ai_summary=r.ai_summary,
                )
            )
    return out
