"""Free-tier usage metering.

Every AI request passes through ``enforce_usage`` before any model call. The
check and the increment are one conditional UPDATE, so parallel requests from
the same user cannot push the counter past the free limit.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import HTTPException
from sqlalchemy import or_, update
from sqlalchemy.orm import Session

from concertops import config
from concertops.config import FREE_TIER_WARN_SOFT_1, FREE_TIER_WARN_SOFT_2
from concertops.db.base import db_session
from concertops.db.models import UsageMetric
from concertops.db.persistence import get_subscription, is_db_enabled
from concertops.models.types import PRO_PLANS, UsageCheckResult, UsageSummary

logger = logging.getLogger(__name__)


def is_pro_active(plan: Optional[str], status: Optional[str]) -> bool:
    return plan in PRO_PLANS and status == "active"


def soft_warning_for(total_queries: int) -> Optional[int]:
    if total_queries >= FREE_TIER_WARN_SOFT_2:
        return 2
    if total_queries >= FREE_TIER_WARN_SOFT_1:
        return 1
    return None


def remaining_for(total_queries: int, limit: int) -> int:
    return max(0, limit - total_queries)


def limit_reason(limit: int) -> str:
    return f"You've used all {limit} free queries. Upgrade to Pro for unlimited access."


def _ensure_usage_row(s: Session, user_id: str) -> None:
    dialect = s.get_bind().dialect.name
    if dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif dialect == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    else:
        if s.query(UsageMetric.id).filter(UsageMetric.user_id == user_id).first() is None:
            s.add(UsageMetric(user_id=user_id, total_queries=0, queries_this_month=0))
            s.flush()
        return
    stmt = (
        insert(UsageMetric)
        .values(user_id=user_id, total_queries=0, queries_this_month=0)
        .on_conflict_do_nothing(index_elements=["user_id"])
    )
    s.execute(stmt)


def _record_query(user_id: str, limit: Optional[int]) -> Optional[int]:
    """Increment the user's counters; returns the new total, or None when the
    counter is already at ``limit``."""
    with db_session() as s:
        _ensure_usage_row(s, user_id)
        stmt = update(UsageMetric).where(UsageMetric.user_id == user_id)
        if limit is not None:
            stmt = stmt.where(UsageMetric.total_queries < limit)
        stmt = (
            stmt.values(
                total_queries=UsageMetric.total_queries + 1,
                queries_this_month=UsageMetric.queries_this_month + 1,
                last_query_at=datetime.now(timezone.utc),
            )
            .returning(UsageMetric.total_queries)
            .execution_options(synchronize_session=False)
        )
        return s.execute(stmt).scalar_one_or_none()


def _usage_row(user_id: str) -> tuple[int, int]:
    with db_session() as s:
        row = s.query(UsageMetric).filter(UsageMetric.user_id == user_id).first()
        if row is None:
            return 0, 0
        return int(row.total_queries or 0), int(row.queries_this_month or 0)


def check_and_increment_usage(user_id: str) -> UsageCheckResult:
    limit = config.free_tier_limit()
    sub = get_subscription(user_id) or {}
    plan = sub.get("plan") or "free"

    # Pro users are unlimited; the query is still counted for analytics
    if is_pro_active(plan, sub.get("status")):
        total = _record_query(user_id, None) or 0
        return UsageCheckResult(allowed=True, total_queries=total, remaining=None, plan=plan)

    new_total = _record_query(user_id, limit)
    if new_total is None:
        total, _ = _usage_row(user_id)
        logger.info("usage: limit reached user=%s total=%d limit=%d", user_id, total, limit)
        return UsageCheckResult(
            allowed=False,
            reason=limit_reason(limit),
            total_queries=total,
            remaining=0,
            plan=plan,
        )

    return UsageCheckResult(
        allowed=True,
        total_queries=new_total,
        remaining=remaining_for(new_total, limit),
        plan=plan,
        soft_warning=soft_warning_for(new_total),
    )


def enforce_usage(user_id: str) -> UsageCheckResult:
    """Raises 402 when the free tier is exhausted, 503 when metering is unavailable."""
    if not is_db_enabled():
        raise HTTPException(status_code=503, detail="Usage metering unavailable: database not configured")
    result = check_and_increment_usage(user_id)
    if not result.allowed:
        raise HTTPException(status_code=402, detail={"error": result.reason, "code": "LIMIT_REACHED"})
    return result


def get_user_usage(user_id: str) -> UsageSummary:
    limit = config.free_tier_limit()
    sub = get_subscription(user_id) or {}
    plan = sub.get("plan") or "free"
    pro = is_pro_active(plan, sub.get("status"))
    total, this_month = _usage_row(user_id) if is_db_enabled() else (0, 0)
    return UsageSummary(
        plan=plan,
        is_pro_active=pro,
        total_queries=total,
        queries_this_month=this_month,
        remaining=None if pro else remaining_for(total, limit),
        limit=limit,
    )


def month_start(now: Optional[datetime] = None) -> datetime:
    now = now or datetime.now(timezone.utc)
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def reset_monthly_usage(now: Optional[datetime] = None) -> int:
    """Zero the monthly counter of every user with no query since the start of
    the current month; returns the number of rows changed. Running it again in
    the same month leaves counters recorded after the first run alone."""
    start = month_start(now)
    with db_session() as s:
        result = s.execute(
            update(UsageMetric)
            .where(UsageMetric.queries_this_month != 0)
            .where(or_(UsageMetric.last_query_at.is_(None), UsageMetric.last_query_at < start))
            .values(queries_this_month=0)
            .execution_options(synchronize_session=False)
        )
        return int(result.rowcount or 0)
