from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone

import pytest
from fastapi import HTTPException

from concertops.db.base import db_session
from concertops.db.models import UsageMetric
from concertops.services import usage


def test_soft_warning_thresholds():
    assert usage.soft_warning_for(59) is None
    assert usage.soft_warning_for(60) == 1
    assert usage.soft_warning_for(69) == 1
    assert usage.soft_warning_for(70) == 2
    assert usage.soft_warning_for(75) == 2


def test_is_pro_active_requires_paid_plan_and_active_status():
    assert usage.is_pro_active("pro_monthly", "active")
    assert usage.is_pro_active("pro_annual", "active")
    assert not usage.is_pro_active("pro_monthly", "past_due")
    assert not usage.is_pro_active("free", "active")
    assert not usage.is_pro_active(None, None)


def test_first_query_creates_counter(db):
    r = usage.check_and_increment_usage("u1")
    assert r.allowed
    assert r.total_queries == 1
    assert r.remaining == 74
    assert r.plan == "free"
    assert r.soft_warning is None


def test_free_tier_blocks_at_limit(db, monkeypatch):
    monkeypatch.setenv("FREE_TIER_QUERY_LIMIT", "3")
    results = [usage.check_and_increment_usage("u2") for _ in range(4)]
    assert [r.allowed for r in results] == [True, True, True, False]
    assert results[2].remaining == 0
    blocked = results[3]
    assert blocked.remaining == 0
    assert blocked.total_queries == 3
    assert "3 free queries" in blocked.reason
    # Blocked requests do not move the counter
    with db_session() as s:
        assert s.query(UsageMetric).filter(UsageMetric.user_id == "u2").one().total_queries == 3


def test_soft_warning_reported_near_limit(db):
    with db_session() as s:
        s.add(UsageMetric(user_id="u3", total_queries=69, queries_this_month=5))
    r = usage.check_and_increment_usage("u3")
    assert r.total_queries == 70
    assert r.soft_warning == 2
    assert r.remaining == 5


def test_pro_is_unlimited_but_counted(db, make_pro, monkeypatch):
    monkeypatch.setenv("FREE_TIER_QUERY_LIMIT", "1")
    make_pro("pro1")
    for _ in range(3):
        r = usage.check_and_increment_usage("pro1")
        assert r.allowed
        assert r.remaining is None
    assert r.total_queries == 3


def test_inactive_pro_falls_back_to_free_limit(db, make_pro, monkeypatch):
    monkeypatch.setenv("FREE_TIER_QUERY_LIMIT", "1")
    make_pro("lapsed", status="canceled")
    assert usage.check_and_increment_usage("lapsed").allowed
    assert not usage.check_and_increment_usage("lapsed").allowed


def test_enforce_usage_raises_402(db, monkeypatch):
    monkeypatch.setenv("FREE_TIER_QUERY_LIMIT", "0")
    with pytest.raises(HTTPException) as exc:
        usage.enforce_usage("u4")
    assert exc.value.status_code == 402
    assert exc.value.detail["code"] == "LIMIT_REACHED"


def test_enforce_usage_without_db_is_503():
    with pytest.raises(HTTPException) as exc:
        usage.enforce_usage("u5")
    assert exc.value.status_code == 503


def _backdate(user_id: str) -> None:
    with db_session() as s:
        row = s.query(UsageMetric).filter(UsageMetric.user_id == user_id).one()
        row.last_query_at = usage.month_start() - timedelta(days=3)


def test_monthly_reset_keeps_lifetime_total(db):
    usage.check_and_increment_usage("u6")
    usage.check_and_increment_usage("u6")
    _backdate("u6")
    assert usage.reset_monthly_usage() == 1
    summary = usage.get_user_usage("u6")
    assert summary.total_queries == 2
    assert summary.queries_this_month == 0
    assert summary.remaining == 73


def test_monthly_reset_leaves_current_month_counts(db):
    usage.check_and_increment_usage("stale")
    _backdate("stale")
    assert usage.reset_monthly_usage() == 1
    # A query made after the month began survives a second run
    usage.check_and_increment_usage("stale")
    usage.check_and_increment_usage("fresh")
    assert usage.reset_monthly_usage() == 0
    assert usage.get_user_usage("stale").queries_this_month == 1
    assert usage.get_user_usage("fresh").queries_this_month == 1


def test_monthly_reset_for_a_later_month(db):
    usage.check_and_increment_usage("u7")
    next_month = usage.month_start() + timedelta(days=40)
    assert usage.reset_monthly_usage(now=next_month) == 1
    assert usage.reset_monthly_usage(now=next_month) == 0
    assert usage.get_user_usage("u7").queries_this_month == 0


def test_month_start():
    now = datetime(2026, 3, 17, 13, 45, 9, tzinfo=timezone.utc)
    assert usage.month_start(now) == datetime(2026, 3, 1, tzinfo=timezone.utc)


def test_concurrent_queries_never_exceed_limit(db, monkeypatch):
    monkeypatch.setenv("FREE_TIER_QUERY_LIMIT", "5")
    with ThreadPoolExecutor(max_workers=16) as pool:
        results = list(pool.map(lambda _: usage.check_and_increment_usage("racer"), range(40)))
    assert sum(r.allowed for r in results) == 5
    with db_session() as s:
        assert s.query(UsageMetric).filter(UsageMetric.user_id == "racer").one().total_queries == 5
