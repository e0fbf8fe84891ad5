import pytest
from fastapi.testclient import TestClient

from concertops.db import base as db_base
from concertops.db.base import db_session, dispose_db, init_db
from concertops.db.models import Subscription
from concertops.main import app
from concertops.models.types import AuthUser
from concertops.services.auth import get_current_user


@pytest.fixture(autouse=True)
def _offline(monkeypatch):
    # Keep OpenAI out of tests; the deterministic fallbacks run instead
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("FREE_TIER_QUERY_LIMIT", raising=False)


@pytest.fixture
def db(tmp_path, monkeypatch):
    monkeypatch.setattr(db_base, "engine", None)
    monkeypatch.setattr(db_base, "SessionLocal", None)
    init_db(f"sqlite:///{tmp_path}/test.db")
    yield db_base
    dispose_db()


def _make_pro(user_id: str, plan: str = "pro_monthly", status: str = "active") -> None:
    with db_session() as s:
        s.add(Subscription(user_id=user_id, plan=plan, status=status, stripe_customer_id=f"cus_{user_id}"))


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def as_user(client):
    def _login(user: AuthUser) -> TestClient:
        app.dependency_overrides[get_current_user] = lambda: user
        return client

    return _login


@pytest.fixture
def make_pro(db):
    return _make_pro
