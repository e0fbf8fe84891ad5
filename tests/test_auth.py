import asyncio

import httpx
import pytest
from fastapi import HTTPException

from concertops.services import auth


def test_bearer_token_parsing():
    assert auth._bearer_token("Bearer abc") == "abc"
    assert auth._bearer_token("bearer  abc ") == "abc"
    assert auth._bearer_token("Basic abc") is None
    assert auth._bearer_token("Bearer ") is None
    assert auth._bearer_token(None) is None


def test_fetch_auth_user_resolves_token(monkeypatch):
    monkeypatch.setenv("SUPABASE_URL", "https://auth.example.com/")
    monkeypatch.setenv("SUPABASE_ANON_KEY", "anon")

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/auth/v1/user"
        if request.headers["Authorization"] != "Bearer good":
            return httpx.Response(401, json={"msg": "invalid"})
        return httpx.Response(200, json={"id": "u-42", "email": "tm@example.com"})

    transport = httpx.MockTransport(handler)
    real_client = httpx.AsyncClient
    monkeypatch.setattr(auth.httpx, "AsyncClient", lambda **kw: real_client(transport=transport, **kw))

    user = asyncio.run(auth.fetch_auth_user("good"))
    assert user.id == "u-42"
    assert user.email == "tm@example.com"
    assert asyncio.run(auth.fetch_auth_user("bad")) is None


def test_fetch_auth_user_without_config(monkeypatch):
    monkeypatch.delenv("SUPABASE_URL", raising=False)
    assert asyncio.run(auth.fetch_auth_user("token")) is None


def test_require_pro_rejects_free_users(db):
    with pytest.raises(HTTPException) as exc:
        auth.require_pro(auth.AuthUser(id="nobody"))
    assert exc.value.status_code == 403


def test_require_admin(monkeypatch):
    monkeypatch.setenv("SUPABASE_SERVICE_ROLE_KEY", "svc")
    auth.require_admin("Bearer svc")
    with pytest.raises(HTTPException):
        auth.require_admin("Bearer nope")
    monkeypatch.delenv("SUPABASE_SERVICE_ROLE_KEY")
    with pytest.raises(HTTPException):
        auth.require_admin("Bearer ")
