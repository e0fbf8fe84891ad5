from __future__ import annotations

import hmac
import logging
from typing import Optional

import httpx
from fastapi import Depends, Header, HTTPException

from concertops import config
from concertops.db.persistence import get_subscription
from concertops.models.types import AuthUser
from concertops.services.usage import is_pro_active

logger = logging.getLogger(__name__)


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


async def fetch_auth_user(token: str) -> Optional[AuthUser]:
    """Resolve an access token with the hosted auth service; None if invalid."""
    base = config.supabase_url()
    if not base:
        logger.warning("auth: SUPABASE_URL not set; rejecting request")
        return None
    headers = {
        "apikey": config.supabase_anon_key(),
        "Authorization": f"Bearer {token}",
        "Accept": "application/json",
    }
    async with httpx.AsyncClient(timeout=8.0, headers=headers) as client:
        try:
            resp = await client.get(f"{base}/auth/v1/user")
        except httpx.HTTPError as e:
            logger.error("auth: user lookup failed: %s", e)
            return None
    if resp.status_code != 200:
        return None
    data = resp.json() or {}
    uid = data.get("id")
    if not uid:
        return None
    return AuthUser(id=str(uid), email=data.get("email"))


async def get_current_user(authorization: Optional[str] = Header(default=None)) -> AuthUser:
    token = _bearer_token(authorization)
    user = await fetch_auth_user(token) if token else None
    if user is None:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return user


def require_pro(user: AuthUser = Depends(get_current_user)) -> AuthUser:
    sub = get_subscription(user.id) or {}
    if not is_pro_active(sub.get("plan"), sub.get("status")):
        raise HTTPException(status_code=403, detail={"error": "Pro subscription required", "code": "PRO_REQUIRED"})
    return user


def require_admin(authorization: Optional[str] = Header(default=None)) -> None:
    # Admin routes are called by backend scripts with the service role key
    expected = config.service_role_key()
    token = _bearer_token(authorization)
    if not expected or not token or not hmac.compare_digest(token, expected):
        raise HTTPException(status_code=401, detail="Unauthorized")
