from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from concertops.db.base import db_session
from concertops.db.models import Profile, UserPreferences
from concertops.db.persistence import is_db_enabled
from concertops.models.types import (
    AuthUser,
    PreferencesOut,
    PreferencesUpdate,
    ProfileOut,
    ProfileResponse,
    ProfileUpdate,
)
from concertops.services.auth import get_current_user

router = APIRouter()


def _load_or_create(s, user: AuthUser) -> tuple[Profile, UserPreferences]:
    profile = s.get(Profile, user.id)
    if profile is None:
        profile = Profile(id=user.id, email=user.email, role="tm", tour_scale="theater")
        s.add(profile)
    prefs = s.query(UserPreferences).filter(UserPreferences.user_id == user.id).first()
    if prefs is None:
        prefs = UserPreferences(user_id=user.id, default_currency="USD", crisis_mode_enabled=False)
        s.add(prefs)
    s.flush()
    return profile, prefs


def _response(profile: Profile, prefs: UserPreferences) -> ProfileResponse:
    return ProfileResponse(
        profile=ProfileOut(
            id=profile.id,
            email=profile.email,
            full_name=profile.full_name,
            role=profile.role,
            tour_scale=profile.tour_scale,
        ),
        preferences=PreferencesOut(
            default_role=prefs.default_role,
            default_tour_scale=prefs.default_tour_scale,
            default_currency=prefs.default_currency or "USD",
            crisis_mode_enabled=bool(prefs.crisis_mode_enabled),
        ),
    )


def _require_db() -> None:
    if not is_db_enabled():
        raise HTTPException(status_code=400, detail="DB not enabled")


@router.get("/profile", response_model=ProfileResponse)
def get_profile(user: AuthUser = Depends(get_current_user)) -> ProfileResponse:
    _require_db()
    with db_session() as s:
        return _response(*_load_or_create(s, user))


@router.patch("/profile", response_model=ProfileResponse)
def update_profile(req: ProfileUpdate, user: AuthUser = Depends(get_current_user)) -> ProfileResponse:
    _require_db()
    with db_session() as s:
        profile, prefs = _load_or_create(s, user)
        for field, value in req.model_dump(exclude_unset=True, exclude_none=True).items():
            setattr(profile, field, value)
        s.flush()
        return _response(profile, prefs)


@router.patch("/preferences", response_model=ProfileResponse)
def update_preferences(req: PreferencesUpdate, user: AuthUser = Depends(get_current_user)) -> ProfileResponse:
    _require_db()
    changes = req.model_dump(exclude_unset=True)
    if changes.get("crisis_mode_enabled") is None:
        changes.pop("crisis_mode_enabled", None)
    if "default_currency" in changes:
        currency = (changes["default_currency"] or "").strip().upper()
        if len(currency) != 3:
            raise HTTPException(status_code=400, detail="default_currency must be a 3-letter code")
        changes["default_currency"] = currency
    with db_session() as s:
        profile, prefs = _load_or_create(s, user)
        for field, value in changes.items():
            setattr(prefs, field, value)
        s.flush()
        return _response(profile, prefs)
