import logging

from fastapi import APIRouter, Depends, HTTPException

from concertops.models.types import AuthUser, UsageSummary
from concertops.services.auth import get_current_user
from concertops.services.usage import get_user_usage

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/usage", response_model=UsageSummary)
def usage(user: AuthUser = Depends(get_current_user)) -> UsageSummary:
    try:
        return get_user_usage(user.id)
    except Exception:
        logger.exception("usage: fetch failed user=%s", user.id)
        raise HTTPException(status_code=500, detail="Failed to fetch usage")
