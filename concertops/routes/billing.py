import logging
from typing import Dict, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request

from concertops.models.types import AuthUser, CheckoutRequest, CheckoutResponse
from concertops.services import billing
from concertops.services.auth import get_current_user

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/stripe/checkout", response_model=CheckoutResponse)
def checkout(req: CheckoutRequest, user: AuthUser = Depends(get_current_user)) -> CheckoutResponse:
    try:
        url = billing.create_checkout_session(user.id, user.email, req.plan)
    except billing.BillingNotConfigured as e:
        logger.error("billing: checkout unavailable: %s", e)
        raise HTTPException(status_code=503, detail="Billing is not configured")
    except Exception:
        logger.exception("billing: checkout failed user=%s", user.id)
        raise HTTPException(status_code=500, detail="Failed to create checkout session")
    return CheckoutResponse(url=url)


@router.post("/stripe/webhook")
async def webhook(request: Request, stripe_signature: Optional[str] = Header(default=None)) -> Dict[str, bool]:
    # The signature covers the raw bytes, so the body is read before any parsing
    payload = await request.body()
    try:
        event = billing.verify_event(payload, stripe_signature)
    except billing.BillingNotConfigured as e:
        logger.error("billing: webhook unavailable: %s", e)
        raise HTTPException(status_code=503, detail="Billing is not configured")
    except Exception as e:
        logger.warning("billing: webhook signature rejected: %s", e)
        raise HTTPException(status_code=400, detail="Invalid signature")
    try:
        billing.apply_event(event)
    except Exception:
        logger.exception("billing: webhook handler failed type=%s", event.get("type"))
        raise HTTPException(status_code=500, detail="Webhook handler failed")
    return {"received": True}
