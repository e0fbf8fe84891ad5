from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import stripe

from concertops import config
from concertops.db.base import db_session
from concertops.db.models import Subscription

logger = logging.getLogger(__name__)

PLANS: Dict[str, Dict[str, Any]] = {
    "pro_monthly": {"name": "Pro Monthly", "price": 9, "interval": "month", "period_days": 30},
    "pro_annual": {"name": "Pro Annual", "price": 79, "interval": "year", "period_days": 365},
}


class BillingNotConfigured(RuntimeError):
    pass


def plan_for_choice(choice: str) -> str:
    return "pro_annual" if choice == "annual" else "pro_monthly"


def price_id_for(plan: str) -> str:
    return config.stripe_price_annual() if plan == "pro_annual" else config.stripe_price_monthly()


def _stripe_ready() -> None:
    key = config.stripe_secret_key()
    if not key:
        raise BillingNotConfigured("STRIPE_SECRET_KEY is not set")
    stripe.api_key = key


def create_checkout_session(user_id: str, email: Optional[str], choice: str) -> Optional[str]:
    """Create a subscription Checkout session and return its hosted URL."""
    _stripe_ready()
    plan = plan_for_choice(choice)
    price_id = price_id_for(plan)
    if not price_id:
        raise BillingNotConfigured(f"No Stripe price configured for {plan}")
    app_url = config.app_url()
    metadata = {"user_id": user_id, "plan": plan}
    params: Dict[str, Any] = {
        "payment_method_types": ["card"],
        "mode": "subscription",
        "line_items": [{"price": price_id, "quantity": 1}],
        "success_url": f"{app_url}/chat?upgraded=true",
        "cancel_url": f"{app_url}/chat",
        "metadata": metadata,
        "subscription_data": {"metadata": metadata},
    }
    if email:
        params["customer_email"] = email
    session = stripe.checkout.Session.create(**params)
    logger.info("billing: checkout session created user=%s plan=%s", user_id, plan)
    return session.url


def verify_event(payload: bytes, sig_header: Optional[str]) -> Dict[str, Any]:
    """Verify the webhook signature and return the event as a plain dict."""
    secret = config.stripe_webhook_secret()
    if not secret:
        raise BillingNotConfigured("STRIPE_WEBHOOK_SECRET is not set")
    stripe.Webhook.construct_event(payload, sig_header or "", secret)
    return json.loads(payload)


def _ts(value: Any) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromtimestamp(int(value), tz=timezone.utc)


def _upsert_subscription(user_id: str, **fields: Any) -> None:
    with db_session() as s:
        sub = s.query(Subscription).filter(Subscription.user_id == user_id).first()
        if sub is None:
            sub = Subscription(user_id=user_id)
            s.add(sub)
        for k, v in fields.items():
            setattr(sub, k, v)


def _on_checkout_completed(obj: Dict[str, Any]) -> Optional[str]:
    meta = obj.get("metadata") or {}
    user_id = meta.get("user_id")
    plan = meta.get("plan")
    if not user_id or plan not in PLANS:
        return None
    start = datetime.now(timezone.utc)
    _upsert_subscription(
        user_id,
        stripe_customer_id=obj.get("customer"),
        stripe_subscription_id=obj.get("subscription"),
        plan=plan,
        status="active",
        current_period_start=start,
        current_period_end=start + timedelta(days=PLANS[plan]["period_days"]),
    )
    logger.info("billing: subscription created user=%s plan=%s", user_id, plan)
    return user_id


def _on_subscription_updated(obj: Dict[str, Any]) -> Optional[str]:
    user_id = (obj.get("metadata") or {}).get("user_id")
    if not user_id:
        return None
    items = ((obj.get("items") or {}).get("data")) or [{}]
    first = items[0] or {}
    price_id = (first.get("price") or {}).get("id")
    annual = config.stripe_price_annual()
    plan = "pro_annual" if annual and price_id == annual else "pro_monthly"
    period_start = obj.get("current_period_start") or first.get("current_period_start")
    period_end = obj.get("current_period_end") or first.get("current_period_end")
    _upsert_subscription(
        user_id,
        stripe_subscription_id=obj.get("id"),
        plan=plan,
        status=obj.get("status") or "active",
        current_period_start=_ts(period_start),
        current_period_end=_ts(period_end),
    )
    return user_id


def _on_subscription_deleted(obj: Dict[str, Any]) -> Optional[str]:
    user_id = (obj.get("metadata") or {}).get("user_id")
    if not user_id:
        return None
    _upsert_subscription(user_id, plan="free", status="canceled", stripe_subscription_id=None)
    logger.info("billing: subscription canceled user=%s", user_id)
    return user_id


def _on_payment_failed(obj: Dict[str, Any]) -> Optional[str]:
    customer_id = obj.get("customer")
    if not customer_id:
        return None
    with db_session() as s:
        sub = s.query(Subscription).filter(Subscription.stripe_customer_id == customer_id).first()
        if sub is None:
            return None
        sub.status = "past_due"
        return sub.user_id


HANDLERS = {
    "checkout.session.completed": _on_checkout_completed,
    "customer.subscription.updated": _on_subscription_updated,
    "customer.subscription.deleted": _on_subscription_deleted,
    "invoice.payment_failed": _on_payment_failed,
}


def apply_event(event: Dict[str, Any]) -> Optional[str]:
    """Apply a verified Stripe event to the subscriptions table.
    Returns the affected user id, or None when the event was ignored.
    """
    etype = event.get("type")
    handler = HANDLERS.get(etype)
    if handler is None:
        logger.info("billing: unhandled event type: %s", etype)
        return None
    obj = (event.get("data") or {}).get("object") or {}
    return handler(obj)
