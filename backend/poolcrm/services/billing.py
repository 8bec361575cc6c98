"""
Subscription billing with Stripe.

Checkout sessions and cancellations go over Stripe's form-encoded REST API
through the shared vendor wrapper. Webhook signatures are verified with the
Stripe SDK before events update a company's subscription columns.
"""
import json
import logging
import os
from typing import Any, Dict, Optional

import stripe
from sqlalchemy.orm import Session
from stripe import SignatureVerificationError

from . import IntegrationNotConfigured
from .http import call_vendor
from ..database.models import Company, SubscriptionStatus

logger = logging.getLogger(__name__)

PROVIDER = "stripe"
STRIPE_API_BASE_URL = "https://api.stripe.com/v1"
SIGNATURE_TOLERANCE_SECONDS = 300
SUBSCRIPTION_PLAN = "business"
ACTIVE_STATUSES = {SubscriptionStatus.ACTIVE, SubscriptionStatus.TRIALING}

# Stripe subscription statuses without a column value of their own
STATUS_ALIASES = {
    "incomplete_expired": SubscriptionStatus.CANCELED,
    "paused": SubscriptionStatus.PAST_DUE,
}


# PUBLIC_INTERFACE
def construct_event(payload: bytes, signature_header: Optional[str], secret: str,
                    tolerance: int = SIGNATURE_TOLERANCE_SECONDS) -> Dict[str, Any]:
    """
    Verify a webhook signature and decode the event.

    Args:
        payload: Raw request body
        signature_header: Value of the ``Stripe-Signature`` header
        secret: Endpoint signing secret
        tolerance: Maximum age of the signature in seconds

    Returns:
        Dict[str, Any]: Decoded event

    Raises:
        SignatureVerificationError: If the header is missing, stale or does not match
        ValueError: If a correctly signed payload is not a JSON object
    """
    body = payload.decode("utf-8")
    stripe.WebhookSignature.verify_header(body, signature_header or "", secret, tolerance)
    event = json.loads(body)
    if not isinstance(event, dict):
        raise ValueError("Event payload is not an object")
    return event


def subscription_status(value: Optional[str]) -> Optional[SubscriptionStatus]:
    if not value:
        return None
    if value in STATUS_ALIASES:
        return STATUS_ALIASES[value]
    try:
        return SubscriptionStatus(value)
    except ValueError:
        logger.warning("Ignoring unknown subscription status %s", value)
        return None


def _company_for(db: Session, obj: Dict[str, Any]) -> Optional[Company]:
    metadata = obj.get("metadata") or {}
    company_id = metadata.get("company_id") or obj.get("client_reference_id")
    if company_id:
        company = db.query(Company).filter(Company.company_id == company_id).first()
        if company:
            return company
    customer_id = obj.get("customer")
    if customer_id:
        return db.query(Company).filter(Company.stripe_customer_id == customer_id).first()
    return None


# PUBLIC_INTERFACE
def apply_event(db: Session, event: Dict[str, Any]) -> Optional[str]:
    """
    Apply a verified webhook event to the matching company.

    Args:
        db: Database session (committed by the caller)
        event: Decoded Stripe event

    Returns:
        Optional[str]: The updated company's id, or None if nothing matched
    """
    event_type = event.get("type")
    obj = (event.get("data") or {}).get("object") or {}
    company = _company_for(db, obj)
    if company is None:
        logger.info("Stripe event %s did not match a company", event_type)
        return None

    if event_type == "checkout.session.completed":
        company.stripe_customer_id = obj.get("customer") or company.stripe_customer_id
        company.stripe_subscription_id = obj.get("subscription") or company.stripe_subscription_id
        company.subscription_status = SubscriptionStatus.ACTIVE
        company.subscription_plan = SUBSCRIPTION_PLAN
        purchased_by = (obj.get("metadata") or {}).get("user_id")
        if purchased_by:
            company.subscription_purchased_by_user_id = purchased_by
    elif event_type in ("customer.subscription.created", "customer.subscription.updated"):
        company.stripe_subscription_id = obj.get("id") or company.stripe_subscription_id
        status = subscription_status(obj.get("status"))
        if status is not None:
            company.subscription_status = status
    elif event_type == "customer.subscription.deleted":
        company.subscription_status = SubscriptionStatus.CANCELED
    elif event_type == "invoice.payment_failed":
        company.subscription_status = SubscriptionStatus.PAST_DUE
    else:
        return None

    logger.info("Applied %s to company %s", event_type, company.company_id)
    return company.company_id


class BillingClient:
    """Stripe REST client authenticated with the secret key."""

    def __init__(self, secret_key: str, price_id: str, base_url: str = STRIPE_API_BASE_URL):
        self.secret_key = secret_key
        self.price_id = price_id
        self.base_url = base_url.rstrip("/")

    @classmethod
    def from_env(cls) -> "BillingClient":
        secret_key = os.getenv("STRIPE_SECRET_KEY")
        price_id = os.getenv("STRIPE_PRICE_ID")
        if not secret_key or not price_id:
            raise IntegrationNotConfigured(PROVIDER, "STRIPE_SECRET_KEY, STRIPE_PRICE_ID")
        return cls(secret_key, price_id)

    def _post(self, path: str, data: Dict[str, Any]) -> Dict[str, Any]:
        return call_vendor(
            PROVIDER, "POST", f"{self.base_url}{path}",
            auth=(self.secret_key, ""),
            data=data,
        ).json()

    def create_customer(self, company: Company, email: str) -> str:
        customer = self._post("/customers", {
            "email": email,
            "name": company.company_name or company.company_id,
            "metadata[company_id]": company.company_id,
        })
        return customer["id"]

    def create_checkout_session(self, customer_id: str, company_id: str, user_id: str,
                                success_url: str, cancel_url: str) -> Dict[str, Any]:
        session = self._post("/checkout/sessions", {
            "mode": "subscription",
            "customer": customer_id,
            "client_reference_id": company_id,
            "line_items[0][price]": self.price_id,
            "line_items[0][quantity]": 1,
            "success_url": success_url,
            "cancel_url": cancel_url,
            "metadata[company_id]": company_id,
            "metadata[user_id]": user_id,
            "subscription_data[metadata][company_id]": company_id,
        })
        return {"session_id": session["id"], "url": session["url"]}

    def cancel_subscription(self, subscription_id: str) -> Dict[str, Any]:
        """Cancel a subscription immediately; returns the canceled subscription."""
        return call_vendor(
            PROVIDER, "DELETE", f"{self.base_url}/subscriptions/{subscription_id}",
            auth=(self.secret_key, ""),
        ).json()
