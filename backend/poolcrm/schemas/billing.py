"""
Subscription billing schemas.
"""
from typing import Optional
from pydantic import BaseModel, Field

from ..database.models import SubscriptionStatus


class CheckoutSessionRequest(BaseModel):
    success_url: Optional[str] = Field(None, description="Override the default post-checkout redirect")
    cancel_url: Optional[str] = Field(None, description="Override the default cancel redirect")


class CheckoutSessionResponse(BaseModel):
    session_id: str
    url: str


class SubscriptionResponse(BaseModel):
    company_id: str
    subscription_plan: Optional[str] = None
    subscription_status: Optional[SubscriptionStatus] = None
    is_active: bool
    stripe_customer_id: Optional[str] = None


class CancelSubscriptionResponse(BaseModel):
    company_id: str
    subscription_status: Optional[SubscriptionStatus] = None
    canceled: bool
