"""
Subscription billing API routes.
"""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ...database.connection import get_db
from ...database.models import Company, SubscriptionStatus
from ...schemas.billing import (
    CancelSubscriptionResponse, CheckoutSessionRequest, CheckoutSessionResponse, SubscriptionResponse
)
from ...auth.dependencies import get_current_user, get_current_admin_user, get_company_context, CurrentUser
from ...services import FRONTEND_URL, IntegrationError, IntegrationNotConfigured
from ...services.billing import ACTIVE_STATUSES, BillingClient

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/billing", tags=["Billing"])


def get_billing_client() -> BillingClient:
    return BillingClient.from_env()


# PUBLIC_INTERFACE
@router.post("/checkout-session", response_model=CheckoutSessionResponse,
             summary="Start subscription checkout",
             description="Create a Stripe Checkout Session for the company's subscription. "
                         "A Stripe customer is created for the company on first use.")
def create_checkout_session(
    request: Optional[CheckoutSessionRequest] = None,
    current_user: CurrentUser = Depends(get_current_user),
    company: Company = Depends(get_company_context),
    db: Session = Depends(get_db)
):
    request = request or CheckoutSessionRequest()
    success_url = request.success_url or f"{FRONTEND_URL}/billing?checkout=success"
    cancel_url = request.cancel_url or f"{FRONTEND_URL}/billing?checkout=cancel"

    try:
        client = get_billing_client()
        if not company.stripe_customer_id:
            company.stripe_customer_id = client.create_customer(company, current_user.email)
            db.commit()
            logger.info("Created Stripe customer for company %s", company.company_id)
        session = client.create_checkout_session(
            company.stripe_customer_id,
            company.company_id,
            str(current_user.user_id),
            success_url,
            cancel_url
        )
    except IntegrationNotConfigured as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    except IntegrationError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))

    return CheckoutSessionResponse(**session)


# PUBLIC_INTERFACE
@router.get("/subscription", response_model=SubscriptionResponse,
            summary="Subscription status",
            description="Current plan and subscription status of the company.")
async def get_subscription(
    company: Company = Depends(get_company_context)
):
    return SubscriptionResponse(
        company_id=company.company_id,
        subscription_plan=company.subscription_plan,
        subscription_status=company.subscription_status,
        is_active=company.subscription_status in ACTIVE_STATUSES,
        stripe_customer_id=company.stripe_customer_id
    )


# PUBLIC_INTERFACE
@router.post("/cancel-subscription", response_model=CancelSubscriptionResponse,
             summary="Cancel subscription",
             description="Cancel the company's Stripe subscription immediately. Admin only.")
def cancel_subscription(
    current_user: CurrentUser = Depends(get_current_admin_user),
    company: Company = Depends(get_company_context),
    db: Session = Depends(get_db)
):
    if not company.stripe_subscription_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No subscription to cancel"
        )

    try:
        client = get_billing_client()
        client.cancel_subscription(company.stripe_subscription_id)
    except IntegrationNotConfigured as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    except IntegrationError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))

    company.subscription_status = SubscriptionStatus.CANCELED
    db.commit()
    logger.info("Subscription for company %s canceled by user %s", company.company_id, current_user.user_id)
    return CancelSubscriptionResponse(
        company_id=company.company_id,
        subscription_status=company.subscription_status,
        canceled=True
    )
