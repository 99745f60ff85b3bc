"""
Subscription API routes.

Public:
- Plan listing
- Free API key issuance (rate limited per IP)
- Stripe checkout for paid plans, webhook, success/cancel pages

Authenticated:
- Inspect or deactivate the calling API key
- Cancel the subscription paying for the calling API key
"""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from fastapi.responses import HTMLResponse
from slowapi import Limiter
from slowapi.util import get_remote_address

from ...core.config import settings
from ...core.dependencies import get_authenticator, get_key_store, get_settings, get_tier_catalog
from ...core.tier_limits import SubscriptionTier
from ...dependencies.rate_limit import enforce_rate_limit
from ...schemas.billing import (
    CheckoutSessionRequest,
    CheckoutSessionResponse,
    SubscriptionCancelResponse,
    WebhookResponse,
)
from ...schemas.subscription import (
    APIKeyInfo,
    APIKeyRevokedResponse,
    FreeSubscriptionRequest,
    FreeSubscriptionResponse,
    PlanResponse,
    PlansResponse,
)
from ...services.api_key_service import APIKeyRecord
from ...services.payment_service import PaymentService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/subscription", tags=["Subscription"])


def get_public_client_key(request: Request) -> str:
    """Client IP, scoped to the application instance handling the request."""
    return f"{request.app.state.public_limit_scope}:{get_remote_address(request)}"


# Anonymous endpoints are limited per client IP. The limit string and the
# enabled flag are process-wide settings; counters are kept per application.
limiter = Limiter(key_func=get_public_client_key, enabled=settings.public_rate_limit_enabled)


def get_payment_service(request: Request) -> PaymentService:
    """The application's payment service."""
    return request.app.state.payment_service


# ============================================================================
# PLANS & FREE TIER
# ============================================================================

@router.get("/plans", response_model=PlansResponse)
def list_plans(request: Request):
    """
    Get all subscription plans.

    Returns:
        Plans with price, features and rate limit, lowest tier first
    """
    catalog = get_tier_catalog(request)
    return PlansResponse(
        plans=[
            PlanResponse(
                tier=plan.tier,
                price=plan.price,
                currency=plan.currency,
                features=plan.features,
                rate_limit=plan.rate_limit_description,
            )
            for plan in catalog.all()
        ]
    )


@router.post(
    "/subscribe/free",
    response_model=FreeSubscriptionResponse,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit(settings.public_rate_limit)
def subscribe_free(request: Request, body: FreeSubscriptionRequest):
    """
    Generate a free API key.

    The full key is only returned here; store it securely.
    """
    plan = get_tier_catalog(request).get(SubscriptionTier.FREE)
    record = get_key_store(request).issue(body.user_id, SubscriptionTier.FREE)

    return FreeSubscriptionResponse(
        api_key=record.key,
        tier=record.tier,
        features=plan.features,
        rate_limit=plan.rate_limit_description,
    )


# ============================================================================
# PAID TIERS (STRIPE)
# ============================================================================

@router.post("/subscribe/checkout", response_model=CheckoutSessionResponse)
@limiter.limit(settings.public_rate_limit)
async def subscribe_checkout(
    request: Request,
    body: CheckoutSessionRequest,
    x_api_key: Optional[str] = Header(None, alias="X-API-Key"),
):
    """
    Create a Stripe Checkout session for a paid plan.

    When the request carries an X-API-Key, that key is upgraded after payment;
    otherwise a new key is issued for ``userId``.
    """
    if body.tier == SubscriptionTier.FREE.value:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Use /subscribe/free endpoint for free tier",
        )

    try:
        tier = SubscriptionTier(body.tier)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid subscription tier",
        )

    upgrade_key = None
    if x_api_key:
        upgrade_key = get_authenticator(request).authenticate(x_api_key).key

    app_settings = get_settings(request)
    base_url = app_settings.api_base_url.rstrip("/")
    prefix = f"{base_url}{app_settings.api_prefix}{router.prefix}"

    checkout_url = await get_payment_service(request).create_checkout_session(
        user_id=body.user_id,
        tier=tier,
        success_url=f"{prefix}/success",
        cancel_url=f"{prefix}/cancel",
        api_key=upgrade_key,
    )

    return CheckoutSessionResponse(checkout_url=checkout_url)


@router.post("/webhook", response_model=WebhookResponse)
async def stripe_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(None, alias="Stripe-Signature"),
):
    """
    Handle Stripe webhook events.
    Called by Stripe when a checkout completes or a subscription changes.
    """
    payload = await request.body()
    result = await get_payment_service(request).handle_webhook(payload, stripe_signature)
    return WebhookResponse(**result)


@router.get("/success", response_class=HTMLResponse)
def checkout_success():
    """Landing page after a successful checkout."""
    return """
    <html>
      <head><title>Subscription Successful</title></head>
      <body style="font-family: Arial, sans-serif; text-align: center; padding: 50px;">
        <h1>&#10003; Subscription Successful!</h1>
        <p>Your API key has been generated and sent to your email.</p>
        <p><a href="/">Return to Home</a></p>
      </body>
    </html>
    """


@router.get("/cancel", response_class=HTMLResponse)
def checkout_cancel(request: Request):
    """Landing page when the user backs out of checkout."""
    return f"""
    <html>
      <head><title>Subscription Canceled</title></head>
      <body style="font-family: Arial, sans-serif; text-align: center; padding: 50px;">
        <h1>Subscription Canceled</h1>
        <p>Your subscription was not completed.</p>
        <p><a href="{get_settings(request).api_prefix}{router.prefix}/plans">View Plans Again</a></p>
      </body>
    </html>
    """


# ============================================================================
# API KEY SELF-SERVICE
# ============================================================================

@router.get("/key", response_model=APIKeyInfo)
def get_api_key_info(api_key: APIKeyRecord = Depends(enforce_rate_limit)):
    """
    Get the calling API key's tier and usage (without revealing the key).
    """
    return APIKeyInfo(
        key_prefix=api_key.display_prefix,
        tier=api_key.tier,
        owner_id=api_key.owner_id,
        created_at=api_key.created_at,
        is_active=api_key.is_active,
        request_count=api_key.request_count,
        last_used_at=api_key.last_used_at,
    )


@router.delete("/key", response_model=APIKeyRevokedResponse)
def deactivate_api_key(
    request: Request,
    api_key: APIKeyRecord = Depends(enforce_rate_limit),
):
    """
    Deactivate the calling API key.

    This action cannot be undone; request a new key afterward.
    """
    get_key_store(request).deactivate(api_key.key)
    return APIKeyRevokedResponse()


@router.delete("/billing", response_model=SubscriptionCancelResponse)
async def cancel_subscription(
    request: Request,
    api_key: APIKeyRecord = Depends(enforce_rate_limit),
):
    """
    Cancel the Stripe subscription paying for the calling key.

    The key stays active and drops to the free tier once Stripe confirms the
    cancellation through the webhook.

    Raises:
        404: If no subscription pays for this key
    """
    payment_service = get_payment_service(request)
    subscription_id = payment_service.subscription_for_key(api_key.key)

    if subscription_id is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No active subscription for this API key",
        )

    await payment_service.cancel_subscription(subscription_id)
    return SubscriptionCancelResponse(subscription_id=subscription_id)
