"""
Pydantic schemas for billing endpoints.
"""

from pydantic import BaseModel, ConfigDict, Field


class CheckoutSessionRequest(BaseModel):
    """Request to create a checkout session for a paid tier."""
    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(..., alias="userId", min_length=1)
    tier: str = Field(..., min_length=1, description="basic or premium")


class CheckoutSessionResponse(BaseModel):
    """Response with checkout session URL."""
    model_config = ConfigDict(populate_by_name=True)

    message: str = "Checkout session created"
    checkout_url: str = Field(..., alias="checkoutUrl")


class WebhookResponse(BaseModel):
    """Response from webhook processing."""
    received: bool = True
    status: str
    message: str


class SubscriptionCancelResponse(BaseModel):
    """Confirmation that a subscription cancellation was requested."""
    model_config = ConfigDict(populate_by_name=True)

    message: str = "Subscription cancellation requested"
    subscription_id: str = Field(..., alias="subscriptionId")
