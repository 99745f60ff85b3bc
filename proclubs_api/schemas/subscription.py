"""
Pydantic schemas for subscription and API key endpoints.
"""

from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field

from ..core.tier_limits import SubscriptionTier


class CamelModel(BaseModel):
    """Base model for camelCase JSON bodies."""
    model_config = ConfigDict(populate_by_name=True)


class PlanResponse(CamelModel):
    """One subscription plan as advertised to clients."""
    tier: SubscriptionTier
    price: float
    currency: str
    features: List[str]
    rate_limit: str = Field(..., alias="rateLimit", description="e.g. '10 requests per minute'")


class PlansResponse(BaseModel):
    """All subscription plans, lowest tier first."""
    plans: List[PlanResponse]


class FreeSubscriptionRequest(CamelModel):
    """Request for a free-tier API key."""
    user_id: str = Field(..., alias="userId", min_length=1, description="Opaque subscriber id")


class FreeSubscriptionResponse(CamelModel):
    """Response when a free API key is issued (includes the full key)."""
    message: str = "Free API key generated successfully"
    api_key: str = Field(..., alias="apiKey")
    tier: SubscriptionTier
    features: List[str]
    rate_limit: str = Field(..., alias="rateLimit")


class APIKeyInfo(CamelModel):
    """The calling key's record, without the full key."""
    key_prefix: str = Field(..., alias="keyPrefix")
    tier: SubscriptionTier
    owner_id: str = Field(..., alias="ownerId")
    created_at: datetime = Field(..., alias="createdAt")
    is_active: bool = Field(..., alias="isActive")
    request_count: int = Field(..., alias="requestCount")
    last_used_at: Optional[datetime] = Field(None, alias="lastUsedAt")


class APIKeyRevokedResponse(BaseModel):
    """Confirmation that the calling key was deactivated."""
    message: str = "API key deactivated successfully"
