"""
Dependency for checking the caller's tier against protected capabilities.

Capability access is a static policy: each capability names the lowest tier
that may use it. Tier feature lists in the catalog are informational and are
not consulted here.
"""

import logging
from enum import Enum
from typing import Callable, Dict, Optional
from dataclasses import dataclass
from fastapi import Depends, Request

from .rate_limit import enforce_rate_limit
from ..core.exceptions import CapabilityDeniedError
from ..core.tier_limits import SubscriptionTier, tier_rank
from ..services.api_key_service import APIKeyRecord

logger = logging.getLogger(__name__)


class Capability(str, Enum):
    """Protected operations gated by tier."""
    READ_RECENT_MATCHES = "read_recent_matches"
    READ_MATCH = "read_match"
    READ_PLAYER_STATISTICS = "read_player_statistics"
    READ_ADVANCED_ANALYTICS = "read_advanced_analytics"


@dataclass(frozen=True)
class CapabilityPolicy:
    """Minimum tier for a capability and the message shown when denied."""
    required_tier: SubscriptionTier
    denied_message: str
    upgrade: str


# Capability policy
# - matches: every tier
# - player statistics: basic and premium
# - advanced analytics: premium only
CAPABILITY_POLICIES: Dict[Capability, CapabilityPolicy] = {
    Capability.READ_RECENT_MATCHES: CapabilityPolicy(
        required_tier=SubscriptionTier.FREE,
        denied_message="Recent matches are available to all subscribers",
        upgrade="Subscribe to any plan to access this feature",
    ),
    Capability.READ_MATCH: CapabilityPolicy(
        required_tier=SubscriptionTier.FREE,
        denied_message="Match details are available to all subscribers",
        upgrade="Subscribe to any plan to access this feature",
    ),
    Capability.READ_PLAYER_STATISTICS: CapabilityPolicy(
        required_tier=SubscriptionTier.BASIC,
        denied_message="Player statistics are only available to Basic and Premium subscribers",
        upgrade="Upgrade your plan to access this feature",
    ),
    Capability.READ_ADVANCED_ANALYTICS: CapabilityPolicy(
        required_tier=SubscriptionTier.PREMIUM,
        denied_message="Advanced analytics are only available to Premium subscribers",
        upgrade="Upgrade to Premium to access this feature",
    ),
}


class AccessGate:
    """Decides whether a tier may invoke a capability."""

    def __init__(self, policies: Optional[Dict[Capability, CapabilityPolicy]] = None):
        self.policies = dict(policies if policies is not None else CAPABILITY_POLICIES)

    def required_tier(self, capability: Capability) -> SubscriptionTier:
        return self.policies[Capability(capability)].required_tier

    def is_permitted(self, tier: SubscriptionTier, capability: Capability) -> bool:
        """Check if a tier may use a capability."""
        return tier_rank(tier) >= tier_rank(self.required_tier(capability))

    def authorize(self, tier: SubscriptionTier, capability: Capability) -> None:
        """
        Authorize a capability for a tier.

        Raises:
            CapabilityDeniedError: With the required and the current tier
        """
        if self.is_permitted(tier, capability):
            return

        policy = self.policies[Capability(capability)]
        current = SubscriptionTier(tier)
        logger.debug(f"Denied {Capability(capability).value} for {current.value} tier")
        raise CapabilityDeniedError(
            message=policy.denied_message,
            required_tier=policy.required_tier.value,
            current_tier=current.value,
            upgrade=policy.upgrade,
        )


def get_access_gate(request: Request) -> AccessGate:
    """The application's access gate."""
    return request.app.state.access_gate


def require_capability(capability: Capability) -> Callable[..., APIKeyRecord]:
    """
    Build a dependency that authenticates, rate limits, then checks a capability.

    Usage:
        @router.get("/statistics/players")
        def players(api_key: APIKeyRecord = Depends(require_capability(Capability.READ_PLAYER_STATISTICS))):
            ...
    """

    def dependency(
        request: Request,
        api_key: APIKeyRecord = Depends(enforce_rate_limit),
    ) -> APIKeyRecord:
        get_access_gate(request).authorize(api_key.tier, capability)
        return api_key

    return dependency
