"""
Tier configuration for the subscription paywall.
Defines price, request quota and advertised features for each plan.
"""

from enum import Enum
from typing import Dict, Iterable, List, Optional
from dataclasses import dataclass, field

from .config import Settings
from .exceptions import TierCatalogError, UnknownTierError


class SubscriptionTier(str, Enum):
    """Subscription plans, lowest to highest."""
    FREE = "free"
    BASIC = "basic"
    PREMIUM = "premium"


# Order matters: upgrade hints and capability checks compare positions
TIER_ORDER: List[SubscriptionTier] = [
    SubscriptionTier.FREE,
    SubscriptionTier.BASIC,
    SubscriptionTier.PREMIUM,
]


def tier_rank(tier: SubscriptionTier) -> int:
    """Position of a tier in TIER_ORDER (0 = lowest)."""
    return TIER_ORDER.index(SubscriptionTier(tier))


def next_tier(tier: SubscriptionTier) -> Optional[SubscriptionTier]:
    """The tier one above ``tier``, or None for the top tier."""
    rank = tier_rank(tier)
    if rank + 1 < len(TIER_ORDER):
        return TIER_ORDER[rank + 1]
    return None


def upgrade_hint(tier: SubscriptionTier) -> Optional[str]:
    """Human-readable upgrade suggestion for a rate-limited caller."""
    target = next_tier(tier)
    if target is None:
        return None
    return f"Upgrade to {target.value.capitalize()} for higher limits"


def describe_window(window_ms: int) -> str:
    """'minute' for the default window, otherwise the length in seconds."""
    if window_ms == 60 * 1000:
        return "minute"
    return f"{window_ms / 1000:g} seconds"


@dataclass(frozen=True)
class RateLimitConfig:
    """Fixed-window quota for one tier."""
    window_ms: int
    max_requests: int


@dataclass(frozen=True)
class TierDefinition:
    """Static definition of a subscription tier."""
    tier: SubscriptionTier
    price: float
    currency: str
    rate_limit: RateLimitConfig
    features: List[str] = field(default_factory=list)  # Informational only

    @property
    def rate_limit_description(self) -> str:
        return (
            f"{self.rate_limit.max_requests} requests per "
            f"{describe_window(self.rate_limit.window_ms)}"
        )


class TierCatalog:
    """
    Immutable lookup of tier definitions.

    Validated on construction: exactly one definition per tier and every tier
    in TIER_ORDER present. Once built, ``get`` never fails for a valid tier.
    """

    def __init__(self, definitions: Iterable[TierDefinition]):
        table: Dict[SubscriptionTier, TierDefinition] = {}
        for definition in definitions:
            if definition.tier in table:
                raise TierCatalogError(f"Duplicate tier definition: {definition.tier.value}")
            if definition.rate_limit.max_requests < 1 or definition.rate_limit.window_ms < 1:
                raise TierCatalogError(f"Invalid rate limit for tier {definition.tier.value}")
            table[definition.tier] = definition

        missing = [tier.value for tier in TIER_ORDER if tier not in table]
        if missing:
            raise TierCatalogError(f"Tier catalog is missing tiers: {', '.join(missing)}")

        self._definitions = table

    def get(self, tier: SubscriptionTier) -> TierDefinition:
        """Get the definition for a tier."""
        try:
            return self._definitions[SubscriptionTier(tier)]
        except (KeyError, ValueError):
            raise UnknownTierError(tier)

    def rate_limit(self, tier: SubscriptionTier) -> RateLimitConfig:
        return self.get(tier).rate_limit

    def all(self) -> List[TierDefinition]:
        """Definitions in tier order."""
        return [self._definitions[tier] for tier in TIER_ORDER]

    def __contains__(self, tier: object) -> bool:
        try:
            return SubscriptionTier(tier) in self._definitions
        except ValueError:
            return False


def build_tier_catalog(settings: Settings) -> TierCatalog:
    """Build the catalog from settings (rate limits are env-overridable)."""
    window_ms = settings.rate_limit_window_ms

    return TierCatalog([
        TierDefinition(
            tier=SubscriptionTier.FREE,
            price=0,
            currency="USD",
            rate_limit=RateLimitConfig(window_ms=window_ms, max_requests=settings.rate_limit_free),
            features=[
                "Access to basic match data",
                f"Limited to {settings.rate_limit_free} requests per {describe_window(window_ms)}",
                "Community support",
            ],
        ),
        TierDefinition(
            tier=SubscriptionTier.BASIC,
            price=9.99,
            currency="USD",
            rate_limit=RateLimitConfig(window_ms=window_ms, max_requests=settings.rate_limit_basic),
            features=[
                "Access to all match data",
                "Player statistics",
                f"{settings.rate_limit_basic} requests per {describe_window(window_ms)}",
                "Email support",
                "Historical data access (6 months)",
            ],
        ),
        TierDefinition(
            tier=SubscriptionTier.PREMIUM,
            price=29.99,
            currency="USD",
            rate_limit=RateLimitConfig(window_ms=window_ms, max_requests=settings.rate_limit_premium),
            features=[
                "All Basic features",
                f"{settings.rate_limit_premium} requests per {describe_window(window_ms)}",
                "Real-time match updates",
                "Advanced analytics",
                "Priority support",
                "Historical data access (unlimited)",
                "Webhook notifications",
            ],
        ),
    ])
