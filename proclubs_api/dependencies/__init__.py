"""
Dependencies module for FastAPI dependency injection.
"""

from .rate_limit import (
    TieredRateLimiter,
    RateLimitDecision,
    enforce_rate_limit,
    get_rate_limit_key,
    get_rate_limiter,
)

from .tier_check import (
    AccessGate,
    Capability,
    CAPABILITY_POLICIES,
    get_access_gate,
    require_capability,
)

__all__ = [
    # Rate limiting
    "TieredRateLimiter",
    "RateLimitDecision",
    "enforce_rate_limit",
    "get_rate_limit_key",
    "get_rate_limiter",
    # Tier checking
    "AccessGate",
    "Capability",
    "CAPABILITY_POLICIES",
    "get_access_gate",
    "require_capability",
]
