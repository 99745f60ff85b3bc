"""
Tiered rate limiting based on the caller's subscription tier.

Free: 10 requests/minute
Basic: 100 requests/minute
Premium: 1000 requests/minute

Fixed-window counters per identity (API key, or client IP when no key was
resolved). Limits are read from the tier catalog on every check, so a tier
change applies to the next request without resetting the current window.
"""

import math
import threading
import time
import logging
from typing import Callable, Dict, Optional, Tuple
from dataclasses import dataclass, replace
from fastapi import Depends, Request, Response

from ..core.dependencies import get_current_api_key
from ..core.exceptions import QuotaExceededError
from ..core.tier_limits import (
    SubscriptionTier,
    TierCatalog,
    describe_window,
    upgrade_hint,
)
from ..services.api_key_service import APIKeyRecord

logger = logging.getLogger(__name__)

# Tier applied when no credential was resolved
ANONYMOUS_TIER = SubscriptionTier.FREE


@dataclass
class WindowState:
    """Request counter for one identity's current window."""
    window_start: float
    count: int


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of one rate limit check."""
    allowed: bool
    tier: SubscriptionTier
    limit: int
    count: int
    remaining: int
    reset_in: int  # Seconds until the window closes


def get_rate_limit_key(request: Request, api_key: Optional[str] = None) -> str:
    """
    Generate a unique rate limit key based on API key or IP.
    """
    if api_key:
        return f"key:{api_key}"

    # Fall back to IP-based limiting
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        ip = forwarded.split(",")[0].strip()
    else:
        ip = request.client.host if request.client else "unknown"

    return f"ip:{ip}"


def resolve_identity(
    request: Request,
    api_key: Optional[APIKeyRecord] = None,
) -> Tuple[str, SubscriptionTier]:
    """
    Rate limit identity and tier for a request.

    Anonymous requests are keyed by IP and limited as the free tier.
    """
    if api_key is not None:
        return get_rate_limit_key(request, api_key.key), api_key.tier
    return get_rate_limit_key(request), ANONYMOUS_TIER


class TieredRateLimiter:
    """
    In-memory fixed-window rate limiter with per-tier limits.

    The read-increment-compare for an identity happens under one lock, so
    concurrent requests can neither be double-admitted nor lost.

    Usage:
        limiter = TieredRateLimiter(tier_catalog)
        decision = limiter.allow("key:eafc_free_...", SubscriptionTier.FREE)
    """

    def __init__(
        self,
        tier_catalog: TierCatalog,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.tier_catalog = tier_catalog
        self._clock = clock
        self._windows: Dict[str, WindowState] = {}
        self._lock = threading.Lock()

    def allow(self, identity_key: str, tier: SubscriptionTier) -> RateLimitDecision:
        """
        Count a request and decide whether it is within the tier's quota.

        Denied requests are counted too; the window only resets once its
        duration has elapsed.
        """
        tier = SubscriptionTier(tier)
        config = self.tier_catalog.rate_limit(tier)
        window_seconds = config.window_ms / 1000

        with self._lock:
            now = self._clock()
            window = self._windows.get(identity_key)

            # Open a new window on first use or once the old one expired
            if window is None or now - window.window_start >= window_seconds:
                window = WindowState(window_start=now, count=1)
                self._windows[identity_key] = window
            else:
                window.count += 1

            count = window.count
            reset_in = max(0, math.ceil(window.window_start + window_seconds - now))

        return RateLimitDecision(
            allowed=count <= config.max_requests,
            tier=tier,
            limit=config.max_requests,
            count=count,
            remaining=max(0, config.max_requests - count),
            reset_in=reset_in,
        )

    def enforce(self, identity_key: str, tier: SubscriptionTier) -> RateLimitDecision:
        """
        Like allow(), but raise when the quota is exhausted.

        Raises:
            QuotaExceededError: With tier, limit and an upgrade hint
        """
        decision = self.allow(identity_key, tier)

        if not decision.allowed:
            window_ms = self.tier_catalog.rate_limit(decision.tier).window_ms
            logger.info(
                f"Rate limit exceeded for {decision.tier.value} tier "
                f"({decision.count}/{decision.limit}), resets in {decision.reset_in}s"
            )
            raise QuotaExceededError(
                tier=decision.tier.value,
                limit=decision.limit,
                reset_in=decision.reset_in,
                upgrade=upgrade_hint(decision.tier),
                window=describe_window(window_ms),
            )

        return decision

    def get_window(self, identity_key: str) -> Optional[WindowState]:
        """Current window for an identity (a copy), or None."""
        with self._lock:
            window = self._windows.get(identity_key)
            return replace(window) if window is not None else None

    def reset(self, identity_key: Optional[str] = None) -> None:
        """Forget one identity's window, or every window."""
        with self._lock:
            if identity_key is None:
                self._windows.clear()
            else:
                self._windows.pop(identity_key, None)


def get_rate_limiter(request: Request) -> TieredRateLimiter:
    """The application's rate limiter."""
    return request.app.state.rate_limiter


def add_rate_limit_headers(response: Response, decision: RateLimitDecision) -> Response:
    """
    Add rate limit headers to response.
    """
    response.headers["X-RateLimit-Limit"] = str(decision.limit)
    response.headers["X-RateLimit-Remaining"] = str(decision.remaining)
    response.headers["X-RateLimit-Reset"] = str(decision.reset_in)
    return response


def enforce_rate_limit(
    request: Request,
    response: Response,
    api_key: APIKeyRecord = Depends(get_current_api_key),
) -> APIKeyRecord:
    """
    FastAPI dependency: authenticate, then enforce the caller's tier quota.

    Order in request pipeline: AUTH -> RATE LIMIT -> ROUTER LOGIC.

    Returns the authenticated APIKeyRecord so routers can read the tier.
    """
    limiter = get_rate_limiter(request)
    key, tier = resolve_identity(request, api_key)

    decision = limiter.enforce(key, tier)
    add_rate_limit_headers(response, decision)

    return api_key
