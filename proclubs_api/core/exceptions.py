"""
Error taxonomy for API key authentication, rate limiting and tier gating.

The core raises these; the handlers registered in ``main.py`` turn them into
HTTP responses. Every rejection is terminal for the request.
"""
from typing import Any, Dict, Optional


class ProClubsAPIError(Exception):
    """Base class for all errors raised by the authorization core."""

    status_code: int = 500
    error: str = "Internal Server Error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        """Response body for this error."""
        return {"error": self.error, "message": self.message}


# ============================================================================
# AUTHENTICATION (401)
# ============================================================================

class AuthenticationError(ProClubsAPIError):
    """Raised when a request cannot be tied to an active API key."""

    status_code = 401
    error = "Unauthorized"


class MissingCredentialError(AuthenticationError):
    """No X-API-Key header was supplied."""

    def __init__(self):
        super().__init__("API key is required. Please include it in the X-API-Key header.")


class InvalidCredentialError(AuthenticationError):
    """
    The key is unknown or deactivated.

    Both cases share one message so callers cannot probe which keys ever existed.
    """

    def __init__(self):
        super().__init__("Invalid or inactive API key.")


# ============================================================================
# QUOTA (429)
# ============================================================================

class QuotaExceededError(ProClubsAPIError):
    """The identity used up its request window."""

    status_code = 429
    error = "Too Many Requests"

    def __init__(
        self,
        tier: str,
        limit: int,
        reset_in: int,
        upgrade: Optional[str] = None,
        window: str = "minute",
    ):
        super().__init__(
            f"Rate limit exceeded for {tier} tier. Maximum {limit} requests per {window}."
        )
        self.tier = tier
        self.limit = limit
        self.reset_in = reset_in
        self.upgrade = upgrade

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        body.update({
            "tier": self.tier,
            "limit": self.limit,
            "upgrade": self.upgrade,
        })
        return body


# ============================================================================
# CAPABILITY (403)
# ============================================================================

class CapabilityDeniedError(ProClubsAPIError):
    """The caller's tier is below the tier a capability requires."""

    status_code = 403
    error = "Forbidden"

    def __init__(self, message: str, required_tier: str, current_tier: str, upgrade: str):
        super().__init__(message)
        self.required_tier = required_tier
        self.current_tier = current_tier
        self.upgrade = upgrade

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        body.update({
            "currentTier": self.current_tier,
            "requiredTier": self.required_tier,
            "upgrade": self.upgrade,
        })
        return body


# ============================================================================
# CONFIGURATION (fatal)
# ============================================================================

class TierCatalogError(ProClubsAPIError):
    """The tier catalog is incomplete or inconsistent. Raised at startup."""


class UnknownTierError(ProClubsAPIError):
    """A credential references a tier the catalog does not define."""

    def __init__(self, tier: Any):
        super().__init__(f"Tier {tier!r} is not defined in the tier catalog")
        self.tier = tier


# ============================================================================
# PAYMENTS
# ============================================================================

class PaymentError(ProClubsAPIError):
    """Checkout or webhook processing failed."""

    error = "Webhook Error"

    def __init__(self, message: str, status_code: int = 400, error: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        if error:
            self.error = error
