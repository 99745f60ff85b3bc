"""
Main FastAPI application.
"""
import logging
import sys
import uuid
from contextlib import asynccontextmanager
from http import HTTPStatus
from typing import Optional
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from .core.config import Settings, settings
from .core.exceptions import (
    AuthenticationError,
    ProClubsAPIError,
    QuotaExceededError,
    UnknownTierError,
)
from .core.tier_limits import build_tier_catalog
from .api.v1.subscription import router as subscription_router, limiter
from .api.v1.proclubs import router as proclubs_router
from .dependencies.rate_limit import TieredRateLimiter
from .dependencies.tier_check import AccessGate
from .services.api_key_service import APIKeyStore
from .services.auth_service import APIKeyAuthenticator
from .services.match_service import MatchService
from .services.payment_service import PaymentService

log_level = logging.DEBUG if settings.debug else logging.INFO

logging.basicConfig(
    level=log_level,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    stream=sys.stdout
)

# Set specific loggers to appropriate levels
logging.getLogger("uvicorn.access").setLevel(logging.WARNING)  # Reduce access log noise

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifespan events.

    The key store and rate limit windows are in memory; they start empty and
    are dropped on shutdown.
    """
    app_settings: Settings = app.state.settings
    catalog = app.state.tier_catalog

    logger.info(f"🚀 Starting {app_settings.project_name} v{app_settings.version}...")
    for plan in catalog.all():
        logger.info(f"   {plan.tier.value}: {plan.rate_limit_description}")

    if not app_settings.stripe_secret_key:
        logger.warning("⚠️  STRIPE_SECRET_KEY is not set, paid checkout will fail")

    logger.info("🟢 Application startup complete")

    yield

    logger.info(f"🔴 Shutting down, {len(app.state.key_store)} API keys discarded")


# ============================================================================
# EXCEPTION HANDLERS
# ============================================================================

async def authentication_error_handler(request: Request, exc: AuthenticationError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
        headers={"WWW-Authenticate": "ApiKey"},
    )


async def quota_exceeded_handler(request: Request, exc: QuotaExceededError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
        headers={
            "X-RateLimit-Limit": str(exc.limit),
            "X-RateLimit-Remaining": "0",
            "X-RateLimit-Reset": str(exc.reset_in),
            "Retry-After": str(exc.reset_in),
        },
    )


async def unknown_tier_handler(request: Request, exc: UnknownTierError) -> JSONResponse:
    # The catalog is validated at startup, so this is a configuration bug
    logger.error(f"❌ FATAL: {exc.message}")
    return JSONResponse(
        status_code=500,
        content={"error": "Internal Server Error", "message": "Something went wrong"},
    )


async def api_error_handler(request: Request, exc: ProClubsAPIError) -> JSONResponse:
    """Capability denials, payment errors and anything else from the core."""
    if exc.status_code >= 500:
        logger.error(f"{type(exc).__name__}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render HTTP errors as {error, message} like the core errors."""
    content = {
        "error": _reason_phrase(exc.status_code),
        "message": exc.detail,
    }
    if exc.status_code == 404 and exc.detail == "Not Found":
        content["message"] = "The requested endpoint does not exist"
        content["documentation"] = f"{request.app.state.settings.api_prefix}/docs"

    return JSONResponse(
        status_code=exc.status_code,
        content=content,
        headers=getattr(exc, "headers", None),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    debug = request.app.state.settings.debug
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal Server Error",
            "message": str(exc) if debug else "Something went wrong",
        },
    )


def _reason_phrase(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return "Error"


# ============================================================================
# APPLICATION
# ============================================================================

def create_application(app_settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Each call builds its own key store, rate limiter and access gate, so
    separate applications never share credentials or quota windows.

    Raises:
        TierCatalogError: If the configured tiers are incomplete
    """
    app_settings = app_settings or settings
    tier_catalog = build_tier_catalog(app_settings)

    app = FastAPI(
        title=app_settings.project_name,
        description="EA FC Pro Clubs data with API key subscriptions and tiered rate limits",
        version=app_settings.version,
        lifespan=lifespan,
    )

    # Core services, owned by this application instance
    key_store = APIKeyStore()
    app.state.settings = app_settings
    app.state.tier_catalog = tier_catalog
    app.state.key_store = key_store
    app.state.authenticator = APIKeyAuthenticator(key_store)
    app.state.rate_limiter = TieredRateLimiter(tier_catalog)
    app.state.access_gate = AccessGate()
    app.state.match_service = MatchService()
    app.state.payment_service = PaymentService(app_settings, key_store, tier_catalog)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Core error taxonomy -> HTTP
    app.add_exception_handler(AuthenticationError, authentication_error_handler)
    app.add_exception_handler(QuotaExceededError, quota_exceeded_handler)
    app.add_exception_handler(UnknownTierError, unknown_tier_handler)
    app.add_exception_handler(ProClubsAPIError, api_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # PUBLIC: per-IP limits on key issuance and checkout
    app.state.limiter = limiter
    app.state.public_limit_scope = uuid.uuid4().hex
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # Include routers
    app.include_router(subscription_router, prefix=app_settings.api_prefix)
    app.include_router(proclubs_router, prefix=app_settings.api_prefix)

    @app.get("/")
    async def root():
        """API information."""
        return {
            "name": app_settings.project_name,
            "version": app_settings.version,
            "status": "running",
            "documentation": f"{app_settings.api_prefix}/docs",
            "subscription": f"{app_settings.api_prefix}/subscription/plans",
        }

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "service": "proclubs-api",
            "environment": app_settings.environment,
        }

    @app.get(f"{app_settings.api_prefix}/docs")
    async def api_docs():
        """Endpoint, authentication and rate limit overview."""
        prefix = app_settings.api_prefix
        return {
            "endpoints": {
                "public": {
                    "/": "API information",
                    f"{prefix}/docs": "API documentation",
                    f"GET {prefix}/subscription/plans": "Get subscription plans",
                    f"POST {prefix}/subscription/subscribe/free": "Get free API key",
                    f"POST {prefix}/subscription/subscribe/checkout": "Create checkout session for paid plans",
                },
                "authenticated": {
                    f"GET {prefix}/subscription/key": "Get your API key usage (all tiers)",
                    f"DELETE {prefix}/subscription/key": "Deactivate your API key (all tiers)",
                    f"DELETE {prefix}/subscription/billing": "Cancel the subscription paying for your API key",
                    f"GET {prefix}/proclubs/matches": "Get recent matches (all tiers)",
                    f"GET {prefix}/proclubs/matches/:matchId": "Get match details (all tiers)",
                    f"GET {prefix}/proclubs/statistics/players": "Get player statistics (Basic & Premium)",
                    f"GET {prefix}/proclubs/analytics/advanced": "Get advanced analytics (Premium only)",
                },
            },
            "authentication": {
                "method": "API Key",
                "header": "X-API-Key",
                "example": "X-API-Key: eafc_free_abc123...",
            },
            "rateLimit": {
                plan.tier.value: plan.rate_limit_description
                for plan in tier_catalog.all()
            },
        }

    return app


# Create the FastAPI app instance
app = create_application()
