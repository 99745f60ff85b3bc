"""
FastAPI dependencies for API key authentication.

Core services live on ``app.state`` (built by ``create_application``), so each
application instance owns its own key store and rate limit windows.
"""
from typing import Optional
from fastapi import Header, Request

from .config import Settings
from .tier_limits import TierCatalog
from ..services.api_key_service import APIKeyRecord, APIKeyStore
from ..services.auth_service import APIKeyAuthenticator


def get_settings(request: Request) -> Settings:
    """Settings the application was created with."""
    return request.app.state.settings


def get_key_store(request: Request) -> APIKeyStore:
    """The application's API key store."""
    return request.app.state.key_store


def get_tier_catalog(request: Request) -> TierCatalog:
    """The application's tier catalog."""
    return request.app.state.tier_catalog


def get_authenticator(request: Request) -> APIKeyAuthenticator:
    """The application's API key authenticator."""
    return request.app.state.authenticator


def get_current_api_key(
    request: Request,
    x_api_key: Optional[str] = Header(None, alias="X-API-Key"),
) -> APIKeyRecord:
    """
    Dependency to get the API key record of the current request.

    Args:
        request: FastAPI request object
        x_api_key: API key from the X-API-Key header (header name is case-insensitive)

    Returns:
        APIKeyRecord: The authenticated key, request already counted

    Raises:
        MissingCredentialError: If no key was sent
        InvalidCredentialError: If the key is unknown or deactivated
    """
    api_key = get_authenticator(request).authenticate(x_api_key)
    request.state.api_key = api_key
    return api_key
