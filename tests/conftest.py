"""
Shared fixtures: isolated applications, test clients and a controllable clock.
"""
import pytest
from fastapi.testclient import TestClient

from proclubs_api.api.v1.subscription import limiter
from proclubs_api.core.config import Settings
from proclubs_api.core.tier_limits import SubscriptionTier, build_tier_catalog
from proclubs_api.main import create_application


class FakeClock:
    """Monotonic clock the tests advance by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# ================================================================
# Fixtures
# ================================================================

@pytest.fixture
def test_settings():
    """Small quotas so limits are reachable in a handful of requests."""
    return Settings(
        rate_limit_free=3,
        rate_limit_basic=5,
        rate_limit_premium=100,
        rate_limit_window_ms=60 * 1000,
        api_base_url="http://localhost:3000",
        stripe_secret_key="sk_test_dummy",
        stripe_webhook_secret="whsec_test_dummy",
        debug=False,
    )


@pytest.fixture
def tier_catalog(test_settings):
    return build_tier_catalog(test_settings)


@pytest.fixture
def app(test_settings):
    """A fresh application with its own key store and rate limit windows."""
    return create_application(test_settings)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def issue_key(app):
    """Issue a key directly in the app's store and return the raw key."""

    def _issue(tier: SubscriptionTier = SubscriptionTier.FREE, owner_id: str = "user_123") -> str:
        return app.state.key_store.issue(owner_id, tier).key

    return _issue


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture(autouse=True)
def reset_public_limiter():
    """The slowapi limiter is module level; clear its per-IP counters."""
    limiter.reset()
    yield
    limiter.reset()
