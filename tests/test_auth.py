"""
Tests for API key authentication.
"""
import pytest

from proclubs_api.core.exceptions import InvalidCredentialError, MissingCredentialError
from proclubs_api.core.tier_limits import SubscriptionTier
from proclubs_api.services.api_key_service import APIKeyStore
from proclubs_api.services.auth_service import APIKeyAuthenticator


@pytest.fixture
def store():
    return APIKeyStore()


@pytest.fixture
def authenticator(store):
    return APIKeyAuthenticator(store)


# ================================================================
# Authenticator
# ================================================================

@pytest.mark.parametrize("raw_key", [None, ""])
def test_missing_key_is_rejected(authenticator, raw_key):
    with pytest.raises(MissingCredentialError) as exc_info:
        authenticator.authenticate(raw_key)

    assert exc_info.value.status_code == 401
    assert "X-API-Key" in exc_info.value.message


def test_unknown_key_is_rejected(authenticator):
    with pytest.raises(InvalidCredentialError):
        authenticator.authenticate("eafc_free_notarealkey")


def test_deactivated_key_looks_like_unknown_key(authenticator, store):
    key = store.issue("user_123", SubscriptionTier.BASIC).key
    store.deactivate(key)

    with pytest.raises(InvalidCredentialError) as deactivated:
        authenticator.authenticate(key)
    with pytest.raises(InvalidCredentialError) as unknown:
        authenticator.authenticate("eafc_basic_neverissued")

    assert deactivated.value.message == unknown.value.message
    assert store.lookup(key).request_count == 0


def test_key_deactivated_after_use_is_rejected_without_counting(authenticator, store):
    key = store.issue("user_123", SubscriptionTier.FREE).key
    authenticator.authenticate(key)
    store.deactivate(key)

    with pytest.raises(InvalidCredentialError):
        authenticator.authenticate(key)

    assert store.lookup(key).request_count == 1


def test_each_authentication_counts_one_request(authenticator, store):
    key = store.issue("user_123", SubscriptionTier.FREE).key

    for _ in range(7):
        record = authenticator.authenticate(key)

    assert record.request_count == 7
    assert record.last_used_at is not None
    assert store.lookup(key).request_count == 7


def test_authenticate_returns_current_tier(authenticator, store):
    key = store.issue("user_123", SubscriptionTier.FREE).key
    store.change_tier(key, SubscriptionTier.PREMIUM)

    assert authenticator.authenticate(key).tier == SubscriptionTier.PREMIUM


# ================================================================
# HTTP
# ================================================================

def test_request_without_key_returns_401(client):
    response = client.get("/api/proclubs/matches")

    assert response.status_code == 401
    assert response.headers["WWW-Authenticate"] == "ApiKey"
    assert response.json() == {
        "error": "Unauthorized",
        "message": "API key is required. Please include it in the X-API-Key header.",
    }


def test_request_with_unknown_key_returns_401(client):
    response = client.get("/api/proclubs/matches", headers={"X-API-Key": "eafc_free_bogus"})

    assert response.status_code == 401
    assert response.json()["message"] == "Invalid or inactive API key."


def test_header_name_is_case_insensitive(client, issue_key):
    key = issue_key()

    response = client.get("/api/proclubs/matches", headers={"x-api-key": key})

    assert response.status_code == 200


def test_rejected_requests_do_not_consume_quota(client, issue_key):
    key = issue_key()
    for _ in range(5):
        client.get("/api/proclubs/matches", headers={"X-API-Key": "eafc_free_bogus"})

    response = client.get("/api/proclubs/matches", headers={"X-API-Key": key})

    assert response.status_code == 200
    assert response.headers["X-RateLimit-Remaining"] == "2"
