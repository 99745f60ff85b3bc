"""
Tests for capability gating by subscription tier.
"""
import pytest

from proclubs_api.core.exceptions import CapabilityDeniedError
from proclubs_api.core.tier_limits import SubscriptionTier
from proclubs_api.dependencies import AccessGate, Capability


FREE = SubscriptionTier.FREE
BASIC = SubscriptionTier.BASIC
PREMIUM = SubscriptionTier.PREMIUM


@pytest.mark.parametrize("tier,capability,permitted", [
    (FREE, Capability.READ_RECENT_MATCHES, True),
    (FREE, Capability.READ_MATCH, True),
    (FREE, Capability.READ_PLAYER_STATISTICS, False),
    (FREE, Capability.READ_ADVANCED_ANALYTICS, False),
    (BASIC, Capability.READ_RECENT_MATCHES, True),
    (BASIC, Capability.READ_MATCH, True),
    (BASIC, Capability.READ_PLAYER_STATISTICS, True),
    (BASIC, Capability.READ_ADVANCED_ANALYTICS, False),
    (PREMIUM, Capability.READ_RECENT_MATCHES, True),
    (PREMIUM, Capability.READ_MATCH, True),
    (PREMIUM, Capability.READ_PLAYER_STATISTICS, True),
    (PREMIUM, Capability.READ_ADVANCED_ANALYTICS, True),
])
def test_access_matrix(tier, capability, permitted):
    assert AccessGate().is_permitted(tier, capability) is permitted


def test_denied_capability_reports_tiers():
    with pytest.raises(CapabilityDeniedError) as exc_info:
        AccessGate().authorize(FREE, Capability.READ_ADVANCED_ANALYTICS)

    assert exc_info.value.to_dict() == {
        "error": "Forbidden",
        "message": "Advanced analytics are only available to Premium subscribers",
        "currentTier": "free",
        "requiredTier": "premium",
        "upgrade": "Upgrade to Premium to access this feature",
    }


def test_permitted_capability_does_not_raise():
    AccessGate().authorize(BASIC, Capability.READ_PLAYER_STATISTICS)


# ================================================================
# HTTP
# ================================================================

def test_free_key_cannot_read_player_statistics(client, issue_key):
    response = client.get("/api/proclubs/statistics/players", headers={"X-API-Key": issue_key(FREE)})

    assert response.status_code == 403
    assert response.json() == {
        "error": "Forbidden",
        "message": "Player statistics are only available to Basic and Premium subscribers",
        "currentTier": "free",
        "requiredTier": "basic",
        "upgrade": "Upgrade your plan to access this feature",
    }


def test_basic_key_reads_player_statistics(client, issue_key):
    response = client.get("/api/proclubs/statistics/players", headers={"X-API-Key": issue_key(BASIC)})

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["meta"] == {"total": 2, "tier": "basic"}
    assert data["data"][0]["playerName"] == "John Striker"


def test_basic_key_cannot_read_advanced_analytics(client, issue_key):
    response = client.get("/api/proclubs/analytics/advanced", headers={"X-API-Key": issue_key(BASIC)})

    assert response.status_code == 403
    assert response.json()["requiredTier"] == "premium"


def test_premium_key_reads_advanced_analytics(client, issue_key):
    response = client.get("/api/proclubs/analytics/advanced", headers={"X-API-Key": issue_key(PREMIUM)})

    assert response.status_code == 200
    data = response.json()
    assert data["meta"] == {"tier": "premium", "premiumFeature": True}
    assert data["data"]["topScorer"]["playerId"] == "player_001"


def test_denied_request_still_counts_against_quota(client, issue_key):
    headers = {"X-API-Key": issue_key(FREE)}

    assert client.get("/api/proclubs/statistics/players", headers=headers).status_code == 403
    response = client.get("/api/proclubs/matches", headers=headers)

    assert response.headers["X-RateLimit-Remaining"] == "1"


def test_quota_is_checked_before_capability(client, issue_key):
    headers = {"X-API-Key": issue_key(FREE)}
    for _ in range(3):
        client.get("/api/proclubs/matches", headers=headers)

    response = client.get("/api/proclubs/analytics/advanced", headers=headers)

    assert response.status_code == 429
