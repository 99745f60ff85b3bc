"""
Tests for the Pro Clubs data endpoints and the application shell.
"""
from proclubs_api.core.tier_limits import SubscriptionTier


def test_root_endpoint(client):
    """Test the root endpoint."""
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "running"
    assert data["documentation"] == "/api/docs"
    assert data["subscription"] == "/api/subscription/plans"


def test_health_check(client):
    """Test the health check endpoint."""
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["service"] == "proclubs-api"


def test_api_docs_lists_rate_limits(client):
    response = client.get("/api/docs")

    assert response.status_code == 200
    data = response.json()
    assert data["authentication"]["header"] == "X-API-Key"
    assert data["rateLimit"] == {
        "free": "3 requests per minute",
        "basic": "5 requests per minute",
        "premium": "100 requests per minute",
    }


def test_unknown_route_returns_404_with_docs_link(client):
    response = client.get("/api/nothing-here")

    assert response.status_code == 404
    assert response.json() == {
        "error": "Not Found",
        "message": "The requested endpoint does not exist",
        "documentation": "/api/docs",
    }


# ================================================================
# Matches
# ================================================================

def test_recent_matches(client, issue_key):
    response = client.get("/api/proclubs/matches", headers={"X-API-Key": issue_key()})

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert [match["matchId"] for match in data["data"]] == ["match_001", "match_002", "match_003"]
    assert data["data"][0]["goalsFor"] == 3
    assert data["data"][0]["date"] == "2024-01-15"
    assert data["meta"] == {"total": 3, "tier": "free", "requestCount": 1}


def test_recent_matches_limit(client, issue_key):
    headers = {"X-API-Key": issue_key()}

    response = client.get("/api/proclubs/matches", params={"limit": 2}, headers=headers)

    assert response.status_code == 200
    assert len(response.json()["data"]) == 2
    assert response.json()["meta"]["total"] == 2


def test_recent_matches_out_of_range_limit_falls_back(client, issue_key):
    headers = {"X-API-Key": issue_key(SubscriptionTier.PREMIUM)}

    zero = client.get("/api/proclubs/matches", params={"limit": 0}, headers=headers)
    large = client.get("/api/proclubs/matches", params={"limit": 500}, headers=headers)

    assert zero.status_code == 200
    assert len(zero.json()["data"]) == 3
    assert large.status_code == 200
    assert len(large.json()["data"]) == 3


def test_request_count_grows_per_call(client, issue_key):
    headers = {"X-API-Key": issue_key(SubscriptionTier.PREMIUM)}

    for expected in range(1, 4):
        meta = client.get("/api/proclubs/matches", headers=headers).json()["meta"]
        assert meta["requestCount"] == expected


def test_match_by_id(client, issue_key):
    response = client.get("/api/proclubs/matches/match_002", headers={"X-API-Key": issue_key()})

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["opponentName"] == "City Rovers"
    assert data["result"] == "D"


def test_match_not_found(client, issue_key):
    response = client.get("/api/proclubs/matches/match_999", headers={"X-API-Key": issue_key()})

    assert response.status_code == 404
    assert response.json() == {"error": "Not Found", "message": "Match not found"}
