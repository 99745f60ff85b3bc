"""
Pro Clubs data API routes.

Every route requires an API key and counts against the caller's tier quota.
Player statistics need Basic or above; advanced analytics need Premium.
"""
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from ...dependencies.tier_check import Capability, require_capability
from ...schemas.proclubs import (
    AdvancedAnalyticsResponse,
    MatchListResponse,
    MatchResponse,
    PlayerStatisticsResponse,
    ResponseMeta,
)
from ...services.api_key_service import APIKeyRecord
from ...services.match_service import MatchService


router = APIRouter(prefix="/proclubs", tags=["Pro Clubs"])


def get_match_service(request: Request) -> MatchService:
    """The application's match data service."""
    return request.app.state.match_service


@router.get("/matches", response_model=MatchListResponse, response_model_exclude_none=True)
def get_recent_matches(
    request: Request,
    limit: Optional[int] = Query(None, description="Maximum matches to return; 10 when missing or below 1"),
    api_key: APIKeyRecord = Depends(require_capability(Capability.READ_RECENT_MATCHES)),
):
    """
    Get recent matches (available to all tiers).
    """
    matches = get_match_service(request).recent_matches(limit)

    return MatchListResponse(
        data=matches,
        meta=ResponseMeta(
            total=len(matches),
            tier=api_key.tier,
            request_count=api_key.request_count,
        ),
    )


@router.get("/matches/{match_id}", response_model=MatchResponse)
def get_match(
    match_id: str,
    request: Request,
    api_key: APIKeyRecord = Depends(require_capability(Capability.READ_MATCH)),
):
    """
    Get match by ID (available to all tiers).

    Raises:
        404: If no match has this ID
    """
    match = get_match_service(request).get_match(match_id)

    if match is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Match not found",
        )

    return MatchResponse(data=match)


@router.get(
    "/statistics/players",
    response_model=PlayerStatisticsResponse,
    response_model_exclude_none=True,
)
def get_player_statistics(
    request: Request,
    api_key: APIKeyRecord = Depends(require_capability(Capability.READ_PLAYER_STATISTICS)),
):
    """
    Get player statistics (requires Basic or Premium tier).
    """
    players = get_match_service(request).player_statistics()

    return PlayerStatisticsResponse(
        data=players,
        meta=ResponseMeta(total=len(players), tier=api_key.tier),
    )


@router.get(
    "/analytics/advanced",
    response_model=AdvancedAnalyticsResponse,
    response_model_exclude_none=True,
)
def get_advanced_analytics(
    request: Request,
    api_key: APIKeyRecord = Depends(require_capability(Capability.READ_ADVANCED_ANALYTICS)),
):
    """
    Get advanced analytics (requires Premium tier).
    """
    return AdvancedAnalyticsResponse(
        data=get_match_service(request).advanced_analytics(),
        meta=ResponseMeta(tier=api_key.tier, premium_feature=True),
    )
