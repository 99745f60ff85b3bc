"""
Pydantic schemas for Pro Clubs data endpoints.
"""

from typing import List, Optional
import datetime
from pydantic import BaseModel, ConfigDict, Field

from ..core.tier_limits import SubscriptionTier


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ProclubsMatch(CamelModel):
    """A played club match."""
    match_id: str = Field(..., alias="matchId")
    club_name: str = Field(..., alias="clubName")
    opponent_name: str = Field(..., alias="opponentName")
    result: str = Field(..., description="W, D or L")
    goals_for: int = Field(..., alias="goalsFor")
    goals_against: int = Field(..., alias="goalsAgainst")
    date: datetime.date
    competition: str


class PlayerStatistics(CamelModel):
    """Season statistics for one player."""
    player_id: str = Field(..., alias="playerId")
    player_name: str = Field(..., alias="playerName")
    position: str
    matches: int
    goals: int
    assists: int
    clean_sheets: int = Field(..., alias="cleanSheets")
    rating: float


class MatchPrediction(CamelModel):
    confidence: float
    predicted_result: str = Field(..., alias="predictedResult")


class AdvancedAnalytics(CamelModel):
    """Club-level analytics (premium)."""
    win_rate: float = Field(..., alias="winRate")
    avg_goals_for: float = Field(..., alias="avgGoalsFor")
    avg_goals_against: float = Field(..., alias="avgGoalsAgainst")
    form: List[str]
    top_scorer: PlayerStatistics = Field(..., alias="topScorer")
    prediction_next_match: MatchPrediction = Field(..., alias="predictionNextMatch")


class ResponseMeta(CamelModel):
    total: Optional[int] = None
    tier: SubscriptionTier
    request_count: Optional[int] = Field(None, alias="requestCount")
    premium_feature: Optional[bool] = Field(None, alias="premiumFeature")


class MatchListResponse(BaseModel):
    success: bool = True
    data: List[ProclubsMatch]
    meta: ResponseMeta


class MatchResponse(BaseModel):
    success: bool = True
    data: ProclubsMatch


class PlayerStatisticsResponse(BaseModel):
    success: bool = True
    data: List[PlayerStatistics]
    meta: ResponseMeta


class AdvancedAnalyticsResponse(BaseModel):
    success: bool = True
    data: AdvancedAnalytics
    meta: ResponseMeta
