"""
Pro Clubs match and player data.

Serves static sample data; a real deployment would back this with the
EA FC stats feed.
"""
import datetime
from typing import List, Optional

from ..schemas.proclubs import (
    AdvancedAnalytics,
    MatchPrediction,
    PlayerStatistics,
    ProclubsMatch,
)


SAMPLE_MATCHES: List[ProclubsMatch] = [
    ProclubsMatch(
        match_id="match_001",
        club_name="FC Champions",
        opponent_name="United FC",
        result="W",
        goals_for=3,
        goals_against=1,
        date=datetime.date(2024, 1, 15),
        competition="Division 1",
    ),
    ProclubsMatch(
        match_id="match_002",
        club_name="FC Champions",
        opponent_name="City Rovers",
        result="D",
        goals_for=2,
        goals_against=2,
        date=datetime.date(2024, 1, 18),
        competition="Division 1",
    ),
    ProclubsMatch(
        match_id="match_003",
        club_name="FC Champions",
        opponent_name="Athletic Club",
        result="L",
        goals_for=1,
        goals_against=2,
        date=datetime.date(2024, 1, 20),
        competition="Division 1",
    ),
]

SAMPLE_PLAYER_STATS: List[PlayerStatistics] = [
    PlayerStatistics(
        player_id="player_001",
        player_name="John Striker",
        position="ST",
        matches=25,
        goals=18,
        assists=7,
        clean_sheets=0,
        rating=8.5,
    ),
    PlayerStatistics(
        player_id="player_002",
        player_name="Mike Midfielder",
        position="CM",
        matches=25,
        goals=5,
        assists=12,
        clean_sheets=0,
        rating=7.8,
    ),
]


class MatchService:
    """Read-only lookups over match and player data."""

    DEFAULT_LIMIT = 10

    def __init__(
        self,
        matches: Optional[List[ProclubsMatch]] = None,
        players: Optional[List[PlayerStatistics]] = None,
    ):
        self.matches = list(matches if matches is not None else SAMPLE_MATCHES)
        self.players = list(players if players is not None else SAMPLE_PLAYER_STATS)

    def recent_matches(self, limit: Optional[int] = None) -> List[ProclubsMatch]:
        """Most recent matches, at most ``limit`` (default 10)."""
        if not limit or limit < 1:
            limit = self.DEFAULT_LIMIT
        return self.matches[:limit]

    def get_match(self, match_id: str) -> Optional[ProclubsMatch]:
        for match in self.matches:
            if match.match_id == match_id:
                return match
        return None

    def player_statistics(self) -> List[PlayerStatistics]:
        return list(self.players)

    def advanced_analytics(self) -> AdvancedAnalytics:
        """Club analytics; the prediction is a fixed sample."""
        return AdvancedAnalytics(
            win_rate=0.68,
            avg_goals_for=2.3,
            avg_goals_against=1.2,
            form=["W", "W", "L", "W", "D"],
            top_scorer=max(self.players, key=lambda player: player.goals),
            prediction_next_match=MatchPrediction(confidence=0.72, predicted_result="W"),
        )
