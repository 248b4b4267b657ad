"""Data models for the league standings service."""

from league.models.history import HistoryEntry, MatchResult
from league.models.match import Match, MatchSide
from league.models.standing import StandingRow
from league.models.team import Player, Team
from league.models.tournament import Tournament

__all__ = [
    "HistoryEntry",
    "MatchResult",
    "Match",
    "MatchSide",
    "StandingRow",
    "Player",
    "Team",
    "Tournament",
]
