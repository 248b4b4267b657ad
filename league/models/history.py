"""Per-player history entry model."""

from datetime import datetime
from enum import Enum

from pydantic import Field

from league.models.base import Document


class MatchResult(str, Enum):
    """Outcome of a match from one side's perspective."""

    WIN = "Win"
    LOSS = "Loss"
    DRAW = "Draw"


class HistoryEntry(Document):
    """One match outcome recorded under a player's namespace."""

    tournament_name: str = Field(..., alias="tournamentName")
    tournament_id: str = Field("", alias="tournamentId")
    match_id: str = Field("", alias="matchId")
    team: str
    result: MatchResult
    record: str
    date: datetime
    user_id: str = Field(..., alias="userId")

    @property
    def document_id(self) -> str:
        """Deterministic key, one per (match, player) pair."""
        return f"{self.match_id}_{self.user_id}"
