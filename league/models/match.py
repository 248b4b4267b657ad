"""Match data model."""

from datetime import datetime
from typing import Optional

from pydantic import Field

from league.models.base import Document


class MatchSide(Document):
    """One team's side of a match."""

    id: Optional[str] = None
    name: str = ""
    score: Optional[int] = None

    def is_complete(self) -> bool:
        """Side has both a team id and a score."""
        return bool(self.id) and self.score is not None


class Match(Document):
    """A single contest between two teams within a tournament."""

    id: str
    tournament_id: str = Field("", alias="tournamentId")
    team_a: Optional[MatchSide] = Field(None, alias="teamA")
    team_b: Optional[MatchSide] = Field(None, alias="teamB")
    status: str = "Not Started"  # Not Started, In Progress, Final
    date: Optional[datetime] = None

    def is_final(self, final_status: str = "Final") -> bool:
        """Check whether scores are final."""
        return self.status == final_status

    def is_scorable(self) -> bool:
        """Both sides carry a team id and an integer score."""
        return (
            self.team_a is not None and self.team_a.is_complete() and
            self.team_b is not None and self.team_b.is_complete()
        )

    def get_title(self) -> str:
        """Get a display title such as ``A 15 - 10 B``."""
        if not self.team_a or not self.team_b:
            return self.id
        if self.is_scorable():
            return (
                f"{self.team_a.name} {self.team_a.score} - "
                f"{self.team_b.score} {self.team_b.name}"
            )
        return f"{self.team_a.name} vs {self.team_b.name}"
