"""Standings table row."""

from pydantic import Field

from league.models.base import Document


class StandingRow(Document):
    """A team's aggregated record and rank within a tournament."""

    rank: int
    team: str
    team_id: str = Field(..., alias="teamId")
    wins: int = 0
    losses: int = 0
    draws: int = 0
    points: int = 0
