"""Tournament data model."""

from typing import Any, Dict

from pydantic import Field

from league.models.base import Document


class Tournament(Document):
    """A named competition with registered teams and a derived standings table."""

    id: str
    name: str = ""
    team_ids: list[str] = Field(default_factory=list, alias="teamIds")
    # Rows written by older clients may lack teamId/draws, so stay loose here
    standings: list[Dict[str, Any]] = Field(default_factory=list)
