"""Team and roster data models."""

from pydantic import Field

from league.models.base import Document


class Player(Document):
    """A roster member."""

    id: str
    name: str = ""


class Team(Document):
    """A team with an ordered roster."""

    id: str
    name: str
    roster: list[Player] = Field(default_factory=list)

    def player_ids(self) -> list[str]:
        """Roster player ids in roster order."""
        return [p.id for p in self.roster]
