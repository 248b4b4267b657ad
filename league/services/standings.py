"""
Standings aggregation.

Turns the completed matches of a tournament into a ranked table. The
computation is pure: it reads nothing from storage and writes nothing.

Ranking order:
1) Points (desc)
2) Wins (desc)
3) Losses (asc)
4) Team id (asc), so equal records still rank the same way every run
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from league import config
from league.exceptions import TournamentNotFoundError
from league.models import Match, StandingRow, Team

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PointsRule:
    """Points awarded per match outcome."""

    win: int = 3
    draw: int = 1
    loss: int = 0

    @classmethod
    def from_config(cls) -> "PointsRule":
        return cls(
            win=config.POINTS_FOR_WIN,
            draw=config.POINTS_FOR_DRAW,
            loss=config.POINTS_FOR_LOSS,
        )


@dataclass
class TeamRecord:
    """Running tally for one team, keyed by team id."""

    team_id: str
    name: str
    wins: int = 0
    losses: int = 0
    draws: int = 0
    points: int = 0

    def sort_key(self):
        return (-self.points, -self.wins, self.losses, self.team_id)


@dataclass
class StandingsTable:
    """Result of one aggregation run."""

    rows: List[StandingRow] = field(default_factory=list)
    skipped_match_ids: List[str] = field(default_factory=list)


def apply_result(record_a: TeamRecord, record_b: TeamRecord, score_a: int, score_b: int, points: PointsRule) -> None:
    """
    Update both records with one match outcome.

    Rules:
    - Higher score: winner +1 win, loser +1 loss
    - Equal scores: both +1 draw
    """
    if score_a > score_b:
        winner, loser = record_a, record_b
    elif score_b > score_a:
        winner, loser = record_b, record_a
    else:
        record_a.draws += 1
        record_b.draws += 1
        record_a.points += points.draw
        record_b.points += points.draw
        return

    winner.wins += 1
    winner.points += points.win
    loser.losses += 1
    loser.points += points.loss


def compute_standings(
    registered_teams: Iterable[Team],
    final_matches: Iterable[Match],
    points: Optional[PointsRule] = None,
    final_status: Optional[str] = None,
) -> StandingsTable:
    """
    Compute the ranked standings of a tournament.

    Args:
        registered_teams: Teams registered to the tournament. Every one of
                          them appears in the output, 0-0-0 teams included.
        final_matches: Completed matches. Anything not in final status is
                       ignored here as well.
        points: Points rule, defaults to the configured values
        final_status: Status value marking a completed match

    Returns:
        StandingsTable with rows ranked 1..N and the ids of matches that
        were left out

    Raises:
        TournamentNotFoundError: If no registered team is given
    """
    points = points or PointsRule.from_config()
    final_status = final_status or config.FINAL_STATUS

    records = {}
    for team in registered_teams:
        if team.id not in records:
            records[team.id] = TeamRecord(team_id=team.id, name=team.name)

    if not records:
        raise TournamentNotFoundError()

    skipped = []
    for match in final_matches:
        if not match.is_final(final_status):
            logger.debug(f"Ignoring match {match.id} with status {match.status!r}")
            skipped.append(match.id)
            continue

        if not match.is_scorable():
            logger.warning(f"Skipping match {match.id}: missing side data")
            skipped.append(match.id)
            continue

        record_a = records.get(match.team_a.id)
        record_b = records.get(match.team_b.id)

        # Scoring only one side would break win/loss symmetry
        if record_a is None or record_b is None or record_a is record_b:
            logger.warning(
                f"Skipping match {match.id}: "
                f"{match.team_a.id} vs {match.team_b.id} is not between two registered teams"
            )
            skipped.append(match.id)
            continue

        apply_result(record_a, record_b, match.team_a.score, match.team_b.score, points)

    ordered = sorted(records.values(), key=TeamRecord.sort_key)

    rows = [
        StandingRow(
            rank=idx,
            team=r.name,
            team_id=r.team_id,
            wins=r.wins,
            losses=r.losses,
            draws=r.draws,
            points=r.points,
        )
        for idx, r in enumerate(ordered, start=1)
    ]
    return StandingsTable(rows=rows, skipped_match_ids=skipped)
