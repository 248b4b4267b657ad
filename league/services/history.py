"""
Player history derivation and fan-out.

Every completed match yields two result events, one per side. Each event
is fanned out into one history entry per roster player of that side and
written as one all-or-nothing batch.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, List, Mapping, Optional

from league import config
from league.models import HistoryEntry, Match, MatchResult, MatchSide, Team, Tournament
from league.storage import DatabaseInterface, DatabaseError

logger = logging.getLogger(__name__)


@dataclass
class HistoryEvent:
    """One side's outcome of one match, with the players to credit."""

    match_id: str
    tournament_id: str
    tournament_name: str
    team_id: str
    team_name: str
    result: MatchResult
    record: str
    player_ids: List[str] = field(default_factory=list)

    def entries(self, date: datetime) -> List[HistoryEntry]:
        """Fan out into one entry per roster player."""
        return [
            HistoryEntry(
                tournament_name=self.tournament_name,
                tournament_id=self.tournament_id,
                match_id=self.match_id,
                team=self.team_name,
                result=self.result,
                record=self.record,
                date=date,
                user_id=player_id,
            )
            for player_id in self.player_ids
        ]


@dataclass
class SideWriteResult:
    """Outcome of writing one event's batch."""

    match_id: str
    team_id: str
    written: int = 0
    ok: bool = True
    error: Optional[str] = None


def _result_for(score_for: int, score_against: int) -> MatchResult:
    if score_for > score_against:
        return MatchResult.WIN
    if score_for < score_against:
        return MatchResult.LOSS
    return MatchResult.DRAW


def _side_event(
    match: Match,
    side: MatchSide,
    opponent: MatchSide,
    tournament: Tournament,
    teams_by_id: Mapping[str, Team],
) -> HistoryEvent:
    team = teams_by_id.get(side.id)
    return HistoryEvent(
        match_id=match.id,
        tournament_id=tournament.id,
        tournament_name=tournament.name,
        team_id=side.id,
        team_name=team.name if team else side.name,
        result=_result_for(side.score, opponent.score),
        record=f"{side.score}-{opponent.score}",
        player_ids=team.player_ids() if team else [],
    )


def derive_history_events(
    final_matches: Iterable[Match],
    teams_by_id: Mapping[str, Team],
    tournament: Tournament,
    final_status: Optional[str] = None,
) -> List[HistoryEvent]:
    """
    Derive the result events of completed matches.

    Teams missing from ``teams_by_id`` still get an event, with no players
    to credit. Matches that are not final or lack side data yield nothing.
    """
    final_status = final_status or config.FINAL_STATUS

    events = []
    for match in final_matches:
        if not match.is_final(final_status) or not match.is_scorable():
            continue
        events.append(_side_event(match, match.team_a, match.team_b, tournament, teams_by_id))
        events.append(_side_event(match, match.team_b, match.team_a, tournament, teams_by_id))
    return events


class HistoryWriter:
    """
    Writes history events to player namespaces.

    With ``deduplicate`` on, each entry is keyed by (match, player) so
    writing the same event twice replaces rather than duplicates.
    """

    def __init__(self, db: DatabaseInterface, deduplicate: Optional[bool] = None):
        self.db = db
        self.deduplicate = config.HISTORY_DEDUPLICATE if deduplicate is None else deduplicate

    def write_event(self, event: HistoryEvent, date: datetime) -> SideWriteResult:
        """Write one side's entries as a single batch."""
        result = SideWriteResult(match_id=event.match_id, team_id=event.team_id)

        documents = []
        for entry in event.entries(date):
            doc = entry.to_document()
            if self.deduplicate:
                doc['_id'] = entry.document_id
            documents.append(doc)

        if not documents:
            return result

        try:
            result.written = self.db.append_history_batch(documents)
        except DatabaseError as e:
            logger.error(
                f"History batch failed for match {event.match_id}, team {event.team_id}: {e}"
            )
            result.ok = False
            result.error = str(e)
        return result

    def write(self, events: Iterable[HistoryEvent], date: Optional[datetime] = None) -> List[SideWriteResult]:
        """
        Write every event. A failed batch does not stop the others.

        Args:
            events: Events from derive_history_events
            date: Date stamped on every entry, defaults to now (UTC)
        """
        date = date or datetime.now(timezone.utc)
        results = [self.write_event(event, date) for event in events]

        written = sum(r.written for r in results)
        failed = sum(1 for r in results if not r.ok)
        logger.info(f"History written: {written} entries, {failed} failed batches")
        return results
