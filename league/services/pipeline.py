"""
Standings pipeline - recomputes a tournament's standings from scratch.

One run walks these states:

    RESOLVING_TOURNAMENT -> LOADING_MATCHES -> LOADING_TEAMS -> AGGREGATING
        -> WRITING_HISTORY -> WRITING_STANDINGS -> DONE

and ends in FAILED from any step that raises. History and standings are
written independently: neither write is rolled back when the other fails.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError

from league import config
from league.exceptions import (
    BackendUnavailableError,
    InvalidInputError,
    LeagueError,
    TournamentNotFoundError,
)
from league.models import Match, StandingRow, Team, Tournament
from league.services.history import HistoryWriter, SideWriteResult, derive_history_events
from league.services.standings import PointsRule, compute_standings
from league.storage import DatabaseInterface, DatabaseError, DocumentNotFoundError

logger = logging.getLogger(__name__)


class PipelineState(str, Enum):
    """Steps of one pipeline run."""

    RESOLVING_TOURNAMENT = "RESOLVING_TOURNAMENT"
    LOADING_MATCHES = "LOADING_MATCHES"
    LOADING_TEAMS = "LOADING_TEAMS"
    AGGREGATING = "AGGREGATING"
    WRITING_HISTORY = "WRITING_HISTORY"
    WRITING_STANDINGS = "WRITING_STANDINGS"
    DONE = "DONE"
    FAILED = "FAILED"


@dataclass
class PipelineResult:
    """Outcome of a completed run."""

    tournament_id: str
    state: PipelineState = PipelineState.DONE
    standings: List[StandingRow] = field(default_factory=list)
    skipped_match_ids: List[str] = field(default_factory=list)
    history: List[SideWriteResult] = field(default_factory=list)

    @property
    def history_failures(self) -> List[SideWriteResult]:
        return [r for r in self.history if not r.ok]

    @property
    def history_written(self) -> int:
        return sum(r.written for r in self.history)


class StandingsPipeline:
    """
    Runs the full recompute for one tournament at a time.

    Holds no state between runs; everything is read from the injected
    database on every call.
    """

    def __init__(
        self,
        db: DatabaseInterface,
        history_writer: Optional[HistoryWriter] = None,
        points: Optional[PointsRule] = None,
        final_status: Optional[str] = None,
    ):
        self.db = db
        self.history_writer = history_writer or HistoryWriter(db)
        self.points = points
        self.final_status = final_status or config.FINAL_STATUS

    def run(self, tournament_id: str, date: Optional[datetime] = None) -> PipelineResult:
        """
        Recompute and persist standings for a tournament.

        Args:
            tournament_id: Tournament to recompute
            date: Date stamped on history entries, defaults to now

        Returns:
            PipelineResult in state DONE

        Raises:
            InvalidInputError: If tournament_id is blank
            TournamentNotFoundError: If the tournament or its teams cannot be resolved
            BackendUnavailableError: If a storage call fails
        """
        if not tournament_id or not str(tournament_id).strip():
            raise InvalidInputError("Missing tournamentId")

        state = PipelineState.RESOLVING_TOURNAMENT
        history: List[SideWriteResult] = []
        try:
            self._enter(tournament_id, state)
            tournament = self._resolve_tournament(tournament_id)

            state = PipelineState.LOADING_MATCHES
            self._enter(tournament_id, state)
            matches, malformed = self._load_matches(tournament_id)

            state = PipelineState.LOADING_TEAMS
            self._enter(tournament_id, state)
            teams = self._load_teams(tournament.team_ids)

            state = PipelineState.AGGREGATING
            self._enter(tournament_id, state)
            table = compute_standings(
                teams, matches, points=self.points, final_status=self.final_status
            )
            # History only credits results the table counted
            skipped = set(table.skipped_match_ids)
            events = derive_history_events(
                [m for m in matches if m.id not in skipped],
                {team.id: team for team in teams},
                tournament,
                final_status=self.final_status,
            )

            state = PipelineState.WRITING_HISTORY
            self._enter(tournament_id, state)
            history = self.history_writer.write(events, date=date)

            state = PipelineState.WRITING_STANDINGS
            self._enter(tournament_id, state)
            rows = [row.to_document() for row in table.rows]
            try:
                self.db.overwrite_standings(tournament_id, rows)
            except DocumentNotFoundError as e:
                logger.warning(f"Tournament {tournament_id} was deleted during the run")
                raise TournamentNotFoundError(tournament_id) from e
            except DatabaseError as e:
                raise BackendUnavailableError(
                    f"Failed to write standings: {e}",
                    partially_applied=any(r.written for r in history),
                ) from e

        except LeagueError as e:
            e.failed_at = state
            logger.error(f"[{tournament_id}] {PipelineState.FAILED.value} at {state.value}: {e}")
            raise

        self._enter(tournament_id, PipelineState.DONE)
        return PipelineResult(
            tournament_id=tournament_id,
            state=PipelineState.DONE,
            standings=table.rows,
            skipped_match_ids=malformed + table.skipped_match_ids,
            history=history,
        )

    def _enter(self, tournament_id: str, state: PipelineState) -> None:
        logger.debug(f"[{tournament_id}] -> {state.value}")

    def _resolve_tournament(self, tournament_id: str) -> Tournament:
        try:
            doc = self.db.get_tournament(tournament_id)
        except DatabaseError as e:
            raise BackendUnavailableError(f"Failed to load tournament: {e}") from e

        if doc is None:
            raise TournamentNotFoundError(tournament_id)

        try:
            return Tournament.model_validate(doc)
        except ValidationError as e:
            logger.error(f"Tournament {tournament_id} document is malformed: {e}")
            raise TournamentNotFoundError(tournament_id) from e

    def _load_matches(self, tournament_id: str) -> Tuple[List[Match], List[str]]:
        """Load final matches. Documents that fail validation are returned as skipped ids."""
        try:
            docs = self.db.list_final_matches(tournament_id, self.final_status)
        except DatabaseError as e:
            raise BackendUnavailableError(f"Failed to load matches: {e}") from e

        matches, malformed = [], []
        for doc in docs:
            try:
                matches.append(Match.model_validate(doc))
            except ValidationError as e:
                match_id = str(doc.get('id', '?'))
                logger.warning(f"Skipping malformed match {match_id}: {e}")
                malformed.append(match_id)
        return matches, malformed

    def _load_teams(self, team_ids: List[str]) -> List[Team]:
        try:
            docs = self.db.get_teams(team_ids)
        except DatabaseError as e:
            raise BackendUnavailableError(f"Failed to load teams: {e}") from e

        teams = []
        for doc in docs:
            try:
                teams.append(Team.model_validate(doc))
            except ValidationError as e:
                logger.warning(f"Ignoring malformed team {doc.get('id', '?')}: {e}")

        missing = set(team_ids) - {t.id for t in teams}
        if missing:
            logger.warning(f"Registered teams not found: {sorted(missing)}")
        return teams


def summarize(result: PipelineResult) -> Dict[str, Any]:
    """Build the JSON body returned to the trigger caller."""
    return {
        'success': True,
        'newStandings': [row.to_document() for row in result.standings],
        'skippedMatches': result.skipped_match_ids,
        'historyWritten': result.history_written,
        'historyFailures': [
            {'matchId': r.match_id, 'teamId': r.team_id, 'error': r.error}
            for r in result.history_failures
        ],
    }
