"""Tests for the standings pipeline."""

from datetime import datetime, timezone
from unittest.mock import patch

import pytest

from league.exceptions import BackendUnavailableError, InvalidInputError, TournamentNotFoundError
from league.services.pipeline import PipelineState, StandingsPipeline, summarize
from league.services.standings import PointsRule
from league.storage import DocumentNotFoundError, QueryError


DATE = datetime(2024, 7, 20, tzinfo=timezone.utc)


class TestPipelineRun:
    """End-to-end runs against the in-memory store."""

    def test_run_writes_standings(self, seeded_db):
        result = StandingsPipeline(seeded_db, points=PointsRule()).run('t1', date=DATE)

        assert result.state == PipelineState.DONE
        assert [(r.team, r.points, r.rank) for r in result.standings] == [('A', 3, 1), ('B', 0, 2)]

        stored = seeded_db.get_tournament('t1')['standings']
        assert stored == [r.to_document() for r in result.standings]

    def test_run_writes_history(self, seeded_db):
        result = StandingsPipeline(seeded_db).run('t1', date=DATE)

        assert result.history_written == 3
        assert result.history_failures == []
        assert [h['record'] for h in seeded_db.get_history('p1')] == ['5-3']
        assert [h['result'] for h in seeded_db.get_history('p2')] == ['Win']
        assert [h['result'] for h in seeded_db.get_history('p3')] == ['Loss']

    def test_in_progress_matches_not_counted(self, seeded_db):
        result = StandingsPipeline(seeded_db).run('t1', date=DATE)

        assert sum(r.wins for r in result.standings) == 1

    def test_rerun_is_idempotent(self, seeded_db):
        pipeline = StandingsPipeline(seeded_db)

        first = pipeline.run('t1', date=DATE)
        stored_first = seeded_db.get_tournament('t1')['standings']
        second = pipeline.run('t1', date=DATE)
        stored_second = seeded_db.get_tournament('t1')['standings']

        assert stored_first == stored_second
        assert [r.to_document() for r in first.standings] == [r.to_document() for r in second.standings]
        assert len(seeded_db.get_history('p1')) == 1

    def test_standings_fully_overwritten(self, seeded_db):
        """Rows from teams no longer registered do not linger."""
        seeded_db.overwrite_standings('t1', [
            {'rank': 1, 'team': 'Old', 'teamId': 'old', 'wins': 9, 'losses': 0, 'draws': 0, 'points': 27}
        ])

        StandingsPipeline(seeded_db).run('t1', date=DATE)

        assert {row['teamId'] for row in seeded_db.get_tournament('t1')['standings']} == {'1', '2'}

    def test_malformed_match_skipped(self, seeded_db):
        seeded_db.save_matches([{
            'id': 'bad',
            'tournamentId': 't1',
            'status': 'Final',
            'teamA': {'id': '1', 'score': 'lots'},
            'teamB': {'id': '2', 'score': 1}
        }])

        result = StandingsPipeline(seeded_db).run('t1', date=DATE)

        assert result.skipped_match_ids == ['bad']
        assert result.standings[0].points == 3

    def test_unregistered_opponent_writes_no_history(self, seeded_db):
        """A match the table skips does not reach anyone's history either."""
        seeded_db.save_matches([{
            'id': 'm3',
            'tournamentId': 't1',
            'status': 'Final',
            'teamA': {'id': '1', 'name': 'A', 'score': 9},
            'teamB': {'id': 'ghost', 'name': 'Ghost', 'score': 0}
        }])

        result = StandingsPipeline(seeded_db).run('t1', date=DATE)

        assert result.skipped_match_ids == ['m3']
        assert result.history_written == 3
        assert [h['matchId'] for h in seeded_db.get_history('p1')] == ['m1']

    def test_summarize(self, seeded_db):
        body = summarize(StandingsPipeline(seeded_db).run('t1', date=DATE))

        assert body['success'] is True
        assert body['newStandings'][0]['team'] == 'A'
        assert body['historyWritten'] == 3
        assert body['historyFailures'] == []


class TestPipelineFailures:
    """Failure paths and their side effects."""

    def test_blank_tournament_id(self, seeded_db):
        with pytest.raises(InvalidInputError):
            StandingsPipeline(seeded_db).run('  ')

    def test_tournament_not_found_writes_nothing(self, seeded_db):
        with patch.object(seeded_db, 'overwrite_standings') as overwrite, \
                patch.object(seeded_db, 'append_history_batch') as append:
            with pytest.raises(TournamentNotFoundError) as exc_info:
                StandingsPipeline(seeded_db).run('missing')

        assert exc_info.value.failed_at == PipelineState.RESOLVING_TOURNAMENT
        overwrite.assert_not_called()
        append.assert_not_called()

    def test_no_registered_teams_is_not_found(self, seeded_db):
        seeded_db.save_tournament({'id': 't2', 'name': 'Empty', 'teamIds': []})

        with pytest.raises(TournamentNotFoundError) as exc_info:
            StandingsPipeline(seeded_db).run('t2')

        assert exc_info.value.failed_at == PipelineState.AGGREGATING

    def test_match_load_failure(self, seeded_db):
        with patch.object(seeded_db, 'list_final_matches', side_effect=QueryError("down")), \
                patch.object(seeded_db, 'overwrite_standings') as overwrite:
            with pytest.raises(BackendUnavailableError) as exc_info:
                StandingsPipeline(seeded_db).run('t1')

        assert exc_info.value.failed_at == PipelineState.LOADING_MATCHES
        assert exc_info.value.partially_applied is False
        overwrite.assert_not_called()

    def test_team_load_failure(self, seeded_db):
        with patch.object(seeded_db, 'get_teams', side_effect=QueryError("down")):
            with pytest.raises(BackendUnavailableError) as exc_info:
                StandingsPipeline(seeded_db).run('t1')

        assert exc_info.value.failed_at == PipelineState.LOADING_TEAMS

    def test_standings_write_failure_keeps_history(self, seeded_db):
        with patch.object(seeded_db, 'overwrite_standings', side_effect=QueryError("down")):
            with pytest.raises(BackendUnavailableError) as exc_info:
                StandingsPipeline(seeded_db).run('t1', date=DATE)

        assert exc_info.value.failed_at == PipelineState.WRITING_STANDINGS
        assert exc_info.value.partially_applied is True
        assert len(seeded_db.get_history('p1')) == 1

    def test_tournament_deleted_before_standings_write(self, seeded_db):
        with patch.object(
            seeded_db, 'overwrite_standings', side_effect=DocumentNotFoundError('Tournament', 't1')
        ):
            with pytest.raises(TournamentNotFoundError) as exc_info:
                StandingsPipeline(seeded_db).run('t1', date=DATE)

        assert exc_info.value.failed_at == PipelineState.WRITING_STANDINGS
        assert exc_info.value.code == 'NotFound'

    def test_history_failure_does_not_block_standings(self, seeded_db):
        original = seeded_db.append_history_batch

        def flaky(entries):
            if entries[0]['userId'] == 'p1':
                raise QueryError("refused")
            return original(entries)

        with patch.object(seeded_db, 'append_history_batch', side_effect=flaky):
            result = StandingsPipeline(seeded_db).run('t1', date=DATE)

        assert result.state == PipelineState.DONE
        assert [(f.team_id, f.error) for f in result.history_failures] == [('1', 'refused')]
        assert seeded_db.get_history('p1') == []
        assert len(seeded_db.get_history('p3')) == 1
        assert seeded_db.get_tournament('t1')['standings'][0]['team'] == 'A'


class TestPipelineSQLite:
    """The same run against the SQLite backend."""

    def test_run_and_rerun(self, sqlite_db, sample_tournament, sample_teams, sample_matches):
        sqlite_db.save_tournament(sample_tournament)
        sqlite_db.save_teams(sample_teams)
        sqlite_db.save_matches(sample_matches)
        pipeline = StandingsPipeline(sqlite_db)

        pipeline.run('t1', date=DATE)
        pipeline.run('t1', date=DATE)

        standings = sqlite_db.get_tournament('t1')['standings']
        assert [(row['team'], row['rank']) for row in standings] == [('A', 1), ('B', 2)]
        assert [h['record'] for h in sqlite_db.get_history('p2')] == ['5-3']
