"""
Shared test fixtures and configuration.

Provides reusable fixtures for all test files including database instances,
sample tournament data and a FastAPI test client wired to an in-memory store.
"""

import pytest
import os
import shutil
import tempfile
from typing import Dict, Any, List
from unittest.mock import patch

from league.models import Match, Team
from league.storage import get_database, reset_database
from league.storage.memory_db import MemoryDatabase


# =============================================================================
# DATABASE FIXTURES
# =============================================================================

@pytest.fixture
def test_data_dir():
    """Provide a temporary directory for test data."""
    temp_dir = tempfile.mkdtemp(prefix="league_test_")
    yield temp_dir

    # Cleanup
    if os.path.exists(temp_dir):
        try:
            shutil.rmtree(temp_dir)
        except PermissionError:
            pass  # Windows file locking, ignore


@pytest.fixture
def sqlite_db(test_data_dir):
    """Provide a clean SQLite database instance."""
    with patch.dict(os.environ, {'DB_TYPE': 'sqlite', 'DATA_DIR': test_data_dir}, clear=False):
        reset_database()
        db = get_database()
        yield db
        reset_database()  # Close connection before cleanup


@pytest.fixture
def memory_db():
    """Provide an empty in-memory database."""
    db = MemoryDatabase()
    db.initialize()
    return db


@pytest.fixture(params=['memory', 'sqlite'])
def any_db(request, test_data_dir):
    """Run a test against every local backend."""
    if request.param == 'memory':
        yield MemoryDatabase()
        return

    with patch.dict(os.environ, {'DB_TYPE': 'sqlite', 'DATA_DIR': test_data_dir}, clear=False):
        reset_database()
        yield get_database()
        reset_database()


# =============================================================================
# SAMPLE DATA FIXTURES
# =============================================================================

@pytest.fixture
def sample_tournament() -> Dict[str, Any]:
    """Provide a tournament with two registered teams."""
    return {
        'id': 't1',
        'name': 'Summer Showdown',
        'teamIds': ['1', '2'],
        'standings': []
    }


@pytest.fixture
def sample_teams() -> List[Dict[str, Any]]:
    """Provide team A (two players) and team B (one player)."""
    return [
        {
            'id': '1',
            'name': 'A',
            'roster': [
                {'id': 'p1', 'name': 'Alice'},
                {'id': 'p2', 'name': 'Bob'}
            ]
        },
        {
            'id': '2',
            'name': 'B',
            'roster': [
                {'id': 'p3', 'name': 'Charlie'}
            ]
        }
    ]


@pytest.fixture
def sample_matches() -> List[Dict[str, Any]]:
    """Provide one final match A 5 - 3 B and one match still in progress."""
    return [
        {
            'id': 'm1',
            'tournamentId': 't1',
            'status': 'Final',
            'teamA': {'id': '1', 'name': 'A', 'score': 5},
            'teamB': {'id': '2', 'name': 'B', 'score': 3}
        },
        {
            'id': 'm2',
            'tournamentId': 't1',
            'status': 'In Progress',
            'teamA': {'id': '2', 'name': 'B', 'score': 10},
            'teamB': {'id': '1', 'name': 'A', 'score': 0}
        }
    ]


@pytest.fixture
def seeded_db(memory_db, sample_tournament, sample_teams, sample_matches):
    """Provide an in-memory database holding the sample data."""
    memory_db.save_tournament(sample_tournament)
    memory_db.save_teams(sample_teams)
    memory_db.save_matches(sample_matches)
    return memory_db


# =============================================================================
# MODEL HELPERS
# =============================================================================

def make_team(team_id: str, name: str = None, players: List[str] = None) -> Team:
    """Build a Team with an optional roster of player ids."""
    return Team(
        id=team_id,
        name=name or team_id.upper(),
        roster=[{'id': p, 'name': p} for p in (players or [])]
    )


def make_match(match_id: str, a: str, score_a: int, b: str, score_b: int, status: str = 'Final') -> Match:
    """Build a match between team ids ``a`` and ``b``."""
    return Match(
        id=match_id,
        tournament_id='t1',
        status=status,
        team_a={'id': a, 'name': a.upper(), 'score': score_a},
        team_b={'id': b, 'name': b.upper(), 'score': score_b}
    )


# =============================================================================
# FASTAPI TEST CLIENT FIXTURES
# =============================================================================

@pytest.fixture
def api_client(seeded_db):
    """Provide a TestClient using the seeded in-memory database."""
    from fastapi.testclient import TestClient
    from league import config
    from league.main import app, get_db

    app.dependency_overrides[get_db] = lambda: seeded_db
    with patch.object(config, 'STANDINGS_API_SECRET', 'test-secret'):
        yield TestClient(app)
    app.dependency_overrides.clear()
