"""
Supabase Database Storage for league documents.

Provides PostgreSQL-based cloud storage using Supabase's REST API.
Key differences from SQLite:
- Uses supabase-py client library (REST API)
- upsert() instead of INSERT OR REPLACE
- A batch upsert is a single statement, so it is all-or-nothing
- initialize() verifies tables exist (doesn't create them)

Requires: pip install supabase
Schema must be created first via scripts/supabase_schema.sql
"""

import os
import json
import uuid
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any

from .base import DatabaseInterface
from .exceptions import ConfigurationError, ConnectionError, DocumentNotFoundError, QueryError


# Batch size for upsert operations
BATCH_SIZE = 500


class SupabaseDatabase(DatabaseInterface):
    """
    Supabase cloud database implementation.

    Uses PostgreSQL via Supabase's REST API.
    Implements the DatabaseInterface abstract base class.
    """

    def __init__(self):
        """
        Create Supabase database instance.

        Reads configuration from environment variables:
        - SUPABASE_URL: Project URL (e.g., https://your-project.supabase.co)
        - SUPABASE_KEY: Service key (history and standings writes need it)
        """
        self._url = os.environ.get('SUPABASE_URL')
        self._key = os.environ.get('SUPABASE_KEY')
        self._client = None
        self._initialized = False

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def initialize(self) -> None:
        """Initialize the database connection and verify schema."""
        if self._initialized:
            return

        if not self._url:
            raise ConfigurationError(
                "SUPABASE_URL environment variable is required for Supabase backend"
            )
        if not self._key:
            raise ConfigurationError(
                "SUPABASE_KEY environment variable is required for Supabase backend"
            )

        client = self._get_client()
        try:
            client.table('tournaments').select('id').limit(1).execute()
        except Exception as e:
            raise ConnectionError(
                f"Failed to connect to Supabase or schema not initialized. "
                f"Run scripts/supabase_schema.sql in Supabase SQL Editor first. "
                f"Error: {e}"
            )

        self._initialized = True

    def _get_client(self):
        """Get or create Supabase client."""
        if self._client is None:
            try:
                from supabase import create_client
            except ImportError:
                raise ConfigurationError(
                    "supabase package not installed. "
                    "Install with: pip install supabase"
                )

            try:
                self._client = create_client(self._url, self._key)
            except Exception as e:
                raise ConnectionError(f"Failed to create Supabase client: {e}")

        return self._client

    def _execute(self, query):
        """Execute a query builder, wrapping transport errors."""
        try:
            return query.execute()
        except Exception as e:
            raise QueryError(str(e)) from e

    def close(self) -> None:
        """Close database connection (no-op for Supabase REST API)."""
        # REST API doesn't maintain persistent connections
        self._client = None

    def health_check(self) -> bool:
        """Check if the database connection is healthy."""
        try:
            client = self._get_client()
            client.table('tournaments').select('id').limit(1).execute()
            return True
        except Exception:
            return False

    # =========================================================================
    # READ OPERATIONS
    # =========================================================================

    def get_tournament(self, tournament_id: str) -> Optional[Dict[str, Any]]:
        """Get tournament document by id."""
        client = self._get_client()
        response = self._execute(
            client.table('tournaments')
            .select('data')
            .eq('id', tournament_id)
            .limit(1)
        )
        if not response.data:
            return None
        return json.loads(response.data[0]['data'])

    def list_final_matches(self, tournament_id: str, final_status: str = 'Final') -> List[Dict[str, Any]]:
        """Get completed matches for a tournament, ordered by id."""
        client = self._get_client()
        response = self._execute(
            client.table('matches')
            .select('data')
            .eq('tournament_id', tournament_id)
            .eq('status', final_status)
            .order('id')
        )
        return [json.loads(row['data']) for row in response.data]

    def get_teams(self, team_ids: List[str]) -> List[Dict[str, Any]]:
        """Get teams by id, keeping the requested order."""
        if not team_ids:
            return []
        client = self._get_client()
        response = self._execute(
            client.table('teams')
            .select('id, data')
            .in_('id', list(team_ids))
        )
        by_id = {row['id']: json.loads(row['data']) for row in response.data}
        return [by_id[team_id] for team_id in team_ids if team_id in by_id]

    def get_history(self, player_id: str) -> List[Dict[str, Any]]:
        """Get history entries for a player, newest first."""
        client = self._get_client()
        response = self._execute(
            client.table('history')
            .select('data')
            .eq('player_id', player_id)
            .order('date', desc=True)
        )
        return [json.loads(row['data']) for row in response.data]

    # =========================================================================
    # WRITE OPERATIONS
    # =========================================================================

    def overwrite_standings(self, tournament_id: str, rows: List[Dict[str, Any]]) -> int:
        """Replace the standings field of a tournament document."""
        tournament = self.get_tournament(tournament_id)
        if tournament is None:
            raise DocumentNotFoundError("Tournament", tournament_id)

        tournament['standings'] = rows
        client = self._get_client()
        self._execute(
            client.table('tournaments')
            .update({
                'data': json.dumps(tournament, ensure_ascii=False),
                'updated_at': datetime.now(timezone.utc).isoformat()
            })
            .eq('id', tournament_id)
        )
        return len(rows)

    def append_history(self, player_id: str, entry: Dict[str, Any], entry_id: Optional[str] = None) -> str:
        """Insert or replace one history entry."""
        key = entry_id or uuid.uuid4().hex
        client = self._get_client()
        self._execute(
            client.table('history')
            .upsert(self._history_row(player_id, key, entry), on_conflict='player_id,id')
        )
        return key

    def append_history_batch(self, entries: List[Dict[str, Any]]) -> int:
        """Upsert history entries in one request."""
        rows = []
        for entry in entries:
            doc = dict(entry)
            key = doc.pop('_id', None) or uuid.uuid4().hex
            player_id = doc.get('userId')
            if not player_id:
                raise QueryError("History entry is missing 'userId'")
            rows.append(self._history_row(player_id, key, doc))

        if not rows:
            return 0

        # A roster never comes near BATCH_SIZE, keep it a single request
        client = self._get_client()
        self._execute(
            client.table('history').upsert(rows, on_conflict='player_id,id')
        )
        return len(rows)

    def _history_row(self, player_id: str, key: str, entry: Dict[str, Any]) -> Dict[str, Any]:
        return {
            'player_id': player_id,
            'id': key,
            'date': entry.get('date'),
            'data': json.dumps(entry, ensure_ascii=False),
            'updated_at': datetime.now(timezone.utc).isoformat()
        }

    # =========================================================================
    # SEEDING
    # =========================================================================

    def save_tournament(self, tournament: Dict[str, Any]) -> None:
        """Save or replace a tournament document."""
        doc = dict(tournament)
        doc.setdefault('teamIds', [])
        doc.setdefault('standings', [])
        client = self._get_client()
        self._execute(
            client.table('tournaments').upsert({
                'id': doc['id'],
                'name': doc.get('name', ''),
                'data': json.dumps(doc, ensure_ascii=False),
                'updated_at': datetime.now(timezone.utc).isoformat()
            }, on_conflict='id')
        )

    def save_teams(self, teams: List[Dict[str, Any]]) -> int:
        """Save teams to database."""
        client = self._get_client()

        rows = [
            {
                'id': t['id'],
                'name': t.get('name', ''),
                'data': json.dumps(t, ensure_ascii=False),
                'updated_at': datetime.now(timezone.utc).isoformat()
            }
            for t in teams
        ]

        for i in range(0, len(rows), BATCH_SIZE):
            batch = rows[i:i + BATCH_SIZE]
            self._execute(client.table('teams').upsert(batch, on_conflict='id'))

        return len(teams)

    def save_matches(self, matches: List[Dict[str, Any]]) -> int:
        """Save matches to database."""
        client = self._get_client()

        rows = [
            {
                'id': m['id'],
                'tournament_id': m.get('tournamentId', ''),
                'status': m.get('status'),
                'data': json.dumps(m, ensure_ascii=False),
                'updated_at': datetime.now(timezone.utc).isoformat()
            }
            for m in matches
        ]

        for i in range(0, len(rows), BATCH_SIZE):
            batch = rows[i:i + BATCH_SIZE]
            self._execute(client.table('matches').upsert(batch, on_conflict='id'))

        return len(matches)

    # =========================================================================
    # MAINTENANCE
    # =========================================================================

    def clear_all(self) -> None:
        """Delete all data from all tables."""
        client = self._get_client()
        # PostgREST refuses unfiltered deletes, match every row instead
        self._execute(client.table('history').delete().neq('id', ''))
        for table in ['matches', 'teams', 'tournaments']:
            self._execute(client.table(table).delete().neq('id', ''))
