"""
SQLite Database Storage for league documents.

Stores each document as a JSON column next to the few fields that are
queried on:
- Indexed lookups by tournament and status for match queries
- Atomic transactions for batched history writes
- Concurrent read access via WAL mode

This is the SQLite implementation of the DatabaseInterface.
"""

import sqlite3
import json
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import Optional, Iterator, List, Dict, Any
import threading

from .base import DatabaseInterface
from .exceptions import ConnectionError, DocumentNotFoundError, QueryError, SchemaError


class SQLiteDatabase(DatabaseInterface):
    """
    SQLite database for league document storage.
    Thread-safe with connection per thread.

    Implements the DatabaseInterface abstract base class.
    """

    SCHEMA_VERSION = 1

    def __init__(self, db_path: str = "data/league.db"):
        """
        Create SQLite database instance.

        Args:
            db_path: Path to the SQLite database file
        """
        self.db_path = Path(db_path)
        self._local = threading.local()
        self._initialized = False

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def initialize(self) -> None:
        """Initialize the database connection and schema."""
        if self._initialized:
            return

        # Ensure parent directory exists
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        try:
            self._init_schema()
        except QueryError as e:
            raise SchemaError(f"Failed to initialize schema: {e}") from e
        self._initialized = True

    def close(self) -> None:
        """Close database connections and clean up resources."""
        if hasattr(self._local, 'conn') and self._local.conn is not None:
            self._local.conn.close()
            self._local.conn = None

    def health_check(self) -> bool:
        """Check if the database connection is healthy."""
        try:
            conn = self._get_connection()
            conn.execute("SELECT 1")
            return True
        except Exception:
            return False

    # =========================================================================
    # CONNECTION MANAGEMENT
    # =========================================================================

    def _get_connection(self) -> sqlite3.Connection:
        """Get thread-local database connection."""
        if not hasattr(self._local, 'conn') or self._local.conn is None:
            conn = None
            try:
                conn = sqlite3.connect(
                    str(self.db_path),
                    check_same_thread=False,
                    timeout=30.0
                )
                conn.row_factory = sqlite3.Row
                # Enable WAL mode for better concurrent access
                conn.execute("PRAGMA journal_mode=WAL")
                conn.execute("PRAGMA synchronous=NORMAL")
            except sqlite3.Error as e:
                if conn is not None:
                    conn.close()
                raise ConnectionError(f"Failed to open {self.db_path}: {e}") from e
            self._local.conn = conn
        return self._local.conn

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Context manager for database transactions."""
        conn = self._get_connection()
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise QueryError(str(e)) from e
        except Exception:
            conn.rollback()
            raise

    def _query(self, sql: str, params: tuple = ()) -> List[sqlite3.Row]:
        """Run a read query, wrapping driver errors."""
        try:
            return self._get_connection().execute(sql, params).fetchall()
        except sqlite3.Error as e:
            raise QueryError(str(e)) from e

    def _init_schema(self) -> None:
        """Initialize database schema."""
        with self.transaction() as conn:
            conn.executescript('''
                -- Metadata table
                CREATE TABLE IF NOT EXISTS metadata (
                    key TEXT PRIMARY KEY,
                    value TEXT,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                );

                -- Tournaments (standings live inside the document)
                CREATE TABLE IF NOT EXISTS tournaments (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    data JSON NOT NULL,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                );

                -- Teams with embedded roster
                CREATE TABLE IF NOT EXISTS teams (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    data JSON NOT NULL,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                );

                -- Matches
                CREATE TABLE IF NOT EXISTS matches (
                    id TEXT PRIMARY KEY,
                    tournament_id TEXT NOT NULL,
                    status TEXT,
                    data JSON NOT NULL,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                );

                -- Per-player history
                CREATE TABLE IF NOT EXISTS history (
                    player_id TEXT NOT NULL,
                    id TEXT NOT NULL,
                    date TEXT,
                    data JSON NOT NULL,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    PRIMARY KEY (player_id, id)
                );

                -- Indexes for fast queries
                CREATE INDEX IF NOT EXISTS idx_matches_tournament_status ON matches(tournament_id, status);
                CREATE INDEX IF NOT EXISTS idx_history_player_date ON history(player_id, date);
            ''')

            conn.execute(
                "INSERT OR REPLACE INTO metadata (key, value) VALUES (?, ?)",
                ('schema_version', str(self.SCHEMA_VERSION))
            )

    # =========================================================================
    # READ OPERATIONS
    # =========================================================================

    def get_tournament(self, tournament_id: str) -> Optional[Dict[str, Any]]:
        """Get tournament document by id."""
        rows = self._query("SELECT data FROM tournaments WHERE id = ?", (tournament_id,))
        if not rows:
            return None
        return json.loads(rows[0]['data'])

    def list_final_matches(self, tournament_id: str, final_status: str = 'Final') -> List[Dict[str, Any]]:
        """Get completed matches for a tournament, ordered by id."""
        rows = self._query(
            "SELECT data FROM matches WHERE tournament_id = ? AND status = ? ORDER BY id",
            (tournament_id, final_status)
        )
        return [json.loads(row['data']) for row in rows]

    def get_teams(self, team_ids: List[str]) -> List[Dict[str, Any]]:
        """Get teams by id, keeping the requested order."""
        if not team_ids:
            return []
        placeholders = ','.join('?' for _ in team_ids)
        rows = self._query(
            f"SELECT id, data FROM teams WHERE id IN ({placeholders})",
            tuple(team_ids)
        )
        by_id = {row['id']: json.loads(row['data']) for row in rows}
        return [by_id[team_id] for team_id in team_ids if team_id in by_id]

    def get_history(self, player_id: str) -> List[Dict[str, Any]]:
        """Get history entries for a player, newest first."""
        rows = self._query(
            "SELECT data FROM history WHERE player_id = ? ORDER BY date DESC, id",
            (player_id,)
        )
        return [json.loads(row['data']) for row in rows]

    # =========================================================================
    # WRITE OPERATIONS
    # =========================================================================

    def overwrite_standings(self, tournament_id: str, rows: List[Dict[str, Any]]) -> int:
        """Replace the standings field of a tournament document."""
        with self.transaction() as conn:
            existing = conn.execute(
                "SELECT data FROM tournaments WHERE id = ?", (tournament_id,)
            ).fetchone()
            if existing is None:
                raise DocumentNotFoundError("Tournament", tournament_id)

            data = json.loads(existing['data'])
            data['standings'] = rows
            conn.execute(
                "UPDATE tournaments SET data = ?, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                (json.dumps(data, ensure_ascii=False), tournament_id)
            )
        return len(rows)

    def append_history(self, player_id: str, entry: Dict[str, Any], entry_id: Optional[str] = None) -> str:
        """Insert or replace one history entry."""
        key = entry_id or uuid.uuid4().hex
        with self.transaction() as conn:
            self._insert_history(conn, player_id, key, entry)
        return key

    def append_history_batch(self, entries: List[Dict[str, Any]]) -> int:
        """Insert history entries in a single transaction."""
        with self.transaction() as conn:
            for entry in entries:
                doc = dict(entry)
                key = doc.pop('_id', None) or uuid.uuid4().hex
                player_id = doc.get('userId')
                if not player_id:
                    raise QueryError("History entry is missing 'userId'")
                self._insert_history(conn, player_id, key, doc)
        return len(entries)

    def _insert_history(self, conn: sqlite3.Connection, player_id: str, key: str, entry: Dict[str, Any]) -> None:
        conn.execute('''
            INSERT OR REPLACE INTO history (player_id, id, date, data)
            VALUES (?, ?, ?, ?)
        ''', (
            player_id,
            key,
            entry.get('date'),
            json.dumps(entry, ensure_ascii=False)
        ))

    # =========================================================================
    # SEEDING
    # =========================================================================

    def save_tournament(self, tournament: Dict[str, Any]) -> None:
        """Save or replace a tournament document."""
        doc = dict(tournament)
        doc.setdefault('teamIds', [])
        doc.setdefault('standings', [])
        with self.transaction() as conn:
            conn.execute('''
                INSERT OR REPLACE INTO tournaments (id, name, data)
                VALUES (?, ?, ?)
            ''', (doc['id'], doc.get('name', ''), json.dumps(doc, ensure_ascii=False)))

    def save_teams(self, teams: List[Dict[str, Any]]) -> int:
        """Save teams. Returns count saved."""
        with self.transaction() as conn:
            conn.executemany('''
                INSERT OR REPLACE INTO teams (id, name, data)
                VALUES (?, ?, ?)
            ''', [
                (t['id'], t.get('name', ''), json.dumps(t, ensure_ascii=False))
                for t in teams
            ])
        return len(teams)

    def save_matches(self, matches: List[Dict[str, Any]]) -> int:
        """Save matches. Returns count saved."""
        with self.transaction() as conn:
            conn.executemany('''
                INSERT OR REPLACE INTO matches (id, tournament_id, status, data)
                VALUES (?, ?, ?, ?)
            ''', [
                (
                    m['id'],
                    m.get('tournamentId', ''),
                    m.get('status'),
                    json.dumps(m, ensure_ascii=False)
                )
                for m in matches
            ])
        return len(matches)

    # =========================================================================
    # MAINTENANCE
    # =========================================================================

    def clear_all(self) -> None:
        """Delete all data (keeps schema)."""
        with self.transaction() as conn:
            conn.executescript('''
                DELETE FROM history;
                DELETE FROM matches;
                DELETE FROM teams;
                DELETE FROM tournaments;
            ''')
