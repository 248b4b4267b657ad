"""
In-memory document store.

Keeps every collection in plain dicts guarded by a lock. Documents are
deep-copied on the way in and out so callers never share state with the
store. Used by tests and for throwaway local runs (DB_TYPE=memory).
"""

import copy
import threading
import uuid
from typing import Optional, List, Dict, Any

from .base import DatabaseInterface
from .exceptions import DocumentNotFoundError, QueryError


class MemoryDatabase(DatabaseInterface):
    """Dict-backed implementation of the DatabaseInterface."""

    def __init__(self):
        self._lock = threading.Lock()
        self._tournaments: Dict[str, Dict[str, Any]] = {}
        self._teams: Dict[str, Dict[str, Any]] = {}
        self._matches: Dict[str, Dict[str, Any]] = {}
        # player id -> entry id -> entry
        self._history: Dict[str, Dict[str, Dict[str, Any]]] = {}

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def initialize(self) -> None:
        """Nothing to set up."""
        pass

    def close(self) -> None:
        """Nothing to release; data survives until the object is dropped."""
        pass

    def health_check(self) -> bool:
        return True

    # =========================================================================
    # READ OPERATIONS
    # =========================================================================

    def get_tournament(self, tournament_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            doc = self._tournaments.get(tournament_id)
            return copy.deepcopy(doc) if doc is not None else None

    def list_final_matches(self, tournament_id: str, final_status: str = 'Final') -> List[Dict[str, Any]]:
        with self._lock:
            matches = [
                copy.deepcopy(m) for m in self._matches.values()
                if m.get('tournamentId') == tournament_id and m.get('status') == final_status
            ]
        return sorted(matches, key=lambda m: m['id'])

    def get_teams(self, team_ids: List[str]) -> List[Dict[str, Any]]:
        with self._lock:
            return [
                copy.deepcopy(self._teams[team_id])
                for team_id in team_ids
                if team_id in self._teams
            ]

    def get_history(self, player_id: str) -> List[Dict[str, Any]]:
        with self._lock:
            entries = [copy.deepcopy(e) for e in self._history.get(player_id, {}).values()]
        return sorted(entries, key=lambda e: e.get('date') or '', reverse=True)

    # =========================================================================
    # WRITE OPERATIONS
    # =========================================================================

    def overwrite_standings(self, tournament_id: str, rows: List[Dict[str, Any]]) -> int:
        with self._lock:
            doc = self._tournaments.get(tournament_id)
            if doc is None:
                raise DocumentNotFoundError("Tournament", tournament_id)
            doc['standings'] = copy.deepcopy(rows)
        return len(rows)

    def append_history(self, player_id: str, entry: Dict[str, Any], entry_id: Optional[str] = None) -> str:
        key = entry_id or uuid.uuid4().hex
        with self._lock:
            self._history.setdefault(player_id, {})[key] = copy.deepcopy(entry)
        return key

    def append_history_batch(self, entries: List[Dict[str, Any]]) -> int:
        # Validate the whole batch before touching the store
        staged = []
        for entry in entries:
            doc = copy.deepcopy(entry)
            key = doc.pop('_id', None) or uuid.uuid4().hex
            player_id = doc.get('userId')
            if not player_id:
                raise QueryError("History entry is missing 'userId'")
            staged.append((player_id, key, doc))

        with self._lock:
            for player_id, key, doc in staged:
                self._history.setdefault(player_id, {})[key] = doc
        return len(staged)

    # =========================================================================
    # SEEDING
    # =========================================================================

    def save_tournament(self, tournament: Dict[str, Any]) -> None:
        doc = copy.deepcopy(tournament)
        doc.setdefault('teamIds', [])
        doc.setdefault('standings', [])
        with self._lock:
            self._tournaments[doc['id']] = doc

    def save_teams(self, teams: List[Dict[str, Any]]) -> int:
        with self._lock:
            for team in teams:
                self._teams[team['id']] = copy.deepcopy(team)
        return len(teams)

    def save_matches(self, matches: List[Dict[str, Any]]) -> int:
        with self._lock:
            for match in matches:
                self._matches[match['id']] = copy.deepcopy(match)
        return len(matches)

    # =========================================================================
    # MAINTENANCE
    # =========================================================================

    def clear_all(self) -> None:
        with self._lock:
            self._tournaments.clear()
            self._teams.clear()
            self._matches.clear()
            self._history.clear()
