"""
Abstract base class defining the database interface.

All database implementations must inherit from this class and implement
all abstract methods. This ensures consistent behavior across backends.

Documents are plain dicts using the camelCase field names the web client
reads and writes (``teamIds``, ``teamA``, ``tournamentName``...).
"""

from abc import ABC, abstractmethod
from typing import Optional, List, Dict, Any


class DatabaseInterface(ABC):
    """
    Abstract interface for league document storage.

    All methods must be implemented by concrete database classes.
    Any failure to reach the backend must be raised as a DatabaseError
    subclass so callers can tell storage problems from programming errors.
    """

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    @abstractmethod
    def initialize(self) -> None:
        """
        Initialize the database connection and schema.

        Called once when the database is first created.
        Should be idempotent (safe to call multiple times).
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """Close database connections and clean up resources."""
        pass

    @abstractmethod
    def health_check(self) -> bool:
        """
        Check if the database connection is healthy.

        Returns:
            True if database is accessible, False otherwise
        """
        pass

    # =========================================================================
    # READ OPERATIONS
    # =========================================================================

    @abstractmethod
    def get_tournament(self, tournament_id: str) -> Optional[Dict[str, Any]]:
        """
        Get a tournament document by id.

        Returns:
            Tournament dict with 'id', 'name', 'teamIds', 'standings',
            or None if it does not exist
        """
        pass

    @abstractmethod
    def list_final_matches(self, tournament_id: str, final_status: str = 'Final') -> List[Dict[str, Any]]:
        """
        Get the completed matches of a tournament.

        Args:
            tournament_id: Exact match on 'tournamentId'
            final_status: Exact match on 'status'

        Returns:
            List of match dicts ordered by id
        """
        pass

    @abstractmethod
    def get_teams(self, team_ids: List[str]) -> List[Dict[str, Any]]:
        """
        Get team documents by id.

        Ids that do not resolve are silently left out.

        Returns:
            List of team dicts with 'id', 'name', 'roster',
            in the order of ``team_ids``
        """
        pass

    @abstractmethod
    def get_history(self, player_id: str) -> List[Dict[str, Any]]:
        """
        Get a player's history entries.

        Returns:
            List of history dicts, newest first
        """
        pass

    # =========================================================================
    # WRITE OPERATIONS
    # =========================================================================

    @abstractmethod
    def overwrite_standings(self, tournament_id: str, rows: List[Dict[str, Any]]) -> int:
        """
        Replace the 'standings' field of a tournament.

        The field is fully overwritten, never merged.

        Returns:
            Number of rows written

        Raises:
            DocumentNotFoundError: If the tournament does not exist
        """
        pass

    @abstractmethod
    def append_history(self, player_id: str, entry: Dict[str, Any], entry_id: Optional[str] = None) -> str:
        """
        Add a history entry under a player's namespace.

        Args:
            player_id: Owning player
            entry: History dict
            entry_id: Document key. When given, an existing entry with the
                      same key is replaced. When None a new key is generated.

        Returns:
            The document key used
        """
        pass

    @abstractmethod
    def append_history_batch(self, entries: List[Dict[str, Any]]) -> int:
        """
        Add several history entries atomically.

        Each dict must carry 'userId' and may carry '_id' as document key
        (the key is stripped before storing). Either every entry is
        written or none is.

        Returns:
            Number of entries written
        """
        pass

    # =========================================================================
    # SEEDING
    # =========================================================================
    # Tournaments, teams and matches are owned by external CRUD flows;
    # these upserts exist to load a store for tests and the CLI.

    @abstractmethod
    def save_tournament(self, tournament: Dict[str, Any]) -> None:
        """Save or replace a tournament document."""
        pass

    @abstractmethod
    def save_teams(self, teams: List[Dict[str, Any]]) -> int:
        """
        Save or replace team documents.

        Returns:
            Number of teams saved
        """
        pass

    @abstractmethod
    def save_matches(self, matches: List[Dict[str, Any]]) -> int:
        """
        Save or replace match documents.

        Returns:
            Number of matches saved
        """
        pass

    # =========================================================================
    # MAINTENANCE
    # =========================================================================

    @abstractmethod
    def clear_all(self) -> None:
        """
        Delete all data from the database.

        Used for testing. Does not drop tables/schema, just data.
        """
        pass
