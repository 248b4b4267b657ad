"""
Storage module for league documents.

Provides a unified interface for multiple database backends:
- SQLite (local development, self-hosted)
- Memory (tests, throwaway runs)
- Supabase (PostgreSQL, hosted)

Usage:
    from league.storage import get_database

    db = get_database()  # Uses DB_TYPE env var
    tournament = db.get_tournament('t1')
"""

from .base import DatabaseInterface
from .factory import get_database, reset_database, set_database
from .exceptions import (
    DatabaseError,
    ConnectionError,
    ConfigurationError,
    SchemaError,
    QueryError,
    DocumentNotFoundError
)

__all__ = [
    'DatabaseInterface',
    'get_database',
    'reset_database',
    'set_database',
    'DatabaseError',
    'ConnectionError',
    'ConfigurationError',
    'SchemaError',
    'QueryError',
    'DocumentNotFoundError'
]
