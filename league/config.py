"""
Application configuration.

Loads settings from environment variables with sensible defaults.
"""

import os


def _get_int(key: str, default: int) -> int:
    """Get integer from environment variable."""
    value = os.environ.get(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_bool(key: str, default: bool) -> bool:
    """Get boolean from environment variable."""
    value = os.environ.get(key)
    if value is None:
        return default
    return value.lower() in ('true', '1', 'yes')


def _get_str(key: str, default: str) -> str:
    """Get string from environment variable."""
    return os.environ.get(key, default)


# =============================================================================
# SERVER SETTINGS
# =============================================================================
PORT = _get_int('PORT', 8000)
HOST = _get_str('HOST', '0.0.0.0')

# Storage backend is picked by the factory from DB_TYPE and DATA_DIR,
# see league/storage/factory.py

# =============================================================================
# STANDINGS SETTINGS
# =============================================================================
# Shared secret the scoring UI sends with every standings trigger.
# Empty means every trigger is rejected.
STANDINGS_API_SECRET = _get_str('STANDINGS_API_SECRET', '')

# Match status that makes a match eligible for aggregation
FINAL_STATUS = _get_str('FINAL_STATUS', 'Final')

POINTS_FOR_WIN = _get_int('POINTS_FOR_WIN', 3)
POINTS_FOR_DRAW = _get_int('POINTS_FOR_DRAW', 1)
POINTS_FOR_LOSS = _get_int('POINTS_FOR_LOSS', 0)

# Write history under a per-(match, player) key so re-runs overwrite
HISTORY_DEDUPLICATE = _get_bool('HISTORY_DEDUPLICATE', True)

# =============================================================================
# LOGGING
# =============================================================================
LOG_LEVEL = _get_str('LOG_LEVEL', 'INFO')
