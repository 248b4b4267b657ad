"""
Error taxonomy for the standings engine.

Each error carries a stable ``code`` which the HTTP layer returns in the
response body and maps to a status code:
- UnauthorizedError: bad or missing trigger secret (401)
- InvalidInputError: request is missing required data (400)
- TournamentNotFoundError: tournament or its teams cannot be resolved (404)
- BackendUnavailableError: a storage read or write failed (500)
"""


class LeagueError(Exception):
    """Base exception for all standings engine errors."""

    code = 'InternalError'
    status_code = 500
    # Pipeline step the error was raised in, set by the pipeline
    failed_at = None


class UnauthorizedError(LeagueError):
    """Trigger secret did not match the configured value."""

    code = 'Unauthorized'
    status_code = 401


class InvalidInputError(LeagueError):
    """Request input is missing or malformed."""

    code = 'InvalidInput'
    status_code = 400


class TournamentNotFoundError(LeagueError):
    """Tournament does not exist or has no registered teams."""

    code = 'NotFound'
    status_code = 404

    def __init__(self, tournament_id: str = ''):
        self.tournament_id = tournament_id
        message = "Tournament not found"
        if tournament_id:
            message = f"Tournament not found: {tournament_id}"
        super().__init__(message)


class BackendUnavailableError(LeagueError):
    """
    A storage call failed.

    Writes issued by earlier, independent steps are not rolled back, so
    ``partially_applied`` tells the caller whether anything was persisted.
    """

    code = 'BackendUnavailable'
    status_code = 500

    def __init__(self, message: str, partially_applied: bool = False):
        self.partially_applied = partially_applied
        super().__init__(message)
