"""
League Standings - FastAPI Application

Recomputes tournament standings when a match goes final and serves the
stored standings and player history to the web client.
"""

import logging
import secrets
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from . import config
from .exceptions import (
    BackendUnavailableError,
    InvalidInputError,
    LeagueError,
    TournamentNotFoundError,
    UnauthorizedError,
)
from .services.pipeline import StandingsPipeline, summarize
from .storage import DatabaseInterface, DatabaseError, get_database

logging.basicConfig(
    level=config.LOG_LEVEL,
    format='%(asctime)s %(levelname)s %(name)s: %(message)s'
)
logger = logging.getLogger(__name__)

UPDATE_STANDINGS_PATH = "/api/update-standings"


def get_db() -> DatabaseInterface:
    """Database dependency, overridable in tests."""
    return get_database()


class UpdateStandingsRequest(BaseModel):
    """Body sent by the scoring UI when a match is marked final."""

    tournament_id: Optional[str] = Field(None, alias="tournamentId")
    secret: Optional[str] = None

    class Config:
        """Pydantic configuration."""

        populate_by_name = True


def secret_matches(secret: Any) -> bool:
    """Constant-time comparison against STANDINGS_API_SECRET."""
    expected = config.STANDINGS_API_SECRET
    if not expected or not secret or not isinstance(secret, str):
        return False
    return secrets.compare_digest(secret.encode('utf-8'), expected.encode('utf-8'))


def check_secret(secret: Optional[str]) -> None:
    """
    Reject the request unless the secret matches the configured one.

    An unset STANDINGS_API_SECRET rejects everything.
    """
    if not secret_matches(secret):
        raise UnauthorizedError("Unauthorized")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    print("[*] Connecting to database...")
    db = get_database()
    if db.health_check():
        print("[+] Database is reachable")
    else:
        print("[!] Database health check failed")
    if not config.STANDINGS_API_SECRET:
        print("[!] STANDINGS_API_SECRET is not set, standings updates will be rejected")

    print("[*] App is ready.")

    yield

    print("[*] Shutting down...")
    db.close()


app = FastAPI(
    title="League Standings",
    description="Standings computation and player history for league tournaments",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(LeagueError)
async def league_error_handler(request: Request, exc: LeagueError) -> JSONResponse:
    """Return the error taxonomy in the body so the UI can tell failures apart."""
    content = {
        "success": False,
        "error": exc.code,
        "message": str(exc),
    }
    if isinstance(exc, BackendUnavailableError):
        content["partiallyApplied"] = exc.partially_applied
    return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Keep the trigger inside the 401/400 taxonomy for bodies that fail validation.

    The body is only described to callers holding the secret. Other routes
    keep FastAPI's default 422 response.
    """
    if request.url.path != UPDATE_STANDINGS_PATH:
        return await request_validation_exception_handler(request, exc)

    body = exc.body if isinstance(exc.body, dict) else {}
    if not secret_matches(body.get("secret")):
        return await league_error_handler(request, UnauthorizedError("Unauthorized"))

    logger.info(f"Rejected update-standings body: {exc.errors()}")
    return await league_error_handler(request, InvalidInputError("Invalid tournamentId"))


@app.post(UPDATE_STANDINGS_PATH)
def update_standings(body: UpdateStandingsRequest, db: DatabaseInterface = Depends(get_db)):
    """
    Recompute a tournament's standings from all of its final matches.

    Writes the new table to the tournament and appends player history.
    Responds 401 on a bad secret, 400 without a tournamentId, 404 when the
    tournament cannot be resolved and 500 on storage failures.
    """
    check_secret(body.secret)

    if not body.tournament_id or not body.tournament_id.strip():
        raise InvalidInputError("Missing tournamentId")

    try:
        result = StandingsPipeline(db).run(body.tournament_id)
    except LeagueError:
        raise
    except Exception as e:
        logger.exception(f"Error updating standings for {body.tournament_id}")
        raise LeagueError(f"Internal Server Error: {e}") from e

    logger.info(
        f"Standings updated for {body.tournament_id}: "
        f"{len(result.standings)} teams, {len(result.skipped_match_ids)} skipped matches"
    )
    return summarize(result)


@app.get("/api/tournaments/{tournament_id}/standings")
def get_standings(tournament_id: str, db: DatabaseInterface = Depends(get_db)):
    """Get the stored standings table of a tournament."""
    try:
        tournament = db.get_tournament(tournament_id)
    except DatabaseError as e:
        raise BackendUnavailableError(f"Failed to load tournament: {e}") from e

    if tournament is None:
        raise TournamentNotFoundError(tournament_id)

    return {
        "tournamentId": tournament_id,
        "name": tournament.get("name", ""),
        "standings": tournament.get("standings", []),
    }


@app.get("/api/players/{player_id}/history")
def get_player_history(player_id: str, db: DatabaseInterface = Depends(get_db)):
    """Get a player's match history, newest first."""
    try:
        return db.get_history(player_id)
    except DatabaseError as e:
        raise BackendUnavailableError(f"Failed to load history: {e}") from e


@app.get("/health")
def health(db: DatabaseInterface = Depends(get_db)):
    """Health check endpoint."""
    return {
        "status": "ok",
        "database": db.health_check(),
    }


# Run with: uvicorn league.main:app --reload
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=config.HOST, port=config.PORT)
