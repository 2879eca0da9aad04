"""
Translate domain errors into HTTP errors.

404: unknown tournament / team / rooster
409: state conflicts (closed day, invalid transition, integrity guard, busy)
422: user-correctable validation rejections
"""
import logging

from fastapi import HTTPException
from sqlmodel import Session

from gallera.services.day_flow import FightResultError, InvalidTransitionError, ReadOnlyDayError
from gallera.services.matchmaking import ManualPairingError
from gallera.services.matchmaking_runner import MatchmakingBusyError
from gallera.services.roster import RoosterNotFoundError, RosterValidationError, TeamIntegrityError, TeamNotFoundError
from gallera.services.state_store import TournamentNotFoundError, load_state

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR = (
    (TournamentNotFoundError, 404),
    (TeamNotFoundError, 404),
    (RoosterNotFoundError, 404),
    (RosterValidationError, 422),
    (FightResultError, 422),
    (ManualPairingError, 422),
    (TeamIntegrityError, 409),
    (ReadOnlyDayError, 409),
    (InvalidTransitionError, 409),
    (MatchmakingBusyError, 409),
)


def to_http_exception(exc: Exception) -> HTTPException:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            logger.warning("Rejected (%d): %s", status_code, exc)
            return HTTPException(status_code=status_code, detail=str(exc))
    return HTTPException(status_code=500, detail=str(exc))


def load_or_404(session: Session, tournament_id: int):
    """(Tournament row, TournamentState) or 404."""
    try:
        return load_state(session, tournament_id)
    except TournamentNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
