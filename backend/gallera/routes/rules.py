from typing import List

from fastapi import APIRouter, Depends
from pydantic import BaseModel, field_validator
from sqlmodel import Session

from gallera.database import get_session
from gallera.models.entities import ExceptionPair, TournamentRules
from gallera.services import roster
from gallera.services.day_flow import DayFlowError
from gallera.services.roster import RosterError, RulesUpdate
from gallera.services.state_store import save_state
from gallera.utils.http_errors import load_or_404, to_http_exception

router = APIRouter()


class ExceptionCreate(BaseModel):
    """Two selections: a team id, or "city:<name>" for every stable of that city"""

    selection_1: str
    selection_2: str

    @field_validator("selection_1", "selection_2")
    @classmethod
    def validate_selection(cls, v):
        if not v or not v.strip():
            raise ValueError("selection cannot be empty")
        return v.strip()


class ExceptionCreateResponse(BaseModel):
    added: int
    exceptions: List[ExceptionPair]


@router.get("/tournaments/{tournament_id}/rules", response_model=TournamentRules)
def get_rules(tournament_id: int, session: Session = Depends(get_session)):
    _, state = load_or_404(session, tournament_id)
    return state.rules


@router.put("/tournaments/{tournament_id}/rules", response_model=TournamentRules)
def put_rules(tournament_id: int, update: RulesUpdate, session: Session = Depends(get_session)):
    """Partial update; min/max weight are clamped into the tournament range"""
    record, state = load_or_404(session, tournament_id)
    try:
        state = roster.update_rules(state, update)
    except (DayFlowError, RosterError) as e:
        raise to_http_exception(e)
    save_state(session, record, state)
    return state.rules


@router.get("/tournaments/{tournament_id}/exceptions", response_model=List[ExceptionPair])
def get_exceptions(tournament_id: int, session: Session = Depends(get_session)):
    _, state = load_or_404(session, tournament_id)
    return state.rules.exceptions


@router.post("/tournaments/{tournament_id}/exceptions", response_model=ExceptionCreateResponse, status_code=201)
def post_exceptions(tournament_id: int, request: ExceptionCreate, session: Session = Depends(get_session)):
    record, state = load_or_404(session, tournament_id)
    try:
        state, added = roster.add_exceptions(state, request.selection_1, request.selection_2)
    except (DayFlowError, RosterError) as e:
        raise to_http_exception(e)
    save_state(session, record, state)
    return ExceptionCreateResponse(added=added, exceptions=state.rules.exceptions)


@router.delete("/tournaments/{tournament_id}/exceptions/{cuerda1_id}/{cuerda2_id}", status_code=204)
def delete_exception(tournament_id: int, cuerda1_id: str, cuerda2_id: str, session: Session = Depends(get_session)):
    """Remove an exception pair (order of the two ids does not matter)"""
    record, state = load_or_404(session, tournament_id)
    try:
        state = roster.remove_exception(state, cuerda1_id, cuerda2_id)
    except DayFlowError as e:
        raise to_http_exception(e)
    save_state(session, record, state)
    return None
