from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from gallera.database import get_session
from gallera.models.entities import Rooster
from gallera.services import roster
from gallera.services.day_flow import DayFlowError
from gallera.services.roster import RoosterForm, RosterError
from gallera.services.state_store import save_state
from gallera.utils.http_errors import load_or_404, to_http_exception

router = APIRouter()


@router.get("/tournaments/{tournament_id}/roosters", response_model=List[Rooster])
def get_roosters(
    tournament_id: int,
    day: Optional[int] = Query(None, ge=1),
    cuerda_id: Optional[str] = None,
    session: Session = Depends(get_session),
):
    """Roster of a day (defaults to the viewed day), optionally for one front"""
    _, state = load_or_404(session, tournament_id)
    roosters = state.day(day or state.viewing_day).roosters
    if cuerda_id:
        roosters = [r for r in roosters if r.cuerda_id == cuerda_id]
    return roosters


@router.post("/tournaments/{tournament_id}/roosters", response_model=Rooster, status_code=201)
def post_rooster(tournament_id: int, form: RoosterForm, session: Session = Depends(get_session)):
    """Register a rooster on the current day"""
    record, state = load_or_404(session, tournament_id)
    try:
        state, rooster = roster.add_rooster(state, form)
    except (DayFlowError, RosterError) as e:
        raise to_http_exception(e)
    save_state(session, record, state)
    return rooster


@router.put("/tournaments/{tournament_id}/roosters/{rooster_id}", response_model=Rooster)
def put_rooster(tournament_id: int, rooster_id: str, form: RoosterForm, session: Session = Depends(get_session)):
    record, state = load_or_404(session, tournament_id)
    try:
        state, rooster = roster.update_rooster(state, rooster_id, form)
    except (DayFlowError, RosterError) as e:
        raise to_http_exception(e)
    save_state(session, record, state)
    return rooster


@router.delete("/tournaments/{tournament_id}/roosters/{rooster_id}", status_code=204)
def delete_rooster(tournament_id: int, rooster_id: str, session: Session = Depends(get_session)):
    record, state = load_or_404(session, tournament_id)
    try:
        state = roster.delete_rooster(state, rooster_id)
    except (DayFlowError, RosterError) as e:
        raise to_http_exception(e)
    save_state(session, record, state)
    return None
