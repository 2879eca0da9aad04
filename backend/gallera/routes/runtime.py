"""
Live fights: the current day's card, one result per fight.
A day closes by itself once its last fight is recorded.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlmodel import Session

from gallera.database import get_session
from gallera.models.fight import Fight, Winner
from gallera.models.tournament_state import Stage, TournamentState
from gallera.services import day_flow
from gallera.services.day_flow import DayFlowError
from gallera.services.state_store import save_state
from gallera.utils.http_errors import load_or_404, to_http_exception

router = APIRouter()


class FightResultRequest(BaseModel):
    winner: Winner
    minutes: int = Field(default=0, ge=0)
    seconds: int = Field(default=0, ge=0)


class LiveCardResponse(BaseModel):
    day: int
    stage: Stage
    is_finished: bool
    total_fights: int
    pending_fights: int
    current_fight: Optional[Fight] = None
    pending: List[Fight] = []
    finished: List[Fight] = []


def _live_card(state: TournamentState) -> LiveCardResponse:
    total, pending_count = day_flow.day_summary(state)
    fights = state.day(state.current_day).fights
    return LiveCardResponse(
        day=state.current_day,
        stage=state.stage,
        is_finished=state.is_finished,
        total_fights=total,
        pending_fights=pending_count,
        current_fight=day_flow.current_fight(state),
        pending=day_flow.pending_fights(state),
        finished=[f for f in fights if f.is_finished],
    )


@router.get("/tournaments/{tournament_id}/live", response_model=LiveCardResponse)
def get_live_card(tournament_id: int, session: Session = Depends(get_session)):
    _, state = load_or_404(session, tournament_id)
    return _live_card(state)


@router.post("/tournaments/{tournament_id}/live/fights/{fight_id}/result", response_model=LiveCardResponse)
def post_fight_result(
    tournament_id: int,
    fight_id: str,
    request: FightResultRequest,
    session: Session = Depends(get_session),
):
    """
    Record a result. Draws always store 8:00; wins need a non-zero time.
    Unknown or already-decided fight ids leave the state unchanged.
    """
    record, state = load_or_404(session, tournament_id)
    duration = day_flow.duration_from_timer(request.minutes, request.seconds)
    try:
        new_state = day_flow.finish_fight(state, fight_id, request.winner, duration)
    except DayFlowError as e:
        raise to_http_exception(e)
    if new_state is not state:
        save_state(session, record, new_state)
    return _live_card(new_state)


@router.post("/tournaments/{tournament_id}/live/finish-tournament", response_model=LiveCardResponse)
def post_finish_tournament(tournament_id: int, session: Session = Depends(get_session)):
    """End the tournament now; decided fights of today become the day's result"""
    record, state = load_or_404(session, tournament_id)
    try:
        state = day_flow.finish_tournament(state)
    except DayFlowError as e:
        raise to_http_exception(e)
    save_state(session, record, state)
    return _live_card(state)
