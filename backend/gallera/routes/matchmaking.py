from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlmodel import Session

from gallera.database import get_session
from gallera.models.fight import MatchmakingResult
from gallera.services import day_flow
from gallera.services.day_flow import DayFlowError
from gallera.services.matchmaking import ManualPairingError
from gallera.services.matchmaking_runner import MatchmakingBusyError, matchmaking_slot
from gallera.services.state_store import save_state
from gallera.utils.http_errors import load_or_404, to_http_exception

router = APIRouter()


class ManualFightRequest(BaseModel):
    rooster_a_id: str
    rooster_b_id: str


@router.post("/tournaments/{tournament_id}/matchmaking", response_model=MatchmakingResult)
def post_matchmaking(tournament_id: int, session: Session = Depends(get_session)):
    """Run matchmaking for the current day; a second concurrent run is refused (409)"""
    try:
        with matchmaking_slot(tournament_id):
            record, state = load_or_404(session, tournament_id)
            state = day_flow.run_matchmaking(state)
            save_state(session, record, state)
    except (MatchmakingBusyError, DayFlowError) as e:
        raise to_http_exception(e)
    return state.day(state.current_day).matchmaking


@router.get("/tournaments/{tournament_id}/matchmaking", response_model=MatchmakingResult)
def get_matchmaking(
    tournament_id: int,
    day: Optional[int] = Query(None, ge=1),
    session: Session = Depends(get_session),
):
    """Stored matchmaking result of a day (defaults to the viewed day)"""
    _, state = load_or_404(session, tournament_id)
    target_day = day or state.viewing_day
    result = state.day(target_day).matchmaking
    if result is None:
        raise HTTPException(status_code=404, detail=f"No matchmaking result for day {target_day}")
    return result


@router.post("/tournaments/{tournament_id}/matchmaking/manual-fights", response_model=MatchmakingResult)
def post_manual_fight(tournament_id: int, request: ManualFightRequest, session: Session = Depends(get_session)):
    """Pair two unpaired roosters by hand (no eligibility checks)"""
    record, state = load_or_404(session, tournament_id)
    try:
        state = day_flow.create_manual_fight(state, request.rooster_a_id, request.rooster_b_id)
    except (DayFlowError, ManualPairingError) as e:
        raise to_http_exception(e)
    save_state(session, record, state)
    return state.day(state.current_day).matchmaking


@router.post("/tournaments/{tournament_id}/matchmaking/start")
def post_start_day(tournament_id: int, session: Session = Depends(get_session)):
    """Lock the matchmaking card and go live"""
    record, state = load_or_404(session, tournament_id)
    try:
        state = day_flow.start_day(state)
    except DayFlowError as e:
        raise to_http_exception(e)
    save_state(session, record, state)
    total, pending = day_flow.day_summary(state)
    return {
        "day": state.current_day,
        "stage": state.stage,
        "total_fights": total,
        "pending_fights": pending,
    }
