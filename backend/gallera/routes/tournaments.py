import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, field_validator
from sqlmodel import Session

from gallera.database import get_session
from gallera.models.entities import TournamentRules
from gallera.models.tournament import Tournament
from gallera.models.tournament_state import Stage, TournamentState
from gallera.services import day_flow, roster
from gallera.services.day_flow import DayFlowError, NewTournamentImpact, ResetImpact
from gallera.services.roster import RosterError
from gallera.services.state_store import create_tournament, delete_tournament, list_tournaments, save_state
from gallera.utils.http_errors import load_or_404, to_http_exception

router = APIRouter()


class TournamentCreate(BaseModel):
    name: str
    tournament_manager: Optional[str] = None
    date: Optional[datetime.date] = None
    tournament_days: int = 1

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("name cannot be empty")
        return v.strip()

    @field_validator("tournament_days")
    @classmethod
    def validate_tournament_days(cls, v):
        if v < 1:
            raise ValueError("tournament_days must be >= 1")
        return v


class TournamentSummary(BaseModel):
    id: int
    name: str
    stage: Stage
    current_day: int
    viewing_day: int
    tournament_days: int
    is_read_only: bool
    is_tournament_in_progress: bool
    is_finished: bool
    created_at: datetime.datetime
    updated_at: datetime.datetime


class SelectDayRequest(BaseModel):
    day: int


class DemoDataRequest(BaseModel):
    seed: Optional[int] = None


def tournament_summary(record: Tournament, state: TournamentState) -> TournamentSummary:
    return TournamentSummary(
        id=record.id,
        name=record.name,
        stage=state.stage,
        current_day=state.current_day,
        viewing_day=state.viewing_day,
        tournament_days=state.rules.tournament_days,
        is_read_only=state.is_read_only,
        is_tournament_in_progress=state.is_tournament_in_progress,
        is_finished=state.is_finished,
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


@router.get("/tournaments", response_model=List[TournamentSummary])
def get_tournaments(session: Session = Depends(get_session)):
    """List all tournaments"""
    return [
        tournament_summary(record, TournamentState.model_validate(record.state_json))
        for record in list_tournaments(session)
    ]


@router.post("/tournaments", response_model=TournamentSummary, status_code=201)
def post_tournament(tournament_data: TournamentCreate, session: Session = Depends(get_session)):
    """Create a tournament with default rules and an empty day 1"""
    rules = TournamentRules(
        name=tournament_data.name,
        tournament_manager=tournament_data.tournament_manager,
        tournament_days=tournament_data.tournament_days,
    )
    if tournament_data.date:
        rules.date = tournament_data.date
    record, state = create_tournament(session, rules)
    return tournament_summary(record, state)


@router.get("/tournaments/{tournament_id}", response_model=TournamentSummary)
def get_tournament(tournament_id: int, session: Session = Depends(get_session)):
    record, state = load_or_404(session, tournament_id)
    return tournament_summary(record, state)


@router.get("/tournaments/{tournament_id}/state", response_model=TournamentState)
def get_tournament_state(tournament_id: int, session: Session = Depends(get_session)):
    """Full persisted state (teams, rules, day records, results)"""
    _, state = load_or_404(session, tournament_id)
    return state


@router.delete("/tournaments/{tournament_id}", status_code=204)
def remove_tournament(tournament_id: int, session: Session = Depends(get_session)):
    load_or_404(session, tournament_id)
    delete_tournament(session, tournament_id)
    return None


# ============================================================================
# Navigation
# ============================================================================


@router.post("/tournaments/{tournament_id}/select-day", response_model=TournamentSummary)
def post_select_day(tournament_id: int, request: SelectDayRequest, session: Session = Depends(get_session)):
    """View a day; finished days open on their (read-only) results"""
    record, state = load_or_404(session, tournament_id)
    try:
        state = day_flow.select_day(state, request.day)
    except DayFlowError as e:
        raise to_http_exception(e)
    record = save_state(session, record, state)
    return tournament_summary(record, state)


@router.post("/tournaments/{tournament_id}/resume-live", response_model=TournamentSummary)
def post_resume_live(tournament_id: int, session: Session = Depends(get_session)):
    record, state = load_or_404(session, tournament_id)
    try:
        state = day_flow.resume_live(state)
    except DayFlowError as e:
        raise to_http_exception(e)
    record = save_state(session, record, state)
    return tournament_summary(record, state)


@router.post("/tournaments/{tournament_id}/show-results", response_model=TournamentSummary)
def post_show_results(tournament_id: int, session: Session = Depends(get_session)):
    record, state = load_or_404(session, tournament_id)
    try:
        state = day_flow.show_tournament_results(state)
    except DayFlowError as e:
        raise to_http_exception(e)
    record = save_state(session, record, state)
    return tournament_summary(record, state)


# ============================================================================
# New tournament / reset / demo data
# ============================================================================


@router.get("/tournaments/{tournament_id}/new-tournament/preview", response_model=NewTournamentImpact)
def get_new_tournament_preview(tournament_id: int, session: Session = Depends(get_session)):
    """What starting a new tournament would clear (teams and rosters are kept)"""
    _, state = load_or_404(session, tournament_id)
    return day_flow.preview_new_tournament(state)


@router.post("/tournaments/{tournament_id}/new-tournament", response_model=TournamentSummary)
def post_new_tournament(tournament_id: int, session: Session = Depends(get_session)):
    record, state = load_or_404(session, tournament_id)
    state = day_flow.new_tournament(state)
    record = save_state(session, record, state)
    return tournament_summary(record, state)


@router.get("/tournaments/{tournament_id}/reset/preview", response_model=ResetImpact)
def get_reset_preview(tournament_id: int, session: Session = Depends(get_session)):
    _, state = load_or_404(session, tournament_id)
    return day_flow.preview_reset(state)


@router.post("/tournaments/{tournament_id}/reset", response_model=TournamentSummary)
def post_reset(tournament_id: int, session: Session = Depends(get_session)):
    """Erase teams, rosters, rules and results of this tournament"""
    record, _ = load_or_404(session, tournament_id)
    state = day_flow.reset_state()
    record = save_state(session, record, state)
    return tournament_summary(record, state)


@router.post("/tournaments/{tournament_id}/demo-data", response_model=TournamentSummary)
def post_demo_data(tournament_id: int, request: DemoDataRequest, session: Session = Depends(get_session)):
    record, state = load_or_404(session, tournament_id)
    try:
        state = roster.load_demo_data(state, seed=request.seed)
    except (DayFlowError, RosterError) as e:
        raise to_http_exception(e)
    record = save_state(session, record, state)
    return tournament_summary(record, state)
