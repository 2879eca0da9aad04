from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlmodel import Session

from gallera.database import get_session
from gallera.models.entities import BaseTeam, Team, front_number
from gallera.models.tournament_state import TournamentState
from gallera.services import roster
from gallera.services.day_flow import DayFlowError
from gallera.services.roster import DeletionImpact, RosterError, TeamForm
from gallera.services.state_store import save_state
from gallera.utils.http_errors import load_or_404, to_http_exception

router = APIRouter()


class TeamResponse(BaseModel):
    id: str
    name: str
    owner: str
    city: Optional[str] = None
    kind: str
    parent_id: Optional[str] = None
    front_number: int
    rooster_count: int


def _team_response(state: TournamentState, team: Team) -> TeamResponse:
    roosters = state.day(state.viewing_day).roosters
    return TeamResponse(
        id=team.id,
        name=team.name,
        owner=team.owner,
        city=team.city,
        kind=team.kind,
        parent_id=None if isinstance(team, BaseTeam) else team.parent_id,
        front_number=front_number(team),
        rooster_count=sum(1 for r in roosters if r.cuerda_id == team.id),
    )


@router.get("/tournaments/{tournament_id}/teams", response_model=List[TeamResponse])
def get_teams(tournament_id: int, session: Session = Depends(get_session)):
    """All teams and fronts; rooster counts are for the viewed day"""
    _, state = load_or_404(session, tournament_id)
    return [_team_response(state, t) for t in state.teams]


@router.post("/tournaments/{tournament_id}/teams", response_model=List[TeamResponse], status_code=201)
def post_team(tournament_id: int, form: TeamForm, session: Session = Depends(get_session)):
    """Create a team with `front_count` fronts. Returns the created records."""
    record, state = load_or_404(session, tournament_id)
    before = {t.id for t in state.teams}
    try:
        state = roster.save_team(state, form)
    except (DayFlowError, RosterError) as e:
        raise to_http_exception(e)
    save_state(session, record, state)
    return [_team_response(state, t) for t in state.teams if t.id not in before]


@router.put("/tournaments/{tournament_id}/teams/{team_id}", response_model=List[TeamResponse])
def put_team(tournament_id: int, team_id: str, form: TeamForm, session: Session = Depends(get_session)):
    """Rename / re-front a team. Dropped fronts lose their roosters on every day."""
    record, state = load_or_404(session, tournament_id)
    try:
        state = roster.save_team(state, form, team_id=team_id)
    except (DayFlowError, RosterError) as e:
        raise to_http_exception(e)
    save_state(session, record, state)
    return [_team_response(state, t) for t in state.teams]


@router.get("/tournaments/{tournament_id}/teams/{team_id}/fronts-preview", response_model=DeletionImpact)
def get_fronts_preview(
    tournament_id: int,
    team_id: str,
    front_count: int = Query(..., ge=1),
    session: Session = Depends(get_session),
):
    _, state = load_or_404(session, tournament_id)
    try:
        return roster.preview_front_reduction(state, team_id, front_count)
    except RosterError as e:
        raise to_http_exception(e)


@router.get("/tournaments/{tournament_id}/teams/{team_id}/delete-preview", response_model=DeletionImpact)
def get_delete_preview(tournament_id: int, team_id: str, session: Session = Depends(get_session)):
    _, state = load_or_404(session, tournament_id)
    try:
        return roster.preview_team_deletion(state, team_id)
    except RosterError as e:
        raise to_http_exception(e)


@router.delete("/tournaments/{tournament_id}/teams/{team_id}", status_code=204)
def delete_team(tournament_id: int, team_id: str, session: Session = Depends(get_session)):
    """Delete a front (or a base team without fronts) and all its roosters"""
    record, state = load_or_404(session, tournament_id)
    try:
        state = roster.delete_team(state, team_id)
    except (DayFlowError, RosterError) as e:
        raise to_http_exception(e)
    save_state(session, record, state)
    return None
