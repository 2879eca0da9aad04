from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlmodel import Session

from gallera.database import get_session
from gallera.models.entities import Rooster
from gallera.models.fight import Fight
from gallera.models.tournament_state import TournamentState
from gallera.services.standings import (
    FastestWin,
    TeamStanding,
    daily_standings,
    fastest_of_tournament,
    fastest_winners,
    tournament_standings,
)
from gallera.utils.http_errors import load_or_404
from gallera.utils.weights import format_weight

router = APIRouter()


class StandingRow(BaseModel):
    rank: int
    team_id: str
    team_name: str
    front_number: int
    wins: int
    draws: int
    losses: int
    fights: int
    points: int
    total_duration_seconds: int


class FastestWinRow(BaseModel):
    rooster: Rooster
    weight_label: str
    duration: int
    fight_number: int
    day: Optional[int] = None


class DayResultsResponse(BaseModel):
    day: int
    is_read_only: bool
    fights: List[Fight]
    standings: List[StandingRow]
    fastest: List[FastestWinRow]


class TournamentResultsResponse(BaseModel):
    tournament_name: str
    days_played: List[int]
    is_finished: bool
    standings: List[StandingRow]
    fastest: Optional[FastestWinRow] = None


def _standing_rows(rows: List[TeamStanding]) -> List[StandingRow]:
    return [
        StandingRow(
            rank=i + 1,
            team_id=r.team_id,
            team_name=r.team_name,
            front_number=r.front_number,
            wins=r.wins,
            draws=r.draws,
            losses=r.losses,
            fights=r.fights,
            points=r.points,
            total_duration_seconds=r.total_duration_seconds,
        )
        for i, r in enumerate(rows)
    ]


def _fastest_row(win: FastestWin) -> FastestWinRow:
    return FastestWinRow(
        rooster=win.rooster,
        weight_label=format_weight(win.rooster.weight),
        duration=win.duration,
        fight_number=win.fight_number,
        day=win.day,
    )


def _day_fights(state: TournamentState, day: int) -> List[Fight]:
    """Recorded result if the day is closed, otherwise its decided live fights"""
    result = state.daily_result(day)
    if result is not None:
        return result.peleas
    return [f for f in state.day(day).fights if f.is_finished]


@router.get("/tournaments/{tournament_id}/results/days", response_model=List[int])
def get_result_days(tournament_id: int, session: Session = Depends(get_session)):
    """Days with a recorded result"""
    _, state = load_or_404(session, tournament_id)
    return [r.day for r in state.daily_results]


@router.get("/tournaments/{tournament_id}/results/days/{day}", response_model=DayResultsResponse)
def get_day_results(tournament_id: int, day: int, session: Session = Depends(get_session)):
    _, state = load_or_404(session, tournament_id)
    if day < 1 or day > state.rules.tournament_days:
        raise HTTPException(status_code=404, detail=f"Day {day} is outside 1..{state.rules.tournament_days}")

    fights = sorted(_day_fights(state, day), key=lambda f: f.fight_number)
    return DayResultsResponse(
        day=day,
        is_read_only=day < state.current_day,
        fights=fights,
        standings=_standing_rows(daily_standings(fights, state.teams, state.rules)),
        fastest=[_fastest_row(w) for w in fastest_winners(fights, day=day)],
    )


@router.get("/tournaments/{tournament_id}/results", response_model=TournamentResultsResponse)
def get_tournament_results(tournament_id: int, session: Session = Depends(get_session)):
    """Tournament table (fronts merged into their stable) and fastest win overall"""
    _, state = load_or_404(session, tournament_id)
    fastest = fastest_of_tournament(state.daily_results)
    return TournamentResultsResponse(
        tournament_name=state.rules.name,
        days_played=[r.day for r in state.daily_results],
        is_finished=state.is_finished,
        standings=_standing_rows(tournament_standings(state.daily_results, state.teams, state.rules)),
        fastest=_fastest_row(fastest) if fastest else None,
    )
