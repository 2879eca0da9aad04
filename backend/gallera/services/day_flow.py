"""
Tournament day flow: SETUP -> MATCHMAKING -> LIVE_FIGHT -> RESULTS.

Every transition takes a TournamentState and returns a new one; the input
is never mutated. Persisting the returned state is the caller's job.

Day end is automatic: as soon as the live card of the current day has no
unresolved fight left, the day's result is recorded and the tournament
moves to the next day (or to TOURNAMENT_RESULTS after the last one).
"""

import datetime
import logging
from typing import List, Optional, Tuple

from pydantic import BaseModel

from gallera.models.entities import DEFAULT_TOURNAMENT_NAME
from gallera.models.fight import DailyResult, Fight, Winner
from gallera.models.tournament_state import Stage, TournamentState
from gallera.services.matchmaking import add_manual_fight, build_matchmaking_result

logger = logging.getLogger(__name__)

# Draws are assumed to go the full distance
DRAW_DURATION_SECONDS = 8 * 60


class DayFlowError(Exception):
    """Base exception for day flow errors"""

    pass


class ReadOnlyDayError(DayFlowError):
    """The viewed day is already closed"""

    pass


class InvalidTransitionError(DayFlowError):
    """The requested transition is not allowed from the current state"""

    pass


class FightResultError(DayFlowError):
    """A fight result was rejected (validation)"""

    pass


class NewTournamentImpact(BaseModel):
    fights_removed: int
    daily_results_removed: int
    days_with_matchmaking: int
    teams_kept: int
    roosters_kept: int


class ResetImpact(BaseModel):
    teams_removed: int
    roosters_removed: int
    fights_removed: int
    daily_results_removed: int


def _copy(state: TournamentState) -> TournamentState:
    return state.model_copy(deep=True)


def require_writable(state: TournamentState) -> None:
    if state.is_read_only:
        raise ReadOnlyDayError(
            f"Day {state.viewing_day} is closed; only day {state.current_day} can be modified"
        )


def duration_from_timer(minutes: int, seconds: int) -> int:
    """Operator timer (mm:ss) -> seconds. Seconds are capped at 59."""
    return max(minutes, 0) * 60 + min(max(seconds, 0), 59)


# ============================================================================
# Matchmaking
# ============================================================================


def run_matchmaking(state: TournamentState) -> TournamentState:
    """Pair the current day's roster and store the result for that day."""
    require_writable(state)
    if state.is_finished:
        raise InvalidTransitionError("Tournament is finished")
    if state.is_tournament_in_progress:
        raise InvalidTransitionError(f"Day {state.current_day} is being fought; matchmaking is locked")

    new_state = _copy(state)
    record = new_state.ensure_day(new_state.current_day)
    record.matchmaking = build_matchmaking_result(record.roosters, new_state.rules, new_state.teams)
    new_state.viewing_day = new_state.current_day
    new_state.stage = Stage.MATCHMAKING
    return new_state


def create_manual_fight(state: TournamentState, rooster_a_id: str, rooster_b_id: str) -> TournamentState:
    """Append an operator-chosen fight to the current day's matchmaking result."""
    require_writable(state)
    if state.is_finished:
        raise InvalidTransitionError("Tournament is finished")
    record = state.day(state.current_day)
    if record.matchmaking is None:
        raise InvalidTransitionError(f"No matchmaking result for day {state.current_day}")

    new_state = _copy(state)
    new_record = new_state.ensure_day(new_state.current_day)
    new_record.matchmaking = add_manual_fight(new_record.matchmaking, rooster_a_id, rooster_b_id)
    return new_state


def start_day(state: TournamentState) -> TournamentState:
    """Copy the day's main card into the authoritative fight list and go live.

    Later edits to the matchmaking result do not touch the live card.
    """
    require_writable(state)
    if state.is_finished:
        raise InvalidTransitionError("Tournament is finished")
    record = state.day(state.current_day)
    if record.matchmaking is None:
        raise InvalidTransitionError(f"No matchmaking result for day {state.current_day}")
    if not record.matchmaking.main_fights:
        raise InvalidTransitionError(f"Day {state.current_day} has no fights to start")
    if state.is_tournament_in_progress:
        raise InvalidTransitionError(f"Day {state.current_day} is already live")

    new_state = _copy(state)
    new_record = new_state.ensure_day(new_state.current_day)
    new_record.fights = [f.model_copy(deep=True) for f in new_record.matchmaking.main_fights]
    new_state.stage = Stage.LIVE_FIGHT

    logger.info("Day %d live with %d fights", new_state.current_day, len(new_record.fights))
    return new_state


# ============================================================================
# Live fights
# ============================================================================


def pending_fights(state: TournamentState) -> List[Fight]:
    """Unresolved fights of the current day, lowest fight number first."""
    fights = state.day(state.current_day).fights
    return sorted((f for f in fights if not f.is_finished), key=lambda f: f.fight_number)


def current_fight(state: TournamentState) -> Optional[Fight]:
    pending = pending_fights(state)
    return pending[0] if pending else None


def finish_fight(
    state: TournamentState, fight_id: str, winner: Winner, duration: Optional[int]
) -> TournamentState:
    """Record a fight outcome exactly once.

    Draws always store DRAW_DURATION_SECONDS. A win needs a positive
    duration. Ids that are not pending on the current day are ignored.
    A finished tournament accepts no further results.
    """
    if state.is_finished:
        raise InvalidTransitionError("Tournament is finished; no further results can be recorded")

    fights = state.day(state.current_day).fights
    target = next((f for f in fights if f.id == fight_id and not f.is_finished), None)
    if target is None:
        logger.debug("finish_fight: %s is not pending on day %d, ignored", fight_id, state.current_day)
        return state

    winner = Winner(winner)
    if winner == Winner.DRAW:
        duration = DRAW_DURATION_SECONDS
    elif not duration or duration <= 0:
        raise FightResultError("Duration must be greater than zero for a win")

    new_state = _copy(state)
    record = new_state.ensure_day(new_state.current_day)
    for fight in record.fights:
        if fight.id == fight_id:
            fight.winner = winner
            fight.duration = duration
            break

    logger.info(
        "Day %d fight #%d finished: winner=%s duration=%ss",
        new_state.current_day,
        target.fight_number,
        winner.value,
        duration,
    )

    if record.fights and all(f.is_finished for f in record.fights):
        return end_day(new_state)
    return new_state


def _record_daily_result(state: TournamentState, day: int, fights: List[Fight]) -> None:
    others = [r for r in state.daily_results if r.day != day]
    others.append(DailyResult(day=day, peleas=[f.model_copy(deep=True) for f in fights]))
    state.daily_results = sorted(others, key=lambda r: r.day)


def end_day(state: TournamentState) -> TournamentState:
    """Close the current day and roll forward."""
    new_state = _copy(state)
    day = new_state.current_day
    finished = [f for f in new_state.day(day).fights if f.is_finished]
    _record_daily_result(new_state, day, finished)
    logger.info("Day %d results saved (%d fights)", day, len(finished))

    if day >= new_state.rules.tournament_days:
        new_state.is_finished = True
        new_state.stage = Stage.TOURNAMENT_RESULTS
        logger.info("Tournament finished after day %d", day)
        return new_state

    next_day = day + 1
    new_state.current_day = next_day
    new_state.viewing_day = next_day
    new_state.ensure_day(next_day)
    new_state.stage = Stage.SETUP
    return new_state


def finish_tournament(state: TournamentState) -> TournamentState:
    """Early termination from the live stage.

    Already-resolved fights of the current day become that day's result;
    remaining days are skipped.
    """
    if state.stage != Stage.LIVE_FIGHT:
        raise InvalidTransitionError("The tournament can only be ended early from the live fight stage")

    new_state = _copy(state)
    day = new_state.current_day
    finished = [f for f in new_state.day(day).fights if f.is_finished]
    if finished:
        _record_daily_result(new_state, day, finished)

    new_state.is_finished = True
    new_state.stage = Stage.TOURNAMENT_RESULTS
    logger.info("Tournament ended early on day %d (%d fights recorded)", day, len(finished))
    return new_state


# ============================================================================
# Navigation
# ============================================================================


def select_day(state: TournamentState, day: int) -> TournamentState:
    """View a day. Closed days open on their results, read-only.

    Only days up to the current one can be opened.
    """
    if day < 1 or day > state.rules.tournament_days:
        raise InvalidTransitionError(f"Day {day} is outside 1..{state.rules.tournament_days}")
    if day > state.current_day:
        raise InvalidTransitionError(f"Day {day} has not started; day {state.current_day} is in play")

    new_state = _copy(state)
    new_state.viewing_day = day
    new_state.stage = Stage.RESULTS if new_state.daily_result(day) is not None else Stage.SETUP
    return new_state


def resume_live(state: TournamentState) -> TournamentState:
    if state.is_finished:
        raise InvalidTransitionError("Tournament is finished")
    if not state.is_tournament_in_progress:
        raise InvalidTransitionError(f"Day {state.current_day} has no fight in progress")

    new_state = _copy(state)
    new_state.viewing_day = new_state.current_day
    new_state.stage = Stage.LIVE_FIGHT
    return new_state


def show_tournament_results(state: TournamentState) -> TournamentState:
    if not (state.is_finished or len(state.daily_results) >= state.rules.tournament_days):
        raise InvalidTransitionError("Tournament results are available once every day is finished")

    new_state = _copy(state)
    new_state.stage = Stage.TOURNAMENT_RESULTS
    return new_state


# ============================================================================
# New tournament / reset (two-phase: preview, then commit)
# ============================================================================


def preview_new_tournament(state: TournamentState) -> NewTournamentImpact:
    records = state.days.values()
    return NewTournamentImpact(
        fights_removed=sum(len(r.fights) for r in records),
        daily_results_removed=len(state.daily_results),
        days_with_matchmaking=sum(1 for r in records if r.matchmaking is not None),
        teams_kept=len(state.teams),
        roosters_kept=sum(len(r.roosters) for r in records),
    )


def new_tournament(state: TournamentState, today: Optional[datetime.date] = None) -> TournamentState:
    """Clear fights and results; keep teams, rules and every day's roster."""
    new_state = _copy(state)
    for record in new_state.days.values():
        record.fights = []
        record.matchmaking = None
    new_state.ensure_day(1)
    new_state.daily_results = []
    new_state.current_day = 1
    new_state.viewing_day = 1
    new_state.is_finished = False
    new_state.stage = Stage.SETUP
    new_state.rules = new_state.rules.model_copy(
        update={"name": DEFAULT_TOURNAMENT_NAME, "date": today or datetime.date.today()}
    )
    logger.info("New tournament started; %d teams kept", len(new_state.teams))
    return new_state


def preview_reset(state: TournamentState) -> ResetImpact:
    records = state.days.values()
    return ResetImpact(
        teams_removed=len(state.teams),
        roosters_removed=sum(len(r.roosters) for r in records),
        fights_removed=sum(len(r.fights) for r in records),
        daily_results_removed=len(state.daily_results),
    )


def reset_state() -> TournamentState:
    return TournamentState()


def day_summary(state: TournamentState) -> Tuple[int, int]:
    """(total fights, pending fights) on the current day's live card."""
    fights = state.day(state.current_day).fights
    return len(fights), sum(1 for f in fights if not f.is_finished)
