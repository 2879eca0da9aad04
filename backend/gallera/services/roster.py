"""
Setup operations: teams and fronts, roosters of the current day, rules and
exception pairs.

Like the day flow, every mutation takes a TournamentState and returns a new
one. Destructive edits come with a preview_* function that reports what the
commit would delete, so confirmation stays a caller concern.
"""

import datetime
import logging
import re
import uuid
from typing import List, Optional, Sequence, Tuple, Union

from pydantic import BaseModel, Field

from gallera.models.entities import (
    MAX_TOURNAMENT_WEIGHT,
    MIN_TOURNAMENT_WEIGHT,
    BaseTeam,
    ExceptionPair,
    Front,
    Rooster,
    TipoGallo,
    front_name,
)
from gallera.models.tournament_state import TournamentState
from gallera.services.day_flow import require_writable
from gallera.utils.demo_data import DEMO_TEAMS, demo_roosters
from gallera.utils.weights import format_weight

logger = logging.getLogger(__name__)

CITY_PREFIX = "city:"


class RosterError(Exception):
    """Base exception for setup errors"""

    pass


class RosterValidationError(RosterError):
    """User-correctable rejection; nothing was changed"""

    pass


class TeamIntegrityError(RosterError):
    """The change would orphan fronts"""

    pass


class TeamNotFoundError(RosterError):
    pass


class RoosterNotFoundError(RosterError):
    pass


# ============================================================================
# Inputs / impact reports
# ============================================================================


class TeamForm(BaseModel):
    name: str = Field(min_length=1)
    owner: str = ""
    city: Optional[str] = None
    front_count: int = Field(default=1, ge=1)


class RoosterForm(BaseModel):
    ring_id: str
    color: str
    cuerda_id: str
    weight: int = Field(ge=0)
    age_months: int = Field(ge=0)
    marking_id: str = ""
    breeder_plate_id: Optional[str] = None
    tipo_gallo: TipoGallo = TipoGallo.LISO
    marca: int = Field(default=0, ge=0)


class RulesUpdate(BaseModel):
    name: Optional[str] = None
    tournament_manager: Optional[str] = None
    date: Optional[datetime.date] = None
    weight_tolerance: Optional[int] = Field(default=None, ge=0)
    age_tolerance_months: Optional[int] = Field(default=None, ge=0)
    min_weight: Optional[int] = Field(default=None, ge=0)
    max_weight: Optional[int] = Field(default=None, ge=0)
    roosters_per_team: Optional[int] = Field(default=None, ge=0)
    points_for_win: Optional[int] = Field(default=None, ge=0)
    points_for_draw: Optional[int] = Field(default=None, ge=0)
    tournament_days: Optional[int] = Field(default=None, ge=1)


class DeletionImpact(BaseModel):
    blocked: bool = False
    reason: Optional[str] = None
    fronts_removed: int = 0
    roosters_removed: int = 0


def _copy(state: TournamentState) -> TournamentState:
    return state.model_copy(deep=True)


def _new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


def _natural_key(name: str):
    return [int(part) if part.isdigit() else part.lower() for part in re.split(r"(\d+)", name)]


def _require_team(state: TournamentState, team_id: str) -> Union[BaseTeam, Front]:
    team = state.find_team(team_id)
    if team is None:
        raise TeamNotFoundError(f"Team {team_id} not found")
    return team


def _fronts_in_order(state: TournamentState, base_id: str) -> List[Union[BaseTeam, Front]]:
    """Base record (F1) plus its fronts, in natural name order."""
    members = [t for t in state.teams if t.id == base_id or (isinstance(t, Front) and t.parent_id == base_id)]
    return sorted(members, key=lambda t: _natural_key(t.name))


def _base_id_of(team: Union[BaseTeam, Front]) -> str:
    return team.parent_id if isinstance(team, Front) else team.id


def _count_roosters(state: TournamentState, team_ids: Sequence[str]) -> int:
    ids = set(team_ids)
    return sum(1 for r in state.all_roosters() if r.cuerda_id in ids)


def _drop_roosters(state: TournamentState, team_ids: Sequence[str]) -> None:
    ids = set(team_ids)
    for record in state.days.values():
        record.roosters = [r for r in record.roosters if r.cuerda_id not in ids]


# ============================================================================
# Teams
# ============================================================================


def preview_front_reduction(state: TournamentState, team_id: str, front_count: int) -> DeletionImpact:
    team = _require_team(state, team_id)
    members = _fronts_in_order(state, _base_id_of(team))
    surplus = members[max(front_count, 1):]
    return DeletionImpact(
        fronts_removed=len(surplus),
        roosters_removed=_count_roosters(state, [t.id for t in surplus]),
    )


def save_team(state: TournamentState, form: TeamForm, team_id: Optional[str] = None) -> TournamentState:
    """Create a team with its fronts, or edit one (rename, add or drop fronts).

    Dropping fronts deletes their roosters on every day.
    """
    require_writable(state)
    new_state = _copy(state)
    name = form.name.strip()

    if team_id is None:
        base = BaseTeam(id=_new_id("cuerda"), name=front_name(name, 1), owner=form.owner, city=form.city)
        new_state.teams.append(base)
        for number in range(2, form.front_count + 1):
            new_state.teams.append(
                Front(
                    id=_new_id("cuerda"),
                    name=front_name(name, number),
                    owner=form.owner,
                    city=form.city,
                    parent_id=base.id,
                )
            )
        logger.info("Team '%s' added with %d front(s)", name, form.front_count)
        return new_state

    team = _require_team(new_state, team_id)
    base_id = _base_id_of(team)
    members = _fronts_in_order(new_state, base_id)

    surplus = members[form.front_count:]
    if surplus:
        surplus_ids = [t.id for t in surplus]
        _drop_roosters(new_state, surplus_ids)
        new_state.teams = [t for t in new_state.teams if t.id not in set(surplus_ids)]
        logger.info("Team %s: removed %d front(s)", base_id, len(surplus))
    kept = members[: form.front_count]

    renamed = {t.id: front_name(name, i + 1) for i, t in enumerate(kept)}
    new_state.teams = [
        t.model_copy(update={"name": renamed[t.id], "owner": form.owner, "city": form.city}) if t.id in renamed else t
        for t in new_state.teams
    ]
    for number in range(len(kept) + 1, form.front_count + 1):
        new_state.teams.append(
            Front(
                id=_new_id("cuerda"),
                name=front_name(name, number),
                owner=form.owner,
                city=form.city,
                parent_id=base_id,
            )
        )
    return new_state


def preview_team_deletion(state: TournamentState, team_id: str) -> DeletionImpact:
    team = _require_team(state, team_id)
    if isinstance(team, BaseTeam) and state.fronts_of(team.id):
        return DeletionImpact(
            blocked=True,
            reason="Delete the secondary fronts before the main front (F1)",
        )
    return DeletionImpact(fronts_removed=1, roosters_removed=_count_roosters(state, [team.id]))


def delete_team(state: TournamentState, team_id: str) -> TournamentState:
    """Delete one front (or a base without fronts) and its roosters on all days."""
    require_writable(state)
    team = _require_team(state, team_id)
    if isinstance(team, BaseTeam) and state.fronts_of(team.id):
        raise TeamIntegrityError(
            f"Team {team.name} still has {len(state.fronts_of(team.id))} front(s); delete them first"
        )

    new_state = _copy(state)
    removed = _count_roosters(new_state, [team_id])
    _drop_roosters(new_state, [team_id])
    new_state.teams = [t for t in new_state.teams if t.id != team_id]
    if isinstance(team, BaseTeam):
        new_state.rules.exceptions = [ex for ex in new_state.rules.exceptions if not ex.involves(team_id)]

    logger.info("Team %s deleted with %d rooster(s)", team_id, removed)
    return new_state


# ============================================================================
# Roosters (current day)
# ============================================================================


def _validate_rooster(
    state: TournamentState, form: RoosterForm, rooster_id: Optional[str], previous_team: Optional[str]
) -> None:
    if state.find_team(form.cuerda_id) is None:
        raise RosterValidationError(f"Team {form.cuerda_id} not found")

    if not form.ring_id.strip():
        raise RosterValidationError("Ring id is required")
    ring = form.ring_id.strip().lower()
    roster = state.day(state.current_day).roosters
    if any(r.ring_id.strip().lower() == ring and r.id != rooster_id for r in roster):
        raise RosterValidationError(f"Ring id '{form.ring_id}' already exists")

    if not form.marca or not form.age_months:
        raise RosterValidationError("Marca and age are required")

    rules = state.rules
    if not rules.weight_in_band(form.weight):
        raise RosterValidationError(
            f"Weight {format_weight(form.weight)} must be between "
            f"{format_weight(rules.min_weight)} and {format_weight(rules.max_weight)}"
        )

    # Cap applies to new roosters and to roosters moving to another front
    if rules.roosters_per_team > 0 and previous_team != form.cuerda_id:
        count = sum(1 for r in roster if r.cuerda_id == form.cuerda_id)
        if count >= rules.roosters_per_team:
            team = state.find_team(form.cuerda_id)
            raise RosterValidationError(f"{team.name} has reached the limit of {rules.roosters_per_team} roosters")


def _rooster_from_form(rooster_id: str, form: RoosterForm) -> Rooster:
    return Rooster(
        id=rooster_id,
        ring_id=form.ring_id.strip(),
        color=form.color,
        cuerda_id=form.cuerda_id,
        weight=form.weight,
        age_months=form.age_months,
        marking_id=form.marking_id,
        breeder_plate_id=(form.breeder_plate_id or "").strip() or "N/A",
        tipo_gallo=form.tipo_gallo,
        marca=form.marca,
    )


def add_rooster(state: TournamentState, form: RoosterForm) -> Tuple[TournamentState, Rooster]:
    require_writable(state)
    _validate_rooster(state, form, rooster_id=None, previous_team=None)

    rooster = _rooster_from_form(_new_id("gallo"), form)
    new_state = _copy(state)
    new_state.ensure_day(new_state.current_day).roosters.append(rooster)
    return new_state, rooster


def update_rooster(state: TournamentState, rooster_id: str, form: RoosterForm) -> Tuple[TournamentState, Rooster]:
    require_writable(state)
    roster = state.day(state.current_day).roosters
    existing = next((r for r in roster if r.id == rooster_id), None)
    if existing is None:
        raise RoosterNotFoundError(f"Rooster {rooster_id} not found on day {state.current_day}")
    _validate_rooster(state, form, rooster_id=rooster_id, previous_team=existing.cuerda_id)

    rooster = _rooster_from_form(rooster_id, form)
    new_state = _copy(state)
    record = new_state.ensure_day(new_state.current_day)
    record.roosters = [rooster if r.id == rooster_id else r for r in record.roosters]
    return new_state, rooster


def delete_rooster(state: TournamentState, rooster_id: str) -> TournamentState:
    require_writable(state)
    roster = state.day(state.current_day).roosters
    if not any(r.id == rooster_id for r in roster):
        raise RoosterNotFoundError(f"Rooster {rooster_id} not found on day {state.current_day}")

    new_state = _copy(state)
    record = new_state.ensure_day(new_state.current_day)
    record.roosters = [r for r in record.roosters if r.id != rooster_id]
    return new_state


# ============================================================================
# Rules and exceptions
# ============================================================================


def update_rules(state: TournamentState, update: RulesUpdate) -> TournamentState:
    """Partial rules update. The weight band is clamped so min <= max."""
    require_writable(state)
    new_state = _copy(state)
    rules = new_state.rules
    changes = update.model_dump(exclude_unset=True, exclude_none=True)

    min_weight = changes.pop("min_weight", None)
    max_weight = changes.pop("max_weight", None)
    rules = rules.model_validate({**rules.model_dump(), **changes})
    if rules.tournament_days < new_state.current_day:
        raise RosterValidationError(
            f"tournament_days cannot be lower than the day in play ({new_state.current_day})"
        )

    if min_weight is not None:
        clamped = max(MIN_TOURNAMENT_WEIGHT, min_weight)
        rules.min_weight = min(clamped, rules.max_weight)
    if max_weight is not None:
        clamped = min(MAX_TOURNAMENT_WEIGHT, max_weight)
        rules.max_weight = max(clamped, rules.min_weight)

    new_state.rules = rules
    return new_state


def _selection_ids(state: TournamentState, selection: str) -> List[str]:
    """A selection is a base team id or "city:<name>" (every base team of that city)."""
    if selection.startswith(CITY_PREFIX):
        city = selection[len(CITY_PREFIX):]
        return [t.id for t in state.teams if isinstance(t, BaseTeam) and t.city == city]
    team = state.find_team(selection)
    if team is None:
        raise TeamNotFoundError(f"Team {selection} not found")
    return [_base_id_of(team)]


def add_exceptions(state: TournamentState, selection_1: str, selection_2: str) -> Tuple[TournamentState, int]:
    """Forbid every pairing between the two selections; returns how many pairs were new."""
    require_writable(state)
    ids_1 = _selection_ids(state, selection_1)
    ids_2 = _selection_ids(state, selection_2)

    new_state = _copy(state)
    known = new_state.rules.exception_keys()
    added = 0
    for id_1 in ids_1:
        for id_2 in ids_2:
            if id_1 == id_2:
                continue
            pair = ExceptionPair(cuerda1_id=id_1, cuerda2_id=id_2)
            if pair.key() in known:
                continue
            known.add(pair.key())
            new_state.rules.exceptions.append(pair)
            added += 1
    return new_state, added


def remove_exception(state: TournamentState, cuerda1_id: str, cuerda2_id: str) -> TournamentState:
    require_writable(state)
    key = ExceptionPair(cuerda1_id=cuerda1_id, cuerda2_id=cuerda2_id).key()
    new_state = _copy(state)
    new_state.rules.exceptions = [ex for ex in new_state.rules.exceptions if ex.key() != key]
    return new_state


# ============================================================================
# Demo data
# ============================================================================


def load_demo_data(state: TournamentState, seed: Optional[int] = None) -> TournamentState:
    """Replace the teams and the current day's roster with the demo set."""
    require_writable(state)
    new_state = _copy(state)
    new_state.teams = [t.model_copy() for t in DEMO_TEAMS]
    new_state.ensure_day(new_state.current_day).roosters = demo_roosters(seed)
    logger.info("Demo data loaded on day %d", new_state.current_day)
    return new_state
