"""Setup operations: teams and fronts, roosters, rules and exception pairs."""
import pytest

from gallera.models.entities import (
    MAX_TOURNAMENT_WEIGHT,
    MIN_TOURNAMENT_WEIGHT,
    BaseTeam,
    ExceptionPair,
    Front,
    TipoEdad,
    TournamentRules,
)
from gallera.models.tournament_state import DayRecord, TournamentState
from gallera.services import roster
from gallera.services.day_flow import ReadOnlyDayError
from gallera.services.roster import (
    RoosterForm,
    RoosterNotFoundError,
    RosterValidationError,
    RulesUpdate,
    TeamForm,
    TeamIntegrityError,
    TeamNotFoundError,
)
from gallera.utils.demo_data import DEMO_ROOSTER_COUNT, DEMO_TEAMS
from gallera.utils.weights import format_weight, from_lbs_oz, to_lbs_oz
from tests.factories import make_rooster


def _form(**overrides) -> RoosterForm:
    data = dict(ring_id="R-100", color="Giro", cuerda_id="T2", weight=50, age_months=14, marca=3)
    data.update(overrides)
    return RoosterForm(**data)


@pytest.fixture
def state(teams):
    return TournamentState(
        teams=teams,
        days={
            1: DayRecord(
                roosters=[
                    make_rooster("g1", "T1", ring_id="R-1"),
                    make_rooster("g2", "T1F2", ring_id="R-2"),
                    make_rooster("g3", "T3", ring_id="R-3"),
                ]
            )
        },
    )


def _team_names(state, base_id):
    return sorted(t.name for t in state.teams if t.id == base_id or getattr(t, "parent_id", None) == base_id)


class TestSaveTeam:
    def test_add_creates_base_and_fronts(self, state):
        new_state = roster.save_team(state, TeamForm(name="Cuatro", owner="Ana", city="Cali", front_count=3))

        base = next(t for t in new_state.teams if t.name == "Cuatro (F1)")
        assert isinstance(base, BaseTeam)
        fronts = new_state.fronts_of(base.id)
        assert sorted(f.name for f in fronts) == ["Cuatro (F2)", "Cuatro (F3)"]
        assert all(f.owner == "Ana" and f.city == "Cali" for f in fronts)
        assert len(state.teams) == 4

    def test_edit_renames_every_front(self, state):
        new_state = roster.save_team(state, TeamForm(name="Primero", front_count=2), team_id="T1")
        assert _team_names(new_state, "T1") == ["Primero (F1)", "Primero (F2)"]

    def test_edit_adds_missing_fronts(self, state):
        new_state = roster.save_team(state, TeamForm(name="Dos", front_count=3), team_id="T2")
        assert _team_names(new_state, "T2") == ["Dos (F1)", "Dos (F2)", "Dos (F3)"]

    def test_edit_drops_surplus_fronts_and_their_roosters(self, state):
        impact = roster.preview_front_reduction(state, "T1", 1)
        assert impact.fronts_removed == 1
        assert impact.roosters_removed == 1

        new_state = roster.save_team(state, TeamForm(name="Uno", front_count=1), team_id="T1")

        assert new_state.find_team("T1F2") is None
        assert [r.id for r in new_state.day(1).roosters] == ["g1", "g3"]

    def test_edit_through_front_id_targets_the_stable(self, state):
        new_state = roster.save_team(state, TeamForm(name="Uno", front_count=2), team_id="T1F2")
        assert _team_names(new_state, "T1") == ["Uno (F1)", "Uno (F2)"]

    def test_edit_unknown_team(self, state):
        with pytest.raises(TeamNotFoundError):
            roster.save_team(state, TeamForm(name="X"), team_id="nope")

    def test_front_count_must_be_positive(self):
        with pytest.raises(ValueError):
            TeamForm(name="X", front_count=0)


class TestDeleteTeam:
    def test_base_with_fronts_is_blocked(self, state):
        impact = roster.preview_team_deletion(state, "T1")
        assert impact.blocked
        assert impact.reason

        with pytest.raises(TeamIntegrityError):
            roster.delete_team(state, "T1")

    def test_delete_front_cascades_roosters(self, state):
        impact = roster.preview_team_deletion(state, "T1F2")
        assert not impact.blocked
        assert impact.roosters_removed == 1

        new_state = roster.delete_team(state, "T1F2")

        assert new_state.find_team("T1F2") is None
        assert "g2" not in [r.id for r in new_state.day(1).roosters]
        # with its front gone the base can be deleted
        assert not roster.preview_team_deletion(new_state, "T1").blocked

    def test_delete_base_drops_its_exceptions(self, state):
        state.rules.exceptions = [
            ExceptionPair(cuerda1_id="T3", cuerda2_id="T2"),
            ExceptionPair(cuerda1_id="T1", cuerda2_id="T2"),
        ]
        new_state = roster.delete_team(state, "T3")

        assert [ex.key() for ex in new_state.rules.exceptions] == [("T1", "T2")]
        assert [r.id for r in new_state.day(1).roosters] == ["g1", "g2"]

    def test_delete_cascades_over_every_day(self, state):
        state.days[2] = DayRecord(roosters=[make_rooster("g9", "T3")])
        new_state = roster.delete_team(state, "T3")
        assert new_state.day(2).roosters == []


class TestRoosters:
    def test_add_rooster(self, state):
        new_state, rooster = roster.add_rooster(state, _form())

        assert rooster.id.startswith("gallo-")
        assert rooster.tipo_edad == TipoEdad.GALLO
        assert rooster.breeder_plate_id == "N/A"
        assert new_state.day(1).roosters[-1] == rooster
        assert len(state.day(1).roosters) == 3

    def test_young_rooster_is_pollo(self, state):
        _, rooster = roster.add_rooster(state, _form(age_months=11))
        assert rooster.tipo_edad == TipoEdad.POLLO

    def test_duplicate_ring_rejected_case_insensitive(self, state):
        with pytest.raises(RosterValidationError, match="already exists"):
            roster.add_rooster(state, _form(ring_id="  r-1 "))

    def test_editing_keeps_own_ring(self, state):
        new_state, rooster = roster.update_rooster(state, "g3", _form(ring_id="R-3", cuerda_id="T3"))
        assert rooster.id == "g3"
        assert new_state.day(1).roosters[2].marca == 3

    def test_weight_outside_band_rejected(self, state):
        with pytest.raises(RosterValidationError, match="Weight"):
            roster.add_rooster(state, _form(weight=state.rules.max_weight + 1))

    @pytest.mark.parametrize("field", ["marca", "age_months"])
    def test_marca_and_age_required(self, state, field):
        with pytest.raises(RosterValidationError):
            roster.add_rooster(state, _form(**{field: 0}))

    def test_unknown_team_rejected(self, state):
        with pytest.raises(RosterValidationError):
            roster.add_rooster(state, _form(cuerda_id="nope"))

    def test_cap_per_front(self, state):
        state.rules.roosters_per_team = 1
        with pytest.raises(RosterValidationError, match="limit"):
            roster.add_rooster(state, _form(cuerda_id="T1"))

        # editing in place is not blocked by the cap
        roster.update_rooster(state, "g1", _form(ring_id="R-1", cuerda_id="T1"))

        # moving to a full front is
        with pytest.raises(RosterValidationError):
            roster.update_rooster(state, "g3", _form(ring_id="R-3", cuerda_id="T1"))

    def test_zero_cap_is_unlimited(self, state):
        state.rules.roosters_per_team = 0
        new_state, _ = roster.add_rooster(state, _form(cuerda_id="T1"))
        assert sum(1 for r in new_state.day(1).roosters if r.cuerda_id == "T1") == 2

    def test_delete_rooster(self, state):
        new_state = roster.delete_rooster(state, "g2")
        assert [r.id for r in new_state.day(1).roosters] == ["g1", "g3"]

        with pytest.raises(RoosterNotFoundError):
            roster.delete_rooster(state, "missing")

    def test_closed_day_is_read_only(self, state):
        state.current_day = 2
        state.viewing_day = 1
        with pytest.raises(ReadOnlyDayError):
            roster.add_rooster(state, _form())
        with pytest.raises(ReadOnlyDayError):
            roster.save_team(state, TeamForm(name="X"))
        with pytest.raises(ReadOnlyDayError):
            roster.update_rules(state, RulesUpdate(points_for_win=5))


class TestRules:
    def test_partial_update(self, state):
        new_state = roster.update_rules(state, RulesUpdate(points_for_win=5, tournament_days=3))
        assert new_state.rules.points_for_win == 5
        assert new_state.rules.tournament_days == 3
        assert new_state.rules.points_for_draw == 1

    def test_min_weight_clamped(self, state):
        new_state = roster.update_rules(state, RulesUpdate(min_weight=10))
        assert new_state.rules.min_weight == MIN_TOURNAMENT_WEIGHT

        new_state = roster.update_rules(state, RulesUpdate(min_weight=state.rules.max_weight + 5))
        assert new_state.rules.min_weight == state.rules.max_weight

    def test_max_weight_clamped(self, state):
        new_state = roster.update_rules(state, RulesUpdate(max_weight=200))
        assert new_state.rules.max_weight == MAX_TOURNAMENT_WEIGHT

        new_state = roster.update_rules(state, RulesUpdate(max_weight=1))
        assert new_state.rules.max_weight == state.rules.min_weight

    def test_invalid_values_rejected(self):
        with pytest.raises(ValueError):
            RulesUpdate(weight_tolerance=-1)
        with pytest.raises(ValueError):
            RulesUpdate(tournament_days=0)
        with pytest.raises(ValueError):
            TournamentRules(tournament_days=0)

    def test_tournament_days_cannot_drop_below_day_in_play(self, state):
        state.rules.tournament_days = 3
        state.current_day = 2
        state.viewing_day = 2

        with pytest.raises(RosterValidationError, match="day in play"):
            roster.update_rules(state, RulesUpdate(tournament_days=1))

        assert roster.update_rules(state, RulesUpdate(tournament_days=2)).rules.tournament_days == 2


class TestExceptions:
    def test_add_between_teams_uses_base_ids(self, state):
        new_state, added = roster.add_exceptions(state, "T1F2", "T2")
        assert added == 1
        assert [ex.key() for ex in new_state.rules.exceptions] == [("T1", "T2")]

    def test_duplicates_ignored_in_either_order(self, state):
        state, _ = roster.add_exceptions(state, "T1", "T2")
        state, added = roster.add_exceptions(state, "T2", "T1")
        assert added == 0
        assert len(state.rules.exceptions) == 1

    def test_city_expands_to_its_stables(self, state):
        new_state, added = roster.add_exceptions(state, "city:Cali", "T3")
        assert added == 2
        assert sorted(ex.key() for ex in new_state.rules.exceptions) == [("T1", "T3"), ("T2", "T3")]

    def test_city_against_itself_skips_self_pairs(self, state):
        new_state, added = roster.add_exceptions(state, "city:Cali", "city:Cali")
        assert added == 1
        assert [ex.key() for ex in new_state.rules.exceptions] == [("T1", "T2")]

    def test_unknown_team_selection(self, state):
        with pytest.raises(TeamNotFoundError):
            roster.add_exceptions(state, "nope", "T1")

    def test_remove_exception_any_order(self, state):
        state, _ = roster.add_exceptions(state, "T1", "T2")
        state = roster.remove_exception(state, "T2", "T1")
        assert state.rules.exceptions == []


class TestDemoData:
    def test_demo_data_replaces_teams_and_current_roster(self, state):
        new_state = roster.load_demo_data(state, seed=1)

        assert len(new_state.teams) == len(DEMO_TEAMS) == 13
        assert sum(1 for t in new_state.teams if isinstance(t, Front)) == 3
        roosters = new_state.day(1).roosters
        assert len(roosters) == DEMO_ROOSTER_COUNT
        team_ids = {t.id for t in new_state.teams}
        assert all(r.cuerda_id in team_ids for r in roosters)
        assert all(new_state.rules.weight_in_band(r.weight) for r in roosters)


class TestWeights:
    def test_conversions(self):
        assert from_lbs_oz(3, 4) == 52
        assert to_lbs_oz(52) == (3, 4)
        assert to_lbs_oz(-5) == (0, 0)
        assert format_weight(52) == "3.04 Lb.Oz"
