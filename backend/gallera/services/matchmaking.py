"""
Matchmaking (baloteo): greedy closest-weight pairing for a day's card.

Candidate pairs are every i<j pair of the input that passes eligibility:
  - same tipo_gallo
  - different base teams (a rooster never meets its own stable's fronts)
  - base teams not listed as an exception pair
  - weight difference <= weight_tolerance
  - age difference <= age_tolerance_months

Pairs are sorted by (weight diff, age diff); ties keep enumeration order.
The sorted list is walked once and a pair is accepted when neither rooster
was consumed by an earlier pair. This is not a globally optimal matching,
but it is deterministic for a given input order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Sequence, Set

from gallera.models.entities import Rooster, Team, TournamentRules, base_team_id
from gallera.models.fight import Fight, MatchmakingResult, MatchmakingStats

logger = logging.getLogger(__name__)


class ManualPairingError(Exception):
    """Raised when a manual fight cannot be created from the unpaired pool"""

    pass


@dataclass
class CandidatePair:
    rooster_a: Rooster
    rooster_b: Rooster
    weight_diff: int
    age_diff: int


@dataclass
class PairingOutcome:
    fights: List[Fight]
    leftovers: List[Rooster]


def roosters_in_weight_band(roosters: Sequence[Rooster], rules: TournamentRules) -> List[Rooster]:
    """Roosters inside [min_weight, max_weight], input order preserved."""
    return [r for r in roosters if rules.weight_in_band(r.weight)]


def is_exception(rules: TournamentRules, base_a: str, base_b: str) -> bool:
    """Symmetric lookup in the rules' exception list."""
    key = tuple(sorted((base_a, base_b)))
    return key in rules.exception_keys()


def is_eligible_pair(a: Rooster, b: Rooster, rules: TournamentRules, teams: Sequence[Team]) -> bool:
    if a.tipo_gallo != b.tipo_gallo:
        return False

    base_a = base_team_id(teams, a.cuerda_id)
    base_b = base_team_id(teams, b.cuerda_id)
    if base_a == base_b:
        return False
    if is_exception(rules, base_a, base_b):
        return False

    if abs(a.weight - b.weight) > rules.weight_tolerance:
        return False
    if abs(a.age_months - b.age_months) > rules.age_tolerance_months:
        return False
    return True


def enumerate_candidate_pairs(
    roosters: Sequence[Rooster], rules: TournamentRules, teams: Sequence[Team]
) -> List[CandidatePair]:
    """All eligible unordered pairs, in (i, j) enumeration order."""
    # Resolve base teams once; the pair loop is O(n^2)
    base_by_team = {t.id: base_team_id(teams, t.id) for t in teams}
    exception_keys = rules.exception_keys()

    candidates: List[CandidatePair] = []
    for i in range(len(roosters)):
        a = roosters[i]
        base_a = base_by_team.get(a.cuerda_id, a.cuerda_id)
        for j in range(i + 1, len(roosters)):
            b = roosters[j]

            if a.tipo_gallo != b.tipo_gallo:
                continue

            base_b = base_by_team.get(b.cuerda_id, b.cuerda_id)
            if base_a == base_b:
                continue
            if tuple(sorted((base_a, base_b))) in exception_keys:
                continue

            weight_diff = abs(a.weight - b.weight)
            if weight_diff > rules.weight_tolerance:
                continue

            age_diff = abs(a.age_months - b.age_months)
            if age_diff > rules.age_tolerance_months:
                continue

            candidates.append(CandidatePair(rooster_a=a, rooster_b=b, weight_diff=weight_diff, age_diff=age_diff))

    return candidates


def find_maximum_pairs(
    roosters: Sequence[Rooster], rules: TournamentRules, teams: Sequence[Team]
) -> PairingOutcome:
    """Greedy pairing over the candidate list.

    Fights are numbered 1..n in acceptance order. Leftovers keep the
    input order. Empty or unpairable input returns no fights and every
    rooster as a leftover.
    """
    candidates = enumerate_candidate_pairs(roosters, rules, teams)
    # list.sort is stable: equal keys keep enumeration order
    candidates.sort(key=lambda c: (c.weight_diff, c.age_diff))

    fights: List[Fight] = []
    paired_ids: Set[str] = set()

    for candidate in candidates:
        a, b = candidate.rooster_a, candidate.rooster_b
        if a.id in paired_ids or b.id in paired_ids:
            continue

        fights.append(
            Fight(
                id=f"pelea-{a.id}-{b.id}",
                fight_number=len(fights) + 1,
                rooster_a=a,
                rooster_b=b,
            )
        )
        paired_ids.add(a.id)
        paired_ids.add(b.id)

    leftovers = [r for r in roosters if r.id not in paired_ids]
    return PairingOutcome(fights=fights, leftovers=leftovers)


def build_matchmaking_result(
    roosters: Sequence[Rooster], rules: TournamentRules, teams: Sequence[Team]
) -> MatchmakingResult:
    """Apply the weight band, pair, and package the day's result."""
    in_band = roosters_in_weight_band(roosters, rules)
    outcome = find_maximum_pairs(in_band, rules, teams)

    logger.info(
        "Matchmaking: %d roosters (%d in band) -> %d fights, %d unpaired",
        len(roosters),
        len(in_band),
        len(outcome.fights),
        len(outcome.leftovers),
    )

    return MatchmakingResult(
        main_fights=outcome.fights,
        unpaired_roosters=outcome.leftovers,
        stats=MatchmakingStats(
            eligible_roosters_count=len(in_band),
            excluded_roosters_count=len(roosters) - len(in_band),
            fights_count=len(outcome.fights),
            unpaired_count=len(outcome.leftovers),
        ),
    )


def add_manual_fight(result: MatchmakingResult, rooster_a_id: str, rooster_b_id: str) -> MatchmakingResult:
    """Force a fight between two unpaired roosters.

    No eligibility rule is checked: this is the operator override. Returns
    a new result; the input is left untouched.
    """
    if rooster_a_id == rooster_b_id:
        raise ManualPairingError("A rooster cannot be paired with itself")

    unpaired = {r.id: r for r in result.unpaired_roosters}
    missing = [rid for rid in (rooster_a_id, rooster_b_id) if rid not in unpaired]
    if missing:
        raise ManualPairingError(f"Roosters not in the unpaired pool: {', '.join(missing)}")

    next_number = max((f.fight_number for f in result.main_fights), default=0) + 1
    fight = Fight(
        id=f"pelea-manual-{rooster_a_id}-{rooster_b_id}",
        fight_number=next_number,
        rooster_a=unpaired[rooster_a_id],
        rooster_b=unpaired[rooster_b_id],
    )

    remaining = [r for r in result.unpaired_roosters if r.id not in (rooster_a_id, rooster_b_id)]
    stats = result.stats.model_copy(
        update={"fights_count": len(result.main_fights) + 1, "unpaired_count": len(remaining)}
    )

    logger.info("Manual fight #%d: %s vs %s", next_number, rooster_a_id, rooster_b_id)

    return MatchmakingResult(
        main_fights=[*result.main_fights, fight],
        unpaired_roosters=remaining,
        stats=stats,
    )
