"""
Standings: fold finished fights into per-team records and rank them.

Daily tables have one row per front; the tournament table merges fronts
into their base team. Ranking is points descending, then total fight time
ascending (quicker records rank higher). Teams without a single recorded
fight are left out.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence

from gallera.models.entities import BaseTeam, Rooster, Team, TournamentRules, base_team_id, display_name, front_number
from gallera.models.fight import DailyResult, Fight, Winner

DAILY_FASTEST_LIMIT = 10


@dataclass
class TeamStanding:
    team_id: str
    team_name: str
    front_number: int = 1
    wins: int = 0
    draws: int = 0
    losses: int = 0
    total_duration_seconds: int = 0
    points: int = 0

    @property
    def fights(self) -> int:
        return self.wins + self.draws + self.losses


@dataclass
class FastestWin:
    rooster: Rooster
    duration: int
    fight_number: int
    day: Optional[int] = None


def _tally(rows: Dict[str, TeamStanding], fight: Fight, key_a: str, key_b: str) -> None:
    if fight.winner is None:
        return
    duration = fight.duration or 0
    row_a = rows.get(key_a)
    row_b = rows.get(key_b)

    if fight.winner == Winner.A:
        if row_a:
            row_a.wins += 1
            row_a.total_duration_seconds += duration
        if row_b:
            row_b.losses += 1
    elif fight.winner == Winner.B:
        if row_b:
            row_b.wins += 1
            row_b.total_duration_seconds += duration
        if row_a:
            row_a.losses += 1
    elif fight.winner == Winner.DRAW:
        for row in (row_a, row_b):
            if row:
                row.draws += 1
                row.total_duration_seconds += duration


def rank_standings(rows: Iterable[TeamStanding], rules: TournamentRules) -> List[TeamStanding]:
    """Compute points, drop empty rows, sort (stable)."""
    ranked = []
    for row in rows:
        if row.fights == 0:
            continue
        row.points = row.wins * rules.points_for_win + row.draws * rules.points_for_draw
        ranked.append(row)
    ranked.sort(key=lambda r: (-r.points, r.total_duration_seconds))
    return ranked


def daily_standings(fights: Sequence[Fight], teams: Sequence[Team], rules: TournamentRules) -> List[TeamStanding]:
    """One row per front for a single day's fights."""
    rows = {t.id: TeamStanding(team_id=t.id, team_name=t.name, front_number=front_number(t)) for t in teams}
    for fight in fights:
        _tally(rows, fight, fight.rooster_a.cuerda_id, fight.rooster_b.cuerda_id)
    return rank_standings(rows.values(), rules)


def tournament_standings(
    daily_results: Sequence[DailyResult], teams: Sequence[Team], rules: TournamentRules
) -> List[TeamStanding]:
    """One row per base team across every recorded day."""
    rows = {
        t.id: TeamStanding(team_id=t.id, team_name=display_name(t.name))
        for t in teams
        if isinstance(t, BaseTeam)
    }
    for result in daily_results:
        for fight in result.peleas:
            _tally(
                rows,
                fight,
                base_team_id(teams, fight.rooster_a.cuerda_id),
                base_team_id(teams, fight.rooster_b.cuerda_id),
            )
    return rank_standings(rows.values(), rules)


def fastest_winners(
    fights: Sequence[Fight], limit: int = DAILY_FASTEST_LIMIT, day: Optional[int] = None
) -> List[FastestWin]:
    """Winning roosters of decided, non-draw fights, quickest first."""
    wins = []
    for fight in fights:
        rooster = fight.winning_rooster()
        if rooster is None or not fight.duration or fight.duration <= 0:
            continue
        wins.append(FastestWin(rooster=rooster, duration=fight.duration, fight_number=fight.fight_number, day=day))
    wins.sort(key=lambda w: w.duration)
    return wins[:limit]


def fastest_of_tournament(daily_results: Sequence[DailyResult]) -> Optional[FastestWin]:
    wins: List[FastestWin] = []
    for result in daily_results:
        wins.extend(fastest_winners(result.peleas, limit=len(result.peleas), day=result.day))
    wins.sort(key=lambda w: w.duration)
    return wins[0] if wins else None
