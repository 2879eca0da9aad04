"""
TournamentState: the single aggregate holding a whole tournament.

Per-day data lives in `days`, keyed by day number. Asking for a day that
was never initialised yields an empty DayRecord instead of failing.
"""

from enum import Enum
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, Field

from gallera.models.entities import BaseTeam, Front, Rooster, Team, TournamentRules
from gallera.models.fight import DailyResult, Fight, MatchmakingResult


class Stage(str, Enum):
    SETUP = "SETUP"
    MATCHMAKING = "MATCHMAKING"
    LIVE_FIGHT = "LIVE_FIGHT"
    RESULTS = "RESULTS"
    TOURNAMENT_RESULTS = "TOURNAMENT_RESULTS"


class DayRecord(BaseModel):
    roosters: List[Rooster] = Field(default_factory=list)
    fights: List[Fight] = Field(default_factory=list)  # authoritative live card
    matchmaking: Optional[MatchmakingResult] = None


class TournamentState(BaseModel):
    stage: Stage = Stage.SETUP
    teams: List[Team] = Field(default_factory=list)
    rules: TournamentRules = Field(default_factory=TournamentRules)
    days: Dict[int, DayRecord] = Field(default_factory=lambda: {1: DayRecord()})
    daily_results: List[DailyResult] = Field(default_factory=list)
    current_day: int = 1
    viewing_day: int = 1
    is_finished: bool = False

    def day(self, number: int) -> DayRecord:
        record = self.days.get(number)
        return record if record is not None else DayRecord()

    def ensure_day(self, number: int) -> DayRecord:
        if number not in self.days:
            self.days[number] = DayRecord()
        return self.days[number]

    def find_team(self, team_id: str) -> Optional[Union[BaseTeam, Front]]:
        for team in self.teams:
            if team.id == team_id:
                return team
        return None

    def fronts_of(self, base_id: str) -> List[Front]:
        return [t for t in self.teams if isinstance(t, Front) and t.parent_id == base_id]

    def daily_result(self, number: int) -> Optional[DailyResult]:
        for result in self.daily_results:
            if result.day == number:
                return result
        return None

    def all_roosters(self) -> List[Rooster]:
        return [r for record in self.days.values() for r in record.roosters]

    @property
    def is_read_only(self) -> bool:
        return self.viewing_day < self.current_day

    @property
    def is_tournament_in_progress(self) -> bool:
        fights = self.day(self.current_day).fights
        return len(fights) > 0 and any(not f.is_finished for f in fights)
