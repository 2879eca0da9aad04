from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from gallera.models.entities import Rooster


class Winner(str, Enum):
    A = "A"
    B = "B"
    DRAW = "DRAW"


class Fight(BaseModel):
    """A pelea. Rooster fields are snapshots taken when the pair was made."""

    id: str
    fight_number: int
    rooster_a: Rooster
    rooster_b: Rooster
    winner: Optional[Winner] = None
    duration: Optional[int] = None  # seconds

    @property
    def is_finished(self) -> bool:
        return self.winner is not None

    def involves(self, rooster_id: str) -> bool:
        return rooster_id in (self.rooster_a.id, self.rooster_b.id)

    def winning_rooster(self) -> Optional[Rooster]:
        if self.winner == Winner.A:
            return self.rooster_a
        if self.winner == Winner.B:
            return self.rooster_b
        return None


class MatchmakingStats(BaseModel):
    eligible_roosters_count: int = 0
    excluded_roosters_count: int = 0
    fights_count: int = 0
    unpaired_count: int = 0


class MatchmakingResult(BaseModel):
    main_fights: List[Fight] = Field(default_factory=list)
    unpaired_roosters: List[Rooster] = Field(default_factory=list)
    stats: MatchmakingStats = Field(default_factory=MatchmakingStats)


class DailyResult(BaseModel):
    day: int
    peleas: List[Fight] = Field(default_factory=list)
