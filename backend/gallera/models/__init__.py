from gallera.models.entities import (
    BaseTeam,
    ExceptionPair,
    Front,
    Rooster,
    Team,
    TipoEdad,
    TipoGallo,
    TournamentRules,
)
from gallera.models.fight import DailyResult, Fight, MatchmakingResult, MatchmakingStats, Winner
from gallera.models.tournament import Tournament
from gallera.models.tournament_state import DayRecord, Stage, TournamentState

__all__ = [
    "Tournament",
    "TournamentState",
    "Stage",
    "DayRecord",
    "BaseTeam",
    "Front",
    "Team",
    "Rooster",
    "TipoGallo",
    "TipoEdad",
    "ExceptionPair",
    "TournamentRules",
    "Fight",
    "Winner",
    "MatchmakingResult",
    "MatchmakingStats",
    "DailyResult",
]
