"""
Tournament entities: teams (cuerdas) and their fronts, roosters (gallos),
exception pairs and the tournament rules (torneo).

Everything here is a plain pydantic model so the whole tournament can be
stored as one JSON document and handed to the API layer as-is.
"""

import datetime
import re
from enum import Enum
from typing import Annotated, Iterable, List, Literal, Optional, Set, Tuple, Union

from pydantic import BaseModel, Field, model_validator

from gallera.utils.weights import from_lbs_oz

# Animals younger than this are "pollos" (juveniles)
ADULT_AGE_MONTHS = 12

# Operator-editable weight band limits
MIN_TOURNAMENT_WEIGHT = from_lbs_oz(2, 10)
MAX_TOURNAMENT_WEIGHT = from_lbs_oz(5, 0)

DEFAULT_TOURNAMENT_NAME = "Torneo de Exhibición"

_FRONT_SUFFIX = re.compile(r"\s*\(F(\d+)\)$")


class TipoGallo(str, Enum):
    LISO = "Liso"
    PAVA = "pava"


class TipoEdad(str, Enum):
    POLLO = "Pollo"
    GALLO = "Gallo"


def tipo_edad_for(age_months: int) -> TipoEdad:
    return TipoEdad.POLLO if age_months < ADULT_AGE_MONTHS else TipoEdad.GALLO


# ============================================================================
# Teams
# ============================================================================


class _TeamFields(BaseModel):
    id: str
    name: str
    owner: str = ""
    city: Optional[str] = None


class BaseTeam(_TeamFields):
    """A cuerda as registered. Its first front ("F1") is the base record itself."""

    kind: Literal["base"] = "base"


class Front(_TeamFields):
    """Additional roster bucket of a base team."""

    kind: Literal["front"] = "front"
    parent_id: str


Team = Annotated[Union[BaseTeam, Front], Field(discriminator="kind")]


def base_team_id(teams: Iterable[Union[BaseTeam, Front]], team_id: str) -> str:
    """Resolve a team id to its base team id. Unknown ids resolve to themselves."""
    for team in teams:
        if team.id == team_id:
            return team.parent_id if isinstance(team, Front) else team.id
    return team_id


def front_number(team: Union[BaseTeam, Front]) -> int:
    match = _FRONT_SUFFIX.search(team.name)
    return int(match.group(1)) if match else 1


def display_name(name: str) -> str:
    """Team name without its "(F<n>)" suffix."""
    return _FRONT_SUFFIX.sub("", name)


def front_name(name: str, number: int) -> str:
    return f"{name} (F{number})"


# ============================================================================
# Roosters
# ============================================================================


class Rooster(BaseModel):
    id: str
    ring_id: str
    color: str
    cuerda_id: str
    weight: int = Field(ge=0)  # total ounces
    age_months: int = Field(ge=0)
    marking_id: str = ""
    breeder_plate_id: str = "N/A"
    tipo_gallo: TipoGallo = TipoGallo.LISO
    tipo_edad: TipoEdad = TipoEdad.POLLO
    marca: int = 0

    @model_validator(mode="after")
    def derive_tipo_edad(self):
        self.tipo_edad = tipo_edad_for(self.age_months)
        return self


# ============================================================================
# Rules
# ============================================================================


class ExceptionPair(BaseModel):
    """Two base teams that must never be matched against each other."""

    cuerda1_id: str
    cuerda2_id: str

    def key(self) -> Tuple[str, str]:
        a, b = sorted((self.cuerda1_id, self.cuerda2_id))
        return a, b

    def involves(self, team_id: str) -> bool:
        return team_id in (self.cuerda1_id, self.cuerda2_id)


class TournamentRules(BaseModel):
    name: str = DEFAULT_TOURNAMENT_NAME
    tournament_manager: Optional[str] = None
    date: datetime.date = Field(default_factory=datetime.date.today)
    weight_tolerance: int = Field(default=1, ge=0)  # ounces
    age_tolerance_months: int = Field(default=2, ge=0)
    min_weight: int = Field(default=from_lbs_oz(2, 12), ge=0)
    max_weight: int = Field(default=from_lbs_oz(5, 4), ge=0)
    roosters_per_team: int = Field(default=10, ge=0)  # per front, 0 = unlimited
    points_for_win: int = Field(default=3, ge=0)
    points_for_draw: int = Field(default=1, ge=0)
    tournament_days: int = Field(default=1, ge=1)
    exceptions: List[ExceptionPair] = Field(default_factory=list)

    def exception_keys(self) -> Set[Tuple[str, str]]:
        return {ex.key() for ex in self.exceptions}

    def weight_in_band(self, weight: int) -> bool:
        return self.min_weight <= weight <= self.max_weight
