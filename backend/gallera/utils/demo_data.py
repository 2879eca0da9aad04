"""
Demo roster: 10 stables (3 of them with a second front) and 100 roosters.

Rooster attributes are drawn from a seeded random.Random so the same seed
always yields the same demo day.
"""
import random
from typing import List, Optional, Union

from gallera.models.entities import BaseTeam, Front, Rooster, TipoGallo
from gallera.utils.weights import from_lbs_oz

DEMO_ROOSTER_COUNT = 100

DEMO_TEAMS: List[Union[BaseTeam, Front]] = [
    BaseTeam(id="demo-c1", name="Hacienda San José (F1)", owner="Juan Pérez", city="Medellín"),
    Front(id="demo-c1-f2", name="Hacienda San José (F2)", owner="Juan Pérez", city="Medellín", parent_id="demo-c1"),
    BaseTeam(id="demo-c2", name="Criadero El Triunfo (F1)", owner="Carlos Ruiz", city="Cali"),
    Front(id="demo-c2-f2", name="Criadero El Triunfo (F2)", owner="Carlos Ruiz", city="Cali", parent_id="demo-c2"),
    BaseTeam(id="demo-c3", name="Cuerda Los Compadres (F1)", owner="Roberto Gómez", city="Pereira"),
    BaseTeam(id="demo-c4", name="Gallera La Herradura (F1)", owner="Luis Martínez", city="Bogotá"),
    Front(id="demo-c4-f2", name="Gallera La Herradura (F2)", owner="Luis Martínez", city="Bogotá", parent_id="demo-c4"),
    BaseTeam(id="demo-c5", name="Criadero El Diamante (F1)", owner="Andrés López", city="Bucaramanga"),
    BaseTeam(id="demo-c6", name="Cuerda Los Galleros (F1)", owner="Miguel Ángel", city="Manizales"),
    BaseTeam(id="demo-c7", name="Hacienda La Victoria (F1)", owner="Jorge Iván", city="Ibagué"),
    BaseTeam(id="demo-c8", name="Criadero El Fénix (F1)", owner="Felipe Marín", city="Armenia"),
    BaseTeam(id="demo-c9", name="Cuerda Los Amigos (F1)", owner="Ricardo Soto", city="Montería"),
    BaseTeam(id="demo-c10", name="Gallera El Palacio (F1)", owner="Oscar Duarte", city="Sincelejo"),
]

COLORS = ["Giro", "Colorado", "Cenizo", "Jabao", "Marañón", "Canelo", "Blanco", "Pintado"]


def demo_roosters(seed: Optional[int] = None, count: int = DEMO_ROOSTER_COUNT) -> List[Rooster]:
    rng = random.Random(seed)
    roosters = []
    for i in range(count):
        team = rng.choice(DEMO_TEAMS)
        age_months = rng.randint(8, 23)
        roosters.append(
            Rooster(
                id=f"demo-gallo-{i}",
                ring_id=f"R-{1000 + i}",
                color=rng.choice(COLORS),
                cuerda_id=team.id,
                weight=from_lbs_oz(rng.randint(3, 4), rng.randint(0, 15)),
                age_months=age_months,
                marking_id=f"M-{2000 + i}",
                breeder_plate_id=f"PC-{3000 + i}",
                tipo_gallo=rng.choice([TipoGallo.LISO, TipoGallo.PAVA]),
                marca=rng.randint(1, 12),
            )
        )
    return roosters
