"""
Weight unit helpers.

Weights are stored as total ounces everywhere; operators think in
pounds + ounces ("3.04" means 3 lb 4 oz).
"""
from typing import Tuple

OUNCES_PER_POUND = 16


def from_lbs_oz(lbs: int, oz: int) -> int:
    """Pounds + ounces -> total ounces."""
    return lbs * OUNCES_PER_POUND + oz


def to_lbs_oz(total_ounces: int) -> Tuple[int, int]:
    """Total ounces -> (pounds, ounces). Negative input maps to (0, 0)."""
    if total_ounces is None or total_ounces < 0:
        return 0, 0
    return total_ounces // OUNCES_PER_POUND, total_ounces % OUNCES_PER_POUND


def format_weight(total_ounces: int) -> str:
    lbs, oz = to_lbs_oz(total_ounces)
    return f"{lbs}.{oz:02d} Lb.Oz"
