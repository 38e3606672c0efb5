"""
Place impacts and counterfactual effects.

Public API:
    impacts()        — contribution of each group to the ID, per level
    effect()         — IDs with named places' contributions removed
    ImpactSolution   — impact tables (to_frame() for pandas)
    EffectSolution   — scenario IDs, impact and R²
"""

from pymlid.impacts.solvers import impacts, effect
from pymlid.impacts.solution import ImpactSolution, EffectSolution
from pymlid.impacts._common import ImpactTable

__all__ = [
    "impacts",
    "effect",
    "ImpactSolution",
    "EffectSolution",
    "ImpactTable",
]
