"""
Nested variance-component model for index residuals.

Public API:
    nested_lmm()        — fit y = offset + nested random intercepts + residual
    NestedLMMSolution   — result wrapper
    LevelEffects        — BLUPs and variance for one level
"""

from pymlid.mixed.solvers import nested_lmm, RESIDUAL
from pymlid.mixed.solution import NestedLMMSolution
from pymlid.mixed._common import LevelEffects, VarCompSummary

__all__ = [
    "nested_lmm",
    "RESIDUAL",
    "NestedLMMSolution",
    "LevelEffects",
    "VarCompSummary",
]
