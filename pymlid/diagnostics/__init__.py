"""
Diagnostics for level effects: comparison intervals and caterpillar plots.

Public API:
    confint()                — scaled effects with comparison intervals
    catplot()                — ranked, capped subset of a level for plotting
    select_catplot_points()  — the capped selection on its own
    catplot_frame()          — CatplotData as a DataFrame
    MEAN_COMPARISON_WIDTH    — default interval width (1.39 s.e.)
"""

from pymlid.diagnostics._common import (
    MEAN_COMPARISON_WIDTH, CATPLOT_CAP, CATPLOT_TAILS, ConfintTable, CatplotData,
)
from pymlid.diagnostics._catplot import select_catplot_points
from pymlid.diagnostics.solution import ConfintSolution, catplot_frame
from pymlid.diagnostics.solvers import confint, catplot

__all__ = [
    "MEAN_COMPARISON_WIDTH",
    "CATPLOT_CAP",
    "CATPLOT_TAILS",
    "ConfintTable",
    "CatplotData",
    "ConfintSolution",
    "select_catplot_points",
    "catplot_frame",
    "confint",
    "catplot",
]
