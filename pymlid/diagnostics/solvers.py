"""
Comparison intervals and caterpillar-plot data for level effects.

Public API:
    confint()  — scaled effects with mean-comparison intervals per level
    catplot()  — ranked, capped subset of one level for plotting
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from pymlid.core.exceptions import ConfigurationError
from pymlid.core.validation import check_positive
from pymlid.diagnostics._catplot import select_catplot_points
from pymlid.diagnostics._common import (
    CATPLOT_CAP, CATPLOT_TAILS, MEAN_COMPARISON_WIDTH, CatplotData, ConfintTable,
)
from pymlid.diagnostics.solution import ConfintSolution
from pymlid.index import IndexSolution


def confint(
    solution: IndexSolution,
    width: float = MEAN_COMPARISON_WIDTH,
    *,
    levels: Sequence[str] | str | None = None,
) -> ConfintSolution:
    """Scaled level effects with intervals for comparing groups.

    Every effect and its standard error is divided by the residual
    standard deviation σ, and the interval is estimate ± width × se.
    The default width of 1.39 standard errors makes two groups whose
    intervals do not overlap differ at roughly the 5% level; pass 1.96
    for intervals about zero.

    Hierarchy levels use the conditional standard errors of the BLUPs.
    The base level uses its residuals with standard error σ, so its
    scaled standard error is 1.

    Args:
        solution: A fitted index.
        width: Interval half-width in standard errors.
        levels: Levels to include. Default: every level, base last.

    Returns:
        ConfintSolution with one ConfintTable per level.

    Raises:
        ConfigurationError: Unknown level or non-positive width.
    """
    check_positive(width, 'width')
    if levels is None:
        levels = solution.all_levels
    elif isinstance(levels, str):
        levels = (levels,)

    scale = solution.sigma if solution.sigma > 0 else np.nan
    tables = {}
    for level in levels:
        if level not in solution.all_levels:
            raise ConfigurationError(
                f"unsupported level '{level}'. Available: "
                f"{list(solution.all_levels)}"
            )
        if level == solution.base_name:
            labels, _ = solution.group_ids(level)
            effects = solution.unit_effects(level)
            se = np.full(effects.shape[0], solution.sigma)
        else:
            le = solution.fit.level(level)
            labels, effects, se = le.labels, le.effects, le.cond_se

        estimate = effects / scale
        se_scaled = se / scale
        tables[level] = ConfintTable(
            level=level,
            labels=np.asarray(labels).copy(),
            estimate=estimate,
            se=se_scaled,
            lower=estimate - width * se_scaled,
            upper=estimate + width * se_scaled,
            width=float(width),
        )
    return ConfintSolution(tables=tables)


def catplot(
    solution: IndexSolution,
    level: str,
    width: float = MEAN_COMPARISON_WIDTH,
    *,
    cap: int = CATPLOT_CAP,
    n_tails: int = CATPLOT_TAILS,
) -> CatplotData:
    """Caterpillar-plot data for one level.

    Ranks the level's scaled effects, keeps at most `cap` of them with
    select_catplot_points(), and returns them with their intervals in
    ascending order. Rendering is left to the caller.

    Raises:
        ConfigurationError: Unknown level, bad width, cap or n_tails.
    """
    table = confint(solution, width, levels=level).table(level)
    chosen = select_catplot_points(table.estimate, cap=cap, n_tails=n_tails)

    ranks = np.empty(table.estimate.shape[0], dtype=np.int64)
    ranks[np.argsort(table.estimate, kind='stable')] = np.arange(
        1, table.estimate.shape[0] + 1
    )
    return CatplotData(
        level=level,
        rank=ranks[chosen],
        labels=table.labels[chosen],
        estimate=table.estimate[chosen],
        lower=table.lower[chosen],
        upper=table.upper[chosen],
        n_total=int(table.estimate.shape[0]),
    )
