"""
Point selection for caterpillar plots.

A level can have thousands of groups, far too many to draw one interval
each. The selection keeps the shape of the ranked distribution: both
tails in full, then the points that mark the sharpest jumps between
consecutive ranks. Each interior point is scored by how far its value
lies above the point ranked immediately before it, and the largest
jumps are added until the cap is reached.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import ArrayLike, NDArray

from pymlid.core.exceptions import ConfigurationError, InvalidInputError
from pymlid.diagnostics._common import CATPLOT_CAP, CATPLOT_TAILS


def select_catplot_points(
    values: ArrayLike,
    cap: int = CATPLOT_CAP,
    n_tails: int = CATPLOT_TAILS,
) -> NDArray:
    """Choose at most `cap` points to show from a ranked distribution.

    Values are ranked ascending with a stable sort, so ties keep their
    original order. The `n_tails` lowest and highest ranked points are
    always chosen. Further points are added one at a time: among the
    unchosen, the one with the largest gap to the point ranked
    immediately before it; equal gaps go to the lower rank. A point's
    gap does not depend on what has been chosen, so the greedy picks
    are the interior ranks sorted by decreasing gap.

    Args:
        values: One value per group (e.g. scaled effects).
        cap: Maximum number of points. Default 50.
        n_tails: Points kept at each end. Default 10.

    Returns:
        Indices into `values` of the chosen points, in ascending rank
        order. All indices when there are at most `cap` values.

    Raises:
        ConfigurationError: If n_tails < 1 or cap < 2 × n_tails.
        InvalidInputError: If values contain NaN.
    """
    if int(n_tails) != n_tails or n_tails < 1:
        raise ConfigurationError(f"n_tails must be a positive integer, got {n_tails}")
    if int(cap) != cap or cap < 2 * n_tails:
        raise ConfigurationError(
            f"cap must be an integer >= 2 * n_tails ({2 * n_tails}), got {cap}"
        )
    cap, n_tails = int(cap), int(n_tails)

    values = np.asarray(values, dtype=np.float64).ravel()
    if np.any(np.isnan(values)):
        raise InvalidInputError("values contain NaN; cannot rank")

    order = np.argsort(values, kind='stable')
    n = values.shape[0]
    if n <= cap:
        return order

    v = values[order]
    chosen = np.zeros(n, dtype=bool)
    chosen[:n_tails] = True
    chosen[n - n_tails:] = True

    interior = np.arange(n_tails, n - n_tails)
    gap = v[interior] - v[interior - 1]
    # Largest gap first; the stable sort keeps equal gaps in rank order
    by_gap = interior[np.argsort(-gap, kind='stable')]
    chosen[by_gap[:cap - 2 * n_tails]] = True

    return order[chosen]
