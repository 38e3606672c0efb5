"""
Share transformation: raw group counts to proportional shares.

The index of dissimilarity compares, unit by unit, the share of group Y
living in a unit with the share of group X living there:

    y_i = n_y[i] / sum(n_y),   x_i = n_x[i] / sum(n_x)

Both share vectors lie in [0, 1] and sum to one.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import ArrayLike, NDArray

from pymlid.core.exceptions import InvalidInputError
from pymlid.core.validation import check_counts, check_positive_total


@dataclass(frozen=True)
class SharePair:
    """Shares of the two groups per unit.

    Attributes:
        y: Share of group Y in each unit (n,).
        x: Share of group X in each unit (n,).
        total_y: Grand total of group Y.
        total_x: Grand total of group X.
    """
    y: NDArray
    x: NDArray
    total_y: float
    total_x: float

    @property
    def difference(self) -> NDArray:
        """Raw residuals y - x of the zero-intercept offset regression."""
        return self.y - self.x


def to_shares(
    n_y: ArrayLike,
    n_x: ArrayLike,
    *,
    names: tuple[str, str] = ('n_y', 'n_x'),
) -> SharePair:
    """Convert two count vectors into a SharePair.

    Args:
        n_y: Counts of group Y per unit.
        n_x: Counts of group X per unit.
        names: Column names used in error messages.

    Returns:
        SharePair with shares summing to one.

    Raises:
        InvalidInputError: Negative or non-finite counts, mismatched
            lengths, or a column that sums to zero.
    """
    counts_y = check_counts(n_y, names[0])
    counts_x = check_counts(n_x, names[1])
    if counts_y.shape != counts_x.shape:
        raise InvalidInputError(
            f"Inconsistent lengths: {names[0]}={counts_y.shape[0]}, "
            f"{names[1]}={counts_x.shape[0]}"
        )
    total_y = check_positive_total(counts_y, names[0])
    total_x = check_positive_total(counts_x, names[1])
    return SharePair(
        y=counts_y / total_y,
        x=counts_x / total_x,
        total_y=total_y,
        total_x=total_x,
    )


def estimate_total(n_y: NDArray, n_x: NDArray) -> NDArray:
    """Default total-population estimate when none is supplied: n_y + n_x.

    This is a modelling approximation, not a validated default. It
    ignores everyone belonging to neither group, so callers with a real
    total population should pass it instead, or supply their own
    estimator with the same signature.
    """
    return np.asarray(n_y, dtype=np.float64) + np.asarray(n_x, dtype=np.float64)
