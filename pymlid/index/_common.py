"""
Common data types for the index of dissimilarity.

IndexParams is the parameter payload wrapped by Result[P] and exposed
through IndexSolution; ExpectedID is returned directly by expected_id().
"""

from __future__ import annotations

from dataclasses import dataclass

from numpy.typing import NDArray

# Monte Carlo draws for the expected ID unless the caller says otherwise.
DEFAULT_N_SIMS = 1000


@dataclass(frozen=True)
class ExpectedID:
    """
    A simulated expected ID.

    - expected_id: mean ID over simulations
    - sd: standard deviation of the simulated IDs
    - se: Monte Carlo standard error of the mean, sd / sqrt(n_sims)
    - ids: the simulated IDs, shape (n_sims,)
    """
    expected_id: float
    sd: float
    se: float
    n_sims: int
    ids: NDArray


@dataclass(frozen=True)
class IndexParams:
    """
    Parameter payload for a (multilevel) index analysis.

    pvariance and holdback are None when no hierarchy levels were fitted.
    Both are keyed by level name with the base level last.
    """
    id_value: float
    expected: ExpectedID | None
    pvariance: dict[str, float] | None
    holdback: dict[str, float] | None
    base_name: str
    n_units: int
