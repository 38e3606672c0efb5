"""
Common data types and constants for effect diagnostics.
"""

from dataclasses import dataclass

from numpy.typing import NDArray

# Half-width, in standard errors, of an interval whose overlap with
# another such interval approximates a 5% test of the difference
# between two means (Goldstein & Healy 1995). Wider intervals (1.96)
# answer whether one effect differs from zero, not from each other.
MEAN_COMPARISON_WIDTH = 1.39

# Caterpillar plots show at most this many points...
CATPLOT_CAP = 50
# ...always including this many at each end of the ranking.
CATPLOT_TAILS = 10


@dataclass(frozen=True)
class ConfintTable:
    """Scaled effects with comparison intervals for one level.

    Attributes:
        level: Level name.
        labels: Group keys (J,).
        estimate: Effect / σ (J,).
        se: Standard error / σ (J,).
        lower: estimate - width × se (J,).
        upper: estimate + width × se (J,).
        width: Interval half-width in standard errors.
    """
    level: str
    labels: NDArray
    estimate: NDArray
    se: NDArray
    lower: NDArray
    upper: NDArray
    width: float


@dataclass(frozen=True)
class CatplotData:
    """Ranked, capped subset of one level's effects for plotting.

    Attributes:
        level: Level name.
        rank: 1-based rank of each shown point among all n_total (m,).
        labels: Group keys, ascending by estimate (m,).
        estimate: Scaled effects (m,).
        lower: Interval lower bounds (m,).
        upper: Interval upper bounds (m,).
        n_total: Number of groups before selection.
    """
    level: str
    rank: NDArray
    labels: NDArray
    estimate: NDArray
    lower: NDArray
    upper: NDArray
    n_total: int
