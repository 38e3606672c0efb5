"""
Common data types for place impact and effect calculations.

Each payload is a pure data container with no methods.
"""

from dataclasses import dataclass

from numpy.typing import NDArray


@dataclass(frozen=True)
class ImpactTable:
    """Contribution of every group at one level to the ID.

    All arrays have one entry per group, in the level's label order.

    Attributes:
        level: Level name.
        labels: Group keys (J,).
        n_units: Number of base units in each group (J,).
        pcnt_id: Percentage of Σ|e| contributed by the group.
        proportion_units: Percentage of all units in the group.
        impact: pcnt_id / proportion_units × 100; 100 means the group
            contributes exactly its share.
        scld_mean: Mean residual over σ.
        scld_min: Minimum residual over σ.
        scld_max: Maximum residual over σ.
        scld_sd: Residual SD (ddof=1) over σ; NaN for one-unit groups.
        pcnt_negative: Percentage of units with a negative residual.
    """
    level: str
    labels: NDArray
    n_units: NDArray
    pcnt_id: NDArray
    proportion_units: NDArray
    impact: NDArray
    scld_mean: NDArray
    scld_min: NDArray
    scld_max: NDArray
    scld_sd: NDArray
    pcnt_negative: NDArray


@dataclass(frozen=True)
class ImpactParams:
    """Impact tables keyed by level, plus the shared scale σ."""
    tables: dict[str, ImpactTable]
    sigma: float


@dataclass(frozen=True)
class EffectParams:
    """
    Counterfactual IDs for a set of named places.

    - id_value: observed ID
    - id_level_zeroed: scenario 1, named groups' level effects set to 0
    - id_residual_zeroed: scenario 2, whole residual of place units set to 0
    - id_places_only: scenario 3, ID over place units alone, shares
      re-normalized within the subset
    - pcnt_id, proportion_units, impact: as in ImpactTable, for the
      union of place units
    - r_squared: share of base-level residual variance explained by
      place membership (one-way ANOVA)
    """
    id_value: float
    id_level_zeroed: float
    id_residual_zeroed: float
    id_places_only: float
    pcnt_id: float
    proportion_units: float
    impact: float
    r_squared: float
    places: dict[str, tuple]
    n_place_units: int
