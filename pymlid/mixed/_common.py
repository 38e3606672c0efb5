"""
Common data types for the nested variance-component model.

Contains the frozen parameter payloads that go inside Result[P] envelopes.
Each payload is a pure data container with no methods.

References:
    Bates, D., Maechler, M., Bolker, B., & Walker, S. (2015).
    Fitting Linear Mixed-Effects Models Using lme4.
    Journal of Statistical Software, 67(1), 1-48.
"""

from dataclasses import dataclass

from numpy.typing import NDArray


@dataclass(frozen=True)
class VarCompSummary:
    """Variance component summary for one hierarchy level.

    Attributes:
        level: Level name (e.g. 'district'), or 'Residual' for the base.
        variance: Estimated variance σ²_k (0 for a collapsed level).
        std_dev: Standard deviation (sqrt of variance).
        n_groups: Number of groups at the level (units, for the base).
    """
    level: str
    variance: float
    std_dev: float
    n_groups: int


@dataclass(frozen=True)
class LevelEffects:
    """BLUPs for every group at one hierarchy level.

    Attributes:
        level: Level name.
        labels: Group keys, in order of first appearance (J,).
        effects: Conditional modes b̂ per group (J,).
        cond_se: Conditional standard errors of b̂ (J,).
        group_ids: Index into labels for every unit (n,).
        unit_effects: effects[group_ids], the level's term in each
            unit's residual (n,).
        variance: Estimated level variance.
        collapsed: True if the variance was numerically zero and all
            effects were set to 0.
    """
    level: str
    labels: NDArray
    effects: NDArray
    cond_se: NDArray
    group_ids: NDArray
    unit_effects: NDArray
    variance: float
    collapsed: bool


@dataclass(frozen=True)
class NestedLMMParams:
    """
    Parameter payload for a fitted nested random-intercept model

        y = offset + Σ_k b_k[group_k(i)] + e_i

    Holds everything needed to reassemble each unit's residual from its
    level components: response - offset = Σ_k unit_effects_k + residuals.
    """
    # Hierarchy
    levels: tuple[str, ...]            # lowest level above base first
    level_effects: dict[str, LevelEffects]

    # Variance components
    var_components: tuple[VarCompSummary, ...]   # levels..., then Residual
    residual_variance: float           # σ²
    residual_std: float                # σ
    collapsed: tuple[str, ...]         # levels reported with zero variance

    # Residual bookkeeping
    response: NDArray                  # y - offset (n,)
    residuals: NDArray                 # base-level component (n,)

    # Model fit
    log_likelihood: float
    deviance: float
    aic: float
    bic: float
    n_obs: int
    n_groups: dict[str, int]

    # Convergence
    converged: bool
    n_iter: int

    # Internal
    theta: NDArray                     # relative standard deviations σ_k / σ
