"""
Index of dissimilarity: computation and multilevel analysis.

Public API:
    dissimilarity()  — ID from two share vectors
    expected_id()    — Monte Carlo ID under random allocation
    mlid()           — full multilevel analysis of a table of unit records
    pvariance()      — variance partition of a multilevel index
    holdback()       — holdback of a multilevel index
"""

from __future__ import annotations

import warnings
from collections.abc import Callable, Sequence
from typing import Any

import numpy as np
from numpy.typing import ArrayLike, NDArray

from pymlid.core.compute.timing import Timer
from pymlid.core.exceptions import ConfigurationError, InvalidInputError
from pymlid.core.result import Result
from pymlid.core.validation import (
    check_counts, check_positive, check_positive_total,
)
from pymlid.index._common import DEFAULT_N_SIMS, ExpectedID, IndexParams
from pymlid.index._expected import simulate_expected
from pymlid.index._variance import holdback_from_fit, pvariance_from_fit
from pymlid.index.design import IndexDesign
from pymlid.index.solution import IndexSolution
from pymlid.mixed import nested_lmm
from pymlid.preprocess import estimate_total


def dissimilarity(y: ArrayLike, x: ArrayLike) -> float:
    """Index of dissimilarity between two share vectors.

        ID = ½ Σ |y_i − x_i|

    Args:
        y: Share of group Y in each unit (sums to one).
        x: Share of group X in each unit (sums to one).

    Returns:
        ID in [0, 1].

    Raises:
        InvalidInputError: On mismatched lengths or non-finite shares.

    Examples:
        >>> dissimilarity([0.5, 0, 0.5, 0], [0, 0.5, 0, 0.5])
        1.0
    """
    y = np.asarray(y, dtype=np.float64).ravel()
    x = np.asarray(x, dtype=np.float64).ravel()
    if y.shape != x.shape:
        raise InvalidInputError(
            f"Inconsistent lengths: y={y.shape[0]}, x={x.shape[0]}"
        )
    if not (np.all(np.isfinite(y)) and np.all(np.isfinite(x))):
        raise InvalidInputError("shares contain non-finite values (NaN or Inf)")
    return 0.5 * float(np.sum(np.abs(y - x)))


def expected_id(
    total_y: float,
    total_x: float,
    unit_totals: ArrayLike,
    n_sims: int = DEFAULT_N_SIMS,
    *,
    seed: int | None = None,
) -> ExpectedID:
    """Expected ID under random allocation of both groups.

    For each simulation the Y total and the X total are spread across
    units by multinomial sampling with probabilities proportional to
    unit_totals; the ID of the simulated counts is recorded. The result
    is the mean over simulations, with its Monte Carlo standard error.

    Args:
        total_y: Grand total of group Y. Rounded to the nearest integer.
        total_x: Grand total of group X. Rounded to the nearest integer.
        unit_totals: Total population per unit.
        n_sims: Number of simulations. Default 1000.
        seed: Random seed for reproducibility.

    Returns:
        ExpectedID.

    Raises:
        InvalidInputError: Negative unit totals, or zero grand totals.
        ConfigurationError: If n_sims < 1.
    """
    if int(n_sims) != n_sims or n_sims < 1:
        raise ConfigurationError(f"n_sims must be a positive integer, got {n_sims}")
    unit_totals = check_counts(unit_totals, 'unit_totals')
    check_positive_total(unit_totals, 'unit_totals')
    n_y = int(round(total_y))
    n_x = int(round(total_x))
    if n_y < 1 or n_x < 1:
        raise InvalidInputError(
            f"group totals must be >= 1, got total_y={total_y}, total_x={total_x}"
        )

    rng = np.random.default_rng(seed)
    return simulate_expected(n_y, n_x, unit_totals, int(n_sims), rng)


def mlid(
    data: Any,
    y: str,
    x: str,
    *,
    levels: Sequence[str] = (),
    id: str | None = None,
    total: str | ArrayLike | None = None,
    expected: bool = False,
    n_sims: int = DEFAULT_N_SIMS,
    seed: int | None = None,
    total_estimator: Callable[[NDArray, NDArray], NDArray] = estimate_total,
    tol: float = 1e-8,
    max_iter: int = 200,
    zero_tol: float = 1e-8,
) -> IndexSolution:
    """Multilevel index of dissimilarity.

    Computes the ID between groups Y and X over the base units, and
    decomposes each unit's residual y_i − x_i into effects at every
    hierarchy level by fitting

        y_i = x_i + Σ_k b_k[group_k(i)] + e_i

    (zero intercept, x as an offset). With hierarchy levels, the
    variance partition and holdback are computed too.

    Args:
        data: Unit records: a DataFrame or a mapping of column → values.
        y: Column of group Y counts.
        x: Column of group X counts.
        levels: Hierarchy key columns, lowest level above base first.
            Empty: ordinary residuals only.
        id: Column of base unit identifiers (optional).
        total: Total-population column, array, or None.
        expected: If True, simulate the expected ID.
        n_sims: Simulations for the expected ID. Default 1000.
        seed: Random seed for the simulation.
        total_estimator: Used to estimate total population when
            expected=True and total is None. Default n_y + n_x, with a
            warning.
        tol: Optimizer tolerance for the nested fit.
        max_iter: Optimizer iteration budget for the nested fit.
        zero_tol: Relative threshold for reporting a level variance as 0.

    Returns:
        IndexSolution.

    Raises:
        InvalidInputError: Bad counts, zero totals, missing columns.
        InconsistentHierarchyError: Levels that do not nest.
        ModelFitError: Unidentifiable level, or optimizer budget exhausted.
        ConfigurationError: Unknown, duplicate or reserved level names.

    Examples:
        >>> result = mlid(df, 'Y', 'X', levels=['district', 'region'])
        >>> result.id, result.pvariance
    """
    if expected:
        check_positive(n_sims, 'n_sims')

    timer = Timer()
    timer.start()
    warn_list: list[str] = []

    design = IndexDesign.from_records(
        data, y, x, levels=levels, id=id, total=total
    )
    shares = design.shares

    with timer.section('fit'):
        fit = nested_lmm(
            shares.y, shares.x, design.groups,
            tol=tol, max_iter=max_iter, zero_tol=zero_tol,
        )
    warn_list.extend(fit.warnings)

    id_value = dissimilarity(shares.y, shares.x)

    expected_result = None
    if expected:
        unit_totals = design.total
        if unit_totals is None:
            unit_totals = np.asarray(
                total_estimator(design.n_y, design.n_x), dtype=np.float64
            )
            name = getattr(total_estimator, '__name__', repr(total_estimator))
            msg = (
                f"Total population not supplied; estimated per unit by "
                f"{name}() for the expected ID"
            )
            warnings.warn(msg, UserWarning, stacklevel=2)
            warn_list.append(msg)
        with timer.section('simulation'):
            expected_result = expected_id(
                shares.total_y, shares.total_x, unit_totals, n_sims, seed=seed
            )

    pv = hb = None
    if design.levels:
        with timer.section('decomposition'):
            pv = pvariance_from_fit(fit, design.base_name)
            hb = holdback_from_fit(fit, design.base_name)

    timer.stop()

    params = IndexParams(
        id_value=id_value,
        expected=expected_result,
        pvariance=pv,
        holdback=hb,
        base_name=design.base_name,
        n_units=design.n,
    )
    result = Result(
        params=params,
        info={
            'method': 'multilevel' if design.levels else 'single-level',
            'levels': design.levels,
            'fit_method': fit.info.get('method'),
            'converged': fit.converged,
            'n_sims': n_sims if expected else None,
            'seed': seed,
        },
        timing=timer.result(),
        method_name='mlid',
        warnings=tuple(warn_list),
    )
    return IndexSolution(_result=result, _design=design, _fit=fit)


def pvariance(solution: IndexSolution) -> dict[str, float]:
    """Percentage of residual variance at each level, base level last.

    Raises:
        ConfigurationError: If the index was computed without levels.
    """
    _require_levels(solution, 'pvariance')
    return pvariance_from_fit(solution.fit, solution.base_name)


def holdback(solution: IndexSolution) -> dict[str, float]:
    """Percentage change in ID when each level's effects are removed.

    Raises:
        ConfigurationError: If the index was computed without levels.
    """
    _require_levels(solution, 'holdback')
    return holdback_from_fit(solution.fit, solution.base_name)


def _require_levels(solution: IndexSolution, what: str) -> None:
    if not solution.levels:
        raise ConfigurationError(
            f"{what} requires a multilevel index; this one was computed "
            f"with no hierarchy levels"
        )
