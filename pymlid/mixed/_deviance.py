"""
Profiled deviance for the nested offset model, and its gradient.

The profiled deviance is the objective function that the outer optimizer
minimizes over θ. σ² is analytically profiled out, leaving a function of
θ only. With no fixed effects the REML deviance has no log|RX|² term and
is identical to the ML deviance:

    d(θ) = log|L_θ|² + n × [1 + log(2π × pwrss/n)]

The gradient is exact. With A = ΛZ'ZΛ + I and E_k selecting level k,

    ∂ log|A| / ∂θ_k = 2 tr(A⁻¹ E_k Z'Z Λ)
    ∂ pwrss / ∂θ_k  = -2 Σ_{g in level k} u_g [Z'(r - Zb)]_g

the second by the envelope theorem, since u minimizes the penalized
residual sum of squares. The trace needs A⁻¹ only where Z'Z is nonzero,
which the selected inverse provides.

References:
    Bates, D., Maechler, M., Bolker, B., & Walker, S. (2015).
    Fitting Linear Mixed-Effects Models Using lme4.
    Journal of Statistical Software, 67(1), Sections 2-3.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from pymlid.mixed._pls import CrossProducts, PLSResult, selected_inverse, solve_pls


def deviance_from_pls(pls: PLSResult, n: int) -> float:
    """Evaluate d(θ) from a PLS solve."""
    pwrss = max(pls.pwrss, 1e-300)
    return float(pls.factor.log_det + n * (1.0 + np.log(2.0 * np.pi * pwrss / n)))


def deviance_gradient(pls: PLSResult, cp: CrossProducts) -> NDArray:
    """∂d/∂θ at the θ of a PLS solve."""
    inv_diag, inv_above = selected_inverse(pls.factor, cp)
    theta = pls.theta
    Zt_resid = np.asarray(cp.Z.T @ pls.residuals, dtype=np.float64).ravel()
    pwrss = max(pls.pwrss, 1e-300)

    grad = np.empty(theta.shape[0], dtype=np.float64)
    for k, blk in enumerate(cp.blocks):
        n_k = cp.counts[blk]
        # tr(A⁻¹ E_k Z'Z Λ): the group itself, its ancestors, its descendants
        trace = theta[k] * float(n_k @ inv_diag[k])
        for m, inv_km in inv_above[k].items():
            trace += theta[m] * float(n_k @ inv_km)
        for j in range(k):
            trace += theta[j] * float(cp.counts[cp.blocks[j]] @ inv_above[j][k])

        d_pwrss = -2.0 * float(pls.u[blk] @ Zt_resid[blk])
        grad[k] = 2.0 * trace + cp.n * d_pwrss / pwrss
    return grad


def profiled_deviance(theta: NDArray, cp: CrossProducts) -> float:
    """Compute the profiled REML deviance for given θ.

    Args:
        theta: Relative standard deviations, one per level.
        cp: Precomputed cross-products of Z and r.

    Returns:
        Profiled deviance value (scalar to minimize).
    """
    return deviance_from_pls(solve_pls(cp, theta), cp.n)


def deviance_and_gradient(theta: NDArray, cp: CrossProducts) -> tuple[float, NDArray]:
    """Objective for scipy.optimize.minimize with jac=True."""
    pls = solve_pls(cp, theta)
    return deviance_from_pls(pls, cp.n), deviance_gradient(pls, cp)
