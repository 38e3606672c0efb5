"""
Penalized Least Squares (PLS) solver for the nested offset model.

For fixed θ (and hence fixed diagonal Λ_θ), this solves the penalized
least squares problem for the spherical random effects u:

    minimize ‖r - ZΛu‖² + ‖u‖²,    r = y - offset

There are no fixed effects to profile out: the offset enters with a
known coefficient of one and the model has no intercept. σ² is profiled
out in closed form from the penalized RSS, and with p = 0 the REML and
ML criteria coincide.

Exploiting the nesting
----------------------
A = ΛZ'ZΛ + I couples a group only with itself and its ancestors: two
groups of the same level share no units, and a group shares all of its
units with each ancestor. Eliminating the levels lowest first, each
group's ancestors already form a chain that is fully coupled, so the
factorization A = L D L' creates no fill-in. Every group keeps one
pivot and one multiplier per ancestor level. Factorizing, solving and
the selected inverse (the entries of A⁻¹ on the same pattern) then cost
O(q K²) time and memory for q groups over K levels, instead of the
O(q³) of a dense Cholesky.

References:
    Bates, D., Maechler, M., Bolker, B., & Walker, S. (2015).
    Fitting Linear Mixed-Effects Models Using lme4.
    Journal of Statistical Software, 67(1), 1-48. Section 2.

    Takahashi, K., Fagan, J., & Chen, M.-S. (1973). Formation of a
    sparse bus impedance matrix and its application to short circuit
    study. PICA Conference Proceedings.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
import scipy.sparse as sp
from numpy.typing import NDArray

from pymlid.mixed._random_effects import LevelSpec, expand_theta


@dataclass(frozen=True)
class CrossProducts:
    """θ-independent pieces of the PLS problem.

    Attributes:
        Z: Sparse indicator matrix, shape (n, q).
        r: Response minus offset (n,).
        Ztr: Z'r, shape (q,).
        counts: Units per group, the diagonal of Z'Z (q,).
        specs: Level specifications, lowest level first.
        blocks: Position of each level in the flat q-vectors.
        ancestors: ancestors[k][m] maps every level-k group to its
            level-m group, for each m > k.
        n: Number of units.
    """
    Z: sp.csc_matrix
    r: NDArray
    Ztr: NDArray
    counts: NDArray
    specs: tuple[LevelSpec, ...]
    blocks: tuple[slice, ...]
    ancestors: tuple[dict[int, NDArray], ...]
    n: int


@dataclass(frozen=True)
class NestedFactor:
    """A = L D L' for the nested pattern, stored level by level.

    Attributes:
        pivots: D, one array per level.
        multipliers: multipliers[k][m] holds L between each level-k
            group and its level-m ancestor.
    """
    pivots: tuple[NDArray, ...]
    multipliers: tuple[dict[int, NDArray], ...]

    @property
    def log_det(self) -> float:
        """log|A| = log|L_θ|² for the Cholesky factor L_θ."""
        return float(sum(np.sum(np.log(p)) for p in self.pivots))


@dataclass(frozen=True)
class PLSResult:
    """Result from penalized least squares solve.

    Attributes:
        u: Spherical random effects (q,).
        b: Conditional modes b = Λu (q,).
        sigma_sq: Profiled residual variance pwrss / n.
        pwrss: Penalized residual sum of squares ‖r - Zb‖² + ‖u‖².
        residuals: r - Zb (n,).
        theta: Relative standard deviations the solve used.
        factor: Factorization of ΛZ'ZΛ + I.
    """
    u: NDArray
    b: NDArray
    sigma_sq: float
    pwrss: float
    residuals: NDArray
    theta: NDArray
    factor: NestedFactor


def cross_products(Z, r: NDArray, specs: list[LevelSpec]) -> CrossProducts:
    """Precompute Z'r, the group sizes and the ancestor maps.

    The levels in `specs` must nest, lowest first.
    """
    n_levels = len(specs)
    starts = np.cumsum([0] + [spec.n_groups for spec in specs])
    blocks = tuple(
        slice(int(starts[k]), int(starts[k + 1])) for k in range(n_levels)
    )

    ancestors = []
    for k, spec in enumerate(specs):
        above = {}
        for m in range(k + 1, n_levels):
            # Nesting makes every write for a group agree
            anc = np.empty(spec.n_groups, dtype=np.intp)
            anc[spec.group_ids] = specs[m].group_ids
            above[m] = anc
        ancestors.append(above)

    return CrossProducts(
        Z=Z,
        r=r,
        Ztr=np.asarray(Z.T @ r, dtype=np.float64).ravel(),
        counts=np.asarray(Z.sum(axis=0), dtype=np.float64).ravel(),
        specs=tuple(specs),
        blocks=blocks,
        ancestors=tuple(ancestors),
        n=r.shape[0],
    )


def factorize(cp: CrossProducts, theta: NDArray) -> NestedFactor:
    """Factorize A = ΛZ'ZΛ + I, eliminating the lowest level first.

    A group g of level k with n_g units has A_gg = θ_k² n_g + 1 and, for
    its ancestor at level m, A = θ_k θ_m n_g. Eliminating level k updates
    only entries between ancestors of its groups, which are accumulated
    per ancestor with bincount. Every pivot is at least 1 because A ⪰ I.
    """
    theta = np.asarray(theta, dtype=np.float64)
    n_levels = len(cp.blocks)
    counts = [cp.counts[blk] for blk in cp.blocks]

    diag = [theta[k] ** 2 * counts[k] + 1.0 for k in range(n_levels)]
    off = [
        {m: theta[k] * theta[m] * counts[k] for m in cp.ancestors[k]}
        for k in range(n_levels)
    ]

    pivots = []
    multipliers = []
    for k in range(n_levels):
        d_k = diag[k]
        l_k = {m: a / d_k for m, a in off[k].items()}
        for m, a in off[k].items():
            anc = cp.ancestors[k][m]
            size = diag[m].shape[0]
            diag[m] = diag[m] - np.bincount(anc, weights=a * l_k[m], minlength=size)
            for m2 in off[m]:
                off[m][m2] = off[m][m2] - np.bincount(
                    anc, weights=a * l_k[m2], minlength=size
                )
        pivots.append(d_k)
        multipliers.append(l_k)

    return NestedFactor(pivots=tuple(pivots), multipliers=tuple(multipliers))


def factor_solve(factor: NestedFactor, cp: CrossProducts, rhs: NDArray) -> NDArray:
    """Solve A x = rhs given A = L D L'."""
    n_levels = len(cp.blocks)

    # L w = rhs, lowest level first
    w = [np.array(rhs[blk], dtype=np.float64) for blk in cp.blocks]
    for k in range(n_levels):
        for m, l in factor.multipliers[k].items():
            w[m] -= np.bincount(
                cp.ancestors[k][m], weights=l * w[k], minlength=w[m].shape[0]
            )

    # D L' x = w, top level first
    x = [None] * n_levels
    for k in reversed(range(n_levels)):
        x_k = w[k] / factor.pivots[k]
        for m, l in factor.multipliers[k].items():
            x_k -= l * x[m][cp.ancestors[k][m]]
        x[k] = x_k
    return np.concatenate(x)


def selected_inverse(
    factor: NestedFactor,
    cp: CrossProducts,
) -> tuple[list[NDArray], list[dict[int, NDArray]]]:
    """Entries of A⁻¹ on the nested pattern (Takahashi recursions).

    With A = L D L', Σ = A⁻¹ satisfies, for a group g and any group h at
    or above it,

        Σ_gh = δ_gh / D_g - Σ_a L_ag Σ_ah

    summed over the ancestors a of g. Working from the top level down,
    every Σ_ah needed is between two ancestors of g and already known.

    Returns:
        (inv_diag, inv_above): inv_diag[k] is diag(A⁻¹) for level k;
        inv_above[k][m] is A⁻¹ between each level-k group and its
        level-m ancestor.
    """
    n_levels = len(cp.blocks)
    inv_diag: list[NDArray] = [None] * n_levels
    inv_above: list[dict[int, NDArray]] = [{} for _ in range(n_levels)]

    for k in reversed(range(n_levels)):
        l_k = factor.multipliers[k]
        anc = cp.ancestors[k]
        for m in l_k:
            inv_above[k][m] = -sum(
                l * _between_ancestors(inv_diag, inv_above, anc, m2, m)
                for m2, l in l_k.items()
            )
        diag_k = 1.0 / factor.pivots[k]
        for m, l in l_k.items():
            diag_k = diag_k - l * inv_above[k][m]
        inv_diag[k] = diag_k

    return inv_diag, inv_above


def _between_ancestors(inv_diag, inv_above, anc, m1: int, m2: int) -> NDArray:
    """A⁻¹ between the level-m1 and level-m2 ancestors of each group."""
    if m1 == m2:
        return inv_diag[m1][anc[m1]]
    lo, hi = min(m1, m2), max(m1, m2)
    return inv_above[lo][hi][anc[lo]]


def solve_pls(cp: CrossProducts, theta: NDArray) -> PLSResult:
    """Solve the penalized least squares problem for Λ = Λ_θ.

    The approach (following lme4, specialised to p = 0):
    1. A = ΛZ'ZΛ + I = L D L'
    2. Solve A u = ΛZ'r
    3. b = Λu

    Args:
        cp: Precomputed cross-products.
        theta: Relative standard deviations, one per level.

    Returns:
        PLSResult with all estimates.
    """
    theta = np.asarray(theta, dtype=np.float64)
    lam = expand_theta(theta, cp.specs)

    factor = factorize(cp, theta)
    u = factor_solve(factor, cp, lam * cp.Ztr)
    b = lam * u

    residuals = cp.r - cp.Z @ b
    pwrss = float(residuals @ residuals) + float(u @ u)

    return PLSResult(
        u=u,
        b=b,
        sigma_sq=pwrss / cp.n,
        pwrss=pwrss,
        residuals=residuals,
        theta=theta,
        factor=factor,
    )


def conditional_variances(pls: PLSResult, cp: CrossProducts) -> NDArray:
    """Diagonal of Var(b | y) = σ² Λ (ΛZ'ZΛ + I)⁻¹ Λ."""
    inv_diag, _ = selected_inverse(pls.factor, cp)
    lam = expand_theta(pls.theta, cp.specs)
    return pls.sigma_sq * lam ** 2 * np.concatenate(inv_diag)
