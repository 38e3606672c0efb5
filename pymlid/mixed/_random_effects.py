"""
Nested random-intercept specification, Z matrix construction, and Λ_θ.

This module handles:
1. Mapping each level's group labels to consecutive integer ids
2. Building the sparse random effects design matrix Z
3. Expanding the θ parameter vector into the diagonal of Λ_θ
4. θ bounds and starting values for the optimizer

With random intercepts only, every level contributes one θ_k = σ_k / σ
and Λ_θ is diagonal: θ_k repeated once per group of level k.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
import pandas as pd
import scipy.sparse as sp
from numpy.typing import NDArray


@dataclass(frozen=True)
class LevelSpec:
    """Specification for one hierarchy level's random intercepts.

    Attributes:
        level: Name of the level (e.g. 'district').
        labels: Group keys in order of first appearance (J,).
        group_ids: 0-indexed group id for each unit, shape (n,).
        n_groups: Number of groups (J).
    """
    level: str
    labels: NDArray
    group_ids: NDArray
    n_groups: int


def parse_levels(groups: dict[str, NDArray]) -> list[LevelSpec]:
    """Turn the ordered level → labels mapping into LevelSpecs.

    Group ids follow first appearance, so the same input always yields
    the same layout of Z and of the BLUP vectors.
    """
    specs = []
    for level, raw in groups.items():
        group_ids, labels = pd.factorize(np.asarray(raw), sort=False)
        specs.append(LevelSpec(
            level=level,
            labels=np.asarray(labels),
            group_ids=group_ids.astype(np.intp),
            n_groups=len(labels),
        ))
    return specs


def build_z_matrix(specs: list[LevelSpec], n: int) -> sp.csc_matrix:
    """Concatenate the indicator blocks of all levels.

    Z = [Z_1 | Z_2 | ...], shape (n, Σ J_k), with Z_k[i, j] = 1 when unit
    i belongs to group j of level k. Each row has exactly one nonzero per
    level, so Z is stored sparse.
    """
    if not specs:
        raise ValueError("At least one level specification required")
    rows = np.arange(n)
    blocks = [
        sp.csc_matrix(
            (np.ones(n, dtype=np.float64), (rows, spec.group_ids)),
            shape=(n, spec.n_groups),
        )
        for spec in specs
    ]
    return sp.hstack(blocks, format='csc')


def expand_theta(theta: NDArray, specs: list[LevelSpec]) -> NDArray:
    """Diagonal of Λ_θ: θ_k repeated J_k times, level by level."""
    return np.repeat(
        np.asarray(theta, dtype=np.float64),
        [spec.n_groups for spec in specs],
    )


def theta_lower_bounds(specs: list[LevelSpec]) -> NDArray:
    """θ_k are relative standard deviations: bounded below by 0."""
    return np.zeros(len(specs), dtype=np.float64)


def theta_start(specs: list[LevelSpec]) -> NDArray:
    """Start every level at σ_k = σ (equal variance partition)."""
    return np.ones(len(specs), dtype=np.float64)
