"""
Variance partition and holdback for a fitted multilevel index.

Pvariance: the share of the total residual variance at each level,

    100 × σ²_L / Σ_all σ²   (base residual variance included)

Holdback: how much the ID would change if one level's contribution to
every unit's residual were removed, leaving all other levels alone,

    100 × (ID_without_L − ID) / ID,   ID_without_L = ½ Σ |e_i − effect_L(i)|

A positive holdback means the level was holding segregation down
(its effects offset those of other levels); a negative one means it
contributes to the segregation measured.
"""

from __future__ import annotations

import numpy as np

from pymlid.mixed import NestedLMMSolution


def pvariance_from_fit(fit: NestedLMMSolution, base_name: str) -> dict[str, float]:
    """Percentage of total variance per level, base level last.

    A fit whose variances are all zero (identical shares) has nothing
    to partition and reports 0 everywhere.
    """
    variances = {name: fit.level(name).variance for name in fit.levels}
    variances[base_name] = fit.residual_variance
    total = sum(variances.values())
    if total <= 0:
        return {name: 0.0 for name in variances}
    return {name: 100.0 * v / total for name, v in variances.items()}


def holdback_from_fit(fit: NestedLMMSolution, base_name: str) -> dict[str, float]:
    """Percentage change in ID with each level's effects removed.

    An ID of zero leaves nothing to hold back: every level reports 0.
    """
    e = fit.response
    id_value = 0.5 * float(np.sum(np.abs(e)))

    components = {name: fit.level(name).unit_effects for name in fit.levels}
    components[base_name] = fit.residuals

    if id_value <= 0:
        return {name: 0.0 for name in components}

    result = {}
    for name, effect in components.items():
        id_without = 0.5 * float(np.sum(np.abs(e - effect)))
        result[name] = 100.0 * (id_without - id_value) / id_value
    return result
