"""
Place impacts and counterfactual effects.

Public API:
    impacts() — per-group contribution statistics at chosen levels
    effect()  — IDs with named places' contributions removed
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any

import numpy as np
import pandas as pd
from numpy.typing import NDArray

from pymlid.core.exceptions import ConfigurationError, InvalidInputError
from pymlid.core.result import Result
from pymlid.impacts._common import EffectParams, ImpactParams, ImpactTable
from pymlid.impacts.solution import EffectSolution, ImpactSolution
from pymlid.index import IndexSolution, dissimilarity


def impacts(
    solution: IndexSolution,
    levels: Sequence[str] | str | None = None,
) -> ImpactSolution:
    """Contribution of every group at the chosen levels to the ID.

    With e_i = y_i − x_i the total residual of unit i and g a group:

        pcnt_id          = 100 × Σ_g |e_i| / Σ_all |e_i|
        proportion_units = 100 × |g| / n
        impact           = pcnt_id / proportion_units × 100

    and the mean, min, max and SD of the group's residuals divided by
    the fitted residual standard deviation σ, plus the percentage of
    negative residuals. Groups are summarised independently.

    Args:
        solution: A fitted index.
        levels: Levels to tabulate. Default: every hierarchy level. The
            base level name is accepted (each unit its own group).

    Returns:
        ImpactSolution with one ImpactTable per level.

    Raises:
        ConfigurationError: Unknown level, or no levels to tabulate.
    """
    if levels is None:
        levels = solution.levels
    elif isinstance(levels, str):
        levels = (levels,)
    levels = tuple(levels)
    if not levels:
        raise ConfigurationError(
            "impacts requires at least one level; the index has no "
            "hierarchy levels, pass levels=[base level] explicitly"
        )
    for level in levels:
        _check_level(solution, level)

    e = solution.residuals
    sigma = solution.sigma
    tables = {
        level: _impact_table(level, *solution.group_ids(level), e, sigma)
        for level in levels
    }

    result = Result(
        params=ImpactParams(tables=tables, sigma=sigma),
        info={'levels': levels, 'n_units': solution.n_units},
        timing=None,
        method_name='impacts',
    )
    return ImpactSolution(_result=result)


def effect(
    solution: IndexSolution,
    places: Mapping[str, Iterable[Any]] | Iterable[Any] | Any,
    *,
    level: str | None = None,
) -> EffectSolution:
    """IDs with the contribution of named places removed.

    Three scenarios, each an ID (½ Σ |·|) over modified residuals:

    1. The named groups' effect at their own level is set to 0 for all
       their units; all other levels' effects, including the base, are
       left alone.
    2. The whole residual of every unit inside a named place is set to 0.
    3. Only units inside named places are kept, with each group's
       shares re-normalized within that subset.

    Also reports the places' impact (as in impacts(), using the
    residual mass removed in scenario 2) and the R² of a one-way ANOVA
    of the base-level residuals on place membership.

    Args:
        solution: A fitted index.
        places: Mapping of level → group keys, or group keys at `level`.
        level: Level of the keys when `places` is not a mapping.

    Returns:
        EffectSolution.

    Raises:
        ConfigurationError: Unknown level, or keys without a level.
        InvalidInputError: Unknown group key, no places, or a place
            subset in which one group has no members.

    Examples:
        >>> effect(result, ['Birmingham', 'Leicester'], level='authority')
        >>> effect(result, {'authority': ['Leicester'], 'region': ['London']})
    """
    places = _normalize_places(places, level)
    for lvl in places:
        _check_level(solution, lvl)

    e = solution.residuals
    n = solution.n_units
    masks = {}
    for lvl, keys in places.items():
        labels, gid = solution.group_ids(lvl)
        idx = pd.Index(labels).get_indexer(list(keys))
        if np.any(idx < 0):
            missing = [k for k, i in zip(keys, idx) if i < 0]
            raise InvalidInputError(
                f"unknown group key(s) at level '{lvl}': {missing}",
                column=lvl,
            )
        for key, i in zip(keys, idx):
            masks[(lvl, key)] = gid == i

    # Scenario 1: named groups' level effects removed
    e_level = e.copy()
    for lvl, keys in places.items():
        in_level = np.zeros(n, dtype=bool)
        for key in keys:
            in_level |= masks[(lvl, key)]
        e_level[in_level] -= solution.unit_effects(lvl)[in_level]

    # Scenario 2: place units' residuals removed
    in_places = np.zeros(n, dtype=bool)
    for mask in masks.values():
        in_places |= mask
    e_resid = np.where(in_places, 0.0, e)

    # Scenario 3: place units only, shares re-normalized
    design = solution.design
    sub_y = design.n_y[in_places]
    sub_x = design.n_x[in_places]
    if sub_y.sum() <= 0 or sub_x.sum() <= 0:
        raise InvalidInputError(
            f"named places hold no members of one group "
            f"(Y total {sub_y.sum()}, X total {sub_x.sum()}); "
            f"their own ID is undefined"
        )
    id_places = dissimilarity(sub_y / sub_y.sum(), sub_x / sub_x.sum())

    abs_total = float(np.sum(np.abs(e)))
    n_in = int(np.sum(in_places))
    pcnt_id = 100.0 * float(np.sum(np.abs(e[in_places]))) / abs_total \
        if abs_total > 0 else 0.0
    proportion = 100.0 * n_in / n
    impact = pcnt_id / proportion * 100.0

    r_squared = _membership_r_squared(
        solution.unit_effects(solution.base_name), list(masks.values())
    )

    params = EffectParams(
        id_value=solution.id,
        id_level_zeroed=0.5 * float(np.sum(np.abs(e_level))),
        id_residual_zeroed=0.5 * float(np.sum(np.abs(e_resid))),
        id_places_only=id_places,
        pcnt_id=pcnt_id,
        proportion_units=proportion,
        impact=impact,
        r_squared=r_squared,
        places={lvl: tuple(keys) for lvl, keys in places.items()},
        n_place_units=n_in,
    )
    result = Result(
        params=params,
        info={'levels': tuple(places), 'n_units': n},
        timing=None,
        method_name='effect',
    )
    return EffectSolution(_result=result)


# =====================================================================
# Helpers
# =====================================================================

def _check_level(solution: IndexSolution, level: str) -> None:
    if level not in solution.all_levels:
        raise ConfigurationError(
            f"unsupported level '{level}'. Available: {list(solution.all_levels)}"
        )


def _normalize_places(places, level: str | None) -> dict[str, list]:
    """Coerce the accepted forms of `places` to level → list of keys."""
    if isinstance(places, Mapping):
        if level is not None:
            raise ConfigurationError(
                "level= must not be given when places is a mapping"
            )
        out = {}
        for lvl, keys in places.items():
            if isinstance(keys, (str, bytes)) or not isinstance(keys, Iterable):
                keys = [keys]
            out[lvl] = list(dict.fromkeys(keys))
    else:
        if level is None:
            raise ConfigurationError(
                "level= is required when places is not a mapping of "
                "level → keys"
            )
        if isinstance(places, (str, bytes)) or not isinstance(places, Iterable):
            places = [places]
        out = {level: list(dict.fromkeys(places))}

    out = {lvl: keys for lvl, keys in out.items() if keys}
    if not out:
        raise InvalidInputError("no places named")
    return out


def _membership_r_squared(r: NDArray, masks: list[NDArray]) -> float:
    """One-way ANOVA R² of r on a place-membership factor.

    Each named place is one category and all remaining units form
    another. A unit inside several named places counts towards the
    first of them.
    """
    codes = np.full(r.shape[0], len(masks), dtype=np.intp)
    for k in range(len(masks) - 1, -1, -1):
        codes[masks[k]] = k

    grand = float(np.mean(r))
    ss_total = float(np.sum((r - grand) ** 2))
    if ss_total <= 0:
        return 0.0
    counts = np.bincount(codes, minlength=len(masks) + 1)
    sums = np.bincount(codes, weights=r, minlength=len(masks) + 1)
    present = counts > 0
    means = sums[present] / counts[present]
    ss_between = float(np.sum(counts[present] * (means - grand) ** 2))
    return ss_between / ss_total


def _impact_table(
    level: str,
    labels: NDArray,
    gid: NDArray,
    e: NDArray,
    sigma: float,
) -> ImpactTable:
    """Grouped residual summaries for one level."""
    J = len(labels)
    n = e.shape[0]
    abs_e = np.abs(e)

    counts = np.bincount(gid, minlength=J).astype(np.float64)
    abs_sum = np.bincount(gid, weights=abs_e, minlength=J)
    abs_total = float(np.sum(abs_e))

    pcnt_id = 100.0 * abs_sum / abs_total if abs_total > 0 else np.zeros(J)
    proportion = 100.0 * counts / n
    impact = pcnt_id / proportion * 100.0

    mean = np.bincount(gid, weights=e, minlength=J) / counts
    g_min = np.full(J, np.inf)
    g_max = np.full(J, -np.inf)
    np.minimum.at(g_min, gid, e)
    np.maximum.at(g_max, gid, e)

    ss = np.bincount(gid, weights=(e - mean[gid]) ** 2, minlength=J)
    sd = np.full(J, np.nan)
    multi = counts > 1
    sd[multi] = np.sqrt(ss[multi] / (counts[multi] - 1))

    scale = sigma if sigma > 0 else np.nan
    negative = np.bincount(gid, weights=(e < 0).astype(np.float64), minlength=J)

    return ImpactTable(
        level=level,
        labels=np.asarray(labels).copy(),
        n_units=counts.astype(np.int64),
        pcnt_id=pcnt_id,
        proportion_units=proportion,
        impact=impact,
        scld_mean=mean / scale,
        scld_min=g_min / scale,
        scld_max=g_max / scale,
        scld_sd=sd / scale,
        pcnt_negative=100.0 * negative / counts,
    )
