"""
Solution wrapper for index of dissimilarity analyses.

IndexSolution wraps Result[IndexParams] together with the validated
design and the nested model fit, so the impact, effect and diagnostic
routines can work from one object.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np
import pandas as pd
from numpy.typing import NDArray

from pymlid.core.exceptions import ConfigurationError
from pymlid.core.result import Result
from pymlid.index._common import ExpectedID, IndexParams
from pymlid.mixed import NestedLMMSolution

if TYPE_CHECKING:
    from pymlid.index.design import IndexDesign


@dataclass
class IndexSolution:
    """
    User-facing index results.

    The ID itself, the optional expected ID, and, for a multilevel
    index, the variance partition and holdback per level.
    """
    _result: Result[IndexParams]
    _design: 'IndexDesign'
    _fit: NestedLMMSolution

    # --- Index ---

    @property
    def id(self) -> float:
        """Index of dissimilarity."""
        return self._result.params.id_value

    @property
    def expected(self) -> ExpectedID | None:
        """Simulated expected ID, or None if not requested."""
        return self._result.params.expected

    @property
    def expected_id(self) -> float | None:
        exp = self._result.params.expected
        return None if exp is None else exp.expected_id

    @property
    def pvariance(self) -> dict[str, float] | None:
        """Percentage of residual variance per level (None without levels)."""
        return self._result.params.pvariance

    @property
    def holdback(self) -> dict[str, float] | None:
        """Percentage change in ID per removed level (None without levels)."""
        return self._result.params.holdback

    # --- Structure ---

    @property
    def design(self) -> 'IndexDesign':
        return self._design

    @property
    def fit(self) -> NestedLMMSolution:
        """The nested model fit behind the decomposition."""
        return self._fit

    @property
    def levels(self) -> tuple[str, ...]:
        """Hierarchy levels above base, lowest first."""
        return self._design.levels

    @property
    def base_name(self) -> str:
        return self._result.params.base_name

    @property
    def all_levels(self) -> tuple[str, ...]:
        """Hierarchy levels followed by the base level."""
        return self.levels + (self.base_name,)

    @property
    def n_units(self) -> int:
        return self._result.params.n_units

    # --- Residuals and effects ---

    @property
    def residuals(self) -> NDArray:
        """Total residual y_i − x_i per unit (sum over all levels)."""
        return self._fit.response

    @property
    def sigma(self) -> float:
        """Residual standard deviation used to scale effects."""
        return self._fit.sigma

    def unit_effects(self, level: str) -> NDArray:
        """Each unit's effect term at one level (n,).

        Raises:
            ConfigurationError: If the level is unknown.
        """
        if level == self.base_name:
            return self._fit.residuals
        self._check_level(level)
        return self._fit.level(level).unit_effects

    def group_ids(self, level: str) -> tuple[NDArray, NDArray]:
        """(labels, index into labels per unit) for one level.

        Every base unit is its own group at the base level.
        """
        if level == self.base_name:
            return self._design.ids, np.arange(self.n_units)
        self._check_level(level)
        le = self._fit.level(level)
        return le.labels, le.group_ids

    @property
    def level_effects(self) -> dict[str, pd.Series]:
        """Level name → effect per group key, base level last."""
        out = {}
        for level in self.levels:
            le = self._fit.level(level)
            out[level] = pd.Series(
                le.effects, index=pd.Index(le.labels, name=level), name='effect'
            )
        out[self.base_name] = pd.Series(
            self._fit.residuals,
            index=pd.Index(self._design.ids, name=self.base_name),
            name='effect',
        )
        return out

    @property
    def warnings(self) -> tuple[str, ...]:
        return self._result.warnings

    @property
    def info(self) -> dict:
        return self._result.info

    @property
    def timing(self) -> dict[str, float] | None:
        return self._result.timing

    def _check_level(self, level: str) -> None:
        if level not in self.levels:
            raise ConfigurationError(
                f"unsupported level '{level}'. Available: {list(self.all_levels)}"
            )

    # --- Summary ---

    def summary(self) -> str:
        """Summary of the index and its decomposition."""
        lines = []
        title = "Multilevel index of dissimilarity" if self.levels else \
            "Index of dissimilarity"
        lines.append(title)
        lines.append("=" * 50)
        lines.append(f"  ID: {self.id:.4f}   ({self.n_units} units)")

        exp = self.expected
        if exp is not None:
            lines.append(
                f"  Expected ID: {exp.expected_id:.4f}  "
                f"(MC s.e. {exp.se:.4f}, {exp.n_sims} simulations)"
            )

        if self.levels:
            pv = self.pvariance
            hb = self.holdback
            lines.append("")
            lines.append(f"  {'Level':<14s} {'Pvariance':>10s} {'Holdback':>10s}")
            for level in self.all_levels:
                lines.append(
                    f"  {level:<14s} {pv[level]:10.2f} {hb[level]:10.2f}"
                )

        if self._result.warnings:
            lines.append("")
            for w in self._result.warnings:
                lines.append(f"Warning: {w}")
        return '\n'.join(lines)

    def __repr__(self) -> str:
        return self.summary()
