"""
Solution wrapper for the nested variance-component model.

NestedLMMSolution wraps Result[NestedLMMParams] and provides R-style
summary output and accessors for the per-level effects every
downstream analysis (index, impacts, diagnostics) is built from.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from pymlid.core.exceptions import ConfigurationError
from pymlid.core.result import Result
from pymlid.mixed._common import LevelEffects, NestedLMMParams, VarCompSummary


class NestedLMMSolution:
    """Solution wrapper for a fitted nested random-intercept model."""

    def __init__(self, _result: Result[NestedLMMParams]):
        self._result = _result

    @property
    def params(self) -> NestedLMMParams:
        return self._result.params

    @property
    def warnings(self) -> tuple[str, ...]:
        return self._result.warnings

    @property
    def info(self) -> dict:
        return self._result.info

    @property
    def timing(self) -> dict[str, float] | None:
        return self._result.timing

    # --- Hierarchy ---

    @property
    def levels(self) -> tuple[str, ...]:
        """Hierarchy levels above base, lowest first."""
        return self.params.levels

    def level(self, name: str) -> LevelEffects:
        """LevelEffects for one hierarchy level.

        Raises:
            ConfigurationError: If the level was not part of the fit.
        """
        try:
            return self.params.level_effects[name]
        except KeyError:
            raise ConfigurationError(
                f"unsupported level '{name}'. Fitted levels: {list(self.levels)}"
            ) from None

    # --- Random effects ---

    @property
    def ranef(self) -> dict[str, NDArray]:
        """BLUPs per level, in each level's label order."""
        return {k: v.effects for k, v in self.params.level_effects.items()}

    @property
    def var_components(self) -> tuple[VarCompSummary, ...]:
        """Variance components, levels first then the residual."""
        return self.params.var_components

    @property
    def variances(self) -> dict[str, float]:
        """Level name → variance, with the base residual under 'Residual'."""
        return {vc.level: vc.variance for vc in self.params.var_components}

    @property
    def residual_variance(self) -> float:
        return self.params.residual_variance

    @property
    def sigma(self) -> float:
        """Residual standard deviation σ, the scale for scaled effects."""
        return self.params.residual_std

    @property
    def residuals(self) -> NDArray:
        """Base-level component of each unit's residual."""
        return self.params.residuals

    @property
    def response(self) -> NDArray:
        """y - offset, the quantity being decomposed."""
        return self.params.response

    # --- Model fit ---

    @property
    def log_likelihood(self) -> float:
        return self.params.log_likelihood

    @property
    def aic(self) -> float:
        return self.params.aic

    @property
    def bic(self) -> float:
        return self.params.bic

    @property
    def converged(self) -> bool:
        return self.params.converged

    # --- Summary ---

    def summary(self) -> str:
        """R-style summary of the variance components."""
        p = self.params
        lines = []
        method = self._result.info.get('method', 'REML')
        lines.append(f"Nested random-intercept model fit by {method}")
        lines.append("")
        if np.isfinite(p.log_likelihood):
            lines.append("     AIC      BIC   logLik")
            lines.append(
                f"{p.aic:8.1f} {p.bic:8.1f} {p.log_likelihood:8.1f}"
            )
            lines.append("")

        lines.append("Random effects:")
        lines.append(f" {'Level':<14s} {'Variance':>12s} {'Std.Dev.':>12s}")
        for vc in p.var_components:
            lines.append(
                f" {vc.level:<14s} {vc.variance:12.4e} {vc.std_dev:12.4e}"
            )
        group_parts = [f"{name}, {count}" for name, count in p.n_groups.items()]
        if group_parts:
            lines.append(
                f"Number of obs: {p.n_obs}, groups:  " + "; ".join(group_parts)
            )
        else:
            lines.append(f"Number of obs: {p.n_obs}")
        if p.collapsed:
            lines.append("")
            lines.append(
                "Zero-variance levels (effects set to 0): "
                + ", ".join(p.collapsed)
            )
        if self._result.warnings:
            lines.append("")
            for w in self._result.warnings:
                lines.append(f"Warning: {w}")
        return '\n'.join(lines)

    def __repr__(self) -> str:
        return self.summary()
