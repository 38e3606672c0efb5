"""
Solution wrappers for impact and effect results.

ImpactSolution wraps Result[ImpactParams] and exports tables as pandas
DataFrames; EffectSolution wraps Result[EffectParams].
"""

from __future__ import annotations

from dataclasses import dataclass

import pandas as pd

from pymlid.core.exceptions import ConfigurationError
from pymlid.core.result import Result
from pymlid.impacts._common import EffectParams, ImpactParams, ImpactTable

_IMPACT_COLUMNS = (
    'n_units', 'pcnt_id', 'proportion_units', 'impact',
    'scld_mean', 'scld_min', 'scld_max', 'scld_sd', 'pcnt_negative',
)


@dataclass
class ImpactSolution:
    """Per-group contribution statistics at one or more levels."""
    _result: Result[ImpactParams]

    @property
    def levels(self) -> tuple[str, ...]:
        return tuple(self._result.params.tables)

    @property
    def sigma(self) -> float:
        """Residual standard deviation the scaled statistics divide by."""
        return self._result.params.sigma

    def table(self, level: str) -> ImpactTable:
        try:
            return self._result.params.tables[level]
        except KeyError:
            raise ConfigurationError(
                f"no impact table for level '{level}'. Available: "
                f"{list(self.levels)}"
            ) from None

    def to_frame(self, level: str) -> pd.DataFrame:
        """Impact table for one level, indexed by group key."""
        t = self.table(level)
        return pd.DataFrame(
            {col: getattr(t, col) for col in _IMPACT_COLUMNS},
            index=pd.Index(t.labels, name=level),
        )

    def __getitem__(self, level: str) -> pd.DataFrame:
        return self.to_frame(level)

    def summary(self) -> str:
        lines = ["Place impacts", "=" * 50]
        for level in self.levels:
            frame = self.to_frame(level).sort_values('pcnt_id', ascending=False)
            lines.append(f"Level: {level}  ({len(frame)} groups)")
            lines.append(frame.head(10).to_string(float_format=lambda v: f"{v:.3f}"))
            lines.append("")
        return '\n'.join(lines)


@dataclass
class EffectSolution:
    """Counterfactual IDs for a set of named places."""
    _result: Result[EffectParams]

    @property
    def params(self) -> EffectParams:
        return self._result.params

    @property
    def id(self) -> float:
        """Observed ID."""
        return self.params.id_value

    @property
    def id_level_zeroed(self) -> float:
        """ID with the places' own level effects set to 0."""
        return self.params.id_level_zeroed

    @property
    def id_residual_zeroed(self) -> float:
        """ID with place units' whole residuals set to 0."""
        return self.params.id_residual_zeroed

    @property
    def id_places_only(self) -> float:
        """ID over place units alone."""
        return self.params.id_places_only

    @property
    def scenarios(self) -> dict[str, float]:
        return {
            'level_zeroed': self.id_level_zeroed,
            'residual_zeroed': self.id_residual_zeroed,
            'places_only': self.id_places_only,
        }

    @property
    def impact(self) -> float:
        return self.params.impact

    @property
    def r_squared(self) -> float:
        return self.params.r_squared

    @property
    def places(self) -> dict[str, tuple]:
        return self.params.places

    def summary(self) -> str:
        p = self.params
        named = "; ".join(
            f"{lvl}: {', '.join(map(str, keys))}" for lvl, keys in p.places.items()
        )
        lines = [
            "Effect of named places",
            "=" * 50,
            f"  Places: {named}  ({p.n_place_units} units)",
            f"  Observed ID:                {p.id_value:.4f}",
            f"  Level effects removed:      {p.id_level_zeroed:.4f}",
            f"  Place residuals removed:    {p.id_residual_zeroed:.4f}",
            f"  Places only:                {p.id_places_only:.4f}",
            f"  Impact: {p.impact:.1f}  (pcnt ID {p.pcnt_id:.2f}, "
            f"pcnt units {p.proportion_units:.2f})",
            f"  R-squared: {p.r_squared:.4f}",
        ]
        return '\n'.join(lines)
