"""
Solution wrapper for comparison intervals.
"""

from __future__ import annotations

from dataclasses import dataclass

import pandas as pd

from pymlid.core.exceptions import ConfigurationError
from pymlid.diagnostics._common import CatplotData, ConfintTable


@dataclass
class ConfintSolution:
    """Scaled effects with comparison intervals, keyed by level."""
    tables: dict[str, ConfintTable]

    @property
    def levels(self) -> tuple[str, ...]:
        return tuple(self.tables)

    def table(self, level: str) -> ConfintTable:
        try:
            return self.tables[level]
        except KeyError:
            raise ConfigurationError(
                f"no intervals for level '{level}'. Available: {list(self.levels)}"
            ) from None

    def to_frame(self, level: str) -> pd.DataFrame:
        """Intervals for one level, indexed by group key."""
        t = self.table(level)
        return pd.DataFrame(
            {'estimate': t.estimate, 'se': t.se, 'lower': t.lower, 'upper': t.upper},
            index=pd.Index(t.labels, name=level),
        )

    def __getitem__(self, level: str) -> pd.DataFrame:
        return self.to_frame(level)


def catplot_frame(data: CatplotData) -> pd.DataFrame:
    """CatplotData as a DataFrame, one row per shown point."""
    return pd.DataFrame({
        data.level: data.labels,
        'rank': data.rank,
        'estimate': data.estimate,
        'lower': data.lower,
        'upper': data.upper,
    })
