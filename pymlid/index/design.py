"""
Design class for the index of dissimilarity.

IndexDesign turns a table of unit records into everything an analysis
needs: validated counts, shares, optional total population, and the
ordered hierarchy of group keys. Immutable, validated at construction.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import numpy as np
import pandas as pd
from numpy.typing import ArrayLike, NDArray

from pymlid.core.exceptions import InvalidInputError
from pymlid.core.validation import (
    as_frame, check_columns, check_counts, check_level_names, check_min_units,
)
from pymlid.preprocess import SharePair, to_shares

# Name of the base level when the records carry no identifier column.
BASE = 'base'


@dataclass(frozen=True)
class IndexDesign:
    """
    Frozen design for an index analysis.

    Attributes:
        n_y: Counts of group Y per unit (n,).
        n_x: Counts of group X per unit (n,).
        shares: Shares of each group per unit.
        total: Total population per unit, or None if not supplied.
        ids: Base unit identifiers (n,).
        base_name: Name of the base level (identifier column or 'base').
        levels: Hierarchy levels above base, lowest first.
        groups: Level name → group key per unit (n,).
        n: Number of units.
    """
    n_y: NDArray
    n_x: NDArray
    shares: SharePair
    total: NDArray | None
    ids: NDArray
    base_name: str
    levels: tuple[str, ...]
    groups: dict[str, NDArray]
    n: int

    @classmethod
    def from_records(
        cls,
        data: Any,
        y: str,
        x: str,
        *,
        levels: Sequence[str] = (),
        id: str | None = None,
        total: str | ArrayLike | None = None,
    ) -> IndexDesign:
        """
        Create an index design with validation.

        Args:
            data: Unit records: a DataFrame or a mapping of column → values.
            y: Column holding counts of group Y.
            x: Column holding counts of group X.
            levels: Hierarchy key columns, lowest level above base first.
            id: Column of unique base unit identifiers (optional).
            total: Total-population column name, an array of totals, or
                None.

        Returns:
            Validated IndexDesign.

        Raises:
            InvalidInputError: Missing columns, bad counts, zero totals,
                duplicate identifiers.
            ConfigurationError: Unknown, duplicate or reserved level names.
        """
        frame = as_frame(data)
        required = [y, x]
        if id is not None:
            required.append(id)
        if isinstance(total, str):
            required.append(total)
        check_columns(frame, required)

        n = len(frame)
        check_min_units(n, 2)
        base_name = id if id is not None else BASE
        levels = check_level_names(levels, list(frame.columns), reserved=base_name)

        shares = to_shares(frame[y].to_numpy(), frame[x].to_numpy(), names=(y, x))

        total_arr = None
        if total is not None:
            if isinstance(total, str):
                total_arr = check_counts(frame[total].to_numpy(), total)
            else:
                total_arr = check_counts(total, 'total')
            if total_arr.shape[0] != n:
                raise InvalidInputError(
                    f"total has {total_arr.shape[0]} elements, expected {n}",
                    column='total',
                )

        if id is not None:
            ids = frame[id].to_numpy()
            dupes = pd.Series(ids).duplicated()
            if dupes.any():
                raise InvalidInputError(
                    f"identifier column '{id}' has {int(dupes.sum())} "
                    f"duplicate value(s), e.g. {ids[dupes.to_numpy()][0]!r}",
                    column=id,
                )
        else:
            ids = np.arange(n)

        return cls(
            n_y=check_counts(frame[y].to_numpy(), y),
            n_x=check_counts(frame[x].to_numpy(), x),
            shares=shares,
            total=total_arr,
            ids=ids,
            base_name=base_name,
            levels=levels,
            groups={level: frame[level].to_numpy() for level in levels},
            n=n,
        )
