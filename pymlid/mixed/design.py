"""
Design validation for the nested variance-component model.

NestedDesign validates and organizes the inputs: the response y, the
offset entering with coefficient one, and the ordered hierarchy of
grouping keys.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

import numpy as np
import pandas as pd
from numpy.typing import ArrayLike, NDArray

from pymlid.core.exceptions import InvalidInputError, ModelFitError
from pymlid.core.validation import check_min_units
from pymlid.preprocess import check_nesting


@dataclass(frozen=True)
class NestedDesign:
    """Validated design for a nested random-intercept model.

    Attributes:
        y: Response vector (n,).
        offset: Offset vector with fixed coefficient 1 (n,).
        groups: Ordered dict of level name → group labels (n,),
            lowest level above base first.
        n: Number of base units.
    """
    y: NDArray
    offset: NDArray
    groups: dict[str, NDArray]
    n: int

    @staticmethod
    def validate(
        y: ArrayLike,
        offset: ArrayLike,
        groups: Mapping[str, ArrayLike] | None,
    ) -> 'NestedDesign':
        """Validate inputs and create a NestedDesign.

        Args:
            y: Response vector.
            offset: Offset vector, same length as y.
            groups: Ordered mapping of level name → labels per unit,
                lowest level first. May be empty.

        Returns:
            Validated NestedDesign.

        Raises:
            InvalidInputError: On shape mismatches, non-finite values or
                missing group labels.
            InconsistentHierarchyError: If the levels do not nest.
            ModelFitError: If a level's variance is unidentifiable.
        """
        y = np.array(y, dtype=np.float64).ravel()
        offset = np.array(offset, dtype=np.float64).ravel()
        n = len(y)

        check_min_units(n, 3 if groups else 2)
        if offset.shape[0] != n:
            raise InvalidInputError(
                f"offset has {offset.shape[0]} elements, expected {n} (matching y)"
            )
        if not np.all(np.isfinite(y)):
            raise InvalidInputError("y contains non-finite values (NaN or Inf)")
        if not np.all(np.isfinite(offset)):
            raise InvalidInputError("offset contains non-finite values (NaN or Inf)")

        groups_validated: dict[str, NDArray] = {}
        for name, g in (groups or {}).items():
            g = np.asarray(g)
            if g.ndim != 1 or g.shape[0] != n:
                raise InvalidInputError(
                    f"Level '{name}' has {g.shape[0] if g.ndim else 0} "
                    f"elements, expected {n}",
                    column=name,
                )
            if pd.isna(g).any():
                raise InvalidInputError(
                    f"Level '{name}' has {int(pd.isna(g).sum())} missing "
                    f"group label(s)",
                    column=name,
                )
            groups_validated[name] = g

        if groups_validated:
            check_nesting(pd.DataFrame(groups_validated), list(groups_validated))
        _check_identifiable(groups_validated, n)

        return NestedDesign(
            y=y,
            offset=offset,
            groups=groups_validated,
            n=n,
        )


def _check_identifiable(groups: dict[str, NDArray], n: int) -> None:
    """Each level must group units together and split them apart.

    A level with one group is confounded with the (absent) intercept;
    a level with as many groups as units, or as many as the level below
    it, is confounded with that lower level.
    """
    below_name, below_count = 'base units', n
    for name, g in groups.items():
        n_groups = len(pd.unique(g))
        if n_groups < 2:
            raise ModelFitError(
                f"Level '{name}' has only {n_groups} group; its variance "
                f"is unidentifiable (need at least 2)",
                reason='unidentifiable',
                level=name,
            )
        if n_groups >= below_count:
            raise ModelFitError(
                f"Level '{name}' has {n_groups} groups, as many as "
                f"{below_name} ({below_count}); its variance is "
                f"unidentifiable",
                reason='unidentifiable',
                level=name,
            )
        below_name, below_count = f"level '{name}'", n_groups
