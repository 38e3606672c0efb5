"""
Aggregation of unit records and hierarchy nesting checks.

sumup() rolls base-level records up to a coarser level, e.g. turning a
table of neighbourhoods into a table of districts before an analysis.
check_nesting() verifies that an ordered list of hierarchy keys nests:
every value of a lower key determines exactly one value of each key
above it.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import pandas as pd

from pymlid.core.exceptions import InconsistentHierarchyError, InvalidInputError
from pymlid.core.validation import as_frame, check_columns


def check_nesting(records: Any, levels: Sequence[str]) -> None:
    """Verify that hierarchy key columns nest, lowest level first.

    Only adjacent pairs are checked; nesting is transitive.

    Args:
        records: Unit records (DataFrame or mapping of columns).
        levels: Ordered key columns, lowest level first.

    Raises:
        InvalidInputError: If a level column is missing.
        InconsistentHierarchyError: If a lower key spans several
            values of the key above it.
    """
    frame = records if isinstance(records, pd.DataFrame) else as_frame(records)
    levels = [levels] if isinstance(levels, str) else list(levels)
    check_columns(frame, levels)

    for lower, upper in zip(levels[:-1], levels[1:]):
        counts = frame.groupby(lower, sort=False, dropna=False)[upper].nunique(
            dropna=False
        )
        bad = counts[counts > 1]
        if len(bad) > 0:
            raise InconsistentHierarchyError(
                f"'{lower}' does not nest within '{upper}': {len(bad)} "
                f"'{lower}' value(s) span several '{upper}' values "
                f"(e.g. {bad.index[0]!r} spans {int(bad.iloc[0])})",
                level=lower,
                parent=upper,
                example=bad.index[0],
            )


def sumup(
    records: Any,
    by: str,
    drop: Sequence[str] = (),
    *,
    keys: Sequence[str] | None = None,
) -> pd.DataFrame:
    """Aggregate unit records to one row per value of a grouping key.

    Count columns are summed within each group. Key columns (higher
    hierarchy levels) are carried through with their first value, after
    checking they are constant within every group.

    Args:
        records: Unit records (DataFrame or mapping of columns).
        by: Column to group by; becomes the new unit identifier.
        drop: Columns removed before grouping, typically the old unit
            identifier and any levels below `by`.
        keys: Key columns to carry through. Default: every non-numeric
            column other than `by`. All other columns are summed,
            including integer-coded keys such as numeric region codes,
            which must therefore be listed here explicitly.

    Returns:
        New DataFrame, one row per distinct value of `by` in order of
        first appearance, columns in their original order.

    Raises:
        InvalidInputError: Missing columns, or a non-numeric column that
            is neither a key nor dropped.
        InconsistentHierarchyError: A key column varies within a group.

    Examples:
        >>> districts = sumup(neighbourhoods, by='district', drop=['code'])

        Integer region codes would be summed like counts unless named:

        >>> districts = sumup(neighbourhoods, by='district', drop=['code'],
        ...                   keys=['region_code'])
    """
    if isinstance(drop, str):
        drop = [drop]
    frame = as_frame(records)
    check_columns(frame, [by, *drop])
    frame = frame.drop(columns=list(drop))

    if keys is None:
        key_cols = [
            c for c in frame.columns
            if c != by and not pd.api.types.is_numeric_dtype(frame[c])
        ]
    else:
        key_cols = [keys] if isinstance(keys, str) else [k for k in keys if k != by]
        check_columns(frame, key_cols)

    count_cols = [c for c in frame.columns if c != by and c not in key_cols]
    for col in count_cols:
        if not pd.api.types.is_numeric_dtype(frame[col]):
            raise InvalidInputError(
                f"column '{col}' is neither numeric nor a key column; "
                f"list it in keys= or drop=",
                column=col,
            )

    grouped = frame.groupby(by, sort=False, dropna=False)

    for key in key_cols:
        n_values = grouped[key].nunique(dropna=False)
        bad = n_values[n_values > 1]
        if len(bad) > 0:
            raise InconsistentHierarchyError(
                f"key column '{key}' is not constant within '{by}' "
                f"(e.g. {bad.index[0]!r} has {int(bad.iloc[0])} values)",
                level=by,
                parent=key,
                example=bad.index[0],
            )

    parts = []
    if key_cols:
        parts.append(grouped[key_cols].first())
    if count_cols:
        parts.append(grouped[count_cols].sum())
    if parts:
        out = pd.concat(parts, axis=1).reset_index()
    else:
        out = pd.DataFrame({by: frame[by].drop_duplicates().to_numpy()})

    order = [c for c in frame.columns if c in out.columns]
    return out[order].reset_index(drop=True)
