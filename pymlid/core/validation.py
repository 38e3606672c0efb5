"""
Input validation utilities for PyMLID.

These validators follow the "fail fast, fail loud" principle. They raise
immediately with clear error messages rather than silently correcting
or making assumptions about user intent.

Design principles:
    - No silent type coercion (except np.asarray on array-likes)
    - Clear, actionable error messages with actual values
    - Each function validates ONE thing
    - Column/parameter names included in all error messages
"""

from collections.abc import Sequence
from typing import Any

import numpy as np
import pandas as pd
from numpy.typing import ArrayLike, NDArray

from pymlid.core.exceptions import ConfigurationError, InvalidInputError


def as_frame(records: Any) -> pd.DataFrame:
    """
    Accept a DataFrame or anything DataFrame() accepts.

    The returned frame is a copy, so later steps never alias caller data.

    Raises:
        InvalidInputError: If records cannot be turned into a table
    """
    if isinstance(records, pd.DataFrame):
        return records.copy()
    try:
        return pd.DataFrame(records)
    except (ValueError, TypeError) as e:
        raise InvalidInputError(f"records: cannot convert to a table: {e}") from e


def check_columns(frame: pd.DataFrame, columns: Sequence[str]) -> None:
    """
    Verify every named column is present.

    Raises:
        InvalidInputError: Naming the first missing column
    """
    for col in columns:
        if col not in frame.columns:
            raise InvalidInputError(
                f"column '{col}' not found. Available: {list(frame.columns)}",
                column=col,
            )


def check_counts(array: ArrayLike, name: str) -> NDArray[np.float64]:
    """
    Validate a count vector: numeric, 1-D, finite and non-negative.

    Args:
        array: Counts, one per unit
        name: Column name for error messages

    Returns:
        float64 copy of the counts

    Raises:
        InvalidInputError: On non-numeric, non-finite or negative values
    """
    try:
        result = np.array(array, dtype=np.float64)
    except (ValueError, TypeError) as e:
        raise InvalidInputError(f"{name}: non-numeric counts: {e}", column=name) from e

    if result.ndim != 1:
        raise InvalidInputError(
            f"{name}: expected 1D counts, got shape {result.shape}", column=name
        )
    if not np.all(np.isfinite(result)):
        n_bad = int(np.sum(~np.isfinite(result)))
        raise InvalidInputError(
            f"{name}: contains {n_bad} non-finite value(s)", column=name
        )
    if np.any(result < 0):
        n_neg = int(np.sum(result < 0))
        raise InvalidInputError(
            f"{name}: contains {n_neg} negative count(s), min={result.min()}",
            column=name,
        )
    return result


def check_positive_total(counts: NDArray, name: str) -> float:
    """
    Verify a count vector sums to a strictly positive total.

    Returns:
        The total

    Raises:
        InvalidInputError: If the total is zero
    """
    total = float(np.sum(counts))
    if total <= 0:
        raise InvalidInputError(
            f"{name}: total must be > 0, got {total}", column=name
        )
    return total


def check_min_units(n: int, min_units: int) -> None:
    """
    Verify there are enough units to analyse.

    Raises:
        InvalidInputError: If n < min_units
    """
    if n < min_units:
        raise InvalidInputError(
            f"requires at least {min_units} units, got {n}"
        )


def check_level_names(
    levels: Sequence[str],
    available: Sequence[str],
    reserved: str | None = None,
) -> tuple[str, ...]:
    """
    Validate an ordered hierarchy specification.

    Args:
        levels: Level names, lowest above base first
        available: Column names present on the unit records
        reserved: Base-level name that no hierarchy level may reuse

    Returns:
        The levels as a tuple

    Raises:
        ConfigurationError: On unknown, duplicate or reserved names
    """
    if isinstance(levels, str):
        levels = (levels,)
    levels = tuple(levels)
    seen = set()
    for level in levels:
        if level in seen:
            raise ConfigurationError(f"level '{level}' listed more than once")
        seen.add(level)
        if reserved is not None and level == reserved:
            raise ConfigurationError(
                f"level '{level}' is the base unit identifier and cannot "
                f"also be a hierarchy level"
            )
        if level not in available:
            raise ConfigurationError(
                f"unsupported level '{level}': not a column. "
                f"Available: {list(available)}"
            )
    return levels


def check_positive(value: float, name: str) -> None:
    """
    Verify a numeric parameter is strictly positive.

    Raises:
        ConfigurationError: If value <= 0
    """
    if not value > 0:
        raise ConfigurationError(f"{name} must be > 0, got {value}")
