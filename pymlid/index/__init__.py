"""
Index of dissimilarity, single-level and multilevel.

Public API:
    dissimilarity()  — ID from two share vectors
    expected_id()    — simulated ID under random allocation
    mlid()           — multilevel index from a table of unit records
    pvariance()      — variance partition per level
    holdback()       — holdback per level
    IndexSolution    — result wrapper
    ExpectedID       — simulation result

Usage:
    from pymlid.index import mlid

    result = mlid(df, 'Y', 'X', levels=['district', 'region'], expected=True)
    print(result.summary())
"""

from pymlid.index._common import DEFAULT_N_SIMS, ExpectedID
from pymlid.index.design import BASE, IndexDesign
from pymlid.index.solvers import (
    dissimilarity, expected_id, mlid, pvariance, holdback,
)
from pymlid.index.solution import IndexSolution

__all__ = [
    "DEFAULT_N_SIMS",
    "BASE",
    "ExpectedID",
    "IndexDesign",
    "IndexSolution",
    "dissimilarity",
    "expected_id",
    "mlid",
    "pvariance",
    "holdback",
]
