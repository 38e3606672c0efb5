"""
Preprocessing of unit records.

Public API:
    to_shares()       — counts to per-unit shares of each group
    estimate_total()  — default total-population estimate (n_y + n_x)
    sumup()           — aggregate records to a coarser level
    check_nesting()   — verify hierarchy keys nest
    SharePair         — shares of both groups
"""

from pymlid.preprocess._shares import SharePair, to_shares, estimate_total
from pymlid.preprocess._sumup import sumup, check_nesting

__all__ = [
    "SharePair",
    "to_shares",
    "estimate_total",
    "sumup",
    "check_nesting",
]
