"""
PyMLID: the multilevel index of dissimilarity for Python.

Measures how unevenly two population groups are spread across a set of
geographic units, and attributes that unevenness to the levels of a
nested geography (neighbourhood, district, authority, region).

Submodules:
    preprocess: Shares and aggregation of unit records
    mixed: Nested variance-component model
    index: The index, its expected value, variance partition, holdback
    impacts: Place impacts and counterfactual effects
    diagnostics: Comparison intervals and caterpillar-plot data

The impacts() function shares its name with the subpackage, so it is
exported here as place_impacts (also reachable as pymlid.impacts.impacts).
"""

__version__ = "0.1.0"

from pymlid import preprocess
from pymlid import mixed
from pymlid import index
from pymlid import impacts
from pymlid import diagnostics

from pymlid.preprocess import sumup, to_shares
from pymlid.index import mlid, dissimilarity, expected_id, pvariance, holdback
from pymlid.impacts import effect
from pymlid.impacts import impacts as place_impacts
from pymlid.diagnostics import confint, catplot

__all__ = [
    "__version__",
    "preprocess",
    "mixed",
    "index",
    "impacts",
    "diagnostics",
    "sumup",
    "to_shares",
    "mlid",
    "dissimilarity",
    "expected_id",
    "pvariance",
    "holdback",
    "place_impacts",
    "effect",
    "confint",
    "catplot",
]
