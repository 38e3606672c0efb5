"""
Core infrastructure for PyMLID.

Shared abstractions used by every domain submodule (preprocess, mixed,
index, impacts, diagnostics).

Key components:
    result: Generic Result[P] envelope
    exceptions: Exception hierarchy
    validation: Input validators
    compute.timing: Section timer for iterative routines
"""

from pymlid.core.result import Result
from pymlid.core.exceptions import (
    PyMLIDError,
    InvalidInputError,
    InconsistentHierarchyError,
    ModelFitError,
    ConfigurationError,
)

__all__ = [
    # Result
    "Result",
    # Exceptions
    "PyMLIDError",
    "InvalidInputError",
    "InconsistentHierarchyError",
    "ModelFitError",
    "ConfigurationError",
]
