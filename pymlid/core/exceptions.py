"""
Exception hierarchy for PyMLID.

All exceptions inherit from PyMLIDError so callers can catch any
library-specific failure with one clause. The four concrete kinds map
onto the four ways an index analysis can go wrong: bad counts, a
hierarchy that does not nest, a model that cannot be fitted, and a
request that the fitted structure cannot answer.

Design principles:
    - Exceptions carry diagnostic information as attributes
    - Error messages are actionable with actual vs expected values
    - Never catch and re-raise with less information
"""


class PyMLIDError(Exception):
    """Base exception for all PyMLID errors."""
    pass


class InvalidInputError(PyMLIDError):
    """
    Unit records failed validation.

    Raised for negative or non-finite counts, zero column totals,
    missing required columns and too few units.

    Attributes:
        column: Name of the offending column, if known
    """

    def __init__(self, message: str, column: str | None = None):
        super().__init__(message)
        self.column = column


class InconsistentHierarchyError(PyMLIDError):
    """
    Hierarchy keys do not nest.

    Raised when a lower-level key maps onto more than one higher-level
    key, or when an aggregation key does not determine the key columns
    carried alongside it.

    Attributes:
        level: The lower (grouping) level
        parent: The higher-level key that varied within a group
        example: One group key where the violation was found
    """

    def __init__(
        self,
        message: str,
        level: str | None = None,
        parent: str | None = None,
        example: object = None,
    ):
        super().__init__(message)
        self.level = level
        self.parent = parent
        self.example = example


class ModelFitError(PyMLIDError):
    """
    The nested variance-component model could not be fitted.

    Raised when the optimizer exhausts its iteration budget, or when the
    variance structure is unidentifiable (a level with a single group,
    or a level that does not group any units together).

    Attributes:
        iterations: Number of optimizer iterations completed
        reason: Why the fit failed (e.g. 'max_iterations', 'unidentifiable')
        level: Level responsible, for structural failures
    """

    def __init__(
        self,
        message: str,
        iterations: int = 0,
        reason: str | None = None,
        level: str | None = None,
    ):
        super().__init__(message)
        self.iterations = iterations
        self.reason = reason
        self.level = level


class ConfigurationError(PyMLIDError):
    """
    A request does not match the fitted structure or is out of range.

    Raised for unknown or duplicate level names, a multilevel
    decomposition requested from a fit without hierarchy levels, and
    invalid numeric parameters (simulation count, plot cap, CI width).
    """
    pass
