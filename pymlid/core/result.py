"""
Generic result container for all PyMLID computations.

Every analysis returns a Result wrapped in a domain solution class.
The envelope is where the non-numeric side of a computation lives:
method metadata, timing, and non-fatal warnings (for example an
estimated total population, or an optimizer that stopped abnormally).

Design decisions:
    - Generic over parameter payload P for type safety
    - info dict for flexible metadata (converged, iterations, deviance)
    - timing is optional (closed-form computations skip it)
    - Immutable (frozen=True) so results can be shared without copying
"""

from dataclasses import dataclass, field
from typing import TypeVar, Generic, Any

P = TypeVar('P')  # Parameter payload type


@dataclass(frozen=True)
class Result(Generic[P]):
    """
    Immutable result envelope for index computations.

    Type Parameters:
        P: The domain-specific parameter payload type

    Attributes:
        params: Domain-specific payload (effects, variances, tables, ...)
        info: Structured metadata (method, convergence, diagnostics)
        timing: Execution timing breakdown, or None if not measured
        method_name: Identifier of the routine that produced this result
        warnings: Non-fatal issues encountered during computation

    Examples:
        >>> Result(
        ...     params=NestedLMMParams(...),
        ...     info={'method': 'REML', 'converged': True, 'n_iter': 12},
        ...     timing={'total_seconds': 0.05, 'optimization': 0.04},
        ...     method_name='nested_reml',
        ... )
    """
    params: P
    info: dict[str, Any]
    timing: dict[str, float] | None
    method_name: str
    warnings: tuple[str, ...] = field(default_factory=tuple)

    def has_warning(self, substring: str) -> bool:
        """Check if any warning contains the given substring."""
        return any(substring in w for w in self.warnings)
