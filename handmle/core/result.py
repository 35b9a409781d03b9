"""
Generic result container for all handmle computations.

Every fit (maximum likelihood, M-estimation, coverage simulation) produces
a Result envelope. Domain-specific Solution classes wrap it and expose
read-only properties.

Design decisions:
    - Generic over parameter payload P
    - info dict for flexible metadata (winning method, status, run table)
    - timing is optional (don't burden unit tests)
    - Immutable (frozen=True): a fit result is created once and never mutated
"""

from dataclasses import dataclass, field
from typing import TypeVar, Generic, Any

P = TypeVar('P')  # Parameter payload type


@dataclass(frozen=True)
class Result(Generic[P]):
    """
    Immutable result envelope for a single estimation run.

    Type Parameters:
        P: The domain-specific parameter payload type

    Attributes:
        params: Domain-specific parameters (coefficients, covariance, ...)
        info: Structured metadata (method, status, optimizer runs)
        timing: Execution timing breakdown, or None if not measured
        backend_name: Identifier of the solver that produced this result
        warnings: Non-fatal issues encountered during computation

    Examples:
        >>> Result(
        ...     params=MLEParams(...),
        ...     info={'method': 'BFGS', 'status': 0},
        ...     timing={'total_seconds': 0.02, 'optimization': 0.015},
        ...     backend_name='optimx'
        ... )
    """
    params: P
    info: dict[str, Any]
    timing: dict[str, float] | None
    backend_name: str
    warnings: tuple[str, ...] = field(default_factory=tuple)

    def has_warning(self, substring: str) -> bool:
        """Check if any warning contains the given substring."""
        return any(substring in w for w in self.warnings)
