"""
Exception hierarchy for handmle.

All exceptions inherit from HandMLEError so callers can catch any
library-specific error in one place.

Design principles:
    - Exceptions carry diagnostic information as attributes
    - Error messages are actionable with actual vs expected values
    - Optimizer non-convergence is a status, not an exception; ConvergenceError
      is only raised when a caller explicitly demands a converged run
"""


class HandMLEError(Exception):
    """Base exception for all handmle errors."""
    pass


class ValidationError(HandMLEError):
    """
    Input validation failed.

    Raised at the public API boundary when user-provided data or
    arguments fail validation checks.
    """
    pass


class DimensionError(ValidationError):
    """
    Array dimensions are incorrect or inconsistent.

    Raised when array shapes don't match expected dimensions, or when a
    parameter vector has the wrong length for its objective.
    """
    pass


class NumericalError(HandMLEError):
    """
    Numerical computation failed.

    Base class for errors arising from numerical issues during inference.
    """
    pass


class SingularMatrixError(NumericalError):
    """
    Matrix is singular or nearly singular.

    Raised when a Hessian or bread matrix must be inverted but is not
    invertible.

    Attributes:
        matrix_name: Name/description of the problematic matrix
        condition_number: Estimated condition number, if available
        rank: Numerical rank, if computed
        expected_rank: Expected rank (the number of parameters)
    """

    def __init__(
        self,
        message: str,
        matrix_name: str | None = None,
        condition_number: float | None = None,
        rank: int | None = None,
        expected_rank: int | None = None
    ):
        super().__init__(message)
        self.matrix_name = matrix_name
        self.condition_number = condition_number
        self.rank = rank
        self.expected_rank = expected_rank


class NotPositiveDefiniteError(NumericalError):
    """
    Matrix is not positive definite.

    Raised when an inverted Hessian has negative variances on its
    diagonal, which happens when the optimizer stopped at a saddle point
    or outside a local minimum.

    Attributes:
        matrix_name: Name/description of the problematic matrix
        min_eigenvalue: Minimum eigenvalue, if computed
    """

    def __init__(
        self,
        message: str,
        matrix_name: str | None = None,
        min_eigenvalue: float | None = None
    ):
        super().__init__(message)
        self.matrix_name = matrix_name
        self.min_eigenvalue = min_eigenvalue


class ConvergenceError(HandMLEError):
    """
    No optimizer or root-finder run converged.

    Raised by OptimxResult.best() when every algorithm reported a
    non-zero status code.

    Attributes:
        iterations: Number of iterations completed (largest over runs)
        final_change: Final parameter or objective change, if known
        reason: Why convergence failed (e.g. the optimizer's message)
        threshold: The convergence threshold that was not met
    """

    def __init__(
        self,
        message: str,
        iterations: int,
        final_change: float | None = None,
        reason: str | None = None,
        threshold: float | None = None
    ):
        super().__init__(message)
        self.iterations = iterations
        self.final_change = final_change
        self.reason = reason
        self.threshold = threshold
