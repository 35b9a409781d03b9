"""
Core infrastructure for handmle.

This module provides the foundational components shared by all models:
- Exceptions
- Result envelope
- Validation utilities
- Protocols (Objective, Optimizer)
- Objective base class and the out-of-domain PENALTY
"""

from handmle.core.exceptions import (
    HandMLEError,
    ValidationError,
    DimensionError,
    NumericalError,
    SingularMatrixError,
    NotPositiveDefiniteError,
    ConvergenceError,
)
from handmle.core.result import Result
from handmle.core.protocols import Objective, Optimizer
from handmle.core.objective import ObjectiveBase, PENALTY

__all__ = [
    # Exceptions
    "HandMLEError",
    "ValidationError",
    "DimensionError",
    "NumericalError",
    "SingularMatrixError",
    "NotPositiveDefiniteError",
    "ConvergenceError",
    # Result
    "Result",
    # Protocols
    "Objective",
    "Optimizer",
    # Objective base
    "ObjectiveBase",
    "PENALTY",
]
