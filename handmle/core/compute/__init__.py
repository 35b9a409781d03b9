"""
Shared numeric infrastructure for handmle.

This module provides timing, tolerance tiers, finite differences and the
optimizer driver shared by every model.

IMPORTANT: This is NOT where model likelihoods live. Those go in
{domain}/_*.py. This module contains shared NUMERIC infrastructure.

Submodules:
    timing: Execution timing utilities
    tolerances: Agreement thresholds
    numdiff: Finite-difference gradients, Jacobians, Hessians
    optimization: Multi-algorithm optimizer driver
"""

from handmle.core.compute.timing import Timer, timed
from handmle.core.compute.numdiff import (
    GradientCheck,
    check_gradient,
    hessian_from_gradient,
    numerical_gradient,
    numerical_hessian,
    numerical_jacobian,
)

__all__ = [
    # Timing
    "Timer",
    "timed",
    # Finite differences
    "GradientCheck",
    "check_gradient",
    "hessian_from_gradient",
    "numerical_gradient",
    "numerical_hessian",
    "numerical_jacobian",
]
