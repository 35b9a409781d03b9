"""
Generic maximum likelihood fitting.

Fits any Objective with the multi-algorithm optimizer driver and derives
inverse-Hessian standard errors.
"""

from handmle.mle.solvers import fit_mle, solve_mle
from handmle.mle.solution import MLEParams, MLESolution

__all__ = [
    "fit_mle",
    "solve_mle",
    "MLEParams",
    "MLESolution",
]
