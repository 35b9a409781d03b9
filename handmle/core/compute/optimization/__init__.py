"""
Optimizer driver for handmle.

optimx() runs several local optimization algorithms on one objective and
returns their run records; OptimxResult filters and tabulates them.
"""

from handmle.core.compute.optimization._optimx import (
    DEFAULT_METHODS,
    FAILURE_STATUS,
    OptimRun,
    OptimxResult,
    ScipyMinimizer,
    failed_run,
    optimx,
)

__all__ = [
    "DEFAULT_METHODS",
    "FAILURE_STATUS",
    "OptimRun",
    "OptimxResult",
    "ScipyMinimizer",
    "failed_run",
    "optimx",
]
