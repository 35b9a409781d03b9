"""
Simulation studies of interval coverage.

Generative simulators for the logistic, Poisson and Weibull models and a
Monte Carlo estimate of Wald interval coverage.
"""

from handmle.montecarlo._simulate import simulate_logistic, simulate_poisson, simulate_weibull
from handmle.montecarlo.coverage import wald_coverage
from handmle.montecarlo.solution import CoverageParams, CoverageSolution

__all__ = [
    "simulate_logistic",
    "simulate_poisson",
    "simulate_weibull",
    "wald_coverage",
    "CoverageParams",
    "CoverageSolution",
]
