"""
M-estimation with the empirical sandwich variance.

Stack estimating functions ψ(O; θ), solve Σψ = 0 and get robust standard
errors without a likelihood.
"""

from handmle.mestimation._equations import ee_mean, ee_mean_variance, ee_regression
from handmle.mestimation.estimator import MEstimator
from handmle.mestimation.solution import MEstimationParams, MEstimationSolution

__all__ = [
    "ee_mean",
    "ee_mean_variance",
    "ee_regression",
    "MEstimator",
    "MEstimationParams",
    "MEstimationSolution",
]
