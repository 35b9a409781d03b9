"""
Inference from fitted quantities.

Inverse-Hessian covariances, Wald intervals and tests, the delta method,
working-scale (log, logit, log-log) intervals and sandwich covariances.
"""

from handmle.inference._wald import (
    covariance_from_hessian,
    log_scale_interval,
    p_values,
    standard_errors,
    transformed_interval,
    wald_interval,
    z_critical,
    z_statistics,
)
from handmle.inference._delta import DeltaMethodResult, delta_method
from handmle.inference._sandwich import sandwich_covariance

__all__ = [
    "covariance_from_hessian",
    "standard_errors",
    "wald_interval",
    "z_critical",
    "z_statistics",
    "p_values",
    "transformed_interval",
    "log_scale_interval",
    "delta_method",
    "DeltaMethodResult",
    "sandwich_covariance",
]
