"""
Hessian-based covariance and Wald inference.

The Hessian is always that of the negative log-likelihood, so its inverse
is the asymptotic covariance of the MLE (observed information).
"""

from __future__ import annotations

from typing import Callable

import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy import stats as sp_stats

from handmle.core.exceptions import (
    DimensionError,
    NotPositiveDefiniteError,
    SingularMatrixError,
)
from handmle.core.validation import check_conf_level

# Matrices with a larger condition number are treated as singular
_MAX_CONDITION = 1.0 / np.finfo(np.float64).eps


def z_critical(conf_level: float = 0.95) -> float:
    """Two-sided standard normal critical value, e.g. 1.959964 for 0.95."""
    check_conf_level(conf_level)
    return float(sp_stats.norm.ppf(1.0 - (1.0 - conf_level) / 2.0))


def covariance_from_hessian(H: ArrayLike, matrix_name: str = 'hessian') -> NDArray:
    """
    Invert the Hessian of the negative log-likelihood.

    Raises:
        SingularMatrixError: H is singular or numerically so
        NotPositiveDefiniteError: the inverse has a negative variance,
            i.e. θ is not at a local minimum
    """
    H = np.asarray(H, dtype=np.float64)
    if H.ndim != 2 or H.shape[0] != H.shape[1]:
        raise DimensionError(f"{matrix_name}: expected square matrix, got shape {H.shape}")
    p = H.shape[0]

    if not np.all(np.isfinite(H)):
        raise SingularMatrixError(
            f"{matrix_name} contains non-finite entries",
            matrix_name=matrix_name,
            expected_rank=p,
        )

    cond = float(np.linalg.cond(H))
    if not np.isfinite(cond) or cond > _MAX_CONDITION:
        rank = int(np.linalg.matrix_rank(H))
        raise SingularMatrixError(
            f"{matrix_name} is singular (condition number {cond:.3g}, "
            f"rank {rank}, expected {p})",
            matrix_name=matrix_name,
            condition_number=cond,
            rank=rank,
            expected_rank=p,
        )

    cov = np.linalg.inv(H)
    cov = 0.5 * (cov + cov.T)

    if np.any(np.diag(cov) < 0):
        min_eig = float(np.min(np.linalg.eigvalsh(0.5 * (H + H.T))))
        raise NotPositiveDefiniteError(
            f"{matrix_name} is not positive definite (min eigenvalue "
            f"{min_eig:.3g}); the inverse has negative variances",
            matrix_name=matrix_name,
            min_eigenvalue=min_eig,
        )

    return cov


def standard_errors(cov: ArrayLike) -> NDArray:
    """Square root of the covariance diagonal (NaN for negative entries)."""
    diag = np.diag(np.asarray(cov, dtype=np.float64))
    with np.errstate(invalid='ignore'):
        return np.sqrt(diag)


def wald_interval(
    estimate: ArrayLike,
    se: ArrayLike,
    conf_level: float = 0.95,
) -> NDArray:
    """
    Wald interval estimate ± z·SE.

    Returns:
        Array of shape (..., 2) with lower and upper bounds.
    """
    z = z_critical(conf_level)
    estimate = np.asarray(estimate, dtype=np.float64)
    se = np.asarray(se, dtype=np.float64)
    return np.stack([estimate - z * se, estimate + z * se], axis=-1)


def z_statistics(estimate: ArrayLike, se: ArrayLike, null: float = 0.0) -> NDArray:
    with np.errstate(divide='ignore', invalid='ignore'):
        return (np.asarray(estimate, dtype=np.float64) - null) / np.asarray(se, dtype=np.float64)


def p_values(z: ArrayLike) -> NDArray:
    """Two-sided normal p-values."""
    return 2.0 * sp_stats.norm.sf(np.abs(np.asarray(z, dtype=np.float64)))


def transformed_interval(
    estimate: ArrayLike,
    se: ArrayLike,
    inverse: Callable[[NDArray], NDArray],
    conf_level: float = 0.95,
) -> NDArray:
    """
    Wald interval on a working scale, mapped back through `inverse`.

    `estimate` and `se` are on the working scale (log, logit, log-log...).
    Bounds are re-ordered after the mapping, so decreasing transforms such
    as the complementary log-log are handled.
    """
    bounds = wald_interval(estimate, se, conf_level)
    with np.errstate(over='ignore'):
        lo = np.asarray(inverse(bounds[..., 0]), dtype=np.float64)
        hi = np.asarray(inverse(bounds[..., 1]), dtype=np.float64)
    return np.stack([np.minimum(lo, hi), np.maximum(lo, hi)], axis=-1)


def log_scale_interval(
    estimate: ArrayLike,
    se: ArrayLike,
    conf_level: float = 0.95,
) -> NDArray:
    """
    Interval for a positive quantity built on the log scale.

    `estimate` and `se` are on the natural scale; SE(log x) = SE(x) / x.
    """
    estimate = np.asarray(estimate, dtype=np.float64)
    with np.errstate(divide='ignore', invalid='ignore'):
        log_se = np.asarray(se, dtype=np.float64) / estimate
        return transformed_interval(np.log(estimate), log_se, np.exp, conf_level)
