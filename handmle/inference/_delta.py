"""
Delta method for smooth transformations of an estimate.

    Var[g(θ̂)] ≈ J Cov(θ̂) Jᵀ,   J = ∂g/∂θ at θ̂
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

import numpy as np
from numpy.typing import ArrayLike, NDArray

from handmle.core.compute.numdiff import numerical_jacobian
from handmle.core.exceptions import DimensionError
from handmle.inference._wald import standard_errors, wald_interval


@dataclass(frozen=True)
class DeltaMethodResult:
    """
    Transformed estimate with its delta-method covariance.

    Attributes:
        estimate: g(θ̂), shape (m,)
        covariance: J Cov(θ̂) Jᵀ, shape (m, m)
        jacobian: J, shape (m, p)
    """
    estimate: NDArray
    covariance: NDArray
    jacobian: NDArray

    @property
    def standard_errors(self) -> NDArray:
        return standard_errors(self.covariance)

    def conf_int(self, conf_level: float = 0.95) -> NDArray:
        """Wald interval on the scale of g, shape (m, 2)."""
        return wald_interval(self.estimate, self.standard_errors, conf_level)


def delta_method(
    g: Callable[[NDArray], ArrayLike],
    theta: ArrayLike,
    cov: ArrayLike,
    jac: Callable[[NDArray], ArrayLike] | None = None,
) -> DeltaMethodResult:
    """
    Propagate Cov(θ̂) through g.

    Args:
        g: Scalar or vector function of θ
        theta: Estimate θ̂
        cov: Covariance of θ̂
        jac: Analytic Jacobian of g; central differences when None
    """
    theta = np.asarray(theta, dtype=np.float64)
    cov = np.asarray(cov, dtype=np.float64)
    p = len(theta)
    if cov.shape != (p, p):
        raise DimensionError(f"cov: expected shape {(p, p)}, got {cov.shape}")

    estimate = np.atleast_1d(np.asarray(g(theta), dtype=np.float64))
    if jac is not None:
        J = np.asarray(jac(theta), dtype=np.float64)
    else:
        J = numerical_jacobian(g, theta)
    J = np.atleast_2d(J)
    if J.shape != (len(estimate), p):
        raise DimensionError(
            f"jacobian: expected shape {(len(estimate), p)}, got {J.shape}"
        )

    V = J @ cov @ J.T
    return DeltaMethodResult(
        estimate=estimate,
        covariance=0.5 * (V + V.T),
        jacobian=J,
    )
