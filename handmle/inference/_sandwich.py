"""Sandwich (robust) covariance for M-estimators."""

import numpy as np
from numpy.typing import ArrayLike, NDArray

from handmle.core.exceptions import DimensionError, SingularMatrixError


def sandwich_covariance(bread: ArrayLike, meat: ArrayLike, n: int) -> NDArray:
    """
    Empirical sandwich B⁻¹ F (B⁻¹)ᵀ / n.

    Args:
        bread: B = -(1/n) Σ ∂ψ/∂θ, shape (k, k)
        meat: F = (1/n) Σ ψψᵀ, shape (k, k)
        n: Number of observations
    """
    B = np.asarray(bread, dtype=np.float64)
    F = np.asarray(meat, dtype=np.float64)
    if B.ndim != 2 or B.shape[0] != B.shape[1] or F.shape != B.shape:
        raise DimensionError(
            f"bread and meat must be square and equal in shape, "
            f"got {B.shape} and {F.shape}"
        )

    try:
        B_inv = np.linalg.inv(B)
    except np.linalg.LinAlgError as e:
        raise SingularMatrixError(
            f"bread matrix is singular: {e}",
            matrix_name='bread',
            rank=int(np.linalg.matrix_rank(B)),
            expected_rank=B.shape[0],
        ) from e

    V = B_inv @ F @ B_inv.T / n
    return 0.5 * (V + V.T)
