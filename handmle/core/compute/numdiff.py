"""
Finite-difference derivatives.

Central differences are used throughout: the truncation error is O(h²), so
an analytic gradient can be checked against them to roughly 1e-8 relative
accuracy, well inside the GRADIENT_CHECK tolerance.

Step sizes follow the usual rule for central differences,
h_i = eps^(1/3) * max(1, |x_i|) for first derivatives and
eps^(1/4) * max(1, |x_i|) for second derivatives of a scalar function.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

import numpy as np
from numpy.typing import NDArray

from handmle.core.compute.tolerances import GRADIENT_CHECK

_EPS = np.finfo(np.float64).eps
_STEP_FIRST = _EPS ** (1.0 / 3.0)
_STEP_SECOND = _EPS ** (1.0 / 4.0)


def _steps(x: NDArray, base: float) -> NDArray:
    return base * np.maximum(1.0, np.abs(x))


def numerical_gradient(
    f: Callable[[NDArray], float],
    x: NDArray,
) -> NDArray:
    """Central-difference gradient of a scalar function."""
    x = np.asarray(x, dtype=np.float64)
    h = _steps(x, _STEP_FIRST)
    grad = np.empty_like(x)

    for i in range(len(x)):
        x_plus = x.copy()
        x_minus = x.copy()
        x_plus[i] += h[i]
        x_minus[i] -= h[i]
        grad[i] = (f(x_plus) - f(x_minus)) / (2.0 * h[i])

    return grad


def numerical_jacobian(
    f: Callable[[NDArray], NDArray],
    x: NDArray,
) -> NDArray:
    """
    Central-difference Jacobian of a vector-valued function.

    Returns:
        Array of shape (m, p) where m = len(f(x)) and p = len(x).
    """
    x = np.asarray(x, dtype=np.float64)
    h = _steps(x, _STEP_FIRST)
    m = np.atleast_1d(np.asarray(f(x), dtype=np.float64)).shape[0]
    jac = np.empty((m, len(x)), dtype=np.float64)

    for i in range(len(x)):
        x_plus = x.copy()
        x_minus = x.copy()
        x_plus[i] += h[i]
        x_minus[i] -= h[i]
        f_plus = np.atleast_1d(np.asarray(f(x_plus), dtype=np.float64))
        f_minus = np.atleast_1d(np.asarray(f(x_minus), dtype=np.float64))
        jac[:, i] = (f_plus - f_minus) / (2.0 * h[i])

    return jac


def numerical_hessian(
    f: Callable[[NDArray], float],
    x: NDArray,
) -> NDArray:
    """
    Central second-difference Hessian of a scalar function.

    Only needs function values. Prefer hessian_from_gradient() when an
    analytic gradient exists; it is an order of magnitude more accurate.
    """
    x = np.asarray(x, dtype=np.float64)
    p = len(x)
    h = _steps(x, _STEP_SECOND)
    H = np.empty((p, p), dtype=np.float64)

    def shifted(i: int, si: float, j: int, sj: float) -> float:
        xs = x.copy()
        xs[i] += si * h[i]
        xs[j] += sj * h[j]
        return f(xs)

    for i in range(p):
        for j in range(i, p):
            value = (
                shifted(i, 1.0, j, 1.0)
                - shifted(i, 1.0, j, -1.0)
                - shifted(i, -1.0, j, 1.0)
                + shifted(i, -1.0, j, -1.0)
            ) / (4.0 * h[i] * h[j])
            H[i, j] = value
            H[j, i] = value

    return H


def hessian_from_gradient(
    grad: Callable[[NDArray], NDArray],
    x: NDArray,
) -> NDArray:
    """Symmetrized central-difference Jacobian of an analytic gradient."""
    J = numerical_jacobian(grad, x)
    return 0.5 * (J + J.T)


@dataclass(frozen=True)
class GradientCheck:
    """
    Outcome of comparing an analytic gradient with finite differences.

    A failed check means the derivation is wrong; it is reported, not raised.
    """
    analytic: NDArray
    numerical: NDArray
    max_abs_diff: float
    max_rel_diff: float
    tol: float

    @property
    def passed(self) -> bool:
        return bool(self.max_rel_diff <= self.tol)

    def __repr__(self) -> str:
        return (
            f"GradientCheck(passed={self.passed}, "
            f"max_abs_diff={self.max_abs_diff:.3g}, "
            f"max_rel_diff={self.max_rel_diff:.3g})"
        )


def check_gradient(
    f: Callable[[NDArray], float],
    grad: Callable[[NDArray], NDArray],
    x: NDArray,
    tol: float = GRADIENT_CHECK.rtol,
) -> GradientCheck:
    """
    Compare an analytic gradient with a central-difference approximation.

    The relative difference is scaled by max(1, |numerical|) per entry, so
    small gradient entries are judged on an absolute scale.

    Args:
        f: Scalar objective
        grad: Analytic gradient of f
        x: Test point (e.g. the zero vector)
        tol: Pass threshold on the maximum relative difference
    """
    x = np.asarray(x, dtype=np.float64)
    analytic = np.asarray(grad(x), dtype=np.float64)
    numeric = numerical_gradient(f, x)

    abs_diff = np.abs(analytic - numeric)
    rel_diff = abs_diff / np.maximum(1.0, np.abs(numeric))

    return GradientCheck(
        analytic=analytic,
        numerical=numeric,
        max_abs_diff=float(np.max(abs_diff)) if abs_diff.size else 0.0,
        max_rel_diff=float(np.max(rel_diff)) if rel_diff.size else 0.0,
        tol=tol,
    )
