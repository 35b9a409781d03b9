"""
Estimating functions for M-estimation.

Each function returns the per-observation values ψ(Oᵢ; θ) as a (k, n)
array: one row per parameter, one column per observation. The
M-estimator solves Σᵢ ψ(Oᵢ; θ) = 0.
"""

import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy.special import expit

from handmle.core.exceptions import ValidationError

MODELS = ('linear', 'logistic', 'poisson')


def ee_mean(theta: ArrayLike, y: ArrayLike) -> NDArray:
    """ψ = y - μ. θ = (μ,)."""
    mu = np.ravel(theta)[0]
    y = np.asarray(y, dtype=np.float64)
    return (y - mu)[None, :]


def ee_mean_variance(theta: ArrayLike, y: ArrayLike) -> NDArray:
    """
    ψ = (y - μ, (y - μ)² - σ²). θ = (μ, σ²).

    σ̂² is the MLE (divisor n), not the unbiased sample variance.
    """
    mu, sigma2 = np.ravel(theta)[:2]
    y = np.asarray(y, dtype=np.float64)
    return np.vstack([y - mu, (y - mu) ** 2 - sigma2])


def ee_regression(
    theta: ArrayLike,
    X: ArrayLike,
    y: ArrayLike,
    model: str = 'linear',
    weights: ArrayLike | None = None,
    offset: ArrayLike | None = None,
) -> NDArray:
    """
    Score equations of a GLM with canonical link: ψ = w (y - μ) x.

    Args:
        theta: Coefficients, one per column of X
        X: Model matrix (n, k), including an intercept column if wanted
        y: Response (n,)
        model: 'linear' (μ = η), 'logistic' (μ = expit(η)) or 'poisson' (μ = exp(η))
        weights: Observation weights (default 1)
        offset: Added to the linear predictor (default 0)
    """
    if model not in MODELS:
        raise ValidationError(f"model: must be one of {MODELS}, got {model!r}")
    beta = np.ravel(np.asarray(theta, dtype=np.float64))
    X = np.asarray(X, dtype=np.float64)
    y = np.asarray(y, dtype=np.float64)

    eta = X @ beta
    if offset is not None:
        eta = eta + np.asarray(offset, dtype=np.float64)

    if model == 'linear':
        mu = eta
    elif model == 'logistic':
        mu = expit(eta)
    else:
        with np.errstate(over='ignore'):
            mu = np.exp(eta)

    resid = y - mu
    if weights is not None:
        resid = resid * np.asarray(weights, dtype=np.float64)
    return (X * resid[:, None]).T
