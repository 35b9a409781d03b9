"""
Generative simulators for coverage studies.

Covariates are independent standard normal draws; beta[0] is the
intercept. Each simulator takes the Generator first so that
functools.partial(simulate_logistic, n=500, beta=beta) is a valid
`simulate` argument for wald_coverage().
"""

import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy.special import expit


def _covariates(rng: np.random.Generator, n: int, beta: NDArray) -> tuple[NDArray, NDArray]:
    X = rng.standard_normal((n, len(beta) - 1))
    eta = beta[0] + X @ beta[1:]
    return X, eta


def simulate_logistic(
    rng: np.random.Generator,
    n: int,
    beta: ArrayLike,
) -> tuple[NDArray, NDArray]:
    """(X, y) with y ~ Bernoulli(expit(β₀ + Xβ))."""
    beta = np.asarray(beta, dtype=np.float64)
    X, eta = _covariates(rng, n, beta)
    y = rng.binomial(1, expit(eta)).astype(np.float64)
    return X, y


def simulate_poisson(
    rng: np.random.Generator,
    n: int,
    beta: ArrayLike,
) -> tuple[NDArray, NDArray]:
    """(X, y) with y ~ Poisson(exp(β₀ + Xβ))."""
    beta = np.asarray(beta, dtype=np.float64)
    X, eta = _covariates(rng, n, beta)
    y = rng.poisson(np.exp(eta)).astype(np.float64)
    return X, y


def simulate_weibull(
    rng: np.random.Generator,
    n: int,
    beta: ArrayLike,
    shape: float,
    censor_time: float = np.inf,
) -> tuple[NDArray, NDArray, NDArray]:
    """
    (time, event, X) from the Weibull PH model with administrative censoring.

    Inverse transform: S(T) = exp(-T^k exp(η)) = U gives
    T = (-log U · exp(-η))^(1/k).
    """
    beta = np.asarray(beta, dtype=np.float64)
    X, eta = _covariates(rng, n, beta)
    u = rng.uniform(size=n)
    t = (-np.log(u) * np.exp(-eta)) ** (1.0 / shape)
    event = (t <= censor_time).astype(np.float64)
    time = np.minimum(t, censor_time)
    return time, event, X
