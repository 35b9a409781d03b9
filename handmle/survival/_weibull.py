"""
Weibull proportional hazards model.

    h(t | x) = k t^(k-1) exp(xᵀβ)          H(t | x) = t^k exp(xᵀβ)

θ = (β with leading intercept, a = log k). With Λᵢ = tᵢ^k exp(ηᵢ) and
event indicator δᵢ, the log-likelihood and its derivatives are

    ℓ       = Σ δᵢ (a + (k-1) log tᵢ + ηᵢ) - Λᵢ
    ∂ℓ/∂β   = Xᵀ (δ - Λ)
    ∂ℓ/∂a   = Σ δᵢ + k log tᵢ (δᵢ - Λᵢ)
    ∂²ℓ/∂β² = -Xᵀ diag(Λ) X
    ∂²ℓ/∂β∂a = -Xᵀ (Λ k log t)
    ∂²ℓ/∂a² = Σ k log tᵢ (δᵢ - Λᵢ) - Λᵢ (k log tᵢ)²

In the AFT form used by survreg and lifelines, log T = μ + xᵀγ + σW with
k = 1/σ and β = -γ/σ.
"""

import numpy as np
from numpy.typing import NDArray

from handmle.core.objective import ObjectiveBase
from handmle.core.validation import check_positive
from handmle.survival.design import SurvivalDesign

INTERCEPT = 'Intercept'
LOG_SHAPE = 'log_shape'


class WeibullObjective(ObjectiveBase):
    """Negative log-likelihood of the Weibull PH model with right censoring."""

    def __init__(self, design: SurvivalDesign):
        check_positive(design.time, 'time')
        self._design = design
        n = design.n
        covariates = design.X if design.X is not None else np.empty((n, 0))
        self._X = np.column_stack([np.ones(n), covariates])
        self._log_t = np.log(design.time)
        self._names = (INTERCEPT, *design.names, LOG_SHAPE)
        self._n_obs = n

    @property
    def design(self) -> SurvivalDesign:
        return self._design

    @property
    def model_matrix(self) -> NDArray:
        """(n, p + 1) covariates with the intercept column."""
        return self._X

    def _split(self, theta: NDArray) -> tuple[NDArray, float]:
        return theta[:-1], float(theta[-1])

    def _cumhaz(self, beta: NDArray, k: float) -> NDArray:
        return np.exp(k * self._log_t + self._X @ beta)

    def _negloglik(self, theta: NDArray) -> float:
        beta, a = self._split(theta)
        k = np.exp(a)
        delta = self._design.event
        eta = self._X @ beta
        cumhaz = self._cumhaz(beta, k)
        ll = np.sum(delta * (a + (k - 1.0) * self._log_t + eta) - cumhaz)
        return -ll

    def gradient(self, theta: NDArray) -> NDArray:
        theta = np.asarray(theta, dtype=np.float64)
        beta, a = self._split(theta)
        k = np.exp(a)
        delta = self._design.event
        with np.errstate(over='ignore', invalid='ignore'):
            cumhaz = self._cumhaz(beta, k)
            resid = delta - cumhaz
            g_beta = self._X.T @ resid
            g_a = np.sum(delta + k * self._log_t * resid)
        return -np.append(g_beta, g_a)

    def hessian(self, theta: NDArray) -> NDArray:
        theta = np.asarray(theta, dtype=np.float64)
        beta, a = self._split(theta)
        k = np.exp(a)
        delta = self._design.event
        cumhaz = self._cumhaz(beta, k)
        klt = k * self._log_t

        p = self._X.shape[1]
        H = np.empty((p + 1, p + 1))
        H[:p, :p] = (self._X * cumhaz[:, None]).T @ self._X
        H[:p, p] = self._X.T @ (cumhaz * klt)
        H[p, :p] = H[:p, p]
        H[p, p] = -np.sum(klt * (delta - cumhaz) - cumhaz * klt ** 2)
        return H

    def initial_parameters(self) -> NDArray:
        """Exponential MLE for the intercept (k = 1), slopes 0."""
        d = self._design
        theta = np.zeros(self.n_params)
        theta[0] = np.log(max(d.n_events, 1) / np.sum(d.time))
        return theta
