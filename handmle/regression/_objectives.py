"""
GLM negative log-likelihood with analytic score.

For η = Xβ + offset and μ = g⁻¹(η):

    ℓ(β)   = Σ wᵢ log f(yᵢ; μᵢ)
    ∂ℓ/∂β  = Xᵀ [w (y - μ) / V(μ) · dμ/dη]
    -∂²ℓ   = Xᵀ diag(w V(μ)) X          (canonical link)

Non-canonical links (log-binomial) use a finite-difference Jacobian of the
analytic score for the Hessian.
"""

import numpy as np
from numpy.typing import NDArray

from handmle.core.objective import ObjectiveBase
from handmle.regression.design import Design
from handmle.regression.families import Family, Link, resolve_family


class GLMObjective(ObjectiveBase):
    """
    Negative log-likelihood of a GLM with fixed dispersion.

    θ = β, ordered as design.names. Returns PENALTY when μ leaves the
    family's mean space.
    """

    def __init__(
        self,
        design: Design,
        family: str | Family = 'binomial',
        link: str | Link | None = None,
    ):
        self._design = design
        self._family = resolve_family(family, link)
        self._family.validate_response(design.y)
        self._names = design.names
        self._n_obs = design.n

    @property
    def design(self) -> Design:
        return self._design

    @property
    def family(self) -> Family:
        return self._family

    @property
    def link(self) -> Link:
        return self._family.link

    def linear_predictor(self, beta: NDArray) -> NDArray:
        return self._design.X @ beta + self._design.offset

    def _negloglik(self, beta: NDArray) -> float | None:
        mu = self.link.linkinv(self.linear_predictor(beta))
        if not self._family.valid_mean(mu):
            return None
        d = self._design
        return -self._family.log_likelihood(d.y, mu, d.weights)

    def gradient(self, beta: NDArray) -> NDArray:
        beta = np.asarray(beta, dtype=np.float64)
        d = self._design
        eta = self.linear_predictor(beta)
        with np.errstate(over='ignore', invalid='ignore'):
            mu = self._family.clip_mean(self.link.linkinv(eta))
            working = d.weights * (d.y - mu) / self._family.variance(mu) * self.link.mu_eta(eta)
        return -(d.X.T @ working)

    def hessian(self, beta: NDArray) -> NDArray:
        if not self._family.is_canonical:
            return super().hessian(beta)
        beta = np.asarray(beta, dtype=np.float64)
        d = self._design
        mu = self.link.linkinv(self.linear_predictor(beta))
        W = d.weights * self._family.variance(mu)
        return (d.X * W[:, None]).T @ d.X

    def initial_parameters(self) -> NDArray:
        """Intercept at the link of the (offset-adjusted) mean response, slopes 0."""
        d = self._design
        theta = np.zeros(d.p)
        if not d.has_intercept:
            return theta
        ybar = np.average(d.y, weights=d.weights)
        if d.has_offset and self.link.name == 'log':
            theta[0] = np.log(np.sum(d.weights * d.y) / np.sum(d.weights * np.exp(d.offset)))
        else:
            theta[0] = float(self.link.link(np.array([ybar]))[0])
        return theta
