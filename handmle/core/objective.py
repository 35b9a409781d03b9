"""
Base class for negative log-likelihood objectives.

Subclasses hold a validated design and implement _negloglik(); they
override gradient() (and optionally hessian()) with analytic derivations.
The defaults fall back to central finite differences so a new model can
be fitted before its derivatives are worked out.
"""

import numpy as np
from numpy.typing import NDArray

from handmle.core.compute.numdiff import (
    GradientCheck,
    check_gradient,
    hessian_from_gradient,
    numerical_gradient,
)
from handmle.core.compute.tolerances import GRADIENT_CHECK


# Returned in place of the objective when θ leaves the model's domain
PENALTY = 1e10


class ObjectiveBase:
    """
    Negative log-likelihood of a model for a fixed dataset.

    Subclasses must set self._names and self._n_obs, and implement
    _negloglik(theta) and initial_parameters(). _negloglik may return
    None (or a non-finite value) to signal an out-of-domain θ, which is
    mapped to PENALTY.
    """

    _names: tuple[str, ...]
    _n_obs: int

    @property
    def n_params(self) -> int:
        return len(self._names)

    @property
    def parameter_names(self) -> tuple[str, ...]:
        return self._names

    @property
    def n_observations(self) -> int:
        return self._n_obs

    def _negloglik(self, theta: NDArray) -> float | None:
        raise NotImplementedError

    def initial_parameters(self) -> NDArray:
        raise NotImplementedError

    def objective(self, theta: NDArray) -> float:
        """Negative log-likelihood at θ, or PENALTY outside the domain."""
        theta = np.asarray(theta, dtype=np.float64)
        if not np.all(np.isfinite(theta)):
            return PENALTY
        with np.errstate(over='ignore', invalid='ignore', divide='ignore'):
            value = self._negloglik(theta)
        if value is None or not np.isfinite(value):
            return PENALTY
        return float(value)

    def loglik(self, theta: NDArray) -> float:
        return -self.objective(theta)

    def gradient(self, theta: NDArray) -> NDArray:
        """Central finite-difference gradient; subclasses override."""
        return numerical_gradient(self.objective, np.asarray(theta, dtype=np.float64))

    def hessian(self, theta: NDArray) -> NDArray:
        """Symmetrized finite-difference Jacobian of gradient()."""
        return hessian_from_gradient(self.gradient, np.asarray(theta, dtype=np.float64))

    def check_gradient(
        self,
        theta: NDArray | None = None,
        tol: float = GRADIENT_CHECK.rtol,
    ) -> GradientCheck:
        """
        Compare gradient() against finite differences of objective().

        Args:
            theta: Test point (defaults to initial_parameters())
            tol: Pass threshold on the maximum relative difference
        """
        if theta is None:
            theta = self.initial_parameters()
        return check_gradient(self.objective, self.gradient, theta, tol=tol)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(n_observations={self.n_observations}, "
            f"parameters={list(self.parameter_names)})"
        )
