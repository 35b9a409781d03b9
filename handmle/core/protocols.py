"""
Core protocols for handmle.

These define the structural interfaces that models and optimizers must
satisfy. We use Protocol (structural typing) rather than ABC (nominal
typing) so that any object with the right methods plugs in, including
closures wrapped by the caller.

Design Principles:
    - Minimal contracts: an objective is a pure function of θ for fixed data
    - An optimizer turns (fun, x0, jac) into one OptimRun; nothing more
"""

from typing import Protocol, Callable, TYPE_CHECKING, runtime_checkable

import numpy as np
from numpy.typing import NDArray

if TYPE_CHECKING:
    from handmle.core.compute.optimization import OptimRun


@runtime_checkable
class Objective(Protocol):
    """
    Negative log-likelihood of a parametric model for a fixed dataset.

    Implementations (GLMObjective, WeibullObjective, CoxObjective) hold the
    data and expose the objective, its gradient and its Hessian as pure
    functions of the parameter vector.
    """

    @property
    def n_params(self) -> int:
        """Length of the parameter vector θ."""
        ...

    @property
    def parameter_names(self) -> tuple[str, ...]:
        """Names of the entries of θ, in order."""
        ...

    @property
    def n_observations(self) -> int:
        """Number of observation rows the objective sums over."""
        ...

    def objective(self, theta: NDArray) -> float:
        """Negative log-likelihood at θ (PENALTY outside the model's domain)."""
        ...

    def gradient(self, theta: NDArray) -> NDArray:
        """Gradient of the objective at θ, shape (n_params,)."""
        ...

    def hessian(self, theta: NDArray) -> NDArray:
        """Hessian of the objective at θ, shape (n_params, n_params)."""
        ...

    def initial_parameters(self) -> NDArray:
        """Feasible starting point for the optimizer."""
        ...


@runtime_checkable
class Optimizer(Protocol):
    """
    Pluggable local optimization algorithm.

    The driver (optimx) calls minimize() once per algorithm and never
    retries. Failure to converge is reported through OptimRun.status.
    """

    @property
    def name(self) -> str:
        """Algorithm identifier shown in run tables (e.g. 'BFGS')."""
        ...

    def minimize(
        self,
        fun: Callable[[NDArray], float],
        x0: NDArray,
        jac: Callable[[NDArray], NDArray] | None = None,
    ) -> 'OptimRun':
        """Run the algorithm from x0 and return its single run record."""
        ...
