"""
M-estimator with empirical sandwich variance.

    θ̂ solves Σᵢ ψ(Oᵢ; θ) = 0                       (scipy.optimize.root)
    B = -(1/n) Σᵢ ∂ψ(Oᵢ; θ̂)/∂θ                     (numerical Jacobian)
    F = (1/n) Σᵢ ψ(Oᵢ; θ̂) ψ(Oᵢ; θ̂)ᵀ
    Var(θ̂) = B⁻¹ F (B⁻¹)ᵀ / n
"""

from __future__ import annotations

import warnings
from typing import Callable, Sequence

import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy.optimize import approx_fprime, root

from handmle.core.compute.numdiff import numerical_jacobian
from handmle.core.compute.timing import Timer
from handmle.core.exceptions import DimensionError, NumericalError, ValidationError
from handmle.core.result import Result
from handmle.core.validation import check_conf_level
from handmle.inference import sandwich_covariance
from handmle.mestimation.solution import MEstimationParams, MEstimationSolution

# Option name for the iteration limit of each scipy.optimize.root method
_MAXITER_OPTION = {'hybr': 'maxfev', 'lm': 'maxiter'}
DERIV_METHODS = ('central', 'forward')


class MEstimator:
    """
    M-estimator for stacked estimating equations.

    Parameters
    ----------
    stacked_equations : callable
        ψ(θ) returning a (k, n) array of per-observation estimating
        function values.
    init : array-like
        Starting values (k,).
    names : sequence of str or None
        Parameter names (default theta0..theta{k-1}).

    Examples
    --------
    >>> def psi(theta):
    ...     return ee_regression(theta, X, y, model='logistic')
    >>> sol = MEstimator(psi, init=[0, 0, 0]).estimate(solver='lm')
    >>> sol.standard_errors
    """

    def __init__(
        self,
        stacked_equations: Callable[[NDArray], ArrayLike],
        init: ArrayLike,
        names: Sequence[str] | None = None,
    ):
        self._psi = stacked_equations
        self._init = np.atleast_1d(np.asarray(init, dtype=np.float64))
        k = len(self._init)
        if names is None:
            names = [f"theta{j}" for j in range(k)]
        if len(names) != k:
            raise ValidationError(f"names: expected {k} names, got {len(names)}")
        self._names = tuple(names)

        values = self._evaluate(self._init)
        self._n = values.shape[1]

    def _evaluate(self, theta: NDArray) -> NDArray:
        values = np.asarray(self._psi(theta), dtype=np.float64)
        k = len(self._init)
        if values.ndim == 1 and k == 1:
            values = values[None, :]
        if values.ndim != 2 or values.shape[0] != k:
            raise DimensionError(
                f"stacked_equations: expected shape ({k}, n), got {values.shape}"
            )
        return values

    def _sum_ee(self, theta: NDArray) -> NDArray:
        return np.sum(self._evaluate(np.asarray(theta, dtype=np.float64)), axis=1)

    @property
    def n_observations(self) -> int:
        return self._n

    def estimate(
        self,
        solver: str = 'lm',
        tol: float = 1e-9,
        max_iter: int = 5000,
        deriv_method: str = 'central',
        conf_level: float = 0.95,
        verbose: bool = False,
    ) -> MEstimationSolution:
        """
        Solve the estimating equations and compute the sandwich variance.

        Parameters
        ----------
        solver : str
            scipy.optimize.root method: 'lm' (default) or 'hybr'.
        tol : float
            Root-finding tolerance.
        max_iter : int
            Iteration (function evaluation for 'hybr') limit.
        deriv_method : str
            'central' differences, or 'forward' (scipy approx_fprime), for
            the bread matrix.
        conf_level : float
            Default confidence level of the solution.
        verbose : bool
            Print progress information.

        Returns
        -------
        MEstimationSolution
        """
        if deriv_method not in DERIV_METHODS:
            raise ValidationError(
                f"deriv_method: must be one of {DERIV_METHODS}, got {deriv_method!r}"
            )
        check_conf_level(conf_level)

        timer = Timer()
        timer.start()
        warnings_list = []
        k = len(self._init)
        n = self._n

        options = {_MAXITER_OPTION.get(solver, 'maxiter'): max_iter}
        with timer.section('root_finding'):
            sol = root(self._sum_ee, self._init, method=solver, tol=tol, options=options)

        theta = np.asarray(sol.x, dtype=np.float64)
        status = 0 if sol.success else (int(sol.status) or 1)
        if not sol.success:
            warnings_list.append(f"Root-finding did not converge ({solver}): {sol.message}")
            warnings.warn(
                f"M-estimation did not converge (solver {solver}, status {status})",
                RuntimeWarning,
                stacklevel=2,
            )

        with timer.section('bread'):
            if deriv_method == 'central':
                jac = numerical_jacobian(self._sum_ee, theta)
            else:
                jac = np.atleast_2d(approx_fprime(theta, self._sum_ee))
            bread = -jac / n

        with timer.section('meat'):
            values = self._evaluate(theta)
            meat = values @ values.T / n

        try:
            variance = sandwich_covariance(bread, meat, n)
        except NumericalError as e:
            variance = np.full((k, k), np.nan)
            warnings_list.append(f"Sandwich variance unavailable: {e}")

        timer.stop()

        if verbose:
            print(f"M-estimation: n={n}, k={k}, solver={solver}, "
                  f"converged={sol.success}")

        params = MEstimationParams(
            theta=theta,
            bread=bread,
            meat=meat,
            variance=variance,
            names=self._names,
            n_observations=n,
            converged=bool(sol.success),
            status=status,
            message=str(sol.message),
            conf_level=conf_level,
        )
        return MEstimationSolution(Result(
            params=params,
            info={
                'solver': solver,
                'deriv_method': deriv_method,
                'estimating_equation_sum': np.asarray(sol.fun, dtype=np.float64),
                'n_function_evals': int(getattr(sol, 'nfev', 0) or 0),
            },
            timing=timer.result(),
            backend_name='scipy_root',
            warnings=tuple(warnings_list),
        ))
