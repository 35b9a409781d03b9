"""
Multi-algorithm optimizer driver.

Runs several general-purpose local optimizers on the same objective from
the same starting point and tabulates their outcomes, in the spirit of R's
optimx package. Each algorithm runs exactly once:

    for method in methods:
        run = optimizer(method).minimize(fun, x0, jac)
        if hessian: attach H(run.x)

Non-convergence is reported through the run's status code (0 = converged)
and left to the caller to filter; nothing is retried. An algorithm that
raises instead of returning (e.g. Newton-CG without a gradient) is recorded
with FAILURE_STATUS.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Callable, Iterator, Sequence

import numpy as np
import pandas as pd
from numpy.typing import NDArray
from scipy.optimize import minimize

from handmle.core.exceptions import ConvergenceError
from handmle.core.protocols import Optimizer
from handmle.core.compute.numdiff import hessian_from_gradient, numerical_hessian


DEFAULT_METHODS: tuple[str, ...] = ('BFGS', 'L-BFGS-B', 'Nelder-Mead', 'CG')

# Status recorded when an algorithm raised instead of returning (optimx uses 9999)
FAILURE_STATUS = 9999

_GRADIENT_FREE = frozenset({'Nelder-Mead', 'Powell', 'COBYLA', 'COBYQA'})
_ACCEPTS_HESS = frozenset({
    'Newton-CG', 'dogleg', 'trust-ncg', 'trust-krylov', 'trust-exact', 'trust-constr',
})


@dataclass(frozen=True)
class OptimRun:
    """
    Outcome of a single optimizer run.

    Attributes:
        method: Algorithm name
        x: Parameter estimate at termination (NaN if the algorithm raised)
        fun: Objective value at x
        status: 0 if converged, otherwise the algorithm's non-zero code
            (1 when the algorithm signals failure with code 0), or
            FAILURE_STATUS if it raised
        converged: status == 0
        n_iter: Iterations reported by the algorithm
        n_fev: Objective evaluations reported by the algorithm
        message: Algorithm termination message
        hessian: Hessian of the objective at x, if requested
    """
    method: str
    x: NDArray
    fun: float
    status: int
    converged: bool
    n_iter: int
    n_fev: int
    message: str
    hessian: NDArray | None = None


class ScipyMinimizer:
    """Optimizer protocol implementation backed by scipy.optimize.minimize."""

    def __init__(
        self,
        method: str,
        *,
        tol: float | None = None,
        max_iter: int | None = None,
        hess: Callable[[NDArray], NDArray] | None = None,
    ):
        self._method = method
        self._tol = tol
        self._max_iter = max_iter
        self._hess = hess

    @property
    def name(self) -> str:
        return self._method

    def minimize(
        self,
        fun: Callable[[NDArray], float],
        x0: NDArray,
        jac: Callable[[NDArray], NDArray] | None = None,
    ) -> OptimRun:
        options: dict = {'disp': False}
        if self._max_iter is not None:
            options['maxiter'] = self._max_iter

        kwargs: dict = {}
        if jac is not None and self._method not in _GRADIENT_FREE:
            kwargs['jac'] = jac
        if self._hess is not None and self._method in _ACCEPTS_HESS:
            kwargs['hess'] = self._hess

        try:
            res = minimize(
                fun, x0, method=self._method, tol=self._tol,
                options=options, **kwargs,
            )
        except (ValueError, TypeError, ArithmeticError, np.linalg.LinAlgError) as e:
            return failed_run(self._method, x0, f"{type(e).__name__}: {e}")

        if res.success:
            status = 0
        else:
            status = int(res.status) if int(res.status) != 0 else 1

        return OptimRun(
            method=self._method,
            x=np.asarray(res.x, dtype=np.float64),
            fun=float(res.fun),
            status=status,
            converged=status == 0,
            n_iter=int(getattr(res, 'nit', 0) or 0),
            n_fev=int(getattr(res, 'nfev', 0) or 0),
            message=str(getattr(res, 'message', '')),
        )

    def __repr__(self) -> str:
        return f"ScipyMinimizer(method={self._method!r})"


def failed_run(method: str, x0: NDArray, message: str) -> OptimRun:
    """Run record for an algorithm that raised instead of terminating."""
    return OptimRun(
        method=method,
        x=np.full(len(x0), np.nan),
        fun=float('nan'),
        status=FAILURE_STATUS,
        converged=False,
        n_iter=0,
        n_fev=0,
        message=message,
    )


@dataclass(frozen=True)
class OptimxResult:
    """
    Ordered collection of optimizer runs, one per algorithm.

    Filtering to converged runs is the caller's job: use converged() or
    best().
    """
    runs: tuple[OptimRun, ...]
    parameter_names: tuple[str, ...] | None = None

    def __len__(self) -> int:
        return len(self.runs)

    def __iter__(self) -> Iterator[OptimRun]:
        return iter(self.runs)

    def __getitem__(self, key: int | str) -> OptimRun:
        if isinstance(key, str):
            for run in self.runs:
                if run.method == key:
                    return run
            available = [run.method for run in self.runs]
            raise KeyError(f"No run for method {key!r}. Available: {available}")
        return self.runs[key]

    @property
    def methods(self) -> tuple[str, ...]:
        return tuple(run.method for run in self.runs)

    def converged(self) -> tuple[OptimRun, ...]:
        """Runs that reported status 0."""
        return tuple(run for run in self.runs if run.converged)

    def best(self, converged_only: bool = True) -> OptimRun:
        """
        Run with the lowest objective value.

        Args:
            converged_only: Only consider runs with status 0.

        Raises:
            ConvergenceError: If converged_only and no run converged.
        """
        candidates = self.converged() if converged_only else tuple(
            run for run in self.runs if np.isfinite(run.fun)
        )
        if not candidates:
            statuses = {run.method: run.status for run in self.runs}
            raise ConvergenceError(
                f"No optimizer run converged (status codes: {statuses})",
                iterations=max((run.n_iter for run in self.runs), default=0),
                reason='; '.join(run.message for run in self.runs),
            )
        return min(candidates, key=lambda run: run.fun)

    def to_frame(self) -> pd.DataFrame:
        """One row per method: estimates, value, fevals, niter, convcode, message."""
        if self.runs:
            k = len(self.runs[0].x)
        else:
            k = 0
        names = list(self.parameter_names) if self.parameter_names else [
            f"p{i + 1}" for i in range(k)
        ]
        rows = []
        for run in self.runs:
            row = dict(zip(names, run.x))
            row.update({
                'value': run.fun,
                'fevals': run.n_fev,
                'niter': run.n_iter,
                'convcode': run.status,
                'message': run.message,
            })
            rows.append(row)
        return pd.DataFrame(rows, index=pd.Index(self.methods, name='method'))

    def __repr__(self) -> str:
        return (
            f"OptimxResult(methods={list(self.methods)}, "
            f"converged={[run.method for run in self.converged()]})"
        )


def optimx(
    fun: Callable[[NDArray], float],
    x0,
    jac: Callable[[NDArray], NDArray] | None = None,
    *,
    methods: str | Optimizer | Sequence[str | Optimizer] = DEFAULT_METHODS,
    hessian: bool = False,
    hess: Callable[[NDArray], NDArray] | None = None,
    tol: float | None = None,
    max_iter: int | None = None,
    parameter_names: Sequence[str] | None = None,
    verbose: bool = False,
) -> OptimxResult:
    """
    Minimize an objective with one or more local optimization algorithms.

    Parameters
    ----------
    fun : callable
        Scalar objective f(x).
    x0 : array-like
        Common starting point for every algorithm.
    jac : callable or None
        Analytic gradient. Gradient-based algorithms fall back to finite
        differences when None (Newton-CG fails and is recorded as such).
    methods : str, Optimizer, or sequence of these
        scipy.optimize.minimize method names and/or Optimizer instances.
    hessian : bool
        Attach the Hessian at each run's optimum.
    hess : callable or None
        Analytic Hessian. Used for the attached Hessians and passed to
        the second-order algorithms that accept one.
    tol : float or None
        Termination tolerance forwarded to every scipy algorithm.
    max_iter : int or None
        Iteration limit forwarded to every scipy algorithm.
    parameter_names : sequence of str or None
        Labels for the estimate columns of to_frame().
    verbose : bool
        Print one line per run.

    Returns
    -------
    OptimxResult
    """
    x0 = np.asarray(x0, dtype=np.float64)
    if x0.ndim != 1:
        raise ValueError(f"x0 must be 1D, got shape {x0.shape}")

    if isinstance(methods, str) or isinstance(methods, Optimizer):
        methods = (methods,)

    runs: list[OptimRun] = []
    for method in methods:
        if isinstance(method, str):
            optimizer = ScipyMinimizer(method, tol=tol, max_iter=max_iter, hess=hess)
        else:
            optimizer = method

        run = optimizer.minimize(fun, x0.copy(), jac)

        if hessian and np.all(np.isfinite(run.x)):
            run = replace(run, hessian=_hessian_at(run.x, fun, jac, hess))

        if verbose:
            print(f"{run.method:>12s}: value={run.fun:.6f} "
                  f"convcode={run.status} niter={run.n_iter}")

        runs.append(run)

    return OptimxResult(
        runs=tuple(runs),
        parameter_names=tuple(parameter_names) if parameter_names is not None else None,
    )


def _hessian_at(x, fun, jac, hess) -> NDArray:
    if hess is not None:
        return np.asarray(hess(x), dtype=np.float64)
    if jac is not None:
        return hessian_from_gradient(jac, x)
    return numerical_hessian(fun, x)
