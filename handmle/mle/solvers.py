"""
Solver dispatch for maximum likelihood.

Public API: fit_mle(objective, ...) -> MLESolution
"""

import warnings
from typing import Sequence

from handmle.core.exceptions import ValidationError
from handmle.core.protocols import Objective
from handmle.core.result import Result
from handmle.core.validation import check_conf_level
from handmle.mle.backends.optimx import OptimxBackend
from handmle.mle.solution import MLEParams, MLESolution


def solve_mle(
    objective: Objective,
    *,
    start=None,
    methods: str | Sequence[str] = ('BFGS',),
    tol: float | None = None,
    max_iter: int | None = None,
    conf_level: float = 0.95,
    verbose: bool = False,
) -> Result[MLEParams]:
    """
    Fit an objective and return the raw Result.

    Shared by fit_mle() and the model-specific entry points, which wrap the
    Result in their own Solution class.
    """
    if not isinstance(objective, Objective):
        raise ValidationError(
            f"objective: {type(objective).__name__} does not implement the "
            f"Objective protocol"
        )
    check_conf_level(conf_level)
    if isinstance(methods, str):
        methods = (methods,)

    if verbose:
        print(f"MLE: {objective.n_observations} observations, "
              f"{objective.n_params} parameters, methods={list(methods)}")

    result = OptimxBackend().solve(
        objective,
        start=start,
        methods=methods,
        tol=tol,
        max_iter=max_iter,
        conf_level=conf_level,
        verbose=verbose,
    )

    if not result.params.converged:
        warnings.warn(
            f"Maximum likelihood fit did not converge "
            f"(method {result.params.method}, status {result.params.status})",
            RuntimeWarning,
            stacklevel=3,
        )

    if verbose:
        print(f"Selected: {result.params.method} "
              f"(converged: {result.params.converged}, "
              f"loglik: {result.params.loglik:.6f})")

    return result


def fit_mle(
    objective: Objective,
    *,
    start=None,
    methods: str | Sequence[str] = ('BFGS',),
    tol: float | None = None,
    max_iter: int | None = None,
    conf_level: float = 0.95,
    verbose: bool = False,
) -> MLESolution:
    """
    Maximum likelihood estimation for any Objective.

    Parameters
    ----------
    objective : Objective
        Negative log-likelihood with gradient and Hessian (ObjectiveBase
        subclasses, or any object satisfying the protocol).
    start : array-like or None
        Starting values. If None, objective.initial_parameters().
    methods : str or sequence of str
        scipy.optimize.minimize algorithms. Each runs once from `start`;
        the converged run with the lowest objective is kept. Second-order
        algorithms (Newton-CG, trust-ncg, trust-exact) receive
        objective.hessian.
    tol : float or None
        Termination tolerance forwarded to every algorithm.
    max_iter : int or None
        Iteration limit forwarded to every algorithm.
    conf_level : float
        Default level for conf_int() and summary().
    verbose : bool
        Print progress information.

    Returns
    -------
    MLESolution

    Examples
    --------
    >>> from handmle.regression import GLMObjective, Design, Binomial
    >>> obj = GLMObjective(Design.from_arrays(X, y), Binomial())
    >>> sol = fit_mle(obj, methods=('BFGS', 'Nelder-Mead'))
    >>> sol.runs.to_frame()
    """
    result = solve_mle(
        objective,
        start=start,
        methods=methods,
        tol=tol,
        max_iter=max_iter,
        conf_level=conf_level,
        verbose=verbose,
    )
    return MLESolution(result, objective)
