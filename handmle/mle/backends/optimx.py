"""
Optimx backend for maximum likelihood.

Minimizes an Objective with one or more scipy algorithms, keeps the best
converged run and derives the covariance from the Hessian at θ̂.
"""

from typing import Sequence

import numpy as np

from handmle.core.compute.optimization import optimx
from handmle.core.compute.timing import Timer
from handmle.core.exceptions import DimensionError, NumericalError
from handmle.core.objective import PENALTY
from handmle.core.protocols import Objective
from handmle.core.result import Result
from handmle.inference import covariance_from_hessian, standard_errors
from handmle.mle.solution import MLEParams


class OptimxBackend:
    """
    Multi-algorithm maximum likelihood backend.

    Non-convergence is not an error here: when no run converged the
    lowest-objective run is reported with converged=False and a warning.
    """

    @property
    def name(self) -> str:
        return 'optimx'

    def solve(
        self,
        objective: Objective,
        *,
        start=None,
        methods: Sequence[str] = ('BFGS',),
        tol: float | None = None,
        max_iter: int | None = None,
        conf_level: float = 0.95,
        verbose: bool = False,
    ) -> Result[MLEParams]:
        """
        Fit by minimizing the negative log-likelihood.

        Parameters
        ----------
        objective : Objective
            Model objective with gradient and Hessian.
        start : array-like or None
            Starting values. If None, objective.initial_parameters().
        methods : sequence of str
            scipy.optimize.minimize algorithms to run.
        tol, max_iter : optional
            Forwarded to every algorithm.
        conf_level : float
            Default confidence level carried by the solution.
        verbose : bool
            Print one line per optimizer run.

        Returns
        -------
        Result[MLEParams]

        Raises
        ------
        ConvergenceError
            If every algorithm raised, so there is no estimate at all.
        """
        timer = Timer()
        timer.start()
        warnings_list = []

        if start is None:
            theta0 = objective.initial_parameters()
        else:
            theta0 = np.asarray(start, dtype=np.float64)
        if theta0.shape != (objective.n_params,):
            raise DimensionError(
                f"start: expected shape ({objective.n_params},), got {theta0.shape}"
            )

        with timer.section('optimization'):
            runs = optimx(
                objective.objective,
                theta0,
                objective.gradient,
                methods=methods,
                hess=objective.hessian,
                tol=tol,
                max_iter=max_iter,
                parameter_names=objective.parameter_names,
                verbose=verbose,
            )

        # Runs resting on PENALTY never left the infeasible region
        feasible = [run for run in runs if run.fun < PENALTY]
        converged = [run for run in feasible if run.converged]
        infeasible = not feasible
        if converged:
            best = min(converged, key=lambda run: run.fun)
        elif feasible:
            best = min(feasible, key=lambda run: run.fun)
            warnings_list.append(
                f"No optimizer run converged; reporting {best.method} "
                f"(status {best.status}): {best.message}"
            )
        else:
            best = runs.best(converged_only=False)
            warnings_list.append(
                f"Every optimizer run ended in the infeasible region "
                f"(objective {best.fun:.3g}); no likelihood or standard errors reported"
            )

        p = objective.n_params
        if infeasible:
            H = np.full((p, p), np.nan)
            cov = np.full((p, p), np.nan)
            se = np.full(p, np.nan)
        else:
            with timer.section('hessian'):
                H = objective.hessian(best.x)
            try:
                cov = covariance_from_hessian(H)
                se = standard_errors(cov)
            except NumericalError as e:
                cov = np.full((p, p), np.nan)
                se = np.full(p, np.nan)
                warnings_list.append(f"Standard errors unavailable: {e}")

        timer.stop()

        params = MLEParams(
            coefficients=best.x,
            standard_errors=se,
            covariance=cov,
            hessian=H,
            loglik=np.nan if infeasible else -best.fun,
            converged=best.converged and not infeasible,
            status=best.status,
            method=best.method,
            n_iter=best.n_iter,
            names=tuple(objective.parameter_names),
            n_observations=objective.n_observations,
            conf_level=conf_level,
        )

        return Result(
            params=params,
            info={
                'method': best.method,
                'status': best.status,
                'message': best.message,
                'objective_value': best.fun,
                'n_function_evals': best.n_fev,
                'start': theta0,
                'runs': runs,
            },
            timing=timer.result(),
            backend_name=self.name,
            warnings=tuple(warnings_list),
        )
