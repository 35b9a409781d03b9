"""
Solver dispatch for parametric and semi-parametric survival models.

Public API:
    weibull(time, event, X) -> WeibullSolution
    coxph(time, event, X, strata=..., ties=...) -> CoxSolution
"""

from __future__ import annotations

from typing import Sequence

from handmle.core.exceptions import ValidationError
from handmle.mle.solvers import solve_mle
from handmle.survival._cox import CoxObjective
from handmle.survival._weibull import WeibullObjective
from handmle.survival.design import SurvivalDesign
from handmle.survival.solution import CoxSolution, WeibullSolution


def _get_design(time_or_design, event, X, strata, names) -> SurvivalDesign:
    if isinstance(time_or_design, SurvivalDesign):
        if strata is not None:
            raise ValidationError(
                "strata: pass strata when building the SurvivalDesign, not alongside it"
            )
        return time_or_design
    if event is None:
        raise ValueError("event is required when time is not a SurvivalDesign")
    return SurvivalDesign.for_survival(time_or_design, event, X, strata=strata, names=names)


def weibull(
    time_or_design,
    event=None,
    X=None,
    *,
    names: Sequence[str] | None = None,
    start=None,
    methods: str | Sequence[str] = ('BFGS',),
    tol: float | None = None,
    max_iter: int | None = None,
    conf_level: float = 0.95,
    verbose: bool = False,
) -> WeibullSolution:
    """
    Fit a Weibull proportional hazards model by maximum likelihood.

    h(t | x) = k t^(k-1) exp(β₀ + xᵀβ), right-censored data, t > 0.

    Parameters
    ----------
    time_or_design : array-like or SurvivalDesign
        Survival times, or a SurvivalDesign.
    event : array-like or None
        Event indicator (1 = event, 0 = censored).
    X : array-like or None
        Covariates without an intercept column.
    names : sequence of str or None
        Covariate names.
    start : array-like or None
        Starting values for (Intercept, β..., log_shape). Default: the
        exponential-model intercept with zero slopes and k = 1.
    methods, tol, max_iter, conf_level, verbose
        See fit_mle().

    Returns
    -------
    WeibullSolution
    """
    design = _get_design(time_or_design, event, X, None, names)
    if design.strata is not None:
        raise ValidationError("strata: the Weibull model does not support strata")
    objective = WeibullObjective(design)

    if verbose:
        print(f"Weibull PH: n={design.n}, events={design.n_events}, p={design.p}")

    result = solve_mle(
        objective,
        start=start,
        methods=methods,
        tol=tol,
        max_iter=max_iter,
        conf_level=conf_level,
        verbose=verbose,
    )
    return WeibullSolution(result, objective)


def coxph(
    time_or_design,
    event=None,
    X=None,
    *,
    strata=None,
    ties: str = 'efron',
    names: Sequence[str] | None = None,
    start=None,
    methods: str | Sequence[str] = ('BFGS',),
    tol: float | None = None,
    max_iter: int | None = None,
    conf_level: float = 0.95,
    verbose: bool = False,
) -> CoxSolution:
    """
    Fit a Cox proportional hazards model by maximizing the partial likelihood.

    Parameters
    ----------
    time_or_design : array-like or SurvivalDesign
        Survival times, or a SurvivalDesign (strata taken from it).
    event : array-like or None
        Event indicator (1 = event, 0 = censored).
    X : array-like or None
        Covariate matrix (NO intercept).
    strata : array-like or None
        Stratum labels. Each stratum has its own baseline hazard; the
        coefficients are shared.
    ties : str
        'efron' (default, as R's coxph) or 'breslow'.
    names : sequence of str or None
        Covariate names.
    start : array-like or None
        Starting values; default β = 0.
    methods, tol, max_iter, conf_level, verbose
        See fit_mle().

    Returns
    -------
    CoxSolution
    """
    design = _get_design(time_or_design, event, X, strata, names)
    objective = CoxObjective(design, ties=ties)

    if verbose:
        print(f"Cox PH: n={design.n}, events={design.n_events}, "
              f"p={design.p}, strata={objective.n_strata}, ties={ties}")

    result = solve_mle(
        objective,
        start=start,
        methods=methods,
        tol=tol,
        max_iter=max_iter,
        conf_level=conf_level,
        verbose=verbose,
    )
    return CoxSolution(result, objective)
