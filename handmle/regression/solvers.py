"""
Solver dispatch for GLMs.

Public API:
    glm(X, y, family=..., link=...) -> GLMSolution
    logistic(X, y)                   binomial / logit
    poisson(X, y, offset=...)        poisson / log
    log_binomial(X, y)               binomial / log (risk ratios)
"""

from __future__ import annotations

from typing import Sequence

from numpy.typing import ArrayLike

from handmle.mle.solvers import solve_mle
from handmle.regression._objectives import GLMObjective
from handmle.regression.design import Design
from handmle.regression.families import Family, Link
from handmle.regression.solution import GLMSolution


def glm(
    X_or_design: ArrayLike | Design,
    y: ArrayLike | None = None,
    *,
    family: str | Family = 'binomial',
    link: str | Link | None = None,
    offset: ArrayLike | None = None,
    weights: ArrayLike | None = None,
    names: Sequence[str] | None = None,
    intercept: bool = True,
    start: ArrayLike | None = None,
    methods: str | Sequence[str] = ('BFGS',),
    tol: float | None = None,
    max_iter: int | None = None,
    conf_level: float = 0.95,
    verbose: bool = False,
) -> GLMSolution:
    """
    Fit a GLM by direct maximization of the hand-written log-likelihood.

    Accepts EITHER:
        1. A Design object (y, offset, weights, names, intercept ignored)
        2. Raw X and y arrays (convenience)

    Parameters
    ----------
    X_or_design : array-like or Design
        Covariates without an intercept column, or a Design.
    y : array-like or None
        Response. Required when X is given as an array.
    family : str or Family
        'binomial' or 'poisson'.
    link : str, Link or None
        Link function. Defaults to the family's canonical link.
    offset, weights : array-like or None
        Linear predictor offset and prior weights.
    names : sequence of str or None
        Covariate names.
    intercept : bool
        Add an intercept column.
    start : array-like or None
        Starting values. Default: intercept at link(mean(y)), slopes 0.
    methods, tol, max_iter, conf_level, verbose
        See fit_mle().

    Returns
    -------
    GLMSolution
    """
    if isinstance(X_or_design, Design):
        design = X_or_design
    else:
        if y is None:
            raise ValueError("y is required when X is not a Design")
        design = Design.from_arrays(
            X_or_design, y,
            names=names, intercept=intercept, offset=offset, weights=weights,
        )

    objective = GLMObjective(design, family, link)
    if verbose:
        print(f"GLM: family={objective.family.name}, link={objective.link.name}")

    result = solve_mle(
        objective,
        start=start,
        methods=methods,
        tol=tol,
        max_iter=max_iter,
        conf_level=conf_level,
        verbose=verbose,
    )
    return GLMSolution(result, objective)


def logistic(X_or_design, y=None, **kwargs) -> GLMSolution:
    """Logistic regression: binomial family, logit link. See glm()."""
    return glm(X_or_design, y, family='binomial', link='logit', **kwargs)


def poisson(X_or_design, y=None, **kwargs) -> GLMSolution:
    """Poisson regression: log link. Pass offset=log(exposure) for rates."""
    return glm(X_or_design, y, family='poisson', link='log', **kwargs)


def log_binomial(X_or_design, y=None, **kwargs) -> GLMSolution:
    """
    Log-binomial regression: binomial family, log link.

    exp(β) are risk ratios. The mean space constraint exp(η) < 1 is
    enforced by the objective's penalty, so a start with all fitted
    probabilities below 1 is required (the default start satisfies it).
    """
    return glm(X_or_design, y, family='binomial', link='log', **kwargs)
