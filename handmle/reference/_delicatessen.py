"""delicatessen reference fit for the hand-rolled M-estimator."""

from __future__ import annotations

from typing import Callable, Sequence

import numpy as np
from delicatessen import MEstimator as DeliMEstimator

from handmle.reference._common import ReferenceFit, _se


def reference_mestimator(
    stacked_equations: Callable,
    init,
    *,
    names: Sequence[str] | None = None,
    solver: str = 'lm',
) -> ReferenceFit:
    """
    Solve the same stacked estimating equations with delicatessen.

    The estimating functions use delicatessen's convention, a (k, n)
    array of per-observation values, so they are passed through as is.
    """
    init = list(np.atleast_1d(np.asarray(init, dtype=np.float64)))
    estr = DeliMEstimator(stacked_equations=stacked_equations, init=init)
    estr.estimate(solver=solver)

    theta = np.asarray(estr.theta, dtype=np.float64)
    cov = np.atleast_2d(np.asarray(estr.variance, dtype=np.float64))
    if names is None:
        names = [f"theta{j}" for j in range(len(theta))]

    return ReferenceFit(
        names=tuple(names),
        coefficients=theta,
        standard_errors=_se(cov),
        library='delicatessen.MEstimator',
        covariance=cov,
    )
