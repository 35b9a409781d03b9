"""statsmodels GLM reference fits for the hand-rolled regression models."""

from __future__ import annotations

from typing import Literal

import numpy as np
import statsmodels.api as sm

from handmle.regression._objectives import GLMObjective
from handmle.regression.design import Design
from handmle.regression.families import Family, Link, resolve_family
from handmle.reference._common import ReferenceFit, _se

_SM_LINKS = {
    'logit': sm.families.links.Logit,
    'log': sm.families.links.Log,
    'identity': sm.families.links.Identity,
}
_SM_FAMILIES = {
    'binomial': sm.families.Binomial,
    'poisson': sm.families.Poisson,
}


def _sm_family(family: Family) -> sm.families.Family:
    return _SM_FAMILIES[family.name](link=_SM_LINKS[family.link.name]())


def reference_glm(
    X_or_design,
    y=None,
    *,
    family: str | Family = 'binomial',
    link: str | Link | None = None,
    offset=None,
    weights=None,
    names=None,
    intercept: bool = True,
    cov_type: Literal['nonrobust', 'HC0'] = 'nonrobust',
) -> ReferenceFit:
    """
    Fit the same GLM with statsmodels (IRLS).

    cov_type='HC0' gives the robust sandwich covariance without small
    sample correction, the reference for M-estimation of a GLM.
    """
    if isinstance(X_or_design, Design):
        design = X_or_design
    else:
        design = Design.from_arrays(
            X_or_design, y,
            names=names, intercept=intercept, offset=offset, weights=weights,
        )
    fam = resolve_family(family, link)

    model = sm.GLM(
        design.y,
        design.X,
        family=_sm_family(fam),
        offset=design.offset if design.has_offset else None,
        freq_weights=design.weights if np.any(design.weights != 1) else None,
    )
    if fam.is_canonical:
        fit = model.fit(cov_type=cov_type)
    else:
        # IRLS reports the expected information; Newton uses the observed one.
        # IRLS warm-up steps can leave the mean space, so start feasible.
        fit = model.fit(
            method='newton',
            start_params=GLMObjective(design, fam).initial_parameters(),
            max_start_irls=0,
            cov_type=cov_type,
            maxiter=200,
            disp=False,
        )
    cov = np.asarray(fit.cov_params())

    return ReferenceFit(
        names=design.names,
        coefficients=np.asarray(fit.params),
        standard_errors=_se(cov),
        library=f"statsmodels.GLM({fam.name}, {fam.link.name}, {cov_type})",
        covariance=cov,
        loglik=float(fit.llf),
    )
