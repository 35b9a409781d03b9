"""
lifelines reference fits for the hand-rolled survival models.

WeibullAFTFitter reports the accelerated failure time form
S(t) = exp(-(t/λ)^ρ), λ = exp(γ₀ + xᵀγ). Since H(t) = t^ρ exp(-ρ(γ₀ + xᵀγ)),
the proportional hazards parameters are β = -ρ γ and log k = log ρ; the
covariance follows by the delta method.
"""

from __future__ import annotations

import numpy as np
import pandas as pd
from lifelines import CoxPHFitter, WeibullAFTFitter

from handmle.core.exceptions import ValidationError
from handmle.inference import delta_method
from handmle.survival._weibull import INTERCEPT, LOG_SHAPE
from handmle.survival.design import SurvivalDesign
from handmle.reference._common import ReferenceFit, _se

_DURATION = '_duration'
_EVENT = '_event'
_STRATA = '_strata'


def _design(time_or_design, event, X, strata, names) -> SurvivalDesign:
    if isinstance(time_or_design, SurvivalDesign):
        return time_or_design
    return SurvivalDesign.for_survival(time_or_design, event, X, strata=strata, names=names)


def _frame(design: SurvivalDesign) -> pd.DataFrame:
    df = pd.DataFrame(design.X, columns=list(design.names))
    df[_DURATION] = design.time
    df[_EVENT] = design.event
    if design.strata is not None:
        df[_STRATA] = design.strata
    return df


def reference_coxph(
    time_or_design,
    event=None,
    X=None,
    *,
    strata=None,
    names=None,
    ties: str = 'efron',
) -> ReferenceFit:
    """Fit the same (stratified) Cox model with lifelines CoxPHFitter."""
    if ties != 'efron':
        raise ValidationError(f"ties: lifelines fits Efron ties only, got {ties!r}")
    design = _design(time_or_design, event, X, strata, names)

    cph = CoxPHFitter()
    cph.fit(
        _frame(design),
        duration_col=_DURATION,
        event_col=_EVENT,
        strata=[_STRATA] if design.strata is not None else None,
    )
    names = list(design.names)
    cov = cph.variance_matrix_.loc[names, names].to_numpy()

    return ReferenceFit(
        names=design.names,
        coefficients=cph.params_.loc[names].to_numpy(),
        standard_errors=_se(cov),
        library='lifelines.CoxPHFitter(efron)',
        covariance=cov,
        loglik=float(cph.log_likelihood_),
    )


def aft_to_ph(phi: np.ndarray) -> np.ndarray:
    """(γ₀, γ..., log ρ) → (β₀, β..., log k) with β = -ρ γ."""
    rho = np.exp(phi[-1])
    return np.append(-rho * phi[:-1], phi[-1])


def _aft_to_ph_jacobian(phi: np.ndarray) -> np.ndarray:
    rho = np.exp(phi[-1])
    p = len(phi) - 1
    J = np.zeros((p + 1, p + 1))
    J[:p, :p] = -rho * np.eye(p)
    J[:p, p] = -rho * phi[:-1]
    J[p, p] = 1.0
    return J


def reference_weibull(
    time_or_design,
    event=None,
    X=None,
    *,
    names=None,
) -> ReferenceFit:
    """Fit the Weibull model with lifelines WeibullAFTFitter, mapped to PH form."""
    design = _design(time_or_design, event, X, None, names)

    wf = WeibullAFTFitter()
    wf.fit(_frame(design), duration_col=_DURATION, event_col=_EVENT)

    idx = [('lambda_', INTERCEPT)] + [('lambda_', nm) for nm in design.names] + [('rho_', INTERCEPT)]
    phi = wf.params_.loc[idx].to_numpy()
    cov_aft = wf.variance_matrix_.loc[idx, idx].to_numpy()

    dm = delta_method(aft_to_ph, phi, cov_aft, jac=_aft_to_ph_jacobian)

    return ReferenceFit(
        names=(INTERCEPT, *design.names, LOG_SHAPE),
        coefficients=dm.estimate,
        standard_errors=dm.standard_errors,
        library='lifelines.WeibullAFTFitter (mapped to PH)',
        covariance=dm.covariance,
        loglik=float(wf.log_likelihood_),
    )
