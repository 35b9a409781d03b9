"""
Survival solution types.

WeibullSolution adds survival, hazard and median predictions with
delta-method intervals; CoxSolution adds hazard ratios, concordance and
the likelihood ratio test. Both are MLESolutions.
"""

from __future__ import annotations

from typing import Literal

import numpy as np
import pandas as pd
from numpy.typing import ArrayLike, NDArray
from scipy import stats as sp_stats

from handmle.core.exceptions import ValidationError
from handmle.core.validation import check_array, check_finite, check_nonnegative
from handmle.inference import (
    delta_method,
    transformed_interval,
    wald_interval,
    z_critical,
)
from handmle.mle.solution import MLESolution
from handmle.survival.design import SurvivalDesign

ConfType = Literal['log-log', 'log', 'plain']


class WeibullSolution(MLESolution):
    """Weibull proportional hazards fit. θ = (Intercept, β..., log_shape)."""

    __slots__ = ()

    @property
    def design(self) -> SurvivalDesign:
        return self._objective.design

    @property
    def shape(self) -> float:
        """Weibull shape k = exp(log_shape)."""
        return float(np.exp(self.coefficients[-1]))

    def shape_conf_int(self, conf_level: float | None = None) -> NDArray:
        """Interval for k, exponentiated from the log_shape interval."""
        return np.exp(self.conf_int(conf_level)[-1])

    @property
    def hazard_ratios(self) -> NDArray:
        """exp(β) for the covariates (intercept and shape excluded)."""
        return np.exp(self.coefficients[1:-1])

    def _profile(self, x) -> NDArray:
        """Covariate row with the intercept prepended, shape (p + 1,)."""
        if self.design.p == 0:
            return np.ones(1)
        if x is None:
            raise ValidationError(f"x: covariate profile required for {list(self.design.names)}")
        rows = self.design.covariate_rows(x)
        if rows.shape[0] != 1:
            raise ValidationError(f"x: expected one covariate profile, got {rows.shape[0]}")
        return np.concatenate([[1.0], rows[0]])

    @staticmethod
    def _times(times: ArrayLike) -> NDArray:
        t = np.atleast_1d(check_array(times, 'times')).ravel()
        check_finite(t, 'times')
        check_nonnegative(t, 'times')
        return t

    def _log_cumhaz(self, times: NDArray, z: NDArray):
        """Delta-method result for log H(t|x) = k log t + zᵀβ."""
        with np.errstate(divide='ignore'):
            log_t = np.log(times)

        def g(theta):
            return np.exp(theta[-1]) * log_t + z @ theta[:-1]

        def jac(theta):
            k = np.exp(theta[-1])
            return np.column_stack([np.tile(z, (len(log_t), 1)), k * log_t])

        return delta_method(g, self.coefficients, self.covariance, jac=jac)

    def predict_survival(
        self,
        times: ArrayLike,
        x=None,
        *,
        conf_type: ConfType = 'log-log',
        conf_level: float | None = None,
    ) -> pd.DataFrame:
        """
        S(t | x) = exp(-t^k exp(xᵀβ)) with pointwise intervals.

        conf_type selects the scale the Wald interval is built on:
            'log-log': log H(t) (default; always inside [0, 1])
            'log':     log S(t), upper bound capped at 1
            'plain':   S(t), clipped to [0, 1]

        Args:
            times: Positive times
            x: Covariate profile (array of p values, dict or one-row DataFrame)

        Returns:
            DataFrame indexed by time with survival, std_error, lower, upper.
        """
        if conf_type not in ('log-log', 'log', 'plain'):
            raise ValueError(
                f"conf_type must be 'log-log', 'log' or 'plain', got {conf_type!r}"
            )
        level = self.conf_level if conf_level is None else conf_level
        t = self._times(times)
        if np.any(t == 0):
            raise ValidationError("times: must be strictly positive")
        z = self._profile(x)

        dm = self._log_cumhaz(t, z)
        log_H = dm.estimate
        se_log_H = dm.standard_errors
        H = np.exp(log_H)
        surv = np.exp(-H)
        se_surv = surv * H * se_log_H

        if conf_type == 'log-log':
            ci = transformed_interval(log_H, se_log_H, lambda u: np.exp(-np.exp(u)), level)
        elif conf_type == 'log':
            ci = transformed_interval(-H, H * se_log_H, np.exp, level)
            ci = np.minimum(ci, 1.0)
        else:
            ci = np.clip(wald_interval(surv, se_surv, level), 0.0, 1.0)

        return pd.DataFrame(
            {
                'survival': surv,
                'std_error': se_surv,
                'lower': ci[:, 0],
                'upper': ci[:, 1],
            },
            index=pd.Index(t, name='time'),
        )

    def predict_hazard(
        self,
        times: ArrayLike,
        x=None,
        *,
        conf_level: float | None = None,
    ) -> pd.DataFrame:
        """
        h(t | x) = k t^(k-1) exp(xᵀβ) with a log-scale interval.

        Returns:
            DataFrame indexed by time with hazard, std_error, lower, upper.
        """
        level = self.conf_level if conf_level is None else conf_level
        t = self._times(times)
        if np.any(t == 0):
            raise ValidationError("times: must be strictly positive")
        z = self._profile(x)
        log_t = np.log(t)

        def g(theta):
            k = np.exp(theta[-1])
            return theta[-1] + (k - 1.0) * log_t + z @ theta[:-1]

        def jac(theta):
            k = np.exp(theta[-1])
            return np.column_stack([np.tile(z, (len(t), 1)), 1.0 + k * log_t])

        dm = delta_method(g, self.coefficients, self.covariance, jac=jac)
        hazard = np.exp(dm.estimate)
        ci = transformed_interval(dm.estimate, dm.standard_errors, np.exp, level)
        return pd.DataFrame(
            {
                'hazard': hazard,
                'std_error': hazard * dm.standard_errors,
                'lower': ci[:, 0],
                'upper': ci[:, 1],
            },
            index=pd.Index(t, name='time'),
        )

    def median_survival(self, x=None, *, conf_level: float | None = None) -> pd.Series:
        """
        Median survival time (log 2 · exp(-xᵀβ))^(1/k), log-scale interval.

        Returns:
            Series with estimate, std_error, lower, upper.
        """
        level = self.conf_level if conf_level is None else conf_level
        z = self._profile(x)

        def g(theta):
            return (np.log(np.log(2.0)) - z @ theta[:-1]) / np.exp(theta[-1])

        def jac(theta):
            k = np.exp(theta[-1])
            return np.append(-z / k, -g(theta))

        dm = delta_method(g, self.coefficients, self.covariance, jac=jac)
        median = float(np.exp(dm.estimate[0]))
        se_log = float(dm.standard_errors[0])
        ci = transformed_interval(dm.estimate, dm.standard_errors, np.exp, level)[0]
        return pd.Series({
            'estimate': median,
            'std_error': median * se_log,
            'lower': ci[0],
            'upper': ci[1],
        })

    def _title(self) -> str:
        return "Weibull Proportional Hazards Model"

    def _extra_lines(self) -> list[str]:
        lo, hi = self.shape_conf_int()
        return [
            f"Shape k = {self.shape:.5f} [{lo:.5f}, {hi:.5f}]",
            f"n= {self.n_observations}, number of events= {self.design.n_events}",
        ]


class CoxSolution(MLESolution):
    """Cox proportional hazards solution.

    Properties mirror R's coxph() output.
    """

    __slots__ = ()

    @property
    def design(self) -> SurvivalDesign:
        return self._objective.design

    @property
    def ties(self) -> str:
        return self._objective.ties

    @property
    def n_events(self) -> int:
        return self.design.n_events

    @property
    def n_strata(self) -> int:
        return self._objective.n_strata

    @property
    def hazard_ratios(self) -> NDArray:
        return np.exp(self.coefficients)

    def hazard_ratio_conf_int(self, conf_level: float | None = None) -> NDArray:
        """Wald interval on the log hazard ratio, exponentiated. Shape (p, 2)."""
        return np.exp(self.conf_int(conf_level))

    @property
    def loglik_null(self) -> float:
        """Partial log-likelihood at β = 0."""
        return self._objective.partial_loglik(np.zeros(self.n_params))

    @property
    def lr_statistic(self) -> float:
        return 2.0 * (self.loglik - self.loglik_null)

    @property
    def lr_p_value(self) -> float:
        return float(sp_stats.chi2.sf(self.lr_statistic, self.n_params))

    @property
    def concordance(self) -> float:
        """Harrell's C at the fitted coefficients."""
        return self._objective.concordance(self.coefficients)

    @property
    def aic(self) -> float:
        """AIC of the partial likelihood, as reported by coxph()."""
        return -2.0 * self.loglik + 2.0 * self.n_params

    @property
    def bic(self) -> float:
        """BIC using the number of events, as R's BIC() does for coxph."""
        return -2.0 * self.loglik + self.n_params * np.log(self.n_events)

    def to_frame(self, conf_level: float | None = None) -> pd.DataFrame:
        frame = super().to_frame(conf_level)
        hr_ci = self.hazard_ratio_conf_int(conf_level)
        frame.insert(1, 'hazard_ratio', self.hazard_ratios)
        frame['hr_lower'] = hr_ci[:, 0]
        frame['hr_upper'] = hr_ci[:, 1]
        return frame

    def _title(self) -> str:
        strata = f", {self.n_strata} strata" if self.n_strata > 1 else ""
        return f"Cox Proportional Hazards Model (ties = {self.ties}{strata})"

    def _extra_lines(self) -> list[str]:
        z = z_critical(self.conf_level)
        lines = [f"  {'':>12s}  {'exp(coef)':>10s}  {'lower':>10s}  {'upper':>10s}"]
        for i, name in enumerate(self.names):
            se = self.standard_errors[i]
            lines.append(
                f"  {name:>12s}  {self.hazard_ratios[i]:10.5f}  "
                f"{np.exp(self.coefficients[i] - z * se):10.5f}  "
                f"{np.exp(self.coefficients[i] + z * se):10.5f}"
            )
        lines.extend([
            "",
            f"Concordance= {self.concordance:.4f}",
            f"Likelihood ratio test= {self.lr_statistic:.4f} on {self.n_params} df, "
            f"p={self.lr_p_value:.4g}",
            f"n= {self.n_observations}, number of events= {self.n_events}",
        ])
        return lines
