"""
GLM solution type.

GLMSolution is an MLESolution with access to the family, link and design,
plus prediction on the link and response scales.
"""

from __future__ import annotations

from typing import Literal

import numpy as np
import pandas as pd
from numpy.typing import ArrayLike, NDArray

from handmle.inference import transformed_interval, wald_interval
from handmle.mle.solution import MLESolution
from handmle.regression.design import Design
from handmle.regression.families import Family, Link


class GLMSolution(MLESolution):
    """Hand-rolled GLM fit (logistic, Poisson, log-binomial)."""

    __slots__ = ()

    @property
    def design(self) -> Design:
        return self._objective.design

    @property
    def family(self) -> Family:
        return self._objective.family

    @property
    def link(self) -> Link:
        return self._objective.link

    @property
    def linear_predictor(self) -> NDArray:
        return self._objective.linear_predictor(self.coefficients)

    @property
    def fitted_values(self) -> NDArray:
        return self.link.linkinv(self.linear_predictor)

    @property
    def deviance(self) -> float:
        d = self.design
        return self.family.deviance(d.y, self.fitted_values, d.weights)

    def ratios(self, conf_level: float | None = None) -> pd.DataFrame:
        """
        exp(β) with intervals exponentiated from the log scale.

        Odds ratios under the logit link, rate or risk ratios under the
        log link.
        """
        ci = np.exp(self.conf_int(conf_level))
        return pd.DataFrame(
            {
                'ratio': np.exp(self.coefficients),
                'lower': ci[:, 0],
                'upper': ci[:, 1],
            },
            index=pd.Index(list(self.names), name='parameter'),
        )

    def predict(
        self,
        X_new: ArrayLike | pd.DataFrame | None = None,
        *,
        type: Literal['link', 'response'] = 'response',
        offset: ArrayLike | None = None,
        conf_level: float | None = None,
    ) -> pd.DataFrame:
        """
        Predictions with Wald intervals.

        The interval is built on the link scale, SE(η) = sqrt(x V xᵀ), and
        mapped through the inverse link for type='response'. The response
        standard error is the delta-method dμ/dη · SE(η).

        Args:
            X_new: New covariate rows (default: the fitting data)
            type: 'link' for η, 'response' for μ
            offset: Offset for the new rows (default 0; the fitted offset
                when X_new is None)
            conf_level: Defaults to the solution's level

        Returns:
            DataFrame with columns estimate, std_error, lower, upper.
        """
        if type not in ('link', 'response'):
            raise ValueError(f"type must be 'link' or 'response', got {type!r}")
        level = self.conf_level if conf_level is None else conf_level

        if X_new is None:
            X = self.design.X
            off = self.design.offset if offset is None else np.asarray(offset, dtype=np.float64)
        else:
            X = self.design.model_matrix(X_new)
            off = np.zeros(X.shape[0]) if offset is None else np.asarray(offset, dtype=np.float64)

        eta = X @ self.coefficients + off
        se_eta = np.sqrt(np.einsum('ij,jk,ik->i', X, self.covariance, X))

        if type == 'link':
            ci = wald_interval(eta, se_eta, level)
            estimate, se = eta, se_eta
        else:
            ci = transformed_interval(eta, se_eta, self.link.linkinv, level)
            estimate = self.link.linkinv(eta)
            se = self.link.mu_eta(eta) * se_eta

        return pd.DataFrame({
            'estimate': estimate,
            'std_error': se,
            'lower': ci[:, 0],
            'upper': ci[:, 1],
        })

    def _title(self) -> str:
        return f"Generalized Linear Model: {self.family.name} (link = {self.link.name})"

    def _extra_lines(self) -> list[str]:
        return [f"Residual deviance: {self.deviance:.4f} on "
                f"{self.n_observations - self.n_params} degrees of freedom"]
