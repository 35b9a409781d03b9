"""
Maximum likelihood solution types.

Contains the parameter payload and the user-facing solution wrapper shared
by every hand-rolled model. Domain solutions (GLMSolution, WeibullSolution,
CoxSolution) subclass MLESolution and add model-specific accessors.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, TYPE_CHECKING

import numpy as np
import pandas as pd
from numpy.typing import NDArray

from handmle.core.result import Result
from handmle.inference import p_values, wald_interval, z_statistics

if TYPE_CHECKING:
    from handmle.core.compute.optimization import OptimxResult
    from handmle.core.protocols import Objective


@dataclass(frozen=True)
class MLEParams:
    """
    Parameter payload for a maximum likelihood fit.

    Immutable data computed by the optimx backend.
    """
    coefficients: NDArray         # (p,) θ̂
    standard_errors: NDArray      # (p,) NaN if the Hessian was not invertible
    covariance: NDArray           # (p, p) inverse Hessian
    hessian: NDArray              # (p, p) Hessian of the negative log-likelihood
    loglik: float
    converged: bool
    status: int                   # 0 = converged
    method: str                   # winning algorithm
    n_iter: int
    names: tuple[str, ...]
    n_observations: int
    conf_level: float


class MLESolution:
    """
    User-facing maximum likelihood results.

    Wraps the backend Result and the objective that was maximized.
    """

    __slots__ = ('_result', '_objective')

    def __init__(self, _result: Result[MLEParams], _objective: 'Objective') -> None:
        self._result = _result
        self._objective = _objective

    @property
    def coefficients(self) -> NDArray:
        return self._result.params.coefficients

    @property
    def standard_errors(self) -> NDArray:
        return self._result.params.standard_errors

    @property
    def covariance(self) -> NDArray:
        return self._result.params.covariance

    @property
    def hessian(self) -> NDArray:
        return self._result.params.hessian

    @property
    def names(self) -> tuple[str, ...]:
        return self._result.params.names

    @property
    def params(self) -> pd.Series:
        """Coefficients indexed by parameter name."""
        return pd.Series(self.coefficients, index=list(self.names), name='estimate')

    @property
    def z_statistics(self) -> NDArray:
        return z_statistics(self.coefficients, self.standard_errors)

    @property
    def p_values(self) -> NDArray:
        return p_values(self.z_statistics)

    @property
    def conf_level(self) -> float:
        return self._result.params.conf_level

    def conf_int(self, conf_level: float | None = None) -> NDArray:
        """Wald intervals, shape (p, 2)."""
        level = self.conf_level if conf_level is None else conf_level
        return wald_interval(self.coefficients, self.standard_errors, level)

    @property
    def loglik(self) -> float:
        return self._result.params.loglik

    @property
    def n_params(self) -> int:
        return len(self.coefficients)

    @property
    def n_observations(self) -> int:
        return self._result.params.n_observations

    @property
    def aic(self) -> float:
        """Akaike Information Criterion."""
        return -2.0 * self.loglik + 2.0 * self.n_params

    @property
    def bic(self) -> float:
        """Bayesian Information Criterion."""
        return -2.0 * self.loglik + self.n_params * np.log(self.n_observations)

    @property
    def converged(self) -> bool:
        return self._result.params.converged

    @property
    def status(self) -> int:
        return self._result.params.status

    @property
    def method(self) -> str:
        return self._result.params.method

    @property
    def n_iter(self) -> int:
        return self._result.params.n_iter

    @property
    def runs(self) -> 'OptimxResult':
        """Every optimizer run, including the ones that were not selected."""
        return self._result.info['runs']

    @property
    def objective(self) -> 'Objective':
        return self._objective

    @property
    def info(self) -> dict[str, Any]:
        return self._result.info

    @property
    def timing(self) -> dict[str, float] | None:
        return self._result.timing

    @property
    def backend_name(self) -> str:
        return self._result.backend_name

    @property
    def warnings(self) -> tuple[str, ...]:
        return self._result.warnings

    def to_frame(self, conf_level: float | None = None) -> pd.DataFrame:
        """Coefficient table: estimate, se, z, p, lower, upper."""
        ci = self.conf_int(conf_level)
        return pd.DataFrame(
            {
                'estimate': self.coefficients,
                'std_error': self.standard_errors,
                'z': self.z_statistics,
                'p_value': self.p_values,
                'lower': ci[:, 0],
                'upper': ci[:, 1],
            },
            index=pd.Index(list(self.names), name='parameter'),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            'names': list(self.names),
            'coefficients': self.coefficients.tolist(),
            'standard_errors': self.standard_errors.tolist(),
            'covariance': self.covariance.tolist(),
            'loglik': self.loglik,
            'aic': self.aic,
            'bic': self.bic,
            'converged': self.converged,
            'status': self.status,
            'method': self.method,
            'n_observations': self.n_observations,
            'backend': self.backend_name,
        }

    def _title(self) -> str:
        return "Maximum Likelihood Estimation"

    def _coefficient_lines(self) -> list[str]:
        level = int(round(self.conf_level * 100))
        lines = [
            f"  {'':>12s}  {'Estimate':>10s}  {'Std.Err':>10s}  "
            f"{'z':>8s}  {'Pr(>|z|)':>10s}  {f'{level}% CI':>21s}",
        ]
        ci = self.conf_int()
        for i, name in enumerate(self.names):
            lines.append(
                f"  {name:>12s}  {self.coefficients[i]:10.5f}  "
                f"{self.standard_errors[i]:10.5f}  "
                f"{self.z_statistics[i]:8.3f}  "
                f"{self.p_values[i]:10.4g}  "
                f"[{ci[i, 0]:9.5f}, {ci[i, 1]:9.5f}]"
            )
        return lines

    def _extra_lines(self) -> list[str]:
        return []

    def summary(self) -> str:
        """R-style summary of the fit."""
        lines = [
            self._title(),
            "=" * 78,
            f"Observations: {self.n_observations}",
            f"Method: {self.method} (status {self.status}, "
            f"converged={self.converged}, iterations {self.n_iter})",
            "",
        ]
        lines.extend(self._coefficient_lines())
        lines.append("")
        lines.extend(self._extra_lines())
        lines.append(
            f"Log-likelihood: {self.loglik:.4f}   AIC: {self.aic:.2f}   "
            f"BIC: {self.bic:.2f}"
        )
        lines.append("-" * 78)
        lines.append(f"Backend: {self.backend_name}")
        if self.timing:
            lines.append(f"Time: {self.timing.get('total_seconds', 0):.4f}s")
        for w in self.warnings:
            lines.append(f"Warning: {w}")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(n={self.n_observations}, "
            f"params={self.n_params}, converged={self.converged}, "
            f"loglik={self.loglik:.4f})"
        )
