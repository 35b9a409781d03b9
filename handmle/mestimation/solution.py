"""M-estimation solution types."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np
import pandas as pd
from numpy.typing import NDArray

from handmle.core.result import Result
from handmle.inference import p_values, standard_errors, wald_interval, z_statistics


@dataclass(frozen=True)
class MEstimationParams:
    """Parameter payload for an M-estimator."""
    theta: NDArray                # (k,) root of Σψ = 0
    bread: NDArray                # (k, k) -(1/n) Σ ∂ψ/∂θ
    meat: NDArray                 # (k, k) (1/n) Σ ψψᵀ
    variance: NDArray             # (k, k) sandwich, already divided by n
    names: tuple[str, ...]
    n_observations: int
    converged: bool
    status: int                   # 0 = converged
    message: str
    conf_level: float


class MEstimationSolution:
    """User-facing M-estimation results with sandwich inference."""

    __slots__ = ('_result',)

    def __init__(self, _result: Result[MEstimationParams]) -> None:
        self._result = _result

    @property
    def theta(self) -> NDArray:
        return self._result.params.theta

    @property
    def bread(self) -> NDArray:
        return self._result.params.bread

    @property
    def meat(self) -> NDArray:
        return self._result.params.meat

    @property
    def variance(self) -> NDArray:
        """Sandwich covariance of θ̂."""
        return self._result.params.variance

    @property
    def asymptotic_variance(self) -> NDArray:
        """B⁻¹F(B⁻¹)ᵀ, the covariance of √n(θ̂ - θ)."""
        return self.variance * self.n_observations

    @property
    def standard_errors(self) -> NDArray:
        return standard_errors(self.variance)

    @property
    def names(self) -> tuple[str, ...]:
        return self._result.params.names

    @property
    def n_observations(self) -> int:
        return self._result.params.n_observations

    @property
    def conf_level(self) -> float:
        return self._result.params.conf_level

    def conf_int(self, conf_level: float | None = None) -> NDArray:
        level = self.conf_level if conf_level is None else conf_level
        return wald_interval(self.theta, self.standard_errors, level)

    @property
    def z_statistics(self) -> NDArray:
        return z_statistics(self.theta, self.standard_errors)

    @property
    def p_values(self) -> NDArray:
        return p_values(self.z_statistics)

    @property
    def converged(self) -> bool:
        return self._result.params.converged

    @property
    def status(self) -> int:
        return self._result.params.status

    @property
    def message(self) -> str:
        return self._result.params.message

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
        ci = self.conf_int(conf_level)
        return pd.DataFrame(
            {
                'estimate': self.theta,
                'std_error': self.standard_errors,
                'lower': ci[:, 0],
                'upper': ci[:, 1],
            },
            index=pd.Index(list(self.names), name='parameter'),
        )

    def summary(self) -> str:
        """Estimates with sandwich standard errors."""
        level = int(round(self.conf_level * 100))
        ci = self.conf_int()
        lines = [
            "M-Estimation (empirical sandwich variance)",
            "=" * 70,
            f"Observations: {self.n_observations}",
            f"Root-finder: {self.info.get('solver')} "
            f"(status {self.status}, converged={self.converged})",
            "",
            f"  {'':>12s}  {'Estimate':>10s}  {'Std.Err':>10s}  {f'{level}% CI':>23s}",
        ]
        for i, name in enumerate(self.names):
            lines.append(
                f"  {name:>12s}  {self.theta[i]:10.5f}  {self.standard_errors[i]:10.5f}  "
                f"[{ci[i, 0]:10.5f}, {ci[i, 1]:10.5f}]"
            )
        lines.append("-" * 70)
        for w in self.warnings:
            lines.append(f"Warning: {w}")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"MEstimationSolution(n={self.n_observations}, k={len(self.theta)}, "
            f"converged={self.converged})"
        )
