"""Coverage simulation solution types."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
import pandas as pd
from numpy.typing import NDArray

from handmle.core.result import Result


@dataclass(frozen=True)
class CoverageParams:
    """Per-parameter summaries over the converged replicates."""
    names: tuple[str, ...]
    truth: NDArray             # (p,)
    coverage: NDArray          # (p,) fraction of intervals containing truth
    mc_se: NDArray             # (p,) Monte Carlo SE of the coverage
    bias: NDArray              # (p,) mean(θ̂) - θ
    mean_se: NDArray           # (p,) average model-based SE
    empirical_sd: NDArray      # (p,) SD of θ̂ across replicates
    n_sim: int
    n_used: int
    n_failed: int              # replicates skipped (not converged / no SE)
    conf_level: float


class CoverageSolution:
    """Wald interval coverage study results."""

    __slots__ = ('_result',)

    def __init__(self, _result: Result[CoverageParams]) -> None:
        self._result = _result

    @property
    def names(self) -> tuple[str, ...]:
        return self._result.params.names

    @property
    def truth(self) -> NDArray:
        return self._result.params.truth

    @property
    def coverage(self) -> NDArray:
        return self._result.params.coverage

    @property
    def mc_se(self) -> NDArray:
        return self._result.params.mc_se

    @property
    def bias(self) -> NDArray:
        return self._result.params.bias

    @property
    def mean_se(self) -> NDArray:
        return self._result.params.mean_se

    @property
    def empirical_sd(self) -> NDArray:
        return self._result.params.empirical_sd

    @property
    def n_sim(self) -> int:
        return self._result.params.n_sim

    @property
    def n_used(self) -> int:
        return self._result.params.n_used

    @property
    def n_failed(self) -> int:
        return self._result.params.n_failed

    @property
    def conf_level(self) -> float:
        return self._result.params.conf_level

    @property
    def estimates(self) -> NDArray:
        """(n_used, p) estimates of the converged replicates."""
        return self._result.info['estimates']

    @property
    def timing(self):
        return self._result.timing

    @property
    def warnings(self) -> tuple[str, ...]:
        return self._result.warnings

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            {
                'truth': self.truth,
                'coverage': self.coverage,
                'mc_se': self.mc_se,
                'bias': self.bias,
                'mean_se': self.mean_se,
                'empirical_sd': self.empirical_sd,
            },
            index=pd.Index(list(self.names), name='parameter'),
        )

    def summary(self) -> str:
        lines = [
            f"Wald interval coverage ({self.conf_level:.0%} nominal)",
            "=" * 70,
            f"Replicates: {self.n_sim} (used {self.n_used}, skipped {self.n_failed})",
            "",
            self.to_frame().to_string(float_format=lambda v: f"{v:.4f}"),
        ]
        if self.timing:
            lines.append(f"Time: {self.timing.get('total_seconds', 0):.2f}s")
        return "\n".join(lines)

    def __repr__(self) -> str:
        cov = ", ".join(f"{c:.3f}" for c in self.coverage)
        return f"CoverageSolution(n_used={self.n_used}, coverage=[{cov}])"
