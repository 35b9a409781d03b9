"""
Side-by-side comparison of a hand-rolled fit with a reference fit.

Agreement means a mean absolute coefficient difference below 1e-2 and a
maximum absolute standard error difference below 1e-3 (REFERENCE_COEF and
REFERENCE_SE).
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
import pandas as pd
from numpy.typing import NDArray

from handmle.core.compute.tolerances import REFERENCE_COEF, REFERENCE_SE
from handmle.core.exceptions import ValidationError
from handmle.reference._common import ReferenceFit


@dataclass(frozen=True)
class Comparison:
    """Hand-rolled vs reference estimates, aligned by parameter name."""
    names: tuple[str, ...]
    estimate: NDArray
    std_error: NDArray
    reference_estimate: NDArray
    reference_std_error: NDArray
    library: str

    @property
    def coef_diff(self) -> NDArray:
        return self.estimate - self.reference_estimate

    @property
    def se_diff(self) -> NDArray:
        return self.std_error - self.reference_std_error

    @property
    def mean_abs_coef_diff(self) -> float:
        return float(np.mean(np.abs(self.coef_diff)))

    @property
    def max_abs_se_diff(self) -> float:
        return float(np.max(np.abs(self.se_diff)))

    def agrees(
        self,
        coef_tol: float = REFERENCE_COEF.atol,
        se_tol: float = REFERENCE_SE.atol,
    ) -> bool:
        return bool(self.mean_abs_coef_diff < coef_tol and self.max_abs_se_diff < se_tol)

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            {
                'estimate': self.estimate,
                'reference': self.reference_estimate,
                'diff': self.coef_diff,
                'std_error': self.std_error,
                'reference_se': self.reference_std_error,
                'se_diff': self.se_diff,
            },
            index=pd.Index(list(self.names), name='parameter'),
        )

    def summary(self) -> str:
        lines = [
            f"Comparison with {self.library}",
            "=" * 78,
            self.to_frame().to_string(float_format=lambda v: f"{v:.6f}"),
            "-" * 78,
            f"Mean |coef diff|: {self.mean_abs_coef_diff:.3g}   "
            f"Max |SE diff|: {self.max_abs_se_diff:.3g}   "
            f"Agrees: {self.agrees()}",
        ]
        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"Comparison(library={self.library!r}, "
            f"mean_abs_coef_diff={self.mean_abs_coef_diff:.3g}, "
            f"max_abs_se_diff={self.max_abs_se_diff:.3g})"
        )


def compare(solution, reference: ReferenceFit) -> Comparison:
    """
    Align a solution with a reference fit by parameter name.

    Args:
        solution: Any fitted solution with names and to_frame() (MLESolution
            and its subclasses, MEstimationSolution)
        reference: ReferenceFit from reference_glm, reference_coxph,
            reference_weibull or reference_mestimator

    Raises:
        ValidationError: If a parameter of the solution is missing from the
            reference.
    """
    ours = solution.to_frame()
    theirs = reference.to_frame()
    names = list(solution.names)
    missing = [nm for nm in names if nm not in theirs.index]
    if missing:
        raise ValidationError(
            f"reference: parameters {missing} not in {reference.library} fit "
            f"(has {list(reference.names)})"
        )
    theirs = theirs.loc[names]

    return Comparison(
        names=tuple(names),
        estimate=ours['estimate'].to_numpy(),
        std_error=ours['std_error'].to_numpy(),
        reference_estimate=theirs['estimate'].to_numpy(),
        reference_std_error=theirs['std_error'].to_numpy(),
        library=reference.library,
    )
