"""Reference fit payload shared by every reference library wrapper."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
import pandas as pd
from numpy.typing import NDArray


@dataclass(frozen=True)
class ReferenceFit:
    """
    Estimates from an established library, in this package's parametrization.

    Attributes:
        names: Parameter names, matching the hand-rolled solution's names
        coefficients: Point estimates (p,)
        standard_errors: Standard errors (p,)
        library: Which library and estimator produced the fit
        covariance: Covariance matrix (p, p), if available
        loglik: Maximized (partial) log-likelihood, if the library reports it
    """
    names: tuple[str, ...]
    coefficients: NDArray
    standard_errors: NDArray
    library: str
    covariance: NDArray | None = None
    loglik: float | None = None

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            {'estimate': self.coefficients, 'std_error': self.standard_errors},
            index=pd.Index(list(self.names), name='parameter'),
        )

    def __repr__(self) -> str:
        return f"ReferenceFit(library={self.library!r}, names={list(self.names)})"


def _se(cov: NDArray) -> NDArray:
    return np.sqrt(np.diag(cov))
