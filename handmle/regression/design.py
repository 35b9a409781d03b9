"""
Regression Design.

Design holds the model matrix X (with an optional leading intercept
column), the response y, optional offset and prior weights, and the
parameter names. It is validated once on construction; objectives and
solvers trust it afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence

import numpy as np
import pandas as pd
from numpy.typing import ArrayLike, NDArray

from handmle.core.exceptions import ValidationError
from handmle.core.validation import (
    check_1d,
    check_2d,
    check_array,
    check_column_rank,
    check_consistent_length,
    check_finite,
    check_min_samples,
    check_nonnegative,
)

INTERCEPT = 'Intercept'


@dataclass(frozen=True)
class Design:
    """
    Regression design matrix specification.

    Immutable after construction.

    Construction:
        Design.from_arrays(X, y)                               # x1..xp + Intercept
        Design.from_arrays(X, y, names=['gpa'], offset=log_t)
        Design.from_dataframe(df, x=['GPA', 'TUCE', 'PSI'], y='GRADE')
    """
    _X: NDArray[np.floating[Any]]
    _y: NDArray[np.floating[Any]]
    _offset: NDArray[np.floating[Any]]
    _weights: NDArray[np.floating[Any]]
    _names: tuple[str, ...]
    _has_intercept: bool

    @classmethod
    def from_arrays(
        cls,
        X: ArrayLike,
        y: ArrayLike,
        *,
        names: Sequence[str] | None = None,
        intercept: bool = True,
        offset: ArrayLike | None = None,
        weights: ArrayLike | None = None,
    ) -> Design:
        """
        Build Design directly from arrays.

        Args:
            X: Covariates (n, k) without an intercept column. A DataFrame
               supplies its column names.
            y: Response (n,)
            names: Covariate names (default x1..xk)
            intercept: Prepend an 'Intercept' column of ones
            offset: Known term added to the linear predictor (e.g. log exposure)
            weights: Prior (frequency) weights
        """
        if names is None and isinstance(X, pd.DataFrame):
            names = [str(c) for c in X.columns]
        if isinstance(X, pd.Series):
            names = [str(X.name)] if names is None and X.name is not None else names
        X = check_array(X, 'X')
        y = check_array(y, 'y')
        return cls._build(X, y, names, intercept, offset, weights)

    @classmethod
    def from_dataframe(
        cls,
        df: pd.DataFrame,
        *,
        x: str | Sequence[str],
        y: str,
        intercept: bool = True,
        offset: str | ArrayLike | None = None,
        weights: str | ArrayLike | None = None,
    ) -> Design:
        """
        Build Design from DataFrame columns.

        Args:
            df: Source data
            x: Covariate column(s)
            y: Response column
            intercept: Prepend an 'Intercept' column of ones
            offset: Offset column name or array
            weights: Prior weights column name or array
        """
        if isinstance(x, str):
            x = [x]
        missing = [c for c in [*x, y] if c not in df.columns]
        if missing:
            raise ValidationError(f"columns not found in data: {missing}")

        if isinstance(offset, str):
            offset = df[offset].to_numpy()
        if isinstance(weights, str):
            weights = df[weights].to_numpy()

        X_arr = check_array(df[list(x)].to_numpy(), 'X')
        y_arr = check_array(df[y].to_numpy(), 'y')
        return cls._build(X_arr, y_arr, list(x), intercept, offset, weights)

    @classmethod
    def _build(cls, X, y, names, intercept, offset, weights) -> Design:
        """Internal builder with validation."""
        if X.ndim == 1:
            X = X.reshape(-1, 1)
        if y.ndim == 2 and y.shape[1] == 1:
            y = y.ravel()

        check_2d(X, 'X')
        check_1d(y, 'y')
        check_finite(X, 'X')
        check_finite(y, 'y')
        check_consistent_length(X, y, names=('X', 'y'))

        n, k = X.shape
        if names is None:
            names = [f"x{j + 1}" for j in range(k)]
        names = [str(nm) for nm in names]
        if len(names) != k:
            raise ValidationError(f"names: expected {k} names, got {len(names)}")
        if len(set(names)) != k:
            raise ValidationError(f"names: duplicates in {names}")

        if intercept:
            if INTERCEPT in names:
                raise ValidationError(
                    f"names: {INTERCEPT!r} is reserved when intercept=True"
                )
            X = np.column_stack([np.ones(n), X])
            names = [INTERCEPT, *names]

        if offset is None:
            offset_arr = np.zeros(n)
        else:
            offset_arr = check_array(offset, 'offset').ravel()
            check_finite(offset_arr, 'offset')
            check_consistent_length(offset_arr, y, names=('offset', 'y'))

        if weights is None:
            weights_arr = np.ones(n)
        else:
            weights_arr = check_array(weights, 'weights').ravel()
            check_finite(weights_arr, 'weights')
            check_nonnegative(weights_arr, 'weights')
            check_consistent_length(weights_arr, y, names=('weights', 'y'))

        check_min_samples(X, X.shape[1], 'X')
        check_column_rank(X, 'X')

        return cls(
            _X=X,
            _y=y,
            _offset=offset_arr,
            _weights=weights_arr,
            _names=tuple(names),
            _has_intercept=bool(intercept),
        )

    # === Properties ===

    @property
    def X(self) -> NDArray[np.floating[Any]]:
        """Model matrix (n x p), intercept column first if present."""
        return self._X

    @property
    def y(self) -> NDArray[np.floating[Any]]:
        """Response vector (n,)."""
        return self._y

    @property
    def offset(self) -> NDArray[np.floating[Any]]:
        """Offset (n,), zeros if none was given."""
        return self._offset

    @property
    def weights(self) -> NDArray[np.floating[Any]]:
        """Prior weights (n,), ones if none were given."""
        return self._weights

    @property
    def names(self) -> tuple[str, ...]:
        """Column names of X."""
        return self._names

    @property
    def has_intercept(self) -> bool:
        return self._has_intercept

    @property
    def has_offset(self) -> bool:
        return bool(np.any(self._offset != 0))

    @property
    def n(self) -> int:
        """Number of observations."""
        return self._X.shape[0]

    @property
    def p(self) -> int:
        """Number of columns of X, intercept included."""
        return self._X.shape[1]

    def model_matrix(self, X_new: ArrayLike | pd.DataFrame) -> NDArray:
        """
        Model matrix for new covariate rows.

        Accepts a DataFrame (columns selected by name) or an array with
        either the covariate columns only or the full set of p columns.
        """
        covariates = [nm for nm in self._names if nm != INTERCEPT]
        if isinstance(X_new, pd.DataFrame):
            missing = [c for c in covariates if c not in X_new.columns]
            if missing:
                raise ValidationError(f"X_new: missing columns {missing}")
            X_new = X_new[covariates].to_numpy()
        X_new = check_array(X_new, 'X_new')
        if X_new.ndim == 1:
            X_new = X_new.reshape(1, -1)
        check_finite(X_new, 'X_new')

        if X_new.shape[1] == self.p:
            return X_new
        if self._has_intercept and X_new.shape[1] == len(covariates):
            return np.column_stack([np.ones(X_new.shape[0]), X_new])
        raise ValidationError(
            f"X_new: expected {len(covariates)} or {self.p} columns, "
            f"got {X_new.shape[1]}"
        )
