"""
SurvivalDesign: immutable container for time-to-event data.

Wraps time, event indicator, optional covariates, covariate names and
optional strata. Validates inputs at construction time; all downstream
code trusts clean data.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np
import pandas as pd
from numpy.typing import NDArray

from handmle.core.exceptions import ValidationError
from handmle.core.validation import (
    check_array,
    check_binary,
    check_consistent_length,
    check_finite,
    check_min_samples,
    check_nonnegative,
)


@dataclass(frozen=True)
class SurvivalDesign:
    """Immutable survival data container.

    Parameters
    ----------
    time : NDArray
        Time to event or censoring. Must be non-negative.
    event : NDArray
        Event indicator: 1 = event observed, 0 = censored.
    X : NDArray or None
        Covariate matrix (n, p), no intercept column.
    strata : NDArray or None
        Strata labels for stratified Cox models.
    names : tuple of str
        Covariate names, one per column of X.
    """

    time: NDArray
    event: NDArray
    X: NDArray | None
    strata: NDArray | None
    names: tuple[str, ...]

    @classmethod
    def for_survival(
        cls,
        time,
        event,
        X=None,
        *,
        strata=None,
        names: Sequence[str] | None = None,
    ) -> SurvivalDesign:
        """Create and validate survival data.

        Parameters
        ----------
        time : array-like
            Time to event or censoring.
        event : array-like
            Event indicator (0/1 or bool).
        X : array-like or None
            Optional covariate matrix. A DataFrame supplies its column names.
        strata : array-like or None
            Optional strata labels (any hashable values).
        names : sequence of str or None
            Covariate names (default x1..xp).

        Returns
        -------
        SurvivalDesign

        Raises
        ------
        ValidationError
            If inputs are invalid.
        """
        time = check_array(time, 'time').ravel()
        event = check_array(event, 'event').ravel()

        n = len(time)
        check_min_samples(time, 1, 'time')
        check_consistent_length(time, event, names=('time', 'event'))
        check_finite(time, 'time')
        check_nonnegative(time, 'time')
        check_binary(event, 'event')

        X_arr = None
        if X is not None:
            if names is None and isinstance(X, pd.DataFrame):
                names = [str(c) for c in X.columns]
            X_arr = check_array(X, 'X')
            if X_arr.ndim == 1:
                X_arr = X_arr.reshape(-1, 1)
            if X_arr.ndim != 2:
                raise ValidationError(f"X: must be 1D or 2D, got {X_arr.ndim}D")
            check_consistent_length(X_arr, time, names=('X', 'time'))
            check_finite(X_arr, 'X')
            p = X_arr.shape[1]
            if names is None:
                names = [f"x{j + 1}" for j in range(p)]
            names = tuple(str(nm) for nm in names)
            if len(names) != p:
                raise ValidationError(f"names: expected {p} names, got {len(names)}")
        else:
            if names:
                raise ValidationError("names given without X")
            names = ()

        strata_arr = None
        if strata is not None:
            strata_arr = np.asarray(strata).ravel()
            if len(strata_arr) != n:
                raise ValidationError(
                    f"strata: must have {n} elements to match time, "
                    f"got {len(strata_arr)}"
                )

        return cls(
            time=time,
            event=event,
            X=X_arr,
            strata=strata_arr,
            names=tuple(names),
        )

    @classmethod
    def from_dataframe(
        cls,
        df: pd.DataFrame,
        *,
        duration: str,
        event: str,
        x: str | Sequence[str] | None = None,
        strata: str | Sequence[str] | None = None,
    ) -> SurvivalDesign:
        """Build from DataFrame columns.

        Multiple strata columns are combined into one label per row.
        """
        if isinstance(x, str):
            x = [x]
        if isinstance(strata, str):
            strata = [strata]
        needed = [duration, event, *(x or []), *(strata or [])]
        missing = [c for c in needed if c not in df.columns]
        if missing:
            raise ValidationError(f"columns not found in data: {missing}")

        strata_arr = None
        if strata:
            if len(strata) == 1:
                strata_arr = df[strata[0]].to_numpy()
            else:
                strata_arr = df[list(strata)].astype(str).agg('|'.join, axis=1).to_numpy()

        return cls.for_survival(
            df[duration].to_numpy(),
            df[event].to_numpy(),
            df[list(x)].to_numpy() if x else None,
            strata=strata_arr,
            names=list(x) if x else None,
        )

    @property
    def n(self) -> int:
        """Number of observations."""
        return len(self.time)

    @property
    def p(self) -> int:
        """Number of covariates (0 if none)."""
        return self.X.shape[1] if self.X is not None else 0

    @property
    def n_events(self) -> int:
        """Number of observed events."""
        return int(np.sum(self.event))

    @property
    def n_strata(self) -> int:
        return 1 if self.strata is None else len(np.unique(self.strata))

    def covariate_rows(self, x) -> NDArray:
        """
        Covariate profile(s) as a (m, p) array.

        Accepts a DataFrame (columns selected by name), a mapping of
        name to value, or an array with p columns.
        """
        if isinstance(x, dict):
            x = pd.DataFrame([x])
        if isinstance(x, (pd.DataFrame, pd.Series)):
            frame = x.to_frame().T if isinstance(x, pd.Series) else x
            missing = [c for c in self.names if c not in frame.columns]
            if missing:
                raise ValidationError(f"x: missing covariates {missing}")
            x = frame[list(self.names)].to_numpy()
        rows = check_array(x, 'x')
        if rows.ndim <= 1:
            rows = rows.reshape(1, -1)
        if rows.shape[1] != self.p:
            raise ValidationError(f"x: expected {self.p} covariates, got {rows.shape[1]}")
        check_finite(rows, 'x')
        return rows
