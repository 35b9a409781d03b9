"""
Input validation utilities for handmle.

These validators follow the "fail fast, fail loud" principle. They raise
immediately with clear error messages rather than silently correcting
or making assumptions about user intent.

Design principles:
    - No silent type coercion (except np.asarray on array-likes)
    - Clear, actionable error messages with actual values
    - Each function validates ONE thing
    - Parameter names included in all error messages
"""

import numpy as np
from numpy.typing import ArrayLike, NDArray
from typing import Any

from handmle.core.exceptions import ValidationError, DimensionError


def check_array(
    array: ArrayLike,
    name: str,
) -> NDArray[np.floating[Any]]:
    """
    Validate and convert input to a floating point numpy array.

    Accepts any array-like (lists, ndarrays, pandas objects). Rejects
    inputs that result in object dtype or non-numeric dtypes.

    Args:
        array: Input to validate
        name: Parameter name for error messages

    Returns:
        numpy.ndarray with floating dtype

    Raises:
        ValidationError: If input cannot be converted to numeric array
    """
    try:
        result = np.asarray(array)
    except (ValueError, TypeError) as e:
        raise ValidationError(f"{name}: cannot convert to array: {e}") from e

    if result.dtype == object:
        raise ValidationError(
            f"{name}: converted to object dtype, indicating mixed types or non-numeric data"
        )

    if result.dtype == bool:
        result = result.astype(np.float64)

    if not np.issubdtype(result.dtype, np.number):
        raise ValidationError(
            f"{name}: non-numeric dtype {result.dtype}, expected numeric data"
        )

    if not np.issubdtype(result.dtype, np.floating):
        result = result.astype(np.float64)

    return result


def check_finite(array: NDArray[np.floating[Any]], name: str) -> None:
    """
    Verify array contains no NaN or Inf values.

    Raises:
        ValidationError: If array contains non-finite values
    """
    if not np.all(np.isfinite(array)):
        n_nan = int(np.sum(np.isnan(array)))
        n_inf = int(np.sum(np.isinf(array)))
        raise ValidationError(
            f"{name}: contains non-finite values ({n_nan} NaN, {n_inf} Inf)"
        )


def check_ndim(array: NDArray[np.floating[Any]], ndim: int, name: str) -> None:
    """
    Verify array has exactly the specified number of dimensions.

    Raises:
        DimensionError: If array has wrong number of dimensions
    """
    if array.ndim != ndim:
        raise DimensionError(
            f"{name}: expected {ndim}D array, got {array.ndim}D with shape {array.shape}"
        )


def check_1d(array: NDArray[np.floating[Any]], name: str) -> None:
    """Verify array is 1-dimensional."""
    check_ndim(array, 1, name)


def check_2d(array: NDArray[np.floating[Any]], name: str) -> None:
    """Verify array is 2-dimensional."""
    check_ndim(array, 2, name)


def check_consistent_length(
    *arrays: NDArray[np.floating[Any]],
    names: tuple[str, ...]
) -> None:
    """
    Verify all arrays have the same length (first dimension).

    Raises:
        ValueError: If number of names doesn't match number of arrays
        DimensionError: If arrays have inconsistent lengths
    """
    if len(arrays) != len(names):
        raise ValueError(
            f"Number of arrays ({len(arrays)}) must match number of names ({len(names)})"
        )

    if len(arrays) < 2:
        return

    lengths = [arr.shape[0] for arr in arrays]
    if len(set(lengths)) > 1:
        details = ", ".join(f"{name}={length}" for name, length in zip(names, lengths))
        raise DimensionError(f"Inconsistent lengths: {details}")


def check_min_samples(array: NDArray[np.floating[Any]], min_samples: int, name: str) -> None:
    """
    Verify array has at least the minimum number of samples.

    Raises:
        ValidationError: If array has fewer than min_samples rows
    """
    n = array.shape[0]
    if n < min_samples:
        raise ValidationError(
            f"{name}: requires at least {min_samples} samples, got {n}"
        )


def check_binary(array: NDArray[np.floating[Any]], name: str) -> None:
    """
    Verify array contains only 0 and 1.

    Raises:
        ValidationError: If any value is not 0 or 1
    """
    unique = np.unique(array)
    if not np.all(np.isin(unique, [0.0, 1.0])):
        raise ValidationError(
            f"{name}: must contain only 0 and 1, got unique values {unique[:10]}"
        )


def check_nonnegative(array: NDArray[np.floating[Any]], name: str) -> None:
    """
    Verify array contains no negative values.

    Raises:
        ValidationError: If any value is negative
    """
    if np.any(array < 0):
        raise ValidationError(
            f"{name}: must be non-negative, got minimum {float(np.min(array))}"
        )


def check_unit_interval(array: NDArray[np.floating[Any]], name: str) -> None:
    """
    Verify array lies within [0, 1].

    Raises:
        ValidationError: If any value is below 0 or above 1
    """
    if np.any(array < 0) or np.any(array > 1):
        raise ValidationError(
            f"{name}: must lie in [0, 1], got range "
            f"[{float(np.min(array))}, {float(np.max(array))}]"
        )


def check_positive(array: NDArray[np.floating[Any]], name: str) -> None:
    """
    Verify array contains only strictly positive values.

    Raises:
        ValidationError: If any value is zero or negative
    """
    if np.any(array <= 0):
        raise ValidationError(
            f"{name}: must be strictly positive, got minimum {float(np.min(array))}"
        )


def check_column_rank(X: NDArray[np.floating[Any]], name: str) -> None:
    """
    Verify matrix has full column rank.

    A rank-deficient design matrix leaves the likelihood flat along some
    direction, so the Hessian at the optimum cannot be inverted.

    Raises:
        ValidationError: If matrix is rank-deficient
    """
    n, p = X.shape
    rank = np.linalg.matrix_rank(X)

    if rank < p:
        raise ValidationError(
            f"{name}: rank-deficient (rank={rank}, expected={p}). "
            f"This indicates perfect multicollinearity."
        )


def check_conf_level(conf_level: float) -> None:
    """
    Verify a confidence level lies strictly between 0 and 1.

    Raises:
        ValidationError: If conf_level is outside (0, 1)
    """
    if not 0.0 < conf_level < 1.0:
        raise ValidationError(f"conf_level: must be in (0, 1), got {conf_level}")
