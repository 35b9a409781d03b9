"""
Tests for Wald inference, the delta method and sandwich covariances.
"""

import numpy as np
import pytest
from numpy.testing import assert_allclose
from scipy.special import expit, logit

from handmle.core.exceptions import (
    DimensionError,
    NotPositiveDefiniteError,
    SingularMatrixError,
    ValidationError,
)
from handmle.inference import (
    covariance_from_hessian,
    delta_method,
    log_scale_interval,
    p_values,
    sandwich_covariance,
    standard_errors,
    transformed_interval,
    wald_interval,
    z_critical,
    z_statistics,
)


# ═══════════════════════════════════════════════════════════════════════
# Inverse Hessian
# ═══════════════════════════════════════════════════════════════════════


class TestCovarianceFromHessian:

    def test_inverse(self):
        H = np.array([[4.0, 1.0], [1.0, 3.0]])
        cov = covariance_from_hessian(H)
        assert_allclose(cov @ H, np.eye(2), atol=1e-12)
        assert_allclose(cov, cov.T)

    def test_singular(self):
        H = np.array([[1.0, 1.0], [1.0, 1.0]])
        with pytest.raises(SingularMatrixError) as exc_info:
            covariance_from_hessian(H)
        assert exc_info.value.expected_rank == 2
        assert exc_info.value.matrix_name == "hessian"

    def test_non_finite(self):
        with pytest.raises(SingularMatrixError, match="non-finite"):
            covariance_from_hessian(np.array([[np.nan, 0.0], [0.0, 1.0]]))

    def test_saddle_point(self):
        with pytest.raises(NotPositiveDefiniteError) as exc_info:
            covariance_from_hessian(np.diag([2.0, -1.0]))
        assert exc_info.value.min_eigenvalue == pytest.approx(-1.0)

    def test_not_square(self):
        with pytest.raises(DimensionError):
            covariance_from_hessian(np.ones((2, 3)))

    def test_standard_errors(self):
        assert_allclose(standard_errors(np.diag([4.0, 9.0])), [2.0, 3.0])


# ═══════════════════════════════════════════════════════════════════════
# Wald intervals and tests
# ═══════════════════════════════════════════════════════════════════════


class TestWald:

    def test_z_critical(self):
        assert z_critical(0.95) == pytest.approx(1.959964, abs=1e-6)
        assert z_critical(0.90) == pytest.approx(1.644854, abs=1e-6)

    def test_z_critical_rejects_bad_level(self):
        with pytest.raises(ValidationError):
            z_critical(1.5)

    def test_interval(self):
        ci = wald_interval([1.0, 2.0], [0.5, 0.1])
        assert ci.shape == (2, 2)
        z = z_critical(0.95)
        assert_allclose(ci[0], [1.0 - z * 0.5, 1.0 + z * 0.5])

    def test_z_and_p(self):
        z = z_statistics([1.96, 0.0], [1.0, 1.0])
        assert_allclose(z, [1.96, 0.0])
        p = p_values(z)
        assert p[0] == pytest.approx(0.05, abs=1e-3)
        assert p[1] == pytest.approx(1.0)

    def test_transformed_interval_logit(self):
        """Interval for a probability built on the logit scale stays in (0, 1)."""
        ci = transformed_interval(logit(0.98), 1.0, expit)
        assert 0.0 < ci[0] < 0.98 < ci[1] < 1.0

    def test_transformed_interval_decreasing(self):
        """A decreasing inverse still gives lower <= upper."""
        ci = transformed_interval(0.0, 0.5, lambda u: np.exp(-np.exp(u)))
        assert ci[0] < ci[1]

    def test_log_scale_interval_positive(self):
        ci = log_scale_interval(0.1, 0.08)
        assert ci[0] > 0.0
        assert ci[0] < 0.1 < ci[1]
        # Symmetric on the log scale
        assert np.log(ci[1]) - np.log(0.1) == pytest.approx(np.log(0.1) - np.log(ci[0]))


# ═══════════════════════════════════════════════════════════════════════
# Delta method
# ═══════════════════════════════════════════════════════════════════════


class TestDeltaMethod:

    def test_linear_is_exact(self):
        A = np.array([[1.0, 2.0], [0.0, 3.0]])
        cov = np.array([[0.5, 0.1], [0.1, 0.2]])
        dm = delta_method(lambda t: A @ t, np.array([1.0, -1.0]), cov)
        assert_allclose(dm.covariance, A @ cov @ A.T, rtol=1e-7)
        assert_allclose(dm.jacobian, A, rtol=1e-7)

    def test_exp_transform(self):
        """SE(exp(θ)) = exp(θ) SE(θ)."""
        dm = delta_method(np.exp, np.array([0.5]), np.array([[0.04]]))
        assert_allclose(dm.estimate, np.exp(0.5))
        assert_allclose(dm.standard_errors, np.exp(0.5) * 0.2, rtol=1e-7)

    def test_analytic_jacobian(self):
        theta = np.array([0.5, 1.0])
        cov = np.diag([0.04, 0.01])
        numeric = delta_method(lambda t: t[0] * t[1], theta, cov)
        analytic = delta_method(
            lambda t: t[0] * t[1], theta, cov, jac=lambda t: np.array([[t[1], t[0]]]),
        )
        assert_allclose(numeric.covariance, analytic.covariance, rtol=1e-7)

    def test_conf_int(self):
        dm = delta_method(lambda t: t, np.array([1.0]), np.array([[1.0]]))
        assert_allclose(dm.conf_int(), [[1.0 - z_critical(), 1.0 + z_critical()]])

    def test_shape_mismatch(self):
        with pytest.raises(DimensionError):
            delta_method(np.exp, np.array([0.5, 1.0]), np.eye(3))
        with pytest.raises(DimensionError, match="jacobian"):
            delta_method(np.exp, np.array([0.5, 1.0]), np.eye(2), jac=lambda t: np.eye(3))


# ═══════════════════════════════════════════════════════════════════════
# Sandwich
# ═══════════════════════════════════════════════════════════════════════


class TestSandwich:

    def test_model_based_when_bread_equals_meat(self):
        """Under correct specification B = F and the sandwich is B⁻¹/n."""
        B = np.array([[2.0, 0.3], [0.3, 1.0]])
        V = sandwich_covariance(B, B, 100)
        assert_allclose(V, np.linalg.inv(B) / 100, rtol=1e-12)

    def test_singular_bread(self):
        with pytest.raises(SingularMatrixError):
            sandwich_covariance(np.zeros((2, 2)), np.eye(2), 10)

    def test_shape_mismatch(self):
        with pytest.raises(DimensionError):
            sandwich_covariance(np.eye(2), np.eye(3), 10)
