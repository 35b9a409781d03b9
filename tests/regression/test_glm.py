"""
GLM fitting tests.

Hand-rolled logistic, Poisson and log-binomial fits are checked against
finite differences (gradient) and statsmodels (coefficients and standard
errors, mean |diff| < 1e-2 and max |SE diff| < 1e-3).
"""

import numpy as np
import pandas as pd
import pytest
from numpy.testing import assert_allclose

from handmle.core import PENALTY, ValidationError
from handmle.core.compute.tolerances import REFERENCE_COEF, REFERENCE_SE
from handmle.reference import compare, reference_glm
from handmle.regression import (
    Design,
    GLMObjective,
    GLMSolution,
    glm,
    log_binomial,
    logistic,
    poisson,
)


@pytest.fixture
def log_binomial_data(rng):
    """Risks exp(-2 + 0.3 x) stay below 0.25 for x in [0, 2]."""
    n = 1000
    x = rng.uniform(0.0, 2.0, n)
    y = rng.binomial(1, np.exp(-2.0 + 0.3 * x)).astype(np.float64)
    return x, y


# =====================================================================
# Objective: gradient, Hessian, penalty
# =====================================================================

class TestGLMObjective:

    @pytest.mark.parametrize("family,link", [
        ("binomial", "logit"), ("poisson", "log"), ("binomial", "log"),
    ])
    def test_gradient_check(self, rng, family, link):
        X = rng.standard_normal((100, 2))
        y = rng.binomial(1, 0.2, 100).astype(float) if family == "binomial" \
            else rng.poisson(2.0, 100).astype(float)
        obj = GLMObjective(Design.from_arrays(X, y), family, link)
        theta = obj.initial_parameters() + np.array([0.0, 0.05, -0.05])
        check = obj.check_gradient(theta)
        assert check.passed, check

    def test_gradient_check_at_zero(self, spector):
        design = Design.from_arrays(spector[["GPA", "TUCE", "PSI"]], spector["GRADE"])
        assert GLMObjective(design).check_gradient(np.zeros(4)).passed

    def test_canonical_hessian_matches_numeric(self, logistic_data):
        X, y, _ = logistic_data
        obj = GLMObjective(Design.from_arrays(X, y), "binomial")
        theta = np.array([0.1, 0.5, -0.5])
        numeric = super(GLMObjective, obj).hessian(theta)
        assert_allclose(obj.hessian(theta), numeric, rtol=1e-5, atol=1e-6)

    def test_log_binomial_penalty(self, log_binomial_data):
        x, y = log_binomial_data
        obj = GLMObjective(Design.from_arrays(x, y), "binomial", "log")
        # exp(0.5 + 0.5 x) > 1 for every row
        assert obj.objective(np.array([0.5, 0.5])) == PENALTY
        assert obj.objective(obj.initial_parameters()) < PENALTY

    def test_initial_parameters_with_offset(self, poisson_data):
        X, y, log_exposure, _ = poisson_data
        obj = GLMObjective(Design.from_arrays(X, y, offset=log_exposure), "poisson")
        expected = np.log(y.sum() / np.exp(log_exposure).sum())
        assert obj.initial_parameters()[0] == pytest.approx(expected)

    def test_binomial_response_outside_unit_interval(self):
        X = np.arange(10.0)
        y = np.array([0, 1, 2, 0, 1, 1, 0, 1, 0, 1], dtype=float)
        with pytest.raises(ValidationError, match=r"must lie in \[0, 1\]"):
            logistic(X, y)

    def test_binomial_proportions_accepted(self):
        design = Design.from_arrays(np.arange(4.0), [0.0, 0.25, 0.5, 1.0])
        GLMObjective(design, "binomial")

    def test_poisson_negative_count(self, poisson_data):
        X, y, *_ = poisson_data
        y = y.copy()
        y[0] = -1.0
        with pytest.raises(ValidationError, match="non-negative"):
            poisson(X, y)


# =====================================================================
# Logistic regression
# =====================================================================

class TestLogistic:

    def test_spector_matches_statsmodels(self, spector):
        X, y = spector[["GPA", "TUCE", "PSI"]], spector["GRADE"]
        sol = logistic(X, y)
        ref = reference_glm(X, y, family="binomial")

        assert isinstance(sol, GLMSolution)
        assert sol.converged
        cmp = compare(sol, ref)
        assert cmp.mean_abs_coef_diff < REFERENCE_COEF.atol
        assert cmp.max_abs_se_diff < REFERENCE_SE.atol
        assert cmp.agrees()
        assert sol.loglik == pytest.approx(ref.loglik, abs=1e-6)

    def test_simulated_recovers_truth(self, logistic_data):
        X, y, beta = logistic_data
        sol = logistic(X, y)
        assert np.all(np.abs(sol.coefficients - beta) < 4 * sol.standard_errors)

    @pytest.mark.parametrize("method", ["L-BFGS-B", "CG", "Newton-CG", "trust-ncg"])
    def test_methods_agree(self, spector, method):
        X, y = spector[["GPA", "TUCE", "PSI"]], spector["GRADE"]
        bfgs = logistic(X, y)
        other = logistic(X, y, methods=(method,), tol=1e-10, max_iter=20000)
        assert other.method == method
        assert np.mean(np.abs(other.coefficients - bfgs.coefficients)) < 1e-2

    def test_run_table(self, spector):
        sol = logistic(spector[["GPA", "TUCE", "PSI"]], spector["GRADE"],
                       methods=("BFGS", "Nelder-Mead", "CG"))
        frame = sol.runs.to_frame()
        assert list(frame.index) == ["BFGS", "Nelder-Mead", "CG"]
        assert "GPA" in frame.columns

    def test_odds_ratios(self, spector):
        sol = logistic(spector[["GPA", "TUCE", "PSI"]], spector["GRADE"])
        ratios = sol.ratios()
        assert_allclose(ratios["ratio"], np.exp(sol.coefficients))
        assert np.all(ratios["lower"] < ratios["ratio"])
        assert np.all(ratios["ratio"] < ratios["upper"])

    def test_predict_response_in_unit_interval(self, spector):
        sol = logistic(spector[["GPA", "TUCE", "PSI"]], spector["GRADE"])
        pred = sol.predict()
        assert len(pred) == 32
        assert_allclose(pred["estimate"], sol.fitted_values)
        assert np.all((pred["lower"] > 0) & (pred["upper"] < 1))
        assert np.all(pred["lower"] <= pred["estimate"])

    def test_predict_new_rows_link(self, spector):
        sol = logistic(spector[["GPA", "TUCE", "PSI"]], spector["GRADE"])
        new = pd.DataFrame({"GPA": [3.0], "TUCE": [20.0], "PSI": [1.0]})
        pred = sol.predict(new, type="link")
        eta = sol.coefficients @ np.array([1.0, 3.0, 20.0, 1.0])
        assert pred["estimate"].iloc[0] == pytest.approx(eta)

    def test_predict_bad_type(self, spector):
        sol = logistic(spector[["GPA", "TUCE", "PSI"]], spector["GRADE"])
        with pytest.raises(ValueError, match="type"):
            sol.predict(type="odds")

    def test_summary(self, spector):
        s = logistic(spector[["GPA", "TUCE", "PSI"]], spector["GRADE"]).summary()
        assert "binomial (link = logit)" in s
        assert "Residual deviance" in s
        assert "PSI" in s


# =====================================================================
# Poisson regression
# =====================================================================

class TestPoisson:

    def test_matches_statsmodels_with_offset(self, poisson_data):
        X, y, log_exposure, _ = poisson_data
        sol = poisson(X, y, offset=log_exposure)
        ref = reference_glm(X, y, family="poisson", offset=log_exposure)
        assert sol.converged
        assert compare(sol, ref).agrees()

    def test_weights_match_statsmodels(self, poisson_data, rng):
        X, y, _, _ = poisson_data
        w = rng.integers(1, 4, len(y)).astype(float)
        sol = poisson(X, y, weights=w)
        ref = reference_glm(X, y, family="poisson", weights=w)
        assert compare(sol, ref).agrees()

    def test_design_input(self, poisson_data):
        X, y, log_exposure, _ = poisson_data
        design = Design.from_arrays(X, y, offset=log_exposure, names=["a", "b"])
        sol = glm(design, family="poisson")
        assert sol.names == ("Intercept", "a", "b")
        assert sol.design is design

    def test_rate_ratios(self, poisson_data):
        X, y, log_exposure, _ = poisson_data
        sol = poisson(X, y, offset=log_exposure)
        assert_allclose(sol.ratios()["ratio"], np.exp(sol.coefficients))

    def test_deviance_matches_statsmodels(self, poisson_data):
        import statsmodels.api as sm

        X, y, log_exposure, _ = poisson_data
        sol = poisson(X, y, offset=log_exposure)
        sm_fit = sm.GLM(y, sm.add_constant(X), family=sm.families.Poisson(),
                        offset=log_exposure).fit()
        assert sol.deviance == pytest.approx(sm_fit.deviance, rel=1e-6)

    def test_y_required(self, poisson_data):
        X, *_ = poisson_data
        with pytest.raises(ValueError, match="y is required"):
            glm(X)


# =====================================================================
# Log-binomial regression
# =====================================================================

class TestLogBinomial:

    def test_matches_statsmodels(self, log_binomial_data):
        x, y = log_binomial_data
        sol = log_binomial(x, y, names=["x"])
        ref = reference_glm(x, y, family="binomial", link="log", names=["x"])
        assert sol.converged
        assert not sol.family.is_canonical
        assert compare(sol, ref).agrees()

    def test_fitted_risks_below_one(self, log_binomial_data):
        x, y = log_binomial_data
        sol = log_binomial(x, y)
        assert np.all(sol.fitted_values < 1.0)

    def test_risk_ratio(self, log_binomial_data):
        x, y = log_binomial_data
        rr = log_binomial(x, y, names=["x"]).ratios()
        assert rr.loc["x", "lower"] < np.exp(0.3) < rr.loc["x", "upper"]
