"""
Tests for coxph() against lifelines CoxPHFitter (Efron ties).

Stratified fits share coefficients across strata with a separate baseline
hazard per stratum; lifelines' strata= argument is the reference.
"""

import numpy as np
import pytest
from numpy.testing import assert_allclose

from handmle.core.exceptions import ValidationError
from handmle.reference import compare, reference_coxph
from handmle.survival import CoxObjective, CoxSolution, SurvivalDesign, coxph

ROSSI_COVARIATES = ["fin", "age", "race", "wexp", "mar", "paro", "prio"]

# Two-covariate example, no tied times
TWO_COV_TIME = np.array([3, 5, 7, 11, 13, 15, 2, 4, 6, 8,
                          10, 12, 14, 16, 18, 20, 1, 9, 17, 19],
                         dtype=np.float64)
TWO_COV_EVENT = np.array([1, 1, 0, 1, 1, 0, 1, 0, 1, 1,
                           0, 1, 1, 0, 1, 1, 1, 1, 0, 1],
                          dtype=np.float64)
TWO_COV_X = np.column_stack([
    [0.5, 1.2, -0.3, 0.8, -0.5, 1.0, -1.2, 0.3, 0.7, -0.8,
     1.5, -0.2, 0.4, -1.0, 0.9, -0.6, 1.1, -0.4, 0.2, -0.1],
    [1, 0, 1, 0, 1, 1, 0, 1, 0, 1,
     0, 1, 0, 1, 1, 0, 0, 1, 0, 1],
]).astype(np.float64)

# Tied event times
TIED_TIME = np.array([1, 1, 2, 2, 3, 3, 4, 4, 5, 5, 6, 6], dtype=np.float64)
TIED_EVENT = np.array([1, 1, 1, 1, 0, 1, 1, 1, 1, 0, 1, 1], dtype=np.float64)
TIED_X = np.array([[0.2], [1.0], [-0.5], [1.5], [0.0], [0.8],
                   [-1.0], [0.3], [1.2], [-0.2], [0.6], [-0.7]])


@pytest.fixture(scope="module")
def rossi_fit(rossi):
    return coxph(rossi["week"], rossi["arrest"], rossi[ROSSI_COVARIATES])


# ═══════════════════════════════════════════════════════════════════════
# Partial likelihood derivatives
# ═══════════════════════════════════════════════════════════════════════


class TestCoxObjective:

    @pytest.mark.parametrize("ties", ["efron", "breslow"])
    def test_gradient_check(self, ties):
        obj = CoxObjective(SurvivalDesign.for_survival(TIED_TIME, TIED_EVENT, TIED_X), ties)
        for beta in (np.zeros(1), np.array([0.7])):
            check = obj.check_gradient(beta)
            assert check.passed, check

    @pytest.mark.parametrize("ties", ["efron", "breslow"])
    def test_information_matches_numeric(self, rossi, ties):
        design = SurvivalDesign.from_dataframe(
            rossi, duration="week", event="arrest", x=["fin", "age", "prio"], strata="race",
        )
        obj = CoxObjective(design, ties)
        beta = np.array([-0.3, -0.05, 0.1])
        numeric = super(CoxObjective, obj).hessian(beta)
        assert_allclose(obj.hessian(beta), numeric, rtol=1e-5, atol=1e-6)

    def test_breslow_loglik_by_hand(self):
        """Two events tied at t=1 among three subjects."""
        design = SurvivalDesign.for_survival([1, 1, 2], [1, 1, 1], [[1.0], [0.0], [2.0]])
        beta = np.array([0.5])
        r = np.exp(beta[0] * np.array([1.0, 0.0, 2.0]))
        breslow = 0.5 - 2 * np.log(r.sum()) + (1.0 - np.log(r[2]))
        efron = 0.5 - np.log(r.sum()) - np.log(r.sum() - 0.5 * (r[0] + r[1])) + (1.0 - np.log(r[2]))
        assert CoxObjective(design, "breslow").partial_loglik(beta) == pytest.approx(breslow)
        assert CoxObjective(design, "efron").partial_loglik(beta) == pytest.approx(efron)

    def test_large_linear_predictor_stable(self):
        X = TWO_COV_X * 400.0
        obj = CoxObjective(SurvivalDesign.for_survival(TWO_COV_TIME, TWO_COV_EVENT, X))
        assert np.isfinite(obj.objective(np.array([1.0, 1.0])))

    def test_validation(self):
        with pytest.raises(ValidationError, match="ties"):
            CoxObjective(SurvivalDesign.for_survival(TIED_TIME, TIED_EVENT, TIED_X), "exact")
        with pytest.raises(ValidationError, match="covariate"):
            CoxObjective(SurvivalDesign.for_survival([1, 2, 3], [1, 1, 1]))
        with pytest.raises(ValidationError, match="at least one event"):
            CoxObjective(SurvivalDesign.for_survival([1, 2, 3], [0, 0, 0], [[1], [2], [3]]))


# ═══════════════════════════════════════════════════════════════════════
# Agreement with lifelines
# ═══════════════════════════════════════════════════════════════════════


class TestCoxReference:

    def test_rossi_matches_lifelines(self, rossi, rossi_fit):
        ref = reference_coxph(rossi["week"], rossi["arrest"], rossi[ROSSI_COVARIATES])
        assert isinstance(rossi_fit, CoxSolution)
        assert rossi_fit.converged
        cmp = compare(rossi_fit, ref)
        assert cmp.mean_abs_coef_diff < 1e-2
        assert cmp.max_abs_se_diff < 1e-3
        assert rossi_fit.loglik == pytest.approx(ref.loglik, abs=1e-4)

    def test_stratified_matches_lifelines(self, rossi):
        covs = ["fin", "age", "prio", "mar", "paro"]
        sol = coxph(rossi["week"], rossi["arrest"], rossi[covs], strata=rossi["race"])
        ref = reference_coxph(rossi["week"], rossi["arrest"], rossi[covs], strata=rossi["race"])
        assert sol.n_strata == 2
        assert compare(sol, ref).agrees()

    def test_two_covariates_match_lifelines(self):
        sol = coxph(TWO_COV_TIME, TWO_COV_EVENT, TWO_COV_X)
        ref = reference_coxph(TWO_COV_TIME, TWO_COV_EVENT, TWO_COV_X)
        assert compare(sol, ref).agrees()

    def test_breslow_reference_rejected(self):
        with pytest.raises(ValidationError, match="Efron"):
            reference_coxph(TIED_TIME, TIED_EVENT, TIED_X, ties="breslow")


# ═══════════════════════════════════════════════════════════════════════
# Ties and strata
# ═══════════════════════════════════════════════════════════════════════


class TestTiesAndStrata:

    def test_no_ties_efron_equals_breslow(self):
        efron = coxph(TWO_COV_TIME, TWO_COV_EVENT, TWO_COV_X, ties="efron")
        breslow = coxph(TWO_COV_TIME, TWO_COV_EVENT, TWO_COV_X, ties="breslow")
        assert_allclose(efron.coefficients, breslow.coefficients, rtol=1e-6)

    def test_ties_differ(self):
        efron = coxph(TIED_TIME, TIED_EVENT, TIED_X, ties="efron")
        breslow = coxph(TIED_TIME, TIED_EVENT, TIED_X, ties="breslow")
        assert efron.ties == "efron"
        assert breslow.ties == "breslow"
        assert abs(efron.coefficients[0] - breslow.coefficients[0]) > 1e-4

    def test_single_stratum_equals_unstratified(self):
        plain = coxph(TWO_COV_TIME, TWO_COV_EVENT, TWO_COV_X)
        one = coxph(TWO_COV_TIME, TWO_COV_EVENT, TWO_COV_X, strata=np.zeros(20))
        assert_allclose(plain.coefficients, one.coefficients, rtol=1e-8)
        assert one.n_strata == 1

    def test_strata_change_estimates(self, rossi, rossi_fit):
        sol = coxph(rossi["week"], rossi["arrest"], rossi[ROSSI_COVARIATES], strata=rossi["wexp"])
        assert sol.n_strata == 2
        assert not np.allclose(sol.coefficients[:2], rossi_fit.coefficients[:2], atol=1e-4)

    def test_strata_with_design_rejected(self, rossi):
        design = SurvivalDesign.from_dataframe(rossi, duration="week", event="arrest", x="fin")
        with pytest.raises(ValidationError, match="strata"):
            coxph(design, strata=rossi["race"])


# ═══════════════════════════════════════════════════════════════════════
# Solution
# ═══════════════════════════════════════════════════════════════════════


class TestCoxSolution:

    def test_hazard_ratios(self, rossi_fit):
        assert_allclose(rossi_fit.hazard_ratios, np.exp(rossi_fit.coefficients))
        ci = rossi_fit.hazard_ratio_conf_int()
        assert np.all(ci[:, 0] < rossi_fit.hazard_ratios)
        assert np.all(rossi_fit.hazard_ratios < ci[:, 1])

    def test_z_statistics_consistent(self, rossi_fit):
        assert_allclose(rossi_fit.z_statistics,
                        rossi_fit.coefficients / rossi_fit.standard_errors)

    def test_likelihood_ratio(self, rossi_fit):
        assert rossi_fit.loglik >= rossi_fit.loglik_null
        assert rossi_fit.lr_statistic > 0
        assert 0.0 <= rossi_fit.lr_p_value < 0.05

    def test_concordance(self, rossi_fit):
        assert 0.5 < rossi_fit.concordance < 1.0

    def test_concordance_matches_lifelines(self, rossi, rossi_fit):
        from lifelines.utils import concordance_index

        eta = rossi[ROSSI_COVARIATES].to_numpy(dtype=float) @ rossi_fit.coefficients
        expected = concordance_index(rossi["week"], -eta, rossi["arrest"])
        assert rossi_fit.concordance == pytest.approx(expected, abs=1e-4)

    def test_bic_uses_events(self, rossi_fit):
        assert rossi_fit.bic == pytest.approx(-2 * rossi_fit.loglik + 7 * np.log(114))

    def test_to_frame(self, rossi_fit):
        frame = rossi_fit.to_frame()
        assert list(frame.index) == ROSSI_COVARIATES
        for col in ("estimate", "hazard_ratio", "std_error", "hr_lower", "hr_upper"):
            assert col in frame.columns

    def test_summary(self, rossi_fit):
        s = rossi_fit.summary()
        assert "Cox Proportional Hazards Model (ties = efron)" in s
        assert "exp(coef)" in s
        assert "Concordance" in s
        assert "Likelihood ratio test" in s
        assert "number of events= 114" in s

    def test_backend_and_timing(self, rossi_fit):
        assert rossi_fit.backend_name == "optimx"
        assert rossi_fit.timing is not None
