"""
Tests for the Wald interval coverage study.
"""

from functools import partial

import numpy as np
import pytest
from numpy.testing import assert_allclose

from handmle.core.exceptions import ValidationError
from handmle.montecarlo import (
    CoverageSolution,
    simulate_logistic,
    simulate_poisson,
    simulate_weibull,
    wald_coverage,
)
from handmle.regression import logistic, poisson
from handmle.survival import weibull

BETA = np.array([-0.5, 1.0])


def _fit_logistic(data):
    X, y = data
    return logistic(X, y)


# ═══════════════════════════════════════════════════════════════════════
# Simulators
# ═══════════════════════════════════════════════════════════════════════


class TestSimulators:

    def test_logistic(self, rng):
        X, y = simulate_logistic(rng, n=500, beta=BETA)
        assert X.shape == (500, 1)
        assert set(np.unique(y)) <= {0.0, 1.0}

    def test_poisson(self, rng):
        X, y = simulate_poisson(rng, n=300, beta=[0.2, 0.5, -0.5])
        assert X.shape == (300, 2)
        assert np.all(y >= 0)
        assert_allclose(y, np.round(y))

    def test_weibull_censoring(self, rng):
        time, event, X = simulate_weibull(rng, n=400, beta=[0.0, 0.5], shape=1.5, censor_time=1.0)
        assert X.shape == (400, 1)
        assert np.all(time <= 1.0)
        assert np.all(time[event == 0] == 1.0)
        assert 0 < event.mean() < 1

    def test_seeded(self):
        a = simulate_logistic(np.random.default_rng(7), n=50, beta=BETA)
        b = simulate_logistic(np.random.default_rng(7), n=50, beta=BETA)
        assert_allclose(a[1], b[1])


# ═══════════════════════════════════════════════════════════════════════
# Coverage
# ═══════════════════════════════════════════════════════════════════════


class TestWaldCoverage:

    def test_logistic_near_nominal(self):
        sol = wald_coverage(
            partial(simulate_logistic, n=300, beta=BETA),
            _fit_logistic,
            BETA,
            n_sim=60,
            seed=1,
        )
        assert isinstance(sol, CoverageSolution)
        assert sol.n_used + sol.n_failed == 60
        assert np.all(sol.coverage >= 0.8)
        assert np.all(sol.coverage <= 1.0)
        assert np.all(np.abs(sol.bias) < 0.15)
        # Model-based SEs track the spread of the estimates
        assert_allclose(sol.mean_se, sol.empirical_sd, rtol=0.35)

    def test_poisson(self):
        beta = np.array([0.5, 0.3, -0.2])
        sol = wald_coverage(
            partial(simulate_poisson, n=200, beta=beta),
            lambda data: poisson(*data),
            beta,
            n_sim=30,
            conf_level=0.9,
            seed=3,
        )
        assert sol.conf_level == 0.9
        assert sol.names == ("Intercept", "x1", "x2")
        assert np.all(sol.coverage >= 0.7)

    def test_weibull(self):
        beta = np.array([0.0, 0.5])
        truth = np.append(beta, np.log(1.5))
        sol = wald_coverage(
            partial(simulate_weibull, n=200, beta=beta, shape=1.5, censor_time=2.0),
            lambda data: weibull(*data),
            truth,
            n_sim=20,
            seed=5,
        )
        assert sol.names[-1] == "log_shape"
        assert np.all(sol.coverage >= 0.7)

    def test_reproducible(self):
        simulate = partial(simulate_logistic, n=100, beta=BETA)
        a = wald_coverage(simulate, _fit_logistic, BETA, n_sim=5, seed=11)
        b = wald_coverage(simulate, _fit_logistic, BETA, n_sim=5, seed=11)
        assert_allclose(a.estimates, b.estimates)

    def test_failures_are_skipped(self):
        calls = {"n": 0}

        def flaky(data):
            calls["n"] += 1
            if calls["n"] % 2 == 0:
                raise ValidationError("bad replicate")
            return _fit_logistic(data)

        sol = wald_coverage(partial(simulate_logistic, n=200, beta=BETA), flaky, BETA,
                            n_sim=6, seed=2)
        assert sol.n_failed == 3
        assert sol.n_used == 3
        assert any("skipped" in w for w in sol.warnings)

    def test_verbose_counts_skipped_replicates(self, capsys):
        calls = {"n": 0}

        def flaky(data):
            calls["n"] += 1
            if calls["n"] % 2 == 0:
                raise ValidationError("bad replicate")
            return _fit_logistic(data)

        wald_coverage(partial(simulate_logistic, n=200, beta=BETA), flaky, BETA,
                      n_sim=4, seed=2, verbose=True)
        out = capsys.readouterr().out
        for i in range(1, 5):
            assert f"replicate {i}/4" in out

    def test_all_failed(self):
        def always_fails(data):
            raise ValidationError("bad replicate")

        with pytest.raises(ValidationError, match="no replicate"):
            wald_coverage(partial(simulate_logistic, n=50, beta=BETA), always_fails, BETA,
                          n_sim=3, seed=0)

    def test_truth_length(self):
        with pytest.raises(ValidationError, match="truth"):
            wald_coverage(partial(simulate_logistic, n=100, beta=BETA), _fit_logistic,
                          [0.0, 0.0, 0.0], n_sim=1, seed=0)

    def test_n_sim(self):
        with pytest.raises(ValidationError, match="n_sim"):
            wald_coverage(partial(simulate_logistic, n=100, beta=BETA), _fit_logistic,
                          BETA, n_sim=0)


class TestCoverageSolution:

    def test_tables(self):
        sol = wald_coverage(partial(simulate_logistic, n=150, beta=BETA), _fit_logistic,
                            BETA, n_sim=8, seed=4)
        frame = sol.to_frame()
        assert list(frame.index) == ["Intercept", "x1"]
        assert {"truth", "coverage", "mc_se", "bias"} <= set(frame.columns)
        assert sol.estimates.shape == (sol.n_used, 2)
        assert_allclose(sol.mc_se, np.sqrt(sol.coverage * (1 - sol.coverage) / sol.n_used))
        assert "Wald interval coverage" in sol.summary()
        assert "CoverageSolution" in repr(sol)
