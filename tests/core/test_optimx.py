"""
Tests for the multi-algorithm optimizer driver.

Validates:
    - One run per algorithm, reported in the requested order
    - Status codes: 0 converged, non-zero otherwise, FAILURE_STATUS when
      the algorithm raised
    - No retries: a failed run stays failed
    - best() selection and ConvergenceError when nothing converged
    - Run table layout
"""

import numpy as np
import pytest
from numpy.testing import assert_allclose

from handmle.core.compute.optimization import (
    DEFAULT_METHODS,
    FAILURE_STATUS,
    OptimRun,
    OptimxResult,
    ScipyMinimizer,
    optimx,
)
from handmle.core.exceptions import ConvergenceError
from handmle.core.protocols import Optimizer


def rosenbrock(x):
    return (1.0 - x[0]) ** 2 + 100.0 * (x[1] - x[0] ** 2) ** 2


def rosenbrock_grad(x):
    return np.array([
        -2.0 * (1.0 - x[0]) - 400.0 * x[0] * (x[1] - x[0] ** 2),
        200.0 * (x[1] - x[0] ** 2),
    ])


X0 = np.array([-1.2, 1.0])


# ═══════════════════════════════════════════════════════════════════════
# Basic driver behaviour
# ═══════════════════════════════════════════════════════════════════════


class TestOptimx:

    def test_default_methods(self):
        runs = optimx(rosenbrock, X0, rosenbrock_grad)
        assert runs.methods == DEFAULT_METHODS
        assert len(runs) == 4

    def test_bfgs_converges(self):
        runs = optimx(rosenbrock, X0, rosenbrock_grad, methods=("BFGS",))
        run = runs["BFGS"]
        assert run.status == 0
        assert run.converged
        assert_allclose(run.x, [1.0, 1.0], atol=1e-4)
        assert run.n_fev > 0

    def test_single_method_string(self):
        runs = optimx(rosenbrock, X0, rosenbrock_grad, methods="L-BFGS-B")
        assert runs.methods == ("L-BFGS-B",)

    def test_best_is_lowest_converged(self):
        runs = optimx(rosenbrock, X0, rosenbrock_grad)
        best = runs.best()
        assert best.converged
        assert best.fun == min(run.fun for run in runs.converged())

    def test_x0_must_be_1d(self):
        with pytest.raises(ValueError, match="1D"):
            optimx(rosenbrock, np.zeros((2, 1)))

    def test_verbose(self, capsys):
        optimx(rosenbrock, X0, rosenbrock_grad, methods=("BFGS",), verbose=True)
        assert "convcode=0" in capsys.readouterr().out


# ═══════════════════════════════════════════════════════════════════════
# Failure reporting
# ═══════════════════════════════════════════════════════════════════════


class TestFailureStatus:

    def test_newton_cg_without_gradient_recorded(self):
        """Newton-CG needs a gradient; the raise becomes status 9999."""
        runs = optimx(rosenbrock, X0, methods=("Newton-CG", "Nelder-Mead"))
        failed = runs["Newton-CG"]
        assert failed.status == FAILURE_STATUS
        assert not failed.converged
        assert np.all(np.isnan(failed.x))
        assert np.isnan(failed.fun)
        assert "Jacobian" in failed.message or "ValueError" in failed.message
        # The other algorithm still ran
        assert runs["Nelder-Mead"].n_fev > 0

    def test_iteration_limit_gives_nonzero_status(self):
        runs = optimx(rosenbrock, X0, rosenbrock_grad, methods=("BFGS", "CG"), max_iter=1)
        for run in runs:
            assert run.status != 0
            assert not run.converged

    def test_no_retry(self):
        calls = []

        def counted(x):
            calls.append(1)
            return rosenbrock(x)

        runs = optimx(counted, X0, rosenbrock_grad, methods=("BFGS",), max_iter=1)
        assert len(runs) == 1
        assert len(calls) == runs[0].n_fev

    def test_best_raises_when_nothing_converged(self):
        runs = optimx(rosenbrock, X0, rosenbrock_grad, methods=("BFGS", "CG"), max_iter=1)
        with pytest.raises(ConvergenceError, match="No optimizer run converged"):
            runs.best()

    def test_best_unconverged_fallback(self):
        runs = optimx(rosenbrock, X0, rosenbrock_grad, methods=("BFGS", "CG"), max_iter=1)
        best = runs.best(converged_only=False)
        assert best.fun == min(run.fun for run in runs)

    def test_best_all_raised(self):
        runs = optimx(rosenbrock, X0, methods=("Newton-CG",))
        with pytest.raises(ConvergenceError):
            runs.best(converged_only=False)


# ═══════════════════════════════════════════════════════════════════════
# Hessians, pluggable optimizers, run table
# ═══════════════════════════════════════════════════════════════════════


class TestExtras:

    def test_hessian_attached(self):
        runs = optimx(rosenbrock, X0, rosenbrock_grad, methods=("BFGS",), hessian=True)
        H = runs["BFGS"].hessian
        assert_allclose(H, [[802.0, -400.0], [-400.0, 200.0]], rtol=1e-3)

    def test_analytic_hessian_passed_to_newton_cg(self):
        def hess(x):
            return np.array([
                [2.0 - 400.0 * x[1] + 1200.0 * x[0] ** 2, -400.0 * x[0]],
                [-400.0 * x[0], 200.0],
            ])

        runs = optimx(rosenbrock, X0, rosenbrock_grad, methods=("Newton-CG",), hess=hess)
        assert runs["Newton-CG"].converged
        assert_allclose(runs["Newton-CG"].x, [1.0, 1.0], atol=1e-3)

    def test_custom_optimizer(self):
        class FixedPoint:
            name = "fixed"

            def minimize(self, fun, x0, jac=None):
                x = np.ones_like(x0)
                return OptimRun(
                    method=self.name, x=x, fun=fun(x), status=0, converged=True,
                    n_iter=0, n_fev=1, message="fixed",
                )

        assert isinstance(FixedPoint(), Optimizer)
        runs = optimx(rosenbrock, X0, methods=[FixedPoint(), "BFGS"])
        assert runs.methods == ("fixed", "BFGS")
        assert runs["fixed"].fun == 0.0

    def test_scipy_minimizer_is_optimizer(self):
        assert isinstance(ScipyMinimizer("BFGS"), Optimizer)
        assert ScipyMinimizer("CG").name == "CG"

    def test_to_frame(self):
        runs = optimx(rosenbrock, X0, rosenbrock_grad,
                      methods=("BFGS", "Nelder-Mead"), parameter_names=("a", "b"))
        frame = runs.to_frame()
        assert list(frame.index) == ["BFGS", "Nelder-Mead"]
        assert frame.index.name == "method"
        for col in ("a", "b", "value", "fevals", "niter", "convcode", "message"):
            assert col in frame.columns
        assert frame.loc["BFGS", "convcode"] == 0

    def test_unknown_method_key(self):
        runs = optimx(rosenbrock, X0, rosenbrock_grad, methods=("BFGS",))
        with pytest.raises(KeyError, match="CG"):
            runs["CG"]

    def test_empty_result(self):
        empty = OptimxResult(runs=())
        assert len(empty) == 0
        assert empty.to_frame().empty
