"""
Monte Carlo coverage of Wald intervals.

    for each replicate:
        data = simulate(rng)
        sol  = fit(data)
        skip (and count) unless sol.converged and every SE is finite
        covered = lower <= truth <= upper

A correctly specified model gives coverage within Monte Carlo error of the
nominal level.
"""

from __future__ import annotations

import warnings
from typing import Any, Callable

import numpy as np
from numpy.typing import ArrayLike

from handmle.core.compute.timing import Timer
from handmle.core.exceptions import HandMLEError, ValidationError
from handmle.core.result import Result
from handmle.core.validation import check_conf_level
from handmle.montecarlo.solution import CoverageParams, CoverageSolution


def wald_coverage(
    simulate: Callable[[np.random.Generator], Any],
    fit: Callable[[Any], Any],
    truth: ArrayLike,
    *,
    n_sim: int = 200,
    conf_level: float = 0.95,
    seed: int | None = None,
    verbose: bool = False,
) -> CoverageSolution:
    """
    Estimate the coverage of Wald intervals by simulation.

    Parameters
    ----------
    simulate : callable
        simulate(rng) -> data, one replicate from the generative model.
    fit : callable
        fit(data) -> solution with names, coefficients, standard_errors,
        converged and conf_int(conf_level).
    truth : array-like
        True parameter values in the solution's parameter order.
    n_sim : int
        Number of replicates.
    conf_level : float
        Interval level.
    seed : int or None
        Seed for numpy.random.default_rng.
    verbose : bool
        Print progress every 10% of replicates.

    Returns
    -------
    CoverageSolution
    """
    check_conf_level(conf_level)
    if n_sim < 1:
        raise ValidationError(f"n_sim: must be at least 1, got {n_sim}")
    truth = np.atleast_1d(np.asarray(truth, dtype=np.float64))
    p = len(truth)

    timer = Timer()
    timer.start()
    rng = np.random.default_rng(seed)

    estimates = []
    ses = []
    covered = []
    names: tuple[str, ...] | None = None
    n_failed = 0

    for i in range(n_sim):
        if verbose and (i + 1) % max(1, n_sim // 10) == 0:
            print(f"  replicate {i + 1}/{n_sim}")
        data = simulate(rng)
        with warnings.catch_warnings():
            warnings.simplefilter('ignore', RuntimeWarning)
            try:
                sol = fit(data)
            except HandMLEError:
                n_failed += 1
                continue

        est = np.asarray(sol.coefficients, dtype=np.float64)
        se = np.asarray(sol.standard_errors, dtype=np.float64)
        if est.shape != (p,):
            raise ValidationError(f"truth: expected {len(est)} values, got {p}")
        if not sol.converged or not np.all(np.isfinite(se)):
            n_failed += 1
            continue

        ci = sol.conf_int(conf_level)
        names = tuple(sol.names)
        estimates.append(est)
        ses.append(se)
        covered.append((ci[:, 0] <= truth) & (truth <= ci[:, 1]))

    timer.stop()

    warnings_list = []
    n_used = len(estimates)
    if n_used == 0:
        raise ValidationError(f"no replicate converged out of {n_sim}")
    if n_failed:
        warnings_list.append(f"{n_failed} of {n_sim} replicates skipped (not converged)")

    est_arr = np.vstack(estimates)
    coverage = np.mean(np.vstack(covered), axis=0)

    params = CoverageParams(
        names=names,
        truth=truth,
        coverage=coverage,
        mc_se=np.sqrt(coverage * (1.0 - coverage) / n_used),
        bias=np.mean(est_arr, axis=0) - truth,
        mean_se=np.mean(np.vstack(ses), axis=0),
        empirical_sd=np.std(est_arr, axis=0, ddof=1) if n_used > 1 else np.full(p, np.nan),
        n_sim=n_sim,
        n_used=n_used,
        n_failed=n_failed,
        conf_level=conf_level,
    )
    return CoverageSolution(Result(
        params=params,
        info={'estimates': est_arr, 'seed': seed},
        timing=timer.result(),
        backend_name='monte_carlo',
        warnings=tuple(warnings_list),
    ))
