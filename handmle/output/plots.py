"""Plot utilities.

Visualizes fitted survival curves with confidence bands and hand-rolled vs
reference coefficient comparisons. Every function draws on the given Axes
(or a new one) and returns it; saving is left to the caller.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal

import matplotlib.pyplot as plt
import numpy as np

if TYPE_CHECKING:
    from matplotlib.axes import Axes

    from handmle.reference.compare import Comparison
    from handmle.survival.solution import WeibullSolution

__all__ = [
    'plot_comparison',
    'plot_survival',
]


def _axes(ax: Axes | None) -> Axes:
    if ax is None:
        _, ax = plt.subplots()
    return ax


def plot_survival(
    solution: WeibullSolution,
    x=None,
    times=None,
    conf_type: Literal['log-log', 'log', 'plain'] = 'log-log',
    *,
    ax: Axes | None = None,
    label: str | None = None,
    conf_level: float | None = None,
) -> Axes:
    """Predicted survival curve S(t | x) with a pointwise confidence band.

    times defaults to 200 points spanning the observed follow-up.
    """
    ax = _axes(ax)
    if times is None:
        t_max = float(np.max(solution.design.time))
        times = np.linspace(t_max / 200.0, t_max, 200)
    pred = solution.predict_survival(times, x, conf_type=conf_type, conf_level=conf_level)

    t = pred.index.to_numpy()
    (line,) = ax.plot(t, pred['survival'], label=label)
    ax.fill_between(t, pred['lower'], pred['upper'], color=line.get_color(), alpha=0.2, linewidth=0)
    ax.set_xlabel('time')
    ax.set_ylabel('survival probability')
    ax.set_ylim(0.0, 1.02)
    if label is not None:
        ax.legend()
    return ax


def plot_comparison(
    comparison: Comparison,
    *,
    ax: Axes | None = None,
    z: float = 1.96,
) -> Axes:
    """Hand-rolled vs reference estimates with ±z·SE bars, one row per parameter."""
    ax = _axes(ax)
    k = len(comparison.names)
    pos = np.arange(k)
    offset = 0.15

    ax.errorbar(
        comparison.estimate, pos - offset, xerr=z * comparison.std_error,
        fmt='o', capsize=3, label='hand-rolled',
    )
    ax.errorbar(
        comparison.reference_estimate, pos + offset, xerr=z * comparison.reference_std_error,
        fmt='s', capsize=3, label=comparison.library,
    )
    ax.axvline(0.0, color='grey', linewidth=0.8, linestyle='--')
    ax.set_yticks(pos)
    ax.set_yticklabels(list(comparison.names))
    ax.invert_yaxis()
    ax.set_xlabel('estimate')
    ax.legend(loc='best', fontsize='small')
    return ax
