"""matplotlib figures for fitted models and reference comparisons."""

from handmle.output.plots import plot_comparison, plot_survival

__all__ = ["plot_comparison", "plot_survival"]
