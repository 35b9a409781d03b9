"""Fitting backends for maximum likelihood."""

from handmle.mle.backends.optimx import OptimxBackend

__all__ = ["OptimxBackend"]
