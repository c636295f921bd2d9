"""Linear solvers for the assembled systems."""

from .scipy_solver import scipy_solver

__all__ = ["scipy_solver"]
