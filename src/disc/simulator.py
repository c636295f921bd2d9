"""Simulator: time stepping with Newton's method on top of the linearizer."""

import logging
import time

import numpy as np

from linear.linear_solvers import scipy_solver

from .datastructures import DiscretizationParameters, Metrics, TimeSeries
from .element_context import ElementContext
from .linearizer import Linearizer
from .model import FvBaseModel

log = logging.getLogger(__name__)


class NewtonConvergenceError(RuntimeError):
    """Raised if Newton's method does not converge within the iteration limit."""


class Simulator:
    """Couples problem, model and linearizer and runs the time loop.

    Handles:
    - Parameter management (input configuration)
    - Metrics and time series tracking (output results)
    - Time step control (step size is halved after a failed Newton solve)

    Parameters
    ----------
    problem : FvBaseProblem
        The problem to simulate.
    params : DiscretizationParameters, optional
        Parameters object. If not provided, kwargs are used to create params.
    **kwargs
        Passed to DiscretizationParameters if params is None.
    """

    def __init__(self, problem, params=None, **kwargs):
        if params is None:
            params = DiscretizationParameters(**kwargs)

        self.params = params
        self.problem = problem
        self.model = FvBaseModel(problem, params)
        self.linearizer = Linearizer(self)

        self.time = 0.0
        self.time_step_size = params.time_step_size
        self.metrics = Metrics()
        self.time_series = TimeSeries()
        self._preconditioner = None

    def create_element_context(self):
        return ElementContext(self)

    def solve_time_step(self):
        """Solve the current time step with Newton's method.

        Returns
        -------
        iterations : int
            Number of Newton iterations.
        residual_norm : float
            Max norm of the final residual.

        Raises
        ------
        NewtonConvergenceError
            If the residual is not reduced below the tolerance.
        """
        params = self.params
        initial_norm = None
        # the sparsity pattern may change between steps, so no preconditioner reuse
        self._preconditioner = None

        for iteration in range(params.newton_max_iterations + 1):
            jacobian, residual = self.linearizer.linearize()
            residual_norm = float(np.max(np.abs(residual))) if residual.size else 0.0
            if initial_norm is None:
                initial_norm = residual_norm

            log.info(f"Newton iteration {iteration}: residual={residual_norm:.6e}")
            if residual_norm < params.newton_tolerance or (
                iteration > 0 and residual_norm < params.newton_tolerance * initial_norm
            ):
                return iteration, residual_norm

            if iteration == params.newton_max_iterations:
                break

            delta, self._preconditioner = scipy_solver(
                jacobian,
                residual.ravel(),
                M=self._preconditioner,
                tolerance=params.linear_solver_tol,
                method=params.linear_solver,
            )
            if not np.all(np.isfinite(delta)):
                raise NewtonConvergenceError("Linear solve produced non-finite update")

            self.model.update_solution(self.model.solution(0) - delta.reshape(residual.shape))
            self.metrics.newton_iterations += 1

        raise NewtonConvergenceError(
            f"Newton did not converge in {params.newton_max_iterations} iterations "
            f"(residual={residual_norm:.6e})"
        )

    def run(self, end_time=None):
        """Advance the simulation to ``end_time`` (defaults to params.end_time).

        Stores results in solver attributes:
        - self.metrics : Metrics dataclass
        - self.time_series : TimeSeries dataclass with one entry per time step
        """
        if end_time is None:
            end_time = self.params.end_time

        time_start = time.time()
        is_converged = True
        residual_norm = float("inf")

        while self.time < end_time - 1e-12 * max(1.0, abs(end_time)):
            dt = min(self.time_step_size, end_time - self.time)
            self.time_step_size = dt

            for division in range(self.params.max_time_step_divisions + 1):
                try:
                    iterations, residual_norm = self.solve_time_step()
                    break
                except NewtonConvergenceError as exc:
                    self.metrics.time_step_failures += 1
                    if division == self.params.max_time_step_divisions:
                        is_converged = False
                        log.error(f"Giving up at t={self.time:.6g}: {exc}")
                        raise
                    self.time_step_size *= 0.5
                    log.warning(
                        f"{exc}; retrying with time step size {self.time_step_size:.6g}"
                    )
                    self.model.reset_time_level()

            self.time += self.time_step_size
            self.model.advance_time_level()

            self.metrics.time_steps += 1
            self.time_series.time.append(self.time)
            self.time_series.time_step_size.append(self.time_step_size)
            self.time_series.newton_iterations.append(iterations)
            self.time_series.residual.append(residual_norm)
            log.info(
                f"Time step {self.metrics.time_steps} done: t={self.time:.6g}, "
                f"dt={self.time_step_size:.6g}, {iterations} Newton iterations"
            )

        cache = self.model.intensive_quantity_cache
        self.metrics.converged = is_converged
        self.metrics.final_residual = residual_norm
        self.metrics.wall_time_seconds = time.time() - time_start
        self.metrics.cache_hits = cache.hits
        self.metrics.cache_misses = cache.misses
        log.info(f"Simulation finished in {self.metrics.wall_time_seconds:.2f} seconds.")
        return self.metrics
