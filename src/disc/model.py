"""Model: solution history and intensive quantity cache shared by all element contexts."""

import logging

import numpy as np

from .cache import IntensiveQuantityCache
from .datastructures import DiscretizationParameters

log = logging.getLogger(__name__)


class FvBaseModel:
    """Holds the global solution for every history level.

    Parameters
    ----------
    problem : FvBaseProblem
        Provides the mesh, the number of equations, the quantity classes and
        the initial condition.
    params : DiscretizationParameters, optional
        Discretization settings. Defaults are used if not given.
    """

    def __init__(self, problem, params=None):
        self.problem = problem
        self.params = params if params is not None else DiscretizationParameters()

        self.num_dof = problem.mesh.n_cells
        self.num_eq = problem.num_eq
        self.history_size = self.params.history_size

        initial = np.asarray(problem.initial_solution(), dtype=np.float64)
        initial = initial.reshape(self.num_dof, self.num_eq)
        self._solution = [initial.copy() for _ in range(self.history_size)]

        self.intensive_quantity_cache = IntensiveQuantityCache(self.num_dof, self.history_size)

    def solution(self, time_idx):
        """Return the primary variables of all dofs, shape (num_dof, num_eq)."""
        if not 0 <= time_idx < self.history_size:
            raise IndexError(f"time_idx {time_idx} out of range [0, {self.history_size})")
        return self._solution[time_idx]

    def update_solution(self, new_solution):
        """Replace the current (level 0) solution and drop its cached quantities."""
        self._solution[0][:] = np.reshape(new_solution, (self.num_dof, self.num_eq))
        self.intensive_quantity_cache.invalidate(0)

    def advance_time_level(self):
        """Accept the current solution: shift every level one step into the past."""
        for time_idx in range(self.history_size - 1, 0, -1):
            self._solution[time_idx][:] = self._solution[time_idx - 1]
        self.intensive_quantity_cache.shift()

    def reset_time_level(self):
        """Throw away the current solution and start again from the previous one."""
        if self.history_size > 1:
            self._solution[0][:] = self._solution[1]
        self.intensive_quantity_cache.invalidate(0)

    def dof_total_volume(self, global_idx) -> float:
        return float(self.problem.mesh.cell_volumes[global_idx])

    # ------------------------------------------------------------------
    # Intensive quantity cache
    # ------------------------------------------------------------------

    def cached_intensive_quantities(self, global_idx, time_idx):
        if not self.params.enable_intensive_quantity_cache:
            return None
        return self.intensive_quantity_cache.get(global_idx, time_idx)

    def update_cached_intensive_quantities(self, intensive_quantities, global_idx, time_idx):
        if not self.params.enable_intensive_quantity_cache:
            return
        # the cache owns its bundles, contexts keep mutating theirs
        self.intensive_quantity_cache.update(intensive_quantities.copy(), global_idx, time_idx)

    def thermodynamic_hint(self, global_idx, time_idx):
        """Return a cached bundle usable as starting guess, or None.

        The entry for ``time_idx`` is preferred, otherwise the first
        up-to-date level is used. The returned object is borrowed from the
        cache and must not be modified.
        """
        if not self.params.enable_thermodynamic_hints:
            return None
        cache = self.intensive_quantity_cache
        if cache.is_up_to_date(global_idx, time_idx):
            return cache.peek(global_idx, time_idx)
        for other_idx in range(self.history_size):
            if cache.is_up_to_date(global_idx, other_idx):
                return cache.peek(global_idx, other_idx)
        return None

    # ------------------------------------------------------------------
    # Factories
    # ------------------------------------------------------------------

    def create_intensive_quantities(self):
        return self.problem.intensive_quantities_class()

    def create_extensive_quantities(self):
        return self.problem.extensive_quantities_class()

    def create_stencil(self):
        from .stencil import CellCenteredStencil

        return CellCenteredStencil(self.problem.mesh)
