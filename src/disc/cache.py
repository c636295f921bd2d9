"""Model-wide cache of intensive quantities.

The cache is keyed by (global dof index, time level). Level 0 belongs to the
current solution and has to be invalidated whenever that solution changes;
at the end of a time step every level moves one slot back (``shift``) so the
quantities of the accepted solution become the "previous time step" entries.
"""

import logging

import numpy as np

log = logging.getLogger(__name__)


class IntensiveQuantityCache:
    """Fixed-size cache of intensive quantity bundles.

    Parameters
    ----------
    num_dof : int
        Number of global degrees of freedom.
    history_size : int
        Number of time levels.
    """

    def __init__(self, num_dof: int, history_size: int):
        self.num_dof = num_dof
        self.history_size = history_size
        self._storage = [[None] * num_dof for _ in range(history_size)]
        self._up_to_date = np.zeros((history_size, num_dof), dtype=bool)
        self.hits = 0
        self.misses = 0

    def _check(self, global_idx, time_idx):
        if not 0 <= time_idx < self.history_size:
            raise IndexError(f"time_idx {time_idx} out of range [0, {self.history_size})")
        if not 0 <= global_idx < self.num_dof:
            raise IndexError(f"global_idx {global_idx} out of range [0, {self.num_dof})")

    def get(self, global_idx, time_idx):
        """Return the cached bundle or None. Updates the hit/miss counters."""
        self._check(global_idx, time_idx)
        if self._up_to_date[time_idx, global_idx]:
            self.hits += 1
            return self._storage[time_idx][global_idx]
        self.misses += 1
        return None

    def peek(self, global_idx, time_idx):
        """Like ``get`` but without touching the statistics."""
        self._check(global_idx, time_idx)
        if self._up_to_date[time_idx, global_idx]:
            return self._storage[time_idx][global_idx]
        return None

    def update(self, intensive_quantities, global_idx, time_idx):
        self._check(global_idx, time_idx)
        self._storage[time_idx][global_idx] = intensive_quantities
        self._up_to_date[time_idx, global_idx] = True

    def is_up_to_date(self, global_idx, time_idx) -> bool:
        self._check(global_idx, time_idx)
        return bool(self._up_to_date[time_idx, global_idx])

    def invalidate(self, time_idx=0):
        """Mark all entries of one time level as stale."""
        self._up_to_date[time_idx, :] = False

    def shift(self):
        """Move every level one step into the past; level 0 becomes empty."""
        for time_idx in range(self.history_size - 1, 0, -1):
            self._storage[time_idx] = self._storage[time_idx - 1]
            self._up_to_date[time_idx, :] = self._up_to_date[time_idx - 1, :]
        self._storage[0] = [None] * self.num_dof
        self._up_to_date[0, :] = False
        log.debug(f"Shifted intensive quantity cache ({self.history_size} levels)")

    def clear(self):
        for time_idx in range(self.history_size):
            self._storage[time_idx] = [None] * self.num_dof
        self._up_to_date[:, :] = False

    def reset_statistics(self):
        self.hits = 0
        self.misses = 0
