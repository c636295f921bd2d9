"""Abstract base problem for the cell-centered finite volume discretization."""

from abc import ABC, abstractmethod

import numpy as np


class FvBaseProblem(ABC):
    """Defines the physical problem to be discretized.

    Subclasses must:
    - Set ``intensive_quantities_class`` and ``extensive_quantities_class``
    - Set ``num_eq``
    - Implement ``initial_solution()`` and ``local_residual()``
    """

    intensive_quantities_class = None
    extensive_quantities_class = None
    num_eq = 1
    name = "problem"

    def __init__(self, mesh):
        if self.intensive_quantities_class is None or self.extensive_quantities_class is None:
            raise ValueError("Subclass must define the quantity classes")
        self.mesh = mesh

    def elements(self):
        """Iterate over the elements visited during assembly."""
        return range(self.mesh.n_cells)

    @abstractmethod
    def initial_solution(self) -> np.ndarray:
        """Return the initial primary variables, shape (n_cells, num_eq)."""
        pass

    @abstractmethod
    def local_residual(self):
        """Return the local residual object used for this problem."""
        pass
