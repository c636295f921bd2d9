"""Base classes for the quantities cached by element contexts.

Models derive from these and are plugged into the model via
``Problem.intensive_quantities_class`` / ``Problem.extensive_quantities_class``.
"""

import copy
from abc import ABC, abstractmethod


class IntensiveQuantities(ABC):
    """Quantities of a single degree of freedom (density, saturation, ...).

    ``update`` must only depend on the dof's own primary variables and
    geometry. Anything that needs other dofs of the stencil belongs into
    ``update_scv_gradients``, which the element context calls after all dofs
    of a time level have been updated.
    """

    @abstractmethod
    def update(self, context, dof_idx, time_idx):
        pass

    def update_scv_gradients(self, context, dof_idx, time_idx):
        """Update quantities depending on other dofs. Does nothing by default."""
        pass

    def copy(self):
        return copy.deepcopy(self)


class ExtensiveQuantities(ABC):
    """Flux related quantities of an interior face of a stencil."""

    @abstractmethod
    def update(self, context, face_idx, time_idx):
        pass

    def copy(self):
        return copy.deepcopy(self)
