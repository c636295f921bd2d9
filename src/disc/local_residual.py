"""Element-local residual of the cell-centered finite volume discretization."""

from abc import ABC, abstractmethod

import numpy as np


class FvBaseLocalResidual(ABC):
    """Evaluates the residual of the primary dofs of an element context.

    The residual of a dof is

        (storage(t0) - storage(t1)) / dt * V + sum(outward fluxes) - source * V

    Subclasses implement the storage, flux, boundary and source terms.
    The storage term is skipped if only one history level is kept (steady
    state problems).
    """

    @abstractmethod
    def compute_storage(self, context, dof_idx, time_idx) -> np.ndarray:
        """Conserved quantity per volume of a dof."""
        pass

    @abstractmethod
    def compute_flux(self, context, face_idx, time_idx) -> np.ndarray:
        """Flux over an interior face from the interior towards the exterior dof."""
        pass

    @abstractmethod
    def compute_boundary_flux(self, context, bf_idx, time_idx) -> np.ndarray:
        """Flux over a boundary face out of the domain."""
        pass

    @abstractmethod
    def compute_source(self, context, dof_idx, time_idx) -> np.ndarray:
        """Source rate per volume of a dof."""
        pass

    def eval(self, context, time_step_size=None):
        """Return the residual of all primary dofs, shape (num_primary_dof, num_eq)."""
        num_primary = context.num_primary_dof(0)
        num_eq = context.model.num_eq
        residual = np.zeros((num_primary, num_eq))

        if context.history_size > 1:
            if time_step_size is None:
                time_step_size = context.simulator.time_step_size
            for dof_idx in range(num_primary):
                volume = context.dof_total_volume(dof_idx, 0)
                storage_new = np.asarray(self.compute_storage(context, dof_idx, 0))
                storage_old = np.asarray(self.compute_storage(context, dof_idx, 1))
                residual[dof_idx] += (storage_new - storage_old) / time_step_size * volume

        for face_idx in range(context.num_interior_faces(0)):
            face = context.stencil(0).interior_face(face_idx)
            flux = np.asarray(self.compute_flux(context, face_idx, 0))
            if face.interior_index < num_primary:
                residual[face.interior_index] += flux
            if face.exterior_index < num_primary:
                residual[face.exterior_index] -= flux

        for bf_idx in range(context.num_boundary_faces(0)):
            face = context.stencil(0).boundary_face(bf_idx)
            residual[face.interior_index] += np.asarray(self.compute_boundary_flux(context, bf_idx, 0))

        for dof_idx in range(num_primary):
            volume = context.dof_total_volume(dof_idx, 0)
            residual[dof_idx] -= np.asarray(self.compute_source(context, dof_idx, 0)) * volume

        return residual
