"""Mass balance of the groundwater model."""

import numpy as np

from disc.local_residual import FvBaseLocalResidual


class GroundwaterLocalResidual(FvBaseLocalResidual):
    """Storage, Darcy fluxes, boundary fluxes and wells of the water phase."""

    def compute_storage(self, context, dof_idx, time_idx):
        iq = context.intensive_quantities(dof_idx, time_idx)
        return np.array([iq.density * iq.specific_storage * iq.head])

    def compute_flux(self, context, face_idx, time_idx):
        extq = context.extensive_quantities(face_idx, time_idx)
        eval_point = context.eval_point_extensive_quantities(face_idx, time_idx)
        upstream = context.intensive_quantities(eval_point.upstream_index, time_idx)
        return np.array([upstream.density * extq.volume_flux])

    def compute_boundary_flux(self, context, bf_idx, time_idx):
        problem = context.problem
        stencil = context.stencil(time_idx)
        face = stencil.boundary_face(bf_idx)
        segment = problem.boundary_segment(face)
        if segment is None:
            return np.zeros(1)
        if segment.neumann:
            return np.array([problem.neumann_flux(segment) * face.area])

        iq = context.intensive_quantities(face.interior_index, time_idx)
        p_boundary = problem.dirichlet_pressure(segment)
        gradient = context.gradient_calculator.calculate_boundary_gradient(
            lambda d: context.intensive_quantities(d, time_idx).pressure,
            p_boundary,
            context,
            bf_idx,
            time_idx,
        )
        volume_flux = -iq.permeability / iq.viscosity * float(np.dot(gradient, face.area_normal))
        return np.array([iq.density * volume_flux])

    def compute_source(self, context, dof_idx, time_idx):
        return np.asarray(context.problem.source(context, dof_idx, time_idx))
