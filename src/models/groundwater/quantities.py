"""Intensive and extensive quantities of the groundwater model."""

import numpy as np

from disc.quantities import ExtensiveQuantities, IntensiveQuantities


class GroundwaterIntensiveQuantities(IntensiveQuantities):
    """Pressure dependent quantities of one dof."""

    def __init__(self):
        self.pressure = 0.0
        self.head = 0.0
        self.permeability = 0.0
        self.density = 0.0
        self.viscosity = 0.0
        self.specific_storage = 0.0
        self.fluid_state = None
        self.pressure_gradient = None

    def update(self, context, dof_idx, time_idx):
        problem = context.problem
        pos = context.pos(dof_idx, time_idx)

        self.pressure = float(context.primary_vars(dof_idx, time_idx)[0])
        self.head = float(problem.pressure_to_head(self.pressure))
        self.permeability = problem.intrinsic_permeability(pos)
        self.specific_storage = problem.specific_storage
        self.fluid_state = problem.fluid_state(self.pressure)
        self.density = float(self.fluid_state.density[problem.phase_idx])
        self.viscosity = float(self.fluid_state.viscosity[problem.phase_idx])
        self.pressure_gradient = None

    def update_scv_gradients(self, context, dof_idx, time_idx):
        stencil = context.stencil(time_idx)
        if not stencil.has_center_gradients:
            return
        others, weights = stencil.center_gradient_weights(dof_idx)
        deltas = np.array(
            [context.intensive_quantities(o, time_idx).pressure - self.pressure for o in others]
        )
        self.pressure_gradient = weights @ deltas


class GroundwaterExtensiveQuantities(ExtensiveQuantities):
    """Darcy flux and pressure at an interior face.

    The upstream dof is chosen with the pressures of the evaluation point so
    that perturbing a dof during linearization does not flip the upwinding.
    """

    def __init__(self):
        self.upstream_index = -1
        self.downstream_index = -1
        self.permeability = 0.0
        self.pressure = 0.0
        self.pressure_gradient = None
        self.volume_flux = 0.0

    def update(self, context, face_idx, time_idx):
        stencil = context.stencil(time_idx)
        face = stencil.interior_face(face_idx)
        i, j = face.interior_index, face.exterior_index

        iq_i = context.intensive_quantities(i, time_idx)
        iq_j = context.intensive_quantities(j, time_idx)
        k_i, k_j = iq_i.permeability, iq_j.permeability
        self.permeability = 2.0 * k_i * k_j / (k_i + k_j) if k_i + k_j > 0 else 0.0

        def pressure(d):
            return context.intensive_quantities(d, time_idx).pressure

        gradient_calculator = context.gradient_calculator
        self.pressure = gradient_calculator.calculate_value(pressure, context, face_idx, time_idx)
        self.pressure_gradient = gradient_calculator.calculate_gradient(pressure, context, face_idx, time_idx)

        p_i = context.eval_point_intensive_quantities(i, time_idx).pressure
        p_j = context.eval_point_intensive_quantities(j, time_idx).pressure
        if p_i >= p_j:
            self.upstream_index, self.downstream_index = i, j
        else:
            self.upstream_index, self.downstream_index = j, i

        upstream = context.intensive_quantities(self.upstream_index, time_idx)
        self.volume_flux = (
            -self.permeability / upstream.viscosity * float(np.dot(self.pressure_gradient, face.area_normal))
        )

    def copy(self):
        other = GroundwaterExtensiveQuantities()
        other.upstream_index = self.upstream_index
        other.downstream_index = self.downstream_index
        other.permeability = self.permeability
        other.pressure = self.pressure
        other.pressure_gradient = None if self.pressure_gradient is None else self.pressure_gradient.copy()
        other.volume_flux = self.volume_flux
        return other
