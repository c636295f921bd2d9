"""Boundary fluxes of free-flow (Stokes) models."""

import numpy as np

from .rate_vector import FlashRateVector


class StokesBoundaryRateVector(FlashRateVector):
    """Flux over a boundary face of a Stokes model.

    The intensive quantities of the context must provide ``velocity`` (array
    of length ``dim``), ``fluid_state`` and are evaluated at the interior dof
    of the boundary face. ``phase_idx`` selects the phase the model solves for.
    """

    def __init__(self, fluid_system, indices=None, value=0.0, phase_idx=0):
        super().__init__(fluid_system, indices, value)
        if self.indices.num_momentum == 0:
            raise ValueError("Stokes boundary rates need momentum equations")
        self.phase_idx = phase_idx

    def copy(self):
        other = type(self)(self.fluid_system, self.indices, phase_idx=self.phase_idx)
        other._data[:] = self._data
        return other

    def _momentum_slice(self):
        m0 = self.indices.momentum0_eq_idx
        return slice(m0, m0 + self.indices.num_momentum)

    def set_free_flow(self, context, bf_idx, time_idx, velocity, fluid_state):
        """Specify a free-flow boundary with given velocity and fluid state.

        Sets the component fluxes over the face, the viscous momentum flux
        ``-mu (grad v + grad v^T) n`` and, if enabled, the enthalpy flux.
        """
        phase_idx = self.phase_idx
        dim = self.indices.num_momentum
        velocity = np.asarray(velocity, dtype=np.float64)

        stencil = context.stencil(time_idx)
        face = stencil.boundary_face(bf_idx)
        inside = face.interior_index
        normal = face.normal
        inside_iq = context.intensive_quantities(inside, time_idx)

        # distance between the dof center and the boundary face along the normal
        dist_vec = face.center - stencil.sub_control_volume(inside).global_pos
        dist = abs(float(np.dot(dist_vec, normal)))

        # grad_v[axis] is the gradient of velocity component ``axis``
        grad_v = np.outer(velocity[:dim] - np.asarray(inside_iq.velocity)[:dim], normal[:dim]) / dist

        volume_flux = float(np.dot(velocity[:dim], normal[:dim]))
        molar_density = fluid_state.molar_density(phase_idx)
        for comp_idx in range(self.indices.num_components):
            self._data[self.indices.conti0_eq_idx + comp_idx] = (
                volume_flux * molar_density * fluid_state.mole_fraction(phase_idx, comp_idx)
            )

        viscosity = inside_iq.fluid_state.viscosity[phase_idx]
        strain = grad_v + grad_v.T
        self._data[self._momentum_slice()] = -viscosity * (strain @ normal[:dim])

        self._set_enthalpy_rate_from_state(fluid_state, phase_idx, volume_flux)
        return self

    def set_in_flow(self, context, bf_idx, time_idx, velocity, fluid_state):
        """Free flow which only lets mass and momentum enter the domain."""
        self.set_free_flow(context, bf_idx, time_idx, velocity, fluid_state)
        comps = self._component_slice()
        self._data[comps] = np.minimum(0.0, self._data[comps])
        momentum = self._momentum_slice()
        self._data[momentum] = np.minimum(0.0, self._data[momentum])
        return self

    def set_out_flow(self, context, bf_idx, time_idx):
        """Free flow at the interior state which only lets mass and momentum leave."""
        iq = context.intensive_quantities(context.stencil(time_idx).boundary_face(bf_idx).interior_index, time_idx)
        self.set_free_flow(context, bf_idx, time_idx, iq.velocity, iq.fluid_state)
        comps = self._component_slice()
        self._data[comps] = np.maximum(0.0, self._data[comps])
        momentum = self._momentum_slice()
        self._data[momentum] = np.maximum(0.0, self._data[momentum])
        return self

    def set_no_flow(self, context, bf_idx, time_idx):
        """No mass flux and no slip."""
        iq = context.intensive_quantities(context.stencil(time_idx).boundary_face(bf_idx).interior_index, time_idx)
        velocity = np.zeros(self.indices.num_momentum)
        return self.set_free_flow(context, bf_idx, time_idx, velocity, iq.fluid_state)
