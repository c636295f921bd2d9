"""Rate vectors: per-equation source terms and fluxes.

A rate vector has one entry per conservation equation. How a component rate
is stored depends on the model: black-oil type models conserve mass, flash
type models conserve moles. The setters below convert whatever the caller
provides into the basis of the model.

Equation layout (see :class:`EquationIndices`):

    [conti_0, ..., conti_{nc-1}, momentum_0, ..., momentum_{d-1}, energy]

where the momentum and energy blocks are optional.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class EquationIndices:
    """Positions of the equations inside a rate vector."""

    num_components: int = 1
    num_momentum: int = 0
    enable_energy: bool = False

    @property
    def conti0_eq_idx(self) -> int:
        return 0

    @property
    def momentum0_eq_idx(self) -> int:
        if self.num_momentum == 0:
            return -1
        return self.num_components

    @property
    def energy_eq_idx(self) -> int:
        if not self.enable_energy:
            return -1
        return self.num_components + self.num_momentum

    @property
    def num_eq(self) -> int:
        return self.num_components + self.num_momentum + int(self.enable_energy)


class RateVector(ABC):
    """Fixed length vector of rates, one entry per equation.

    Parameters
    ----------
    fluid_system : type
        Provides ``molar_mass(comp_idx)``.
    indices : EquationIndices
        Equation layout.
    value : float or array_like, optional
        Initial value assigned to every entry (default 0).
    """

    def __init__(self, fluid_system, indices=None, value=0.0):
        self.fluid_system = fluid_system
        self.indices = indices if indices is not None else EquationIndices()
        self._data = np.zeros(self.indices.num_eq, dtype=np.float64)
        self.assign(value)

    # --- array access ---

    def __len__(self):
        return self._data.shape[0]

    def __getitem__(self, idx):
        return self._data[idx]

    def __setitem__(self, idx, value):
        self._data[idx] = value

    def __iter__(self):
        return iter(self._data)

    def __array__(self, dtype=None, copy=None):
        if dtype is None:
            return self._data.copy()
        return self._data.astype(dtype)

    def __repr__(self):
        return f"{type(self).__name__}({self._data.tolist()})"

    @property
    def values(self) -> np.ndarray:
        """Underlying array (a view, writes go to the vector)."""
        return self._data

    def copy(self):
        other = type(self)(self.fluid_system, self.indices)
        other._data[:] = self._data
        return other

    def assign(self, value):
        """Set all entries from a scalar or from another vector of equal length."""
        value = np.asarray(value, dtype=np.float64)
        if value.ndim == 0:
            self._data[:] = value
            return self
        if value.shape != self._data.shape:
            raise ValueError(f"Cannot assign {value.shape[0]} values to a rate vector of length {len(self)}")
        self._data[:] = value
        return self

    # --- component rates ---

    def _component_slice(self):
        c0 = self.indices.conti0_eq_idx
        return slice(c0, c0 + self.indices.num_components)

    def _molar_masses(self):
        return np.array(
            [self.fluid_system.molar_mass(c) for c in range(self.indices.num_components)]
        )

    @abstractmethod
    def set_mass_rate(self, value):
        """Set all entries; component entries of ``value`` are in kg/s."""

    @abstractmethod
    def set_molar_rate(self, value):
        """Set all entries; component entries of ``value`` are in mol/s."""

    @abstractmethod
    def set_volumetric_rate(self, fluid_state, phase_idx, volume):
        """Set the component rates caused by ``volume`` of a fluid phase."""

    # --- energy ---

    def set_enthalpy_rate(self, rate):
        """Set the rate of the energy equation."""
        if not self.indices.enable_energy:
            raise RuntimeError("Cannot set an enthalpy rate if the energy equation is disabled")
        self._data[self.indices.energy_eq_idx] = rate

    def _set_enthalpy_rate_from_state(self, fluid_state, phase_idx, volume):
        # only adds something if the model has an energy equation
        if not self.indices.enable_energy:
            return
        self._data[self.indices.energy_eq_idx] = (
            fluid_state.density[phase_idx] * fluid_state.phase_enthalpy(phase_idx) * volume
        )


class BlackOilRateVector(RateVector):
    """Rate vector of models that conserve component masses."""

    def set_mass_rate(self, value):
        self.assign(value)

    def set_molar_rate(self, value):
        self.assign(value)
        self._data[self._component_slice()] *= self._molar_masses()

    def set_volumetric_rate(self, fluid_state, phase_idx, volume):
        for comp_idx in range(self.indices.num_components):
            self._data[self.indices.conti0_eq_idx + comp_idx] = (
                fluid_state.density[phase_idx]
                * fluid_state.mass_fraction(phase_idx, comp_idx)
                * volume
            )


class FlashRateVector(RateVector):
    """Rate vector of models that conserve component moles.

    Volumetric rates also carry the enthalpy transported with the fluid when
    the energy equation is enabled.
    """

    def set_mass_rate(self, value):
        molar_rate = np.array(value, dtype=np.float64)
        if molar_rate.ndim == 0:
            molar_rate = np.full(len(self), float(molar_rate))
        molar_rate[self._component_slice()] /= self._molar_masses()
        self.set_molar_rate(molar_rate)

    def set_molar_rate(self, value):
        self.assign(value)

    def set_volumetric_rate(self, fluid_state, phase_idx, volume):
        molar_density = fluid_state.molar_density(phase_idx)
        for comp_idx in range(self.indices.num_components):
            self._data[self.indices.conti0_eq_idx + comp_idx] = (
                molar_density * fluid_state.mole_fraction(phase_idx, comp_idx) * volume
            )
        self._set_enthalpy_rate_from_state(fluid_state, phase_idx, volume)
