"""Fluid states and a minimal water/nitrogen fluid system.

Property correlations are not part of this package; the fluid system only
provides the constants needed to convert between mass, molar and volumetric
rates.
"""

from dataclasses import dataclass, field
from typing import Optional

import numpy as np


class H2ON2FluidSystem:
    """Two phases (liquid, gas) and two components (H2O, N2)."""

    num_phases = 2
    num_components = 2

    liquid_phase_idx = 0
    gas_phase_idx = 1

    H2O_idx = 0
    N2_idx = 1

    phase_names = ("liquid", "gas")
    component_names = ("H2O", "N2")

    _molar_masses = (18.01518e-3, 28.0134e-3)  # kg/mol

    @classmethod
    def molar_mass(cls, comp_idx) -> float:
        return cls._molar_masses[comp_idx]

    @classmethod
    def molar_masses(cls) -> np.ndarray:
        return np.array(cls._molar_masses)


@dataclass
class FluidState:
    """Thermodynamic state at one point, mole fractions are the base quantity.

    Arrays are indexed by phase (and component for ``mole_fractions``).
    """

    pressure: np.ndarray
    density: np.ndarray
    viscosity: np.ndarray
    mole_fractions: np.ndarray  # (num_phases, num_components)
    molar_masses: np.ndarray  # (num_components,)
    enthalpy: Optional[np.ndarray] = None
    temperature: float = 293.15
    saturation: np.ndarray = field(default=None)

    @classmethod
    def single_phase(cls, pressure, density, viscosity, molar_mass, enthalpy=None, temperature=293.15):
        """Fluid state of a single phase consisting of a single component."""
        return cls(
            pressure=np.array([pressure], dtype=np.float64),
            density=np.array([density], dtype=np.float64),
            viscosity=np.array([viscosity], dtype=np.float64),
            mole_fractions=np.ones((1, 1)),
            molar_masses=np.array([molar_mass], dtype=np.float64),
            enthalpy=None if enthalpy is None else np.array([enthalpy], dtype=np.float64),
            temperature=temperature,
            saturation=np.ones(1),
        )

    @property
    def num_phases(self) -> int:
        return self.mole_fractions.shape[0]

    @property
    def num_components(self) -> int:
        return self.mole_fractions.shape[1]

    def mole_fraction(self, phase_idx, comp_idx) -> float:
        return float(self.mole_fractions[phase_idx, comp_idx])

    def average_molar_mass(self, phase_idx) -> float:
        return float(np.dot(self.mole_fractions[phase_idx], self.molar_masses))

    def mass_fraction(self, phase_idx, comp_idx) -> float:
        return (
            self.mole_fractions[phase_idx, comp_idx]
            * self.molar_masses[comp_idx]
            / self.average_molar_mass(phase_idx)
        )

    def molar_density(self, phase_idx) -> float:
        return self.density[phase_idx] / self.average_molar_mass(phase_idx)

    def phase_enthalpy(self, phase_idx) -> float:
        if self.enthalpy is None:
            raise ValueError("Fluid state carries no enthalpy")
        return float(self.enthalpy[phase_idx])
