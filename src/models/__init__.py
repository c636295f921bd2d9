"""Physical models: fluid states, rate vectors and problems."""

from .fluid_state import FluidState, H2ON2FluidSystem
from .rate_vector import BlackOilRateVector, EquationIndices, FlashRateVector, RateVector
from .stokes_boundary_rate_vector import StokesBoundaryRateVector

__all__ = [
    "BlackOilRateVector",
    "EquationIndices",
    "FlashRateVector",
    "FluidState",
    "H2ON2FluidSystem",
    "RateVector",
    "StokesBoundaryRateVector",
]
