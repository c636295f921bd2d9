"""Groundwater flow model (single phase, pressure formulation)."""

from .local_residual import GroundwaterLocalResidual
from .problem import GRAVITY, BoundarySegment, GroundwaterProblem, Lens, PointSource
from .quantities import GroundwaterExtensiveQuantities, GroundwaterIntensiveQuantities

__all__ = [
    "GRAVITY",
    "BoundarySegment",
    "GroundwaterExtensiveQuantities",
    "GroundwaterIntensiveQuantities",
    "GroundwaterLocalResidual",
    "GroundwaterProblem",
    "Lens",
    "PointSource",
]
