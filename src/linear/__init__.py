"""Linear algebra: solvers and vectors distributed over overlapping partitions."""

from .linear_solvers import scipy_solver
from .mpi_buffer import MpiBuffer, default_communicator
from .overlap import Overlap, build_overlap
from .overlapping_block_vector import OverlappingBlockVector, PeerBuffers

__all__ = [
    "MpiBuffer",
    "Overlap",
    "OverlappingBlockVector",
    "PeerBuffers",
    "build_overlap",
    "default_communicator",
    "scipy_solver",
]
