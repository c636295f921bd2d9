"""Mesh data layout and structured mesh generation."""

from .mesh_data import MeshData2D, TOP, BOTTOM, LEFT, RIGHT
from .structured import create_structured_mesh_2d

__all__ = [
    "MeshData2D",
    "create_structured_mesh_2d",
    "TOP",
    "BOTTOM",
    "LEFT",
    "RIGHT",
]
