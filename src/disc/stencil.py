"""Cell-centered two-point stencil.

For an element (cell) E the stencil consists of E itself (the only primary
degree of freedom) followed by every cell sharing a face with E. Each shared
face becomes an interior face connecting local dof 0 with the neighbor's
local index; faces on the domain boundary become boundary faces of local
dof 0.
"""

from dataclasses import dataclass

import numpy as np


@dataclass
class SubControlVolume:
    """Control volume of a local degree of freedom."""

    global_index: int
    global_pos: np.ndarray
    volume: float


@dataclass
class StencilFace:
    """Interior or boundary face of a stencil.

    ``normal`` is the unit normal pointing from the interior dof towards the
    exterior dof (or out of the domain for boundary faces). ``exterior_index``
    is -1 for boundary faces.
    """

    mesh_face: int
    interior_index: int
    exterior_index: int
    normal: np.ndarray
    area: float
    center: np.ndarray
    boundary_side: int = -1

    @property
    def area_normal(self) -> np.ndarray:
        return self.normal * self.area


class CellCenteredStencil:
    """Two-point flux stencil of one cell of a :class:`MeshData2D`."""

    def __init__(self, mesh):
        self.mesh = mesh
        self.element = None
        self._dof_cells = np.empty(0, dtype=np.int64)
        self._sub_control_volumes = []
        self._interior_faces = []
        self._boundary_faces = []
        self._has_geometry = False
        self._center_gradient_weights = None

    def update_topology(self, element):
        """Recompute which cells belong to the stencil of ``element``."""
        mesh = self.mesh
        if not 0 <= element < mesh.n_cells:
            raise IndexError(f"Element {element} is not a cell of the mesh")

        self.element = int(element)
        self._center_gradient_weights = None
        self._sub_control_volumes = []
        self._interior_faces = []
        self._boundary_faces = []
        self._has_geometry = False

        dof_cells = [self.element]
        for f in mesh.cell_faces[element]:
            if f < 0:
                continue
            other = mesh.neighbor_cells[f] if mesh.owner_cells[f] == element else mesh.owner_cells[f]
            if other >= 0:
                dof_cells.append(int(other))
        self._dof_cells = np.asarray(dof_cells, dtype=np.int64)

    def update(self, element):
        """Recompute topology and face geometry for ``element``."""
        self.update_topology(element)
        mesh = self.mesh

        self._sub_control_volumes = [
            SubControlVolume(
                global_index=int(c),
                global_pos=mesh.cell_centers[c],
                volume=float(mesh.cell_volumes[c]),
            )
            for c in self._dof_cells
        ]

        self._interior_faces = []
        self._boundary_faces = []
        local_index = {int(c): i for i, c in enumerate(self._dof_cells)}
        for f in mesh.cell_faces[element]:
            if f < 0:
                continue
            # orient the normal away from the element
            sign = 1.0 if mesh.owner_cells[f] == element else -1.0
            normal = sign * mesh.face_normals[f]
            if mesh.neighbor_cells[f] < 0:
                self._boundary_faces.append(
                    StencilFace(
                        mesh_face=int(f),
                        interior_index=0,
                        exterior_index=-1,
                        normal=normal,
                        area=float(mesh.face_areas[f]),
                        center=mesh.face_centers[f],
                        boundary_side=int(mesh.boundary_sides[f]),
                    )
                )
            else:
                other = mesh.neighbor_cells[f] if sign > 0 else mesh.owner_cells[f]
                self._interior_faces.append(
                    StencilFace(
                        mesh_face=int(f),
                        interior_index=0,
                        exterior_index=local_index[int(other)],
                        normal=normal,
                        area=float(mesh.face_areas[f]),
                        center=mesh.face_centers[f],
                    )
                )
        self._has_geometry = True

    def update_center_gradients(self):
        """Compute least-squares weights for gradients at the dof centers.

        For every local dof d the weights W_d satisfy
        ``grad(u)_d ~= W_d @ (u[others] - u[d])`` where ``others`` are all
        other dofs of the stencil.
        """
        positions = np.array([scv.global_pos for scv in self._sub_control_volumes])
        weights = []
        for d in range(self.num_dof()):
            others = np.array([j for j in range(self.num_dof()) if j != d], dtype=np.int64)
            if others.size == 0:
                weights.append((others, np.zeros((positions.shape[1], 0))))
                continue
            D = positions[others] - positions[d]
            weights.append((others, np.linalg.pinv(D)))
        self._center_gradient_weights = weights

    @property
    def has_center_gradients(self) -> bool:
        return self._center_gradient_weights is not None

    def center_gradient_weights(self, dof_idx):
        if self._center_gradient_weights is None:
            raise RuntimeError("Center gradients were not computed for this stencil")
        return self._center_gradient_weights[dof_idx]

    def num_dof(self) -> int:
        return self._dof_cells.shape[0]

    def num_primary_dof(self) -> int:
        return 1

    def num_interior_faces(self) -> int:
        self._check_geometry()
        return len(self._interior_faces)

    def num_boundary_faces(self) -> int:
        self._check_geometry()
        return len(self._boundary_faces)

    def global_space_index(self, dof_idx) -> int:
        return int(self._dof_cells[dof_idx])

    def sub_control_volume(self, dof_idx) -> SubControlVolume:
        self._check_geometry()
        return self._sub_control_volumes[dof_idx]

    def interior_face(self, face_idx) -> StencilFace:
        self._check_geometry()
        return self._interior_faces[face_idx]

    def boundary_face(self, bf_idx) -> StencilFace:
        self._check_geometry()
        return self._boundary_faces[bf_idx]

    def _check_geometry(self):
        if not self._has_geometry:
            raise RuntimeError(f"Only the topology of element {self.element} is known, call update() first")
