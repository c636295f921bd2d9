"""
MeshData2D: Core data layout for the cell-centered finite volume discretization (2D).

This class holds static geometry and connectivity. Stencils are built on top of it;
it does not know anything about primary variables or physics.

Indexing Conventions:
- All face-based arrays (e.g., face_normals, owner_cells) use face indexing (0 to n_faces-1).
- All cell-based arrays (e.g., cell_volumes, cell_centers) use cell indexing (0 to n_cells-1).
- Structured meshes number cells as cell_idx = i * ny + j.

Connectivity:
- owner_cells[f] is the cell on the side the unit normal points away from.
- neighbor_cells[f] is the cell the normal points into, -1 on boundary faces.
- cell_faces[c] lists the faces of cell c (padded with -1).
- boundary_sides[f] tags boundary faces with 0=top, 1=bottom, 2=left, 3=right, -1 for internal.
"""

import numpy as np


TOP, BOTTOM, LEFT, RIGHT = 0, 1, 2, 3


class MeshData2D:
    def __init__(
        self,
        cell_volumes,
        cell_centers,
        face_areas,
        face_centers,
        face_normals,
        owner_cells,
        neighbor_cells,
        cell_faces,
        internal_faces,
        boundary_faces,
        boundary_sides,
        nx=None,
        ny=None,
        Lx=None,
        Ly=None,
    ):
        # --- Geometry ---
        self.cell_volumes = cell_volumes
        self.cell_centers = cell_centers
        self.face_areas = face_areas
        self.face_centers = face_centers
        self.face_normals = face_normals

        # --- Connectivity ---
        self.owner_cells = owner_cells
        self.neighbor_cells = neighbor_cells
        self.cell_faces = cell_faces

        # --- Topological Info ---
        self.internal_faces = internal_faces
        self.boundary_faces = boundary_faces
        self.boundary_sides = boundary_sides

        # --- Structured Grid Info (optional) ---
        self.nx = nx
        self.ny = ny
        self.Lx = Lx
        self.Ly = Ly

    @property
    def n_cells(self) -> int:
        return self.cell_volumes.shape[0]

    @property
    def n_faces(self) -> int:
        return self.face_areas.shape[0]

    def cell_adjacency(self):
        """Return the symmetric cell-to-cell adjacency as a CSR matrix."""
        from scipy.sparse import coo_matrix

        owners = self.owner_cells[self.internal_faces]
        neighbors = self.neighbor_cells[self.internal_faces]
        rows = np.concatenate([owners, neighbors])
        cols = np.concatenate([neighbors, owners])
        data = np.ones(rows.shape[0], dtype=np.int8)
        return coo_matrix((data, (rows, cols)), shape=(self.n_cells, self.n_cells)).tocsr()
