"""Structured Cartesian mesh generation for the cell-centered discretization."""

import numpy as np

from .mesh_data import MeshData2D, TOP, BOTTOM, LEFT, RIGHT


def create_structured_mesh_2d(nx, ny, Lx=1.0, Ly=1.0):
    """Create a uniform nx x ny Cartesian mesh on [0, Lx] x [0, Ly].

    Parameters
    ----------
    nx, ny : int
        Number of cells in x and y direction.
    Lx, Ly : float
        Domain size.

    Returns
    -------
    MeshData2D
        Mesh with cells numbered as ``i * ny + j``. Vertical faces come
        first, then horizontal faces.
    """
    if nx < 1 or ny < 1:
        raise ValueError(f"Mesh needs at least one cell per direction, got nx={nx}, ny={ny}")

    dx = Lx / nx
    dy = Ly / ny
    n_cells = nx * ny

    xc = (np.arange(nx) + 0.5) * dx
    yc = (np.arange(ny) + 0.5) * dy
    X, Y = np.meshgrid(xc, yc, indexing="ij")
    cell_centers = np.column_stack([X.ravel(), Y.ravel()])
    cell_volumes = np.full(n_cells, dx * dy)

    def cell_id(i, j):
        return i * ny + j

    face_centers = []
    face_normals = []
    face_areas = []
    owners = []
    neighbors = []
    sides = []

    # Vertical faces (normal in +x), one column of faces per x = k * dx
    for k in range(nx + 1):
        for j in range(ny):
            face_centers.append((k * dx, (j + 0.5) * dy))
            face_areas.append(dy)
            if k == 0:
                # left boundary: owner is cell (0, j), outward normal is -x
                owners.append(cell_id(0, j))
                neighbors.append(-1)
                face_normals.append((-1.0, 0.0))
                sides.append(LEFT)
            elif k == nx:
                owners.append(cell_id(nx - 1, j))
                neighbors.append(-1)
                face_normals.append((1.0, 0.0))
                sides.append(RIGHT)
            else:
                owners.append(cell_id(k - 1, j))
                neighbors.append(cell_id(k, j))
                face_normals.append((1.0, 0.0))
                sides.append(-1)

    # Horizontal faces (normal in +y)
    for i in range(nx):
        for k in range(ny + 1):
            face_centers.append(((i + 0.5) * dx, k * dy))
            face_areas.append(dx)
            if k == 0:
                owners.append(cell_id(i, 0))
                neighbors.append(-1)
                face_normals.append((0.0, -1.0))
                sides.append(BOTTOM)
            elif k == ny:
                owners.append(cell_id(i, ny - 1))
                neighbors.append(-1)
                face_normals.append((0.0, 1.0))
                sides.append(TOP)
            else:
                owners.append(cell_id(i, k - 1))
                neighbors.append(cell_id(i, k))
                face_normals.append((0.0, 1.0))
                sides.append(-1)

    owner_cells = np.asarray(owners, dtype=np.int64)
    neighbor_cells = np.asarray(neighbors, dtype=np.int64)
    boundary_sides = np.asarray(sides, dtype=np.int64)

    cell_faces = np.full((n_cells, 4), -1, dtype=np.int64)
    n_filled = np.zeros(n_cells, dtype=np.int64)
    for f, (P, N) in enumerate(zip(owner_cells, neighbor_cells)):
        cell_faces[P, n_filled[P]] = f
        n_filled[P] += 1
        if N >= 0:
            cell_faces[N, n_filled[N]] = f
            n_filled[N] += 1

    return MeshData2D(
        cell_volumes=cell_volumes,
        cell_centers=cell_centers,
        face_areas=np.asarray(face_areas, dtype=np.float64),
        face_centers=np.asarray(face_centers, dtype=np.float64),
        face_normals=np.asarray(face_normals, dtype=np.float64),
        owner_cells=owner_cells,
        neighbor_cells=neighbor_cells,
        cell_faces=cell_faces,
        internal_faces=np.flatnonzero(neighbor_cells >= 0),
        boundary_faces=np.flatnonzero(neighbor_cells < 0),
        boundary_sides=boundary_sides,
        nx=nx,
        ny=ny,
        Lx=Lx,
        Ly=Ly,
    )
