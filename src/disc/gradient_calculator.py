"""Two-point gradient approximation at the faces of a cell-centered stencil."""

import numpy as np


class TwoPointGradientCalculator:
    """Computes gradients at interior faces from the values of the two adjacent dofs.

    The gradient is approximated along the connection of the two dof
    centers and projected onto the face normal, which is exact for
    K-orthogonal Cartesian meshes.
    """

    def __init__(self):
        self._distances = np.empty(0)

    def prepare(self, context, time_idx):
        """Precompute the center-to-center distances of all interior faces."""
        stencil = context.stencil(time_idx)
        n_faces = stencil.num_interior_faces()
        distances = np.empty(n_faces)
        for face_idx in range(n_faces):
            face = stencil.interior_face(face_idx)
            x_i = stencil.sub_control_volume(face.interior_index).global_pos
            x_j = stencil.sub_control_volume(face.exterior_index).global_pos
            distances[face_idx] = abs(np.dot(x_j - x_i, face.normal))
        self._distances = distances

    def distance(self, face_idx) -> float:
        return float(self._distances[face_idx])

    def calculate_gradient(self, value_callback, context, face_idx, time_idx):
        """Return the gradient of a scalar at an interior face.

        Parameters
        ----------
        value_callback : callable
            Maps a local dof index to the scalar value at that dof.
        """
        face = context.stencil(time_idx).interior_face(face_idx)
        delta = value_callback(face.exterior_index) - value_callback(face.interior_index)
        return face.normal * (delta / self.distance(face_idx))

    def calculate_value(self, value_callback, context, face_idx, time_idx):
        """Return the distance weighted average of a scalar at an interior face."""
        stencil = context.stencil(time_idx)
        face = stencil.interior_face(face_idx)
        x_i = stencil.sub_control_volume(face.interior_index).global_pos
        x_j = stencil.sub_control_volume(face.exterior_index).global_pos
        d_i = np.linalg.norm(face.center - x_i)
        d_j = np.linalg.norm(face.center - x_j)
        w_i = d_j / (d_i + d_j)
        return w_i * value_callback(face.interior_index) + (1.0 - w_i) * value_callback(face.exterior_index)

    def calculate_boundary_gradient(self, value_callback, boundary_value, context, bf_idx, time_idx):
        """Return the gradient between the interior dof and a boundary face value."""
        stencil = context.stencil(time_idx)
        face = stencil.boundary_face(bf_idx)
        x_i = stencil.sub_control_volume(face.interior_index).global_pos
        distance = abs(np.dot(face.center - x_i, face.normal))
        delta = boundary_value - value_callback(face.interior_index)
        return face.normal * (delta / distance)
