"""Global assembly of the residual and the Jacobian matrix."""

import logging

import numpy as np
from scipy.sparse import coo_matrix

from .local_linearizer import LocalLinearizer

log = logging.getLogger(__name__)


class Linearizer:
    """Assembles the global system by visiting every element once.

    A single element context is reused for all elements. The Jacobian is a
    ``scipy.sparse.csr_matrix`` with ``num_dof * num_eq`` rows, where row
    ``global_idx * num_eq + eq_idx`` belongs to equation ``eq_idx`` of dof
    ``global_idx``.
    """

    def __init__(self, simulator):
        self.simulator = simulator
        self.local_linearizer = LocalLinearizer(simulator.model.params)
        self._context = None

    @property
    def context(self):
        if self._context is None:
            self._context = self.simulator.create_element_context()
        return self._context

    def linearize(self):
        """Return (jacobian, residual) at the current solution."""
        model = self.simulator.model
        problem = self.simulator.problem
        local_residual = problem.local_residual()
        num_eq = model.num_eq
        n = model.num_dof * num_eq

        residual = np.zeros((model.num_dof, num_eq))
        rows, cols, vals = [], [], []

        context = self.context
        for element in problem.elements():
            context.update_all(element)
            local_res, local_jac = self.local_linearizer.linearize(context, local_residual)

            num_primary, num_dof = local_jac.shape[:2]
            global_dofs = np.array([context.global_space_index(d, 0) for d in range(num_dof)])
            for primary_idx in range(num_primary):
                global_row = global_dofs[primary_idx]
                residual[global_row] += local_res[primary_idx]

                # block (a, b) of dof j goes to (row*num_eq + a, col*num_eq + b)
                row_ids = global_row * num_eq + np.arange(num_eq)
                col_ids = global_dofs[:, None] * num_eq + np.arange(num_eq)[None, :]
                block_rows = np.broadcast_to(row_ids[None, :, None], (num_dof, num_eq, num_eq))
                block_cols = np.broadcast_to(col_ids[:, None, :], (num_dof, num_eq, num_eq))
                rows.append(block_rows.ravel())
                cols.append(block_cols.ravel())
                vals.append(local_jac[primary_idx].ravel())

        jacobian = coo_matrix(
            (np.concatenate(vals), (np.concatenate(rows), np.concatenate(cols))),
            shape=(n, n),
        ).tocsr()
        return jacobian, residual

    def residual(self):
        """Return only the global residual, shape (num_dof, num_eq)."""
        model = self.simulator.model
        problem = self.simulator.problem
        local_residual = problem.local_residual()
        residual = np.zeros((model.num_dof, model.num_eq))

        context = self.context
        for element in problem.elements():
            context.update_all(element)
            local_res = local_residual.eval(context)
            for primary_idx in range(context.num_primary_dof(0)):
                residual[context.global_space_index(primary_idx, 0)] += local_res[primary_idx]
        return residual
