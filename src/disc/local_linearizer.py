"""Numerical differentiation of the local residual of an element."""

import numpy as np


class LocalLinearizer:
    """Computes the local Jacobian of an element by finite differences.

    Every primary variable of every dof in the stencil is perturbed in turn.
    Only the perturbed dof is recomputed (``update_intensive_quantities``),
    all others keep their quantities; the unperturbed state is brought back
    with ``restore_intensive_quantities`` instead of recomputing the element.

    Parameters
    ----------
    params : DiscretizationParameters
        Uses ``numeric_difference_method`` and ``base_epsilon``.
    """

    def __init__(self, params):
        self.params = params
        self.residual = None
        self.jacobian = None

    def numeric_epsilon(self, context, dof_idx, pv_idx) -> float:
        """Step size used to perturb one primary variable."""
        value = context.primary_vars(dof_idx, 0)[pv_idx]
        return self.params.base_epsilon * max(abs(value), 1.0)

    def linearize(self, context, local_residual, time_step_size=None):
        """Linearize the residual of the element bound to ``context``.

        The context must be fully updated (``update_all``).

        Returns
        -------
        residual : np.ndarray
            Shape (num_primary_dof, num_eq).
        jacobian : np.ndarray
            Shape (num_primary_dof, num_dof, num_eq, num_eq); entry
            ``[i, j, a, b]`` is d residual[i, a] / d primary_vars[j, b].
        """
        method = self.params.numeric_difference_method
        num_dof = context.num_dof(0)
        num_primary = context.num_primary_dof(0)
        num_eq = context.model.num_eq

        residual = local_residual.eval(context, time_step_size)
        jacobian = np.zeros((num_primary, num_dof, num_eq, num_eq))

        # upstream decisions are taken at the unperturbed state
        context.save_extensive_quantities()

        for dof_idx in range(num_dof):
            context.save_intensive_quantities(dof_idx)
            primary_vars = context.primary_vars(dof_idx, 0).copy()

            for pv_idx in range(num_eq):
                eps = self.numeric_epsilon(context, dof_idx, pv_idx)

                if method == "backward":
                    residual_plus = residual
                else:
                    perturbed = primary_vars.copy()
                    perturbed[pv_idx] += eps
                    residual_plus = self._eval_perturbed(context, local_residual, perturbed, dof_idx, time_step_size)

                if method == "forward":
                    residual_minus = residual
                else:
                    perturbed = primary_vars.copy()
                    perturbed[pv_idx] -= eps
                    residual_minus = self._eval_perturbed(context, local_residual, perturbed, dof_idx, time_step_size)

                delta = 2.0 * eps if method == "central" else eps
                jacobian[:, dof_idx, :, pv_idx] = (residual_plus - residual_minus) / delta

            context.restore_intensive_quantities(dof_idx)
            # gradients of the other dofs still see the perturbed value
            context.update_intensive_quantity_gradients(0)

        context.restore_extensive_quantities()
        context.update_all_extensive_quantities()

        self.residual = residual
        self.jacobian = jacobian
        return residual, jacobian

    def _eval_perturbed(self, context, local_residual, primary_vars, dof_idx, time_step_size):
        context.update_intensive_quantities(primary_vars, dof_idx, 0)
        context.update_all_extensive_quantities()
        return local_residual.eval(context, time_step_size)
