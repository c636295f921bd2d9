"""Tests for the numerical linearization of local residuals."""

import numpy as np
import pytest

from disc import EvalPoint, LocalLinearizer


class TestLocalLinearizer:
    def test_context_is_restored(self, make_simulator):
        simulator = make_simulator()
        ctx = simulator.create_element_context()
        ctx.update_all(4)
        before = [ctx.intensive_quantities(d, 0).pressure for d in range(ctx.num_dof(0))]
        fluxes = [ctx.extensive_quantities(f, 0).volume_flux for f in range(ctx.num_interior_faces(0))]

        linearizer = LocalLinearizer(simulator.params)
        linearizer.linearize(ctx, simulator.problem.local_residual())

        assert ctx.saved_dof_idx is None
        assert ctx.extensive_eval_point is EvalPoint.LIVE
        assert [ctx.intensive_quantities(d, 0).pressure for d in range(ctx.num_dof(0))] == before
        assert np.allclose(
            [ctx.extensive_quantities(f, 0).volume_flux for f in range(ctx.num_interior_faces(0))], fluxes
        )

    @pytest.mark.parametrize("method", ["forward", "backward", "central"])
    def test_difference_methods_agree(self, make_simulator, method):
        reference = make_simulator(numeric_difference_method="central")
        simulator = make_simulator(numeric_difference_method=method)

        _, jac_ref = LocalLinearizer(reference.params).linearize(
            self._bound(reference), reference.problem.local_residual()
        )
        residual, jac = LocalLinearizer(simulator.params).linearize(
            self._bound(simulator), simulator.problem.local_residual()
        )

        assert residual.shape == (1, 1)
        assert jac.shape == (1, 5, 1, 1)
        assert np.allclose(jac, jac_ref, rtol=1e-4, atol=1e-12)

    def test_global_jacobian_matches_residual_differences(self, make_simulator):
        simulator = make_simulator()
        jacobian, residual = simulator.linearizer.linearize()
        jacobian = jacobian.toarray()

        dof = 5
        step = 1.0
        perturbed = simulator.model.solution(0).copy()
        perturbed[dof, 0] += step
        simulator.model.update_solution(perturbed)
        residual_step = simulator.linearizer.residual()

        column = (residual_step - residual).ravel() / step
        assert np.allclose(jacobian[:, dof], column, rtol=1e-5, atol=1e-12)

    def test_jacobian_is_symmetric(self, make_simulator):
        # constant fluid properties: two-point fluxes are symmetric in (i, j)
        jacobian, _ = make_simulator().linearizer.linearize()

        dense = jacobian.toarray()
        assert np.allclose(dense, dense.T, rtol=1e-5, atol=1e-12)

    def _bound(self, simulator):
        ctx = simulator.create_element_context()
        ctx.update_all(4)
        return ctx
