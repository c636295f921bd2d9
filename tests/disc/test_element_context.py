"""Tests for the element context: caching, single-dof updates and evaluation points."""

import numpy as np
import pytest

from disc import EvalPoint


def iq_state(iq):
    return (iq.pressure, iq.head, iq.permeability, iq.density, iq.viscosity, iq.specific_storage)


# Cell 4 of the 4x3 mesh is interior, cell 0 is a corner.
INTERIOR_CELL = 4
CORNER_CELL = 0


class TestBinding:
    """Tests for binding a context to elements."""

    def test_interior_element_sizes(self, make_simulator):
        ctx = make_simulator().create_element_context()
        ctx.update_all(INTERIOR_CELL)

        assert ctx.element == INTERIOR_CELL
        assert ctx.num_dof(0) == 5
        assert ctx.num_primary_dof(0) == 1
        assert ctx.num_interior_faces(0) == 4
        assert ctx.num_boundary_faces(0) == 0
        assert not ctx.on_boundary()
        assert ctx.global_space_index(0, 0) == INTERIOR_CELL

    def test_rebinding_resizes_storage(self, make_simulator):
        ctx = make_simulator().create_element_context()
        ctx.update_all(INTERIOR_CELL)
        ctx.update_all(CORNER_CELL)

        assert ctx.num_dof(0) == 3
        assert ctx.num_interior_faces(0) == 2
        assert ctx.num_boundary_faces(0) == 2
        assert ctx.on_boundary()
        with pytest.raises(IndexError):
            ctx.intensive_quantities(3, 0)

    def test_topology_update_keeps_only_topology(self, make_simulator):
        ctx = make_simulator().create_element_context()
        ctx.update_all(INTERIOR_CELL)
        ctx.update_stencil_topology(CORNER_CELL)

        assert ctx.element == CORNER_CELL
        assert ctx.num_dof(0) == 3
        assert ctx.global_space_index(0, 0) == CORNER_CELL
        with pytest.raises(RuntimeError):
            ctx.pos(0, 0)
        with pytest.raises(RuntimeError):
            ctx.num_interior_faces(0)

        ctx.update_stencil(CORNER_CELL)
        assert np.allclose(ctx.pos(0, 0), [0.5, 0.5])

    def test_unbound_context_raises(self, make_simulator):
        ctx = make_simulator().create_element_context()

        with pytest.raises(RuntimeError):
            ctx.update_all_intensive_quantities()
        with pytest.raises(RuntimeError):
            ctx.intensive_quantities(0, 0)

    def test_index_errors(self, make_simulator):
        ctx = make_simulator().create_element_context()
        ctx.update_all(INTERIOR_CELL)

        with pytest.raises(IndexError):
            ctx.intensive_quantities(5, 0)
        with pytest.raises(IndexError):
            ctx.primary_vars(0, 2)
        with pytest.raises(IndexError):
            ctx.extensive_quantities(4, 0)
        with pytest.raises(IndexError):
            ctx.update_intensive_quantities_at(-1)

    def test_volume_and_position(self, make_simulator):
        ctx = make_simulator().create_element_context()
        ctx.update_all(INTERIOR_CELL)

        # cell (1, 1) of a unit-spaced 4x3 mesh
        assert np.allclose(ctx.pos(0, 0), [1.5, 1.5])
        assert ctx.dof_total_volume(0, 0) == pytest.approx(1.0)


class TestIntensiveQuantities:
    """Cache coherence and single-dof recompute."""

    def test_quantities_follow_primary_vars(self, make_simulator):
        ctx = make_simulator().create_element_context()
        ctx.update_all(INTERIOR_CELL)

        for time_idx in range(2):
            for dof_idx in range(ctx.num_dof(time_idx)):
                iq = ctx.intensive_quantities(dof_idx, time_idx)
                assert iq.pressure == ctx.primary_vars(dof_idx, time_idx)[0]

    def test_cache_hits_equal_fresh_computation(self, make_simulator):
        cached = make_simulator()
        fresh = make_simulator(enable_intensive_quantity_cache=False)

        # the first element fills the cache for its neighbors
        cached.create_element_context().update_all(1)
        ctx = cached.create_element_context()
        hits_before = cached.model.intensive_quantity_cache.hits
        ctx.update_all(INTERIOR_CELL)
        assert cached.model.intensive_quantity_cache.hits > hits_before

        ref = fresh.create_element_context()
        ref.update_all(INTERIOR_CELL)
        for time_idx in range(2):
            for dof_idx in range(ctx.num_dof(time_idx)):
                assert iq_state(ctx.intensive_quantities(dof_idx, time_idx)) == iq_state(
                    ref.intensive_quantities(dof_idx, time_idx)
                )

    def test_context_does_not_alias_cache(self, make_simulator):
        simulator = make_simulator()
        ctx = simulator.create_element_context()
        ctx.update_all(INTERIOR_CELL)

        ctx.intensive_quantities(0, 0).pressure = -1.0
        cached = simulator.model.intensive_quantity_cache.peek(INTERIOR_CELL, 0)
        assert cached.pressure != -1.0

    def test_update_solution_invalidates_current_level(self, make_simulator):
        simulator = make_simulator()
        ctx = simulator.create_element_context()
        ctx.update_all(INTERIOR_CELL)

        new_solution = simulator.model.solution(0) + 1.0
        simulator.model.update_solution(new_solution)
        ctx.update_all(INTERIOR_CELL)

        assert ctx.intensive_quantities(0, 0).pressure == new_solution[INTERIOR_CELL, 0]
        assert simulator.model.intensive_quantity_cache.is_up_to_date(INTERIOR_CELL, 1)

    def test_single_dof_update_matches_full_update(self, make_simulator):
        simulator = make_simulator(require_center_gradients=True)
        ctx = simulator.create_element_context()
        ctx.update_all(INTERIOR_CELL)

        dof_idx = 2
        perturbed = ctx.primary_vars(dof_idx, 0) + 250.0
        ctx.update_intensive_quantities(perturbed, dof_idx, 0)

        reference = make_simulator(require_center_gradients=True, enable_intensive_quantity_cache=False)
        reference.model.solution(0)[ctx.global_space_index(dof_idx, 0)] = perturbed
        ref = reference.create_element_context()
        ref.update_all(INTERIOR_CELL)

        for d in range(ctx.num_dof(0)):
            iq, ref_iq = ctx.intensive_quantities(d, 0), ref.intensive_quantities(d, 0)
            assert iq_state(iq) == iq_state(ref_iq)
            assert np.allclose(iq.pressure_gradient, ref_iq.pressure_gradient)

    def test_center_gradients_only_on_request(self, make_simulator):
        ctx = make_simulator().create_element_context()
        ctx.update_all(INTERIOR_CELL)

        assert not ctx.stencil(0).has_center_gradients
        assert ctx.intensive_quantities(0, 0).pressure_gradient is None

    def test_thermodynamic_hints(self, make_simulator):
        simulator = make_simulator(enable_thermodynamic_hints=True)
        ctx = simulator.create_element_context()
        ctx.update_all(INTERIOR_CELL)
        assert ctx.thermodynamic_hint(0, 0) is None

        ctx.update_all(INTERIOR_CELL)
        hint = ctx.thermodynamic_hint(0, 0)
        assert hint is simulator.model.intensive_quantity_cache.peek(INTERIOR_CELL, 0)


class TestSaveRestore:
    """Saving and restoring the intensive quantities of a dof."""

    def test_save_restore_is_idempotent(self, make_simulator):
        ctx = make_simulator().create_element_context()
        ctx.update_all(INTERIOR_CELL)
        before = iq_state(ctx.intensive_quantities(1, 0))
        pv_before = ctx.primary_vars(1, 0).copy()

        ctx.save_intensive_quantities(1)
        ctx.restore_intensive_quantities(1)

        assert iq_state(ctx.intensive_quantities(1, 0)) == before
        assert np.array_equal(ctx.primary_vars(1, 0), pv_before)
        assert ctx.saved_dof_idx is None

    def test_restore_undoes_perturbation(self, make_simulator):
        ctx = make_simulator().create_element_context()
        ctx.update_all(INTERIOR_CELL)
        before = iq_state(ctx.intensive_quantities(1, 0))
        pv_before = ctx.primary_vars(1, 0).copy()

        ctx.save_intensive_quantities(1)
        ctx.update_intensive_quantities(pv_before + 1000.0, 1, 0)
        assert ctx.intensive_quantities(1, 0).pressure == pv_before[0] + 1000.0
        assert iq_state(ctx.eval_point_intensive_quantities(1, 0)) == before

        ctx.restore_intensive_quantities(1)
        assert iq_state(ctx.intensive_quantities(1, 0)) == before
        assert np.array_equal(ctx.primary_vars(1, 0), pv_before)

    def test_restore_without_save_raises(self, make_simulator):
        ctx = make_simulator().create_element_context()
        ctx.update_all(INTERIOR_CELL)

        with pytest.raises(RuntimeError):
            ctx.restore_intensive_quantities(0)

    def test_saving_second_dof_raises(self, make_simulator):
        ctx = make_simulator().create_element_context()
        ctx.update_all(INTERIOR_CELL)
        ctx.save_intensive_quantities(0)

        with pytest.raises(RuntimeError):
            ctx.save_intensive_quantities(1)
        with pytest.raises(RuntimeError):
            ctx.restore_intensive_quantities(1)

    def test_saving_same_dof_twice_raises(self, make_simulator):
        ctx = make_simulator().create_element_context()
        ctx.update_all(INTERIOR_CELL)
        before = iq_state(ctx.intensive_quantities(1, 0))

        ctx.save_intensive_quantities(1)
        ctx.update_intensive_quantities(ctx.primary_vars(1, 0) + 1000.0, 1, 0)
        with pytest.raises(RuntimeError):
            ctx.save_intensive_quantities(1)

        # the first snapshot survives the rejected save
        ctx.restore_intensive_quantities(1)
        assert iq_state(ctx.intensive_quantities(1, 0)) == before


class TestEvaluationPoint:
    """Saved extensive quantities act as evaluation point."""

    def test_saved_extensive_quantities_are_a_snapshot(self, make_simulator):
        ctx = make_simulator().create_element_context()
        ctx.update_all(INTERIOR_CELL)
        num_faces = ctx.num_interior_faces(0)
        saved_fluxes = [ctx.extensive_quantities(f, 0).volume_flux for f in range(num_faces)]

        ctx.save_extensive_quantities()
        assert ctx.extensive_eval_point is EvalPoint.SAVED

        ctx.update_intensive_quantities(ctx.primary_vars(0, 0) + 1e4, 0, 0)
        ctx.update_all_extensive_quantities()
        live_fluxes = [ctx.extensive_quantities(f, 0).volume_flux for f in range(num_faces)]
        assert not np.allclose(live_fluxes, saved_fluxes)

        for f in range(num_faces):
            assert ctx.eval_point_extensive_quantities(f, 0).volume_flux == saved_fluxes[f]

        ctx.restore_extensive_quantities()
        assert ctx.extensive_eval_point is EvalPoint.LIVE
        for f in range(num_faces):
            assert ctx.eval_point_extensive_quantities(f, 0) is ctx.extensive_quantities(f, 0)

    def test_update_stencil_resets_evaluation_point(self, make_simulator):
        ctx = make_simulator().create_element_context()
        ctx.update_all(INTERIOR_CELL)
        ctx.save_extensive_quantities()
        ctx.save_intensive_quantities(0)

        ctx.update_all(CORNER_CELL)

        assert ctx.extensive_eval_point is EvalPoint.LIVE
        assert ctx.saved_dof_idx is None

    def test_upstream_follows_evaluation_point(self, make_simulator):
        ctx = make_simulator().create_element_context()
        ctx.update_all(INTERIOR_CELL)

        for f in range(ctx.num_interior_faces(0)):
            face = ctx.stencil(0).interior_face(f)
            extq = ctx.extensive_quantities(f, 0)
            p_in = ctx.intensive_quantities(face.interior_index, 0).pressure
            p_out = ctx.intensive_quantities(face.exterior_index, 0).pressure
            expected = face.interior_index if p_in >= p_out else face.exterior_index
            assert extq.upstream_index == expected
