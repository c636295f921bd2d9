"""Tests for the two-point gradient calculator on a bound element context."""

import numpy as np
import pytest

# 4x3 mesh of unit cells, cell 4 is interior
INTERIOR_CELL = 4
GRADIENT = np.array([2.0, -3.0])


@pytest.fixture
def context(make_simulator):
    ctx = make_simulator().create_element_context()
    ctx.update_all(INTERIOR_CELL)
    return ctx


def linear_field(ctx):
    return lambda d: float(GRADIENT @ ctx.pos(d, 0))


class TestTwoPointGradientCalculator:
    def test_distances_of_unit_cells(self, context):
        calculator = context.gradient_calculator
        for f in range(context.num_interior_faces(0)):
            assert np.isclose(calculator.distance(f), 1.0)

    def test_linear_field_is_exact(self, context):
        calculator = context.gradient_calculator
        value = linear_field(context)
        for f in range(context.num_interior_faces(0)):
            face = context.stencil(0).interior_face(f)
            gradient = calculator.calculate_gradient(value, context, f, 0)
            assert np.isclose(gradient @ face.normal, GRADIENT @ face.normal)
            assert np.isclose(calculator.calculate_value(value, context, f, 0), GRADIENT @ face.center)

    def test_area_normal(self, context):
        face = context.stencil(0).interior_face(0)
        assert np.allclose(face.area_normal, face.area * face.normal)

    def test_face_pressure_is_midpoint_average(self, context):
        for f in range(context.num_interior_faces(0)):
            face = context.stencil(0).interior_face(f)
            p_i = context.intensive_quantities(face.interior_index, 0).pressure
            p_j = context.intensive_quantities(face.exterior_index, 0).pressure
            assert np.isclose(context.extensive_quantities(f, 0).pressure, 0.5 * (p_i + p_j))
