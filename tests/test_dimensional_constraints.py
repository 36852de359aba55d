import math

import pytest

from sketch_solver import Constraint, ConstraintEntity, DimensionalConstraint, create_evaluator


def _point(eid, x, y, z=0.0):
    return ConstraintEntity(eid, "point", position=(x, y, z))


def _line(eid, position, direction, **params):
    return ConstraintEntity(eid, "line", position=position, direction=direction, parameters=params)


def _evaluate(ctype, *entities, value=None):
    snapshot = {e.id: e for e in entities}
    constraint = Constraint("c", ctype, [e.id for e in entities], value=value)
    return DimensionalConstraint(constraint).evaluate(snapshot)


def test_point_point_distance():
    a, b = _point("a", 0, 0), _point("b", 3, 4)

    assert _evaluate("distance", a, b, value=5.0) == pytest.approx(0.0)
    assert _evaluate("distance", a, b, value=4.0) == pytest.approx(1.0)
    # No value means a target of zero.
    assert _evaluate("distance", a, b) == pytest.approx(5.0)


def test_point_line_distance_is_perpendicular():
    residual = _evaluate("distance", _point("p", 7, 3), _line("l", (0, 0), (1, 0)), value=1.0)

    assert residual == pytest.approx(2.0)


def test_distance_between_lines_is_infeasible():
    assert _evaluate("distance", _line("l1", (0, 0), (1, 0)), _line("l2", (0, 1), (1, 0))) == math.inf


def test_angle_is_measured_in_radians():
    l1, l2 = _line("l1", (0, 0), (1, 0)), _line("l2", (0, 0), (0, 1))

    assert _evaluate("angle", l1, l2, value=math.pi / 2) == pytest.approx(0.0, abs=1e-12)
    assert _evaluate("angle", l1, l2) == pytest.approx(math.pi / 2)


def test_angle_clamps_dot_product():
    l1 = _line("l1", (0, 0), (1.0 + 1e-12, 0))

    assert _evaluate("angle", l1, _line("l2", (0, 0), (1, 0))) == 0.0


def test_radius_requires_round_entity():
    circle = ConstraintEntity("c", "circle", position=(0, 0), radius=5.0)

    assert _evaluate("radius", circle, value=3.0) == pytest.approx(2.0)
    assert _evaluate("radius", _point("p", 0, 0), value=3.0) == math.inf
    assert _evaluate("radius", ConstraintEntity("c0", "circle", radius=0.0), value=3.0) == math.inf


def test_equal_compares_line_lengths_or_radii():
    assert _evaluate("equal", _line("l1", (0, 0), (1, 0), length=3.0), _line("l2", (0, 0), (0, 1), length=5.0)) == 2.0
    arc = ConstraintEntity("a", "arc", radius=3.0, parameters={"start_angle": 0.0, "end_angle": 1.0})
    circle = ConstraintEntity("c", "circle", radius=2.0)
    assert _evaluate("equal", arc, circle) == pytest.approx(1.0)


def test_equal_with_mismatched_or_incomplete_entities_is_infeasible():
    circle = ConstraintEntity("c", "circle", radius=2.0)

    assert _evaluate("equal", _line("l1", (0, 0), (1, 0), length=3.0), circle) == math.inf
    assert _evaluate("equal", _line("l1", (0, 0), (1, 0)), _line("l2", (0, 0), (0, 1), length=5.0)) == math.inf


@pytest.mark.parametrize("ctype", ["symmetric", "fixed", "unknown"])
def test_types_without_residual_contribute_zero(ctype):
    a, b, c = _point("a", 0, 0), _point("b", 3, 4), _point("c", 9, 9)
    evaluator = create_evaluator(Constraint("x", ctype, ["a", "b", "c"]))

    assert isinstance(evaluator, DimensionalConstraint)
    assert not evaluator.is_supported
    assert evaluator.evaluate({"a": a, "b": b, "c": c}) == 0.0
