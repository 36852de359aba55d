import math

import pytest

from sketch_solver import Constraint2D, Point2D, Solver, Solver2D, Solver2DOptions, Variable, VariableKind


def _solver(*points, options=None):
    solver = Solver2D(options)
    for point in points:
        solver.add_point(point)
    return solver


def test_solver_2d_satisfies_solver_protocol():
    assert isinstance(Solver2D(), Solver)


def test_add_point_registers_coordinate_variables():
    p = Point2D(1.0, 2.0, id="p")
    solver = _solver(p)

    assert solver.get_variable_values() == {"p.x": 1.0, "p.y": 2.0}


def test_add_point_requires_id():
    with pytest.raises(ValueError):
        Solver2D().add_point(Point2D(0.0, 0.0))


def test_add_entity_dispatches_by_type():
    solver = Solver2D()
    solver.add_entity(Variable("t", 0.5, VariableKind.ANGLE))
    solver.add_entity(Point2D(1.0, 1.0, id="q"))

    assert solver.get_variable_values() == {"t": 0.5, "q.x": 1.0, "q.y": 1.0}
    with pytest.raises(TypeError):
        solver.add_entity("q")


def test_empty_constraint_set_short_circuits():
    solver = _solver(Point2D(0.0, 0.0, id="p"))

    result = solver.solve()

    assert result.success
    assert result.iterations == 0
    assert result.residual == 0.0
    assert result.variables == {"p.x": 0.0, "p.y": 0.0}


def test_empty_variable_set_short_circuits():
    solver = Solver2D()
    solver.add_constraint(Constraint2D("horizontal", [Point2D(0.0, 0.0), Point2D(1.0, 1.0)]))

    result = solver.solve()

    assert result.success
    assert result.iterations == 0
    assert result.residual == 0.0
    assert result.variables == {}


def test_horizontal_already_satisfied_does_not_move():
    p1, p2 = Point2D(0.0, 5.0, id="p1"), Point2D(10.0, 5.0, id="p2")
    solver = _solver(p1, p2)
    solver.add_constraint(Constraint2D("horizontal", [p1, p2]))

    result = solver.solve()

    assert result.success
    assert result.residual <= 1e-8
    assert (p1.x, p1.y, p2.x, p2.y) == (0.0, 5.0, 10.0, 5.0)


def test_vertical_already_satisfied_does_not_move():
    p1, p2 = Point2D(5.0, 0.0, id="p1"), Point2D(5.0, 10.0, id="p2")
    solver = _solver(p1, p2)
    solver.add_constraint(Constraint2D("vertical", ["p1", "p2"]))

    result = solver.solve()

    assert result.success
    assert result.residual <= 1e-8
    assert (p1.x, p1.y, p2.x, p2.y) == (5.0, 0.0, 5.0, 10.0)


def test_horizontal_pulls_first_point_level():
    p1, p2 = Point2D(0.0, 5.0, id="p1"), Point2D(10.0, 3.0, id="p2")
    solver = _solver(p1, p2)
    solver.add_constraint(Constraint2D("horizontal", [p1, p2], id="h"))

    result = solver.solve()

    assert result.success
    # Damping 0.8 shrinks the residual by a factor of five per step.
    assert 10 <= result.iterations <= 14
    assert p1.y == pytest.approx(3.0, abs=1e-8)
    assert p2.y == 3.0
    assert result.variables["p1.y"] == p1.y


def test_coincident_moves_first_point_onto_second():
    p1, p2 = Point2D(0.0, 0.0, id="p1"), Point2D(1.0, 1.0, id="p2")
    solver = _solver(p1, p2)
    solver.add_constraint(Constraint2D("coincident", [p1, p2]))

    result = solver.solve()

    assert result.success
    assert (p1.x, p1.y) == (pytest.approx(1.0), pytest.approx(1.0))
    assert (p2.x, p2.y) == (1.0, 1.0)


def test_distance_with_fixed_anchor():
    p1, p2 = Point2D(0.0, 0.0, id="p1"), Point2D(3.0, 4.0, id="p2")
    solver = _solver(p1, p2)
    solver.add_constraint(Constraint2D("fixed", [p1], target_value=(0.0, 0.0)))
    solver.add_constraint(Constraint2D("distance", [p1, p2], target_value=10.0))

    result = solver.solve()

    assert result.success
    assert math.hypot(p2.x - p1.x, p2.y - p1.y) == pytest.approx(10.0, abs=1e-7)
    assert (p1.x, p1.y) == (pytest.approx(0.0, abs=1e-9), pytest.approx(0.0, abs=1e-9))


def test_fixed_with_target_pins_point():
    p1, p2 = Point2D(0.0, 0.0, id="p1"), Point2D(5.0, 3.0, id="p2")
    solver = _solver(p1, p2)
    solver.add_constraint(Constraint2D("fixed", [p1], target_value={"x": 0.0, "y": 0.0}))
    solver.add_constraint(Constraint2D("horizontal", [p1, p2]))

    result = solver.solve()

    assert result.success
    assert p1.y == pytest.approx(0.0, abs=1e-9)
    assert p2.y == pytest.approx(0.0, abs=1e-7)


def test_fixed_without_target_does_not_pin_point():
    # A fixed constraint with no target compares the point with itself, so it
    # never holds the point in place.
    p1, p2 = Point2D(0.0, 0.0, id="p1"), Point2D(5.0, 3.0, id="p2")
    solver = _solver(p1, p2)
    solver.add_constraint(Constraint2D("fixed", [p1], id="fix"))
    solver.add_constraint(Constraint2D("horizontal", [p1, p2], id="h"))

    result = solver.solve()

    assert result.success
    assert p1.y == pytest.approx(3.0, abs=1e-8)
    assert solver.analyze().redundant == ["fix"]


def test_unregistered_points_are_constants():
    p1 = Point2D(2.0, 0.0, id="p1")
    anchor = Point2D(0.0, 7.0)
    solver = _solver(p1)
    solver.add_constraint(Constraint2D("horizontal", [p1, anchor]))

    result = solver.solve()

    assert result.success
    assert p1.y == pytest.approx(7.0, abs=1e-8)
    assert (anchor.x, anchor.y) == (0.0, 7.0)


def test_overdetermined_consistent_system_uses_least_squares():
    p = Point2D(0.0, 0.0, id="p")
    solver = _solver(p)
    solver.add_constraint(Constraint2D("fixed", [p], target_value=(3.0, 2.0)))
    solver.add_constraint(Constraint2D("horizontal", [p, Point2D(0.0, 2.0)]))
    solver.add_constraint(Constraint2D("vertical", [p, Point2D(3.0, 0.0)]))

    result = solver.solve()

    assert result.success
    assert (p.x, p.y) == (pytest.approx(3.0), pytest.approx(2.0))


def test_contradictory_targets_settle_on_least_squares_compromise():
    p = Point2D(0.0, 0.0, id="p")
    solver = _solver(p, options=Solver2DOptions(max_iterations=20))
    solver.add_constraint(Constraint2D("fixed", [p], target_value=(0.0, 0.0)))
    solver.add_constraint(Constraint2D("fixed", [p], target_value=(2.0, 0.0)))

    result = solver.solve()

    assert not result.success
    assert result.iterations == 20
    assert p.x == pytest.approx(1.0, abs=1e-6)
    assert result.residual == pytest.approx(math.sqrt(2.0), rel=1e-6)


def test_iteration_cap_is_respected():
    p1, p2 = Point2D(0.0, 0.0, id="p1"), Point2D(100.0, 0.0, id="p2")
    solver = _solver(p1, p2)
    solver.add_constraint(Constraint2D("distance", [p1, p2], target_value=0.001))

    result = solver.solve()

    assert result.iterations <= 100


def test_constraint_with_too_few_points_is_skipped():
    p1 = Point2D(0.0, 0.0, id="p1")
    solver = _solver(p1)
    solver.add_constraint(Constraint2D("distance", [p1], target_value=2.0, id="short"))

    result = solver.solve()

    assert result.success
    assert result.diagnostics.skipped == ["short"]


def test_unknown_types_and_disabled_constraints_contribute_no_rows():
    p1, p2 = Point2D(0.0, 0.0, id="p1"), Point2D(1.0, 1.0, id="p2")
    solver = _solver(p1, p2)
    solver.add_constraint(Constraint2D("tangent", [p1, p2]))
    solver.add_constraint(Constraint2D("coincident", [p1, p2], enabled=False))

    result = solver.solve()

    assert result.success
    assert result.iterations == 0
    assert result.diagnostics.unsupported == ["tangent#0"]
    assert (p1.x, p1.y) == (0.0, 0.0)


def test_set_initial_values_ignores_unknown_ids():
    p = Point2D(0.0, 0.0, id="p")
    t = Variable("t", 1.0)
    solver = _solver(p)
    solver.add_variable(t)

    solver.set_initial_values({"p.x": 4.0, "t": 2.5, "nope": 9.0})

    assert solver.get_variable_values() == {"p.x": 4.0, "p.y": 0.0, "t": 2.5}
    assert p.x == 4.0
    assert t.value == 2.5


def test_clear_discards_everything():
    p1, p2 = Point2D(0.0, 0.0, id="p1"), Point2D(1.0, 1.0, id="p2")
    solver = _solver(p1, p2)
    solver.add_constraint(Constraint2D("coincident", [p1, p2]))

    solver.clear()

    assert solver.get_variable_values() == {}
    assert solver.solve().iterations == 0


def test_analyze_reports_rank_dof_and_redundant_constraints():
    p1, p2 = Point2D(0.0, 5.0, id="p1"), Point2D(10.0, 3.0, id="p2")
    solver = _solver(p1, p2)
    solver.add_constraint(Constraint2D("horizontal", [p1, p2], id="h1"))
    solver.add_constraint(Constraint2D("horizontal", [p1, p2], id="h2"))

    analysis = solver.analyze()

    assert (analysis.rows, analysis.cols, analysis.rank) == (2, 4, 1)
    assert analysis.dof == 3
    assert analysis.redundant == ["h2"]
