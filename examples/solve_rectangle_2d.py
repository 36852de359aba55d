"""Example: close a rough rectangle with the Newton-Raphson 2D solver."""

from sketch_solver import Constraint2D, Point2D, Solver2D

POINTS = {
    "p1": (0.0, 0.0),
    "p2": (3.7, 0.4),
    "p3": (4.2, 2.6),
    "p4": (-0.3, 3.1),
}


def main() -> None:
    solver = Solver2D()
    points = {name: Point2D(x, y, id=name) for name, (x, y) in POINTS.items()}
    for point in points.values():
        solver.add_point(point)

    solver.add_constraint(Constraint2D("fixed", ["p1"], target_value=(0.0, 0.0), id="anchor"))
    solver.add_constraint(Constraint2D("horizontal", ["p1", "p2"], id="bottom"))
    solver.add_constraint(Constraint2D("vertical", ["p2", "p3"], id="right"))
    solver.add_constraint(Constraint2D("horizontal", ["p3", "p4"], id="top"))
    solver.add_constraint(Constraint2D("vertical", ["p4", "p1"], id="left"))
    solver.add_constraint(Constraint2D("distance", ["p1", "p2"], target_value=4.0, id="width"))
    solver.add_constraint(Constraint2D("distance", ["p2", "p3"], target_value=3.0, id="height"))

    analysis = solver.analyze()
    print(f"Rank {analysis.rank} of {analysis.cols}, remaining DOF {analysis.dof}")

    result = solver.solve()
    print("Success:", result.success)
    print("Iterations:", result.iterations)
    print("Residual:", result.residual)
    for name, point in points.items():
        print(f"{name}: ({point.x:.6f}, {point.y:.6f})")


if __name__ == "__main__":
    main()
