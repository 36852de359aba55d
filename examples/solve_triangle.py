"""Example: relax a 3-4-5 triangle with the gradient-descent solver."""

from sketch_solver import ConstraintEntity, ConstraintSolver, SolverOptions


def main() -> None:
    solver = ConstraintSolver(SolverOptions(max_iterations=500, tolerance=2e-2))
    solver.add_entities(
        [
            ConstraintEntity("A", "point", position=(0.0, 0.0, 0.0)),
            ConstraintEntity("B", "point", position=(3.2, 0.1, 0.0)),
            ConstraintEntity("C", "point", position=(0.2, 3.9, 0.0)),
        ]
    )
    solver.add_constraints(
        [
            ConstraintSolver.distance("ab", "A", "B", 3.0),
            ConstraintSolver.distance("ac", "A", "C", 4.0),
            ConstraintSolver.distance("bc", "B", "C", 5.0),
        ]
    )
    solution = solver.solve()
    print("Success:", solution.success)
    print("Iterations:", solution.iterations)
    print("Residual:", solution.residual)
    for name, entity in solution.updates.items():
        x, y, z = entity.position
        print(f"{name}: ({x:.6f}, {y:.6f}, {z:.6f})")
    if solution.conflicts:
        print("Conflicts:", ", ".join(solution.conflicts))


if __name__ == "__main__":
    main()
