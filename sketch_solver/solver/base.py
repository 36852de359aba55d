"""Capability shared by every solving engine."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Solver(Protocol):
    """Anything that accepts entities and constraints and can be solved.

    ``ConstraintSolverEngine``/``ConstraintSolver`` (general 3D entities,
    gradient descent) and ``Solver2D`` (2D points and scalar variables,
    Newton-Raphson) both satisfy this protocol; callers pick one by the
    dimensionality of their sketch.
    """

    def add_entity(self, entity: Any) -> None:
        ...

    def add_constraint(self, constraint: Any) -> None:
        ...

    def solve(self) -> Any:
        ...
