"""Public entry point over the gradient-descent engine."""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from ..logging_utils import apply_debug_logging
from ..model import (
    Constraint,
    ConstraintEntity,
    ConstraintId,
    ConstraintSolution,
    ConstraintType,
    EntityId,
    SolverOptions,
    Vec3,
)
from .engine import ConstraintSolverEngine

logger = logging.getLogger(__name__)


class ConstraintSolver:
    """Own a sketch's entities and constraints and solve them on request.

    Getters hand out copies, so callers can freely edit what they receive. The
    static builders return ready-to-add :class:`Constraint` records:

    >>> ConstraintSolver.distance("d1", "p1", "p2", 5.0).entities
    ('p1', 'p2')
    """

    def __init__(self, options: Optional[SolverOptions] = None) -> None:
        self._engine = ConstraintSolverEngine(options)

    @property
    def options(self) -> SolverOptions:
        return self._engine.options

    def add_entity(self, entity: ConstraintEntity) -> None:
        self._engine.add_entity(entity)

    def add_entities(self, entities: Iterable[ConstraintEntity]) -> None:
        for entity in entities:
            self._engine.add_entity(entity)

    def remove_entity(self, entity_id: EntityId) -> None:
        self._engine.remove_entity(entity_id)

    def move_entity(self, entity_id: EntityId, position: Vec3) -> None:
        self._engine.move_entity(entity_id, position)

    def add_constraint(self, constraint: Constraint) -> None:
        self._engine.add_constraint(constraint)

    def add_constraints(self, constraints: Iterable[Constraint]) -> None:
        for constraint in constraints:
            self._engine.add_constraint(constraint)

    def remove_constraint(self, constraint_id: ConstraintId) -> None:
        self._engine.remove_constraint(constraint_id)

    def set_constraint_active(self, constraint_id: ConstraintId, active: bool) -> None:
        self._engine.set_constraint_active(constraint_id, active)

    def solve(self) -> ConstraintSolution:
        return self._engine.solve()

    def commit(self, solution: ConstraintSolution) -> None:
        self._engine.commit(solution)

    def get_entities(self) -> List[ConstraintEntity]:
        return list(self._engine.get_entities().values())

    def get_constraints(self) -> List[Constraint]:
        return list(self._engine.get_constraints().values())

    def get_constraints_for_entity(self, entity_id: EntityId) -> List[Constraint]:
        return self._engine.get_constraints_for_entity(entity_id)

    def clear(self) -> None:
        self._engine.clear()

    def __repr__(self) -> str:
        return f"ConstraintSolver({self._engine!r})"

    # ------------------------------------------------------------------
    # Builders

    @staticmethod
    def coincident(id: ConstraintId, point1: EntityId, point2: EntityId) -> Constraint:
        return Constraint(id, ConstraintType.COINCIDENT, (point1, point2))

    @staticmethod
    def parallel(id: ConstraintId, line1: EntityId, line2: EntityId) -> Constraint:
        return Constraint(id, ConstraintType.PARALLEL, (line1, line2))

    @staticmethod
    def perpendicular(id: ConstraintId, line1: EntityId, line2: EntityId) -> Constraint:
        return Constraint(id, ConstraintType.PERPENDICULAR, (line1, line2))

    @staticmethod
    def distance(id: ConstraintId, entity1: EntityId, entity2: EntityId, value: float) -> Constraint:
        """Point-point or point-line distance of ``value``."""

        return Constraint(id, ConstraintType.DISTANCE, (entity1, entity2), value=value)

    @staticmethod
    def angle(id: ConstraintId, line1: EntityId, line2: EntityId, value: float) -> Constraint:
        """Angle between two line directions, in radians."""

        return Constraint(id, ConstraintType.ANGLE, (line1, line2), value=value)

    @staticmethod
    def radius(id: ConstraintId, entity: EntityId, value: float) -> Constraint:
        return Constraint(id, ConstraintType.RADIUS, (entity,), value=value)

    @staticmethod
    def horizontal(id: ConstraintId, line: EntityId) -> Constraint:
        return Constraint(id, ConstraintType.HORIZONTAL, (line,))

    @staticmethod
    def vertical(id: ConstraintId, line: EntityId) -> Constraint:
        return Constraint(id, ConstraintType.VERTICAL, (line,))

    @staticmethod
    def tangent(id: ConstraintId, circle: EntityId, line: EntityId) -> Constraint:
        """Circle-line tangency; the circle comes first."""

        return Constraint(id, ConstraintType.TANGENT, (circle, line))

    @staticmethod
    def equal(id: ConstraintId, entity1: EntityId, entity2: EntityId) -> Constraint:
        return Constraint(id, ConstraintType.EQUAL, (entity1, entity2))

    @staticmethod
    def fixed(id: ConstraintId, entity: EntityId) -> Constraint:
        return Constraint(id, ConstraintType.FIXED, (entity,))

    @staticmethod
    def concentric(id: ConstraintId, entity1: EntityId, entity2: EntityId) -> Constraint:
        return Constraint(id, ConstraintType.CONCENTRIC, (entity1, entity2))

    @staticmethod
    def symmetric(id: ConstraintId, entity1: EntityId, entity2: EntityId, axis: EntityId) -> Constraint:
        return Constraint(id, ConstraintType.SYMMETRIC, (entity1, entity2, axis))


apply_debug_logging(globals(), logger=logger, skip={"ConstraintSolver.__repr__"})


__all__ = ["ConstraintSolver"]
