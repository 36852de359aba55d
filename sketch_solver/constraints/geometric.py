"""Residuals for relational constraints that carry no dimension."""

from __future__ import annotations

from typing import Sequence

from ..math_utils import _distance3, _dot3, _perpendicular_distance
from ..model import ConstraintEntity, ConstraintType, EntityKind
from .base import INFEASIBLE, ConstraintEvaluator

Entities = Sequence[ConstraintEntity]


class GeometricConstraint(ConstraintEvaluator):
    """Coincident, parallel, perpendicular, tangent, horizontal and vertical residuals."""

    supported = frozenset(
        {
            ConstraintType.COINCIDENT,
            ConstraintType.PARALLEL,
            ConstraintType.PERPENDICULAR,
            ConstraintType.TANGENT,
            ConstraintType.HORIZONTAL,
            ConstraintType.VERTICAL,
        }
    )

    def _evaluate_coincident(self, entities: Entities) -> float:
        if len(entities) < 2:
            return INFEASIBLE
        a, b = entities[0], entities[1]
        if a.position is None or b.position is None:
            return INFEASIBLE
        return _distance3(a.position, b.position)

    def _evaluate_parallel(self, entities: Entities) -> float:
        if len(entities) < 2:
            return INFEASIBLE
        a, b = entities[0], entities[1]
        if a.direction is None or b.direction is None:
            return INFEASIBLE
        # Anti-parallel directions satisfy the constraint as well.
        return abs(abs(_dot3(a.direction, b.direction)) - 1.0)

    def _evaluate_perpendicular(self, entities: Entities) -> float:
        if len(entities) < 2:
            return INFEASIBLE
        a, b = entities[0], entities[1]
        if a.direction is None or b.direction is None:
            return INFEASIBLE
        return abs(_dot3(a.direction, b.direction))

    def _evaluate_tangent(self, entities: Entities) -> float:
        if len(entities) < 2:
            return INFEASIBLE
        circle, line = entities[0], entities[1]
        if circle.kind is not EntityKind.CIRCLE or line.kind is not EntityKind.LINE:
            return INFEASIBLE
        if not circle.radius or circle.position is None:
            return INFEASIBLE
        if line.position is None or line.direction is None:
            return INFEASIBLE
        distance = _perpendicular_distance(circle.position, line.position, line.direction)
        return abs(distance - circle.radius)

    def _evaluate_horizontal(self, entities: Entities) -> float:
        if not entities or entities[0].direction is None:
            return INFEASIBLE
        return abs(entities[0].direction.y)

    def _evaluate_vertical(self, entities: Entities) -> float:
        if not entities or entities[0].direction is None:
            return INFEASIBLE
        return abs(entities[0].direction.x)


__all__ = ["GeometricConstraint"]
