"""Residuals for constraints that drive a measured value toward a target."""

from __future__ import annotations

import math
from typing import Sequence

from ..math_utils import _clamp, _distance3, _dot3, _perpendicular_distance
from ..model import ConstraintEntity, ConstraintType, EntityKind
from .base import INFEASIBLE, ConstraintEvaluator

Entities = Sequence[ConstraintEntity]

_ROUND_KINDS = frozenset({EntityKind.CIRCLE, EntityKind.ARC})


class DimensionalConstraint(ConstraintEvaluator):
    """Distance, angle, radius and equal residuals.

    The target comes from ``constraint.value`` and defaults to ``0``. Angles are
    in radians. ``equal`` compares the ``length`` parameter of two lines or the
    radii of two circles/arcs.
    """

    supported = frozenset(
        {
            ConstraintType.DISTANCE,
            ConstraintType.ANGLE,
            ConstraintType.RADIUS,
            ConstraintType.EQUAL,
        }
    )

    def _evaluate_distance(self, entities: Entities) -> float:
        if len(entities) < 2:
            return INFEASIBLE
        a, b = entities[0], entities[1]
        if a.kind is EntityKind.POINT and b.kind is EntityKind.POINT:
            if a.position is None or b.position is None:
                return INFEASIBLE
            return abs(_distance3(a.position, b.position) - self.target)
        if a.kind is EntityKind.POINT and b.kind is EntityKind.LINE:
            if a.position is None or b.position is None or b.direction is None:
                return INFEASIBLE
            actual = _perpendicular_distance(a.position, b.position, b.direction)
            return abs(actual - self.target)
        return INFEASIBLE

    def _evaluate_angle(self, entities: Entities) -> float:
        if len(entities) < 2:
            return INFEASIBLE
        a, b = entities[0], entities[1]
        if a.direction is None or b.direction is None:
            return INFEASIBLE
        current = math.acos(_clamp(_dot3(a.direction, b.direction), -1.0, 1.0))
        return abs(current - self.target)

    def _evaluate_radius(self, entities: Entities) -> float:
        if not entities:
            return INFEASIBLE
        entity = entities[0]
        if entity.kind not in _ROUND_KINDS or not entity.radius:
            return INFEASIBLE
        return abs(entity.radius - self.target)

    def _evaluate_equal(self, entities: Entities) -> float:
        if len(entities) < 2:
            return INFEASIBLE
        a, b = entities[0], entities[1]
        if a.kind is EntityKind.LINE and b.kind is EntityKind.LINE:
            if "length" not in a.parameters or "length" not in b.parameters:
                return INFEASIBLE
            return abs(a.parameters["length"] - b.parameters["length"])
        if a.kind in _ROUND_KINDS and b.kind in _ROUND_KINDS:
            if not a.radius or not b.radius:
                return INFEASIBLE
            return abs(a.radius - b.radius)
        return INFEASIBLE


__all__ = ["DimensionalConstraint"]
