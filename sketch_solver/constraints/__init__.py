"""Constraint evaluators and the dispatch used by the gradient-descent engine."""

from __future__ import annotations

from typing import Union

from ..model import Constraint, ConstraintType
from .base import INFEASIBLE, ConstraintEvaluator, EntitySnapshot
from .dimensional import DimensionalConstraint
from .geometric import GeometricConstraint

# Types routed to the geometric family. ``concentric`` is routed there but has
# no residual yet, so it evaluates to zero.
GEOMETRIC_TYPES = frozenset(
    {
        ConstraintType.COINCIDENT,
        ConstraintType.PARALLEL,
        ConstraintType.PERPENDICULAR,
        ConstraintType.TANGENT,
        ConstraintType.HORIZONTAL,
        ConstraintType.VERTICAL,
        ConstraintType.CONCENTRIC,
    }
)

Evaluator = Union[GeometricConstraint, DimensionalConstraint]


def create_evaluator(constraint: Constraint) -> Evaluator:
    """Return the evaluator family responsible for ``constraint.type``."""

    if constraint.type in GEOMETRIC_TYPES:
        return GeometricConstraint(constraint)
    return DimensionalConstraint(constraint)


def is_supported(constraint_type: ConstraintType) -> bool:
    """``True`` when a residual exists for ``constraint_type``."""

    constraint_type = ConstraintType(constraint_type)
    return (
        constraint_type in GeometricConstraint.supported
        or constraint_type in DimensionalConstraint.supported
    )


__all__ = [
    "ConstraintEvaluator",
    "DimensionalConstraint",
    "EntitySnapshot",
    "Evaluator",
    "GEOMETRIC_TYPES",
    "GeometricConstraint",
    "INFEASIBLE",
    "create_evaluator",
    "is_supported",
]
