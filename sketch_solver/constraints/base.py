"""Shared plumbing for constraint evaluators."""

from __future__ import annotations

import math
from typing import List, Mapping

from ..model import Constraint, ConstraintEntity, EntityId

INFEASIBLE = math.inf

EntitySnapshot = Mapping[EntityId, ConstraintEntity]


class ConstraintEvaluator:
    """Compute the residual of one constraint against an entity snapshot.

    Evaluators are pure: they read the snapshot handed to ``evaluate`` and hold
    no state beyond the constraint they were built for. ``0`` means satisfied,
    ``inf`` means the constraint cannot be evaluated with the data available.
    """

    supported: frozenset = frozenset()

    def __init__(self, constraint: Constraint) -> None:
        self.constraint = constraint

    def evaluate(self, entities: EntitySnapshot) -> float:
        handler = getattr(self, f"_evaluate_{self.constraint.type.value}", None)
        if handler is None or self.constraint.type not in self.supported:
            return 0.0
        return float(handler(self._resolve(entities)))

    @property
    def is_supported(self) -> bool:
        return self.constraint.type in self.supported

    def _resolve(self, entities: EntitySnapshot) -> List[ConstraintEntity]:
        return [entities[eid] for eid in self.constraint.entities if eid in entities]

    @property
    def target(self) -> float:
        value = self.constraint.value
        return 0.0 if value is None else float(value)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.constraint.id!r}, {self.constraint.type.value})"
