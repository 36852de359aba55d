"""Gradient-descent engine for general (3D) sketch entities."""

from __future__ import annotations

import copy
import logging
import math
import time
from dataclasses import replace
from typing import Dict, Iterator, List, Optional, Tuple, Union

from ..constraints import Evaluator, create_evaluator
from ..logging_utils import apply_debug_logging
from ..math_utils import _with_component
from ..model import (
    Constraint,
    ConstraintEntity,
    ConstraintId,
    ConstraintSolution,
    EntityId,
    SolveDiagnostics,
    SolveMethod,
    SolverOptions,
    Vec3,
)
from .config import get_default_solver_options

logger = logging.getLogger(__name__)

# Degree of freedom key: ("position", axis) or ("parameter", name).
DofKey = Tuple[str, Union[int, str]]
EntityMap = Dict[EntityId, ConstraintEntity]
Gradients = Dict[EntityId, Dict[DofKey, float]]

_FD_STEP = 1e-5
_STEP_SCALE = 0.01
_CONFLICT_FACTOR = 10.0
_MAX_CONFLICTS = 5


def _perturbations(entity: ConstraintEntity, delta: float) -> Iterator[Tuple[DofKey, ConstraintEntity]]:
    """Yield each degree of freedom of ``entity`` with a copy shifted along it."""

    position = entity.position
    if position is not None:
        for axis in range(3):
            yield ("position", axis), replace(entity, position=_with_component(position, axis, delta))
    for key, value in entity.parameters.items():
        params = dict(entity.parameters)
        params[key] = value + delta
        yield ("parameter", key), replace(entity, parameters=params)


class ConstraintSolverEngine:
    """Own a set of entities and constraints and relax them by gradient descent.

    Each iteration estimates, by forward differences, how every active
    constraint's residual changes with each position component and named
    parameter of the entities it references, then steps every degree of freedom
    against its accumulated gradient. Directions and radii are not degrees of
    freedom and are never touched.
    """

    def __init__(self, options: Optional[SolverOptions] = None) -> None:
        self._options = copy.deepcopy(options) if options is not None else get_default_solver_options()
        self._entities: EntityMap = {}
        self._constraints: Dict[ConstraintId, Constraint] = {}
        if self._options.method is not SolveMethod.GRADIENT_DESCENT:
            logger.warning(
                "Solve method %r is not implemented; the gradient-descent path will be used",
                self._options.method.value,
            )

    @property
    def options(self) -> SolverOptions:
        return copy.deepcopy(self._options)

    # ------------------------------------------------------------------
    # Entity / constraint bookkeeping

    def add_entity(self, entity: ConstraintEntity) -> None:
        self._entities[entity.id] = entity.copy()

    def remove_entity(self, entity_id: EntityId) -> None:
        self._entities.pop(entity_id, None)
        dropped = [cid for cid, c in self._constraints.items() if c.references(entity_id)]
        for cid in dropped:
            del self._constraints[cid]
        if dropped:
            logger.debug("Removed %d constraint(s) referencing %s: %s", len(dropped), entity_id, dropped)

    def move_entity(self, entity_id: EntityId, position: Vec3) -> None:
        try:
            entity = self._entities[entity_id]
        except KeyError as exc:
            raise KeyError(f"unknown entity {entity_id!r}") from exc
        entity.position = Vec3.coerce(position)

    def add_constraint(self, constraint: Constraint) -> None:
        self._constraints[constraint.id] = constraint.copy()

    def remove_constraint(self, constraint_id: ConstraintId) -> None:
        self._constraints.pop(constraint_id, None)

    def set_constraint_active(self, constraint_id: ConstraintId, active: bool) -> None:
        try:
            self._constraints[constraint_id].active = bool(active)
        except KeyError as exc:
            raise KeyError(f"unknown constraint {constraint_id!r}") from exc

    def get_entities(self) -> EntityMap:
        return {eid: entity.copy() for eid, entity in self._entities.items()}

    def get_constraints(self) -> Dict[ConstraintId, Constraint]:
        return {cid: constraint.copy() for cid, constraint in self._constraints.items()}

    def get_constraints_for_entity(self, entity_id: EntityId) -> List[Constraint]:
        return [c.copy() for c in self._constraints.values() if c.references(entity_id)]

    def clear(self) -> None:
        """Drop every entity and every constraint, dangling ones included."""

        logger.debug("Clearing %d entities / %d constraints", len(self._entities), len(self._constraints))
        self._entities.clear()
        self._constraints.clear()

    def commit(self, solution: ConstraintSolution) -> None:
        """Store a solution's entities so the next solve starts from them."""

        for eid, entity in solution.updates.items():
            if eid in self._entities:
                self._entities[eid] = entity.copy()

    # ------------------------------------------------------------------
    # Solving

    def solve(self) -> ConstraintSolution:
        started = time.perf_counter()
        opts = self._options
        working: EntityMap = {eid: entity.copy() for eid, entity in self._entities.items()}
        plan, diagnostics = self._plan(working)

        logger.info(
            "Solving %d entities / %d evaluable constraints (max_iterations=%d tol=%.1e damping=%.3g)",
            len(working),
            len(plan),
            opts.max_iterations,
            opts.tolerance,
            opts.damping,
        )

        if not plan:
            return ConstraintSolution(
                success=True,
                iterations=0,
                residual=0.0,
                updates=working,
                elapsed=time.perf_counter() - started,
                diagnostics=diagnostics,
            )

        log_iteration = logger.info if opts.verbose else logger.debug
        iterations = 0
        residual = self._compute_residual(plan, working)
        # ``not residual <= tol`` keeps iterating on NaN as well as on large residuals.
        while iterations < opts.max_iterations and not residual <= opts.tolerance:
            gradients = self._compute_gradients(plan, working)
            updates = self._compute_updates(gradients)
            self._apply_updates(working, updates)
            residual = self._compute_residual(plan, working)
            iterations += 1
            log_iteration("Iteration %d: residual = %.6g", iterations, residual)

        success = residual <= opts.tolerance
        conflicts = None if success else self._detect_conflicts(plan, working)
        elapsed = time.perf_counter() - started
        message = None
        if not success:
            message = (
                f"did not reach tolerance {opts.tolerance:.1e} within {iterations} iteration(s); "
                f"residual {residual:.3e}"
            )

        logger.info(
            "Solver %s in %d iteration(s) (%.1f ms), residual=%.3e%s",
            "converged" if success else "failed",
            iterations,
            elapsed * 1000.0,
            residual,
            f", conflicts={conflicts}" if conflicts else "",
        )

        return ConstraintSolution(
            success=success,
            iterations=iterations,
            residual=residual,
            updates=working,
            conflicts=conflicts,
            elapsed=elapsed,
            message=message,
            diagnostics=diagnostics,
        )

    def _plan(self, entities: EntityMap) -> Tuple[List[Tuple[Constraint, Evaluator]], SolveDiagnostics]:
        diagnostics = SolveDiagnostics()
        plan: List[Tuple[Constraint, Evaluator]] = []
        for constraint in self._constraints.values():
            if not constraint.active:
                continue
            missing = [eid for eid in constraint.entities if eid not in entities]
            if missing:
                logger.debug("Skipping %s: unresolved entities %s", constraint.id, missing)
                diagnostics.skipped.append(constraint.id)
                continue
            evaluator = create_evaluator(constraint)
            if not evaluator.is_supported:
                diagnostics.unsupported.append(constraint.id)
            plan.append((constraint, evaluator))
        if diagnostics.unsupported:
            logger.info(
                "Constraints without a residual (treated as satisfied): %s", diagnostics.unsupported
            )
        return plan, diagnostics

    def _compute_gradients(
        self, plan: List[Tuple[Constraint, Evaluator]], entities: EntityMap
    ) -> Gradients:
        gradients: Gradients = {}
        # One probe map per pass; every perturbed entry is restored before the next.
        probe: EntityMap = dict(entities)
        for constraint, evaluator in plan:
            base = evaluator.evaluate(entities)
            if not math.isfinite(base):
                continue
            for eid in dict.fromkeys(constraint.entities):
                entity = entities[eid]
                entity_gradients = gradients.setdefault(eid, {})
                for dof, shifted in _perturbations(entity, _FD_STEP):
                    probe[eid] = shifted
                    perturbed = evaluator.evaluate(probe)
                    probe[eid] = entity
                    if not math.isfinite(perturbed):
                        continue
                    slope = (perturbed - base) / _FD_STEP
                    entity_gradients[dof] = entity_gradients.get(dof, 0.0) + slope
        return gradients

    def _compute_updates(self, gradients: Gradients) -> Gradients:
        step = self._options.damping * _STEP_SCALE
        return {
            eid: {dof: -gradient * step for dof, gradient in entity_gradients.items()}
            for eid, entity_gradients in gradients.items()
        }

    def _apply_updates(self, entities: EntityMap, updates: Gradients) -> None:
        for eid, entity_updates in updates.items():
            entity = entities.get(eid)
            if entity is None or not entity_updates:
                continue
            position = entity.position
            if position is not None:
                position = Vec3(
                    position.x + entity_updates.get(("position", 0), 0.0),
                    position.y + entity_updates.get(("position", 1), 0.0),
                    position.z + entity_updates.get(("position", 2), 0.0),
                )
            parameters = dict(entity.parameters)
            for (kind, key), delta in entity_updates.items():
                if kind == "parameter":
                    parameters[str(key)] = parameters.get(str(key), 0.0) + delta
            entities[eid] = replace(entity, position=position, parameters=parameters)

    def _compute_residual(self, plan: List[Tuple[Constraint, Evaluator]], entities: EntityMap) -> float:
        total = 0.0
        for _, evaluator in plan:
            error = evaluator.evaluate(entities)
            total += error * error
        return math.sqrt(total / len(plan)) if plan else 0.0

    def _detect_conflicts(
        self, plan: List[Tuple[Constraint, Evaluator]], entities: EntityMap
    ) -> List[ConstraintId]:
        threshold = self._options.tolerance * _CONFLICT_FACTOR
        offenders: List[Tuple[ConstraintId, float]] = []
        for constraint, evaluator in plan:
            error = evaluator.evaluate(entities)
            if error > threshold:
                offenders.append((constraint.id, error))
        offenders.sort(key=lambda item: item[1], reverse=True)
        return [cid for cid, _ in offenders[:_MAX_CONFLICTS]]

    def __repr__(self) -> str:
        return (
            f"ConstraintSolverEngine(entities={len(self._entities)}, "
            f"constraints={len(self._constraints)}, method={self._options.method.value})"
        )


apply_debug_logging(
    globals(),
    logger=logger,
    skip={"_perturbations", "ConstraintSolverEngine.__repr__"},
)


__all__ = ["ConstraintSolverEngine"]
