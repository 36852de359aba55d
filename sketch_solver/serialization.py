"""JSON-compatible dictionaries for sketches, options and solve results.

A gradient-descent sketch looks like::

    {
      "options": {"max_iterations": 200, "tolerance": 1e-6},
      "entities": [{"id": "p1", "kind": "point", "position": [0, 0, 0]}, ...],
      "constraints": [{"id": "d1", "type": "distance", "entities": ["p1", "p2"], "value": 5}]
    }

A 2D sketch carries ``points`` (``{"id", "x", "y"}``) and ``variables``
(``{"id", "value", "kind"}``) instead of ``entities``; its constraints name
points by id and may give a ``target`` (a number, ``[x, y]`` or ``{"x", "y"}``).
Option keys are accepted in ``snake_case`` and ``camelCase``.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import fields
from typing import Any, Dict, List, Mapping, Optional, Type, TypeVar, Union

from .logging_utils import apply_debug_logging
from .model import (
    Constraint,
    Constraint2D,
    ConstraintEntity,
    ConstraintSolution,
    EntityError,
    Point2D,
    SolveDiagnostics,
    SolveResult,
    Solver2DOptions,
    SolverOptions,
    Variable,
    Vec3,
)
from .solver import ConstraintSolver, Solver2D

logger = logging.getLogger(__name__)

Options = TypeVar("Options", SolverOptions, Solver2DOptions)

_CAMEL = re.compile(r"(?<!^)(?=[A-Z])")


class SerializationError(ValueError):
    """Raised when a payload cannot be turned into solver records."""


def _snake(key: str) -> str:
    return _CAMEL.sub("_", key).lower()


def _vec(value: Optional[Vec3]) -> Optional[List[float]]:
    return None if value is None else [value.x, value.y, value.z]


def _number(value: float) -> Optional[float]:
    # JSON has no inf/nan.
    return value if math.isfinite(value) else None


def _records(data: Mapping[str, Any], key: str) -> List[Mapping[str, Any]]:
    records = data.get(key, [])
    if not isinstance(records, list):
        raise SerializationError(f"'{key}' must be a list, got {type(records).__name__}")
    for idx, record in enumerate(records):
        if not isinstance(record, Mapping):
            raise SerializationError(f"{key}[{idx}] must be an object")
    return records


# ----------------------------------------------------------------------
# Records


def entity_to_dict(entity: ConstraintEntity) -> Dict[str, Any]:
    out: Dict[str, Any] = {"id": entity.id, "kind": entity.kind.value}
    for name in ("position", "direction", "normal"):
        vec = getattr(entity, name)
        if vec is not None:
            out[name] = _vec(vec)
    if entity.radius is not None:
        out["radius"] = entity.radius
    if entity.parameters:
        out["parameters"] = dict(entity.parameters)
    return out


def entity_from_dict(data: Mapping[str, Any]) -> ConstraintEntity:
    try:
        return ConstraintEntity(
            id=str(data["id"]),
            kind=data["kind"],
            position=data.get("position"),
            direction=data.get("direction"),
            radius=data.get("radius"),
            normal=data.get("normal"),
            parameters=dict(data.get("parameters") or {}),
        )
    except KeyError as exc:
        raise SerializationError(f"entity {data.get('id', '?')!r}: missing field {exc.args[0]!r}") from exc
    except (EntityError, TypeError, ValueError) as exc:
        raise SerializationError(f"entity {data.get('id', '?')!r}: {exc}") from exc


def constraint_to_dict(constraint: Constraint) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "id": constraint.id,
        "type": constraint.type.value,
        "entities": list(constraint.entities),
        "active": constraint.active,
    }
    if constraint.value is not None:
        out["value"] = constraint.value
    if constraint.priority:
        out["priority"] = constraint.priority
    return out


def constraint_from_dict(data: Mapping[str, Any]) -> Constraint:
    try:
        entities = data["entities"]
        if isinstance(entities, str) or not isinstance(entities, (list, tuple)):
            raise TypeError("'entities' must be a list of ids")
        return Constraint(
            id=str(data["id"]),
            type=data["type"],
            entities=tuple(str(eid) for eid in entities),
            value=data.get("value"),
            priority=float(data.get("priority", 0.0)),
            active=bool(data.get("active", True)),
        )
    except KeyError as exc:
        raise SerializationError(f"constraint {data.get('id', '?')!r}: missing field {exc.args[0]!r}") from exc
    except (TypeError, ValueError) as exc:
        raise SerializationError(f"constraint {data.get('id', '?')!r}: {exc}") from exc


def options_from_dict(
    data: Optional[Mapping[str, Any]], cls: Type[Options] = SolverOptions  # type: ignore[assignment]
) -> Options:
    """Build ``cls`` from a mapping, accepting ``maxIterations`` as well as ``max_iterations``."""

    if not data:
        return cls()
    known = {f.name for f in fields(cls)}
    kwargs: Dict[str, Any] = {}
    for key, value in data.items():
        name = _snake(str(key))
        if name not in known:
            raise SerializationError(f"unknown {cls.__name__} option {key!r}")
        kwargs[name] = value
    try:
        return cls(**kwargs)
    except (TypeError, ValueError) as exc:
        raise SerializationError(f"invalid {cls.__name__}: {exc}") from exc


# ----------------------------------------------------------------------
# Sketches


def load_sketch(data: Mapping[str, Any], options: Optional[SolverOptions] = None) -> ConstraintSolver:
    """Build a :class:`ConstraintSolver` from a sketch payload.

    ``options`` overrides the payload's own ``options`` block.
    """

    if not isinstance(data, Mapping):
        raise SerializationError("sketch must be a JSON object")
    opts = options if options is not None else options_from_dict(data.get("options"), SolverOptions)
    solver = ConstraintSolver(opts)
    solver.add_entities(entity_from_dict(record) for record in _records(data, "entities"))
    solver.add_constraints(constraint_from_dict(record) for record in _records(data, "constraints"))
    logger.info(
        "Loaded sketch: %d entities, %d constraints",
        len(solver.get_entities()),
        len(solver.get_constraints()),
    )
    return solver


def dump_sketch(solver: ConstraintSolver) -> Dict[str, Any]:
    opts = solver.options
    return {
        "options": {
            "max_iterations": opts.max_iterations,
            "tolerance": opts.tolerance,
            "damping": opts.damping,
            "method": opts.method.value,
            "verbose": opts.verbose,
        },
        "entities": [entity_to_dict(e) for e in solver.get_entities()],
        "constraints": [constraint_to_dict(c) for c in solver.get_constraints()],
    }


def _target_2d(record: Mapping[str, Any]) -> Any:
    for key in ("target", "target_value", "targetValue"):
        if key in record:
            target = record[key]
            if isinstance(target, Mapping):
                return {"x": float(target["x"]), "y": float(target["y"])}
            if isinstance(target, (list, tuple)):
                if len(target) != 2:
                    raise ValueError(f"point target needs 2 components, got {len(target)}")
                return (float(target[0]), float(target[1]))
            return None if target is None else float(target)
    return None


def load_sketch_2d(data: Mapping[str, Any], options: Optional[Solver2DOptions] = None) -> Solver2D:
    """Build a :class:`Solver2D` from a 2D sketch payload."""

    if not isinstance(data, Mapping):
        raise SerializationError("sketch must be a JSON object")
    opts = options if options is not None else options_from_dict(data.get("options"), Solver2DOptions)
    solver = Solver2D(opts)
    for record in _records(data, "points"):
        try:
            solver.add_point(
                Point2D(
                    x=float(record["x"]),
                    y=float(record["y"]),
                    id=str(record["id"]),
                    fixed=bool(record.get("fixed", False)),
                )
            )
        except KeyError as exc:
            raise SerializationError(f"point {record.get('id', '?')!r}: missing field {exc.args[0]!r}") from exc
        except (TypeError, ValueError) as exc:
            raise SerializationError(f"point {record.get('id', '?')!r}: {exc}") from exc
    for record in _records(data, "variables"):
        try:
            solver.add_variable(
                Variable(id=str(record["id"]), value=record["value"], kind=record.get("kind", "parameter"))
            )
        except KeyError as exc:
            raise SerializationError(f"variable {record.get('id', '?')!r}: missing field {exc.args[0]!r}") from exc
        except (TypeError, ValueError) as exc:
            raise SerializationError(f"variable {record.get('id', '?')!r}: {exc}") from exc
    for idx, record in enumerate(_records(data, "constraints")):
        label = record.get("id", f"#{idx}")
        try:
            solver.add_constraint(
                Constraint2D(
                    type=record["type"],
                    entities=[str(ref) for ref in record.get("entities", [])],
                    target_value=_target_2d(record),
                    id=record.get("id"),
                    enabled=bool(record.get("enabled", True)),
                )
            )
        except KeyError as exc:
            raise SerializationError(f"constraint {label!r}: missing field {exc.args[0]!r}") from exc
        except (TypeError, ValueError) as exc:
            raise SerializationError(f"constraint {label!r}: {exc}") from exc
    return solver


# ----------------------------------------------------------------------
# Results


def _diagnostics_to_dict(diagnostics: SolveDiagnostics) -> Dict[str, List[str]]:
    return {"skipped": list(diagnostics.skipped), "unsupported": list(diagnostics.unsupported)}


def solution_to_dict(solution: ConstraintSolution) -> Dict[str, Any]:
    return {
        "success": solution.success,
        "iterations": solution.iterations,
        "residual": _number(solution.residual),
        "conflicts": list(solution.conflicts) if solution.conflicts is not None else None,
        "elapsed": solution.elapsed,
        "message": solution.message,
        "entities": [entity_to_dict(e) for e in solution.updates.values()],
        "diagnostics": _diagnostics_to_dict(solution.diagnostics),
    }


def result_to_dict(result: SolveResult) -> Dict[str, Any]:
    return {
        "success": result.success,
        "iterations": result.iterations,
        "residual": _number(result.residual),
        "variables": dict(result.variables),
        "diagnostics": _diagnostics_to_dict(result.diagnostics),
    }


def to_dict(result: Union[ConstraintSolution, SolveResult]) -> Dict[str, Any]:
    if isinstance(result, ConstraintSolution):
        return solution_to_dict(result)
    return result_to_dict(result)


apply_debug_logging(globals(), logger=logger, skip={"_snake", "_vec", "_number"})


__all__ = [
    "SerializationError",
    "constraint_from_dict",
    "constraint_to_dict",
    "dump_sketch",
    "entity_from_dict",
    "entity_to_dict",
    "load_sketch",
    "load_sketch_2d",
    "options_from_dict",
    "result_to_dict",
    "solution_to_dict",
    "to_dict",
]
