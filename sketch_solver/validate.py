from typing import Dict, Iterable, Mapping, Union

from .constraints import is_supported
from .model import CONSTRAINT_ARITY, Constraint, ConstraintEntity, ConstraintType, EntityKind

class ValidationError(Exception):
    pass

_ROUND = (EntityKind.CIRCLE, EntityKind.ARC)
_NEEDS_VALUE = (ConstraintType.DISTANCE, ConstraintType.ANGLE, ConstraintType.RADIUS)
_NEEDS_DIRECTION = (
    ConstraintType.PARALLEL,
    ConstraintType.PERPENDICULAR,
    ConstraintType.ANGLE,
    ConstraintType.HORIZONTAL,
    ConstraintType.VERTICAL,
)

def _values(items: Union[Mapping, Iterable]) -> list:
    return list(items.values()) if isinstance(items, Mapping) else list(items)

def _require(ok: bool, c: Constraint, message: str) -> None:
    if not ok:
        raise ValidationError(f'[constraint {c.id}] {c.type.value}: {message}')

def _check_fields(c: Constraint, ents) -> None:
    t = c.type
    if t in _NEEDS_VALUE:
        _require(c.value is not None, c, 'needs a target value')
    if t in _NEEDS_DIRECTION:
        for e in ents:
            _require(e.direction is not None, c, f'entity "{e.id}" has no direction')
    elif t is ConstraintType.COINCIDENT:
        for e in ents:
            _require(e.position is not None, c, f'entity "{e.id}" has no position')
    elif t is ConstraintType.DISTANCE:
        a, b = ents
        _require(a.kind is EntityKind.POINT and b.kind in (EntityKind.POINT, EntityKind.LINE), c,
                 f'expects point-point or point-line, got {a.kind.value}-{b.kind.value}')
        _require(a.position is not None and b.position is not None, c, 'entities need positions')
        if b.kind is EntityKind.LINE:
            _require(b.direction is not None, c, f'line "{b.id}" has no direction')
    elif t is ConstraintType.TANGENT:
        circle, line = ents
        _require(circle.kind is EntityKind.CIRCLE and line.kind is EntityKind.LINE, c,
                 f'expects circle then line, got {circle.kind.value}-{line.kind.value}')
        _require(bool(circle.radius) and circle.position is not None, c, f'circle "{circle.id}" needs centre and radius')
        _require(line.position is not None and line.direction is not None, c, f'line "{line.id}" needs position and direction')
    elif t is ConstraintType.RADIUS:
        e = ents[0]
        _require(e.kind in _ROUND and bool(e.radius), c, f'entity "{e.id}" is not a circle/arc with a radius')
    elif t is ConstraintType.EQUAL:
        a, b = ents
        if a.kind is EntityKind.LINE and b.kind is EntityKind.LINE:
            _require('length' in a.parameters and 'length' in b.parameters, c, 'lines need a "length" parameter')
        else:
            _require(a.kind in _ROUND and b.kind in _ROUND, c, 'expects two lines or two circles/arcs')
            _require(bool(a.radius) and bool(b.radius), c, 'circles/arcs need a radius')

def validate_sketch(entities, constraints) -> None:
    """Reject sketches the solver would only evaluate partially.

    The engines never call this; it exists for callers who want malformed
    input reported up front instead of as infinite residuals.
    """
    by_id: Dict[str, ConstraintEntity] = {}
    for e in _values(entities):
        if e.id in by_id:
            raise ValidationError(f'[entity {e.id}] duplicate entity id')
        by_id[e.id] = e

    seen = set()
    for c in _values(constraints):
        if c.id in seen:
            raise ValidationError(f'[constraint {c.id}] duplicate constraint id')
        seen.add(c.id)
        _require(c.type is not ConstraintType.UNKNOWN, c, 'unknown constraint type')
        _require(is_supported(c.type), c, 'has no residual and would be ignored by the solver')
        expect = CONSTRAINT_ARITY[c.type]
        _require(len(c.entities) == expect, c, f'expected {expect} entities, got {len(c.entities)}')
        missing = [eid for eid in c.entities if eid not in by_id]
        _require(not missing, c, f'references unknown entities {missing}')
        _check_fields(c, [by_id[eid] for eid in c.entities])

def validate_solver(solver) -> None:
    validate_sketch(solver.get_entities(), solver.get_constraints())
