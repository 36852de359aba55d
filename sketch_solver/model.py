"""Core data structures shared by the evaluators and both solving engines."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Mapping, NamedTuple, Optional, Tuple, Union

EntityId = str
ConstraintId = str


class EntityError(ValueError):
    """Raised when an entity is constructed with parameters its kind does not carry."""


class EntityKind(str, Enum):
    POINT = "point"
    LINE = "line"
    CIRCLE = "circle"
    ARC = "arc"
    SPLINE = "spline"
    PLANE = "plane"


class ConstraintType(str, Enum):
    COINCIDENT = "coincident"
    PARALLEL = "parallel"
    PERPENDICULAR = "perpendicular"
    TANGENT = "tangent"
    CONCENTRIC = "concentric"
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"
    DISTANCE = "distance"
    ANGLE = "angle"
    RADIUS = "radius"
    EQUAL = "equal"
    SYMMETRIC = "symmetric"
    FIXED = "fixed"
    UNKNOWN = "unknown"

    @classmethod
    def _missing_(cls, value: object) -> "ConstraintType":
        if isinstance(value, str):
            lowered = value.strip().lower()
            for member in cls:
                if member.value == lowered:
                    return member
        return cls.UNKNOWN


class VariableKind(str, Enum):
    X = "x"
    Y = "y"
    ANGLE = "angle"
    DISTANCE = "distance"
    PARAMETER = "parameter"


class SolveMethod(str, Enum):
    NEWTON_RAPHSON = "newton-raphson"
    GRADIENT_DESCENT = "gradient-descent"
    HYBRID = "hybrid"


# Number of entity ids each constraint type expects.
CONSTRAINT_ARITY: Mapping[ConstraintType, int] = {
    ConstraintType.COINCIDENT: 2,
    ConstraintType.PARALLEL: 2,
    ConstraintType.PERPENDICULAR: 2,
    ConstraintType.TANGENT: 2,
    ConstraintType.CONCENTRIC: 2,
    ConstraintType.HORIZONTAL: 1,
    ConstraintType.VERTICAL: 1,
    ConstraintType.DISTANCE: 2,
    ConstraintType.ANGLE: 2,
    ConstraintType.RADIUS: 1,
    ConstraintType.EQUAL: 2,
    ConstraintType.SYMMETRIC: 3,
    ConstraintType.FIXED: 1,
}

# Scalar parameters each entity kind may carry. ``None`` leaves the key set open.
PARAMETER_KEYS: Mapping[EntityKind, Optional[FrozenSet[str]]] = {
    EntityKind.POINT: frozenset(),
    EntityKind.LINE: frozenset({"length"}),
    EntityKind.CIRCLE: frozenset(),
    EntityKind.ARC: frozenset({"start_angle", "end_angle"}),
    EntityKind.SPLINE: None,
    EntityKind.PLANE: frozenset({"offset"}),
}


class Vec3(NamedTuple):
    x: float
    y: float
    z: float = 0.0

    @classmethod
    def coerce(cls, value: Any) -> "Vec3":
        """Build a ``Vec3`` from a vector, a 2/3-sequence or an ``{x, y, z}`` mapping."""

        if isinstance(value, Vec3):
            return value
        if isinstance(value, Mapping):
            return cls(float(value["x"]), float(value["y"]), float(value.get("z", 0.0)))
        if isinstance(value, (str, bytes)) or not hasattr(value, "__iter__"):
            raise TypeError(f"cannot interpret {value!r} as a 3D vector")
        components = [float(v) for v in value]
        if len(components) not in (2, 3):
            raise TypeError(f"expected 2 or 3 components, got {len(components)}")
        return cls(*components)


def _optional_vec(value: Any) -> Optional[Vec3]:
    return None if value is None else Vec3.coerce(value)


@dataclass
class ConstraintEntity:
    """Geometric entity whose numeric fields the solver adjusts in place."""

    id: EntityId
    kind: EntityKind
    position: Optional[Vec3] = None
    direction: Optional[Vec3] = None
    radius: Optional[float] = None
    normal: Optional[Vec3] = None
    parameters: Dict[str, float] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.kind = EntityKind(self.kind)
        self.position = _optional_vec(self.position)
        self.direction = _optional_vec(self.direction)
        self.normal = _optional_vec(self.normal)
        if self.radius is not None:
            self.radius = float(self.radius)

        allowed = PARAMETER_KEYS[self.kind]
        params: Dict[str, float] = {}
        for key, value in dict(self.parameters).items():
            if allowed is not None and key not in allowed:
                expected = ", ".join(sorted(allowed)) or "none"
                raise EntityError(
                    f"entity {self.id!r}: {self.kind.value} does not carry parameter {key!r} "
                    f"(expected: {expected})"
                )
            try:
                params[key] = float(value)
            except (TypeError, ValueError) as exc:
                raise EntityError(f"entity {self.id!r}: parameter {key!r} must be numeric") from exc
        self.parameters = params

    def copy(self) -> "ConstraintEntity":
        return replace(self, parameters=dict(self.parameters))


@dataclass
class Constraint:
    """Symbolic relation between entities referenced by id."""

    id: ConstraintId
    type: ConstraintType
    entities: Tuple[EntityId, ...]
    value: Optional[float] = None
    priority: float = 0.0
    active: bool = True

    def __post_init__(self) -> None:
        self.type = ConstraintType(self.type)
        self.entities = tuple(self.entities)
        if self.value is not None:
            self.value = float(self.value)

    def copy(self) -> "Constraint":
        return replace(self)

    def references(self, entity_id: EntityId) -> bool:
        return entity_id in self.entities


@dataclass
class Variable:
    """Scalar unknown of the 2D engine."""

    id: str
    value: float
    kind: VariableKind = VariableKind.PARAMETER

    def __post_init__(self) -> None:
        self.kind = VariableKind(self.kind)
        self.value = float(self.value)


@dataclass
class Point2D:
    x: float
    y: float
    id: Optional[str] = None
    # Informational only; pinning is expressed with a ``fixed`` constraint.
    fixed: bool = False


TargetValue = Union[float, Tuple[float, float], None]
Entity2D = Union[Point2D, Variable, str]


@dataclass
class Constraint2D:
    type: ConstraintType
    entities: List[Entity2D] = field(default_factory=list)
    target_value: TargetValue = None
    id: Optional[str] = None
    enabled: bool = True

    def __post_init__(self) -> None:
        self.type = ConstraintType(self.type)
        self.entities = list(self.entities)


@dataclass
class SolverOptions:
    """Gradient-descent engine options."""

    max_iterations: int = 100
    tolerance: float = 1e-6
    damping: float = 0.8
    method: SolveMethod = SolveMethod.GRADIENT_DESCENT
    verbose: bool = False

    def __post_init__(self) -> None:
        self.method = SolveMethod(self.method)


@dataclass
class Solver2DOptions:
    """Newton-Raphson engine options."""

    max_iterations: int = 100
    tolerance: float = 1e-8
    damping: float = 0.8
    epsilon: float = 1e-8
    pivot_tolerance: float = 1e-12


@dataclass
class SolveDiagnostics:
    skipped: List[str] = field(default_factory=list)
    unsupported: List[str] = field(default_factory=list)

    @property
    def clean(self) -> bool:
        return not self.skipped and not self.unsupported


@dataclass
class ConstraintSolution:
    success: bool
    iterations: int
    residual: float
    updates: Dict[EntityId, ConstraintEntity]
    conflicts: Optional[List[ConstraintId]] = None
    elapsed: float = 0.0
    message: Optional[str] = None
    diagnostics: SolveDiagnostics = field(default_factory=SolveDiagnostics)


@dataclass
class SolveResult:
    success: bool
    iterations: int
    residual: float
    variables: Dict[str, float]
    diagnostics: SolveDiagnostics = field(default_factory=SolveDiagnostics)


@dataclass
class JacobianAnalysis:
    rows: int
    cols: int
    rank: int
    redundant: List[str] = field(default_factory=list)

    @property
    def dof(self) -> int:
        return max(self.cols - self.rank, 0)

    @property
    def fully_constrained(self) -> bool:
        return self.dof == 0 and not self.redundant


__all__ = [
    "CONSTRAINT_ARITY",
    "Constraint",
    "Constraint2D",
    "ConstraintEntity",
    "ConstraintId",
    "ConstraintSolution",
    "ConstraintType",
    "Entity2D",
    "EntityError",
    "EntityId",
    "EntityKind",
    "JacobianAnalysis",
    "PARAMETER_KEYS",
    "Point2D",
    "SolveDiagnostics",
    "SolveMethod",
    "SolveResult",
    "Solver2DOptions",
    "SolverOptions",
    "TargetValue",
    "Variable",
    "VariableKind",
    "Vec3",
]
