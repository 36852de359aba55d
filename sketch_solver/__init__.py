from .model import (
    CONSTRAINT_ARITY,
    PARAMETER_KEYS,
    Constraint,
    Constraint2D,
    ConstraintEntity,
    ConstraintSolution,
    ConstraintType,
    EntityError,
    EntityKind,
    JacobianAnalysis,
    Point2D,
    SolveDiagnostics,
    SolveMethod,
    SolveResult,
    Solver2DOptions,
    SolverOptions,
    Variable,
    VariableKind,
    Vec3,
)
from .constraints import DimensionalConstraint, GeometricConstraint, create_evaluator, is_supported
from .solver import (
    ConstraintSolver,
    ConstraintSolverEngine,
    Solver,
    Solver2D,
    analyze_jacobian,
    get_default_solver_2d_options,
    get_default_solver_options,
    reset_default_options,
    set_default_solver_2d_options,
    set_default_solver_options,
)
from .serialization import (
    SerializationError,
    constraint_from_dict,
    constraint_to_dict,
    dump_sketch,
    entity_from_dict,
    entity_to_dict,
    load_sketch,
    load_sketch_2d,
    options_from_dict,
    result_to_dict,
    solution_to_dict,
    to_dict,
)
from .validate import ValidationError, validate_sketch, validate_solver

__all__ = [
    'CONSTRAINT_ARITY',
    'PARAMETER_KEYS',
    'Constraint',
    'Constraint2D',
    'ConstraintEntity',
    'ConstraintSolution',
    'ConstraintType',
    'EntityError',
    'EntityKind',
    'JacobianAnalysis',
    'Point2D',
    'SolveDiagnostics',
    'SolveMethod',
    'SolveResult',
    'Solver2DOptions',
    'SolverOptions',
    'Variable',
    'VariableKind',
    'Vec3',
    'DimensionalConstraint',
    'GeometricConstraint',
    'create_evaluator',
    'is_supported',
    'ConstraintSolver',
    'ConstraintSolverEngine',
    'Solver',
    'Solver2D',
    'analyze_jacobian',
    'get_default_solver_options',
    'set_default_solver_options',
    'get_default_solver_2d_options',
    'set_default_solver_2d_options',
    'reset_default_options',
    'SerializationError',
    'entity_to_dict',
    'entity_from_dict',
    'constraint_to_dict',
    'constraint_from_dict',
    'options_from_dict',
    'load_sketch',
    'dump_sketch',
    'load_sketch_2d',
    'solution_to_dict',
    'result_to_dict',
    'to_dict',
    'ValidationError',
    'validate_sketch',
    'validate_solver',
]
