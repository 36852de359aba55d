from .base import Solver
from .config import (
    get_default_solver_2d_options,
    get_default_solver_options,
    reset_default_options,
    set_default_solver_2d_options,
    set_default_solver_options,
)
from .engine import ConstraintSolverEngine
from .facade import ConstraintSolver
from .linalg import analyze_jacobian, gaussian_elimination, least_squares_normal, newton_step
from .solver_2d import Solver2D

__all__ = [
    "ConstraintSolver",
    "ConstraintSolverEngine",
    "Solver",
    "Solver2D",
    "analyze_jacobian",
    "gaussian_elimination",
    "get_default_solver_2d_options",
    "get_default_solver_options",
    "least_squares_normal",
    "newton_step",
    "reset_default_options",
    "set_default_solver_2d_options",
    "set_default_solver_options",
]
