"""Default option registry used when a solver is built without explicit options."""

from __future__ import annotations

import copy

from ..model import Solver2DOptions, SolverOptions

_SOLVER_OPTIONS = SolverOptions()
_SOLVER_2D_OPTIONS = Solver2DOptions()


def get_default_solver_options() -> SolverOptions:
    return copy.deepcopy(_SOLVER_OPTIONS)


def set_default_solver_options(options: SolverOptions) -> None:
    global _SOLVER_OPTIONS
    _SOLVER_OPTIONS = copy.deepcopy(options)


def get_default_solver_2d_options() -> Solver2DOptions:
    return copy.deepcopy(_SOLVER_2D_OPTIONS)


def set_default_solver_2d_options(options: Solver2DOptions) -> None:
    global _SOLVER_2D_OPTIONS
    _SOLVER_2D_OPTIONS = copy.deepcopy(options)


def reset_default_options() -> None:
    global _SOLVER_OPTIONS, _SOLVER_2D_OPTIONS
    _SOLVER_OPTIONS = SolverOptions()
    _SOLVER_2D_OPTIONS = Solver2DOptions()
