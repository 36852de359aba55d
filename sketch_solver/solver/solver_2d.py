"""Newton-Raphson engine for 2D points and scalar variables."""

from __future__ import annotations

import copy
import logging
from typing import Any, Dict, List, Mapping, NamedTuple, Optional, Sequence, Tuple, Union

import numpy as np

from ..logging_utils import apply_debug_logging
from ..model import (
    Constraint2D,
    ConstraintType,
    JacobianAnalysis,
    Point2D,
    SolveDiagnostics,
    SolveResult,
    Solver2DOptions,
    Variable,
    VariableKind,
)
from .config import get_default_solver_2d_options
from .linalg import analyze_jacobian, newton_step

logger = logging.getLogger(__name__)

# (rows, points required) for each type that has a residual formula.
_ROW_LAYOUT: Dict[ConstraintType, Tuple[int, int]] = {
    ConstraintType.DISTANCE: (1, 2),
    ConstraintType.HORIZONTAL: (1, 2),
    ConstraintType.VERTICAL: (1, 2),
    ConstraintType.COINCIDENT: (2, 2),
    ConstraintType.FIXED: (2, 1),
}


class _PointSource(NamedTuple):
    """Where a constraint reads a point from: two parameter slots or constants."""

    ix: Optional[int]
    iy: Optional[int]
    x: float = 0.0
    y: float = 0.0

    def at(self, params: np.ndarray) -> Tuple[float, float]:
        if self.ix is None or self.iy is None:
            return self.x, self.y
        return float(params[self.ix]), float(params[self.iy])


class _Row(NamedTuple):
    label: str
    constraint: Constraint2D
    points: Tuple[_PointSource, ...]


def _fixed_target(target: Any) -> Optional[Tuple[float, float]]:
    if target is None:
        return None
    if isinstance(target, Mapping):
        return float(target["x"]), float(target["y"])
    if isinstance(target, Sequence) and not isinstance(target, str) and len(target) == 2:
        return float(target[0]), float(target[1])
    return None


class Solver2D:
    """Solve 2D sketches with damped Newton-Raphson steps.

    The unknown vector holds one scalar per registered :class:`Variable`, in
    insertion order. ``add_point`` registers a :class:`Point2D` and creates the
    variables ``<id>.x`` and ``<id>.y`` for it; constraints may then refer to
    the point object or to its id. Unregistered points act as constants.
    """

    def __init__(self, options: Optional[Solver2DOptions] = None) -> None:
        self._options = copy.deepcopy(options) if options is not None else get_default_solver_2d_options()
        self._constraints: List[Constraint2D] = []
        self._variables: List[Variable] = []
        self._index: Dict[str, int] = {}
        self._points: Dict[str, Point2D] = {}
        self._params = np.zeros(0, dtype=float)

    @property
    def options(self) -> Solver2DOptions:
        return copy.deepcopy(self._options)

    # ------------------------------------------------------------------
    # Registration

    def add_variable(self, variable: Variable) -> None:
        existing = self._index.get(variable.id)
        if existing is not None:
            # Re-registering an id rebinds it; the slot keeps its position.
            self._variables[existing] = variable
            self._params[existing] = variable.value
            return
        self._index[variable.id] = len(self._variables)
        self._variables.append(variable)
        self._params = np.append(self._params, float(variable.value))

    def add_point(self, point: Point2D) -> None:
        if not point.id:
            raise ValueError("only points with an id can be registered as unknowns")
        self._points[point.id] = point
        self.add_variable(Variable(f"{point.id}.x", point.x, VariableKind.X))
        self.add_variable(Variable(f"{point.id}.y", point.y, VariableKind.Y))

    def add_entity(self, entity: Union[Point2D, Variable]) -> None:
        if isinstance(entity, Variable):
            self.add_variable(entity)
        elif isinstance(entity, Point2D):
            self.add_point(entity)
        else:
            raise TypeError(f"Solver2D accepts Point2D or Variable entities, got {type(entity).__name__}")

    def add_constraint(self, constraint: Constraint2D) -> None:
        self._constraints.append(constraint)

    def clear(self) -> None:
        self._constraints = []
        self._variables = []
        self._index = {}
        self._points = {}
        self._params = np.zeros(0, dtype=float)

    def get_variable_values(self) -> Dict[str, float]:
        return {var.id: float(self._params[i]) for i, var in enumerate(self._variables)}

    def set_initial_values(self, values: Mapping[str, float]) -> None:
        for var_id, value in values.items():
            idx = self._index.get(var_id)
            if idx is None:
                continue
            self._params[idx] = float(value)
        self._write_back()

    # ------------------------------------------------------------------
    # Solving

    def solve(self) -> SolveResult:
        opts = self._options
        rows, diagnostics = self._plan()

        if not self._constraints or self._params.size == 0 or not rows:
            logger.info(
                "Nothing to solve (%d constraint(s), %d variable(s), %d usable)",
                len(self._constraints),
                self._params.size,
                len(rows),
            )
            return SolveResult(
                success=True,
                iterations=0,
                residual=0.0,
                variables=self.get_variable_values(),
                diagnostics=diagnostics,
            )

        params = self._params.copy()
        residuals = self._residuals(rows, params)
        norm = float(np.linalg.norm(residuals))
        logger.info(
            "Newton-Raphson: %d residual row(s) over %d variable(s), initial norm %.3e",
            residuals.size,
            params.size,
            norm,
        )

        iterations = 0
        while iterations < opts.max_iterations and not norm <= opts.tolerance:
            jacobian = self._jacobian(rows, params)
            delta = newton_step(jacobian, residuals, pivot_tolerance=opts.pivot_tolerance)
            params += opts.damping * delta
            residuals = self._residuals(rows, params)
            norm = float(np.linalg.norm(residuals))
            iterations += 1
            logger.debug("Iteration %d: |R| = %.6g", iterations, norm)

        self._params = params
        self._write_back()

        success = norm <= opts.tolerance
        logger.info(
            "Newton-Raphson %s after %d iteration(s), |R|=%.3e",
            "converged" if success else "stopped",
            iterations,
            norm,
        )
        return SolveResult(
            success=success,
            iterations=iterations,
            residual=norm,
            variables=self.get_variable_values(),
            diagnostics=diagnostics,
        )

    def analyze(self) -> JacobianAnalysis:
        """Rank, remaining degrees of freedom and redundant constraints at the current state."""

        rows, _ = self._plan()
        params = self._params.copy()
        if not rows or params.size == 0:
            return JacobianAnalysis(rows=0, cols=int(params.size), rank=0)
        jacobian = self._jacobian(rows, params)
        labels: List[str] = []
        for row in rows:
            count = _ROW_LAYOUT[row.constraint.type][0]
            labels.extend([row.label] * count)
        return analyze_jacobian(jacobian, labels)

    # ------------------------------------------------------------------
    # Internals

    def _source(self, ref: Any) -> Optional[_PointSource]:
        if isinstance(ref, Point2D):
            if ref.id is None or ref.id not in self._points:
                return _PointSource(None, None, float(ref.x), float(ref.y))
            point_id = ref.id
        elif isinstance(ref, str):
            point_id = ref
        else:
            return None
        ix = self._index.get(f"{point_id}.x")
        iy = self._index.get(f"{point_id}.y")
        if ix is None or iy is None:
            return None
        return _PointSource(ix, iy)

    def _plan(self) -> Tuple[List[_Row], SolveDiagnostics]:
        diagnostics = SolveDiagnostics()
        rows: List[_Row] = []
        for position, constraint in enumerate(self._constraints):
            if not constraint.enabled:
                continue
            label = constraint.id or f"{constraint.type.value}#{position}"
            layout = _ROW_LAYOUT.get(constraint.type)
            if layout is None:
                diagnostics.unsupported.append(label)
                continue
            needed = layout[1]
            sources = [self._source(ref) for ref in constraint.entities[:needed]]
            if len(sources) < needed or any(src is None for src in sources):
                logger.debug("Skipping %s: needs %d resolvable point(s)", label, needed)
                diagnostics.skipped.append(label)
                continue
            rows.append(_Row(label, constraint, tuple(src for src in sources if src is not None)))
        if diagnostics.unsupported:
            logger.info("Constraint types without a 2D residual (ignored): %s", diagnostics.unsupported)
        return rows, diagnostics

    def _residuals(self, rows: Sequence[_Row], params: np.ndarray) -> np.ndarray:
        out: List[float] = []
        for row in rows:
            kind = row.constraint.type
            target = row.constraint.target_value
            if kind is ConstraintType.FIXED:
                px, py = row.points[0].at(params)
                anchor = _fixed_target(target)
                # Without a target the point is compared with itself.
                tx, ty = anchor if anchor is not None else (px, py)
                out.extend((px - tx, py - ty))
                continue
            (x1, y1), (x2, y2) = row.points[0].at(params), row.points[1].at(params)
            if kind is ConstraintType.DISTANCE:
                goal = float(target) if isinstance(target, (int, float)) else 0.0
                out.append(float(np.hypot(x1 - x2, y1 - y2)) - goal)
            elif kind is ConstraintType.HORIZONTAL:
                out.append(y1 - y2)
            elif kind is ConstraintType.VERTICAL:
                out.append(x1 - x2)
            else:
                out.extend((x1 - x2, y1 - y2))
        return np.asarray(out, dtype=float)

    def _jacobian(self, rows: Sequence[_Row], params: np.ndarray) -> np.ndarray:
        eps = self._options.epsilon
        base = self._residuals(rows, params)
        jacobian = np.zeros((base.size, params.size), dtype=float)
        for j in range(params.size):
            original = params[j]
            params[j] = original + eps
            forward = self._residuals(rows, params)
            params[j] = original - eps
            backward = self._residuals(rows, params)
            params[j] = original
            jacobian[:, j] = (forward - backward) / (2.0 * eps)
        return jacobian

    def _write_back(self) -> None:
        for i, var in enumerate(self._variables):
            var.value = float(self._params[i])
        for point_id, point in self._points.items():
            ix = self._index.get(f"{point_id}.x")
            iy = self._index.get(f"{point_id}.y")
            if ix is not None:
                point.x = float(self._params[ix])
            if iy is not None:
                point.y = float(self._params[iy])

    def __repr__(self) -> str:
        return (
            f"Solver2D(variables={len(self._variables)}, points={len(self._points)}, "
            f"constraints={len(self._constraints)})"
        )


apply_debug_logging(
    globals(),
    logger=logger,
    skip={
        "_PointSource",
        "_Row",
        "_fixed_target",
        "Solver2D._source",
        "Solver2D._residuals",
        "Solver2D.__repr__",
    },
)


__all__ = ["Solver2D"]
