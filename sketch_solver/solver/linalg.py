"""Dense linear algebra for the Newton-Raphson engine."""

from __future__ import annotations

import logging
from typing import List, Sequence, Tuple

import numpy as np
from scipy import linalg as sla

from ..logging_utils import apply_debug_logging
from ..model import JacobianAnalysis

logger = logging.getLogger(__name__)

_PIVOT_EPS = 1e-12
_RANK_EPS = 1e-6


def gaussian_elimination(
    matrix: np.ndarray, rhs: np.ndarray, *, pivot_tolerance: float = _PIVOT_EPS
) -> np.ndarray:
    """Solve ``matrix @ x = rhs`` with partial (row) pivoting.

    Works for square and underdetermined systems. A column whose best pivot is
    below ``pivot_tolerance`` is skipped and its unknown stays at ``0``; rank
    deficiency is therefore absorbed rather than reported.
    """

    a = np.asarray(matrix, dtype=float)
    if a.ndim != 2 or a.size == 0:
        return np.zeros(a.shape[1] if a.ndim == 2 else 0, dtype=float)
    rows, cols = a.shape
    aug = np.hstack([a, np.asarray(rhs, dtype=float).reshape(rows, 1)])

    pivots: List[Tuple[int, int]] = []
    row = 0
    for col in range(cols):
        if row >= rows:
            break
        candidate = row + int(np.argmax(np.abs(aug[row:, col])))
        if abs(aug[candidate, col]) < pivot_tolerance:
            continue
        if candidate != row:
            aug[[row, candidate]] = aug[[candidate, row]]
        factors = aug[row + 1 :, col] / aug[row, col]
        aug[row + 1 :, col:] -= np.outer(factors, aug[row, col:])
        pivots.append((row, col))
        row += 1

    solution = np.zeros(cols, dtype=float)
    for r, c in reversed(pivots):
        tail = float(aug[r, c + 1 : cols] @ solution[c + 1 :])
        solution[c] = (aug[r, cols] - tail) / aug[r, c]
    return solution


def least_squares_normal(
    matrix: np.ndarray, rhs: np.ndarray, *, pivot_tolerance: float = _PIVOT_EPS
) -> np.ndarray:
    """Least-squares solution of an overdetermined system via ``(AᵗA) x = Aᵗ b``."""

    a = np.asarray(matrix, dtype=float)
    if a.ndim != 2 or a.size == 0:
        return np.zeros(a.shape[1] if a.ndim == 2 else 0, dtype=float)
    b = np.asarray(rhs, dtype=float)
    return gaussian_elimination(a.T @ a, a.T @ b, pivot_tolerance=pivot_tolerance)


def newton_step(
    jacobian: np.ndarray, residuals: np.ndarray, *, pivot_tolerance: float = _PIVOT_EPS
) -> np.ndarray:
    """Return ``Δ`` solving ``J Δ = -R`` exactly or in the least-squares sense."""

    jac = np.asarray(jacobian, dtype=float)
    if jac.ndim != 2 or jac.size == 0:
        return np.zeros(jac.shape[1] if jac.ndim == 2 else 0, dtype=float)
    rhs = -np.asarray(residuals, dtype=float)
    rows, cols = jac.shape
    if rows <= cols:
        return gaussian_elimination(jac, rhs, pivot_tolerance=pivot_tolerance)
    logger.debug("newton_step: overdetermined %dx%d system, using normal equations", rows, cols)
    return least_squares_normal(jac, rhs, pivot_tolerance=pivot_tolerance)


def analyze_jacobian(
    jacobian: np.ndarray, labels: Sequence[str], *, tolerance: float = _RANK_EPS
) -> JacobianAnalysis:
    """Rank the Jacobian rows and flag those dependent on earlier rows.

    ``labels[i]`` names the constraint that produced row ``i``; a constraint
    with several rows is reported once. All-zero rows (constraints that do not
    depend on any free parameter) count as redundant.
    """

    jac = np.atleast_2d(np.asarray(jacobian, dtype=float))
    if jac.size == 0:
        cols = jac.shape[1] if jac.ndim == 2 else 0
        return JacobianAnalysis(rows=0, cols=cols, rank=0)
    rows, cols = jac.shape

    kept: List[np.ndarray] = []
    redundant: List[str] = []
    for idx in range(rows):
        row = jac[idx]
        scale = max(1.0, float(np.linalg.norm(row)))
        if kept:
            basis = np.vstack(kept).T
            coeffs, *_ = sla.lstsq(basis, row)
            leftover = float(np.linalg.norm(basis @ coeffs - row))
        else:
            leftover = float(np.linalg.norm(row))
        if leftover <= tolerance * scale:
            label = labels[idx] if idx < len(labels) else f"row{idx}"
            if label not in redundant:
                redundant.append(label)
            continue
        kept.append(row)

    analysis = JacobianAnalysis(rows=rows, cols=cols, rank=len(kept), redundant=redundant)
    logger.info(
        "Jacobian analysis: %dx%d rank=%d dof=%d redundant=%s",
        rows,
        cols,
        analysis.rank,
        analysis.dof,
        redundant,
    )
    return analysis


apply_debug_logging(globals(), logger=logger)


__all__ = [
    "analyze_jacobian",
    "gaussian_elimination",
    "least_squares_normal",
    "newton_step",
]
