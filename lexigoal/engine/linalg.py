"""Dense float linear-algebra kernels for the continuous search.

Every routine reports numeric degeneracy (singular or inconsistent systems)
by returning ``None`` rather than raising, so a degenerate strategy simply
contributes no candidate.
"""

import logging

import numpy as np
from scipy import linalg as scipy_linalg

logger = logging.getLogger(__name__)


def row_reduce(
    matrix: np.ndarray,
    rhs: np.ndarray,
    *,
    pivot_epsilon: float = 1e-9,
) -> tuple[np.ndarray, np.ndarray, list[int], list[int]]:
    """Reduced row-echelon form with partial pivoting.

    Args:
        matrix: m×n coefficient matrix.
        rhs: m-vector.
        pivot_epsilon: Column entries below this magnitude are not pivots.

    Returns:
        (reduced matrix, reduced rhs, pivot columns, original row index of
        each pivot row), all in pivot order.
    """
    work = np.array(matrix, dtype=float, copy=True)
    b = np.array(rhs, dtype=float, copy=True)
    m, n = work.shape
    order = list(range(m))
    pivot_columns: list[int] = []
    pivot_row = 0

    for col in range(n):
        if pivot_row >= m:
            break
        best = pivot_row + int(np.argmax(np.abs(work[pivot_row:, col])))
        if abs(work[best, col]) < pivot_epsilon:
            continue
        if best != pivot_row:
            work[[pivot_row, best]] = work[[best, pivot_row]]
            b[[pivot_row, best]] = b[[best, pivot_row]]
            order[pivot_row], order[best] = order[best], order[pivot_row]

        pivot = work[pivot_row, col]
        work[pivot_row] /= pivot
        b[pivot_row] /= pivot

        factors = work[:, col].copy()
        factors[pivot_row] = 0.0
        work -= np.outer(factors, work[pivot_row])
        b -= factors * b[pivot_row]

        pivot_columns.append(col)
        pivot_row += 1

    return work, b, pivot_columns, order[:pivot_row]


def independent_rows(matrix: np.ndarray, *, pivot_epsilon: float = 1e-9) -> list[int]:
    """Indices of a maximal linearly independent subset of ``matrix``'s rows."""
    if matrix.shape[0] == 0:
        return []
    _, _, _, rows = row_reduce(matrix, np.zeros(matrix.shape[0]), pivot_epsilon=pivot_epsilon)
    return sorted(rows)


def gauss_solve(
    matrix: np.ndarray,
    rhs: np.ndarray,
    *,
    pivot_epsilon: float = 1e-9,
    consistency_tolerance: float = 1e-9,
) -> np.ndarray | None:
    """Solve ``matrix @ y = rhs`` by elimination, non-pivot unknowns at zero.

    Returns:
        A solution vector, or None when the reduced system is inconsistent.
    """
    m, n = matrix.shape
    if m == 0:
        return np.zeros(n)
    work, b, pivot_columns, _ = row_reduce(matrix, rhs, pivot_epsilon=pivot_epsilon)
    rank = len(pivot_columns)
    if rank < m and np.any(np.abs(b[rank:]) > consistency_tolerance):
        return None

    solution = np.zeros(n)
    for row, col in enumerate(pivot_columns):
        solution[col] = b[row]
    if not np.all(np.isfinite(solution)):
        return None
    return solution


def regularized_projection(
    matrix: np.ndarray,
    rhs: np.ndarray,
    start: np.ndarray,
    *,
    regularization: float = 1e-9,
) -> np.ndarray | None:
    """Closest point to ``start`` on ``matrix @ x = rhs`` (ridge-regularized).

    ``x = start + Aᵀ (A Aᵀ + λI)⁻¹ (rhs - A start)``
    """
    m = matrix.shape[0]
    if m == 0:
        return np.array(start, dtype=float, copy=True)
    gram = matrix @ matrix.T + regularization * np.eye(m)
    residual = rhs - matrix @ start
    try:
        multipliers = scipy_linalg.solve(gram, residual, assume_a="sym")
    except (scipy_linalg.LinAlgError, ValueError) as exc:
        logger.debug("Projection system singular: %s", exc)
        return None
    projected = start + matrix.T @ multipliers
    if not np.all(np.isfinite(projected)):
        return None
    return projected


def least_squares(matrix: np.ndarray, rhs: np.ndarray) -> np.ndarray | None:
    """Minimum-norm least-squares solution, or None if LAPACK fails."""
    if matrix.shape[1] == 0:
        return np.zeros(0)
    try:
        solution, *_ = scipy_linalg.lstsq(matrix, rhs)
    except (scipy_linalg.LinAlgError, ValueError) as exc:
        logger.debug("Least-squares solve failed: %s", exc)
        return None
    if not np.all(np.isfinite(solution)):
        return None
    return solution


def solve_square(matrix: np.ndarray, rhs: np.ndarray, *, pivot_epsilon: float = 1e-9) -> np.ndarray | None:
    """Solve a square system for one or many right-hand sides; None when singular."""
    if matrix.shape[0] == 0:
        return np.zeros((0,) + rhs.shape[1:])
    _, s, _ = np.linalg.svd(matrix)
    if s[-1] < pivot_epsilon * max(1.0, s[0]):
        return None
    try:
        return scipy_linalg.solve(matrix, rhs)
    except (scipy_linalg.LinAlgError, ValueError) as exc:
        logger.debug("Square solve failed: %s", exc)
        return None
