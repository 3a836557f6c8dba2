"""Bounded active-set refinement of a feasible candidate.

Minimizes ``½‖S x - s‖² + ρ‖x‖²`` subject to the phase equalities and the
variable box, starting from a feasible point. ``S``/``s`` are the soft rows,
so the refinement pulls soft rows toward their targets while keeping every
hard row where the start point put it.
"""

import logging

import numpy as np

from lexigoal.engine.linalg import least_squares
from lexigoal.engine.strategies import CandidateScorer

logger = logging.getLogger(__name__)

_STEP_TOLERANCE = 1e-12


def active_set_refine(
    scorer: CandidateScorer,
    start: np.ndarray,
    *,
    regularization: float = 1e-6,
    max_iterations: int = 200,
    multiplier_tolerance: float = 1e-9,
) -> np.ndarray | None:
    """Run the active-set method from ``start``.

    Args:
        scorer: Supplies the box, equalities and soft rows of the phase.
        start: A point satisfying the equalities and the box.
        regularization: ρ, the weight of the squared-usage term.
        max_iterations: Iteration cap.
        multiplier_tolerance: Bound multipliers of the wrong sign beyond
            this magnitude release their variable.

    Returns:
        The refined point, or None when a KKT system could not be solved.
    """
    phase = scorer.phase
    lower, upper = scorer.lower, scorer.upper
    n = scorer.size
    S, s = phase.soft_matrix, phase.soft_values
    E = phase.equality_matrix
    m = E.shape[0]

    hessian = S.T @ S + 2.0 * regularization * np.eye(n)
    linear = -(S.T @ s)

    x = np.clip(np.asarray(start, dtype=float), lower, upper)
    tol = scorer.tolerance
    active: dict[int, bool] = {}  # index -> True when parked at the upper bound
    for i in range(n):
        if abs(x[i] - lower[i]) <= tol:
            x[i] = lower[i]
            active[i] = False
        elif abs(x[i] - upper[i]) <= tol:
            x[i] = upper[i]
            active[i] = True

    for iteration in range(max_iterations):
        gradient = hessian @ x + linear
        free = [i for i in range(n) if i not in active]
        step = np.zeros(n)
        multipliers = np.zeros(m)

        if free:
            k = len(free)
            kkt = np.zeros((k + m, k + m))
            kkt[:k, :k] = hessian[np.ix_(free, free)]
            kkt[:k, k:] = E[:, free].T
            kkt[k:, :k] = E[:, free]
            rhs = np.concatenate([-gradient[free], np.zeros(m)])
            solution = least_squares(kkt, rhs)
            if solution is None:
                return None
            step[free] = solution[:k]
            multipliers = solution[k:]

        if np.linalg.norm(step) <= _STEP_TOLERANCE:
            reduced = gradient + E.T @ multipliers
            release = -1
            worst = multiplier_tolerance
            for i, at_upper in active.items():
                violation = reduced[i] if at_upper else -reduced[i]
                if violation > worst:
                    worst = violation
                    release = i
            if release < 0:
                logger.debug("Active-set refinement converged after %d iterations", iteration)
                return x
            del active[release]
            continue

        alpha = 1.0
        blocking = -1
        for i in free:
            if step[i] < 0.0:
                limit = (lower[i] - x[i]) / step[i]
            elif step[i] > 0.0:
                limit = (upper[i] - x[i]) / step[i]
            else:
                continue
            if limit < alpha:
                alpha = limit
                blocking = i

        x = x + max(alpha, 0.0) * step
        if blocking >= 0:
            at_upper = step[blocking] > 0.0
            x[blocking] = upper[blocking] if at_upper else lower[blocking]
            active[blocking] = at_upper

    logger.debug("Active-set refinement hit the %d-iteration cap", max_iterations)
    return x
