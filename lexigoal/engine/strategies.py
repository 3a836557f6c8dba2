"""Candidate scoring and the enumeration strategies of the continuous search.

Each strategy is a plain function returning a batch of candidate points as
an ``(m, n)`` float array (possibly empty). Candidates are not required to
be feasible; the scorer maps infeasible points to ``-inf``.
"""

from __future__ import annotations

import itertools
import logging
import math
from collections.abc import Iterator
from dataclasses import dataclass

import numpy as np

from lexigoal.config.settings import Settings
from lexigoal.engine.linalg import (
    gauss_solve,
    independent_rows,
    least_squares,
    regularized_projection,
    solve_square,
)

logger = logging.getLogger(__name__)

FREE, AT_LOWER, AT_UPPER = 0, 1, 2


# ----------------------------------------------------------------------
# Scoring
# ----------------------------------------------------------------------


@dataclass(frozen=True)
class SearchPhase:
    """Scoring rules for one phase of a priority solve.

    score(x) = target·x - [soft deviation] - usage_weight·Σ|x|
    where the soft deviation term is present only when ``minimize_soft``.
    """

    equality_matrix: np.ndarray
    equality_values: np.ndarray
    target: np.ndarray | None
    soft_matrix: np.ndarray
    soft_values: np.ndarray
    usage_weight: float
    minimize_soft: bool


class CandidateScorer:
    """Scores candidate batches against one phase and a box."""

    def __init__(
        self,
        phase: SearchPhase,
        lower: np.ndarray,
        upper: np.ndarray,
        *,
        feasibility_tolerance: float,
    ) -> None:
        self.phase = phase
        self.lower = lower
        self.upper = upper
        self.tolerance = feasibility_tolerance

    @property
    def size(self) -> int:
        return self.lower.shape[0]

    def usage(self, points: np.ndarray) -> np.ndarray:
        return np.abs(points).sum(axis=1)

    def target_values(self, points: np.ndarray) -> np.ndarray:
        if self.phase.target is None:
            return np.zeros(points.shape[0])
        return points @ self.phase.target

    def soft_deviation(self, points: np.ndarray) -> np.ndarray:
        if self.phase.soft_matrix.shape[0] == 0:
            return np.zeros(points.shape[0])
        return np.abs(points @ self.phase.soft_matrix.T - self.phase.soft_values).sum(axis=1)

    def feasible(self, points: np.ndarray) -> np.ndarray:
        tol = self.tolerance
        ok = np.all(points >= self.lower - tol, axis=1) & np.all(points <= self.upper + tol, axis=1)
        if self.phase.equality_matrix.shape[0] > 0:
            residual = np.abs(points @ self.phase.equality_matrix.T - self.phase.equality_values)
            ok &= np.all(residual <= tol, axis=1)
        return ok & np.all(np.isfinite(points), axis=1)

    def score(self, points: np.ndarray) -> np.ndarray:
        scores = self.target_values(points) - self.phase.usage_weight * self.usage(points)
        if self.phase.minimize_soft:
            scores = scores - self.soft_deviation(points)
        return np.where(self.feasible(points), scores, -np.inf)

    def ceiling(self) -> float:
        """Upper bound on any score inside the box, ignoring equalities."""
        best = 0.0
        if self.phase.target is not None:
            t = self.phase.target
            best += float(np.maximum(t * self.lower, t * self.upper).sum())
        straddles = (self.lower <= 0.0) & (self.upper >= 0.0)
        min_usage = np.where(straddles, 0.0, np.minimum(np.abs(self.lower), np.abs(self.upper)))
        return best - self.phase.usage_weight * float(min_usage.sum())

    def vertices_exact(self) -> bool:
        """True when the score is linear over the box and unconstrained."""
        if self.phase.equality_matrix.shape[0] > 0 or self.phase.minimize_soft:
            return False
        return bool(np.all((self.lower >= 0.0) | (self.upper <= 0.0)))


class Incumbent:
    """Best candidate so far; ties on score go to lower usage, then to the earlier one."""

    def __init__(self, scorer: CandidateScorer, *, improvement_tolerance: float) -> None:
        self._scorer = scorer
        self._tol = improvement_tolerance
        self.point: np.ndarray | None = None
        self.score = -math.inf
        self.usage = math.inf

    @property
    def found(self) -> bool:
        return self.point is not None

    def offer(self, points: np.ndarray) -> int:
        """Score a batch and keep its best point if it beats the incumbent.

        Returns:
            Number of feasible candidates in the batch.
        """
        if points.size == 0:
            return 0
        scores = self._scorer.score(points)
        finite = np.isfinite(scores)
        feasible_count = int(finite.sum())
        if feasible_count == 0:
            return 0
        usage = self._scorer.usage(points)
        top = float(scores[finite].max())
        close = finite & (scores >= top - self._tol)
        masked_usage = np.where(close, usage, np.inf)
        index = int(np.argmin(masked_usage))
        self._consider(points[index], float(scores[index]), float(usage[index]))
        return feasible_count

    def _consider(self, point: np.ndarray, score: float, usage: float) -> None:
        if score > self.score + self._tol or (
            abs(score - self.score) <= self._tol and usage < self.usage - self._tol
        ):
            self.point = np.array(point, dtype=float, copy=True)
            self.score = score
            self.usage = usage

    def reached(self, ceiling: float) -> bool:
        return self.found and self.score >= ceiling - self._tol


# ----------------------------------------------------------------------
# Strategies
# ----------------------------------------------------------------------


def _empty(n: int) -> np.ndarray:
    return np.empty((0, n))


def box_vertices(lower: np.ndarray, upper: np.ndarray, limit: int | None = None) -> np.ndarray:
    """Corners of the box in bit-pattern order (all lower first), at most ``limit``."""
    n = lower.shape[0]
    count = 2**n if limit is None else min(2**n, limit)
    bits = (np.arange(count)[:, None] >> np.arange(n)) & 1
    return np.where(bits == 1, upper, lower)


def vertex_enumeration(scorer: CandidateScorer, settings: Settings) -> np.ndarray:
    if scorer.size > settings.VERTEX_ENUMERATION_LIMIT:
        return _empty(scorer.size)
    return box_vertices(scorer.lower, scorer.upper)


def gauss_elimination(scorer: CandidateScorer, settings: Settings) -> np.ndarray:
    """Equality solutions with non-pivot variables parked at each bound."""
    E = scorer.phase.equality_matrix
    e = scorer.phase.equality_values
    if E.shape[0] == 0:
        return _empty(scorer.size)
    candidates = []
    for anchor in (scorer.lower, scorer.upper):
        offset = gauss_solve(
            E,
            e - E @ anchor,
            pivot_epsilon=settings.PIVOT_EPSILON,
            consistency_tolerance=settings.FEASIBILITY_TOLERANCE,
        )
        if offset is not None:
            candidates.append(anchor + offset)
    return np.array(candidates) if candidates else _empty(scorer.size)


def least_squares_projection(scorer: CandidateScorer, settings: Settings) -> np.ndarray:
    """Box midpoint projected onto the equalities and clipped to the box."""
    E = scorer.phase.equality_matrix
    start = (scorer.lower + scorer.upper) / 2.0
    projected = regularized_projection(
        E,
        scorer.phase.equality_values,
        start,
        regularization=settings.LEAST_SQUARES_REGULARIZATION,
    )
    if projected is None:
        return _empty(scorer.size)
    return np.clip(projected, scorer.lower, scorer.upper)[None, :]


def fixed_free_enumeration(scorer: CandidateScorer, settings: Settings) -> np.ndarray:
    """Basic solutions: k free variables solve the k independent equalities.

    For every choice of k free columns the remaining variables take every
    lower/upper assignment; the square systems for one free set are solved
    in a single batched call. Output is capped at ``FIXED_FREE_CAP`` points.
    """
    n = scorer.size
    E_all = scorer.phase.equality_matrix
    if E_all.shape[0] == 0:
        return _empty(n)
    rows = independent_rows(E_all, pivot_epsilon=settings.PIVOT_EPSILON)
    k = len(rows)
    if k == 0 or k > n:
        return _empty(n)
    E = E_all[rows]
    e = scorer.phase.equality_values[rows]

    batches: list[np.ndarray] = []
    produced = 0
    for free in itertools.islice(itertools.combinations(range(n), k), settings.FIXED_FREE_CAP):
        if produced >= settings.FIXED_FREE_CAP:
            logger.debug("Fixed-free enumeration capped at %d candidates", produced)
            break
        free_idx = list(free)
        fixed_idx = [c for c in range(n) if c not in free]
        basis = E[:, free_idx]
        corners = box_vertices(
            scorer.lower[fixed_idx],
            scorer.upper[fixed_idx],
            limit=settings.FIXED_FREE_CAP - produced,
        )
        rhs = e[:, None] - E[:, fixed_idx] @ corners.T
        solved = solve_square(basis, rhs, pivot_epsilon=settings.PIVOT_EPSILON)
        if solved is None:
            continue
        batch = np.empty((corners.shape[0], n))
        batch[:, fixed_idx] = corners
        batch[:, free_idx] = solved.T
        batches.append(batch)
        produced += batch.shape[0]

    if not batches:
        return _empty(n)
    return np.vstack(batches)


def _fixings(n: int, cap: int) -> Iterator[tuple[int, ...]]:
    return itertools.islice(itertools.product((FREE, AT_LOWER, AT_UPPER), repeat=n), cap)


def _solve_fixing(scorer: CandidateScorer, fixing: tuple[int, ...], settings: Settings) -> np.ndarray | None:
    E = scorer.phase.equality_matrix
    e = scorer.phase.equality_values
    point = np.where(np.array(fixing) == AT_UPPER, scorer.upper, scorer.lower).astype(float)
    free_idx = [i for i, state in enumerate(fixing) if state == FREE]
    if not free_idx:
        return point
    fixed_idx = [i for i, state in enumerate(fixing) if state != FREE]
    rhs = e - E[:, fixed_idx] @ point[fixed_idx]
    block = E[:, free_idx]
    if block.shape[0] == block.shape[1]:
        solved = solve_square(block, rhs, pivot_epsilon=settings.PIVOT_EPSILON)
    else:
        solved = None
    if solved is None:
        solved = least_squares(block, rhs)
    if solved is None:
        return None
    point[free_idx] = solved
    return point


def fixing_enumeration(scorer: CandidateScorer, settings: Settings) -> np.ndarray:
    """Every {free, lower, upper} assignment up to ``FIXING_SAMPLE_CAP``.

    Free variables are solved square when the counts match, otherwise in
    the least-squares sense.
    """
    n = scorer.size
    if scorer.phase.equality_matrix.shape[0] == 0:
        return _empty(n)
    points = []
    for fixing in _fixings(n, settings.FIXING_SAMPLE_CAP):
        point = _solve_fixing(scorer, fixing, settings)
        if point is not None:
            points.append(point)
    return np.array(points) if points else _empty(n)


def overdetermined_enumeration(scorer: CandidateScorer, settings: Settings) -> np.ndarray:
    if scorer.phase.equality_matrix.shape[0] <= scorer.size:
        return _empty(scorer.size)
    return fixing_enumeration(scorer, settings)


def underdetermined_enumeration(scorer: CandidateScorer, settings: Settings) -> np.ndarray:
    if scorer.phase.target is None:
        return _empty(scorer.size)
    rows = scorer.phase.equality_matrix.shape[0]
    if rows == 0 or rows >= scorer.size:
        return _empty(scorer.size)
    return fixing_enumeration(scorer, settings)
