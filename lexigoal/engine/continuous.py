"""Continuous solve of one priority level.

The rows of the tableau are classified for the requested priority:

* lock rows of earlier priorities are hard equalities;
* soft rows of this priority contribute a deviation to be minimized;
* hard EQUAL rows and hard rows with a zero RHS are hard equalities;
* every other hard row is a target, signed +1 for MAXIMIZE and -1 for
  MINIMIZE, and all targets are summed into one objective.

Phase 1 maximizes the signed target (less a small usage penalty) or, with
no target, minimizes the soft deviation. Phase 2 freezes the phase-1 target
as an extra equality and minimizes soft deviation plus usage. Each phase
runs a fixed sequence of float search strategies and keeps the best scored
candidate; the winner is converted back to exact rationals.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from fractions import Fraction

import numpy as np

from lexigoal.config.settings import Settings, get_settings
from lexigoal.engine.diagnostics import SimplexDiagnostics
from lexigoal.engine.errors import TableauStateError
from lexigoal.engine.pivoting import PivotEngine
from lexigoal.engine.qp import active_set_refine
from lexigoal.engine.ratio_test import BoundedAugmentedRatioTest, RatioTest
from lexigoal.engine.rational import Rational
from lexigoal.engine.results import SimplexResult
from lexigoal.engine.strategies import (
    CandidateScorer,
    Incumbent,
    SearchPhase,
    fixed_free_enumeration,
    gauss_elimination,
    least_squares_projection,
    overdetermined_enumeration,
    underdetermined_enumeration,
    vertex_enumeration,
)
from lexigoal.engine.tableau import Tableau
from lexigoal.engine.variables import BoundedVariable
from lexigoal.models.common import GoalSense, SimplexStatus

logger = logging.getLogger(__name__)

Strategy = Callable[[CandidateScorer, Settings], np.ndarray]

ENUMERATION_STRATEGIES: tuple[tuple[str, Strategy], ...] = (
    ("fixed_free", fixed_free_enumeration),
    ("overdetermined", overdetermined_enumeration),
    ("underdetermined", underdetermined_enumeration),
)


class Rounding(StrEnum):
    """How a float solution component becomes an exact rational."""

    SIMPLEST = "SIMPLEST"
    DECIMAL = "DECIMAL"
    CLOSEST = "CLOSEST"


@dataclass(frozen=True)
class RowClassification:
    """Row indices of one priority, split by role."""

    equality_rows: tuple[int, ...]
    target_rows: tuple[int, ...]
    target_signs: tuple[int, ...]
    soft_rows: tuple[int, ...]


def classify_rows(tableau: Tableau, priority: int) -> RowClassification:
    equality_rows: list[int] = []
    target_rows: list[int] = []
    target_signs: list[int] = []
    soft_rows: list[int] = []

    for row, goal in enumerate(tableau.goals):
        if goal.priority < priority:
            if goal.is_lock:
                equality_rows.append(row)
            continue
        if goal.priority > priority:
            continue
        if goal.is_soft:
            soft_rows.append(row)
        elif goal.sense == GoalSense.EQUAL or tableau.get_rhs(row) == Rational.ZERO:
            equality_rows.append(row)
        else:
            target_rows.append(row)
            target_signs.append(1 if goal.sense == GoalSense.MAXIMIZE else -1)

    return RowClassification(
        tuple(equality_rows), tuple(target_rows), tuple(target_signs), tuple(soft_rows)
    )


class ContinuousPrioritySolver:
    """Solves the continuous relaxation of one priority on a tableau.

    Integrality is ignored here; branch-and-bound narrows bounds around
    this solver. On success the solution is written onto the tableau.
    """

    def __init__(
        self,
        ratio_test: RatioTest | None = None,
        *,
        settings: Settings | None = None,
    ) -> None:
        self._ratio_test = ratio_test or BoundedAugmentedRatioTest()
        self._settings = settings or get_settings()

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def ratio_test(self) -> RatioTest:
        return self._ratio_test

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def solve_priority(self, tableau: Tableau, priority: int) -> SimplexResult:
        """Solve ``priority`` and write the winning values onto ``tableau``.

        Args:
            tableau: Tableau whose variables are all inside their bounds.
            priority: Priority level to optimize; rows must exist for it.

        Returns:
            OPTIMAL with the signed target value (or the negated soft
            deviation when there is no target), or GOAL_VIOLATION with the
            tableau left unchanged when no candidate satisfies the hard rows.

        Raises:
            ValueError: If ``priority`` is negative or has no rows.
            TableauStateError: If a variable lies outside its bounds.
        """
        self._validate(tableau, priority)
        tableau.current_priority = priority
        diagnostics = SimplexDiagnostics(priority)

        rows = classify_rows(tableau, priority)
        diagnostics.record_row_evaluation(
            sum(1 for goal in tableau.goals if goal.priority == priority)
        )
        snapshot = tableau.clone()

        if not rows.equality_rows and not rows.target_rows and not rows.soft_rows:
            return self._result(SimplexStatus.OPTIMAL, Rational.ZERO, diagnostics, tableau)

        point = self._search(tableau, rows, diagnostics)
        if point is None:
            logger.debug("Priority %d: no candidate satisfies the hard rows", priority)
            return self._result(SimplexStatus.GOAL_VIOLATION, Rational.ZERO, diagnostics, snapshot)

        values = self._exact_solution(tableau, rows, point)
        if values is None:
            logger.debug("Priority %d: no exact rounding of the winner holds the hard rows", priority)
            return self._result(SimplexStatus.GOAL_VIOLATION, Rational.ZERO, diagnostics, snapshot)

        tableau.apply_solution(values)
        objective = self._objective(tableau, rows)
        return self._result(SimplexStatus.OPTIMAL, objective, diagnostics, tableau)

    def pivot_repair(self, tableau: Tableau, priority: int) -> SimplexResult:
        """Exact bounded-pivot pass over one priority, driven by the ratio test."""
        self._validate(tableau, priority)
        diagnostics = SimplexDiagnostics(priority)
        engine = PivotEngine(self._ratio_test, max_iterations=self._settings.MAX_PIVOT_ITERATIONS)
        evaluation = engine.run(tableau, priority, diagnostics)
        status = SimplexStatus.OPTIMAL if evaluation.all_satisfied else SimplexStatus.GOAL_VIOLATION
        return self._result(status, evaluation.objective_value, diagnostics, tableau)

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    def _search(
        self,
        tableau: Tableau,
        rows: RowClassification,
        diagnostics: SimplexDiagnostics,
    ) -> np.ndarray | None:
        s = self._settings
        matrix = _coefficient_matrix(tableau)
        rhs = np.array([_rhs_float(tableau.get_rhs(r)) for r in range(tableau.row_count)])
        lower = np.array([float(v.lower) for v in tableau.variables])
        upper = np.array([float(v.upper) for v in tableau.variables])

        eq_idx = list(rows.equality_rows)
        soft_idx = list(rows.soft_rows)
        E, e = matrix[eq_idx], rhs[eq_idx]
        S, soft_values = matrix[soft_idx], rhs[soft_idx]

        target = None
        if rows.target_rows:
            signs = np.array(rows.target_signs, dtype=float)
            target = signs @ matrix[list(rows.target_rows)]

        phase_one = SearchPhase(
            equality_matrix=E,
            equality_values=e,
            target=target,
            soft_matrix=S,
            soft_values=soft_values,
            usage_weight=s.USAGE_PENALTY,
            minimize_soft=target is None,
        )
        best = self._run_phase(phase_one, lower, upper, diagnostics, label="phase1")
        if best is None or target is None:
            return best

        achieved = float(best @ target)
        phase_two = SearchPhase(
            equality_matrix=np.vstack([E, target[None, :]]),
            equality_values=np.append(e, achieved),
            target=None,
            soft_matrix=S,
            soft_values=soft_values,
            usage_weight=1.0,
            minimize_soft=True,
        )
        refined = self._run_phase(phase_two, lower, upper, diagnostics, label="phase2", start=best)
        return refined if refined is not None else best

    def _run_phase(
        self,
        phase: SearchPhase,
        lower: np.ndarray,
        upper: np.ndarray,
        diagnostics: SimplexDiagnostics,
        *,
        label: str,
        start: np.ndarray | None = None,
    ) -> np.ndarray | None:
        s = self._settings
        scorer = CandidateScorer(phase, lower, upper, feasibility_tolerance=s.FEASIBILITY_TOLERANCE)
        incumbent = Incumbent(scorer, improvement_tolerance=s.IMPROVEMENT_TOLERANCE)
        ceiling = scorer.ceiling()
        if start is not None:
            incumbent.offer(start[None, :])

        def attempt(name: str, points: np.ndarray) -> bool:
            diagnostics.record_strategy(f"{label}.{name}", incumbent.offer(points))
            return incumbent.reached(ceiling)

        vertices = vertex_enumeration(scorer, s)
        if attempt("vertex", vertices):
            return incumbent.point
        if vertices.shape[0] > 0 and scorer.vertices_exact() and incumbent.found:
            return incumbent.point

        if attempt("gauss", gauss_elimination(scorer, s)):
            return incumbent.point

        if not self._has_nonzero_objective(scorer, incumbent):
            if attempt("projection", least_squares_projection(scorer, s)):
                return incumbent.point

        for name, strategy in ENUMERATION_STRATEGIES:
            if attempt(name, strategy(scorer, s)):
                return incumbent.point

        if incumbent.found and phase.minimize_soft:
            refined = active_set_refine(
                scorer,
                incumbent.point,
                regularization=s.QP_REGULARIZATION,
                max_iterations=s.QP_MAX_ITERATIONS,
                multiplier_tolerance=s.IMPROVEMENT_TOLERANCE,
            )
            if refined is not None:
                attempt("active_set", refined[None, :])

        return incumbent.point

    @staticmethod
    def _has_nonzero_objective(scorer: CandidateScorer, incumbent: Incumbent) -> bool:
        if not incumbent.found:
            return False
        value = scorer.target_values(incumbent.point[None, :])[0]
        return abs(value) > scorer.tolerance

    # ------------------------------------------------------------------
    # Conversion
    # ------------------------------------------------------------------

    def _exact_solution(
        self,
        tableau: Tableau,
        rows: RowClassification,
        point: np.ndarray,
    ) -> list[Rational] | None:
        """First exact rounding of ``point`` that keeps every hard row within tolerance.

        Roundings are tried in ``Rounding`` order: the smallest denominator
        within tolerance, the decimal scale, then the closest fraction under
        the scale. ``None`` when none holds.
        """
        s = self._settings
        tolerance = Fraction(repr(s.FEASIBILITY_TOLERANCE))
        for rounding in Rounding:
            values = [
                _snap(variable, float(x), s.FEASIBILITY_TOLERANCE, s.RATIONAL_SCALE, rounding)
                for variable, x in zip(tableau.variables, point)
            ]
            if _hard_rows_hold(tableau, rows.equality_rows, values, tolerance):
                return values
        return None

    @staticmethod
    def _objective(tableau: Tableau, rows: RowClassification) -> Rational:
        if rows.target_rows:
            total = Rational.ZERO
            for row, sign in zip(rows.target_rows, rows.target_signs):
                total += sign * tableau.evaluate_row(row)
            return total
        deviation = Rational.ZERO
        for row in rows.soft_rows:
            rhs = tableau.get_rhs(row)
            if rhs.is_nan():
                rhs = Rational.ZERO
            deviation += abs(tableau.evaluate_row(row) - rhs)
        return -deviation

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _validate(tableau: Tableau, priority: int) -> None:
        if tableau is None:
            raise ValueError("tableau must be provided.")
        if priority < 0:
            msg = f"priority must be non-negative, got {priority}."
            raise ValueError(msg)
        if not any(goal.priority == priority for goal in tableau.goals):
            msg = f"no goal rows exist for priority {priority}."
            raise ValueError(msg)
        for variable in tableau.variables:
            if not variable.in_bounds():
                msg = f"variable {variable.name!r} is outside of its bounds."
                raise TableauStateError(msg)

    @staticmethod
    def _result(
        status: SimplexStatus,
        objective: Rational,
        diagnostics: SimplexDiagnostics,
        tableau: Tableau,
    ) -> SimplexResult:
        diagnostics.set_final_states(tableau.variables)
        return SimplexResult(status, objective, diagnostics, tableau.variables)


def _coefficient_matrix(tableau: Tableau) -> np.ndarray:
    return np.array(
        [
            [float(tableau.get_coefficient(r, c)) for c in range(tableau.column_count)]
            for r in range(tableau.row_count)
        ],
        dtype=float,
    ).reshape(tableau.row_count, tableau.column_count)


def _rhs_float(value: Rational) -> float:
    return 0.0 if value.is_nan() else float(value)


def _snap(
    variable: BoundedVariable,
    x: float,
    tolerance: float,
    scale: int,
    rounding: Rounding = Rounding.DECIMAL,
) -> Rational:
    """Exact value for a float solution component, kept inside the bounds."""
    lower, upper = variable.lower, variable.upper
    if abs(x - float(lower)) <= tolerance:
        return lower
    if abs(x - float(upper)) <= tolerance:
        return upper
    nearest = round(x)
    if abs(x - nearest) <= tolerance and lower <= nearest <= upper:
        return Rational(nearest)
    value = Rational.from_fraction(_round_fraction(x, tolerance, scale, rounding))
    return Rational.min(Rational.max(value, lower), upper)


def _round_fraction(x: float, tolerance: float, scale: int, rounding: Rounding) -> Fraction:
    exact = Fraction(x)
    if rounding == Rounding.CLOSEST:
        return exact.limit_denominator(scale)
    if rounding == Rounding.SIMPLEST:
        cap = 10
        while cap <= scale:
            candidate = exact.limit_denominator(cap)
            if abs(candidate - exact) <= tolerance:
                return candidate
            cap *= 10
    return Fraction(round(x * scale), scale)


def _hard_rows_hold(
    tableau: Tableau,
    equality_rows: tuple[int, ...],
    values: list[Rational],
    tolerance: Fraction,
) -> bool:
    exact = [value.to_fraction() for value in values]
    for row in equality_rows:
        rhs = tableau.get_rhs(row)
        total = -(Fraction(0) if rhs.is_nan() else rhs.to_fraction())
        for column, value in enumerate(exact):
            coefficient = tableau.get_coefficient(row, column)
            if coefficient != Rational.ZERO:
                total += coefficient.to_fraction() * value
        if abs(total) > tolerance:
            return False
    return True
