"""Exact bounded pivot steps driven by the ratio test.

A pivot pass evaluates the rows of one priority, picks the first violated
row, chooses the entering column that can move that row in the required
direction, asks the ratio test how far it may move, and applies the step.
All arithmetic is exact. Used for repair of small tableaux and for parity
checks of the ratio test; the continuous solver does not depend on it.
"""

import logging
from dataclasses import dataclass

from lexigoal.engine.diagnostics import SimplexDiagnostics
from lexigoal.engine.goals import GoalRow
from lexigoal.engine.ratio_test import BoundedAugmentedRatioTest, RatioTest
from lexigoal.engine.rational import Rational
from lexigoal.engine.tableau import Tableau
from lexigoal.engine.variables import BoundedVariable
from lexigoal.models.common import BoundState, GoalAdjustment, GoalSense, PivotType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GoalEvaluation:
    """Row scan of one priority: first violated row and the move it needs."""

    all_satisfied: bool
    objective_value: Rational
    violating_row: int
    adjustment: GoalAdjustment


def determine_adjustment(goal: GoalRow, value: Rational) -> GoalAdjustment:
    """Direction ``value`` must move to satisfy ``goal`` within its tolerance."""
    tolerance = goal.tolerance
    if goal.sense == GoalSense.MAXIMIZE:
        return GoalAdjustment.NONE if value + tolerance >= goal.rhs else GoalAdjustment.INCREASE
    if goal.sense == GoalSense.MINIMIZE:
        return GoalAdjustment.NONE if value - tolerance <= goal.rhs else GoalAdjustment.DECREASE
    if abs(value - goal.rhs) <= tolerance:
        return GoalAdjustment.NONE
    return GoalAdjustment.INCREASE if value < goal.rhs else GoalAdjustment.DECREASE


def evaluate_goals(tableau: Tableau, priority: int, diagnostics: SimplexDiagnostics) -> GoalEvaluation:
    objective = Rational.ZERO
    violating_row = -1
    adjustment = GoalAdjustment.NONE
    for row, goal in enumerate(tableau.goals):
        if goal.priority != priority:
            continue
        diagnostics.record_row_evaluation()
        value = tableau.evaluate_row(row)
        objective += value
        if violating_row < 0 and not goal.rhs.is_nan():
            needed = determine_adjustment(goal, value)
            if needed != GoalAdjustment.NONE:
                violating_row = row
                adjustment = needed
    return GoalEvaluation(violating_row < 0, objective, violating_row, adjustment)


def can_improve(variable: BoundedVariable, coefficient: Rational, adjustment: GoalAdjustment) -> bool:
    """True when a non-basic variable can move its row in ``adjustment``'s direction."""
    if variable.bound_state == BoundState.BASIC:
        return False
    can_rise = variable.bound_state == BoundState.AT_LOWER and variable.value < variable.upper
    can_fall = variable.bound_state == BoundState.AT_UPPER and variable.value > variable.lower
    if adjustment == GoalAdjustment.INCREASE:
        if coefficient > Rational.ZERO:
            return can_rise
        if coefficient < Rational.ZERO:
            return can_fall
    elif adjustment == GoalAdjustment.DECREASE:
        if coefficient > Rational.ZERO:
            return can_fall
        if coefficient < Rational.ZERO:
            return can_rise
    return False


def select_entering_column(tableau: Tableau, evaluation: GoalEvaluation) -> int:
    """Largest-|coefficient| improving column of the violated row, or -1."""
    if evaluation.violating_row < 0 or evaluation.adjustment == GoalAdjustment.NONE:
        return -1
    best_column = -1
    best_magnitude = Rational.ZERO
    for column in range(tableau.column_count):
        coefficient = tableau.get_coefficient(evaluation.violating_row, column)
        if coefficient == Rational.ZERO:
            continue
        if not can_improve(tableau.variable(column), coefficient, evaluation.adjustment):
            continue
        magnitude = abs(coefficient)
        if best_column < 0 or magnitude > best_magnitude:
            best_column = column
            best_magnitude = magnitude
    return best_column


def apply_bound_hit(tableau: Tableau) -> None:
    """Flip the entering variable to its opposite bound."""
    variable = tableau.variable(tableau.entering_column_index)
    if variable.bound_state == BoundState.AT_LOWER:
        variable.set_value(variable.upper)
    elif variable.bound_state == BoundState.AT_UPPER:
        variable.set_value(variable.lower)


def apply_row_pivot(tableau: Tableau) -> None:
    """Move the entering variable by ``delta`` and park the key row on its pending bound."""
    entering = tableau.variable(tableau.entering_column_index)
    if entering.bound_state == BoundState.AT_LOWER:
        step = Rational.min(tableau.delta, entering.upper - entering.value)
        entering.set_value(entering.value + step)
    else:
        step = Rational.min(tableau.delta, entering.value - entering.lower)
        entering.set_value(entering.value - step)

    row_state = tableau.row_state(tableau.key_row)
    target = row_state.pending_pivot_state
    if row_state.bound is not None:
        new_value = row_state.bound.lower if target == BoundState.AT_LOWER else row_state.bound.upper
        row_state.value = new_value
        row_state.bound_state = target
        tableau.set_rhs(tableau.key_row, new_value)
        row_state.set_pending_pivot_state(BoundState.BASIC)


class PivotEngine:
    """Iterates ratio-test pivots on one priority until its rows are satisfied.

    Stops when every row is satisfied, no column can improve the violated
    row, the ratio test reports a degenerate step, or ``max_iterations``
    pivots were applied.
    """

    def __init__(self, ratio_test: RatioTest | None = None, *, max_iterations: int = 1000) -> None:
        if max_iterations <= 0:
            msg = f"max_iterations must be positive, got {max_iterations}."
            raise ValueError(msg)
        self._ratio_test = ratio_test or BoundedAugmentedRatioTest()
        self._max_iterations = max_iterations

    def run(self, tableau: Tableau, priority: int, diagnostics: SimplexDiagnostics) -> GoalEvaluation:
        tableau.current_priority = priority
        evaluation = evaluate_goals(tableau, priority, diagnostics)
        for _ in range(self._max_iterations):
            if evaluation.all_satisfied:
                break
            column = select_entering_column(tableau, evaluation)
            if column < 0:
                break
            tableau.entering_column_index = column
            pivot = self._ratio_test.evaluate(tableau)
            if pivot == PivotType.DEGENERATE_PIVOT:
                break
            if pivot == PivotType.PRE_EMPTIVE_BOUND_HIT:
                apply_bound_hit(tableau)
            else:
                apply_row_pivot(tableau)
            diagnostics.record_pivot()
            diagnostics.record_pivot_detail(column, tableau.key_row, tableau.delta)
            evaluation = evaluate_goals(tableau, priority, diagnostics)
        else:
            logger.debug("Pivot iteration cap %d reached at priority %d", self._max_iterations, priority)
        return evaluation
