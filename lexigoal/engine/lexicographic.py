"""Lexicographic coordinator: solves priorities in order and locks each one.

For every distinct priority (ascending) branch-and-bound is run on a
working clone of the input tableau. Once a priority is solved its solution
is applied and each of its rows is locked at its exact achieved value, so
no later priority can trade it away.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from fractions import Fraction
from numbers import Integral, Real

import structlog

from lexigoal.config.settings import Settings, get_settings
from lexigoal.engine.branch_and_bound import BranchAndBound
from lexigoal.engine.continuous import ContinuousPrioritySolver
from lexigoal.engine.goals import GoalRow
from lexigoal.engine.rational import Rational
from lexigoal.engine.results import LexicographicGoalResult, MatrixProgress, Progress, SimplexResult
from lexigoal.engine.tableau import Tableau
from lexigoal.engine.variables import BoundedVariable
from lexigoal.models.common import GoalSense, SimplexStatus

logger = structlog.get_logger()


class LexicographicSolver:
    """Runs branch-and-bound per priority and locks achieved values."""

    def __init__(
        self,
        solver: ContinuousPrioritySolver | None = None,
        branch_and_bound: BranchAndBound | None = None,
        *,
        settings: Settings | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._solver = solver or ContinuousPrioritySolver(settings=self._settings)
        self._branch_and_bound = branch_and_bound or BranchAndBound(
            self._solver, settings=self._settings
        )

    # ------------------------------------------------------------------
    # Tableau form
    # ------------------------------------------------------------------

    def solve(self, tableau: Tableau) -> LexicographicGoalResult:
        """Consume the progressive stream and return its final result.

        Raises:
            RuntimeError: If the stream ended without a result.
        """
        final: Progress | None = None
        for progress in self.solve_progressively(tableau):
            final = progress
            if progress.done:
                break
        if final is None or final.result is None:
            raise RuntimeError("Solver did not produce a final result.")
        return final.result

    def solve_progressively(self, tableau: Tableau) -> Iterator[Progress]:
        """Yield a progress item before each priority and a terminal one at the end.

        The input tableau is never modified.
        """
        if tableau is None:
            raise ValueError("tableau must be provided.")

        working = tableau.clone()
        stage_results: list[SimplexResult] = []
        stage_objectives: dict[int, Rational] = {}

        for priority in working.priorities:
            yield Progress(info=f"Solving priority {priority}")
            logger.info("priority_started", priority=priority)

            result = self._branch_and_bound.enforce_integrality(working, priority)
            stage_results.append(result)
            stage_objectives[priority] = result.objective_value
            logger.info(
                "priority_finished",
                priority=priority,
                status=str(result.status),
                objective=str(result.objective_value),
                branches=result.diagnostics.recorded_branches,
            )

            if result.status != SimplexStatus.OPTIMAL:
                yield Progress(
                    info=f"Stopped at priority {priority} with status {result.status}",
                    result=LexicographicGoalResult(
                        result.status, tuple(stage_results), dict(stage_objectives)
                    ),
                    done=True,
                )
                return

            working.apply_solution(result.solution)
            self._lock_priority_rows(working, priority)

        yield Progress(
            info="Lexicographic sequence complete",
            result=LexicographicGoalResult(
                SimplexStatus.OPTIMAL, tuple(stage_results), dict(stage_objectives)
            ),
            done=True,
        )

    @staticmethod
    def _lock_priority_rows(tableau: Tableau, priority: int) -> None:
        for row, goal in enumerate(tableau.goals):
            if goal.priority != priority:
                continue
            tableau.lock_goal_value(row, tableau.evaluate_row(row))

    # ------------------------------------------------------------------
    # Matrix form
    # ------------------------------------------------------------------

    def solve_matrix(
        self,
        coefficients: Sequence[Sequence[object]],
        constants: Sequence[object],
    ) -> Iterator[MatrixProgress]:
        """Solve a single-priority problem given as a coefficient matrix.

        Columns become variables ``x0..`` in ``[0, 1]``; rows become goals
        ``g0..`` at priority 0. A NaN constant makes its row a soft EQUAL
        row with RHS 0; a positive constant is a MAXIMIZE row, a negative
        one MINIMIZE, and zero a hard EQUAL row.

        Yields:
            One ``MatrixProgress`` per coordinator progress item, carrying
            the latest stage's values (zeros before the first stage ends).
        """
        tableau = self.build_matrix_tableau(coefficients, constants)
        columns = tableau.column_count
        for progress in self.solve_progressively(tableau):
            values = (Rational.ZERO,) * columns
            if progress.result is not None and progress.result.stage_results:
                values = progress.result.stage_results[-1].values()
            yield MatrixProgress(result=tuple(values), done=progress.done)

    def build_matrix_tableau(
        self,
        coefficients: Sequence[Sequence[object]],
        constants: Sequence[object],
    ) -> Tableau:
        if coefficients is None:
            raise ValueError("coefficients must be provided.")
        if constants is None:
            raise ValueError("constants must be provided.")
        matrix = [list(row) for row in coefficients]
        rhs_values = list(constants)
        if len(rhs_values) != len(matrix):
            msg = (
                f"constants vector length {len(rhs_values)} must match "
                f"coefficient rows {len(matrix)}."
            )
            raise ValueError(msg)
        if not matrix:
            raise ValueError("At least one coefficient row is required.")
        columns = len(matrix[0])
        if any(len(row) != columns for row in matrix):
            raise ValueError("Coefficient matrix rows must all have the same length.")

        scale = self._settings.RATIONAL_SCALE
        variables = [
            BoundedVariable(f"x{c}", Rational.ZERO, Rational.ONE) for c in range(columns)
        ]
        goals: list[GoalRow] = []
        for r, row in enumerate(matrix):
            coefficient_map = {}
            for c, value in enumerate(row):
                coefficient = _to_rational(value, scale)
                if coefficient.is_nan():
                    msg = f"coefficient [{r}][{c}] is NaN; only constants may be NaN."
                    raise ValueError(msg)
                coefficient_map[f"x{c}"] = coefficient

            constant = _to_rational(rhs_values[r], scale)
            if constant.is_nan():
                sense, rhs, tolerance = GoalSense.EQUAL, Rational.ZERO, Rational.MAX_VALUE
            elif constant > Rational.ZERO:
                sense, rhs, tolerance = GoalSense.MAXIMIZE, constant, Rational.ZERO
            elif constant < Rational.ZERO:
                sense, rhs, tolerance = GoalSense.MINIMIZE, constant, Rational.ZERO
            else:
                sense, rhs, tolerance = GoalSense.EQUAL, constant, Rational.ZERO
            goals.append(GoalRow(f"g{r}", sense, 0, coefficient_map, rhs, tolerance))

        return Tableau(variables, goals)


def _to_rational(value: object, scale: int) -> Rational:
    """Exact conversion for ints, Fractions and Rationals; floats go through ``scale``."""
    if isinstance(value, Rational):
        return value
    if isinstance(value, Integral):
        return Rational(int(value))
    if isinstance(value, Fraction):
        return Rational.from_fraction(value)
    if isinstance(value, Real):
        return Rational.from_float(float(value), scale)
    if hasattr(value, "item"):
        return _to_rational(value.item(), scale)
    msg = f"unsupported numeric type {type(value).__name__}."
    raise TypeError(msg)

