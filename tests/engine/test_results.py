"""Tests for result snapshots and progress items."""

import pytest

from lexigoal.engine.diagnostics import SimplexDiagnostics
from lexigoal.engine.rational import Rational
from lexigoal.engine.results import LexicographicGoalResult, Progress, SimplexResult
from lexigoal.engine.variables import BoundedVariable
from lexigoal.models.common import SimplexStatus


class TestSimplexResult:
    def test_solution_is_snapshot(self) -> None:
        v = BoundedVariable("x", Rational(0), Rational(1))
        result = SimplexResult(SimplexStatus.OPTIMAL, Rational(1), SimplexDiagnostics(0), [v])
        v.set_value(Rational(1))
        assert result.values() == (Rational(0),)
        assert result.is_optimal

    def test_diagnostics_required(self) -> None:
        with pytest.raises(ValueError, match="diagnostics"):
            SimplexResult(SimplexStatus.OPTIMAL, Rational(0), None, [])

    def test_int_objective_coerced(self) -> None:
        result = SimplexResult("GOAL_VIOLATION", 0, SimplexDiagnostics(0), [])
        assert result.status == SimplexStatus.GOAL_VIOLATION
        assert result.objective_value == Rational.ZERO
        assert not result.is_optimal


class TestLexicographicGoalResult:
    def test_final_solution_of_last_stage(self) -> None:
        first = SimplexResult(SimplexStatus.OPTIMAL, 0, SimplexDiagnostics(0), [])
        v = BoundedVariable("x", Rational(0), Rational(1))
        last = SimplexResult(SimplexStatus.OPTIMAL, 0, SimplexDiagnostics(1), [v])
        result = LexicographicGoalResult(SimplexStatus.OPTIMAL, (first, last), {0: Rational(0)})
        assert [var.name for var in result.final_solution] == ["x"]

    def test_empty(self) -> None:
        assert LexicographicGoalResult(SimplexStatus.GOAL_VIOLATION).final_solution == ()

    def test_progress_defaults(self) -> None:
        progress = Progress(info="Solving priority 0")
        assert progress.result is None
        assert not progress.done
