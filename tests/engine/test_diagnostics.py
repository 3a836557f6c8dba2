"""Tests for SimplexDiagnostics recording and merge semantics."""

import pytest

from lexigoal.engine.diagnostics import BranchTrace, PivotTrace, SimplexDiagnostics
from lexigoal.engine.rational import Rational
from lexigoal.engine.variables import BoundedVariable
from lexigoal.models.common import BoundState


class TestRecording:
    def test_initial_state(self) -> None:
        d = SimplexDiagnostics(2)
        assert d.priority_level == 2
        assert d.first_branch_variable == -1
        assert d.last_branch_variable == -1
        assert d.last_upper_bound == Rational.MIN_VALUE
        assert d.branch_details == ()

    def test_negative_priority_rejected(self) -> None:
        with pytest.raises(ValueError):
            SimplexDiagnostics(-1)

    def test_branch_tracking(self) -> None:
        d = SimplexDiagnostics(0)
        d.record_branch(3, 1)
        d.record_branch(1, 4)
        d.record_branch(2, 2)
        assert d.recorded_branches == 3
        assert d.first_branch_variable == 3
        assert d.last_branch_variable == 2
        assert d.max_branch_depth == 4

    def test_upper_bound_keeps_maximum(self) -> None:
        d = SimplexDiagnostics(0)
        d.record_upper_bound(Rational(5))
        d.record_upper_bound(Rational(2))
        assert d.last_upper_bound == Rational(5)

    def test_traces(self) -> None:
        d = SimplexDiagnostics(0)
        d.record_branch_detail("a", Rational(0), Rational(1), 1, Rational(1))
        d.record_pivot_detail(0, -1, Rational(1, 2))
        assert d.branch_details == (BranchTrace("a", Rational(0), Rational(1), 1, Rational(1)),)
        assert d.pivot_details == (PivotTrace(0, -1, Rational(1, 2)),)

    def test_final_states(self) -> None:
        a = BoundedVariable("a", Rational(0), Rational(1))
        b = BoundedVariable("b", Rational(0), Rational(1))
        b.set_value(Rational(1))
        d = SimplexDiagnostics(0)
        d.set_final_states([a, b])
        assert d.final_variable_states == {"a": BoundState.AT_LOWER, "b": BoundState.AT_UPPER}
        d.set_final_states(None)
        assert d.final_variable_states == {}


class TestMerge:
    def test_merge_folds_counts_and_traces(self) -> None:
        parent = SimplexDiagnostics(0)
        parent.record_row_evaluation(2)
        parent.record_upper_bound(Rational(1))
        parent.record_strategy("vertex", 3)

        child = SimplexDiagnostics(0)
        child.record_row_evaluation(3)
        child.record_pivot()
        child.record_branch(4, 6)
        child.record_upper_bound(Rational(7))
        child.record_incumbent(Rational(2))
        child.record_branch_detail("x", Rational(0), Rational(1), 6, Rational(1))
        child.record_strategy("vertex", 2)
        child.record_strategy("gauss", 1)

        parent.merge(child)

        assert parent.evaluated_rows == 5
        assert parent.pivot_count == 1
        assert parent.recorded_branches == 1
        assert parent.max_branch_depth == 6
        assert parent.first_branch_variable == 4
        assert parent.last_branch_variable == 4
        assert parent.last_upper_bound == Rational(7)
        assert parent.incumbent_history == (Rational(2),)
        assert len(parent.branch_details) == 1
        assert parent.strategy_candidates == {"vertex": 5, "gauss": 1}

    def test_first_branch_variable_kept_once_set(self) -> None:
        parent = SimplexDiagnostics(0)
        parent.record_branch(1, 1)
        child = SimplexDiagnostics(0)
        child.record_branch(5, 1)
        parent.merge(child)
        assert parent.first_branch_variable == 1
        assert parent.last_branch_variable == 5

    def test_child_without_branches_keeps_last(self) -> None:
        parent = SimplexDiagnostics(0)
        parent.record_branch(1, 1)
        parent.merge(SimplexDiagnostics(0))
        assert parent.last_branch_variable == 1

    def test_merge_none_is_noop(self) -> None:
        parent = SimplexDiagnostics(0)
        parent.merge(None)
        assert parent.evaluated_rows == 0
