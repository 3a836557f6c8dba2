"""Per-stage solver instrumentation.

Counters and traces collected while solving one priority. Collectors from
child search nodes are folded into their parent with ``merge()`` so the
stage result carries the totals for the whole subtree.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from lexigoal.engine.rational import Rational
from lexigoal.engine.variables import BoundedVariable
from lexigoal.models.common import BoundState


@dataclass(frozen=True)
class BranchTrace:
    """One branch-and-bound child: the tightened bounds it was created with."""

    variable: str
    lower_bound: Rational
    upper_bound: Rational
    depth: int
    delta: Rational


@dataclass(frozen=True)
class PivotTrace:
    """One applied pivot: entering column, leaving row (-1 for bound flips), step."""

    entering_column: int
    leaving_row: int
    step_size: Rational


class SimplexDiagnostics:
    """Counters and traces for one priority stage."""

    def __init__(self, priority_level: int) -> None:
        if priority_level < 0:
            msg = f"priority_level must be non-negative, got {priority_level}."
            raise ValueError(msg)
        self._priority_level = priority_level
        self.evaluated_rows = 0
        self.pivot_count = 0
        self.recorded_branches = 0
        self.max_branch_depth = 0
        self.first_branch_variable = -1
        self.last_branch_variable = -1
        self.last_upper_bound = Rational.MIN_VALUE
        self._branch_details: list[BranchTrace] = []
        self._pivot_details: list[PivotTrace] = []
        self._incumbent_history: list[Rational] = []
        self._final_states: dict[str, BoundState] = {}
        self._strategy_candidates: dict[str, int] = {}

    @property
    def priority_level(self) -> int:
        return self._priority_level

    @property
    def branch_details(self) -> tuple[BranchTrace, ...]:
        return tuple(self._branch_details)

    @property
    def pivot_details(self) -> tuple[PivotTrace, ...]:
        return tuple(self._pivot_details)

    @property
    def incumbent_history(self) -> tuple[Rational, ...]:
        return tuple(self._incumbent_history)

    @property
    def final_variable_states(self) -> Mapping[str, BoundState]:
        return dict(self._final_states)

    @property
    def strategy_candidates(self) -> Mapping[str, int]:
        """Candidate count produced by each continuous search strategy."""
        return dict(self._strategy_candidates)

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    def record_row_evaluation(self, count: int = 1) -> None:
        self.evaluated_rows += count

    def record_pivot(self) -> None:
        self.pivot_count += 1

    def record_branch(self, variable_index: int, depth: int) -> None:
        self.recorded_branches += 1
        if self.first_branch_variable < 0:
            self.first_branch_variable = variable_index
        self.last_branch_variable = variable_index
        if depth > self.max_branch_depth:
            self.max_branch_depth = depth

    def record_branch_detail(
        self,
        variable_name: str,
        lower_bound: Rational,
        upper_bound: Rational,
        depth: int,
        delta: Rational,
    ) -> None:
        self._branch_details.append(
            BranchTrace(variable_name, lower_bound, upper_bound, depth, delta)
        )

    def record_pivot_detail(self, entering_column: int, leaving_row: int, step_size: Rational) -> None:
        self._pivot_details.append(PivotTrace(entering_column, leaving_row, step_size))

    def record_upper_bound(self, bound: Rational) -> None:
        if bound > self.last_upper_bound:
            self.last_upper_bound = bound

    def record_incumbent(self, objective: Rational) -> None:
        self._incumbent_history.append(objective)

    def record_strategy(self, strategy: str, candidates: int) -> None:
        self._strategy_candidates[strategy] = self._strategy_candidates.get(strategy, 0) + candidates

    def set_final_states(self, solution: Iterable[BoundedVariable] | None) -> None:
        self._final_states.clear()
        if solution is None:
            return
        for variable in solution:
            self._final_states[variable.name] = variable.bound_state

    # ------------------------------------------------------------------
    # Merge
    # ------------------------------------------------------------------

    def merge(self, other: SimplexDiagnostics | None) -> None:
        """Fold a child collector into this one.

        Counts add, depth and upper bound take the maximum, the first branch
        variable is kept once set and the last is taken from ``other`` when it
        branched. Final variable states are left alone.
        """
        if other is None:
            return
        self.evaluated_rows += other.evaluated_rows
        self.pivot_count += other.pivot_count
        self.recorded_branches += other.recorded_branches
        if other.max_branch_depth > self.max_branch_depth:
            self.max_branch_depth = other.max_branch_depth
        if self.first_branch_variable < 0 and other.first_branch_variable >= 0:
            self.first_branch_variable = other.first_branch_variable
        if other.last_branch_variable >= 0:
            self.last_branch_variable = other.last_branch_variable
        if other.last_upper_bound > self.last_upper_bound:
            self.last_upper_bound = other.last_upper_bound
        self._branch_details.extend(other._branch_details)
        self._pivot_details.extend(other._pivot_details)
        self._incumbent_history.extend(other._incumbent_history)
        for strategy, count in other._strategy_candidates.items():
            self.record_strategy(strategy, count)
