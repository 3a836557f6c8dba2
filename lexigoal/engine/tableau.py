"""Tableau: the complete mutable numeric state consumed by one solve.

The tableau owns its variables (columns), goal rows, per-row solver state,
a dense coefficient matrix and a RHS vector. Every mutation goes through
row/column-indexed accessors that validate the index, and ``clone()``
deep-copies everything so sibling search nodes never alias.
"""

from __future__ import annotations

from collections.abc import Sequence

from lexigoal.engine.goals import GoalRow
from lexigoal.engine.rational import Rational
from lexigoal.engine.variables import BoundedVariable
from lexigoal.models.common import BoundState


class SolverBound:
    """Immutable lower/upper pair for a tableau row."""

    __slots__ = ("lower", "upper")

    def __init__(self, lower: Rational = Rational.MIN_VALUE, upper: Rational = Rational.MAX_VALUE) -> None:
        self.lower = Rational.coerce(lower)
        self.upper = Rational.coerce(upper)

    def clone(self) -> SolverBound:
        return SolverBound(self.lower, self.upper)

    def __repr__(self) -> str:
        return f"SolverBound({self.lower}, {self.upper})"


class TableauRowState:
    """Current state of the basic quantity represented by a tableau row."""

    def __init__(
        self,
        name: str,
        priority: int,
        value: Rational,
        bound: SolverBound | None = None,
    ) -> None:
        self.name = name
        self.priority = priority
        self.value = value
        self.bound = bound
        self.bound_state = BoundState.BASIC
        self._pending_pivot_state = BoundState.BASIC

    @property
    def pending_pivot_state(self) -> BoundState:
        return self._pending_pivot_state

    def set_pending_pivot_state(self, state: BoundState) -> None:
        self._pending_pivot_state = state

    def clone(self) -> TableauRowState:
        copy = TableauRowState(
            self.name,
            self.priority,
            self.value,
            self.bound.clone() if self.bound is not None else None,
        )
        copy.bound_state = self.bound_state
        copy._pending_pivot_state = self._pending_pivot_state
        return copy

    @classmethod
    def for_goal(cls, goal: GoalRow) -> TableauRowState:
        """Default state: value at the goal's RHS, unbounded row."""
        value = Rational.ZERO if goal.rhs.is_nan() else goal.rhs
        return cls(goal.name, goal.priority, value, SolverBound())


class Tableau:
    """Variables × goal rows with coefficients, RHS and row states."""

    def __init__(
        self,
        variables: Sequence[BoundedVariable],
        goals: Sequence[GoalRow],
        row_states: Sequence[TableauRowState] | None = None,
    ) -> None:
        if not variables:
            raise ValueError("At least one variable is required to build a tableau.")
        if not goals:
            raise ValueError("At least one goal row is required.")
        if row_states is None:
            row_states = [TableauRowState.for_goal(goal) for goal in goals]
        if len(row_states) != len(goals):
            msg = (
                f"row states must align with goal rows: got {len(row_states)} "
                f"states for {len(goals)} goals."
            )
            raise ValueError(msg)
        names = [v.name for v in variables]
        if len(set(names)) != len(names):
            raise ValueError("Variable names must be unique.")

        self._variables = [v.clone() for v in variables]
        self._goals = [g.clone() for g in goals]
        self._row_states = [s.clone() for s in row_states]
        self._coefficients = [
            [goal.get_coefficient(name) for name in names] for goal in self._goals
        ]
        self._rhs = [goal.rhs for goal in self._goals]

        self.entering_column_index = -1
        self.key_row = -1
        self.delta = Rational.ZERO
        self.objective_row_index = 0
        self.current_priority = 0

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def variables(self) -> tuple[BoundedVariable, ...]:
        return tuple(self._variables)

    @property
    def goals(self) -> tuple[GoalRow, ...]:
        return tuple(self._goals)

    @property
    def row_states(self) -> tuple[TableauRowState, ...]:
        return tuple(self._row_states)

    @property
    def row_count(self) -> int:
        return len(self._goals)

    @property
    def column_count(self) -> int:
        return len(self._variables)

    @property
    def priorities(self) -> list[int]:
        """Distinct goal priorities, ascending."""
        return sorted({goal.priority for goal in self._goals})

    def values(self) -> list[Rational]:
        return [v.value for v in self._variables]

    def column_index(self, name: str) -> int:
        for index, variable in enumerate(self._variables):
            if variable.name == name:
                return index
        msg = f"unknown variable {name!r}."
        raise KeyError(msg)

    # ------------------------------------------------------------------
    # Indexed accessors
    # ------------------------------------------------------------------

    def variable(self, column: int) -> BoundedVariable:
        self._validate_column(column)
        return self._variables[column]

    def goal(self, row: int) -> GoalRow:
        self._validate_row(row)
        return self._goals[row]

    def row_state(self, row: int) -> TableauRowState:
        self._validate_row(row)
        return self._row_states[row]

    def get_coefficient(self, row: int, column: int) -> Rational:
        self._validate_row(row)
        self._validate_column(column)
        return self._coefficients[row][column]

    def set_coefficient(self, row: int, column: int, value: Rational) -> None:
        self._validate_row(row)
        self._validate_column(column)
        self._coefficients[row][column] = Rational.coerce(value)

    def get_rhs(self, row: int) -> Rational:
        self._validate_row(row)
        return self._rhs[row]

    def set_rhs(self, row: int, value: Rational) -> None:
        self._validate_row(row)
        self._rhs[row] = Rational.coerce(value)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def lock_goal_value(self, row: int, achieved_value: Rational) -> None:
        """Pin a goal at its achieved value so later priorities cannot regress it."""
        self._validate_row(row)
        achieved_value = Rational.coerce(achieved_value)
        coefficients = {
            variable.name: coefficient
            for variable, coefficient in zip(self._variables, self._coefficients[row])
            if coefficient != Rational.ZERO
        }
        self._rhs[row] = achieved_value
        self._goals[row] = self._goals[row].create_lock(achieved_value, coefficients)

    def apply_bound_override(self, column: int, lower: Rational, upper: Rational) -> None:
        self._validate_column(column)
        self._variables[column] = self._variables[column].with_bounds(lower, upper)

    def apply_solution(self, solution: Sequence[BoundedVariable | Rational]) -> None:
        """Write a solution (variables or plain values) onto the columns."""
        if solution is None or len(solution) != len(self._variables):
            msg = (
                f"solution has {0 if solution is None else len(solution)} entries, "
                f"tableau has {len(self._variables)} columns."
            )
            raise ValueError(msg)
        for variable, entry in zip(self._variables, solution):
            value = entry.value if isinstance(entry, BoundedVariable) else entry
            variable.set_value(value)

    def evaluate_row(self, row: int) -> Rational:
        """Exact ``Σ coefficient·value`` for one row."""
        self._validate_row(row)
        total = Rational.ZERO
        for coefficient, variable in zip(self._coefficients[row], self._variables):
            if coefficient == Rational.ZERO:
                continue
            total += coefficient * variable.value
        return total

    def clone(self) -> Tableau:
        copy = Tableau(self._variables, self._goals, self._row_states)
        copy._coefficients = [list(row) for row in self._coefficients]
        copy._rhs = list(self._rhs)
        copy.entering_column_index = self.entering_column_index
        copy.key_row = self.key_row
        copy.delta = self.delta
        copy.objective_row_index = self.objective_row_index
        copy.current_priority = self.current_priority
        return copy

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def _validate_row(self, row: int) -> None:
        if row < 0 or row >= len(self._goals):
            msg = f"row index {row} out of range [0, {len(self._goals)})."
            raise IndexError(msg)

    def _validate_column(self, column: int) -> None:
        if column < 0 or column >= len(self._variables):
            msg = f"column index {column} out of range [0, {len(self._variables)})."
            raise IndexError(msg)
