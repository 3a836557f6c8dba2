"""Result and progress types returned by the solvers."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from lexigoal.engine.diagnostics import SimplexDiagnostics
from lexigoal.engine.rational import Rational
from lexigoal.engine.variables import BoundedVariable
from lexigoal.models.common import SimplexStatus


class SimplexResult:
    """Outcome of one priority stage: status, objective, diagnostics and solution.

    The solution is a snapshot; every variable is cloned on construction so
    later mutation of the source tableau never leaks into a stored result.
    """

    def __init__(
        self,
        status: SimplexStatus,
        objective_value: Rational,
        diagnostics: SimplexDiagnostics,
        solution: Iterable[BoundedVariable],
    ) -> None:
        if diagnostics is None:
            raise ValueError("diagnostics must be provided.")
        if solution is None:
            raise ValueError("solution must be provided.")
        self.status = SimplexStatus(status)
        self.objective_value = Rational.coerce(objective_value)
        self.diagnostics = diagnostics
        self.solution: tuple[BoundedVariable, ...] = tuple(v.clone() for v in solution)

    @property
    def is_optimal(self) -> bool:
        return self.status == SimplexStatus.OPTIMAL

    def values(self) -> tuple[Rational, ...]:
        return tuple(v.value for v in self.solution)

    def __repr__(self) -> str:
        return f"SimplexResult({self.status}, objective={self.objective_value})"


@dataclass(frozen=True)
class LexicographicGoalResult:
    """All stage results of a lexicographic solve plus the per-priority objectives."""

    status: SimplexStatus
    stage_results: tuple[SimplexResult, ...] = ()
    stage_objectives: Mapping[int, Rational] = field(default_factory=dict)

    @property
    def final_solution(self) -> tuple[BoundedVariable, ...]:
        if not self.stage_results:
            return ()
        return self.stage_results[-1].solution


@dataclass(frozen=True)
class Progress:
    """One item of the progressive solve stream."""

    info: str
    result: LexicographicGoalResult | None = None
    done: bool = False


@dataclass(frozen=True)
class MatrixProgress:
    """Progress item of the matrix-form entry point: one value per column."""

    result: tuple[Rational, ...] = ()
    done: bool = False
