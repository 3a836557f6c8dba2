"""Depth-first branch-and-bound over integer variables.

Each node is a cloned tableau with tightened bounds, solved by the
continuous solver. A node's bound is its objective plus, for every
fractional integer variable, the fractional distance times the variable's
weight at the priority (the sum of its absolute coefficients in that
priority's rows). Nodes are pruned when infeasible, when the bound does
not beat the incumbent, or beyond the depth cap.
"""

import logging
from dataclasses import dataclass

from lexigoal.config.settings import Settings, get_settings
from lexigoal.engine.continuous import ContinuousPrioritySolver
from lexigoal.engine.diagnostics import SimplexDiagnostics
from lexigoal.engine.rational import Rational
from lexigoal.engine.results import SimplexResult
from lexigoal.engine.tableau import Tableau
from lexigoal.engine.variables import BoundedVariable
from lexigoal.models.common import SimplexStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SearchNode:
    tableau: Tableau
    depth: int


def priority_weight(tableau: Tableau, priority: int, column: int) -> Rational:
    """Σ |coefficient| of ``column`` over the rows of ``priority``."""
    weight = Rational.ZERO
    for row, goal in enumerate(tableau.goals):
        if goal.priority != priority:
            continue
        weight += abs(tableau.get_coefficient(row, column))
    return weight


def estimate_remaining_gain(
    solution: tuple[BoundedVariable, ...], tableau: Tableau, priority: int
) -> Rational:
    gain = Rational.ZERO
    for column, variable in enumerate(solution):
        if variable.has_integral_value():
            continue
        gain += variable.fractional_distance() * priority_weight(tableau, priority, column)
    return gain


def select_branch_variable(
    solution: tuple[BoundedVariable, ...], tableau: Tableau, priority: int
) -> int:
    """Fractional integer column with the largest weight × distance, or -1.

    Ties go to the larger distance, then to the lower index.
    """
    best_index = -1
    best_impact = Rational(-1)
    best_distance = Rational(-1)
    for column, variable in enumerate(solution):
        if variable.has_integral_value():
            continue
        distance = variable.fractional_distance()
        if distance == Rational.ZERO:
            continue
        impact = priority_weight(tableau, priority, column) * distance
        if impact > best_impact or (impact == best_impact and distance > best_distance):
            best_impact = impact
            best_distance = distance
            best_index = column
    return best_index


class BranchAndBound:
    """Enforces integrality for one priority around a continuous solver."""

    def __init__(
        self,
        solver: ContinuousPrioritySolver | None = None,
        *,
        settings: Settings | None = None,
    ) -> None:
        self._settings = settings or (solver.settings if solver is not None else get_settings())
        self._solver = solver or ContinuousPrioritySolver(settings=self._settings)

    @property
    def solver(self) -> ContinuousPrioritySolver:
        return self._solver

    def enforce_integrality(self, tableau: Tableau, priority: int) -> SimplexResult:
        """Search for the best integral solution of ``priority``.

        The input tableau is only written when an integral incumbent is
        found; search nodes work on clones.

        Returns:
            OPTIMAL with the incumbent, or GOAL_VIOLATION (objective 0 and
            the input tableau's variables) when no integral node survives.
        """
        max_depth = self._settings.MAX_BRANCH_DEPTH
        diagnostics = SimplexDiagnostics(priority)
        incumbent: tuple[BoundedVariable, ...] | None = None
        incumbent_objective = Rational.MIN_VALUE
        stack = [SearchNode(tableau.clone(), 0)]

        while stack:
            node = stack.pop()
            try:
                result = self._solver.solve_priority(node.tableau, priority)
            except ValueError as exc:
                logger.debug("Pruned node at depth %d: %s", node.depth, exc)
                continue

            diagnostics.merge(result.diagnostics)
            if result.status != SimplexStatus.OPTIMAL:
                continue

            bound = result.objective_value + estimate_remaining_gain(
                result.solution, node.tableau, priority
            )
            diagnostics.record_upper_bound(bound)
            if incumbent is not None and bound <= incumbent_objective:
                continue

            column = select_branch_variable(result.solution, node.tableau, priority)
            if column < 0:
                if incumbent is None or result.objective_value > incumbent_objective:
                    incumbent_objective = result.objective_value
                    incumbent = tuple(v.clone() for v in result.solution)
                    tableau.apply_solution(incumbent)
                    diagnostics.record_incumbent(incumbent_objective)
                    diagnostics.set_final_states(incumbent)
                continue

            if node.depth >= max_depth:
                logger.debug("Pruned node at depth cap %d", max_depth)
                continue

            self._branch(node, result.solution[column], column, diagnostics, stack)

        if incumbent is not None:
            diagnostics.set_final_states(incumbent)
            return SimplexResult(SimplexStatus.OPTIMAL, incumbent_objective, diagnostics, incumbent)

        return SimplexResult(SimplexStatus.GOAL_VIOLATION, Rational.ZERO, diagnostics, tableau.variables)

    @staticmethod
    def _branch(
        node: SearchNode,
        variable: BoundedVariable,
        column: int,
        diagnostics: SimplexDiagnostics,
        stack: list[SearchNode],
    ) -> None:
        floor = variable.value.floor()
        ceil = variable.value.ceiling()
        depth = node.depth + 1

        if floor >= variable.lower:
            left = node.tableau.clone()
            left.apply_bound_override(column, variable.lower, floor)
            stack.append(SearchNode(left, depth))
            diagnostics.record_branch(column, depth)
            diagnostics.record_branch_detail(
                variable.name, variable.lower, floor, depth, floor - variable.lower
            )

        if ceil <= variable.upper:
            right = node.tableau.clone()
            right.apply_bound_override(column, ceil, variable.upper)
            stack.append(SearchNode(right, depth))
            diagnostics.record_branch(column, depth)
            diagnostics.record_branch_detail(
                variable.name, ceil, variable.upper, depth, variable.upper - ceil
            )
