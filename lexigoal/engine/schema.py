"""Declarative problem description and its conversion into a tableau.

Numbers are given as ints, floats, or strings in ``"a"``, ``"a/b"`` or
``"a/b/c/d"`` form. Ints and strings are exact; floats are converted
through the configured decimal scale.
"""

from __future__ import annotations

from pydantic import Field, field_validator, model_validator

from lexigoal.engine.goals import SOFT_TOLERANCE, GoalRow
from lexigoal.engine.rational import Rational
from lexigoal.engine.tableau import Tableau
from lexigoal.engine.variables import BoundedVariable
from lexigoal.models.common import GoalSense, LexigoalBase

Number = int | float | str


def to_rational(value: Number, scale: int = 1_000_000) -> Rational:
    if isinstance(value, str):
        return Rational.parse(value)
    if isinstance(value, int):
        return Rational(value)
    return Rational.from_float(value, scale)


class VariableSpec(LexigoalBase):
    """One bounded decision variable."""

    name: str = Field(..., min_length=1)
    lower: Number = 0
    upper: Number = 1
    is_integer: bool = False
    priority: int = Field(default=0, ge=0)

    @field_validator("lower", "upper")
    @classmethod
    def _parsable(cls, v: Number) -> Number:
        rational = to_rational(v)
        if rational.is_nan():
            msg = "bounds must be finite numbers, got NaN"
            raise ValueError(msg)
        return v

    @model_validator(mode="after")
    def _bounds_ordered(self) -> VariableSpec:
        if to_rational(self.upper) < to_rational(self.lower):
            msg = f"variable {self.name!r}: upper bound {self.upper} is below lower bound {self.lower}"
            raise ValueError(msg)
        return self


class GoalSpec(LexigoalBase):
    """One prioritized goal row; ``soft`` rows only minimize their deviation."""

    name: str = Field(..., min_length=1)
    sense: GoalSense
    priority: int = Field(default=0, ge=0)
    coefficients: dict[str, Number] = Field(default_factory=dict)
    rhs: Number = 0
    tolerance: Number = 0
    soft: bool = False

    @field_validator("rhs", "tolerance")
    @classmethod
    def _parsable(cls, v: Number) -> Number:
        to_rational(v)
        return v


class ProblemSpec(LexigoalBase):
    """Variables and goals of one lexicographic problem."""

    variables: list[VariableSpec] = Field(..., min_length=1)
    goals: list[GoalSpec] = Field(..., min_length=1)

    @model_validator(mode="after")
    def _references_resolve(self) -> ProblemSpec:
        names = [v.name for v in self.variables]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            msg = f"duplicate variable names: {duplicates}"
            raise ValueError(msg)

        goal_names = [g.name for g in self.goals]
        duplicate_goals = sorted({n for n in goal_names if goal_names.count(n) > 1})
        if duplicate_goals:
            msg = f"duplicate goal names: {duplicate_goals}"
            raise ValueError(msg)

        known = set(names)
        for goal in self.goals:
            unknown = sorted(set(goal.coefficients) - known)
            if unknown:
                msg = f"goal {goal.name!r} references unknown variables: {unknown}"
                raise ValueError(msg)
        return self


def build_tableau(spec: ProblemSpec, *, scale: int = 1_000_000) -> Tableau:
    """Build a tableau whose columns follow ``spec.variables`` order."""
    variables = [
        BoundedVariable(
            v.name,
            to_rational(v.lower, scale),
            to_rational(v.upper, scale),
            is_integer=v.is_integer,
            priority=v.priority,
        )
        for v in spec.variables
    ]
    goals = [
        GoalRow(
            g.name,
            g.sense,
            g.priority,
            {name: to_rational(value, scale) for name, value in g.coefficients.items()},
            to_rational(g.rhs, scale),
            SOFT_TOLERANCE if g.soft else to_rational(g.tolerance, scale),
        )
        for g in spec.goals
    ]
    return Tableau(variables, goals)
