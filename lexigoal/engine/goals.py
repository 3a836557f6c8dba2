"""Prioritized linear goal rows.

A row holds a sparse coefficient map (absent variables contribute zero),
a sense, a right-hand side and a tolerance. A tolerance at the
``Rational.MAX_VALUE`` sentinel marks the row soft: it is minimized as a
deviation instead of being enforced.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from lexigoal.engine.rational import Rational
from lexigoal.models.common import GoalSense

LOCK_SUFFIX = "_lock"

SOFT_TOLERANCE = Rational.MAX_VALUE


class GoalRow:
    """One prioritized goal: ``sense(Σ coefficient·x)`` against ``rhs``."""

    def __init__(
        self,
        name: str,
        sense: GoalSense,
        priority: int,
        coefficients: Mapping[str, Rational] | Iterable[tuple[str, Rational]],
        rhs: Rational,
        tolerance: Rational = Rational.ZERO,
        *,
        locked: bool = False,
    ) -> None:
        if not name or not name.strip():
            raise ValueError("Goal name must be provided.")
        if priority < 0:
            msg = f"goal {name!r}: priority must be non-negative, got {priority}."
            raise ValueError(msg)
        if coefficients is None:
            msg = f"goal {name!r}: coefficients must be provided."
            raise ValueError(msg)

        items = coefficients.items() if isinstance(coefficients, Mapping) else coefficients
        self._name = name
        self._sense = GoalSense(sense)
        self._priority = priority
        self._coefficients: dict[str, Rational] = {
            key: Rational.coerce(value) for key, value in items
        }
        self._rhs = Rational.coerce(rhs)
        self._tolerance = Rational.coerce(tolerance)
        self._locked = locked

    @property
    def name(self) -> str:
        return self._name

    @property
    def sense(self) -> GoalSense:
        return self._sense

    @property
    def priority(self) -> int:
        return self._priority

    @property
    def rhs(self) -> Rational:
        return self._rhs

    @property
    def tolerance(self) -> Rational:
        return self._tolerance

    @property
    def coefficients(self) -> dict[str, Rational]:
        return dict(self._coefficients)

    @property
    def is_soft(self) -> bool:
        return self._tolerance >= SOFT_TOLERANCE - Rational.EPSILON

    @property
    def is_lock(self) -> bool:
        """True only for rows produced by ``create_lock``."""
        return self._locked

    def get_coefficient(self, variable_name: str) -> Rational:
        if not variable_name:
            return Rational.ZERO
        return self._coefficients.get(variable_name, Rational.ZERO)

    def create_lock(
        self,
        achieved_value: Rational,
        coefficients: Mapping[str, Rational] | None = None,
    ) -> GoalRow:
        """Return an EQUAL row pinning this goal at ``achieved_value``.

        ``coefficients`` replaces the row's own map when the caller holds a
        more current one (a tableau whose matrix was edited in place).
        """
        name = self._name if self._locked else f"{self._name}{LOCK_SUFFIX}"
        return GoalRow(
            name,
            GoalSense.EQUAL,
            self._priority,
            dict(self._coefficients if coefficients is None else coefficients),
            achieved_value,
            self._tolerance,
            locked=True,
        )

    def clone(self) -> GoalRow:
        return GoalRow(
            self._name,
            self._sense,
            self._priority,
            dict(self._coefficients),
            self._rhs,
            self._tolerance,
            locked=self._locked,
        )

    def __repr__(self) -> str:
        soft = ", soft" if self.is_soft else ""
        return f"GoalRow({self._name!r}, {self._sense}, p={self._priority}, rhs={self._rhs}{soft})"
