"""Bounded decision variables.

A variable tracks its bounds, integrality flag and current value. Its bound
state is recomputed on every write by exact comparison against the bounds,
so a value equal to a bound is never mistaken for an interior one.
"""

from __future__ import annotations

from lexigoal.engine.rational import Rational
from lexigoal.models.common import BoundState


class BoundedVariable:
    """One decision variable constrained to ``[lower, upper]``."""

    def __init__(
        self,
        name: str,
        lower: Rational,
        upper: Rational,
        *,
        is_integer: bool = False,
        priority: int = 0,
    ) -> None:
        if not name or not name.strip():
            raise ValueError("Variable name must be provided.")
        lower = Rational.coerce(lower)
        upper = Rational.coerce(upper)
        if upper < lower:
            msg = f"variable {name!r}: upper bound {upper} is below lower bound {lower}."
            raise ValueError(msg)

        self._name = name
        self._lower = lower
        self._upper = upper
        self._is_integer = is_integer
        self._priority = priority
        self._value = lower
        self._bound_state = BoundState.AT_LOWER

    @property
    def name(self) -> str:
        return self._name

    @property
    def lower(self) -> Rational:
        return self._lower

    @property
    def upper(self) -> Rational:
        return self._upper

    @property
    def is_integer(self) -> bool:
        return self._is_integer

    @property
    def priority(self) -> int:
        return self._priority

    @property
    def value(self) -> Rational:
        return self._value

    @property
    def bound_state(self) -> BoundState:
        return self._bound_state

    def set_value(self, value: Rational) -> None:
        """Store ``value`` and recompute the bound state.

        Raises:
            ValueError: If ``value`` lies outside ``[lower, upper]``.
        """
        value = Rational.coerce(value)
        if value < self._lower or value > self._upper:
            msg = f"value {value} of {self._name!r} is outside [{self._lower}, {self._upper}]."
            raise ValueError(msg)
        self._value = value
        self._bound_state = self._resolve_bound_state(value)

    def in_bounds(self) -> bool:
        return self._lower <= self._value <= self._upper

    def clone(self) -> BoundedVariable:
        copy = BoundedVariable(
            self._name,
            self._lower,
            self._upper,
            is_integer=self._is_integer,
            priority=self._priority,
        )
        copy._value = self._value
        copy._bound_state = self._bound_state
        return copy

    def with_bounds(self, lower: Rational, upper: Rational) -> BoundedVariable:
        """Return a copy with new bounds and the value clamped into them."""
        copy = BoundedVariable(
            self._name,
            lower,
            upper,
            is_integer=self._is_integer,
            priority=self._priority,
        )
        clamped = self._value
        if clamped < copy.lower:
            clamped = copy.lower
        elif clamped > copy.upper:
            clamped = copy.upper
        copy.set_value(clamped)
        return copy

    def has_integral_value(self) -> bool:
        return not self._is_integer or self._value.is_integral()

    def fractional_distance(self) -> Rational:
        """Distance from the value down to its floor; zero for continuous variables."""
        if not self._is_integer:
            return Rational.ZERO
        return self._value - self._value.floor()

    def _resolve_bound_state(self, value: Rational) -> BoundState:
        if value == self._lower:
            return BoundState.AT_LOWER
        if value == self._upper:
            return BoundState.AT_UPPER
        return BoundState.BASIC

    def __repr__(self) -> str:
        kind = "int" if self._is_integer else "real"
        return (
            f"BoundedVariable({self._name!r}, [{self._lower}, {self._upper}], "
            f"{kind}, value={self._value}, {self._bound_state})"
        )
