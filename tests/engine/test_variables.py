"""Tests for BoundedVariable bound-state tracking."""

import pytest

from lexigoal.engine.rational import Rational
from lexigoal.engine.variables import BoundedVariable
from lexigoal.models.common import BoundState


def _make_var(lower: int = 0, upper: int = 2, *, is_integer: bool = False) -> BoundedVariable:
    return BoundedVariable("x", Rational(lower), Rational(upper), is_integer=is_integer)


class TestConstruction:
    def test_starts_at_lower_bound(self) -> None:
        v = _make_var(1, 3)
        assert v.value == Rational(1)
        assert v.bound_state == BoundState.AT_LOWER

    def test_rejects_inverted_bounds(self) -> None:
        with pytest.raises(ValueError, match="below lower bound"):
            _make_var(3, 1)

    def test_rejects_blank_name(self) -> None:
        with pytest.raises(ValueError, match="name"):
            BoundedVariable("  ", Rational.ZERO, Rational.ONE)

    def test_degenerate_range_allowed(self) -> None:
        v = _make_var(2, 2)
        assert v.bound_state == BoundState.AT_LOWER


class TestSetValue:
    def test_interior_value_is_basic(self) -> None:
        v = _make_var()
        v.set_value(Rational(1, 2))
        assert v.bound_state == BoundState.BASIC

    def test_upper_bound_state(self) -> None:
        v = _make_var()
        v.set_value(Rational(2))
        assert v.bound_state == BoundState.AT_UPPER

    def test_equal_bounds_prefer_lower(self) -> None:
        v = _make_var(1, 1)
        v.set_value(Rational(1))
        assert v.bound_state == BoundState.AT_LOWER

    def test_out_of_range_rejected_and_value_kept(self) -> None:
        v = _make_var()
        v.set_value(Rational(1))
        with pytest.raises(ValueError, match="outside"):
            v.set_value(Rational(3))
        assert v.value == Rational(1)

    def test_epsilon_beyond_bound_rejected(self) -> None:
        v = _make_var()
        with pytest.raises(ValueError):
            v.set_value(Rational(2) + Rational.EPSILON)


class TestCloneAndBounds:
    def test_clone_is_independent(self) -> None:
        v = _make_var()
        copy = v.clone()
        copy.set_value(Rational(2))
        assert v.value == Rational(0)
        assert copy.bound_state == BoundState.AT_UPPER

    def test_with_bounds_clamps_value(self) -> None:
        v = _make_var(0, 4)
        v.set_value(Rational(7, 2))
        narrowed = v.with_bounds(Rational(0), Rational(3))
        assert narrowed.value == Rational(3)
        assert narrowed.bound_state == BoundState.AT_UPPER
        assert v.upper == Rational(4)

    def test_with_bounds_keeps_interior_value(self) -> None:
        v = _make_var(0, 4)
        v.set_value(Rational(3, 2))
        narrowed = v.with_bounds(Rational(1), Rational(2))
        assert narrowed.value == Rational(3, 2)


class TestIntegrality:
    def test_continuous_always_integral(self) -> None:
        v = _make_var()
        v.set_value(Rational(1, 3))
        assert v.has_integral_value()
        assert v.fractional_distance() == Rational.ZERO

    def test_integer_fractional_distance(self) -> None:
        v = _make_var(is_integer=True)
        v.set_value(Rational(5, 4))
        assert not v.has_integral_value()
        assert v.fractional_distance() == Rational(1, 4)
