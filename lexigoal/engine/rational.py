"""Exact rational numbers for the goal-programming engine.

Values are auto-reducing and immutable. Numerator and denominator must fit
in a signed 64-bit range; Python ints serve as the wider intermediate type
for every product, so comparisons are exact cross-multiplications.

A denominator of zero is reserved for ``Rational.NAN``, the out-of-band
"soft / no preference" marker. It is never produced by arithmetic.
"""

from __future__ import annotations

import math
from fractions import Fraction
from numbers import Integral

STORAGE_LIMIT = 2**63 - 1


def _check_range(value: int) -> None:
    if abs(value) > STORAGE_LIMIT:
        msg = f"rational component {value} exceeds the 64-bit storage range."
        raise OverflowError(msg)


class Rational:
    """Immutable, always-reduced rational number with a positive denominator."""

    __slots__ = ("_num", "_den")

    ZERO: Rational
    ONE: Rational
    MIN_VALUE: Rational
    MAX_VALUE: Rational
    EPSILON: Rational
    NAN: Rational

    def __init__(self, numerator: int = 0, denominator: int = 1) -> None:
        if not isinstance(numerator, Integral) or not isinstance(denominator, Integral):
            msg = "Rational components must be integers; use from_float() for floats."
            raise TypeError(msg)
        numerator = int(numerator)
        denominator = int(denominator)
        if denominator == 0:
            raise ZeroDivisionError("The denominator of a rational cannot be zero.")
        if denominator < 0:
            numerator, denominator = -numerator, -denominator
        g = math.gcd(numerator, denominator)
        numerator //= g
        denominator //= g
        _check_range(numerator)
        _check_range(denominator)
        self._num = numerator
        self._den = denominator

    @classmethod
    def _marker(cls) -> Rational:
        obj = object.__new__(cls)
        obj._num = 0
        obj._den = 0
        return obj

    # ------------------------------------------------------------------
    # Conversions
    # ------------------------------------------------------------------

    @classmethod
    def coerce(cls, value: object) -> Rational:
        """Convert an int, Fraction or Rational; anything else is a TypeError."""
        if isinstance(value, Rational):
            return value
        if isinstance(value, Integral):
            return cls(int(value))
        if isinstance(value, Fraction):
            return cls(value.numerator, value.denominator)
        msg = f"cannot convert {type(value).__name__} to Rational exactly."
        raise TypeError(msg)

    @classmethod
    def from_float(cls, value: float, scale: int = 1_000_000) -> Rational:
        """Convert a float through a fixed decimal scale.

        NaN maps to ``Rational.NAN``; infinities are rejected.
        """
        value = float(value)
        if math.isnan(value):
            return cls.NAN
        if math.isinf(value):
            msg = "coefficients and constants must be finite."
            raise ValueError(msg)
        if scale <= 0:
            msg = f"scale must be positive, got {scale}."
            raise ValueError(msg)
        return cls(round(value * scale), scale)

    @classmethod
    def from_fraction(cls, value: Fraction) -> Rational:
        return cls(value.numerator, value.denominator)

    def to_fraction(self) -> Fraction:
        self._require_number()
        return Fraction(self._num, self._den)

    @classmethod
    def parse(cls, text: str) -> Rational:
        """Parse ``"a/b"`` or the compound ``"a/b/c/d"`` = ``(a/b) / (c/d)``.

        Raises:
            ValueError: If the text is not in one of those formats.
        """
        if text is None:
            raise ValueError("cannot parse None as a rational.")
        parts = text.strip().split("/")
        try:
            numbers = [int(p) for p in parts]
        except ValueError as exc:
            msg = f"invalid rational format: {text!r}."
            raise ValueError(msg) from exc
        if len(numbers) == 1:
            return cls(numbers[0])
        if len(numbers) == 2:
            return cls(numbers[0], numbers[1])
        if len(numbers) == 4:
            return cls(numbers[0], numbers[1]) / cls(numbers[2], numbers[3])
        msg = f"invalid rational format: {text!r}."
        raise ValueError(msg)

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def numerator(self) -> int:
        return self._num

    @property
    def denominator(self) -> int:
        return self._den

    def is_nan(self) -> bool:
        return self._den == 0

    def is_infinity(self) -> bool:
        """True when either component sits at the storage limit."""
        return abs(self._num) >= STORAGE_LIMIT or self._den >= STORAGE_LIMIT

    def is_integral(self) -> bool:
        return self._den == 1

    def _require_number(self) -> None:
        if self._den == 0:
            raise ValueError("Rational.NAN is a marker and takes no part in arithmetic.")

    # ------------------------------------------------------------------
    # Arithmetic
    # ------------------------------------------------------------------

    @staticmethod
    def _operand(value: object) -> Rational | None:
        if isinstance(value, Rational):
            value._require_number()
            return value
        if isinstance(value, Integral):
            return Rational(int(value))
        return None

    def __add__(self, other: object) -> Rational:
        o = self._operand(other)
        if o is None:
            return NotImplemented
        self._require_number()
        return Rational(self._num * o._den + o._num * self._den, self._den * o._den)

    __radd__ = __add__

    def __sub__(self, other: object) -> Rational:
        o = self._operand(other)
        if o is None:
            return NotImplemented
        self._require_number()
        return Rational(self._num * o._den - o._num * self._den, self._den * o._den)

    def __rsub__(self, other: object) -> Rational:
        o = self._operand(other)
        if o is None:
            return NotImplemented
        return o - self

    def __mul__(self, other: object) -> Rational:
        o = self._operand(other)
        if o is None:
            return NotImplemented
        self._require_number()
        return Rational(self._num * o._num, self._den * o._den)

    __rmul__ = __mul__

    def __truediv__(self, other: object) -> Rational:
        o = self._operand(other)
        if o is None:
            return NotImplemented
        self._require_number()
        if o._num == 0:
            raise ZeroDivisionError("division by a zero-valued rational.")
        return Rational(self._num * o._den, self._den * o._num)

    def __rtruediv__(self, other: object) -> Rational:
        o = self._operand(other)
        if o is None:
            return NotImplemented
        return o / self

    def __pow__(self, exponent: int) -> Rational:
        if not isinstance(exponent, Integral):
            return NotImplemented
        self._require_number()
        if exponent < 0:
            return self.inverse() ** -exponent
        return Rational(self._num**exponent, self._den**exponent)

    def __neg__(self) -> Rational:
        self._require_number()
        return Rational(-self._num, self._den)

    def __pos__(self) -> Rational:
        return self

    def __abs__(self) -> Rational:
        self._require_number()
        return Rational(abs(self._num), self._den)

    def inverse(self) -> Rational:
        self._require_number()
        return Rational(self._den, self._num)

    def __floor__(self) -> int:
        self._require_number()
        return self._num // self._den

    def __ceil__(self) -> int:
        self._require_number()
        return -(-self._num // self._den)

    def floor(self) -> Rational:
        return Rational(math.floor(self))

    def ceiling(self) -> Rational:
        return Rational(math.ceil(self))

    @staticmethod
    def min(a: Rational, b: Rational) -> Rational:
        return a if a < b else b

    @staticmethod
    def max(a: Rational, b: Rational) -> Rational:
        return a if a > b else b

    # ------------------------------------------------------------------
    # Comparison
    # ------------------------------------------------------------------

    def _cross(self, other: object) -> tuple[int, int] | None:
        o = self._operand(other)
        if o is None:
            return None
        self._require_number()
        return self._num * o._den, o._num * self._den

    def __eq__(self, other: object) -> bool:
        if self._den == 0:
            return isinstance(other, Rational) and other._den == 0
        if isinstance(other, Rational) and other._den == 0:
            return False
        if isinstance(other, Fraction):
            other = Rational.from_fraction(other)
        if not isinstance(other, Rational | Integral):
            return NotImplemented
        left, right = self._cross(other)
        return left == right

    def __hash__(self) -> int:
        if self._den == 0:
            return hash(("Rational", "NaN"))
        return hash(Fraction(self._num, self._den))

    def __lt__(self, other: object) -> bool:
        pair = self._cross(other)
        if pair is None:
            return NotImplemented
        return pair[0] < pair[1]

    def __le__(self, other: object) -> bool:
        pair = self._cross(other)
        if pair is None:
            return NotImplemented
        return pair[0] <= pair[1]

    def __gt__(self, other: object) -> bool:
        pair = self._cross(other)
        if pair is None:
            return NotImplemented
        return pair[0] > pair[1]

    def __ge__(self, other: object) -> bool:
        pair = self._cross(other)
        if pair is None:
            return NotImplemented
        return pair[0] >= pair[1]

    # ------------------------------------------------------------------
    # Misc
    # ------------------------------------------------------------------

    def __float__(self) -> float:
        if self._den == 0:
            return math.nan
        return self._num / self._den

    def __int__(self) -> int:
        self._require_number()
        quotient = abs(self._num) // self._den
        return quotient if self._num >= 0 else -quotient

    def __bool__(self) -> bool:
        return self._num != 0 or self._den == 0

    def __str__(self) -> str:
        if self._den == 0:
            return "NaN"
        if self._den == 1:
            return str(self._num)
        return f"{self._num}/{self._den}"

    def __repr__(self) -> str:
        return f"Rational({self})"


Rational.ZERO = Rational(0)
Rational.ONE = Rational(1)
Rational.MIN_VALUE = Rational(-(2**31 - 2))
Rational.MAX_VALUE = Rational(2**31 - 2)
Rational.EPSILON = Rational(1, 100_000_000)
Rational.NAN = Rational._marker()
