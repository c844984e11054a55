"""
Money value type: integer minor units plus an ISO currency code.

Amounts are stored and transmitted as minor units. Conversion to major units
happens in exactly two places: ``from_major_units`` on input and
``to_display_string`` / ``to_major_units`` when rendering a response.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union

MINOR_UNITS_PER_MAJOR = 100

CURRENCY_SYMBOLS = {"USD": "$"}

Number = Union[int, float, str, Decimal]


class CurrencyMismatch(ValueError):
    pass


def round_half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class Money:
    amount: int
    currency: str = "USD"

    def __post_init__(self) -> None:
        if isinstance(self.amount, bool) or not isinstance(self.amount, int):
            raise TypeError(f"Money amount must be an integer of minor units, got {self.amount!r}")
        object.__setattr__(self, "currency", self.currency.upper())

    @classmethod
    def zero(cls, currency: str = "USD") -> "Money":
        return cls(0, currency)

    @classmethod
    def from_major_units(cls, value: Number, currency: str = "USD") -> "Money":
        """Convert e.g. ``"1234.56"`` dollars to ``Money(123456)``. Sub-cent precision is rejected."""
        try:
            major = Decimal(str(value))
        except InvalidOperation as e:
            raise ValueError(f"not a monetary value: {value!r}") from e
        minor = major * MINOR_UNITS_PER_MAJOR
        if minor != minor.to_integral_value():
            raise ValueError(f"{value!r} has more precision than the minor unit of {currency}")
        return cls(int(minor), currency)

    def to_major_units(self) -> Decimal:
        return Decimal(self.amount) / MINOR_UNITS_PER_MAJOR

    def to_display_string(self) -> str:
        major = self.to_major_units().quantize(Decimal("0.01"))
        sign = "-" if major < 0 else ""
        body = f"{abs(major):,.2f}"
        symbol = CURRENCY_SYMBOLS.get(self.currency)
        if symbol:
            return f"{sign}{symbol}{body}"
        return f"{sign}{body} {self.currency}"

    def scale(self, factor: Number) -> "Money":
        """Multiply by ``factor`` and round half up to a whole minor unit."""
        return Money(round_half_up(Decimal(self.amount) * Decimal(str(factor))), self.currency)

    def is_positive(self) -> bool:
        return self.amount > 0

    def _check(self, other: "Money") -> None:
        if not isinstance(other, Money):
            raise TypeError(f"cannot combine Money with {type(other).__name__}")
        if other.currency != self.currency:
            raise CurrencyMismatch(f"{self.currency} vs {other.currency}")

    def __add__(self, other: "Money") -> "Money":
        self._check(other)
        return Money(self.amount + other.amount, self.currency)

    def __sub__(self, other: "Money") -> "Money":
        self._check(other)
        return Money(self.amount - other.amount, self.currency)

    def __lt__(self, other: "Money") -> bool:
        self._check(other)
        return self.amount < other.amount

    def __le__(self, other: "Money") -> bool:
        self._check(other)
        return self.amount <= other.amount

    def __str__(self) -> str:
        return self.to_display_string()
