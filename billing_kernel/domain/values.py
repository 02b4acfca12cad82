"""
Values -- Immutable, self-validating monetary value objects.

Responsibility:
    Provides the two money types every billing computation uses: MoneyValue
    (a fixed-point amount tagged with a currency) and Monies (an immutable,
    currency-keyed collection of MoneyValues).  These replace raw Decimal or
    float amounts wherever money appears in domain logic.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Imported by every other domain module.  No outward dependencies except
    billing_kernel.domain.currency (CurrencyRegistry) and the exception
    hierarchy.

Invariants enforced:
    - A MoneyValue is always ``unscaled / 10**scale`` with an int unscaled
      value, a non-negative int scale and a valid ISO 4217 currency.
    - Multiplying by a thousandths quantity rounds half-up (away from zero on
      exact halves) and keeps the original scale.
    - Amounts in different currencies are never combined directly.  Combining
      them goes through Monies; nothing is ever converted.

Failure modes:
    - InvalidCurrencyError / InvalidScaleError / InvalidQuantityError on
      construction with bad components.
    - CurrencyMismatchError when ``+`` or ``-`` mixes currencies.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from functools import total_ordering

from billing_kernel.domain.currency import CurrencyRegistry
from billing_kernel.exceptions import (
    CurrencyMismatchError,
    InvalidCurrencyError,
    InvalidQuantityError,
    InvalidScaleError,
    ValidationError,
)

# Quantities are expressed in thousandths of a unit.
QUANTITY_DIVISOR = 1000


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _round_half_up_div(numerator: int, divisor: int) -> int:
    """Integer division rounding exact halves away from zero."""
    quotient, remainder = divmod(abs(numerator), divisor)
    if remainder * 2 >= divisor:
        quotient += 1
    return -quotient if numerator < 0 else quotient


@total_ordering
@dataclass(frozen=True, slots=True, eq=False)
class MoneyValue:
    """
    Fixed-point monetary amount.

    Contract:
        ``value == unscaled / 10**scale`` in ``currency``.  The triple is
        validated on construction and never changes afterwards.

    Guarantees:
        - Immutable and hashable.
        - Equality and ordering are numeric within a currency: ``1.0 USD``
          equals ``1.00 USD``.  Ordering is by currency code first.
        - ``multiply`` preserves scale.  ``+`` and ``-`` produce the larger
          of the two scales.

    Non-goals:
        - Does NOT convert between currencies.
    """

    currency: str
    unscaled: int
    scale: int

    def __post_init__(self) -> None:
        if not CurrencyRegistry.is_valid(self.currency):
            raise InvalidCurrencyError(self.currency)
        if not _is_int(self.unscaled):
            raise InvalidQuantityError("unscaled", self.unscaled)
        if not _is_int(self.scale) or self.scale < 0:
            raise InvalidScaleError(self.scale)

    @classmethod
    def of(cls, amount: Decimal | str | int, currency: str) -> MoneyValue:
        """
        Build a MoneyValue from a decimal amount.

        The scale is taken from the amount's exponent, so ``"10.50"`` becomes
        ``unscaled=1050, scale=2``.  Floats are rejected.
        """
        if isinstance(amount, float):
            raise ValidationError(f"Float amounts are not accepted: {amount!r}")
        try:
            decimal_amount = amount if isinstance(amount, Decimal) else Decimal(str(amount))
        except InvalidOperation as e:
            raise ValidationError(f"Invalid amount: {amount!r}") from e
        if not decimal_amount.is_finite():
            raise ValidationError(f"Invalid amount: {amount!r}")

        exponent = decimal_amount.as_tuple().exponent
        if exponent >= 0:
            return cls(currency, int(decimal_amount), 0)
        scale = -exponent
        return cls(currency, int(decimal_amount.scaleb(scale)), scale)

    @classmethod
    def zero(cls, currency: str) -> MoneyValue:
        """Zero in ``currency`` at the currency's default scale."""
        if not CurrencyRegistry.is_valid(currency):
            raise InvalidCurrencyError(currency)
        return cls(currency, 0, CurrencyRegistry.get_decimal_places(currency))

    @property
    def value(self) -> Decimal:
        return Decimal(self.unscaled).scaleb(-self.scale)

    @property
    def is_zero(self) -> bool:
        return self.unscaled == 0

    def multiply(self, quantity: int) -> MoneyValue:
        """
        Multiply by a quantity in thousandths of a unit.

        Preconditions:
            - quantity is an int (1000 == one unit).

        Postconditions:
            - Result has the same currency and scale.
            - Result unscaled value is ``unscaled * quantity / 1000`` rounded
              half-up, away from zero on exact halves.
        """
        if not _is_int(quantity):
            raise InvalidQuantityError("quantity", quantity)
        return MoneyValue(
            self.currency,
            _round_half_up_div(self.unscaled * quantity, QUANTITY_DIVISOR),
            self.scale,
        )

    def rescale(self, scale: int) -> MoneyValue:
        """Express the same value at a larger or equal scale."""
        if not _is_int(scale) or scale < self.scale:
            raise InvalidScaleError(scale)
        return MoneyValue(
            self.currency, self.unscaled * 10 ** (scale - self.scale), scale
        )

    def _aligned(self, other: MoneyValue, operation: str) -> tuple[int, int, int]:
        if self.currency != other.currency:
            raise CurrencyMismatchError(self.currency, other.currency, operation)
        scale = max(self.scale, other.scale)
        return (
            self.unscaled * 10 ** (scale - self.scale),
            other.unscaled * 10 ** (scale - other.scale),
            scale,
        )

    def __add__(self, other: MoneyValue) -> MoneyValue:
        if not isinstance(other, MoneyValue):
            return NotImplemented
        left, right, scale = self._aligned(other, "add")
        return MoneyValue(self.currency, left + right, scale)

    def __sub__(self, other: MoneyValue) -> MoneyValue:
        if not isinstance(other, MoneyValue):
            return NotImplemented
        left, right, scale = self._aligned(other, "subtract")
        return MoneyValue(self.currency, left - right, scale)

    def __neg__(self) -> MoneyValue:
        return MoneyValue(self.currency, -self.unscaled, self.scale)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MoneyValue):
            return NotImplemented
        return self.currency == other.currency and self.value == other.value

    def __lt__(self, other: MoneyValue) -> bool:
        if not isinstance(other, MoneyValue):
            return NotImplemented
        return (self.currency, self.value) < (other.currency, other.value)

    def __hash__(self) -> int:
        return hash((self.currency, self.value))

    def __str__(self) -> str:
        return f"{self.value} {self.currency}"

    def __repr__(self) -> str:
        return f"MoneyValue({self.currency!r}, {self.unscaled}, {self.scale})"


class Monies(Mapping[str, MoneyValue]):
    """
    Immutable currency-keyed collection of MoneyValues.

    Every balance query returns a Monies.  Adding a MoneyValue in a currency
    already present sums into that entry; a new currency adds a new entry.
    Iteration follows the order in which currencies first appeared.
    """

    __slots__ = ("_values",)

    def __init__(self, values: Iterable[MoneyValue] = ()):
        totals: dict[str, MoneyValue] = {}
        for money in values:
            if not isinstance(money, MoneyValue):
                raise ValidationError(f"Monies holds MoneyValue only, got {type(money).__name__}")
            current = totals.get(money.currency)
            totals[money.currency] = money if current is None else current + money
        self._values = totals

    @classmethod
    def of(cls, *values: MoneyValue) -> Monies:
        return cls(values)

    def __getitem__(self, currency: str) -> MoneyValue:
        return self._values[currency]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    @property
    def currencies(self) -> frozenset[str]:
        return frozenset(self._values)

    @property
    def is_zero(self) -> bool:
        """True when every held amount is zero (or nothing is held)."""
        return all(money.is_zero for money in self._values.values())

    def add(self, value: MoneyValue) -> Monies:
        return Monies((*self._values.values(), value))

    def with_currency(self, currency: str) -> Monies:
        """Ensure ``currency`` is present, adding a zero if absent."""
        if currency in self._values:
            return self
        return self.add(MoneyValue.zero(currency))

    def without(self, currency: str) -> Monies:
        return Monies(m for c, m in self._values.items() if c != currency)

    def __add__(self, other: MoneyValue | Monies) -> Monies:
        if isinstance(other, MoneyValue):
            return self.add(other)
        if isinstance(other, Monies):
            return Monies((*self._values.values(), *other.values()))
        return NotImplemented

    def __str__(self) -> str:
        return ", ".join(str(money) for money in self._values.values())

    def __repr__(self) -> str:
        return f"Monies({list(self._values.values())!r})"
