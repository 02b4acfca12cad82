"""
Module: billing_kernel.db.types
Responsibility: Annotated column type aliases shared by the ORM rows, and the
    conversions between stored money columns and MoneyValue.
Architecture position: Kernel > DB.  Imports the domain value type only.
"""

from typing import Annotated

from sqlalchemy import BigInteger, Integer, String

from billing_kernel.domain.values import MoneyValue

# ISO 4217 currency code (e.g., "USD", "EUR")
CurrencyCode = Annotated[str, String(3)]

# Fixed-point money components
Unscaled = Annotated[int, BigInteger]
Scale = Annotated[int, Integer]

# Short identifier strings (account names, type codes, resources)
ShortCode = Annotated[str, String(64)]

# Long text for descriptions and payment info
LongText = Annotated[str, String(4000)]

# Single-letter confirmation state code
StateCode = Annotated[str, String(1)]


def money_from_columns(
    currency: str | None, unscaled: int | None, scale: int | None
) -> MoneyValue | None:
    """Rebuild a MoneyValue from its three columns; None when unset."""
    if currency is None:
        return None
    return MoneyValue(currency, unscaled, scale)


def money_to_columns(
    money: MoneyValue | None,
) -> tuple[str | None, int | None, int | None]:
    if money is None:
        return None, None, None
    return money.currency, money.unscaled, money.scale
