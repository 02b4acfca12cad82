"""Currency -- ISO 4217 registry with each currency's default scale."""

from dataclasses import dataclass
from typing import ClassVar


@dataclass(frozen=True)
class CurrencyInfo:
    """Information about a single ISO 4217 currency."""

    code: str
    decimal_places: int
    name: str


def _table(*rows: tuple[str, int, str]) -> dict[str, CurrencyInfo]:
    return {code: CurrencyInfo(code, places, name) for code, places, name in rows}


class CurrencyRegistry:
    """Registry of ISO 4217 currencies accepted by MoneyValue."""

    # Source: https://www.iso.org/iso-4217-currency-codes.html
    _CURRENCIES: ClassVar[dict[str, CurrencyInfo]] = _table(
        # Currencies billed by hosting customers
        ("USD", 2, "US Dollar"),
        ("EUR", 2, "Euro"),
        ("GBP", 2, "Pound Sterling"),
        ("CAD", 2, "Canadian Dollar"),
        ("AUD", 2, "Australian Dollar"),
        ("NZD", 2, "New Zealand Dollar"),
        ("CHF", 2, "Swiss Franc"),
        ("SEK", 2, "Swedish Krona"),
        ("NOK", 2, "Norwegian Krone"),
        ("DKK", 2, "Danish Krone"),
        ("PLN", 2, "Polish Zloty"),
        ("CZK", 2, "Czech Koruna"),
        ("HUF", 2, "Hungarian Forint"),
        ("MXN", 2, "Mexican Peso"),
        ("BRL", 2, "Brazilian Real"),
        ("INR", 2, "Indian Rupee"),
        ("CNY", 2, "Chinese Yuan"),
        ("HKD", 2, "Hong Kong Dollar"),
        ("SGD", 2, "Singapore Dollar"),
        ("ZAR", 2, "South African Rand"),
        ("ILS", 2, "Israeli New Shekel"),
        ("TRY", 2, "Turkish Lira"),
        ("PHP", 2, "Philippine Peso"),
        ("THB", 2, "Thai Baht"),
        ("MYR", 2, "Malaysian Ringgit"),
        ("IDR", 2, "Indonesian Rupiah"),
        ("TWD", 2, "New Taiwan Dollar"),
        ("AED", 2, "UAE Dirham"),
        ("SAR", 2, "Saudi Riyal"),
        # Zero-decimal currencies
        ("JPY", 0, "Japanese Yen"),
        ("KRW", 0, "South Korean Won"),
        ("CLP", 0, "Chilean Peso"),
        ("ISK", 0, "Icelandic Krona"),
        ("VND", 0, "Vietnamese Dong"),
        ("XAF", 0, "Central African CFA Franc"),
        ("XOF", 0, "West African CFA Franc"),
        # Three-decimal currencies
        ("BHD", 3, "Bahraini Dinar"),
        ("JOD", 3, "Jordanian Dinar"),
        ("KWD", 3, "Kuwaiti Dinar"),
        ("OMR", 3, "Omani Rial"),
        ("TND", 3, "Tunisian Dinar"),
        # Reserved for testing
        ("XTS", 0, "Testing Code"),
    )

    DEFAULT_DECIMAL_PLACES: ClassVar[int] = 2

    @classmethod
    def is_valid(cls, code: object) -> bool:
        """Check if a currency code is a known ISO 4217 code (exact case)."""
        return isinstance(code, str) and code in cls._CURRENCIES

    @classmethod
    def get_info(cls, code: str) -> CurrencyInfo | None:
        """Get currency information by code."""
        return cls._CURRENCIES.get(code)

    @classmethod
    def get_decimal_places(cls, code: str) -> int:
        """Default scale for a currency (zero amounts use it)."""
        info = cls.get_info(code)
        return info.decimal_places if info else cls.DEFAULT_DECIMAL_PLACES

    @classmethod
    def all_codes(cls) -> frozenset[str]:
        """Get all valid currency codes."""
        return frozenset(cls._CURRENCIES)
