"""Money arithmetic and user-configurable currency formatting.

Amounts are handled as ``Decimal`` with ROUND_HALF_UP. Formatting follows the
user's currency settings: symbol, symbol position, number of decimals, and
thousand and decimal separators.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

Money = Decimal | int | float | str | None

CENTS = Decimal("0.01")
COMMON_SYMBOLS = re.compile(r"[$€£¥₦₹\s,]")


@dataclass(frozen=True)
class CurrencyFormat:
    """Formatting options; attribute names match ``UserSettings``."""

    currency_symbol: str = "$"
    currency_symbol_position: str = "before"
    currency_decimals: int = 2
    thousand_separator: str = ","
    decimal_separator: str = "."


@dataclass(frozen=True)
class CurrencyPreset:
    code: str
    name: str
    symbol: str
    decimals: int
    symbol_position: str
    thousand_separator: str
    decimal_separator: str

    def to_format(self) -> CurrencyFormat:
        return CurrencyFormat(
            currency_symbol=self.symbol,
            currency_symbol_position=self.symbol_position,
            currency_decimals=self.decimals,
            thousand_separator=self.thousand_separator,
            decimal_separator=self.decimal_separator,
        )


DEFAULT_CURRENCY_FORMAT = CurrencyFormat()

CURRENCY_PRESETS: tuple[CurrencyPreset, ...] = (
    CurrencyPreset("USD", "US Dollar", "$", 2, "before", ",", "."),
    CurrencyPreset("EUR", "Euro", "€", 2, "after", ".", ","),
    CurrencyPreset("GBP", "British Pound", "£", 2, "before", ",", "."),
    CurrencyPreset("NGN", "Nigerian Naira", "₦", 2, "before", ",", "."),
    CurrencyPreset("KES", "Kenyan Shilling", "KSh", 2, "before", ",", "."),
    CurrencyPreset("GHS", "Ghanaian Cedi", "₵", 2, "before", ",", "."),
    CurrencyPreset("ZAR", "South African Rand", "R", 2, "before", " ", "."),
    CurrencyPreset("INR", "Indian Rupee", "₹", 2, "before", ",", "."),
    CurrencyPreset("JPY", "Japanese Yen", "¥", 0, "before", ",", "."),
    CurrencyPreset("XOF", "West African CFA Franc", "CFA", 0, "after", " ", ","),
)


def get_currency_preset(code: str) -> CurrencyPreset | None:
    return next((p for p in CURRENCY_PRESETS if p.code == code), None)


def to_decimal(value: Money) -> Decimal:
    """Convert to Decimal; None and "" are zero."""
    if isinstance(value, Decimal):
        return value
    if value is None or value == "":
        return Decimal("0")
    # str() keeps floats from carrying binary noise
    return Decimal(str(value))


def to_db_string(value: Money) -> str:
    return str(to_decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP))


def round_currency(value: Money) -> Decimal:
    return to_decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def sum_amounts(*amounts: Money) -> Decimal:
    return sum((to_decimal(a) for a in amounts), Decimal("0"))


def multiply(a: Money, b: Money) -> Decimal:
    return to_decimal(a) * to_decimal(b)


def divide(a: Money, b: Money) -> Decimal | None:
    divisor = to_decimal(b)
    if divisor == 0:
        return None
    return to_decimal(a) / divisor


def calculate_percentage(part: Money, total: Money) -> float:
    """part / total as a percentage with 2 dp; 0 when total is 0."""
    total_dec = to_decimal(total)
    if total_dec == 0:
        return 0.0
    pct = to_decimal(part) / total_dec * 100
    return float(pct.quantize(CENTS, rounding=ROUND_HALF_UP))


def _group_thousands(digits: str, separator: str) -> str:
    groups = []
    while len(digits) > 3:
        groups.insert(0, digits[-3:])
        digits = digits[:-3]
    groups.insert(0, digits)
    return separator.join(groups)


def _attach_symbol(number: str, settings: Any) -> str:
    if settings.currency_symbol_position == "after":
        return f"{number} {settings.currency_symbol}"
    return f"{settings.currency_symbol}{number}"


def format_currency(amount: Money, settings: Any = DEFAULT_CURRENCY_FORMAT) -> str:
    """Format an amount, e.g. ``$1,500,000.00`` with the default settings."""
    decimals = int(settings.currency_decimals)
    quantum = Decimal(1).scaleb(-decimals)
    value = to_decimal(amount).quantize(quantum, rounding=ROUND_HALF_UP)

    sign = "-" if value < 0 else ""
    text = f"{abs(value):.{decimals}f}"
    whole, _, fraction = text.partition(".")

    number = _group_thousands(whole, settings.thousand_separator)
    if decimals > 0:
        number = f"{number}{settings.decimal_separator}{fraction}"
    return sign + _attach_symbol(number, settings)


def format_compact_currency(amount: Money, settings: Any = DEFAULT_CURRENCY_FORMAT) -> str:
    """Short form with K, M or B suffix; below 1000 uses the full format."""
    value = to_decimal(amount)
    magnitude = abs(value)

    for threshold, suffix in (
        (Decimal(1_000_000_000), "B"),
        (Decimal(1_000_000), "M"),
        (Decimal(1_000), "K"),
    ):
        if magnitude >= threshold:
            scaled = f"{magnitude / threshold:.1f}"
            if scaled.endswith(".0"):
                scaled = scaled[:-2]
            scaled = scaled.replace(".", settings.decimal_separator)
            sign = "-" if value < 0 else ""
            return sign + _attach_symbol(f"{scaled}{suffix}", settings)

    return format_currency(value, settings)


def parse_currency(text: str, settings: Any = None) -> Decimal | None:
    """Parse a formatted amount. None for invalid or negative input."""
    if settings is None:
        cleaned = COMMON_SYMBOLS.sub("", text)
    else:
        cleaned = text.replace(settings.currency_symbol, "").strip()
        cleaned = cleaned.replace(settings.thousand_separator, "")
        cleaned = re.sub(r"\s", "", cleaned)
        cleaned = cleaned.replace(settings.decimal_separator, ".")

    try:
        value = Decimal(cleaned)
    except InvalidOperation:
        return None
    if not value.is_finite() or value < 0:
        return None
    return value
