"""Display formatting for amounts, percentages, share counts and enum names."""

from decimal import Decimal
from typing import Optional, Union

from firetools.config import settings

Number = Union[int, float, Decimal]

CURRENCY_SYMBOLS = {
    "EUR": "€",
    "USD": "$",
}


def format_currency(value: Number, currency: Optional[str] = None, decimals: int = 0) -> str:
    """
    Format an amount with its currency symbol and thousands separators.

    The sign is dropped; callers show direction through the action label.

    Example:
        >>> format_currency(Decimal("-1234.4"))
        '€1,234'
    """
    symbol = CURRENCY_SYMBOLS.get(currency or settings.DEFAULT_CURRENCY, "$")
    return f"{symbol}{abs(value):,.{decimals}f}"


def format_percent(value: Number) -> str:
    return f"{value:.2f}%"


def format_shares(shares: Number) -> str:
    """Up to 6 decimal places, trailing zeros removed."""
    text = f"{shares:.6f}"
    return text.rstrip("0").rstrip(".")


def format_asset_name(name: str) -> str:
    """
    Turn an enum value into a display label, e.g. ``REAL_ESTATE`` -> ``Real Estate``.

    ``ETF`` stays upper-case wherever it appears.
    """
    words = []
    for word in name.split("_"):
        words.append("ETF" if word == "ETF" else word[:1].upper() + word[1:].lower())
    return " ".join(words)
